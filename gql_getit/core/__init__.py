"""Core modules for building and running GraphQL queries."""

from .config import GetitConfig
from .errors import (
    ConfigError,
    DuplicateKeyError,
    GetitError,
    QueryArgumentError,
    TransportError,
    TypeMismatchError,
)
from .executor import GraphQLErrorDetail, GraphQLExecutor, GraphQLResponse
from .getit import Getit
from .query import Query
from .selection import (
    Field,
    NestedFields,
    SelectionItem,
    SubQuery,
    coerce_selection,
    parse_field_paths,
)
from .values import (
    DecimalHandler,
    DateTimeHandler,
    GraphQLEnum,
    GraphQLLiteral,
    UUIDHandler,
    ValueHandler,
    ValueRegistry,
    render_value,
)

__all__ = [
    # Config
    "GetitConfig",
    # Errors
    "GetitError",
    "QueryArgumentError",
    "DuplicateKeyError",
    "TypeMismatchError",
    "ConfigError",
    "TransportError",
    # Executor
    "GraphQLErrorDetail",
    "GraphQLExecutor",
    "GraphQLResponse",
    # Query
    "Getit",
    "Query",
    # Selections
    "Field",
    "NestedFields",
    "SelectionItem",
    "SubQuery",
    "coerce_selection",
    "parse_field_paths",
    # Values
    "GraphQLEnum",
    "GraphQLLiteral",
    "ValueHandler",
    "ValueRegistry",
    "DateTimeHandler",
    "DecimalHandler",
    "UUIDHandler",
    "render_value",
]
