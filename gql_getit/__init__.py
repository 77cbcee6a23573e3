"""gql-getit: a fluent GraphQL query builder and client."""

from .core import (
    DuplicateKeyError,
    Getit,
    GetitConfig,
    GetitError,
    GraphQLEnum,
    Query,
    QueryArgumentError,
    TypeMismatchError,
)

__version__ = "0.1.0"

__all__ = [
    "DuplicateKeyError",
    "Getit",
    "GetitConfig",
    "GetitError",
    "GraphQLEnum",
    "Query",
    "QueryArgumentError",
    "TypeMismatchError",
]
