"""Exception types raised by the query builder and its transport."""


class GetitError(Exception):
    """Base class for all gql-getit errors."""


class QueryArgumentError(GetitError, ValueError):
    """Raised when a query is built or rendered from invalid parts.

    Covers empty selections, unsupported selection items, nested queries
    without a name, unrenderable parameter values and missing result names.
    """


class DuplicateKeyError(GetitError, KeyError):
    """Raised when a parameter key is added to a query twice."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Parameter '{key}' is already set on this query")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class TypeMismatchError(GetitError, TypeError):
    """Raised when a response payload does not fit the requested type."""


class ConfigError(GetitError, ValueError):
    """Raised for missing or malformed configuration."""


class TransportError(GetitError):
    """Raised when the endpoint answers with something that is not a GraphQL response."""
