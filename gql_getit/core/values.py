"""Rendering of query parameter values as GraphQL literals.

Plain Python data maps onto GraphQL input syntax directly:

    render_value({"make": "bmw", "years": [2019, 2020], "used": False})
    # -> {make: "bmw", years: [2019, 2020], used: false}

Python types without a GraphQL counterpart (datetimes, UUIDs, ...) go
through a ValueHandler first. Register your own for other types:

    class MoneyHandler:
        def serialize(self, value: Money) -> Any:
            return {"amount": GraphQLLiteral(str(value.amount)), "currency": value.currency}

    registry = ValueRegistry()
    registry.register(Money, MoneyHandler())
"""

import enum
import json
import math
import re
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

from pydantic import BaseModel

from .errors import QueryArgumentError

_NAME_RE = re.compile(r"^[_A-Za-z][_0-9A-Za-z]*$")


class GraphQLLiteral:
    """Text emitted into the query exactly as given."""

    def __init__(self, text: str):
        self.text = text

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.text!r})"

    def __eq__(self, other: object) -> bool:
        return type(other) is type(self) and other.text == self.text

    def __hash__(self) -> int:
        return hash((type(self), self.text))


class GraphQLEnum(GraphQLLiteral):
    """A GraphQL enum value, rendered unquoted.

    Example:
        query.where("status", GraphQLEnum("ACTIVE"))  # status: ACTIVE
    """

    def __init__(self, name: str):
        if not isinstance(name, str) or not _NAME_RE.match(name):
            raise QueryArgumentError(f"Invalid GraphQL enum value: {name!r}")
        super().__init__(name)


@runtime_checkable
class ValueHandler(Protocol):
    """Protocol for converting a Python value into renderable data.

    ``serialize`` may return any value ``render_value`` understands,
    including another mapping or a GraphQLLiteral.
    """

    def serialize(self, value: Any) -> Any:
        ...


class DateTimeHandler:
    """ISO 8601 strings for datetime, date and time values."""

    def serialize(self, value: date | time) -> str:
        return value.isoformat()


class UUIDHandler:
    """UUIDs as their canonical string form."""

    def serialize(self, value: UUID) -> str:
        return str(value)


class DecimalHandler:
    """Decimals as unquoted numbers, keeping their exact digits."""

    def serialize(self, value: Decimal) -> GraphQLLiteral:
        if not value.is_finite():
            raise QueryArgumentError(f"Cannot render non-finite number {value}")
        return GraphQLLiteral(str(value))


class ValueRegistry:
    """Maps Python types to the handlers that serialize them.

    Lookup walks the value's MRO, so a handler registered for a base class
    also covers its subclasses.
    """

    def __init__(self):
        self._handlers: dict[type, ValueHandler] = {}
        self._register_defaults()

    def _register_defaults(self):
        self.register(datetime, DateTimeHandler())
        self.register(date, DateTimeHandler())
        self.register(time, DateTimeHandler())
        self.register(UUID, UUIDHandler())
        self.register(Decimal, DecimalHandler())

    def register(self, python_type: type, handler: ValueHandler):
        """Register a handler for a Python type."""
        self._handlers[python_type] = handler

    def get(self, python_type: type) -> ValueHandler | None:
        """Get the handler for a type or its nearest base, or None."""
        for klass in python_type.__mro__:
            handler = self._handlers.get(klass)
            if handler is not None:
                return handler
        return None

    def has(self, python_type: type) -> bool:
        """Check if a handler covers a type."""
        return self.get(python_type) is not None


DEFAULT_REGISTRY = ValueRegistry()


def render_value(value: Any, registry: ValueRegistry | None = None) -> str:
    """Render a Python value as a GraphQL input literal.

    Args:
        value: Primitive, mapping, sequence, pydantic model or a value with
            a registered handler
        registry: Handlers for non-JSON types (defaults to DEFAULT_REGISTRY)

    Returns:
        GraphQL literal text

    Raises:
        QueryArgumentError: If the value (or anything inside it) cannot be rendered
    """
    registry = registry or DEFAULT_REGISTRY

    if value is None:
        return "null"
    if isinstance(value, GraphQLLiteral):
        return value.text
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, enum.Enum):
        return GraphQLEnum(value.name).text
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise QueryArgumentError(f"Cannot render non-finite number {value}")
        return repr(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, BaseModel):
        return render_value(value.model_dump(by_alias=True, exclude_none=True), registry)
    if isinstance(value, Mapping):
        return _render_object(value, registry)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(render_value(v, registry) for v in value) + "]"
    if isinstance(value, (set, frozenset)):
        return "[" + ", ".join(sorted(render_value(v, registry) for v in value)) + "]"

    handler = registry.get(type(value))
    if handler is not None:
        return render_value(handler.serialize(value), registry)

    raise QueryArgumentError(
        f"Cannot render value of type {type(value).__name__} as a GraphQL argument"
    )


def render_arguments(arguments: Mapping[str, Any], registry: ValueRegistry | None = None) -> str:
    """Render a parameter map as a field argument list: (key: value, ...)"""
    if not arguments:
        return ""
    return "(" + ", ".join(
        f"{key}: {render_value(value, registry)}" for key, value in arguments.items()
    ) + ")"


def _render_object(value: Mapping, registry: ValueRegistry) -> str:
    fields = []
    for key, item in value.items():
        if not isinstance(key, str) or not key:
            raise QueryArgumentError(f"Object keys must be non-empty strings, got {key!r}")
        fields.append(f"{key}: {render_value(item, registry)}")
    return "{" + ", ".join(fields) + "}"
