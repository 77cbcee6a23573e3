"""Selection items for GraphQL queries.

A query's selection list holds one of three item kinds:

    Field("id")                              ->  id
    NestedFields("owner", ["first", "last"]) ->  owner { first last }
    SubQuery(query)                          ->  alias: name(args) { ... }

Callers rarely build these directly. ``Query.select()`` accepts plain
strings, dicts, lists and queries, and ``coerce_selection`` turns them into
the variants above.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from .errors import QueryArgumentError

if TYPE_CHECKING:
    from .query import Query


@dataclass(frozen=True)
class Field:
    """A scalar field selection."""
    name: str

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name:
            raise QueryArgumentError(f"Field name must be a non-empty string, got {self.name!r}")


@dataclass(frozen=True)
class NestedFields:
    """An object-typed field with its own list of selections."""
    name: str
    selections: tuple["SelectionItem", ...]

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name:
            raise QueryArgumentError(f"Field name must be a non-empty string, got {self.name!r}")
        items = tuple(coerce_selection(self.selections))
        if not items:
            raise QueryArgumentError(f"Nested field '{self.name}' needs at least one selection")
        object.__setattr__(self, "selections", items)


@dataclass(frozen=True, eq=False)
class SubQuery:
    """A full query used as a nested selection."""
    query: "Query"


SelectionItem = Union[Field, NestedFields, SubQuery]


def coerce_selection(item: Any) -> list[SelectionItem]:
    """Convert loose select input into selection items.

    Strings become fields, queries become sub-queries, mappings become one
    nested field per key and lists/tuples are flattened.

    Raises:
        QueryArgumentError: If an item is of an unsupported type
    """
    from .query import Query

    if isinstance(item, (Field, NestedFields, SubQuery)):
        return [item]
    if isinstance(item, str):
        return [Field(item)]
    if isinstance(item, Query):
        return [SubQuery(item)]
    if isinstance(item, Mapping):
        return [NestedFields(key, value) for key, value in item.items()]
    if isinstance(item, (list, tuple)):
        items: list[SelectionItem] = []
        for element in item:
            items.extend(coerce_selection(element))
        return items
    raise QueryArgumentError(
        f"Unsupported selection item of type {type(item).__name__}: {item!r}"
    )


def parse_field_paths(paths: list[str]) -> list[Any]:
    """Turn dotted field paths into select input.

    Example:
        >>> parse_field_paths(["id", "owner.first", "owner.last"])
        ['id', {'owner': ['first', 'last']}]
    """
    field_tree: dict[str, Any] = {}
    for field_path in paths:
        parts = field_path.split(".")
        if not all(parts):
            raise QueryArgumentError(f"Invalid field path: {field_path!r}")
        current = field_tree
        for part in parts:
            current = current.setdefault(part, {})

    return _tree_to_items(field_tree)


def _tree_to_items(tree: dict[str, Any]) -> list[Any]:
    items: list[Any] = []
    for name, children in tree.items():
        if children:
            items.append({name: _tree_to_items(children)})
        else:
            items.append(name)
    return items
