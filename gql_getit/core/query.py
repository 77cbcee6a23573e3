"""Fluent builder for GraphQL queries.

Builds the selection-set text for one or more top-level fields and runs it
against an endpoint:

    dealers = (
        Query(executor)
        .name("NearestDealer")
        .alias("closest")
        .where("zip", "91403")
        .where("make", "aston martin")
        .select("distance", {"dealer": ["name", "phone"]})
    )
    str(dealers)
    # closest: NearestDealer(zip: "91403", make: "aston martin") {
    #   distance
    #   dealer {
    #     name
    #     phone
    #   }
    # }

    result = await dealers.get(list[Dealer])
"""

import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any

import graphql
from pydantic import TypeAdapter, ValidationError

from .errors import DuplicateKeyError, QueryArgumentError, TypeMismatchError
from .executor import GraphQLErrorDetail, GraphQLExecutor
from .selection import Field, NestedFields, SelectionItem, SubQuery, coerce_selection
from .values import ValueRegistry, render_arguments, render_value

logger = logging.getLogger(__name__)

INDENT = "  "
OPERATION_TYPES = ("query", "mutation")

_MISSING = object()


class Query:
    """A GraphQL query under construction.

    All mutators return the query itself so calls can be chained. A query
    is not safe to mutate from several tasks at once; rendering does not
    mutate it.
    """

    def __init__(
        self,
        executor: GraphQLExecutor | None = None,
        *,
        registry: ValueRegistry | None = None,
    ):
        """Create an empty query.

        Args:
            executor: Executor used by get(); not needed for rendering only
            registry: Value handlers for rendering parameters
        """
        self._executor = executor
        self._registry = registry
        self._reset()

    def _reset(self):
        self._name: str | None = None
        self._alias: str | None = None
        self._comment: str | None = None
        self._raw: str | None = None
        self._select_list: list[SelectionItem] = []
        self._where_map: dict[str, Any] = {}
        self._batch_list: list[Query] = []
        self._errors: list[GraphQLErrorDetail] = []

    # -- model ---------------------------------------------------------------

    @property
    def query_name(self) -> str | None:
        return self._name

    @property
    def alias_name(self) -> str | None:
        return self._alias

    @property
    def query_comment(self) -> str | None:
        return self._comment

    @property
    def raw_query(self) -> str | None:
        return self._raw

    @property
    def select_list(self) -> list[SelectionItem]:
        return list(self._select_list)

    @property
    def where_map(self) -> dict[str, Any]:
        return dict(self._where_map)

    @property
    def sub_selects(self) -> list["Query"]:
        """Queries selected directly into this one."""
        return [item.query for item in self._select_list if isinstance(item, SubQuery)]

    @property
    def batch_list(self) -> list["Query"]:
        return list(self._batch_list)

    @property
    def errors(self) -> list[GraphQLErrorDetail]:
        """Errors reported by the endpoint for the most recent get()."""
        return list(self._errors)

    def has_errors(self) -> bool:
        """Check whether the most recent get() reported errors.

        No errors does not mean there is data.
        """
        return bool(self._errors)

    # -- mutators ------------------------------------------------------------

    def clear(self) -> "Query":
        """Reset the query to its empty state. The executor stays bound."""
        self._reset()
        return self

    def raw(self, raw_query: str | None) -> "Query":
        """Use a complete selection-set text instead of the builder.

        While set, select/where/sub-selects/batches are ignored when
        rendering. An empty string is ignored and leaves the builder in
        charge.
        """
        if raw_query:
            self._raw = raw_query
        return self

    def name(self, name: str) -> "Query":
        """Set the field/operation name."""
        self._name = name
        return self

    def alias(self, alias: str) -> "Query":
        """Set the alias, rendered as ``alias: name``.

        The alias is also the key the result is read from in the response.
        """
        self._alias = alias
        return self

    def comment(self, comment: str) -> "Query":
        """Set a comment, rendered at the top of the selection block.

        Multi-line comments (split on ``\\n``) become one ``#`` line each.
        """
        self._comment = comment
        return self

    def select(self, *selects: Any) -> "Query":
        """Append items to the selection list.

        Accepts field names, queries (as sub-selects), mappings of field
        name to nested selections, lists of any of these, and the explicit
        Field/NestedFields/SubQuery items.

        Raises:
            QueryArgumentError: On an unsupported item, or a sub-query with
                nothing selected
        """
        items: list[SelectionItem] = []
        for select in selects:
            items.extend(coerce_selection(select))

        for sub_query in _iter_sub_queries(items):
            if sub_query is self:
                raise QueryArgumentError("A query cannot be selected into itself")
            if not sub_query._select_list and not sub_query._raw:
                raise QueryArgumentError(
                    f"Sub-select '{sub_query._alias or sub_query._name}' has nothing selected"
                )

        self._select_list.extend(items)
        return self

    def where(self, key: str | Mapping[str, Any], value: Any = _MISSING) -> "Query":
        """Add query parameters.

        Call as ``where(key, value)`` or ``where({key: value, ...})``. A
        mapping is added atomically: if any entry is rejected, none are
        added.

        Raises:
            DuplicateKeyError: If a key is already set
            QueryArgumentError: On an empty key or a value that cannot be
                rendered
        """
        if value is _MISSING:
            if not isinstance(key, Mapping):
                raise QueryArgumentError("where() takes a key and a value, or a mapping")
            entries = dict(key)
        else:
            if not isinstance(key, str):
                raise QueryArgumentError(f"Parameter key must be a non-empty string, got {key!r}")
            entries = {key: value}

        for entry_key, entry_value in entries.items():
            if not isinstance(entry_key, str) or not entry_key:
                raise QueryArgumentError(f"Parameter key must be a non-empty string, got {entry_key!r}")
            if entry_key in self._where_map:
                raise DuplicateKeyError(entry_key)
            render_value(entry_value, self._registry)

        self._where_map.update(entries)
        return self

    def batch(self, query: "Query") -> "Query":
        """Add an independent query sent in the same document.

        The batched query keeps its own selections and parameters and is
        rendered after this one. Use aliases when batching the same name
        twice.
        """
        if query is self:
            raise QueryArgumentError("A query cannot be batched with itself")
        self._batch_list.append(query)
        return self

    # -- rendering -----------------------------------------------------------

    def render(self, default_name: str | None = None) -> str:
        """Render the selection-set text, without an enclosing operation block.

        Args:
            default_name: Field name to use if none was set

        Raises:
            QueryArgumentError: If nothing is selected, a nested query has no
                name, or queries are nested in a cycle
        """
        if self._raw:
            return self._raw
        return "\n".join(self._render_lines((), default_name))

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"<Query {self._alias or self._name or '?'}>"

    def document(self, operation_type: str = "query") -> str:
        """Render the query wrapped in a ``query { ... }`` or ``mutation { ... }`` block."""
        if operation_type not in OPERATION_TYPES:
            raise QueryArgumentError(f"Unsupported operation type: {operation_type!r}")
        return f"{operation_type} {{\n{self.render()}\n}}"

    def parse(self, operation_type: str = "query") -> graphql.DocumentNode:
        """Parse the rendered document with graphql-core.

        Only checks syntax; no schema is involved.

        Raises:
            graphql.GraphQLSyntaxError: If the rendered text is not valid GraphQL
        """
        return graphql.parse(self.document(operation_type))

    def _render_lines(
        self,
        ancestors: tuple[int, ...],
        default_name: str | None = None,
    ) -> list[str]:
        """Render this query as a top-level block followed by its batches.

        Batches of sub-queries are rendered at the top level too, after
        this query's own batches.
        """
        hoisted: list[Query] = []
        lines = self._render_block(0, ancestors, hoisted, default_name)

        if not self._raw:
            ancestors = ancestors + (id(self),)
            for batched in self._batch_list + hoisted:
                lines.extend(batched._render_lines(ancestors))
        return lines

    def _render_block(
        self,
        depth: int,
        ancestors: tuple[int, ...],
        hoisted: list["Query"],
        default_name: str | None = None,
    ) -> list[str]:
        """Render this query alone; sub-query batches are collected in ``hoisted``."""
        if id(self) in ancestors:
            raise QueryArgumentError(f"Query {self!r} is nested inside itself")
        ancestors = ancestors + (id(self),)
        pad = INDENT * depth

        if self._raw:
            return [pad + line for line in self._raw.split("\n")]

        if not self._select_list:
            raise QueryArgumentError(f"Query {self!r} has nothing selected")

        header = self._header(default_name)
        arguments = render_arguments(self._where_map, self._registry)
        lines = [f"{pad}{header}{arguments} {{"]

        if self._comment:
            for line in self._comment.split("\n"):
                line = line.rstrip("\r")
                lines.append(f"{pad}{INDENT}# {line}" if line else f"{pad}{INDENT}#")

        lines.extend(self._render_items(self._select_list, depth + 1, ancestors, hoisted))
        lines.append(f"{pad}}}")
        return lines

    def _render_items(
        self,
        items: Iterable[SelectionItem],
        depth: int,
        ancestors: tuple[int, ...],
        hoisted: list["Query"],
    ) -> list[str]:
        pad = INDENT * depth
        lines = []
        for item in items:
            if isinstance(item, Field):
                lines.append(f"{pad}{item.name}")
            elif isinstance(item, NestedFields):
                lines.append(f"{pad}{item.name} {{")
                lines.extend(self._render_items(item.selections, depth + 1, ancestors, hoisted))
                lines.append(f"{pad}}}")
            else:
                sub_query = item.query
                lines.extend(sub_query._render_block(depth, ancestors, hoisted))
                if not sub_query._raw:
                    hoisted.extend(sub_query._batch_list)
        return lines

    def _header(self, default_name: str | None) -> str:
        """Build ``alias: name``, or just the name."""
        field_name = self._name or default_name or self._alias
        if not field_name:
            raise QueryArgumentError("Query has no name or alias")
        if self._alias and self._alias != field_name:
            return f"{self._alias}: {field_name}"
        return field_name

    # -- execution -----------------------------------------------------------

    def result_name(self, result_name: str | None = None) -> str:
        """Resolve the response key: the override, else alias, else name.

        Raises:
            QueryArgumentError: If no name can be resolved (set one for raw queries)
        """
        resolved = result_name or self._alias or self._name
        if not resolved:
            raise QueryArgumentError(
                "Cannot determine the result name; set name()/alias() or pass result_name"
            )
        return resolved

    async def get(
        self,
        result_type: Any = str,
        result_name: str | None = None,
        *,
        operation_type: str = "query",
    ) -> Any:
        """Execute the query and return its result.

        Args:
            result_type: Type to read the result into; ``str`` returns the
                result's JSON text
            result_name: Response key to read, overriding alias/name
            operation_type: "query" or "mutation"

        Returns:
            The result, or None if the response has no data under the name.
            Check has_errors() afterwards: endpoint errors are not raised.

        Raises:
            QueryArgumentError: If the query cannot be rendered or named
            TypeMismatchError: If the result does not fit result_type
            RuntimeError: If the query has no executor
        """
        key = self.result_name(result_name)
        if self._executor is None:
            raise RuntimeError("Query has no executor; create it with Getit.query() or pass one in")

        document = self.document(operation_type)
        self._errors = []
        response = await self._executor.execute(document)
        self._errors = list(response.errors)

        value = (response.data or {}).get(key)
        if value is None:
            logger.debug("No data for '%s' in response", key)
            return None
        return _convert_result(value, result_type, key)


def _iter_sub_queries(items: Iterable[SelectionItem]) -> Iterable[Query]:
    for item in items:
        if isinstance(item, SubQuery):
            yield item.query
        elif isinstance(item, NestedFields):
            yield from _iter_sub_queries(item.selections)


def _convert_result(value: Any, result_type: Any, key: str) -> Any:
    if result_type is str:
        return json.dumps(value)
    try:
        return TypeAdapter(result_type).validate_python(value)
    except ValidationError as exc:
        raise TypeMismatchError(f"Result '{key}' does not match {result_type!r}: {exc}") from exc
