"""Clause-level SQL builders.

Each class handles exactly one SphinxQL clause and returns an empty string
when the clause has nothing to render, so the assembler can drop it.
``FromClauseBuilder`` receives a *shared build function*
(``Callable[[Query], str]``) for sub-queries, so nested queries are compiled
with the **same** :class:`RuntimeContext` as the outer query and placeholder
names never collide.

Classes
-------
SelectClauseBuilder     - ``SELECT [DISTINCT] [option] <fields>``
FromClauseBuilder       - ``FROM <index | alias | sub-query>, …``
ConditionClauseBuilder  - ``HAVING <condition>``
WhereClauseBuilder      - ``WHERE MATCH(…) AND <condition>``
ColumnListBuilder       - ``GROUP BY`` column lists
OrderByBuilder          - ``ORDER BY`` / ``WITHIN GROUP ORDER BY``
LimitBuilder            - ``LIMIT [offset,]count``
OptionBuilder           - ``OPTION name = value, …``
FacetBuilder            - ``FACET <fields> [ORDER BY …] [LIMIT …]``
ShowMetaBuilder         - ``SHOW META [LIKE pattern]``
"""
from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from typing import Any

from sphinxql.compile.context import CompilationContext, RuntimeContext
from sphinxql.compile.expression_builder import ConditionBuilder
from sphinxql.errors import InvalidFacetSpecError
from sphinxql.schema.expressions import (
    ConditionOperator,
    SortDirection,
    escape_match_value,
    like_pattern,
    parse_direction,
)
from sphinxql.schema.index import IndexSchema
from sphinxql.schema.query import Query, iter_entries
from sphinxql.schema.values import ValueKind, classify_value

# ``expr AS alias`` or ``expr alias`` in a SELECT field.
_SELECT_ALIAS_RE = re.compile(r"^(.*?)(?:\s+[aA][sS]\s+|\s+)([\w\-.]+)$")
# ``index AS alias`` or ``index alias`` in a FROM entry.
_FROM_ALIAS_RE = re.compile(r"^(.*?)(?:\s+[aA][sS]|)\s+([^ ]+)$")
_COLUMN_SPLIT_RE = re.compile(r"\s*,\s*")
_DIGITS_RE = re.compile(r"[0-9]+")


def index_names(indexes: Any) -> list[str]:
    """Return the plain index names referenced by a FROM specification.

    Aliases are stripped; sub-queries and expressions are skipped.
    """
    names: list[str] = []
    for key, entry in iter_entries(indexes):
        if not isinstance(entry, str) or "(" in entry:
            continue
        if key is None:
            match = _FROM_ALIAS_RE.match(entry)
            if match:
                entry = match.group(1)
        names.append(entry)
    return names


class SelectClauseBuilder:
    """Builds the ``SELECT [DISTINCT] …`` clause and FACET field lists."""

    def __init__(self, ctx: CompilationContext, runtime: RuntimeContext) -> None:
        self._ctx = ctx
        self._runtime = runtime

    def build(
        self,
        columns: Any,
        distinct: bool = False,
        select_option: str | None = None,
    ) -> str:
        prefix = "SELECT DISTINCT" if distinct else "SELECT"
        if select_option is not None:
            prefix = f"{prefix} {select_option}"
        return f"{prefix} {self.build_fields(columns)}"

    def build_fields(self, columns: Any) -> str:
        """Render a field list; an empty list renders ``*``."""
        entries = iter_entries(columns)
        if not entries:
            return "*"
        return ", ".join(self._build_field(alias, column) for alias, column in entries)

    def _build_field(self, alias: str | None, column: Any) -> str:
        quote = self._ctx.compiler.quote_column_name
        if classify_value(column) is ValueKind.RAW:
            self._runtime.merge(column.params)
            return f"{column.expression} AS {quote(alias)}" if alias else column.expression
        column = str(column)
        if alias is not None:
            return f"{quote(column)} AS {quote(alias)}"
        if "(" in column:
            return column
        match = _SELECT_ALIAS_RE.match(column)
        if match:
            return f"{quote(match.group(1))} AS {quote(match.group(2))}"
        return quote(column)


class FromClauseBuilder:
    """Builds the ``FROM …`` clause.

    Sub-query entries are compiled with ``build_fn``, which uses the
    **shared** ``RuntimeContext``.  Every plain index name rendered is
    appended to ``entities``.
    """

    def __init__(
        self,
        ctx: CompilationContext,
        runtime: RuntimeContext,
        build_fn: Callable[[Query], str],
        entities: list[str],
    ) -> None:
        self._ctx = ctx
        self._runtime = runtime
        self._build_fn = build_fn
        self._entities = entities

    def build(self, indexes: Any) -> str:
        entries = iter_entries(indexes)
        if not entries:
            return ""
        self._entities.extend(index_names(indexes))
        parts = [
            self._build_entry(position, alias, index)
            for position, (alias, index) in enumerate(entries)
        ]
        return f"FROM {', '.join(parts)}"

    def _build_entry(self, position: int, alias: str | None, index: Any) -> str:
        quote = self._ctx.compiler.quote_index_name
        kind = classify_value(index)
        if kind is ValueKind.SUBQUERY:
            sub_sql = self._build_fn(index)
            return f"({sub_sql}) {quote(alias or f'_sub{position}')}"
        if kind is ValueKind.RAW:
            self._runtime.merge(index.params)
            return f"{index.expression} {quote(alias)}" if alias else index.expression
        index = str(index)
        if alias is not None:
            return f"{quote(index)} {quote(alias)}"
        if "(" in index:
            return index
        match = _FROM_ALIAS_RE.match(index)
        if match:
            return f"{quote(match.group(1))} {quote(match.group(2))}"
        return quote(index)


class ConditionClauseBuilder:
    """Builds a ``<KEYWORD> <condition>`` clause such as ``HAVING``."""

    def __init__(self, keyword: str, conditions: ConditionBuilder) -> None:
        self._keyword = keyword
        self._conditions = conditions

    def build(self, schemas: Sequence[IndexSchema], condition: Any) -> str:
        if _is_blank(condition):
            return ""
        sql = self._conditions.build(schemas, condition)
        return f"{self._keyword} {sql}" if sql else ""


class WhereClauseBuilder(ConditionClauseBuilder):
    """Builds the ``WHERE`` clause, fusing the full-text ``MATCH`` in front.

    Plain-string MATCH values are escaped with
    :func:`~sphinxql.schema.expressions.escape_match_value` and bound;
    raw expressions are inlined untouched.
    """

    def __init__(self, runtime: RuntimeContext, conditions: ConditionBuilder) -> None:
        super().__init__("WHERE", conditions)
        self._runtime = runtime

    def build(
        self,
        schemas: Sequence[IndexSchema],
        condition: Any,
        match: Any = None,
    ) -> str:
        if match is not None:
            match_sql = self._build_match(match)
            if _is_blank(condition):
                condition = match_sql
            else:
                condition = [ConditionOperator.AND.value, match_sql, condition]
        return super().build(schemas, condition)

    def _build_match(self, match: Any) -> str:
        if classify_value(match) is ValueKind.RAW:
            self._runtime.merge(match.params)
            return f"MATCH({match.expression})"
        placeholder = self._runtime.add_value(escape_match_value(str(match)))
        return f"MATCH({placeholder})"


class ColumnListBuilder:
    """Renders a list of columns, quoting plain names.

    A string is split on commas unless it contains ``(``, in which case it
    is used verbatim.
    """

    def __init__(self, ctx: CompilationContext, runtime: RuntimeContext) -> None:
        self._ctx = ctx
        self._runtime = runtime

    def build(self, columns: Any) -> str:
        if isinstance(columns, str):
            if "(" in columns:
                return columns
            columns = [c for c in _COLUMN_SPLIT_RE.split(columns.strip()) if c]
        parts: list[str] = []
        for column in columns:
            if classify_value(column) is ValueKind.RAW:
                self._runtime.merge(column.params)
                parts.append(column.expression)
            else:
                parts.append(self._ctx.compiler.quote_column_name(str(column)))
        return ", ".join(parts)


class OrderByBuilder:
    """Builds ``ORDER BY`` and ``WITHIN GROUP ORDER BY`` clauses.

    Args:
        ctx: Static compilation context.
        runtime: Parameter accumulator for raw-expression params.
        keyword: Clause keyword.
        explicit_asc: Whether ascending order is spelled out.  WITHIN GROUP
            ORDER BY only writes ``DESC``.
    """

    def __init__(
        self,
        ctx: CompilationContext,
        runtime: RuntimeContext,
        keyword: str = "ORDER BY",
        explicit_asc: bool = True,
    ) -> None:
        self._ctx = ctx
        self._runtime = runtime
        self._keyword = keyword
        self._explicit_asc = explicit_asc

    def build(self, columns: dict[str, Any]) -> str:
        if not columns:
            return ""
        orders: list[str] = []
        for name, direction in columns.items():
            if classify_value(direction) is ValueKind.RAW:
                self._runtime.merge(direction.params)
                orders.append(direction.expression)
                continue
            column = self._ctx.compiler.quote_column_name(str(name))
            if parse_direction(direction) is SortDirection.DESC:
                orders.append(f"{column} DESC")
            elif self._explicit_asc:
                orders.append(f"{column} ASC")
            else:
                orders.append(column)
        return f"{self._keyword} {', '.join(orders)}"


class LimitBuilder:
    """Builds the ``LIMIT [offset,]count`` clause.

    Limit and offset may be integers or digit strings.  An offset without a
    limit is completed with the daemon's default row cap.
    """

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def build(self, limit: Any, offset: Any) -> str:
        sql = ""
        offset_value = _as_count(offset)
        if offset_value is not None and offset_value > 0:
            sql = f"LIMIT {offset_value}"
        limit_value = _as_count(limit)
        if limit_value is not None:
            sql = f"LIMIT {limit_value}" if sql == "" else f"{sql},{limit_value}"
        elif sql != "":
            sql = f"{sql},{self._ctx.settings.default_limit}"
        return sql


class OptionBuilder:
    """Builds the ``OPTION name = value, …`` clause.

    Mapping or list values render as a parenthesised list, e.g.
    ``field_weights = (title = :qp0, content = :qp1)``.
    """

    def __init__(self, runtime: RuntimeContext) -> None:
        self._runtime = runtime

    def build(self, options: dict[str, Any]) -> str:
        if not options:
            return ""
        lines = [f"{name} = {self._build_value(value)}" for name, value in options.items()]
        return f"OPTION {', '.join(lines)}"

    def _build_value(self, value: Any) -> str:
        if classify_value(value) is ValueKind.RAW:
            self._runtime.merge(value.params)
            return value.expression
        if isinstance(value, (dict, list, tuple)):
            parts: list[str] = []
            for key, part in iter_entries(value):
                part_sql = self._build_value(part)
                parts.append(part_sql if key is None else f"{key} = {part_sql}")
            return f"({', '.join(parts)})"
        return self._runtime.add_value(value)


class FacetBuilder:
    """Builds one ``FACET …`` clause per facet specification.

    A positional facet is a bare select expression; a keyed facet is a
    mapping with optional ``select``, ``order``, ``limit`` and ``offset``
    keys, where ``select`` defaults to the facet key.
    """

    def __init__(
        self,
        ctx: CompilationContext,
        select: SelectClauseBuilder,
        order_by: OrderByBuilder,
        limit: LimitBuilder,
    ) -> None:
        self._ctx = ctx
        self._select = select
        self._order_by = order_by
        self._limit = limit

    def build(self, facets: Any) -> str:
        parts = [self._build_facet(key, value) for key, value in iter_entries(facets)]
        return self._ctx.settings.separator.join(parts)

    def _build_facet(self, key: str | None, value: Any) -> str:
        if key is None:
            facet: dict[str, Any] = {"select": value}
        elif isinstance(value, dict):
            facet = {"select": key, **value}
        else:
            raise InvalidFacetSpecError(key, value)

        fields = facet["select"]
        if not isinstance(fields, (list, tuple, dict)):
            fields = [fields]
        sql = f"FACET {self._select.build_fields(fields)}"
        if facet.get("order"):
            sql += f" {self._order_by.build(facet['order'])}"
        limit_sql = self._limit.build(facet.get("limit"), facet.get("offset"))
        if limit_sql:
            sql += f" {limit_sql}"
        return sql


class ShowMetaBuilder:
    """Builds the auxiliary ``SHOW META [LIKE pattern]`` statement."""

    def __init__(self, ctx: CompilationContext, runtime: RuntimeContext) -> None:
        self._ctx = ctx
        self._runtime = runtime

    def build(self, show_meta: Any) -> str:
        if not show_meta:
            return ""
        if show_meta is True:
            return "SHOW META"
        if classify_value(show_meta) is ValueKind.RAW:
            self._runtime.merge(show_meta.params)
            return f"SHOW META LIKE {show_meta.expression}"
        pattern = like_pattern(str(show_meta), self._ctx.settings.like_escape)
        return f"SHOW META LIKE {self._runtime.add_value(pattern)}"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _is_blank(condition: Any) -> bool:
    if condition is None or condition == "":
        return True
    return isinstance(condition, (dict, list, tuple)) and not condition


def _as_count(value: Any) -> int | None:
    """Return ``value`` as a non-negative int, or ``None`` if it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, str) and _DIGITS_RE.fullmatch(value):
        return int(value)
    return None
