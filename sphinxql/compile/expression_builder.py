"""Condition compiler.

``ConditionBuilder`` compiles ``WHERE`` / ``HAVING`` condition trees to SQL.
Two shapes are accepted:

* **hash form** – a dict of ``column -> value``; pairs are ANDed, list and
  sub-query values become ``IN`` and ``None`` becomes ``IS NULL``;
* **operator form** – a list whose first element is an operator keyword,
  followed by its operands, which may themselves be condition trees.

Anything else (typically a pre-built string) is used verbatim.

An empty result means "no condition": callers omit the clause rather than
emitting an empty predicate.
"""
from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from sphinxql.compile.context import CompilationContext, RuntimeContext
from sphinxql.compile.value_builder import ValueComposer
from sphinxql.errors import ArityError, CompilationError
from sphinxql.schema.expressions import (
    FALSE_CONDITION,
    LOGICAL_AND_OR,
    MEMBERSHIP_OPS,
    PATTERN_OPS,
    POSITIVE_PATTERN_OPS,
    RANGE_OPS,
    ConditionOperator,
    like_pattern,
    parse_operator,
)
from sphinxql.schema.index import IndexSchema
from sphinxql.schema.query import Query
from sphinxql.schema.values import ValueKind, classify_value


class ConditionBuilder:
    """Compiles condition trees to SQL fragments.

    The ``_build_subquery_fn`` is injected by
    :class:`~sphinxql.compile.builder.QueryBuilder` after construction.  It
    compiles a nested :class:`Query` using the **shared** ``RuntimeContext``
    so placeholder names stay unique across the whole statement.

    Args:
        ctx: Static compilation context.
        runtime: Shared parameter accumulator.
        values: Value composer bound to the same ``runtime``.
    """

    def __init__(
        self,
        ctx: CompilationContext,
        runtime: RuntimeContext,
        values: ValueComposer,
    ) -> None:
        self._ctx = ctx
        self._runtime = runtime
        self._values = values
        # Injected by QueryBuilder after construction.
        self._build_subquery_fn: Callable[[Query], str] | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self, schemas: Sequence[IndexSchema], condition: Any) -> str:
        """Compile ``condition`` to SQL; returns ``""`` for an empty condition.

        Args:
            schemas: Index schemas used to coerce bound values.
            condition: Hash condition, operator condition or SQL string.

        Raises:
            ArityError: If an operator receives the wrong number of operands.
            CompilationError: If the operator token is not a string.
        """
        if condition is None:
            return ""
        if not isinstance(condition, (dict, list, tuple)):
            return str(condition)
        if not condition:
            return ""
        if isinstance(condition, dict):
            return self._build_hash(schemas, condition)

        token = condition[0]
        if not isinstance(token, str):
            raise CompilationError(
                f"Condition operator must be a string, got {token!r}.",
                clause="condition",
            )
        keyword = token.strip().upper()
        return self._dispatch(schemas, keyword, list(condition[1:]))

    # ------------------------------------------------------------------
    # Operator dispatch
    # ------------------------------------------------------------------

    def _dispatch(
        self, schemas: Sequence[IndexSchema], keyword: str, operands: list[Any]
    ) -> str:
        op = parse_operator(keyword)
        if op is None:
            return self._build_simple(keyword, operands)
        if op in LOGICAL_AND_OR:
            return self._build_and_or(schemas, op, operands)
        if op is ConditionOperator.NOT:
            return self._build_not(schemas, op, operands)
        if op in RANGE_OPS:
            return self._build_between(schemas, op, operands)
        if op in MEMBERSHIP_OPS:
            return self._build_in(schemas, op, operands)
        if op in PATTERN_OPS:
            return self._build_like(op, operands)
        raise CompilationError(f"Unhandled operator '{op.value}'.", clause="condition")

    def _build_hash(self, schemas: Sequence[IndexSchema], condition: dict) -> str:
        parts: list[str] = []
        for column, value in condition.items():
            column = str(column)
            kind = classify_value(value)
            if kind in (ValueKind.LIST, ValueKind.SUBQUERY):
                parts.append(
                    self._build_in(schemas, ConditionOperator.IN, [column, value])
                )
            elif kind is ValueKind.NULL:
                parts.append(f"{self._quote(column)} IS NULL")
            else:
                value_sql = self._values.compose(schemas, column, value)
                parts.append(f"{self._quote(column)}={value_sql}")
        if len(parts) == 1:
            return parts[0]
        return "(" + ") AND (".join(parts) + ")"

    def _build_and_or(
        self,
        schemas: Sequence[IndexSchema],
        op: ConditionOperator,
        operands: list[Any],
    ) -> str:
        parts = [self.build(schemas, operand) for operand in operands]
        parts = [part for part in parts if part != ""]
        if not parts:
            return ""
        return "(" + f") {op.value} (".join(parts) + ")"

    def _build_not(
        self,
        schemas: Sequence[IndexSchema],
        op: ConditionOperator,
        operands: list[Any],
    ) -> str:
        if len(operands) != 1:
            raise ArityError(op.value, "exactly one operand")
        operand = self.build(schemas, operands[0])
        if operand == "":
            return ""
        return f"{op.value} ({operand})"

    def _build_between(
        self,
        schemas: Sequence[IndexSchema],
        op: ConditionOperator,
        operands: list[Any],
    ) -> str:
        if len(operands) != 3 or any(o is None for o in operands):
            raise ArityError(op.value, "three operands")
        column, low, high = operands
        low_sql = self._values.compose(schemas, column, low)
        high_sql = self._values.compose(schemas, column, high)
        return f"{self._quote(column)} {op.value} {low_sql} AND {high_sql}"

    def _build_in(
        self,
        schemas: Sequence[IndexSchema],
        op: ConditionOperator,
        operands: list[Any],
    ) -> str:
        if len(operands) < 2 or operands[0] is None or operands[1] is None:
            raise ArityError(op.value, "two operands")
        column, values = operands[0], operands[1]

        if _is_empty_list(values) or _is_empty_list(column):
            return FALSE_CONDITION if op is ConditionOperator.IN else ""

        if classify_value(values) is ValueKind.SUBQUERY:
            sub_sql = self._build_subquery(values)
            columns = list(column) if isinstance(column, (list, tuple)) else [column]
            quoted = ", ".join(self._quote(c) for c in columns)
            return f"({quoted}) {op.value} ({sub_sql})"

        rows = list(values) if classify_value(values) is ValueKind.LIST else [values]

        if isinstance(column, (list, tuple)):
            if len(column) > 1:
                return self._build_composite_in(schemas, op, list(column), rows)
            column = column[0]

        parts: list[str] = []
        for value in rows:
            if isinstance(value, dict):
                value = value.get(column)
            parts.append(self._values.compose(schemas, column, value))

        quoted = self._quote(column)
        if len(parts) > 1:
            return f"{quoted} {op.value} ({', '.join(parts)})"
        equality = "=" if op is ConditionOperator.IN else "<>"
        return f"{quoted}{equality}{parts[0]}"

    def _build_composite_in(
        self,
        schemas: Sequence[IndexSchema],
        op: ConditionOperator,
        columns: list[str],
        rows: list[Any],
    ) -> str:
        tuples: list[str] = []
        for row in rows:
            if not isinstance(row, dict):
                raise CompilationError(
                    f"Composite '{op.value}' values must be mappings of column to "
                    f"value, got {type(row).__name__}.",
                    clause="condition",
                )
            parts = [
                "NULL"
                if row.get(column) is None
                else self._values.compose(schemas, column, row[column])
                for column in columns
            ]
            tuples.append(f"({', '.join(parts)})")
        quoted = ", ".join(self._quote(c) for c in columns)
        return f"({quoted}) {op.value} ({', '.join(tuples)})"

    def _build_like(self, op: ConditionOperator, operands: list[Any]) -> str:
        if len(operands) < 2 or operands[0] is None or operands[1] is None:
            raise ArityError(op.value, "two operands")
        column, values = operands[0], operands[1]
        if len(operands) > 2 and operands[2] is not None:
            escape = operands[2]
        else:
            escape = self._ctx.settings.like_escape

        items = list(values) if classify_value(values) is ValueKind.LIST else [values]
        if not items:
            return FALSE_CONDITION if op in POSITIVE_PATTERN_OPS else ""

        if op in (ConditionOperator.LIKE, ConditionOperator.NOT_LIKE):
            joiner = " AND "
            sql_op = op.value
        else:
            joiner = " OR "
            sql_op = "LIKE" if op is ConditionOperator.OR_LIKE else "NOT LIKE"

        quoted = self._quote(column)
        parts: list[str] = []
        for value in items:
            if classify_value(value) is ValueKind.RAW:
                self._runtime.merge(value.params)
                placeholder = value.expression
            else:
                placeholder = self._runtime.add_value(like_pattern(value, escape))
            parts.append(f"{quoted} {sql_op} {placeholder}")
        return joiner.join(parts)

    def _build_simple(self, keyword: str, operands: list[Any]) -> str:
        if len(operands) != 2:
            raise ArityError(keyword, "two operands")
        column, value = operands
        quoted = self._quote(column)
        if classify_value(value) is ValueKind.NULL:
            return f"{quoted} {keyword} NULL"
        return f"{quoted} {keyword} {self._values.bind(value)}"

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _quote(self, column: Any) -> str:
        return self._ctx.compiler.quote_column_name(str(column))

    def _build_subquery(self, query: Query) -> str:
        """Compile a nested Query using the shared runtime context."""
        if self._build_subquery_fn is None:
            raise CompilationError("No subquery build function configured.")
        return self._build_subquery_fn(query)


def _is_empty_list(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset)) and len(value) == 0
