"""Column value composer.

``ValueComposer`` turns a single value into the SQL fragment that stands for
it: ``NULL``, a raw expression, a placeholder, or a parenthesised list of
placeholders for multi-valued attributes (a list bound to a ``json`` column is
serialised whole instead).  Bound values are coerced with the
column type found in the supplied index schemas.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from sphinxql.compile.context import RuntimeContext
from sphinxql.errors import CompilationError
from sphinxql.schema.index import ColumnSchema, IndexSchema, coerce_value, find_column
from sphinxql.schema.values import ValueKind, classify_value

logger = logging.getLogger(__name__)


class ValueComposer:
    """Composes column values into SQL, binding them on ``runtime``.

    Args:
        runtime: Shared parameter accumulator for this statement.
    """

    def __init__(self, runtime: RuntimeContext) -> None:
        self._runtime = runtime

    def compose(self, schemas: Sequence[IndexSchema], column: str, value: Any) -> str:
        """Return the SQL fragment for ``value`` stored in ``column``.

        Args:
            schemas: Index schemas to search for ``column`` (first match wins).
            column: Unquoted column name.
            value: Raw value, list of values (MVA) or ``Expression``.

        Raises:
            CompilationError: If ``value`` is a sub-query.
        """
        kind = classify_value(value)
        if kind is ValueKind.NULL:
            return "NULL"
        if kind is ValueKind.RAW:
            self._runtime.merge(value.params)
            return value.expression
        if kind is ValueKind.SUBQUERY:
            raise CompilationError(
                f"A sub-query is not a valid value for column '{column}'.",
                clause="value",
            )

        column_schema = self._find_column(schemas, column)
        if kind is ValueKind.LIST and not _is_json(column_schema):
            parts = [self._bind(column_schema, item) for item in value]
            return f"({','.join(parts)})"
        return self._bind(column_schema, value)

    def bind(self, value: Any) -> str:
        """Bind ``value`` as-is (or inline it if raw) and return its SQL."""
        return self._bind(None, value)

    def _bind(self, column_schema: ColumnSchema | None, value: Any) -> str:
        if classify_value(value) is ValueKind.RAW:
            self._runtime.merge(value.params)
            return value.expression
        return self._runtime.add_value(coerce_value(column_schema, value))

    @staticmethod
    def _find_column(schemas: Sequence[IndexSchema], column: str) -> ColumnSchema | None:
        column_schema = find_column(schemas, column)
        if column_schema is None and schemas:
            logger.debug("Column %r not found in index schemas; value left uncoerced", column)
        return column_schema


def _is_json(column_schema: ColumnSchema | None) -> bool:
    return column_schema is not None and column_schema.type == "json"
