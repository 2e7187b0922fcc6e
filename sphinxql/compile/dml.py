"""Data-modification and procedure-call statement builders.

``DMLBuilder`` renders INSERT / REPLACE (single and batch), UPDATE, DELETE,
TRUNCATE RTINDEX and the ``CALL SNIPPETS`` / ``CALL KEYWORDS`` procedures.
Values are bound through the shared :class:`ValueComposer`, coerced with the
target index schema when one is known.  Procedure arguments are always bound
as parameters, never inlined, except raw-expression option values.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sphinxql.compile.clause_builders import OptionBuilder, WhereClauseBuilder
from sphinxql.compile.context import CompilationContext, RuntimeContext
from sphinxql.compile.value_builder import ValueComposer
from sphinxql.errors import CompilationError
from sphinxql.schema.index import IndexSchema
from sphinxql.schema.values import ValueKind, classify_value


class DMLBuilder:
    """Builds DML statements for one compilation run.

    Args:
        ctx: Static compilation context.
        runtime: Parameter accumulator for the statement.
        values: Value composer bound to ``runtime``.
        where: WHERE clause builder bound to ``runtime``.
        option: OPTION clause builder bound to ``runtime``.
    """

    def __init__(
        self,
        ctx: CompilationContext,
        runtime: RuntimeContext,
        values: ValueComposer,
        where: WhereClauseBuilder,
        option: OptionBuilder,
    ) -> None:
        self._ctx = ctx
        self._runtime = runtime
        self._values = values
        self._where = where
        self._option = option

    # ------------------------------------------------------------------
    # INSERT / REPLACE
    # ------------------------------------------------------------------

    def insert_replace(self, statement: str, index: str, columns: dict[str, Any]) -> str:
        """``<statement> INTO index (col, …) VALUES (val, …)``."""
        schemas = self._schemas(index)
        quote = self._ctx.compiler.quote_column_name
        names: list[str] = []
        placeholders: list[str] = []
        for name, value in columns.items():
            names.append(quote(name))
            placeholders.append(self._values.compose(schemas, name, value))
        return (
            f"{statement} INTO {self._ctx.compiler.quote_index_name(index)} "
            f"({', '.join(names)}) VALUES ({', '.join(placeholders)})"
        )

    def batch_insert_replace(
        self,
        statement: str,
        index: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
    ) -> str:
        """``<statement> INTO index (col, …) VALUES (…), (…)``.

        Raises:
            CompilationError: If a row and ``columns`` differ in length.
        """
        schemas = self._schemas(index)
        columns = list(columns)
        tuples: list[str] = []
        for row in rows:
            row = list(row)
            if len(row) != len(columns):
                raise CompilationError(
                    f"Row has {len(row)} values but {len(columns)} columns "
                    f"were given for index '{index}'.",
                    clause=statement,
                )
            parts = [
                self._values.compose(schemas, column, value)
                for column, value in zip(columns, row)
            ]
            tuples.append(f"({', '.join(parts)})")
        quote = self._ctx.compiler.quote_column_name
        names = ", ".join(quote(c) for c in columns)
        return (
            f"{statement} INTO {self._ctx.compiler.quote_index_name(index)} "
            f"({names}) VALUES {', '.join(tuples)}"
        )

    # ------------------------------------------------------------------
    # UPDATE / DELETE / TRUNCATE
    # ------------------------------------------------------------------

    def update(
        self,
        index: str,
        columns: dict[str, Any],
        condition: Any = None,
        options: dict[str, Any] | None = None,
    ) -> str:
        """``UPDATE index SET col=val, … [WHERE …] [OPTION …]``."""
        schemas = self._schemas(index)
        quote = self._ctx.compiler.quote_column_name
        lines = [
            f"{quote(name)}={self._values.compose(schemas, name, value)}"
            for name, value in columns.items()
        ]
        parts = [
            f"UPDATE {self._ctx.compiler.quote_index_name(index)} SET {', '.join(lines)}",
            self._where.build(schemas, condition),
            self._option.build(options or {}),
        ]
        return " ".join(p for p in parts if p)

    def delete(self, index: str, condition: Any = None) -> str:
        """``DELETE FROM index [WHERE …]``."""
        sql = f"DELETE FROM {self._ctx.compiler.quote_index_name(index)}"
        where = self._where.build(self._schemas(index), condition)
        return f"{sql} {where}" if where else sql

    def truncate_index(self, index: str) -> str:
        """``TRUNCATE RTINDEX index``."""
        return f"TRUNCATE RTINDEX {self._ctx.compiler.quote_index_name(index)}"

    # ------------------------------------------------------------------
    # Procedures
    # ------------------------------------------------------------------

    def call_snippets(
        self,
        index: str,
        source: str | Sequence[str],
        match: str,
        options: dict[str, Any] | None = None,
    ) -> str:
        """``CALL SNIPPETS(data, index, query[, value AS option, …])``.

        ``source`` may be one document or a list of documents.
        """
        if isinstance(source, (list, tuple)):
            data_sql = "(" + ",".join(self._runtime.add_value(s) for s in source) + ")"
        else:
            data_sql = self._runtime.add_value(source)
        index_sql = self._runtime.add_value(index)
        match_sql = self._runtime.add_value(match)
        option_sql = ""
        if options:
            option_parts: list[str] = []
            for name, value in options.items():
                if classify_value(value) is ValueKind.RAW:
                    self._runtime.merge(value.params)
                    actual = value.expression
                else:
                    actual = self._runtime.add_value(value)
                option_parts.append(f"{actual} AS {name}")
            option_sql = ", " + ", ".join(option_parts)
        return f"CALL SNIPPETS({data_sql}, {index_sql}, {match_sql}{option_sql})"

    def call_keywords(self, index: str, text: str, fetch_statistic: bool = False) -> str:
        """``CALL KEYWORDS(text, index[, 1])``."""
        index_sql = self._runtime.add_value(index)
        text_sql = self._runtime.add_value(text)
        stats_sql = ", 1" if fetch_statistic else ""
        return f"CALL KEYWORDS({text_sql}, {index_sql}{stats_sql})"

    def _schemas(self, index: str) -> list[IndexSchema]:
        return self._ctx.get_index_schemas([index])
