"""Core Query → SphinxQL compilation logic.

``QueryBuilder`` is the top-level orchestrator.  It wires together focused
clause-level and condition-level sub-builders, then drives the compilation
algorithm.  Identifier quoting is delegated to the injected ``SQLCompiler``;
clause rendering is delegated to the sub-builder hierarchy.

Sub-builder hierarchy
---------------------
QueryBuilder
  ├── ValueComposer        (value_builder.py)
  ├── ConditionBuilder     (expression_builder.py)
  ├── SelectClauseBuilder  (clause_builders.py)
  ├── FromClauseBuilder    (clause_builders.py)
  ├── WhereClauseBuilder   (clause_builders.py)
  ├── ColumnListBuilder    (clause_builders.py)
  ├── OrderByBuilder       (clause_builders.py, ORDER BY and WITHIN GROUP)
  ├── LimitBuilder         (clause_builders.py)
  ├── OptionBuilder        (clause_builders.py)
  ├── FacetBuilder         (clause_builders.py)
  ├── ShowMetaBuilder      (clause_builders.py)
  └── DMLBuilder           (dml.py)

Clause order
------------
``SELECT → FROM → WHERE → GROUP BY → WITHIN GROUP ORDER BY → HAVING →
ORDER BY → LIMIT → OPTION → FACET``, joined by ``settings.separator``, with
``SHOW META`` appended as a second statement after
``settings.query_separator``.

Runtime context sharing
-----------------------
A single :class:`~sphinxql.compile.context.RuntimeContext` is created per
public call and threaded through every sub-builder and every nested
sub-query (FROM sub-selects, ``IN (SELECT …)``).  This ensures placeholder
names are unique across the whole statement.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from sphinxql.compile.base import CompiledSQL, SQLCompiler
from sphinxql.compile.clause_builders import (
    ColumnListBuilder,
    ConditionClauseBuilder,
    FacetBuilder,
    FromClauseBuilder,
    LimitBuilder,
    OptionBuilder,
    OrderByBuilder,
    SelectClauseBuilder,
    ShowMetaBuilder,
    WhereClauseBuilder,
    index_names,
)
from sphinxql.compile.context import CompilationContext, RuntimeContext
from sphinxql.compile.dml import DMLBuilder
from sphinxql.compile.expression_builder import ConditionBuilder
from sphinxql.compile.value_builder import ValueComposer
from sphinxql.errors import UnsupportedConstructError
from sphinxql.schema.index import SchemaProvider
from sphinxql.schema.query import Query
from sphinxql.settings import BuilderSettings

logger = logging.getLogger(__name__)


class QueryBuilder:
    """Compiles :class:`Query` objects and DML requests to SphinxQL.

    Every public method returns a :class:`CompiledSQL` holding the SQL and
    its own parameter map.  ``entities`` is the only state kept between
    calls; it is rebuilt by every ``build()`` and is not synchronised, so
    read it from the thread that made the call.

    Args:
        compiler: Dialect-specific compiler instance.
        schema: Optional schema provider used to coerce bound values.
        settings: Grammar settings; defaults to ``BuilderSettings()``.
    """

    def __init__(
        self,
        compiler: SQLCompiler,
        schema: SchemaProvider | None = None,
        settings: BuilderSettings | None = None,
    ) -> None:
        self._ctx = CompilationContext(
            compiler=compiler,
            schema=schema,
            settings=settings or BuilderSettings(),
        )
        #: Index names touched by the FROM clauses (sub-queries included) of
        #: the last ``build()``.  Informational only.
        self.entities: list[str] = []

    # ------------------------------------------------------------------
    # SELECT
    # ------------------------------------------------------------------

    def build(self, query: Query, params: dict[str, Any] | None = None) -> CompiledSQL:
        """Compile ``query`` to SQL.

        Args:
            query: The query specification.  It is not modified.
            params: Parameters already bound by the caller; they are merged
                with ``query.PARAMS`` and returned with the generated ones.

        Returns:
            :class:`~sphinxql.compile.base.CompiledSQL` with ``sql`` string
            and ``params``.

        Raises:
            UnsupportedConstructError: If the query (or a sub-query) has a JOIN.
            ArityError: If a condition operator has the wrong operand count.
            InvalidFacetSpecError: If a keyed facet is not a mapping.
        """
        self.entities = []
        runtime = self._new_runtime(params, query.PARAMS)
        sub_builders = self._make_sub_builders(runtime, self.entities)
        sql = self._build_core_query(query, sub_builders)

        show_meta_sql = sub_builders["show_meta"].build(query.SHOW_META)
        if show_meta_sql:
            sql = f"{sql}{self._ctx.settings.query_separator}{show_meta_sql}"

        return self._result(sql, runtime)

    def _build_core_query(self, query: Query, sub_builders: dict) -> str:
        if query.JOIN:
            raise UnsupportedConstructError("JOIN")

        schemas = self._ctx.get_index_schemas(index_names(query.FROM))
        clauses = [
            sub_builders["select"].build(query.SELECT, query.DISTINCT, query.SELECT_OPTION),
            sub_builders["from"].build(query.FROM),
            sub_builders["where"].build(schemas, query.WHERE, query.MATCH),
            self._group_by(sub_builders["columns"], query.GROUP_BY),
            sub_builders["within"].build(query.WITHIN),
            sub_builders["having"].build(schemas, query.HAVING),
            sub_builders["order_by"].build(query.ORDER_BY),
            sub_builders["limit"].build(query.LIMIT, query.OFFSET),
            sub_builders["option"].build(query.OPTION),
            sub_builders["facet"].build(query.FACET),
        ]
        return self._ctx.settings.separator.join(c for c in clauses if c)

    @staticmethod
    def _group_by(columns: ColumnListBuilder, group_by: Any) -> str:
        if not group_by:
            return ""
        return f"GROUP BY {columns.build(group_by)}"

    # ------------------------------------------------------------------
    # Stand-alone clause helpers
    # ------------------------------------------------------------------

    def build_columns(self, columns: Any) -> str:
        """Quote and join a column list (or comma separated string)."""
        return ColumnListBuilder(self._ctx, RuntimeContext()).build(columns)

    def build_order_by(self, columns: dict[str, Any]) -> str:
        """Render an ``ORDER BY`` clause, or ``""`` for no columns."""
        return OrderByBuilder(self._ctx, RuntimeContext()).build(columns)

    def build_limit(self, limit: Any, offset: Any) -> str:
        """Render a ``LIMIT`` clause, or ``""`` when neither is set."""
        return LimitBuilder(self._ctx).build(limit, offset)

    def build_order_by_and_limit(
        self,
        sql: str,
        order_by: dict[str, Any],
        limit: Any,
        offset: Any,
    ) -> str:
        """Append ORDER BY and LIMIT clauses (if any) to ``sql``."""
        separator = self._ctx.settings.separator
        for clause in (self.build_order_by(order_by), self.build_limit(limit, offset)):
            if clause:
                sql = f"{sql}{separator}{clause}"
        return sql

    def build_condition(
        self,
        condition: Any,
        indexes: Sequence[str] = (),
        params: dict[str, Any] | None = None,
    ) -> CompiledSQL:
        """Compile a bare condition tree (no ``WHERE`` keyword).

        Args:
            condition: Hash condition, operator condition or SQL string.
            indexes: Index names whose schemas coerce bound values.
            params: Parameters already bound by the caller.
        """
        runtime = self._new_runtime(params)
        sub_builders = self._make_sub_builders(runtime)
        schemas = self._ctx.get_index_schemas(list(indexes))
        sql = sub_builders["condition"].build(schemas, condition)
        return self._result(sql, runtime)

    # ------------------------------------------------------------------
    # DML
    # ------------------------------------------------------------------

    def insert(
        self, index: str, columns: dict[str, Any], params: dict[str, Any] | None = None
    ) -> CompiledSQL:
        """Build ``INSERT INTO index (…) VALUES (…)`` from ``column -> value``."""
        return self._dml(params, lambda dml: dml.insert_replace("INSERT", index, columns))

    def replace(
        self, index: str, columns: dict[str, Any], params: dict[str, Any] | None = None
    ) -> CompiledSQL:
        """Build ``REPLACE INTO index (…) VALUES (…)`` from ``column -> value``."""
        return self._dml(params, lambda dml: dml.insert_replace("REPLACE", index, columns))

    def batch_insert(
        self,
        index: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        params: dict[str, Any] | None = None,
    ) -> CompiledSQL:
        """Build a multi-row INSERT; each row is aligned with ``columns``."""
        return self._dml(
            params,
            lambda dml: dml.batch_insert_replace("INSERT", index, columns, rows),
        )

    def batch_replace(
        self,
        index: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        params: dict[str, Any] | None = None,
    ) -> CompiledSQL:
        """Build a multi-row REPLACE; each row is aligned with ``columns``."""
        return self._dml(
            params,
            lambda dml: dml.batch_insert_replace("REPLACE", index, columns, rows),
        )

    def update(
        self,
        index: str,
        columns: dict[str, Any],
        condition: Any = None,
        params: dict[str, Any] | None = None,
        options: dict[str, Any] | None = None,
    ) -> CompiledSQL:
        """Build ``UPDATE index SET … [WHERE …] [OPTION …]``."""
        return self._dml(params, lambda dml: dml.update(index, columns, condition, options))

    def delete(
        self, index: str, condition: Any = None, params: dict[str, Any] | None = None
    ) -> CompiledSQL:
        """Build ``DELETE FROM index [WHERE …]``."""
        return self._dml(params, lambda dml: dml.delete(index, condition))

    def truncate_index(self, index: str) -> CompiledSQL:
        """Build ``TRUNCATE RTINDEX index``."""
        return self._dml(None, lambda dml: dml.truncate_index(index))

    def call_snippets(
        self,
        index: str,
        source: str | Sequence[str],
        match: str,
        options: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> CompiledSQL:
        """Build ``CALL SNIPPETS(…)`` for one document or a list of documents."""
        return self._dml(
            params, lambda dml: dml.call_snippets(index, source, match, options)
        )

    def call_keywords(
        self,
        index: str,
        text: str,
        fetch_statistic: bool = False,
        params: dict[str, Any] | None = None,
    ) -> CompiledSQL:
        """Build ``CALL KEYWORDS(…)``."""
        return self._dml(
            params, lambda dml: dml.call_keywords(index, text, fetch_statistic)
        )

    def _dml(self, params: dict[str, Any] | None, render) -> CompiledSQL:
        runtime = self._new_runtime(params)
        sub_builders = self._make_sub_builders(runtime)
        return self._result(render(sub_builders["dml"]), runtime)

    # ------------------------------------------------------------------
    # Sub-builder wiring
    # ------------------------------------------------------------------

    def _new_runtime(self, *param_sets: dict[str, Any] | None) -> RuntimeContext:
        runtime = RuntimeContext(prefix=self._ctx.settings.param_prefix)
        for params in param_sets:
            if params:
                runtime.merge(params)
        return runtime

    def _result(self, sql: str, runtime: RuntimeContext) -> CompiledSQL:
        logger.debug("Compiled SphinxQL (%d params): %s", len(runtime.params), sql)
        return CompiledSQL(
            sql=sql,
            params=runtime.params,
            dialect=self._ctx.compiler.dialect_name,
        )

    def _make_sub_builders(
        self, runtime: RuntimeContext, entities: list[str] | None = None
    ) -> dict:
        """Construct and wire the sub-builder graph for one compilation run.

        Nested sub-queries share ``runtime`` via the ``build_fn`` closure so
        that placeholder names are globally unique.  Index names rendered by
        FROM clauses are appended to ``entities``.
        """
        ctx = self._ctx
        values = ValueComposer(runtime)
        conditions = ConditionBuilder(ctx, runtime, values)
        select = SelectClauseBuilder(ctx, runtime)
        order_by = OrderByBuilder(ctx, runtime)
        limit = LimitBuilder(ctx)
        where = WhereClauseBuilder(runtime, conditions)
        option = OptionBuilder(runtime)

        sub_builders: dict = {
            "values": values,
            "condition": conditions,
            "select": select,
            "where": where,
            "having": ConditionClauseBuilder("HAVING", conditions),
            "columns": ColumnListBuilder(ctx, runtime),
            "within": OrderByBuilder(
                ctx, runtime, "WITHIN GROUP ORDER BY", explicit_asc=False
            ),
            "order_by": order_by,
            "limit": limit,
            "option": option,
            "facet": FacetBuilder(ctx, select, order_by, limit),
            "show_meta": ShowMetaBuilder(ctx, runtime),
            "dml": DMLBuilder(ctx, runtime, values, where, option),
        }

        # Shared-context build function: any nested Query compiled here uses
        # the same runtime context as the outer query.
        def build_fn(query: Query) -> str:
            runtime.merge(query.PARAMS)
            return self._build_core_query(query, sub_builders)

        conditions._build_subquery_fn = build_fn
        sub_builders["from"] = FromClauseBuilder(
            ctx, runtime, build_fn, entities if entities is not None else []
        )

        return sub_builders
