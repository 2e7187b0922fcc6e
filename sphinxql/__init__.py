"""sphinxql – SphinxQL query compiler for Sphinx / Manticore full-text search.

Describe a query, get SQL and bound parameters back.

Public API
----------
``compile_query``
    Compile a :class:`Query` (or a dict with the same keys) to
    parameterized SphinxQL.

``QueryBuilder``
    The compiler itself: SELECT statements plus INSERT / REPLACE / UPDATE /
    DELETE / TRUNCATE RTINDEX and ``CALL SNIPPETS`` / ``CALL KEYWORDS``.

``Connection``
    Bundles schema, dialect and settings and hands out a ``QueryBuilder``.

Re-exported types
-----------------
``Query``, ``Expression``, ``SchemaSnapshot``, ``IndexSchema``,
``ColumnSchema``, ``BuilderSettings``, ``CompiledSQL`` and all error classes.

Extensibility
-------------
New dialect compilers can be registered via::

    from sphinxql.compile.registry import CompilerFactory

    @CompilerFactory.register("sphinx3")
    class Sphinx3Compiler(SQLCompiler):
        ...
"""

from __future__ import annotations

from typing import Any

from sphinxql.compile.base import CompiledSQL, SQLCompiler
from sphinxql.compile.builder import QueryBuilder
from sphinxql.compile.manticore import ManticoreCompiler
from sphinxql.compile.registry import CompilerFactory
from sphinxql.compile.sphinx import SphinxCompiler
from sphinxql.connection import Connection
from sphinxql.errors import (
    ArityError,
    CompilationError,
    InvalidFacetSpecError,
    SphinxQLError,
    UnknownMethodError,
    UnsupportedConstructError,
)
from sphinxql.schema.converters import index_schema_from_describe
from sphinxql.schema.expressions import escape_match_value
from sphinxql.schema.index import (
    ColumnSchema,
    IndexSchema,
    SchemaProvider,
    SchemaSnapshot,
)
from sphinxql.schema.query import Query
from sphinxql.schema.values import Expression
from sphinxql.settings import BuilderSettings

# ---------------------------------------------------------------------------
# Register built-in compilers with CompilerFactory
# ---------------------------------------------------------------------------

CompilerFactory.register_class("sphinx", SphinxCompiler)
CompilerFactory.register_class("manticore", ManticoreCompiler)

__all__ = [
    # Core pipeline
    "compile_query",
    "Connection",
    # Query model
    "Query",
    "Expression",
    # Schema
    "SchemaProvider",
    "SchemaSnapshot",
    "IndexSchema",
    "ColumnSchema",
    "index_schema_from_describe",
    "escape_match_value",
    # Compilation
    "BuilderSettings",
    "CompiledSQL",
    "CompilerFactory",
    "SQLCompiler",
    "SphinxCompiler",
    "ManticoreCompiler",
    "QueryBuilder",
    # Errors
    "SphinxQLError",
    "CompilationError",
    "UnsupportedConstructError",
    "ArityError",
    "InvalidFacetSpecError",
    "UnknownMethodError",
]


def compile_query(
    query: Query | dict[str, Any],
    schema: SchemaProvider | None = None,
    dialect: str = "sphinx",
    settings: BuilderSettings | None = None,
    params: dict[str, Any] | None = None,
) -> CompiledSQL:
    """Compile a query specification to parameterized SphinxQL::

        compiled = sphinxql.compile_query(
            {"FROM": ["idx_article"], "MATCH": "hello world", "LIMIT": 10},
            schema=snapshot,
        )
        cursor.execute(compiled.sql, compiled.params)

    Args:
        query: A :class:`Query` or a dict accepted by ``Query.model_validate``.
        schema: Optional schema provider used to coerce bound values.
        dialect: Registered dialect target name.
        settings: Optional grammar settings.
        params: Parameters already bound by the caller.

    Returns:
        ``CompiledSQL`` with ``sql`` string, ``params`` and ``dialect``.

    Raises:
        pydantic.ValidationError: If ``query`` is a dict with unknown keys
            or badly typed clauses.
        CompilationError: (or subclass) if the query cannot be compiled.
    """
    if not isinstance(query, Query):
        query = Query.model_validate(query)
    compiler = CompilerFactory.create(dialect)
    return QueryBuilder(compiler, schema, settings).build(query, params)
