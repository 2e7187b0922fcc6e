"""Connection facade.

``Connection`` bundles what the query builder needs from a search daemon
connection: the index schemas, the dialect's identifier quoting and the
MATCH escaper.  It opens no sockets; executing the compiled
``(sql, params)`` pair is left to whatever MySQL-protocol client the caller
uses.

Example::

    conn = Connection(schema=snapshot, dialect="sphinx")
    compiled = conn.get_query_builder().build(
        Query(FROM=["idx_article"], MATCH="hello world", LIMIT=10)
    )
"""
from __future__ import annotations

from sphinxql.compile.base import SQLCompiler
from sphinxql.compile.builder import QueryBuilder
from sphinxql.compile.registry import CompilerFactory
from sphinxql.errors import UnknownMethodError
from sphinxql.schema.expressions import escape_match_value
from sphinxql.schema.index import IndexSchema, SchemaProvider
from sphinxql.settings import BuilderSettings


class Connection:
    """Schema, dialect and settings shared by the builders of one daemon.

    Args:
        schema: Optional schema provider for value coercion.
        dialect: Registered dialect target name or a compiler instance.
        settings: Grammar settings; defaults to ``BuilderSettings()``.
    """

    def __init__(
        self,
        schema: SchemaProvider | None = None,
        dialect: str | SQLCompiler = "sphinx",
        settings: BuilderSettings | None = None,
    ) -> None:
        self.schema = schema
        self.compiler = (
            CompilerFactory.create(dialect) if isinstance(dialect, str) else dialect
        )
        self.settings = settings or BuilderSettings()
        self._query_builder: QueryBuilder | None = None

    def get_index_schema(self, name: str) -> IndexSchema | None:
        """Return the schema of index ``name``, or ``None`` if unknown."""
        if self.schema is None:
            return None
        return self.schema.get_index_schema(name)

    def quote_index_name(self, name: str) -> str:
        return self.compiler.quote_index_name(name)

    def quote_table_name(self, name: str) -> str:
        """Alias of :meth:`quote_index_name`."""
        return self.quote_index_name(name)

    def quote_column_name(self, name: str) -> str:
        return self.compiler.quote_column_name(name)

    def escape_match_value(self, text: str) -> str:
        """Escape a full-text query; bind the result as a parameter."""
        return escape_match_value(text)

    def get_query_builder(self) -> QueryBuilder:
        """Return the (lazily created) query builder for this connection."""
        if self._query_builder is None:
            self._query_builder = QueryBuilder(self.compiler, self.schema, self.settings)
        return self._query_builder

    def get_last_insert_id(self, sequence_name: str = "") -> int:
        """Not supported by the search daemon.

        Raises:
            UnknownMethodError: Always.
        """
        raise UnknownMethodError(f"{type(self).__name__}.get_last_insert_id")
