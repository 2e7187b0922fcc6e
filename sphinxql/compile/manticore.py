"""Manticore Search dialect compiler."""

from __future__ import annotations

from sphinxql.compile.base import SQLCompiler


class ManticoreCompiler(SQLCompiler):
    """Compiles queries to Manticore-flavoured SphinxQL.

    Manticore reserves many more keywords than Sphinx 2.x, so identifiers
    are quoted with backticks (`` ` ``), the MySQL-compatible quoting the
    daemon accepts.
    """

    @property
    def dialect_name(self) -> str:
        return "manticore"

    def quote_simple_name(self, name: str) -> str:
        return f"`{name}`"
