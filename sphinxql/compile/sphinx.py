"""Sphinx dialect compiler."""
from __future__ import annotations

from sphinxql.compile.base import SQLCompiler


class SphinxCompiler(SQLCompiler):
    """Compiles queries to plain SphinxQL.

    Identifiers are emitted verbatim: Sphinx index and attribute names are
    restricted to ``[a-z0-9_]`` and never need quoting unless they collide
    with a reserved word, in which case use :class:`ManticoreCompiler` or
    pass a pre-quoted name.
    """

    @property
    def dialect_name(self) -> str:
        return "sphinx"

    def quote_simple_name(self, name: str) -> str:
        return name
