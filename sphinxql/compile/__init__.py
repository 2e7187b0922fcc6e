"""sphinxql compilation layer: Query → parameterized SphinxQL."""
from sphinxql.compile.base import CompiledSQL, SQLCompiler
from sphinxql.compile.builder import QueryBuilder
from sphinxql.compile.manticore import ManticoreCompiler
from sphinxql.compile.registry import CompilerFactory
from sphinxql.compile.sphinx import SphinxCompiler

__all__ = [
    "CompiledSQL",
    "SQLCompiler",
    "QueryBuilder",
    "CompilerFactory",
    "ManticoreCompiler",
    "SphinxCompiler",
]
