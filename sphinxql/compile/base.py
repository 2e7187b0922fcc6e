"""Compiler abstractions: CompiledSQL and the SQLCompiler ABC.

The Template Method pattern (GoF) is used:
- ``SQLCompiler`` owns the rules for which names are quoted at all
  (expressions, ``*`` and already-quoted names are left alone, dotted names
  are quoted per part).
- ``SphinxCompiler`` and ``ManticoreCompiler`` override the single
  dialect-specific step, quoting one simple name.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass
class CompiledSQL:
    """The output of a successful compilation.

    Attributes:
        sql: The compiled SQL string with ``:qpN`` style placeholders.
        params: Placeholder name -> bound value, including any parameters
            supplied by the caller and by raw expressions.
        dialect: The target dialect (``'sphinx'`` or ``'manticore'``).
    """

    sql: str
    params: dict[str, Any]
    dialect: str

    def merge_runtime_params(self, runtime: dict[str, Any]) -> dict[str, Any]:
        """Return a merged param dict ready for execution.

        Args:
            runtime: Extra parameter values supplied by the caller for
                placeholders written by hand into raw expressions.

        Returns:
            A single dict combining compiled params and runtime params.
        """
        return {**self.params, **runtime}


class SQLCompiler(ABC):
    """Abstract base for dialect-specific identifier handling."""

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the canonical dialect name."""

    @abstractmethod
    def quote_simple_name(self, name: str) -> str:
        """Return ``name`` (a single, undotted identifier) quoted.

        Args:
            name: Unquoted identifier.

        Returns:
            Quoted identifier.
        """

    def quote_index_name(self, name: str) -> str:
        """Quote an index name; expressions containing ``(`` pass through."""
        return self._quote(name)

    def quote_column_name(self, name: str) -> str:
        """Quote a column name; ``*`` and expressions pass through."""
        return self._quote(name)

    def _quote(self, name: str) -> str:
        name = str(name)
        if "(" in name or "{{" in name or "[[" in name:
            return name
        if "." in name:
            return ".".join(self._quote_part(part) for part in name.split("."))
        return self._quote_part(name)

    def _quote_part(self, part: str) -> str:
        if part == "*" or "`" in part:
            return part
        return self.quote_simple_name(part)
