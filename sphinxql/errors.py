"""Custom exception hierarchy for sphinxql.

All public errors inherit from SphinxQLError so callers can catch the base
class for any sphinxql-specific failure.
"""
from __future__ import annotations

from typing import Any


class SphinxQLError(Exception):
    """Base exception for all sphinxql errors."""


class CompilationError(SphinxQLError):
    """Raised when a query cannot be compiled to SphinxQL.

    Args:
        message: Human-readable description.
        clause: The clause being compiled when the error occurred.
    """

    def __init__(self, message: str, clause: str | None = None) -> None:
        super().__init__(message)
        self.clause = clause


class UnsupportedConstructError(CompilationError):
    """Raised when a query uses a construct SphinxQL has no grammar for.

    Args:
        construct: Name of the offending query attribute (e.g. ``JOIN``).
    """

    def __init__(self, construct: str) -> None:
        super().__init__(
            f"Build of '{construct}' is not supported by SphinxQL.",
            clause=construct,
        )
        self.construct = construct


class ArityError(CompilationError):
    """Raised when a condition operator receives the wrong number of operands.

    Args:
        operator: The operator keyword (e.g. ``BETWEEN``).
        requirement: Description of the expected operands.
    """

    def __init__(self, operator: str, requirement: str) -> None:
        super().__init__(
            f"Operator '{operator}' requires {requirement}.",
            clause="condition",
        )
        self.operator = operator
        self.requirement = requirement


class InvalidFacetSpecError(CompilationError):
    """Raised when a keyed facet entry is not a mapping.

    Args:
        key: The facet key.
        value: The offending value.
    """

    def __init__(self, key: str, value: Any) -> None:
        super().__init__(
            f"Facet specification must be a mapping, "
            f"'{type(value).__name__}' given for facet '{key}'.",
            clause="FACET",
        )
        self.key = key
        self.value = value


class UnknownMethodError(SphinxQLError):
    """Raised when an operation the search daemon cannot support is requested.

    Args:
        method: Qualified name of the unsupported method.
    """

    def __init__(self, method: str) -> None:
        super().__init__(f"Method '{method}' is not supported by Sphinx.")
        self.method = method
