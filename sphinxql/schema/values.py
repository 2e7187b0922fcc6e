"""Value kinds accepted by the compiler.

Every place that accepts a value (column values, IN / LIKE operands, OPTION
values, SELECT and FROM entries) classifies it with :func:`classify_value`
and branches on the resulting :class:`ValueKind`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sphinxql.schema.query import Query


@dataclass(frozen=True)
class Expression:
    """A raw SQL fragment that bypasses quoting and placeholder generation.

    Attributes:
        expression: SQL text inserted verbatim.
        params: Parameters referenced by ``expression``; merged into the
            statement parameters unchanged, so their names must already be
            unique.
    """

    expression: str
    params: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.expression


class ValueKind(str, Enum):
    """Discriminator for a compiler input value."""

    NULL = "null"
    RAW = "raw"
    SUBQUERY = "subquery"
    LIST = "list"
    SCALAR = "scalar"


def classify_value(value: Any) -> ValueKind:
    """Return the :class:`ValueKind` of ``value``."""
    if value is None:
        return ValueKind.NULL
    if isinstance(value, Expression):
        return ValueKind.RAW
    if isinstance(value, Query):
        return ValueKind.SUBQUERY
    if isinstance(value, (list, tuple, set, frozenset)):
        return ValueKind.LIST
    return ValueKind.SCALAR
