"""Pydantic models describing search index schemas.

Index schemas are consulted only to coerce bound values to the column's
declared type (``"42"`` -> ``42`` for an ``uint`` attribute, and so on).
They never validate a query: a column or index missing from the schema simply
leaves its values uncoerced.

The schema is produced by the caller (for example from ``DESCRIBE`` rows, see
:mod:`sphinxql.schema.converters`) and handed to the builder through any
object implementing :class:`SchemaProvider`.
"""
from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any, Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field

#: Column types reported by ``DESCRIBE`` on Sphinx / Manticore indexes.
ColumnType = Literal[
    "field",
    "string",
    "json",
    "integer",
    "uint",
    "bigint",
    "timestamp",
    "bool",
    "float",
    "mva",
    "mva64",
    "uint_set",
    "bigint_set",
]

_INTEGER_TYPES = frozenset(
    {"integer", "uint", "bigint", "timestamp", "mva", "mva64", "uint_set", "bigint_set"}
)
_MVA_TYPES = frozenset({"mva", "mva64", "uint_set", "bigint_set"})
_TEXT_TYPES = frozenset({"field", "string", "json"})
_FALSE_STRINGS = frozenset({"", "0", "false"})


class ColumnSchema(BaseModel):
    """Metadata for a single index column.

    Attributes:
        name: Column name.
        type: Sphinx column type.
    """

    model_config = ConfigDict(extra="forbid")

    name: str
    type: ColumnType

    @property
    def is_mva(self) -> bool:
        """Whether the column is a multi-valued attribute."""
        return self.type in _MVA_TYPES

    @property
    def python_type(self) -> type:
        """The Python type values of this column are coerced to."""
        if self.type in _INTEGER_TYPES:
            return int
        if self.type == "float":
            return float
        if self.type == "bool":
            return bool
        return str

    def typecast(self, value: Any) -> Any:
        """Coerce ``value`` for binding against this column.

        Coercion is best effort: a value that cannot be converted is
        returned unchanged.  Non-string values bound to a ``json`` column are
        serialised with :func:`json.dumps`.
        """
        target = self.python_type
        if value == "" and self.type not in _TEXT_TYPES:
            return None
        if value is None or type(value) is target:
            return value
        if self.type == "json" and not isinstance(value, (bytes, bytearray)):
            try:
                return json.dumps(value)
            except (TypeError, ValueError):
                return value
        if target is bool:
            if isinstance(value, str):
                return value.strip().lower() not in _FALSE_STRINGS
            return bool(value)
        if target is str:
            return value if isinstance(value, (bytes, bytearray)) else str(value)
        if isinstance(value, bool):
            return target(value)
        try:
            return target(value)
        except (TypeError, ValueError):
            return value


class IndexSchema(BaseModel):
    """Metadata for a single index.

    Attributes:
        name: Index name.
        columns: Ordered list of column metadata.
    """

    model_config = ConfigDict(extra="forbid")

    name: str
    columns: list[ColumnSchema] = Field(default_factory=list)

    def get_column(self, name: str) -> ColumnSchema | None:
        """Returns the ColumnSchema for ``name``, or ``None``."""
        for column in self.columns:
            if column.name == name:
                return column
        return None

    @property
    def column_names(self) -> list[str]:
        """Returns all column names for this index."""
        return [c.name for c in self.columns]


class SchemaProvider(Protocol):
    """Anything that can look up an index schema by name."""

    def get_index_schema(self, name: str) -> IndexSchema | None:
        ...


class SchemaSnapshot(BaseModel):
    """A static collection of index schemas.

    Attributes:
        indexes: All known indexes.
    """

    model_config = ConfigDict(extra="forbid")

    indexes: list[IndexSchema] = Field(default_factory=list)

    def get_index_schema(self, name: str) -> IndexSchema | None:
        """Returns the IndexSchema for the given index name, or ``None``."""
        for index in self.indexes:
            if index.name == name:
                return index
        return None

    @property
    def index_names(self) -> list[str]:
        """Returns all index names in the snapshot."""
        return [i.name for i in self.indexes]


def find_column(schemas: Iterable[IndexSchema], name: str) -> ColumnSchema | None:
    """Return the first column called ``name`` across ``schemas``."""
    for schema in schemas:
        column = schema.get_column(name)
        if column is not None:
            return column
    return None


def coerce_value(column: ColumnSchema | None, value: Any) -> Any:
    """Coerce ``value`` for ``column``; identity when the column is unknown."""
    if column is None:
        return value
    return column.typecast(value)
