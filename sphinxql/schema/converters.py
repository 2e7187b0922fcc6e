"""Utilities for building index schemas from external sources.

``DESCRIBE`` converter
----------------------
:func:`index_schema_from_describe` turns the rows of a ``DESCRIBE <index>``
result into an :class:`~sphinxql.schema.index.IndexSchema`.  Fetching the rows
is up to the caller; this module performs no I/O.

Example::

    cursor.execute("DESCRIBE idx_article")
    schema = index_schema_from_describe("idx_article", cursor.fetchall())
    snapshot = SchemaSnapshot(indexes=[schema])
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from sphinxql.schema.index import ColumnSchema, IndexSchema

logger = logging.getLogger(__name__)

#: Maps raw DESCRIBE type names to the canonical column types.
_TYPE_MAP: dict[str, str] = {
    "field": "field",
    "text": "field",
    "string": "string",
    "ordinal": "string",
    "json": "json",
    "integer": "integer",
    "int": "integer",
    "uint": "uint",
    "bigint": "bigint",
    "timestamp": "timestamp",
    "bool": "bool",
    "float": "float",
    "mva": "mva",
    "mva64": "mva64",
    "uint_set": "uint_set",
    "multi": "mva",
    "bigint_set": "bigint_set",
    "multi64": "mva64",
}


def index_schema_from_describe(
    name: str,
    rows: Iterable[Mapping[str, Any] | Sequence[Any]],
) -> IndexSchema:
    """Build an :class:`IndexSchema` from ``DESCRIBE`` result rows.

    Rows may be mappings with ``Field`` / ``Type`` keys (dict cursors) or
    sequences whose first two items are the field name and type.  A field
    listed twice (Manticore reports full-text fields stored as attributes
    once per role) keeps its attribute type.  Unknown types are treated as
    strings.

    Args:
        name: Index name.
        rows: Rows of the ``DESCRIBE`` result.

    Returns:
        The index schema.
    """
    columns: dict[str, ColumnSchema] = {}
    for row in rows:
        if isinstance(row, Mapping):
            field_name, raw_type = row["Field"], row["Type"]
        else:
            field_name, raw_type = row[0], row[1]
        col_type = _TYPE_MAP.get(str(raw_type).lower())
        if col_type is None:
            logger.debug(
                "Unknown column type %r for %s.%s; treating as string",
                raw_type, name, field_name,
            )
            col_type = "string"
        existing = columns.get(field_name)
        if existing is not None and col_type == "field":
            continue
        columns[field_name] = ColumnSchema(name=field_name, type=col_type)
    return IndexSchema(name=name, columns=list(columns.values()))
