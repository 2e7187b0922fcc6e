"""Pydantic model for a SphinxQL query specification.

The caller describes a SELECT statement as a single ``Query`` object; the
:class:`~sphinxql.compile.builder.QueryBuilder` turns it into SQL.  All clause
keys are optional.

Collections of columns, indexes, options and facets mirror an ordered
mapping: pass a list for positional entries, or a dict whose string keys are
aliases / names.  Integer dict keys count as positional, so mixed entries can
be expressed as ``{0: "id", "total": "COUNT(*)"}``.

Condition trees (``WHERE`` / ``HAVING``) are either a hash condition::

    {"status": 1, "category_id": [2, 3]}

or an operator condition whose first element is the operator keyword::

    ["AND", {"status": 1}, [">", "price", 10]]

Values may be :class:`~sphinxql.schema.values.Expression` instances (raw SQL)
or nested ``Query`` objects (sub-queries) wherever the compiler accepts them.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

#: A list of entries or an ordered mapping of alias/name -> entry.
EntrySpec = list[Any] | dict[Any, Any]


class Query(BaseModel):
    """Top-level SphinxQL SELECT specification.

    Attributes:
        SELECT: Columns or expressions; empty means ``*``.
        DISTINCT: Emit ``SELECT DISTINCT``.
        SELECT_OPTION: Extra keyword inserted after ``SELECT``.
        FROM: Index names, aliased indexes or sub-queries.
        JOIN: Must stay empty; SphinxQL has no JOIN.
        MATCH: Full-text query string or raw ``Expression``.
        WHERE: Condition tree.
        GROUP_BY: Grouping columns (list or comma separated string).
        WITHIN: ``column -> direction`` for WITHIN GROUP ORDER BY.
        HAVING: Condition tree over grouped rows.
        ORDER_BY: ``column -> direction`` mapping.
        LIMIT: Non-negative integer (or digit string).
        OFFSET: Non-negative integer (or digit string).
        OPTION: ``name -> value`` for the OPTION clause.
        FACET: Facet specifications.
        SHOW_META: ``True``, a LIKE pattern, or an ``Expression``.
        PARAMS: Parameters already bound by the caller.
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    SELECT: EntrySpec = Field(default_factory=list)
    DISTINCT: bool = False
    SELECT_OPTION: str | None = None
    FROM: EntrySpec = Field(default_factory=list)
    JOIN: list[Any] = Field(default_factory=list)
    MATCH: Any = None
    WHERE: Any = None
    GROUP_BY: list[Any] | str = Field(default_factory=list)
    WITHIN: dict[str, Any] = Field(default_factory=dict)
    HAVING: Any = None
    ORDER_BY: dict[str, Any] = Field(default_factory=dict)
    LIMIT: int | str | None = None
    OFFSET: int | str | None = None
    OPTION: dict[str, Any] = Field(default_factory=dict)
    FACET: EntrySpec = Field(default_factory=list)
    SHOW_META: Any = None
    PARAMS: dict[str, Any] = Field(default_factory=dict)


def iter_entries(spec: Any) -> list[tuple[str | None, Any]]:
    """Flatten a list / mapping spec into ``(key, value)`` pairs.

    Positional entries (list items and integer dict keys) get ``None`` as
    their key.
    """
    if spec is None:
        return []
    if isinstance(spec, dict):
        return [
            (key if isinstance(key, str) else None, value)
            for key, value in spec.items()
        ]
    if isinstance(spec, (list, tuple)):
        return [(None, value) for value in spec]
    return [(None, spec)]
