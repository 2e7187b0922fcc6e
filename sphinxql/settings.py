"""Builder configuration.

``BuilderSettings`` collects the knobs of the SphinxQL grammar that callers
may want to change; the defaults match the search daemon's own behaviour.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from sphinxql.schema.expressions import DEFAULT_LIKE_ESCAPE


class BuilderSettings(BaseModel):
    """Immutable settings shared by every compilation of one builder.

    Attributes:
        separator: Joins the clauses of one statement.
        query_separator: Joins the main statement and ``SHOW META``.
        param_prefix: Prefix of generated placeholder names; the suffix is
            the size of the parameter map at generation time.
        default_limit: Row count appended when only an offset is given
            (the daemon's implicit cap).
        like_escape: Escape map for LIKE patterns and ``SHOW META LIKE``.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    separator: str = " "
    query_separator: str = "; "
    param_prefix: str = ":qp"
    default_limit: int = Field(default=1000, ge=0)
    like_escape: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_LIKE_ESCAPE)
    )
