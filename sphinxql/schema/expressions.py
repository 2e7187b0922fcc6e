"""Constants and helpers for condition operators and value escaping.

Conditions are represented as plain dicts / lists in the Query model.  This
module defines the recognised operator keywords, the operator groups the
compiler dispatches on, and the escape tables used for ``LIKE`` patterns and
full-text ``MATCH`` values.
"""

from __future__ import annotations

import re
from enum import Enum

# ---------------------------------------------------------------------------
# Condition operator enum
# ---------------------------------------------------------------------------


class ConditionOperator(str, Enum):
    """Operator keywords with a dedicated condition builder.

    Any other leading keyword in an operator-form condition is used verbatim
    as a binary comparison operator (``>``, ``<=``, ``!=`` ...).
    """

    AND = "AND"
    OR = "OR"
    NOT = "NOT"
    BETWEEN = "BETWEEN"
    NOT_BETWEEN = "NOT BETWEEN"
    IN = "IN"
    NOT_IN = "NOT IN"
    LIKE = "LIKE"
    NOT_LIKE = "NOT LIKE"
    OR_LIKE = "OR LIKE"
    OR_NOT_LIKE = "OR NOT LIKE"


class SortDirection(str, Enum):
    """Sort direction for ORDER BY and WITHIN GROUP ORDER BY."""

    ASC = "ASC"
    DESC = "DESC"


# ---------------------------------------------------------------------------
# Operator groups (keep frozenset for O(1) membership tests)
# ---------------------------------------------------------------------------

#: Logical AND / OR: take any number of sub-conditions.
LOGICAL_AND_OR: frozenset[ConditionOperator] = frozenset(
    {ConditionOperator.AND, ConditionOperator.OR}
)

#: Range operators: take [column, low, high].
RANGE_OPS: frozenset[ConditionOperator] = frozenset(
    {ConditionOperator.BETWEEN, ConditionOperator.NOT_BETWEEN}
)

#: Membership operators: take [column(s), values | sub-query].
MEMBERSHIP_OPS: frozenset[ConditionOperator] = frozenset(
    {ConditionOperator.IN, ConditionOperator.NOT_IN}
)

#: Pattern-match operators: take [column, value(s), escape?].
PATTERN_OPS: frozenset[ConditionOperator] = frozenset(
    {
        ConditionOperator.LIKE,
        ConditionOperator.NOT_LIKE,
        ConditionOperator.OR_LIKE,
        ConditionOperator.OR_NOT_LIKE,
    }
)

#: Pattern operators whose empty value list means "always false".
POSITIVE_PATTERN_OPS: frozenset[ConditionOperator] = frozenset(
    {ConditionOperator.LIKE, ConditionOperator.OR_LIKE}
)

#: Literal emitted for a condition that can never match.
FALSE_CONDITION = "0=1"


def parse_operator(token: str) -> ConditionOperator | None:
    """Return the ConditionOperator for ``token``, or ``None`` if unknown.

    Args:
        token: Upper-cased leading keyword of an operator-form condition.
    """
    try:
        return ConditionOperator(token)
    except ValueError:
        return None


def parse_direction(direction: object) -> SortDirection:
    """Normalise a user supplied sort direction; anything but DESC is ASC."""
    if isinstance(direction, str) and direction.strip().upper() == SortDirection.DESC:
        return SortDirection.DESC
    return SortDirection.ASC


# ---------------------------------------------------------------------------
# Escaping
# ---------------------------------------------------------------------------

#: Default escape map for LIKE patterns and SHOW META LIKE.
DEFAULT_LIKE_ESCAPE: dict[str, str] = {"%": "\\%", "_": "\\_", "\\": "\\\\"}

#: Characters with special meaning inside a full-text MATCH() query.
MATCH_ESCAPE: dict[str, str] = {
    "\\": "\\\\",
    "/": "\\/",
    '"': '\\"',
    "(": "\\(",
    ")": "\\)",
    "|": "\\|",
    "-": "\\-",
    "!": "\\!",
    "@": "\\@",
    "~": "\\~",
    "&": "\\&",
    "^": "\\^",
    "$": "\\$",
    "=": "\\=",
    ">": "\\>",
    "<": "\\<",
    "\x00": "\\x00",
    "\n": "\\n",
    "\r": "\\r",
    "\x1a": "\\x1a",
}


def translate(value: str, mapping: dict[str, str]) -> str:
    """Replace every key of ``mapping`` in ``value`` in a single pass.

    Longer keys win over shorter ones and replaced text is never rescanned,
    so ``\\`` in a replacement is not escaped a second time.
    """
    if not mapping:
        return value
    keys = sorted(mapping, key=len, reverse=True)
    pattern = re.compile("|".join(re.escape(k) for k in keys))
    return pattern.sub(lambda m: mapping[m.group(0)], value)


def escape_match_value(text: str) -> str:
    """Escape all special characters of a full-text MATCH() argument.

    The result is not quoted; bind it as a parameter.
    """
    return translate(text, MATCH_ESCAPE)


def like_pattern(value: object, escape: dict[str, str] | None) -> object:
    """Return the bound value for a LIKE comparison.

    With an escape map the value is escaped and wrapped in ``%...%``; with a
    falsy map it is used as-is.
    """
    if not escape:
        return value
    return f"%{translate(str(value), escape)}%"
