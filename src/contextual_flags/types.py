"""Enumerations shared across contextual-flags."""

from __future__ import annotations

from enum import Enum, IntFlag

__all__ = [
    "ComparisonOperator",
    "RangeType",
    "ValueKind",
]


class RangeType(IntFlag):
    """Which edges of a :class:`~contextual_flags.ranges.Range` are inclusive.

    Attributes:
        EXCLUDE_BOTH: Open interval ``(start; end)``.
        INCLUDE_START: Half-open interval ``[start; end)``.
        INCLUDE_END: Half-open interval ``(start; end]``.
        INCLUDE_BOTH: Closed interval ``[start; end]``.
    """

    EXCLUDE_BOTH = 0
    INCLUDE_START = 1
    INCLUDE_END = 2
    INCLUDE_BOTH = INCLUDE_START | INCLUDE_END


class ComparisonOperator(str, Enum):
    """Ordering operators usable by numeric, string and version comparisons.

    Attributes:
        GT: Greater than.
        GTE: Greater than or equal.
        LT: Less than.
        LTE: Less than or equal.
        EQ: Equal.
        NE: Not equal.
    """

    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    EQ = "eq"
    NE = "ne"

    def compare(self, left: object, right: object) -> bool:
        """Apply the operator to two mutually comparable values."""
        match self:
            case ComparisonOperator.GT:
                return left > right  # type: ignore[operator]
            case ComparisonOperator.GTE:
                return left >= right  # type: ignore[operator]
            case ComparisonOperator.LT:
                return left < right  # type: ignore[operator]
            case ComparisonOperator.LTE:
                return left <= right  # type: ignore[operator]
            case ComparisonOperator.EQ:
                return left == right
            case ComparisonOperator.NE:
                return left != right


class ValueKind(str, Enum):
    """JSON-style type names reported for context values.

    These are the names accepted by the ``$type`` operator.
    """

    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"
    UNKNOWN = "unknown"
