"""Filter conditions, property filters and their textual grammars."""

from __future__ import annotations

from contextual_flags.filtering.conditions import (
    AllocationCondition,
    And,
    BooleanCompare,
    ElemMatch,
    Exists,
    Fields,
    FilterCondition,
    InSet,
    MatchAll,
    Never,
    Nor,
    Not,
    NumericCompare,
    Or,
    RangeCondition,
    Regex,
    Size,
    StringCompare,
    StringEquals,
    TypeOf,
    VersionCompare,
)
from contextual_flags.filtering.filters import Filter, FilterEntry, FilterGroup, GroupOperator
from contextual_flags.filtering.literals import parse_literal, parse_literal_filters
from contextual_flags.filtering.parser import parse_condition, parse_filters

__all__ = [
    "AllocationCondition",
    "And",
    "BooleanCompare",
    "ElemMatch",
    "Exists",
    "Fields",
    "Filter",
    "FilterCondition",
    "FilterEntry",
    "FilterGroup",
    "GroupOperator",
    "InSet",
    "MatchAll",
    "Never",
    "Nor",
    "Not",
    "NumericCompare",
    "Or",
    "RangeCondition",
    "Regex",
    "Size",
    "StringCompare",
    "StringEquals",
    "TypeOf",
    "VersionCompare",
    "parse_condition",
    "parse_filters",
    "parse_literal",
    "parse_literal_filters",
]
