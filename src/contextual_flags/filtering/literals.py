"""Filter literals used by the configuration feature loader.

In feature configuration a property filter is usually written as a plain
value rather than a condition object::

    "Filters": {
        "Market": ["U*", "PL", "^C.+$"],
        "AgeGroup": ["1", "[2;3)"]
    }

Each string is interpreted, in order, as a range (``[a;b)``), a regular
expression (leading ``^``), a wildcard pattern (contains ``*``) or a
case-insensitive exact match. An array is the OR of its items. Objects are
handed to the JSON condition grammar.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from contextual_flags.exceptions import AllocationError, RangeParseError
from contextual_flags.filtering.conditions import FilterCondition, Never, Or, RangeCondition, Regex, StringEquals
from contextual_flags.filtering.filters import Filter, FilterEntry
from contextual_flags.filtering.parser import parse_condition, parse_filters, scalar_text
from contextual_flags.ranges import parse_range

__all__ = [
    "parse_literal",
    "parse_literal_filters",
    "wildcard_to_regex",
]

logger = logging.getLogger(__name__)

_GROUP_KEYS = frozenset({"$and", "$or", "$nor", "$not"})


def wildcard_to_regex(pattern: str) -> str:
    """Translate ``*`` wildcards into an (unanchored) regular expression."""
    return re.escape(pattern).replace(r"\*", ".*")


def _parse_string(text: str) -> FilterCondition:
    try:
        return RangeCondition(parse_range(text))
    except (RangeParseError, AllocationError):
        pass
    if text.startswith("^"):
        return Regex(text)
    if "*" in text:
        return Regex(wildcard_to_regex(text))
    return StringEquals(text)


def _parse_item(value: Any) -> FilterCondition | None:
    if value is None:
        return None
    if isinstance(value, Mapping):
        return parse_condition(value)
    if isinstance(value, str):
        return _parse_string(value)
    if isinstance(value, (list, tuple)):
        return None
    return StringEquals(scalar_text(value))


def parse_literal(value: Any) -> FilterCondition:
    """Parse a configuration filter literal into a condition.

    Returns:
        The parsed condition. Literals that cannot be parsed, and arrays in
        which no item can be parsed, yield :class:`Never`.
    """
    if isinstance(value, (list, tuple)):
        parsed = [condition for condition in map(_parse_item, value) if condition is not None]
        if not parsed:
            logger.warning("No usable values in filter literal %r, it will never match", value)
            return Never()
        return Or(tuple(parsed))
    condition = _parse_item(value)
    if condition is None:
        logger.warning("Unusable filter literal %r, it will never match", value)
        return Never()
    return condition


def parse_literal_filters(definition: Mapping[str, Any]) -> tuple[FilterEntry, ...]:
    """Parse a ``Filters`` section of the feature configuration."""
    entries: list[FilterEntry] = []
    for key, value in definition.items():
        name = str(key)
        if name in _GROUP_KEYS:
            entries.extend(parse_filters({name: value}))
        else:
            entries.append(Filter(name, parse_literal(value)))
    return tuple(entries)
