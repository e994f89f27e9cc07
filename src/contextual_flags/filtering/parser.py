"""Parser for the JSON filter-condition grammar.

The grammar follows the MongoDB style query language used by GrowthBook
style targeting rules::

    {"country": {"$in": ["US", "CA"]}, "version": {"$vgte": "2.1.0"}}
    {"$or": [{"plan": "pro"}, {"beta": true}]}

A property maps either to a bare value (equality), to an operator object
(several operators form an implicit AND) or to an object without operators
that matches the listed fields of an object value.

By default malformed input never raises: the offending condition is logged
and replaced by :class:`~contextual_flags.filtering.conditions.Never`, so a
bad rule can only ever exclude traffic. Pass ``strict=True`` to raise
:class:`~contextual_flags.exceptions.ConditionParseError` instead.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from contextual_flags.exceptions import AllocationError, ConditionParseError, RangeParseError
from contextual_flags.filtering.conditions import (
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
from contextual_flags.ranges import parse_range
from contextual_flags.types import ComparisonOperator, ValueKind

__all__ = [
    "parse_condition",
    "parse_filters",
    "scalar_text",
]

logger = logging.getLogger(__name__)

_COMPARISONS = {
    "$eq": ComparisonOperator.EQ,
    "$ne": ComparisonOperator.NE,
    "$gt": ComparisonOperator.GT,
    "$gte": ComparisonOperator.GTE,
    "$lt": ComparisonOperator.LT,
    "$lte": ComparisonOperator.LTE,
}

_VERSION_COMPARISONS = {
    "$veq": ComparisonOperator.EQ,
    "$vne": ComparisonOperator.NE,
    "$vgt": ComparisonOperator.GT,
    "$vgte": ComparisonOperator.GTE,
    "$vlt": ComparisonOperator.LT,
    "$vlte": ComparisonOperator.LTE,
}

_GROUP_OPERATORS = {
    "$and": GroupOperator.AND,
    "$or": GroupOperator.OR,
    "$nor": GroupOperator.NOR,
}


def scalar_text(value: Any) -> str:
    """Render a JSON scalar the way context values render their text."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_operator_object(value: Any) -> bool:
    return isinstance(value, Mapping) and bool(value) and all(str(key).startswith("$") for key in value)


def _comparison(operator: ComparisonOperator, operand: Any) -> FilterCondition:
    if isinstance(operand, bool):
        return BooleanCompare(operator, operand)
    if _is_number(operand):
        return NumericCompare(operator, float(operand))
    if isinstance(operand, str):
        if operator is ComparisonOperator.EQ:
            return StringEquals(operand)
        return StringCompare(operator, operand)
    if operand is None and operator is ComparisonOperator.EQ:
        return Not(Exists())
    if operand is None and operator is ComparisonOperator.NE:
        return Exists()
    raise ConditionParseError(f"Unsupported operand {operand!r} for ${operator.value}")


def _require_list(name: str, operand: Any) -> list[Any]:
    if not isinstance(operand, list):
        raise ConditionParseError(f"{name} expects an array, got {operand!r}")
    return operand


def _in_set(operand: Any) -> FilterCondition:
    return InSet(tuple(scalar_text(item) for item in _require_list("$in", operand)))


def _not_in_set(operand: Any) -> FilterCondition:
    return Not(InSet(tuple(scalar_text(item) for item in _require_list("$nin", operand))))


def _exists(operand: Any) -> FilterCondition:
    return Exists() if operand else Not(Exists())


def _type_of(operand: Any) -> FilterCondition:
    try:
        return TypeOf(ValueKind(str(operand)))
    except ValueError:
        raise ConditionParseError(f"Unknown $type {operand!r}") from None


def _regex(operand: Any) -> FilterCondition:
    if not isinstance(operand, str):
        raise ConditionParseError(f"$regex expects a string, got {operand!r}")
    condition = Regex(operand)
    if not condition.is_valid:
        raise ConditionParseError(f"Invalid regular expression {operand!r}")
    return condition


def _size(operand: Any) -> FilterCondition:
    if _is_number(operand):
        return Size(NumericCompare(ComparisonOperator.EQ, float(operand)))
    return Size(_parse(operand))


def _range(operand: Any) -> FilterCondition:
    if not isinstance(operand, str):
        raise ConditionParseError(f"$range expects a range string, got {operand!r}")
    try:
        return RangeCondition(parse_range(operand))
    except (RangeParseError, AllocationError) as exc:
        raise ConditionParseError(str(exc)) from exc


def _version(operator: ComparisonOperator) -> Callable[[Any], FilterCondition]:
    def build(operand: Any) -> FilterCondition:
        if not isinstance(operand, str):
            raise ConditionParseError(f"${operator.value} expects a version string, got {operand!r}")
        return VersionCompare(operator, operand)

    return build


def _compare(operator: ComparisonOperator) -> Callable[[Any], FilterCondition]:
    return lambda operand: _comparison(operator, operand)


def _combine(kind: type[And] | type[Or] | type[Nor], name: str) -> Callable[[Any], FilterCondition]:
    def build(operand: Any) -> FilterCondition:
        return kind(tuple(_parse(item) for item in _require_list(name, operand)))

    return build


_OPERATORS: dict[str, Callable[[Any], FilterCondition]] = {
    "$in": _in_set,
    "$nin": _not_in_set,
    "$exists": _exists,
    "$type": _type_of,
    "$regex": _regex,
    "$size": _size,
    "$range": _range,
    "$not": lambda operand: Not(_parse(operand)),
    "$elemMatch": lambda operand: ElemMatch(_parse(operand)),
    "$all": lambda operand: MatchAll(tuple(_parse(item) for item in _require_list("$all", operand))),
    "$and": _combine(And, "$and"),
    "$or": _combine(Or, "$or"),
    "$nor": _combine(Nor, "$nor"),
    **{name: _compare(operator) for name, operator in _COMPARISONS.items()},
    **{name: _version(operator) for name, operator in _VERSION_COMPARISONS.items()},
}


def _parse_operators(definition: Mapping[str, Any]) -> FilterCondition:
    conditions = []
    for name, operand in definition.items():
        builder = _OPERATORS.get(name)
        if builder is None:
            raise ConditionParseError(f"Unknown operator {name!r}")
        conditions.append(builder(operand))
    return conditions[0] if len(conditions) == 1 else And(tuple(conditions))


def _parse(definition: Any) -> FilterCondition:
    if isinstance(definition, Mapping):
        if not definition:
            raise ConditionParseError("Empty condition object")
        if _is_operator_object(definition):
            return _parse_operators(definition)
        if any(str(key).startswith("$") for key in definition):
            raise ConditionParseError(f"Cannot mix operators and field names in {dict(definition)!r}")
        return Fields({str(key): _parse(value) for key, value in definition.items()})
    if isinstance(definition, list):
        return Or(tuple(_parse(item) for item in definition))
    return _comparison(ComparisonOperator.EQ, definition)


def parse_condition(definition: Any, *, strict: bool = False) -> FilterCondition:
    """Parse the condition for a single property.

    Args:
        definition: Bare value, operator object, field object or array of alternatives.
        strict: Raise on malformed input instead of returning :class:`Never`.

    Raises:
        ConditionParseError: If ``strict`` and ``definition`` is malformed.
    """
    try:
        return _parse(definition)
    except ConditionParseError as exc:
        if strict:
            raise
        logger.warning("Malformed filter condition %r, it will never match: %s", definition, exc)
        return Never()


def _group_members(name: str, operand: Any) -> tuple[FilterEntry, ...]:
    if name == "$not":
        if not isinstance(operand, Mapping) or not operand:
            raise ConditionParseError(f"$not expects a non-empty filter object, got {operand!r}")
        return parse_filters(operand, strict=True)
    if not isinstance(operand, list) or not all(isinstance(item, Mapping) for item in operand):
        raise ConditionParseError(f"{name} expects an array of filter objects, got {operand!r}")
    members: list[FilterEntry] = []
    for item in operand:
        if not item:
            raise ConditionParseError(f"Empty filter object in {name}")
        entries = parse_filters(item, strict=True)
        members.append(entries[0] if len(entries) == 1 else FilterGroup.all_of(entries))
    return tuple(members)


def _parse_group(name: str, operand: Any, strict: bool) -> FilterGroup:
    # any malformed member fails the whole group closed
    operator = GroupOperator.NOT if name == "$not" else _GROUP_OPERATORS[name]
    try:
        return FilterGroup(operator, _group_members(name, operand))
    except ConditionParseError as exc:
        if strict:
            raise
        logger.warning("Malformed %s filter group, it will never match: %s", name, exc)
        return FilterGroup(operator, ())


def parse_filters(definition: Mapping[str, Any], *, strict: bool = False) -> tuple[FilterEntry, ...]:
    """Parse a property map into filters, all of which must be satisfied.

    Top level ``$and``/``$or``/``$nor`` take an array of property maps and
    ``$not`` takes a single property map.

    Raises:
        ConditionParseError: If ``strict`` and the map is malformed.
    """
    entries: list[FilterEntry] = []
    for key, value in definition.items():
        name = str(key)
        if name in _GROUP_OPERATORS or name == "$not":
            entries.append(_parse_group(name, value, strict))
        elif name.startswith("$"):
            if strict:
                raise ConditionParseError(f"Unknown top level operator {name!r}")
            logger.warning("Unknown top level operator %r, it will never match", name)
            entries.append(Filter.never(name))
        else:
            entries.append(Filter(name, parse_condition(value, strict=strict)))
    return tuple(entries)
