"""Filter conditions evaluated against a single context value.

Conditions are immutable and safe to share between concurrent evaluations.
They never raise for unexpected input: a value of the wrong shape, a missing
property or a malformed pattern simply leaves the condition unsatisfied.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from contextual_flags.hashing import AllocationHash, XxHashAllocation
from contextual_flags.ranges import Allocation, Range
from contextual_flags.types import ComparisonOperator, ValueKind
from contextual_flags.values import ContextValue, padded_version_string, to_context_value

__all__ = [
    "AllocationCondition",
    "And",
    "BooleanCompare",
    "ElemMatch",
    "Exists",
    "Fields",
    "FilterCondition",
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
]

logger = logging.getLogger(__name__)


class FilterCondition(ABC):
    """Base class for all conditions."""

    @abstractmethod
    def is_satisfied_by(self, value: ContextValue) -> bool:
        """Check the condition against a present context value."""

    @property
    def satisfied_when_missing(self) -> bool:
        """Result when the context does not provide the property at all."""
        return False

    def evaluate(self, value: ContextValue | None) -> bool:
        """Check the condition, treating ``None`` as a missing property."""
        if value is None:
            return self.satisfied_when_missing
        return self.is_satisfied_by(value)

    def matches(self, value: Any) -> bool:
        """Convenience wrapper converting a raw Python value first."""
        return self.is_satisfied_by(to_context_value(value))


@dataclass(frozen=True)
class Never(FilterCondition):
    """Never satisfied. Stands in for filters that could not be parsed."""

    def is_satisfied_by(self, value: ContextValue) -> bool:
        return False


@dataclass(frozen=True)
class Exists(FilterCondition):
    """Satisfied by any non-null value."""

    def is_satisfied_by(self, value: ContextValue) -> bool:
        return not value.is_null


@dataclass(frozen=True)
class StringEquals(FilterCondition):
    """Case-insensitive equality with the text of a scalar value."""

    expected: str
    _folded: str = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_folded", self.expected.casefold())

    def is_satisfied_by(self, value: ContextValue) -> bool:
        return value.is_scalar and value.folded == self._folded


@dataclass(frozen=True)
class Regex(FilterCondition):
    """Case-insensitive regular expression search over the text of a scalar value.

    The pattern is compiled once. A pattern that fails to compile is logged
    and the condition is never satisfied.
    """

    pattern: str
    _compiled: re.Pattern[str] | None = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        try:
            compiled: re.Pattern[str] | None = re.compile(self.pattern, re.IGNORECASE)
        except re.error as exc:
            logger.warning("Invalid regular expression %r in filter: %s", self.pattern, exc)
            compiled = None
        object.__setattr__(self, "_compiled", compiled)

    @property
    def is_valid(self) -> bool:
        return self._compiled is not None

    def is_satisfied_by(self, value: ContextValue) -> bool:
        if self._compiled is None or not value.is_scalar:
            return False
        return self._compiled.search(value.text) is not None


@dataclass(frozen=True)
class NumericCompare(FilterCondition):
    """Compare the numeric projection of a value with ``operand``."""

    operator: ComparisonOperator
    operand: float

    def is_satisfied_by(self, value: ContextValue) -> bool:
        if value.number is None or value.kind is ValueKind.BOOLEAN:
            return False
        return self.operator.compare(value.number, self.operand)


@dataclass(frozen=True)
class StringCompare(FilterCondition):
    """Case-insensitive lexicographic comparison with ``operand``."""

    operator: ComparisonOperator
    operand: str
    _folded: str = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_folded", self.operand.casefold())

    def is_satisfied_by(self, value: ContextValue) -> bool:
        if not value.is_scalar:
            return False
        return self.operator.compare(value.folded, self._folded)


@dataclass(frozen=True)
class BooleanCompare(FilterCondition):
    """Compare a boolean value with ``operand``. Non-booleans never match."""

    operator: ComparisonOperator
    operand: bool

    def is_satisfied_by(self, value: ContextValue) -> bool:
        if value.kind is not ValueKind.BOOLEAN:
            return False
        return self.operator.compare(value.raw, self.operand)


@dataclass(frozen=True)
class VersionCompare(FilterCondition):
    """Compare versions through their padded string form.

    ``1.10.0`` is greater than ``1.9.0`` and ``1.0.0-beta`` is lower than
    ``1.0.0``.
    """

    operator: ComparisonOperator
    operand: str
    _padded: str = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_padded", padded_version_string(self.operand))

    def is_satisfied_by(self, value: ContextValue) -> bool:
        if not value.is_scalar or not value.text.strip():
            return False
        return self.operator.compare(value.padded_version, self._padded)


@dataclass(frozen=True)
class RangeCondition(FilterCondition):
    """Satisfied when the value, projected onto the type of the bounds, lies in ``range``."""

    range: Range[Any]

    def is_satisfied_by(self, value: ContextValue) -> bool:
        if not value.is_scalar:
            return False
        projected = value.coerce(type(self.range.start))
        if projected is None:
            return False
        try:
            return self.range.contains(projected)
        except TypeError:
            return False


@dataclass(frozen=True)
class InSet(FilterCondition):
    """Case-insensitive membership.

    A scalar matches when its text is one of ``values``. An array matches when
    any of its scalar elements does.
    """

    values: tuple[str, ...]
    _folded: frozenset[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_folded", frozenset(item.casefold() for item in self.values))

    def is_satisfied_by(self, value: ContextValue) -> bool:
        if value.items is not None:
            return any(item.is_scalar and item.folded in self._folded for item in value.items)
        return value.is_scalar and value.folded in self._folded


@dataclass(frozen=True)
class Size(FilterCondition):
    """Apply ``condition`` to the length of an array value."""

    condition: FilterCondition

    def is_satisfied_by(self, value: ContextValue) -> bool:
        if value.items is None:
            return False
        return self.condition.is_satisfied_by(to_context_value(len(value.items)))


@dataclass(frozen=True)
class TypeOf(FilterCondition):
    """Satisfied when the value is of the given JSON-style kind."""

    kind: ValueKind

    def is_satisfied_by(self, value: ContextValue) -> bool:
        return value.kind is self.kind


@dataclass(frozen=True)
class ElemMatch(FilterCondition):
    """Satisfied when at least one element of an array satisfies ``condition``."""

    condition: FilterCondition

    def is_satisfied_by(self, value: ContextValue) -> bool:
        if value.items is None:
            return False
        return any(self.condition.is_satisfied_by(item) for item in value.items)


@dataclass(frozen=True)
class MatchAll(FilterCondition):
    """Every condition must be satisfied by at least one array element."""

    conditions: tuple[FilterCondition, ...]

    def is_satisfied_by(self, value: ContextValue) -> bool:
        if value.items is None or not self.conditions:
            return False
        return all(any(condition.is_satisfied_by(item) for item in value.items) for condition in self.conditions)


@dataclass(frozen=True)
class Fields(FilterCondition):
    """Apply conditions to named (possibly dotted) fields of an object value."""

    conditions: Mapping[str, FilterCondition]

    def is_satisfied_by(self, value: ContextValue) -> bool:
        if value.fields is None or not self.conditions:
            return False
        return all(condition.evaluate(value.get_path(path)) for path, condition in self.conditions.items())


@dataclass(frozen=True)
class AllocationCondition(FilterCondition):
    """Bucket the value with an allocation hash and test the resulting spot.

    Lets a filter restrict a variant to a slice of the population keyed by an
    arbitrary property.
    """

    salt: str
    allocation: Allocation
    allocation_hash: AllocationHash = field(default_factory=XxHashAllocation)

    def is_satisfied_by(self, value: ContextValue) -> bool:
        spot = self.allocation_hash.get_allocation_spot(self.salt, value.text)
        return self.allocation.contains(spot)


@dataclass(frozen=True)
class And(FilterCondition):
    """All conditions must hold. An empty list is never satisfied."""

    conditions: tuple[FilterCondition, ...]

    def is_satisfied_by(self, value: ContextValue) -> bool:
        return bool(self.conditions) and all(condition.is_satisfied_by(value) for condition in self.conditions)


@dataclass(frozen=True)
class Or(FilterCondition):
    """At least one condition must hold."""

    conditions: tuple[FilterCondition, ...]

    def is_satisfied_by(self, value: ContextValue) -> bool:
        return any(condition.is_satisfied_by(value) for condition in self.conditions)


@dataclass(frozen=True)
class Nor(FilterCondition):
    """None of the conditions may hold. An empty list is never satisfied."""

    conditions: tuple[FilterCondition, ...]

    def is_satisfied_by(self, value: ContextValue) -> bool:
        return bool(self.conditions) and not any(condition.is_satisfied_by(value) for condition in self.conditions)


@dataclass(frozen=True)
class Not(FilterCondition):
    """Negation. ``Not(Exists())`` is the only condition satisfied by a missing property."""

    condition: FilterCondition

    @property
    def satisfied_when_missing(self) -> bool:
        return isinstance(self.condition, Exists)

    def is_satisfied_by(self, value: ContextValue) -> bool:
        return not self.condition.is_satisfied_by(value)
