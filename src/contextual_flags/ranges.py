"""Ranges and traffic allocations.

A :class:`Range` is an interval over any totally ordered type with
independently inclusive or exclusive edges. An :class:`Allocation` is a range
of floats restricted to the unit interval and is what decides whether an
allocation spot produced by a hash falls into a variant.

Range strings use the mathematical notation with a semicolon separator::

    [0;0.5)      0 <= x < 0.5
    (1.0.0;2.0.0] versions
    [2024-01-01;2024-06-30]
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar
from uuid import UUID

from packaging.version import InvalidVersion, Version

from contextual_flags.exceptions import AllocationError, RangeParseError
from contextual_flags.types import RangeType

__all__ = [
    "Allocation",
    "Range",
    "parse_range",
    "parse_range_value",
]

T = TypeVar("T")

_RANGE_PATTERN = re.compile(r"^\s*([\[(])\s*([^;]*?)\s*;\s*([^;]*?)\s*([\])])\s*$")


@dataclass(frozen=True, slots=True)
class Range(Generic[T]):
    """An interval between two comparable values.

    Attributes:
        start: Lower bound.
        end: Upper bound, must not be lower than ``start``.
        range_type: Which of the edges are included.
    """

    start: T
    end: T
    range_type: RangeType = RangeType.INCLUDE_START

    def __post_init__(self) -> None:
        if self.start > self.end:  # type: ignore[operator]
            raise AllocationError(f"Range start {self.start!r} is greater than end {self.end!r}")

    def contains(self, value: T) -> bool:
        """Check whether ``value`` falls inside the range honouring edge inclusivity."""
        if self.range_type & RangeType.INCLUDE_START:
            above_start = value >= self.start  # type: ignore[operator]
        else:
            above_start = value > self.start  # type: ignore[operator]
        if not above_start:
            return False
        if self.range_type & RangeType.INCLUDE_END:
            return value <= self.end  # type: ignore[operator]
        return value < self.end  # type: ignore[operator]

    def __contains__(self, value: object) -> bool:
        return self.contains(value)  # type: ignore[arg-type]

    def __str__(self) -> str:
        opening = "[" if self.range_type & RangeType.INCLUDE_START else "("
        closing = "]" if self.range_type & RangeType.INCLUDE_END else ")"
        return f"{opening}{self.start};{self.end}{closing}"

    @classmethod
    def parse(cls, text: str, value_parser: Callable[[str], T]) -> Range[T]:
        """Parse a range string, converting both bounds with ``value_parser``.

        Args:
            text: Range string such as ``"[0;1)"``.
            value_parser: Converts each bound. Any ``ValueError`` it raises is
                reported as a :class:`RangeParseError`.

        Raises:
            RangeParseError: If ``text`` is not a valid range, including a
                start greater than the end.
        """
        match = _RANGE_PATTERN.match(text)
        if match is None:
            raise RangeParseError(text)
        opening, raw_start, raw_end, closing = match.groups()
        try:
            start = value_parser(raw_start)
            end = value_parser(raw_end)
        except (ValueError, TypeError) as exc:
            raise RangeParseError(text, str(exc)) from exc
        if start > end:  # type: ignore[operator]
            raise RangeParseError(text, f"start {raw_start} is greater than end {raw_end}")
        range_type = RangeType.EXCLUDE_BOTH
        if opening == "[":
            range_type |= RangeType.INCLUDE_START
        if closing == "]":
            range_type |= RangeType.INCLUDE_END
        return cls(start, end, range_type)


@dataclass(frozen=True, slots=True)
class Allocation:
    """A fraction of traffic expressed as a sub-range of ``[0, 1]``.

    Attributes:
        range: The covered part of the unit interval.
    """

    range: Range[float]

    def __post_init__(self) -> None:
        if self.range.start < 0 or self.range.end > 1:
            raise AllocationError(f"Allocation {self.range} must lie within [0, 1]")

    def contains(self, spot: float) -> bool:
        """Check whether an allocation spot falls into this allocation."""
        return self.range.contains(spot)

    def __contains__(self, spot: object) -> bool:
        return self.contains(spot)  # type: ignore[arg-type]

    def __str__(self) -> str:
        return str(self.range)

    @property
    def size(self) -> float:
        """Width of the allocation, i.e. the expected share of traffic."""
        return self.range.end - self.range.start

    @classmethod
    def between(
        cls, start: float, end: float, range_type: RangeType = RangeType.INCLUDE_START
    ) -> Allocation:
        """Create an allocation for ``start``..``end`` with the given edges."""
        return cls(Range(float(start), float(end), range_type))

    @classmethod
    def percentage(cls, percentage: float) -> Allocation:
        """Create an allocation covering the first ``percentage`` percent.

        The upper bound is exclusive, so adjacent percentage allocations never
        overlap. A full 100% allocation is the closed interval ``[0, 1]`` and
        therefore contains every spot a hash can produce.

        Raises:
            AllocationError: If ``percentage`` is outside ``0..100``.
        """
        if not 0 <= percentage <= 100:
            raise AllocationError(f"Percentage {percentage} must be between 0 and 100")
        if percentage == 100:
            return cls.full()
        return cls(Range(0.0, percentage / 100.0, RangeType.INCLUDE_START))

    @classmethod
    def full(cls) -> Allocation:
        """An allocation containing every spot."""
        return cls(Range(0.0, 1.0, RangeType.INCLUDE_BOTH))

    @classmethod
    def parse(cls, text: str) -> Allocation:
        """Parse ``"NN%"`` or a float range string like ``"[0.2;0.4)"``.

        Raises:
            RangeParseError: If ``text`` is neither form.
            AllocationError: If the value lies outside the unit interval.
        """
        stripped = text.strip()
        if stripped.endswith("%"):
            try:
                percentage = float(stripped[:-1])
            except ValueError as exc:
                raise RangeParseError(text, "invalid percentage") from exc
            return cls.percentage(percentage)
        return cls(Range.parse(stripped, float))


def _parse_datetime(text: str) -> datetime:
    value = datetime.fromisoformat(text)
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value


def _parse_version(text: str) -> Version:
    if text.count(".") < 1:
        raise ValueError(f"{text!r} is not a dotted version")
    try:
        return Version(text)
    except InvalidVersion as exc:
        raise ValueError(str(exc)) from exc


_RANGE_VALUE_PARSERS: tuple[Callable[[str], Any], ...] = (
    UUID,
    float,
    _parse_datetime,
    _parse_version,
)


def parse_range_value(text: str) -> Any:
    """Parse a range bound as a UUID, number, timestamp or dotted version.

    Naive timestamps are taken to be UTC.

    Raises:
        ValueError: If no interpretation fits.
    """
    for parser in _RANGE_VALUE_PARSERS:
        try:
            return parser(text)
        except (ValueError, TypeError):
            continue
    raise ValueError(f"Unsupported range value: {text!r}")


def parse_range(text: str) -> Range[Any]:
    """Parse a range string whose bounds share one of the supported value types.

    Both bounds are parsed with the first value parser that accepts both of
    them, so ``"[1;2.5.0)"`` is rejected rather than comparing a float with a
    version.

    Raises:
        RangeParseError: If ``text`` is not a valid range of a supported type.
    """
    match = _RANGE_PATTERN.match(text)
    if match is None:
        raise RangeParseError(text)
    for parser in _RANGE_VALUE_PARSERS:
        try:
            return Range.parse(text, parser)
        except RangeParseError:
            continue
    raise RangeParseError(text, "bounds are not of a supported type")
