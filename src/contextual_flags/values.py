"""Typed projections of context attribute values.

Every value a context pushes is converted exactly once into a
:class:`ContextValue`. The conversion dispatches on the concrete type of the
value, and the projections that filters need (casefolded text, float, items,
fields, parsed versions and timestamps) are computed up front or cached on
first use. Filters therefore never inspect raw Python types themselves.
"""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from functools import cached_property, singledispatch
from numbers import Real
from typing import Any
from uuid import UUID

from packaging.version import InvalidVersion, Version

from contextual_flags.types import ValueKind

__all__ = [
    "ContextValue",
    "padded_version_string",
    "to_context_value",
]

_VERSION_STRIP = re.compile(r"^v|\+.*$")
_VERSION_SPLIT = re.compile(r"[-.]")


def padded_version_string(text: str) -> str:
    """Normalise a version so that plain string comparison orders it correctly.

    Leading ``v`` and ``+build`` metadata are dropped, missing numeric
    segments are filled with ``0`` up to three, numeric segments are padded
    to width five and a release without a pre-release tag gets a trailing
    ``~`` so it sorts after its pre-releases::

        >>> padded_version_string("v1.2")
        '    1-    2-    0-~'
        >>> padded_version_string("1.2.3-beta") < padded_version_string("1.2.3")
        True
    """
    parts = _VERSION_SPLIT.split(_VERSION_STRIP.sub("", text.strip()))
    numeric = 0
    while numeric < len(parts) and parts[numeric].isdigit():
        numeric += 1
    if numeric < 3:
        parts[numeric:numeric] = ["0"] * (3 - numeric)
    if len(parts) == 3:
        parts.append("~")
    return "-".join(part.rjust(5, " ") if part.isdigit() else part for part in parts)


@dataclass(frozen=True, eq=False)
class ContextValue:
    """A context attribute value with precomputed projections.

    Attributes:
        raw: The original value as pushed by the context.
        kind: JSON-style type of the value.
        text: Text rendering used by string comparisons. Empty for null.
        number: Float projection for numbers and numeric strings, else ``None``.
        items: Element values for arrays, else ``None``.
        fields: Field values keyed by casefolded name for objects, else ``None``.
    """

    raw: Any
    kind: ValueKind
    text: str = ""
    number: float | None = None
    items: tuple[ContextValue, ...] | None = None
    fields: Mapping[str, ContextValue] | None = None

    @property
    def is_null(self) -> bool:
        return self.kind is ValueKind.NULL

    @property
    def is_scalar(self) -> bool:
        """Whether the value can take part in text comparisons."""
        return self.kind not in (ValueKind.NULL, ValueKind.ARRAY, ValueKind.OBJECT)

    @cached_property
    def folded(self) -> str:
        return self.text.casefold()

    @cached_property
    def padded_version(self) -> str:
        return padded_version_string(self.text)

    @cached_property
    def version(self) -> Version | None:
        if isinstance(self.raw, Version):
            return self.raw
        try:
            return Version(self.text)
        except InvalidVersion:
            return None

    @cached_property
    def timestamp(self) -> datetime | None:
        raw = self.raw
        if isinstance(raw, datetime):
            value = raw
        elif isinstance(raw, date):
            value = datetime(raw.year, raw.month, raw.day)
        else:
            try:
                value = datetime.fromisoformat(self.text)
            except ValueError:
                return None
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)

    @cached_property
    def uuid(self) -> UUID | None:
        if isinstance(self.raw, UUID):
            return self.raw
        try:
            return UUID(self.text)
        except ValueError:
            return None

    def coerce(self, target: type) -> Any:
        """Project the value onto ``target`` for range checks, or ``None``."""
        if target is float:
            return self.number
        if target is Version:
            return self.version
        if target is datetime:
            return self.timestamp
        if target is UUID:
            return self.uuid
        if target is str:
            return self.text if self.is_scalar else None
        return self.raw if isinstance(self.raw, target) else None

    def get_path(self, path: str) -> ContextValue | None:
        """Navigate dotted field names, e.g. ``"address.country"``."""
        current: ContextValue | None = self
        for segment in path.split("."):
            if current is None or current.fields is None:
                return None
            current = current.fields.get(segment.casefold())
        return current


_NULL = ContextValue(None, ValueKind.NULL)


def _format_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _parse_number(text: str) -> float | None:
    try:
        number = float(text)
    except ValueError:
        return None
    # inf and nan spellings are not numbers for filtering purposes
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


def _object_value(raw: Any, pairs: Any) -> ContextValue:
    fields: dict[str, ContextValue] = {}
    for key, item in pairs:
        fields.setdefault(str(key).casefold(), to_context_value(item))
    return ContextValue(raw, ValueKind.OBJECT, text=str(raw), fields=fields)


@singledispatch
def to_context_value(value: Any) -> ContextValue:
    """Convert a pushed context value into a :class:`ContextValue`."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        pairs = ((field.name, getattr(value, field.name)) for field in dataclasses.fields(value))
        return _object_value(value, pairs)
    return ContextValue(value, ValueKind.UNKNOWN, text=str(value))


@to_context_value.register(type(None))
def _(value: None) -> ContextValue:
    return _NULL


@to_context_value.register
def _(value: bool) -> ContextValue:
    return ContextValue(value, ValueKind.BOOLEAN, text="true" if value else "false")


@to_context_value.register(Real)
@to_context_value.register(Decimal)
def _(value: Any) -> ContextValue:
    number = float(value)
    return ContextValue(value, ValueKind.NUMBER, text=_format_number(value), number=number)


@to_context_value.register
def _(value: str) -> ContextValue:
    return ContextValue(value, ValueKind.STRING, text=value, number=_parse_number(value))


@to_context_value.register(list)
@to_context_value.register(tuple)
@to_context_value.register(set)
@to_context_value.register(frozenset)
def _(value: Any) -> ContextValue:
    items = tuple(to_context_value(item) for item in value)
    return ContextValue(value, ValueKind.ARRAY, text=", ".join(item.text for item in items), items=items)


@to_context_value.register(Mapping)
def _(value: Mapping[Any, Any]) -> ContextValue:
    return _object_value(value, value.items())


@to_context_value.register
def _(value: Enum) -> ContextValue:
    converted = to_context_value(value.value)
    return dataclasses.replace(converted, raw=value)


@to_context_value.register(datetime)
@to_context_value.register(date)
def _(value: date) -> ContextValue:
    return ContextValue(value, ValueKind.UNKNOWN, text=value.isoformat())


@to_context_value.register
def _(value: ContextValue) -> ContextValue:
    return value
