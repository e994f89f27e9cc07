"""Merging of variant configurations.

Selected variants each contribute a JSON-shaped configuration. They are
folded in selection order, key by key:

* a key defined once keeps its value,
* a key defined only as objects is merged recursively,
* a key defined only as arrays concatenates them,
* anything else lets the last definition win.

Once a key has fallen back to "last wins" it stays that way even if later
definitions are objects again. Keys are compared case-insensitively and keep
the spelling they were first seen with.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from enum import Enum, auto
from typing import Any

__all__ = [
    "get_section",
    "merge_configurations",
    "to_configuration_dict",
]

_SECTION_SEPARATOR = re.compile(r"[:.]")


class _MergeKind(Enum):
    SINGLE = auto()
    DEEP_MERGE = auto()
    ARRAY_CONCAT = auto()
    LAST_WINS = auto()


def _is_array(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


class _Entry:
    __slots__ = ("key", "kind", "values")

    def __init__(self, key: str, value: Any) -> None:
        self.key = key
        self.kind = _MergeKind.SINGLE
        self.values = [value]

    def add(self, value: Any) -> None:
        if self.kind is _MergeKind.LAST_WINS:
            self.values = [value]
        elif isinstance(value, Mapping) and self.kind in (_MergeKind.SINGLE, _MergeKind.DEEP_MERGE) and all(
            isinstance(existing, Mapping) for existing in self.values
        ):
            self.kind = _MergeKind.DEEP_MERGE
            self.values.append(value)
        elif _is_array(value) and self.kind in (_MergeKind.SINGLE, _MergeKind.ARRAY_CONCAT) and all(
            _is_array(existing) for existing in self.values
        ):
            self.kind = _MergeKind.ARRAY_CONCAT
            self.values.append(value)
        else:
            self.kind = _MergeKind.LAST_WINS
            self.values = [value]

    def resolve(self) -> Any:
        if self.kind is _MergeKind.DEEP_MERGE:
            return _merge_objects(self.values)
        if self.kind is _MergeKind.ARRAY_CONCAT:
            return [_clone(item) for array in self.values for item in array]
        return _clone(self.values[-1])


def _clone(value: Any) -> Any:
    if isinstance(value, Mapping):
        return _merge_objects([value])
    if _is_array(value):
        return [_clone(item) for item in value]
    return value


def _merge_objects(objects: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    entries: dict[str, _Entry] = {}
    for obj in objects:
        for key, value in obj.items():
            folded = str(key).casefold()
            entry = entries.get(folded)
            if entry is None:
                entries[folded] = _Entry(str(key), value)
            else:
                entry.add(value)
    return {entry.key: entry.resolve() for entry in entries.values()}


def merge_configurations(configurations: Iterable[Any]) -> dict[str, Any] | None:
    """Fold configurations in order into a new configuration.

    Only object (mapping) configurations take part, anything else is
    ignored. The inputs are never modified.

    Returns:
        The merged configuration, or ``None`` when no configuration is an object.
    """
    objects = [configuration for configuration in configurations if isinstance(configuration, Mapping)]
    if not objects:
        return None
    return _merge_objects(objects)


def _lookup(mapping: Mapping[str, Any], key: str) -> tuple[bool, Any]:
    if key in mapping:
        return True, mapping[key]
    folded = key.casefold()
    for candidate, value in mapping.items():
        if str(candidate).casefold() == folded:
            return True, value
    return False, None


def get_section(configuration: Any, section: str | None) -> Any:
    """Navigate to a section by a ``:`` or ``.`` separated path, case-insensitively.

    An empty path returns ``configuration`` itself. Array elements can be
    addressed by index.

    Returns:
        The section value, or ``None`` if any segment does not resolve.
    """
    if not section:
        return configuration
    current = configuration
    for segment in _SECTION_SEPARATOR.split(section):
        if isinstance(current, Mapping):
            found, current = _lookup(current, segment)
            if not found:
                return None
        elif _is_array(current) and segment.isdigit() and int(segment) < len(current):
            current = current[int(segment)]
        else:
            return None
    return current


def _scalar_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _flatten(value: Any, path: str, result: dict[str, str | None]) -> None:
    if isinstance(value, Mapping):
        for key, item in value.items():
            _flatten(item, f"{path}:{key}" if path else str(key), result)
    elif _is_array(value):
        for index, item in enumerate(value):
            _flatten(item, f"{path}:{index}" if path else str(index), result)
    elif path:
        result[path] = _scalar_text(value)


def to_configuration_dict(configuration: Any) -> dict[str, str | None]:
    """Flatten a configuration into colon-delimited keys and text values.

    Example:
        ``{"A": {"B": [1, true]}}`` becomes ``{"A:B:0": "1", "A:B:1": "True"}``.
    """
    result: dict[str, str | None] = {}
    _flatten(configuration, "", result)
    return result
