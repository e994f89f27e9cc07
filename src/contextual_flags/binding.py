"""Binding merged configurations onto typed destinations.

Binding walks a merged configuration section and assigns matching values to
a destination object:

* attribute names match keys case-insensitively,
* values are converted to the annotated type of the attribute (or, without
  an annotation, to the type of its current value),
* nested mappings are bound recursively into nested objects,
* keys without a matching attribute are ignored,
* values that cannot be converted are logged and skipped.

Destinations can be dataclass instances (frozen ones are copied with
:func:`dataclasses.replace`), plain objects, mutable mappings or classes,
which are instantiated without arguments first.
"""

from __future__ import annotations

import dataclasses
import logging
import types
from collections.abc import Mapping, MutableMapping, Sequence
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, TypeVar, Union, get_args, get_origin, get_type_hints
from uuid import UUID

from contextual_flags.exceptions import BindingError
from contextual_flags.merging import get_section

__all__ = [
    "bind_configuration",
    "convert_value",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()
_TRUE = frozenset({"true", "1", "yes", "on"})
_FALSE = frozenset({"false", "0", "no", "off"})


def _convert_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        folded = value.strip().casefold()
        if folded in _TRUE:
            return True
        if folded in _FALSE:
            return False
    raise BindingError(f"Cannot convert {value!r} to bool")


def _convert_int(value: Any) -> int:
    if isinstance(value, bool):
        raise BindingError(f"Cannot convert {value!r} to int")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise BindingError(f"Cannot convert {value!r} to int")


def _convert_float(value: Any) -> float:
    if isinstance(value, bool):
        raise BindingError(f"Cannot convert {value!r} to float")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise BindingError(f"Cannot convert {value!r} to float") from None


def _convert_str(value: Any) -> str:
    if isinstance(value, (Mapping, list, tuple)):
        raise BindingError(f"Cannot convert {type(value).__name__} to str")
    if isinstance(value, bool):
        return "True" if value else "False"
    return str(value)


def _convert_enum(value: Any, enum_type: type[Enum]) -> Enum:
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        pass
    if isinstance(value, str):
        folded = value.strip().casefold()
        for member in enum_type:
            if member.name.casefold() == folded or str(member.value).casefold() == folded:
                return member
    raise BindingError(f"{value!r} is not a valid {enum_type.__name__}")


def _convert_parsed(value: Any, target: type) -> Any:
    if isinstance(value, target):
        return value
    try:
        if target is Decimal:
            return Decimal(str(value))
        if target is UUID:
            return UUID(str(value))
        if target is datetime:
            return datetime.fromisoformat(str(value))
        if target is date:
            return date.fromisoformat(str(value))
    except (ValueError, InvalidOperation):
        pass
    raise BindingError(f"Cannot convert {value!r} to {target.__name__}")


def _is_union(origin: Any) -> bool:
    return origin is Union or origin is types.UnionType


def _items(value: Any) -> list[Any]:
    if isinstance(value, Mapping):
        # configuration flattened from indexed keys ("0", "1", ...)
        if all(str(key).isdigit() for key in value):
            return [value[key] for key in sorted(value, key=lambda key: int(key))]
        raise BindingError("Cannot convert an object to a sequence")
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    raise BindingError(f"Cannot convert {value!r} to a sequence")


def convert_value(value: Any, target: Any, current: Any = _MISSING) -> Any:
    """Convert a configuration value to ``target``.

    Args:
        value: Value taken from the configuration.
        target: Type annotation to convert to. ``None`` or ``Any`` keeps the value.
        current: The destination's current value, bound into when ``value``
            is a mapping and the target is an object type.

    Raises:
        BindingError: If the value cannot be converted.
    """
    if target is None or target is Any:
        return value
    origin = get_origin(target)
    if _is_union(origin):
        options = [arg for arg in get_args(target) if arg is not type(None)]
        if value is None and len(options) != len(get_args(target)):
            return None
        errors = []
        for option in options:
            try:
                return convert_value(value, option, current)
            except BindingError as exc:
                errors.append(str(exc))
        raise BindingError("; ".join(errors) or f"Cannot convert {value!r}")
    if value is None:
        raise BindingError(f"Cannot assign null to {getattr(target, '__name__', target)}")
    if origin in (list, set, frozenset, tuple) or origin in (Sequence,):
        args = get_args(target)
        if origin is tuple and args and args[-1] is not Ellipsis:
            items = _items(value)
            if len(items) != len(args):
                raise BindingError(f"Expected {len(args)} items, got {len(items)}")
            return tuple(convert_value(item, arg) for item, arg in zip(items, args, strict=True))
        item_type = args[0] if args else None
        converted = [convert_value(item, item_type) for item in _items(value)]
        if origin is Sequence:
            return converted
        return origin(converted)
    if origin in (dict, Mapping, MutableMapping):
        if not isinstance(value, Mapping):
            raise BindingError(f"Cannot convert {value!r} to a mapping")
        key_type, value_type = get_args(target) or (None, None)
        return {convert_value(key, key_type): convert_value(item, value_type) for key, item in value.items()}
    if origin is not None:
        target = origin
    if not isinstance(target, type):
        return value
    if target is bool:
        return _convert_bool(value)
    if target is int:
        return _convert_int(value)
    if target is float:
        return _convert_float(value)
    if target is str:
        return _convert_str(value)
    if issubclass(target, Enum):
        return _convert_enum(value, target)
    if target in (Decimal, UUID, datetime, date):
        return _convert_parsed(value, target)
    if target in (list, tuple, set, frozenset):
        return target(_items(value))
    if target is dict:
        if not isinstance(value, Mapping):
            raise BindingError(f"Cannot convert {value!r} to a mapping")
        return dict(value)
    if isinstance(value, Mapping):
        destination = current if current is not _MISSING and current is not None else _instantiate(target)
        return _bind_object(value, destination)
    if isinstance(value, target):
        return value
    raise BindingError(f"Cannot convert {value!r} to {target.__name__}")


def _instantiate(target: type) -> Any:
    try:
        return target()
    except TypeError as exc:
        raise BindingError(f"Cannot create {target.__name__} without arguments: {exc}") from exc


def _type_hints(cls: type) -> dict[str, Any]:
    try:
        return get_type_hints(cls)
    except (NameError, TypeError):
        return {}


def _attribute_names(destination: Any, hints: Mapping[str, Any]) -> dict[str, str]:
    names: list[str] = []
    if dataclasses.is_dataclass(destination):
        names.extend(item.name for item in dataclasses.fields(destination))
    names.extend(hints)
    names.extend(getattr(destination, "__dict__", {}))
    attributes: dict[str, str] = {}
    for name in names:
        if not name.startswith("_"):
            attributes.setdefault(name.casefold(), name)
            attributes.setdefault(name.replace("_", "").casefold(), name)
    return attributes


def _bind_mapping(section: Mapping[str, Any], destination: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    existing = {str(key).casefold(): key for key in destination}
    for key, value in section.items():
        target_key = existing.get(str(key).casefold(), key)
        current = destination.get(target_key)
        if isinstance(value, Mapping) and isinstance(current, MutableMapping):
            _bind_mapping(value, current)
        else:
            destination[target_key] = value
    return destination


def _bind_object(section: Mapping[str, Any], destination: Any) -> Any:
    if isinstance(destination, MutableMapping):
        return _bind_mapping(section, destination)
    cls = type(destination)
    hints = _type_hints(cls)
    attributes = _attribute_names(destination, hints)
    frozen = dataclasses.is_dataclass(destination) and cls.__dataclass_params__.frozen  # type: ignore[attr-defined]
    changes: dict[str, Any] = {}
    for key, value in section.items():
        name = attributes.get(str(key).casefold()) or attributes.get(str(key).replace("_", "").casefold())
        if name is None:
            continue
        current = getattr(destination, name, None)
        target = hints.get(name)
        if target is None and current is not None:
            target = type(current)
        try:
            changes[name] = convert_value(value, target, current)
        except BindingError as exc:
            logger.warning("Skipping %s.%s: %s", cls.__name__, name, exc)
    if frozen:
        init_names = {item.name for item in dataclasses.fields(destination) if item.init}
        return dataclasses.replace(destination, **{name: value for name, value in changes.items() if name in init_names})
    for name, value in changes.items():
        try:
            setattr(destination, name, value)
        except AttributeError as exc:
            logger.warning("Skipping %s.%s: %s", cls.__name__, name, exc)
    return destination


def bind_configuration(configuration: Any, section: str | None, destination: T | type[T]) -> T:
    """Bind a section of a merged configuration onto ``destination``.

    Args:
        configuration: Merged configuration (usually a dict).
        section: ``:`` or ``.`` separated path. Empty binds the whole configuration.
        destination: Object to bind into, or a class to instantiate first.

    Returns:
        The bound object. Mutable destinations are modified in place and
        returned, frozen dataclasses are returned as updated copies. When the
        section does not resolve to an object the destination is returned
        unmodified.
    """
    if isinstance(destination, type):
        destination = _instantiate(destination)
    value = get_section(configuration, section)
    if not isinstance(value, Mapping):
        return destination  # type: ignore[return-value]
    return _bind_object(value, destination)
