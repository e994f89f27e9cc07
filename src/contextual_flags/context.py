"""Evaluation contexts.

A context is any object that can describe itself to a receiver by pushing
``(name, value)`` pairs. The resolver never introspects contexts beyond that,
so contexts can be dataclasses, mappings or hand written classes.

Example:
    Declaring a dataclass context::

        @options_context
        @dataclass(frozen=True)
        class RequestContext:
            user_id: str
            market: str
            age_group: int | None = None
"""

from __future__ import annotations

import dataclasses
import inspect
from collections.abc import Iterator, Mapping
from typing import Any, ClassVar, Protocol, TypeVar, get_origin, overload, runtime_checkable

__all__ = [
    "ContextReceiver",
    "DictionaryContext",
    "OptionsContext",
    "options_context",
    "populate_receiver",
]

C = TypeVar("C", bound=type)


@runtime_checkable
class ContextReceiver(Protocol):
    """Consumer of the attributes a context pushes."""

    def receive(self, name: str, value: Any) -> None:
        """Accept one attribute of the context."""
        ...


@runtime_checkable
class OptionsContext(Protocol):
    """Anything able to push its attributes into a :class:`ContextReceiver`."""

    def populate_receiver(self, receiver: ContextReceiver) -> None:
        """Push every declared attribute into ``receiver`` exactly once."""
        ...


class DictionaryContext(Mapping[str, Any]):
    """A context backed by a plain mapping.

    Args:
        values: Attribute names and values. The mapping is copied.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, Any] | None = None, /, **kwargs: Any) -> None:
        self._values: dict[str, Any] = {**(values or {}), **kwargs}

    def populate_receiver(self, receiver: ContextReceiver) -> None:
        for name, value in self._values.items():
            receiver.receive(name, value)

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"DictionaryContext({self._values!r})"


def _declared_fields(cls: type, exclude: frozenset[str]) -> tuple[str, ...]:
    if dataclasses.is_dataclass(cls):
        names = [item.name for item in dataclasses.fields(cls)]
    else:
        names = []
        for klass in reversed(cls.__mro__):
            for name, annotation in inspect.get_annotations(klass).items():
                if name in names:
                    continue
                if annotation is ClassVar or get_origin(annotation) is ClassVar:
                    continue
                if isinstance(annotation, str) and annotation.startswith(("ClassVar", "typing.ClassVar")):
                    continue
                names.append(name)
    return tuple(name for name in names if not name.startswith("_") and name not in exclude)


@overload
def options_context(cls: C, /) -> C: ...


@overload
def options_context(*, exclude: tuple[str, ...] = ()) -> Any: ...


def options_context(cls: type | None = None, /, *, exclude: tuple[str, ...] = ()) -> Any:
    """Class decorator generating ``populate_receiver`` from the declared fields.

    The field list is computed once when the class is decorated. Apply it on
    top of ``@dataclass`` so the dataclass fields are already known.

    Args:
        cls: The class to decorate.
        exclude: Field names that should not be pushed.
    """

    def decorate(target: type) -> type:
        fields = _declared_fields(target, frozenset(exclude))

        def populate_receiver(self: Any, receiver: ContextReceiver) -> None:
            for name in fields:
                receiver.receive(name, getattr(self, name, None))

        target.__options_context_fields__ = fields  # type: ignore[attr-defined]
        target.populate_receiver = populate_receiver  # type: ignore[attr-defined]
        return target

    if cls is None:
        return decorate
    return decorate(cls)


def populate_receiver(context: Any, receiver: ContextReceiver) -> None:
    """Push the attributes of ``context`` into ``receiver``.

    Accepts :class:`OptionsContext` implementations and plain mappings.
    ``None`` pushes nothing.

    Raises:
        TypeError: If ``context`` is neither.
    """
    if context is None:
        return
    if isinstance(context, OptionsContext):
        context.populate_receiver(receiver)
    elif isinstance(context, Mapping):
        for name, value in context.items():
            receiver.receive(str(name), value)
    else:
        raise TypeError(f"{type(context).__name__} is not an options context")
