"""Context receivers used during evaluation."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from contextual_flags.context import populate_receiver
from contextual_flags.values import ContextValue, to_context_value

if TYPE_CHECKING:
    from contextual_flags.filtering.filters import FilterEntry

__all__ = [
    "FilteringContextReceiver",
    "is_identifier_name",
]


def is_identifier_name(name: str) -> bool:
    """Whether ``name`` qualifies as an allocation identifier (``Identifier`` or ``*Id``)."""
    folded = name.casefold()
    return folded == "identifier" or folded.endswith("id")


class FilteringContextReceiver:
    """Collects the attributes of one context for filtering and allocation.

    Each pushed value is converted once into a :class:`ContextValue`. Names
    are case-insensitive and a repeated name replaces the earlier value. The
    first non-blank ``Identifier``/``*Id`` attribute becomes the default
    allocation identifier.
    """

    __slots__ = ("_identifier", "_values")

    def __init__(self) -> None:
        self._values: dict[str, ContextValue] = {}
        self._identifier = ""

    @classmethod
    def from_context(cls, context: Any) -> FilteringContextReceiver:
        """Create a receiver populated from ``context``."""
        receiver = cls()
        populate_receiver(context, receiver)
        return receiver

    def receive(self, name: str, value: Any) -> None:
        converted = to_context_value(value)
        self._values[name.casefold()] = converted
        if not self._identifier and is_identifier_name(name) and converted.is_scalar and converted.text.strip():
            self._identifier = converted.text

    @property
    def identifier(self) -> str:
        """The default allocation identifier, or ``""`` when the context has none."""
        return self._identifier

    def get(self, name: str) -> ContextValue | None:
        """Look up a property, following dotted paths into object values."""
        folded = name.casefold()
        value = self._values.get(folded)
        if value is not None or "." not in name:
            return value
        head, _, rest = name.partition(".")
        root = self._values.get(head.casefold())
        return root.get_path(rest) if root is not None else None

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def satisfies(self, filters: Iterable[FilterEntry]) -> bool:
        """Whether every filter is satisfied by this context."""
        return all(entry.is_satisfied_by(self) for entry in filters)

    def allocation_value(self, allocation_unit: str | None = None) -> str:
        """The text to hash for allocation.

        Args:
            allocation_unit: Property to use instead of the default identifier.
                A missing or null property yields ``""``.
        """
        if not allocation_unit:
            return self._identifier
        value = self.get(allocation_unit)
        if value is None or value.is_null:
            return ""
        return value.text

    def __repr__(self) -> str:
        names = ", ".join(self._values)
        return f"FilteringContextReceiver({names})"
