"""Property filters and filter groups."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Protocol, TypeAlias

from contextual_flags.filtering.conditions import FilterCondition, Never

if TYPE_CHECKING:
    from contextual_flags.values import ContextValue

__all__ = [
    "Filter",
    "FilterEntry",
    "FilterGroup",
    "GroupOperator",
    "PropertySource",
]


class PropertySource(Protocol):
    """Read access to context properties by name."""

    def get(self, name: str) -> ContextValue | None: ...


@dataclass(frozen=True, slots=True)
class Filter:
    """A condition applied to one named context property.

    Attributes:
        property_name: Case-insensitive property name, dotted paths allowed.
        condition: The condition the property value must satisfy.
    """

    property_name: str
    condition: FilterCondition

    def is_satisfied_by(self, source: PropertySource) -> bool:
        return self.condition.evaluate(source.get(self.property_name))

    @classmethod
    def never(cls, property_name: str) -> Filter:
        return cls(property_name, Never())


class GroupOperator(str, Enum):
    """How the members of a :class:`FilterGroup` are combined."""

    AND = "and"
    OR = "or"
    NOR = "nor"
    NOT = "not"


@dataclass(frozen=True, slots=True)
class FilterGroup:
    """Combines filters spanning several properties.

    ``AND``, ``OR`` and ``NOR`` groups with no members are never satisfied.
    A ``NOT`` group negates the conjunction of its members.
    """

    operator: GroupOperator
    members: tuple[FilterEntry, ...]

    def is_satisfied_by(self, source: PropertySource) -> bool:
        if not self.members:
            return False
        match self.operator:
            case GroupOperator.AND:
                return all(member.is_satisfied_by(source) for member in self.members)
            case GroupOperator.OR:
                return any(member.is_satisfied_by(source) for member in self.members)
            case GroupOperator.NOR:
                return not any(member.is_satisfied_by(source) for member in self.members)
            case GroupOperator.NOT:
                return not all(member.is_satisfied_by(source) for member in self.members)
        return False

    @classmethod
    def any_of(cls, members: Sequence[FilterEntry]) -> FilterGroup:
        return cls(GroupOperator.OR, tuple(members))

    @classmethod
    def all_of(cls, members: Sequence[FilterEntry]) -> FilterGroup:
        return cls(GroupOperator.AND, tuple(members))


FilterEntry: TypeAlias = "Filter | FilterGroup"
