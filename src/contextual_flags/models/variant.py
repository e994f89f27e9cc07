"""Variant model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from contextual_flags.ranges import Allocation

if TYPE_CHECKING:
    from contextual_flags.filtering.filters import FilterEntry
    from contextual_flags.hashing import AllocationHash

__all__ = ["Variant"]


@dataclass(frozen=True, slots=True)
class Variant:
    """One alternative configuration of a feature.

    Attributes:
        id: Identifier, unique within the owning feature.
        allocation: Share of the allocation space this variant covers.
        configuration: JSON-shaped settings contributed when selected.
        filters: Conditions on the context that must all hold.
        priority: Lower wins among matching variants, ``None`` sorts last.
        allocation_unit: Property hashed for this variant instead of the feature's.
        allocation_salt: Salt used for this variant instead of the feature's.
        allocation_hash: Hash used for this variant instead of the resolver's.
    """

    id: str
    allocation: Allocation = field(default_factory=Allocation.full)
    configuration: Any = None
    filters: tuple[FilterEntry, ...] = ()
    priority: int | None = None
    allocation_unit: str | None = None
    allocation_salt: str | None = None
    allocation_hash: AllocationHash | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.filters, tuple):
            object.__setattr__(self, "filters", tuple(self.filters))

    @property
    def filter_count(self) -> int:
        return len(self.filters)

    def to_dict(self) -> dict[str, Any]:
        """Convert the variant to a dictionary for logging and inspection."""
        return {
            "id": self.id,
            "allocation": str(self.allocation),
            "configuration": self.configuration,
            "filter_count": self.filter_count,
            "priority": self.priority,
            "allocation_unit": self.allocation_unit,
            "allocation_salt": self.allocation_salt,
            "allocation_hash": getattr(self.allocation_hash, "name", None),
        }
