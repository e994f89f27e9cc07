"""Feature model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from contextual_flags.filtering.filters import FilterEntry
    from contextual_flags.models.variant import Variant

__all__ = ["Feature"]


@dataclass(frozen=True, slots=True)
class Feature:
    """A named feature offering one or more variants.

    Features are immutable. Providers publish changes by building new
    ``Feature`` objects and swapping their snapshot.

    Attributes:
        name: Feature name, unique within its provider.
        provider_name: Name of the provider that produced the feature.
        variants: Candidate variants in declaration order.
        enabled: Disabled features are skipped entirely.
        salt: Allocation salt. Defaults to ``"<provider_name>_<name>"``.
        allocation_unit: Context property to hash. ``None`` uses the resolver default.
        filters: Conditions gating the whole feature.
    """

    name: str
    provider_name: str = ""
    variants: tuple[Variant, ...] = ()
    enabled: bool = True
    salt: str = field(default="")
    allocation_unit: str | None = None
    filters: tuple[FilterEntry, ...] = ()

    def __post_init__(self) -> None:
        if not self.salt:
            object.__setattr__(self, "salt", f"{self.provider_name}_{self.name}")
        if not isinstance(self.variants, tuple):
            object.__setattr__(self, "variants", tuple(self.variants))
        if not isinstance(self.filters, tuple):
            object.__setattr__(self, "filters", tuple(self.filters))
        ids = [variant.id for variant in self.variants]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Feature {self.name!r} has duplicate variant ids")

    def get_variant(self, variant_id: str) -> Variant | None:
        """Return the variant with ``variant_id`` or ``None``."""
        for variant in self.variants:
            if variant.id == variant_id:
                return variant
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert the feature to a dictionary for logging and inspection."""
        return {
            "name": self.name,
            "provider_name": self.provider_name,
            "enabled": self.enabled,
            "salt": self.salt,
            "allocation_unit": self.allocation_unit,
            "filter_count": len(self.filters),
            "variants": [variant.to_dict() for variant in self.variants],
        }
