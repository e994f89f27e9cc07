"""In-memory feature provider."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from contextual_flags.models.feature import Feature

__all__ = ["MemoryFeatureProvider"]


class MemoryFeatureProvider:
    """Feature provider holding an immutable snapshot in memory.

    ``replace`` publishes a new snapshot by swapping a single reference, so
    evaluations in flight keep the snapshot they started with and never
    observe a partially updated list.

    Args:
        features: Initial features.
        name: Provider name, recorded in evaluation metadata.
    """

    def __init__(self, features: Iterable[Feature] = (), name: str = "Memory") -> None:
        self.name = name
        self._features: tuple[Feature, ...] = tuple(features)

    async def get_features(self) -> Sequence[Feature]:
        return self._features

    @property
    def features(self) -> tuple[Feature, ...]:
        return self._features

    def replace(self, features: Iterable[Feature]) -> None:
        """Publish a new snapshot."""
        self._features = tuple(features)

    def add(self, feature: Feature) -> None:
        """Publish a snapshot with ``feature`` appended, replacing one of the same name."""
        kept = tuple(item for item in self._features if item.name != feature.name)
        self._features = (*kept, feature)

    def remove(self, name: str) -> bool:
        """Publish a snapshot without the feature called ``name``."""
        kept = tuple(item for item in self._features if item.name != name)
        removed = len(kept) != len(self._features)
        self._features = kept
        return removed

    def __len__(self) -> int:
        return len(self._features)

    def __repr__(self) -> str:
        return f"MemoryFeatureProvider(name={self.name!r}, features={len(self._features)})"
