"""Provider protocols consumed by the resolver."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from contextual_flags.models.feature import Feature
    from contextual_flags.models.override import VariantOverride

__all__ = [
    "FeatureProvider",
    "VariantOverrideProvider",
]


@runtime_checkable
class FeatureProvider(Protocol):
    """Source of features.

    Implementations must return an immutable snapshot. Publishing changes
    means swapping the snapshot, never mutating features already returned.
    """

    name: str

    async def get_features(self) -> Sequence[Feature]:
        """Return the current features in evaluation order."""
        ...


@runtime_checkable
class VariantOverrideProvider(Protocol):
    """Forces variants for specific contexts, e.g. for testers or QA."""

    name: str

    async def try_override(self, feature: Feature, context: Any) -> VariantOverride | None:
        """Return an override for ``feature`` in ``context``, or ``None``."""
        ...
