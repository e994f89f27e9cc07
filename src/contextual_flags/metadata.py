"""Per-evaluation record of which variants were applied."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, get_type_hints

__all__ = [
    "FeatureMetadata",
    "FeatureMetadataItem",
    "find_metadata_attribute",
]


@dataclass(slots=True)
class FeatureMetadataItem:
    """The variant applied for one feature.

    Attributes:
        feature_name: Name of the feature.
        feature_provider: Name of the provider which supplied the feature.
        variant_id: Id of the applied variant.
        is_overridden: Whether an override provider forced the variant.
        override_provider_name: Name of that override provider.
    """

    feature_name: str
    feature_provider: str
    variant_id: str
    is_overridden: bool = False
    override_provider_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


@dataclass(slots=True)
class FeatureMetadata:
    """Ordered list of :class:`FeatureMetadataItem`, one per matched feature."""

    features: list[FeatureMetadataItem] = field(default_factory=list)

    def add(self, item: FeatureMetadataItem) -> None:
        self.features.append(item)

    def get(self, feature_name: str) -> FeatureMetadataItem | None:
        """Return the item for ``feature_name`` (case-insensitive), if any."""
        folded = feature_name.casefold()
        for item in self.features:
            if item.feature_name.casefold() == folded:
                return item
        return None

    def __iter__(self) -> Iterator[FeatureMetadataItem]:
        return iter(self.features)

    def __len__(self) -> int:
        return len(self.features)

    def __bool__(self) -> bool:
        return bool(self.features)

    def to_dict(self) -> dict[str, Any]:
        return {"features": [item.to_dict() for item in self.features]}


def find_metadata_attribute(options_type: type) -> str | None:
    """Name of the first attribute of ``options_type`` annotated as :class:`FeatureMetadata`."""
    try:
        hints = get_type_hints(options_type)
    except (NameError, TypeError):
        hints = getattr(options_type, "__annotations__", {})
    for name, hint in hints.items():
        if hint is FeatureMetadata:
            return name
        if isinstance(hint, str) and hint.replace(" ", "") in ("FeatureMetadata", "FeatureMetadata|None"):
            return name
        if FeatureMetadata in getattr(hint, "__args__", ()):
            return name
    return None
