"""Variant override model."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["VariantOverride"]


@dataclass(frozen=True, slots=True)
class VariantOverride:
    """Forces the selection of a specific variant.

    Attributes:
        variant_id: Id of the variant to select. Ignored when the feature has no such variant.
        provider_name: Name of the override provider, recorded in metadata.
    """

    variant_id: str
    provider_name: str
