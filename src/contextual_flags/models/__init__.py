"""Data model for features, variants, filters and overrides."""

from __future__ import annotations

from contextual_flags.filtering.filters import Filter, FilterEntry, FilterGroup, GroupOperator
from contextual_flags.models.feature import Feature
from contextual_flags.models.override import VariantOverride
from contextual_flags.models.variant import Variant

__all__ = [
    "Feature",
    "Filter",
    "FilterEntry",
    "FilterGroup",
    "GroupOperator",
    "Variant",
    "VariantOverride",
]
