"""Feature and override providers."""

from __future__ import annotations

from contextual_flags.providers.base import FeatureProvider, VariantOverrideProvider
from contextual_flags.providers.builder import FeatureBuilder, FilterBuilder
from contextual_flags.providers.configuration import ConfigurationFeatureProvider, load_features
from contextual_flags.providers.memory import MemoryFeatureProvider
from contextual_flags.providers.overrides import OverrideRule, RuleVariantOverride

__all__ = [
    "ConfigurationFeatureProvider",
    "FeatureBuilder",
    "FeatureProvider",
    "FilterBuilder",
    "MemoryFeatureProvider",
    "OverrideRule",
    "RuleVariantOverride",
    "VariantOverrideProvider",
    "load_features",
]
