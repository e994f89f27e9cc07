"""contextual-flags: contextual feature flags and experiments.

Features offer variants gated by deterministic traffic allocation and
filters on caller-supplied context attributes. The resolver selects the
applicable variants per context and merges their settings.

Example:
    Basic usage::

        from contextual_flags import ConfigurationFeatureProvider, DictionaryContext, VariantResolver

        provider = ConfigurationFeatureProvider(
            {"Banner": {"Variants": {"Blue": {"Allocation": "50%", "Settings": {"Banner": {"Color": "blue"}}}}}}
        )
        resolver = VariantResolver([provider])
        result = await resolver.evaluate_details(DictionaryContext(UserId="user-123"))
        color = result.get_section("Banner:Color")
"""

from __future__ import annotations

from contextual_flags.binding import bind_configuration, convert_value
from contextual_flags.cache import CacheStats, MergedConfigurationCache
from contextual_flags.config import ResolverConfig
from contextual_flags.context import (
    ContextReceiver,
    DictionaryContext,
    OptionsContext,
    options_context,
    populate_receiver,
)
from contextual_flags.exceptions import (
    AllocationError,
    BindingError,
    ConditionParseError,
    ConfigurationError,
    ContextualFlagsError,
    RangeParseError,
)
from contextual_flags.filtering import (
    Filter,
    FilterCondition,
    FilterGroup,
    GroupOperator,
    parse_condition,
    parse_filters,
    parse_literal,
    parse_literal_filters,
)
from contextual_flags.hashing import (
    AllocationHash,
    FnvHashV1,
    FnvHashV2,
    XxHashAllocation,
    compute_variant_hash,
    get_allocation_hash,
)
from contextual_flags.hooks import EvaluationHook
from contextual_flags.merging import get_section, merge_configurations, to_configuration_dict
from contextual_flags.metadata import FeatureMetadata, FeatureMetadataItem
from contextual_flags.models import Feature, Variant, VariantOverride
from contextual_flags.providers import (
    ConfigurationFeatureProvider,
    FeatureBuilder,
    FeatureProvider,
    FilterBuilder,
    MemoryFeatureProvider,
    OverrideRule,
    RuleVariantOverride,
    VariantOverrideProvider,
    load_features,
)
from contextual_flags.ranges import Allocation, Range, parse_range
from contextual_flags.receivers import FilteringContextReceiver
from contextual_flags.resolver import VariantResolver
from contextual_flags.results import EvaluationResult, ProviderFailure
from contextual_flags.types import ComparisonOperator, RangeType, ValueKind
from contextual_flags.values import ContextValue, to_context_value

__version__ = "0.1.0"

__all__ = [
    "Allocation",
    "AllocationError",
    "AllocationHash",
    "BindingError",
    "CacheStats",
    "ComparisonOperator",
    "ConditionParseError",
    "ConfigurationError",
    "ConfigurationFeatureProvider",
    "ContextReceiver",
    "ContextValue",
    "ContextualFlagsError",
    "DictionaryContext",
    "EvaluationHook",
    "EvaluationResult",
    "Feature",
    "FeatureBuilder",
    "FeatureMetadata",
    "FeatureMetadataItem",
    "FeatureProvider",
    "Filter",
    "FilterBuilder",
    "FilterCondition",
    "FilterGroup",
    "FilteringContextReceiver",
    "FnvHashV1",
    "FnvHashV2",
    "GroupOperator",
    "MemoryFeatureProvider",
    "MergedConfigurationCache",
    "OptionsContext",
    "OverrideRule",
    "ProviderFailure",
    "Range",
    "RangeParseError",
    "RangeType",
    "ResolverConfig",
    "RuleVariantOverride",
    "ValueKind",
    "Variant",
    "VariantOverride",
    "VariantOverrideProvider",
    "VariantResolver",
    "XxHashAllocation",
    "__version__",
    "bind_configuration",
    "compute_variant_hash",
    "convert_value",
    "get_allocation_hash",
    "get_section",
    "load_features",
    "merge_configurations",
    "options_context",
    "parse_condition",
    "parse_filters",
    "parse_literal",
    "parse_literal_filters",
    "parse_range",
    "populate_receiver",
    "to_configuration_dict",
    "to_context_value",
]
