"""Code-first feature builder.

Example:
    Building a rollout and an experiment::

        provider = MemoryFeatureProvider(name="App")
        (
            FeatureBuilder("NewCheckout", provider=provider)
            .filter("Market").matches("US").matches("CA").save()
            .rollout(25, {"Checkout": {"Version": 2}})
            .save()
        )
        FeatureBuilder("Banner", provider=provider).ab_experiment('{"Color": "red"}', '{"Color": "blue"}').save()
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from contextual_flags.filtering.conditions import FilterCondition, Never, Or, RangeCondition, Regex, StringEquals
from contextual_flags.filtering.filters import Filter, FilterEntry
from contextual_flags.models.feature import Feature
from contextual_flags.models.variant import Variant
from contextual_flags.ranges import Allocation, Range, parse_range
from contextual_flags.types import RangeType

if TYPE_CHECKING:
    from contextual_flags.providers.memory import MemoryFeatureProvider

__all__ = [
    "FeatureBuilder",
    "FilterBuilder",
]


def _configuration(value: Any) -> Any:
    if isinstance(value, (str, bytes, bytearray)):
        return json.loads(value)
    return value


class FilterBuilder:
    """Collects alternatives for one property filter; any of them may match."""

    def __init__(self, feature_builder: FeatureBuilder, property_name: str) -> None:
        self._feature_builder = feature_builder
        self.property_name = property_name
        self._conditions: list[FilterCondition] = []

    def matches(self, value: str) -> FilterBuilder:
        """Case-insensitive exact match."""
        self._conditions.append(StringEquals(value))
        return self

    def regex_matches(self, pattern: str) -> FilterBuilder:
        """Case-insensitive regular expression search."""
        self._conditions.append(Regex(pattern))
        return self

    def in_range(self, value_range: Range[Any] | str) -> FilterBuilder:
        """Value within a range, given as :class:`Range` or a range string."""
        if isinstance(value_range, str):
            value_range = parse_range(value_range)
        self._conditions.append(RangeCondition(value_range))
        return self

    def condition(self, condition: FilterCondition) -> FilterBuilder:
        """Add any prebuilt condition."""
        self._conditions.append(condition)
        return self

    def build(self) -> Filter:
        if not self._conditions:
            return Filter(self.property_name, Never())
        if len(self._conditions) == 1:
            return Filter(self.property_name, self._conditions[0])
        return Filter(self.property_name, Or(tuple(self._conditions)))

    def save(self) -> FeatureBuilder:
        """Attach the filter to the feature and return the feature builder."""
        self._feature_builder._filters.append(self.build())
        return self._feature_builder


class FeatureBuilder:
    """Fluent builder producing an immutable :class:`Feature`.

    Args:
        name: Feature name.
        provider_name: Provider name used in the default salt and metadata.
            Defaults to the name of ``provider`` or ``"Builder"``.
        provider: When given, :meth:`save` publishes the feature there.
    """

    def __init__(
        self,
        name: str,
        provider_name: str | None = None,
        *,
        provider: MemoryFeatureProvider | None = None,
    ) -> None:
        self.name = name
        self.provider_name = provider_name or (provider.name if provider is not None else "Builder")
        self._provider = provider
        self._variants: list[Variant] = []
        self._filters: list[FilterEntry] = []
        self._salt: str | None = None
        self._allocation_unit: str | None = None
        self._enabled = True

    @property
    def default_salt(self) -> str:
        return f"{self.provider_name}_{self.name}"

    def salt(self, salt: str) -> FeatureBuilder:
        self._salt = salt
        return self

    def allocation_unit(self, property_name: str) -> FeatureBuilder:
        self._allocation_unit = property_name
        return self

    def enabled(self, enabled: bool = True) -> FeatureBuilder:
        self._enabled = enabled
        return self

    def filter(self, property_name: str) -> FilterBuilder:
        """Start a feature-level filter on ``property_name``."""
        return FilterBuilder(self, property_name)

    def variant(
        self,
        variant_id: str,
        configuration: Any = None,
        *,
        allocation: Allocation | str | None = None,
        filters: tuple[FilterEntry, ...] = (),
        priority: int | None = None,
        allocation_unit: str | None = None,
    ) -> FeatureBuilder:
        """Add a variant. ``configuration`` may be a JSON string."""
        if isinstance(allocation, str):
            allocation = Allocation.parse(allocation)
        self._variants.append(
            Variant(
                id=variant_id,
                allocation=allocation or Allocation.full(),
                configuration=_configuration(configuration),
                filters=tuple(filters),
                priority=priority,
                allocation_unit=allocation_unit,
            )
        )
        return self

    def rollout(self, percentage: float, configuration: Any, allocation_unit: str | None = None) -> FeatureBuilder:
        """Apply ``configuration`` to the first ``percentage`` percent of the population."""
        return self.variant(
            f"{self.name}:Rollout_{len(self._variants)}",
            configuration,
            allocation=Allocation.percentage(percentage),
            allocation_unit=allocation_unit,
        )

    def ab_experiment(
        self, configuration_a: Any, configuration_b: Any, allocation_unit: str | None = None
    ) -> FeatureBuilder:
        """Split the population evenly between two configurations."""
        index = len(self._variants)
        self.variant(
            f"{self.name}:A_{index}",
            configuration_a,
            allocation=Allocation.between(0, 0.5, RangeType.INCLUDE_START),
            allocation_unit=allocation_unit,
        )
        return self.variant(
            f"{self.name}:B_{index + 1}",
            configuration_b,
            allocation=Allocation.between(0.5, 1, RangeType.INCLUDE_BOTH),
            allocation_unit=allocation_unit,
        )

    def build(self) -> Feature:
        return Feature(
            name=self.name,
            provider_name=self.provider_name,
            variants=tuple(self._variants),
            enabled=self._enabled,
            salt=self._salt or self.default_salt,
            allocation_unit=self._allocation_unit,
            filters=tuple(self._filters),
        )

    def save(self) -> Feature:
        """Build the feature and publish it to the attached provider."""
        feature = self.build()
        if self._provider is None:
            raise RuntimeError("FeatureBuilder.save() requires a provider, use build() instead")
        self._provider.add(feature)
        return feature
