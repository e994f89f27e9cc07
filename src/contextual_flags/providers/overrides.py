"""Rule based variant overrides.

Typical use is pinning testers or internal users to a variant::

    overrides = RuleVariantOverride(name="QA")
    overrides.add("NewCheckout", "B", property_name="UserId", values=["qa-1", "qa-2"])
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from contextual_flags.filtering.conditions import InSet
from contextual_flags.filtering.filters import Filter, FilterEntry
from contextual_flags.models.override import VariantOverride
from contextual_flags.receivers import FilteringContextReceiver

if TYPE_CHECKING:
    from contextual_flags.models.feature import Feature

__all__ = [
    "OverrideRule",
    "RuleVariantOverride",
]


@dataclass(frozen=True, slots=True)
class OverrideRule:
    """Select ``variant_id`` of ``feature_name`` when every filter matches.

    A rule without filters applies to every context.
    """

    feature_name: str
    variant_id: str
    filters: tuple[FilterEntry, ...] = ()

    def applies_to(self, feature: Feature) -> bool:
        return self.feature_name.casefold() == feature.name.casefold()


class RuleVariantOverride:
    """Override provider evaluating an ordered list of :class:`OverrideRule`.

    The first rule for the feature whose filters match wins. Rules may name
    variants the feature does not have; the resolver ignores such overrides.
    """

    def __init__(self, rules: Iterable[OverrideRule] = (), name: str = "Overrides") -> None:
        self.name = name
        self._rules: tuple[OverrideRule, ...] = tuple(rules)

    @property
    def rules(self) -> tuple[OverrideRule, ...]:
        return self._rules

    def add(
        self,
        feature_name: str,
        variant_id: str,
        *,
        property_name: str | None = None,
        values: Iterable[Any] = (),
        filters: Iterable[FilterEntry] = (),
    ) -> RuleVariantOverride:
        """Append a rule, optionally matching ``property_name`` against ``values``."""
        entries = list(filters)
        if property_name is not None:
            entries.append(Filter(property_name, InSet(tuple(str(value) for value in values))))
        self._rules = (*self._rules, OverrideRule(feature_name, variant_id, tuple(entries)))
        return self

    def clear(self) -> None:
        self._rules = ()

    async def try_override(self, feature: Feature, context: Any) -> VariantOverride | None:
        candidates = [rule for rule in self._rules if rule.applies_to(feature)]
        if not candidates:
            return None
        receiver = FilteringContextReceiver.from_context(context)
        for rule in candidates:
            if receiver.satisfies(rule.filters):
                return VariantOverride(rule.variant_id, self.name)
        return None

    def __repr__(self) -> str:
        return f"RuleVariantOverride(name={self.name!r}, rules={len(self._rules)})"
