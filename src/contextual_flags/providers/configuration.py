"""Features loaded from an already parsed configuration mapping.

Reading and parsing files is left to the application. This module turns the
resulting mapping into features::

    {
        "Labeler": {
            "Enabled": true,
            "Salt": "abcdef",
            "AllocationUnit": "SessionId",
            "Filters": {"Market": ["US", "UK"]},
            "Variants": {
                "A": {"Allocation": "[0;0.5)", "Settings": {"Label": "M"}},
                "B": {"Allocation": "50%", "Priority": 1, "Settings": {"Label": "L"}}
            }
        }
    }

Keys are case-insensitive. A variant whose allocation cannot be parsed, or
whose percentage is not positive, is skipped with a warning.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from contextual_flags.exceptions import AllocationError, ConfigurationError, RangeParseError
from contextual_flags.filtering.literals import parse_literal_filters
from contextual_flags.hashing import AllocationHash, get_allocation_hash
from contextual_flags.models.feature import Feature
from contextual_flags.models.variant import Variant
from contextual_flags.ranges import Allocation

__all__ = [
    "ConfigurationFeatureProvider",
    "load_features",
]

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER_NAME = "Configuration"


def _get(section: Mapping[str, Any], key: str, default: Any = None) -> Any:
    if key in section:
        return section[key]
    folded = key.casefold()
    for candidate, value in section.items():
        if str(candidate).casefold() == folded:
            return value
    return default


def _as_bool(value: Any, *, feature: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ConfigurationError(f"Enabled must be a boolean, got {value!r}", feature=feature)


def _as_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_mapping(value: Any, what: str, *, feature: str, variant: str | None = None) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"{what} must be an object, got {type(value).__name__}", feature=feature, variant=variant)
    return value


def _hash(value: Any, *, feature: str, variant: str | None = None) -> AllocationHash | None:
    if value is None:
        return None
    try:
        return get_allocation_hash(value)
    except KeyError as exc:
        raise ConfigurationError(str(exc.args[0]), feature=feature, variant=variant) from exc


def _parse_allocation(value: Any, *, feature: str, variant: str) -> Allocation | None:
    text = _as_str(value)
    if text is None:
        logger.warning("Variant %s of feature %s has no allocation and is skipped", variant, feature)
        return None
    if text.endswith("%"):
        try:
            percentage = float(text[:-1])
        except ValueError:
            percentage = None
        if percentage is None or percentage <= 0:
            logger.warning("Variant %s of feature %s has unusable allocation %r and is skipped", variant, feature, text)
            return None
    try:
        return Allocation.parse(text)
    except RangeParseError:
        logger.warning("Variant %s of feature %s has unusable allocation %r and is skipped", variant, feature, text)
        return None
    except AllocationError as exc:
        raise ConfigurationError(f"Allocation must be a range between 0 and 1: {exc}", feature=feature, variant=variant) from exc


def _parse_priority(value: Any, *, feature: str, variant: str) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Priority must be an integer, got {value!r}", feature=feature, variant=variant) from None


def _load_variant(
    feature: str, variant_id: str, section: Any, default_hash: AllocationHash | None
) -> Variant | None:
    section = _as_mapping(section, "Variant", feature=feature, variant=variant_id)
    allocation = _parse_allocation(_get(section, "Allocation"), feature=feature, variant=variant_id)
    if allocation is None:
        return None
    filters = _as_mapping(_get(section, "Filters"), "Filters", feature=feature, variant=variant_id)
    return Variant(
        id=variant_id,
        allocation=allocation,
        configuration=_get(section, "Settings"),
        filters=parse_literal_filters(filters),
        priority=_parse_priority(_get(section, "Priority"), feature=feature, variant=variant_id),
        allocation_unit=_as_str(_get(section, "AllocationUnit")),
        allocation_salt=_as_str(_get(section, "AllocationSalt")),
        allocation_hash=_hash(_get(section, "AllocationHash"), feature=feature, variant=variant_id) or default_hash,
    )


def _load_feature(name: str, section: Any, provider_name: str) -> Feature:
    section = _as_mapping(section, "Feature", feature=name)
    variants_section = _as_mapping(_get(section, "Variants"), "Variants", feature=name)
    feature_hash = _hash(_get(section, "AllocationHash"), feature=name)
    variants = []
    for variant_id, variant_section in variants_section.items():
        variant = _load_variant(name, str(variant_id), variant_section, feature_hash)
        if variant is not None:
            variants.append(variant)
    filters = _as_mapping(_get(section, "Filters"), "Filters", feature=name)
    enabled = _get(section, "Enabled")
    return Feature(
        name=name,
        provider_name=provider_name,
        variants=tuple(variants),
        enabled=True if enabled is None else _as_bool(enabled, feature=name),
        salt=_as_str(_get(section, "Salt")) or f"{provider_name}_{name}",
        allocation_unit=_as_str(_get(section, "AllocationUnit")),
        filters=parse_literal_filters(filters),
    )


def load_features(section: Mapping[str, Any], provider_name: str = DEFAULT_PROVIDER_NAME) -> list[Feature]:
    """Load features from a configuration mapping.

    A feature name repeated with different casing is only loaded once.

    Args:
        section: Mapping of feature name to feature settings.
        provider_name: Provider name recorded on every feature.

    Raises:
        ConfigurationError: If the mapping is structurally invalid or an
            allocation lies outside the unit interval.
    """
    if not isinstance(section, Mapping):
        raise ConfigurationError(f"Features section must be an object, got {type(section).__name__}")
    features: list[Feature] = []
    seen: set[str] = set()
    for name, feature_section in section.items():
        folded = str(name).casefold()
        if folded in seen:
            logger.warning("Feature %s is defined more than once, keeping the first definition", name)
            continue
        seen.add(folded)
        features.append(_load_feature(str(name), feature_section, provider_name))
    logger.debug("Loaded %d features from configuration provider %s", len(features), provider_name)
    return features


class ConfigurationFeatureProvider:
    """Feature provider backed by a configuration mapping.

    Call :meth:`reload` with a new mapping to publish a new snapshot, e.g.
    from a file watcher.
    """

    def __init__(self, section: Mapping[str, Any], name: str = DEFAULT_PROVIDER_NAME) -> None:
        self.name = name
        self._features: tuple[Feature, ...] = tuple(load_features(section, name))

    async def get_features(self) -> Sequence[Feature]:
        return self._features

    def reload(self, section: Mapping[str, Any]) -> None:
        """Parse ``section`` and swap the snapshot. The old snapshot stays on error."""
        self._features = tuple(load_features(section, self.name))

    def __repr__(self) -> str:
        return f"ConfigurationFeatureProvider(name={self.name!r}, features={len(self._features)})"
