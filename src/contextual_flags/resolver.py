"""Variant resolution.

The resolver asks every feature provider for its current snapshot and picks
at most one variant per feature:

1. Feature-level filters must hold, disabled features are skipped.
2. Override providers are asked in registration order. The first override
   naming a variant the feature has wins.
3. Otherwise the allocation spot of the context identifier is computed and
   the variants whose allocation contains it and whose filters hold are
   candidates.
4. The candidate with the lowest priority wins (no priority sorts last),
   then the one with more filters, then declaration order.

Example:
    Evaluating a context and binding the result::

        resolver = VariantResolver([ConfigurationFeatureProvider(features)])
        variants = await resolver.evaluate(DictionaryContext(UserId="42", Market="US"))
        options = await resolver.evaluate_options(CheckoutOptions, "Checkout", context)
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, TypeVar

from contextual_flags.binding import bind_configuration
from contextual_flags.config import ResolverConfig
from contextual_flags.metadata import FeatureMetadata, FeatureMetadataItem, find_metadata_attribute
from contextual_flags.receivers import FilteringContextReceiver
from contextual_flags.results import EvaluationResult, ProviderFailure

if TYPE_CHECKING:
    from contextual_flags.cache import MergedConfigurationCache
    from contextual_flags.hashing import AllocationHash
    from contextual_flags.hooks import EvaluationHook
    from contextual_flags.models.feature import Feature
    from contextual_flags.models.override import VariantOverride
    from contextual_flags.models.variant import Variant
    from contextual_flags.providers.base import FeatureProvider, VariantOverrideProvider

__all__ = ["VariantResolver"]

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _provider_name(provider: Any) -> str:
    return getattr(provider, "name", None) or type(provider).__name__


def _sort_key(variant: Variant) -> tuple[bool, int, int]:
    return (variant.priority is None, variant.priority or 0, -variant.filter_count)


class VariantResolver:
    """Selects the variants applying to a context.

    The resolver holds no per-evaluation state, so one instance can serve any
    number of concurrent evaluations.

    Args:
        providers: Feature providers, evaluated in order.
        override_providers: Providers which may force a variant per feature.
        config: Resolver settings.
        hooks: Evaluation hooks, called in order.
        cache: Optional cache for merged configurations.
    """

    def __init__(
        self,
        providers: Iterable[FeatureProvider] = (),
        override_providers: Iterable[VariantOverrideProvider] = (),
        config: ResolverConfig | None = None,
        hooks: Iterable[EvaluationHook] = (),
        cache: MergedConfigurationCache | None = None,
    ) -> None:
        self._providers: tuple[FeatureProvider, ...] = tuple(providers)
        self._override_providers: tuple[VariantOverrideProvider, ...] = tuple(override_providers)
        self._config = config or ResolverConfig()
        self._hooks: list[EvaluationHook] = list(hooks)
        self._cache = cache

    @property
    def config(self) -> ResolverConfig:
        return self._config

    @property
    def providers(self) -> tuple[FeatureProvider, ...]:
        return self._providers

    @property
    def override_providers(self) -> tuple[VariantOverrideProvider, ...]:
        return self._override_providers

    @property
    def hooks(self) -> list[EvaluationHook]:
        return self._hooks

    @property
    def cache(self) -> MergedConfigurationCache | None:
        return self._cache

    def add_hook(self, hook: EvaluationHook) -> None:
        self._hooks.append(hook)

    def remove_hook(self, hook: EvaluationHook) -> None:
        self._hooks.remove(hook)

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    async def evaluate(self, context: Any) -> list[Variant]:
        """Return the variants applying to ``context``.

        Variants are ordered by provider, then by feature within the provider.
        """
        result = await self.evaluate_details(context)
        return list(result.variants)

    async def evaluate_details(self, context: Any) -> EvaluationResult:
        """Evaluate ``context`` and return variants, metadata and provider failures."""
        await self._run_hooks("before_evaluation", context)
        receiver = FilteringContextReceiver.from_context(context)
        metadata = FeatureMetadata() if self._config.collect_metadata else None
        failures: list[ProviderFailure] = []
        selected: list[Variant] = []

        for provider in self._providers:
            name = _provider_name(provider)
            try:
                features = await provider.get_features()
            except Exception as exc:
                if not self._config.isolate_provider_errors:
                    raise
                logger.warning("Feature provider %s failed, skipping its features", name, exc_info=True)
                failures.append(ProviderFailure(name, exc))
                await self._run_hooks("on_error", exc, name, context)
                continue
            for feature in features:
                variant = await self._resolve_feature(feature, context, receiver, metadata, failures)
                if variant is not None:
                    selected.append(variant)

        result = EvaluationResult(
            variants=tuple(selected),
            metadata=metadata,
            failures=tuple(failures),
            **({"merger": self._cache.get_or_merge} if self._cache is not None else {}),
        )
        await self._run_hooks("after_evaluation", result, context)
        return result

    async def evaluate_options(self, options: T | type[T], section: str | None, context: Any) -> T:
        """Evaluate ``context`` and bind the merged ``section`` onto ``options``.

        Args:
            options: Destination instance, or a class instantiated without arguments.
            section: Path of the section to bind, ``None`` binds the whole configuration.
            context: The context to evaluate.

        Returns:
            The bound options. When the options type declares a
            :class:`~contextual_flags.metadata.FeatureMetadata` attribute it is
            set to this evaluation's metadata.
        """
        result = await self.evaluate_details(context)
        bound = bind_configuration(result.configuration, section, options)
        attribute = find_metadata_attribute(type(bound))
        if attribute is None or result.metadata is None:
            return bound
        if dataclasses.is_dataclass(bound) and type(bound).__dataclass_params__.frozen:  # type: ignore[attr-defined]
            return dataclasses.replace(bound, **{attribute: result.metadata})  # type: ignore[type-var]
        setattr(bound, attribute, result.metadata)
        return bound

    def select_variant(self, feature: Feature, receiver: FilteringContextReceiver) -> Variant | None:
        """Pick the allocated variant of ``feature`` for ``receiver``, ignoring overrides.

        Feature-level filters and the enabled flag are not checked here.
        """
        spots: dict[tuple[str, str, str], float] = {}
        candidates: list[Variant] = []
        for variant in feature.variants:
            allocation_hash = variant.allocation_hash or self._config.allocation_hash
            salt = variant.allocation_salt or feature.salt
            unit = variant.allocation_unit or feature.allocation_unit or self._config.default_allocation_unit
            identifier = receiver.allocation_value(unit)
            spot = self._spot(spots, allocation_hash, salt, identifier)
            if variant.allocation.contains(spot) and receiver.satisfies(variant.filters):
                candidates.append(variant)
        if not candidates:
            return None
        candidates.sort(key=_sort_key)
        return candidates[0]

    @staticmethod
    def _spot(
        spots: dict[tuple[str, str, str], float], allocation_hash: AllocationHash, salt: str, identifier: str
    ) -> float:
        key = (allocation_hash.name, salt, identifier)
        spot = spots.get(key)
        if spot is None:
            spot = spots[key] = allocation_hash.get_allocation_spot(salt, identifier)
        return spot

    async def _resolve_feature(
        self,
        feature: Feature,
        context: Any,
        receiver: FilteringContextReceiver,
        metadata: FeatureMetadata | None,
        failures: list[ProviderFailure],
    ) -> Variant | None:
        if not feature.enabled:
            logger.debug("Feature %s is disabled", feature.name)
            return None
        if not receiver.satisfies(feature.filters):
            logger.debug("Feature %s filtered out", feature.name)
            return None

        override = await self._find_override(feature, context, failures)
        if override is not None:
            variant = feature.get_variant(override.variant_id)
            logger.debug(
                "Feature %s overridden to variant %s by %s", feature.name, override.variant_id, override.provider_name
            )
            self._record(metadata, feature, variant, override)  # type: ignore[arg-type]
            return variant

        variant = self.select_variant(feature, receiver)
        if variant is None:
            logger.debug("No variant of feature %s applies", feature.name)
            return None
        logger.debug("Feature %s resolved to variant %s", feature.name, variant.id)
        self._record(metadata, feature, variant, None)
        return variant

    async def _find_override(
        self, feature: Feature, context: Any, failures: list[ProviderFailure]
    ) -> VariantOverride | None:
        for provider in self._override_providers:
            name = _provider_name(provider)
            try:
                override = await provider.try_override(feature, context)
            except Exception as exc:
                if not self._config.isolate_provider_errors:
                    raise
                logger.warning("Override provider %s failed for feature %s", name, feature.name, exc_info=True)
                failures.append(ProviderFailure(name, exc))
                await self._run_hooks("on_error", exc, name, context)
                continue
            if override is None:
                continue
            if feature.get_variant(override.variant_id) is None:
                logger.debug(
                    "Ignoring override of feature %s to unknown variant %s from %s",
                    feature.name,
                    override.variant_id,
                    name,
                )
                continue
            return override
        return None

    @staticmethod
    def _record(
        metadata: FeatureMetadata | None,
        feature: Feature,
        variant: Variant,
        override: VariantOverride | None,
    ) -> None:
        if metadata is None:
            return
        metadata.add(
            FeatureMetadataItem(
                feature_name=feature.name,
                feature_provider=feature.provider_name,
                variant_id=variant.id,
                is_overridden=override is not None,
                override_provider_name=override.provider_name if override is not None else None,
            )
        )

    async def _run_hooks(self, method_name: str, *args: Any) -> None:
        for hook in self._hooks:
            method = getattr(hook, method_name, None)
            if method is None:
                continue
            try:
                await method(*args)
            except Exception:
                logger.warning("Evaluation hook %r failed in %s", hook, method_name, exc_info=True)

    def __repr__(self) -> str:
        providers = ", ".join(_provider_name(provider) for provider in self._providers)
        return f"VariantResolver(providers=[{providers}])"
