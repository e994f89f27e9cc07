"""Evaluation results."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from functools import cached_property
from typing import TYPE_CHECKING, Any

from contextual_flags.hashing import compute_variant_hash
from contextual_flags.merging import get_section, merge_configurations, to_configuration_dict

if TYPE_CHECKING:
    from contextual_flags.metadata import FeatureMetadata
    from contextual_flags.models.variant import Variant

__all__ = [
    "EvaluationResult",
    "ProviderFailure",
]


@dataclass(frozen=True, slots=True)
class ProviderFailure:
    """A provider that raised during an evaluation.

    Attributes:
        provider_name: Name of the failing feature or override provider.
        error: The exception it raised.
    """

    provider_name: str
    error: Exception

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider_name": self.provider_name,
            "error_type": type(self.error).__name__,
            "error_message": str(self.error),
        }


def _merge_variants(variants: Sequence[Variant]) -> dict[str, Any] | None:
    return merge_configurations(variant.configuration for variant in variants)


@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of one :meth:`VariantResolver.evaluate_details` call.

    The merged configuration is computed on first access.

    Attributes:
        variants: Selected variants in provider-then-feature order.
        metadata: Which variant was applied per feature, ``None`` when
            metadata collection is disabled.
        failures: Providers that raised and were skipped.
    """

    variants: tuple[Variant, ...] = ()
    metadata: FeatureMetadata | None = None
    failures: tuple[ProviderFailure, ...] = ()
    merger: Callable[[Sequence[Variant]], dict[str, Any] | None] = field(
        default=_merge_variants, repr=False, compare=False
    )

    @cached_property
    def configuration(self) -> dict[str, Any] | None:
        """Merged configuration of the selected variants, ``None`` without object configurations."""
        return self.merger(self.variants)

    @property
    def variant_ids(self) -> list[str]:
        return [variant.id for variant in self.variants]

    @property
    def variant_hash(self) -> int:
        """Stable hash of the selected variant ids."""
        return compute_variant_hash(self.variants)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)

    def get_section(self, section: str | None) -> Any:
        """Navigate the merged configuration, see :func:`~contextual_flags.merging.get_section`."""
        return get_section(self.configuration, section)

    def to_configuration_dict(self) -> dict[str, str | None]:
        return to_configuration_dict(self.configuration)

    def to_dict(self) -> dict[str, Any]:
        return {
            "variants": self.variant_ids,
            "metadata": self.metadata.to_dict() if self.metadata is not None else None,
            "failures": [failure.to_dict() for failure in self.failures],
        }
