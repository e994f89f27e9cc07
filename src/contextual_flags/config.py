"""Resolver configuration."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any

from contextual_flags.exceptions import ConfigurationError
from contextual_flags.hashing import AllocationHash, XxHashAllocation, get_allocation_hash

__all__ = ["ResolverConfig"]


def _snake_case(name: str) -> str:
    result = []
    for index, char in enumerate(name):
        if char.isupper() and index and not name[index - 1].isupper():
            result.append("_")
        result.append(char.lower())
    return "".join(result)


@dataclass(frozen=True)
class ResolverConfig:
    """Settings shared by every evaluation of a :class:`~contextual_flags.resolver.VariantResolver`.

    Attributes:
        default_allocation_unit: Context property hashed for features and
            variants that do not name one. ``None`` uses the first
            ``Identifier``/``*Id`` property of the context.
        allocation_hash: Hash placing identifiers in the allocation space.
        collect_metadata: Record a :class:`~contextual_flags.metadata.FeatureMetadata` per evaluation.
        isolate_provider_errors: Log failing providers and continue instead of raising.
    """

    default_allocation_unit: str | None = None
    allocation_hash: AllocationHash = field(default_factory=XxHashAllocation)
    collect_metadata: bool = True
    isolate_provider_errors: bool = True

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> ResolverConfig:
        """Build a config from a mapping with snake_case or PascalCase keys.

        ``allocation_hash`` may be given by name (``"xxhash"``, ``"fnv-v1"``,
        ``"fnv-v2"``).

        Raises:
            ConfigurationError: On unknown keys or hash names.
        """
        known = {item.name for item in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in values.items():
            name = _snake_case(key)
            if name not in known:
                raise ConfigurationError(f"Unknown resolver setting {key!r}")
            kwargs[name] = value
        hash_value = kwargs.get("allocation_hash")
        if isinstance(hash_value, (str, int)):
            try:
                kwargs["allocation_hash"] = get_allocation_hash(hash_value)
            except KeyError as exc:
                raise ConfigurationError(str(exc.args[0])) from exc
        return cls(**kwargs)
