"""Cache of merged configurations keyed by the selected variant set.

Merging is a pure function of the ordered variant ids, so the result for a
given selection can be reused across evaluations until the providers publish
new features.
"""

from __future__ import annotations

import copy
import threading
from collections import OrderedDict
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from contextual_flags.hashing import compute_variant_hash
from contextual_flags.merging import merge_configurations

if TYPE_CHECKING:
    from contextual_flags.models.variant import Variant

__all__ = [
    "CacheStats",
    "MergedConfigurationCache",
]


def _same_variants(cached: tuple[Variant, ...], selected: tuple[Variant, ...]) -> bool:
    return len(cached) == len(selected) and all(a is b for a, b in zip(cached, selected, strict=True))


@dataclass(slots=True)
class CacheStats:
    """Statistics about cache usage.

    Attributes:
        hits: Number of lookups served from the cache.
        misses: Number of lookups that required a merge.
        size: Current number of entries.
        evictions: Number of entries dropped to respect ``max_size``.
    """

    hits: int = 0
    misses: int = 0
    size: int = 0
    evictions: int = 0

    @property
    def hit_rate(self) -> float:
        """Fraction of lookups served from the cache (0.0 when unused)."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total


class MergedConfigurationCache:
    """Thread-safe LRU cache of merged configurations.

    Entries are keyed by :func:`~contextual_flags.hashing.compute_variant_hash`
    and only served when they were built from the very same variant objects,
    so snapshots replaced by a provider never return stale merges. Cached
    values are returned as deep copies so callers may modify them.

    Args:
        max_size: Maximum number of entries kept.
        merge: Merge function, defaults to :func:`merge_configurations`.
    """

    def __init__(
        self,
        max_size: int = 1024,
        merge: Callable[[Sequence[Any]], dict[str, Any] | None] = merge_configurations,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._max_size = max_size
        self._merge = merge
        self._entries: OrderedDict[int, tuple[tuple[Variant, ...], dict[str, Any] | None]] = OrderedDict()
        self._lock = threading.Lock()
        self._stats = CacheStats()

    @property
    def max_size(self) -> int:
        return self._max_size

    def get_or_merge(self, variants: Sequence[Variant]) -> dict[str, Any] | None:
        """Return the merged configuration of ``variants``, merging on a miss."""
        key = compute_variant_hash(variants)
        selected = tuple(variants)
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and _same_variants(entry[0], selected):
                self._entries.move_to_end(key)
                self._stats.hits += 1
                return copy.deepcopy(entry[1])
            self._stats.misses += 1

        merged = self._merge([variant.configuration for variant in selected])

        with self._lock:
            self._entries[key] = (selected, merged)
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_size:
                self._entries.popitem(last=False)
                self._stats.evictions += 1
        return copy.deepcopy(merged)

    def clear(self) -> None:
        """Drop every entry. Call after providers publish new features."""
        with self._lock:
            self._entries.clear()

    def stats(self) -> CacheStats:
        """Snapshot of the cache statistics."""
        with self._lock:
            return CacheStats(
                hits=self._stats.hits,
                misses=self._stats.misses,
                size=len(self._entries),
                evictions=self._stats.evictions,
            )

    def __len__(self) -> int:
        return len(self._entries)
