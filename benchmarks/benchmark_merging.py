"""Benchmarks for configuration merging and binding.

Merging runs once per evaluation whose configuration is read, so these
measure the deep merge, the merged configuration cache and binding onto
options objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from contextual_flags import MergedConfigurationCache, Variant, bind_configuration, merge_configurations


@dataclass
class SearchOptions:
    engine: str = "v1"
    page_size: int = 10
    boost: float = 1.0
    markets: list[str] = field(default_factory=list)


def create_variants(count: int) -> list[Variant]:
    """Variants whose configurations overlap on a shared section."""
    return [
        Variant(
            f"Variant{index}",
            configuration={
                "Search": {"Engine": f"v{index}", "PageSize": index, "Markets": ["US", "CA"]},
                f"Feature{index}": {"Enabled": True, "Limits": {"Daily": index * 10}},
            },
        )
        for index in range(count)
    ]


class TestMerging:
    """Benchmarks for merge_configurations."""

    @pytest.mark.benchmark(group="merging")
    @pytest.mark.parametrize("count", [1, 10, 100])
    def test_merge(self, benchmark, count: int) -> None:
        """Benchmark merging ``count`` variant configurations."""
        variants = create_variants(count)

        merged = benchmark(merge_configurations, [variant.configuration for variant in variants])

        assert merged is not None
        assert merged["Search"]["Engine"] == f"v{count - 1}"

    @pytest.mark.benchmark(group="merging")
    def test_cached_merge(self, benchmark) -> None:
        """Benchmark a repeated selection served from the cache."""
        cache = MergedConfigurationCache()
        variants = create_variants(10)
        cache.get_or_merge(variants)

        merged = benchmark(cache.get_or_merge, variants)

        assert merged is not None
        assert cache.stats().hits > 0


class TestBinding:
    """Benchmarks for bind_configuration."""

    @pytest.mark.benchmark(group="binding")
    def test_bind_section(self, benchmark) -> None:
        """Benchmark binding a merged section onto a dataclass."""
        configuration = {"Search": {"Engine": "v3", "PageSize": "20", "Boost": "1.5", "Markets": ["US", "UK"]}}

        options = benchmark(lambda: bind_configuration(configuration, "Search", SearchOptions()))

        assert options.page_size == 20
        assert options.markets == ["US", "UK"]
