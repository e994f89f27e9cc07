"""Benchmarks for variant evaluation performance.

These benchmarks measure the core evaluation logic including:
- Selecting a variant of a single feature
- Feature filters on strings, versions and regular expressions
- Allocation hashing
- Full resolver evaluations over many features

Run with:
    pytest benchmarks --benchmark-only
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from contextual_flags import FilteringContextReceiver, FnvHashV1, FnvHashV2, VariantResolver, XxHashAllocation

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from contextual_flags import DictionaryContext, Feature


# -----------------------------------------------------------------------------
# Single Feature Selection
# -----------------------------------------------------------------------------


class TestVariantSelection:
    """Benchmarks for selecting the variant of one feature."""

    @pytest.mark.benchmark(group="selection")
    def test_simple_feature(self, benchmark, simple_feature: Feature, simple_context: DictionaryContext) -> None:
        """Benchmark the baseline feature without filters."""
        resolver = VariantResolver()
        receiver = FilteringContextReceiver.from_context(simple_context)

        variant = benchmark(resolver.select_variant, simple_feature, receiver)

        assert variant is not None
        assert variant.id == "On"

    @pytest.mark.benchmark(group="selection")
    def test_filtered_feature(self, benchmark, filtered_feature: Feature, complex_context: DictionaryContext) -> None:
        """Benchmark a feature whose filters all match."""
        resolver = VariantResolver()
        receiver = FilteringContextReceiver.from_context(complex_context)

        variant = benchmark(resolver.select_variant, filtered_feature, receiver)

        assert variant is not None

    @pytest.mark.benchmark(group="selection")
    def test_experiment_feature(
        self, benchmark, experiment_feature: Feature, simple_context: DictionaryContext
    ) -> None:
        """Benchmark a four-way experiment."""
        resolver = VariantResolver()
        receiver = FilteringContextReceiver.from_context(simple_context)

        variant = benchmark(resolver.select_variant, experiment_feature, receiver)

        assert variant is not None
        assert variant.id in {"default", "dark", "light", "compact"}

    @pytest.mark.benchmark(group="selection")
    def test_receiver_population(self, benchmark, complex_context: DictionaryContext) -> None:
        """Benchmark collecting the attributes of a context."""
        receiver = benchmark(FilteringContextReceiver.from_context, complex_context)

        assert receiver.identifier == "user-benchmark-002"


# -----------------------------------------------------------------------------
# Allocation Hashing
# -----------------------------------------------------------------------------


class TestAllocationHashing:
    """Benchmarks for placing identifiers in the allocation space."""

    @pytest.mark.benchmark(group="hashing")
    @pytest.mark.parametrize("allocation_hash", [XxHashAllocation(), FnvHashV1(), FnvHashV2()], ids=lambda h: h.name)
    def test_allocation_spot(self, benchmark, allocation_hash: Any) -> None:
        """Benchmark one spot computation."""
        spot = benchmark(allocation_hash.get_allocation_spot, "Bench_Experiment", "user-benchmark-001")

        assert 0.0 <= spot <= 1.0


# -----------------------------------------------------------------------------
# Resolver Evaluation
# -----------------------------------------------------------------------------


class TestResolverEvaluation:
    """Benchmarks for complete evaluations."""

    @pytest.mark.benchmark(group="resolver")
    def test_configuration_features(
        self,
        benchmark,
        run: Callable[[Awaitable[Any]], Any],
        configuration_resolver: VariantResolver,
        complex_context: DictionaryContext,
    ) -> None:
        """Benchmark an evaluation of loaded configuration features."""
        result = benchmark(lambda: run(configuration_resolver.evaluate_details(complex_context)))

        assert result.get_section("Search:Engine") == "v3"

    @pytest.mark.benchmark(group="resolver")
    def test_100_features(
        self,
        benchmark,
        run: Callable[[Awaitable[Any]], Any],
        resolver_100: VariantResolver,
        contexts_100: list[DictionaryContext],
    ) -> None:
        """Benchmark one evaluation against 100 features."""
        variants = benchmark(lambda: run(resolver_100.evaluate(contexts_100[0])))

        assert len(variants) <= 20

    @pytest.mark.benchmark(group="resolver")
    def test_1000_features(
        self,
        benchmark,
        run: Callable[[Awaitable[Any]], Any],
        resolver_1000: VariantResolver,
        contexts_100: list[DictionaryContext],
    ) -> None:
        """Benchmark one evaluation against 1000 features."""
        variants = benchmark(lambda: run(resolver_1000.evaluate(contexts_100[0])))

        assert len(variants) <= 200

    @pytest.mark.benchmark(group="resolver-batch")
    def test_batch_100_contexts(
        self,
        benchmark,
        run: Callable[[Awaitable[Any]], Any],
        resolver_100: VariantResolver,
        contexts_100: list[DictionaryContext],
    ) -> None:
        """Benchmark 100 contexts against 100 features."""

        async def evaluate_all() -> int:
            total = 0
            for context in contexts_100:
                total += len(await resolver_100.evaluate(context))
            return total

        total = benchmark(lambda: run(evaluate_all()))

        assert 0 < total <= 100 * 20
