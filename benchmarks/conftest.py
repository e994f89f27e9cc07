"""Benchmark fixtures for contextual-flags performance testing.

This module provides fixtures for benchmarking variant evaluation,
filter matching and configuration merging at various scales.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterator
from typing import Any, TypeVar

import pytest

from contextual_flags import (
    DictionaryContext,
    Feature,
    FeatureBuilder,
    MemoryFeatureProvider,
    VariantResolver,
    load_features,
)

T = TypeVar("T")


# -----------------------------------------------------------------------------
# Event Loop
# -----------------------------------------------------------------------------


@pytest.fixture
def run() -> Iterator[Callable[[Awaitable[Any]], Any]]:
    """Run coroutines to completion on a dedicated event loop."""
    loop = asyncio.new_event_loop()

    def run_until_complete(awaitable: Awaitable[T]) -> T:
        return loop.run_until_complete(awaitable)

    yield run_until_complete
    loop.close()


# -----------------------------------------------------------------------------
# Feature Complexity Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def simple_feature() -> Feature:
    """A feature with one unfiltered variant.

    This represents the minimum complexity feature for baseline benchmarks.
    """
    return FeatureBuilder("Simple", "Bench").variant("On", {"Simple": {"Enabled": True}}).build()


@pytest.fixture
def filtered_feature() -> Feature:
    """A feature gated by market, version and tier filters."""
    return (
        FeatureBuilder("Filtered", "Bench")
        .filter("Market")
        .matches("US")
        .matches("CA")
        .save()
        .filter("AppVersion")
        .in_range("[2.0.0;3.0.0)")
        .save()
        .filter("Email")
        .regex_matches("@company\\.com$")
        .save()
        .variant("On", {"Filtered": {"Enabled": True}})
        .build()
    )


@pytest.fixture
def experiment_feature() -> Feature:
    """A four-way experiment with 25% allocations."""
    builder = FeatureBuilder("Experiment", "Bench")
    for index, theme in enumerate(("default", "dark", "light", "compact")):
        upper = "]" if index == 3 else ")"
        builder.variant(
            theme,
            {"Experiment": {"Theme": theme}},
            allocation=f"[{index * 0.25};{(index + 1) * 0.25}{upper}",
        )
    return builder.build()


@pytest.fixture
def configuration_section() -> dict[str, Any]:
    """A configuration section mixing filters, priorities and allocations."""
    return {
        "Search": {
            "Filters": {"Market": ["US", "UK", "C*"]},
            "Variants": {
                "Fast": {"Allocation": "100%", "Settings": {"Search": {"Engine": "v2"}}},
                "Beta": {
                    "Allocation": "100%",
                    "Priority": 1,
                    "Filters": {"Tier": "beta"},
                    "Settings": {"Search": {"Engine": "v3"}},
                },
            },
        },
        "Banner": {
            "Variants": {
                "Holiday": {"Allocation": "[0;0.5)", "Settings": {"Banner": {"Text": "Holidays"}}},
                "Default": {"Allocation": "[0.5;1]", "Settings": {"Banner": {"Text": "Welcome"}}},
            }
        },
    }


# -----------------------------------------------------------------------------
# Context Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def simple_context() -> DictionaryContext:
    """A context with only an identifier."""
    return DictionaryContext(UserId="user-benchmark-001")


@pytest.fixture
def complex_context() -> DictionaryContext:
    """A context with many attributes."""
    return DictionaryContext(
        UserId="user-benchmark-002",
        SessionId="session-002",
        Market="US",
        AppVersion="2.4.1",
        Email="user@company.com",
        Tier="beta",
        Age=30,
        SignupDate="2024-01-15T00:00:00Z",
        Tags=["feature_a", "feature_b"],
    )


# -----------------------------------------------------------------------------
# Scale Fixtures
# -----------------------------------------------------------------------------


def create_feature(index: int) -> Feature:
    """Create a rollout feature with the given index.

    Args:
        index: Unique index for the feature.

    Returns:
        A Feature instance.
    """
    return (
        FeatureBuilder(f"Feature{index:05d}", "Bench")
        .filter("Market")
        .matches(["US", "CA", "UK", "DE", "FR"][index % 5])
        .save()
        .rollout(50, {f"Feature{index:05d}": {"Enabled": True, "Index": index}})
        .build()
    )


def create_context(index: int) -> DictionaryContext:
    """Create a unique evaluation context for the given index."""
    return DictionaryContext(
        UserId=f"user-{index:06d}",
        Market=["US", "CA", "UK", "DE", "FR"][index % 5],
        Tier=["free", "basic", "premium", "beta"][index % 4],
    )


@pytest.fixture
def resolver_100() -> VariantResolver:
    """Resolver over 100 features."""
    return VariantResolver([MemoryFeatureProvider([create_feature(i) for i in range(100)], name="Bench")])


@pytest.fixture
def resolver_1000() -> VariantResolver:
    """Resolver over 1000 features."""
    return VariantResolver([MemoryFeatureProvider([create_feature(i) for i in range(1000)], name="Bench")])


@pytest.fixture
def configuration_resolver(configuration_section: dict[str, Any]) -> VariantResolver:
    """Resolver over the configuration section."""
    return VariantResolver([MemoryFeatureProvider(load_features(configuration_section), name="Configuration")])


@pytest.fixture
def contexts_100() -> list[DictionaryContext]:
    """Create 100 unique contexts for batch evaluation."""
    return [create_context(i) for i in range(100)]
