"""Test fixtures for contextual-flags."""

from __future__ import annotations

from typing import Any

import pytest

from contextual_flags import (
    ConfigurationFeatureProvider,
    DictionaryContext,
    MemoryFeatureProvider,
    VariantResolver,
)

# -----------------------------------------------------------------------------
# pytest-asyncio Configuration
# -----------------------------------------------------------------------------
pytest_plugins = ["pytest_asyncio"]


# -----------------------------------------------------------------------------
# Configuration Fixtures
# -----------------------------------------------------------------------------
FILTERED_FEATURES: dict[str, Any] = {
    "Filtered": {
        "Salt": "abcdef",
        "Filters": {
            "Market": ["U*", "PL", "^C.+$"],
            "AgeGroup": ["1", "[2;3)"],
        },
        "Variants": {
            "A": {
                "Allocation": "100%",
                "Settings": {"Test": {"Size": "5"}},
            },
        },
    },
}

SESSION_RANGER_FEATURES: dict[str, Any] = {
    "SessionRanger": {
        "AllocationUnit": "SessionId",
        "Variants": {
            "Guids": {
                "Allocation": "100%",
                "Filters": {"SessionId": "[d0000000-0000-0000-0000-000000000000;f0000000-0000-0000-0000-000000000000)"},
                "Settings": {"Ranger": {"Label": "G"}},
            },
            "Dates": {
                "Allocation": "100%",
                "Filters": {"CreatedAt": "[2023-01-01;2024-01-01)"},
                "Settings": {"Ranger": {"Label": "D"}},
            },
            "Doubles": {
                "Allocation": "100%",
                "Filters": {"Score": "[50;75]"},
                "Settings": {"Ranger": {"Label": "N"}},
            },
        },
    },
}


@pytest.fixture
def filtered_features() -> dict[str, Any]:
    """Feature configuration with market and age group filters."""
    return FILTERED_FEATURES


@pytest.fixture
def configuration_provider() -> ConfigurationFeatureProvider:
    """Create a configuration provider for the filtered feature."""
    return ConfigurationFeatureProvider(FILTERED_FEATURES)


@pytest.fixture
def memory_provider() -> MemoryFeatureProvider:
    """Create an empty memory provider."""
    return MemoryFeatureProvider(name="Memory")


@pytest.fixture
def resolver(configuration_provider: ConfigurationFeatureProvider) -> VariantResolver:
    """Create a resolver over the configuration provider."""
    return VariantResolver([configuration_provider])


@pytest.fixture
def us_context() -> DictionaryContext:
    """Create a context for a US user."""
    return DictionaryContext(UserId="user-123", Market="US", AgeGroup=1)


@pytest.fixture
def session_ranger_features() -> dict[str, Any]:
    """Feature configuration with GUID, date and number range filters."""
    return SESSION_RANGER_FEATURES
