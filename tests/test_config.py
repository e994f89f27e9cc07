"""Tests for ResolverConfig."""

from __future__ import annotations

import dataclasses

import pytest

from contextual_flags import ConfigurationError, FnvHashV1, FnvHashV2, ResolverConfig, XxHashAllocation


class TestResolverConfig:
    """Tests for ResolverConfig defaults."""

    def test_defaults(self) -> None:
        """Test the default settings."""
        config = ResolverConfig()
        assert config.default_allocation_unit is None
        assert isinstance(config.allocation_hash, XxHashAllocation)
        assert config.collect_metadata is True
        assert config.isolate_provider_errors is True

    def test_frozen(self) -> None:
        """Test configs cannot be changed after creation."""
        config = ResolverConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.collect_metadata = False  # type: ignore[misc]


class TestFromMapping:
    """Tests for ResolverConfig.from_mapping."""

    def test_snake_case_keys(self) -> None:
        """Test snake_case keys."""
        config = ResolverConfig.from_mapping({"default_allocation_unit": "SessionId", "collect_metadata": False})
        assert config.default_allocation_unit == "SessionId"
        assert config.collect_metadata is False

    def test_pascal_case_keys(self) -> None:
        """Test PascalCase keys as found in configuration files."""
        config = ResolverConfig.from_mapping({"DefaultAllocationUnit": "UserId", "IsolateProviderErrors": False})
        assert config.default_allocation_unit == "UserId"
        assert config.isolate_provider_errors is False

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("xxhash", XxHashAllocation),
            ("FNV-V1", FnvHashV1),
            ("fnv-v2", FnvHashV2),
            (1, FnvHashV1),
            (2, FnvHashV2),
        ],
    )
    def test_hash_by_name(self, value: str | int, expected: type) -> None:
        """Test hashes may be named or given by version."""
        config = ResolverConfig.from_mapping({"AllocationHash": value})
        assert isinstance(config.allocation_hash, expected)

    def test_hash_instance(self) -> None:
        """Test hash objects are used as given."""
        allocation_hash = FnvHashV2()
        assert ResolverConfig.from_mapping({"allocation_hash": allocation_hash}).allocation_hash is allocation_hash

    def test_unknown_key(self) -> None:
        """Test unknown settings are rejected."""
        with pytest.raises(ConfigurationError, match="Unknown resolver setting 'CacheSize'"):
            ResolverConfig.from_mapping({"CacheSize": 10})

    def test_unknown_hash(self) -> None:
        """Test unknown hash names are rejected."""
        with pytest.raises(ConfigurationError, match="Unknown allocation hash"):
            ResolverConfig.from_mapping({"AllocationHash": "md5"})

    def test_empty_mapping(self) -> None:
        """Test an empty mapping gives the defaults."""
        assert ResolverConfig.from_mapping({}).collect_metadata is True
