"""Tests for context value conversion."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

import pytest
from packaging.version import Version

from contextual_flags.types import ValueKind
from contextual_flags.values import ContextValue, padded_version_string, to_context_value


class Plan(Enum):
    FREE = "free"
    PRO = "pro"


@dataclass
class Address:
    country: str
    city: str


class TestToContextValue:
    """Tests for the type-dispatched conversion."""

    def test_none(self) -> None:
        """Test None converts to null."""
        value = to_context_value(None)
        assert value.kind is ValueKind.NULL
        assert value.is_null
        assert not value.is_scalar

    @pytest.mark.parametrize("raw,text", [(True, "true"), (False, "false")])
    def test_bool(self, raw: bool, text: str) -> None:
        """Test booleans render lower case and are not numbers."""
        value = to_context_value(raw)
        assert value.kind is ValueKind.BOOLEAN
        assert value.text == text
        assert value.number is None

    @pytest.mark.parametrize(
        "raw,text,number",
        [
            (5, "5", 5.0),
            (2.5, "2.5", 2.5),
            (3.0, "3", 3.0),
            (Decimal("1.25"), "1.25", 1.25),
        ],
    )
    def test_numbers(self, raw: object, text: str, number: float) -> None:
        """Test numbers keep a float projection and a compact text."""
        value = to_context_value(raw)
        assert value.kind is ValueKind.NUMBER
        assert value.text == text
        assert value.number == number

    def test_string(self) -> None:
        """Test strings are scalars without number projection."""
        value = to_context_value("Hello")
        assert value.kind is ValueKind.STRING
        assert value.text == "Hello"
        assert value.folded == "hello"
        assert value.number is None

    def test_numeric_string(self) -> None:
        """Test numeric strings also project to a number."""
        assert to_context_value("42").number == 42.0

    @pytest.mark.parametrize("raw", ["nan", "inf", "-Infinity"])
    def test_special_float_strings_are_not_numbers(self, raw: str) -> None:
        """Test nan and infinity spellings do not count as numbers."""
        assert to_context_value(raw).number is None

    @pytest.mark.parametrize("raw", [["a", "b"], ("a", "b"), frozenset({"a"})])
    def test_sequences_are_arrays(self, raw: object) -> None:
        """Test lists, tuples and sets convert to arrays."""
        value = to_context_value(raw)
        assert value.kind is ValueKind.ARRAY
        assert value.items is not None
        assert all(item.kind is ValueKind.STRING for item in value.items)
        assert not value.is_scalar

    def test_mapping_is_object(self) -> None:
        """Test mappings convert to objects with casefolded field names."""
        value = to_context_value({"Country": "US", "Zip": 12345})
        assert value.kind is ValueKind.OBJECT
        assert value.fields is not None
        assert value.fields["country"].text == "US"
        assert value.fields["zip"].number == 12345.0

    def test_dataclass_is_object(self) -> None:
        """Test dataclass instances convert to objects."""
        value = to_context_value(Address(country="PL", city="Krakow"))
        assert value.kind is ValueKind.OBJECT
        assert value.get_path("country").text == "PL"

    def test_enum_uses_value(self) -> None:
        """Test enums compare by their value but keep the member as raw."""
        value = to_context_value(Plan.PRO)
        assert value.kind is ValueKind.STRING
        assert value.text == "pro"
        assert value.raw is Plan.PRO

    def test_datetime(self) -> None:
        """Test timestamps render in ISO format."""
        moment = datetime(2024, 3, 1, 12, 30, tzinfo=UTC)
        value = to_context_value(moment)
        assert value.text == moment.isoformat()
        assert value.timestamp == moment

    def test_date_projects_to_utc_midnight(self) -> None:
        """Test dates project to midnight UTC."""
        value = to_context_value(date(2024, 3, 1))
        assert value.timestamp == datetime(2024, 3, 1, tzinfo=UTC)

    def test_uuid_is_unknown_scalar(self) -> None:
        """Test values without a dedicated converter render through str()."""
        raw = UUID("d48d716f-6e85-4eb5-a81f-dd8d14472832")
        value = to_context_value(raw)
        assert value.kind is ValueKind.UNKNOWN
        assert value.is_scalar
        assert value.uuid == raw

    def test_context_value_passthrough(self) -> None:
        """Test already converted values are returned as is."""
        value = to_context_value("x")
        assert to_context_value(value) is value


class TestContextValueProjections:
    """Tests for the lazily computed projections."""

    def test_version(self) -> None:
        """Test version strings parse to versions."""
        assert to_context_value("1.10.0").version == Version("1.10.0")
        assert to_context_value("not a version").version is None

    def test_timestamp_from_string(self) -> None:
        """Test naive ISO strings are taken as UTC."""
        assert to_context_value("2023-05-01").timestamp == datetime(2023, 5, 1, tzinfo=UTC)
        assert to_context_value("yesterday").timestamp is None

    def test_uuid_from_string(self) -> None:
        """Test GUID strings parse case-insensitively."""
        value = to_context_value("D48D716F-6E85-4EB5-A81F-DD8D14472832")
        assert value.uuid == UUID("d48d716f-6e85-4eb5-a81f-dd8d14472832")
        assert to_context_value("nope").uuid is None

    @pytest.mark.parametrize(
        "target,expected",
        [
            (float, 7.0),
            (str, "7"),
        ],
    )
    def test_coerce(self, target: type, expected: object) -> None:
        """Test coercion onto range bound types."""
        assert to_context_value(7).coerce(target) == expected

    def test_coerce_mismatch_returns_none(self) -> None:
        """Test impossible coercions return None."""
        assert to_context_value("abc").coerce(float) is None
        assert to_context_value(["a"]).coerce(str) is None

    def test_get_path(self) -> None:
        """Test dotted paths navigate nested objects case-insensitively."""
        value = to_context_value({"Address": {"Country": "US"}})
        assert value.get_path("address.COUNTRY").text == "US"
        assert value.get_path("address.city") is None
        assert value.get_path("address.country.code") is None

    def test_values_are_frozen(self) -> None:
        """Test context values cannot be modified."""
        value = ContextValue("x", ValueKind.STRING, text="x")
        with pytest.raises(AttributeError):
            value.text = "y"  # type: ignore[misc]


class TestPaddedVersionString:
    """Tests for version padding."""

    @pytest.mark.parametrize(
        "lower,higher",
        [
            ("1.9.0", "1.10.0"),
            ("1.2.3-beta", "1.2.3"),
            ("1.2.3-alpha", "1.2.3-beta"),
            ("1.2", "1.2.1"),
            ("v1.0.0", "2.0.0"),
            ("0.9.9", "1"),
        ],
    )
    def test_ordering(self, lower: str, higher: str) -> None:
        """Test padded strings order like versions."""
        assert padded_version_string(lower) < padded_version_string(higher)

    @pytest.mark.parametrize(
        "left,right",
        [
            ("1.2", "1.2.0"),
            ("v1.2.0", "1.2.0"),
            ("1.2.0+build.5", "1.2.0"),
        ],
    )
    def test_equivalent_versions(self, left: str, right: str) -> None:
        """Test missing segments, a v prefix and build metadata do not matter."""
        assert padded_version_string(left) == padded_version_string(right)

    @pytest.mark.parametrize(
        "raw,padded",
        [
            ("1.2.3", "    1-    2-    3-~"),
            ("1.2-rc1", "    1-    2-    0-rc1"),
            ("v10.20.30+build.7", "   10-   20-   30-~"),
            ("1.2.3-beta.2", "    1-    2-    3-beta-    2"),
            ("2", "    2-    0-    0-~"),
        ],
    )
    def test_exact_padding(self, raw: str, padded: str) -> None:
        """Test the exact padded form."""
        assert padded_version_string(raw) == padded
