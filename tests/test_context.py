"""Tests for evaluation contexts and the filtering receiver."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar
from uuid import UUID

import pytest

from contextual_flags import DictionaryContext, FilteringContextReceiver, options_context, populate_receiver
from contextual_flags.context import ContextReceiver, OptionsContext
from contextual_flags.receivers import is_identifier_name


class RecordingReceiver:
    """Receiver remembering every pushed attribute in order."""

    def __init__(self) -> None:
        self.received: list[tuple[str, Any]] = []

    def receive(self, name: str, value: Any) -> None:
        self.received.append((name, value))


@options_context
@dataclass(frozen=True)
class RequestContext:
    user_id: str
    market: str
    age_group: int | None = None
    _internal: str = "hidden"


@options_context(exclude=("secret",))
@dataclass
class SessionContext:
    session_id: UUID
    secret: str = "s3cr3t"
    tags: list[str] = field(default_factory=list)


@options_context
class PlainContext:
    identifier: str
    market: str
    registry: ClassVar[dict[str, str]] = {}

    def __init__(self, identifier: str, market: str) -> None:
        self.identifier = identifier
        self.market = market


class TestDictionaryContext:
    """Tests for DictionaryContext."""

    def test_pushes_every_entry(self) -> None:
        """Test every entry is pushed once in insertion order."""
        receiver = RecordingReceiver()
        DictionaryContext({"UserId": "u-1"}, Market="US").populate_receiver(receiver)
        assert receiver.received == [("UserId", "u-1"), ("Market", "US")]

    def test_is_a_mapping(self) -> None:
        """Test the context reads like a mapping."""
        context = DictionaryContext(Market="US", AgeGroup=1)
        assert context["Market"] == "US"
        assert len(context) == 2
        assert set(context) == {"Market", "AgeGroup"}

    def test_copies_values(self) -> None:
        """Test later changes to the source mapping are not visible."""
        values = {"Market": "US"}
        context = DictionaryContext(values)
        values["Market"] = "PL"
        assert context["Market"] == "US"

    def test_satisfies_protocol(self) -> None:
        """Test DictionaryContext is an OptionsContext."""
        assert isinstance(DictionaryContext(), OptionsContext)


class TestOptionsContextDecorator:
    """Tests for the options_context decorator."""

    def test_dataclass_fields_in_order(self) -> None:
        """Test declared fields are pushed in order, private ones skipped."""
        receiver = RecordingReceiver()
        RequestContext(user_id="u-1", market="US").populate_receiver(receiver)
        assert receiver.received == [("user_id", "u-1"), ("market", "US"), ("age_group", None)]

    def test_exclude(self) -> None:
        """Test excluded fields are not pushed."""
        assert SessionContext.__options_context_fields__ == ("session_id", "tags")

    def test_annotated_plain_class(self) -> None:
        """Test annotations of plain classes are used, ClassVars skipped."""
        assert PlainContext.__options_context_fields__ == ("identifier", "market")
        receiver = RecordingReceiver()
        PlainContext("id-1", "PL").populate_receiver(receiver)
        assert receiver.received == [("identifier", "id-1"), ("market", "PL")]

    def test_decorated_class_satisfies_protocol(self) -> None:
        """Test decorated instances are recognized as options contexts."""
        assert isinstance(RequestContext(user_id="u", market="US"), OptionsContext)


class TestPopulateReceiver:
    """Tests for populate_receiver."""

    def test_none_pushes_nothing(self) -> None:
        """Test a missing context is allowed."""
        receiver = RecordingReceiver()
        populate_receiver(None, receiver)
        assert receiver.received == []

    def test_plain_mapping(self) -> None:
        """Test plain dicts can be used as contexts."""
        receiver = RecordingReceiver()
        populate_receiver({"Market": "US", 1: "one"}, receiver)
        assert receiver.received == [("Market", "US"), ("1", "one")]

    def test_unsupported_context(self) -> None:
        """Test other objects are rejected."""
        with pytest.raises(TypeError, match="not an options context"):
            populate_receiver(42, RecordingReceiver())

    def test_recording_receiver_is_a_receiver(self) -> None:
        """Test anything with receive() qualifies as a receiver."""
        assert isinstance(RecordingReceiver(), ContextReceiver)


# =============================================================================
# Filtering Receiver
# =============================================================================


class TestIsIdentifierName:
    """Tests for identifier name detection."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Identifier", True),
            ("identifier", True),
            ("UserId", True),
            ("SessionID", True),
            ("user_id", True),
            ("Market", False),
            ("IdCard", False),
        ],
    )
    def test_names(self, name: str, expected: bool) -> None:
        """Test the Identifier and *Id naming rules."""
        assert is_identifier_name(name) is expected


class TestFilteringContextReceiver:
    """Tests for FilteringContextReceiver."""

    def test_first_identifier_wins(self) -> None:
        """Test the first non-blank identifier is the allocation identifier."""
        receiver = FilteringContextReceiver.from_context(
            DictionaryContext(Market="US", UserId="user-1", SessionId="session-1")
        )
        assert receiver.identifier == "user-1"

    def test_blank_identifier_skipped(self) -> None:
        """Test blank and null identifiers are ignored."""
        receiver = FilteringContextReceiver.from_context(
            DictionaryContext(UserId="  ", DeviceId=None, SessionId="s-1")
        )
        assert receiver.identifier == "s-1"

    def test_non_string_identifier(self) -> None:
        """Test identifiers of other scalar types render as text."""
        raw = UUID("d48d716f-6e85-4eb5-a81f-dd8d14472832")
        receiver = FilteringContextReceiver.from_context(SessionContext(session_id=raw))
        assert receiver.identifier == str(raw)

    def test_no_identifier(self) -> None:
        """Test a context without identifier yields an empty string."""
        receiver = FilteringContextReceiver.from_context(DictionaryContext(Market="US"))
        assert receiver.identifier == ""
        assert receiver.allocation_value() == ""

    def test_case_insensitive_lookup(self) -> None:
        """Test property names are case-insensitive."""
        receiver = FilteringContextReceiver.from_context(DictionaryContext(Market="US"))
        assert receiver.get("MARKET").text == "US"
        assert "market" in receiver
        assert "Country" not in receiver

    def test_repeated_name_replaces(self) -> None:
        """Test a later value for the same name wins."""
        receiver = FilteringContextReceiver()
        receiver.receive("Market", "US")
        receiver.receive("market", "PL")
        assert receiver.get("Market").text == "PL"

    def test_dotted_lookup(self) -> None:
        """Test dotted names navigate into object values."""
        receiver = FilteringContextReceiver.from_context({"Address": {"Country": "PL"}})
        assert receiver.get("address.country").text == "PL"
        assert receiver.get("address.city") is None
        assert receiver.get("profile.city") is None

    def test_allocation_value_with_unit(self) -> None:
        """Test an allocation unit picks another property."""
        receiver = FilteringContextReceiver.from_context(DictionaryContext(UserId="u-1", TenantId=42, Region=None))
        assert receiver.allocation_value() == "u-1"
        assert receiver.allocation_value("tenantid") == "42"
        assert receiver.allocation_value("Region") == ""
        assert receiver.allocation_value("Missing") == ""

    def test_dataclass_context(self) -> None:
        """Test dataclass contexts populate the receiver."""
        receiver = FilteringContextReceiver.from_context(RequestContext(user_id="u-9", market="US", age_group=2))
        assert receiver.identifier == "u-9"
        assert receiver.get("age_group").number == 2.0

    def test_repr_lists_names(self) -> None:
        """Test the repr lists the received names."""
        receiver = FilteringContextReceiver.from_context(DictionaryContext(Market="US"))
        assert repr(receiver) == "FilteringContextReceiver(market)"
