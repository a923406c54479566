"""Tests for EventParser."""

from decimal import Decimal
from uuid import UUID

import pytest

from vibesync.models.event import Currency, PriceType
from vibesync.parsing.event_parser import (
    REQUIRED_FIELDS,
    EventParser,
    ParseFailure,
    parse_decimal,
)

GUEST_ID = "0b6c2f7e-5a1d-4c3b-9e8f-7d6a5b4c3e21"


@pytest.fixture
def parser() -> EventParser:
    return EventParser()


class TestRequiredFields:
    """Tests for required-field handling."""

    def test_complete_record_round_trips_required_fields(
        self, parser, raw_event, event_id
    ):
        """Required fields on the event should equal the raw inputs."""
        raw = raw_event()
        event = parser.parse(raw)

        assert event is not None
        assert event.id == UUID(event_id)
        assert event.title == raw["title"]
        assert event.description == raw["description"]
        assert event.date == raw["date"]
        assert event.time_range == raw["timeRange"]
        assert event.location == raw["location"]
        assert event.created_by == "u1"

    @pytest.mark.parametrize("field", REQUIRED_FIELDS)
    def test_missing_required_field_yields_none(self, parser, raw_event, field):
        """Any missing required field should decode to None, not raise."""
        raw = raw_event()
        del raw[field]

        assert parser.parse(raw) is None
        result = parser.parse_result(raw)
        assert result.failure == ParseFailure.MISSING_FIELD
        assert result.field == field

    def test_wrong_type_reports_field(self, parser, raw_event):
        result = parser.parse_result(raw_event(title=42))

        assert not result.ok
        assert result.failure == ParseFailure.WRONG_TYPE
        assert result.field == "title"

    def test_invalid_id(self, parser, raw_event):
        result = parser.parse_result(raw_event(id="not-a-uuid"))
        assert result.failure == ParseFailure.INVALID_ID

    def test_uppercase_id_is_accepted(self, parser, raw_event, event_id):
        event = parser.parse(raw_event(id=event_id.upper()))
        assert event is not None
        assert event.store_key == event_id

    def test_non_mapping(self, parser):
        assert parser.parse_result(["not", "a", "map"]).failure == (
            ParseFailure.NOT_A_MAPPING
        )

    def test_missing_created_by_means_platform_event(self, parser, raw_event):
        raw = raw_event()
        del raw["createdBy"]

        event = parser.parse(raw)

        assert event is not None
        assert event.created_by == ""
        assert event.is_platform_generated


class TestCollections:
    """Tests for array and nested-entry decoding."""

    def test_sets_keep_only_strings(self, parser, raw_event):
        event = parser.parse(
            raw_event(likes=["u1", 7, None, "u2", "u1"], hashtags="jazz")
        )

        assert event.likes == {"u1", "u2"}
        assert event.hashtags == set()

    def test_invalid_guest_is_dropped_and_siblings_kept(self, parser, raw_event):
        """A malformed guest entry should not take down its siblings."""
        guests = [
            {"id": GUEST_ID, "name": "Ada", "role": "host", "imageUrl": ""},
            {"id": "bad", "name": "Bob", "role": "dj", "imageUrl": ""},
            {"id": GUEST_ID, "name": "Cy", "role": 3, "imageUrl": ""},
            "garbage",
        ]

        event = parser.parse(raw_event(guests=guests))

        assert event is not None
        assert [g.name for g in event.guests] == ["Ada"]
        assert event.guests[0].image_url is None

    def test_price_accepts_strings_and_numbers(self, parser, raw_event):
        prices = [
            {"title": "Early bird", "price": "12.50", "currency": "EUR"},
            {"title": "Door", "price": 20, "type": "variable"},
            {"title": "VIP", "price": 49.99},
            {"title": "Broken", "price": "twelve"},
            {"title": "Negative", "price": -1},
            {"title": "Flag", "price": True},
        ]

        event = parser.parse(raw_event(priceDetails=prices))

        assert [p.title for p in event.price_details] == ["Early bird", "Door", "VIP"]
        early, door, vip = event.price_details
        assert early.price == Decimal("12.50")
        assert early.currency == Currency.EUR
        assert door.type == PriceType.VARIABLE
        assert door.currency == Currency.USD
        assert vip.price == Decimal("49.99")

    def test_unknown_currency_falls_back_to_usd(self, parser, raw_event):
        event = parser.parse(
            raw_event(priceDetails=[{"title": "GA", "price": "5", "currency": "XYZ"}])
        )
        assert event.price_details[0].currency == Currency.USD

    def test_unknown_fields_are_ignored(self, parser, raw_event):
        event = parser.parse(raw_event(legacyField={"nested": True}))
        assert event is not None


class TestParseMany:
    """Tests for batch decoding."""

    def test_corrupt_record_does_not_abort_batch(self, parser, raw_event, event_id):
        good = raw_event()
        bad = raw_event(id="7c9e6679-7425-40de-944b-e07fc1f90ae7")
        del bad["location"]

        events = parser.parse_many([good, bad, None])

        assert [e.store_key for e in events] == [event_id]


class TestParseDecimal:
    """Tests for price normalization."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("10", Decimal("10")),
            (" 3.25 ", Decimal("3.25")),
            (0, Decimal("0")),
            (1.1, Decimal("1.1")),
            (Decimal("7.00"), Decimal("7.00")),
        ],
    )
    def test_valid(self, value, expected):
        assert parse_decimal(value) == expected

    @pytest.mark.parametrize(
        "value", ["abc", "NaN", "Infinity", float("nan"), float("inf"), -5, False, None]
    )
    def test_invalid(self, value):
        assert parse_decimal(value) is None
