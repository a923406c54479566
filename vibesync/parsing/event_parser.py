"""Decode raw store records into Event domain objects.

Records come from a schemaless document store and may have been written by
older clients, so decoding is tolerant:

- a record missing any required field decodes to nothing (never an exception),
- malformed guest / price entries are dropped one by one,
- array fields keep only their string elements,
- unknown fields are ignored.
"""

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

import structlog

from vibesync.models.event import Currency, Event, Guest, PriceDetail, PriceType
from vibesync.models.user import string_list

logger = structlog.get_logger()

REQUIRED_FIELDS = ("title", "description", "date", "timeRange", "location")


class ParseFailure(str, Enum):
    """Why a record could not be decoded."""

    NOT_A_MAPPING = "not_a_mapping"
    MISSING_FIELD = "missing_field"
    WRONG_TYPE = "wrong_type"
    INVALID_ID = "invalid_id"


@dataclass(frozen=True)
class ParseResult:
    """Either a decoded event or the reason decoding failed."""

    event: Event | None = None
    failure: ParseFailure | None = None
    field: str | None = None

    @property
    def ok(self) -> bool:
        return self.event is not None


def parse_uuid(value: Any) -> UUID | None:
    """Parse a UUID from a string in any case; None if not a valid UUID."""
    if not isinstance(value, str):
        return None
    try:
        return UUID(value.strip())
    except ValueError:
        return None


def parse_decimal(value: Any) -> Decimal | None:
    """Normalize a numeric or decimal-string price.

    Returns None for bools, NaN/infinite values, negatives and strings that
    are not decimals.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            return None
        amount = Decimal(str(value))
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return amount


def string_set(value: Any) -> set[str]:
    """Build a set from a heterogeneous array, keeping only strings."""
    return set(string_list(value))


def optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


class EventParser:
    """Decodes raw event records; stateless and safe to share."""

    def parse(self, raw: Any) -> Event | None:
        """Decode one record.

        Args:
            raw: Field map as read from the document store

        Returns:
            The Event, or None if any required field is missing or ill-typed
        """
        return self.parse_result(raw).event

    def parse_result(self, raw: Any) -> ParseResult:
        """Decode one record, reporting the failure reason.

        Args:
            raw: Field map as read from the document store

        Returns:
            ParseResult with either the event or a ParseFailure
        """
        if not isinstance(raw, Mapping):
            return ParseResult(failure=ParseFailure.NOT_A_MAPPING)

        if "id" not in raw:
            return ParseResult(failure=ParseFailure.MISSING_FIELD, field="id")
        event_id = parse_uuid(raw["id"])
        if event_id is None:
            return ParseResult(failure=ParseFailure.INVALID_ID, field="id")

        required: dict[str, str] = {}
        for name in REQUIRED_FIELDS:
            if name not in raw or raw[name] is None:
                return ParseResult(failure=ParseFailure.MISSING_FIELD, field=name)
            if not isinstance(raw[name], str):
                return ParseResult(failure=ParseFailure.WRONG_TYPE, field=name)
            required[name] = raw[name]

        created_by = raw.get("createdBy")
        try:
            event = Event(
                id=event_id,
                title=required["title"],
                description=required["description"],
                date=required["date"],
                time_range=required["timeRange"],
                location=required["location"],
                hashtags=string_set(raw.get("hashtags")),
                guests=self.parse_guests(raw.get("guests")),
                price_details=self.parse_price_details(raw.get("priceDetails")),
                likes=string_set(raw.get("likes")),
                dislikes=string_set(raw.get("dislikes")),
                reservations=string_set(raw.get("reservations")),
                interactions=string_set(raw.get("interactions")),
                images=string_list(raw.get("images")),
                created_by=created_by if isinstance(created_by, str) else "",
                category=optional_str(raw.get("category")),
                stripe_product_id=optional_str(raw.get("stripeProductId")),
                stripe_connected_account_id=optional_str(
                    raw.get("stripeConnectedAccountId")
                ),
            )
        except ValueError:
            # pydantic.ValidationError subclasses ValueError
            return ParseResult(failure=ParseFailure.WRONG_TYPE)
        return ParseResult(event=event)

    def parse_many(self, raws: Iterable[Any]) -> list[Event]:
        """Decode a batch, dropping records that fail.

        A single corrupt record never aborts the batch.
        """
        events: list[Event] = []
        dropped = 0
        for raw in raws:
            result = self.parse_result(raw)
            if result.event is None:
                dropped += 1
                logger.debug(
                    "dropped undecodable event record",
                    record_id=raw.get("id") if isinstance(raw, Mapping) else None,
                    reason=result.failure.value if result.failure else None,
                    field=result.field,
                )
                continue
            events.append(result.event)
        if dropped:
            logger.info("parsed event batch", parsed=len(events), dropped=dropped)
        return events

    def parse_guests(self, value: Any) -> list[Guest]:
        """Decode guest entries, dropping invalid ones individually."""
        if not isinstance(value, list):
            return []
        guests: list[Guest] = []
        for entry in value:
            guest = self._parse_guest(entry)
            if guest is not None:
                guests.append(guest)
        return guests

    def _parse_guest(self, entry: Any) -> Guest | None:
        if not isinstance(entry, Mapping):
            return None
        guest_id = parse_uuid(entry.get("id"))
        name = entry.get("name")
        role = entry.get("role")
        image_url = entry.get("imageUrl")
        if guest_id is None or not all(
            isinstance(v, str) for v in (name, role, image_url)
        ):
            return None
        return Guest(id=guest_id, name=name, role=role, image_url=image_url or None)

    def parse_price_details(self, value: Any) -> list[PriceDetail]:
        """Decode price entries, dropping ones whose price is not a decimal."""
        if not isinstance(value, list):
            return []
        prices: list[PriceDetail] = []
        for entry in value:
            price = self._parse_price(entry)
            if price is not None:
                prices.append(price)
        return prices

    def _parse_price(self, entry: Any) -> PriceDetail | None:
        if not isinstance(entry, Mapping):
            return None
        title = entry.get("title")
        amount = parse_decimal(entry.get("price"))
        if not isinstance(title, str) or amount is None:
            return None

        try:
            currency = Currency(entry.get("currency", Currency.USD.value))
        except ValueError:
            currency = Currency.USD
        try:
            price_type = PriceType(entry.get("type", PriceType.FIXED.value))
        except ValueError:
            price_type = PriceType.FIXED

        return PriceDetail(
            id=parse_uuid(entry.get("id")) or uuid4(),
            title=title,
            price=amount,
            currency=currency,
            type=price_type,
            link=optional_str(entry.get("link")),
            stripe_price_id=optional_str(entry.get("stripePriceId")),
        )
