"""Request and response bodies for the HTTP API.

Image payloads travel as base64 strings; pydantic decodes them to bytes.
"""

from decimal import Decimal
from uuid import UUID

from pydantic import Base64Bytes, BaseModel, Field

from vibesync.models.event import Currency, Event, Guest, PriceDetail, PriceType
from vibesync.models.interaction import InteractionResult


class GuestBody(BaseModel):
    """Guest as sent by clients."""

    id: UUID | None = None
    name: str
    role: str = "speaker"
    image_url: str | None = None
    image: Base64Bytes | None = Field(default=None, description="New avatar")

    def to_model(self) -> Guest:
        guest = Guest(
            name=self.name,
            role=self.role,
            image_url=self.image_url,
            image=self.image,
        )
        if self.id is not None:
            guest.id = self.id
        return guest


class PriceBody(BaseModel):
    """Price tier as sent by clients."""

    id: UUID | None = None
    title: str
    price: Decimal = Field(ge=0)
    currency: Currency = Currency.USD
    type: PriceType = PriceType.FIXED
    link: str | None = None
    stripe_price_id: str | None = None

    def to_model(self) -> PriceDetail:
        return PriceDetail(**self.model_dump(exclude_none=True))


class EventRequest(BaseModel):
    """Body of POST /events (create or update)."""

    id: UUID | None = Field(default=None, description="Omit to create a new event")
    title: str
    description: str
    date: str
    time_range: str
    location: str
    hashtags: list[str] = Field(default_factory=list)
    guests: list[GuestBody] = Field(default_factory=list)
    price_details: list[PriceBody] = Field(default_factory=list)
    images: list[str] = Field(
        default_factory=list, description="Existing image URLs to keep"
    )
    new_images: list[Base64Bytes] = Field(
        default_factory=list, description="Replacement images, in display order"
    )
    created_by: str = ""
    category: str | None = None
    stripe_product_id: str | None = None
    stripe_connected_account_id: str | None = None

    def to_model(self) -> Event:
        """Build the domain event."""
        # Image bytes are passed through as decoded; dumping would re-encode
        data = self.model_dump(
            exclude={"id", "guests", "price_details", "hashtags", "new_images"},
            exclude_none=True,
        )
        if self.id is not None:
            data["id"] = self.id
        return Event(
            **data,
            new_images=list(self.new_images),
            hashtags=set(self.hashtags),
            guests=[guest.to_model() for guest in self.guests],
            price_details=[price.to_model() for price in self.price_details],
        )


class GuestResponse(BaseModel):
    id: UUID
    name: str
    role: str
    image_url: str | None


class PriceResponse(BaseModel):
    id: UUID
    title: str
    price: Decimal
    currency: Currency
    type: PriceType
    link: str | None
    stripe_price_id: str | None


class EventResponse(BaseModel):
    """Event as returned to clients."""

    id: UUID
    title: str
    description: str
    date: str
    time_range: str
    location: str
    hashtags: list[str]
    guests: list[GuestResponse]
    price_details: list[PriceResponse]
    images: list[str]
    created_by: str
    category: str | None
    like_count: int
    reservation_count: int

    @classmethod
    def from_event(cls, event: Event) -> "EventResponse":
        return cls(
            id=event.id,
            title=event.title,
            description=event.description,
            date=event.date,
            time_range=event.time_range,
            location=event.location,
            hashtags=sorted(event.hashtags),
            guests=[GuestResponse.model_validate(g.model_dump()) for g in event.guests],
            price_details=[
                PriceResponse.model_validate(p.model_dump())
                for p in event.price_details
            ],
            images=event.images,
            created_by=event.created_by,
            category=event.category,
            like_count=len(event.likes),
            reservation_count=len(event.reservations),
        )


class InteractionResponse(BaseModel):
    """Outcome of a like/unlike/dislike/reserve/cancel call."""

    event_id: str
    user_id: str
    kind: str
    changed: bool

    @classmethod
    def from_result(cls, result: InteractionResult) -> "InteractionResponse":
        return cls(
            event_id=result.event_id,
            user_id=result.user_id,
            kind=result.kind.value,
            changed=result.changed,
        )


class ErrorResponse(BaseModel):
    """Body of every DomainError response."""

    code: str
    message: str
