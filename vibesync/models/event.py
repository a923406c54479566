"""Event aggregate and its value objects.

These are pure domain objects. Decoding untrusted store records into them is
the parser's job (vibesync.parsing); encoding them back is `to_store_dict`.
"""

from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


# Written only by the interaction ledger once a record exists
RELATIONSHIP_FIELDS = ("likes", "dislikes", "reservations", "interactions")


def normalize_event_id(event_id: str | UUID) -> str:
    """Return the store key for an event id (trimmed, lowercase)."""
    return str(event_id).strip().lower()


class Currency(str, Enum):
    """Supported price currencies."""

    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    CAD = "CAD"
    AUD = "AUD"
    JPY = "JPY"


class PriceType(str, Enum):
    """Whether a price is fixed or chosen by the attendee."""

    FIXED = "fixed"
    VARIABLE = "variable"


class Guest(BaseModel):
    """A featured guest (speaker, DJ, host) of an event."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4, description="Guest identifier")
    name: str = Field(description="Display name")
    role: str = Field(default="speaker", description="Role at the event")
    image_url: str | None = Field(default=None, description="Avatar URL")
    image: bytes | None = Field(
        default=None,
        exclude=True,
        repr=False,
        description="New avatar bytes awaiting upload",
    )

    def to_store_dict(self, image_url: str | None = None) -> dict[str, Any]:
        """Convert guest to its wire representation.

        Args:
            image_url: Overrides the stored avatar URL (freshly uploaded)
        """
        return {
            "id": str(self.id),
            "name": self.name,
            "role": self.role,
            "imageUrl": image_url or self.image_url or "",
        }


class PriceDetail(BaseModel):
    """One purchasable price tier of an event."""

    id: UUID = Field(default_factory=uuid4, description="Price tier identifier")
    title: str = Field(description="Tier label, e.g. 'General Admission'")
    price: Decimal = Field(ge=0, description="Amount in the tier currency")
    currency: Currency = Field(default=Currency.USD)
    type: PriceType = Field(default=PriceType.FIXED)
    link: str | None = Field(default=None, description="External ticket link")
    stripe_price_id: str | None = Field(
        default=None, description="External price reference"
    )

    def to_store_dict(self) -> dict[str, Any]:
        """Convert price tier to its wire representation.

        Prices are stored as decimal strings so no precision is lost.
        """
        data: dict[str, Any] = {
            "id": str(self.id),
            "title": self.title,
            "price": str(self.price),
            "currency": self.currency.value,
            "type": self.type.value,
        }
        if self.link:
            data["link"] = self.link
        if self.stripe_price_id:
            data["stripePriceId"] = self.stripe_price_id
        return data


class Event(BaseModel):
    """Domain representation of an Event.

    Attributes:
        id: Event UUID; its lowercase string is the store key
        created_by: Owner user id, or "" for platform-generated events
        likes / dislikes / reservations: Per-relationship sets of user ids
        interactions: Every user id that ever liked, disliked or reserved
        images: Ordered image URLs (upload order)
        new_images: Raw image bytes awaiting upload (never persisted)
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4, description="Unique event identifier")
    title: str
    description: str
    date: str
    time_range: str
    location: str
    hashtags: set[str] = Field(default_factory=set)
    guests: list[Guest] = Field(default_factory=list)
    price_details: list[PriceDetail] = Field(default_factory=list)
    likes: set[str] = Field(default_factory=set)
    dislikes: set[str] = Field(default_factory=set)
    reservations: set[str] = Field(default_factory=set)
    interactions: set[str] = Field(default_factory=set)
    images: list[str] = Field(default_factory=list)
    created_by: str = Field(default="", description="Owner user id")
    category: str | None = None
    stripe_product_id: str | None = None
    stripe_connected_account_id: str | None = None
    new_images: list[bytes] = Field(default_factory=list, exclude=True, repr=False)

    @property
    def store_key(self) -> str:
        """Document id of this event in the store."""
        return normalize_event_id(self.id)

    @property
    def is_platform_generated(self) -> bool:
        """True when no user owns the event."""
        return self.created_by == ""

    def to_store_dict(self, include_relationships: bool = True) -> dict[str, Any]:
        """Convert event to the fixed wire schema.

        Sets are written as sorted lists so repeated writes are stable.

        Args:
            include_relationships: Include likes/dislikes/reservations/
                interactions. Content writes leave them out so they never
                overwrite concurrent ledger updates.
        """
        data: dict[str, Any] = {
            "id": self.store_key,
            "title": self.title,
            "description": self.description,
            "date": self.date,
            "timeRange": self.time_range,
            "location": self.location,
            "hashtags": sorted(self.hashtags),
            "guests": [guest.to_store_dict() for guest in self.guests],
            "priceDetails": [price.to_store_dict() for price in self.price_details],
            "createdBy": self.created_by,
            "images": list(self.images),
        }
        if include_relationships:
            for field in RELATIONSHIP_FIELDS:
                data[field] = sorted(getattr(self, field))
        if self.category is not None:
            data["category"] = self.category
        if self.stripe_product_id is not None:
            data["stripeProductId"] = self.stripe_product_id
        if self.stripe_connected_account_id is not None:
            data["stripeConnectedAccountId"] = self.stripe_connected_account_id
        return data
