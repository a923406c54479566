"""Domain models for events, guests, prices and user indexes."""

from vibesync.models.event import (
    Currency,
    Event,
    Guest,
    PriceDetail,
    PriceType,
    normalize_event_id,
)
from vibesync.models.interaction import InteractionKind, InteractionResult
from vibesync.models.user import EventStatus, UserIndex

__all__ = [
    "Currency",
    "Event",
    "EventStatus",
    "Guest",
    "InteractionKind",
    "InteractionResult",
    "PriceDetail",
    "PriceType",
    "UserIndex",
    "normalize_event_id",
]
