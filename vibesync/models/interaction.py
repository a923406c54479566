"""Interaction kinds and the result of a ledger operation."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class InteractionKind(str, Enum):
    """User-to-event relationship mutations."""

    LIKE = "like"
    UNLIKE = "unlike"
    DISLIKE = "dislike"
    RESERVE = "reserve"
    CANCEL_RESERVATION = "cancel_reservation"


class InteractionResult(BaseModel):
    """Outcome of one interaction transaction."""

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(description="Normalized event id")
    user_id: str = Field(description="Acting user id")
    kind: InteractionKind
    changed: bool = Field(
        description="False when the call was a repeat or the event vanished"
    )
