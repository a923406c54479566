"""User-side index fields read and written by the engine.

User records are owned by the profile service; this engine only touches the
event-id lists below.
"""

from enum import Enum

from pydantic import BaseModel, Field


class EventStatus(str, Enum):
    """User-record field resolved by status queries."""

    LIKED = "likedEvents"
    POSTED = "postedEvents"
    RESERVED = "reservedEvents"
    ATTENDED = "attendedEvents"


POSTED_EVENTS = EventStatus.POSTED.value
LIKED_EVENTS = EventStatus.LIKED.value
RESERVED_EVENTS = EventStatus.RESERVED.value
DISLIKED_EVENTS = "dislikedEvents"


def string_list(value: object) -> list[str]:
    """Keep only the str elements of an array-like field, in order."""
    if not isinstance(value, list | tuple):
        return []
    return [item for item in value if isinstance(item, str)]


class UserIndex(BaseModel):
    """Event-id lists stored on a user record."""

    posted_events: list[str] = Field(default_factory=list)
    liked_events: list[str] = Field(default_factory=list)
    reserved_events: list[str] = Field(default_factory=list)
    disliked_events: list[str] = Field(default_factory=list)
    attended_events: list[str] = Field(default_factory=list)

    @classmethod
    def from_record(cls, record: dict) -> "UserIndex":
        """Build the index from a raw user record, ignoring other fields."""
        return cls(
            posted_events=string_list(record.get(POSTED_EVENTS)),
            liked_events=string_list(record.get(LIKED_EVENTS)),
            reserved_events=string_list(record.get(RESERVED_EVENTS)),
            disliked_events=string_list(record.get(DISLIKED_EVENTS)),
            attended_events=string_list(record.get(EventStatus.ATTENDED.value)),
        )

    def ids_for(self, status: EventStatus) -> list[str]:
        """Return the event ids listed under a status."""
        return {
            EventStatus.LIKED: self.liked_events,
            EventStatus.POSTED: self.posted_events,
            EventStatus.RESERVED: self.reserved_events,
            EventStatus.ATTENDED: self.attended_events,
        }[status]
