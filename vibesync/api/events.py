"""Event and user-interaction endpoints.

Provides REST endpoints for:
- POST /events (create or update, with base64 images)
- GET /events/{event_id}, DELETE /events/{event_id}
- GET /users/{user_id}/feed, GET /users/{user_id}/events?status=
- PUT|DELETE /users/{user_id}/likes/{event_id}
- PUT /users/{user_id}/dislikes/{event_id}
- PUT|DELETE /users/{user_id}/reservations/{event_id}
"""

from enum import Enum
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from vibesync.api.schemas import EventRequest, EventResponse, InteractionResponse
from vibesync.models.user import EventStatus
from vibesync.services.event_service import EventSyncService

router = APIRouter(tags=["events"])


class StatusFilter(str, Enum):
    """Query values accepted by the status listing."""

    LIKED = "liked"
    POSTED = "posted"
    RESERVED = "reserved"
    ATTENDED = "attended"


STATUS_FIELDS: dict[StatusFilter, EventStatus] = {
    StatusFilter.LIKED: EventStatus.LIKED,
    StatusFilter.POSTED: EventStatus.POSTED,
    StatusFilter.RESERVED: EventStatus.RESERVED,
    StatusFilter.ATTENDED: EventStatus.ATTENDED,
}


def get_event_service(request: Request) -> EventSyncService:
    """Dependency to get EventSyncService from app state.

    Raises:
        HTTPException: 503 if the service is not initialized
    """
    service = getattr(request.app.state, "event_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="EventSyncService not initialized")
    return service


ServiceDep = Annotated[EventSyncService, Depends(get_event_service)]


@router.post("/events", response_model=EventResponse)
async def save_event(body: EventRequest, service: ServiceDep) -> EventResponse:
    """Create or update an event.

    When `new_images` is given, it replaces the event's image set.
    """
    saved = await service.create_or_update(body.to_model())
    return EventResponse.from_event(saved)


@router.get("/events/{event_id}", response_model=EventResponse)
async def get_event(event_id: str, service: ServiceDep) -> EventResponse:
    """Fetch a single event with its images."""
    return EventResponse.from_event(await service.get_event(event_id))


@router.delete("/events/{event_id}", status_code=204)
async def delete_event(event_id: str, service: ServiceDep) -> None:
    """Delete an event, its owner index entry and all of its media."""
    event = await service.get_event(event_id)
    await service.delete(event)


@router.get("/users/{user_id}/feed", response_model=list[EventResponse])
async def get_feed(user_id: str, service: ServiceDep) -> list[EventResponse]:
    """Events the user has not interacted with yet."""
    events = await service.get_feed(user_id)
    return [EventResponse.from_event(event) for event in events]


@router.get("/users/{user_id}/events", response_model=list[EventResponse])
async def get_events_by_status(
    user_id: str,
    service: ServiceDep,
    status: StatusFilter = Query(description="Which of the user's lists to read"),
) -> list[EventResponse]:
    """Events from one of the user's liked/posted/reserved/attended lists."""
    events = await service.get_by_status(user_id, STATUS_FIELDS[status])
    return [EventResponse.from_event(event) for event in events]


@router.put("/users/{user_id}/likes/{event_id}", response_model=InteractionResponse)
async def like(user_id: str, event_id: str, service: ServiceDep) -> InteractionResponse:
    return InteractionResponse.from_result(await service.like(user_id, event_id))


@router.delete(
    "/users/{user_id}/likes/{event_id}", response_model=InteractionResponse
)
async def unlike(
    user_id: str, event_id: str, service: ServiceDep
) -> InteractionResponse:
    return InteractionResponse.from_result(await service.unlike(user_id, event_id))


@router.put(
    "/users/{user_id}/dislikes/{event_id}", response_model=InteractionResponse
)
async def dislike(
    user_id: str, event_id: str, service: ServiceDep
) -> InteractionResponse:
    return InteractionResponse.from_result(await service.dislike(user_id, event_id))


@router.put(
    "/users/{user_id}/reservations/{event_id}", response_model=InteractionResponse
)
async def reserve(
    user_id: str, event_id: str, service: ServiceDep
) -> InteractionResponse:
    return InteractionResponse.from_result(await service.reserve(user_id, event_id))


@router.delete(
    "/users/{user_id}/reservations/{event_id}", response_model=InteractionResponse
)
async def cancel_reservation(
    user_id: str, event_id: str, service: ServiceDep
) -> InteractionResponse:
    result = await service.cancel_reservation(user_id, event_id)
    return InteractionResponse.from_result(result)
