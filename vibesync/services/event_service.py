"""Event sync service: the public API of the engine.

Composes the parser, the metadata repository, the interaction ledger and
the media components:

- create_or_update: upload guest avatars and event images concurrently,
  then write the record and the owner index in one transaction
- delete: remove the record first (so feeds stop showing it), then media
- get_feed / get_by_status / get_event: read, decode, merge image URLs
- like / unlike / dislike / reserve / cancel_reservation: ledger operations
"""

from typing import Any

import structlog

from vibesync.errors import EventNotFoundError, MediaUploadError, ValidationFailure
from vibesync.media.lifecycle import MediaLifecycleManager
from vibesync.media.paths import event_images_folder, guest_images_folder
from vibesync.media.upload import MediaUploadOrchestrator, gather_or_cancel
from vibesync.models.event import Event, Guest, normalize_event_id
from vibesync.models.interaction import InteractionResult
from vibesync.models.user import EventStatus, UserIndex
from vibesync.parsing.event_parser import EventParser
from vibesync.repositories.interaction_repo import InteractionLedger
from vibesync.repositories.metadata_repo import EventMetadataRepository

logger = structlog.get_logger()


class EventSyncService:
    """Create, update, delete, query and interact with events."""

    def __init__(
        self,
        metadata_repo: EventMetadataRepository,
        ledger: InteractionLedger,
        uploader: MediaUploadOrchestrator,
        media: MediaLifecycleManager,
        parser: EventParser | None = None,
    ):
        """Initialize service with its collaborators."""
        self._metadata = metadata_repo
        self._ledger = ledger
        self._uploader = uploader
        self._media = media
        self._parser = parser or EventParser()

    async def create_or_update(self, event: Event) -> Event:
        """Persist an event, uploading any new media first.

        Args:
            event: Event to save; `new_images` and guest `image` bytes are
                uploaded, existing URLs are reused otherwise

        Returns:
            The saved event with image and avatar URLs populated

        Raises:
            MediaUploadError: If any upload fails (nothing is written)
            TransactionConflictError / StoreUnavailableError: On store failure
        """
        key = event.store_key
        base = event.to_store_dict(include_relationships=False)

        # One failed branch cancels the other so no stray blobs get written
        guests, images = await gather_or_cancel(
            self._upload_guest_avatars(event),
            self._upload_event_images(event),
        )

        payload: dict[str, Any] = {
            **base,
            "guests": [guest.to_store_dict() for guest in guests],
            "images": images,
        }
        await self._metadata.create_or_update(key, event.created_by, payload)

        if event.new_images:
            await self._media.prune(key, keep_count=len(images))

        return event.model_copy(
            update={"images": images, "guests": guests, "new_images": []}
        )

    async def _upload_event_images(self, event: Event) -> list[str]:
        if not event.new_images:
            return list(event.images)
        return await self._uploader.upload_batch(
            event.new_images,
            folder=event_images_folder(event.store_key),
            entity_id=event.store_key,
        )

    async def _upload_guest_avatars(self, event: Event) -> list[Guest]:
        """Upload new guest avatars and return guests with URLs, in order."""
        folder = guest_images_folder(event.store_key)

        async def resolve(position: int, guest: Guest) -> Guest:
            if guest.image is None:
                return guest
            try:
                url = await self._uploader.upload_single(
                    guest.image, folder=folder, name_id=str(guest.id)
                )
            except Exception as e:
                logger.error(
                    "guest avatar upload failed",
                    event_id=event.store_key,
                    guest_id=str(guest.id),
                    error=str(e),
                )
                raise MediaUploadError(event.store_key, position, str(e)) from e
            return guest.model_copy(update={"image_url": url, "image": None})

        return await gather_or_cancel(
            *(resolve(position, guest) for position, guest in enumerate(event.guests))
        )

    async def delete(self, event: Event) -> None:
        """Delete an event record, then all of its media.

        Raises:
            PartialMediaFailure: If some blobs could not be deleted; the
                record is already gone at that point
        """
        key = event.store_key
        await self._metadata.delete(key, event.created_by)
        await self._media.delete_all(key)
        logger.info("event deleted", event_id=key)

    async def get_event(self, event_id: str) -> Event:
        """Fetch one event with its images.

        Raises:
            EventNotFoundError: If no record exists
            ValidationFailure: If the record cannot be decoded
        """
        key = normalize_event_id(event_id)
        record = await self._metadata.get(key)
        if record is None:
            raise EventNotFoundError(key)
        result = self._parser.parse_result(record)
        if result.event is None:
            reason = result.failure.value if result.failure else "unknown"
            raise ValidationFailure(key, reason)
        (event,) = await self._with_images([result.event])
        return event

    async def get_feed(self, user_id: str) -> list[Event]:
        """Events the user has not yet interacted with or reserved."""
        records = await self._metadata.list_feed_records(user_id)
        events = self._parser.parse_many(records)
        logger.info("fetched feed", user_id=user_id, count=len(events))
        return await self._with_images(events)

    async def get_by_status(self, user_id: str, status: EventStatus) -> list[Event]:
        """Events listed under one of the user's status fields."""
        user = await self._metadata.get_user_record(user_id)
        if user is None:
            return []
        event_ids = UserIndex.from_record(user).ids_for(status)
        if not event_ids:
            return []
        records = await self._metadata.get_many(event_ids)
        events = self._parser.parse_many(records)
        logger.info(
            "fetched events by status",
            user_id=user_id,
            status=status.value,
            count=len(events),
        )
        return await self._with_images(events)

    async def _with_images(self, events: list[Event]) -> list[Event]:
        """Merge blob-store image URLs into decoded events.

        Stored blobs win; a record's own URLs are kept when it has none
        (e.g. platform events pointing at external images).
        """
        if not events:
            return []
        images = await self._media.retrieve_batch([e.store_key for e in events])
        return [
            event.model_copy(update={"images": images[event.store_key]})
            if images.get(event.store_key)
            else event
            for event in events
        ]

    async def like(self, user_id: str, event_id: str) -> InteractionResult:
        return await self._ledger.like(user_id, event_id)

    async def unlike(self, user_id: str, event_id: str) -> InteractionResult:
        return await self._ledger.unlike(user_id, event_id)

    async def dislike(self, user_id: str, event_id: str) -> InteractionResult:
        return await self._ledger.dislike(user_id, event_id)

    async def reserve(self, user_id: str, event_id: str) -> InteractionResult:
        return await self._ledger.reserve(user_id, event_id)

    async def cancel_reservation(
        self, user_id: str, event_id: str
    ) -> InteractionResult:
        return await self._ledger.cancel_reservation(user_id, event_id)
