"""Repository for event records and the owner's posted-events index.

Event writes and the owner's `postedEvents` update always commit in the same
transaction. Platform-generated events (empty owner) never touch a user
record.
"""

from collections.abc import Sequence
from typing import Any

import structlog

from vibesync.models.event import RELATIONSHIP_FIELDS, normalize_event_id
from vibesync.models.user import POSTED_EVENTS, string_list
from vibesync.stores.base import ArrayRemove, DocumentStore, Transaction

logger = structlog.get_logger()


def with_empty_relationships(payload: dict[str, Any]) -> dict[str, Any]:
    """New records start with empty relationship sets unless given."""
    return {**{field: [] for field in RELATIONSHIP_FIELDS}, **payload}


def previous_owner(existing: dict[str, Any] | None, owner_id: str) -> str:
    """Stored owner of an existing record when an update reassigns it."""
    if existing is None:
        return ""
    stored = existing.get("createdBy")
    if isinstance(stored, str) and stored and stored != owner_id:
        return stored
    return ""


class EventMetadataRepository:
    """Transactional create/update/delete of event records."""

    def __init__(
        self,
        store: DocumentStore,
        events_collection: str = "events",
        users_collection: str = "users",
    ):
        """Initialize repository with a document store.

        Args:
            store: DocumentStore backend
            events_collection: Collection holding event records
            users_collection: Collection holding user records
        """
        self._store = store
        self._events = events_collection
        self._users = users_collection

    async def create_or_update(
        self,
        event_id: str,
        owner_id: str,
        payload: dict[str, Any],
    ) -> bool:
        """Create or update an event and index it under its owner.

        Args:
            event_id: Event id (normalized to the store key)
            owner_id: Owner user id; "" for platform-generated events
            payload: Full event field map

        Returns:
            True if the event was created, False if it was updated
        """
        key = normalize_event_id(event_id)

        async def body(transaction: Transaction) -> tuple[bool, bool, bool, str]:
            existing = await transaction.get(self._events, key)
            owner = await transaction.get(self._users, owner_id) if owner_id else None
            previous_id = previous_owner(existing, owner_id)
            previous = (
                await transaction.get(self._users, previous_id) if previous_id else None
            )

            if existing is not None:
                transaction.update(self._events, key, payload)
            else:
                transaction.set(self._events, key, with_empty_relationships(payload))

            if previous is not None:
                transaction.update(
                    self._users, previous_id, {POSTED_EVENTS: ArrayRemove(key)}
                )

            indexed = False
            if owner is not None:
                posted = string_list(owner.get(POSTED_EVENTS))
                if key not in posted:
                    transaction.update(
                        self._users, owner_id, {POSTED_EVENTS: [*posted, key]}
                    )
                    indexed = True
            moved_from = previous_id if previous is not None else ""
            return existing is None, owner is not None, indexed, moved_from

        created, owner_found, indexed, moved_from = await self._store.run_transaction(
            body
        )

        if moved_from:
            logger.info(
                "event owner changed",
                event_id=key,
                previous_owner=moved_from,
                owner_id=owner_id or None,
            )

        if owner_id and not owner_found:
            logger.warning("owner record missing", event_id=key, owner_id=owner_id)
        logger.info(
            "created event" if created else "updated event",
            event_id=key,
            owner_id=owner_id or None,
            indexed=indexed,
        )
        return created

    async def delete(self, event_id: str, owner_id: str) -> bool:
        """Delete an event and remove it from its owner's index.

        Deleting an event that no longer exists is a success.

        Returns:
            True if a record was deleted, False if it was already absent
        """
        key = normalize_event_id(event_id)

        async def body(transaction: Transaction) -> bool:
            existing = await transaction.get(self._events, key)
            owner = await transaction.get(self._users, owner_id) if owner_id else None

            if existing is not None:
                transaction.delete(self._events, key)
            if owner is not None:
                # Targeted remove so concurrent deletes never drop each other
                transaction.update(
                    self._users, owner_id, {POSTED_EVENTS: ArrayRemove(key)}
                )
            return existing is not None

        deleted = await self._store.run_transaction(body)

        if deleted:
            logger.info("deleted event", event_id=key, owner_id=owner_id or None)
        else:
            logger.info("event already absent", event_id=key)
        return deleted

    async def get(self, event_id: str) -> dict[str, Any] | None:
        """Read one event record."""
        return await self._store.get(self._events, normalize_event_id(event_id))

    async def get_many(self, event_ids: Sequence[str]) -> list[dict[str, Any]]:
        """Read the event records that exist among `event_ids`."""
        keys = [normalize_event_id(event_id) for event_id in event_ids]
        if not keys:
            return []
        return await self._store.get_many(self._events, keys)

    async def list_feed_records(self, user_id: str) -> list[dict[str, Any]]:
        """Event records the user has neither interacted with nor reserved."""
        return await self._store.find_without_member(
            self._events, ["interactions", "reservations"], user_id
        )

    async def get_user_record(self, user_id: str) -> dict[str, Any] | None:
        """Read a user record (for its event-id lists)."""
        return await self._store.get(self._users, user_id)
