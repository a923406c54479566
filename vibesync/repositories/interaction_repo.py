"""Transactional ledger of user-to-event interactions.

Each operation mutates a paired field on the user record (a list of event
ids) and on the event record (a set of user ids) in one transaction, so the
two sides never disagree. Membership checks make every operation
idempotent.

Removing a like or a reservation deliberately leaves the user in the
event's `interactions` set; the feed keeps treating the event as seen.
"""

from dataclasses import dataclass

import structlog

from vibesync.errors import EventNotFoundError, UserNotFoundError
from vibesync.models.event import normalize_event_id
from vibesync.models.interaction import InteractionKind, InteractionResult
from vibesync.models.user import (
    DISLIKED_EVENTS,
    LIKED_EVENTS,
    RESERVED_EVENTS,
    string_list,
)
from vibesync.stores.base import DocumentStore, Transaction

logger = structlog.get_logger()

INTERACTIONS_FIELD = "interactions"


@dataclass(frozen=True)
class Relationship:
    """How one interaction kind maps onto record fields."""

    user_field: str
    event_field: str
    add: bool
    marks_interaction: bool


RELATIONSHIPS: dict[InteractionKind, Relationship] = {
    InteractionKind.LIKE: Relationship(LIKED_EVENTS, "likes", True, True),
    InteractionKind.UNLIKE: Relationship(LIKED_EVENTS, "likes", False, False),
    InteractionKind.DISLIKE: Relationship(DISLIKED_EVENTS, "dislikes", True, True),
    InteractionKind.RESERVE: Relationship(RESERVED_EVENTS, "reservations", True, True),
    InteractionKind.CANCEL_RESERVATION: Relationship(
        RESERVED_EVENTS, "reservations", False, False
    ),
}


def _toggle(values: list[str], member: str, add: bool) -> list[str] | None:
    """Return the updated list, or None when nothing changes."""
    if add:
        return None if member in values else [*values, member]
    if member not in values:
        return None
    return [value for value in values if value != member]


class InteractionLedger:
    """Like / unlike / dislike / reserve / cancel between users and events."""

    def __init__(
        self,
        store: DocumentStore,
        events_collection: str = "events",
        users_collection: str = "users",
    ):
        """Initialize ledger with a document store.

        Args:
            store: DocumentStore backend
            events_collection: Collection holding event records
            users_collection: Collection holding user records
        """
        self._store = store
        self._events = events_collection
        self._users = users_collection

    async def like(self, user_id: str, event_id: str) -> InteractionResult:
        return await self.apply(InteractionKind.LIKE, user_id, event_id)

    async def unlike(self, user_id: str, event_id: str) -> InteractionResult:
        return await self.apply(InteractionKind.UNLIKE, user_id, event_id)

    async def dislike(self, user_id: str, event_id: str) -> InteractionResult:
        return await self.apply(InteractionKind.DISLIKE, user_id, event_id)

    async def reserve(self, user_id: str, event_id: str) -> InteractionResult:
        return await self.apply(InteractionKind.RESERVE, user_id, event_id)

    async def cancel_reservation(
        self, user_id: str, event_id: str
    ) -> InteractionResult:
        return await self.apply(InteractionKind.CANCEL_RESERVATION, user_id, event_id)

    async def apply(
        self,
        kind: InteractionKind,
        user_id: str,
        event_id: str,
    ) -> InteractionResult:
        """Run one interaction.

        Args:
            kind: Interaction to apply
            user_id: Acting user
            event_id: Target event (any case)

        Returns:
            InteractionResult; `changed` is False for repeats and for events
            deleted between the existence check and the transaction

        Raises:
            EventNotFoundError: If the event does not exist
            UserNotFoundError: If the user record does not exist
        """
        key = normalize_event_id(event_id)
        relationship = RELATIONSHIPS[kind]

        # Fail fast before paying for a transaction
        if await self._store.get(self._events, key) is None:
            logger.info("interaction on missing event", kind=kind.value, event_id=key)
            raise EventNotFoundError(key)

        async def body(transaction: Transaction) -> bool:
            user = await transaction.get(self._users, user_id)
            event = await transaction.get(self._events, key)
            if event is None:
                # Deleted after the pre-check
                return False
            if user is None:
                raise UserNotFoundError(user_id)

            changed = False
            user_ids = _toggle(
                string_list(user.get(relationship.user_field)), key, relationship.add
            )
            if user_ids is not None:
                transaction.update(
                    self._users, user_id, {relationship.user_field: user_ids}
                )
                changed = True

            event_updates: dict[str, list[str]] = {}
            members = _toggle(
                string_list(event.get(relationship.event_field)),
                user_id,
                relationship.add,
            )
            if members is not None:
                event_updates[relationship.event_field] = members
            if relationship.marks_interaction:
                interactions = _toggle(
                    string_list(event.get(INTERACTIONS_FIELD)), user_id, True
                )
                if interactions is not None:
                    event_updates[INTERACTIONS_FIELD] = interactions
            if event_updates:
                transaction.update(self._events, key, event_updates)
                changed = True
            return changed

        changed = await self._store.run_transaction(body)

        logger.info(
            "applied interaction",
            kind=kind.value,
            user_id=user_id,
            event_id=key,
            changed=changed,
        )
        return InteractionResult(
            event_id=key, user_id=user_id, kind=kind, changed=changed
        )
