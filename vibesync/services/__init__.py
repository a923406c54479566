"""Service layer composing repositories and media components."""

from vibesync.services.event_service import EventSyncService

__all__ = ["EventSyncService"]
