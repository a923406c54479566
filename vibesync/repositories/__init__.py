"""Repository layer for data persistence.

Provides repository classes for persisting event data to the document
store. Repositories encapsulate transactional access logic and provide a
clean interface for the service layer.
"""

from vibesync.repositories.interaction_repo import InteractionLedger
from vibesync.repositories.metadata_repo import EventMetadataRepository

__all__ = [
    "EventMetadataRepository",
    "InteractionLedger",
]
