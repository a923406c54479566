"""Pytest configuration and fixtures."""

from collections.abc import AsyncIterator, Callable
from io import BytesIO
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image

from vibesync.config import Settings
from vibesync.main import app, build_event_service
from vibesync.media.compression import ImageCompressor
from vibesync.media.lifecycle import MediaLifecycleManager
from vibesync.media.upload import MediaUploadOrchestrator
from vibesync.repositories.interaction_repo import InteractionLedger
from vibesync.repositories.metadata_repo import EventMetadataRepository
from vibesync.services.event_service import EventSyncService
from vibesync.stores.memory import InMemoryBlobStore, InMemoryDocumentStore

EVENT_ID = "3f2b8c1e-9d4a-4e6b-8f1c-2a7d5e9b0c41"


class PassthroughCompressor(ImageCompressor):
    """Skips JPEG encoding so tests can upload arbitrary bytes."""

    def compress(self, data: bytes) -> bytes:
        return data


@pytest.fixture
def event_id() -> str:
    """Store key of the event produced by `raw_event`."""
    return EVENT_ID


@pytest.fixture
def document_store() -> InMemoryDocumentStore:
    """Fresh in-memory document store with generous retries."""
    return InMemoryDocumentStore(max_attempts=50)


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore(bucket="test-bucket")


@pytest.fixture
def metadata_repo(document_store: InMemoryDocumentStore) -> EventMetadataRepository:
    return EventMetadataRepository(document_store)


@pytest.fixture
def ledger(document_store: InMemoryDocumentStore) -> InteractionLedger:
    return InteractionLedger(document_store)


@pytest.fixture
def uploader(blob_store: InMemoryBlobStore) -> MediaUploadOrchestrator:
    return MediaUploadOrchestrator(blob_store, compressor=PassthroughCompressor())


@pytest.fixture
def media(blob_store: InMemoryBlobStore) -> MediaLifecycleManager:
    return MediaLifecycleManager(blob_store)


@pytest.fixture
def service(
    metadata_repo: EventMetadataRepository,
    ledger: InteractionLedger,
    uploader: MediaUploadOrchestrator,
    media: MediaLifecycleManager,
) -> EventSyncService:
    return EventSyncService(metadata_repo, ledger, uploader, media)


@pytest.fixture
def png_bytes() -> Callable[..., bytes]:
    """Factory producing small real PNG images."""

    def make(color: str = "red", size: tuple[int, int] = (16, 16)) -> bytes:
        buffer = BytesIO()
        Image.new("RGB", size, color).save(buffer, format="PNG")
        return buffer.getvalue()

    return make


@pytest.fixture
def raw_event() -> Callable[..., dict[str, Any]]:
    """Factory producing a complete raw event record."""

    def make(**overrides: Any) -> dict[str, Any]:
        record: dict[str, Any] = {
            "id": EVENT_ID,
            "title": "Jazz Night",
            "description": "Live quartet on the rooftop",
            "date": "2026-11-14",
            "timeRange": "20:00-23:00",
            "location": "Blue Note Rooftop",
            "hashtags": ["jazz", "live"],
            "guests": [],
            "priceDetails": [],
            "likes": [],
            "dislikes": [],
            "reservations": [],
            "interactions": [],
            "images": [],
            "createdBy": "u1",
        }
        record.update(overrides)
        return record

    return make


@pytest.fixture
def seed_user(document_store: InMemoryDocumentStore) -> Callable[..., Any]:
    """Factory creating user records with empty event-id lists."""

    async def seed(user_id: str, **fields: Any) -> None:
        record: dict[str, Any] = {
            "postedEvents": [],
            "likedEvents": [],
            "dislikedEvents": [],
            "reservedEvents": [],
            "attendedEvents": [],
        }
        record.update(fields)
        await document_store.set("users", user_id, record)

    return seed


@pytest.fixture
async def client(
    document_store: InMemoryDocumentStore,
    blob_store: InMemoryBlobStore,
) -> AsyncIterator[AsyncClient]:
    """Create async test client for the FastAPI app on in-memory stores."""
    app.state.document_store = document_store
    app.state.blob_store = blob_store
    app.state.event_service = build_event_service(
        Settings(storage_backend="memory"), document_store, blob_store
    )

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    # Clean up app state
    del app.state.document_store
    del app.state.blob_store
    del app.state.event_service
