"""FastAPI application entry point."""

import inspect
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from vibesync.api import api_router, register_error_handlers
from vibesync.config import Settings, settings
from vibesync.media.compression import ImageCompressor
from vibesync.media.lifecycle import MediaLifecycleManager
from vibesync.media.upload import MediaUploadOrchestrator
from vibesync.repositories.interaction_repo import InteractionLedger
from vibesync.repositories.metadata_repo import EventMetadataRepository
from vibesync.services.event_service import EventSyncService
from vibesync.stores.base import BlobStore, DocumentStore
from vibesync.stores.memory import InMemoryBlobStore, InMemoryDocumentStore

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_stores(config: Settings) -> tuple[DocumentStore, BlobStore]:
    """Build the document and blob stores selected by configuration.

    The Google backends are imported here so the memory backend never loads
    the Cloud SDKs.
    """
    if config.storage_backend == "memory":
        return (
            InMemoryDocumentStore(max_attempts=config.transaction_max_attempts),
            InMemoryBlobStore(bucket=config.storage_bucket or "local"),
        )

    from vibesync.stores.firestore_store import FirestoreDocumentStore
    from vibesync.stores.gcs_store import GCSBlobStore

    if not config.storage_bucket:
        raise ValueError("STORAGE_BUCKET is required for the firestore backend")

    document_store = FirestoreDocumentStore(
        project=config.gcp_project,
        credentials_path=config.google_credentials_path,
        database=config.firestore_database,
        max_attempts=config.transaction_max_attempts,
    )
    blob_store = GCSBlobStore(
        bucket_name=config.storage_bucket,
        project=config.gcp_project,
        credentials_path=config.google_credentials_path,
        url_ttl_seconds=config.blob_url_ttl_seconds,
    )
    return document_store, blob_store


def build_event_service(
    config: Settings,
    document_store: DocumentStore,
    blob_store: BlobStore,
) -> EventSyncService:
    """Wire repositories and media components into the service."""
    compressor = ImageCompressor(
        quality=config.media_jpeg_quality,
        max_dimension=config.media_max_dimension,
    )
    return EventSyncService(
        metadata_repo=EventMetadataRepository(
            document_store,
            events_collection=config.events_collection,
            users_collection=config.users_collection,
        ),
        ledger=InteractionLedger(
            document_store,
            events_collection=config.events_collection,
            users_collection=config.users_collection,
        ),
        uploader=MediaUploadOrchestrator(
            blob_store,
            compressor=compressor,
            max_concurrency=config.media_upload_concurrency,
        ),
        media=MediaLifecycleManager(blob_store),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan management.

    Startup:
    - Create the configured document and blob stores
    - Wire the event sync service

    Shutdown:
    - Close the document store client
    """
    logger.info(
        "Starting %s (%s backend)...", settings.app_name, settings.storage_backend
    )

    document_store, blob_store = create_stores(settings)
    app.state.document_store = document_store
    app.state.blob_store = blob_store
    app.state.event_service = build_event_service(settings, document_store, blob_store)
    logger.info("Event sync service initialized")

    yield

    logger.info("Shutting down %s...", settings.app_name)
    close = getattr(document_store, "close", None)
    if close is not None:
        result = close()
        if inspect.isawaitable(result):
            await result
    logger.info("Document store closed")


app = FastAPI(
    title=settings.app_name,
    description="Event sync engine: records, media and user interactions",
    version=settings.app_version,
    lifespan=lifespan,
)

app.include_router(api_router)
register_error_handlers(app)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "vibesync.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
