"""Concurrent, order-preserving image uploads.

Each image in a batch is compressed and uploaded in its own task. Tasks are
tagged with the image's position so the returned URL list matches the input
order no matter which upload finishes first. A batch is all-or-nothing.
"""

import asyncio
from collections.abc import Awaitable, Sequence
from typing import TypeVar

import structlog

from vibesync.errors import MediaUploadError
from vibesync.media.compression import JPEG_CONTENT_TYPE, ImageCompressor
from vibesync.media.paths import blob_name
from vibesync.stores.base import BlobStore

T = TypeVar("T")

logger = structlog.get_logger()


async def gather_or_cancel(*aws: Awaitable[T]) -> list[T]:
    """Run awaitables concurrently, results in argument order.

    On the first failure every still-running sibling is cancelled and awaited
    before the error is re-raised.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except Exception:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class MediaUploadOrchestrator:
    """Uploads ordered image sets to blob storage."""

    def __init__(
        self,
        blob_store: BlobStore,
        compressor: ImageCompressor | None = None,
        max_concurrency: int = 8,
    ):
        """Initialize orchestrator.

        Args:
            blob_store: Destination store
            compressor: JPEG compressor. Defaults to quality 90, 2048px.
            max_concurrency: Maximum overlapping uploads within one batch
        """
        self._blobs = blob_store
        self._compressor = compressor or ImageCompressor()
        self._max_concurrency = max_concurrency

    async def upload_single(
        self,
        image: bytes,
        folder: str,
        name_id: str,
        index: int = 0,
    ) -> str:
        """Compress and upload one image to `<folder>/<name_id>_<index>.jpg`.

        Returns:
            Download URL of the stored blob
        """
        data = await self._compressor.compress_async(image)
        path = f"{folder.rstrip('/')}/{blob_name(name_id, index)}"
        return await self._blobs.put(path, data, JPEG_CONTENT_TYPE)

    async def upload_batch(
        self,
        images: Sequence[bytes],
        folder: str,
        entity_id: str,
    ) -> list[str]:
        """Upload every image concurrently and return URLs in input order.

        Args:
            images: Raw image bytes in display order
            folder: Blob folder, e.g. "event_images/<id>"
            entity_id: Owner id used to name each blob

        Returns:
            One URL per image, same order as `images`

        Raises:
            MediaUploadError: If any upload fails; pending uploads are cancelled
        """
        if not images:
            return []

        semaphore = asyncio.Semaphore(self._max_concurrency)
        lock = asyncio.Lock()
        urls_by_index: dict[int, str] = {}

        async def upload(index: int, image: bytes) -> None:
            async with semaphore:
                try:
                    url = await self.upload_single(image, folder, entity_id, index)
                except Exception as e:
                    raise MediaUploadError(entity_id, index, str(e)) from e
            async with lock:
                urls_by_index[index] = url

        try:
            await gather_or_cancel(
                *(upload(index, image) for index, image in enumerate(images))
            )
        except MediaUploadError as e:
            logger.error(
                "image batch upload failed",
                entity_id=entity_id,
                folder=folder,
                failed_index=e.index,
                error=e.reason,
            )
            raise

        logger.info(
            "uploaded image batch",
            entity_id=entity_id,
            folder=folder,
            count=len(images),
        )
        return [urls_by_index[index] for index in range(len(images))]
