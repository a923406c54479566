"""Listing, retrieval and bulk deletion of an event's media."""

import asyncio
from collections.abc import Iterable, Sequence

import structlog

from vibesync.errors import PartialMediaFailure
from vibesync.media.paths import event_images_folder, image_index, media_prefixes
from vibesync.stores.base import BlobStore

logger = structlog.get_logger()


def _upload_order(path: str) -> tuple[int, str]:
    index = image_index(path)
    return (index if index is not None else 1_000_000, path)


class MediaLifecycleManager:
    """Manages blobs that belong to an entity's media namespace."""

    def __init__(self, blob_store: BlobStore):
        self._blobs = blob_store

    async def delete_all(self, entity_id: str) -> None:
        """Delete every blob in the entity's media namespace.

        Every deletion is attempted even if others fail.

        Raises:
            PartialMediaFailure: If at least one deletion failed
        """
        listings = await asyncio.gather(
            *(self._blobs.list_paths(prefix) for prefix in media_prefixes(entity_id))
        )
        paths = [path for listing in listings for path in listing]
        if not paths:
            logger.info("no media to delete", entity_id=entity_id)
            return

        await self._delete_paths(entity_id, paths)
        logger.info("deleted entity media", entity_id=entity_id, count=len(paths))

    async def prune(self, entity_id: str, keep_count: int) -> int:
        """Delete event images whose upload index is >= keep_count.

        Used after an image set is replaced by a shorter one, so stale
        trailing images do not resurface on retrieval.

        Returns:
            Number of blobs deleted

        Raises:
            PartialMediaFailure: If at least one deletion failed
        """
        paths = await self._blobs.list_paths(f"{event_images_folder(entity_id)}/")
        stale = [
            path
            for path in paths
            if (index := image_index(path)) is not None and index >= keep_count
        ]
        if stale:
            await self._delete_paths(entity_id, stale)
            logger.info("pruned stale images", entity_id=entity_id, count=len(stale))
        return len(stale)

    async def _delete_paths(self, entity_id: str, paths: Iterable[str]) -> None:
        lock = asyncio.Lock()
        failures: dict[str, str] = {}

        async def delete(path: str) -> None:
            try:
                await self._blobs.delete(path)
            except Exception as e:
                logger.warning("failed to delete blob", path=path, error=str(e))
                async with lock:
                    failures[path] = str(e)

        await asyncio.gather(*(delete(path) for path in paths))

        if failures:
            logger.error(
                "media deletion incomplete",
                entity_id=entity_id,
                failed=len(failures),
            )
            raise PartialMediaFailure(entity_id, failures)

    async def retrieve(self, entity_id: str) -> list[str]:
        """Download URLs of an entity's event images in upload order."""
        key = str(entity_id).strip().lower()
        paths = await self._blobs.list_paths(f"{event_images_folder(key)}/")
        ordered = sorted((path for path in paths if key in path), key=_upload_order)
        if not ordered:
            return []
        urls = await asyncio.gather(*(self._blobs.download_url(p) for p in ordered))
        return list(urls)

    async def retrieve_batch(self, entity_ids: Sequence[str]) -> dict[str, list[str]]:
        """Retrieve image URLs for many entities concurrently.

        Returns:
            Mapping with a key for every requested id (empty list if no blobs)
        """
        lock = asyncio.Lock()
        results: dict[str, list[str]] = {}

        async def fetch(entity_id: str) -> None:
            urls = await self.retrieve(entity_id)
            async with lock:
                results[entity_id] = urls

        await asyncio.gather(*(fetch(entity_id) for entity_id in set(entity_ids)))
        return {entity_id: results.get(entity_id, []) for entity_id in entity_ids}
