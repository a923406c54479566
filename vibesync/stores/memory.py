"""In-process document and blob stores.

Used for local development (`STORAGE_BACKEND=memory`) and as the test
backend. The document store mirrors Firestore semantics closely enough to
exercise the engine's consistency logic:

- every document carries a version that changes on each write,
- transactions record the versions they read and commit only if none of
  them changed, otherwise the body is re-run (bounded, with jitter),
- `ArrayUnion` / `ArrayRemove` are applied against the latest value at
  commit time.
"""

import asyncio
import copy
import itertools
from collections.abc import Sequence
from typing import Any

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random,
)

from vibesync.errors import TransactionConflictError
from vibesync.stores.base import ArrayRemove, ArrayUnion, TransactionBody, T

logger = structlog.get_logger()

_Key = tuple[str, str]


def _apply_update(current: dict[str, Any], data: dict[str, Any]) -> dict[str, Any]:
    merged = dict(current)
    for field, value in data.items():
        if isinstance(value, ArrayUnion | ArrayRemove):
            merged[field] = value.apply(merged.get(field))
        else:
            merged[field] = copy.deepcopy(value)
    return merged


def _strip_sentinels(data: dict[str, Any]) -> dict[str, Any]:
    return _apply_update({}, data)


class InMemoryTransaction:
    """Buffered transaction over an InMemoryDocumentStore."""

    def __init__(self, store: "InMemoryDocumentStore"):
        self._store = store
        self._read_versions: dict[_Key, int] = {}
        self._writes: list[tuple[str, _Key, dict[str, Any] | None]] = []

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        if self._writes:
            msg = "Transaction reads must happen before writes"
            raise RuntimeError(msg)
        key = (collection, doc_id)
        version, data = self._store._snapshot(key)
        self._read_versions[key] = version
        self._store.access_log.append(("tx_get", collection, doc_id))
        # Yield so concurrent transactions interleave like network calls would
        await asyncio.sleep(0)
        return data

    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        self._writes.append(("set", (collection, doc_id), copy.deepcopy(data)))

    def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        self._writes.append(("update", (collection, doc_id), dict(data)))

    def delete(self, collection: str, doc_id: str) -> None:
        self._writes.append(("delete", (collection, doc_id), None))

    @property
    def read_versions(self) -> dict[_Key, int]:
        return self._read_versions

    @property
    def writes(self) -> list[tuple[str, _Key, dict[str, Any] | None]]:
        return self._writes


class InMemoryDocumentStore:
    """Versioned in-memory document store with optimistic transactions."""

    def __init__(self, max_attempts: int = 5, max_jitter_seconds: float = 0.005):
        """Initialize an empty store.

        Args:
            max_attempts: Transaction attempts before TransactionConflictError
            max_jitter_seconds: Upper bound of the random wait between attempts
        """
        self._docs: dict[_Key, tuple[int, dict[str, Any]]] = {}
        self._versions = itertools.count(1)
        self._commit_lock = asyncio.Lock()
        self._max_attempts = max_attempts
        self._max_jitter = max_jitter_seconds
        self.access_log: list[tuple[str, str, str]] = []

    def _snapshot(self, key: _Key) -> tuple[int, dict[str, Any] | None]:
        entry = self._docs.get(key)
        if entry is None:
            return 0, None
        version, data = entry
        return version, copy.deepcopy(data)

    def _write(self, key: _Key, data: dict[str, Any]) -> None:
        self._docs[key] = (next(self._versions), data)

    def accessed(self, collection: str, doc_id: str | None = None) -> bool:
        """True if any operation touched the collection (or one document)."""
        return any(
            c == collection and (doc_id is None or d == doc_id)
            for _, c, d in self.access_log
        )

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        self.access_log.append(("get", collection, doc_id))
        return self._snapshot((collection, doc_id))[1]

    async def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        self.access_log.append(("set", collection, doc_id))
        async with self._commit_lock:
            self._write((collection, doc_id), _strip_sentinels(data))

    async def update(
        self, collection: str, doc_id: str, data: dict[str, Any]
    ) -> None:
        self.access_log.append(("update", collection, doc_id))
        async with self._commit_lock:
            key = (collection, doc_id)
            if key not in self._docs:
                msg = f"No document to update: {collection}/{doc_id}"
                raise KeyError(msg)
            self._write(key, _apply_update(self._docs[key][1], data))

    async def delete(self, collection: str, doc_id: str) -> None:
        self.access_log.append(("delete", collection, doc_id))
        async with self._commit_lock:
            self._docs.pop((collection, doc_id), None)

    async def get_many(
        self, collection: str, doc_ids: Sequence[str]
    ) -> list[dict[str, Any]]:
        results = []
        for doc_id in dict.fromkeys(doc_ids):
            data = self._snapshot((collection, doc_id))[1]
            if data is not None:
                results.append(data)
        return results

    async def find_without_member(
        self, collection: str, fields: Sequence[str], member: str
    ) -> list[dict[str, Any]]:
        results = []
        for (coll, _), (_, data) in list(self._docs.items()):
            if coll != collection:
                continue
            if any(
                isinstance(data.get(field), list) and member in data[field]
                for field in fields
            ):
                continue
            results.append(copy.deepcopy(data))
        return results

    async def run_transaction(self, body: TransactionBody[T]) -> T:
        result: Any = None
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_random(0, self._max_jitter),
            retry=retry_if_exception_type(TransactionConflictError),
            before_sleep=self._log_retry,
            reraise=True,
        ):
            with attempt:
                transaction = InMemoryTransaction(self)
                result = await body(transaction)
                await self._commit(transaction)
        return result

    async def _commit(self, transaction: InMemoryTransaction) -> None:
        async with self._commit_lock:
            for key, version in transaction.read_versions.items():
                if self._snapshot(key)[0] != version:
                    raise TransactionConflictError(
                        f"Document {key[0]}/{key[1]} changed during transaction"
                    )
            # Stage everything first so a failing write leaves no partial commit
            staged: dict[_Key, dict[str, Any] | None] = {}
            for op, key, data in transaction.writes:
                self.access_log.append((f"tx_{op}", key[0], key[1]))
                current = staged[key] if key in staged else self._snapshot(key)[1]
                if op == "set":
                    staged[key] = _strip_sentinels(data or {})
                elif op == "update":
                    if current is None:
                        msg = f"No document to update: {key[0]}/{key[1]}"
                        raise KeyError(msg)
                    staged[key] = _apply_update(current, data or {})
                else:
                    staged[key] = None
            for key, data in staged.items():
                if data is None:
                    self._docs.pop(key, None)
                else:
                    self._write(key, data)

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        logger.debug(
            "transaction conflict, retrying",
            attempt=retry_state.attempt_number,
        )


class InMemoryBlobStore:
    """Dictionary-backed blob store returning `memory://` URLs."""

    def __init__(self, bucket: str = "local"):
        self.bucket = bucket
        self._blobs: dict[str, tuple[bytes, str]] = {}

    def url_for(self, path: str) -> str:
        return f"memory://{self.bucket}/{path}"

    def content(self, path: str) -> tuple[bytes, str] | None:
        """Return (data, content_type) stored at path, if any."""
        return self._blobs.get(path)

    async def put(self, path: str, data: bytes, content_type: str) -> str:
        await asyncio.sleep(0)
        self._blobs[path] = (bytes(data), content_type)
        return self.url_for(path)

    async def list_paths(self, prefix: str) -> list[str]:
        await asyncio.sleep(0)
        return sorted(path for path in self._blobs if path.startswith(prefix))

    async def delete(self, path: str) -> None:
        await asyncio.sleep(0)
        if path not in self._blobs:
            msg = f"No blob at {path}"
            raise FileNotFoundError(msg)
        del self._blobs[path]

    async def download_url(self, path: str) -> str:
        await asyncio.sleep(0)
        if path not in self._blobs:
            msg = f"No blob at {path}"
            raise FileNotFoundError(msg)
        return self.url_for(path)
