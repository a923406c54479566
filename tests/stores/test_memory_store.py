"""Tests for the in-memory document and blob stores."""

import asyncio

import pytest

from vibesync.errors import TransactionConflictError
from vibesync.stores.base import ArrayRemove, ArrayUnion, BlobStore, DocumentStore
from vibesync.stores.memory import InMemoryBlobStore, InMemoryDocumentStore


class TestProtocols:
    def test_backends_satisfy_protocols(self, document_store, blob_store):
        assert isinstance(document_store, DocumentStore)
        assert isinstance(blob_store, BlobStore)


class TestArraySentinels:
    """Tests for ArrayUnion / ArrayRemove."""

    @pytest.mark.asyncio
    async def test_update_applies_sentinels(self, document_store):
        await document_store.set("users", "u1", {"postedEvents": ["a", "b"]})

        await document_store.update(
            "users", "u1", {"postedEvents": ArrayUnion("b", "c")}
        )
        assert (await document_store.get("users", "u1"))["postedEvents"] == [
            "a",
            "b",
            "c",
        ]

        await document_store.update("users", "u1", {"postedEvents": ArrayRemove("a")})
        assert (await document_store.get("users", "u1"))["postedEvents"] == ["b", "c"]

    @pytest.mark.asyncio
    async def test_update_missing_document_raises(self, document_store):
        with pytest.raises(KeyError):
            await document_store.update("users", "ghost", {"x": 1})

    def test_sentinels_tolerate_missing_field(self):
        assert ArrayUnion("a").apply(None) == ["a"]
        assert ArrayRemove("a").apply(None) == []


class TestTransactions:
    """Tests for optimistic transactions."""

    @pytest.mark.asyncio
    async def test_writes_are_invisible_until_commit(self, document_store):
        seen: list = []

        async def body(transaction):
            await transaction.get("events", "e1")
            transaction.set("events", "e1", {"title": "draft"})
            seen.append(await document_store.get("events", "e1"))
            return "done"

        assert await document_store.run_transaction(body) == "done"
        assert seen == [None]
        assert await document_store.get("events", "e1") == {"title": "draft"}

    @pytest.mark.asyncio
    async def test_conflicting_write_reruns_body(self, document_store):
        await document_store.set("events", "e1", {"count": 0})
        attempts = 0

        async def body(transaction):
            nonlocal attempts
            attempts += 1
            record = await transaction.get("events", "e1")
            if attempts == 1:
                # Concurrent writer sneaks in between read and commit
                await document_store.update("events", "e1", {"count": 10})
            transaction.update("events", "e1", {"count": record["count"] + 1})

        await document_store.run_transaction(body)

        assert attempts == 2
        assert (await document_store.get("events", "e1"))["count"] == 11

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self):
        store = InMemoryDocumentStore(max_attempts=3, max_jitter_seconds=0)
        await store.set("events", "e1", {"count": 0})
        attempts = 0

        async def body(transaction):
            nonlocal attempts
            attempts += 1
            await transaction.get("events", "e1")
            await store.update("events", "e1", {"count": attempts})
            transaction.update("events", "e1", {"count": -1})

        with pytest.raises(TransactionConflictError):
            await store.run_transaction(body)
        assert attempts == 3

    @pytest.mark.asyncio
    async def test_failed_write_leaves_no_partial_commit(self, document_store):
        async def body(transaction):
            await transaction.get("events", "e1")
            transaction.set("events", "e1", {"title": "new"})
            transaction.update("users", "ghost", {"postedEvents": ["e1"]})

        with pytest.raises(KeyError):
            await document_store.run_transaction(body)
        assert await document_store.get("events", "e1") is None

    @pytest.mark.asyncio
    async def test_read_after_write_is_rejected(self, document_store):
        async def body(transaction):
            transaction.set("events", "e1", {})
            await transaction.get("events", "e1")

        with pytest.raises(RuntimeError):
            await document_store.run_transaction(body)

    @pytest.mark.asyncio
    async def test_concurrent_increments_serialize(self, document_store):
        await document_store.set("counters", "c", {"n": 0})

        async def increment(transaction):
            record = await transaction.get("counters", "c")
            transaction.update("counters", "c", {"n": record["n"] + 1})

        await asyncio.gather(
            *(document_store.run_transaction(increment) for _ in range(8))
        )

        assert (await document_store.get("counters", "c"))["n"] == 8


class TestQueries:
    @pytest.mark.asyncio
    async def test_find_without_member(self, document_store):
        await document_store.set("events", "a", {"likes": ["u1"]})
        await document_store.set("events", "b", {"likes": ["u2"]})
        await document_store.set("events", "c", {})

        records = await document_store.find_without_member("events", ["likes"], "u1")

        assert records == [{"likes": ["u2"]}, {}]

    @pytest.mark.asyncio
    async def test_access_log(self, document_store):
        await document_store.get("users", "u1")

        assert document_store.accessed("users")
        assert document_store.accessed("users", "u1")
        assert not document_store.accessed("users", "u2")
        assert not document_store.accessed("events")


class TestInMemoryBlobStore:
    @pytest.mark.asyncio
    async def test_put_list_delete(self):
        store = InMemoryBlobStore(bucket="b")

        url = await store.put("a/x_0.jpg", b"1", "image/jpeg")
        await store.put("a/x_1.jpg", b"2", "image/jpeg")

        assert url == "memory://b/a/x_0.jpg"
        assert await store.list_paths("a/") == ["a/x_0.jpg", "a/x_1.jpg"]
        await store.delete("a/x_0.jpg")
        assert await store.list_paths("a/") == ["a/x_1.jpg"]

    @pytest.mark.asyncio
    async def test_missing_blob_raises(self):
        store = InMemoryBlobStore()

        with pytest.raises(FileNotFoundError):
            await store.delete("nope")
        with pytest.raises(FileNotFoundError):
            await store.download_url("nope")
