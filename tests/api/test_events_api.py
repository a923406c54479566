"""Tests for the event and interaction endpoints."""

import base64
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from vibesync.api.errors import register_error_handlers
from vibesync.api.events import router
from vibesync.errors import StoreUnavailableError, TransactionConflictError
from vibesync.services.event_service import EventSyncService


def event_body(**overrides) -> dict:
    body = {
        "title": "Jazz Night",
        "description": "Live quartet on the rooftop",
        "date": "2026-11-14",
        "time_range": "20:00-23:00",
        "location": "Blue Note Rooftop",
        "hashtags": ["jazz"],
        "created_by": "u1",
    }
    body.update(overrides)
    return body


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode()


class TestEvents:
    """Tests for /api/events."""

    @pytest.mark.asyncio
    async def test_create_then_get(
        self, client: AsyncClient, seed_user, png_bytes
    ) -> None:
        await seed_user("u1")

        response = await client.post(
            "/api/events",
            json=event_body(
                new_images=[b64(png_bytes("red")), b64(png_bytes("blue"))],
                price_details=[{"title": "GA", "price": "15.00"}],
            ),
        )

        assert response.status_code == 200
        created = response.json()
        assert created["title"] == "Jazz Night"
        assert len(created["images"]) == 2
        assert created["price_details"][0]["price"] == "15.00"

        response = await client.get(f"/api/events/{created['id'].upper()}")
        assert response.status_code == 200
        assert response.json()["images"] == created["images"]

    @pytest.mark.asyncio
    async def test_uploaded_images_are_jpeg(
        self, client: AsyncClient, blob_store, png_bytes
    ) -> None:
        response = await client.post(
            "/api/events",
            json=event_body(created_by="", new_images=[b64(png_bytes())]),
        )

        key = response.json()["id"]
        data, content_type = blob_store.content(f"event_images/{key}/{key}_0.jpg")
        assert content_type == "image/jpeg"
        assert data[:2] == b"\xff\xd8"

    @pytest.mark.asyncio
    async def test_invalid_body_is_rejected(self, client: AsyncClient) -> None:
        body = event_body()
        del body["title"]

        response = await client.post("/api/events", json=body)

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unreadable_guest_avatar_is_502(
        self, client: AsyncClient, blob_store
    ) -> None:
        response = await client.post(
            "/api/events",
            json=event_body(
                created_by="",
                guests=[{"name": "Ada", "image": b64(b"not an image")}],
            ),
        )

        assert response.status_code == 502
        assert response.json()["code"] == "MEDIA_UPLOAD_FAILED"
        assert await blob_store.list_paths("guest_images/") == []

    @pytest.mark.asyncio
    async def test_get_missing_event_is_404(self, client: AsyncClient) -> None:
        response = await client.get("/api/events/7c9e6679-7425-40de-944b-e07fc1f90ae7")

        assert response.status_code == 404
        assert response.json()["code"] == "EVENT_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_delete(self, client: AsyncClient, seed_user) -> None:
        await seed_user("u1")
        created = (await client.post("/api/events", json=event_body())).json()

        response = await client.delete(f"/api/events/{created['id']}")
        assert response.status_code == 204

        response = await client.get(f"/api/events/{created['id']}")
        assert response.status_code == 404


class TestUserEndpoints:
    """Tests for /api/users/{user_id}/..."""

    @pytest.mark.asyncio
    async def test_like_flow(self, client: AsyncClient, seed_user) -> None:
        await seed_user("u2")
        created = (
            await client.post("/api/events", json=event_body(created_by=""))
        ).json()
        event_id = created["id"]

        response = await client.put(f"/api/users/u2/likes/{event_id}")
        assert response.status_code == 200
        assert response.json() == {
            "event_id": event_id,
            "user_id": "u2",
            "kind": "like",
            "changed": True,
        }

        liked = await client.get("/api/users/u2/events", params={"status": "liked"})
        assert [e["id"] for e in liked.json()] == [event_id]
        assert liked.json()[0]["like_count"] == 1

        feed = await client.get("/api/users/u2/feed")
        assert feed.json() == []

        response = await client.delete(f"/api/users/u2/likes/{event_id}")
        assert response.json()["changed"] is True
        liked = await client.get("/api/users/u2/events", params={"status": "liked"})
        assert liked.json() == []

    @pytest.mark.asyncio
    async def test_reservations_and_dislikes(
        self, client: AsyncClient, seed_user
    ) -> None:
        await seed_user("u2")
        event_id = (
            await client.post("/api/events", json=event_body(created_by=""))
        ).json()["id"]

        reserve = await client.put(f"/api/users/u2/reservations/{event_id}")
        cancel = await client.delete(f"/api/users/u2/reservations/{event_id}")
        dislike = await client.put(f"/api/users/u2/dislikes/{event_id}")

        assert reserve.json()["kind"] == "reserve"
        assert cancel.json()["kind"] == "cancel_reservation"
        assert dislike.json()["kind"] == "dislike"

    @pytest.mark.asyncio
    async def test_like_missing_event_is_404(
        self, client: AsyncClient, seed_user
    ) -> None:
        await seed_user("u2")

        response = await client.put(
            "/api/users/u2/likes/7c9e6679-7425-40de-944b-e07fc1f90ae7"
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_like_by_unknown_user_is_404(self, client: AsyncClient) -> None:
        event_id = (
            await client.post("/api/events", json=event_body(created_by=""))
        ).json()["id"]

        response = await client.put(f"/api/users/ghost/likes/{event_id}")

        assert response.status_code == 404
        assert response.json()["code"] == "USER_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_unknown_status_is_rejected(self, client: AsyncClient) -> None:
        response = await client.get("/api/users/u2/events", params={"status": "bogus"})

        assert response.status_code == 422


@pytest.fixture
def mock_service() -> MagicMock:
    return MagicMock(spec=EventSyncService)


@pytest.fixture
async def mocked_client(mock_service) -> AsyncClient:
    """Client for an app whose service is a mock."""
    app = FastAPI()
    app.include_router(router, prefix="/api")
    register_error_handlers(app)
    app.state.event_service = mock_service
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac


class TestErrorMapping:
    """Tests for DomainError to HTTP status mapping."""

    @pytest.mark.asyncio
    async def test_conflict_is_409(self, mocked_client, mock_service) -> None:
        mock_service.like = AsyncMock(side_effect=TransactionConflictError())

        response = await mocked_client.put("/api/users/u2/likes/e1")

        assert response.status_code == 409
        assert response.json()["code"] == "TRANSACTION_CONFLICT"

    @pytest.mark.asyncio
    async def test_store_unavailable_is_503(self, mocked_client, mock_service) -> None:
        mock_service.get_feed = AsyncMock(
            side_effect=StoreUnavailableError("firestore", "deadline exceeded")
        )

        response = await mocked_client.get("/api/users/u2/feed")

        assert response.status_code == 503

    @pytest.mark.asyncio
    async def test_service_not_initialized_is_503(self) -> None:
        app = FastAPI()
        app.include_router(router, prefix="/api")
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            response = await ac.get("/api/users/u2/feed")

        assert response.status_code == 503
