"""Health check endpoints for monitoring and orchestration."""

from datetime import UTC, datetime

from fastapi import APIRouter, Request
from pydantic import BaseModel

from vibesync.config import settings

router = APIRouter(prefix="/health", tags=["health"])


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    timestamp: datetime
    version: str
    environment: str
    storage_backend: str


class LivenessResponse(BaseModel):
    """Response model for liveness probe."""

    status: str


class ReadinessResponse(BaseModel):
    """Response model for readiness probe."""

    status: str
    checks: dict[str, str]


@router.get("/", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        version=settings.app_version,
        environment=settings.app_env,
        storage_backend=settings.storage_backend,
    )


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe - app is running."""
    return LivenessResponse(status="alive")


async def _check(store: object | None) -> str:
    if store is None:
        return "not_configured"
    is_healthy = getattr(store, "is_healthy", None)
    if is_healthy is None:
        # In-memory stores are always reachable
        return "ok"
    try:
        return "ok" if await is_healthy() else "failed"
    except Exception:
        return "failed"


@router.get("/ready", response_model=ReadinessResponse)
async def readiness(request: Request) -> ReadinessResponse:
    """Readiness probe - app can serve traffic.

    Checks:
    - API is responding
    - Document store is reachable
    - Blob store bucket exists
    """
    checks: dict[str, str] = {"api": "ok"}
    checks["document_store"] = await _check(
        getattr(request.app.state, "document_store", None)
    )
    checks["blob_store"] = await _check(getattr(request.app.state, "blob_store", None))

    status = "ready" if all(v == "ok" for v in checks.values()) else "not_ready"
    return ReadinessResponse(status=status, checks=checks)
