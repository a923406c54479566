"""API router aggregation."""

from fastapi import APIRouter

from vibesync.api.events import router as events_router
from vibesync.api.health import router as health_router

api_router = APIRouter()
api_router.include_router(health_router)
# Domain endpoints live under /api; probes stay at the root
api_router.include_router(events_router, prefix="/api")
