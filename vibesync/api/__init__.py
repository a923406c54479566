"""HTTP API for the event sync engine."""

from vibesync.api.errors import register_error_handlers
from vibesync.api.router import api_router

__all__ = ["api_router", "register_error_handlers"]
