"""Mapping of domain errors to HTTP responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from vibesync.api.schemas import ErrorResponse
from vibesync.errors import DomainError, ErrorCode

logger = structlog.get_logger()

STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.EVENT_NOT_FOUND: 404,
    ErrorCode.USER_NOT_FOUND: 404,
    ErrorCode.VALIDATION_FAILURE: 422,
    ErrorCode.TRANSACTION_CONFLICT: 409,
    ErrorCode.PARTIAL_MEDIA_FAILURE: 502,
    ErrorCode.MEDIA_UPLOAD_FAILED: 502,
    ErrorCode.STORE_UNAVAILABLE: 503,
}


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Render a DomainError as `{code, message}` with a mapped status."""
    status_code = STATUS_BY_CODE.get(exc.code, 500)
    log = logger.warning if status_code < 500 else logger.error
    log(
        "request failed",
        path=request.url.path,
        code=exc.code.value,
        error=exc.message,
    )
    body = ErrorResponse(code=exc.code.value, message=exc.message)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def register_error_handlers(app: FastAPI) -> None:
    """Install the DomainError handler on an app."""
    app.add_exception_handler(DomainError, domain_error_handler)
