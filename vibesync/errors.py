"""Domain error codes and exceptions.

Every failure that crosses the service boundary is a DomainError carrying a
stable ErrorCode, so callers (and the HTTP layer) can branch on the code
instead of on SDK exception types.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Domain error codes."""

    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    VALIDATION_FAILURE = "VALIDATION_FAILURE"
    TRANSACTION_CONFLICT = "TRANSACTION_CONFLICT"
    PARTIAL_MEDIA_FAILURE = "PARTIAL_MEDIA_FAILURE"
    MEDIA_UPLOAD_FAILED = "MEDIA_UPLOAD_FAILED"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode = ErrorCode.STORE_UNAVAILABLE

    def __init__(self, message: str, code: ErrorCode | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class EventNotFoundError(DomainError):
    """Raised when an event record does not exist."""

    code = ErrorCode.EVENT_NOT_FOUND

    def __init__(self, event_id: str) -> None:
        super().__init__("Event does not exist")
        self.event_id = event_id


class UserNotFoundError(DomainError):
    """Raised when a user record does not exist."""

    code = ErrorCode.USER_NOT_FOUND

    def __init__(self, user_id: str) -> None:
        super().__init__("User does not exist")
        self.user_id = user_id


class ValidationFailure(DomainError):
    """Raised when a single stored record cannot be decoded.

    Batch reads never raise this; they drop the record instead.
    """

    code = ErrorCode.VALIDATION_FAILURE

    def __init__(self, record_id: str, reason: str) -> None:
        super().__init__(f"Record could not be decoded ({reason})")
        self.record_id = record_id
        self.reason = reason


class TransactionConflictError(DomainError):
    """Raised when an optimistic transaction could not commit."""

    code = ErrorCode.TRANSACTION_CONFLICT

    def __init__(
        self, message: str = "Transaction aborted by concurrent write"
    ) -> None:
        super().__init__(message)


class PartialMediaFailure(DomainError):
    """Aggregate of per-blob failures from a batch media operation."""

    code = ErrorCode.PARTIAL_MEDIA_FAILURE

    def __init__(self, entity_id: str, failures: dict[str, str]) -> None:
        super().__init__(
            f"{len(failures)} media operation(s) failed for entity {entity_id}"
        )
        self.entity_id = entity_id
        self.failures = failures


class MediaUploadError(DomainError):
    """Raised when any upload in a batch fails; no partial result is kept."""

    code = ErrorCode.MEDIA_UPLOAD_FAILED

    def __init__(self, entity_id: str, index: int, reason: str) -> None:
        super().__init__(f"Upload of image {index} failed for entity {entity_id}")
        self.entity_id = entity_id
        self.index = index
        self.reason = reason


class StoreUnavailableError(DomainError):
    """Raised on transport or authentication failures of a backing store."""

    code = ErrorCode.STORE_UNAVAILABLE

    def __init__(self, store: str, reason: str) -> None:
        super().__init__(f"{store} unavailable: {reason}")
        self.store = store
        self.reason = reason
