"""
Domain error taxonomy.

Services raise these exceptions; the exception handlers installed by
``main.create_app`` turn them into the JSON error envelope
``{"error": {"message": ..., "status": ...}}``.  Every class carries a
fixed HTTP status.  Messages are safe to show to clients.
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """Kinds of failure an operation can report."""

    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    CONFLICT = "CONFLICT"
    CAPACITY = "CAPACITY"
    UNAUTHORIZED = "UNAUTHORIZED"
    INTERNAL = "INTERNAL"


class DomainError(Exception):
    """Base class for errors with a code, a user-safe message and an HTTP status."""

    code: ErrorCode = ErrorCode.INTERNAL
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class InvalidInputError(DomainError):
    """Input passed schema validation but violates a domain rule (e.g. a past date)."""

    code = ErrorCode.VALIDATION
    status_code = 400
    default_message = "Invalid input"


class NotFoundError(DomainError):
    code = ErrorCode.NOT_FOUND
    status_code = 404
    default_message = "Not found"


class ForbiddenError(DomainError):
    code = ErrorCode.FORBIDDEN
    status_code = 403
    default_message = "Forbidden"


class ConflictError(DomainError):
    code = ErrorCode.CONFLICT
    status_code = 400
    default_message = "Conflict"


class CapacityError(DomainError):
    code = ErrorCode.CAPACITY
    status_code = 400
    default_message = "Event is full"


class UnauthorizedError(DomainError):
    """Missing or invalid session.

    ``clear_cookie`` asks the error handler to send a blank session
    cookie so the client drops a stale value.
    """

    code = ErrorCode.UNAUTHORIZED
    status_code = 401
    default_message = "Unauthorized"

    def __init__(self, message: Optional[str] = None, clear_cookie: bool = False) -> None:
        super().__init__(message)
        self.clear_cookie = clear_cookie


class EventNotFoundError(NotFoundError):
    default_message = "Event not found"

    def __init__(self, event_id: str) -> None:
        super().__init__()
        self.event_id = event_id


class OwnEventJoinError(ForbiddenError):
    """The event creator tried to join their own event.

    Reported as 400 by the join endpoint rather than 403.
    """

    status_code = 400
    default_message = "Event creator cannot join their own event"


class NotAttendingError(NotFoundError):
    """Leave was requested without an attendance record; reported as 400."""

    status_code = 400
    default_message = "Not attending this event"
