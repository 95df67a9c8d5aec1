"""Error taxonomy shared by services and endpoints.

Services raise :class:`BookingError` subclasses; the FastAPI exception handler
in ``app.main`` renders them with :func:`error_payload` so clients always get
``{"detail": {"message", "field_errors", "code", "retryable"}}``.
"""

from typing import Dict, Optional
from fastapi import status


class BookingError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "booking_error"
    retryable = False

    def __init__(self, message: str, field_errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.field_errors = field_errors or {}


class ValidationError(BookingError):
    """Input rejected locally; nothing was written."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "validation_error"


class TransitionError(BookingError):
    """The request's current status does not allow the attempted action."""

    status_code = status.HTTP_409_CONFLICT
    code = "invalid_transition"


class ConflictError(TransitionError):
    """Another writer changed the request first; reload before retrying."""

    code = "stale_write"


class AuthorizationFailure(BookingError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class NotFoundError(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class RemoteFailure(BookingError):
    """The backing store failed; the same call may succeed if retried."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "remote_failure"
    retryable = True


def error_payload(exc: BookingError) -> dict:
    return {
        "detail": {
            "message": exc.message,
            "field_errors": exc.field_errors,
            "code": exc.code,
            "retryable": exc.retryable,
        }
    }
