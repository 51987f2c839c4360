"""Domain errors and the failure envelope returned for them."""

from __future__ import annotations

from typing import Any

from fastapi import status


class BookingError(Exception):
    """Base class for failures reported to API clients."""

    category: str = "internal"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, detail: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class ValidationFailed(BookingError):
    category = "validation"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(BookingError):
    category = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(BookingError):
    category = "conflict"
    status_code = status.HTTP_409_CONFLICT


class CapacityExceeded(Conflict):
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthorized(BookingError):
    category = "unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED


class NotificationFailed(BookingError):
    """The state change was stored but the email could not be delivered."""

    category = "notification"
    status_code = status.HTTP_502_BAD_GATEWAY


class StoreUnavailable(BookingError):
    category = "unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


def failure_body(
    message: str,
    category: str,
    error: str | None = None,
    *,
    production: bool = False,
) -> dict[str, Any]:
    return {
        "success": False,
        "message": message,
        "category": category,
        "error": None if production else error,
    }
