"""
API error kinds surfaced to callers.

Each kind carries a stable machine-readable ``code`` and an HTTP status. The
exception handlers in ``spoom.main`` render them as::

    {"success": false, "error": "<CODE>", "message": "...", "details": {...}}
"""
from __future__ import annotations

from typing import Any


class ApiError(Exception):
    code = "UNEXPECTED"
    status_code = 500
    default_message = "An unexpected error occurred. Please try again later."

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": False, "error": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(ApiError):
    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Invalid request payload"


class InvalidCredentials(ApiError):
    code = "INVALID_CREDENTIALS"
    status_code = 401
    default_message = "Incorrect email or password"


class AccountExists(ApiError):
    code = "ACCOUNT_EXISTS"
    status_code = 409
    default_message = "An account with this email already exists"


class WeakPassword(ApiError):
    code = "WEAK_PASSWORD"
    status_code = 400
    default_message = "Password does not meet requirements"


class NotConfirmed(ApiError):
    code = "NOT_CONFIRMED"
    status_code = 403
    default_message = "Please confirm your email before signing in"

    def __init__(self, message: str | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("details", {"needsConfirmation": True})
        super().__init__(message, **kwargs)


class InvalidOrExpiredCode(ApiError):
    code = "INVALID_OR_EXPIRED_CODE"
    status_code = 400
    default_message = "Invalid or expired verification code"


class InvalidOrExpiredToken(ApiError):
    code = "INVALID_OR_EXPIRED_TOKEN"
    status_code = 401
    default_message = "Invalid or expired token"


class Unauthorized(ApiError):
    code = "UNAUTHORIZED"
    status_code = 403
    default_message = "You do not have permission to perform this action"


class NotFound(ApiError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"


class Unexpected(ApiError):
    pass
