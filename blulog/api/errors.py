"""Shared API error types and helpers."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from fastapi import HTTPException


class ApiErrorCode(StrEnum):
    """Machine-readable API error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    DUPLICATE_RESOURCE = "DUPLICATE_RESOURCE"
    AUTH_MISSING_TOKEN = "AUTH_MISSING_TOKEN"
    AUTH_TOKEN_INVALID = "AUTH_TOKEN_INVALID"
    AUTH_TOKEN_EXPIRED = "AUTH_TOKEN_EXPIRED"
    AUTH_INVALID_SUBJECT = "AUTH_INVALID_SUBJECT"
    AUTH_INVALID_CREDENTIALS = "AUTH_INVALID_CREDENTIALS"
    AUTH_FORBIDDEN = "AUTH_FORBIDDEN"
    REFRESH_TOKEN_REJECTED = "REFRESH_TOKEN_REJECTED"
    RESET_TOKEN_INVALID = "RESET_TOKEN_INVALID"
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"
    REQUEST_TOO_LARGE = "REQUEST_TOO_LARGE"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class AuthFailure(StrEnum):
    """Why a bearer credential was rejected."""

    MISSING = "missing"
    MALFORMED = "malformed"
    EXPIRED = "expired"


class ApiError(HTTPException):
    """HTTP exception carrying stable API error envelope."""

    def __init__(
        self,
        *,
        status_code: int,
        error_code: ApiErrorCode,
        message: str,
        errors: list[dict[str, str]] | None = None,
    ) -> None:
        """Build an HTTP exception with standard detail structure."""
        detail: dict[str, Any] = {"error_code": str(error_code), "message": message}
        if errors:
            detail["errors"] = errors
        super().__init__(status_code=status_code, detail=detail)
        self.error_code = error_code
        self.message = message


class DuplicateResourceError(ApiError):
    def __init__(self, message: str = "Email is already in use") -> None:
        super().__init__(
            status_code=400,
            error_code=ApiErrorCode.DUPLICATE_RESOURCE,
            message=message,
        )


_AUTH_FAILURES: dict[AuthFailure, tuple[ApiErrorCode, str]] = {
    AuthFailure.MISSING: (
        ApiErrorCode.AUTH_MISSING_TOKEN,
        "Unauthorized - No token provided",
    ),
    AuthFailure.MALFORMED: (
        ApiErrorCode.AUTH_TOKEN_INVALID,
        "Invalid token, not authorized",
    ),
    AuthFailure.EXPIRED: (
        ApiErrorCode.AUTH_TOKEN_EXPIRED,
        "Token expired, please log in again",
    ),
}


class AuthenticationError(ApiError):
    """401 with a message specific to the failure kind."""

    def __init__(self, failure: AuthFailure) -> None:
        error_code, message = _AUTH_FAILURES[failure]
        super().__init__(status_code=401, error_code=error_code, message=message)
        self.failure = failure


class InvalidSubjectError(ApiError):
    def __init__(self) -> None:
        super().__init__(
            status_code=400,
            error_code=ApiErrorCode.AUTH_INVALID_SUBJECT,
            message="Invalid user ID in token",
        )


class AuthorizationError(ApiError):
    def __init__(self, message: str = "Access forbidden: Admins only") -> None:
        super().__init__(
            status_code=403,
            error_code=ApiErrorCode.AUTH_FORBIDDEN,
            message=message,
        )


class NotFoundError(ApiError):
    def __init__(self, message: str = "User not found") -> None:
        super().__init__(
            status_code=404,
            error_code=ApiErrorCode.ACCOUNT_NOT_FOUND,
            message=message,
        )


class RefreshRejectedError(ApiError):
    """403 raised by the refresh flow; the caller must clear the cookie."""

    def __init__(self, message: str) -> None:
        super().__init__(
            status_code=403,
            error_code=ApiErrorCode.REFRESH_TOKEN_REJECTED,
            message=message,
        )


def to_error_payload(detail: Any, status_code: int) -> dict[str, Any]:
    """Normalize HTTP exception detail into the ``meta`` error envelope."""
    if isinstance(detail, dict):
        meta: dict[str, Any] = {
            "message": str(detail.get("message") or detail.get("detail") or "HTTP error"),
            "errorCode": str(detail.get("error_code") or f"HTTP_{status_code}"),
        }
        if detail.get("errors"):
            meta["errors"] = detail["errors"]
        return {"meta": meta}
    return {
        "meta": {
            "message": str(detail or "HTTP error"),
            "errorCode": f"HTTP_{status_code}",
        }
    }
