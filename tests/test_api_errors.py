from __future__ import annotations

from blulog.api.errors import (
    ApiError,
    ApiErrorCode,
    AuthorizationError,
    RefreshRejectedError,
    to_error_payload,
)


def test_to_error_payload_preserves_structured_detail() -> None:
    payload = to_error_payload(
        {"error_code": "AUTH_TOKEN_INVALID", "message": "Invalid"},
        401,
    )

    assert payload == {"meta": {"message": "Invalid", "errorCode": "AUTH_TOKEN_INVALID"}}


def test_to_error_payload_normalizes_plain_string() -> None:
    payload = to_error_payload("boom", 500)

    assert payload == {"meta": {"message": "boom", "errorCode": "HTTP_500"}}


def test_to_error_payload_carries_field_errors() -> None:
    exc = ApiError(
        status_code=400,
        error_code=ApiErrorCode.VALIDATION_ERROR,
        message="Validation errors",
        errors=[{"field": "email", "message": "Email is required"}],
    )

    payload = to_error_payload(exc.detail, exc.status_code)

    assert payload["meta"]["errors"] == [{"field": "email", "message": "Email is required"}]


def test_forbidden_errors_use_403() -> None:
    assert AuthorizationError().status_code == 403
    assert AuthorizationError().message == "Access forbidden: Admins only"
    assert RefreshRejectedError("Forbidden - User not found").status_code == 403
