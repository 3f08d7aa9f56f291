"""HTTP middleware and exception handler wiring for FastAPI apps."""

from __future__ import annotations

import uuid
from typing import Any, Sequence

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from blulog.api.contracts import ApiErrorResponse
from blulog.api.errors import ApiErrorCode, to_error_payload
from blulog.core.config import AppConfig
from blulog.core.logging import set_correlation_id

_FIELD_LABELS = {
    "body": "Request body",
    "email": "Email",
    "password": "Password",
    "fullName": "Fullname",
    "newPassword": "New password",
    "token": "Token",
    "status": "Status",
}


def error_response(status_code: int, payload: dict[str, Any]) -> JSONResponse:
    """Render an error envelope through the public error contract."""
    return JSONResponse(
        status_code=status_code,
        content=ApiErrorResponse.model_validate(payload).model_dump(
            by_alias=True, exclude_none=True
        ),
    )


def _field_name(loc: Sequence[Any]) -> str:
    parts = [str(part) for part in loc if part not in ("body", "query", "path")]
    return ".".join(parts) or str(loc[0] if loc else "body")


def format_validation_errors(errors: Sequence[dict[str, Any]]) -> list[dict[str, str]]:
    """Turn pydantic error records into ``{"field", "message"}`` items."""
    items: list[dict[str, str]] = []
    for err in errors:
        field = _field_name(err.get("loc") or ())
        if err.get("type") == "missing":
            label = _FIELD_LABELS.get(field, field)
            message = f"{label} is required"
        else:
            message = str(err.get("msg") or "Invalid value")
        items.append({"field": field, "message": message})
    return items


def register_http_middleware(app: FastAPI, *, config: AppConfig, logger: Any) -> None:
    """Attach common security and observability middleware to an app."""

    @app.middleware("http")
    async def request_size_limit_middleware(request: Request, call_next):
        content_length = request.headers.get("content-length")
        if content_length:
            try:
                parsed_length = int(content_length)
            except ValueError:
                parsed_length = 0
            if parsed_length > config.security.request_max_bytes:
                return error_response(
                    413,
                    {
                        "meta": {
                            "errorCode": str(ApiErrorCode.REQUEST_TOO_LARGE),
                            "message": (
                                "Request size exceeds configured limit "
                                f"({config.security.request_max_bytes} bytes)."
                            ),
                        }
                    },
                )
        return await call_next(request)

    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        correlation_id = (
            request.headers.get("x-request-id")
            or request.headers.get("x-correlation-id")
            or uuid.uuid4().hex
        )
        set_correlation_id(correlation_id)
        response = await call_next(request)
        response.headers["X-Request-ID"] = correlation_id
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        logger.info(
            "request_completed",
            extra={
                "path": request.url.path,
                "method": request.method,
                "status_code": response.status_code,
            },
        )
        return response


def register_exception_handlers(app: FastAPI, *, logger: Any) -> None:
    """Attach API exception handlers that return stable error contracts."""

    @app.exception_handler(HTTPException)
    async def handle_http_exception(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        logger.warning(
            "http_exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "status_code": exc.status_code,
            },
        )
        response = error_response(exc.status_code, to_error_payload(exc.detail, exc.status_code))
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(RequestValidationError)
    async def handle_validation_exception(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        logger.warning(
            "validation_exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "status_code": 400,
            },
        )
        return error_response(
            400,
            {
                "meta": {
                    "errorCode": str(ApiErrorCode.VALIDATION_ERROR),
                    "message": "Validation errors",
                    "errors": format_validation_errors(exc.errors()),
                }
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_exception(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        logger.exception(
            "unexpected_exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "status_code": 500,
            },
        )
        return error_response(
            500,
            {
                "meta": {
                    "errorCode": str(ApiErrorCode.INTERNAL_SERVER_ERROR),
                    "message": "Internal server error",
                }
            },
        )
