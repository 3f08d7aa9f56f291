"""Public API response contracts."""

from blulog.api.contracts.models import (
    AccessTokenData,
    AccessTokenResponse,
    AccountData,
    AccountListData,
    AccountListResponse,
    AccountResponse,
    ApiErrorResponse,
    ErrorMeta,
    FieldError,
    HealthResponse,
    LoginData,
    LoginResponse,
    MessageResponse,
    RegisteredData,
    RegisterResponse,
    ResponseMeta,
)

__all__ = [
    "AccessTokenData",
    "AccessTokenResponse",
    "AccountData",
    "AccountListData",
    "AccountListResponse",
    "AccountResponse",
    "ApiErrorResponse",
    "ErrorMeta",
    "FieldError",
    "HealthResponse",
    "LoginData",
    "LoginResponse",
    "MessageResponse",
    "RegisteredData",
    "RegisterResponse",
    "ResponseMeta",
]
