"""Pydantic API response models used in OpenAPI contracts."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from blulog.auth.models import AccountView, RegisteredAccount, SessionUser


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ResponseMeta(_CamelModel):
    """Envelope metadata for successful responses."""

    message: str


class FieldError(_CamelModel):
    """Single field-level validation message."""

    field: str
    message: str


class ErrorMeta(_CamelModel):
    """Envelope metadata for error responses."""

    message: str = Field(description="Human-readable error message")
    error_code: str = Field(description="Machine-readable error code")
    errors: list[FieldError] | None = None


class ApiErrorResponse(_CamelModel):
    """Stable error envelope for API responses."""

    meta: ErrorMeta


class MessageResponse(_CamelModel):
    """Envelope carrying only a message."""

    meta: ResponseMeta


class HealthResponse(BaseModel):
    """Health check response payload."""

    status: Literal["ok"]


class RegisteredData(_CamelModel):
    user: RegisteredAccount


class RegisterResponse(_CamelModel):
    meta: ResponseMeta
    data: RegisteredData


class LoginData(_CamelModel):
    access_token: str
    user: SessionUser


class LoginResponse(_CamelModel):
    """Login payload; the refresh token travels only in the cookie."""

    meta: ResponseMeta
    data: LoginData


class AccessTokenData(_CamelModel):
    access_token: str


class AccessTokenResponse(_CamelModel):
    meta: ResponseMeta
    data: AccessTokenData


class AccountData(_CamelModel):
    user: AccountView


class AccountResponse(_CamelModel):
    meta: ResponseMeta
    data: AccountData


class AccountListData(_CamelModel):
    users: list[AccountView]


class AccountListResponse(_CamelModel):
    meta: ResponseMeta
    data: AccountListData
