"""Pydantic models for the account and credential domain."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from enum import StrEnum
from typing import Annotated, Any

from bson import ObjectId
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

DEFAULT_AVATAR_URL = (
    "https://static1.s123-cdn-static-a.com/uploads/3107639/800_5e9de73574b25.png"
)
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")


class Role(StrEnum):
    USER = "user"
    ADMIN = "admin"


class AccountStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"


def can_administer(role: Role | str) -> bool:
    """Return whether the role grants admin-only capabilities."""
    return role == Role.ADMIN


def is_account_id(value: Any) -> bool:
    """Return whether value is a well-formed account identifier."""
    return isinstance(value, str) and ObjectId.is_valid(value)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Account(BaseModel):
    """Persisted account record, including the password hash."""

    id: str
    email: str
    password_hash: str
    full_name: str | None = None
    phone: str | None = None
    address: str | None = None
    avatar: str = DEFAULT_AVATAR_URL
    role: Role = Role.USER
    status: AccountStatus = AccountStatus.ACTIVE
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def public_view(self) -> "AccountView":
        """Project the account for API responses, without the password hash."""
        return AccountView.model_validate(self.model_dump(exclude={"password_hash"}))


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AccountView(_CamelModel):
    """Outward-facing account projection."""

    id: str
    email: str
    full_name: str | None = None
    phone: str | None = None
    address: str | None = None
    avatar: str = DEFAULT_AVATAR_URL
    role: Role
    status: AccountStatus
    created_at: datetime
    updated_at: datetime


class RegisteredAccount(_CamelModel):
    """Projection returned by registration."""

    id: str
    full_name: str | None = None
    email: str


class SessionUser(_CamelModel):
    """Projection returned alongside a freshly issued access token."""

    id: str
    full_name: str | None = None
    email: str
    role: Role


def _check_email(value: str) -> str:
    value = value.strip().lower()
    if not value:
        raise PydanticCustomError("email_empty", "Email cannot be empty")
    if not EMAIL_PATTERN.match(value):
        raise PydanticCustomError("email_invalid", "Please provide a valid email address")
    return value


def _check_full_name(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if len(value) < 3:
        raise PydanticCustomError(
            "full_name_short", "Fullname must be at least 3 characters long"
        )
    if len(value) > 100:
        raise PydanticCustomError("full_name_long", "Fullname cannot exceed 100 characters")
    return value


Email = Annotated[str, AfterValidator(_check_email)]
FullName = Annotated[str | None, AfterValidator(_check_full_name)]


class RegisterRequest(_CamelModel):
    """Registration request payload."""

    full_name: FullName = None
    email: Email
    password: str

    @field_validator("password")
    @classmethod
    def _check_password(cls, value: str) -> str:
        if not value:
            raise PydanticCustomError("password_empty", "Password cannot be empty")
        if len(value) < 6:
            raise PydanticCustomError(
                "password_short", "Password must be at least 6 characters long"
            )
        return value


class LoginRequest(_CamelModel):
    """Login request payload."""

    email: Email
    password: str

    @field_validator("password")
    @classmethod
    def _check_password(cls, value: str) -> str:
        if not value:
            raise PydanticCustomError("password_empty", "Password cannot be empty")
        return value


class ForgotPasswordRequest(_CamelModel):
    """Forgot-password request payload."""

    email: Email


class ResetPasswordRequest(_CamelModel):
    """Reset-password request payload."""

    token: str = Field(min_length=1)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def _check_new_password(cls, value: str) -> str:
        if len(value) < 6:
            raise PydanticCustomError(
                "password_short", "Password must be at least 6 characters long"
            )
        return value


class UpdateStatusRequest(_CamelModel):
    """Account status change payload."""

    status: str

    def parsed_status(self) -> AccountStatus | None:
        """Return the requested status, or None when it is not a known value."""
        try:
            return AccountStatus(self.status)
        except ValueError:
            return None


class UpdateAccountRequest(_CamelModel):
    """Profile fields an account owner may change."""

    full_name: FullName = None
    phone: str | None = None
    address: str | None = None
    avatar: str | None = None

    @field_validator("phone")
    @classmethod
    def _check_phone(cls, value: str | None) -> str | None:
        if value and not PHONE_PATTERN.match(value):
            raise PydanticCustomError("phone_invalid", "Invalid phone number format")
        return value

    @field_validator("address")
    @classmethod
    def _strip_address(cls, value: str | None) -> str | None:
        return value.strip() if value is not None else None

    @field_validator("avatar")
    @classmethod
    def _check_avatar(cls, value: str | None) -> str | None:
        if value is not None and not value.startswith(("http://", "https://")):
            raise PydanticCustomError("avatar_invalid", "Avatar must be a valid URI")
        return value

    def changes(self) -> dict[str, Any]:
        """Return only the fields present in the request body.

        An explicit null avatar resets it to the default image.
        """
        changes = self.model_dump(exclude_unset=True)
        if "avatar" in changes and changes["avatar"] is None:
            changes["avatar"] = DEFAULT_AVATAR_URL
        return changes


class AuthTokenClaims(BaseModel):
    """Decoded claims shared by access, refresh and reset tokens."""

    sub: str
    iat: int
    exp: int
    email: str | None = None
