"""Authentication service for registration, login, refresh and password reset."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import urlencode

from bson import ObjectId

from blulog.api.errors import (
    ApiError,
    ApiErrorCode,
    AuthenticationError,
    AuthFailure,
    DuplicateResourceError,
    InvalidSubjectError,
    NotFoundError,
    RefreshRejectedError,
)
from blulog.auth.models import (
    Account,
    AccountStatus,
    ForgotPasswordRequest,
    LoginRequest,
    RegisteredAccount,
    RegisterRequest,
    ResetPasswordRequest,
    Role,
    SessionUser,
)
from blulog.auth.repository import AccountStore, DuplicateEmailError
from blulog.auth.tokens import TokenCodec, TokenKind, TokenSubjectError
from blulog.core.config import AuthConfig
from blulog.core.security import (
    TokenError,
    TokenExpiredError,
    TokenInvalidError,
    hash_password,
    verify_password,
)
from blulog.mail.dispatcher import EmailDispatcher, render_reset_email

LOGGER = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"

# Verified against when the email is unknown so both login failures cost the same.
_DUMMY_PASSWORD_HASH = hash_password("blulog-dummy-password")


@dataclass(frozen=True)
class LoginResult:
    """Tokens and user projection produced by a successful login."""

    access_token: str
    refresh_token: str
    user: SessionUser


class AuthService:
    """Credential and session management on top of the account store."""

    def __init__(
        self,
        repo: AccountStore,
        codec: TokenCodec,
        mailer: EmailDispatcher,
        config: AuthConfig,
        *,
        client_base_url: str,
    ) -> None:
        """Initialize service dependencies."""
        self._repo = repo
        self._codec = codec
        self._mailer = mailer
        self._config = config
        self._client_base_url = client_base_url.rstrip("/")

    def bootstrap_admin_account(self) -> None:
        """Ensure the configured bootstrap admin account exists."""
        if not self._config.admin_email or not self._config.admin_password:
            return
        if self._repo.find_by_email(self._config.admin_email) is not None:
            return
        try:
            self._repo.create(
                Account(
                    id=str(ObjectId()),
                    email=self._config.admin_email,
                    password_hash=hash_password(self._config.admin_password),
                    full_name="Administrator",
                    role=Role.ADMIN,
                )
            )
        except DuplicateEmailError:
            return
        LOGGER.info("bootstrap_admin_created")

    def register(self, req: RegisterRequest) -> RegisteredAccount:
        """Create a regular, active account for a validated request."""
        if self._repo.find_by_email(req.email) is not None:
            raise DuplicateResourceError()

        account = Account(
            id=str(ObjectId()),
            email=req.email,
            full_name=req.full_name,
            password_hash=hash_password(req.password),
            role=Role.USER,
            status=AccountStatus.ACTIVE,
        )
        try:
            account = self._repo.create(account)
        except DuplicateEmailError as exc:
            raise DuplicateResourceError() from exc

        LOGGER.info("account_registered", extra={"account_id": account.id})
        return RegisteredAccount(id=account.id, full_name=account.full_name, email=account.email)

    def login(self, req: LoginRequest) -> LoginResult:
        """Check credentials and issue an access/refresh token pair.

        Unknown email and wrong password fail identically.
        """
        account = self._repo.find_by_email(req.email)
        stored_hash = account.password_hash if account is not None else _DUMMY_PASSWORD_HASH
        password_ok = verify_password(req.password, stored_hash)
        if account is None or not password_ok:
            raise ApiError(
                status_code=400,
                error_code=ApiErrorCode.AUTH_INVALID_CREDENTIALS,
                message=INVALID_CREDENTIALS_MESSAGE,
            )

        LOGGER.info("login_succeeded", extra={"account_id": account.id})
        return LoginResult(
            access_token=self._codec.issue_access(account),
            refresh_token=self._codec.issue_refresh(account),
            user=SessionUser(
                id=account.id,
                full_name=account.full_name,
                email=account.email,
                role=account.role,
            ),
        )

    def authenticate(self, token: str) -> Account:
        """Resolve a bearer access token to its current account."""
        if not token:
            raise AuthenticationError(AuthFailure.MISSING)
        try:
            claims = self._codec.verify(TokenKind.ACCESS, token)
        except TokenSubjectError as exc:
            raise InvalidSubjectError() from exc
        except TokenExpiredError as exc:
            raise AuthenticationError(AuthFailure.EXPIRED) from exc
        except TokenInvalidError as exc:
            raise AuthenticationError(AuthFailure.MALFORMED) from exc

        account = self._repo.find_by_id(claims.sub)
        if account is None:
            raise NotFoundError("User not found, authentication failed")
        return account

    def refresh(self, refresh_token: str | None) -> str:
        """Mint a new access token from a refresh token.

        The refresh token itself is not rotated and stays usable until it
        expires.
        """
        if not refresh_token:
            raise AuthenticationError(AuthFailure.MISSING)
        try:
            claims = self._codec.verify(TokenKind.REFRESH, refresh_token)
        except TokenError as exc:
            LOGGER.warning("token_rejected", extra={"token_kind": str(TokenKind.REFRESH)})
            raise RefreshRejectedError("Forbidden - Invalid refresh token") from exc

        account = self._repo.find_by_id(claims.sub)
        if account is None:
            raise RefreshRejectedError("Forbidden - User not found")
        return self._codec.issue_access(account)

    def forgot_password(self, req: ForgotPasswordRequest) -> None:
        """Email a password reset link to an existing account."""
        account = self._repo.find_by_email(req.email)
        if account is None:
            raise NotFoundError("User not found")

        token = self._codec.issue_reset(account)
        reset_link = f"{self._client_base_url}/reset-password?{urlencode({'token': token})}"
        sent = self._mailer.send(
            account.email,
            "Password Reset Request",
            render_reset_email(reset_link, self._codec.ttl_seconds(TokenKind.RESET)),
        )
        if not sent:
            LOGGER.warning("reset_email_not_delivered", extra={"account_id": account.id})

    def reset_password(self, req: ResetPasswordRequest) -> None:
        """Overwrite an account's password hash using a reset token.

        The token is not consumed; it remains valid until it expires, and
        sessions issued before the reset keep working.
        """
        try:
            claims = self._codec.verify(TokenKind.RESET, req.token)
        except TokenError as exc:
            LOGGER.warning("token_rejected", extra={"token_kind": str(TokenKind.RESET)})
            raise ApiError(
                status_code=400,
                error_code=ApiErrorCode.RESET_TOKEN_INVALID,
                message="Invalid or expired token",
            ) from exc

        if self._repo.find_by_id(claims.sub) is None:
            raise NotFoundError("User not found")
        updated = self._repo.update_by_id(
            claims.sub, {"password_hash": hash_password(req.new_password)}
        )
        if updated is None:
            raise NotFoundError("User not found")
        LOGGER.info("password_reset", extra={"account_id": updated.id})
