"""Authentication API router."""

from __future__ import annotations

from typing import Any, Callable

from fastapi import APIRouter, Depends, Request, Response

from blulog.api.contracts import (
    AccessTokenData,
    AccessTokenResponse,
    AccountData,
    AccountResponse,
    ApiErrorResponse,
    LoginData,
    LoginResponse,
    MessageResponse,
    RegisteredData,
    RegisterResponse,
    ResponseMeta,
)
from blulog.api.errors import RefreshRejectedError, to_error_payload
from blulog.api.http_setup import error_response
from blulog.auth.models import (
    Account,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
)
from blulog.auth.service import AuthService
from blulog.core.config import CookieConfig

_ERRORS = {
    400: {"model": ApiErrorResponse},
    401: {"model": ApiErrorResponse},
    403: {"model": ApiErrorResponse},
    404: {"model": ApiErrorResponse},
}


def _clear_session_cookie(response: Response, cookie: CookieConfig) -> None:
    response.delete_cookie(
        cookie.name,
        path="/",
        secure=cookie.secure,
        httponly=True,
        samesite=cookie.samesite,
    )


def create_auth_router(
    service: AuthService,
    cookie: CookieConfig,
    authenticate: Callable[[Request], Account],
) -> APIRouter:
    """Build authentication router with session and password reset endpoints."""
    router = APIRouter(prefix="/api", tags=["auth"])

    @router.post("/register", status_code=201, responses=_ERRORS)
    def register(req: RegisterRequest) -> RegisterResponse:
        """Create a new account."""
        user = service.register(req)
        return RegisterResponse(
            meta=ResponseMeta(message="User registered successfully"),
            data=RegisteredData(user=user),
        )

    @router.post("/login", responses=_ERRORS)
    def login(req: LoginRequest, response: Response) -> LoginResponse:
        """Authenticate and start a session.

        The access token goes in the body, the refresh token only in an
        HTTP-only cookie.
        """
        result = service.login(req)
        response.set_cookie(
            cookie.name,
            result.refresh_token,
            max_age=cookie.max_age_seconds,
            path="/",
            secure=cookie.secure,
            httponly=True,
            samesite=cookie.samesite,
        )
        return LoginResponse(
            meta=ResponseMeta(message="Login successful"),
            data=LoginData(access_token=result.access_token, user=result.user),
        )

    @router.get("/profile", responses=_ERRORS)
    def profile(account: Account = Depends(authenticate)) -> AccountResponse:
        """Return the caller's account."""
        return AccountResponse(
            meta=ResponseMeta(message="User profile retrieved successfully"),
            data=AccountData(user=account.public_view()),
        )

    @router.post("/refresh-token", response_model=AccessTokenResponse, responses=_ERRORS)
    def refresh_token(request: Request) -> Any:
        """Issue a new access token from the refresh cookie."""
        try:
            access_token = service.refresh(request.cookies.get(cookie.name))
        except RefreshRejectedError as exc:
            rejected = error_response(exc.status_code, to_error_payload(exc.detail, exc.status_code))
            _clear_session_cookie(rejected, cookie)
            return rejected
        return AccessTokenResponse(
            meta=ResponseMeta(message="Access token refreshed"),
            data=AccessTokenData(access_token=access_token),
        )

    @router.post("/logout")
    def logout(response: Response) -> MessageResponse:
        """Clear the refresh cookie; issued tokens stay valid until expiry."""
        _clear_session_cookie(response, cookie)
        return MessageResponse(meta=ResponseMeta(message="Logout successful"))

    @router.post("/forgot-password", responses=_ERRORS)
    def forgot_password(req: ForgotPasswordRequest) -> MessageResponse:
        """Email a password reset link."""
        service.forgot_password(req)
        return MessageResponse(
            meta=ResponseMeta(message="Password reset link sent successfully")
        )

    @router.post("/reset-password", responses=_ERRORS)
    def reset_password(req: ResetPasswordRequest) -> MessageResponse:
        """Set a new password using an emailed reset token."""
        service.reset_password(req)
        return MessageResponse(meta=ResponseMeta(message="Password reset successfully"))

    return router

