"""Request guards that enforce authentication and admin authorization."""

from __future__ import annotations

from typing import Callable

from fastapi import Depends, Request

from blulog.api.errors import AuthorizationError
from blulog.auth.models import Account, can_administer
from blulog.auth.service import AuthService


def extract_bearer_token(authorization: str | None) -> str:
    """Extract bearer token from authorization header value."""
    parts = (authorization or "").strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return ""
    return parts[1].strip()


def create_authenticate(service: AuthService) -> Callable[[Request], Account]:
    """Create a dependency that resolves the caller from its access token."""

    def authenticate(request: Request) -> Account:
        """Verify the bearer token and attach the account to request state."""
        token = extract_bearer_token(request.headers.get("authorization"))
        account = service.authenticate(token)
        request.state.account = account
        return account

    return authenticate


def create_authorize(
    authenticate: Callable[[Request], Account],
) -> Callable[..., Account]:
    """Create a dependency that additionally requires the admin role."""

    def authorize(account: Account = Depends(authenticate)) -> Account:
        if not can_administer(account.role):
            raise AuthorizationError()
        return account

    return authorize
