"""FastAPI router for account management endpoints."""

from __future__ import annotations

from typing import Callable

from fastapi import APIRouter, Depends

from blulog.api.contracts import (
    AccountData,
    AccountListData,
    AccountListResponse,
    AccountResponse,
    ApiErrorResponse,
    MessageResponse,
    ResponseMeta,
)
from blulog.auth.models import Account, UpdateAccountRequest, UpdateStatusRequest
from blulog.users.service import UserService

_ERRORS = {
    400: {"model": ApiErrorResponse},
    401: {"model": ApiErrorResponse},
    403: {"model": ApiErrorResponse},
    404: {"model": ApiErrorResponse},
}


class UsersRouter:
    """Factory wrapper that builds the users API router from a service."""

    def __init__(
        self,
        service: UserService,
        *,
        authenticate: Callable[..., Account],
        authorize: Callable[..., Account],
    ) -> None:
        """Store service and guard dependencies used by route handlers."""
        self._service = service
        self._authenticate = authenticate
        self._authorize = authorize

    def build(self) -> APIRouter:
        """Create and return configured users router."""
        router = APIRouter(prefix="/api/users", tags=["users"])
        authenticate = self._authenticate
        authorize = self._authorize

        @router.get("", responses=_ERRORS)
        def list_users(_admin: Account = Depends(authorize)) -> AccountListResponse:
            """List all accounts (admin only)."""
            return AccountListResponse(
                meta=ResponseMeta(message="User list retrieved successfully"),
                data=AccountListData(users=self._service.list_accounts()),
            )

        @router.patch("/{account_id}/status", responses=_ERRORS)
        def update_status(
            account_id: str,
            req: UpdateStatusRequest,
            actor: Account = Depends(authenticate),
        ) -> AccountResponse:
            """Activate or deactivate an account (self or admin)."""
            user = self._service.update_status(actor, account_id, req)
            return AccountResponse(
                meta=ResponseMeta(message="User status updated successfully"),
                data=AccountData(user=user),
            )

        @router.put("/{account_id}", responses=_ERRORS)
        def update_user(
            account_id: str,
            req: UpdateAccountRequest,
            actor: Account = Depends(authenticate),
        ) -> AccountResponse:
            """Update profile fields (self or admin)."""
            user = self._service.update_account(actor, account_id, req)
            return AccountResponse(
                meta=ResponseMeta(message="User profile updated successfully"),
                data=AccountData(user=user),
            )

        @router.delete("/{account_id}", responses=_ERRORS)
        def remove_user(
            account_id: str, _admin: Account = Depends(authorize)
        ) -> MessageResponse:
            """Delete an account (admin only)."""
            self._service.remove(account_id)
            return MessageResponse(meta=ResponseMeta(message="User deleted successfully"))

        return router
