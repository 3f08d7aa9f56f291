"""Account profile, status and removal operations."""

from __future__ import annotations

import logging

from blulog.api.errors import ApiError, ApiErrorCode, AuthorizationError, NotFoundError
from blulog.auth.models import (
    Account,
    AccountView,
    UpdateAccountRequest,
    UpdateStatusRequest,
    can_administer,
)
from blulog.auth.repository import AccountStore

LOGGER = logging.getLogger(__name__)


def _require_self_or_admin(actor: Account, account_id: str) -> None:
    if actor.id != account_id and not can_administer(actor.role):
        raise AuthorizationError("Access forbidden")


class UserService:
    """Thin account management on top of the account store."""

    def __init__(self, repo: AccountStore) -> None:
        self._repo = repo

    def list_accounts(self) -> list[AccountView]:
        return [account.public_view() for account in self._repo.list_accounts()]

    def update_status(
        self, actor: Account, account_id: str, req: UpdateStatusRequest
    ) -> AccountView:
        """Set an account active or inactive."""
        status = req.parsed_status()
        if status is None:
            raise ApiError(
                status_code=400,
                error_code=ApiErrorCode.VALIDATION_ERROR,
                message="Invalid status",
            )
        _require_self_or_admin(actor, account_id)
        updated = self._repo.update_by_id(account_id, {"status": status})
        if updated is None:
            raise NotFoundError()
        LOGGER.info("account_status_updated", extra={"account_id": account_id})
        return updated.public_view()

    def update_account(
        self, actor: Account, account_id: str, req: UpdateAccountRequest
    ) -> AccountView:
        """Apply profile field changes present in the request."""
        _require_self_or_admin(actor, account_id)
        changes = req.changes()
        if not changes:
            account = self._repo.find_by_id(account_id)
        else:
            account = self._repo.update_by_id(account_id, changes)
        if account is None:
            raise NotFoundError()
        return account.public_view()

    def remove(self, account_id: str) -> None:
        if not self._repo.delete_by_id(account_id):
            raise NotFoundError()
        LOGGER.info("account_removed", extra={"account_id": account_id})
