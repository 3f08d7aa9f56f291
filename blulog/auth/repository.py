"""Repository for account records (the credential store)."""

from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from threading import Lock
from typing import Any, Protocol

from bson import ObjectId
from pymongo import MongoClient, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from blulog.auth.models import Account, is_account_id, utc_now
from blulog.core.config import StoreConfig

LOGGER = logging.getLogger(__name__)

ACCOUNTS_COLLECTION = "accounts"


class DuplicateEmailError(Exception):
    """Raised when creating an account whose email is already stored."""


class AccountStore(Protocol):
    """Lookup/update contract the auth core needs from the account store."""

    def find_by_email(self, email: str) -> Account | None:
        """Return the account with the normalized email, if any."""

    def find_by_id(self, account_id: str) -> Account | None:
        """Return the account with the given id, if any."""

    def create(self, account: Account) -> Account:
        """Persist a new account; raise ``DuplicateEmailError`` on conflict."""

    def update_by_id(self, account_id: str, changes: dict[str, Any]) -> Account | None:
        """Apply field changes and return the updated account."""

    def delete_by_id(self, account_id: str) -> bool:
        """Delete an account and report whether it existed."""

    def list_accounts(self) -> list[Account]:
        """Return all stored accounts."""


def _account_from_doc(doc: dict[str, Any]) -> Account:
    row = dict(doc)
    if "_id" in row:
        row["id"] = str(row.pop("_id"))
    if row.get("avatar") is None:
        row.pop("avatar", None)
    return Account.model_validate(row)


def _to_document(values: dict[str, Any]) -> dict[str, Any]:
    return {
        key: value.value if isinstance(value, Enum) else value
        for key, value in values.items()
    }


class AccountRepository:
    """Account repository with MongoDB primary and file-store fallback."""

    def __init__(self, app_root: Path, config: StoreConfig) -> None:
        """Initialize repository storage backends."""
        self._fallback_dir = app_root / "runtime" / "account_store"
        self._fallback_dir.mkdir(parents=True, exist_ok=True)
        self._accounts_file = self._fallback_dir / "accounts.json"
        self._file_lock = Lock()

        self._mongo_accounts = None

        if config.mongodb_uri:
            try:
                client = MongoClient(
                    config.mongodb_uri, serverSelectionTimeoutMS=3000, tz_aware=True
                )
                client.admin.command("ping")
                self._mongo_accounts = client[config.mongodb_db][ACCOUNTS_COLLECTION]
                self._mongo_accounts.create_index("email", unique=True)
            except PyMongoError:
                LOGGER.warning("mongodb_unavailable_using_file_store")
                self._mongo_accounts = None

    @property
    def uses_mongo(self) -> bool:
        return self._mongo_accounts is not None

    def _read_json_file(self) -> list[dict[str, Any]]:
        """Read account rows from the JSON file.

        An unreadable file is moved aside before the store starts empty, so a
        later write never overwrites the rows it held.
        """
        if not self._accounts_file.exists():
            return []
        try:
            payload = json.loads(self._accounts_file.read_text(encoding="utf-8"))
        except ValueError:
            payload = None
        if isinstance(payload, list):
            return payload
        self._quarantine_unreadable_file()
        return []

    def _quarantine_unreadable_file(self) -> None:
        stamp = utc_now().strftime("%Y%m%dT%H%M%S%f")
        backup = self._accounts_file.with_name(f"{self._accounts_file.name}.corrupt-{stamp}")
        try:
            self._accounts_file.replace(backup)
        except FileNotFoundError:
            return
        LOGGER.warning("account_store_file_unreadable: moved to %s", backup.name)

    def _write_json_file(self, items: list[dict[str, Any]]) -> None:
        """Persist account rows to JSON file."""
        self._accounts_file.write_text(
            json.dumps(items, ensure_ascii=False, indent=2), encoding="utf-8"
        )

    def find_by_email(self, email: str) -> Account | None:
        """Get account by normalized email."""
        key = email.strip().lower()
        if self._mongo_accounts is not None:
            doc = self._mongo_accounts.find_one({"email": key})
            return _account_from_doc(doc) if doc else None

        for row in self._read_json_file():
            if str(row.get("email", "")).strip().lower() == key:
                return _account_from_doc(row)
        return None

    def find_by_id(self, account_id: str) -> Account | None:
        """Get account by id; malformed ids never match."""
        if not is_account_id(account_id):
            return None
        if self._mongo_accounts is not None:
            doc = self._mongo_accounts.find_one({"_id": ObjectId(account_id)})
            return _account_from_doc(doc) if doc else None

        for row in self._read_json_file():
            if row.get("id") == account_id:
                return _account_from_doc(row)
        return None

    def create(self, account: Account) -> Account:
        """Insert a new account, enforcing email uniqueness."""
        account = account.model_copy(update={"email": account.email.strip().lower()})
        if self._mongo_accounts is not None:
            doc = _to_document(account.model_dump(exclude={"id"}))
            doc["_id"] = ObjectId(account.id)
            try:
                self._mongo_accounts.insert_one(doc)
            except DuplicateKeyError as exc:
                raise DuplicateEmailError(account.email) from exc
            return account

        with self._file_lock:
            items = self._read_json_file()
            if any(str(row.get("email", "")).strip().lower() == account.email for row in items):
                raise DuplicateEmailError(account.email)
            items.append(account.model_dump(mode="json"))
            self._write_json_file(items)
        return account

    def update_by_id(self, account_id: str, changes: dict[str, Any]) -> Account | None:
        """Set the given fields and bump ``updated_at``."""
        if not is_account_id(account_id):
            return None
        changes = {**changes, "updated_at": utc_now()}
        if self._mongo_accounts is not None:
            doc = self._mongo_accounts.find_one_and_update(
                {"_id": ObjectId(account_id)},
                {"$set": _to_document(changes)},
                return_document=ReturnDocument.AFTER,
            )
            return _account_from_doc(doc) if doc else None

        with self._file_lock:
            items = self._read_json_file()
            for index, row in enumerate(items):
                if row.get("id") != account_id:
                    continue
                updated = _account_from_doc({**row, **changes})
                items[index] = updated.model_dump(mode="json")
                self._write_json_file(items)
                return updated
        return None

    def delete_by_id(self, account_id: str) -> bool:
        """Delete account by id."""
        if not is_account_id(account_id):
            return False
        if self._mongo_accounts is not None:
            result = self._mongo_accounts.delete_one({"_id": ObjectId(account_id)})
            return result.deleted_count > 0

        with self._file_lock:
            items = self._read_json_file()
            remaining = [row for row in items if row.get("id") != account_id]
            if len(remaining) == len(items):
                return False
            self._write_json_file(remaining)
        return True

    def list_accounts(self) -> list[Account]:
        """List every stored account, oldest first."""
        if self._mongo_accounts is not None:
            cursor = self._mongo_accounts.find().sort("created_at", 1)
            return [_account_from_doc(doc) for doc in cursor]
        return [_account_from_doc(row) for row in self._read_json_file()]
