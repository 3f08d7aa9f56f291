"""Versioned MongoDB schema migrations for account collections."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

import pymongo
from pymongo.errors import PyMongoError

from blulog.core.config import StoreConfig
from blulog.core.logging import CORRELATION_ID_CTX

LOGGER = logging.getLogger(__name__)

MigrationFn = Callable[[Any], None]


def _migration_20250301_01_account_indexes(db: Any) -> None:
    db["accounts"].create_index("email", unique=True)
    db["accounts"].create_index("created_at")


def _migration_20250301_02_account_role_status(db: Any) -> None:
    db["accounts"].create_index([("role", 1), ("status", 1)])


MIGRATIONS: list[tuple[str, MigrationFn]] = [
    ("20250301_01_account_indexes", _migration_20250301_01_account_indexes),
    ("20250301_02_account_role_status", _migration_20250301_02_account_role_status),
]


def run_migrations(db: Any, migrations: list[tuple[str, MigrationFn]] = MIGRATIONS) -> list[str]:
    """Apply pending migrations to ``db`` and return the ids that ran."""
    migration_collection = db["schema_migrations"]
    migration_collection.create_index("migration_id", unique=True)

    applied: list[str] = []
    for migration_id, migration_fn in migrations:
        if migration_collection.find_one({"migration_id": migration_id}):
            continue
        migration_fn(db)
        migration_collection.insert_one(
            {
                "migration_id": migration_id,
                "applied_at": datetime.now(timezone.utc),
                "correlation_id": CORRELATION_ID_CTX.get(),
            }
        )
        applied.append(migration_id)
    return applied


def apply_mongo_migrations(config: StoreConfig) -> None:
    """Apply MongoDB migrations if a MongoDB URI is configured."""
    if not config.mongodb_uri:
        return

    client: Any = pymongo.MongoClient(config.mongodb_uri, serverSelectionTimeoutMS=3000)
    try:
        client.admin.command("ping")
        applied = run_migrations(client[config.mongodb_db])
    except PyMongoError:
        LOGGER.warning("mongo_migrations_skipped")
        return
    finally:
        client.close()
    if applied:
        LOGGER.info("mongo_migrations_applied: %s", ", ".join(applied))
