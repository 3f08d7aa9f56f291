from __future__ import annotations

from typing import Any

from blulog.core.config import StoreConfig
from blulog.core.mongo_migrations import MIGRATIONS, apply_mongo_migrations, run_migrations


class _FakeCollection:
    def __init__(self) -> None:
        self.docs: list[dict[str, Any]] = []
        self.indexes: list[tuple[Any, bool]] = []

    def create_index(self, keys: Any, unique: bool = False) -> str:
        self.indexes.append((keys, unique))
        return str(keys)

    def find_one(self, query: dict[str, Any]) -> dict[str, Any] | None:
        for doc in self.docs:
            if all(doc.get(key) == value for key, value in query.items()):
                return doc
        return None

    def insert_one(self, doc: dict[str, Any]) -> None:
        self.docs.append(doc)


class _FakeDb:
    def __init__(self) -> None:
        self.collections: dict[str, _FakeCollection] = {}

    def __getitem__(self, name: str) -> _FakeCollection:
        return self.collections.setdefault(name, _FakeCollection())


def test_run_migrations_applies_each_migration_once() -> None:
    db = _FakeDb()

    first = run_migrations(db)
    second = run_migrations(db)

    assert first == [migration_id for migration_id, _ in MIGRATIONS]
    assert second == []
    assert ("email", True) in db["accounts"].indexes
    assert len(db["schema_migrations"].docs) == len(MIGRATIONS)


def test_run_migrations_skips_already_recorded() -> None:
    db = _FakeDb()
    db["schema_migrations"].insert_one({"migration_id": MIGRATIONS[0][0]})

    applied = run_migrations(db)

    assert applied == [MIGRATIONS[1][0]]
    assert ("email", True) not in db["accounts"].indexes


def test_apply_mongo_migrations_is_noop_without_uri() -> None:
    apply_mongo_migrations(StoreConfig(mongodb_uri="", mongodb_db="blulog_test"))
