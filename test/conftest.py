# test/conftest.py

"""
Shared fixtures.

FakeRecordStore stands in for the hosted database so no test ever
touches the network. It speaks the same get / select / upsert /
update / rpc surface as data.record_store.RecordStore.
"""

import copy
import os
import threading
from typing import Any, Callable, Dict, List, Optional, Set

import pytest

os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "x")

from data.liked_store import LikedStore  # noqa: E402
from services.errors import PersistenceError  # noqa: E402


def _matches(row: Dict[str, Any], filters: Optional[Dict[str, Any]]) -> bool:
    for column, value in (filters or {}).items():
        op = "eq"
        if isinstance(value, tuple):
            op, value = value
        current = row.get(column)
        if op == "eq" and current != value:
            return False
        if op == "lte" and not (current is not None and current <= value):
            return False
    return True


class FakeRecordStore:
    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables: Dict[str, List[Dict[str, Any]]] = copy.deepcopy(tables or {})
        self.fail: Set[str] = set()
        self.calls: List[str] = []
        self.rpc_handler: Optional[Callable[[str, Dict[str, Any]], Any]] = None
        self.before_get: Optional[Callable[[], None]] = None
        self._unique = threading.Lock()

    def _check(self, op: str) -> None:
        self.calls.append(op)
        if op in self.fail:
            raise PersistenceError(f"{op} failed", status_code=503)

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables.setdefault(table, [])

    def select(self, table, filters=None, order=None, limit=None, columns="*"):
        self._check("select")
        rows = [dict(r) for r in self.rows(table) if _matches(r, filters)]
        for column, ascending in reversed(order or []):
            rows.sort(key=lambda r: r.get(column), reverse=not ascending)
        return rows[:limit] if limit is not None else rows

    def get(self, table, filters, columns="*"):
        if self.before_get:
            self.before_get()
        self._check("get")
        for row in self.rows(table):
            if _matches(row, filters):
                return dict(row)
        return None

    def upsert(self, table, record, on_conflict, ignore_duplicates=False):
        self._check("upsert")
        # the unique index on `on_conflict` serializes writers
        with self._unique:
            for row in self.rows(table):
                if row.get(on_conflict) == record.get(on_conflict):
                    if ignore_duplicates:
                        return None
                    row.update(record)
                    return dict(row)
            self.rows(table).append(dict(record))
            return dict(record)

    def update(self, table, fields, filters):
        self._check("update")
        updated = None
        for row in self.rows(table):
            if _matches(row, filters):
                row.update(fields)
                updated = updated or dict(row)
        return updated

    def rpc(self, name, args):
        self._check("rpc")
        if self.rpc_handler is not None:
            return self.rpc_handler(name, args)
        if name != "toggle_likes":
            raise PersistenceError(f"function {name} does not exist", status_code=404)
        for row in self.rows("stickers"):
            if row["id"] == args["sticker_id"]:
                delta = 1 if args["should_increment"] else -1
                row["likes"] = max((row.get("likes") or 0) + delta, 0)
                return row["likes"]
        raise PersistenceError("sticker not found", status_code=404)


STICKERS = [
    {
        "id": 1,
        "title": "Sleepy Cactus",
        "prompt": "a sleepy cactus in a beanie, die-cut sticker",
        "image_url": "sticker-1.png",
        "publish_date": "2025-01-01",
        "is_premium": False,
        "likes": 10,
    },
    {
        "id": 2,
        "title": "Neon Koi",
        "prompt": "neon koi fish, vaporwave palette",
        "image_url": "https://cdn.example.com/koi.png",
        "publish_date": "2025-01-02",
        "is_premium": True,
        "likes": 1500,
        "remix_idea": "swap the koi for a jellyfish",
    },
    {
        "id": 3,
        "title": "Second Drop",
        "prompt": "tiny robot gardener",
        "image_url": "sticker-3.png",
        "publish_date": "2025-01-02",
        "is_premium": False,
        "likes": 5,
    },
    {
        "id": 4,
        "title": "Future Drop",
        "prompt": "not out yet",
        "image_url": "sticker-4.png",
        "publish_date": "2099-01-01",
        "is_premium": False,
        "likes": 0,
    },
]


@pytest.fixture
def fake_store() -> FakeRecordStore:
    return FakeRecordStore({"stickers": STICKERS})


@pytest.fixture
def liked_store(tmp_path) -> LikedStore:
    return LikedStore(tmp_path / "liked.json")
