"""
Pytest fixtures and test configuration for bendsync tests.
"""

import copy
import threading
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

import pytest

from bendsync.config import Settings
from bendsync.core import ActivityStore, ManualIdentityProvider
from bendsync.protocols import PermanentRemoteError
from bendsync.storage import SQLiteLocalStore
from bendsync.types import (
    AUTHORED_ROUTINES,
    FAVORITES,
    HISTORY,
    FavoriteRecord,
    Identity,
    RoutineSummary,
)

KEY_COLUMNS = {
    HISTORY: "entry_id",
    FAVORITES: "routine_id",
    AUTHORED_ROUTINES: "id",
}


class FakeRemoteStore:
    """In-memory RemoteStore that records every call.

    ``fail(operation, exc)`` makes the next calls of ``operation`` raise
    ``exc`` until ``heal()``. ``gate`` (a threading.Event) blocks ``list``
    until set.
    """

    def __init__(self):
        self.rows: Dict[str, List[Dict[str, Any]]] = {c: [] for c in KEY_COLUMNS}
        self.calls: List[tuple] = []
        self.failures: Dict[str, Exception] = {}
        self.gate: Optional[threading.Event] = None
        self._next_id = 1
        self._lock = threading.Lock()

    def fail(self, operation: str, exc: Exception) -> None:
        self.failures[operation] = exc

    def heal(self) -> None:
        self.failures.clear()

    def _record(self, operation: str, *args) -> None:
        with self._lock:
            self.calls.append((operation,) + args)
        if operation in self.failures:
            raise self.failures[operation]

    def rows_for(self, collection: str, identity_id: str) -> List[Dict[str, Any]]:
        return [r for r in self.rows[collection] if r["user_id"] == identity_id]

    def list(self, collection, identity_id):
        if self.gate is not None:
            self.gate.wait(timeout=5)
        self._record("list", collection, identity_id)
        return copy.deepcopy(self.rows_for(collection, identity_id))

    def insert(self, collection, identity_id, row):
        self._record("insert", collection, identity_id)
        key = KEY_COLUMNS[collection]
        stored = copy.deepcopy(row)
        stored["user_id"] = identity_id
        with self._lock:
            if key not in stored:
                stored[key] = f"remote-{self._next_id}"
                self._next_id += 1
            table = self.rows[collection]
            table[:] = [
                r for r in table if not (r["user_id"] == identity_id and r[key] == stored[key])
            ]
            table.append(stored)
        return copy.deepcopy(stored)

    def update(self, collection, identity_id, key, row):
        self._record("update", collection, identity_id, key)
        column = KEY_COLUMNS[collection]
        for existing in self.rows_for(collection, identity_id):
            if str(existing[column]) == key:
                existing.update({k: v for k, v in row.items() if k != column})
                return copy.deepcopy(existing)
        raise PermanentRemoteError(f"No {collection} row {key}")

    def delete(self, collection, identity_id, key):
        self._record("delete", collection, identity_id, key)
        column = KEY_COLUMNS[collection]
        self.rows[collection] = [
            r
            for r in self.rows[collection]
            if not (r["user_id"] == identity_id and str(r[column]) == key)
        ]

    def find_by_slug(self, collection, identity_id, slug):
        self._record("find_by_slug", collection, identity_id, slug)
        column = KEY_COLUMNS[collection]
        return [
            {column: r[column]} for r in self.rows_for(collection, identity_id) if r["slug"] == slug
        ]


class Clock:
    """Settable device calendar day."""

    def __init__(self, today: Optional[date] = None):
        self.today = today or date.today()

    def __call__(self) -> date:
        return self.today

    def advance(self, days: int = 1) -> None:
        self.today += timedelta(days=days)


USER = Identity(id="user-1", email="user@example.com")


def make_routine(routine_id: str = "morning-flow", name: str = "Morning Flow") -> RoutineSummary:
    return RoutineSummary(
        id=routine_id,
        name=name,
        slug=routine_id,
        duration_minutes=15,
        exercise_count=6,
        image_url="https://example.com/flow.jpg",
    )


def make_favorite(routine_id: str = "morning-stretch", name: str = "Morning Stretch"):
    return FavoriteRecord(
        routine_id=routine_id,
        routine_name=name,
        description="Wake up gently",
        duration_minutes=10,
        body_part_id="back",
        slug=routine_id,
    )


@pytest.fixture
def settings(tmp_path):
    return Settings(_env_file=None, home=tmp_path, supabase_url=None, supabase_key=None)


@pytest.fixture
def local_store(tmp_path):
    return SQLiteLocalStore(tmp_path / "activity.db")


@pytest.fixture
def remote_store():
    return FakeRemoteStore()


@pytest.fixture
def identity_provider():
    """Anonymous to start with; call sign_in(USER) to authenticate."""
    return ManualIdentityProvider()


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def store(identity_provider, local_store, remote_store, settings, clock):
    """ActivityStore wired to a real SQLite local store and a fake remote."""
    s = ActivityStore.init(
        identity_provider, local_store, remote_store, settings=settings, today_fn=clock
    )
    yield s
    s.dispose(wait=True)


@pytest.fixture
def signed_in_store(store, identity_provider):
    identity_provider.sign_in(USER)
    store.wait_for_migrations(timeout=5)
    return store
