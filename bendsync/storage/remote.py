"""Supabase remote store for bendsync.

Per-collection CRUD over PostgREST tables, every query filtered by
``user_id``. Errors are classified into transient (fall back to local) and
permanent (surface to the caller) in one place, ``classify_remote_error``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, TypeVar

import httpx
from postgrest.exceptions import APIError
from supabase import Client, ClientOptions, create_client

from bendsync.config import Settings
from bendsync.protocols import PermanentRemoteError, RemoteStoreError, TransientRemoteError
from bendsync.types import AUTHORED_ROUTINES, FAVORITES, HISTORY

from .adapters import favorites, history, routines

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Postgres SQLSTATE classes that will fail again on retry:
# 22 data exception, 23 integrity constraint violation, 42 syntax error / access rule
PERMANENT_SQLSTATE_CLASSES = frozenset({"22", "23", "42"})


@dataclass(frozen=True)
class ChildTable:
    """A one-to-many child table whose rows travel under ``field`` in the parent row."""

    table: str
    parent_column: str
    field: str
    order_column: str


@dataclass(frozen=True)
class TableSpec:
    table: str
    key_column: str
    order_column: str
    upsert_on: Optional[str] = None
    child: Optional[ChildTable] = None


TABLES: Dict[str, TableSpec] = {
    HISTORY: TableSpec(
        table=history.REMOTE_TABLE,
        key_column="entry_id",
        order_column="completed_at",
    ),
    FAVORITES: TableSpec(
        table=favorites.REMOTE_TABLE,
        key_column="routine_id",
        order_column="added_at",
        upsert_on="user_id,routine_id",
    ),
    AUTHORED_ROUTINES: TableSpec(
        table=routines.REMOTE_TABLE,
        key_column="id",
        order_column="created_at",
        child=ChildTable(
            table=routines.REMOTE_EXERCISE_TABLE,
            parent_column="routine_id",
            field="exercises",
            order_column="sequence",
        ),
    ),
}


def classify_remote_error(exc: Exception) -> RemoteStoreError:
    """Map a client exception onto the transient/permanent taxonomy.

    Anything unrecognized is treated as transient so that writes take the
    local fallback path rather than being lost.
    """
    if isinstance(exc, RemoteStoreError):
        return exc
    if isinstance(exc, httpx.TransportError):
        return TransientRemoteError(f"Remote unreachable: {exc}")
    if isinstance(exc, APIError):
        code = str(exc.code or "")
        if code[:2] in PERMANENT_SQLSTATE_CLASSES or code.startswith("PGRST1"):
            return PermanentRemoteError(exc.message or str(exc), code=code)
        return TransientRemoteError(f"Remote error {code}: {exc.message or exc}")
    return TransientRemoteError(f"Remote call failed: {exc}")


class SupabaseRemoteStore:
    """RemoteStore implementation over a Supabase client.

    Args:
        client: A configured ``supabase.Client``. Its PostgREST timeout bounds
            every call made here.
        tables: Collection name -> table layout. Defaults to ``TABLES``.
    """

    def __init__(self, client: Client, tables: Optional[Dict[str, TableSpec]] = None):
        self._client = client
        self._tables = tables or TABLES

    @classmethod
    def from_settings(cls, settings: Settings) -> "SupabaseRemoteStore":
        if not settings.remote_configured:
            raise ValueError("BENDSYNC_SUPABASE_URL and BENDSYNC_SUPABASE_KEY must be set")
        client = create_client(
            settings.supabase_url,
            settings.supabase_key,
            options=ClientOptions(postgrest_client_timeout=settings.remote_timeout_seconds),
        )
        return cls(client)

    @property
    def client(self) -> Client:
        return self._client

    def _spec(self, collection: str) -> TableSpec:
        try:
            return self._tables[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}") from None

    def _call(self, description: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except RemoteStoreError:
            raise
        except Exception as e:
            error = classify_remote_error(e)
            logger.debug(f"{description} failed ({type(error).__name__}): {e}")
            raise error from e

    def _attach_children(self, spec: TableSpec, rows: List[Dict[str, Any]]) -> None:
        child = spec.child
        if child is None or not rows:
            return
        parent_ids = [row[spec.key_column] for row in rows]
        result = (
            self._client.table(child.table)
            .select("*")
            .in_(child.parent_column, parent_ids)
            .order(child.order_column)
            .execute()
        )
        by_parent: Dict[Any, List[Dict[str, Any]]] = {}
        for child_row in result.data or []:
            by_parent.setdefault(child_row[child.parent_column], []).append(child_row)
        for row in rows:
            row[child.field] = by_parent.get(row[spec.key_column], [])

    def _insert_children(self, spec: TableSpec, parent_key: Any, children: List[Dict[str, Any]]):
        child = spec.child
        if child is None or not children:
            return []
        payload = [{**c, child.parent_column: parent_key} for c in children]
        return self._client.table(child.table).insert(payload).execute().data or []

    # === RemoteStore protocol ===

    def list(self, collection: str, identity_id: str) -> List[Dict[str, Any]]:
        spec = self._spec(collection)

        def run():
            result = (
                self._client.table(spec.table)
                .select("*")
                .eq("user_id", identity_id)
                .order(spec.order_column, desc=True)
                .execute()
            )
            rows = list(result.data or [])
            self._attach_children(spec, rows)
            return rows

        return self._call(f"list {collection}", run)

    def insert(self, collection: str, identity_id: str, row: Dict[str, Any]) -> Dict[str, Any]:
        spec = self._spec(collection)
        parent = {**row, "user_id": identity_id}
        children = parent.pop(spec.child.field, []) if spec.child else []

        def run():
            table = self._client.table(spec.table)
            if spec.upsert_on:
                result = table.upsert(parent, on_conflict=spec.upsert_on).execute()
            else:
                result = table.insert(parent).execute()
            if not result.data:
                raise TransientRemoteError(f"Insert into {spec.table} returned no row")
            stored = dict(result.data[0])
            if spec.child:
                stored[spec.child.field] = self._insert_children(
                    spec, stored[spec.key_column], children
                )
            return stored

        return self._call(f"insert {collection}", run)

    def update(
        self, collection: str, identity_id: str, key: str, row: Dict[str, Any]
    ) -> Dict[str, Any]:
        spec = self._spec(collection)
        parent = {k: v for k, v in row.items() if k != spec.key_column}
        parent["user_id"] = identity_id
        children = parent.pop(spec.child.field, []) if spec.child else []

        def run():
            result = (
                self._client.table(spec.table)
                .update(parent)
                .eq(spec.key_column, key)
                .eq("user_id", identity_id)
                .execute()
            )
            if not result.data:
                raise PermanentRemoteError(f"No {collection} row {key} for this identity")
            stored = dict(result.data[0])
            if spec.child:
                # Exercises are rewritten wholesale
                (
                    self._client.table(spec.child.table)
                    .delete()
                    .eq(spec.child.parent_column, key)
                    .execute()
                )
                stored[spec.child.field] = self._insert_children(spec, key, children)
            return stored

        return self._call(f"update {collection}", run)

    def delete(self, collection: str, identity_id: str, key: str) -> None:
        spec = self._spec(collection)

        def run():
            if spec.child:
                (
                    self._client.table(spec.child.table)
                    .delete()
                    .eq(spec.child.parent_column, key)
                    .execute()
                )
            (
                self._client.table(spec.table)
                .delete()
                .eq("user_id", identity_id)
                .eq(spec.key_column, key)
                .execute()
            )

        self._call(f"delete {collection}", run)

    def find_by_slug(self, collection: str, identity_id: str, slug: str) -> List[Dict[str, Any]]:
        spec = self._spec(collection)

        def run():
            result = (
                self._client.table(spec.table)
                .select(spec.key_column)
                .eq("user_id", identity_id)
                .eq("slug", slug)
                .execute()
            )
            return list(result.data or [])

        return self._call(f"find {collection} slug", run)
