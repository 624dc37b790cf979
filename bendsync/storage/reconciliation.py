"""Reconciliation engine for bendsync storage.

Routes collection reads and writes to the authoritative store and performs
the one-shot local-to-remote migration when an identity appears.

Routing rules:
- Anonymous: the local store is the only store touched.
- Authenticated: reads come from the remote store; an empty remote
  collection falls back to local records and schedules a migration.
  Writes go to the remote store first and fall back to local on transient
  failure. Removes are best-effort remotely and unconditional locally.

Migration is advisory at-most-once per identity and collection: it checks
that the remote collection is empty before copying. The check and the copy
are not one transaction, so two devices signing in at the same instant can
both copy. A crash part way through a copy leaves a partial remote
collection that later checks treat as migrated.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from bendsync.protocols import (
    IdentityProvider,
    LocalStorageError,
    LocalStore,
    PermanentRemoteError,
    RemoteStore,
    RemoteStoreError,
)
from bendsync.types import COLLECTIONS, Identity

from . import envelope
from .adapters import CollectionAdapter, default_adapters

logger = logging.getLogger(__name__)

SOURCE_LOCAL = "local"
SOURCE_REMOTE = "remote"
SOURCE_NONE = "none"

MIGRATED = "migrated"
ALREADY_MIGRATED = "already_migrated"
NOTHING_TO_MIGRATE = "nothing_to_migrate"
SKIPPED_ANONYMOUS = "skipped_anonymous"
MIGRATION_FAILED = "failed"
MIGRATION_CANCELLED = "cancelled"


@dataclass
class ListResult:
    """Records returned by a list, where they came from, and any migration it started."""

    records: List[Any] = field(default_factory=list)
    source: str = SOURCE_NONE
    migration: Optional["Future[MigrationResult]"] = None


@dataclass
class MigrationResult:
    """Outcome of one migrate() call."""

    collection: str
    status: str
    copied: int = 0
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status != MIGRATION_FAILED


class ReconciliationEngine:
    """Routes collection operations between the local and remote stores.

    Args:
        identity_provider: Source of the current identity. The engine
            subscribes to its change stream and migrates on sign-in.
        local_store: Durable device store. Always used when anonymous.
        remote_store: Remote relational store, or None for local-only use.
        adapters: Collection name -> adapter. Defaults to the three built-in
            collections.
        max_workers: Worker threads for background migrations.
    """

    def __init__(
        self,
        identity_provider: IdentityProvider,
        local_store: LocalStore,
        remote_store: Optional[RemoteStore] = None,
        adapters: Optional[Dict[str, CollectionAdapter]] = None,
        max_workers: int = 1,
    ):
        self._identity_provider = identity_provider
        self._local = local_store
        self._remote = remote_store
        self._adapters = adapters or default_adapters()

        # One mutation lock per collection key so read-modify-write on a
        # local blob is never interleaved
        self._locks = {name: threading.Lock() for name in self._adapters}

        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="bendsync-migrate"
        )
        self._inflight: Dict[Tuple[str, str], Future] = {}
        self._inflight_lock = threading.Lock()
        self._closed = False

        self._identity_lock = threading.Lock()
        current = self.current_identity()
        self._last_identity_id: Optional[str] = current.id if current else None
        self._unsubscribe = identity_provider.on_identity_change(self._on_identity_change)

    # === Accessors ===

    @property
    def remote(self) -> Optional[RemoteStore]:
        return self._remote

    def adapter(self, collection: str) -> CollectionAdapter:
        try:
            return self._adapters[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}") from None

    def current_identity(self) -> Optional[Identity]:
        """The identity to route by. None when anonymous or no remote store is configured."""
        if self._remote is None:
            return None
        try:
            return self._identity_provider.current_identity()
        except Exception as e:
            logger.warning(f"Identity lookup failed, treating as anonymous: {e}")
            return None

    # === Local blob access ===

    def load_local(self, collection: str) -> List[Any]:
        """Read and decode a collection's local blob.

        Raises:
            LocalStorageError: If the blob cannot be read or decoded.
        """
        adapter = self.adapter(collection)
        raw = self._local.get(collection)
        if raw is None:
            return []
        data = envelope.decode(collection, raw)
        try:
            return adapter.sort(adapter.decode_list(data))
        except ValueError as e:
            raise LocalStorageError(str(e)) from e

    def _save_local(self, collection: str, records: List[Any]) -> None:
        adapter = self.adapter(collection)
        self._local.set(collection, envelope.encode(adapter.encode_list(records)))

    def _write_local(self, collection: str, record: Any) -> bool:
        adapter = self.adapter(collection)
        with self._locks[collection]:
            try:
                records = self.load_local(collection)
                self._save_local(collection, adapter.merge(records, record))
            except LocalStorageError as e:
                logger.error(f"Local write to {collection} failed: {e}")
                return False
        return True

    def _remove_local(self, collection: str, key: str) -> bool:
        adapter = self.adapter(collection)
        with self._locks[collection]:
            try:
                records = self.load_local(collection)
                remaining = adapter.without(records, key)
                if len(remaining) != len(records):
                    self._save_local(collection, remaining)
            except LocalStorageError as e:
                logger.error(f"Local remove from {collection} failed: {e}")
                return False
        return True

    def clear_local(self, collection: str) -> bool:
        """Drop a collection's local blob entirely."""
        self.adapter(collection)
        with self._locks[collection]:
            try:
                self._local.remove(collection)
            except LocalStorageError as e:
                logger.error(f"Failed to clear local {collection}: {e}")
                return False
        return True

    # === Routed operations ===

    def list(self, collection: str) -> ListResult:
        """List a collection from its authoritative store. Store failures never raise."""
        adapter = self.adapter(collection)
        try:
            identity = self.current_identity()
            if identity is None:
                return ListResult(self.load_local(collection), SOURCE_LOCAL)

            try:
                rows = self._remote.list(collection, identity.id)
            except RemoteStoreError as e:
                logger.warning(f"Remote list of {collection} failed, serving local: {e}")
                return ListResult(self.load_local(collection), SOURCE_LOCAL)

            if rows:
                return ListResult(
                    adapter.sort([adapter.from_remote(row) for row in rows]), SOURCE_REMOTE
                )

            local_records = self.load_local(collection)
            if not local_records:
                return ListResult([], SOURCE_REMOTE)

            logger.debug(
                f"Remote {collection} empty with {len(local_records)} local records, "
                "scheduling migration"
            )
            migration = self.schedule_migration(collection, identity)
            return ListResult(local_records, SOURCE_LOCAL, migration=migration)
        except Exception as e:
            logger.error(f"Failed to list {collection}: {e}", exc_info=True)
            return ListResult([], SOURCE_NONE)

    def write(self, collection: str, record: Any) -> bool:
        """Persist a record. Returns False only when it is not guaranteed persisted."""
        adapter = self.adapter(collection)
        identity = self.current_identity()
        if identity is not None:
            try:
                row = adapter.to_remote(record, identity.id)
                if adapter.has_remote_id(record):
                    self._remote.update(collection, identity.id, adapter.key_of(record), row)
                else:
                    self._remote.insert(collection, identity.id, row)
                return True
            except PermanentRemoteError as e:
                logger.warning(f"Remote rejected {collection} write: {e}")
                return False
            except RemoteStoreError as e:
                logger.warning(f"Remote {collection} write failed, writing locally: {e}")
            except Exception as e:
                logger.error(
                    f"Unexpected error writing {collection} remotely, writing locally: {e}",
                    exc_info=True,
                )
        return self._write_local(collection, record)

    def remove(self, collection: str, key: str) -> bool:
        """Delete a record everywhere. Remote failure never blocks the local delete."""
        self.adapter(collection)
        identity = self.current_identity()
        if identity is not None:
            try:
                self._remote.delete(collection, identity.id, key)
            except Exception as e:
                logger.warning(f"Remote delete of {collection}:{key} failed: {e}")
        return self._remove_local(collection, key)

    # === Migration ===

    def migrate(self, collection: str, identity: Optional[Identity] = None) -> MigrationResult:
        """Copy local records of ``collection`` to the remote store, at most once.

        Any existing remote record means the collection counts as migrated.
        Failures are logged and reported in the result, never raised.
        """
        adapter = self.adapter(collection)
        identity = identity or self.current_identity()
        if identity is None or self._remote is None:
            return MigrationResult(collection, SKIPPED_ANONYMOUS)

        copied = 0
        try:
            if self._remote.list(collection, identity.id):
                logger.debug(f"Remote {collection} already populated, skipping migration")
                return MigrationResult(collection, ALREADY_MIGRATED)

            records = self.load_local(collection)
            if not records:
                return MigrationResult(collection, NOTHING_TO_MIGRATE)

            # Oldest first so remote insertion order matches creation order
            for record in reversed(records):
                self._remote.insert(collection, identity.id, adapter.to_remote(record, identity.id))
                copied += 1

            logger.info(f"Migrated {copied} {collection} records to remote")
            return MigrationResult(collection, MIGRATED, copied=copied)
        except Exception as e:
            logger.warning(
                f"Migration of {collection} failed after {copied} records: {e}", exc_info=True
            )
            return MigrationResult(collection, MIGRATION_FAILED, copied=copied, error=str(e))

    def schedule_migration(
        self, collection: str, identity: Optional[Identity] = None
    ) -> "Future[MigrationResult]":
        """Run migrate() in the background.

        While a migration for the same identity and collection is in flight,
        the existing future is returned instead of starting a second copy.
        """
        identity = identity or self.current_identity()
        if identity is None:
            return _resolved(MigrationResult(collection, SKIPPED_ANONYMOUS))

        key = (identity.id, collection)
        with self._inflight_lock:
            existing = self._inflight.get(key)
            if existing is not None and not existing.done():
                return existing
            if self._closed:
                return _resolved(MigrationResult(collection, MIGRATION_CANCELLED))
            future = self._executor.submit(self.migrate, collection, identity)
            self._inflight[key] = future

        future.add_done_callback(lambda f, key=key: self._forget(key, f))
        return future

    def migrate_all(
        self, identity: Optional[Identity] = None
    ) -> Dict[str, "Future[MigrationResult]"]:
        return {
            collection: self.schedule_migration(collection, identity)
            for collection in COLLECTIONS
            if collection in self._adapters
        }

    def wait_for_migrations(self, timeout: Optional[float] = None) -> List[MigrationResult]:
        """Block until every migration in flight at call time has finished."""
        with self._inflight_lock:
            pending = list(self._inflight.values())
        done, _ = wait_futures(pending, timeout=timeout)
        return [f.result() for f in done if not f.cancelled()]

    def _forget(self, key: Tuple[str, str], future: Future) -> None:
        with self._inflight_lock:
            if self._inflight.get(key) is future:
                del self._inflight[key]

    # === Identity changes ===

    def _on_identity_change(self, identity: Optional[Identity]) -> None:
        with self._identity_lock:
            previous = self._last_identity_id
            self._last_identity_id = identity.id if identity else None

        if identity is None:
            if previous is not None:
                logger.info("Signed out; local store is authoritative")
            return
        if identity.id == previous or self._remote is None:
            return

        logger.info("Signed in; migrating local collections")
        self.migrate_all(identity)

    # === Lifecycle ===

    def dispose(self, wait: bool = False) -> None:
        """Stop listening for identity changes and cancel migrations not yet started."""
        with self._inflight_lock:
            if self._closed:
                return
            self._closed = True
        try:
            self._unsubscribe()
        except Exception as e:
            logger.debug(f"Identity unsubscribe failed: {e}")
        self._executor.shutdown(wait=wait, cancel_futures=True)


def _resolved(result: MigrationResult) -> "Future[MigrationResult]":
    future: Future = Future()
    future.set_result(result)
    return future
