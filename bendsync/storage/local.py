"""SQLite local store for bendsync.

One row per collection key in a ``kv_store`` table. Values are opaque
bytes to this layer; the reconciliation engine owns their encoding.
"""

import contextlib
import logging
import sqlite3
import tempfile
from pathlib import Path
from typing import Optional

from bendsync.protocols import LocalStorageError
from bendsync.types import utc_now

from .schema import init_db, validate_key

logger = logging.getLogger(__name__)


class SQLiteLocalStore:
    """Durable key/value store backed by a single SQLite file.

    Args:
        db_path: Database file. Parent directories are created on demand.
    """

    # Milliseconds SQLite waits on a locked database before failing
    BUSY_TIMEOUT_MS = 5000

    def __init__(self, db_path: Path):
        self.db_path = self._resolve_db_path(Path(db_path))
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            init_db(conn, self.db_path)

    def _resolve_db_path(self, db_path: Path) -> Path:
        """Resolve the database path, falling back to temp dir if the parent is not writable."""
        resolved = db_path.expanduser().resolve()
        try:
            resolved.parent.mkdir(parents=True, exist_ok=True)
            return resolved
        except (OSError, PermissionError) as e:
            fallback = Path(tempfile.gettempdir()) / ".bendsync" / resolved.name
            logger.warning(f"Cannot write to {resolved.parent} ({e}), falling back to {fallback}")
            return fallback

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute(f"PRAGMA busy_timeout={self.BUSY_TIMEOUT_MS}")
        return conn

    @contextlib.contextmanager
    def _connect(self):
        """Context manager that handles transactions AND closes connection.

        - Transaction commit on success
        - Transaction rollback on exception
        - Connection close in all cases
        """
        conn = self._get_conn()
        try:
            yield conn
            conn.commit()
        except Exception as e:
            logger.debug(f"Transaction failed, rolling back: {e}")
            conn.rollback()
            raise
        finally:
            conn.close()

    def get(self, key: str) -> Optional[bytes]:
        validate_key(key)
        try:
            with self._connect() as conn:
                row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise LocalStorageError(f"Failed to read {key}: {e}") from e
        return bytes(row["value"]) if row else None

    def set(self, key: str, value: bytes) -> None:
        validate_key(key)
        try:
            with self._connect() as conn:
                conn.execute(
                    """INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                       ON CONFLICT(key) DO UPDATE SET
                           value = excluded.value,
                           updated_at = excluded.updated_at""",
                    (key, sqlite3.Binary(value), utc_now()),
                )
        except sqlite3.Error as e:
            raise LocalStorageError(f"Failed to write {key}: {e}") from e

    def remove(self, key: str) -> None:
        validate_key(key)
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        except sqlite3.Error as e:
            raise LocalStorageError(f"Failed to remove {key}: {e}") from e

    def close(self):
        """Close any resources.

        Connections are per-operation, so this exists for API symmetry.
        """
        pass
