"""Database schema for the bendsync SQLite local store.

Contains:
- Schema DDL (SCHEMA)
- Schema version tracking (SCHEMA_VERSION)
- Key allowlist (ALLOWED_KEYS, validate_key)
- Database initialization (init_db)
"""

import logging
import os
import sqlite3
from pathlib import Path

from bendsync.types import AUTHORED_ROUTINES, FAVORITES, HISTORY, STREAK_STATE

logger = logging.getLogger(__name__)

# Schema version of the SQLite file itself. Blob contents carry their own
# version (see envelope.py).
SCHEMA_VERSION = 1

ALLOWED_KEYS = frozenset({HISTORY, FAVORITES, AUTHORED_ROUTINES, STREAK_STATE})


def validate_key(key: str) -> str:
    """Validate a collection key against the allowlist.

    Args:
        key: Collection key to validate

    Returns:
        The validated key

    Raises:
        ValueError: If the key is not a known collection key
    """
    if key not in ALLOWED_KEYS:
        raise ValueError(f"Unknown collection key: {key}")
    return key


SCHEMA = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value BLOB NOT NULL,
    updated_at TEXT NOT NULL
);
"""


def init_db(conn: sqlite3.Connection, db_path: Path) -> None:
    """Initialize the database schema.

    Args:
        conn: Database connection.
        db_path: Path to the database file (for permissions).
    """
    conn.executescript(SCHEMA)

    row = conn.execute("SELECT version FROM schema_version LIMIT 1").fetchone()
    if row is None:
        conn.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
    elif row[0] > SCHEMA_VERSION:
        logger.warning(
            f"Local database schema v{row[0]} is newer than supported v{SCHEMA_VERSION}"
        )
    elif row[0] < SCHEMA_VERSION:
        conn.execute("UPDATE schema_version SET version = ?", (SCHEMA_VERSION,))

    conn.commit()

    # Owner read/write only
    try:
        os.chmod(db_path, 0o600)
    except OSError as e:
        logger.debug(f"Could not set database permissions: {e}")
