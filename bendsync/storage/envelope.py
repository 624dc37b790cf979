"""Versioned JSON envelope for local blobs.

Every value written to the LocalStore is wrapped as::

    {"schema_version": 1, "data": <records or object>}

Blobs written before the envelope existed (a bare JSON array or object)
decode as version 0. Upgrades run in ``UPGRADES`` order on read; the next
write stores the current version.
"""

import json
from typing import Any, Callable, Dict

from bendsync.protocols import LocalStorageError

BLOB_SCHEMA_VERSION = 1

# from_version -> function producing the next version's data
UPGRADES: Dict[int, Callable[[str, Any], Any]] = {
    0: lambda key, data: data,
}


def encode(data: Any) -> bytes:
    """Wrap ``data`` in the current envelope and serialize it."""
    try:
        return json.dumps(
            {"schema_version": BLOB_SCHEMA_VERSION, "data": data}, separators=(",", ":")
        ).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise LocalStorageError(f"Cannot serialize local blob: {e}") from e


def decode(key: str, raw: bytes) -> Any:
    """Parse a stored blob and upgrade it to the current schema version.

    Raises:
        LocalStorageError: If the blob is not valid JSON or was written by a
            newer schema than this code understands.
    """
    try:
        payload = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise LocalStorageError(f"Corrupt local blob for {key}: {e}") from e

    if isinstance(payload, dict) and "schema_version" in payload and "data" in payload:
        version = payload["schema_version"]
        data = payload["data"]
    else:
        version = 0
        data = payload

    if not isinstance(version, int) or version > BLOB_SCHEMA_VERSION:
        raise LocalStorageError(
            f"Local blob for {key} has schema v{version}, newer than supported "
            f"v{BLOB_SCHEMA_VERSION}"
        )

    while version < BLOB_SCHEMA_VERSION:
        data = UPGRADES[version](key, data)
        version += 1
    return data
