"""Tests for the versioned local blob envelope."""

import json

import pytest

from bendsync.protocols import LocalStorageError
from bendsync.storage import envelope


def test_encode_wraps_data():
    payload = json.loads(envelope.encode([{"a": 1}]))
    assert payload == {"schema_version": envelope.BLOB_SCHEMA_VERSION, "data": [{"a": 1}]}


def test_decode_current():
    assert envelope.decode("history", envelope.encode({"x": True})) == {"x": True}


@pytest.mark.parametrize("legacy", [[], [{"routine_id": "r"}], {"current_streak": 2}])
def test_decode_legacy_bare_value(legacy):
    assert envelope.decode("history", json.dumps(legacy).encode()) == legacy


def test_decode_newer_version_fails():
    raw = json.dumps({"schema_version": envelope.BLOB_SCHEMA_VERSION + 1, "data": []}).encode()
    with pytest.raises(LocalStorageError, match="newer"):
        envelope.decode("favorites", raw)


@pytest.mark.parametrize("raw", [b"{", b"\xff\xfe", b""])
def test_decode_corrupt_fails(raw):
    with pytest.raises(LocalStorageError):
        envelope.decode("favorites", raw)


def test_encode_unserializable_fails():
    with pytest.raises(LocalStorageError):
        envelope.encode({"when": object()})
