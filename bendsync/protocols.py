"""
bendsync Protocol Definitions
=============================

Interface contracts for the collaborators the engine consumes.

- LocalStore:       durable on-device key/value bytes. Always present.
- RemoteStore:      relational API scoped by identity. Present only while
                    authenticated, possibly unreachable.
- IdentityProvider: current identity and identity-change notifications.

Error handling philosophy:
- Remote failures are split into transient (network, timeout, server) and
  permanent (constraint, validation). Transient failures fall back to the
  local store; permanent failures are surfaced as a ``False`` write result.
- Local storage failures raise LocalStorageError and surface as ``False``.
- Read paths never raise to the caller; they degrade to empty results.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable

from bendsync.types import Identity

# =============================================================================
# ERRORS
# =============================================================================


class BendsyncError(Exception):
    """Base exception for bendsync."""

    pass


class StorageError(BendsyncError):
    """A store could not complete an operation."""

    pass


class LocalStorageError(StorageError):
    """Local persistence failed (quota, corruption, unreadable blob)."""

    pass


class RemoteStoreError(StorageError):
    """The remote store failed. Use a subclass to say whether to fall back."""

    pass


class TransientRemoteError(RemoteStoreError):
    """Network, timeout or server-side failure. Safe to retry later."""

    pass


class PermanentRemoteError(RemoteStoreError):
    """The remote store rejected the request (constraint or validation)."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


# =============================================================================
# COLLABORATOR PROTOCOLS
# =============================================================================

IdentityListener = Callable[[Optional[Identity]], None]
Unsubscribe = Callable[[], None]


@runtime_checkable
class IdentityProvider(Protocol):
    """Source of the current identity and of identity-change events."""

    def current_identity(self) -> Optional[Identity]:
        """The signed-in identity, or None when anonymous."""
        ...

    def on_identity_change(self, callback: IdentityListener) -> Unsubscribe:
        """Register ``callback`` for sign-in/sign-out. Returns an unsubscribe function."""
        ...


@runtime_checkable
class LocalStore(Protocol):
    """Durable key/value persistence on the device.

    Keys are the fixed collection keys in :mod:`bendsync.types`. All methods
    raise LocalStorageError on failure.
    """

    def get(self, key: str) -> Optional[bytes]: ...

    def set(self, key: str, value: bytes) -> None: ...

    def remove(self, key: str) -> None: ...


@runtime_checkable
class RemoteStore(Protocol):
    """Per-collection CRUD against the remote relational store.

    Every call is scoped by ``identity_id`` as a row-level filter. Rows are
    plain dicts in the remote column layout produced by the collection
    adapters' ``to_remote`` functions. All methods raise
    TransientRemoteError or PermanentRemoteError on failure.
    """

    def list(self, collection: str, identity_id: str) -> List[Dict[str, Any]]: ...

    def insert(
        self, collection: str, identity_id: str, row: Dict[str, Any]
    ) -> Dict[str, Any]: ...

    def update(
        self, collection: str, identity_id: str, key: str, row: Dict[str, Any]
    ) -> Dict[str, Any]: ...

    def delete(self, collection: str, identity_id: str, key: str) -> None: ...

    def find_by_slug(
        self, collection: str, identity_id: str, slug: str
    ) -> List[Dict[str, Any]]: ...
