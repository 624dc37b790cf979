"""Slug allocation for authored routines.

Slugs are unique per scope: the anonymous device (local store) or the
signed-in identity (remote store). Allocation is deterministic, so the same
name always gets the bare slug when it is free.
"""

import logging
import re
from typing import TYPE_CHECKING, Optional, Set

from bendsync.protocols import LocalStorageError, RemoteStoreError
from bendsync.types import AUTHORED_ROUTINES

if TYPE_CHECKING:
    from .reconciliation import ReconciliationEngine

logger = logging.getLogger(__name__)

FALLBACK_SLUG = "routine"

_DISALLOWED = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


def slugify(name: str) -> str:
    """Lowercase, drop anything outside ``[a-z0-9 -]``, hyphenate whitespace."""
    slug = _DISALLOWED.sub("", name.lower())
    slug = _WHITESPACE.sub("-", slug.strip())
    slug = _HYPHENS.sub("-", slug)
    return slug.strip("-")


class SlugAllocator:
    """Allocates scope-unique slugs by probing the authoritative store.

    Args:
        engine: Reconciliation engine, used for the current identity and
            for access to both stores.
        collection: Collection whose slugs must be unique.
    """

    def __init__(self, engine: "ReconciliationEngine", collection: str = AUTHORED_ROUTINES):
        self._engine = engine
        self._collection = collection

    def allocate(self, name: str, excluding_id: Optional[str] = None) -> str:
        """Return the first free slug among ``base``, ``base-1``, ``base-2``, ...

        Args:
            name: Human-readable routine name.
            excluding_id: Id of a record allowed to hold the slug already
                (the routine being renamed).
        """
        base = slugify(name) or FALLBACK_SLUG
        identity = self._engine.current_identity()
        local_slugs: Optional[Set[str]] = None

        candidate = base
        counter = 1
        while True:
            taken = None
            if identity is not None:
                taken = self._taken_remotely(identity.id, candidate, excluding_id)
            if taken is None:
                identity = None
                if local_slugs is None:
                    local_slugs = self._local_slugs(excluding_id)
                taken = candidate in local_slugs
            if not taken:
                return candidate
            candidate = f"{base}-{counter}"
            counter += 1

    def _taken_remotely(
        self, identity_id: str, slug: str, excluding_id: Optional[str]
    ) -> Optional[bool]:
        """Whether another remote record holds ``slug``. None if the remote store can't say."""
        try:
            rows = self._engine.remote.find_by_slug(self._collection, identity_id, slug)
        except RemoteStoreError as e:
            logger.warning(f"Remote slug probe failed, probing local store: {e}")
            return None
        return any(str(row.get("id")) != excluding_id for row in rows)

    def _local_slugs(self, excluding_id: Optional[str]) -> Set[str]:
        try:
            records = self._engine.load_local(self._collection)
        except LocalStorageError as e:
            logger.warning(f"Local slug probe failed: {e}")
            return set()
        return {r.slug for r in records if r.id != excluding_id}
