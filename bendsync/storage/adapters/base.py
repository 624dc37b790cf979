"""Collection adapter base class.

An adapter knows everything collection-specific the reconciliation engine
needs: the local key, how a record is keyed, how it is laid out in a local
blob and in a remote row, and how records are ordered for display. The
engine itself is collection-agnostic.
"""

import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class CollectionAdapter:
    """Collection-specific conversions used by the reconciliation engine.

    Subclasses set ``collection`` and ``key_field`` and implement the four
    conversion methods.
    """

    collection: str = ""
    key_field: str = ""
    # Keep at most this many records locally (most recent first), None = unbounded
    local_limit: Optional[int] = None

    def key_of(self, record: Any) -> str:
        return str(getattr(record, self.key_field))

    def to_local(self, record: Any) -> Dict[str, Any]:
        raise NotImplementedError

    def from_local(self, data: Dict[str, Any]) -> Any:
        raise NotImplementedError

    def to_remote(self, record: Any, identity_id: str) -> Dict[str, Any]:
        raise NotImplementedError

    def from_remote(self, row: Dict[str, Any]) -> Any:
        raise NotImplementedError

    def sort(self, records: List[Any]) -> List[Any]:
        """Display order. Default keeps insertion order."""
        return list(records)

    def has_remote_id(self, record: Any) -> bool:
        """Whether the record already exists remotely and must be updated, not inserted."""
        return False

    def decode_list(self, data: Any) -> List[Any]:
        """Decode a local blob payload into records, skipping malformed entries."""
        if not isinstance(data, list):
            raise ValueError(f"{self.collection} blob is not a list")
        records = []
        for item in data:
            try:
                records.append(self.from_local(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed {self.collection} entry: {e}")
        return records

    def encode_list(self, records: List[Any]) -> List[Dict[str, Any]]:
        return [self.to_local(record) for record in records]

    def merge(self, records: List[Any], record: Any) -> List[Any]:
        """Insert or replace ``record`` by key, then order and cap."""
        key = self.key_of(record)
        merged = [existing for existing in records if self.key_of(existing) != key]
        merged.append(record)
        merged = self.sort(merged)
        if self.local_limit is not None:
            merged = merged[: self.local_limit]
        return merged

    def without(self, records: List[Any], key: str) -> List[Any]:
        return [record for record in records if self.key_of(record) != key]
