"""History collection: one record per completed routine."""

from dataclasses import asdict
from typing import Any, Dict, List, Optional

from bendsync.types import HISTORY, HistoryRecord, iso_to_ms, ms_to_iso

from .base import CollectionAdapter

REMOTE_TABLE = "user_history"


def to_remote(record: HistoryRecord, identity_id: str) -> Dict[str, Any]:
    return {
        "user_id": identity_id,
        "entry_id": record.entry_id,
        "routine_id": record.routine_id,
        "routine_name": record.routine_name,
        "routine_slug": record.slug,
        "duration_minutes": record.duration_minutes,
        "exercises_count": record.exercise_count,
        "image_url": record.image_url,
        "completed_at": ms_to_iso(record.completed_at_ms),
    }


def from_remote(row: Dict[str, Any]) -> HistoryRecord:
    return HistoryRecord(
        routine_id=str(row["routine_id"]),
        routine_name=row.get("routine_name") or "",
        slug=row.get("routine_slug") or "",
        duration_minutes=int(row.get("duration_minutes") or 0),
        exercise_count=int(row.get("exercises_count") or 0),
        image_url=row.get("image_url") or None,
        completed_at_ms=iso_to_ms(row.get("completed_at")),
        entry_id=str(row.get("entry_id") or row.get("id")),
    )


class HistoryAdapter(CollectionAdapter):
    collection = HISTORY
    key_field = "entry_id"

    def __init__(self, local_limit: Optional[int] = 100):
        self.local_limit = local_limit

    def to_local(self, record: HistoryRecord) -> Dict[str, Any]:
        return asdict(record)

    def from_local(self, data: Dict[str, Any]) -> HistoryRecord:
        completed_at_ms = int(data["completed_at_ms"])
        return HistoryRecord(
            routine_id=str(data["routine_id"]),
            routine_name=data.get("routine_name") or "",
            slug=data.get("slug") or "",
            duration_minutes=int(data.get("duration_minutes") or 0),
            exercise_count=int(data.get("exercise_count") or 0),
            image_url=data.get("image_url"),
            completed_at_ms=completed_at_ms,
            entry_id=data.get("entry_id") or f"{data['routine_id']}-{completed_at_ms}",
        )

    def to_remote(self, record: HistoryRecord, identity_id: str) -> Dict[str, Any]:
        return to_remote(record, identity_id)

    def from_remote(self, row: Dict[str, Any]) -> HistoryRecord:
        return from_remote(row)

    def sort(self, records: List[HistoryRecord]) -> List[HistoryRecord]:
        return sorted(records, key=lambda r: r.completed_at_ms, reverse=True)
