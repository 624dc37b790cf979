"""Favorites collection: at most one record per routine."""

from dataclasses import asdict
from typing import Any, Dict, List

from bendsync.types import FAVORITES, FavoriteRecord, iso_to_ms, ms_to_iso

from .base import CollectionAdapter

REMOTE_TABLE = "user_favorites"

# Remote schema requires a routine type; every favorite in this app is a yoga routine
DEFAULT_ROUTINE_TYPE = "yoga"


def to_remote(record: FavoriteRecord, identity_id: str) -> Dict[str, Any]:
    return {
        "user_id": identity_id,
        "routine_type": DEFAULT_ROUTINE_TYPE,
        "routine_id": record.routine_id,
        "routine_name": record.routine_name,
        "routine_slug": record.slug,
        "description": record.description,
        "body_part_id": record.body_part_id,
        "image_url": record.image_url or "",
        "duration_minutes": record.duration_minutes,
        "exercises_count": 0,
        "added_at": ms_to_iso(record.saved_at_ms),
    }


def from_remote(row: Dict[str, Any]) -> FavoriteRecord:
    return FavoriteRecord(
        routine_id=str(row["routine_id"]),
        routine_name=row.get("routine_name") or "",
        description=row.get("description") or "",
        duration_minutes=int(row.get("duration_minutes") or 0),
        body_part_id=row.get("body_part_id") or "",
        slug=row.get("routine_slug") or "",
        image_url=row.get("image_url") or None,
        saved_at_ms=iso_to_ms(row.get("added_at")),
    )


class FavoritesAdapter(CollectionAdapter):
    collection = FAVORITES
    key_field = "routine_id"

    def to_local(self, record: FavoriteRecord) -> Dict[str, Any]:
        return asdict(record)

    def from_local(self, data: Dict[str, Any]) -> FavoriteRecord:
        return FavoriteRecord(
            routine_id=str(data["routine_id"]),
            routine_name=data.get("routine_name") or "",
            description=data.get("description") or "",
            duration_minutes=int(data.get("duration_minutes") or 0),
            body_part_id=data.get("body_part_id") or "",
            slug=data.get("slug") or "",
            image_url=data.get("image_url"),
            saved_at_ms=int(data.get("saved_at_ms") or 0),
        )

    def to_remote(self, record: FavoriteRecord, identity_id: str) -> Dict[str, Any]:
        return to_remote(record, identity_id)

    def from_remote(self, row: Dict[str, Any]) -> FavoriteRecord:
        return from_remote(row)

    def sort(self, records: List[FavoriteRecord]) -> List[FavoriteRecord]:
        return sorted(records, key=lambda r: r.saved_at_ms, reverse=True)
