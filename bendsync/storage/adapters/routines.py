"""Authored routines collection.

Remotely a routine is a parent row plus one child row per exercise. The
adapter emits the children under an ``exercises`` key; the remote store
splits them into the child table.
"""

from dataclasses import asdict
from typing import Any, Dict, List

from bendsync.types import (
    AUTHORED_ROUTINES,
    AuthoredRoutine,
    RoutineExercise,
    is_local_routine_id,
)

from .base import CollectionAdapter

REMOTE_TABLE = "custom_routines"
REMOTE_EXERCISE_TABLE = "custom_routine_exercises"


def exercise_to_remote(exercise: RoutineExercise) -> Dict[str, Any]:
    return {
        "exercise_name": exercise.name,
        "description": exercise.description,
        "image_url": exercise.image_url,
        "video_url": exercise.video_url,
        "duration_seconds": exercise.duration_seconds,
        "sequence": exercise.sequence,
        "rest_duration": exercise.rest_seconds,
    }


def exercise_from_remote(row: Dict[str, Any]) -> RoutineExercise:
    return RoutineExercise(
        id=str(row.get("id") or ""),
        name=row.get("exercise_name") or "",
        description=row.get("description") or "",
        image_url=row.get("image_url") or "",
        duration_seconds=int(row.get("duration_seconds") or 0),
        sequence=int(row.get("sequence") or 0),
        video_url=row.get("video_url"),
        rest_seconds=row.get("rest_duration"),
    )


def to_remote(routine: AuthoredRoutine, identity_id: str) -> Dict[str, Any]:
    row = {
        "user_id": identity_id,
        "name": routine.name,
        "slug": routine.slug,
        "cover_image": routine.cover_image,
        "total_duration": routine.total_duration_seconds,
        "exercises_count": len(routine.exercises),
        "description": "",
        "is_public": False,
        "created_at": routine.created_at,
        "exercises": [exercise_to_remote(e) for e in routine.exercises],
    }
    # Device-local ids are never sent; the remote store assigns its own
    if not is_local_routine_id(routine.id):
        row["id"] = routine.id
    return row


def from_remote(row: Dict[str, Any]) -> AuthoredRoutine:
    exercises = sorted(
        (exercise_from_remote(e) for e in row.get("exercises") or []),
        key=lambda e: e.sequence,
    )
    return AuthoredRoutine(
        id=str(row["id"]),
        name=row.get("name") or "",
        slug=row.get("slug") or "",
        cover_image=row.get("cover_image") or "",
        exercises=exercises,
        total_duration_seconds=int(row.get("total_duration") or 0),
        created_at=row.get("created_at") or "",
    )


class RoutinesAdapter(CollectionAdapter):
    collection = AUTHORED_ROUTINES
    key_field = "id"

    def to_local(self, routine: AuthoredRoutine) -> Dict[str, Any]:
        return asdict(routine)

    def from_local(self, data: Dict[str, Any]) -> AuthoredRoutine:
        return AuthoredRoutine(
            id=str(data["id"]),
            name=data["name"],
            slug=data["slug"],
            cover_image=data.get("cover_image") or "",
            exercises=[RoutineExercise(**e) for e in data.get("exercises") or []],
            total_duration_seconds=int(data.get("total_duration_seconds") or 0),
            created_at=data.get("created_at") or "",
        )

    def to_remote(self, routine: AuthoredRoutine, identity_id: str) -> Dict[str, Any]:
        return to_remote(routine, identity_id)

    def from_remote(self, row: Dict[str, Any]) -> AuthoredRoutine:
        return from_remote(row)

    def sort(self, routines: List[AuthoredRoutine]) -> List[AuthoredRoutine]:
        return sorted(routines, key=lambda r: r.created_at, reverse=True)

    def has_remote_id(self, routine: AuthoredRoutine) -> bool:
        return not is_local_routine_id(routine.id)
