"""
Shared record types for bendsync.

All persisted record dataclasses live here. These are the shared vocabulary
between the collection adapters, the reconciliation engine and the streak
engine. An adapter converts a record to a local blob entry or a remote row;
the engine only ever moves records around.
"""

import secrets
import string
import time
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

# === Collection keys ===
# Fixed LocalStore keys, one per collection. Not parameterized by identity:
# the local store is always single-scope.

HISTORY = "history"
FAVORITES = "favorites"
AUTHORED_ROUTINES = "authored_routines"
STREAK_STATE = "streak_state"

COLLECTIONS = (HISTORY, FAVORITES, AUTHORED_ROUTINES)

WEEK_LENGTH = 7
LOCAL_ROUTINE_ID_PREFIX = "custom_"


# === Shared Utility Functions ===


def utc_now() -> str:
    """Get current timestamp as ISO string in UTC."""
    return datetime.now(timezone.utc).isoformat()


def epoch_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def ms_to_iso(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).isoformat()


def iso_to_ms(value: Optional[str]) -> int:
    """Parse an ISO timestamp (as returned by PostgREST) into epoch ms.

    Returns 0 for empty or unparseable values.
    """
    if not value:
        return 0
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return 0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


def parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(value[:10])


def new_local_routine_id() -> str:
    """Generate a device-local authored routine id.

    Format: ``custom_<epoch ms>_<9 base36 chars>``. The remote store assigns
    its own id once the routine is persisted there.
    """
    alphabet = string.digits + string.ascii_lowercase
    suffix = "".join(secrets.choice(alphabet) for _ in range(9))
    return f"{LOCAL_ROUTINE_ID_PREFIX}{epoch_ms()}_{suffix}"


def is_local_routine_id(routine_id: str) -> bool:
    return routine_id.startswith(LOCAL_ROUTINE_ID_PREFIX)


# === Identity ===


@dataclass(frozen=True)
class Identity:
    """An authenticated account. Anonymous use is represented by ``None``."""

    id: str
    email: Optional[str] = None


# === Collection records ===


@dataclass
class RoutineSummary:
    """What a caller knows about a routine at the moment it is completed."""

    id: str
    name: str
    slug: str
    duration_minutes: int
    exercise_count: int = 0
    image_url: Optional[str] = None


@dataclass
class HistoryRecord:
    """One completed routine. History is an event log: never mutated."""

    routine_id: str
    routine_name: str
    slug: str
    duration_minutes: int
    exercise_count: int = 0
    image_url: Optional[str] = None
    completed_at_ms: int = field(default_factory=epoch_ms)
    entry_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @classmethod
    def from_routine(cls, routine: RoutineSummary, completed_at_ms: Optional[int] = None):
        return cls(
            routine_id=routine.id,
            routine_name=routine.name,
            slug=routine.slug,
            duration_minutes=routine.duration_minutes,
            exercise_count=routine.exercise_count,
            image_url=routine.image_url,
            completed_at_ms=completed_at_ms if completed_at_ms is not None else epoch_ms(),
        )


@dataclass
class FavoriteRecord:
    """A favorited routine, keyed by ``routine_id``."""

    routine_id: str
    routine_name: str
    description: str
    duration_minutes: int
    body_part_id: str
    slug: str
    image_url: Optional[str] = None
    saved_at_ms: int = 0


@dataclass
class RoutineExercise:
    id: str
    name: str
    description: str
    image_url: str
    duration_seconds: int
    sequence: int
    video_url: Optional[str] = None
    rest_seconds: Optional[int] = None


@dataclass
class AuthoredRoutineDraft:
    """A user-authored routine before it has an id or slug."""

    name: str
    cover_image: str
    exercises: List[RoutineExercise] = field(default_factory=list)
    total_duration_seconds: int = 0


@dataclass
class AuthoredRoutine:
    """A user-authored routine.

    ``id`` starts out device-local (see :func:`new_local_routine_id`) and is
    replaced by the remote id once the routine is stored remotely.
    ``slug`` is unique within the owning scope.
    """

    id: str
    name: str
    slug: str
    cover_image: str
    exercises: List[RoutineExercise] = field(default_factory=list)
    total_duration_seconds: int = 0
    created_at: str = field(default_factory=utc_now)


# === Streak ===


def _empty_week() -> List[bool]:
    return [False] * WEEK_LENGTH


@dataclass
class StreakState:
    """Derived completion streak. Singleton per device.

    ``weekly[0]`` is the most recent completion day as of the last mutation;
    it is not re-derived when read on a later day.
    """

    current_streak: int = 0
    longest_streak: int = 0
    last_completion_date: Optional[date] = None
    weekly: List[bool] = field(default_factory=_empty_week)
    total_days_completed: int = 0
    streak_restores_available: int = 0
    last_streak_reset_date: Optional[date] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "last_completion_date": (
                self.last_completion_date.isoformat() if self.last_completion_date else None
            ),
            "weekly": list(self.weekly),
            "total_days_completed": self.total_days_completed,
            "streak_restores_available": self.streak_restores_available,
            "last_streak_reset_date": (
                self.last_streak_reset_date.isoformat() if self.last_streak_reset_date else None
            ),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StreakState":
        """Build a state from a stored dict, filling missing fields with defaults."""
        weekly = [bool(day) for day in (data.get("weekly") or [])][:WEEK_LENGTH]
        weekly += [False] * (WEEK_LENGTH - len(weekly))
        return cls(
            current_streak=int(data.get("current_streak") or 0),
            longest_streak=int(data.get("longest_streak") or 0),
            last_completion_date=parse_date(data.get("last_completion_date")),
            weekly=weekly,
            total_days_completed=int(data.get("total_days_completed") or 0),
            streak_restores_available=int(data.get("streak_restores_available") or 0),
            last_streak_reset_date=parse_date(data.get("last_streak_reset_date")),
        )


@dataclass
class DashboardStats:
    """Read-only streak summary for a dashboard screen."""

    active_streak: int
    longest_streak: int
    days_completed: int
    last_completion_date: Optional[date]
    weekly_progress: List[bool]
    monthly_progress: Dict[int, bool] = field(default_factory=dict)


@dataclass
class StreakScreenData:
    current_streak: int
    weekly: List[bool]
    can_restore: bool
    streak_restores_available: int
