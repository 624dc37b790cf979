"""
bendsync - activity persistence for a stretching and yoga app.

Device-first storage that follows the user to the cloud when they sign in.
"""

from .core import ActivityStore, ManualIdentityProvider
from .types import (
    AuthoredRoutine,
    AuthoredRoutineDraft,
    FavoriteRecord,
    HistoryRecord,
    Identity,
    RoutineExercise,
    RoutineSummary,
    StreakState,
)

try:
    from importlib.metadata import version

    __version__ = version("bendsync")
except Exception:
    __version__ = "0.0.0"

__all__ = [
    "ActivityStore",
    "AuthoredRoutine",
    "AuthoredRoutineDraft",
    "FavoriteRecord",
    "HistoryRecord",
    "Identity",
    "ManualIdentityProvider",
    "RoutineExercise",
    "RoutineSummary",
    "StreakState",
]
