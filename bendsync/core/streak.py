"""Streak state machine for bendsync.

The streak is derived from completions: every completion appends a history
record, and the first completion on a calendar day advances the streak.
The streak record lives only in the local store; it is never migrated.

Transitions are pure functions over StreakState. StreakEngine adds
persistence and serializes read-modify-write with a single lock.
"""

import logging
import threading
from dataclasses import replace
from datetime import date, timedelta
from typing import Callable, Optional

from bendsync.protocols import LocalStorageError, LocalStore
from bendsync.storage import envelope
from bendsync.types import (
    STREAK_STATE,
    WEEK_LENGTH,
    DashboardStats,
    HistoryRecord,
    RoutineSummary,
    StreakScreenData,
    StreakState,
    epoch_ms,
)

logger = logging.getLogger(__name__)

# Reaching this streak length awards one streak restore
RESTORE_AWARD_STREAK = 2


# === Pure transitions ===


def advance(state: StreakState, today: date) -> StreakState:
    """Apply a completion on ``today``. Returns ``state`` unchanged if already counted."""
    last = state.last_completion_date
    if last == today:
        return state

    if last is not None and last == today - timedelta(days=1):
        current = state.current_streak + 1
    else:
        current = 1

    restores = state.streak_restores_available
    if current == RESTORE_AWARD_STREAK:
        restores += 1

    return replace(
        state,
        current_streak=current,
        longest_streak=max(state.longest_streak, current),
        last_completion_date=today,
        weekly=[True] + list(state.weekly[: WEEK_LENGTH - 1]),
        total_days_completed=state.total_days_completed + 1,
        streak_restores_available=restores,
    )


def restore(state: StreakState, today: date) -> Optional[StreakState]:
    """Spend one restore to mark yesterday as completed. None if none are left."""
    if state.streak_restores_available <= 0:
        return None
    weekly = list(state.weekly)
    weekly[1] = True
    current = max(state.current_streak, 1)
    return replace(
        state,
        streak_restores_available=state.streak_restores_available - 1,
        last_completion_date=today - timedelta(days=1),
        current_streak=current,
        longest_streak=max(state.longest_streak, current),
        weekly=weekly,
    )


def reset(state: StreakState, today: date) -> StreakState:
    """Zero the running streak. Longest streak and total days are history, not reset."""
    return replace(
        state,
        current_streak=0,
        weekly=[False] * WEEK_LENGTH,
        last_streak_reset_date=today,
    )


def has_active_streak(state: StreakState, today: date) -> bool:
    last = state.last_completion_date
    return last is not None and (last == today or last == today - timedelta(days=1))


def completed_today(state: StreakState, today: date) -> bool:
    return state.last_completion_date == today


def should_celebrate(state: StreakState, today: date) -> bool:
    """True when a completion would start a new streak rather than extend one."""
    return not has_active_streak(state, today) or state.current_streak == 0


# === Engine ===


class StreakEngine:
    """Persists StreakState and drives it from completions.

    Args:
        local_store: Store holding the streak record.
        append_history: Called with the HistoryRecord of every completion;
            returns whether it was persisted.
        today_fn: Device-local calendar day.
        clock_ms: Wall-clock epoch milliseconds, stamped on history records.
    """

    def __init__(
        self,
        local_store: LocalStore,
        append_history: Callable[[HistoryRecord], bool],
        today_fn: Callable[[], date] = date.today,
        clock_ms: Callable[[], int] = epoch_ms,
    ):
        self._local = local_store
        self._append_history = append_history
        self._today = today_fn
        self._clock_ms = clock_ms
        self._lock = threading.Lock()

    def today(self) -> date:
        return self._today()

    def now_ms(self) -> int:
        return self._clock_ms()

    def _load(self) -> StreakState:
        """Read the persisted state, defaults when none. Raises LocalStorageError."""
        raw = self._local.get(STREAK_STATE)
        if raw is None:
            return StreakState()
        data = envelope.decode(STREAK_STATE, raw)
        if not isinstance(data, dict):
            raise LocalStorageError("Streak blob is not an object")
        try:
            return StreakState.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise LocalStorageError(f"Corrupt streak state: {e}") from e

    def _save(self, state: StreakState) -> None:
        self._local.set(STREAK_STATE, envelope.encode(state.to_dict()))

    def snapshot(self) -> StreakState:
        """Current persisted state. Never raises; defaults on failure."""
        try:
            return self._load()
        except LocalStorageError as e:
            logger.error(f"Failed to load streak state: {e}")
            return StreakState()

    def _mutate(self, transition: Callable[[StreakState, date], Optional[StreakState]]):
        """Load, transition and save under the lock.

        Returns (previous, new). ``new`` is None when the transition declined
        or the state could not be persisted.
        """
        with self._lock:
            try:
                previous = self._load()
            except LocalStorageError as e:
                logger.error(f"Streak state unreadable, not updating: {e}")
                return StreakState(), None
            updated = transition(previous, self.today())
            if updated is None or updated is previous:
                return previous, updated
            try:
                self._save(updated)
            except LocalStorageError as e:
                logger.error(f"Failed to save streak state: {e}")
                return previous, None
            return previous, updated

    def record_completion(self, routine: RoutineSummary) -> StreakState:
        """Log a completed routine and advance the streak if it is today's first.

        The history record is appended on every call. Returns the persisted
        streak state, which is the previous state when saving fails.
        """
        record = HistoryRecord.from_routine(routine, completed_at_ms=self._clock_ms())
        if not self._append_history(record):
            logger.warning(f"History append failed for routine {routine.id}")

        previous, updated = self._mutate(advance)
        return updated or previous

    def use_streak_restore(self) -> Optional[StreakState]:
        """Preserve the streak across a missed yesterday. None if no restore is available."""
        _, updated = self._mutate(restore)
        return updated

    def reset_streak(self) -> StreakState:
        previous, updated = self._mutate(reset)
        return updated or previous

    def initialize(self) -> StreakState:
        """Persist defaults if nothing has ever been recorded."""
        with self._lock:
            try:
                if self._local.get(STREAK_STATE) is None:
                    self._save(StreakState())
            except LocalStorageError as e:
                logger.error(f"Failed to initialize streak state: {e}")
        return self.snapshot()

    def clear(self) -> bool:
        with self._lock:
            try:
                self._local.remove(STREAK_STATE)
            except LocalStorageError as e:
                logger.error(f"Failed to clear streak state: {e}")
                return False
        return True


class StreakMixin:
    """Streak operations for ActivityStore."""

    def record_completion(self, routine: RoutineSummary) -> StreakState:
        return self._streaks.record_completion(routine)

    def use_streak_restore(self) -> Optional[StreakState]:
        return self._streaks.use_streak_restore()

    def get_streak_snapshot(self) -> StreakState:
        return self._streaks.snapshot()

    def reset_streak(self) -> StreakState:
        return self._streaks.reset_streak()

    def initialize_streak(self) -> StreakState:
        return self._streaks.initialize()

    def clear_streak(self) -> bool:
        return self._streaks.clear()

    def has_active_streak(self) -> bool:
        return has_active_streak(self._streaks.snapshot(), self._streaks.today())

    def completed_today(self) -> bool:
        return completed_today(self._streaks.snapshot(), self._streaks.today())

    def should_celebrate(self) -> bool:
        return should_celebrate(self._streaks.snapshot(), self._streaks.today())

    def streak_screen_data(self) -> StreakScreenData:
        state = self._streaks.snapshot()
        return StreakScreenData(
            current_streak=state.current_streak,
            weekly=list(state.weekly),
            can_restore=state.streak_restores_available > 0,
            streak_restores_available=state.streak_restores_available,
        )

    def dashboard_stats(self) -> DashboardStats:
        """Streak summary for a dashboard.

        ``active_streak`` is 0 once the streak has lapsed (no completion
        today or yesterday), even though the stored ``current_streak`` is
        only reset by the next completion.
        """
        state = self._streaks.snapshot()
        today = self._streaks.today()
        return DashboardStats(
            active_streak=state.current_streak if has_active_streak(state, today) else 0,
            longest_streak=state.longest_streak,
            days_completed=state.total_days_completed,
            last_completion_date=state.last_completion_date,
            weekly_progress=list(state.weekly),
            monthly_progress=self.monthly_progress(today.year, today.month),
        )
