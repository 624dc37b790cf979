"""Completed-routine history operations for bendsync."""

import logging
from datetime import date, datetime, timedelta
from typing import Dict, List

from bendsync.types import HISTORY, HistoryRecord, RoutineSummary

logger = logging.getLogger(__name__)


def completion_day(record: HistoryRecord) -> date:
    """Device-local calendar day of a completion."""
    return datetime.fromtimestamp(record.completed_at_ms / 1000).date()


def group_by_day(records: List[HistoryRecord]) -> Dict[str, List[HistoryRecord]]:
    grouped: Dict[str, List[HistoryRecord]] = {}
    for record in records:
        grouped.setdefault(completion_day(record).isoformat(), []).append(record)
    return grouped


def month_progress(records: List[HistoryRecord], year: int, month: int) -> Dict[int, bool]:
    """Day-of-month -> True for every day with at least one completion."""
    progress: Dict[int, bool] = {}
    for record in records:
        day = completion_day(record)
        if day.year == year and day.month == month:
            progress[day.day] = True
    return progress


class HistoryMixin:
    """History operations for ActivityStore."""

    def list_history(self) -> List[HistoryRecord]:
        """All history, most recent first."""
        return self._engine.list(HISTORY).records

    def add_history(self, routine: RoutineSummary) -> bool:
        """Append a completion without touching the streak."""
        record = HistoryRecord.from_routine(routine, completed_at_ms=self._streaks.now_ms())
        return self._engine.write(HISTORY, record)

    def remove_history(self, entry_id: str) -> bool:
        return self._engine.remove(HISTORY, entry_id)

    def clear_history(self) -> bool:
        """Drop the local history log. Remote history is untouched."""
        return self._engine.clear_local(HISTORY)

    def grouped_history(self) -> Dict[str, List[HistoryRecord]]:
        """History keyed by ISO completion day."""
        return group_by_day(self.list_history())

    def monthly_progress(self, year: int, month: int) -> Dict[int, bool]:
        return month_progress(self.list_history(), year, month)

    def recent_history(self, limit: int = 10, days: int = 30) -> List[HistoryRecord]:
        cutoff = self._streaks.now_ms() - int(timedelta(days=days).total_seconds() * 1000)
        return [r for r in self.list_history() if r.completed_at_ms > cutoff][:limit]

    def today_history(self) -> List[HistoryRecord]:
        today = self._streaks.today()
        return [r for r in self.list_history() if completion_day(r) == today]
