"""Tests for history operations."""

from datetime import datetime, timedelta

from conftest import make_routine

from bendsync import ActivityStore
from bendsync.core.history import completion_day, group_by_day, month_progress
from bendsync.types import HISTORY, HistoryRecord, epoch_ms


def at(year, month, day, hour=9) -> int:
    """Epoch ms of a device-local wall-clock time."""
    return int(datetime(year, month, day, hour).timestamp() * 1000)


def record(routine_id: str, completed_at_ms: int) -> HistoryRecord:
    return HistoryRecord.from_routine(make_routine(routine_id), completed_at_ms)


class TestHelpers:
    def test_completion_day_is_local(self):
        assert completion_day(record("a", at(2026, 3, 5, 23))).isoformat() == "2026-03-05"

    def test_group_by_day(self):
        records = [
            record("a", at(2026, 3, 5, 8)),
            record("b", at(2026, 3, 5, 18)),
            record("c", at(2026, 3, 6)),
        ]
        grouped = group_by_day(records)
        assert sorted(grouped) == ["2026-03-05", "2026-03-06"]
        assert [r.routine_id for r in grouped["2026-03-05"]] == ["a", "b"]

    def test_month_progress(self):
        records = [
            record("a", at(2026, 3, 5)),
            record("b", at(2026, 3, 5, 20)),
            record("c", at(2026, 3, 28)),
            record("d", at(2026, 4, 1)),
        ]
        assert month_progress(records, 2026, 3) == {5: True, 28: True}


class TestHistoryOperations:
    def test_add_and_list_most_recent_first(self, store):
        store.create(HISTORY, record("older", at(2026, 3, 1)))
        store.create(HISTORY, record("newer", at(2026, 3, 2)))
        assert [r.routine_id for r in store.list_history()] == ["newer", "older"]

    def test_add_history_does_not_touch_streak(self, store):
        assert store.add_history(make_routine())
        assert store.get_streak_snapshot().current_streak == 0

    def test_remove_history(self, store):
        store.add_history(make_routine())
        entry = store.list_history()[0]
        assert store.remove_history(entry.entry_id)
        assert store.list_history() == []

    def test_clear_history(self, store, local_store):
        store.add_history(make_routine())
        assert store.clear_history()
        assert local_store.get(HISTORY) is None

    def test_grouped_and_monthly(self, store):
        store.create(HISTORY, record("a", at(2026, 2, 27)))
        store.create(HISTORY, record("b", at(2026, 3, 2)))
        assert sorted(store.grouped_history()) == ["2026-02-27", "2026-03-02"]
        assert store.monthly_progress(2026, 3) == {2: True}

    def test_recent_history(self, store):
        now = epoch_ms()
        day_ms = int(timedelta(days=1).total_seconds() * 1000)
        store.create(HISTORY, record("today", now))
        store.create(HISTORY, record("last-week", now - 7 * day_ms))
        store.create(HISTORY, record("long-ago", now - 45 * day_ms))

        assert [r.routine_id for r in store.recent_history()] == ["today", "last-week"]
        assert [r.routine_id for r in store.recent_history(limit=1)] == ["today"]
        assert [r.routine_id for r in store.recent_history(days=3)] == ["today"]

    def test_today_history(self, store, clock):
        store.add_history(make_routine("now"))
        store.create(HISTORY, record("earlier", epoch_ms() - 3 * 24 * 3600 * 1000))

        assert [r.routine_id for r in store.today_history()] == ["now"]
        clock.advance(5)
        assert store.today_history() == []


class TestHistoryClock:
    NOW = at(2026, 3, 10, 12)

    def make_store(self, identity_provider, local_store, settings):
        return ActivityStore.init(
            identity_provider, local_store, settings=settings, clock_ms=lambda: self.NOW
        )

    def test_recent_history_cutoff_uses_store_clock(self, identity_provider, local_store, settings):
        store = self.make_store(identity_provider, local_store, settings)
        try:
            store.create(HISTORY, record("two-days-ago", at(2026, 3, 8, 12)))
            store.create(HISTORY, record("last-month", at(2026, 2, 1)))

            assert [r.routine_id for r in store.recent_history(days=3)] == ["two-days-ago"]
            assert store.recent_history(days=1) == []
        finally:
            store.dispose(wait=True)

    def test_add_history_stamps_store_clock(self, identity_provider, local_store, settings):
        store = self.make_store(identity_provider, local_store, settings)
        try:
            store.add_history(make_routine())
            assert store.list_history()[0].completed_at_ms == self.NOW
        finally:
            store.dispose(wait=True)
