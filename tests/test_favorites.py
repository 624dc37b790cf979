"""Tests for favorites operations."""

from conftest import USER, make_favorite

from bendsync.types import FAVORITES


class TestFavorites:
    def test_same_name_different_routines(self, store, remote_store):
        assert store.save_favorite(make_favorite("stretch-a", "Morning Stretch"))
        assert store.save_favorite(make_favorite("stretch-b", "Morning Stretch"))

        favorites = store.list_favorites()
        assert sorted(f.routine_id for f in favorites) == ["stretch-a", "stretch-b"]
        assert remote_store.calls == []

    def test_save_twice_replaces(self, store):
        store.save_favorite(make_favorite())
        store.save_favorite(make_favorite())
        assert len(store.list_favorites()) == 1

    def test_save_stamps_time(self, store):
        store.save_favorite(make_favorite())
        assert store.list_favorites()[0].saved_at_ms > 0

    def test_is_favorite(self, store):
        assert not store.is_favorite("morning-stretch")
        store.save_favorite(make_favorite())
        assert store.is_favorite("morning-stretch")

    def test_toggle(self, store):
        favorite = make_favorite()
        assert store.toggle_favorite(favorite) is True
        assert store.is_favorite(favorite.routine_id)
        assert store.toggle_favorite(favorite) is False
        assert not store.is_favorite(favorite.routine_id)

    def test_clear(self, store, local_store):
        store.save_favorite(make_favorite())
        assert store.clear_favorites()
        assert local_store.get(FAVORITES) is None
        assert store.list_favorites() == []

    def test_signed_in_upserts_remotely(self, signed_in_store, remote_store):
        signed_in_store.save_favorite(make_favorite())
        signed_in_store.save_favorite(make_favorite())

        rows = remote_store.rows_for(FAVORITES, USER.id)
        assert len(rows) == 1
        assert rows[0]["routine_type"] == "yoga"
        assert signed_in_store.is_favorite("morning-stretch")
