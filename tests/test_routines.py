"""Tests for authored routine operations."""

from conftest import USER

from bendsync.protocols import PermanentRemoteError
from bendsync.types import (
    AUTHORED_ROUTINES,
    AuthoredRoutineDraft,
    RoutineExercise,
    is_local_routine_id,
)


def exercise(name: str, sequence: int, seconds: int = 60) -> RoutineExercise:
    return RoutineExercise(
        id=f"ex-{sequence}",
        name=name,
        description="",
        image_url="",
        duration_seconds=seconds,
        sequence=sequence,
        rest_seconds=10,
    )


def core_draft() -> AuthoredRoutineDraft:
    exercises = [exercise("Plank", 0), exercise("Dead bug", 1, 45)]
    return AuthoredRoutineDraft(
        name="Core Basics",
        cover_image="https://example.com/core.jpg",
        exercises=exercises,
        total_duration_seconds=125,
    )


class TestCreate:
    def test_create_anonymous(self, store):
        assert store.create_routine(core_draft())

        routine = store.get_routine_by_slug("core-basics")
        assert routine is not None
        assert is_local_routine_id(routine.id)
        assert [e.name for e in routine.exercises] == ["Plank", "Dead bug"]
        assert routine.total_duration_seconds == 125

    def test_local_ids_are_unique(self, store):
        store.create_routine(core_draft())
        store.create_routine(core_draft())
        ids = [r.id for r in store.list_routines()]
        assert len(set(ids)) == 2

    def test_create_signed_in_stores_remotely(self, signed_in_store, remote_store):
        assert signed_in_store.create_routine(core_draft())

        rows = remote_store.rows_for(AUTHORED_ROUTINES, USER.id)
        assert len(rows) == 1
        assert rows[0]["slug"] == "core-basics"
        assert [e["exercise_name"] for e in rows[0]["exercises"]] == ["Plank", "Dead bug"]

        routine = signed_in_store.get_routine_by_slug("core-basics")
        assert not is_local_routine_id(routine.id)

    def test_remote_rejection_returns_false(self, signed_in_store, remote_store):
        remote_store.fail("insert", PermanentRemoteError("slug taken", code="23505"))
        assert not signed_in_store.create_routine(core_draft())
        assert signed_in_store.engine.load_local(AUTHORED_ROUTINES) == []


class TestUpdate:
    def test_update_exercises_keeps_slug(self, store):
        store.create_routine(core_draft())
        routine = store.get_routine_by_slug("core-basics")

        assert store.update_routine(routine.id, exercises=[exercise("Bird dog", 0)])
        updated = store.get_routine_by_slug("core-basics")
        assert [e.name for e in updated.exercises] == ["Bird dog"]
        assert len(store.list_routines()) == 1

    def test_rename_reslugs(self, store):
        store.create_routine(core_draft())
        routine = store.get_routine_by_slug("core-basics")

        assert store.update_routine(routine.id, name="Evening Core")
        assert store.get_routine_by_slug("core-basics") is None
        assert store.get_routine_by_slug("evening-core").id == routine.id

    def test_update_remote_routine(self, signed_in_store, remote_store):
        signed_in_store.create_routine(core_draft())
        routine = signed_in_store.get_routine_by_slug("core-basics")

        assert signed_in_store.update_routine(routine.id, cover_image="new.jpg")
        assert ("update", AUTHORED_ROUTINES, USER.id, routine.id) in remote_store.calls
        assert remote_store.rows_for(AUTHORED_ROUTINES, USER.id)[0]["cover_image"] == "new.jpg"

    def test_update_unknown_routine(self, store):
        assert not store.update_routine("custom_1_missing", name="Nope")


class TestDelete:
    def test_delete(self, store):
        store.create_routine(core_draft())
        routine = store.list_routines()[0]
        assert store.delete_routine(routine.id)
        assert store.list_routines() == []

    def test_clear_signed_in(self, signed_in_store, remote_store):
        signed_in_store.create_routine(core_draft())
        signed_in_store.create_routine(core_draft())

        assert signed_in_store.clear_routines()
        assert remote_store.rows_for(AUTHORED_ROUTINES, USER.id) == []
        assert signed_in_store.list_routines() == []

    def test_clear_anonymous(self, store, remote_store):
        store.create_routine(core_draft())
        assert store.clear_routines()
        assert store.list_routines() == []
        assert remote_store.calls == []
