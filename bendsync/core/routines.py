"""User-authored routine operations for bendsync."""

import logging
from dataclasses import replace
from typing import List, Optional

from bendsync.protocols import RemoteStoreError
from bendsync.types import (
    AUTHORED_ROUTINES,
    AuthoredRoutine,
    AuthoredRoutineDraft,
    RoutineExercise,
    new_local_routine_id,
    utc_now,
)

logger = logging.getLogger(__name__)


class RoutinesMixin:
    """Authored routine operations for ActivityStore."""

    def list_routines(self) -> List[AuthoredRoutine]:
        return self._engine.list(AUTHORED_ROUTINES).records

    def new_routine(self, draft: AuthoredRoutineDraft) -> AuthoredRoutine:
        """Give a draft a device-local id and a slug unique in the current scope."""
        return AuthoredRoutine(
            id=new_local_routine_id(),
            name=draft.name,
            slug=self._slugs.allocate(draft.name),
            cover_image=draft.cover_image,
            exercises=list(draft.exercises),
            total_duration_seconds=draft.total_duration_seconds,
            created_at=utc_now(),
        )

    def create_routine(self, draft: AuthoredRoutineDraft) -> bool:
        """Persist a new routine.

        A False result after a remote constraint rejection (slug taken by a
        concurrent write) can be retried; the retry allocates a fresh slug.
        """
        return self._engine.write(AUTHORED_ROUTINES, self.new_routine(draft))

    def get_routine_by_slug(self, slug: str) -> Optional[AuthoredRoutine]:
        for routine in self.list_routines():
            if routine.slug == slug:
                return routine
        return None

    def update_routine(
        self,
        routine_id: str,
        name: Optional[str] = None,
        cover_image: Optional[str] = None,
        exercises: Optional[List[RoutineExercise]] = None,
        total_duration_seconds: Optional[int] = None,
    ) -> bool:
        """Change an existing routine. Renaming re-allocates the slug."""
        existing = next((r for r in self.list_routines() if r.id == routine_id), None)
        if existing is None:
            logger.warning(f"No authored routine {routine_id} to update")
            return False

        updated = existing
        if name is not None and name != existing.name:
            updated = replace(
                updated, name=name, slug=self._slugs.allocate(name, excluding_id=routine_id)
            )
        if cover_image is not None:
            updated = replace(updated, cover_image=cover_image)
        if exercises is not None:
            updated = replace(updated, exercises=list(exercises))
        if total_duration_seconds is not None:
            updated = replace(updated, total_duration_seconds=total_duration_seconds)

        return self._engine.write(AUTHORED_ROUTINES, updated)

    def delete_routine(self, routine_id: str) -> bool:
        return self._engine.remove(AUTHORED_ROUTINES, routine_id)

    def clear_routines(self) -> bool:
        """Delete every authored routine, remotely when signed in and locally."""
        identity = self._engine.current_identity()
        if identity is not None:
            try:
                rows = self._engine.remote.list(AUTHORED_ROUTINES, identity.id)
                for row in rows:
                    self._engine.remote.delete(AUTHORED_ROUTINES, identity.id, str(row["id"]))
            except RemoteStoreError as e:
                logger.error(f"Failed to clear remote routines: {e}")
                return False
        return self._engine.clear_local(AUTHORED_ROUTINES)
