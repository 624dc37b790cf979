"""Favorite routine operations for bendsync."""

import logging
from dataclasses import replace
from typing import List

from bendsync.types import FAVORITES, FavoriteRecord, epoch_ms

logger = logging.getLogger(__name__)


class FavoritesMixin:
    """Favorites operations for ActivityStore."""

    def list_favorites(self) -> List[FavoriteRecord]:
        return self._engine.list(FAVORITES).records

    def save_favorite(self, favorite: FavoriteRecord) -> bool:
        """Favorite a routine, replacing any earlier favorite of the same routine."""
        return self._engine.write(FAVORITES, replace(favorite, saved_at_ms=epoch_ms()))

    def remove_favorite(self, routine_id: str) -> bool:
        return self._engine.remove(FAVORITES, routine_id)

    def is_favorite(self, routine_id: str) -> bool:
        return any(f.routine_id == routine_id for f in self.list_favorites())

    def toggle_favorite(self, favorite: FavoriteRecord) -> bool:
        """Flip a routine's favorite state.

        Returns:
            Whether the routine is a favorite afterwards. A failed write
            leaves the state (and so the return value) unchanged.
        """
        if self.is_favorite(favorite.routine_id):
            return not self.remove_favorite(favorite.routine_id)
        return self.save_favorite(favorite)

    def clear_favorites(self) -> bool:
        """Drop locally stored favorites. Remote favorites are untouched."""
        return self._engine.clear_local(FAVORITES)
