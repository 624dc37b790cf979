"""Per-collection adapters for the reconciliation engine."""

from typing import Dict, Optional

from .base import CollectionAdapter
from .favorites import FavoritesAdapter
from .history import HistoryAdapter
from .routines import RoutinesAdapter


def default_adapters(history_limit: Optional[int] = 100) -> Dict[str, CollectionAdapter]:
    """One adapter per collection, keyed by collection name."""
    adapters = [HistoryAdapter(local_limit=history_limit), FavoritesAdapter(), RoutinesAdapter()]
    return {adapter.collection: adapter for adapter in adapters}


__all__ = [
    "CollectionAdapter",
    "FavoritesAdapter",
    "HistoryAdapter",
    "RoutinesAdapter",
    "default_adapters",
]
