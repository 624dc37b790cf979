"""Storage layer for bendsync.

- SQLiteLocalStore: durable on-device key/value store
- SupabaseRemoteStore: identity-scoped remote tables
- ReconciliationEngine: routes reads/writes and migrates local data on sign-in
- SlugAllocator: scope-unique slugs for authored routines
"""

from .adapters import (
    CollectionAdapter,
    FavoritesAdapter,
    HistoryAdapter,
    RoutinesAdapter,
    default_adapters,
)
from .local import SQLiteLocalStore
from .reconciliation import ListResult, MigrationResult, ReconciliationEngine
from .slugs import SlugAllocator, slugify

__all__ = [
    "CollectionAdapter",
    "FavoritesAdapter",
    "HistoryAdapter",
    "ListResult",
    "MigrationResult",
    "ReconciliationEngine",
    "RoutinesAdapter",
    "SQLiteLocalStore",
    "SlugAllocator",
    "default_adapters",
    "slugify",
]
