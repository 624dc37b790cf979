"""ActivityStore: main interface for activity persistence.

This module composes the collection mixins (history, favorites, authored
routines, streak) over one ReconciliationEngine. An ActivityStore is an
explicit context object: build it with ``ActivityStore.init`` or
``ActivityStore.from_settings`` and tear it down with ``dispose()``.
"""

import logging
from datetime import date
from typing import Any, Callable, List, Optional

from bendsync.config import Settings, get_settings
from bendsync.core.favorites import FavoritesMixin
from bendsync.core.history import HistoryMixin
from bendsync.core.identity import ManualIdentityProvider, SupabaseIdentityProvider
from bendsync.core.routines import RoutinesMixin
from bendsync.core.streak import StreakEngine, StreakMixin
from bendsync.protocols import IdentityProvider, LocalStore, RemoteStore
from bendsync.storage import (
    MigrationResult,
    ReconciliationEngine,
    SlugAllocator,
    SQLiteLocalStore,
    default_adapters,
)
from bendsync.types import AUTHORED_ROUTINES, HISTORY, epoch_ms

logger = logging.getLogger(__name__)


class ActivityStore(HistoryMixin, FavoritesMixin, RoutinesMixin, StreakMixin):
    """Persistence for completed routines, favorites, authored routines and streaks.

    Examples:
        # Anonymous, device-only
        store = ActivityStore.init(ManualIdentityProvider(), SQLiteLocalStore(path))

        # Signed in against Supabase, configured from BENDSYNC_* variables
        with ActivityStore.from_settings() as store:
            store.record_completion(routine)
    """

    def __init__(
        self,
        identity_provider: IdentityProvider,
        local_store: LocalStore,
        remote_store: Optional[RemoteStore] = None,
        settings: Optional[Settings] = None,
        today_fn: Callable[[], date] = date.today,
        clock_ms: Callable[[], int] = epoch_ms,
    ):
        """Initialize ActivityStore.

        Args:
            identity_provider: Source of the signed-in identity, if any.
            local_store: Durable device store.
            remote_store: Remote store. None keeps everything on the device.
            settings: Tunables; defaults to ``get_settings()``.
            today_fn: Device-local calendar day, used for streaks.
            clock_ms: Epoch milliseconds, stamped on history records.
        """
        settings = settings or get_settings()
        self._engine = ReconciliationEngine(
            identity_provider,
            local_store,
            remote_store,
            adapters=default_adapters(settings.history_limit),
            max_workers=settings.migration_workers,
        )
        self._slugs = SlugAllocator(self._engine, AUTHORED_ROUTINES)
        self._streaks = StreakEngine(
            local_store,
            append_history=lambda record: self._engine.write(HISTORY, record),
            today_fn=today_fn,
            clock_ms=clock_ms,
        )

        logger.debug(
            f"ActivityStore initialized with local: {type(local_store).__name__}, "
            f"remote: {type(remote_store).__name__ if remote_store else None}"
        )

    @classmethod
    def init(
        cls,
        identity_provider: IdentityProvider,
        local_store: LocalStore,
        remote_store: Optional[RemoteStore] = None,
        **kwargs,
    ) -> "ActivityStore":
        return cls(identity_provider, local_store, remote_store, **kwargs)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        identity_provider: Optional[IdentityProvider] = None,
        **kwargs,
    ) -> "ActivityStore":
        """Build a store from configuration.

        The remote store is only created when Supabase credentials are set.
        Without an explicit identity provider, a configured remote brings a
        SupabaseIdentityProvider on the same client; otherwise the store is
        anonymous.
        """
        settings = settings or get_settings()
        local_store = SQLiteLocalStore(settings.resolved_db_path)

        remote_store = None
        if settings.remote_configured:
            from bendsync.storage.remote import SupabaseRemoteStore

            remote_store = SupabaseRemoteStore.from_settings(settings)
            if identity_provider is None:
                identity_provider = SupabaseIdentityProvider(remote_store.client)

        if identity_provider is None:
            identity_provider = ManualIdentityProvider()

        return cls(identity_provider, local_store, remote_store, settings=settings, **kwargs)

    @property
    def engine(self) -> ReconciliationEngine:
        return self._engine

    # === Generic collection access ===

    def list(self, collection: str) -> List[Any]:
        """Records of any collection from its authoritative store."""
        return self._engine.list(collection).records

    def create(self, collection: str, record: Any) -> bool:
        return self._engine.write(collection, record)

    def remove(self, collection: str, key: str) -> bool:
        return self._engine.remove(collection, key)

    # === Lifecycle ===

    def migrate_now(self) -> List[MigrationResult]:
        """Migrate every collection for the current identity and wait for the results."""
        futures = self._engine.migrate_all()
        return [future.result() for future in futures.values()]

    def wait_for_migrations(self, timeout: Optional[float] = None) -> List[MigrationResult]:
        return self._engine.wait_for_migrations(timeout)

    def dispose(self, wait: bool = False) -> None:
        self._engine.dispose(wait=wait)

    def __enter__(self) -> "ActivityStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.dispose(wait=True)
