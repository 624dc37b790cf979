"""bendsync core - the ActivityStore and its collection operations.

    from bendsync.core import ActivityStore, ManualIdentityProvider
"""

from bendsync.core.activity_store import ActivityStore
from bendsync.core.identity import ManualIdentityProvider, SupabaseIdentityProvider
from bendsync.core.streak import StreakEngine

__all__ = [
    "ActivityStore",
    "ManualIdentityProvider",
    "StreakEngine",
    "SupabaseIdentityProvider",
]
