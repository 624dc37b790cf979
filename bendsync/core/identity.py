"""Identity providers for bendsync.

- ManualIdentityProvider: in-process sign-in/sign-out, for the CLI and tests
- SupabaseIdentityProvider: follows a Supabase auth session
"""

import logging
import threading
from typing import TYPE_CHECKING, Any, List, Optional

from bendsync.protocols import IdentityListener, Unsubscribe
from bendsync.types import Identity

if TYPE_CHECKING:
    from supabase import Client

logger = logging.getLogger(__name__)


class IdentityListeners:
    """Registry of identity-change callbacks.

    A failing listener is logged and does not stop delivery to the others.
    """

    def __init__(self):
        self._listeners: List[IdentityListener] = []
        self._lock = threading.Lock()

    def add(self, callback: IdentityListener) -> Unsubscribe:
        with self._lock:
            self._listeners.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return unsubscribe

    def notify(self, identity: Optional[Identity]) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(identity)
            except Exception as e:
                logger.error(f"Identity listener failed: {e}", exc_info=True)

    def __len__(self) -> int:
        return len(self._listeners)


class ManualIdentityProvider:
    """Identity set explicitly by the host application."""

    def __init__(self, identity: Optional[Identity] = None):
        self._identity = identity
        self._listeners = IdentityListeners()

    def current_identity(self) -> Optional[Identity]:
        return self._identity

    def on_identity_change(self, callback: IdentityListener) -> Unsubscribe:
        return self._listeners.add(callback)

    def sign_in(self, identity: Identity) -> None:
        self._identity = identity
        self._listeners.notify(identity)

    def sign_out(self) -> None:
        self._identity = None
        self._listeners.notify(None)


class SupabaseIdentityProvider:
    """Identity taken from a Supabase auth session.

    Only the two operations the engine needs are wrapped; sign-in flows
    themselves belong to the host application.
    """

    def __init__(self, client: "Client"):
        self._client = client
        self._listeners = IdentityListeners()
        self._subscription: Any = None

    @staticmethod
    def _identity_from_session(session: Any) -> Optional[Identity]:
        user = getattr(session, "user", None) if session else None
        if user is None:
            return None
        return Identity(id=str(user.id), email=getattr(user, "email", None))

    def current_identity(self) -> Optional[Identity]:
        try:
            session = self._client.auth.get_session()
        except Exception as e:
            logger.warning(f"Could not read auth session: {e}")
            return None
        return self._identity_from_session(session)

    def on_identity_change(self, callback: IdentityListener) -> Unsubscribe:
        if self._subscription is None:
            self._subscription = self._client.auth.on_auth_state_change(self._handle_auth_event)
        unsubscribe = self._listeners.add(callback)

        def release():
            unsubscribe()
            if not len(self._listeners) and self._subscription is not None:
                self._subscription.unsubscribe()
                self._subscription = None

        return release

    def _handle_auth_event(self, event: Any, session: Any) -> None:
        logger.debug(f"Auth event: {event}")
        self._listeners.notify(self._identity_from_session(session))
