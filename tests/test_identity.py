"""Tests for identity providers."""

from types import SimpleNamespace
from unittest.mock import MagicMock

from bendsync.core.identity import (
    IdentityListeners,
    ManualIdentityProvider,
    SupabaseIdentityProvider,
)
from bendsync.protocols import IdentityProvider
from bendsync.types import Identity

USER = Identity(id="user-1", email="user@example.com")


def session_for(user_id, email=None):
    return SimpleNamespace(user=SimpleNamespace(id=user_id, email=email))


class TestIdentityListeners:
    def test_notify_and_unsubscribe(self):
        listeners = IdentityListeners()
        seen = []
        unsubscribe = listeners.add(seen.append)

        listeners.notify(USER)
        unsubscribe()
        listeners.notify(None)

        assert seen == [USER]
        assert len(listeners) == 0

    def test_failing_listener_does_not_block_others(self):
        listeners = IdentityListeners()
        seen = []

        def broken(identity):
            raise RuntimeError("listener bug")

        listeners.add(broken)
        listeners.add(seen.append)
        listeners.notify(USER)
        assert seen == [USER]

    def test_unsubscribe_twice(self):
        listeners = IdentityListeners()
        unsubscribe = listeners.add(lambda identity: None)
        unsubscribe()
        unsubscribe()
        assert len(listeners) == 0


class TestManualIdentityProvider:
    def test_satisfies_protocol(self):
        assert isinstance(ManualIdentityProvider(), IdentityProvider)

    def test_sign_in_and_out(self):
        provider = ManualIdentityProvider()
        seen = []
        provider.on_identity_change(seen.append)

        assert provider.current_identity() is None
        provider.sign_in(USER)
        assert provider.current_identity() == USER
        provider.sign_out()
        assert provider.current_identity() is None
        assert seen == [USER, None]


class TestSupabaseIdentityProvider:
    def test_current_identity_from_session(self):
        client = MagicMock()
        client.auth.get_session.return_value = session_for("abc", "a@example.com")
        provider = SupabaseIdentityProvider(client)
        assert provider.current_identity() == Identity(id="abc", email="a@example.com")

    def test_no_session_is_anonymous(self):
        client = MagicMock()
        client.auth.get_session.return_value = None
        assert SupabaseIdentityProvider(client).current_identity() is None

    def test_session_error_is_anonymous(self):
        client = MagicMock()
        client.auth.get_session.side_effect = RuntimeError("refresh failed")
        assert SupabaseIdentityProvider(client).current_identity() is None

    def test_auth_events_reach_listeners(self):
        client = MagicMock()
        provider = SupabaseIdentityProvider(client)
        seen = []
        provider.on_identity_change(seen.append)

        handler = client.auth.on_auth_state_change.call_args[0][0]
        handler("SIGNED_IN", session_for("abc"))
        handler("SIGNED_OUT", None)

        assert seen == [Identity(id="abc"), None]

    def test_subscribes_once_and_releases_last(self):
        client = MagicMock()
        subscription = client.auth.on_auth_state_change.return_value
        provider = SupabaseIdentityProvider(client)

        release_a = provider.on_identity_change(lambda i: None)
        release_b = provider.on_identity_change(lambda i: None)
        assert client.auth.on_auth_state_change.call_count == 1

        release_a()
        subscription.unsubscribe.assert_not_called()
        release_b()
        subscription.unsubscribe.assert_called_once()
