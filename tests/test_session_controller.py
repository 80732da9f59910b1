from datetime import datetime, timezone

import pytest

from attendance_tracker.core.enums import AuthEvent
from attendance_tracker.services.identity import IdentityProvider, Session
from attendance_tracker.services.session_controller import SessionController


def make_session(session_id="s1"):
    return Session(
        session_id=session_id,
        user_id="u1",
        email="admin@school.edu",
        access_token="token",
        expires_at=datetime(2030, 1, 1, tzinfo=timezone.utc),
    )


def test_subscription_receives_events_until_released():
    provider = IdentityProvider()
    seen = []

    subscription = provider.on_auth_state_change(lambda event, session: seen.append(event))
    provider.emit(AuthEvent.SIGNED_IN, make_session())
    subscription.unsubscribe()
    provider.emit(AuthEvent.SIGNED_OUT, make_session())

    assert seen == [AuthEvent.SIGNED_IN]
    assert provider.listener_count == 0
    assert subscription.active is False


def test_unsubscribe_twice_is_harmless():
    provider = IdentityProvider()
    subscription = provider.on_auth_state_change(lambda event, session: None)
    subscription.unsubscribe()
    subscription.unsubscribe()
    assert provider.listener_count == 0


def test_failing_listener_does_not_block_others():
    provider = IdentityProvider()
    seen = []

    def broken(event, session):
        raise RuntimeError("boom")

    provider.on_auth_state_change(broken)
    provider.on_auth_state_change(lambda event, session: seen.append(event))
    provider.emit(AuthEvent.SIGNED_IN, make_session())

    assert seen == [AuthEvent.SIGNED_IN]


def test_controller_tracks_sign_in_and_out():
    provider = IdentityProvider()
    with SessionController(provider) as controller:
        assert controller.is_listening
        assert not controller.is_authenticated()

        provider.emit(AuthEvent.SIGNED_IN, make_session("s1"))
        provider.emit(AuthEvent.SIGNED_IN, make_session("s2"))
        assert controller.is_authenticated("s1")
        assert controller.active_session_count == 2

        provider.emit(AuthEvent.SIGNED_OUT, make_session("s1"))
        assert not controller.is_authenticated("s1")
        assert controller.is_authenticated()

    assert provider.listener_count == 0
    assert not controller.is_listening
    assert controller.active_session_count == 0


def test_controller_releases_subscription_on_error():
    provider = IdentityProvider()
    with pytest.raises(ValueError):
        with SessionController(provider):
            assert provider.listener_count == 1
            raise ValueError("teardown")
    assert provider.listener_count == 0


def test_start_is_idempotent():
    provider = IdentityProvider()
    controller = SessionController(provider).start()
    controller.start()
    assert provider.listener_count == 1
    controller.close()
    assert provider.listener_count == 0
