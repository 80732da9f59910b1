import logging
from typing import Dict, Optional

from attendance_tracker.core.enums import AuthEvent
from attendance_tracker.services.identity import IdentityProvider, Session, Subscription

logger = logging.getLogger(__name__)


class SessionController:
    """
    Owns the signed-in state of the application.

    The controller learns about sessions only through the provider's
    notifications. It subscribes in ``start`` and releases the
    subscription in ``close``; use it as a context manager to tie the
    two together.
    """

    def __init__(self, provider: IdentityProvider):
        self.provider = provider
        self.sessions: Dict[str, Session] = {}
        self._subscription: Optional[Subscription] = None

    @property
    def is_listening(self) -> bool:
        return self._subscription is not None and self._subscription.active

    @property
    def active_session_count(self) -> int:
        return len(self.sessions)

    def is_authenticated(self, session_id: Optional[str] = None) -> bool:
        if session_id is None:
            return bool(self.sessions)
        return session_id in self.sessions

    def start(self) -> "SessionController":
        if not self.is_listening:
            self._subscription = self.provider.on_auth_state_change(self._on_auth_state_change)
            logger.info("Session controller subscribed to auth state changes")
        return self

    def close(self):
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
            logger.info("Session controller released its auth subscription")
        self.sessions.clear()

    def _on_auth_state_change(self, event: AuthEvent, session: Optional[Session]):
        if session is None:
            return
        if event == AuthEvent.SIGNED_IN:
            self.sessions[session.session_id] = session
        elif event == AuthEvent.SIGNED_OUT:
            self.sessions.pop(session.session_id, None)

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.close()
