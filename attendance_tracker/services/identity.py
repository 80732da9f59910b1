"""
Email/password identity provider.

Sessions live in the ``auth_sessions`` table; the bearer token is a JWT
whose ``jti`` is the session id, so signing out revokes the token even
before it expires. Interested parties register for SIGNED_IN/SIGNED_OUT
notifications with ``on_auth_state_change`` and get a ``Subscription``
back that they must release.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional

import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_tracker.core.enums import AuthEvent
from attendance_tracker.core.exceptions import AuthenticationError, SignUpError
from attendance_tracker.core.security import (
    create_access_token,
    decode_access_token,
    token_expiry,
    verify_password,
)
from attendance_tracker.crud import user as user_crud
from attendance_tracker.models.user import AuthUser

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid login credentials"


@dataclass(frozen=True)
class Session:
    session_id: str
    user_id: str
    email: str
    access_token: str
    expires_at: datetime


AuthListener = Callable[[AuthEvent, Optional[Session]], None]


class Subscription:
    def __init__(self, provider: "IdentityProvider", listener: AuthListener):
        self._provider = provider
        self._listener = listener
        self.active = True

    def unsubscribe(self):
        if self.active:
            self._provider._remove_listener(self._listener)
            self.active = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.unsubscribe()


class IdentityProvider:
    def __init__(self):
        self._listeners: List[AuthListener] = []

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def on_auth_state_change(self, listener: AuthListener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self, listener)

    def _remove_listener(self, listener: AuthListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, event: AuthEvent, session: Optional[Session]):
        for listener in list(self._listeners):
            try:
                listener(event, session)
            except Exception as e:
                logger.error(f"Auth listener failed on {event.value}: {e}", exc_info=True)

    async def sign_up(self, db: AsyncSession, email: str, password: str) -> AuthUser:
        existing = await user_crud.get_user_by_email(db, email)
        if existing:
            logger.warning(f"Sign-up rejected, email already registered: {email}")
            raise SignUpError("User already registered")
        return await user_crud.create_user(db, email, password)

    async def ensure_admin(self, db: AsyncSession, email: str, password: str) -> AuthUser:
        """Create the administrator account unless the email is already registered."""
        existing = await user_crud.get_user_by_email(db, email)
        if existing:
            logger.info(f"Admin user already exists: {existing.email}")
            return existing
        user = await user_crud.create_user(db, email, password)
        logger.info(f"Admin user created: {user.email}")
        return user

    async def sign_in(self, db: AsyncSession, email: str, password: str) -> Session:
        user = await user_crud.get_user_by_email(db, email)
        if not user or not verify_password(password, user.password_hash):
            logger.warning(f"Failed sign-in attempt for email: {email}")
            raise AuthenticationError(INVALID_CREDENTIALS)

        expires_at = token_expiry()
        db_session = await user_crud.create_session(db, user.id, expires_at)
        session = Session(
            session_id=db_session.id,
            user_id=user.id,
            email=user.email,
            access_token=create_access_token(user.id, db_session.id, user.email, expires_at),
            expires_at=expires_at,
        )
        logger.info(f"User signed in: {user.email} (session {session.session_id})")
        self.emit(AuthEvent.SIGNED_IN, session)
        return session

    async def get_session(self, db: AsyncSession, access_token: Optional[str]) -> Optional[Session]:
        """The live session behind a token, or None if the token is bad, expired or signed out."""
        if not access_token:
            return None
        try:
            claims = decode_access_token(access_token)
        except jwt.InvalidTokenError as e:
            logger.debug(f"Rejected access token: {e}")
            return None

        db_session = await user_crud.get_session_by_id(db, claims.get("jti", ""))
        if db_session is None or db_session.user_id != claims.get("sub"):
            return None

        return Session(
            session_id=db_session.id,
            user_id=db_session.user_id,
            email=claims.get("email", ""),
            access_token=access_token,
            expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
        )

    async def get_user(self, db: AsyncSession, access_token: Optional[str]) -> Optional[AuthUser]:
        session = await self.get_session(db, access_token)
        if session is None:
            return None
        return await user_crud.get_user_by_id(db, session.user_id)

    async def sign_out(self, db: AsyncSession, session: Session):
        await user_crud.delete_session(db, session.session_id)
        logger.info(f"User signed out: {session.email} (session {session.session_id})")
        self.emit(AuthEvent.SIGNED_OUT, session)


identity_provider = IdentityProvider()
