import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from attendance_tracker.core.security import hash_password
from attendance_tracker.models.user import AuthSession, AuthUser

# Setup logger
logger = logging.getLogger(__name__)


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[AuthUser]:
    """
    Get user by email.

    Args:
        db: Database session
        email: User email

    Returns:
        AuthUser instance or None
    """
    try:
        logger.debug(f"Querying user by email: {email}")
        result = await db.execute(select(AuthUser).where(AuthUser.email == email.lower()))
        return result.scalar_one_or_none()

    except SQLAlchemyError as e:
        logger.error(f"Database error querying user by email {email}: {str(e)}", exc_info=True)
        raise


async def get_user_by_id(db: AsyncSession, user_id: str) -> Optional[AuthUser]:
    result = await db.execute(select(AuthUser).where(AuthUser.id == user_id))
    return result.scalar_one_or_none()


async def create_user(db: AsyncSession, email: str, password: str) -> AuthUser:
    """
    Create a new user with a hashed password.

    Raises:
        SQLAlchemyError: If database operation fails
    """
    try:
        logger.info(f"Creating new user with email: {email}")
        db_user = AuthUser(email=email.lower(), password_hash=hash_password(password))
        db.add(db_user)
        await db.commit()
        await db.refresh(db_user)

        logger.info(f"User created successfully: {email} (ID: {db_user.id})")
        return db_user

    except SQLAlchemyError as e:
        logger.error(f"Database error creating user {email}: {str(e)}", exc_info=True)
        await db.rollback()
        raise


async def create_session(db: AsyncSession, user_id: str, expires_at: datetime) -> AuthSession:
    try:
        # stored naive, in UTC
        db_session = AuthSession(user_id=user_id, expires_at=expires_at.replace(tzinfo=None))
        db.add(db_session)
        await db.commit()
        await db.refresh(db_session)
        return db_session

    except SQLAlchemyError as e:
        logger.error(f"Database error creating session for user {user_id}: {str(e)}", exc_info=True)
        await db.rollback()
        raise


async def get_session_by_id(db: AsyncSession, session_id: str) -> Optional[AuthSession]:
    result = await db.execute(select(AuthSession).where(AuthSession.id == session_id))
    return result.scalar_one_or_none()


async def delete_session(db: AsyncSession, session_id: str) -> bool:
    try:
        result = await db.execute(delete(AuthSession).where(AuthSession.id == session_id))
        await db.commit()
        return result.rowcount > 0

    except SQLAlchemyError as e:
        logger.error(f"Database error deleting session {session_id}: {str(e)}", exc_info=True)
        await db.rollback()
        raise
