import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_tracker.core.exceptions import AuthenticationError, SignUpError
from attendance_tracker.dependencies import get_current_session, get_db
from attendance_tracker.schemas.auth_schemas import (
    Credentials,
    MessageResponse,
    SessionResponse,
    SignUpResponse,
    UserResponse,
)
from attendance_tracker.services.identity import Session, identity_provider

# Setup logger
logger = logging.getLogger(__name__)

auth_router = APIRouter(prefix="/auth", tags=["auth"])


def to_session_response(session: Session) -> SessionResponse:
    return SessionResponse(
        access_token=session.access_token,
        session_id=session.session_id,
        user_id=session.user_id,
        email=session.email,
        expires_at=session.expires_at,
    )


@auth_router.post("/sign-up", response_model=SignUpResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(
        credentials: Credentials,
        db: AsyncSession = Depends(get_db)
):
    """
    Register an administrator account.

    - **email**: Account email
    - **password**: At least 6 characters
    """
    try:
        user = await identity_provider.sign_up(db, credentials.email, credentials.password)
        return SignUpResponse(
            message="Account created successfully! You can now login.",
            user=UserResponse.model_validate(user),
        )

    except SignUpError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except IntegrityError as e:
        logger.error(f"Database integrity error during sign-up: {str(e)}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already registered")
    except SQLAlchemyError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@auth_router.post("/sign-in", response_model=SessionResponse)
async def sign_in(
        credentials: Credentials,
        db: AsyncSession = Depends(get_db)
):
    try:
        session = await identity_provider.sign_in(db, credentials.email, credentials.password)
        return to_session_response(session)

    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    except SQLAlchemyError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@auth_router.post("/sign-out", response_model=MessageResponse)
async def sign_out(
        session: Session = Depends(get_current_session),
        db: AsyncSession = Depends(get_db)
):
    try:
        await identity_provider.sign_out(db, session)
        return MessageResponse(success=True, message="Signed out")
    except SQLAlchemyError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@auth_router.get("/session", response_model=SessionResponse)
async def current_session(session: Session = Depends(get_current_session)):
    return to_session_response(session)


@auth_router.get("/user", response_model=UserResponse)
async def current_user(
        session: Session = Depends(get_current_session),
        db: AsyncSession = Depends(get_db)
):
    user = await identity_provider.get_user(db, session.access_token)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserResponse.model_validate(user)
