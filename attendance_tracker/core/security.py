from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
import jwt

from attendance_tracker.config import get_settings

ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(user_id: str, session_id: str, email: str, expires_at: datetime) -> str:
    """Encode a bearer token; `jti` carries the session id so sign-out can revoke it."""
    payload = {
        "sub": user_id,
        "jti": session_id,
        "email": email,
        "iat": datetime.now(timezone.utc),
        "exp": expires_at,
    }
    return jwt.encode(payload, get_settings().secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Raises jwt.InvalidTokenError (or ExpiredSignatureError) on a bad token."""
    return jwt.decode(token, get_settings().secret_key, algorithms=[ALGORITHM])


def token_expiry() -> datetime:
    minutes = get_settings().access_token_expire_minutes
    return datetime.now(timezone.utc) + timedelta(minutes=minutes)
