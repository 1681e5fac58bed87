"""Password hashing (bcrypt) and bearer tokens (JWT) for back-office users."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from jose import JWTError, jwt

from permit_office.core.config import settings


def hash_password(plain_password: str) -> str:
    return bcrypt.hashpw(plain_password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def token_claims(user_id: int, role: str, issued_at: Optional[datetime] = None) -> Dict[str, Any]:
    """Claims carried by an access token. The role is informational; requests re-read it from the database."""
    issued_at = issued_at or datetime.now(timezone.utc)
    return {
        "sub": str(user_id),
        "user_id": str(user_id),
        "role": role,
        "iat": int(issued_at.timestamp()),
    }


def create_access_token(*, subject: Dict[str, Any], expires_minutes: Optional[int] = None) -> str:
    if expires_minutes is None:
        expires_minutes = settings.access_token_expire_minutes
    claims = dict(subject)
    claims["exp"] = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_user_id(token: str) -> Optional[int]:
    """User id from a valid, unexpired token; None for anything else."""
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    raw = payload.get("user_id") or payload.get("sub")
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None
