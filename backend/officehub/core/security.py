"""Password hashing and the bearer tokens handed out at login."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from officehub.core.settings import settings

DEFAULT_TOKEN_MINUTES = 60

password_hasher = CryptContext(schemes=["bcrypt"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return password_hasher.hash(password)


def verify_password(candidate: str, stored_hash: str) -> bool:
    # Seeded fixtures and imported rows may carry a placeholder instead of a hash.
    try:
        return password_hasher.verify(candidate, stored_hash)
    except ValueError:
        return False


def token_lifetime(override: Optional[timedelta] = None) -> timedelta:
    if override is not None:
        return override
    minutes = settings.access_token_expire_minutes
    return timedelta(minutes=minutes if minutes > 0 else DEFAULT_TOKEN_MINUTES)


def create_access_token(claims: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    issued_at = datetime.now(timezone.utc)
    body = {**claims, "exp": issued_at + token_lifetime(expires_delta)}
    body.setdefault("iat", issued_at)
    return jwt.encode(body, settings.jwt_secret, algorithm=settings.algorithm)


def issue_user_token(user) -> str:
    """Token for ``user``: subject is the user id, role travels along for the UI."""
    return create_access_token({"sub": str(user.id), "role": user.role.value})


def decode_token(token: str) -> Dict[str, Any]:
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.algorithm])


def token_subject(token: str) -> Optional[int]:
    """User id carried by ``token``; None when the token is invalid, expired or subjectless."""
    try:
        subject = decode_token(token).get("sub")
        return int(subject) if subject is not None else None
    except (JWTError, ValueError, TypeError):
        return None
