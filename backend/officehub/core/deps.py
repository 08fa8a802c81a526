from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Query, Request, Security, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from officehub.core.security import token_subject
from officehub.db.session import get_db
from officehub.models.user import User
from officehub.realtime.broadcaster import Broadcaster

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)
logger = logging.getLogger("security")


def log_auth_event(event: str, *, request: Request, **fields) -> None:
    """Structured ``security`` log line for authentication outcomes."""
    logger.info(
        event,
        extra={
            "event": event,
            "request_id": getattr(request.state, "request_id", None) or request.headers.get("x-request-id"),
            "path": request.url.path,
            "method": request.method,
            "client": request.client.host if request.client else None,
            **fields,
        },
    )


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def resolve_user_from_token(db: Session, token: str) -> Optional[User]:
    """Return the active user a token belongs to, or None."""
    user_id = token_subject(token)
    if user_id is None:
        return None
    user = db.get(User, user_id)
    if not user or not user.is_active:
        return None
    return user


def get_current_user(
    request: Request,
    token: str = Security(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    user = resolve_user_from_token(db, token)
    if user is None:
        log_auth_event("token_invalid_or_user_inactive", request=request)
        raise _credentials_exception()
    return user


def get_current_user_header_or_query(
    request: Request,
    header_token: Optional[str] = Security(optional_oauth2_scheme),
    token: Optional[str] = Query(None, description="Bearer token for same-tab file links"),
    db: Session = Depends(get_db),
) -> User:
    raw = header_token or token
    if not raw:
        log_auth_event("token_missing", request=request)
        raise _credentials_exception()
    user = resolve_user_from_token(db, raw)
    if user is None:
        log_auth_event("token_invalid_or_user_inactive", request=request)
        raise _credentials_exception()
    return user


def get_broadcaster(request: Request) -> Broadcaster:
    return request.app.state.broadcaster
