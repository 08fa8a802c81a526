from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from officehub.core import rbac
from officehub.core.deps import get_current_user, log_auth_event
from officehub.core.security import issue_user_token, verify_password
from officehub.db.base import utcnow
from officehub.db.session import get_db
from officehub.models.user import User
from officehub.schemas.auth import CapabilityResponse, LoginResponse
from officehub.schemas.user import UserRead
from officehub.services.activity import log_activity
from officehub.services.users import normalize_email

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _authenticate(db: Session, email: str, password: str) -> Optional[User]:
    user = db.query(User).filter(User.email == email).first()
    if user is None or not verify_password(password, user.hashed_password):
        return None
    return user


@router.post("/login", response_model=LoginResponse)
def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
) -> LoginResponse:
    """OAuth2 password form: ``username`` carries the email address."""
    email = normalize_email(form_data.username)
    user = _authenticate(db, email, form_data.password)
    if user is None:
        log_activity(
            db,
            actor_user_id=None,
            activity_type="USER_LOGIN_FAILED",
            message="Login failed",
            payload={"email": email, "ip": request.client.host if request.client else None},
        )
        db.commit()
        log_auth_event("login_failed", request=request)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Incorrect email or password")
    if not user.is_active:
        log_auth_event("login_inactive", request=request, user_id=user.id)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User is inactive")

    user.last_login_at = utcnow()
    db.add(user)
    log_activity(
        db,
        actor_user_id=user.id,
        activity_type="USER_LOGIN",
        entity_type=User.__tablename__,
        entity_id=user.id,
        message=f"{user.email} logged in",
    )
    db.commit()
    db.refresh(user)
    log_auth_event("login_succeeded", request=request, user_id=user.id)

    return LoginResponse(
        access_token=issue_user_token(user),
        user=UserRead.model_validate(user),
        capabilities=rbac.get_capabilities_for_user(user),
    )


@router.get("/me", response_model=UserRead)
def read_me(current_user: User = Depends(get_current_user)) -> UserRead:
    return UserRead.model_validate(current_user)


@router.get("/capabilities", response_model=CapabilityResponse)
def read_capabilities(current_user: User = Depends(get_current_user)) -> CapabilityResponse:
    return CapabilityResponse(
        role=current_user.role.value,
        capabilities=rbac.get_capabilities_for_user(current_user),
    )
