from __future__ import annotations

from typing import List, Optional

from sqlalchemy.orm import Session

from officehub.core import rbac
from officehub.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from officehub.core.security import get_password_hash
from officehub.core.settings import settings
from officehub.models.enums import Role, TargetStatus
from officehub.models.finance import Asset, PettyCashLedger
from officehub.models.progress import Target
from officehub.models.user import User
from officehub.services.activity import log_activity

MIN_PASSWORD_LENGTH = 6


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def ensure_email_available(db: Session, email: str, *, exclude_user_id: Optional[int] = None) -> None:
    query = db.query(User.id).filter(User.email == email)
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    if query.first():
        raise ConflictError("A user with this email already exists")


def validate_password(password: str) -> str:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    return password


def list_users(
    db: Session,
    *,
    actor: User,
    role: Optional[Role] = None,
    department_id: Optional[int] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
) -> List[User]:
    rbac.require(actor, "users", rbac.READ)
    query = db.query(User)
    if actor.role == Role.DEPARTMENT_HEAD:
        query = query.filter(User.department_id == actor.department_id)
    if role is not None:
        query = query.filter(User.role == role)
    if department_id is not None:
        query = query.filter(User.department_id == department_id)
    if is_active is not None:
        query = query.filter(User.is_active.is_(is_active))
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(User.full_name.ilike(pattern) | User.email.ilike(pattern))
    return query.order_by(User.full_name.asc(), User.id.asc()).all()


def create_user(
    db: Session,
    *,
    actor: Optional[User],
    email: str,
    full_name: str,
    role: Role,
    password: Optional[str] = None,
    phone: Optional[str] = None,
    department_id: Optional[int] = None,
    is_active: bool = True,
) -> User:
    """Create a login. ``actor=None`` is reserved for internal provisioning and seeding."""
    if actor is not None:
        rbac.require(actor, "users", rbac.CREATE)
    email = normalize_email(email)
    ensure_email_available(db, email)
    user = User(
        email=email,
        hashed_password=get_password_hash(validate_password(password) if password else settings.default_user_password),
        full_name=full_name,
        phone=phone,
        role=role,
        department_id=department_id,
        is_active=is_active,
    )
    db.add(user)
    db.flush()
    log_activity(
        db,
        actor_user_id=actor.id if actor else None,
        activity_type="USER_CREATED",
        entity_type=User.__tablename__,
        entity_id=user.id,
        message=f"User {user.email} created with role {user.role.value}",
    )
    return user


def _active_admin_count(db: Session) -> int:
    return db.query(User).filter(User.role == Role.ADMIN, User.is_active.is_(True)).count()


def _is_last_active_admin(db: Session, user: User) -> bool:
    return user.role == Role.ADMIN and user.is_active and _active_admin_count(db) <= 1


def update_user(db: Session, user: User, *, actor: User, changes: dict) -> User:
    rbac.require(actor, "users", rbac.UPDATE)
    if "email" in changes and changes["email"] is not None:
        changes["email"] = normalize_email(changes["email"])
        ensure_email_available(db, changes["email"], exclude_user_id=user.id)

    demoting = "role" in changes and changes["role"] is not None and changes["role"] != Role.ADMIN
    deactivating = changes.get("is_active") is False
    if (demoting or deactivating) and _is_last_active_admin(db, user):
        raise ConflictError("Cannot demote or deactivate the last active administrator")

    password = changes.pop("password", None)
    if password:
        user.hashed_password = get_password_hash(validate_password(password))
    for field, value in changes.items():
        if value is None and field in ("email", "full_name", "role", "is_active"):
            continue
        setattr(user, field, value)
    db.add(user)
    db.flush()
    return user


def reset_password(db: Session, user: User, *, actor: User, new_password: str) -> User:
    rbac.require_roles(actor, [Role.ADMIN])
    user.hashed_password = get_password_hash(validate_password(new_password))
    db.add(user)
    db.flush()
    log_activity(
        db,
        actor_user_id=actor.id,
        activity_type="USER_PASSWORD_RESET",
        entity_type=User.__tablename__,
        entity_id=user.id,
        message=f"Password reset for {user.email}",
    )
    return user


def delete_user(db: Session, user: User, *, actor: User) -> None:
    rbac.require(actor, "users", rbac.DELETE)
    if user.id == actor.id:
        raise ForbiddenError("You cannot delete your own account")
    if _is_last_active_admin(db, user):
        raise ConflictError("Cannot delete the last active administrator")
    active_targets = (
        db.query(Target.id).filter(Target.user_id == user.id, Target.status == TargetStatus.ACTIVE).count()
    )
    if active_targets:
        raise ConflictError(
            "Cannot delete a user with active targets",
            details="Complete or cancel the user's targets first",
        )
    owns_financial_records = (
        db.query(PettyCashLedger.id).filter(PettyCashLedger.created_by == user.id).first()
        or db.query(Asset.id).filter(Asset.created_by == user.id).first()
    )
    if owns_financial_records:
        raise ConflictError(
            "Cannot delete a user who created financial records",
            details="Deactivate the account instead",
        )

    log_activity(
        db,
        actor_user_id=actor.id,
        activity_type="USER_DELETED",
        entity_type=User.__tablename__,
        entity_id=user.id,
        message=f"User {user.email} deleted",
    )
    db.delete(user)
    db.flush()
