from __future__ import annotations

from typing import List, Optional

from sqlalchemy.orm import Session

from officehub.core import rbac
from officehub.core.errors import ForbiddenError, NotFoundError, ValidationError
from officehub.core.security import get_password_hash
from officehub.core.settings import settings
from officehub.models.enums import Role
from officehub.models.partner import Partner
from officehub.models.user import User
from officehub.services.activity import log_activity
from officehub.services.codes import partner_code, unique_code
from officehub.services.users import ensure_email_available, normalize_email


def _scoped_query(db: Session, user: User):
    rbac.require(user, "partners", rbac.READ)
    query = db.query(Partner)
    if user.role == Role.PARTNER:
        return query.filter(Partner.user_id == user.id)
    return query


def list_partners(
    db: Session,
    *,
    user: User,
    partner_type=None,
    status=None,
    search: Optional[str] = None,
) -> List[Partner]:
    query = _scoped_query(db, user)
    if partner_type is not None:
        query = query.filter(Partner.partner_type == partner_type)
    if status is not None:
        query = query.filter(Partner.status == status)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            Partner.name.ilike(pattern)
            | Partner.contact_person.ilike(pattern)
            | Partner.email.ilike(pattern)
            | Partner.partner_id.ilike(pattern)
        )
    return query.order_by(Partner.name.asc(), Partner.id.asc()).all()


def get_partner(db: Session, *, partner_pk: int, user: User) -> Partner:
    partner = _scoped_query(db, user).filter(Partner.id == partner_pk).first()
    if partner is None:
        if db.get(Partner, partner_pk) is not None:
            raise ForbiddenError("You can only view your own partner record")
        raise NotFoundError("Partner not found")
    return partner


def create_partner(db: Session, *, actor: User, data: dict) -> Partner:
    """Register a partner together with its Partner login (default password)."""
    rbac.require(actor, "partners", rbac.CREATE)
    name = (data.pop("name", None) or "").strip()
    if not name:
        raise ValidationError("Partner name is required")
    email = normalize_email(data.get("email") or "")
    if not email:
        raise ValidationError("Partner email is required")
    ensure_email_available(db, email)

    user = User(
        email=email,
        hashed_password=get_password_hash(settings.default_partner_password),
        full_name=data.get("contact_person") or name,
        phone=data.get("phone"),
        role=Role.PARTNER,
        is_active=True,
    )
    db.add(user)
    db.flush()

    data["email"] = email
    partner = Partner(
        partner_id=unique_code(db, Partner.partner_id, partner_code),
        user_id=user.id,
        name=name,
        **data,
    )
    db.add(partner)
    db.flush()
    log_activity(
        db,
        actor_user_id=actor.id,
        activity_type="PARTNER_CREATED",
        entity_type=Partner.__tablename__,
        entity_id=partner.id,
        message=f"Partner {partner.partner_id} created for {name}",
    )
    return partner


def update_partner(db: Session, partner: Partner, *, actor: User, changes: dict) -> Partner:
    rbac.require(actor, "partners", rbac.UPDATE)
    if changes.get("email") is not None:
        changes["email"] = normalize_email(changes["email"])
        if partner.user_id:
            ensure_email_available(db, changes["email"], exclude_user_id=partner.user_id)
    for field, value in changes.items():
        setattr(partner, field, value)
    user = db.get(User, partner.user_id) if partner.user_id else None
    if user is not None:
        if changes.get("email"):
            user.email = changes["email"]
        if changes.get("contact_person") or changes.get("name"):
            user.full_name = partner.contact_person or partner.name
        db.add(user)
    db.add(partner)
    db.flush()
    return partner


def delete_partner(db: Session, partner: Partner, *, actor: User) -> None:
    rbac.require(actor, "partners", rbac.DELETE)
    user = db.get(User, partner.user_id) if partner.user_id else None
    log_activity(
        db,
        actor_user_id=actor.id,
        activity_type="PARTNER_DELETED",
        entity_type=Partner.__tablename__,
        entity_id=partner.id,
        message=f"Partner {partner.partner_id} deleted",
    )
    db.delete(partner)
    if user is not None:
        db.delete(user)
    db.flush()
