from __future__ import annotations

import re
import secrets
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from officehub.core import rbac
from officehub.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from officehub.core.security import get_password_hash
from officehub.core.settings import settings
from officehub.models.client import Client, Consultation
from officehub.models.enums import Role
from officehub.models.user import User
from officehub.realtime.events import queue_event
from officehub.services.activity import log_activity
from officehub.services.codes import client_code, unique_code

TOPIC_CLIENT_CREATED = "client_created"


@dataclass
class ClientLookup:
    client: Client
    created: bool


def client_payload(client: Client) -> dict:
    return {
        "id": client.id,
        "client_id": client.client_id,
        "name": client.name,
        "company_name": client.company_name,
        "email": client.email,
        "category": client.category,
        "progress_status": client.progress_status,
        "status": client.status,
        "created_at": client.created_at,
    }


def _placeholder_email(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", ".", name.lower()).strip(".") or "client"
    return f"{slug[:40]}.{secrets.token_hex(3)}@clients.officehub.local"


def _ensure_email_free(db: Session, email: str) -> None:
    if db.query(User.id).filter(User.email == email).first():
        raise ConflictError("A user with this email already exists")


def _provision(
    db: Session,
    *,
    actor: Optional[User],
    name: str,
    email: Optional[str] = None,
    company_name: Optional[str] = None,
    **fields,
) -> Client:
    login_email = (email or "").strip().lower() or _placeholder_email(name)
    _ensure_email_free(db, login_email)
    user = User(
        email=login_email,
        hashed_password=get_password_hash(settings.default_client_password),
        full_name=name,
        phone=fields.get("phone"),
        role=Role.CLIENT,
        is_active=True,
    )
    db.add(user)
    db.flush()

    client = Client(
        client_id=unique_code(db, Client.client_id, client_code),
        user_id=user.id,
        name=name,
        company_name=company_name,
        email=email,
        created_by=actor.id if actor else None,
        **fields,
    )
    db.add(client)
    db.flush()

    log_activity(
        db,
        actor_user_id=actor.id if actor else None,
        activity_type="CLIENT_CREATED",
        entity_type=Client.__tablename__,
        entity_id=client.id,
        message=f"Client {client.client_id} created for {name}",
    )
    queue_event(db, TOPIC_CLIENT_CREATED, client_payload(client))
    return client


def find_client_by_name(db: Session, name: str) -> Optional[Client]:
    """Exact, case-sensitive match on company name or contact name."""
    return (
        db.query(Client)
        .filter((Client.company_name == name) | (Client.name == name))
        .order_by(Client.id.asc())
        .first()
    )


def find_or_create_client_by_name(
    db: Session,
    *,
    name: str,
    actor: Optional[User] = None,
    category: Optional[str] = None,
) -> ClientLookup:
    """
    Return the client whose company or contact name equals ``name`` exactly,
    provisioning a Client user and record when none exists.

    Matching is case-sensitive and whitespace-trimmed only; "Acme" and "acme"
    are different clients. Calling twice with the same name yields the same row.
    """
    clean = (name or "").strip()
    if not clean:
        raise ValidationError("Client name is required")
    existing = find_client_by_name(db, clean)
    if existing is not None:
        return ClientLookup(client=existing, created=False)
    client = _provision(db, actor=actor, name=clean, company_name=clean, category=category)
    return ClientLookup(client=client, created=True)


def _client_scope(query, user: User):
    if user.role == Role.CLIENT:
        return query.filter(Client.user_id == user.id)
    return query


def list_clients(
    db: Session,
    *,
    user: User,
    status=None,
    service_type: Optional[str] = None,
    category: Optional[str] = None,
    progress_status: Optional[str] = None,
    created_from: Optional[date] = None,
    created_to: Optional[date] = None,
    search: Optional[str] = None,
) -> List[Client]:
    rbac.require(user, "clients", rbac.READ)
    query = _client_scope(db.query(Client), user)
    if status is not None:
        query = query.filter(Client.status == status)
    if service_type:
        query = query.filter(Client.service_type == service_type)
    if category:
        query = query.filter(Client.category == category)
    if progress_status:
        query = query.filter(Client.progress_status == progress_status)
    if created_from:
        query = query.filter(Client.created_at >= datetime.combine(created_from, time.min, tzinfo=timezone.utc))
    if created_to:
        query = query.filter(Client.created_at <= datetime.combine(created_to, time.max, tzinfo=timezone.utc))
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            Client.name.ilike(pattern)
            | Client.company_name.ilike(pattern)
            | Client.email.ilike(pattern)
            | Client.client_id.ilike(pattern)
        )
    return query.order_by(Client.created_at.desc(), Client.id.desc()).all()


def get_client(db: Session, *, client_pk: int, user: User) -> Client:
    rbac.require(user, "clients", rbac.READ)
    client = db.get(Client, client_pk)
    if client is None:
        raise NotFoundError("Client not found")
    if user.role == Role.CLIENT and client.user_id != user.id:
        raise ForbiddenError("You can only view your own client record")
    return client


def create_client(db: Session, *, actor: User, data: dict) -> Client:
    rbac.require(actor, "clients", rbac.CREATE)
    name = (data.pop("name", None) or "").strip()
    if not name:
        raise ValidationError("Client name is required")
    return _provision(db, actor=actor, name=name, **data)


def update_client(db: Session, client: Client, *, actor: User, changes: dict) -> Client:
    rbac.require(actor, "clients", rbac.UPDATE)
    for field, value in changes.items():
        setattr(client, field, value)
    if client.user_id and "name" in changes:
        user = db.get(User, client.user_id)
        if user is not None:
            user.full_name = client.name
            db.add(user)
    db.add(client)
    db.flush()
    return client


def delete_client(db: Session, client: Client, *, actor: User) -> None:
    rbac.require(actor, "clients", rbac.DELETE)
    user = db.get(User, client.user_id) if client.user_id else None
    log_activity(
        db,
        actor_user_id=actor.id,
        activity_type="CLIENT_DELETED",
        entity_type=Client.__tablename__,
        entity_id=client.id,
        message=f"Client {client.client_id} deleted",
    )
    db.delete(client)
    if user is not None:
        db.delete(user)
    db.flush()


def list_consultations(db: Session, client: Client) -> List[Consultation]:
    return (
        db.query(Consultation)
        .filter(Consultation.client_id == client.id)
        .order_by(Consultation.consultation_date.desc(), Consultation.id.desc())
        .all()
    )


def add_consultation(db: Session, client: Client, *, actor: User, data: dict) -> Consultation:
    rbac.require(actor, "clients", rbac.UPDATE)
    consultation = Consultation(client_id=client.id, consultant_id=actor.id, **data)
    db.add(consultation)
    db.flush()
    return consultation
