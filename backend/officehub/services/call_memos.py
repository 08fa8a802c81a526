"""
Call memos: notes from client calls and visits.

Each memo is linked to a client. When the caller names a client that does not
exist yet, one is provisioned through ``find_or_create_client_by_name``.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from officehub.core import rbac
from officehub.core.errors import ForbiddenError, NotFoundError, ValidationError
from officehub.models.call_memo import CallMemo
from officehub.models.client import Client
from officehub.models.enums import Role
from officehub.models.user import User
from officehub.realtime.events import queue_event
from officehub.services.activity import log_activity
from officehub.services.clients import find_or_create_client_by_name
from officehub.services.notifications import notify_roles

TOPIC_CALL_MEMO_CREATED = "call_memo_created"

# Everyone who can read call memos hears about new ones.
MEMO_AUDIENCE = (Role.ADMIN, Role.DEPARTMENT_HEAD, Role.STAFF)


def call_memo_payload(memo: CallMemo) -> dict:
    return {
        "id": memo.id,
        "subject": memo.subject,
        "client_id": memo.client_id,
        "client_name": memo.client_name,
        "call_date": memo.call_date,
        "created_by": memo.created_by,
    }


def _resolve_client(db: Session, *, actor: User, client_id: Optional[int], client_name: str) -> Client:
    if client_id is not None:
        client = db.get(Client, client_id)
        if client is None:
            raise ValidationError("Client not found")
        return client
    return find_or_create_client_by_name(db, name=client_name, actor=actor).client


def _ensure_owner(memo: CallMemo, actor: User, verb: str) -> None:
    if actor.role != Role.ADMIN and memo.created_by != actor.id:
        raise ForbiddenError(f"You can only {verb} your own call memos")


def list_call_memos(
    db: Session,
    *,
    user: User,
    client_id: Optional[int] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    search: Optional[str] = None,
) -> List[CallMemo]:
    rbac.require(user, "call_memos", rbac.READ)
    query = db.query(CallMemo)
    if client_id is not None:
        query = query.filter(CallMemo.client_id == client_id)
    if from_date:
        query = query.filter(CallMemo.call_date >= from_date)
    if to_date:
        query = query.filter(CallMemo.call_date <= to_date)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(CallMemo.subject.ilike(pattern) | CallMemo.client_name.ilike(pattern))
    return query.order_by(CallMemo.call_date.desc(), CallMemo.created_at.desc(), CallMemo.id.desc()).all()


def get_call_memo(db: Session, *, memo_id: int, user: User) -> CallMemo:
    rbac.require(user, "call_memos", rbac.READ)
    memo = db.get(CallMemo, memo_id)
    if memo is None:
        raise NotFoundError("Call memo not found")
    return memo


def create_call_memo(db: Session, *, actor: User, data: dict) -> CallMemo:
    rbac.require(actor, "call_memos", rbac.CREATE)
    client_name = (data.get("client_name") or "").strip()
    if not client_name:
        raise ValidationError("Client name is required")
    client = _resolve_client(db, actor=actor, client_id=data.get("client_id"), client_name=client_name)

    memo = CallMemo(
        client_id=client.id,
        client_name=client_name,
        participants=data["participants"],
        subject=data["subject"].strip(),
        call_date=data["call_date"],
        discussion=data["discussion"],
        service_needed=data["service_needed"],
        service_other=data.get("service_other"),
        department_needed=data.get("department_needed"),
        next_visitation_date=data.get("next_visitation_date"),
        created_by=actor.id,
    )
    db.add(memo)
    db.flush()

    log_activity(
        db,
        actor_user_id=actor.id,
        activity_type="CALL_MEMO_CREATED",
        entity_type=CallMemo.__tablename__,
        entity_id=memo.id,
        message=f"Call memo '{memo.subject}' created",
        payload={"client_id": client.id},
    )
    notify_roles(
        db,
        roles=MEMO_AUDIENCE,
        title="New Call Memo Added",
        message=f'A new call memo "{memo.subject}" has been added to the system',
        sender_id=actor.id,
        link=f"/call-memos/{memo.id}",
        exclude_user_ids=[actor.id],
    )
    queue_event(db, TOPIC_CALL_MEMO_CREATED, call_memo_payload(memo))
    return memo


def update_call_memo(db: Session, memo: CallMemo, *, actor: User, changes: dict) -> CallMemo:
    rbac.require(actor, "call_memos", rbac.UPDATE)
    _ensure_owner(memo, actor, "update")
    if changes.get("client_name") is not None:
        changes["client_name"] = changes["client_name"].strip()
        if not changes["client_name"]:
            raise ValidationError("Client name is required")
    if changes.get("client_id") is not None or changes.get("client_name") is not None:
        client = _resolve_client(
            db,
            actor=actor,
            client_id=changes.get("client_id"),
            client_name=changes.get("client_name") or memo.client_name,
        )
        changes["client_id"] = client.id

    for field, value in changes.items():
        if value is not None or field in ("service_other", "department_needed", "next_visitation_date"):
            setattr(memo, field, value)
    db.add(memo)
    db.flush()
    return memo


def delete_call_memo(db: Session, memo: CallMemo, *, actor: User) -> None:
    rbac.require(actor, "call_memos", rbac.DELETE)
    _ensure_owner(memo, actor, "delete")
    log_activity(
        db,
        actor_user_id=actor.id,
        activity_type="CALL_MEMO_DELETED",
        entity_type=CallMemo.__tablename__,
        entity_id=memo.id,
        message=f"Call memo '{memo.subject}' deleted",
    )
    db.delete(memo)
    db.flush()
