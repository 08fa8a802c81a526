from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from officehub.core import rbac
from officehub.core.deps import get_broadcaster, get_current_user
from officehub.db.session import get_db
from officehub.models.enums import Role
from officehub.models.notification import Notification, NotificationRecipient
from officehub.models.user import User
from officehub.realtime.broadcaster import Broadcaster
from officehub.realtime.events import publish_pending
from officehub.schemas.notification import (
    AddressableUser,
    NotificationRead,
    NotificationReply,
    NotificationSend,
    NotificationSendResponse,
    NotificationThread,
    ReadAllResponse,
    RecipientStateRead,
    UnreadCountResponse,
)
from officehub.services import notifications as notification_service

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


def _serialize(
    notification: Notification,
    row: Optional[NotificationRecipient] = None,
    reply_count: int = 0,
) -> NotificationRead:
    payload = notification_service.notification_payload(notification)
    if row is not None:
        payload.update(
            is_read=row.is_read,
            read_at=row.read_at,
            is_acknowledged=row.is_acknowledged,
            acknowledged_at=row.acknowledged_at,
        )
    payload["reply_count"] = reply_count
    return NotificationRead.model_validate(payload)


def _recipient_rows(db: Session, notifications: List[Notification], user: User) -> dict[int, NotificationRecipient]:
    ids = [item.id for item in notifications]
    if not ids:
        return {}
    rows = (
        db.query(NotificationRecipient)
        .filter(NotificationRecipient.notification_id.in_(ids), NotificationRecipient.user_id == user.id)
        .all()
    )
    return {row.notification_id: row for row in rows}


@router.post("/send", response_model=NotificationSendResponse, status_code=status.HTTP_201_CREATED)
def send_notification(
    payload: NotificationSend,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    broadcaster: Broadcaster = Depends(get_broadcaster),
) -> NotificationSendResponse:
    result = notification_service.send_notification(
        db,
        sender=current_user,
        title=payload.title,
        message=payload.message,
        notif_type=payload.type,
        link=payload.link,
        attachments=[item.model_dump() for item in payload.attachments],
        send_to_all=payload.send_to_all,
        role=payload.role,
        user_ids=payload.user_ids,
    )
    db.commit()
    publish_pending(db, broadcaster)
    return NotificationSendResponse(
        message=f"Notification sent to {result.count} user(s)",
        notification=_serialize(result.notification),
        count=result.count,
        requested=result.requested,
        valid=result.count,
    )


@router.get("", response_model=List[NotificationRead])
def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[NotificationRead]:
    rbac.require(current_user, "notifications", rbac.READ)
    rows = notification_service.list_inbox(
        db,
        user=current_user,
        unread_only=unread_only,
        limit=limit,
        offset=offset,
    )
    counts = notification_service.reply_counts(db, [notification.id for notification, _ in rows])
    return [_serialize(notification, row, counts.get(notification.id, 0)) for notification, row in rows]


@router.get("/unread-count", response_model=UnreadCountResponse)
def unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UnreadCountResponse:
    return UnreadCountResponse(count=notification_service.unread_count(db, user=current_user))


@router.get("/users", response_model=List[AddressableUser])
def addressable_users(
    role: Optional[Role] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[AddressableUser]:
    rbac.require(current_user, "notifications", rbac.SEND)
    users = notification_service.addressable_users(db, user=current_user, role=role, search=search)
    return [AddressableUser.model_validate(user) for user in users]


@router.get("/roles", response_model=List[str])
def addressable_roles(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[str]:
    roles = notification_service.active_roles(db)
    return [name for name in roles if rbac.can_address_role(current_user, Role(name))]


@router.put("/read-all", response_model=ReadAllResponse)
def mark_all_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ReadAllResponse:
    updated = notification_service.mark_all_read(db, user=current_user)
    db.commit()
    return ReadAllResponse(updated=updated)


@router.put("/{notification_id}/read", response_model=RecipientStateRead)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RecipientStateRead:
    row = notification_service.mark_read(db, notification_id=notification_id, user=current_user)
    db.commit()
    return RecipientStateRead.model_validate(row)


@router.put("/{notification_id}/acknowledge", response_model=RecipientStateRead)
def acknowledge(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    broadcaster: Broadcaster = Depends(get_broadcaster),
) -> RecipientStateRead:
    row = notification_service.acknowledge(db, notification_id=notification_id, user=current_user)
    db.commit()
    publish_pending(db, broadcaster)
    return RecipientStateRead.model_validate(row)


@router.post("/{notification_id}/reply", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
def reply(
    notification_id: int,
    payload: NotificationReply,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    broadcaster: Broadcaster = Depends(get_broadcaster),
) -> NotificationRead:
    notification = notification_service.reply(
        db,
        parent_id=notification_id,
        sender=current_user,
        message=payload.message,
        title=payload.title,
        notif_type=payload.type,
        attachments=[item.model_dump() for item in payload.attachments],
    )
    db.commit()
    publish_pending(db, broadcaster)
    return _serialize(notification)


@router.get("/{notification_id}/thread", response_model=NotificationThread)
def get_thread(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> NotificationThread:
    root, replies = notification_service.get_thread(db, notification_id=notification_id, user=current_user)
    rows = _recipient_rows(db, [root, *replies], current_user)
    return NotificationThread(
        root=_serialize(root, rows.get(root.id), len(replies)),
        replies=[_serialize(item, rows.get(item.id)) for item in replies],
    )
