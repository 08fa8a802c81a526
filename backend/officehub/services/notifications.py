"""
Notification engine: addressing, fan-out, threaded replies and per-recipient
read/acknowledge state.

A send persists one ``Notification`` plus one ``NotificationRecipient`` per
resolved user and stages a ``notification`` push for each of them. Pushes are
published by the caller after commit and are best effort only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from officehub.core import rbac
from officehub.core.errors import ForbiddenError, NotFoundError, ValidationError
from officehub.core.observability import notifications_sent_total
from officehub.db.base import utcnow
from officehub.models.enums import NotificationType, Role
from officehub.models.notification import Notification, NotificationRecipient
from officehub.models.user import User
from officehub.realtime.events import queue_event

TOPIC_NOTIFICATION = "notification"
TOPIC_NOTIFICATION_SENT = "notification_sent"
TOPIC_NOTIFICATION_ACKNOWLEDGED = "notification_acknowledged"


@dataclass
class SendResult:
    notification: Notification
    recipient_ids: List[int]
    requested: int

    @property
    def count(self) -> int:
        return len(self.recipient_ids)


def notification_payload(notification: Notification) -> dict:
    return {
        "id": notification.id,
        "title": notification.title,
        "message": notification.message,
        "type": notification.type,
        "sender_id": notification.sender_id,
        "sender_name": notification.sender.full_name if notification.sender else None,
        "parent_id": notification.parent_id,
        "thread_id": notification.thread_id,
        "link": notification.link,
        "attachments": notification.attachments or [],
        "created_at": notification.created_at,
    }


def _require_content(title: Optional[str], message: Optional[str]) -> tuple[str, str]:
    clean_title = (title or "").strip()
    clean_message = (message or "").strip()
    if not clean_title:
        raise ValidationError("Title is required")
    if not clean_message:
        raise ValidationError("Message is required")
    return clean_title, clean_message


def _active_user_ids(db: Session, *, role: Optional[Role] = None, user_ids: Optional[Iterable[int]] = None) -> List[int]:
    query = db.query(User.id).filter(User.is_active.is_(True))
    if role is not None:
        query = query.filter(User.role == role)
    if user_ids is not None:
        query = query.filter(User.id.in_(list(user_ids)))
    return [user_id for (user_id,) in query.order_by(User.id).all()]


def create_notification(
    db: Session,
    *,
    recipient_ids: Sequence[int],
    title: str,
    message: str,
    notif_type: NotificationType = NotificationType.INFO,
    sender_id: Optional[int] = None,
    link: Optional[str] = None,
    attachments: Optional[list] = None,
    parent: Optional[Notification] = None,
) -> Notification:
    """Persist a notification with one recipient row per unique user id and stage its push."""
    unique_ids = list(dict.fromkeys(recipient_ids))
    notification = Notification(
        sender_id=sender_id,
        parent_id=parent.id if parent else None,
        thread_id=parent.root_id if parent else None,
        title=title,
        message=message,
        type=notif_type,
        link=link,
        attachments=attachments or None,
    )
    notification.recipients = [NotificationRecipient(user_id=user_id) for user_id in unique_ids]
    db.add(notification)
    db.flush()
    db.refresh(notification)

    queue_event(db, TOPIC_NOTIFICATION, notification_payload(notification), unique_ids)
    return notification


def send_notification(
    db: Session,
    *,
    sender: User,
    title: Optional[str],
    message: Optional[str],
    notif_type: NotificationType = NotificationType.INFO,
    link: Optional[str] = None,
    attachments: Optional[list] = None,
    send_to_all: bool = False,
    role: Optional[Role] = None,
    user_ids: Optional[Sequence[int]] = None,
) -> SendResult:
    clean_title, clean_message = _require_content(title, message)

    chosen = sum([bool(send_to_all), role is not None, bool(user_ids)])
    if chosen == 0:
        raise ValidationError("Please specify user_ids, role, or set send_to_all to true")
    if chosen > 1:
        raise ValidationError("Specify exactly one of user_ids, role or send_to_all")

    rbac.require(sender, "notifications", rbac.SEND)
    if send_to_all:
        if not rbac.can(sender, "notifications", rbac.SEND_ALL):
            raise ForbiddenError("Only administrators can send notifications to all users")
        mode = "all"
        recipients = _active_user_ids(db)
        requested = len(recipients)
    elif role is not None:
        if not rbac.can(sender, "notifications", rbac.SEND_ROLE):
            raise ForbiddenError(
                "Only administrators, department heads, and staff can send notifications by role"
            )
        if not rbac.can_address_role(sender, role):
            raise ForbiddenError("You can only send notifications to Admin, DepartmentHead, and Staff roles")
        mode = "role"
        recipients = _active_user_ids(db, role=role)
        requested = len(recipients)
    else:
        mode = "users"
        wanted = list(dict.fromkeys(int(uid) for uid in user_ids or [] if int(uid) > 0))
        requested = len(wanted)
        recipients = _active_user_ids(db, user_ids=wanted)

    if not recipients:
        raise ValidationError("No valid active users found for the requested recipients")

    notification = create_notification(
        db,
        recipient_ids=recipients,
        title=clean_title,
        message=clean_message,
        notif_type=notif_type,
        sender_id=sender.id,
        link=link,
        attachments=attachments,
    )
    notifications_sent_total.labels(mode).inc()
    queue_event(
        db,
        TOPIC_NOTIFICATION_SENT,
        {**notification_payload(notification), "count": len(recipients)},
        [sender.id],
    )
    return SendResult(notification=notification, recipient_ids=recipients, requested=requested)


def notify_users(
    db: Session,
    *,
    user_ids: Iterable[int],
    title: str,
    message: str,
    notif_type: NotificationType = NotificationType.INFO,
    sender_id: Optional[int] = None,
    link: Optional[str] = None,
) -> Optional[Notification]:
    """System-originated notification to specific active users; no-op when none remain."""
    recipients = _active_user_ids(db, user_ids=set(uid for uid in user_ids if uid))
    if not recipients:
        return None
    return create_notification(
        db,
        recipient_ids=recipients,
        title=title,
        message=message,
        notif_type=notif_type,
        sender_id=sender_id,
        link=link,
    )


def notify_roles(
    db: Session,
    *,
    roles: Iterable[Role],
    title: str,
    message: str,
    notif_type: NotificationType = NotificationType.INFO,
    sender_id: Optional[int] = None,
    link: Optional[str] = None,
    exclude_user_ids: Optional[Iterable[int]] = None,
) -> Optional[Notification]:
    exclude_set = set(exclude_user_ids or [])
    rows = (
        db.query(User.id)
        .filter(User.has_any_role(roles), User.is_active.is_(True))
        .order_by(User.id)
        .all()
    )
    recipients = [uid for (uid,) in rows if uid not in exclude_set]
    if not recipients:
        return None
    return create_notification(
        db,
        recipient_ids=recipients,
        title=title,
        message=message,
        notif_type=notif_type,
        sender_id=sender_id,
        link=link,
    )


def get_notification(db: Session, notification_id: int) -> Notification:
    notification = db.get(Notification, notification_id)
    if notification is None:
        raise NotFoundError("Notification not found")
    return notification


def thread_root(db: Session, notification: Notification) -> Notification:
    if notification.thread_id is None:
        return notification
    return get_notification(db, notification.thread_id)


def thread_participants(db: Session, root: Notification) -> set[int]:
    """Everyone who sent or received any message in the thread rooted at ``root``."""
    ids = [root.id] + [
        reply_id
        for (reply_id,) in db.query(Notification.id).filter(Notification.thread_id == root.id).all()
    ]
    senders = (
        db.query(Notification.sender_id)
        .filter(Notification.id.in_(ids), Notification.sender_id.is_not(None))
        .all()
    )
    receivers = (
        db.query(NotificationRecipient.user_id)
        .filter(NotificationRecipient.notification_id.in_(ids))
        .all()
    )
    return {uid for (uid,) in senders} | {uid for (uid,) in receivers}


def reply(
    db: Session,
    *,
    parent_id: int,
    sender: User,
    message: Optional[str],
    title: Optional[str] = None,
    notif_type: NotificationType = NotificationType.INFO,
    attachments: Optional[list] = None,
) -> Notification:
    parent = get_notification(db, parent_id)
    root = thread_root(db, parent)
    participants = thread_participants(db, root)
    if sender.id not in participants:
        raise ForbiddenError("You are not a participant in this conversation")

    clean_message = (message or "").strip()
    if not clean_message:
        raise ValidationError("Message is required")

    recipients = sorted(participants - {sender.id})
    if not recipients:
        raise ValidationError("Cannot reply to your own message")

    return create_notification(
        db,
        recipient_ids=recipients,
        title=(title or "").strip() or f"Re: {root.title}",
        message=clean_message,
        notif_type=notif_type,
        sender_id=sender.id,
        attachments=attachments,
        parent=parent,
    )


def _recipient_row(db: Session, *, notification_id: int, user: User) -> NotificationRecipient:
    get_notification(db, notification_id)
    row = (
        db.query(NotificationRecipient)
        .filter(
            NotificationRecipient.notification_id == notification_id,
            NotificationRecipient.user_id == user.id,
        )
        .first()
    )
    if row is None:
        raise NotFoundError("Notification not found")
    return row


def mark_read(db: Session, *, notification_id: int, user: User) -> NotificationRecipient:
    row = _recipient_row(db, notification_id=notification_id, user=user)
    if not row.is_read:
        row.is_read = True
        row.read_at = utcnow()
        db.add(row)
        db.flush()
    return row


def mark_all_read(db: Session, *, user: User) -> int:
    rows = (
        db.query(NotificationRecipient)
        .filter(NotificationRecipient.user_id == user.id, NotificationRecipient.is_read.is_(False))
        .all()
    )
    now = utcnow()
    for row in rows:
        row.is_read = True
        row.read_at = now
        db.add(row)
    db.flush()
    return len(rows)


def acknowledge(db: Session, *, notification_id: int, user: User) -> NotificationRecipient:
    """First acknowledgement wins; later calls return the original timestamp untouched."""
    row = _recipient_row(db, notification_id=notification_id, user=user)
    if row.is_acknowledged:
        return row

    now = utcnow()
    row.is_acknowledged = True
    row.acknowledged_at = now
    if not row.is_read:
        row.is_read = True
        row.read_at = now
    db.add(row)
    db.flush()

    notification = row.notification
    if notification.sender_id and notification.sender_id != user.id:
        queue_event(
            db,
            TOPIC_NOTIFICATION_ACKNOWLEDGED,
            {
                "notification_id": notification.id,
                "acknowledged_by": user.id,
                "acknowledged_by_name": user.full_name,
                "acknowledged_at": row.acknowledged_at,
            },
            [notification.sender_id],
        )
    return row


def get_thread(db: Session, *, notification_id: int, user: User) -> tuple[Notification, List[Notification]]:
    notification = get_notification(db, notification_id)
    root = thread_root(db, notification)
    if user.id not in thread_participants(db, root):
        raise ForbiddenError("You do not have access to this conversation")
    replies = (
        db.query(Notification)
        .filter(Notification.thread_id == root.id)
        .order_by(Notification.created_at.asc(), Notification.id.asc())
        .all()
    )
    return root, replies


def reply_counts(db: Session, root_ids: Iterable[int]) -> dict[int, int]:
    ids = list(root_ids)
    if not ids:
        return {}
    rows = (
        db.query(Notification.thread_id, func.count(Notification.id))
        .filter(Notification.thread_id.in_(ids))
        .group_by(Notification.thread_id)
        .all()
    )
    return {thread_id: count for thread_id, count in rows}


def list_inbox(
    db: Session,
    *,
    user: User,
    unread_only: bool = False,
    limit: int = 50,
    offset: int = 0,
) -> List[tuple[Notification, NotificationRecipient]]:
    """Every notification addressed to ``user``, replies included, newest first.

    Replies carry ``parent_id``/``thread_id`` so a client can fold them under their root.
    """
    query = (
        db.query(Notification, NotificationRecipient)
        .join(NotificationRecipient, NotificationRecipient.notification_id == Notification.id)
        .filter(NotificationRecipient.user_id == user.id)
    )
    if unread_only:
        query = query.filter(NotificationRecipient.is_read.is_(False))
    rows = (
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )
    return [(notification, row) for notification, row in rows]


def unread_count(db: Session, *, user: User) -> int:
    return (
        db.query(NotificationRecipient)
        .filter(NotificationRecipient.user_id == user.id, NotificationRecipient.is_read.is_(False))
        .count()
    )


def addressable_users(
    db: Session,
    *,
    user: User,
    role: Optional[Role] = None,
    search: Optional[str] = None,
) -> List[User]:
    query = db.query(User).filter(User.is_active.is_(True), User.id != user.id)
    if role is not None:
        query = query.filter(User.role == role)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(User.full_name.ilike(pattern) | User.email.ilike(pattern))
    return query.order_by(User.full_name.asc()).all()


def active_roles(db: Session) -> List[str]:
    rows = db.query(User.role).filter(User.is_active.is_(True)).distinct().all()
    return sorted(role.value if isinstance(role, Role) else str(role) for (role,) in rows)
