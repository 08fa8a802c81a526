from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from officehub.models.enums import NotificationType, Role
from officehub.schemas.base import ORMModel


class AttachmentDescriptor(ORMModel):
    filename: str
    size: Optional[int] = None
    path: str


class NotificationSend(ORMModel):
    title: str = Field(..., max_length=255)
    message: str
    type: NotificationType = NotificationType.INFO
    link: Optional[str] = Field(default=None, max_length=500)
    attachments: List[AttachmentDescriptor] = Field(default_factory=list)
    send_to_all: bool = False
    role: Optional[Role] = None
    user_ids: Optional[List[int]] = None


class NotificationReply(ORMModel):
    message: str
    title: Optional[str] = Field(default=None, max_length=255)
    type: NotificationType = NotificationType.INFO
    attachments: List[AttachmentDescriptor] = Field(default_factory=list)


class NotificationRead(ORMModel):
    id: int
    title: str
    message: str
    type: NotificationType
    sender_id: Optional[int] = None
    sender_name: Optional[str] = None
    parent_id: Optional[int] = None
    thread_id: Optional[int] = None
    link: Optional[str] = None
    attachments: List[AttachmentDescriptor] = Field(default_factory=list)
    created_at: datetime
    is_read: bool = False
    read_at: Optional[datetime] = None
    is_acknowledged: bool = False
    acknowledged_at: Optional[datetime] = None
    reply_count: int = 0


class NotificationSendResponse(ORMModel):
    message: str
    notification: NotificationRead
    count: int
    requested: int
    valid: int


class NotificationThread(ORMModel):
    root: NotificationRead
    replies: List[NotificationRead]


class UnreadCountResponse(ORMModel):
    count: int


class ReadAllResponse(ORMModel):
    updated: int


class RecipientStateRead(ORMModel):
    notification_id: int
    user_id: int
    is_read: bool
    read_at: Optional[datetime] = None
    is_acknowledged: bool
    acknowledged_at: Optional[datetime] = None


class AddressableUser(ORMModel):
    id: int
    full_name: str
    email: str
    role: Role
