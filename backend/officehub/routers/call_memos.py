from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from officehub.core.deps import get_broadcaster, get_current_user
from officehub.core.errors import ValidationError
from officehub.db.session import get_db
from officehub.models.user import User
from officehub.realtime.broadcaster import Broadcaster
from officehub.realtime.events import publish_pending
from officehub.schemas.base import MessageResponse
from officehub.schemas.call_memo import CallMemoCreate, CallMemoRead, CallMemoUpdate
from officehub.services import call_memos as call_memo_service

router = APIRouter(prefix="/api/call-memos", tags=["call-memos"])


@router.get("", response_model=List[CallMemoRead])
def list_call_memos(
    client_id: Optional[int] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[CallMemoRead]:
    memos = call_memo_service.list_call_memos(
        db,
        user=current_user,
        client_id=client_id,
        from_date=from_date,
        to_date=to_date,
        search=search,
    )
    return [CallMemoRead.model_validate(memo) for memo in memos]


@router.get("/{memo_id}", response_model=CallMemoRead)
def get_call_memo(
    memo_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CallMemoRead:
    return CallMemoRead.model_validate(call_memo_service.get_call_memo(db, memo_id=memo_id, user=current_user))


@router.post("", response_model=CallMemoRead, status_code=status.HTTP_201_CREATED)
def create_call_memo(
    memo_in: CallMemoCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    broadcaster: Broadcaster = Depends(get_broadcaster),
) -> CallMemoRead:
    memo = call_memo_service.create_call_memo(db, actor=current_user, data=memo_in.model_dump())
    db.commit()
    publish_pending(db, broadcaster)
    db.refresh(memo)
    return CallMemoRead.model_validate(memo)


@router.put("/{memo_id}", response_model=CallMemoRead)
def update_call_memo(
    memo_id: int,
    memo_update: CallMemoUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    broadcaster: Broadcaster = Depends(get_broadcaster),
) -> CallMemoRead:
    changes = memo_update.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No fields to update")
    memo = call_memo_service.get_call_memo(db, memo_id=memo_id, user=current_user)
    memo = call_memo_service.update_call_memo(db, memo, actor=current_user, changes=changes)
    db.commit()
    publish_pending(db, broadcaster)
    db.refresh(memo)
    return CallMemoRead.model_validate(memo)


@router.delete("/{memo_id}", response_model=MessageResponse)
def delete_call_memo(
    memo_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    memo = call_memo_service.get_call_memo(db, memo_id=memo_id, user=current_user)
    call_memo_service.delete_call_memo(db, memo, actor=current_user)
    db.commit()
    return MessageResponse(message="Call memo deleted")
