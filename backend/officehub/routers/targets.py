from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from officehub.core.deps import get_broadcaster, get_current_user
from officehub.core.errors import ValidationError
from officehub.db.session import get_db
from officehub.models.enums import ProgressStatus, TargetStatus
from officehub.models.progress import Target
from officehub.models.user import User
from officehub.realtime.broadcaster import Broadcaster
from officehub.realtime.events import publish_pending
from officehub.schemas.base import MessageResponse
from officehub.schemas.progress import (
    TargetCreate,
    TargetProgressDecision,
    TargetProgressRead,
    TargetRead,
    TargetUpdate,
)
from officehub.services import progress as progress_service

router = APIRouter(prefix="/api/targets", tags=["targets"])


def _target_read(db: Session, target: Target) -> TargetRead:
    summary = progress_service.summarize_target(db, target)
    read = TargetRead.model_validate(target)
    return read.model_copy(
        update={
            "achieved_amount": summary.achieved_amount,
            "pending_amount": summary.pending_amount,
            "remaining": summary.remaining,
            "percent": summary.percent,
        }
    )


@router.get("", response_model=List[TargetRead])
def list_targets(
    target_status: Optional[TargetStatus] = Query(None, alias="status"),
    user_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[TargetRead]:
    targets = progress_service.list_targets(db, user=current_user, status=target_status, user_id=user_id)
    return [_target_read(db, target) for target in targets]


@router.get("/{target_id}", response_model=TargetRead)
def get_target(
    target_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> TargetRead:
    return _target_read(db, progress_service.get_target(db, target_id=target_id, user=current_user))


@router.get("/{target_id}/progress", response_model=List[TargetProgressRead])
def list_target_progress(
    target_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[TargetProgressRead]:
    target = progress_service.get_target(db, target_id=target_id, user=current_user)
    return [TargetProgressRead.model_validate(entry) for entry in progress_service.list_target_progress(db, target)]


@router.post("", response_model=TargetRead, status_code=status.HTTP_201_CREATED)
def create_target(
    target_in: TargetCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> TargetRead:
    target = progress_service.create_target(db, actor=current_user, **target_in.model_dump())
    db.commit()
    db.refresh(target)
    return _target_read(db, target)


@router.put("/{target_id}", response_model=TargetRead)
def update_target(
    target_id: int,
    target_update: TargetUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> TargetRead:
    target = progress_service.get_target(db, target_id=target_id, user=current_user)
    target = progress_service.update_target(
        db,
        target,
        actor=current_user,
        changes=target_update.model_dump(exclude_unset=True),
    )
    db.commit()
    db.refresh(target)
    return _target_read(db, target)


@router.delete("/{target_id}", response_model=MessageResponse)
def delete_target(
    target_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    target = progress_service.get_target(db, target_id=target_id, user=current_user)
    progress_service.delete_target(db, target, actor=current_user)
    db.commit()
    return MessageResponse(message="Target deleted")


@router.put("/progress/{entry_id}/approve", response_model=TargetProgressRead)
def decide_progress(
    entry_id: int,
    decision: TargetProgressDecision,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    broadcaster: Broadcaster = Depends(get_broadcaster),
) -> TargetProgressRead:
    if decision.status == ProgressStatus.PENDING:
        raise ValidationError("Status must be Approved or Rejected")
    entry = progress_service.get_target_progress(db, entry_id)
    entry = progress_service.decide_target_progress(
        db,
        entry,
        actor=current_user,
        approved=decision.status == ProgressStatus.APPROVED,
    )
    db.commit()
    publish_pending(db, broadcaster)
    db.refresh(entry)
    return TargetProgressRead.model_validate(entry)
