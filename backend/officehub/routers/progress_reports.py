from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from officehub.core.deps import get_broadcaster, get_current_user
from officehub.core.errors import ValidationError
from officehub.db.session import get_db
from officehub.models.enums import ReportCategory, ReportStatus
from officehub.models.user import User
from officehub.realtime.broadcaster import Broadcaster
from officehub.realtime.events import publish_pending
from officehub.schemas.base import MessageResponse
from officehub.schemas.progress import (
    ProgressReportCreate,
    ProgressReportDecision,
    ProgressReportRead,
    ProgressReportUpdate,
)
from officehub.services import progress as progress_service

router = APIRouter(prefix="/api/progress-reports", tags=["progress-reports"])


@router.get("", response_model=List[ProgressReportRead])
def list_reports(
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    category: Optional[ReportCategory] = Query(None),
    report_status: Optional[ReportStatus] = Query(None, alias="status"),
    department_id: Optional[int] = Query(None),
    created_by: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[ProgressReportRead]:
    reports = progress_service.list_reports(
        db,
        user=current_user,
        from_date=from_date,
        to_date=to_date,
        category=category,
        status=report_status,
        department_id=department_id,
        created_by=created_by,
    )
    return [ProgressReportRead.model_validate(report) for report in reports]


@router.get("/{report_id}", response_model=ProgressReportRead)
def get_report(
    report_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ProgressReportRead:
    return ProgressReportRead.model_validate(
        progress_service.get_report(db, report_id=report_id, user=current_user)
    )


@router.post("", response_model=ProgressReportRead, status_code=status.HTTP_201_CREATED)
def create_report(
    report_in: ProgressReportCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    broadcaster: Broadcaster = Depends(get_broadcaster),
) -> ProgressReportRead:
    report = progress_service.create_report(db, actor=current_user, data=report_in.model_dump())
    db.commit()
    publish_pending(db, broadcaster)
    db.refresh(report)
    return ProgressReportRead.model_validate(report)


@router.put("/{report_id}", response_model=ProgressReportRead)
def update_report(
    report_id: int,
    report_update: ProgressReportUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    broadcaster: Broadcaster = Depends(get_broadcaster),
) -> ProgressReportRead:
    changes = report_update.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No fields to update")
    report = progress_service.get_report(db, report_id=report_id, user=current_user)
    report = progress_service.update_report(db, report, actor=current_user, changes=changes)
    db.commit()
    publish_pending(db, broadcaster)
    db.refresh(report)
    return ProgressReportRead.model_validate(report)


@router.put("/{report_id}/approve", response_model=ProgressReportRead)
def decide_report(
    report_id: int,
    decision: ProgressReportDecision,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    broadcaster: Broadcaster = Depends(get_broadcaster),
) -> ProgressReportRead:
    if decision.status not in (ReportStatus.APPROVED, ReportStatus.REJECTED):
        raise ValidationError("Status must be Approved or Rejected")
    report = progress_service.get_report(db, report_id=report_id, user=current_user)
    report = progress_service.decide_report(
        db,
        report,
        actor=current_user,
        approved=decision.status == ReportStatus.APPROVED,
    )
    db.commit()
    publish_pending(db, broadcaster)
    db.refresh(report)
    return ProgressReportRead.model_validate(report)


@router.delete("/{report_id}", response_model=MessageResponse)
def delete_report(
    report_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    report = progress_service.get_report(db, report_id=report_id, user=current_user)
    progress_service.delete_report(db, report, actor=current_user)
    db.commit()
    return MessageResponse(message="Progress report deleted")
