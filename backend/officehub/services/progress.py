from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from officehub.core import rbac
from officehub.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from officehub.models.enums import ProgressStatus, ReportCategory, ReportStatus, Role, TargetStatus
from officehub.models.progress import ProgressReport, Target, TargetProgress
from officehub.models.user import User
from officehub.realtime.events import queue_event
from officehub.services.activity import log_activity
from officehub.services.clients import find_or_create_client_by_name

TOPIC_PROGRESS_REPORT_CREATED = "progress_report_created"
TOPIC_TARGET_PROGRESS_UPDATED = "target_progress_updated"

CLIENT_CATEGORIES = {
    ReportCategory.CLIENT_CONSULTANCY: "consultancy",
    ReportCategory.CLIENT_AUDIT: "audit",
}
# Statuses a reporter may set; Approved/Rejected come from an admin decision.
REPORTER_STATUSES = frozenset(
    {ReportStatus.PENDING, ReportStatus.SIGNED_CONTRACT, ReportStatus.PIPELINE_CLIENT, ReportStatus.SUBMITTED}
)
DECIDED_STATUSES = frozenset({ReportStatus.APPROVED, ReportStatus.REJECTED})

_ZERO = Decimal("0.00")


@dataclass(frozen=True)
class TargetSummary:
    target_amount: Decimal
    achieved_amount: Decimal
    pending_amount: Decimal
    remaining: Decimal
    percent: float


def _money(value) -> Decimal:
    return Decimal(value or 0).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def client_progress_status(status: ReportStatus) -> str:
    return status.value.lower()


def report_payload(report: ProgressReport) -> dict:
    return {
        "id": report.id,
        "name": report.name,
        "category": report.category,
        "status": report.status,
        "amount": report.amount,
        "report_date": report.report_date,
        "client_id": report.client_id,
        "department_id": report.department_id,
        "created_by": report.created_by,
        "created_by_name": report.creator.full_name if report.creator else None,
    }


# ---------------------------------------------------------------------------
# targets
# ---------------------------------------------------------------------------


def active_target_for(db: Session, user_id: int) -> Optional[Target]:
    return (
        db.query(Target)
        .filter(Target.user_id == user_id, Target.status == TargetStatus.ACTIVE)
        .order_by(Target.period_start.desc(), Target.id.desc())
        .first()
    )


def summarize_target(db: Session, target: Target) -> TargetSummary:
    """Achieved progress counts Approved rows only; Pending rows are reported separately."""
    rows = (
        db.query(TargetProgress.status, func.coalesce(func.sum(TargetProgress.amount), 0))
        .filter(TargetProgress.target_id == target.id)
        .group_by(TargetProgress.status)
        .all()
    )
    totals = {status: _money(total) for status, total in rows}
    achieved = totals.get(ProgressStatus.APPROVED, _ZERO)
    pending = totals.get(ProgressStatus.PENDING, _ZERO)
    target_amount = _money(target.target_amount)
    remaining = max(target_amount - achieved, _ZERO)
    percent = float(achieved / target_amount * 100) if target_amount > 0 else 0.0
    return TargetSummary(
        target_amount=target_amount,
        achieved_amount=achieved,
        pending_amount=pending,
        remaining=remaining,
        percent=round(percent, 2),
    )


def target_event_payload(db: Session, entry: TargetProgress, *, action: str) -> dict:
    summary = summarize_target(db, entry.target)
    return {
        "id": entry.id,
        "target_id": entry.target_id,
        "user_id": entry.user_id,
        "progress_report_id": entry.progress_report_id,
        "amount": entry.amount,
        "status": entry.status,
        "action": action,
        "achieved_amount": summary.achieved_amount,
        "remaining": summary.remaining,
        "percent": summary.percent,
    }


def list_targets(db: Session, *, user: User, status: Optional[TargetStatus] = None, user_id: Optional[int] = None):
    rbac.require(user, "targets", rbac.READ)
    query = db.query(Target)
    if status is not None:
        query = query.filter(Target.status == status)
    if user_id is not None:
        query = query.filter(Target.user_id == user_id)
    return query.order_by(Target.period_start.desc(), Target.id.desc()).all()


def get_target(db: Session, *, target_id: int, user: User) -> Target:
    rbac.require(user, "targets", rbac.READ)
    target = db.get(Target, target_id)
    if target is None:
        raise NotFoundError("Target not found")
    return target


def create_target(
    db: Session,
    *,
    actor: User,
    user_id: int,
    target_amount: Decimal,
    period_start: date,
    period_end: Optional[date] = None,
    category: Optional[str] = None,
    notes: Optional[str] = None,
) -> Target:
    rbac.require(actor, "targets", rbac.CREATE)
    assignee = db.get(User, user_id)
    if assignee is None or not assignee.is_active:
        raise ValidationError("Targets can only be assigned to active users")
    if actor.role == Role.DEPARTMENT_HEAD and assignee.department_id != actor.department_id:
        raise ForbiddenError("Department heads can only assign targets within their department")
    if _money(target_amount) <= 0:
        raise ValidationError("Target amount must be greater than zero")
    if period_end is not None and period_end < period_start:
        raise ValidationError("Target period end must not precede its start")
    if active_target_for(db, user_id) is not None:
        raise ConflictError(
            "User already has an active target",
            details="Complete or cancel the current target first",
        )

    target = Target(
        user_id=user_id,
        target_amount=_money(target_amount),
        period_start=period_start,
        period_end=period_end,
        category=category,
        notes=notes,
        created_by=actor.id,
    )
    db.add(target)
    db.flush()
    log_activity(
        db,
        actor_user_id=actor.id,
        activity_type="TARGET_ASSIGNED",
        entity_type=Target.__tablename__,
        entity_id=target.id,
        message=f"Target of {target.target_amount} assigned to {assignee.email}",
    )
    return target


def update_target(db: Session, target: Target, *, actor: User, changes: dict) -> Target:
    rbac.require(actor, "targets", rbac.UPDATE)
    if changes.get("target_amount") is not None and _money(changes["target_amount"]) <= 0:
        raise ValidationError("Target amount must be greater than zero")
    for field, value in changes.items():
        if value is not None:
            setattr(target, field, value)
    if target.period_end is not None and target.period_end < target.period_start:
        raise ValidationError("Target period end must not precede its start")
    db.add(target)
    db.flush()
    return target


def delete_target(db: Session, target: Target, *, actor: User) -> None:
    rbac.require(actor, "targets", rbac.DELETE)
    log_activity(
        db,
        actor_user_id=actor.id,
        activity_type="TARGET_DELETED",
        entity_type=Target.__tablename__,
        entity_id=target.id,
        message=f"Target {target.id} deleted",
    )
    db.delete(target)
    db.flush()


def list_target_progress(db: Session, target: Target) -> List[TargetProgress]:
    return (
        db.query(TargetProgress)
        .filter(TargetProgress.target_id == target.id)
        .order_by(TargetProgress.transaction_date.desc(), TargetProgress.id.desc())
        .all()
    )


def decide_target_progress(db: Session, entry: TargetProgress, *, actor: User, approved: bool) -> TargetProgress:
    rbac.require_roles(actor, [Role.ADMIN])
    entry.status = ProgressStatus.APPROVED if approved else ProgressStatus.REJECTED
    db.add(entry)
    db.flush()
    queue_event(db, TOPIC_TARGET_PROGRESS_UPDATED, target_event_payload(db, entry, action="progress_decided"))
    return entry


def get_target_progress(db: Session, entry_id: int) -> TargetProgress:
    entry = db.get(TargetProgress, entry_id)
    if entry is None:
        raise NotFoundError("Progress entry not found")
    return entry


# ---------------------------------------------------------------------------
# progress reports
# ---------------------------------------------------------------------------


def _scoped_reports(db: Session, user: User):
    rbac.require(user, "progress_reports", rbac.READ)
    query = db.query(ProgressReport)
    if user.role == Role.ADMIN:
        return query
    if user.role == Role.DEPARTMENT_HEAD and user.department_id is not None:
        return query.filter(
            (ProgressReport.department_id == user.department_id) | (ProgressReport.created_by == user.id)
        )
    return query.filter(ProgressReport.created_by == user.id)


def list_reports(
    db: Session,
    *,
    user: User,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    category: Optional[ReportCategory] = None,
    status: Optional[ReportStatus] = None,
    department_id: Optional[int] = None,
    created_by: Optional[int] = None,
) -> List[ProgressReport]:
    query = _scoped_reports(db, user)
    if from_date:
        query = query.filter(ProgressReport.report_date >= from_date)
    if to_date:
        query = query.filter(ProgressReport.report_date <= to_date)
    if category is not None:
        query = query.filter(ProgressReport.category == category)
    if status is not None:
        query = query.filter(ProgressReport.status == status)
    if department_id is not None:
        query = query.filter(ProgressReport.department_id == department_id)
    if created_by is not None:
        query = query.filter(ProgressReport.created_by == created_by)
    return query.order_by(ProgressReport.report_date.desc(), ProgressReport.id.desc()).all()


def get_report(db: Session, *, report_id: int, user: User) -> ProgressReport:
    report = _scoped_reports(db, user).filter(ProgressReport.id == report_id).first()
    if report is None:
        if db.get(ProgressReport, report_id) is not None:
            raise ForbiddenError("You do not have access to this progress report")
        raise NotFoundError("Progress report not found")
    return report


def _link_client(db: Session, report: ProgressReport, *, actor: User) -> None:
    category = CLIENT_CATEGORIES.get(report.category)
    if category is None:
        return
    lookup = find_or_create_client_by_name(db, name=report.name, actor=actor, category=category)
    client = lookup.client
    report.client_id = client.id
    progress_status = client_progress_status(report.status)
    if lookup.created or client.progress_status != progress_status:
        client.progress_status = progress_status
        db.add(client)


def _record_target_progress(db: Session, report: ProgressReport) -> Optional[TargetProgress]:
    """One TargetProgress row per report; re-running only refreshes the amount."""
    if _money(report.amount) <= 0:
        return None
    existing = db.query(TargetProgress).filter(TargetProgress.progress_report_id == report.id).first()
    if existing is not None:
        if existing.status == ProgressStatus.PENDING:
            existing.amount = _money(report.amount)
            existing.transaction_date = report.report_date
            db.add(existing)
        return existing
    target = active_target_for(db, report.created_by)
    if target is None:
        return None
    entry = TargetProgress(
        target_id=target.id,
        user_id=report.created_by,
        progress_report_id=report.id,
        amount=_money(report.amount),
        category=report.category.value,
        status=ProgressStatus.PENDING,
        transaction_date=report.report_date,
    )
    db.add(entry)
    db.flush()
    return entry


def create_report(db: Session, *, actor: User, data: dict) -> ProgressReport:
    rbac.require(actor, "progress_reports", rbac.CREATE)
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("Report name is required")
    status = data.get("status") or ReportStatus.PENDING
    if status not in REPORTER_STATUSES:
        raise ValidationError(f"Status '{ReportStatus(status).value}' cannot be set on a new report")
    amount = _money(data.get("amount"))
    if amount < 0:
        raise ValidationError("Amount cannot be negative")

    report = ProgressReport(
        name=name,
        report_date=data.get("report_date") or date.today(),
        category=data["category"],
        status=status,
        amount=amount,
        notes=data.get("notes"),
        department_id=actor.department_id,
        created_by=actor.id,
    )
    db.add(report)
    db.flush()

    _link_client(db, report, actor=actor)
    entry = _record_target_progress(db, report)
    db.flush()

    log_activity(
        db,
        actor_user_id=actor.id,
        activity_type="PROGRESS_REPORT_CREATED",
        entity_type=ProgressReport.__tablename__,
        entity_id=report.id,
        message=f"Progress report '{report.name}' created",
        payload={"category": report.category.value, "status": report.status.value},
    )
    if entry is not None:
        queue_event(db, TOPIC_TARGET_PROGRESS_UPDATED, target_event_payload(db, entry, action="created"))
    queue_event(db, TOPIC_PROGRESS_REPORT_CREATED, report_payload(report))
    return report


def update_report(db: Session, report: ProgressReport, *, actor: User, changes: dict) -> ProgressReport:
    rbac.require(actor, "progress_reports", rbac.UPDATE)
    if actor.role != Role.ADMIN:
        if report.created_by != actor.id:
            raise ForbiddenError("You can only edit your own progress reports")
        if report.status in DECIDED_STATUSES:
            raise ForbiddenError("Cannot edit progress report that has been approved or rejected")
    if changes.get("status") is not None and changes["status"] not in REPORTER_STATUSES:
        raise ValidationError("Use the approval endpoint to approve or reject a report")
    if changes.get("amount") is not None:
        changes["amount"] = _money(changes["amount"])
        if changes["amount"] < 0:
            raise ValidationError("Amount cannot be negative")
    if changes.get("name") is not None:
        changes["name"] = changes["name"].strip()
        if not changes["name"]:
            raise ValidationError("Report name is required")

    for field, value in changes.items():
        if value is not None or field == "notes":
            setattr(report, field, value)
    db.add(report)
    db.flush()

    _link_client(db, report, actor=actor)
    entry = _record_target_progress(db, report)
    db.flush()
    if entry is not None:
        queue_event(db, TOPIC_TARGET_PROGRESS_UPDATED, target_event_payload(db, entry, action="report_updated"))
    return report


def decide_report(db: Session, report: ProgressReport, *, actor: User, approved: bool) -> ProgressReport:
    """Admin decision; the linked TargetProgress row follows the report's outcome."""
    rbac.require(actor, "progress_reports", rbac.APPROVE, message="Only administrators can approve progress reports")
    if report.status in DECIDED_STATUSES:
        raise ConflictError(f"Progress report is already {report.status.value.lower()}")

    report.status = ReportStatus.APPROVED if approved else ReportStatus.REJECTED
    db.add(report)
    db.flush()

    if approved:
        entry = _record_target_progress(db, report)
    else:
        entry = db.query(TargetProgress).filter(TargetProgress.progress_report_id == report.id).first()
    if entry is not None:
        entry.status = ProgressStatus.APPROVED if approved else ProgressStatus.REJECTED
        db.add(entry)
        db.flush()
        queue_event(db, TOPIC_TARGET_PROGRESS_UPDATED, target_event_payload(db, entry, action="report_decided"))

    log_activity(
        db,
        actor_user_id=actor.id,
        activity_type="PROGRESS_REPORT_APPROVED" if approved else "PROGRESS_REPORT_REJECTED",
        entity_type=ProgressReport.__tablename__,
        entity_id=report.id,
        message=f"Progress report '{report.name}' {report.status.value.lower()}",
    )
    return report


def delete_report(db: Session, report: ProgressReport, *, actor: User) -> None:
    rbac.require(actor, "progress_reports", rbac.DELETE)
    if actor.role != Role.ADMIN and report.created_by != actor.id:
        raise ForbiddenError("You can only delete your own progress reports")
    if actor.role != Role.ADMIN and report.status in DECIDED_STATUSES:
        raise ForbiddenError("Cannot delete progress report that has been approved or rejected")
    log_activity(
        db,
        actor_user_id=actor.id,
        activity_type="PROGRESS_REPORT_DELETED",
        entity_type=ProgressReport.__tablename__,
        entity_id=report.id,
        message=f"Progress report '{report.name}' deleted",
    )
    db.delete(report)
    db.flush()
