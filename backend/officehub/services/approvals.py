"""
Two-stage approval state machine shared by petty-cash ledgers and assets.

    Pending_DeptHead --approve--> Pending_Admin --approve--> Approved
           |                            |
           +----------reject------------+--------> Rejected

``approval_status`` is always derived from the two stage statuses. Approved
and Rejected are terminal and lock the record. Each decision is written with
a compare-and-swap on the record's ``version`` column, so a decision made
against a stale read fails with a conflict instead of overwriting.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from officehub.core.errors import ConflictError, ForbiddenError
from officehub.core.observability import approval_decisions_total
from officehub.db.base import utcnow
from officehub.models.department import Department
from officehub.models.enums import ApprovalStatus, NotificationType, Role, StageStatus
from officehub.models.finance import Asset, PettyCashLedger
from officehub.models.user import User
from officehub.services import notifications
from officehub.services.activity import log_activity

Approvable = Union[PettyCashLedger, Asset]

STAGE_DEPT_HEAD = "dept_head"
STAGE_ADMIN = "admin"

TERMINAL_STATUSES = frozenset({ApprovalStatus.APPROVED, ApprovalStatus.REJECTED})


@dataclass
class Decision:
    record: Approvable
    stage: str
    approved: bool


def derive_approval_status(dept_head_status: StageStatus, admin_status: StageStatus) -> ApprovalStatus:
    if StageStatus.REJECTED in (dept_head_status, admin_status):
        return ApprovalStatus.REJECTED
    if dept_head_status == StageStatus.APPROVED and admin_status == StageStatus.APPROVED:
        return ApprovalStatus.APPROVED
    if dept_head_status == StageStatus.APPROVED:
        return ApprovalStatus.PENDING_ADMIN
    return ApprovalStatus.PENDING_DEPT_HEAD


def record_label(record: Approvable) -> str:
    if isinstance(record, PettyCashLedger):
        return "petty cash ledger"
    return "asset"


def describe(record: Approvable) -> str:
    if isinstance(record, PettyCashLedger):
        return f"Petty cash ledger {record.slip_number}"
    return f"Asset {record.asset_id} ({record.name})"


def record_link(record: Approvable) -> str:
    if isinstance(record, PettyCashLedger):
        return f"/finance/petty-cash/{record.id}"
    return f"/finance/assets/{record.id}"


def is_department_head_for(db: Session, user: User, department_id: Optional[int]) -> bool:
    if user.role != Role.DEPARTMENT_HEAD or department_id is None:
        return False
    if user.department_id == department_id:
        return True
    department = db.get(Department, department_id)
    return bool(department and department.manager_id == user.id)


def ensure_unlocked(record: Approvable) -> None:
    if record.locked or record.approval_status in TERMINAL_STATUSES:
        raise ConflictError(
            f"This {record_label(record)} is {record.approval_status.value.lower()} and locked",
            details="Approved or rejected records cannot be changed",
        )


def expected_stage(record: Approvable) -> Optional[str]:
    if record.approval_status == ApprovalStatus.PENDING_DEPT_HEAD:
        return STAGE_DEPT_HEAD
    if record.approval_status == ApprovalStatus.PENDING_ADMIN:
        return STAGE_ADMIN
    return None


def can_decide(db: Session, record: Approvable, user: User) -> bool:
    stage = expected_stage(record)
    if stage == STAGE_DEPT_HEAD:
        return is_department_head_for(db, user, record.department_id)
    if stage == STAGE_ADMIN:
        return user.role == Role.ADMIN
    return False


def flush_with_version_check(db: Session, record: Approvable) -> None:
    """Flush pending changes; a concurrent writer bumping ``version`` first turns into a conflict."""
    try:
        db.flush()
    except StaleDataError as exc:
        db.rollback()
        raise ConflictError(
            f"This {record_label(record)} was changed by another request",
            details="Reload the record and retry",
        ) from exc


def decide(
    db: Session,
    record: Approvable,
    *,
    actor: User,
    approved: bool,
    expected_version: Optional[int] = None,
    reason: Optional[str] = None,
) -> Decision:
    ensure_unlocked(record)
    if not can_decide(db, record, actor):
        raise ForbiddenError(f"You do not have permission to approve this {record_label(record)} at this stage")
    if expected_version is not None and expected_version != record.version:
        raise ConflictError(
            f"This {record_label(record)} was changed by another request",
            details=f"Expected version {expected_version}, current version {record.version}",
        )

    stage = expected_stage(record)
    now = utcnow()
    outcome = StageStatus.APPROVED if approved else StageStatus.REJECTED
    if stage == STAGE_DEPT_HEAD:
        record.dept_head_status = outcome
        record.dept_head_approved_by = actor.id
        record.dept_head_approved_at = now
    else:
        record.admin_status = outcome
        record.admin_approved_by = actor.id
        record.admin_approved_at = now

    record.approval_status = derive_approval_status(record.dept_head_status, record.admin_status)
    if record.approval_status in TERMINAL_STATUSES:
        record.locked = True
    if not approved and reason:
        record.rejection_reason = reason
    if isinstance(record, PettyCashLedger) and record.approval_status == ApprovalStatus.APPROVED:
        record.date_signed = now.date()

    db.add(record)
    flush_with_version_check(db, record)

    log_activity(
        db,
        actor_user_id=actor.id,
        activity_type=f"{record.__tablename__.upper()}_{stage.upper()}_{'APPROVED' if approved else 'REJECTED'}",
        entity_type=record.__tablename__,
        entity_id=record.id,
        message=f"{describe(record)} {'approved' if approved else 'rejected'} at {stage} stage",
        payload={"approval_status": record.approval_status.value, "version": record.version},
    )
    approval_decisions_total.labels(record.__tablename__, stage, "approved" if approved else "rejected").inc()
    decision = Decision(record=record, stage=stage, approved=approved)
    _notify(db, decision, actor=actor)
    return decision


def _notify(db: Session, decision: Decision, *, actor: User) -> None:
    record = decision.record
    subject = describe(record)
    link = record_link(record)

    if decision.stage == STAGE_DEPT_HEAD and decision.approved:
        notifications.notify_roles(
            db,
            roles=[Role.ADMIN],
            title=f"{subject} awaiting admin approval",
            message=f"{subject} was approved by {actor.full_name} and needs your approval.",
            notif_type=NotificationType.INFO,
            sender_id=actor.id,
            link=link,
            exclude_user_ids=[actor.id],
        )
        return

    verdict = "approved" if decision.approved else "rejected"
    notif_type = NotificationType.SUCCESS if decision.approved else NotificationType.ERROR
    recipients = {record.created_by}
    if decision.stage == STAGE_ADMIN and record.dept_head_approved_by:
        recipients.add(record.dept_head_approved_by)
    recipients.discard(actor.id)
    message = f"{subject} was {verdict} by {actor.full_name}."
    if not decision.approved and record.rejection_reason:
        message = f"{message} Reason: {record.rejection_reason}"
    notifications.notify_users(
        db,
        user_ids=recipients,
        title=f"{subject} {verdict}",
        message=message,
        notif_type=notif_type,
        sender_id=actor.id,
        link=link,
    )
