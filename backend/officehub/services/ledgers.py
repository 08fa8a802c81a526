from __future__ import annotations

import calendar
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from officehub.core import rbac
from officehub.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from officehub.models.enums import Role
from officehub.models.finance import PettyCashLedger, PettyCashTransaction
from officehub.models.staff import Staff
from officehub.models.user import User
from officehub.services.activity import log_activity
from officehub.services.approvals import ensure_unlocked, flush_with_version_check
from officehub.services.files import attachment_descriptor

ZERO = Decimal("0.00")


def _money(value) -> Decimal:
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(Decimal("0.01"))


def month_name(month: int) -> str:
    return calendar.month_name[month]


def _previous_period(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def _department_filter(query, department_id: Optional[int]):
    if department_id is None:
        return query.filter(PettyCashLedger.department_id.is_(None))
    return query.filter(PettyCashLedger.department_id == department_id)


def find_ledger_for_period(
    db: Session, *, department_id: Optional[int], year: int, month: int
) -> Optional[PettyCashLedger]:
    query = db.query(PettyCashLedger).filter(PettyCashLedger.year == year, PettyCashLedger.month == month)
    return _department_filter(query, department_id).first()


def next_slip_number(db: Session, *, year: int, month: int) -> str:
    prefix = f"PC-{year}-{month:02d}-"
    existing = (
        db.query(func.count(PettyCashLedger.id))
        .filter(PettyCashLedger.slip_number.like(f"{prefix}%"))
        .scalar()
    )
    sequence = (existing or 0) + 1
    while db.query(PettyCashLedger.id).filter(PettyCashLedger.slip_number == f"{prefix}{sequence:03d}").first():
        sequence += 1
    return f"{prefix}{sequence:03d}"


def visible_ledgers_query(db: Session, user: User):
    rbac.require(user, "petty_cash", rbac.READ)
    query = db.query(PettyCashLedger)
    if user.role == Role.ADMIN:
        return query
    if user.department_id is None:
        return query.filter(PettyCashLedger.created_by == user.id)
    return query.filter(
        (PettyCashLedger.department_id == user.department_id) | (PettyCashLedger.created_by == user.id)
    )


def list_ledgers(
    db: Session,
    *,
    user: User,
    year: Optional[int] = None,
    month: Optional[int] = None,
    department_id: Optional[int] = None,
    approval_status=None,
) -> List[PettyCashLedger]:
    query = visible_ledgers_query(db, user)
    if department_id is not None:
        query = query.filter(PettyCashLedger.department_id == department_id)
    if year is not None:
        query = query.filter(PettyCashLedger.year == year)
    if month is not None:
        query = query.filter(PettyCashLedger.month == month)
    if approval_status is not None:
        query = query.filter(PettyCashLedger.approval_status == approval_status)
    return query.order_by(PettyCashLedger.year.desc(), PettyCashLedger.month.desc(), PettyCashLedger.id.desc()).all()


def get_ledger(db: Session, *, ledger_id: int, user: User) -> PettyCashLedger:
    ledger = visible_ledgers_query(db, user).filter(PettyCashLedger.id == ledger_id).first()
    if ledger is None:
        if db.get(PettyCashLedger, ledger_id) is not None:
            raise ForbiddenError("You do not have access to this petty cash ledger")
        raise NotFoundError("Petty cash ledger not found")
    return ledger


def create_ledger(
    db: Session,
    *,
    actor: User,
    year: int,
    month: int,
    starting_balance: Optional[Decimal] = None,
    custodian: Optional[str] = None,
    notes: Optional[str] = None,
    department_id: Optional[int] = None,
) -> PettyCashLedger:
    rbac.require(actor, "petty_cash", rbac.CREATE)
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12")
    if actor.role != Role.ADMIN or department_id is None:
        department_id = actor.department_id
    if department_id is None:
        raise ValidationError("Department is required")

    if find_ledger_for_period(db, department_id=department_id, year=year, month=month):
        raise ConflictError(f"A petty cash ledger for {month_name(month)} {year} already exists")

    opening = _money(starting_balance)
    if opening == ZERO:
        prev_year, prev_month = _previous_period(year, month)
        previous = find_ledger_for_period(db, department_id=department_id, year=prev_year, month=prev_month)
        if previous is not None:
            opening = _money(previous.closing_balance)
    if opening < ZERO:
        raise ValidationError("Starting balance cannot be negative")

    ledger = PettyCashLedger(
        slip_number=next_slip_number(db, year=year, month=month),
        year=year,
        month=month,
        starting_balance=opening,
        total_deposits=ZERO,
        total_withdrawals=ZERO,
        closing_balance=opening,
        custodian=custodian,
        notes=notes,
        department_id=department_id,
        created_by=actor.id,
    )
    db.add(ledger)
    db.flush()
    log_activity(
        db,
        actor_user_id=actor.id,
        activity_type="PETTY_CASH_LEDGER_CREATED",
        entity_type=PettyCashLedger.__tablename__,
        entity_id=ledger.id,
        message=f"Petty cash ledger {ledger.slip_number} opened for {month_name(month)} {year}",
    )
    return ledger


def update_ledger(db: Session, ledger: PettyCashLedger, *, actor: User, changes: dict) -> PettyCashLedger:
    rbac.require(actor, "petty_cash", rbac.UPDATE)
    ensure_unlocked(ledger)
    for field in ("custodian", "notes"):
        if field in changes:
            setattr(ledger, field, changes[field])
    if "starting_balance" in changes and changes["starting_balance"] is not None:
        opening = _money(changes["starting_balance"])
        if opening < ZERO:
            raise ValidationError("Starting balance cannot be negative")
        ledger.starting_balance = opening
        recompute_balances(ledger)
    db.add(ledger)
    flush_with_version_check(db, ledger)
    return ledger


def recompute_balances(ledger: PettyCashLedger) -> None:
    """Rebuild every line's running balance and the ledger totals in insertion order."""
    running = _money(ledger.starting_balance)
    deposits = ZERO
    withdrawals = ZERO
    for line in sorted(ledger.transactions, key=lambda item: item.sequence):
        deposits += _money(line.deposit)
        withdrawals += _money(line.withdrawal)
        running = running + _money(line.deposit) - _money(line.withdrawal)
        line.balance = running
    ledger.total_deposits = deposits
    ledger.total_withdrawals = withdrawals
    ledger.closing_balance = _money(ledger.starting_balance) + deposits - withdrawals


def add_transaction(
    db: Session,
    ledger: PettyCashLedger,
    *,
    actor: User,
    transaction_date: date,
    description: str,
    deposit: Optional[Decimal] = None,
    withdrawal: Optional[Decimal] = None,
    charged_to: Optional[str] = None,
    received_by: Optional[str] = None,
    received_by_staff_id: Optional[int] = None,
    attachment: Optional[dict] = None,
) -> PettyCashTransaction:
    rbac.require(actor, "petty_cash", rbac.UPDATE)
    ensure_unlocked(ledger)

    deposit_amount = _money(deposit)
    withdrawal_amount = _money(withdrawal)
    if deposit_amount < ZERO or withdrawal_amount < ZERO:
        raise ValidationError("Amounts cannot be negative")
    if deposit_amount > ZERO and withdrawal_amount > ZERO:
        raise ValidationError("A transaction cannot have both a deposit and a withdrawal")
    if deposit_amount == ZERO and withdrawal_amount == ZERO:
        raise ValidationError("A transaction needs either a deposit or a withdrawal")
    if not (description or "").strip():
        raise ValidationError("Description is required")
    recipient = None
    if received_by_staff_id is not None:
        recipient = db.get(Staff, received_by_staff_id)
        if recipient is None:
            raise ValidationError("Receiving staff member not found")

    lines = sorted(ledger.transactions, key=lambda item: item.sequence)
    previous_balance = _money(lines[-1].balance) if lines else _money(ledger.starting_balance)
    line = PettyCashTransaction(
        sequence=(lines[-1].sequence + 1) if lines else 1,
        transaction_date=transaction_date,
        description=description.strip(),
        deposit=deposit_amount,
        withdrawal=withdrawal_amount,
        balance=previous_balance + deposit_amount - withdrawal_amount,
        charged_to=charged_to,
        received_by=received_by or (recipient.user.full_name if recipient else None),
        received_by_staff_id=received_by_staff_id,
        attachment=attachment_descriptor(attachment),
        created_by=actor.id,
    )
    ledger.transactions.append(line)
    ledger.total_deposits = _money(ledger.total_deposits) + deposit_amount
    ledger.total_withdrawals = _money(ledger.total_withdrawals) + withdrawal_amount
    ledger.closing_balance = (
        _money(ledger.starting_balance) + ledger.total_deposits - ledger.total_withdrawals
    )
    db.add(ledger)
    flush_with_version_check(db, ledger)
    return line
