from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from officehub.core.deps import get_broadcaster, get_current_user
from officehub.db.session import get_db
from officehub.models.enums import ApprovalStatus
from officehub.models.finance import AssetDepreciation
from officehub.models.user import User
from officehub.realtime.broadcaster import Broadcaster
from officehub.realtime.events import publish_pending
from officehub.schemas.finance import (
    ApprovalDecision,
    AssetCreate,
    AssetRead,
    AssetUpdate,
    DepreciationEntryRead,
    DepreciationRead,
    DepreciationRecordCreate,
    MonthlyAssetSheet,
    PettyCashLedgerCreate,
    PettyCashLedgerDetail,
    PettyCashLedgerRead,
    PettyCashLedgerUpdate,
    PettyCashTransactionCreate,
    PettyCashTransactionRead,
)
from officehub.services import approvals, assets, ledgers

router = APIRouter(prefix="/api/finance", tags=["finance"])


# -- petty cash ---------------------------------------------------------------


@router.get("/petty-cash", response_model=List[PettyCashLedgerRead])
def list_ledgers(
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None, ge=1, le=12),
    department_id: Optional[int] = Query(None),
    approval_status: Optional[ApprovalStatus] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[PettyCashLedgerRead]:
    items = ledgers.list_ledgers(
        db,
        user=current_user,
        year=year,
        month=month,
        department_id=department_id,
        approval_status=approval_status,
    )
    return [PettyCashLedgerRead.model_validate(item) for item in items]


@router.post("/petty-cash", response_model=PettyCashLedgerDetail, status_code=status.HTTP_201_CREATED)
def create_ledger(
    ledger_in: PettyCashLedgerCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PettyCashLedgerDetail:
    ledger = ledgers.create_ledger(
        db,
        actor=current_user,
        year=ledger_in.year,
        month=ledger_in.month,
        starting_balance=ledger_in.starting_balance,
        custodian=ledger_in.custodian,
        notes=ledger_in.notes,
        department_id=ledger_in.department_id,
    )
    db.commit()
    db.refresh(ledger)
    return PettyCashLedgerDetail.model_validate(ledger)


@router.get("/petty-cash/{ledger_id}", response_model=PettyCashLedgerDetail)
def get_ledger(
    ledger_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PettyCashLedgerDetail:
    return PettyCashLedgerDetail.model_validate(ledgers.get_ledger(db, ledger_id=ledger_id, user=current_user))


@router.put("/petty-cash/{ledger_id}", response_model=PettyCashLedgerDetail)
def update_ledger(
    ledger_id: int,
    ledger_update: PettyCashLedgerUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PettyCashLedgerDetail:
    ledger = ledgers.get_ledger(db, ledger_id=ledger_id, user=current_user)
    ledger = ledgers.update_ledger(
        db,
        ledger,
        actor=current_user,
        changes=ledger_update.model_dump(exclude_unset=True),
    )
    db.commit()
    db.refresh(ledger)
    return PettyCashLedgerDetail.model_validate(ledger)


@router.post(
    "/petty-cash/{ledger_id}/transactions",
    response_model=PettyCashTransactionRead,
    status_code=status.HTTP_201_CREATED,
)
def add_transaction(
    ledger_id: int,
    transaction_in: PettyCashTransactionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PettyCashTransactionRead:
    ledger = ledgers.get_ledger(db, ledger_id=ledger_id, user=current_user)
    line = ledgers.add_transaction(
        db,
        ledger,
        actor=current_user,
        transaction_date=transaction_in.transaction_date,
        description=transaction_in.description,
        deposit=transaction_in.deposit,
        withdrawal=transaction_in.withdrawal,
        charged_to=transaction_in.charged_to,
        received_by=transaction_in.received_by,
        received_by_staff_id=transaction_in.received_by_staff_id,
        attachment=transaction_in.attachment.model_dump() if transaction_in.attachment else None,
    )
    db.commit()
    db.refresh(line)
    return PettyCashTransactionRead.model_validate(line)


@router.post("/petty-cash/{ledger_id}/approve", response_model=PettyCashLedgerDetail)
def approve_ledger(
    ledger_id: int,
    decision: ApprovalDecision,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    broadcaster: Broadcaster = Depends(get_broadcaster),
) -> PettyCashLedgerDetail:
    ledger = ledgers.get_ledger(db, ledger_id=ledger_id, user=current_user)
    approvals.decide(
        db,
        ledger,
        actor=current_user,
        approved=decision.approved,
        expected_version=decision.version,
        reason=decision.reason,
    )
    db.commit()
    publish_pending(db, broadcaster)
    db.refresh(ledger)
    return PettyCashLedgerDetail.model_validate(ledger)


# -- assets -------------------------------------------------------------------


@router.get("/assets", response_model=List[AssetRead])
def list_assets(
    category: Optional[str] = Query(None),
    department_id: Optional[int] = Query(None),
    location: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    approval_status: Optional[ApprovalStatus] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[AssetRead]:
    items = assets.list_assets(
        db,
        user=current_user,
        category=category,
        department_id=department_id,
        location=location,
        search=search,
        approval_status=approval_status,
    )
    return [AssetRead.model_validate(item) for item in items]


@router.get("/assets/monthly/{year}/{month}", response_model=MonthlyAssetSheet)
def monthly_assets(
    year: int,
    month: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MonthlyAssetSheet:
    items, total = assets.monthly_acquisitions(db, user=current_user, year=year, month=month)
    return MonthlyAssetSheet(
        year=year,
        month=month,
        month_name=ledgers.month_name(month),
        assets=[AssetRead.model_validate(item) for item in items],
        total_amount=total,
    )


@router.post("/assets", response_model=AssetRead, status_code=status.HTTP_201_CREATED)
def create_asset(
    asset_in: AssetCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AssetRead:
    asset = assets.create_asset(db, actor=current_user, **asset_in.model_dump())
    db.commit()
    db.refresh(asset)
    return AssetRead.model_validate(asset)


@router.get("/assets/{asset_id}", response_model=AssetRead)
def get_asset(
    asset_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AssetRead:
    return AssetRead.model_validate(assets.get_asset(db, asset_id=asset_id, user=current_user))


@router.put("/assets/{asset_id}", response_model=AssetRead)
def update_asset(
    asset_id: int,
    asset_update: AssetUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AssetRead:
    asset = assets.get_asset(db, asset_id=asset_id, user=current_user)
    asset = assets.update_asset(db, asset, actor=current_user, changes=asset_update.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(asset)
    return AssetRead.model_validate(asset)


@router.post("/assets/{asset_id}/approve", response_model=AssetRead)
def approve_asset(
    asset_id: int,
    decision: ApprovalDecision,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    broadcaster: Broadcaster = Depends(get_broadcaster),
) -> AssetRead:
    asset = assets.get_asset(db, asset_id=asset_id, user=current_user)
    approvals.decide(
        db,
        asset,
        actor=current_user,
        approved=decision.approved,
        expected_version=decision.version,
        reason=decision.reason,
    )
    db.commit()
    publish_pending(db, broadcaster)
    db.refresh(asset)
    return AssetRead.model_validate(asset)


@router.get("/assets/{asset_id}/depreciation", response_model=DepreciationRead)
def get_depreciation(
    asset_id: int,
    as_of: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> DepreciationRead:
    asset = assets.get_asset(db, asset_id=asset_id, user=current_user)
    snapshot = assets.snapshot_for(asset, as_of)
    return DepreciationRead(
        asset_id=asset.id,
        as_of=snapshot.as_of,
        years_elapsed=snapshot.years_elapsed,
        annual_depreciation=snapshot.annual_depreciation,
        accumulated_depreciation=snapshot.accumulated_depreciation,
        book_value=snapshot.book_value,
    )


@router.post(
    "/assets/{asset_id}/depreciation",
    response_model=DepreciationEntryRead,
    status_code=status.HTTP_201_CREATED,
)
def record_depreciation(
    asset_id: int,
    payload: DepreciationRecordCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> DepreciationEntryRead:
    asset = assets.get_asset(db, asset_id=asset_id, user=current_user)
    entry = assets.record_depreciation(db, asset, actor=current_user, as_of=payload.as_of)
    db.commit()
    db.refresh(entry)
    return DepreciationEntryRead.model_validate(entry)


@router.get("/assets/{asset_id}/depreciation/history", response_model=List[DepreciationEntryRead])
def depreciation_history(
    asset_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[DepreciationEntryRead]:
    asset = assets.get_asset(db, asset_id=asset_id, user=current_user)
    entries = (
        db.query(AssetDepreciation)
        .filter(AssetDepreciation.asset_id == asset.id)
        .order_by(AssetDepreciation.as_of.asc())
        .all()
    )
    return [DepreciationEntryRead.model_validate(entry) for entry in entries]
