from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from sqlalchemy import extract
from sqlalchemy.orm import Session

from officehub.core import rbac
from officehub.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from officehub.models.enums import AssetCondition, Role
from officehub.models.finance import Asset, AssetDepreciation
from officehub.models.user import User
from officehub.services.activity import log_activity
from officehub.services.approvals import ensure_unlocked, flush_with_version_check
from officehub.services.codes import asset_code, unique_code
from officehub.services.files import attachment_descriptor

DEFAULT_DEPRECIATION_RATE = Decimal("0.05")
DAYS_PER_YEAR = Decimal("365")
CENT = Decimal("0.01")


@dataclass(frozen=True)
class DepreciationSnapshot:
    as_of: date
    years_elapsed: float
    annual_depreciation: Decimal
    accumulated_depreciation: Decimal
    book_value: Decimal


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def annual_depreciation(purchase_price: Decimal, rate: Decimal) -> Decimal:
    return _money(Decimal(purchase_price) * Decimal(rate))


def compute_depreciation(
    purchase_price: Decimal,
    rate: Decimal,
    date_acquired: date,
    as_of: Optional[date] = None,
) -> DepreciationSnapshot:
    """
    Straight-line depreciation over fractional years (elapsed days / 365).

    Accumulated depreciation is capped at the purchase price, so book value
    never goes negative, and dates before acquisition count as zero years.
    """
    as_of = as_of or date.today()
    price = Decimal(purchase_price)
    annual = Decimal(price) * Decimal(rate)
    elapsed_days = max((as_of - date_acquired).days, 0)
    years = Decimal(elapsed_days) / DAYS_PER_YEAR
    accumulated = min(_money(annual * years), _money(price))
    return DepreciationSnapshot(
        as_of=as_of,
        years_elapsed=float(years),
        annual_depreciation=_money(annual),
        accumulated_depreciation=accumulated,
        book_value=_money(price) - accumulated,
    )


def snapshot_for(asset: Asset, as_of: Optional[date] = None) -> DepreciationSnapshot:
    return compute_depreciation(asset.purchase_price, asset.depreciation_rate_annual, asset.date_acquired, as_of)


def _validate_amounts(price: Decimal, rate: Decimal) -> None:
    if Decimal(price) < 0:
        raise ValidationError("Purchase price cannot be negative")
    if not Decimal("0") <= Decimal(rate) <= Decimal("1"):
        raise ValidationError("Depreciation rate must be between 0 and 1")


def _check_responsible_person(db: Session, user_id: Optional[int]) -> None:
    if user_id is None:
        return
    person = db.get(User, user_id)
    if person is None or not person.is_active:
        raise ValidationError("Responsible person must be an active user")


def _apply_expense_columns(asset: Asset) -> None:
    per_annum = annual_depreciation(asset.purchase_price, asset.depreciation_rate_annual)
    asset.depreciation_expense_per_annum = per_annum
    asset.depreciation_expense_per_month = _money(per_annum / Decimal("12"))


def visible_assets_query(db: Session, user: User):
    rbac.require(user, "assets", rbac.READ)
    query = db.query(Asset)
    if user.role == Role.ADMIN:
        return query
    if user.department_id is None:
        return query.filter(Asset.created_by == user.id)
    return query.filter((Asset.department_id == user.department_id) | (Asset.created_by == user.id))


def list_assets(
    db: Session,
    *,
    user: User,
    category: Optional[str] = None,
    department_id: Optional[int] = None,
    location: Optional[str] = None,
    search: Optional[str] = None,
    approval_status=None,
) -> List[Asset]:
    query = visible_assets_query(db, user)
    if category:
        query = query.filter(Asset.category == category)
    if department_id is not None:
        query = query.filter(Asset.department_id == department_id)
    if location:
        query = query.filter(Asset.location.ilike(f"%{location}%"))
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            Asset.name.ilike(pattern) | Asset.asset_id.ilike(pattern) | Asset.serial_number.ilike(pattern)
        )
    if approval_status is not None:
        query = query.filter(Asset.approval_status == approval_status)
    return query.order_by(Asset.date_acquired.desc(), Asset.id.desc()).all()


def get_asset(db: Session, *, asset_id: int, user: User) -> Asset:
    asset = visible_assets_query(db, user).filter(Asset.id == asset_id).first()
    if asset is None:
        if db.get(Asset, asset_id) is not None:
            raise ForbiddenError("You do not have access to this asset")
        raise NotFoundError("Asset not found")
    return asset


def create_asset(
    db: Session,
    *,
    actor: User,
    name: str,
    category: str,
    purchase_price: Decimal,
    date_acquired: date,
    depreciation_rate_annual: Optional[Decimal] = None,
    location: Optional[str] = None,
    serial_number: Optional[str] = None,
    supplier: Optional[str] = None,
    asset_condition: AssetCondition = AssetCondition.GOOD,
    warranty_expiry_date: Optional[date] = None,
    expected_useful_life_years: Optional[int] = None,
    responsible_person_id: Optional[int] = None,
    attachment: Optional[dict] = None,
    notes: Optional[str] = None,
    department_id: Optional[int] = None,
) -> Asset:
    rbac.require(actor, "assets", rbac.CREATE)
    rate = DEFAULT_DEPRECIATION_RATE if depreciation_rate_annual is None else Decimal(depreciation_rate_annual)
    _validate_amounts(purchase_price, rate)
    if actor.role != Role.ADMIN or department_id is None:
        department_id = actor.department_id
    if department_id is None:
        raise ValidationError("Department is required")
    _check_responsible_person(db, responsible_person_id)

    asset = Asset(
        asset_id=unique_code(db, Asset.asset_id, asset_code(category)),
        name=name,
        category=category,
        location=location,
        serial_number=serial_number,
        supplier=supplier,
        asset_condition=asset_condition,
        warranty_expiry_date=warranty_expiry_date,
        expected_useful_life_years=expected_useful_life_years,
        responsible_person_id=responsible_person_id,
        attachment=attachment_descriptor(attachment),
        purchase_price=_money(Decimal(purchase_price)),
        date_acquired=date_acquired,
        depreciation_rate_annual=rate,
        notes=notes,
        department_id=department_id,
        created_by=actor.id,
    )
    _apply_expense_columns(asset)
    db.add(asset)
    db.flush()
    log_activity(
        db,
        actor_user_id=actor.id,
        activity_type="ASSET_REGISTERED",
        entity_type=Asset.__tablename__,
        entity_id=asset.id,
        message=f"Asset {asset.asset_id} registered",
        payload={"purchase_price": str(asset.purchase_price)},
    )
    return asset


_UPDATABLE_FIELDS = (
    "name",
    "category",
    "location",
    "serial_number",
    "supplier",
    "asset_condition",
    "warranty_expiry_date",
    "expected_useful_life_years",
    "responsible_person_id",
    "purchase_price",
    "date_acquired",
    "depreciation_rate_annual",
    "notes",
)


def update_asset(db: Session, asset: Asset, *, actor: User, changes: dict) -> Asset:
    rbac.require(actor, "assets", rbac.UPDATE)
    ensure_unlocked(asset)
    _check_responsible_person(db, changes.get("responsible_person_id"))
    for field in _UPDATABLE_FIELDS:
        if field in changes and changes[field] is not None:
            setattr(asset, field, changes[field])
    if changes.get("attachment"):
        asset.attachment = attachment_descriptor(changes["attachment"])
    _validate_amounts(asset.purchase_price, asset.depreciation_rate_annual)
    _apply_expense_columns(asset)
    db.add(asset)
    flush_with_version_check(db, asset)
    return asset


def record_depreciation(db: Session, asset: Asset, *, actor: User, as_of: Optional[date] = None) -> AssetDepreciation:
    """Persist a depreciation snapshot; one row per asset per date."""
    rbac.require(actor, "assets", rbac.UPDATE)
    snapshot = snapshot_for(asset, as_of)
    existing = (
        db.query(AssetDepreciation)
        .filter(AssetDepreciation.asset_id == asset.id, AssetDepreciation.as_of == snapshot.as_of)
        .first()
    )
    if existing is not None:
        raise ConflictError(f"Depreciation for {asset.asset_id} as of {snapshot.as_of} is already recorded")
    entry = AssetDepreciation(
        asset_id=asset.id,
        as_of=snapshot.as_of,
        years_elapsed=snapshot.years_elapsed,
        accumulated_depreciation=snapshot.accumulated_depreciation,
        book_value=snapshot.book_value,
        recorded_by=actor.id,
    )
    db.add(entry)
    db.flush()
    return entry


def monthly_acquisitions(db: Session, *, user: User, year: int, month: int) -> tuple[List[Asset], Decimal]:
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12")
    assets = (
        visible_assets_query(db, user)
        .filter(extract("year", Asset.date_acquired) == year, extract("month", Asset.date_acquired) == month)
        .order_by(Asset.date_acquired.asc(), Asset.id.asc())
        .all()
    )
    total = sum((Decimal(asset.purchase_price) for asset in assets), Decimal("0.00"))
    return assets, _money(total)
