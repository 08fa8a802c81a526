from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from officehub.core.deps import get_current_user
from officehub.db.session import get_db
from officehub.models.enums import PartnerType, RecordStatus
from officehub.models.user import User
from officehub.schemas.base import MessageResponse
from officehub.schemas.partner import PartnerCreate, PartnerRead, PartnerUpdate
from officehub.services import partners as partner_service

router = APIRouter(prefix="/api/partners", tags=["partners"])


@router.get("", response_model=List[PartnerRead])
def list_partners(
    partner_type: Optional[PartnerType] = Query(None),
    partner_status: Optional[RecordStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[PartnerRead]:
    partners = partner_service.list_partners(
        db,
        user=current_user,
        partner_type=partner_type,
        status=partner_status,
        search=search,
    )
    return [PartnerRead.model_validate(partner) for partner in partners]


@router.get("/{partner_pk}", response_model=PartnerRead)
def get_partner(
    partner_pk: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PartnerRead:
    return PartnerRead.model_validate(partner_service.get_partner(db, partner_pk=partner_pk, user=current_user))


@router.post("", response_model=PartnerRead, status_code=status.HTTP_201_CREATED)
def create_partner(
    partner_in: PartnerCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PartnerRead:
    partner = partner_service.create_partner(db, actor=current_user, data=partner_in.model_dump())
    db.commit()
    db.refresh(partner)
    return PartnerRead.model_validate(partner)


@router.put("/{partner_pk}", response_model=PartnerRead)
def update_partner(
    partner_pk: int,
    partner_update: PartnerUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PartnerRead:
    partner = partner_service.get_partner(db, partner_pk=partner_pk, user=current_user)
    partner = partner_service.update_partner(
        db,
        partner,
        actor=current_user,
        changes=partner_update.model_dump(exclude_unset=True),
    )
    db.commit()
    db.refresh(partner)
    return PartnerRead.model_validate(partner)


@router.delete("/{partner_pk}", response_model=MessageResponse)
def delete_partner(
    partner_pk: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    partner = partner_service.get_partner(db, partner_pk=partner_pk, user=current_user)
    partner_service.delete_partner(db, partner, actor=current_user)
    db.commit()
    return MessageResponse(message="Partner deleted")
