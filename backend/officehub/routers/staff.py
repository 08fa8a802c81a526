from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from officehub.core.deps import get_current_user
from officehub.db.session import get_db
from officehub.models.enums import EmploymentType
from officehub.models.user import User
from officehub.schemas.base import MessageResponse
from officehub.schemas.staff import StaffCreate, StaffRead, StaffUpdate
from officehub.services import staff as staff_service

router = APIRouter(prefix="/api/staff", tags=["staff"])


@router.get("", response_model=List[StaffRead])
def list_staff(
    department_id: Optional[int] = Query(None),
    employment_type: Optional[EmploymentType] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[StaffRead]:
    members = staff_service.list_staff(
        db,
        user=current_user,
        department_id=department_id,
        employment_type=employment_type,
        search=search,
    )
    return [StaffRead.model_validate(member) for member in members]


@router.get("/{staff_pk}", response_model=StaffRead)
def get_staff(
    staff_pk: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> StaffRead:
    return StaffRead.model_validate(staff_service.get_staff(db, staff_pk=staff_pk, user=current_user))


@router.post("", response_model=StaffRead, status_code=status.HTTP_201_CREATED)
def create_staff(
    staff_in: StaffCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> StaffRead:
    member = staff_service.create_staff(db, actor=current_user, data=staff_in.model_dump())
    db.commit()
    db.refresh(member)
    return StaffRead.model_validate(member)


@router.put("/{staff_pk}", response_model=StaffRead)
def update_staff(
    staff_pk: int,
    staff_update: StaffUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> StaffRead:
    member = staff_service.get_staff(db, staff_pk=staff_pk, user=current_user)
    member = staff_service.update_staff(
        db,
        member,
        actor=current_user,
        changes=staff_update.model_dump(exclude_unset=True),
    )
    db.commit()
    db.refresh(member)
    return StaffRead.model_validate(member)


@router.delete("/{staff_pk}", response_model=MessageResponse)
def delete_staff(
    staff_pk: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    member = staff_service.get_staff(db, staff_pk=staff_pk, user=current_user)
    staff_service.delete_staff(db, member, actor=current_user)
    db.commit()
    return MessageResponse(message="Staff member deleted")
