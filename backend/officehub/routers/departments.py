from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from officehub.core import rbac
from officehub.core.deps import get_current_user
from officehub.db.session import get_db
from officehub.models.user import User
from officehub.schemas.base import MessageResponse
from officehub.schemas.department import DepartmentCreate, DepartmentRead, DepartmentUpdate
from officehub.services import departments as department_service

router = APIRouter(prefix="/api/departments", tags=["departments"])


@router.get("", response_model=List[DepartmentRead])
def list_departments(
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[DepartmentRead]:
    departments = department_service.list_departments(db, actor=current_user, include_inactive=include_inactive)
    return [DepartmentRead.model_validate(department) for department in departments]


@router.get("/{department_id}", response_model=DepartmentRead)
def get_department(
    department_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> DepartmentRead:
    rbac.require(current_user, "departments", rbac.READ)
    return DepartmentRead.model_validate(department_service.get_department(db, department_id))


@router.post("", response_model=DepartmentRead, status_code=status.HTTP_201_CREATED)
def create_department(
    department_in: DepartmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> DepartmentRead:
    department = department_service.create_department(
        db,
        actor=current_user,
        name=department_in.name,
        description=department_in.description,
        manager_id=department_in.manager_id,
        head=department_in.head.model_dump() if department_in.head else None,
    )
    db.commit()
    db.refresh(department)
    return DepartmentRead.model_validate(department)


@router.put("/{department_id}", response_model=DepartmentRead)
def update_department(
    department_id: int,
    department_update: DepartmentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> DepartmentRead:
    department = department_service.get_department(db, department_id)
    department = department_service.update_department(
        db,
        department,
        actor=current_user,
        changes=department_update.model_dump(exclude_unset=True),
    )
    db.commit()
    db.refresh(department)
    return DepartmentRead.model_validate(department)


@router.delete("/{department_id}", response_model=MessageResponse)
def delete_department(
    department_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    department = department_service.get_department(db, department_id)
    department_service.delete_department(db, department, actor=current_user)
    db.commit()
    return MessageResponse(message="Department deleted")
