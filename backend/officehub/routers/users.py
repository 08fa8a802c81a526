from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from officehub.core import rbac
from officehub.core.deps import get_current_user
from officehub.db.session import get_db
from officehub.models.enums import Role
from officehub.models.user import User
from officehub.schemas.base import MessageResponse
from officehub.schemas.user import ResetPasswordPayload, UserCreate, UserRead, UserUpdate
from officehub.services import users as user_service

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=List[UserRead])
def list_users(
    role: Optional[Role] = Query(None),
    department_id: Optional[int] = Query(None),
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[UserRead]:
    users = user_service.list_users(
        db,
        actor=current_user,
        role=role,
        department_id=department_id,
        is_active=is_active,
        search=search,
    )
    return [UserRead.model_validate(user) for user in users]


@router.get("/{user_id}", response_model=UserRead)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UserRead:
    if user_id != current_user.id:
        rbac.require(current_user, "users", rbac.READ)
    return UserRead.model_validate(user_service.get_user(db, user_id))


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(
    user_in: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UserRead:
    user = user_service.create_user(
        db,
        actor=current_user,
        email=user_in.email,
        full_name=user_in.full_name,
        role=user_in.role,
        password=user_in.password,
        phone=user_in.phone,
        department_id=user_in.department_id,
        is_active=user_in.is_active,
    )
    db.commit()
    db.refresh(user)
    return UserRead.model_validate(user)


@router.put("/{user_id}", response_model=UserRead)
def update_user(
    user_id: int,
    user_update: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UserRead:
    user = user_service.get_user(db, user_id)
    user = user_service.update_user(
        db,
        user,
        actor=current_user,
        changes=user_update.model_dump(exclude_unset=True),
    )
    db.commit()
    db.refresh(user)
    return UserRead.model_validate(user)


@router.put("/{user_id}/password", response_model=MessageResponse)
def reset_password(
    user_id: int,
    payload: ResetPasswordPayload,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    user = user_service.get_user(db, user_id)
    user_service.reset_password(db, user, actor=current_user, new_password=payload.password)
    db.commit()
    return MessageResponse(message="Password updated")


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    user = user_service.get_user(db, user_id)
    user_service.delete_user(db, user, actor=current_user)
    db.commit()
    return MessageResponse(message="User deleted")
