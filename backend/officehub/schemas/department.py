from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from officehub.schemas.base import ORMModel


class DepartmentHeadCreate(ORMModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    email: str
    password: str = Field(..., min_length=6)
    phone: Optional[str] = None


class DepartmentCreate(ORMModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    manager_id: Optional[int] = None
    head: Optional[DepartmentHeadCreate] = None


class DepartmentUpdate(ORMModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    manager_id: Optional[int] = None
    is_active: Optional[bool] = None


class DepartmentRead(ORMModel):
    id: int
    name: str
    description: Optional[str] = None
    manager_id: Optional[int] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
