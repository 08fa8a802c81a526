from __future__ import annotations

from typing import Dict, List

from officehub.schemas.base import ORMModel
from officehub.schemas.user import UserRead


class LoginResponse(ORMModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead
    capabilities: Dict[str, List[str]]


class CapabilityResponse(ORMModel):
    role: str
    capabilities: Dict[str, List[str]]
