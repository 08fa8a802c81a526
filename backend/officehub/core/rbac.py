from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, Optional

from officehub.core.errors import ForbiddenError
from officehub.models.enums import Role


READ = "read"
CREATE = "create"
UPDATE = "update"
DELETE = "delete"
APPROVE = "approve"
SEND = "send"
SEND_ROLE = "send_role"
SEND_ANY_ROLE = "send_any_role"
SEND_ALL = "send_all"

_CRUD: FrozenSet[str] = frozenset({READ, CREATE, UPDATE, DELETE})
_READ_ONLY: FrozenSet[str] = frozenset({READ})
_NONE: FrozenSet[str] = frozenset()

# role -> resource -> allowed actions. Row-level scoping (own department,
# own record) is applied by the services on top of this table.
CAPABILITIES: Dict[Role, Dict[str, FrozenSet[str]]] = {
    Role.ADMIN: {
        "users": _CRUD,
        "departments": _CRUD,
        "staff": _CRUD,
        "clients": _CRUD,
        "partners": _CRUD,
        "call_memos": _CRUD,
        "notifications": frozenset({READ, SEND, SEND_ROLE, SEND_ANY_ROLE, SEND_ALL}),
        "petty_cash": frozenset({READ, CREATE, UPDATE, APPROVE}),
        "assets": frozenset({READ, CREATE, UPDATE, APPROVE}),
        "progress_reports": _CRUD | {APPROVE},
        "targets": _CRUD,
        "files": frozenset({READ, CREATE}),
    },
    Role.DEPARTMENT_HEAD: {
        "users": _READ_ONLY,
        "departments": _READ_ONLY,
        "staff": frozenset({READ, CREATE, UPDATE}),
        "clients": _CRUD,
        "call_memos": _CRUD,
        "partners": _READ_ONLY,
        "notifications": frozenset({READ, SEND, SEND_ROLE}),
        "petty_cash": frozenset({READ, CREATE, UPDATE, APPROVE}),
        "assets": frozenset({READ, CREATE, UPDATE, APPROVE}),
        "progress_reports": _CRUD,
        "targets": frozenset({READ, CREATE, UPDATE}),
        "files": frozenset({READ, CREATE}),
    },
    Role.STAFF: {
        "users": _NONE,
        "departments": _READ_ONLY,
        "staff": _READ_ONLY,
        "clients": _CRUD,
        "call_memos": _CRUD,
        "partners": _READ_ONLY,
        "notifications": frozenset({READ, SEND, SEND_ROLE}),
        "petty_cash": frozenset({READ, CREATE, UPDATE}),
        "assets": frozenset({READ, CREATE, UPDATE}),
        "progress_reports": _CRUD,
        "targets": _READ_ONLY,
        "files": frozenset({READ, CREATE}),
    },
    Role.INSTRUCTOR: {
        "departments": _READ_ONLY,
        "notifications": frozenset({READ, SEND}),
        "files": frozenset({READ, CREATE}),
    },
    Role.STUDENT: {
        "notifications": frozenset({READ, SEND}),
        "files": _READ_ONLY,
    },
    Role.CLIENT: {
        "clients": _READ_ONLY,
        "notifications": frozenset({READ, SEND}),
        "files": _READ_ONLY,
    },
    Role.PARTNER: {
        "partners": _READ_ONLY,
        "notifications": frozenset({READ, SEND}),
        "files": _READ_ONLY,
    },
}

# Roles DepartmentHead and Staff may address; Admin may address any role.
STAFF_ADDRESSABLE_ROLES: FrozenSet[Role] = frozenset({Role.ADMIN, Role.DEPARTMENT_HEAD, Role.STAFF})


def _coerce_role(value: Role | str | None) -> Optional[Role]:
    if value is None:
        return None
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value))
    except ValueError:
        return None


def role_for_user(user) -> Optional[Role]:
    return _coerce_role(getattr(user, "role", None))


def allowed_actions(role: Role | str | None, resource: str) -> FrozenSet[str]:
    coerced = _coerce_role(role)
    if coerced is None:
        return _NONE
    return CAPABILITIES.get(coerced, {}).get(resource, _NONE)


def can(user, resource: str, action: str) -> bool:
    return action in allowed_actions(role_for_user(user), resource)


def require(user, resource: str, action: str, *, message: Optional[str] = None) -> None:
    """Raise ForbiddenError unless the user's role grants ``action`` on ``resource``."""
    if not can(user, resource, action):
        raise ForbiddenError(message or f"Access denied: cannot {action} {resource.replace('_', ' ')}")


def get_capabilities_for_user(user) -> Dict[str, list[str]]:
    role = role_for_user(user)
    if role is None:
        return {}
    return {resource: sorted(actions) for resource, actions in CAPABILITIES.get(role, {}).items()}


def user_has_role(user, role: Role) -> bool:
    return role_for_user(user) == role


def user_has_any_role(user, roles: Iterable[Role]) -> bool:
    return role_for_user(user) in set(roles)


def require_roles(user, required_roles: Iterable[Role]) -> None:
    """
    Require that the user has at least one of the specified roles.
    Raises ForbiddenError if user doesn't have required roles.
    """
    required = list(required_roles)
    if not user_has_any_role(user, required):
        role_names = ", ".join(role.value for role in required)
        raise ForbiddenError(f"Access denied. Required roles: {role_names}")


def can_address_role(user, target_role: Role) -> bool:
    if can(user, "notifications", SEND_ANY_ROLE):
        return True
    return can(user, "notifications", SEND_ROLE) and target_role in STAFF_ADDRESSABLE_ROLES
