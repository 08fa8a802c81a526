from __future__ import annotations

from types import SimpleNamespace

import pytest

from officehub.core import rbac
from officehub.core.errors import ForbiddenError
from officehub.models.enums import Role


def _user(role):
    return SimpleNamespace(role=role)


@pytest.mark.parametrize(
    "role, resource, action, allowed",
    [
        (Role.ADMIN, "users", rbac.DELETE, True),
        (Role.ADMIN, "progress_reports", rbac.APPROVE, True),
        (Role.DEPARTMENT_HEAD, "petty_cash", rbac.APPROVE, True),
        (Role.DEPARTMENT_HEAD, "staff", rbac.DELETE, False),
        (Role.DEPARTMENT_HEAD, "progress_reports", rbac.APPROVE, False),
        (Role.STAFF, "petty_cash", rbac.APPROVE, False),
        (Role.STAFF, "users", rbac.READ, False),
        (Role.CLIENT, "clients", rbac.READ, True),
        (Role.CLIENT, "clients", rbac.CREATE, False),
        (Role.PARTNER, "staff", rbac.READ, False),
        (Role.STUDENT, "files", rbac.CREATE, False),
        (Role.STAFF, "call_memos", rbac.CREATE, True),
        (Role.CLIENT, "call_memos", rbac.READ, False),
    ],
)
def test_capability_table(role, resource, action, allowed):
    assert rbac.can(_user(role), resource, action) is allowed


def test_unknown_role_has_no_capabilities():
    assert rbac.allowed_actions("Janitor", "files") == frozenset()
    assert rbac.get_capabilities_for_user(_user(None)) == {}
    assert rbac.can(_user("Admin"), "users", rbac.READ)


def test_require_raises_forbidden():
    with pytest.raises(ForbiddenError) as excinfo:
        rbac.require(_user(Role.STAFF), "petty_cash", rbac.APPROVE)
    assert excinfo.value.message == "Access denied: cannot approve petty cash"

    with pytest.raises(ForbiddenError):
        rbac.require_roles(_user(Role.STAFF), [Role.ADMIN, Role.DEPARTMENT_HEAD])
    rbac.require_roles(_user(Role.ADMIN), [Role.ADMIN])


def test_role_addressing():
    assert rbac.can_address_role(_user(Role.ADMIN), Role.STUDENT)
    assert rbac.can_address_role(_user(Role.STAFF), Role.DEPARTMENT_HEAD)
    assert not rbac.can_address_role(_user(Role.STAFF), Role.CLIENT)
    assert not rbac.can_address_role(_user(Role.DEPARTMENT_HEAD), Role.INSTRUCTOR)
    assert not rbac.can_address_role(_user(Role.INSTRUCTOR), Role.STAFF)
