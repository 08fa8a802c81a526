from __future__ import annotations

import re
from datetime import date
from decimal import Decimal

from officehub.models.department import Department
from officehub.models.enums import Role
from officehub.models.progress import Target
from officehub.models.staff import Staff
from officehub.models.user import User
from officehub.services import ledgers


# -- users --------------------------------------------------------------------


def test_admin_manages_users(client, acting, admin):
    acting.user = admin
    response = client.post(
        "/api/users",
        json={"email": "New.Hire@Example.com", "full_name": "New Hire", "role": "Instructor", "password": "secret1"},
    )
    assert response.status_code == 201, response.text
    created = response.json()
    assert created["email"] == "new.hire@example.com"
    assert created["role"] == "Instructor"

    duplicate = client.post("/api/users", json={"email": "new.hire@example.com", "full_name": "Again"})
    assert duplicate.status_code == 409

    short = client.put(f"/api/users/{created['id']}/password", json={"password": "123"})
    assert short.status_code == 400
    reset = client.put(f"/api/users/{created['id']}/password", json={"password": "longer-secret"})
    assert reset.status_code == 200

    listed = client.get("/api/users", params={"role": "Instructor"}).json()
    assert [item["id"] for item in listed] == [created["id"]]


def test_non_admin_cannot_manage_users(client, acting, staff_user, admin):
    acting.user = staff_user
    assert client.get("/api/users").status_code == 403
    assert client.post("/api/users", json={"email": "x@example.com", "full_name": "X"}).status_code == 403
    assert client.get(f"/api/users/{staff_user.id}").status_code == 200
    assert client.get(f"/api/users/{admin.id}").status_code == 403


def test_last_admin_is_protected(client, acting, admin):
    acting.user = admin
    response = client.put(f"/api/users/{admin.id}", json={"role": "Staff"})
    assert response.status_code == 409
    assert client.delete(f"/api/users/{admin.id}").status_code == 403


def test_delete_guards(client, acting, db, admin, staff_user, make_user):
    db.add(Target(user_id=staff_user.id, target_amount=Decimal("100.00"), period_start=date(2026, 1, 1)))
    db.commit()

    acting.user = admin
    response = client.delete(f"/api/users/{staff_user.id}")
    assert response.status_code == 409
    assert "active targets" in response.json()["error"]

    bookkeeper = make_user(Role.STAFF, email="books@example.com", department_id=staff_user.department_id)
    ledgers.create_ledger(db, actor=bookkeeper, year=2026, month=1)
    db.commit()
    response = client.delete(f"/api/users/{bookkeeper.id}")
    assert response.status_code == 409
    assert response.json()["details"] == "Deactivate the account instead"

    spare = make_user(Role.STUDENT, email="student@example.com")
    assert client.delete(f"/api/users/{spare.id}").status_code == 200
    assert db.get(User, spare.id) is None


# -- departments ----------------------------------------------------------------


def test_department_with_head_provisioning(client, acting, db, admin):
    acting.user = admin
    response = client.post(
        "/api/departments",
        json={
            "name": "Operations",
            "head": {"full_name": "Olu Ops", "email": "ops.head@example.com", "password": "secret1"},
        },
    )
    assert response.status_code == 201, response.text
    body = response.json()
    head = db.get(User, body["manager_id"])
    assert head.role == Role.DEPARTMENT_HEAD
    assert head.department_id == body["id"]

    duplicate = client.post("/api/departments", json={"name": "Operations"})
    assert duplicate.status_code == 409


def test_manager_must_be_department_head(client, acting, admin, staff_user):
    acting.user = admin
    response = client.post("/api/departments", json={"name": "Legal", "manager_id": staff_user.id})
    assert response.status_code == 400


def test_department_delete_refuses_attached_staff(client, acting, db, admin, department):
    acting.user = admin
    db.add(Staff(staff_id="STF-00000001", user_id=admin.id, department_id=department.id))
    db.commit()

    assert client.delete(f"/api/departments/{department.id}").status_code == 409

    empty = client.post("/api/departments", json={"name": "Empty"}).json()
    assert client.delete(f"/api/departments/{empty['id']}").status_code == 200
    assert db.get(Department, empty["id"]) is None


# -- staff ----------------------------------------------------------------------


def _hire(client, **overrides):
    payload = {"full_name": "Pat Payroll", "email": "pat@example.com", "position": "Clerk"}
    payload.update(overrides)
    return client.post("/api/staff", json=payload)


def test_staff_creation_and_scoping(client, acting, db, admin, department, dept_head, make_user):
    acting.user = dept_head
    response = _hire(client)
    assert response.status_code == 201, response.text
    hired = response.json()
    assert re.match(r"^STF-\d{8}$", hired["staff_id"])
    assert hired["department_id"] == department.id
    assert hired["employment_type"] == "Full-time"
    assert hired["user"]["role"] == "Staff"

    other = Department(name="Other")
    db.add(other)
    db.commit()
    assert _hire(client, email="elsewhere@example.com", department_id=other.id).status_code == 403

    acting.user = admin
    outside = _hire(client, email="outside@example.com", department_id=other.id, employment_type="Internship").json()

    acting.user = dept_head
    visible = [item["id"] for item in client.get("/api/staff").json()]
    assert visible == [hired["id"]]
    assert client.get(f"/api/staff/{outside['id']}").status_code == 403

    acting.user = db.get(User, hired["user_id"])
    assert [item["id"] for item in client.get("/api/staff").json()] == [hired["id"]]
    assert _hire(client, email="nope@example.com").status_code == 403

    acting.user = make_user(Role.STUDENT)
    assert client.get("/api/staff").status_code == 403


def test_staff_update_and_delete(client, acting, db, admin):
    acting.user = admin
    hired = _hire(client).json()

    response = client.put(f"/api/staff/{hired['id']}", json={"full_name": "Pat Lead", "position": "Lead"})
    assert response.status_code == 200, response.text
    assert response.json()["position"] == "Lead"
    assert response.json()["user"]["full_name"] == "Pat Lead"

    assert client.delete(f"/api/staff/{hired['id']}").status_code == 200
    assert db.get(Staff, hired["id"]) is None
    assert db.get(User, hired["user_id"]).is_active is False


# -- partners -------------------------------------------------------------------


def test_partner_lifecycle(client, acting, db, admin, staff_user):
    acting.user = admin
    response = client.post(
        "/api/partners",
        json={"name": "Northwind", "email": "hello@northwind.example", "partner_type": "Vendor"},
    )
    assert response.status_code == 201, response.text
    partner = response.json()
    assert re.match(r"^PTR-\d{8}$", partner["partner_id"])
    login = db.get(User, partner["user_id"])
    assert login.role == Role.PARTNER

    second = client.post("/api/partners", json={"name": "Contoso", "email": "hi@contoso.example"}).json()

    acting.user = login
    assert [item["id"] for item in client.get("/api/partners").json()] == [partner["id"]]
    assert client.get(f"/api/partners/{second['id']}").status_code == 403

    acting.user = staff_user
    assert len(client.get("/api/partners").json()) == 2
    assert client.post("/api/partners", json={"name": "X", "email": "x@x.example"}).status_code == 403

    acting.user = admin
    assert client.delete(f"/api/partners/{partner['id']}").status_code == 200
    assert db.get(User, partner["user_id"]) is None
