from __future__ import annotations

import re

from officehub.models.client import Client
from officehub.models.enums import Role
from officehub.models.user import User
from officehub.services.clients import find_or_create_client_by_name


def test_create_client_provisions_login(client, acting, db, staff_user, broadcaster):
    acting.user = staff_user
    response = client.post(
        "/api/clients",
        json={"name": "Jo Ortiz", "company_name": "Ortiz Ltd", "email": "JO@Ortiz.example", "category": "audit"},
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert re.match(r"^CLT-\d{8}-[0-9A-F]{4}$", body["client_id"])
    assert body["created_by"] == staff_user.id

    login = db.get(User, body["user_id"])
    assert login.role == Role.CLIENT
    assert login.email == "jo@ortiz.example"
    assert broadcaster.topics() == ["client_created"]


def test_duplicate_login_email_conflicts(client, acting, staff_user):
    acting.user = staff_user
    response = client.post("/api/clients", json={"name": "Sam", "email": "staff@example.com"})
    assert response.status_code == 409


def test_find_or_create_is_exact_and_idempotent(db, admin):
    first = find_or_create_client_by_name(db, name="Acme Corp", actor=admin)
    again = find_or_create_client_by_name(db, name="  Acme Corp ", actor=admin)
    other = find_or_create_client_by_name(db, name="acme corp", actor=admin)

    assert first.created is True
    assert again.created is False
    assert again.client.id == first.client.id
    assert other.created is True
    assert other.client.id != first.client.id
    assert db.query(Client).count() == 2
    assert first.client.user_id is not None


def test_filters_and_search(client, acting, staff_user):
    acting.user = staff_user
    client.post("/api/clients", json={"name": "Alpha", "category": "audit"})
    client.post("/api/clients", json={"name": "Beta", "category": "consultancy"})

    audit = client.get("/api/clients", params={"category": "audit"}).json()
    assert [item["name"] for item in audit] == ["Alpha"]
    found = client.get("/api/clients", params={"search": "bet"}).json()
    assert [item["name"] for item in found] == ["Beta"]
    active = client.get("/api/clients", params={"status": "Active"}).json()
    assert len(active) == 2


def test_client_caller_sees_only_own_record(client, acting, db, staff_user):
    acting.user = staff_user
    mine = client.post("/api/clients", json={"name": "Mine"}).json()
    theirs = client.post("/api/clients", json={"name": "Theirs"}).json()

    acting.user = db.get(User, mine["user_id"])
    listed = client.get("/api/clients").json()
    assert [item["id"] for item in listed] == [mine["id"]]
    assert client.get(f"/api/clients/{theirs['id']}").status_code == 403
    assert client.post("/api/clients", json={"name": "Nope"}).status_code == 403


def test_update_and_delete_client(client, acting, db, admin):
    acting.user = admin
    created = client.post("/api/clients", json={"name": "Old Name"}).json()

    updated = client.put(f"/api/clients/{created['id']}", json={"name": "New Name", "status": "Inactive"})
    assert updated.status_code == 200
    assert updated.json()["status"] == "Inactive"
    assert db.get(User, created["user_id"]).full_name == "New Name"

    deleted = client.delete(f"/api/clients/{created['id']}")
    assert deleted.status_code == 200
    assert db.get(Client, created["id"]) is None
    assert db.get(User, created["user_id"]) is None
    assert client.get(f"/api/clients/{created['id']}").status_code == 404


def test_consultations(client, acting, staff_user):
    acting.user = staff_user
    created = client.post("/api/clients", json={"name": "Consulted"}).json()

    response = client.post(
        f"/api/clients/{created['id']}/consultations",
        json={"consultation_date": "2026-04-01", "subject": "Kickoff"},
    )
    assert response.status_code == 201, response.text
    assert response.json()["consultant_id"] == staff_user.id

    listed = client.get(f"/api/clients/{created['id']}/consultations").json()
    assert [item["subject"] for item in listed] == ["Kickoff"]
