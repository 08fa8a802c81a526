from __future__ import annotations

from officehub.models.client import Client
from officehub.models.enums import Role
from officehub.models.notification import NotificationRecipient


def _memo(client, **overrides):
    payload = {
        "client_name": "Globex",
        "participants": "Sam Staff, Hank Scorpio",
        "subject": "Audit scoping",
        "call_date": "2026-03-02",
        "discussion": "Walked through the year-end audit timeline.",
        "service_needed": "Audit",
        "next_visitation_date": "2026-03-16",
    }
    payload.update(overrides)
    return client.post("/api/call-memos", json=payload)


def test_memo_provisions_unknown_client(client, acting, db, admin, staff_user, dept_head, broadcaster):
    acting.user = staff_user
    response = _memo(client)
    assert response.status_code == 201, response.text
    memo = response.json()
    assert memo["created_by"] == staff_user.id
    assert memo["created_by_name"] == "Sam Staff"

    linked = db.get(Client, memo["client_id"])
    assert linked.company_name == "Globex"
    assert linked.user_id is not None
    assert "client_created" in broadcaster.topics()
    assert "call_memo_created" in broadcaster.topics()

    notified = {row.user_id for row in db.query(NotificationRecipient).all()}
    assert notified == {admin.id, dept_head.id}


def test_same_client_name_reuses_client(client, acting, db, staff_user):
    acting.user = staff_user
    first = _memo(client).json()
    second = _memo(client, subject="Follow-up call", call_date="2026-03-20").json()

    assert second["client_id"] == first["client_id"]
    assert db.query(Client).filter(Client.company_name == "Globex").count() == 1

    listing = client.get("/api/call-memos").json()
    assert [item["subject"] for item in listing] == ["Follow-up call", "Audit scoping"]
    filtered = client.get("/api/call-memos", params={"search": "follow"}).json()
    assert [item["id"] for item in filtered] == [second["id"]]


def test_explicit_client_id_must_exist(client, acting, staff_user):
    acting.user = staff_user
    response = _memo(client, client_id=9999)
    assert response.status_code == 400
    assert response.json()["error"] == "Client not found"

    assert _memo(client, client_name="   ").status_code == 400


def test_only_author_or_admin_changes_a_memo(client, acting, admin, staff_user, make_user):
    acting.user = staff_user
    memo = _memo(client).json()

    colleague = make_user(Role.STAFF, email="colleague@example.com", department_id=staff_user.department_id)
    acting.user = colleague
    assert client.get(f"/api/call-memos/{memo['id']}").status_code == 200
    response = client.put(f"/api/call-memos/{memo['id']}", json={"subject": "Hijacked"})
    assert response.status_code == 403
    assert response.json()["error"] == "You can only update your own call memos"
    assert client.delete(f"/api/call-memos/{memo['id']}").status_code == 403

    acting.user = staff_user
    response = client.put(
        f"/api/call-memos/{memo['id']}",
        json={"client_name": "Initech", "department_needed": "Audit"},
    )
    assert response.status_code == 200, response.text
    assert response.json()["client_name"] == "Initech"
    assert response.json()["client_id"] != memo["client_id"]
    assert response.json()["department_needed"] == "Audit"

    acting.user = admin
    assert client.delete(f"/api/call-memos/{memo['id']}").status_code == 200
    assert client.get(f"/api/call-memos/{memo['id']}").status_code == 404


def test_clients_cannot_read_memos(client, acting, make_user):
    acting.user = make_user(Role.CLIENT)
    assert client.get("/api/call-memos").status_code == 403
