from __future__ import annotations

import pytest

from officehub.core.errors import ValidationError
from officehub.models.enums import Role
from officehub.models.notification import NotificationRecipient
from officehub.services import notifications as notification_service


def _send(client, **payload):
    body = {"title": "Heads up", "message": "Quarter close on Friday"}
    body.update(payload)
    return client.post("/api/notifications/send", json=body)


def test_role_send_reaches_only_active_users(client, acting, db, admin, staff_user, make_user, broadcaster):
    make_user(Role.ADMIN, email="admin2@example.com")
    make_user(Role.ADMIN, email="admin3@example.com")
    make_user(Role.ADMIN, email="retired@example.com", is_active=False)

    acting.user = staff_user
    response = _send(client, role="Admin")
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["count"] == 3
    assert body["message"] == "Notification sent to 3 user(s)"

    rows = (
        db.query(NotificationRecipient)
        .filter(NotificationRecipient.notification_id == body["notification"]["id"])
        .all()
    )
    assert len(rows) == 3

    pushed = broadcaster.for_topic("notification")
    assert len(pushed) == 1 and len(pushed[0].user_ids) == 3
    assert broadcaster.for_topic("notification_sent")[0].user_ids == [staff_user.id]


def test_user_ids_are_filtered_to_active_users(client, acting, admin, staff_user, make_user):
    inactive = make_user(Role.STAFF, email="gone@example.com", is_active=False)
    acting.user = staff_user
    response = _send(client, user_ids=[admin.id, inactive.id, 9999])
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["count"] == 1
    assert body["requested"] == 3
    assert body["valid"] == 1


def test_addressing_rules(client, acting, staff_user, make_user):
    acting.user = staff_user
    assert _send(client, send_to_all=True).status_code == 403
    assert _send(client, role="Student").status_code == 403
    assert _send(client).status_code == 400
    assert _send(client, role="Admin", user_ids=[1]).status_code == 400
    assert _send(client, title="", role="Admin").status_code == 400

    acting.user = make_user(Role.INSTRUCTOR)
    assert _send(client, role="Staff").status_code == 403


def test_role_with_no_active_members_is_rejected(client, acting, admin):
    acting.user = admin
    response = _send(client, role="Partner")
    assert response.status_code == 400
    assert "No valid active users" in response.json()["error"]


def test_admin_can_send_to_everyone(client, acting, admin, staff_user, dept_head):
    acting.user = admin
    response = _send(client, send_to_all=True)
    assert response.status_code == 201
    assert response.json()["count"] == 3


def test_acknowledge_is_first_write_wins(client, acting, admin, staff_user, broadcaster):
    acting.user = staff_user
    notification_id = _send(client, user_ids=[admin.id]).json()["notification"]["id"]
    broadcaster.clear()

    acting.user = admin
    first = client.put(f"/api/notifications/{notification_id}/acknowledge")
    assert first.status_code == 200, first.text
    assert first.json()["is_acknowledged"] is True
    assert first.json()["is_read"] is True
    second = client.put(f"/api/notifications/{notification_id}/acknowledge")
    assert second.status_code == 200
    assert second.json()["acknowledged_at"] == first.json()["acknowledged_at"]

    acked = broadcaster.for_topic("notification_acknowledged")
    assert len(acked) == 1
    assert acked[0].user_ids == [staff_user.id]
    assert acked[0].payload["acknowledged_by"] == admin.id


def test_non_recipient_cannot_mark_read(client, acting, admin, staff_user, dept_head):
    acting.user = staff_user
    notification_id = _send(client, user_ids=[admin.id]).json()["notification"]["id"]

    acting.user = dept_head
    assert client.put(f"/api/notifications/{notification_id}/read").status_code == 404
    assert client.put("/api/notifications/9999/read").status_code == 404


def test_reply_and_thread(client, acting, admin, staff_user, dept_head):
    acting.user = staff_user
    root_id = _send(client, title="Budget", user_ids=[admin.id]).json()["notification"]["id"]

    acting.user = admin
    reply = client.post(f"/api/notifications/{root_id}/reply", json={"message": "Looks good"})
    assert reply.status_code == 201, reply.text
    assert reply.json()["title"] == "Re: Budget"
    assert reply.json()["parent_id"] == root_id
    assert reply.json()["thread_id"] == root_id

    inbox = client.get("/api/notifications").json()
    assert [item["id"] for item in inbox] == [root_id]
    assert inbox[0]["reply_count"] == 1

    acting.user = staff_user
    assert client.get("/api/notifications/unread-count").json()["count"] == 1
    staff_inbox = client.get("/api/notifications").json()
    assert [item["id"] for item in staff_inbox] == [reply.json()["id"]]
    assert staff_inbox[0]["parent_id"] == root_id
    assert staff_inbox[0]["is_read"] is False
    unread = client.get("/api/notifications", params={"unread_only": True}).json()
    assert len(unread) == 1
    thread = client.get(f"/api/notifications/{reply.json()['id']}/thread")
    assert thread.status_code == 200
    assert thread.json()["root"]["id"] == root_id
    assert [item["message"] for item in thread.json()["replies"]] == ["Looks good"]

    assert client.put("/api/notifications/read-all").json()["updated"] == 1
    assert client.get("/api/notifications/unread-count").json()["count"] == 0

    acting.user = dept_head
    assert client.get(f"/api/notifications/{root_id}/thread").status_code == 403
    assert client.post(f"/api/notifications/{root_id}/reply", json={"message": "me too"}).status_code == 403


def test_cannot_reply_to_a_note_to_self(client, acting, staff_user):
    acting.user = staff_user
    root_id = _send(client, user_ids=[staff_user.id]).json()["notification"]["id"]
    response = client.post(f"/api/notifications/{root_id}/reply", json={"message": "again"})
    assert response.status_code == 400


def test_reply_to_missing_parent(client, acting, staff_user):
    acting.user = staff_user
    assert client.post("/api/notifications/424242/reply", json={"message": "hi"}).status_code == 404


def test_addressable_users_and_roles(client, acting, admin, staff_user, dept_head):
    acting.user = staff_user
    users = client.get("/api/notifications/users").json()
    assert staff_user.id not in [item["id"] for item in users]
    assert {item["id"] for item in users} == {admin.id, dept_head.id}
    roles = client.get("/api/notifications/roles").json()
    assert set(roles) == {"Admin", "DepartmentHead", "Staff"}


def test_service_requires_message(db, admin):
    with pytest.raises(ValidationError):
        notification_service.send_notification(db, sender=admin, title="Hi", message="  ", user_ids=[admin.id])
