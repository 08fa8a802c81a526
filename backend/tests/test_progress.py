from __future__ import annotations

from officehub.models.client import Client
from officehub.models.enums import ProgressStatus, Role
from officehub.models.progress import TargetProgress


def _assign_target(client, acting, admin, user, amount="1000.00"):
    acting.user = admin
    response = client.post(
        "/api/targets",
        json={"user_id": user.id, "target_amount": amount, "period_start": "2026-01-01"},
    )
    assert response.status_code == 201, response.text
    return response.json()


def _report(client, **overrides):
    payload = {
        "name": "Globex",
        "category": "Client for Consultancy",
        "status": "Signed Contract",
        "amount": "400.00",
        "report_date": "2026-02-10",
    }
    payload.update(overrides)
    return client.post("/api/progress-reports", json=payload)


def test_report_links_client_and_records_progress(client, acting, db, admin, staff_user, broadcaster):
    target = _assign_target(client, acting, admin, staff_user)

    acting.user = staff_user
    response = _report(client)
    assert response.status_code == 201, response.text
    report = response.json()
    assert report["department_id"] == staff_user.department_id

    linked = db.get(Client, report["client_id"])
    assert linked.company_name == "Globex"
    assert linked.category == "consultancy"
    assert linked.progress_status == "signed contract"

    entry = db.query(TargetProgress).filter(TargetProgress.progress_report_id == report["id"]).one()
    assert entry.status == ProgressStatus.PENDING
    assert entry.target_id == target["id"]
    assert broadcaster.topics() == ["client_created", "target_progress_updated", "progress_report_created"]

    summary = client.get(f"/api/targets/{target['id']}").json()
    assert float(summary["pending_amount"]) == 400.0
    assert float(summary["achieved_amount"]) == 0.0


def test_same_client_name_reuses_client(client, acting, staff_user, broadcaster):
    acting.user = staff_user
    first = _report(client).json()
    broadcaster.clear()
    second = _report(client, status="Pipeline Client").json()

    assert second["client_id"] == first["client_id"]
    assert "client_created" not in broadcaster.topics()


def test_admin_approval_counts_toward_target(client, acting, db, admin, staff_user):
    target = _assign_target(client, acting, admin, staff_user)
    acting.user = staff_user
    report = _report(client).json()

    acting.user = admin
    response = client.put(f"/api/progress-reports/{report['id']}/approve", json={"status": "Approved"})
    assert response.status_code == 200, response.text
    assert response.json()["status"] == "Approved"

    entry = db.query(TargetProgress).filter(TargetProgress.progress_report_id == report["id"]).one()
    assert entry.status == ProgressStatus.APPROVED

    summary = client.get(f"/api/targets/{target['id']}").json()
    assert float(summary["achieved_amount"]) == 400.0
    assert float(summary["remaining"]) == 600.0
    assert summary["percent"] == 40.0

    again = client.put(f"/api/progress-reports/{report['id']}/approve", json={"status": "Rejected"})
    assert again.status_code == 409

    acting.user = staff_user
    edit = client.put(f"/api/progress-reports/{report['id']}", json={"amount": "500.00"})
    assert edit.status_code == 403


def test_decided_report_cannot_be_deleted_by_its_author(client, acting, db, admin, staff_user):
    target = _assign_target(client, acting, admin, staff_user)
    acting.user = staff_user
    pending = _report(client, name="Initech").json()
    decided = _report(client).json()

    acting.user = admin
    assert client.put(f"/api/progress-reports/{decided['id']}/approve", json={"status": "Approved"}).status_code == 200

    acting.user = staff_user
    response = client.delete(f"/api/progress-reports/{decided['id']}")
    assert response.status_code == 403
    assert "approved or rejected" in response.json()["error"]
    assert db.query(TargetProgress).filter(TargetProgress.progress_report_id == decided["id"]).count() == 1
    summary = client.get(f"/api/targets/{target['id']}").json()
    assert float(summary["achieved_amount"]) == 400.0

    assert client.delete(f"/api/progress-reports/{pending['id']}").status_code == 200

    acting.user = admin
    assert client.delete(f"/api/progress-reports/{decided['id']}").status_code == 200


def test_rejection_does_not_count(client, acting, db, admin, staff_user):
    target = _assign_target(client, acting, admin, staff_user)
    acting.user = staff_user
    report = _report(client).json()

    acting.user = admin
    response = client.put(f"/api/progress-reports/{report['id']}/approve", json={"status": "Rejected"})
    assert response.status_code == 200

    entry = db.query(TargetProgress).filter(TargetProgress.progress_report_id == report["id"]).one()
    assert entry.status == ProgressStatus.REJECTED
    summary = client.get(f"/api/targets/{target['id']}").json()
    assert float(summary["achieved_amount"]) == 0.0
    assert float(summary["pending_amount"]) == 0.0


def test_only_admin_decides_reports(client, acting, staff_user, dept_head):
    acting.user = staff_user
    report = _report(client).json()

    acting.user = dept_head
    response = client.put(f"/api/progress-reports/{report['id']}/approve", json={"status": "Approved"})
    assert response.status_code == 403


def test_reporters_cannot_self_approve(client, acting, staff_user):
    acting.user = staff_user
    assert _report(client, status="Approved").status_code == 400
    report = _report(client).json()
    response = client.put(f"/api/progress-reports/{report['id']}", json={"status": "Approved"})
    assert response.status_code == 400


def test_non_client_categories_and_zero_amounts(client, acting, db, admin, staff_user):
    _assign_target(client, acting, admin, staff_user)
    acting.user = staff_user

    student = _report(client, name="Evening cohort", category="Student").json()
    assert student["client_id"] is None
    zero = _report(client, name="Initech", amount="0").json()
    assert zero["client_id"] is not None

    assert db.query(TargetProgress).count() == 1


def test_no_active_target_means_no_progress_row(client, acting, db, staff_user):
    acting.user = staff_user
    assert _report(client).status_code == 201
    assert db.query(TargetProgress).count() == 0


def test_report_visibility(client, acting, staff_user, make_user, dept_head):
    acting.user = staff_user
    report = _report(client).json()

    acting.user = make_user(Role.STAFF, email="peer@example.com")
    assert client.get(f"/api/progress-reports/{report['id']}").status_code == 403
    assert client.get("/api/progress-reports").json() == []

    acting.user = dept_head
    assert [item["id"] for item in client.get("/api/progress-reports").json()] == [report["id"]]


def test_target_rules(client, acting, admin, staff_user, dept_head, make_user):
    _assign_target(client, acting, admin, staff_user)

    duplicate = client.post(
        "/api/targets",
        json={"user_id": staff_user.id, "target_amount": "50.00", "period_start": "2026-02-01"},
    )
    assert duplicate.status_code == 409

    outsider = make_user(Role.STAFF, email="elsewhere@example.com")
    acting.user = dept_head
    response = client.post(
        "/api/targets",
        json={"user_id": outsider.id, "target_amount": "50.00", "period_start": "2026-02-01"},
    )
    assert response.status_code == 403

    acting.user = staff_user
    response = client.post(
        "/api/targets",
        json={"user_id": staff_user.id, "target_amount": "50.00", "period_start": "2026-02-01"},
    )
    assert response.status_code == 403

    acting.user = admin
    backwards = client.post(
        "/api/targets",
        json={
            "user_id": outsider.id,
            "target_amount": "50.00",
            "period_start": "2026-02-01",
            "period_end": "2026-01-01",
        },
    )
    assert backwards.status_code == 400


def test_progress_entry_decision(client, acting, admin, staff_user, broadcaster):
    target = _assign_target(client, acting, admin, staff_user)
    acting.user = staff_user
    _report(client)

    entries = client.get(f"/api/targets/{target['id']}/progress").json()
    assert len(entries) == 1

    response = client.put(f"/api/targets/progress/{entries[0]['id']}/approve", json={"status": "Approved"})
    assert response.status_code == 403

    acting.user = admin
    broadcaster.clear()
    response = client.put(f"/api/targets/progress/{entries[0]['id']}/approve", json={"status": "Approved"})
    assert response.status_code == 200, response.text
    assert response.json()["status"] == "Approved"
    assert broadcaster.topics() == ["target_progress_updated"]
    assert float(broadcaster.events[0].payload["achieved_amount"]) == 400.0
