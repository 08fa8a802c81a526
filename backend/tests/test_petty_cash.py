from __future__ import annotations

from officehub.models.enums import ApprovalStatus, Role, StageStatus
from officehub.models.staff import Staff
from officehub.services.approvals import derive_approval_status


def _open_ledger(client, **overrides):
    payload = {"year": 2026, "month": 3, "starting_balance": "100.00", "custodian": "Front desk"}
    payload.update(overrides)
    response = client.post("/api/finance/petty-cash", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def _add_line(client, ledger_id, **amounts):
    payload = {"transaction_date": "2026-03-05", "description": "Office supplies"}
    payload.update(amounts)
    return client.post(f"/api/finance/petty-cash/{ledger_id}/transactions", json=payload)


def test_running_balance_and_totals(client, acting, staff_user):
    acting.user = staff_user
    ledger = _open_ledger(client)
    assert ledger["slip_number"] == "PC-2026-03-001"
    assert ledger["department_id"] == staff_user.department_id
    assert ledger["approval_status"] == ApprovalStatus.PENDING_DEPT_HEAD.value

    first = _add_line(client, ledger["id"], deposit="50.00")
    assert first.status_code == 201, first.text
    assert float(first.json()["balance"]) == 150.0

    second = _add_line(client, ledger["id"], withdrawal="30.00", description="Courier")
    assert second.status_code == 201, second.text
    assert float(second.json()["balance"]) == 120.0
    assert second.json()["sequence"] == 2

    detail = client.get(f"/api/finance/petty-cash/{ledger['id']}").json()
    assert float(detail["total_deposits"]) == 50.0
    assert float(detail["total_withdrawals"]) == 30.0
    assert float(detail["closing_balance"]) == 120.0
    assert [line["sequence"] for line in detail["transactions"]] == [1, 2]


def test_transaction_needs_exactly_one_amount(client, acting, staff_user):
    acting.user = staff_user
    ledger = _open_ledger(client)

    both = _add_line(client, ledger["id"], deposit="10.00", withdrawal="5.00")
    assert both.status_code == 400
    neither = _add_line(client, ledger["id"])
    assert neither.status_code == 400
    assert "deposit or a withdrawal" in neither.json()["error"]


def test_duplicate_period_conflicts(client, acting, staff_user):
    acting.user = staff_user
    _open_ledger(client)
    response = client.post("/api/finance/petty-cash", json={"year": 2026, "month": 3})
    assert response.status_code == 409


def test_two_stage_approval_locks_ledger(client, acting, staff_user, dept_head, admin, broadcaster):
    acting.user = staff_user
    ledger = _open_ledger(client)
    _add_line(client, ledger["id"], deposit="50.00")

    acting.user = dept_head
    response = client.post(f"/api/finance/petty-cash/{ledger['id']}/approve", json={"approved": True})
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["approval_status"] == ApprovalStatus.PENDING_ADMIN.value
    assert body["dept_head_status"] == StageStatus.APPROVED.value
    assert body["dept_head_approved_by"] == dept_head.id
    assert body["locked"] is False

    notified = broadcaster.for_topic("notification")
    assert notified and notified[-1].user_ids == [admin.id]

    acting.user = admin
    response = client.post(f"/api/finance/petty-cash/{ledger['id']}/approve", json={"approved": True})
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["approval_status"] == ApprovalStatus.APPROVED.value
    assert body["locked"] is True
    assert body["date_signed"] is not None
    assert body["admin_approved_by"] == admin.id

    # creator and approving department head hear about the final decision
    assert set(broadcaster.for_topic("notification")[-1].user_ids) == {staff_user.id, dept_head.id}

    acting.user = staff_user
    before = client.get(f"/api/finance/petty-cash/{ledger['id']}").json()
    locked = _add_line(client, ledger["id"], deposit="1.00")
    assert locked.status_code == 409

    after = client.get(f"/api/finance/petty-cash/{ledger['id']}").json()
    assert after["total_deposits"] == before["total_deposits"]
    assert after["total_withdrawals"] == before["total_withdrawals"]
    assert after["closing_balance"] == before["closing_balance"]
    assert len(after["transactions"]) == len(before["transactions"]) == 1


def test_rejection_is_terminal(client, acting, staff_user, dept_head, admin):
    acting.user = staff_user
    ledger = _open_ledger(client)

    acting.user = dept_head
    response = client.post(
        f"/api/finance/petty-cash/{ledger['id']}/approve",
        json={"approved": False, "reason": "Missing receipts"},
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["approval_status"] == ApprovalStatus.REJECTED.value
    assert body["locked"] is True
    assert body["rejection_reason"] == "Missing receipts"

    acting.user = admin
    response = client.post(f"/api/finance/petty-cash/{ledger['id']}/approve", json={"approved": True})
    assert response.status_code == 409


def test_admin_rejection_keeps_department_head_approval(client, acting, staff_user, dept_head, admin):
    acting.user = staff_user
    ledger = _open_ledger(client)
    _add_line(client, ledger["id"], withdrawal="20.00")

    acting.user = dept_head
    assert client.post(f"/api/finance/petty-cash/{ledger['id']}/approve", json={"approved": True}).status_code == 200

    acting.user = admin
    response = client.post(
        f"/api/finance/petty-cash/{ledger['id']}/approve",
        json={"approved": False, "reason": "Float exceeded"},
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["approval_status"] == ApprovalStatus.REJECTED.value
    assert body["admin_status"] == StageStatus.REJECTED.value
    assert body["dept_head_status"] == StageStatus.APPROVED.value
    assert body["dept_head_approved_by"] == dept_head.id
    assert body["locked"] is True
    assert body["rejection_reason"] == "Float exceeded"

    acting.user = staff_user
    assert _add_line(client, ledger["id"], deposit="5.00").status_code == 409


def test_ledger_requires_a_department(client, acting, admin, dept_head):
    acting.user = admin
    response = client.post("/api/finance/petty-cash", json={"year": 2026, "month": 3})
    assert response.status_code == 400
    assert response.json()["error"] == "Department is required"

    ledger = _open_ledger(client, department_id=dept_head.department_id)
    assert ledger["department_id"] == dept_head.department_id

    acting.user = dept_head
    response = client.post(f"/api/finance/petty-cash/{ledger['id']}/approve", json={"approved": True})
    assert response.status_code == 200, response.text
    assert response.json()["approval_status"] == ApprovalStatus.PENDING_ADMIN.value


def test_admin_cannot_skip_department_head_stage(client, acting, staff_user, admin):
    acting.user = staff_user
    ledger = _open_ledger(client)

    acting.user = admin
    response = client.post(f"/api/finance/petty-cash/{ledger['id']}/approve", json={"approved": True})
    assert response.status_code == 403


def test_staff_cannot_approve(client, acting, staff_user):
    acting.user = staff_user
    ledger = _open_ledger(client)
    response = client.post(f"/api/finance/petty-cash/{ledger['id']}/approve", json={"approved": True})
    assert response.status_code == 403


def test_stale_version_conflicts(client, acting, staff_user, dept_head):
    acting.user = staff_user
    ledger = _open_ledger(client)
    assert ledger["version"] == 1
    _add_line(client, ledger["id"], deposit="5.00")

    acting.user = dept_head
    response = client.post(
        f"/api/finance/petty-cash/{ledger['id']}/approve",
        json={"approved": True, "version": 1},
    )
    assert response.status_code == 409

    current = client.get(f"/api/finance/petty-cash/{ledger['id']}").json()
    assert current["approval_status"] == ApprovalStatus.PENDING_DEPT_HEAD.value
    response = client.post(
        f"/api/finance/petty-cash/{ledger['id']}/approve",
        json={"approved": True, "version": current["version"]},
    )
    assert response.status_code == 200


def test_opening_balance_carries_over(client, acting, staff_user):
    acting.user = staff_user
    march = _open_ledger(client)
    _add_line(client, march["id"], deposit="20.00")

    april = _open_ledger(client, month=4, starting_balance=None)
    assert float(april["starting_balance"]) == 120.0
    assert april["slip_number"] == "PC-2026-04-001"


def test_other_department_ledger_is_forbidden(client, acting, staff_user, make_user):
    acting.user = staff_user
    ledger = _open_ledger(client)

    outsider = make_user(Role.STAFF, email="outsider@example.com")
    acting.user = outsider
    assert client.get(f"/api/finance/petty-cash/{ledger['id']}").status_code == 403
    assert client.get("/api/finance/petty-cash/9999").status_code == 404


def test_derived_status_table():
    assert derive_approval_status(StageStatus.PENDING, StageStatus.PENDING) == ApprovalStatus.PENDING_DEPT_HEAD
    assert derive_approval_status(StageStatus.APPROVED, StageStatus.PENDING) == ApprovalStatus.PENDING_ADMIN
    assert derive_approval_status(StageStatus.APPROVED, StageStatus.APPROVED) == ApprovalStatus.APPROVED
    assert derive_approval_status(StageStatus.REJECTED, StageStatus.PENDING) == ApprovalStatus.REJECTED
    assert derive_approval_status(StageStatus.APPROVED, StageStatus.REJECTED) == ApprovalStatus.REJECTED


def test_transaction_records_receiver_and_attachment(client, acting, db, staff_user, uploads):
    staff_record = Staff(staff_id="STF-0001", user_id=staff_user.id, department_id=staff_user.department_id)
    db.add(staff_record)
    db.commit()
    (uploads / "receipt-17.pdf").write_bytes(b"%PDF-1.4 receipt")

    acting.user = staff_user
    ledger = _open_ledger(client)
    response = _add_line(
        client,
        ledger["id"],
        withdrawal="12.00",
        received_by_staff_id=staff_record.id,
        attachment={"filename": "receipt-17.pdf", "path": "uploads/receipt-17.pdf"},
    )
    assert response.status_code == 201, response.text
    line = response.json()
    assert line["received_by_staff_id"] == staff_record.id
    assert line["received_by"] == "Sam Staff"
    assert line["attachment"] == {
        "filename": "receipt-17.pdf",
        "size": len(b"%PDF-1.4 receipt"),
        "path": "uploads/receipt-17.pdf",
    }

    missing = _add_line(client, ledger["id"], deposit="1.00", attachment={"filename": "x.pdf", "path": "uploads/x.pdf"})
    assert missing.status_code == 400
    escaped = _add_line(client, ledger["id"], deposit="1.00", attachment={"filename": "p", "path": "../passwd"})
    assert escaped.status_code == 403
    unknown = _add_line(client, ledger["id"], deposit="1.00", received_by_staff_id=9999)
    assert unknown.status_code == 400

    detail = client.get(f"/api/finance/petty-cash/{ledger['id']}").json()
    assert len(detail["transactions"]) == 1
