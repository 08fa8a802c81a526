from __future__ import annotations

import re
from datetime import date
from decimal import Decimal

from officehub.models.enums import ApprovalStatus, Role
from officehub.services.assets import compute_depreciation


def test_straight_line_depreciation_over_two_years():
    snapshot = compute_depreciation(Decimal("1000.00"), Decimal("0.05"), date(2024, 1, 1), date(2025, 12, 31))
    assert snapshot.years_elapsed == 2.0
    assert snapshot.annual_depreciation == Decimal("50.00")
    assert snapshot.accumulated_depreciation == Decimal("100.00")
    assert snapshot.book_value == Decimal("900.00")


def test_fractional_years_are_not_truncated():
    snapshot = compute_depreciation(Decimal("1000.00"), Decimal("0.10"), date(2025, 1, 1), date(2025, 7, 2))
    # 182 days at 100/yr
    assert snapshot.accumulated_depreciation == Decimal("49.86")
    assert 0 < snapshot.years_elapsed < 1


def test_accumulated_depreciation_is_capped_at_price():
    snapshot = compute_depreciation(Decimal("500.00"), Decimal("0.50"), date(2010, 1, 1), date(2026, 1, 1))
    assert snapshot.accumulated_depreciation == Decimal("500.00")
    assert snapshot.book_value == Decimal("0.00")


def test_dates_before_acquisition_count_as_zero():
    snapshot = compute_depreciation(Decimal("800.00"), Decimal("0.05"), date(2026, 6, 1), date(2026, 1, 1))
    assert snapshot.years_elapsed == 0.0
    assert snapshot.accumulated_depreciation == Decimal("0.00")
    assert snapshot.book_value == Decimal("800.00")


def _register(client, **overrides):
    payload = {
        "name": "Laptop",
        "category": "IT",
        "purchase_price": "1000.00",
        "date_acquired": "2024-01-01",
        "location": "HQ",
    }
    payload.update(overrides)
    response = client.post("/api/finance/assets", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_register_asset_defaults(client, acting, staff_user):
    acting.user = staff_user
    asset = _register(client)
    assert re.match(r"^A\d{6}-IT-\d{2}$", asset["asset_id"])
    assert float(asset["depreciation_rate_annual"]) == 0.05
    assert float(asset["depreciation_expense_per_annum"]) == 50.0
    assert float(asset["depreciation_expense_per_month"]) == 4.17
    assert asset["approval_status"] == ApprovalStatus.PENDING_DEPT_HEAD.value
    assert asset["department_id"] == staff_user.department_id


def test_depreciation_endpoint_and_history(client, acting, staff_user):
    acting.user = staff_user
    asset = _register(client)

    response = client.get(f"/api/finance/assets/{asset['id']}/depreciation", params={"as_of": "2025-12-31"})
    assert response.status_code == 200, response.text
    body = response.json()
    assert float(body["accumulated_depreciation"]) == 100.0
    assert float(body["book_value"]) == 900.0

    recorded = client.post(f"/api/finance/assets/{asset['id']}/depreciation", json={"as_of": "2025-12-31"})
    assert recorded.status_code == 201, recorded.text
    duplicate = client.post(f"/api/finance/assets/{asset['id']}/depreciation", json={"as_of": "2025-12-31"})
    assert duplicate.status_code == 409

    history = client.get(f"/api/finance/assets/{asset['id']}/depreciation/history").json()
    assert len(history) == 1
    assert float(history[0]["book_value"]) == 900.0


def test_monthly_sheet_totals(client, acting, staff_user):
    acting.user = staff_user
    _register(client, name="Desk", category="Furniture", purchase_price="250.00", date_acquired="2026-02-03")
    _register(client, name="Chair", category="Furniture", purchase_price="120.50", date_acquired="2026-02-20")
    _register(client, name="Printer", purchase_price="400.00", date_acquired="2026-03-01")

    sheet = client.get("/api/finance/assets/monthly/2026/2").json()
    assert sheet["month_name"] == "February"
    assert [item["name"] for item in sheet["assets"]] == ["Desk", "Chair"]
    assert float(sheet["total_amount"]) == 370.5


def test_asset_filters(client, acting, staff_user):
    acting.user = staff_user
    _register(client, name="Projector", category="AV", location="Room 1")
    _register(client, name="Laptop", category="IT", location="HQ")

    by_category = client.get("/api/finance/assets", params={"category": "AV"}).json()
    assert [item["name"] for item in by_category] == ["Projector"]
    by_search = client.get("/api/finance/assets", params={"search": "lap"}).json()
    assert [item["name"] for item in by_search] == ["Laptop"]


def test_approved_asset_is_locked(client, acting, staff_user, dept_head, admin):
    acting.user = staff_user
    asset = _register(client)

    acting.user = dept_head
    assert client.post(f"/api/finance/assets/{asset['id']}/approve", json={"approved": True}).status_code == 200
    acting.user = admin
    response = client.post(f"/api/finance/assets/{asset['id']}/approve", json={"approved": True})
    assert response.status_code == 200
    assert response.json()["approval_status"] == ApprovalStatus.APPROVED.value
    assert response.json()["locked"] is True

    acting.user = staff_user
    response = client.put(f"/api/finance/assets/{asset['id']}", json={"location": "Warehouse"})
    assert response.status_code == 409
    response = client.post(f"/api/finance/assets/{asset['id']}/approve", json={"approved": False})
    assert response.status_code == 409


def test_asset_requires_a_department(client, acting, admin, department):
    acting.user = admin
    response = client.post(
        "/api/finance/assets",
        json={"name": "Safe", "category": "Security", "purchase_price": "900.00", "date_acquired": "2026-01-05"},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Department is required"

    asset = _register(client, department_id=department.id)
    assert asset["department_id"] == department.id


def test_register_asset_with_register_details(client, acting, staff_user, dept_head, make_user, uploads):
    (uploads / "invoice.pdf").write_bytes(b"invoice")
    acting.user = staff_user
    asset = _register(
        client,
        asset_condition="Excellent",
        warranty_expiry_date="2027-01-01",
        expected_useful_life_years=5,
        responsible_person_id=dept_head.id,
        attachment={"filename": "invoice.pdf", "path": "uploads/invoice.pdf"},
    )
    assert asset["asset_condition"] == "Excellent"
    assert asset["warranty_expiry_date"] == "2027-01-01"
    assert asset["expected_useful_life_years"] == 5
    assert asset["responsible_person_id"] == dept_head.id
    assert asset["attachment"]["size"] == len(b"invoice")

    defaults = _register(client, name="Stapler", category="Office")
    assert defaults["asset_condition"] == "Good"
    assert defaults["attachment"] is None

    response = client.put(f"/api/finance/assets/{defaults['id']}", json={"asset_condition": "Poor"})
    assert response.status_code == 200, response.text
    assert response.json()["asset_condition"] == "Poor"

    retired = make_user(Role.STAFF, email="retired@example.com", is_active=False)
    response = client.put(f"/api/finance/assets/{defaults['id']}", json={"responsible_person_id": retired.id})
    assert response.status_code == 400
    assert response.json()["error"] == "Responsible person must be an active user"
