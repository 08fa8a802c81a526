from __future__ import annotations

from officehub.core.security import (
    create_access_token,
    decode_token,
    get_password_hash,
    issue_user_token,
    token_subject,
    verify_password,
)
from officehub.models.enums import Role


def _with_password(db, user, password: str):
    user.hashed_password = get_password_hash(password)
    db.add(user)
    db.commit()
    return user


def test_password_hashing_round_trip():
    hashed = get_password_hash("secret1")
    assert hashed != "secret1"
    assert verify_password("secret1", hashed)
    assert not verify_password("secret2", hashed)


def test_token_carries_subject():
    token = create_access_token({"sub": "42", "role": "Admin"})
    payload = decode_token(token)
    assert payload["sub"] == "42"
    assert payload["role"] == "Admin"
    assert "exp" in payload


def test_login_returns_token_user_and_capabilities(client, db, staff_user):
    _with_password(db, staff_user, "secret1")
    response = client.post("/api/auth/login", data={"username": " Staff@Example.com ", "password": "secret1"})
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["id"] == staff_user.id
    assert body["user"]["last_login_at"] is not None
    assert body["capabilities"]["staff"] == ["read"]
    assert decode_token(body["access_token"])["sub"] == str(staff_user.id)


def test_login_failures(client, db, make_user):
    user = _with_password(db, make_user(Role.STAFF, email="quiet@example.com", is_active=False), "secret1")

    wrong = client.post("/api/auth/login", data={"username": "quiet@example.com", "password": "nope"})
    assert wrong.status_code == 400
    assert wrong.json() == {"error": "Incorrect email or password"}

    unknown = client.post("/api/auth/login", data={"username": "who@example.com", "password": "secret1"})
    assert unknown.status_code == 400

    inactive = client.post("/api/auth/login", data={"username": user.email, "password": "secret1"})
    assert inactive.status_code == 400
    assert inactive.json() == {"error": "User is inactive"}


def test_me_and_capabilities(client, acting, dept_head):
    acting.user = dept_head
    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["email"] == "head@example.com"

    capabilities = client.get("/api/auth/capabilities").json()
    assert capabilities["role"] == "DepartmentHead"
    assert capabilities["capabilities"]["petty_cash"] == ["approve", "create", "read", "update"]
    assert "users" in capabilities["capabilities"]


def test_token_subject_rejects_bad_tokens(admin):
    assert token_subject(issue_user_token(admin)) == admin.id
    assert token_subject("not-a-jwt") is None
    assert token_subject(create_access_token({"role": "Admin"})) is None
    assert not verify_password("anything", "not-used")
