from __future__ import annotations

from officehub.core.security import issue_user_token
from officehub.models.enums import Role


def test_upload_returns_attachment_descriptor(client, acting, staff_user, uploads):
    acting.user = staff_user
    response = client.post(
        "/api/files/upload",
        files={"file": ("receipt.pdf", b"%PDF-1.4 test", "application/pdf")},
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["filename"] == "receipt.pdf"
    assert body["size"] == len(b"%PDF-1.4 test")
    assert body["path"].startswith("uploads/")
    assert body["path"].endswith(".pdf")
    assert (uploads / body["path"].removeprefix("uploads/")).read_bytes() == b"%PDF-1.4 test"


def test_student_cannot_upload(client, acting, make_user, uploads):
    acting.user = make_user(Role.STUDENT)
    response = client.post("/api/files/upload", files={"file": ("a.txt", b"x", "text/plain")})
    assert response.status_code == 403


def test_download_with_query_token(client, admin, uploads):
    (uploads / "minutes.txt").write_text("agenda")
    token = issue_user_token(admin)

    response = client.get("/api/files/download", params={"path": "uploads/minutes.txt", "token": token})
    assert response.status_code == 200
    assert response.content == b"agenda"
    assert "attachment" in response.headers["content-disposition"]

    inline = client.get("/api/files/view", params={"path": "/uploads/minutes.txt", "token": token})
    assert inline.status_code == 200
    assert inline.headers["content-disposition"].startswith("inline")


def test_download_requires_a_valid_token(client, admin, make_user, uploads):
    (uploads / "minutes.txt").write_text("agenda")
    assert client.get("/api/files/download", params={"path": "uploads/minutes.txt"}).status_code == 401
    assert (
        client.get("/api/files/download", params={"path": "uploads/minutes.txt", "token": "garbage"}).status_code
        == 401
    )

    inactive = make_user(Role.STAFF, is_active=False)
    response = client.get(
        "/api/files/download",
        params={"path": "uploads/minutes.txt", "token": issue_user_token(inactive)},
    )
    assert response.status_code == 401


def test_download_rejects_traversal_and_missing_files(client, admin, uploads):
    (uploads.parent / "secret.txt").write_text("nope")
    token = issue_user_token(admin)

    escaped = client.get("/api/files/download", params={"path": "uploads/../secret.txt", "token": token})
    assert escaped.status_code == 403

    missing = client.get("/api/files/download", params={"path": "uploads/ghost.pdf", "token": token})
    assert missing.status_code == 404
    assert missing.json() == {"error": "File not found"}
