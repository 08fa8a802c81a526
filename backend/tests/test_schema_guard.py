from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from officehub.core.deps import get_broadcaster, get_current_user
from officehub.db.session import get_db
from officehub.main import app
from officehub.realtime.broadcaster import RecordingBroadcaster


@pytest.fixture()
def bare_client(admin):
    """A client whose database has no tables at all."""
    bare_engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    session = sessionmaker(bind=bare_engine, autoflush=False, expire_on_commit=False)()

    def override_get_db():
        try:
            yield session
        except Exception:
            session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: admin
    app.dependency_overrides[get_broadcaster] = RecordingBroadcaster
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        session.close()
        bare_engine.dispose()


def test_reads_degrade_to_empty_list(bare_client):
    response = bare_client.get("/api/clients")
    assert response.status_code == 200
    assert response.json() == []


def test_writes_report_uninitialized_database(bare_client):
    response = bare_client.post("/api/departments", json={"name": "Ops"})
    assert response.status_code == 500
    assert response.json() == {
        "error": "Database not fully initialized",
        "details": "Run the database migrations and retry the request.",
    }


def test_health_endpoints(client):
    assert client.get("/healthz").json() == {"status": "ok"}
    assert client.get("/version").json()["version"]
