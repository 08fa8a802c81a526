from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from officehub.core.deps import get_broadcaster, get_current_user
from officehub.core.settings import settings
from officehub.db.base import Base
from officehub.db.session import get_db
from officehub.main import app
from officehub.models.department import Department
from officehub.models.enums import Role
from officehub.models.user import User
from officehub.realtime.broadcaster import RecordingBroadcaster


class ActingUser:
    """Stand-in for ``get_current_user``; tests switch ``user`` to change the caller."""

    def __init__(self, user: User) -> None:
        self.user = user

    def __call__(self) -> User:
        return self.user


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def db(engine):
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def make_user(db):
    counter = {"n": 0}

    def _make_user(
        role: Role = Role.STAFF,
        *,
        email: str | None = None,
        full_name: str | None = None,
        department_id: int | None = None,
        is_active: bool = True,
    ) -> User:
        counter["n"] += 1
        user = User(
            email=email or f"{role.value.lower()}{counter['n']}@example.com",
            hashed_password="not-used",
            full_name=full_name or f"{role.value} {counter['n']}",
            role=role,
            department_id=department_id,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def admin(make_user) -> User:
    return make_user(Role.ADMIN, email="admin@example.com", full_name="Admin")


@pytest.fixture()
def department(db) -> Department:
    department = Department(name="Finance", description="Books and cash")
    db.add(department)
    db.commit()
    db.refresh(department)
    return department


@pytest.fixture()
def dept_head(db, make_user, department) -> User:
    head = make_user(Role.DEPARTMENT_HEAD, email="head@example.com", full_name="Dana Head", department_id=department.id)
    department.manager_id = head.id
    db.add(department)
    db.commit()
    return head


@pytest.fixture()
def staff_user(make_user, department) -> User:
    return make_user(Role.STAFF, email="staff@example.com", full_name="Sam Staff", department_id=department.id)


@pytest.fixture()
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest.fixture()
def acting(admin) -> ActingUser:
    return ActingUser(admin)


@pytest.fixture()
def client(db, acting, broadcaster):
    def override_get_db():
        try:
            yield db
        except Exception:
            db.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = acting
    app.dependency_overrides[get_broadcaster] = lambda: broadcaster

    client_instance = TestClient(app)
    try:
        yield client_instance
    finally:
        client_instance.close()
        app.dependency_overrides.clear()


@pytest.fixture()
def uploads(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "uploads_dir", str(tmp_path))
    return tmp_path
