from __future__ import annotations

from typing import Callable, Generator, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.auth.tenancy import Principal
from app.auth.utils import create_access_token, hash_password
from app.common.models import Base, Church, Member, User
from app.core.config import settings
from app.core.roles import RoleName
from app.scripts.seed import ensure_roles

# Use in-memory SQLite for tests (faster than Postgres for unit tests)
TEST_DB_URL = "sqlite:///:memory:"
engine = create_engine(
    TEST_DB_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEFAULT_PASSWORD = "secret123"


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh schema per test; SQLite drops everything afterwards."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    """Keep uploaded files inside the test's temp dir."""
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "upload_dir", str(path))
    return path


@pytest.fixture(autouse=True)
def enqueued(monkeypatch) -> list[tuple]:
    """Record rq enqueues instead of talking to Redis."""
    from app.jobs import queue

    calls: list[tuple] = []

    def fake_enqueue(func, *args, **kwargs):
        calls.append((func, args, kwargs))

    monkeypatch.setattr(queue.stats_queue, "enqueue", fake_enqueue)
    return calls


@pytest.fixture(autouse=True)
def current_year(monkeypatch) -> int:
    """Pin the church-local 'current year' used by faith-decision counts."""
    from app.stats import clock

    monkeypatch.setattr(clock, "current_year", lambda: 2026)
    return 2026


@pytest.fixture
def client(db: Session) -> Generator[TestClient, None, None]:
    """Create a test client with dependency overrides."""

    def get_test_db():
        yield db

    from app.common.db import get_db

    app.dependency_overrides[get_db] = get_test_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def roles(db: Session) -> dict[str, int]:
    role_ids = ensure_roles(db)
    db.commit()
    return role_ids


@pytest.fixture
def church_a(db: Session) -> Church:
    church = Church(name="Iglesia Central", address="Calle 50, Panamá", phone="6000-0001")
    db.add(church)
    db.commit()
    db.refresh(church)
    return church


@pytest.fixture
def church_b(db: Session) -> Church:
    church = Church(name="Iglesia del Norte")
    db.add(church)
    db.commit()
    db.refresh(church)
    return church


@pytest.fixture
def make_user(db: Session, roles: dict[str, int]) -> Callable[..., User]:
    counter = {"n": 0}

    def _make(
        role: RoleName,
        church: Optional[Church] = None,
        email: Optional[str] = None,
        password: str = DEFAULT_PASSWORD,
        is_active: bool = True,
    ) -> User:
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.com",
            password_hash=hash_password(password),
            full_name=f"{role.value} {counter['n']}",
            role_id=roles[role.value],
            church_id=church.id if church else None,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_member(db: Session) -> Callable[..., Member]:
    def _make(church: Church, first_name: str = "Ana", last_name: str = "Pérez", **fields) -> Member:
        member = Member(church_id=church.id, first_name=first_name, last_name=last_name, **fields)
        db.add(member)
        db.commit()
        db.refresh(member)
        return member

    return _make


def token_for(user: User) -> str:
    return create_access_token({"id": user.id, "email": user.email, "role_id": user.role_id})


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {token_for(user)}"}


def principal_for(user: User, role: RoleName) -> Principal:
    return Principal(
        id=user.id,
        email=user.email,
        role=role,
        church_id=user.church_id,
        full_name=user.full_name,
    )


@pytest.fixture
def super_admin(make_user) -> User:
    return make_user(RoleName.SUPER_ADMIN, email="root@example.com")


@pytest.fixture
def admin_user(make_user, church_a) -> User:
    return make_user(RoleName.ADMIN, church_a, email="admin@example.com")


@pytest.fixture
def secretary_user(make_user, church_a) -> User:
    return make_user(RoleName.SECRETARY, church_a, email="secretaria@example.com")


@pytest.fixture
def leader_user(make_user, church_a) -> User:
    return make_user(RoleName.LEADER, church_a, email="lider@example.com")


@pytest.fixture
def visitor_user(make_user, church_a) -> User:
    return make_user(RoleName.VISITOR, church_a, email="visitante@example.com")


@pytest.fixture
def other_admin(make_user, church_b) -> User:
    return make_user(RoleName.ADMIN, church_b, email="admin.norte@example.com")


@pytest.fixture
def super_admin_headers(super_admin) -> dict[str, str]:
    return auth_headers(super_admin)


@pytest.fixture
def admin_headers(admin_user) -> dict[str, str]:
    return auth_headers(admin_user)


@pytest.fixture
def secretary_headers(secretary_user) -> dict[str, str]:
    return auth_headers(secretary_user)


@pytest.fixture
def leader_headers(leader_user) -> dict[str, str]:
    return auth_headers(leader_user)


@pytest.fixture
def visitor_headers(visitor_user) -> dict[str, str]:
    return auth_headers(visitor_user)


@pytest.fixture
def other_admin_headers(other_admin) -> dict[str, str]:
    return auth_headers(other_admin)


@pytest.fixture
def headers_for() -> Callable[[User], dict[str, str]]:
    return auth_headers


@pytest.fixture
def principal_of() -> Callable[[User, RoleName], Principal]:
    return principal_for
