from datetime import datetime, timedelta

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.deps import get_db
from app.shared.db import Base
from app.auth.models import User, UserRole
from app.auth.utils import create_token
from app.locks.router import get_lock_manager
from app.locks.service import QuotationLockManager
from app.quotations.models import Quotation


class FakeClock:
    """Manually advanced naive-UTC clock for lease expiry."""

    def __init__(self, start: datetime = datetime(2026, 1, 5, 9, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    s = session_factory()
    try:
        yield s
    finally:
        s.close()


def _add_user(db: Session, email: str, name: str, role: UserRole, **kw) -> User:
    u = User(email=email, name=name, role=role, password_hash=kw.pop("password_hash", "!"), **kw)
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


@pytest.fixture
def alice(db):
    return _add_user(db, "alice@designstudio.com", "Alice", UserRole.editor)


@pytest.fixture
def bob(db):
    return _add_user(db, "bob@designstudio.com", "Bob", UserRole.editor)


@pytest.fixture
def vera(db):
    return _add_user(db, "vera@designstudio.com", "Vera", UserRole.viewer)


@pytest.fixture
def root(db):
    return _add_user(db, "root@designstudio.com", "Root", UserRole.admin)


@pytest.fixture
def quotation(db, alice):
    q = Quotation(
        quote_id="TRE_QT_260105_AB12",
        user_id=alice.id,
        project_name="Sunrise Villa",
        project_type="Villa",
        client_name="R. Mehta",
    )
    db.add(q)
    db.commit()
    db.refresh(q)
    return q


@pytest.fixture
def manager(db, clock):
    return QuotationLockManager(db, lease_seconds=30, clock=clock)


@pytest.fixture
def api(session_factory, clock):
    """Returns as_user(user) -> TestClient authenticated as that user."""

    def _get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    def _get_lock_manager(db: Session = Depends(get_db)):
        return QuotationLockManager(db, lease_seconds=30, clock=clock)

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_lock_manager] = _get_lock_manager

    def as_user(user: User | None) -> TestClient:
        headers = {"Authorization": f"Bearer {create_token(user.id)}"} if user else {}
        return TestClient(app, headers=headers)

    yield as_user
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(email: str, name: str, role: UserRole = UserRole.editor, **kw) -> User:
        return _add_user(db, email, name, role, **kw)

    return _make
