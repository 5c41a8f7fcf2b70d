"""
conftest.py — Shared Test Fixtures for Scout

Provides an in-memory SQLite database, FastAPI TestClient with auth
overrides, and factory fixtures for the core models (User, IcpProfile,
Candidate, ProspectContact).

Business Rules:
- All tests run against an isolated in-memory DB
- Auth is overridden so tests don't need a session cookie
- Each test function gets fresh tables and an empty triage registry

Called by: all test files via pytest autodiscovery
Depends on: app.models (Base), app.database (get_db), app.dependencies
"""

import os

# Must be set before importing app modules
os.environ["TESTING"] = "1"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["APOLLO_API_KEY"] = "test-apollo-key"

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.models import Base, Candidate, IcpProfile, ProspectContact, User
from app.services.triage_service import registry

# ── In-memory SQLite engine ──────────────────────────────────────────

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@event.listens_for(engine, "connect")
def _enable_fk(dbapi_conn, _):
    """SQLite ignores FKs by default — turn them on."""
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


# 2026-03-10 09:00 UTC, a fixed "now" for quota and staleness tests
NOW = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock; call it to read, advance() to move forward."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


# ── Fixtures ─────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def db_session():
    """Create all tables, yield a session, then tear down."""
    Base.metadata.create_all(bind=engine)
    registry.clear()
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        registry.clear()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def second_session():
    """Another request's session on the same database."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def test_user(db_session: Session) -> User:
    user = User(email="rep@example.com", name="Test Rep", is_active=True)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture()
def other_user(db_session: Session) -> User:
    user = User(email="other@example.com", name="Other Rep", is_active=True)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture()
def test_profile(db_session: Session, test_user: User) -> IcpProfile:
    """Software companies in CA, 11-50 staff, under $2M revenue."""
    profile = IcpProfile(
        user_id=test_user.id,
        industries=["Software"],
        locations=["CA"],
        is_nationwide=False,
        company_sizes=["11-20", "21-50"],
        revenue_ranges=["Less than $1M", "$1M-$2M"],
        weight_industry=50,
        weight_location=25,
        weight_employee_size=15,
        weight_revenue=10,
    )
    db_session.add(profile)
    db_session.commit()
    db_session.refresh(profile)
    return profile


@pytest.fixture()
def make_candidate(db_session: Session, test_user: User):
    """Factory: make_candidate(fit_score=70, status="pending", ...)."""
    counter = {"n": 0}

    def _make(user: User | None = None, **fields) -> Candidate:
        counter["n"] += 1
        n = counter["n"]
        data = {
            "provider_id": f"org-{n:03d}",
            "name": f"Company {n}",
            "domain": f"company{n}.example.com",
            "industry": "Software",
            "location": "CA",
            "employee_size_range": "21-50",
            "revenue_range": "$1M-$2M",
            "status": "pending",
            "fit_score": 50,
            "created_at": NOW - timedelta(minutes=100 - n),
        }
        data.update(fields)
        c = Candidate(user_id=(user or test_user).id, **data)
        db_session.add(c)
        db_session.commit()
        db_session.refresh(c)
        return c

    return _make


@pytest.fixture()
def accepted_candidate(make_candidate) -> Candidate:
    return make_candidate(
        name="Acme Analytics", domain="acme.io", status="accepted", fit_score=90
    )


@pytest.fixture()
def test_contact(db_session: Session, accepted_candidate: Candidate) -> ProspectContact:
    contact = ProspectContact(
        candidate_id=accepted_candidate.id,
        name="Jane Doe",
        title="VP Sales",
        email="jane@acme.io",
    )
    db_session.add(contact)
    db_session.commit()
    db_session.refresh(contact)
    return contact


@pytest.fixture()
def client(db_session: Session, test_user: User) -> TestClient:
    """FastAPI TestClient with get_db and require_user overridden."""
    from app.database import get_db
    from app.dependencies import require_user
    from app.main import app

    def _override_db():
        yield db_session

    def _override_user():
        return test_user

    app.dependency_overrides[get_db] = _override_db
    app.dependency_overrides[require_user] = _override_user

    yield TestClient(app)

    app.dependency_overrides.clear()
