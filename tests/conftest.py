# tests/conftest.py
"""
Pytest configuration for the simulator studio.

Tests run against an in-memory SQLite database; every test gets freshly
created tables and drops them afterwards.
"""

import os

# Set testing mode BEFORE any simstudio imports so the engine binds to TEST_DATABASE_URL
os.environ["is_testing"] = "true"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite://")
os.environ.setdefault("STUDIO_TIMEZONE", "UTC")
os.environ.setdefault("SIMULATOR_COUNT", "4")
os.environ.setdefault("MIN_BOOKING_NOTICE_HOURS", "2")
os.environ.setdefault("MAX_BOOKING_DAYS_AHEAD", "30")

from datetime import date, datetime, timedelta

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from simstudio.api.dependencies import get_db
from simstudio.core.config import settings
from simstudio.database import Base, engine
from simstudio.main import app
import simstudio.models  # noqa: F401
from simstudio.models.credit import CreditBalance
from simstudio.models.user import User
from simstudio.services.schema_capabilities import reset_schema_capabilities
from tests.helpers.studio import at_hour, next_weekday

settings.is_testing = True

TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


@pytest.fixture(scope="function")
def db():
    """Create a new database session for each test."""
    Base.metadata.create_all(bind=engine)
    reset_schema_capabilities()
    session = TestSessionLocal()

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=engine)
    reset_schema_capabilities()


@pytest.fixture
def client(db: Session):
    """Create a test client bound to the test session."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    test_client = TestClient(app)

    yield test_client

    app.dependency_overrides.clear()
    test_client.close()


def _make_user(
    db: Session,
    email: str,
    *,
    name: str | None = None,
    is_admin: bool = False,
    is_coach: bool = False,
    hours: int = 0,
    coaching_sessions: int = 0,
) -> User:
    user = User(email=email, name=name, is_admin=is_admin, is_coach=is_coach)
    db.add(user)
    db.flush()
    db.add(CreditBalance(user_id=user.id, simulator_hours=hours, coaching_sessions=coaching_sessions))
    db.commit()
    return user


@pytest.fixture
def make_user(db: Session):
    def factory(email: str, **kwargs) -> User:
        return _make_user(db, email, **kwargs)

    return factory


@pytest.fixture
def test_customer(db: Session) -> User:
    return _make_user(db, "driver@example.com", name="Dana Driver", hours=10)


@pytest.fixture
def test_admin(db: Session) -> User:
    return _make_user(db, "admin@example.com", name="Studio Admin", is_admin=True)


@pytest.fixture
def test_coach(db: Session) -> User:
    return _make_user(db, "coach@example.com", name="Casey Coach", is_coach=True)


@pytest.fixture
def future_monday() -> date:
    return next_weekday(0)


@pytest.fixture
def fixed_now(future_monday: date) -> datetime:
    """Midnight UTC, five days before the test Monday."""
    return at_hour(future_monday - timedelta(days=5), 0)


@pytest.fixture
def legacy_db():
    """A separate database whose users table predates the role columns, holding user u1."""
    legacy_engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    with legacy_engine.begin() as conn:
        conn.execute(
            text(
                "CREATE TABLE users (id VARCHAR(26) PRIMARY KEY, email VARCHAR(255) NOT NULL, "
                "name VARCHAR(120), mobile_number VARCHAR(30), created_at DATETIME NOT NULL, "
                "updated_at DATETIME)"
            )
        )
        conn.execute(
            text(
                "INSERT INTO users (id, email, name, created_at) "
                "VALUES ('u1', 'old@example.com', 'Old Timer', '2024-01-01 09:00:00.000000')"
            )
        )
    session = sessionmaker(bind=legacy_engine, autoflush=False, expire_on_commit=False)()
    reset_schema_capabilities()

    yield session

    session.close()
    legacy_engine.dispose()
    reset_schema_capabilities()
