"""
SubTrack Backend: Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.
Who:   Used by all test files in the tests/ directory.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session:   AsyncMock standing in for AsyncSession (service unit tests)
    ├── sample_subscription_data: kwargs for a valid Subscription row
    ├── db_engine:         in-memory SQLite engine with all tables created
    ├── db_session_factory: sessionmaker bound to db_engine
    ├── app:               fresh FastAPI app whose get_db_session uses db_engine
    ├── test_client:       HTTPX AsyncClient routed into `app`
    ├── user / other_user: persisted accounts
    ├── user_password:     their plain-text password
    └── auth_headers / other_auth_headers: Bearer headers for those accounts
"""

import os

# Override settings for testing BEFORE any subtrack imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret-not-for-production"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from subtrack.database import Base, get_db_session
from subtrack.main import create_app
from subtrack.models.subscription import Subscription  # noqa: F401
from subtrack.models.user import User
from subtrack.services.auth_service import create_access_token, hash_password

TEST_PASSWORD = "s3cret-pass"


# ══════════════════════════════════════════════════════════════════════════
# Unit-test Fixtures (no database)
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_get(mock_db_session):
            mock_db_session.execute.return_value.scalar_one_or_none.return_value = sub
            result = await subscription_service.get_subscription(mock_db_session, ...)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def sample_subscription_data():
    """Keyword arguments for a valid, active Subscription."""
    now = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
    return {
        "id": uuid.uuid4(),
        "user_id": uuid.uuid4(),
        "name": "Netflix",
        "cost": Decimal("15.99"),
        "billing_cycle": "monthly",
        "renewal_date": date(2024, 2, 1),
        "category": "entertainment",
        "color": "#e50914",
        "is_active": True,
        "notes": None,
        "created_at": now,
        "updated_at": now,
    }


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures (in-memory SQLite)
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """
    A private in-memory database per test.

    StaticPool keeps a single connection alive, so every session sees the
    same in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def db_session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def app(db_session_factory):
    """Fresh application (and fresh rate limiter state) bound to the test database."""
    application = create_app()

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with db_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db_session] = override_get_db_session
    return application


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient configured to talk to the FastAPI app.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ══════════════════════════════════════════════════════════════════════════
# Account Fixtures
# ══════════════════════════════════════════════════════════════════════════

async def _create_user(factory, name: str, email: str) -> User:
    async with factory() as session:
        user = User(name=name, email=email, password_hash=hash_password(TEST_PASSWORD))
        session.add(user)
        await session.commit()
        return user


@pytest_asyncio.fixture
async def user(db_session_factory) -> User:
    return await _create_user(db_session_factory, "Alice", "alice@example.com")


@pytest_asyncio.fixture
async def other_user(db_session_factory) -> User:
    return await _create_user(db_session_factory, "Bob", "bob@example.com")


@pytest.fixture
def user_password() -> str:
    """Plain-text password of `user` and `other_user`."""
    return TEST_PASSWORD


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def other_auth_headers(other_user):
    return {"Authorization": f"Bearer {create_access_token(other_user.id)}"}
