"""
ChatGate Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment is set BEFORE any chatgate import so the settings
       singleton, the engine and the service singletons pick up test values.

Fixture Hierarchy (all function-scoped):
    ├── db_engine:        in-memory SQLite (aiosqlite) with the schema created
    ├── session_factory:  async_sessionmaker bound to db_engine
    ├── db_session:       one AsyncSession for service-level tests
    ├── create_profile:   inserts a profile row, returns its values
    ├── fetch_profile:    reads a profile through a fresh session
    └── test_client:      HTTPX AsyncClient against the app, DB dependency overridden
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["GEMINI_API_KEY"] = "test-key-not-real"
os.environ["SUPABASE_URL"] = "http://supabase.test"
os.environ["SUPABASE_KEY"] = "service-role-test-key"
os.environ["KOFI_VERIFICATION_TOKEN"] = "kofi-test-token"
os.environ["ENTITLEMENT_POLICY"] = "metered"
os.environ["COMPENSATION_MIN_WAIT"] = "0"
os.environ["COMPENSATION_MAX_WAIT"] = "0"
os.environ["STATIC_DIR"] = "./no-static-dir-in-tests"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import Any, Dict
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from chatgate.database import Base, get_db_session
from chatgate.models.profile import Profile


@pytest_asyncio.fixture
async def db_engine():
    """
    In-memory SQLite shared by every session of one test.

    StaticPool keeps a single connection alive; without it each new
    connection would see an empty in-memory database.
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
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def create_profile(session_factory):
    """
    Factory fixture inserting a profile.

    Usage:
        profile = await create_profile(plan_type="standard", chat_credits=1)
        profile["id"], profile["email"]
    """

    async def _create(**overrides: Any) -> Dict[str, Any]:
        values: Dict[str, Any] = {
            "id": str(uuid4()),
            "email": f"user-{uuid4().hex[:8]}@example.com",
            "display_name": "Test User",
            "plan_type": "free",
            "chat_credits": 5,
            "is_premium": False,
        }
        values.update(overrides)
        async with session_factory() as session:
            session.add(Profile(**values))
            await session.commit()
        return values

    return _create


@pytest.fixture
def fetch_profile(session_factory):
    """Reads a profile with a fresh session so nothing is served from an identity map."""

    async def _fetch(profile_id: str):
        async with session_factory() as session:
            return await session.get(Profile, profile_id)

    return _fetch


@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to the FastAPI app in-process.

    get_db_session is overridden to hand out sessions on the test engine.
    """
    from chatgate.main import app

    async def _override_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _override_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
