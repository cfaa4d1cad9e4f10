"""
ChatGate Backend — Database Session Management
================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
Why:   The profile store is the only persistent state; all access to it goes
       through sessions created here.
How:   Creates an async engine with connection pooling, provides a session
       dependency that commits on success and rolls back on error.
Who:   Route handlers (via Depends) and Alembic.
When:  Engine is created at module import; sessions are created per-request.

Note on transactions:
    ProfileStore commits each write itself, because a credit debit must be
    durable before the Gemini call starts. The commit in get_db_session only
    flushes whatever a handler left pending.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from chatgate.config import settings


def _engine_options(database_url: str) -> Dict[str, Any]:
    # SQLite (tests, local runs) rejects the queue-pool sizing arguments
    if database_url.startswith("sqlite"):
        return {}
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_pre_ping": settings.db_pool_pre_ping,
        "pool_recycle": 3600,
    }


engine = create_async_engine(
    settings.database_url,
    echo=settings.log_level == "DEBUG",
    **_engine_options(settings.database_url),
)

# expire_on_commit=False: ProfileStore commits mid-request and callers keep
# using the objects they already loaded
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models (shared metadata for Alembic)."""
    pass


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits anything still pending
        4. On error: rolls back
        5. Always: closes the session (returns connection to pool)
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def dispose_engine() -> None:
    """Closes all pooled connections. Called from the lifespan shutdown."""
    await engine.dispose()
