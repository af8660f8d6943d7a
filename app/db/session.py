# app/db/session.py
import os
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.config import get_settings
from app.db.base import Base

# Import ORM models so that Base.metadata is aware of them
from app.models.member import FamilyMember  # noqa: F401
from app.models.event import Event, EventParticipant, EventRecurrence  # noqa: F401

settings = get_settings()

# Detect if we're running under pytest
IS_TEST = settings.APP_ENV == "test" or "PYTEST_CURRENT_TEST" in os.environ

engine_kwargs: dict = {"echo": False, "future": True}
if IS_TEST:
    # Avoid connection reuse across event loops in the test client.
    engine_kwargs["poolclass"] = NullPool

engine = create_async_engine(settings.DB_URL, **engine_kwargs)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    autoflush=False,
    expire_on_commit=False,
    class_=AsyncSession,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides an async SQLAlchemy session.

    The session is automatically closed when the request is completed.
    """
    async with AsyncSessionLocal() as session:
        yield session


async def init_db() -> None:
    """
    Create any missing tables for the current models.

    Safe to call from FastAPI startup. Typically you'd eventually replace
    this with Alembic migrations.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def reset_db() -> None:
    """
    TEST-ONLY: drop all tables and recreate them using the current models.

    Do NOT call this from production code. Only from tests/fixtures.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
