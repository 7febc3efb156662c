"""Async SQLAlchemy engine and read-only session management.

The leave, holiday and employee tables are owned by the HR application;
this service only selects from them and never commits.
"""

from typing import Any, AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from leave_insights.config import settings


def _engine_options(url: str) -> dict[str, Any]:
    options: dict[str, Any] = {
        "echo": settings.ENVIRONMENT == "development",
        "pool_pre_ping": True,
    }
    # SQLite (local runs, tests) uses a single-connection pool without sizing
    if make_url(url).get_backend_name() != "sqlite":
        options.update(pool_size=5, max_overflow=10)
    return options


engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """Declarative base for the source-table mappings."""
    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yield a session whose transaction is always rolled back."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()
