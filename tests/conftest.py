"""Shared test fixtures — async DB, client, record factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Point the app at SQLite before anything touches pydantic-settings
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ.setdefault("LEAVE_YEAR_START_MONTH", "10")
os.environ.setdefault("LEAVE_TIMEZONE", "UTC")
os.environ.setdefault("ENVIRONMENT", "test")

import uuid
from datetime import datetime, timezone
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from leave_insights.database import Base, get_db
from leave_insights.leave.models import Employee, Holiday, LeaveRequest
from leave_insights.leave.schemas import EmployeeRecord, HolidayRecord, LeaveRecord
from leave_insights.main import create_app

# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from leave_insights.common.rate_limit import limiter

    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for seeding source tables) ────────────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Record factories (pure engine tests) ────────────────────────────

def make_leave(
    from_date,
    to_date=None,
    *,
    employee_id: str = "EMP001",
    status: str = "Approved",
    leave_type: str = "CASUAL",
    reason: str = "Family function",
    request_date=None,
    leave_id: Optional[str] = None,
) -> LeaveRecord:
    return LeaveRecord(
        id=leave_id or uuid.uuid4().hex[:8],
        employee_id=employee_id,
        from_date=from_date,
        to_date=to_date if to_date is not None else from_date,
        status=status,
        leave_type=leave_type,
        reason=reason,
        request_date=request_date,
    )


def make_holiday(start_date, end_date=None, *, name: str = "Holiday") -> HolidayRecord:
    return HolidayRecord(
        name=name,
        start_date=start_date,
        end_date=end_date if end_date is not None else start_date,
        description=f"{name} (company-wide)",
    )


def make_employee(employee_id: str = "EMP001", name: Optional[str] = "Asha Rao") -> EmployeeRecord:
    return EmployeeRecord(employee_id=employee_id, name=name)


# ── Source-table seeding (API / service tests) ──────────────────────

async def seed_employee(db: AsyncSession, employee_id: str = "EMP001", name: Optional[str] = "Asha Rao") -> Employee:
    emp = Employee(employee_id=employee_id, name=name)
    db.add(emp)
    await db.flush()
    return emp


async def seed_leave(
    db: AsyncSession,
    employee_id: str,
    from_date: Optional[str],
    to_date: Optional[str] = None,
    *,
    status: str = "Approved",
    request_date: Optional[str] = None,
    leave_type: str = "CASUAL",
) -> LeaveRequest:
    leave = LeaveRequest(
        id=str(uuid.uuid4()),
        employee_id=employee_id,
        from_date=from_date,
        to_date=to_date if to_date is not None else from_date,
        status=status,
        leave_type=leave_type,
        reason="Personal work",
        request_date=request_date,
        created_at=datetime.now(timezone.utc),
    )
    db.add(leave)
    await db.flush()
    return leave


async def seed_holiday(
    db: AsyncSession,
    start_date: Optional[str],
    end_date: Optional[str] = None,
    *,
    name: str = "Holiday",
) -> Holiday:
    holiday = Holiday(
        id=str(uuid.uuid4()),
        name=name,
        start_date=start_date,
        end_date=end_date if end_date is not None else start_date,
        description=name,
    )
    db.add(holiday)
    await db.flush()
    return holiday
