"""Source ORM models: Employee, LeaveRequest, Holiday.

These tables belong to the HR application (directory, approval workflow and
holiday calendar). This service only reads them. Date columns are plain
strings, as written by the approval UI, so that legacy rows with empty or
malformed dates still load and degrade inside the report engines instead of
failing the query.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from leave_insights.database import Base


class Employee(Base):
    __tablename__ = "employees"

    employee_id: Mapped[str] = mapped_column(sa.String(50), primary_key=True)
    name: Mapped[Optional[str]] = mapped_column(sa.String(200))


class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id: Mapped[str] = mapped_column(
        sa.String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    employee_id: Mapped[str] = mapped_column(sa.String(50), index=True, nullable=False)
    from_date: Mapped[Optional[str]] = mapped_column("date_from", sa.String(40))
    to_date: Mapped[Optional[str]] = mapped_column("date_to", sa.String(40))
    status: Mapped[str] = mapped_column(sa.String(20), default="Pending")
    leave_type: Mapped[Optional[str]] = mapped_column(sa.String(30))
    reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    request_date: Mapped[Optional[str]] = mapped_column(sa.String(40))
    created_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))


class Holiday(Base):
    __tablename__ = "holidays"

    id: Mapped[str] = mapped_column(
        sa.String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    name: Mapped[str] = mapped_column(sa.String(150), nullable=False)
    start_date: Mapped[Optional[str]] = mapped_column(sa.String(40))
    end_date: Mapped[Optional[str]] = mapped_column(sa.String(40))
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
