"""Leave report Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Request   → request bodies
  - *Out       → response bodies
  - bare nouns → report rows shared by service and router
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from leave_insights.common.constants import ALL_MONTHS, SortOrder, SummaryColumn
from leave_insights.leave.schemas import EmployeeRecord, HolidayRecord, LeaveRecord


# ═════════════════════════════════════════════════════════════════════
# Summary rows
# ═════════════════════════════════════════════════════════════════════


class EmployeeLeaveSummary(BaseModel):
    """One employee's balance and usage for the selected month."""

    model_config = ConfigDict(frozen=True)

    employee_id: str
    employee_name: str
    pending_leaves: int = Field(0, description="Accrued balance for the current leave year")
    total_leave_days: int = Field(0, description="Approved leave days in the filter month")
    extra_leaves: int = Field(0, description="Loss-of-pay days beyond the monthly allotment")
    sandwich_count: int = 0
    sandwich_days: int = 0


class SummaryListOut(BaseModel):
    """Filtered / sorted summary view plus the context it was computed in."""

    month: str = ALL_MONTHS
    month_label: str = "All Months"
    reference_date: date
    leave_year_start: date
    leave_year_end: date
    sort: Optional[SummaryColumn] = None
    order: SortOrder = SortOrder.asc
    total: int = 0
    rows: list[EmployeeLeaveSummary]


# ═════════════════════════════════════════════════════════════════════
# Snapshot — caller-supplied collections
# ═════════════════════════════════════════════════════════════════════


class ReportSnapshotRequest(BaseModel):
    """Already-fetched employee / leave / holiday collections to report on."""

    model_config = ConfigDict(populate_by_name=True)

    employees: list[EmployeeRecord] = Field(default_factory=list)
    leave_requests: list[LeaveRecord] = Field(default_factory=list, alias="leaveRequests")
    holidays: list[HolidayRecord] = Field(default_factory=list)
    month: str = ALL_MONTHS
    search: Optional[str] = None
    sort: Optional[SummaryColumn] = None
    order: SortOrder = SortOrder.asc
    reference_date: Optional[date] = Field(
        None, alias="referenceDate", description="Defaults to today"
    )
    start_month: Optional[int] = Field(
        None, ge=0, le=11, alias="startMonth",
        description="Leave-year start month index (0 = January); defaults to LEAVE_YEAR_START_MONTH",
    )


# ═════════════════════════════════════════════════════════════════════
# Drill-down
# ═════════════════════════════════════════════════════════════════════


class LeaveHistoryEntry(BaseModel):
    """A leave request annotated for the per-employee drill-down."""

    id: Optional[str] = None
    employee_id: str
    employee_name: str
    from_date: Optional[str] = None
    to_date: Optional[str] = None
    status: str
    leave_type: Optional[str] = None
    reason: Optional[str] = None
    request_date: Optional[str] = None
    days: int = 0
    sandwich_reasons: list[str] = Field(default_factory=list)


class LeaveHistoryOut(BaseModel):
    employee_id: str
    employee_name: str
    month: str = ALL_MONTHS
    entries: list[LeaveHistoryEntry]
    total_entries: int = 0


class LedgerMonthOut(BaseModel):
    month: str = Field(..., description="YYYY-MM")
    opening_balance: int
    accrued: int
    used: int
    closing_balance: int
    forgiven: int


class LedgerOut(BaseModel):
    """Month-by-month accrual trace behind ``pending_leaves``."""

    employee_id: str
    employee_name: str
    reference_date: date
    leave_year_start: date
    leave_year_end: date
    balance: int
    total_accrued: int
    total_used: int
    months: list[LedgerMonthOut]


class AvailableMonthsOut(BaseModel):
    months: list[str]
    labels: dict[str, str]
