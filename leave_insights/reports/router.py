"""Leave report router — summaries, CSV export, drill-down history, ledger trace.

All endpoints are read-only. Summaries come either from the database snapshot
(GET) or from collections posted by the caller (POST).
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from leave_insights.common.constants import ALL_MONTHS, SortOrder, SummaryColumn
from leave_insights.common.rate_limit import EXPORT_RATE_LIMIT, limiter
from leave_insights.database import get_db
from leave_insights.reports.schemas import (
    AvailableMonthsOut,
    LeaveHistoryOut,
    LedgerOut,
    ReportSnapshotRequest,
    SummaryListOut,
)
from leave_insights.reports.service import ReportService

router = APIRouter(prefix="", tags=["leave-reports"])


# ── GET /summaries ──────────────────────────────────────────────────

@router.get("/summaries", response_model=SummaryListOut)
async def list_summaries(
    month: str = Query(ALL_MONTHS, description="'All' or YYYY-MM"),
    search: Optional[str] = Query(None, description="Substring of employee id or name"),
    sort: Optional[SummaryColumn] = Query(None),
    order: SortOrder = Query(SortOrder.asc),
    start_month: Optional[int] = Query(None, ge=0, le=11, description="Leave-year start month index override (0 = January)"),
    reference_date: Optional[date] = Query(None, description="Balance as of this date; defaults to today"),
    db: AsyncSession = Depends(get_db),
):
    """Per-employee balance, monthly usage, loss-of-pay and sandwich counts."""
    return await ReportService.get_summaries(
        db,
        month=month,
        search=search,
        sort=sort,
        order=order,
        start_month=start_month,
        reference_date=reference_date,
    )


# ── POST /summaries ─────────────────────────────────────────────────

@router.post("/summaries", response_model=SummaryListOut)
async def summarize_snapshot(body: ReportSnapshotRequest):
    """Same report computed over caller-supplied employees, leaves and holidays."""
    return ReportService.summarize_snapshot(body)


# ── GET /summaries/export ───────────────────────────────────────────

@router.get("/summaries/export")
@limiter.limit(EXPORT_RATE_LIMIT)
async def export_summaries(
    request: Request,
    month: str = Query(ALL_MONTHS),
    search: Optional[str] = Query(None),
    sort: Optional[SummaryColumn] = Query(None),
    order: SortOrder = Query(SortOrder.asc),
    db: AsyncSession = Depends(get_db),
):
    """CSV download of the filtered / sorted summary view."""
    content = await ReportService.export_summaries_csv(
        db, month=month, search=search, sort=sort, order=order,
    )
    filename = f"leave_summary_{month.lower()}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ── GET /months ─────────────────────────────────────────────────────

@router.get("/months", response_model=AvailableMonthsOut)
async def list_months(db: AsyncSession = Depends(get_db)):
    """Month filters that have leave activity, newest first."""
    return await ReportService.get_available_months(db)


# ── GET /employees/{id}/history ─────────────────────────────────────

@router.get("/employees/{employee_id}/history", response_model=LeaveHistoryOut)
async def employee_history(
    employee_id: str,
    month: str = Query(ALL_MONTHS),
    db: AsyncSession = Depends(get_db),
):
    """Every leave request of one employee with sandwich explanations."""
    return await ReportService.get_history(db, employee_id, month=month)


# ── GET /employees/{id}/ledger ──────────────────────────────────────

@router.get("/employees/{employee_id}/ledger", response_model=LedgerOut)
async def employee_ledger(
    employee_id: str,
    start_month: Optional[int] = Query(None, ge=0, le=11),
    reference_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Month-by-month accrual walk behind the employee's pending balance."""
    return await ReportService.get_ledger(
        db, employee_id, start_month=start_month, reference_date=reference_date,
    )
