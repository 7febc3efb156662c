"""Leave report service layer — per-employee summaries, drill-down, export.

Business logic:
  - ReportAggregator folds the accrual ledger and the sandwich detector into
    one summary row per directory employee (pure, synchronous)
  - filtering, stable sorting and flat / CSV export of the summary view
  - ReportService loads the read-only snapshot from the database and runs
    the aggregator on it; nothing computed is ever written back
"""

from __future__ import annotations

import csv
import io
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Optional, Sequence
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leave_insights.common.constants import (
    EXPORT_HEADERS,
    UNKNOWN_EMPLOYEE,
    SortOrder,
    SummaryColumn,
)
from leave_insights.common.dates import (
    MonthFilter,
    available_months,
    calculate_leave_days,
    format_month,
    parse_date,
)
from leave_insights.common.exceptions import NotFoundException, ValidationException
from leave_insights.config import settings
from leave_insights.leave.accrual import LedgerWalk, walk_ledger
from leave_insights.leave.calendar import resolve_leave_year
from leave_insights.leave.models import Employee, Holiday, LeaveRequest
from leave_insights.leave.sandwich import compute_sandwich_leaves, get_sandwich_leave_reasons
from leave_insights.leave.schemas import (
    EmployeeRecord,
    HolidayRecord,
    LeaveRecord,
    approved_only,
)
from leave_insights.reports.schemas import (
    AvailableMonthsOut,
    EmployeeLeaveSummary,
    LeaveHistoryEntry,
    LeaveHistoryOut,
    LedgerMonthOut,
    LedgerOut,
    ReportSnapshotRequest,
    SummaryListOut,
)

logger = logging.getLogger(__name__)


def _today() -> date:
    """Current date in the configured leave timezone."""
    return datetime.now(ZoneInfo(settings.LEAVE_TIMEZONE)).date()


def _raw_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _group_by_employee(leaves: Iterable[LeaveRecord]) -> dict[str, list[LeaveRecord]]:
    grouped: dict[str, list[LeaveRecord]] = defaultdict(list)
    for leave in leaves:
        grouped[leave.employee_id].append(leave)
    return grouped


def _in_month(leave: LeaveRecord, month_filter: MonthFilter) -> bool:
    return month_filter.overlaps(leave.span)


# ═════════════════════════════════════════════════════════════════════
# ReportAggregator
# ═════════════════════════════════════════════════════════════════════


class ReportAggregator:
    """Pure report builder over already-materialised collections.

    ``monthly_accrual`` is both the ledger's accrual rate and the free monthly
    allotment subtracted before loss-of-pay is charged; the two must agree.
    """

    def __init__(
        self,
        *,
        start_month: int,
        reference_date: date,
        monthly_accrual: int = 1,
        cluster_days: int = 2,
    ) -> None:
        self.start_month = start_month
        self.reference_date = reference_date
        self.monthly_accrual = monthly_accrual
        self.cluster_days = cluster_days

    @classmethod
    def from_settings(
        cls,
        *,
        start_month: Optional[int] = None,
        reference_date: Optional[date] = None,
    ) -> "ReportAggregator":
        return cls(
            start_month=settings.LEAVE_YEAR_START_MONTH if start_month is None else start_month,
            reference_date=reference_date or _today(),
            monthly_accrual=settings.MONTHLY_ACCRUAL,
            cluster_days=settings.SANDWICH_CLUSTER_DAYS,
        )

    @property
    def leave_year(self):
        return resolve_leave_year(self.reference_date, self.start_month)

    # ── Summaries ───────────────────────────────────────────────────

    def build_summaries(
        self,
        employees: Sequence[EmployeeRecord],
        leave_requests: Sequence[LeaveRecord],
        holidays: Sequence[HolidayRecord],
        month_filter: MonthFilter,
    ) -> list[EmployeeLeaveSummary]:
        """One row per directory employee, in directory order."""
        by_employee = _group_by_employee(leave_requests)
        rows: list[EmployeeLeaveSummary] = []
        seen: set[str] = set()

        for employee in employees:
            if employee.employee_id in seen:
                continue
            seen.add(employee.employee_id)
            approved = approved_only(by_employee.get(employee.employee_id, []))
            rows.append(self._summarize(employee, approved, holidays, month_filter))

        logger.info(
            "Built %d leave summaries for month=%s (%d requests, %d holidays)",
            len(rows), month_filter, len(leave_requests), len(holidays),
        )
        return rows

    def _summarize(
        self,
        employee: EmployeeRecord,
        approved: list[LeaveRecord],
        holidays: Sequence[HolidayRecord],
        month_filter: MonthFilter,
    ) -> EmployeeLeaveSummary:
        pending = self.ledger(approved).balance
        total_days = sum(
            calculate_leave_days(leave.from_date, leave.to_date)
            for leave in approved
            if _in_month(leave, month_filter)
        )
        sandwich = compute_sandwich_leaves(
            approved, holidays, month_filter, cluster_days=self.cluster_days,
        )
        return EmployeeLeaveSummary(
            employee_id=employee.employee_id,
            employee_name=employee.display_name,
            pending_leaves=pending,
            total_leave_days=total_days,
            extra_leaves=max(0, total_days - self.monthly_accrual),
            sandwich_count=sandwich.count,
            sandwich_days=sandwich.days,
        )

    # ── Ledger ──────────────────────────────────────────────────────

    def ledger(self, approved_leaves: Sequence[LeaveRecord]) -> LedgerWalk:
        return walk_ledger(
            approved_leaves,
            self.reference_date,
            self.start_month,
            accrual=self.monthly_accrual,
        )

    # ── Drill-down ──────────────────────────────────────────────────

    def build_history(
        self,
        employee_id: str,
        leave_requests: Sequence[LeaveRecord],
        holidays: Sequence[HolidayRecord],
        month_filter: MonthFilter,
        *,
        employee_name: str = UNKNOWN_EMPLOYEE,
    ) -> list[LeaveHistoryEntry]:
        """All of the employee's requests (any status), newest first.

        Approved requests carry the sandwich clusters they take part in.
        Requests with an unparsable start date are kept only for ``All``.
        """
        own = [leave for leave in leave_requests if leave.employee_id == employee_id]
        approved = approved_only(own)
        selected = [leave for leave in own if month_filter.is_all or _in_month(leave, month_filter)]
        selected.sort(key=_history_sort_key, reverse=True)

        return [
            LeaveHistoryEntry(
                id=leave.id,
                employee_id=employee_id,
                employee_name=employee_name,
                from_date=_raw_text(leave.from_date),
                to_date=_raw_text(leave.to_date),
                status=leave.status,
                leave_type=leave.leave_type,
                reason=leave.reason,
                request_date=_raw_text(leave.request_date),
                days=calculate_leave_days(leave.from_date, leave.to_date),
                sandwich_reasons=(
                    get_sandwich_leave_reasons(approved, leave.from_date, leave.to_date, holidays)
                    if leave.is_approved
                    else []
                ),
            )
            for leave in selected
        ]


def _history_sort_key(leave: LeaveRecord) -> date:
    return parse_date(leave.request_date) or leave.start or date.min


# ═════════════════════════════════════════════════════════════════════
# Filtering / sorting / export
# ═════════════════════════════════════════════════════════════════════


def filter_summaries(
    rows: Sequence[EmployeeLeaveSummary],
    search: Optional[str],
) -> list[EmployeeLeaveSummary]:
    """Case-insensitive substring match on employee id or name."""
    if not search or not search.strip():
        return list(rows)
    needle = search.strip().casefold()
    return [
        row for row in rows
        if needle in row.employee_id.casefold() or needle in row.employee_name.casefold()
    ]


def _sort_value(row: EmployeeLeaveSummary, column: SummaryColumn) -> Any:
    value = getattr(row, column.value)
    return value.casefold() if isinstance(value, str) else value


def sort_summaries(
    rows: Sequence[EmployeeLeaveSummary],
    column: Optional[SummaryColumn],
    order: SortOrder = SortOrder.asc,
) -> list[EmployeeLeaveSummary]:
    """Stable sort; ties keep their incoming order in both directions."""
    if column is None:
        return list(rows)
    return sorted(
        rows,
        key=lambda row: _sort_value(row, column),
        reverse=order is SortOrder.desc,
    )


@dataclass(frozen=True)
class SortState:
    """Column header sort toggle: same key flips direction, new key starts asc."""

    column: Optional[SummaryColumn] = None
    order: SortOrder = SortOrder.asc

    def toggle(self, column: SummaryColumn) -> "SortState":
        if column == self.column:
            flipped = SortOrder.desc if self.order is SortOrder.asc else SortOrder.asc
            return SortState(column, flipped)
        return SortState(column, SortOrder.asc)

    def apply(self, rows: Sequence[EmployeeLeaveSummary]) -> list[EmployeeLeaveSummary]:
        return sort_summaries(rows, self.column, self.order)


def export_records(rows: Sequence[EmployeeLeaveSummary]) -> list[dict[str, Any]]:
    """Flat records keyed by display header, in view order."""
    return [
        {header: getattr(row, column.value) for column, header in EXPORT_HEADERS.items()}
        for row in rows
    ]


def export_csv(rows: Sequence[EmployeeLeaveSummary]) -> str:
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=list(EXPORT_HEADERS.values()))
    writer.writeheader()
    writer.writerows(export_records(rows))
    return output.getvalue()


def _parse_month(month: Optional[str]) -> MonthFilter:
    try:
        return MonthFilter.parse(month)
    except ValueError as exc:
        raise ValidationException.for_field("month", str(exc)) from exc


# ═════════════════════════════════════════════════════════════════════
# ReportService
# ═════════════════════════════════════════════════════════════════════


class ReportService:
    """Async entry points: load the snapshot, run the aggregator."""

    # ─────────────────────────────────────────────────────────────────
    # Snapshot loading
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _load_employees(db: AsyncSession) -> list[EmployeeRecord]:
        result = await db.execute(select(Employee).order_by(Employee.employee_id))
        return [
            EmployeeRecord(employee_id=row.employee_id, name=row.name)
            for row in result.scalars().all()
        ]

    @staticmethod
    async def _load_leave_requests(
        db: AsyncSession,
        employee_id: Optional[str] = None,
    ) -> list[LeaveRecord]:
        query = select(LeaveRequest)
        if employee_id is not None:
            query = query.where(LeaveRequest.employee_id == employee_id)
        result = await db.execute(query)
        return [
            LeaveRecord(
                id=row.id,
                employee_id=row.employee_id,
                from_date=row.from_date,
                to_date=row.to_date,
                status=row.status or "",
                leave_type=row.leave_type,
                reason=row.reason,
                request_date=row.request_date or row.created_at,
            )
            for row in result.scalars().all()
        ]

    @staticmethod
    async def _load_holidays(db: AsyncSession) -> list[HolidayRecord]:
        result = await db.execute(select(Holiday))
        return [
            HolidayRecord(
                name=row.name,
                start_date=row.start_date,
                end_date=row.end_date,
                description=row.description,
            )
            for row in result.scalars().all()
        ]

    @staticmethod
    async def _find_employee(db: AsyncSession, employee_id: str) -> EmployeeRecord:
        result = await db.execute(select(Employee).where(Employee.employee_id == employee_id))
        row = result.scalars().first()
        if row is None:
            raise NotFoundException("Employee", employee_id)
        return EmployeeRecord(employee_id=row.employee_id, name=row.name)

    # ─────────────────────────────────────────────────────────────────
    # Summaries
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def summarize(
        employees: Sequence[EmployeeRecord],
        leave_requests: Sequence[LeaveRecord],
        holidays: Sequence[HolidayRecord],
        *,
        month: Optional[str] = None,
        search: Optional[str] = None,
        sort: Optional[SummaryColumn] = None,
        order: SortOrder = SortOrder.asc,
        start_month: Optional[int] = None,
        reference_date: Optional[date] = None,
    ) -> SummaryListOut:
        """Build, filter and sort the summary view over in-memory collections."""
        month_filter = _parse_month(month)
        aggregator = ReportAggregator.from_settings(
            start_month=start_month, reference_date=reference_date,
        )
        rows = aggregator.build_summaries(employees, leave_requests, holidays, month_filter)
        rows = sort_summaries(filter_summaries(rows, search), sort, order)
        leave_year = aggregator.leave_year

        return SummaryListOut(
            month=str(month_filter),
            month_label=format_month(str(month_filter)),
            reference_date=aggregator.reference_date,
            leave_year_start=leave_year.start_date,
            leave_year_end=leave_year.end_date,
            sort=sort,
            order=order,
            total=len(rows),
            rows=rows,
        )

    @staticmethod
    def summarize_snapshot(snapshot: ReportSnapshotRequest) -> SummaryListOut:
        return ReportService.summarize(
            snapshot.employees,
            snapshot.leave_requests,
            snapshot.holidays,
            month=snapshot.month,
            search=snapshot.search,
            sort=snapshot.sort,
            order=snapshot.order,
            start_month=snapshot.start_month,
            reference_date=snapshot.reference_date,
        )

    @staticmethod
    async def get_summaries(
        db: AsyncSession,
        *,
        month: Optional[str] = None,
        search: Optional[str] = None,
        sort: Optional[SummaryColumn] = None,
        order: SortOrder = SortOrder.asc,
        start_month: Optional[int] = None,
        reference_date: Optional[date] = None,
    ) -> SummaryListOut:
        """Summary view over the current database snapshot."""
        month_filter = _parse_month(month)
        employees = await ReportService._load_employees(db)
        leave_requests = await ReportService._load_leave_requests(db)
        holidays = await ReportService._load_holidays(db)
        return ReportService.summarize(
            employees,
            leave_requests,
            holidays,
            month=str(month_filter),
            search=search,
            sort=sort,
            order=order,
            start_month=start_month,
            reference_date=reference_date,
        )

    @staticmethod
    async def export_summaries_csv(db: AsyncSession, **params: Any) -> str:
        view = await ReportService.get_summaries(db, **params)
        return export_csv(view.rows)

    # ─────────────────────────────────────────────────────────────────
    # Drill-down
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_history(
        db: AsyncSession,
        employee_id: str,
        *,
        month: Optional[str] = None,
    ) -> LeaveHistoryOut:
        """Annotated leave history for one employee."""
        month_filter = _parse_month(month)
        employee = await ReportService._find_employee(db, employee_id)
        leave_requests = await ReportService._load_leave_requests(db, employee_id)
        holidays = await ReportService._load_holidays(db)

        aggregator = ReportAggregator.from_settings()
        entries = aggregator.build_history(
            employee_id,
            leave_requests,
            holidays,
            month_filter,
            employee_name=employee.display_name,
        )
        return LeaveHistoryOut(
            employee_id=employee_id,
            employee_name=employee.display_name,
            month=str(month_filter),
            entries=entries,
            total_entries=len(entries),
        )

    @staticmethod
    async def get_ledger(
        db: AsyncSession,
        employee_id: str,
        *,
        start_month: Optional[int] = None,
        reference_date: Optional[date] = None,
    ) -> LedgerOut:
        """Month-by-month accrual trace behind an employee's balance."""
        employee = await ReportService._find_employee(db, employee_id)
        leave_requests = await ReportService._load_leave_requests(db, employee_id)

        aggregator = ReportAggregator.from_settings(
            start_month=start_month, reference_date=reference_date,
        )
        walk = aggregator.ledger(approved_only(leave_requests))
        return LedgerOut(
            employee_id=employee_id,
            employee_name=employee.display_name,
            reference_date=aggregator.reference_date,
            leave_year_start=walk.leave_year.start_date,
            leave_year_end=walk.leave_year.end_date,
            balance=walk.balance,
            total_accrued=walk.total_accrued,
            total_used=walk.total_used,
            months=[
                LedgerMonthOut(
                    month=bucket.month.strftime("%Y-%m"),
                    opening_balance=bucket.opening_balance,
                    accrued=bucket.accrued,
                    used=bucket.used,
                    closing_balance=bucket.closing_balance,
                    forgiven=bucket.forgiven,
                )
                for bucket in walk.buckets
            ],
        )

    @staticmethod
    async def get_available_months(db: AsyncSession) -> AvailableMonthsOut:
        """Months that have at least one leave request, newest first."""
        leave_requests = await ReportService._load_leave_requests(db)
        months = available_months(leave.from_date for leave in leave_requests)
        return AvailableMonthsOut(
            months=months,
            labels={month: format_month(month) for month in months},
        )
