"""Leave-year calendar — the 12-month accrual cycle.

The leave year starts on the 1st of a configurable month and does not have to
line up with the calendar year. The start month is a 0-based month index
(``LEAVE_YEAR_START_MONTH``, 0 = January … 11 = December): with index 10
(November) the leave year containing 2026-06-15 runs 2025-11-01 … 2026-10-31.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterator

from leave_insights.common.dates import ONE_DAY


def _next_month(day: date) -> date:
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


@dataclass(frozen=True)
class LeaveYear:
    start_date: date
    end_date: date

    def months_through(self, reference_date: date) -> Iterator[date]:
        """First-of-month dates from the leave-year start up to and including
        the month of *reference_date* (clipped to the leave year)."""
        last = min(reference_date, self.end_date)
        cursor = self.start_date
        while cursor <= last:
            yield cursor
            cursor = _next_month(cursor)


def resolve_leave_year(reference_date: date, start_month: int) -> LeaveYear:
    """Return the leave year that contains *reference_date*.

    *start_month* is a 0-based month index (0 = January … 11 = December).
    If the reference date's month index precedes it, the leave year began last
    calendar year.
    """
    if not 0 <= start_month <= 11:
        raise ValueError(f"start_month must be a month index between 0 and 11, got {start_month}.")

    month_index = reference_date.month - 1
    start_year = reference_date.year - 1 if month_index < start_month else reference_date.year
    start = date(start_year, start_month + 1, 1)
    end = date(start_year + 1, start_month + 1, 1) - ONE_DAY
    return LeaveYear(start_date=start, end_date=end)
