"""Accrual ledger — point-in-time leave balance recomputed from raw history.

Balance rules (per leave year):
  - every month from the leave-year start through the reference month earns
    a fixed accrual (``MONTHLY_ACCRUAL``, 1 day by default)
  - approved leaves are charged in full to the month they *start* in
  - a month that ends below zero is clamped to 0; the shortfall is forgiven
    and never carried into the next month

Nothing is stored. Callers pass the full approved history on every query and
get the whole month-by-month trace back.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Iterator, Sequence

from leave_insights.common.dates import calculate_leave_days
from leave_insights.leave.calendar import LeaveYear, resolve_leave_year
from leave_insights.leave.schemas import LeaveRecord

logger = logging.getLogger(__name__)

DEFAULT_MONTHLY_ACCRUAL = 1


@dataclass(frozen=True)
class MonthBucket:
    """One visited month of the ledger walk."""

    month: date              # first day of the month
    opening_balance: int
    accrued: int
    used: int
    closing_balance: int
    forgiven: int = 0        # shortfall dropped by the zero floor


@dataclass(frozen=True)
class LedgerWalk:
    leave_year: LeaveYear
    buckets: tuple[MonthBucket, ...]

    @property
    def balance(self) -> int:
        return self.buckets[-1].closing_balance if self.buckets else 0

    @property
    def total_accrued(self) -> int:
        return sum(bucket.accrued for bucket in self.buckets)

    @property
    def total_used(self) -> int:
        return sum(bucket.used for bucket in self.buckets)


def usage_by_month(approved_leaves: Iterable[LeaveRecord]) -> dict[date, int]:
    """Days consumed per month, keyed by the first day of each leave's start month."""
    usage: dict[date, int] = defaultdict(int)
    for leave in approved_leaves:
        start = leave.start
        days = calculate_leave_days(leave.from_date, leave.to_date)
        if start is None or days == 0:
            logger.debug("Skipping leave %s with unusable dates", leave.id)
            continue
        usage[start.replace(day=1)] += days
    return dict(usage)


def _fold_months(
    months: Iterable[date],
    usage: dict[date, int],
    accrual: int,
) -> Iterator[MonthBucket]:
    balance = 0
    for month in months:
        used = usage.get(month, 0)
        gross = balance + accrual - used
        bucket = MonthBucket(
            month=month,
            opening_balance=balance,
            accrued=accrual,
            used=used,
            closing_balance=max(0, gross),
            forgiven=max(0, -gross),
        )
        balance = bucket.closing_balance
        yield bucket


def walk_ledger(
    approved_leaves: Sequence[LeaveRecord],
    reference_date: date,
    start_month: int,
    accrual: int = DEFAULT_MONTHLY_ACCRUAL,
) -> LedgerWalk:
    """Walk the leave year up to *reference_date* and return every month bucket."""
    leave_year = resolve_leave_year(reference_date, start_month)
    buckets = tuple(
        _fold_months(
            leave_year.months_through(reference_date),
            usage_by_month(approved_leaves),
            accrual,
        )
    )
    return LedgerWalk(leave_year=leave_year, buckets=buckets)


def compute_available_leaves(
    approved_leaves: Sequence[LeaveRecord],
    reference_date: date,
    start_month: int,
    accrual: int = DEFAULT_MONTHLY_ACCRUAL,
) -> int:
    """Current balance: the closing balance of the reference month."""
    return walk_ledger(approved_leaves, reference_date, start_month, accrual).balance
