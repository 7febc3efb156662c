"""Sandwich-leave detection.

A sandwich is approved leave placed on both sides of a non-working stretch,
so a short request buys a long break. Two patterns are recognised:

  * holiday: leave on the day before a holiday range *and* the day after it
  * weekend: leave on a Saturday *and* the following Monday

Each pattern is a cluster keyed by its anchor (the holiday range or the
Saturday), so a cluster counts once however many requests touch it. Every
cluster weighs a flat ``SANDWICH_CLUSTER_DAYS`` (2 by default).

The aggregate score and the per-request explanation both go through
``find_clusters``; they never apply the rules separately.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Iterator, Sequence, Union

from leave_insights.common.dates import (
    DateRange,
    MonthFilter,
    add_days,
    covered_days,
    expand_range,
    format_date,
)
from leave_insights.leave.schemas import HolidayRecord, LeaveRecord

DEFAULT_CLUSTER_DAYS = 2


# ── Cluster keys ────────────────────────────────────────────────────

@dataclass(frozen=True)
class HolidayCluster:
    start: date
    end: date
    name: str = ""

    @property
    def flanks(self) -> tuple[date, date]:
        """Leave days that bridge the holiday range."""
        return add_days(self.start, -1), add_days(self.end, 1)

    def in_month(self, month_filter: MonthFilter) -> bool:
        return month_filter.overlaps(DateRange(self.start, self.end))

    def describe(self) -> str:
        label = self.name or "holiday"
        if self.start == self.end:
            return f"Sandwiched around holiday {label} ({format_date(self.start)})"
        return (
            f"Sandwiched around holiday {label} "
            f"({format_date(self.start)} to {format_date(self.end)})"
        )


@dataclass(frozen=True)
class WeekendCluster:
    saturday: date

    @property
    def flanks(self) -> tuple[date, date]:
        return self.saturday, add_days(self.saturday, 2)

    def in_month(self, month_filter: MonthFilter) -> bool:
        return month_filter.contains(self.saturday)

    def describe(self) -> str:
        saturday, monday = self.flanks
        return (
            f"Weekend sandwich: leave on Sat {format_date(saturday)} "
            f"and Mon {format_date(monday)}"
        )


SandwichCluster = Union[HolidayCluster, WeekendCluster]


def _identity(cluster: SandwichCluster) -> tuple:
    # Holiday name is not part of the identity.
    if isinstance(cluster, HolidayCluster):
        return ("holiday", cluster.start, cluster.end)
    return ("weekend", cluster.saturday)


@dataclass(frozen=True)
class SandwichScore:
    count: int = 0
    days: int = 0


# ── Shared predicates ───────────────────────────────────────────────

def holiday_is_sandwiched(holiday_span: DateRange, leave_days: set[date]) -> bool:
    if not holiday_span:
        return False
    before = add_days(holiday_span.start, -1)
    after = add_days(holiday_span.end, 1)
    return before in leave_days and after in leave_days


def weekend_is_sandwiched(day: date, leave_days: set[date]) -> bool:
    return (
        day.weekday() == calendar.SATURDAY
        and day in leave_days
        and add_days(day, 2) in leave_days
    )


def find_clusters(
    leave_days: set[date],
    holidays: Iterable[HolidayRecord],
) -> Iterator[SandwichCluster]:
    """Yield each distinct sandwich cluster in *leave_days*, holidays first."""
    seen: set[tuple] = set()
    candidates: list[SandwichCluster] = []

    for holiday in holidays:
        span = holiday.span
        if holiday_is_sandwiched(span, leave_days):
            candidates.append(HolidayCluster(span.start, span.end, holiday.name))

    for day in sorted(leave_days):
        if weekend_is_sandwiched(day, leave_days):
            candidates.append(WeekendCluster(day))

    for cluster in candidates:
        key = _identity(cluster)
        if key in seen:
            continue
        seen.add(key)
        yield cluster


# ── Aggregate score ─────────────────────────────────────────────────

def detect_clusters(
    approved_leaves: Sequence[LeaveRecord],
    holidays: Sequence[HolidayRecord],
    month_filter: MonthFilter,
) -> list[SandwichCluster]:
    """Clusters over the whole approved coverage whose anchor (holiday range or
    Saturday) falls in the filter month."""
    leave_days = covered_days(leave.span for leave in approved_leaves)
    if not leave_days:
        return []
    return [
        cluster
        for cluster in find_clusters(leave_days, holidays)
        if cluster.in_month(month_filter)
    ]


def compute_sandwich_leaves(
    approved_leaves: Sequence[LeaveRecord],
    holidays: Sequence[HolidayRecord],
    month_filter: MonthFilter,
    cluster_days: int = DEFAULT_CLUSTER_DAYS,
) -> SandwichScore:
    clusters = detect_clusters(approved_leaves, holidays, month_filter)
    return SandwichScore(count=len(clusters), days=len(clusters) * cluster_days)


# ── Per-request explanation ─────────────────────────────────────────

def get_sandwich_leave_reasons(
    approved_leaves_for_employee: Sequence[LeaveRecord],
    leave_from: object,
    leave_to: object,
    holidays: Sequence[HolidayRecord] = (),
) -> list[str]:
    """Why the request spanning *leave_from*..*leave_to* is part of a sandwich.

    Clusters are found over the employee's whole approved coverage; a cluster
    is reported when one of its bridging leave days lies in the request.
    """
    request_span = expand_range(leave_from, leave_to)
    if not request_span:
        return []
    leave_days = covered_days(leave.span for leave in approved_leaves_for_employee)
    return [
        cluster.describe()
        for cluster in find_clusters(leave_days, holidays)
        if any(day in request_span for day in cluster.flanks)
    ]

