"""Date parsing, inclusive day ranges and month filters.

Every helper here is forgiving: leave and holiday records come from an
external store and may carry empty or garbage dates. Such values parse to
``None`` and expand to an empty range, so a bad record contributes zero days
instead of failing a whole report.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Iterator, Optional
from zoneinfo import ZoneInfo

from leave_insights.common.constants import ALL_MONTHS, DATE_FORMAT
from leave_insights.config import settings

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


def _reference_tz() -> ZoneInfo:
    return ZoneInfo(settings.LEAVE_TIMEZONE)


# ── Parsing ─────────────────────────────────────────────────────────

def parse_date(value: Any) -> Optional[date]:
    """Normalise *value* to a calendar date, or ``None`` if unusable.

    Accepts ``date``, ``datetime``, ISO-8601 strings (``2026-05-10``,
    ``2026-05-10T18:30:00Z``) and the display format ``10-May-2026``.
    Aware datetimes are converted to ``LEAVE_TIMEZONE`` before the date is
    taken, so a late-evening UTC timestamp does not drift a day.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(_reference_tz())
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        logger.debug("Ignoring non-string date value %r", value)
        return None

    text = value.strip()
    if not text:
        return None
    try:
        return parse_date(datetime.fromisoformat(text))
    except ValueError:
        pass
    try:
        return datetime.strptime(text, DATE_FORMAT).date()
    except ValueError:
        logger.debug("Unparsable date %r", value)
        return None


def add_days(day: date, days: int) -> Optional[date]:
    """Shift *day*; ``None`` when the result falls outside the supported calendar."""
    try:
        return day + timedelta(days=days)
    except OverflowError:
        return None


def format_date(day: date) -> str:
    """Display format used in report text: ``10-May-2026``."""
    return day.strftime(DATE_FORMAT)


# ── Inclusive ranges ────────────────────────────────────────────────

@dataclass(frozen=True)
class DateRange:
    """Inclusive ``[start, end]`` span of calendar days.

    Iterating restarts from ``start`` every time, so a range can be walked
    more than once. ``start > end`` denotes the empty range.
    """

    start: date
    end: date

    def __iter__(self) -> Iterator[date]:
        for offset in range(len(self)):
            yield self.start + timedelta(days=offset)

    def __len__(self) -> int:
        return max(0, (self.end - self.start).days + 1)

    def __bool__(self) -> bool:
        return self.start <= self.end

    def __contains__(self, item: object) -> bool:
        if not isinstance(item, date) or not self:
            return False
        if isinstance(item, datetime):
            item = item.date()
        return self.start <= item <= self.end

    def overlaps(self, other: "DateRange") -> bool:
        return bool(self) and bool(other) and self.start <= other.end and other.start <= self.end


EMPTY_RANGE = DateRange(date.min + ONE_DAY, date.min)


def expand_range(from_value: Any, to_value: Any) -> DateRange:
    """Inclusive range between two raw date values.

    Reversed bounds are swapped. If either bound is unparsable the result is
    empty, which callers treat as "contributes nothing".
    """
    start = parse_date(from_value)
    end = parse_date(to_value)
    if start is None or end is None:
        return EMPTY_RANGE
    if start > end:
        start, end = end, start
    return DateRange(start, end)


def calculate_leave_days(from_value: Any, to_value: Any) -> int:
    """Inclusive day count: ``(to - from).days + 1``; 0 for malformed input."""
    return len(expand_range(from_value, to_value))


def covered_days(ranges: Iterable[DateRange]) -> set[date]:
    """Union of all days in *ranges* (membership set for adjacency tests)."""
    days: set[date] = set()
    for span in ranges:
        days.update(span)
    return days


# ── Month filter ────────────────────────────────────────────────────

@dataclass(frozen=True)
class MonthFilter:
    """Either every month (``All``) or a single ``YYYY-MM`` calendar month."""

    year: Optional[int] = None
    month: Optional[int] = None

    @classmethod
    def parse(cls, value: Optional[str]) -> "MonthFilter":
        """Parse ``"All"`` / ``None`` / ``"YYYY-MM"``; raise ValueError otherwise."""
        if value is None or value.strip().casefold() in ("", ALL_MONTHS.casefold()):
            return cls()
        try:
            year_text, month_text = value.strip().split("-")
            month_filter = cls(year=int(year_text), month=int(month_text))
            month_filter.span  # the whole month must be representable
        except ValueError:
            raise ValueError(f"Month filter must be 'All' or YYYY-MM, got {value!r}.") from None
        return month_filter

    @property
    def is_all(self) -> bool:
        return self.year is None

    @property
    def span(self) -> Optional[DateRange]:
        if self.is_all:
            return None
        first = date(self.year, self.month, 1)
        next_first = date(self.year + 1, 1, 1) if self.month == 12 else date(self.year, self.month + 1, 1)
        return DateRange(first, next_first - ONE_DAY)

    def contains(self, day: Optional[date]) -> bool:
        if self.is_all:
            return True
        return day is not None and (day.year, day.month) == (self.year, self.month)

    def overlaps(self, span: DateRange) -> bool:
        if self.is_all:
            return bool(span)
        return span.overlaps(self.span)

    def __str__(self) -> str:
        return ALL_MONTHS if self.is_all else f"{self.year:04d}-{self.month:02d}"


def format_month(value: str) -> str:
    """``"2026-05"`` → ``"May 2026"``; ``"All"`` → ``"All Months"``."""
    month_filter = MonthFilter.parse(value)
    if month_filter.is_all:
        return "All Months"
    return date(month_filter.year, month_filter.month, 1).strftime("%B %Y")


def available_months(start_values: Iterable[Any]) -> list[str]:
    """Distinct ``YYYY-MM`` months of the given start dates, newest first.

    Only months that are themselves valid month filters are offered.
    """
    months: set[str] = set()
    for day in map(parse_date, start_values):
        if day is None:
            continue
        label = f"{day.year:04d}-{day.month:02d}"
        try:
            MonthFilter.parse(label)
        except ValueError:
            logger.debug("Skipping month %s outside the filterable range", label)
            continue
        months.add(label)
    return sorted(months, reverse=True)
