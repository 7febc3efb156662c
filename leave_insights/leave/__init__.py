"""Leave module — leave-year calendar, accrual ledger, sandwich detection."""

from leave_insights.leave.accrual import compute_available_leaves, walk_ledger
from leave_insights.leave.calendar import resolve_leave_year
from leave_insights.leave.sandwich import compute_sandwich_leaves, get_sandwich_leave_reasons

__all__ = [
    "resolve_leave_year",
    "walk_ledger",
    "compute_available_leaves",
    "compute_sandwich_leaves",
    "get_sandwich_leave_reasons",
]
