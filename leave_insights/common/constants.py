"""Enums and constants for leave reporting."""

from __future__ import annotations

import enum
from typing import Optional


# ── Leave ───────────────────────────────────────────────────────────

class LeaveStatus(str, enum.Enum):
    pending = "Pending"
    approved = "Approved"
    rejected = "Rejected"

    @classmethod
    def parse(cls, value: object) -> Optional["LeaveStatus"]:
        """Case-insensitive lookup; unknown values return None."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        normalized = value.strip().lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        return None


# ── Report columns ──────────────────────────────────────────────────

class SummaryColumn(str, enum.Enum):
    employee_id = "employee_id"
    employee_name = "employee_name"
    pending_leaves = "pending_leaves"
    total_leave_days = "total_leave_days"
    extra_leaves = "extra_leaves"
    sandwich_count = "sandwich_count"
    sandwich_days = "sandwich_days"


class SortOrder(str, enum.Enum):
    asc = "asc"
    desc = "desc"


# Column → header used by the flat export
EXPORT_HEADERS: dict[SummaryColumn, str] = {
    SummaryColumn.employee_id: "Employee ID",
    SummaryColumn.employee_name: "Employee Name",
    SummaryColumn.pending_leaves: "Pending Leaves",
    SummaryColumn.total_leave_days: "Total Leave Days",
    SummaryColumn.extra_leaves: "Extra Leaves (LOP)",
    SummaryColumn.sandwich_count: "Sandwich Leaves",
    SummaryColumn.sandwich_days: "Sandwich Days",
}

# ── Misc constants ──────────────────────────────────────────────────

ALL_MONTHS = "All"
DATE_FORMAT = "%d-%b-%Y"          # 19-Feb-2026
UNKNOWN_EMPLOYEE = "Unknown"
