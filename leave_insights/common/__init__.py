"""Common module — shared utilities for leave reporting."""

from leave_insights.common.constants import (
    ALL_MONTHS,
    DATE_FORMAT,
    EXPORT_HEADERS,
    UNKNOWN_EMPLOYEE,
    LeaveStatus,
    SortOrder,
    SummaryColumn,
)
from leave_insights.common.dates import (
    DateRange,
    MonthFilter,
    calculate_leave_days,
    expand_range,
    parse_date,
)
from leave_insights.common.exceptions import (
    AppException,
    NotFoundException,
    ValidationException,
    register_exception_handlers,
)

__all__ = [
    # Constants / Enums
    "LeaveStatus",
    "SortOrder",
    "SummaryColumn",
    "ALL_MONTHS",
    "DATE_FORMAT",
    "EXPORT_HEADERS",
    "UNKNOWN_EMPLOYEE",
    # Dates
    "DateRange",
    "MonthFilter",
    "calculate_leave_days",
    "expand_range",
    "parse_date",
    # Exceptions
    "AppException",
    "NotFoundException",
    "ValidationException",
    "register_exception_handlers",
]
