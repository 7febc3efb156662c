"""Input record schemas — the read-only snapshots the report engines consume.

Dates are deliberately *not* validated here. A record with an empty or
garbage date still loads; the engines treat it as contributing zero days.
Field aliases match the JSON the HR frontend already produces
(``employeeId``, ``from``, ``to``, ``startDate`` …).
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from leave_insights.common.constants import LeaveStatus, UNKNOWN_EMPLOYEE
from leave_insights.common.dates import DateRange, expand_range, parse_date


def _keep_raw_date(value: Any) -> Any:
    """Pass dates and strings through untouched; stringify anything else."""
    if value is None or isinstance(value, (date, str)):
        return value
    return str(value)


RawDate = Annotated[Optional[Union[datetime, date, str]], BeforeValidator(_keep_raw_date)]


class EmployeeRecord(BaseModel):
    """Directory entry used only for labelling report rows."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    employee_id: str = Field(..., alias="employeeId")
    name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return (self.name or "").strip() or UNKNOWN_EMPLOYEE


class LeaveRecord(BaseModel):
    """A leave request as stored by the approval workflow."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: Optional[str] = None
    employee_id: str = Field(..., alias="employeeId")
    from_date: RawDate = Field(None, alias="from")
    to_date: RawDate = Field(None, alias="to")
    status: str = LeaveStatus.pending.value
    leave_type: Optional[str] = Field(None, alias="leaveType")
    reason: Optional[str] = None
    request_date: RawDate = Field(None, alias="requestDate")

    @property
    def leave_status(self) -> Optional[LeaveStatus]:
        return LeaveStatus.parse(self.status)

    @property
    def is_approved(self) -> bool:
        return self.leave_status is LeaveStatus.approved

    @property
    def start(self) -> Optional[date]:
        return parse_date(self.from_date)

    @property
    def span(self) -> DateRange:
        return expand_range(self.from_date, self.to_date)


class HolidayRecord(BaseModel):
    """Company-wide holiday covering an inclusive date range."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    name: str = ""
    start_date: RawDate = Field(None, alias="startDate")
    end_date: RawDate = Field(None, alias="endDate")
    description: Optional[str] = None

    @property
    def span(self) -> DateRange:
        return expand_range(self.start_date, self.end_date)


def approved_only(leaves: list[LeaveRecord]) -> list[LeaveRecord]:
    return [leave for leave in leaves if leave.is_approved]
