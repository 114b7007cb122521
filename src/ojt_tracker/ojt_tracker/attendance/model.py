from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.formatting import format_hours
from ..core.enums import ClockState


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance row per (user, date)."""

    attendance_id: int
    user_id: int
    work_date: date
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    clock_in_latitude: Optional[float] = None
    clock_in_longitude: Optional[float] = None
    clock_out_latitude: Optional[float] = None
    clock_out_longitude: Optional[float] = None
    clock_in_distance_meters: Optional[int] = None
    clock_out_distance_meters: Optional[int] = None
    total_hours: Optional[float] = None
    notes: Optional[str] = None

    @property
    def state(self) -> ClockState:
        if self.clock_out is not None:
            return ClockState.CLOCKED_OUT
        if self.clock_in is not None:
            return ClockState.CLOCKED_IN
        return ClockState.ABSENT

    def to_dict(self) -> dict:
        return {
            "attendance_id": self.attendance_id,
            "user_id": self.user_id,
            "date": self.work_date.strftime("%Y-%m-%d"),
            "clock_in": self.clock_in.isoformat() if self.clock_in else None,
            "clock_out": self.clock_out.isoformat() if self.clock_out else None,
            "clock_in_distance_meters": self.clock_in_distance_meters,
            "clock_out_distance_meters": self.clock_out_distance_meters,
            "total_hours": self.total_hours,
            "total_hours_label": format_hours(self.total_hours),
            "state": self.state.value,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class CompletedDay:
    """Read-model for reports: a closed day with its hours."""

    user_id: int
    work_date: date
    total_hours: float


@dataclass(frozen=True)
class AttendanceSummary:
    total_days: int
    total_hours: float
    required_hours: int
    remaining_hours: float
    completion_percentage: float

    def to_dict(self) -> dict:
        return {
            "total_days": self.total_days,
            "total_hours": self.total_hours,
            "total_hours_label": format_hours(self.total_hours),
            "required_hours": self.required_hours,
            "remaining_hours": self.remaining_hours,
            "remaining_hours_label": format_hours(self.remaining_hours),
            "completion_percentage": round(self.completion_percentage, 1),
        }


@dataclass(frozen=True)
class AttendanceLogEntry:
    """One row of the monthly attendance log, with the owner's name attached."""

    record: AttendanceRecord
    full_name: Optional[str] = None
    email: Optional[str] = None
    department: Optional[str] = None

    @property
    def status_label(self) -> str:
        if self.record.clock_out is not None:
            return "Complete"
        if self.record.clock_in is not None:
            return "In Progress"
        return "Absent"

    def matches(self, query: str) -> bool:
        query = (query or "").strip()
        if not query:
            return True
        name = (self.full_name or "").lower()
        return query.lower() in name or query in self.record.work_date.strftime("%Y-%m-%d")

    def to_dict(self) -> dict:
        data = self.record.to_dict()
        data.update(
            {
                "full_name": self.full_name,
                "email": self.email,
                "department": self.department,
                "status_label": self.status_label,
            }
        )
        return data
