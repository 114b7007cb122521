from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord, CompletedDay


class AttendanceRepository(Protocol):
    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_date(self, work_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_between(
        self,
        start_date: date,
        end_date: date,
        *,
        user_id: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        """Rows dated within [start_date, end_date], newest first."""

        raise NotImplementedError

    def create_clock_in(
        self,
        *,
        user_id: int,
        work_date: date,
        clock_in: datetime,
        latitude: Optional[float],
        longitude: Optional[float],
        distance_meters: Optional[int],
    ) -> int:
        """Insert the day's row.

        Must raise ``DuplicateRecordError`` when a row already exists for (user, date).
        """

        raise NotImplementedError

    def update_clock_out(
        self,
        *,
        attendance_id: int,
        clock_out: datetime,
        latitude: Optional[float],
        longitude: Optional[float],
        distance_meters: Optional[int],
        total_hours: float,
    ) -> bool:
        """Close the day; returns False if the row was already closed."""

        raise NotImplementedError

    def list_completed(
        self,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        user_id: Optional[int] = None,
    ) -> Sequence[CompletedDay]:
        raise NotImplementedError
