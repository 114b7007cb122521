from __future__ import annotations

import csv
import io
import logging
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional, Sequence

from ..common.datetime_utils import month_bounds, now_local
from ..common.formatting import format_hours
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_TIMEZONE
from ..core.enums import ClockState, Role
from ..core.exceptions import (
    AuthorizationError,
    DuplicateRecordError,
    LocationUnavailableError,
    NotFoundError,
    OutOfRangeError,
    StateConflictError,
)
from ..geo.distance import is_within_radius
from ..settings.model import SiteSettings
from ..settings.repository import SettingsRepository
from ..users.model import Profile
from ..users.repository import UserRepository
from .model import AttendanceLogEntry, AttendanceRecord, AttendanceSummary
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

DAY_COMPLETED = "You have already completed your attendance for today."

LOG_CSV_HEADERS = ["Date", "Name", "Clock In", "Clock Out", "Total Hours", "Status"]


@dataclass(frozen=True)
class LocationFix:
    latitude: Optional[float]
    longitude: Optional[float]
    distance_meters: Optional[int]


def _coerce_coordinate(value: Any) -> Optional[float]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


class AttendanceService:
    """Absent -> ClockedIn -> ClockedOut, once per user per site-local day."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        settings: SettingsRepository,
        *,
        default_timezone: str = DEFAULT_TIMEZONE,
    ):
        self._attendance = attendance
        self._users = users
        self._settings = settings
        self._default_timezone = default_timezone

    def _now(self, now: Optional[datetime]) -> datetime:
        if now is not None:
            return now
        site = self._settings.get()
        return now_local(site.timezone if site else self._default_timezone)

    def today(self) -> date:
        """Current date at the site."""
        return self._now(None).date()

    def _get_user(self, user_id: int) -> Profile:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found.")
        if not user.is_active:
            raise AuthorizationError("This account is inactive.")
        return user

    def _verify_location(self, user: Profile, latitude: Any, longitude: Any) -> LocationFix:
        """Geofence gate: trainees must be inside the radius, other roles bypass it."""

        lat = _coerce_coordinate(latitude)
        lon = _coerce_coordinate(longitude)
        site: Optional[SiteSettings] = self._settings.get()

        if user.role != Role.OJT:
            distance = None
            if site and lat is not None and lon is not None:
                measured = is_within_radius(lat, lon, site.latitude, site.longitude, site.radius_meters).distance_meters
                distance = None if math.isnan(measured) else int(round(measured))
            return LocationFix(latitude=lat, longitude=lon, distance_meters=distance)

        if lat is None or lon is None:
            raise LocationUnavailableError("Could not retrieve your location. Please enable GPS.")
        if not site:
            raise NotFoundError("Site location has not been configured yet.")

        result = is_within_radius(lat, lon, site.latitude, site.longitude, site.radius_meters)
        if not result.allowed:
            logger.info(
                "geofence rejected user %s: distance=%.1fm radius=%sm",
                user.user_id,
                result.distance_meters,
                site.radius_meters,
            )
            raise OutOfRangeError(result.distance_meters, site.radius_meters)

        return LocationFix(latitude=lat, longitude=lon, distance_meters=int(round(result.distance_meters)))

    def get_today_record(self, user_id: int, today: date) -> Optional[AttendanceRecord]:
        return self._attendance.get_for_user_and_date(int(user_id), today)

    def today_status(self, user_id: int, *, now: Optional[datetime] = None) -> ClockState:
        record = self.get_today_record(user_id, self._now(now).date())
        return record.state if record else ClockState.ABSENT

    def clock_in(
        self,
        user_id: int,
        *,
        latitude: Any = None,
        longitude: Any = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = self._now(now)
        today = now.date()
        user = self._get_user(user_id)

        existing = self._attendance.get_for_user_and_date(user.user_id, today)
        if existing and existing.state == ClockState.CLOCKED_OUT:
            raise StateConflictError(DAY_COMPLETED)
        if existing:
            raise StateConflictError("You are already clocked in.")

        fix = self._verify_location(user, latitude, longitude)

        try:
            attendance_id = self._attendance.create_clock_in(
                user_id=user.user_id,
                work_date=today,
                clock_in=now,
                latitude=fix.latitude,
                longitude=fix.longitude,
                distance_meters=fix.distance_meters,
            )
        except DuplicateRecordError:
            # Another request created today's row first.
            raise StateConflictError(DAY_COMPLETED)

        logger.info("user %s clocked in at %s (distance=%s)", user.user_id, now.isoformat(), fix.distance_meters)
        return AttendanceRecord(
            attendance_id=attendance_id,
            user_id=user.user_id,
            work_date=today,
            clock_in=now,
            clock_in_latitude=fix.latitude,
            clock_in_longitude=fix.longitude,
            clock_in_distance_meters=fix.distance_meters,
        )

    def clock_out(
        self,
        user_id: int,
        *,
        latitude: Any = None,
        longitude: Any = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = self._now(now)
        today = now.date()
        user = self._get_user(user_id)

        record = self._attendance.get_for_user_and_date(user.user_id, today)
        if not record or record.clock_in is None:
            raise StateConflictError("You have not clocked in today.")
        if record.state == ClockState.CLOCKED_OUT:
            raise StateConflictError(DAY_COMPLETED)

        fix = self._verify_location(user, latitude, longitude)
        total_hours = round(max((now - record.clock_in).total_seconds(), 0.0) / 3600.0, 4)

        closed = self._attendance.update_clock_out(
            attendance_id=record.attendance_id,
            clock_out=now,
            latitude=fix.latitude,
            longitude=fix.longitude,
            distance_meters=fix.distance_meters,
            total_hours=total_hours,
        )
        if not closed:
            raise StateConflictError(DAY_COMPLETED)

        logger.info("user %s clocked out at %s (%.2fh)", user.user_id, now.isoformat(), total_hours)
        return AttendanceRecord(
            attendance_id=record.attendance_id,
            user_id=record.user_id,
            work_date=record.work_date,
            clock_in=record.clock_in,
            clock_out=now,
            clock_in_latitude=record.clock_in_latitude,
            clock_in_longitude=record.clock_in_longitude,
            clock_out_latitude=fix.latitude,
            clock_out_longitude=fix.longitude,
            clock_in_distance_meters=record.clock_in_distance_meters,
            clock_out_distance_meters=fix.distance_meters,
            total_hours=total_hours,
            notes=record.notes,
        )

    def clock_action(
        self,
        user_id: int,
        *,
        latitude: Any = None,
        longitude: Any = None,
        now: Optional[datetime] = None,
    ) -> tuple[str, AttendanceRecord]:
        """Single clock button: clock out when clocked in, clock in otherwise."""

        now = self._now(now)
        if self.today_status(user_id, now=now) == ClockState.CLOCKED_IN:
            return "clock_out", self.clock_out(user_id, latitude=latitude, longitude=longitude, now=now)
        return "clock_in", self.clock_in(user_id, latitude=latitude, longitude=longitude, now=now)

    def get_history(self, user_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[AttendanceRecord]:
        return self._attendance.get_recent_for_user(int(user_id), int(limit))

    def get_summary(self, user_id: int) -> AttendanceSummary:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found.")

        days = self._attendance.list_completed(user_id=user.user_id)
        total_hours = sum(d.total_hours for d in days)
        required = int(user.required_hours)
        completion = min(100.0, total_hours / required * 100.0) if required > 0 else 100.0

        return AttendanceSummary(
            total_days=len(days),
            total_hours=total_hours,
            required_hours=required,
            remaining_hours=max(0.0, required - total_hours),
            completion_percentage=completion,
        )

    def month_log(
        self,
        *,
        current_user_id: int,
        current_role: Role,
        month: date,
        query: str = "",
        user_id: Optional[int] = None,
    ) -> list[AttendanceLogEntry]:
        """Attendance rows for one calendar month, newest first.

        Trainees only ever see their own rows. Supervisors and admins see
        everyone, or one person when ``user_id`` is given. ``query`` keeps
        rows whose owner name or ``YYYY-MM-DD`` date contains it.
        """
        if current_role == Role.OJT:
            user_id = current_user_id
        start, end = month_bounds(month)
        records = self._attendance.list_between(start, end, user_id=int(user_id) if user_id is not None else None)

        people = {p.user_id: p for p in self._users.list_all()}
        entries = []
        for record in records:
            owner = people.get(record.user_id)
            entry = AttendanceLogEntry(
                record=record,
                full_name=owner.full_name if owner else None,
                email=owner.email if owner else None,
                department=owner.department if owner else None,
            )
            if entry.matches(query):
                entries.append(entry)
        return entries

    @staticmethod
    def export_log_csv(entries: Sequence[AttendanceLogEntry]) -> str:
        out = io.StringIO()
        writer = csv.writer(out, lineterminator="\n")
        writer.writerow(LOG_CSV_HEADERS)
        for e in entries:
            r = e.record
            writer.writerow(
                [
                    r.work_date.strftime("%Y-%m-%d"),
                    e.full_name or "N/A",
                    r.clock_in.strftime("%I:%M %p") if r.clock_in else "",
                    r.clock_out.strftime("%I:%M %p") if r.clock_out else "",
                    format_hours(r.total_hours) if r.total_hours else "",
                    e.status_label,
                ]
            )
        return out.getvalue()
