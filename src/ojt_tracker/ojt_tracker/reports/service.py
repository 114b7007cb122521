from __future__ import annotations

import csv
import io
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

from ..attendance.model import AttendanceRecord, CompletedDay
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import month_bounds
from ..common.formatting import format_hours
from ..core.enums import Role
from ..users.model import Profile
from ..users.repository import UserRepository

CSV_HEADERS = [
    "Name",
    "Email",
    "Dept",
    "Total Hours",
    "Total Days",
    "Month Hours",
    "Month Days",
    "Avg Daily Hours",
    "% Complete",
]


def completion_pct(total_hours: float, required_hours: int) -> float:
    if required_hours <= 0:
        return 100.0
    return min(100.0, total_hours / required_hours * 100.0)


@dataclass(frozen=True)
class TraineeReport:
    profile: Profile
    total_hours: float
    total_days: int
    month_hours: float
    month_days: int
    avg_daily_hours: float
    completion_pct: float

    def to_dict(self) -> dict:
        return {
            "user_id": self.profile.user_id,
            "full_name": self.profile.full_name,
            "email": self.profile.email,
            "department": self.profile.department,
            "required_hours": self.profile.required_hours,
            "total_hours": round(self.total_hours, 2),
            "total_hours_label": format_hours(self.total_hours),
            "total_days": self.total_days,
            "month_hours": round(self.month_hours, 2),
            "month_days": self.month_days,
            "avg_daily_hours": round(self.avg_daily_hours, 2),
            "completion_pct": round(self.completion_pct, 1),
        }


@dataclass(frozen=True)
class TraineeOverview:
    profile: Profile
    total_hours: float
    total_days: int
    completion_pct: float
    today_record: Optional[AttendanceRecord] = None

    @property
    def is_present(self) -> bool:
        return bool(self.today_record and self.today_record.clock_in)

    def to_dict(self) -> dict:
        return {
            "profile": self.profile.to_public_dict(),
            "total_hours": round(self.total_hours, 2),
            "total_hours_label": format_hours(self.total_hours),
            "total_days": self.total_days,
            "completion_pct": round(self.completion_pct, 1),
            "today": self.today_record.to_dict() if self.today_record else None,
            "is_present": self.is_present,
        }


@dataclass(frozen=True)
class SupervisorOverview:
    trainees: list[TraineeOverview]
    present_today: int
    completed: int
    avg_hours: float

    def to_dict(self) -> dict:
        return {
            "total": len(self.trainees),
            "present_today": self.present_today,
            "absent_today": len(self.trainees) - self.present_today,
            "completed": self.completed,
            "avg_hours": round(self.avg_hours, 2),
            "avg_hours_label": format_hours(self.avg_hours),
            "trainees": [t.to_dict() for t in self.trainees],
        }


@dataclass(frozen=True)
class AdminStats:
    active_trainees: int
    active_supervisors: int
    present_today: int
    total_hours_all: float

    def to_dict(self) -> dict:
        return {
            "active_trainees": self.active_trainees,
            "active_supervisors": self.active_supervisors,
            "present_today": self.present_today,
            "total_hours_all": round(self.total_hours_all, 2),
            "total_hours_all_label": format_hours(self.total_hours_all),
        }


class ReportService:
    """Read-only aggregates over completed attendance days."""

    def __init__(self, users: UserRepository, attendance: AttendanceRepository):
        self._users = users
        self._attendance = attendance

    def _days_by_user(self) -> dict[int, list[CompletedDay]]:
        grouped: dict[int, list[CompletedDay]] = defaultdict(list)
        for day in self._attendance.list_completed():
            grouped[day.user_id].append(day)
        return grouped

    def trainee_reports(self, month: date) -> list[TraineeReport]:
        """Per active trainee, sorted by total hours (most first)."""
        first, last = month_bounds(month)
        days_by_user = self._days_by_user()

        reports = []
        for trainee in self._users.list_active_by_role(Role.OJT):
            days = days_by_user.get(trainee.user_id, [])
            in_month = [d for d in days if first <= d.work_date <= last]
            total_hours = sum(d.total_hours for d in days)
            reports.append(
                TraineeReport(
                    profile=trainee,
                    total_hours=total_hours,
                    total_days=len(days),
                    month_hours=sum(d.total_hours for d in in_month),
                    month_days=len(in_month),
                    avg_daily_hours=total_hours / len(days) if days else 0.0,
                    completion_pct=completion_pct(total_hours, trainee.required_hours),
                )
            )

        reports.sort(key=lambda r: r.total_hours, reverse=True)
        return reports

    def supervisor_overview(self, today: date) -> SupervisorOverview:
        days_by_user = self._days_by_user()
        today_by_user = {r.user_id: r for r in self._attendance.list_for_date(today)}

        trainees = []
        for trainee in self._users.list_active_by_role(Role.OJT):
            days = days_by_user.get(trainee.user_id, [])
            total_hours = sum(d.total_hours for d in days)
            trainees.append(
                TraineeOverview(
                    profile=trainee,
                    total_hours=total_hours,
                    total_days=len(days),
                    completion_pct=completion_pct(total_hours, trainee.required_hours),
                    today_record=today_by_user.get(trainee.user_id),
                )
            )

        return SupervisorOverview(
            trainees=trainees,
            present_today=sum(1 for t in trainees if t.is_present),
            completed=sum(1 for t in trainees if t.completion_pct >= 100.0),
            avg_hours=sum(t.total_hours for t in trainees) / len(trainees) if trainees else 0.0,
        )

    def admin_stats(self, today: date) -> AdminStats:
        return AdminStats(
            active_trainees=len(self._users.list_active_by_role(Role.OJT)),
            active_supervisors=len(self._users.list_active_by_role(Role.SUPERVISOR)),
            present_today=sum(1 for r in self._attendance.list_for_date(today) if r.clock_in is not None),
            total_hours_all=sum(d.total_hours for d in self._attendance.list_completed()),
        )

    @staticmethod
    def export_csv(reports: Sequence[TraineeReport]) -> str:
        out = io.StringIO()
        writer = csv.writer(out, lineterminator="\n")
        writer.writerow(CSV_HEADERS)
        for r in reports:
            writer.writerow(
                [
                    r.profile.full_name,
                    r.profile.email,
                    r.profile.department or "",
                    f"{r.total_hours:.2f}",
                    r.total_days,
                    f"{r.month_hours:.2f}",
                    r.month_days,
                    f"{r.avg_daily_hours:.2f}",
                    f"{r.completion_pct:.1f}%",
                ]
            )
        return out.getvalue()
