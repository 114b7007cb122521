from datetime import date, datetime, timedelta

import pytest

from src.ojt_tracker.ojt_tracker.attendance.model import AttendanceRecord
from src.ojt_tracker.ojt_tracker.attendance.service import DAY_COMPLETED, AttendanceService
from src.ojt_tracker.ojt_tracker.core.enums import ClockState, Role
from src.ojt_tracker.ojt_tracker.core.exceptions import (
    AuthorizationError,
    LocationUnavailableError,
    NotFoundError,
    OutOfRangeError,
    StateConflictError,
)
from tests.fakes import InMemoryAttendance, InMemorySettings, InMemoryUsers, make_profile, make_site

# ~55m from the site in make_site()
NEAR = (14.6000, 120.9842)
FAR = (14.6100, 120.9842)


@pytest.fixture
def attendance_repo():
    return InMemoryAttendance()


@pytest.fixture
def svc(attendance_repo):
    users = InMemoryUsers(
        [
            make_profile(1, Role.OJT, required_hours=10),
            make_profile(2, Role.SUPERVISOR),
            make_profile(3, Role.OJT, is_active=False),
        ]
    )
    return AttendanceService(attendance_repo, users, InMemorySettings(make_site()))


def test_clock_in_inside_geofence(svc, attendance_repo, fixed_now):
    rec = svc.clock_in(1, latitude=NEAR[0], longitude=NEAR[1], now=fixed_now)

    assert rec.state == ClockState.CLOCKED_IN
    assert rec.work_date == fixed_now.date()
    assert 50 <= rec.clock_in_distance_meters <= 60
    assert attendance_repo.get_for_user_and_date(1, fixed_now.date()).clock_in == fixed_now


def test_clock_in_outside_geofence_is_rejected(svc, attendance_repo, fixed_now):
    with pytest.raises(OutOfRangeError) as exc:
        svc.clock_in(1, latitude=FAR[0], longitude=FAR[1], now=fixed_now)

    assert exc.value.radius_meters == 100
    assert exc.value.distance_meters > 1000
    assert "within 100m" in str(exc.value)
    assert attendance_repo.records == []


@pytest.mark.parametrize(
    "lat,lon",
    [(None, None), ("", "120.98"), ("abc", "120.98"), ("inf", "120.98"), (float("-inf"), 120.98), ("nan", "120.98")],
)
def test_clock_in_without_location(svc, fixed_now, lat, lon):
    with pytest.raises(LocationUnavailableError):
        svc.clock_in(1, latitude=lat, longitude=lon, now=fixed_now)


def test_trainee_needs_configured_site(attendance_repo, fixed_now):
    svc = AttendanceService(attendance_repo, InMemoryUsers([make_profile(1)]), InMemorySettings(None))
    with pytest.raises(NotFoundError):
        svc.clock_in(1, latitude=NEAR[0], longitude=NEAR[1], now=fixed_now)


def test_supervisor_bypasses_geofence(svc, fixed_now):
    rec = svc.clock_in(2, latitude=FAR[0], longitude=FAR[1], now=fixed_now)
    assert rec.state == ClockState.CLOCKED_IN
    assert rec.clock_in_distance_meters > 1000

    rec = svc.clock_out(2, now=fixed_now + timedelta(hours=1))
    assert rec.clock_out_distance_meters is None


def test_inactive_user_cannot_clock(svc, fixed_now):
    with pytest.raises(AuthorizationError):
        svc.clock_in(3, latitude=NEAR[0], longitude=NEAR[1], now=fixed_now)


def test_full_day_cycle(svc, fixed_now):
    assert svc.today_status(1, now=fixed_now) == ClockState.ABSENT

    svc.clock_in(1, latitude=NEAR[0], longitude=NEAR[1], now=fixed_now)
    assert svc.today_status(1, now=fixed_now) == ClockState.CLOCKED_IN

    with pytest.raises(StateConflictError, match="already clocked in"):
        svc.clock_in(1, latitude=NEAR[0], longitude=NEAR[1], now=fixed_now)

    rec = svc.clock_out(1, latitude=NEAR[0], longitude=NEAR[1], now=fixed_now + timedelta(hours=8, minutes=30))
    assert rec.total_hours == pytest.approx(8.5)
    assert svc.today_status(1, now=fixed_now) == ClockState.CLOCKED_OUT

    with pytest.raises(StateConflictError) as exc:
        svc.clock_in(1, latitude=NEAR[0], longitude=NEAR[1], now=fixed_now + timedelta(hours=9))
    assert str(exc.value) == DAY_COMPLETED

    with pytest.raises(StateConflictError) as exc:
        svc.clock_out(1, latitude=NEAR[0], longitude=NEAR[1], now=fixed_now + timedelta(hours=9))
    assert str(exc.value) == DAY_COMPLETED


def test_clock_out_before_clock_in(svc, fixed_now):
    with pytest.raises(StateConflictError, match="not clocked in"):
        svc.clock_out(1, latitude=NEAR[0], longitude=NEAR[1], now=fixed_now)


def test_clock_out_is_geofenced_for_trainees(svc, attendance_repo, fixed_now):
    svc.clock_in(1, latitude=NEAR[0], longitude=NEAR[1], now=fixed_now)
    with pytest.raises(OutOfRangeError):
        svc.clock_out(1, latitude=FAR[0], longitude=FAR[1], now=fixed_now + timedelta(hours=2))
    assert attendance_repo.get_for_user_and_date(1, fixed_now.date()).clock_out is None


def test_next_day_starts_fresh(svc, fixed_now):
    svc.clock_in(1, latitude=NEAR[0], longitude=NEAR[1], now=fixed_now)
    svc.clock_out(1, latitude=NEAR[0], longitude=NEAR[1], now=fixed_now + timedelta(hours=1))

    tomorrow = fixed_now + timedelta(days=1)
    assert svc.today_status(1, now=tomorrow) == ClockState.ABSENT
    svc.clock_in(1, latitude=NEAR[0], longitude=NEAR[1], now=tomorrow)


def test_clock_action_toggles(svc, fixed_now):
    action, _ = svc.clock_action(1, latitude=NEAR[0], longitude=NEAR[1], now=fixed_now)
    assert action == "clock_in"
    action, rec = svc.clock_action(1, latitude=NEAR[0], longitude=NEAR[1], now=fixed_now + timedelta(hours=3))
    assert action == "clock_out"
    assert rec.total_hours == pytest.approx(3.0)


def test_summary_caps_completion(svc, attendance_repo):
    for day, hours in ((2, 4.0), (3, 4.0), (4, 4.0)):
        d = date(2026, 3, day)
        attendance_repo.add(
            AttendanceRecord(
                attendance_id=day,
                user_id=1,
                work_date=d,
                clock_in=datetime(2026, 3, day, 8),
                clock_out=datetime(2026, 3, day, 12),
                total_hours=hours,
            )
        )
    # an open day does not count
    attendance_repo.add(AttendanceRecord(attendance_id=9, user_id=1, work_date=date(2026, 3, 5), clock_in=datetime(2026, 3, 5, 8)))

    summary = svc.get_summary(1)
    assert summary.total_days == 3
    assert summary.total_hours == pytest.approx(12.0)
    assert summary.remaining_hours == 0.0
    assert summary.completion_percentage == 100.0


def test_summary_with_zero_required_hours(attendance_repo):
    svc = AttendanceService(attendance_repo, InMemoryUsers([make_profile(1, required_hours=0)]), InMemorySettings(make_site()))
    assert svc.get_summary(1).completion_percentage == 100.0


def test_history_is_newest_first(svc, fixed_now):
    for offset in range(3):
        day = fixed_now + timedelta(days=offset)
        svc.clock_in(1, latitude=NEAR[0], longitude=NEAR[1], now=day)
        svc.clock_out(1, latitude=NEAR[0], longitude=NEAR[1], now=day + timedelta(hours=1))

    history = svc.get_history(1, limit=2)
    assert [r.work_date for r in history] == [
        (fixed_now + timedelta(days=2)).date(),
        (fixed_now + timedelta(days=1)).date(),
    ]


def _seed_month(repo):
    repo.add(AttendanceRecord(1, 1, date(2026, 3, 2), datetime(2026, 3, 2, 8), datetime(2026, 3, 2, 17), total_hours=9.0))
    repo.add(AttendanceRecord(2, 1, date(2026, 3, 3), datetime(2026, 3, 3, 8, 30)))
    repo.add(AttendanceRecord(3, 3, date(2026, 3, 2), datetime(2026, 3, 2, 9), datetime(2026, 3, 2, 13), total_hours=4.0))
    repo.add(AttendanceRecord(4, 1, date(2026, 2, 27), datetime(2026, 2, 27, 8), datetime(2026, 2, 27, 9), total_hours=1.0))


def test_trainee_month_log_is_own_rows_only(svc, attendance_repo):
    _seed_month(attendance_repo)

    entries = svc.month_log(current_user_id=1, current_role=Role.OJT, month=date(2026, 3, 1), user_id=3)

    assert [e.record.attendance_id for e in entries] == [2, 1]
    assert [e.status_label for e in entries] == ["In Progress", "Complete"]
    assert entries[0].full_name == "User 1"


def test_supervisor_month_log_sees_everyone_and_filters(svc, attendance_repo):
    _seed_month(attendance_repo)

    def log(q=""):
        return svc.month_log(current_user_id=2, current_role=Role.SUPERVISOR, month=date(2026, 3, 15), query=q)

    assert sorted(e.record.attendance_id for e in log()) == [1, 2, 3]
    assert [e.record.attendance_id for e in log("user 3")] == [3]
    assert [e.record.attendance_id for e in log("2026-03-03")] == [2]


def test_month_log_csv(svc, attendance_repo):
    _seed_month(attendance_repo)
    entries = svc.month_log(current_user_id=1, current_role=Role.OJT, month=date(2026, 3, 1))

    lines = svc.export_log_csv(entries).splitlines()

    assert lines[0] == "Date,Name,Clock In,Clock Out,Total Hours,Status"
    assert lines[1] == "2026-03-03,User 1,08:30 AM,,,In Progress"
    assert lines[2] == "2026-03-02,User 1,08:00 AM,05:00 PM,9h 0m,Complete"
