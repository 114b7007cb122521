from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_month
from ..common.validators import parse_int
from ..common.web import current_user, json_body, ok
from ..container import Container
from ..core.constants import DEFAULT_HISTORY_LIMIT

_MESSAGES = {
    "clock_in": "Clocked in successfully!",
    "clock_out": "Clocked out successfully!",
}


def register(app: Flask, container: Container) -> None:
    def _location():
        data = json_body()
        return data.get("latitude"), data.get("longitude")

    @app.route("/dashboard/ojt", endpoint="dashboard_ojt")
    def dashboard_ojt():
        me = current_user()
        svc = container.attendance_service
        today = svc.today()
        record = svc.get_today_record(me.user_id, today)
        return ok(
            user=container.user_service.get(me.user_id).to_public_dict(),
            date=today.strftime("%Y-%m-%d"),
            clock_status=record.state.value if record else "absent",
            today=record.to_dict() if record else None,
            summary=svc.get_summary(me.user_id).to_dict(),
            history=[r.to_dict() for r in svc.get_history(me.user_id)],
            invitations=[t.to_dict() for t in container.assignment_service.pending_invitations(me.user_id)],
        )

    @app.route("/api/attendance/clock", methods=["POST"], endpoint="api_clock")
    def api_clock():
        """Single clock button: auto-detect clock-in vs clock-out from today's state."""
        me = current_user()
        lat, lon = _location()
        action, record = container.attendance_service.clock_action(me.user_id, latitude=lat, longitude=lon)
        return ok(_MESSAGES[action], action=action, record=record.to_dict())

    @app.route("/api/attendance/clock-in", methods=["POST"], endpoint="api_clock_in")
    def api_clock_in():
        me = current_user()
        lat, lon = _location()
        record = container.attendance_service.clock_in(me.user_id, latitude=lat, longitude=lon)
        return ok(_MESSAGES["clock_in"], action="clock_in", record=record.to_dict())

    @app.route("/api/attendance/clock-out", methods=["POST"], endpoint="api_clock_out")
    def api_clock_out():
        me = current_user()
        lat, lon = _location()
        record = container.attendance_service.clock_out(me.user_id, latitude=lat, longitude=lon)
        return ok(_MESSAGES["clock_out"], action="clock_out", record=record.to_dict())

    @app.route("/api/attendance/today", methods=["GET"], endpoint="api_attendance_today")
    def api_attendance_today():
        me = current_user()
        svc = container.attendance_service
        record = svc.get_today_record(me.user_id, svc.today())
        return ok(clock_status=record.state.value if record else "absent", today=record.to_dict() if record else None)

    @app.route("/api/attendance/history", methods=["GET"], endpoint="api_attendance_history")
    def api_attendance_history():
        me = current_user()
        limit = parse_int(request.args.get("limit", DEFAULT_HISTORY_LIMIT), "Limit")
        records = container.attendance_service.get_history(me.user_id, limit=max(1, min(limit, 366)))
        return ok(history=[r.to_dict() for r in records])

    @app.route("/api/attendance/summary", methods=["GET"], endpoint="api_attendance_summary")
    def api_attendance_summary():
        me = current_user()
        return ok(summary=container.attendance_service.get_summary(me.user_id).to_dict())

    def _month_log():
        me = current_user()
        svc = container.attendance_service
        value = request.args.get("month")
        month = parse_month(value) if value else svc.today().replace(day=1)
        user_id = request.args.get("user_id")
        entries = svc.month_log(
            current_user_id=me.user_id,
            current_role=me.role,
            month=month,
            query=request.args.get("q", ""),
            user_id=parse_int(user_id, "User") if user_id else None,
        )
        return month, entries

    @app.route("/api/attendance", methods=["GET"], endpoint="api_attendance_log")
    def api_attendance_log():
        month, entries = _month_log()
        return ok(month=month.strftime("%Y-%m"), records=[e.to_dict() for e in entries])

    @app.route("/api/attendance.csv", methods=["GET"], endpoint="api_attendance_log_csv")
    def api_attendance_log_csv():
        month, entries = _month_log()
        csv_text = container.attendance_service.export_log_csv(entries)
        filename = f"attendance-{month.strftime('%Y-%m')}.csv"
        return app.response_class(
            csv_text.encode("utf-8-sig"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
