from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_month
from ..common.web import ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    reports = container.report_service

    def _month():
        value = request.args.get("month")
        if value:
            return parse_month(value)
        return container.attendance_service.today().replace(day=1)

    @app.route("/dashboard/supervisor", endpoint="dashboard_supervisor")
    def dashboard_supervisor():
        today = container.attendance_service.today()
        overview = reports.supervisor_overview(today)
        return ok(date=today.strftime("%Y-%m-%d"), overview=overview.to_dict())

    @app.route("/dashboard/admin", endpoint="dashboard_admin")
    def dashboard_admin():
        today = container.attendance_service.today()
        return ok(date=today.strftime("%Y-%m-%d"), stats=reports.admin_stats(today).to_dict())

    @app.route("/api/supervisor/reports", methods=["GET"], endpoint="supervisor_reports")
    def supervisor_reports():
        month = _month()
        rows = reports.trainee_reports(month)
        return ok(month=month.strftime("%Y-%m"), reports=[r.to_dict() for r in rows])

    @app.route("/api/supervisor/reports.csv", methods=["GET"], endpoint="supervisor_reports_csv")
    def supervisor_reports_csv():
        month = _month()
        csv_text = reports.export_csv(reports.trainee_reports(month))
        filename = f"report-{month.strftime('%Y-%m')}.csv"
        return app.response_class(
            csv_text.encode("utf-8-sig"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
