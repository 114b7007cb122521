from __future__ import annotations

from flask import Flask

from ..common.web import current_user, json_body, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/settings/site", methods=["GET"], endpoint="site_settings")
    def site_settings():
        site = container.settings_service.get()
        return ok(settings=site.to_dict() if site else None)

    @app.route("/api/admin/settings/site", methods=["POST", "PUT"], endpoint="admin_settings_site")
    def admin_settings_site():
        me = current_user()
        data = json_body()
        container.settings_service.save_site(
            current_role=me.role,
            user_id=me.user_id,
            site_name=data.get("site_name", ""),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            radius_meters=data.get("radius_meters"),
            address=data.get("address"),
        )
        return ok("Site location saved.", settings=container.settings_service.require().to_dict())

    @app.route("/api/admin/settings/timezone", methods=["POST", "PUT"], endpoint="admin_settings_timezone")
    def admin_settings_timezone():
        me = current_user()
        container.settings_service.save_timezone(
            current_role=me.role, user_id=me.user_id, timezone=json_body().get("timezone", "")
        )
        return ok("Timezone saved.", timezone=container.settings_service.timezone())

    @app.route("/api/admin/settings/retention", methods=["POST", "PUT"], endpoint="admin_settings_retention")
    def admin_settings_retention():
        me = current_user()
        days = container.settings_service.save_retention_days(
            current_role=me.role, user_id=me.user_id, days=json_body().get("days")
        )
        return ok(f"Archived tasks are kept for {days} day(s).", days=days)
