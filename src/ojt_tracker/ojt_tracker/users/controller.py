from __future__ import annotations

from flask import Flask, redirect, session

from ..common.access import dashboard_path
from ..common.web import current_role, current_user, json_body, login_session, ok
from ..container import Container


def _flag(value, default: bool = True) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def register(app: Flask, container: Container) -> None:
    @app.route("/", endpoint="index")
    def index():
        role = current_role()
        return redirect(dashboard_path(role) if role else "/login")

    @app.route("/login", methods=["GET"], endpoint="login_page")
    def login_page():
        role = current_role()
        if role:
            return redirect(dashboard_path(role))
        return ok("Please sign in.", login_url="/api/auth/login")

    @app.route("/login", methods=["POST"], endpoint="login")
    @app.route("/api/auth/login", methods=["POST"], endpoint="api_login")
    def login():
        data = json_body()
        user = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))
        login_session(user)
        return ok(
            f"Welcome, {user.full_name}!",
            user={"user_id": user.user_id, "full_name": user.full_name, "role": user.role.value},
            redirect=dashboard_path(user.role),
        )

    @app.route("/logout", methods=["GET", "POST"], endpoint="logout")
    def logout():
        session.clear()
        return redirect("/login")

    @app.route("/dashboard", endpoint="dashboard")
    def dashboard():
        return redirect(dashboard_path(current_user().role))

    @app.route("/api/me", endpoint="api_me")
    def api_me():
        return ok(user=container.user_service.get(current_user().user_id).to_public_dict())

    @app.route("/api/users/trainees", endpoint="api_trainees")
    def api_trainees():
        return ok(users=[u.to_public_dict() for u in container.user_service.list_active_trainees()])

    # ----- admin: users -----

    @app.route("/api/admin/users", methods=["GET"], endpoint="admin_users")
    def admin_users():
        return ok(users=[u.to_public_dict() for u in container.user_service.list_users()])

    @app.route("/api/admin/users", methods=["POST"], endpoint="admin_users_create")
    def admin_users_create():
        me = current_user()
        data = json_body()
        user_id = container.user_service.create_user(
            current_role=me.role,
            full_name=data.get("full_name", ""),
            email=data.get("email", ""),
            password=data.get("password", ""),
            role=data.get("role") or "ojt",
            department=data.get("department"),
            required_hours=data.get("required_hours", 600),
            is_active=_flag(data.get("is_active")),
        )
        return ok("User created.", status=201, user_id=user_id)

    @app.route("/api/admin/users/<int:user_id>", methods=["PUT", "POST"], endpoint="admin_users_update")
    def admin_users_update(user_id: int):
        me = current_user()
        data = json_body()
        existing = container.user_service.get(user_id)
        container.user_service.update_user(
            current_role=me.role,
            user_id=user_id,
            full_name=data.get("full_name", existing.full_name),
            role=data.get("role") or existing.role,
            department=data.get("department", existing.department),
            required_hours=data.get("required_hours", existing.required_hours),
            is_active=_flag(data.get("is_active"), existing.is_active),
        )
        return ok("User updated.")

    @app.route("/api/admin/users/<int:user_id>/deactivate", methods=["POST"], endpoint="admin_users_deactivate")
    def admin_users_deactivate(user_id: int):
        container.user_service.deactivate_user(current_role=current_user().role, user_id=user_id)
        return ok("User deactivated.")

    @app.route("/api/admin/users/<int:user_id>", methods=["DELETE"], endpoint="admin_users_delete")
    def admin_users_delete(user_id: int):
        me = current_user()
        container.user_service.delete_user(current_role=me.role, current_user_id=me.user_id, user_id=user_id)
        return ok("User deleted.")
