from __future__ import annotations

from typing import Sequence

from flask import Flask, request

from ..common.validators import parse_int
from ..common.web import current_user, json_body, ok
from ..container import Container
from ..core.exceptions import ValidationError
from ..users.service import SessionUser
from .assignments import can_edit_task
from .model import BoardColumn


def _id_list(value) -> list[int]:
    if value is None or value == "":
        return []
    if isinstance(value, str):
        value = [v for v in value.split(",") if v.strip()]
    return [parse_int(v, "User id") for v in value]


def _board_payload(board: Sequence[BoardColumn], me: SessionUser) -> list[dict]:
    columns = []
    for col in board:
        data = col.to_dict()
        for task, task_data in zip(col.tasks, data["tasks"]):
            task_data["can_edit"] = can_edit_task(task, user_id=me.user_id, role=me.role)
            status = task.status_of(me.user_id)
            task_data["my_status"] = status.value if status else None
        columns.append(data)
    return columns


def _accept_flag(data: dict) -> bool:
    if "accept" in data:
        value = data["accept"]
        return value is True or str(value).strip().lower() in {"1", "true", "yes"}
    response = str(data.get("response", "")).strip().lower()
    if response in {"accept", "accepted"}:
        return True
    if response in {"reject", "rejected"}:
        return False
    raise ValidationError("Response must be accept or reject.")


def register(app: Flask, container: Container) -> None:
    board_service = container.board_service
    assignments = container.assignment_service
    archive = container.archive_service

    @app.route("/api/kanban/board", methods=["GET"], endpoint="kanban_board")
    def kanban_board():
        me = current_user()
        board = board_service.get_board(filter_user_ids=_id_list(request.args.get("user_ids")))
        return ok(board=_board_payload(board, me))

    # ----- columns -----

    @app.route("/api/kanban/columns", methods=["POST"], endpoint="kanban_column_create")
    def kanban_column_create():
        me = current_user()
        data = json_body()
        column_id = board_service.create_column(
            current_role=me.role, user_id=me.user_id, title=data.get("title", ""), color=data.get("color")
        )
        return ok("Column created.", status=201, column_id=column_id)

    @app.route("/api/kanban/columns/<int:column_id>", methods=["PUT", "POST"], endpoint="kanban_column_update")
    def kanban_column_update(column_id: int):
        me = current_user()
        data = json_body()
        board_service.update_column(
            current_role=me.role, column_id=column_id, title=data.get("title", ""), color=data.get("color")
        )
        return ok("Column updated.")

    @app.route("/api/kanban/columns/<int:column_id>", methods=["DELETE"], endpoint="kanban_column_delete")
    def kanban_column_delete(column_id: int):
        me = current_user()
        archived = board_service.delete_column(current_role=me.role, user_id=me.user_id, column_id=column_id)
        return ok("Column deleted.", archived_tasks=archived)

    @app.route("/api/kanban/columns/move", methods=["POST"], endpoint="kanban_column_move")
    def kanban_column_move():
        me = current_user()
        data = json_body()
        board = board_service.move_column(
            current_role=me.role,
            column_id=parse_int(data.get("column_id"), "Column id"),
            to_index=parse_int(data.get("to_index"), "Index"),
        )
        return ok(board=_board_payload(board, me))

    # ----- tasks -----

    @app.route("/api/kanban/tasks/move", methods=["POST"], endpoint="kanban_task_move")
    def kanban_task_move():
        me = current_user()
        data = json_body()
        board = board_service.move_task(
            current_user_id=me.user_id,
            current_role=me.role,
            task_id=parse_int(data.get("task_id"), "Task id"),
            to_column_id=parse_int(data.get("to_column_id"), "Column id"),
            to_index=parse_int(data.get("to_index"), "Index"),
        )
        return ok(board=_board_payload(board, me))

    @app.route("/api/kanban/drop", methods=["POST"], endpoint="kanban_drop")
    def kanban_drop():
        """Drag-end from the board: ``active_id``/``over_id`` look like ``task-12`` or ``column-3``."""
        me = current_user()
        data = json_body()
        board = board_service.apply_drop(
            current_user_id=me.user_id,
            current_role=me.role,
            active_id=data.get("active_id"),
            over_id=data.get("over_id"),
        )
        return ok(board=_board_payload(board, me))

    @app.route("/api/kanban/tasks", methods=["POST"], endpoint="kanban_task_create")
    def kanban_task_create():
        me = current_user()
        data = json_body()
        task_id = board_service.create_task(
            current_user_id=me.user_id,
            column_id=parse_int(data.get("column_id"), "Column id"),
            title=data.get("title", ""),
            description=data.get("description"),
            priority=data.get("priority"),
            due_date=data.get("due_date"),
            assignee_ids=_id_list(data.get("assignee_ids")),
        )
        return ok("Task created.", status=201, task_id=task_id)

    @app.route("/api/kanban/tasks/<int:task_id>", methods=["GET"], endpoint="kanban_task_get")
    def kanban_task_get(task_id: int):
        me = current_user()
        task = board_service.get_task(task_id)
        data = task.to_dict()
        data["can_edit"] = can_edit_task(task, user_id=me.user_id, role=me.role)
        return ok(task=data)

    @app.route("/api/kanban/tasks/<int:task_id>", methods=["PUT", "POST"], endpoint="kanban_task_update")
    def kanban_task_update(task_id: int):
        me = current_user()
        data = json_body()
        task = board_service.get_task(task_id)
        board_service.update_task(
            current_user_id=me.user_id,
            current_role=me.role,
            task_id=task_id,
            title=data.get("title", task.title),
            description=data.get("description", task.description),
            priority=data.get("priority", task.priority),
            due_date=data.get("due_date", task.due_date),
            column_id=parse_int(data["column_id"], "Column id") if data.get("column_id") else None,
            assignee_ids=_id_list(data["assignee_ids"]) if "assignee_ids" in data else None,
        )
        return ok("Task updated.")

    @app.route("/api/kanban/tasks/<int:task_id>/archive", methods=["POST"], endpoint="kanban_task_archive")
    def kanban_task_archive(task_id: int):
        me = current_user()
        board_service.archive_task(current_user_id=me.user_id, current_role=me.role, task_id=task_id)
        return ok("Task archived.")

    # ----- invitations -----

    @app.route("/api/kanban/invitations", methods=["GET"], endpoint="kanban_invitations")
    def kanban_invitations():
        me = current_user()
        return ok(tasks=[t.to_dict() for t in assignments.pending_invitations(me.user_id)])

    @app.route("/api/kanban/tasks/<int:task_id>/assignees", methods=["POST"], endpoint="kanban_task_invite")
    def kanban_task_invite(task_id: int):
        me = current_user()
        user_id = parse_int(json_body().get("user_id"), "User id")
        assignments.invite(current_role=me.role, task_id=task_id, user_id=user_id)
        return ok("Invitation sent.", status=201)

    @app.route("/api/kanban/tasks/<int:task_id>/respond", methods=["POST"], endpoint="kanban_task_respond")
    def kanban_task_respond(task_id: int):
        me = current_user()
        status = assignments.respond(current_user_id=me.user_id, task_id=task_id, accept=_accept_flag(json_body()))
        return ok(f"Invitation {status.value}.", status_value=status.value)

    @app.route("/api/kanban/tasks/<int:task_id>/volunteer", methods=["POST"], endpoint="kanban_task_volunteer")
    def kanban_task_volunteer(task_id: int):
        me = current_user()
        assignments.volunteer(current_user_id=me.user_id, current_role=me.role, task_id=task_id)
        return ok("You joined the task.")

    # ----- archive (admin) -----

    @app.route("/api/admin/archive", methods=["GET"], endpoint="admin_archive")
    def admin_archive():
        me = current_user()
        views = archive.list_archived(current_role=me.role)
        return ok(retention_days=archive.retention_days(), tasks=[v.to_dict() for v in views])

    @app.route("/api/admin/archive/<int:task_id>/restore", methods=["POST"], endpoint="admin_archive_restore")
    def admin_archive_restore(task_id: int):
        archive.restore(current_role=current_user().role, task_id=task_id)
        return ok("Task restored.")

    @app.route("/api/admin/archive/<int:task_id>", methods=["DELETE"], endpoint="admin_archive_delete")
    def admin_archive_delete(task_id: int):
        archive.delete_permanently(current_role=current_user().role, task_id=task_id)
        return ok("Task deleted permanently.")

    @app.route("/api/admin/archive/purge", methods=["POST"], endpoint="admin_archive_purge")
    def admin_archive_purge():
        current_user()
        purged = archive.purge_expired()
        return ok(f"Purged {purged} expired task(s).", purged=purged)
