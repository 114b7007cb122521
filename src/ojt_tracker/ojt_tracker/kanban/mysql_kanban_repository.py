from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import AssigneeStatus, FileCategory, TaskPriority
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import BoardColumn, BoardTask, PositionUpdate, TaskAssignee, TaskAttachment
from .repository import AssigneeRepository, KanbanRepository

_TASK_COLUMNS = """
    task_id, column_id, title, description, creator_id, position,
    priority, due_date, archived_at, archived_by
"""


def _to_column(r: dict) -> BoardColumn:
    return BoardColumn(
        column_id=int(r["column_id"]),
        title=r["title"],
        color=r["color"],
        position=int(r["position"]),
    )


def _to_task(r: dict) -> BoardTask:
    return BoardTask(
        task_id=int(r["task_id"]),
        column_id=int(r["column_id"]) if r.get("column_id") is not None else None,
        title=r["title"],
        description=r.get("description"),
        creator_id=int(r["creator_id"]) if r.get("creator_id") is not None else None,
        position=int(r["position"]),
        priority=TaskPriority(r["priority"]),
        due_date=r.get("due_date"),
        archived_at=r.get("archived_at"),
        archived_by=int(r["archived_by"]) if r.get("archived_by") is not None else None,
    )


def _to_assignee(r: dict) -> TaskAssignee:
    return TaskAssignee(
        task_id=int(r["task_id"]),
        user_id=int(r["user_id"]),
        status=AssigneeStatus(r["status"]),
        assigned_at=r.get("assigned_at"),
    )


def _to_attachment(r: dict) -> TaskAttachment:
    return TaskAttachment(
        attachment_id=int(r["attachment_id"]),
        task_id=int(r["task_id"]),
        file_name=r["file_name"],
        storage_path=r["storage_path"],
        file_type=FileCategory(r["file_type"]),
        file_size=int(r["file_size"]) if r.get("file_size") is not None else None,
        uploaded_by=int(r["uploaded_by"]) if r.get("uploaded_by") is not None else None,
        uploaded_at=r.get("uploaded_at"),
    )


def _write_positions(cur, updates: Sequence[PositionUpdate]) -> None:
    for u in updates:
        if u.kind == "column":
            cur.execute("UPDATE kanban_columns SET position=%s WHERE column_id=%s", (u.position, u.row_id))
        else:
            cur.execute(
                "UPDATE kanban_tasks SET position=%s, column_id=%s WHERE task_id=%s",
                (u.position, u.column_id, u.row_id),
            )


class MySQLKanbanRepository(KanbanRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _attach_details(self, cur, tasks: list[BoardTask]) -> list[BoardTask]:
        if not tasks:
            return tasks
        by_id = {t.task_id: t for t in tasks}
        ids = list(by_id)

        cur.execute(
            f"""
            SELECT task_id, user_id, status, assigned_at
            FROM task_assignees
            WHERE task_id IN ({in_clause(ids)})
            ORDER BY assigned_at, user_id
            """,
            tuple(ids),
        )
        for r in fetchall(cur):
            by_id[int(r["task_id"])].assignees.append(_to_assignee(r))

        cur.execute(
            f"""
            SELECT attachment_id, task_id, file_name, storage_path, file_type, file_size, uploaded_by, uploaded_at
            FROM task_attachments
            WHERE task_id IN ({in_clause(ids)})
            ORDER BY uploaded_at, attachment_id
            """,
            tuple(ids),
        )
        for r in fetchall(cur):
            by_id[int(r["task_id"])].attachments.append(_to_attachment(r))
        return tasks

    def list_columns(self) -> Sequence[BoardColumn]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT column_id, title, color, position FROM kanban_columns ORDER BY position, column_id")
            return [_to_column(r) for r in fetchall(cur)]

    def get_column(self, column_id: int) -> Optional[BoardColumn]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT column_id, title, color, position FROM kanban_columns WHERE column_id=%s",
                (int(column_id),),
            )
            r = fetchone(cur)
            return _to_column(r) if r else None

    def list_active_tasks(self) -> Sequence[BoardTask]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_TASK_COLUMNS}
                FROM kanban_tasks
                WHERE archived_at IS NULL
                ORDER BY column_id, position, task_id
                """
            )
            return self._attach_details(cur, [_to_task(r) for r in fetchall(cur)])

    def list_archived_tasks(self) -> Sequence[BoardTask]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_TASK_COLUMNS}
                FROM kanban_tasks
                WHERE archived_at IS NOT NULL
                ORDER BY archived_at DESC
                """
            )
            return self._attach_details(cur, [_to_task(r) for r in fetchall(cur)])

    def get_task(self, task_id: int) -> Optional[BoardTask]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_TASK_COLUMNS} FROM kanban_tasks WHERE task_id=%s", (int(task_id),))
            r = fetchone(cur)
            if not r:
                return None
            return self._attach_details(cur, [_to_task(r)])[0]

    def create_column(self, *, title: str, color: str, position: int, created_by: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO kanban_columns(title, color, position, created_by) VALUES(%s,%s,%s,%s)",
                (title, color, int(position), int(created_by)),
            )
            return int(cur.lastrowid)

    def update_column(self, column_id: int, *, title: str, color: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE kanban_columns SET title=%s, color=%s WHERE column_id=%s",
                (title, color, int(column_id)),
            )
            return cur.rowcount > 0

    def delete_column(
        self,
        column_id: int,
        *,
        archived_at: datetime,
        archived_by: int,
        updates: Sequence[PositionUpdate],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE kanban_tasks
                SET archived_at=%s, archived_by=%s
                WHERE column_id=%s AND archived_at IS NULL
                """,
                (archived_at, int(archived_by), int(column_id)),
            )
            archived = cur.rowcount
            cur.execute("DELETE FROM kanban_columns WHERE column_id=%s", (int(column_id),))
            _write_positions(cur, updates)
            return archived

    def create_task(
        self,
        *,
        column_id: int,
        title: str,
        description: Optional[str],
        creator_id: int,
        position: int,
        priority: TaskPriority,
        due_date: Optional[date],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO kanban_tasks(column_id, title, description, creator_id, position, priority, due_date)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (int(column_id), title, description, int(creator_id), int(position), priority.value, due_date),
            )
            return int(cur.lastrowid)

    def update_task(
        self,
        task_id: int,
        *,
        title: str,
        description: Optional[str],
        priority: TaskPriority,
        due_date: Optional[date],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE kanban_tasks
                SET title=%s, description=%s, priority=%s, due_date=%s
                WHERE task_id=%s
                """,
                (title, description, priority.value, due_date, int(task_id)),
            )
            return cur.rowcount > 0

    def archive_task(
        self,
        task_id: int,
        *,
        archived_at: datetime,
        archived_by: int,
        updates: Sequence[PositionUpdate],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE kanban_tasks SET archived_at=%s, archived_by=%s WHERE task_id=%s AND archived_at IS NULL",
                (archived_at, int(archived_by), int(task_id)),
            )
            if cur.rowcount == 0:
                return False
            _write_positions(cur, updates)
            return True

    def restore_task(self, task_id: int, *, column_id: int, updates: Sequence[PositionUpdate]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE kanban_tasks
                SET archived_at=NULL, archived_by=NULL, column_id=%s
                WHERE task_id=%s AND archived_at IS NOT NULL
                """,
                (int(column_id), int(task_id)),
            )
            if cur.rowcount == 0:
                return False
            _write_positions(cur, updates)
            return True

    def delete_tasks(self, task_ids: Sequence[int]) -> int:
        ids = [int(t) for t in task_ids]
        if not ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM kanban_tasks WHERE task_id IN ({in_clause(ids)})", tuple(ids))
            return cur.rowcount

    def apply_position_updates(self, updates: Sequence[PositionUpdate]) -> None:
        if not updates:
            return
        with db_cursor(self._conn_factory) as (_, cur):
            _write_positions(cur, updates)


class MySQLAssigneeRepository(AssigneeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_user(self, user_id: int, *, status: Optional[AssigneeStatus] = None) -> Sequence[TaskAssignee]:
        sql = "SELECT task_id, user_id, status, assigned_at FROM task_assignees WHERE user_id=%s"
        params: list[object] = [int(user_id)]
        if status is not None:
            sql += " AND status=%s"
            params.append(status.value)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY assigned_at DESC", tuple(params))
            return [_to_assignee(r) for r in fetchall(cur)]

    def add(self, *, task_id: int, user_id: int, status: AssigneeStatus, assigned_at: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO task_assignees(task_id, user_id, status, assigned_at) VALUES(%s,%s,%s,%s)",
                (int(task_id), int(user_id), status.value, assigned_at),
            )

    def set_status(
        self,
        *,
        task_id: int,
        user_id: int,
        status: AssigneeStatus,
        expected: AssigneeStatus,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE task_assignees SET status=%s WHERE task_id=%s AND user_id=%s AND status=%s",
                (status.value, int(task_id), int(user_id), expected.value),
            )
            return cur.rowcount > 0

    def remove(self, *, task_id: int, user_ids: Sequence[int]) -> int:
        ids = [int(u) for u in user_ids]
        if not ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"DELETE FROM task_assignees WHERE task_id=%s AND user_id IN ({in_clause(ids)})",
                (int(task_id), *ids),
            )
            return cur.rowcount
