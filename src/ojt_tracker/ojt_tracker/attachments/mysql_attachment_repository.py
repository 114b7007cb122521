from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import FileCategory
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from ..kanban.model import TaskAttachment
from .repository import AttachmentRepository

_COLUMNS = "attachment_id, task_id, file_name, storage_path, file_type, file_size, uploaded_by, uploaded_at"


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


class MySQLAttachmentRepository(AttachmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attachment_id: int) -> Optional[TaskAttachment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM task_attachments WHERE attachment_id=%s", (int(attachment_id),))
            r = fetchone(cur)
            return _to_attachment(r) if r else None

    def list_for_task(self, task_id: int) -> Sequence[TaskAttachment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM task_attachments WHERE task_id=%s ORDER BY uploaded_at, attachment_id",
                (int(task_id),),
            )
            return [_to_attachment(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        task_id: int,
        file_name: str,
        storage_path: str,
        file_type: FileCategory,
        file_size: int,
        uploaded_by: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO task_attachments(task_id, file_name, storage_path, file_type, file_size, uploaded_by)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(task_id), file_name, storage_path, file_type.value, int(file_size), int(uploaded_by)),
            )
            return int(cur.lastrowid)

    def delete_by_id(self, attachment_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM task_attachments WHERE attachment_id=%s", (int(attachment_id),))
            return cur.rowcount > 0
