from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Optional, Sequence

from ..attachments.storage import ObjectStorage
from ..core.constants import DEFAULT_RETENTION_DAYS
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, BackendError, NotFoundError, StateConflictError, ValidationError
from ..settings.repository import SettingsRepository
from . import ordering
from .model import ArchivedTaskView, BoardColumn, BoardTask
from .repository import KanbanRepository

logger = logging.getLogger(__name__)


def remaining_days(archived_at: datetime, retention_days: int, now: datetime) -> float:
    """Fractional days left before purge, never below zero."""
    passed = (now - archived_at) / timedelta(days=1)
    return max(0.0, retention_days - passed)


def is_expired(archived_at: datetime, retention_days: int, now: datetime) -> bool:
    return now - archived_at >= timedelta(days=retention_days)


class ArchiveService:
    """Archived tasks, their retention countdown and the purge."""

    def __init__(
        self,
        board: KanbanRepository,
        settings: SettingsRepository,
        storage: ObjectStorage,
        *,
        purge_on_read: bool = False,
    ):
        self._board = board
        self._settings = settings
        self._storage = storage
        self._purge_on_read = purge_on_read

    @staticmethod
    def _require_admin(current_role: Role) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can manage archived tasks.")

    def retention_days(self) -> int:
        site = self._settings.get()
        return site.archive_retention_days if site else DEFAULT_RETENTION_DAYS

    def _get_archived(self, task_id: int) -> BoardTask:
        task = self._board.get_task(int(task_id))
        if not task:
            raise NotFoundError("Task not found.")
        if not task.is_archived:
            raise StateConflictError("Task is not archived.")
        return task

    def _remove_objects(self, tasks: Sequence[BoardTask]) -> None:
        paths = [a.storage_path for t in tasks for a in t.attachments]
        if not paths:
            return
        try:
            self._storage.remove(paths)
        except BackendError:
            # Rows are already deleted at this point.
            logger.exception("could not remove %s stored object(s) of purged tasks", len(paths))

    def list_archived(self, *, current_role: Role, now: Optional[datetime] = None) -> list[ArchivedTaskView]:
        """Archived tasks still inside the retention window, newest first."""
        self._require_admin(current_role)
        now = now or datetime.now()
        if self._purge_on_read:
            self.purge_expired(now=now)

        retention = self.retention_days()
        titles = {c.column_id: c.title for c in self._board.list_columns()}
        views = []
        for task in self._board.list_archived_tasks():
            if is_expired(task.archived_at, retention, now):
                continue
            left = remaining_days(task.archived_at, retention, now)
            views.append(
                ArchivedTaskView(
                    task=task,
                    column_title=titles.get(task.column_id),
                    days_remaining=math.ceil(left),
                    hours_remaining=left * 24,
                    is_urgent=left < 1,
                )
            )
        return views

    def purge_expired(self, *, now: Optional[datetime] = None) -> int:
        """Permanently delete archived tasks at or past the retention age.

        Returns how many tasks were removed.
        """
        now = now or datetime.now()
        retention = self.retention_days()
        expired = [t for t in self._board.list_archived_tasks() if is_expired(t.archived_at, retention, now)]
        if not expired:
            return 0

        deleted = self._board.delete_tasks([t.task_id for t in expired])
        self._remove_objects(expired)
        logger.info("purged %s archived task(s) older than %s day(s)", deleted, retention)
        return deleted

    def restore(self, *, current_role: Role, task_id: int) -> BoardTask:
        """Put an archived task back on the board.

        It returns to its saved index in its old column, or to the end of the
        first column when that column has been deleted.
        """
        self._require_admin(current_role)
        task = self._get_archived(task_id)

        board = [
            BoardColumn(column_id=c.column_id, title=c.title, color=c.color, position=c.position)
            for c in self._board.list_columns()
        ]
        if not board:
            raise ValidationError("Create a column before restoring tasks.")

        tasks_by_column: dict[int, list[BoardTask]] = {}
        for t in self._board.list_active_tasks():
            tasks_by_column.setdefault(t.column_id, []).append(t)
        for col in board:
            col.tasks = sorted(tasks_by_column.get(col.column_id, []), key=lambda t: (t.position, t.task_id))

        dest = ordering.find_column(board, task.column_id) if task.column_id is not None else None
        if dest is None:
            dest = board[0]
            index = len(dest.tasks)
        else:
            index = min(task.position, len(dest.tasks))

        dest.tasks.insert(index, task)
        updates = ordering.renumber_tasks(dest)

        if not self._board.restore_task(task.task_id, column_id=dest.column_id, updates=updates):
            raise StateConflictError("Task is not archived.")
        logger.info("task %s restored to column %s at %s", task.task_id, dest.column_id, index)
        return task

    def delete_permanently(self, *, current_role: Role, task_id: int) -> None:
        self._require_admin(current_role)
        task = self._get_archived(task_id)
        self._board.delete_tasks([task.task_id])
        self._remove_objects([task])
        logger.info("archived task %s deleted permanently", task.task_id)
