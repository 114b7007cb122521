from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AssigneeStatus, TaskPriority
from .model import BoardColumn, BoardTask, PositionUpdate, TaskAssignee


class KanbanRepository(Protocol):
    """Columns and tasks.

    Every method that takes ``updates`` applies them in the same transaction
    as its own write.
    """

    def list_columns(self) -> Sequence[BoardColumn]:
        """Columns ordered by position, without tasks."""

        raise NotImplementedError

    def get_column(self, column_id: int) -> Optional[BoardColumn]:
        raise NotImplementedError

    def list_active_tasks(self) -> Sequence[BoardTask]:
        """Non-archived tasks ordered by (column, position), assignees and attachments loaded."""

        raise NotImplementedError

    def list_archived_tasks(self) -> Sequence[BoardTask]:
        raise NotImplementedError

    def get_task(self, task_id: int) -> Optional[BoardTask]:
        raise NotImplementedError

    def create_column(self, *, title: str, color: str, position: int, created_by: int) -> int:
        raise NotImplementedError

    def update_column(self, column_id: int, *, title: str, color: str) -> bool:
        raise NotImplementedError

    def delete_column(
        self,
        column_id: int,
        *,
        archived_at: datetime,
        archived_by: int,
        updates: Sequence[PositionUpdate],
    ) -> int:
        """Archive the column's active tasks, delete the column and renumber.

        Returns the number of tasks archived.
        """

        raise NotImplementedError

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
        raise NotImplementedError

    def update_task(
        self,
        task_id: int,
        *,
        title: str,
        description: Optional[str],
        priority: TaskPriority,
        due_date: Optional[date],
    ) -> bool:
        raise NotImplementedError

    def archive_task(
        self,
        task_id: int,
        *,
        archived_at: datetime,
        archived_by: int,
        updates: Sequence[PositionUpdate],
    ) -> bool:
        raise NotImplementedError

    def restore_task(self, task_id: int, *, column_id: int, updates: Sequence[PositionUpdate]) -> bool:
        """Clear the archive marker, place the task in ``column_id`` and apply ``updates``."""

        raise NotImplementedError

    def delete_tasks(self, task_ids: Sequence[int]) -> int:
        raise NotImplementedError

    def apply_position_updates(self, updates: Sequence[PositionUpdate]) -> None:
        raise NotImplementedError


class AssigneeRepository(Protocol):
    def list_for_user(self, user_id: int, *, status: Optional[AssigneeStatus] = None) -> Sequence[TaskAssignee]:
        raise NotImplementedError

    def add(self, *, task_id: int, user_id: int, status: AssigneeStatus, assigned_at: datetime) -> None:
        """Insert a row; a second row for the same pair raises DuplicateRecordError."""

        raise NotImplementedError

    def set_status(
        self,
        *,
        task_id: int,
        user_id: int,
        status: AssigneeStatus,
        expected: AssigneeStatus,
    ) -> bool:
        """Compare-and-set: only rows currently at ``expected`` change."""

        raise NotImplementedError

    def remove(self, *, task_id: int, user_ids: Sequence[int]) -> int:
        raise NotImplementedError
