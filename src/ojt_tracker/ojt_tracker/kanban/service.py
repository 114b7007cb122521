from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Callable, Iterable, Optional, Sequence

from ..common.datetime_utils import parse_iso_date
from ..common.validators import optional_text, require_non_empty
from ..core.constants import DEFAULT_COLUMN_COLOR
from ..core.enums import Role, TaskPriority
from ..core.exceptions import (
    AuthorizationError,
    BackendError,
    BoardSyncError,
    NotFoundError,
    ValidationError,
)
from . import ordering
from .assignments import AssignmentService, can_edit_task
from .model import BoardColumn, BoardTask, PositionUpdate
from .repository import KanbanRepository

logger = logging.getLogger(__name__)

_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")


def _parse_priority(value) -> TaskPriority:
    if value is None or value == "":
        return TaskPriority.MEDIUM
    try:
        return TaskPriority(getattr(value, "value", value))
    except ValueError:
        raise ValidationError("Priority must be low, medium or high.")


def _parse_due_date(value) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return parse_iso_date(str(value))


def _parse_color(value) -> str:
    color = (value or "").strip() or DEFAULT_COLUMN_COLOR
    if not _HEX_COLOR.match(color):
        raise ValidationError("Color must be a hex value like #6366f1.")
    return color


class BoardService:
    """Columns, tasks and their ordering.

    Reorders are computed by ``ordering`` on a freshly loaded board and
    written in one transaction. When a write fails the board is reloaded and
    handed back on ``BoardSyncError`` so callers can replace their optimistic
    copy.
    """

    def __init__(self, board: KanbanRepository, assignments: AssignmentService):
        self._board = board
        self._assignments = assignments

    @staticmethod
    def _require_manager(current_role: Role, action: str) -> None:
        if not current_role.can_manage:
            raise AuthorizationError(f"Only supervisors and admins can {action}.")

    def _get_task(self, task_id: int) -> BoardTask:
        task = self._board.get_task(int(task_id))
        if not task:
            raise NotFoundError("Task not found.")
        return task

    def _require_edit(self, task: BoardTask, *, user_id: int, role: Role) -> None:
        if not can_edit_task(task, user_id=user_id, role=role):
            raise AuthorizationError("You are not allowed to edit this task.")

    def _persist(self, write: Callable[[], object], action: str):
        try:
            return write()
        except BackendError as e:
            logger.warning("%s failed, reloading board: %s", action, e)
            raise BoardSyncError(f"Could not save the board: {e}", board=self.get_board()) from e

    def get_board(self, *, filter_user_ids: Iterable[int] = ()) -> list[BoardColumn]:
        """Columns in order with their active tasks.

        ``filter_user_ids`` keeps only tasks where one of those users is
        assigned (creator or accepted).
        """
        columns = [
            BoardColumn(column_id=c.column_id, title=c.title, color=c.color, position=c.position)
            for c in self._board.list_columns()
        ]
        by_id = {c.column_id: c for c in columns}
        wanted = {int(u) for u in filter_user_ids}

        for task in self._board.list_active_tasks():
            col = by_id.get(task.column_id)
            if col is None:
                continue
            if wanted and not wanted.intersection(task.assigned_user_ids):
                continue
            col.tasks.append(task)

        for col in columns:
            col.tasks.sort(key=lambda t: (t.position, t.task_id))
        return columns

    # ----- columns -----

    def create_column(self, *, current_role: Role, user_id: int, title: str, color: Optional[str] = None) -> int:
        self._require_manager(current_role, "manage columns")
        title = require_non_empty(title, "Column title")
        position = len(self._board.list_columns())
        column_id = self._board.create_column(
            title=title, color=_parse_color(color), position=position, created_by=int(user_id)
        )
        logger.info("column %s created at %s", column_id, position)
        return column_id

    def update_column(self, *, current_role: Role, column_id: int, title: str, color: Optional[str] = None) -> None:
        self._require_manager(current_role, "manage columns")
        if not self._board.get_column(int(column_id)):
            raise NotFoundError("Column not found.")
        self._board.update_column(
            int(column_id), title=require_non_empty(title, "Column title"), color=_parse_color(color)
        )

    def delete_column(
        self,
        *,
        current_role: Role,
        user_id: int,
        column_id: int,
        now: Optional[datetime] = None,
    ) -> int:
        """Archive every task in the column, drop it and close the gap.

        Returns how many tasks were archived.
        """
        self._require_manager(current_role, "manage columns")
        board = self.get_board()
        col = ordering.find_column(board, int(column_id))
        if col is None:
            raise NotFoundError("Column not found.")

        remaining = [c for c in board if c.column_id != col.column_id]
        updates = ordering.renumber_columns(remaining)
        archived = self._persist(
            lambda: self._board.delete_column(
                col.column_id, archived_at=now or datetime.now(), archived_by=int(user_id), updates=updates
            ),
            "delete column",
        )
        logger.info("column %s deleted, %s task(s) archived", col.column_id, archived)
        return int(archived)

    def move_column(self, *, current_role: Role, column_id: int, to_index: int) -> list[BoardColumn]:
        self._require_manager(current_role, "reorder columns")
        board, updates = ordering.move_column(self.get_board(), int(column_id), int(to_index))
        self._save_positions(updates, "move column")
        return board

    # ----- tasks -----

    def move_task(
        self,
        *,
        current_user_id: int,
        current_role: Role,
        task_id: int,
        to_column_id: int,
        to_index: int,
    ) -> list[BoardColumn]:
        board = self.get_board()
        _, task = ordering.find_task(board, int(task_id))
        if task is None:
            raise NotFoundError("Task not found.")
        self._require_edit(task, user_id=current_user_id, role=current_role)

        board, updates = ordering.move_task(board, task.task_id, int(to_column_id), int(to_index))
        self._save_positions(updates, "move task")
        return board

    def apply_drop(self, *, current_user_id: int, current_role: Role, active_id, over_id) -> list[BoardColumn]:
        """Persist a drag-end reported by the board UI."""
        board = self.get_board()
        target = ordering.resolve_drop(board, active_id, over_id)
        if target is None:
            return board

        if target.kind == ordering.COLUMN:
            self._require_manager(current_role, "reorder columns")
        else:
            _, task = ordering.find_task(board, target.row_id)
            self._require_edit(task, user_id=current_user_id, role=current_role)

        board, updates = ordering.apply_drop(board, target)
        self._save_positions(updates, "drop")
        return board

    def _save_positions(self, updates: Sequence[PositionUpdate], action: str) -> None:
        if not updates:
            return
        self._persist(lambda: self._board.apply_position_updates(updates), action)
        logger.info("%s: %s row(s) renumbered", action, len(updates))

    def get_task(self, task_id: int) -> BoardTask:
        return self._get_task(task_id)

    def create_task(
        self,
        *,
        current_user_id: int,
        column_id: int,
        title: str,
        description: Optional[str] = None,
        priority=None,
        due_date=None,
        assignee_ids: Iterable[int] = (),
        now: Optional[datetime] = None,
    ) -> int:
        title = require_non_empty(title, "Task title")
        board = self.get_board()
        col = ordering.find_column(board, int(column_id))
        if col is None:
            raise NotFoundError("Column not found.")

        task_id = self._board.create_task(
            column_id=col.column_id,
            title=title,
            description=optional_text(description),
            creator_id=int(current_user_id),
            position=len(col.tasks),
            priority=_parse_priority(priority),
            due_date=_parse_due_date(due_date),
        )
        created = self._get_task(task_id)
        self._assignments.sync(created, assignee_ids, now=now)
        logger.info("task %s created in column %s by user %s", task_id, col.column_id, current_user_id)
        return task_id

    def update_task(
        self,
        *,
        current_user_id: int,
        current_role: Role,
        task_id: int,
        title: str,
        description: Optional[str] = None,
        priority=None,
        due_date=None,
        column_id: Optional[int] = None,
        assignee_ids: Optional[Iterable[int]] = None,
        now: Optional[datetime] = None,
    ) -> None:
        """Edit a task's fields.

        A new ``column_id`` moves the task to the end of that column.
        ``assignee_ids`` of None leaves the assignees untouched.
        """
        task = self._get_task(task_id)
        if task.is_archived:
            raise ValidationError("Archived tasks cannot be edited.")
        self._require_edit(task, user_id=current_user_id, role=current_role)

        self._board.update_task(
            task.task_id,
            title=require_non_empty(title, "Task title"),
            description=optional_text(description),
            priority=_parse_priority(priority),
            due_date=_parse_due_date(due_date),
        )

        if column_id is not None and int(column_id) != task.column_id:
            board = self.get_board()
            dest = ordering.find_column(board, int(column_id))
            if dest is None:
                raise NotFoundError("Column not found.")
            _, updates = ordering.move_task(board, task.task_id, dest.column_id, len(dest.tasks))
            self._save_positions(updates, "move task")

        if assignee_ids is not None:
            self._assignments.sync(task, assignee_ids, now=now)

    def archive_task(
        self,
        *,
        current_user_id: int,
        current_role: Role,
        task_id: int,
        now: Optional[datetime] = None,
    ) -> None:
        task = self._get_task(task_id)
        if task.is_archived:
            return
        self._require_edit(task, user_id=current_user_id, role=current_role)

        board = self.get_board()
        updates: list[PositionUpdate] = []
        col, _ = ordering.find_task(board, task.task_id)
        if col is not None:
            col.tasks = [t for t in col.tasks if t.task_id != task.task_id]
            updates = ordering.renumber_tasks(col)

        self._persist(
            lambda: self._board.archive_task(
                task.task_id, archived_at=now or datetime.now(), archived_by=int(current_user_id), updates=updates
            ),
            "archive task",
        )
        logger.info("task %s archived by user %s", task.task_id, current_user_id)
