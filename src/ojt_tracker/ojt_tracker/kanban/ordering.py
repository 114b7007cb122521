"""Board ordering engine.

Pure functions over a list of ``BoardColumn``. Every move returns a new board
(the input is never mutated) plus the ``PositionUpdate`` rows needed to
persist it. Positions are dense 0..n-1 integers and every move renumbers the
whole affected container.

Drag identifiers use the ``column-<id>`` / ``task-<id>`` form sent by the
board UI.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Optional, Sequence

from ..core.exceptions import NotFoundError, ValidationError
from .model import BoardColumn, BoardTask, PositionUpdate

COLUMN = "column"
TASK = "task"

Board = list[BoardColumn]


@dataclass(frozen=True)
class DragRef:
    kind: str
    row_id: int

    def __str__(self) -> str:
        return f"{self.kind}-{self.row_id}"


@dataclass(frozen=True)
class DropTarget:
    """Where a drop lands: ``column_id`` for tasks, ``index`` within the container."""

    kind: str
    row_id: int
    index: int
    column_id: Optional[int] = None


def parse_ref(value) -> DragRef:
    if isinstance(value, DragRef):
        return value
    kind, sep, raw_id = str(value or "").partition("-")
    if not sep or kind not in (COLUMN, TASK):
        raise ValidationError(f"Unknown board item: {value}")
    try:
        return DragRef(kind=kind, row_id=int(raw_id))
    except ValueError:
        raise ValidationError(f"Unknown board item: {value}")


def clone_board(board: Sequence[BoardColumn]) -> Board:
    return copy.deepcopy(list(board))


def find_column(board: Sequence[BoardColumn], column_id: int) -> Optional[BoardColumn]:
    for col in board:
        if col.column_id == column_id:
            return col
    return None


def find_task(board: Sequence[BoardColumn], task_id: int) -> tuple[Optional[BoardColumn], Optional[BoardTask]]:
    for col in board:
        for task in col.tasks:
            if task.task_id == task_id:
                return col, task
    return None, None


def _clamp(index: int, upper: int) -> int:
    return max(0, min(int(index), upper))


def renumber_columns(board: Sequence[BoardColumn]) -> list[PositionUpdate]:
    """Set column positions to their list order; return the rows that changed."""
    updates: list[PositionUpdate] = []
    for i, col in enumerate(board):
        if col.position != i:
            col.position = i
            updates.append(PositionUpdate(kind=COLUMN, row_id=col.column_id, position=i))
    return updates


def renumber_tasks(column: BoardColumn) -> list[PositionUpdate]:
    """Set task positions (and ``column_id``) to match ``column.tasks``."""
    updates: list[PositionUpdate] = []
    for i, task in enumerate(column.tasks):
        if task.position != i or task.column_id != column.column_id:
            task.position = i
            task.column_id = column.column_id
            updates.append(PositionUpdate(kind=TASK, row_id=task.task_id, position=i, column_id=column.column_id))
    return updates


def move_column(board: Sequence[BoardColumn], column_id: int, to_index: int) -> tuple[Board, list[PositionUpdate]]:
    new_board = clone_board(board)
    col = find_column(new_board, column_id)
    if col is None:
        raise NotFoundError("Column not found.")

    new_board.remove(col)
    new_board.insert(_clamp(to_index, len(new_board)), col)
    return new_board, renumber_columns(new_board)


def move_task(
    board: Sequence[BoardColumn],
    task_id: int,
    to_column_id: int,
    to_index: int,
) -> tuple[Board, list[PositionUpdate]]:
    """Move a task within its column or across columns.

    The source column is renumbered over its remaining tasks; the destination
    is renumbered including the moved task.
    """
    new_board = clone_board(board)
    source, task = find_task(new_board, task_id)
    if task is None:
        raise NotFoundError("Task not found.")
    dest = find_column(new_board, to_column_id)
    if dest is None:
        raise NotFoundError("Column not found.")

    source.tasks.remove(task)
    dest.tasks.insert(_clamp(to_index, len(dest.tasks)), task)

    updates = renumber_tasks(dest)
    if source is not dest:
        updates = renumber_tasks(source) + updates
    return new_board, updates


def resolve_drop(board: Sequence[BoardColumn], active_id, over_id) -> Optional[DropTarget]:
    """Translate a drag-end (active, over) pair into a drop target.

    Returns None when the drop is a no-op: nothing under the pointer, the item
    dropped on itself, or a column dropped onto a task.
    """
    if over_id is None:
        return None
    active = parse_ref(active_id)
    over = parse_ref(over_id)
    if active == over:
        return None

    if active.kind == COLUMN:
        if over.kind != COLUMN:
            return None
        indexes = {c.column_id: i for i, c in enumerate(board)}
        if active.row_id not in indexes or over.row_id not in indexes:
            raise NotFoundError("Column not found.")
        return DropTarget(kind=COLUMN, row_id=active.row_id, index=indexes[over.row_id])

    source, task = find_task(board, active.row_id)
    if task is None:
        raise NotFoundError("Task not found.")

    if over.kind == COLUMN:
        dest = find_column(board, over.row_id)
        if dest is None:
            raise NotFoundError("Column not found.")
        if dest is source:
            # Dropped on the column body: keep the current slot.
            return DropTarget(kind=TASK, row_id=task.task_id, index=source.tasks.index(task), column_id=dest.column_id)
        return DropTarget(kind=TASK, row_id=task.task_id, index=len(dest.tasks), column_id=dest.column_id)

    dest, over_task = find_task(board, over.row_id)
    if over_task is None:
        raise NotFoundError("Task not found.")
    return DropTarget(kind=TASK, row_id=task.task_id, index=dest.tasks.index(over_task), column_id=dest.column_id)


def apply_drop(board: Sequence[BoardColumn], target: DropTarget) -> tuple[Board, list[PositionUpdate]]:
    if target.kind == COLUMN:
        return move_column(board, target.row_id, target.index)
    return move_task(board, target.row_id, target.column_id, target.index)


class DragSession:
    """Optimistic drag preview.

    ``over`` moves a dragged task between columns in a preview copy so the
    board can render live feedback; nothing is persisted until ``end``, which
    resolves the drop against the board as it was when the drag started.
    """

    def __init__(self, board: Sequence[BoardColumn]):
        self._original = clone_board(board)
        self._preview = clone_board(board)
        self._active: Optional[DragRef] = None

    @property
    def preview(self) -> Board:
        return self._preview

    @property
    def active(self) -> Optional[DragRef]:
        return self._active

    def start(self, active_id) -> DragRef:
        ref = parse_ref(active_id)
        if ref.kind == COLUMN and find_column(self._original, ref.row_id) is None:
            raise NotFoundError("Column not found.")
        if ref.kind == TASK and find_task(self._original, ref.row_id)[1] is None:
            raise NotFoundError("Task not found.")
        self._active = ref
        return ref

    def over(self, over_id) -> Board:
        if self._active is None or self._active.kind != TASK or over_id is None:
            return self._preview
        over = parse_ref(over_id)
        if over == self._active:
            return self._preview

        source, task = find_task(self._preview, self._active.row_id)
        if over.kind == COLUMN:
            dest = find_column(self._preview, over.row_id)
            index = len(dest.tasks) if dest else 0
        else:
            dest, over_task = find_task(self._preview, over.row_id)
            index = dest.tasks.index(over_task) if dest else 0

        # Only cross-column hops are previewed; same-column order settles on drop.
        if dest is None or dest is source:
            return self._preview

        source.tasks.remove(task)
        task.column_id = dest.column_id
        dest.tasks.insert(index, task)
        return self._preview

    def end(self, over_id) -> tuple[Board, list[PositionUpdate]]:
        """Finish the drag against the original board and return the rows to persist.

        The drop is resolved against the preview, where a task that crossed
        columns already sits in its destination, then replayed on the
        original board so the updates cover both containers.
        """
        active = self._active
        self._active = None
        if active is None:
            return self._original, []

        target = resolve_drop(self._preview, str(active), over_id) if over_id is not None else None
        if target is None and active.kind == TASK:
            # The pointer left every container; keep whatever column the preview reached.
            _, task = find_task(self._preview, active.row_id)
            col = find_column(self._preview, task.column_id)
            if col is not None:
                target = DropTarget(kind=TASK, row_id=active.row_id, index=col.tasks.index(task), column_id=col.column_id)
        if target is None:
            return self._original, []
        return apply_drop(self._original, target)

    def cancel(self) -> Board:
        self._active = None
        self._preview = clone_board(self._original)
        return self._preview
