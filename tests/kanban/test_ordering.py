import pytest

from src.ojt_tracker.ojt_tracker.core.exceptions import NotFoundError, ValidationError
from src.ojt_tracker.ojt_tracker.kanban import ordering
from src.ojt_tracker.ojt_tracker.kanban.model import BoardColumn, BoardTask


def make_board(layout: dict[int, list[int]]) -> list[BoardColumn]:
    """{column_id: [task_id, ...]} in display order."""
    board = []
    for pos, (cid, task_ids) in enumerate(layout.items()):
        col = BoardColumn(column_id=cid, title=f"Col {cid}", position=pos)
        col.tasks = [BoardTask(task_id=t, column_id=cid, title=f"T{t}", position=i, creator_id=1) for i, t in enumerate(task_ids)]
        board.append(col)
    return board


def layout_of(board) -> dict[int, list[int]]:
    return {c.column_id: [t.task_id for t in c.tasks] for c in board}


def assert_dense(board):
    assert [c.position for c in board] == list(range(len(board)))
    for col in board:
        assert [t.position for t in col.tasks] == list(range(len(col.tasks)))
        assert all(t.column_id == col.column_id for t in col.tasks)


def test_parse_ref():
    assert ordering.parse_ref("task-12") == ordering.DragRef("task", 12)
    assert str(ordering.parse_ref("column-3")) == "column-3"
    for bad in ("", "task", "row-1", "task-x", None):
        with pytest.raises(ValidationError):
            ordering.parse_ref(bad)


def test_move_column_reorders_and_does_not_mutate_input():
    board = make_board({1: [], 2: [], 3: []})
    new_board, updates = ordering.move_column(board, 3, 0)

    assert [c.column_id for c in new_board] == [3, 1, 2]
    assert [c.column_id for c in board] == [1, 2, 3]
    assert_dense(new_board)
    assert {(u.row_id, u.position) for u in updates} == {(3, 0), (1, 1), (2, 2)}


def test_move_column_clamps_index():
    board = make_board({1: [], 2: [], 3: []})
    new_board, _ = ordering.move_column(board, 1, 99)
    assert [c.column_id for c in new_board] == [2, 3, 1]


def test_move_unknown_column():
    with pytest.raises(NotFoundError):
        ordering.move_column(make_board({1: []}), 9, 0)


def test_reorder_within_column():
    board = make_board({1: [10, 11, 12]})
    new_board, updates = ordering.move_task(board, 12, 1, 0)

    assert layout_of(new_board) == {1: [12, 10, 11]}
    assert_dense(new_board)
    assert len(updates) == 3


def test_move_across_columns_renumbers_both():
    board = make_board({1: [10, 11, 12], 2: [20, 21]})
    new_board, updates = ordering.move_task(board, 11, 2, 1)

    assert layout_of(new_board) == {1: [10, 12], 2: [20, 11, 21]}
    assert_dense(new_board)

    by_row = {u.row_id: u for u in updates}
    assert by_row[11].column_id == 2 and by_row[11].position == 1
    assert by_row[12].position == 1
    assert 10 not in by_row
    assert 20 not in by_row


def test_move_into_empty_column():
    board = make_board({1: [10], 2: []})
    new_board, _ = ordering.move_task(board, 10, 2, 5)
    assert layout_of(new_board) == {1: [], 2: [10]}


def test_noop_move_produces_no_updates():
    board = make_board({1: [10, 11]})
    _, updates = ordering.move_task(board, 10, 1, 0)
    assert updates == []


def test_resolve_drop_rules():
    board = make_board({1: [10, 11], 2: [20]})

    assert ordering.resolve_drop(board, "task-10", None) is None
    assert ordering.resolve_drop(board, "task-10", "task-10") is None
    assert ordering.resolve_drop(board, "column-1", "task-20") is None

    col_target = ordering.resolve_drop(board, "column-1", "column-2")
    assert (col_target.kind, col_target.index) == ("column", 1)

    own_col = ordering.resolve_drop(board, "task-11", "column-1")
    assert (own_col.column_id, own_col.index) == (1, 1)

    other_col = ordering.resolve_drop(board, "task-10", "column-2")
    assert (other_col.column_id, other_col.index) == (2, 1)

    on_task = ordering.resolve_drop(board, "task-10", "task-20")
    assert (on_task.column_id, on_task.index) == (2, 0)


def test_apply_drop_task_on_task():
    board = make_board({1: [10, 11], 2: [20, 21]})
    target = ordering.resolve_drop(board, "task-10", "task-21")
    new_board, _ = ordering.apply_drop(board, target)
    assert layout_of(new_board) == {1: [11], 2: [20, 10, 21]}


def test_drag_session_previews_cross_column_hop_only():
    board = make_board({1: [10, 11], 2: [20]})
    drag = ordering.DragSession(board)
    drag.start("task-10")

    preview = drag.over("task-11")
    assert layout_of(preview) == {1: [10, 11], 2: [20]}

    preview = drag.over("column-2")
    assert layout_of(preview) == {1: [11], 2: [20, 10]}
    # the original board is untouched
    assert layout_of(board) == {1: [10, 11], 2: [20]}


def test_drag_session_end_replays_on_original():
    board = make_board({1: [10, 11], 2: [20, 21]})
    drag = ordering.DragSession(board)
    drag.start("task-10")
    drag.over("task-20")

    new_board, updates = drag.end("task-20")
    assert layout_of(new_board) == {1: [11], 2: [20, 10, 21]}
    assert_dense(new_board)
    assert {u.row_id for u in updates} == {10, 11, 21}
    assert drag.active is None


def test_drag_session_end_without_target_keeps_preview_column():
    board = make_board({1: [10], 2: [20]})
    drag = ordering.DragSession(board)
    drag.start("task-10")
    drag.over("column-2")

    new_board, _ = drag.end(None)
    assert layout_of(new_board) == {1: [], 2: [20, 10]}


def test_drag_session_cancel_restores_board():
    board = make_board({1: [10], 2: [20]})
    drag = ordering.DragSession(board)
    drag.start("task-10")
    drag.over("column-2")

    assert layout_of(drag.cancel()) == {1: [10], 2: [20]}
    assert drag.active is None


def test_drag_session_start_unknown_item():
    drag = ordering.DragSession(make_board({1: [10]}))
    with pytest.raises(NotFoundError):
        drag.start("task-99")
