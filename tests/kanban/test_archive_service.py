from datetime import datetime, timedelta

import pytest

from src.ojt_tracker.ojt_tracker.core.enums import Role
from src.ojt_tracker.ojt_tracker.core.exceptions import AuthorizationError, StateConflictError, ValidationError
from src.ojt_tracker.ojt_tracker.kanban.archive import ArchiveService, is_expired, remaining_days
from tests.fakes import InMemoryKanban, InMemorySettings, InMemoryStorage, make_attachment_row, make_site

NOW = datetime(2026, 3, 10, 12, 0, 0)


@pytest.fixture
def repo():
    repo = InMemoryKanban()
    todo = repo.add_column("To Do")
    for title in ("a", "b", "c"):
        repo.add_task(todo, title)
    return repo


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def svc(repo, storage):
    return ArchiveService(repo, InMemorySettings(make_site(archive_retention_days=7)), storage)


def archive(repo, task_id, at):
    task = repo.tasks[task_id]
    task.archived_at = at
    task.archived_by = 1


def test_remaining_days_and_expiry():
    archived = NOW - timedelta(days=6, hours=12)
    assert remaining_days(archived, 7, NOW) == pytest.approx(0.5)
    assert not is_expired(archived, 7, NOW)
    assert is_expired(NOW - timedelta(days=7), 7, NOW)
    assert remaining_days(NOW - timedelta(days=30), 7, NOW) == 0.0


def test_list_is_admin_only(svc):
    with pytest.raises(AuthorizationError):
        svc.list_archived(current_role=Role.SUPERVISOR, now=NOW)


def test_list_shows_countdown_and_hides_expired(svc, repo):
    archive(repo, 1, NOW - timedelta(days=2))
    archive(repo, 2, NOW - timedelta(days=6, hours=18))
    archive(repo, 3, NOW - timedelta(days=8))

    views = {v.task.task_id: v for v in svc.list_archived(current_role=Role.ADMIN, now=NOW)}

    assert set(views) == {1, 2}
    assert views[1].days_remaining == 5
    assert not views[1].is_urgent
    assert views[1].countdown_label == "5d until purge"
    assert views[2].is_urgent
    assert views[2].countdown_label == "6h until purge"
    assert views[1].column_title == "To Do"
    # listing alone does not delete anything
    assert 3 in repo.tasks


def test_purge_on_read(repo, storage):
    svc = ArchiveService(repo, InMemorySettings(make_site()), storage, purge_on_read=True)
    archive(repo, 3, NOW - timedelta(days=8))
    svc.list_archived(current_role=Role.ADMIN, now=NOW)
    assert 3 not in repo.tasks


def test_purge_removes_rows_and_objects(svc, repo, storage):
    archive(repo, 1, NOW - timedelta(days=7))
    archive(repo, 2, NOW - timedelta(days=1))
    make_attachment_row(repo.attachments, 1, "1/old.pdf")
    storage.objects["1/old.pdf"] = b"x"

    assert svc.purge_expired(now=NOW) == 1
    assert 1 not in repo.tasks
    assert 2 in repo.tasks
    assert storage.objects == {}
    assert repo.attachments.list_for_task(1) == []


def test_purge_survives_storage_failure(svc, repo, storage):
    archive(repo, 1, NOW - timedelta(days=9))
    make_attachment_row(repo.attachments, 1, "1/old.pdf")
    storage.fail_remove = True

    assert svc.purge_expired(now=NOW) == 1
    assert 1 not in repo.tasks


def test_purge_uses_current_retention(repo, storage):
    settings = InMemorySettings(make_site(archive_retention_days=30))
    svc = ArchiveService(repo, settings, storage)
    archive(repo, 1, NOW - timedelta(days=8))
    assert svc.purge_expired(now=NOW) == 0


def test_restore_returns_to_saved_slot(svc, repo):
    repo.tasks[2].archived_at = NOW
    repo.tasks[3].position = 1

    svc.restore(current_role=Role.ADMIN, task_id=2)

    assert not repo.get_task(2).is_archived
    todo = repo.list_columns()[0].column_id
    assert repo.column_task_ids(todo) == [1, 2, 3]
    assert repo.column_positions(todo) == [0, 1, 2]


def test_restore_to_first_column_when_original_is_gone(svc, repo):
    done = repo.add_column("Done")
    archive(repo, 1, NOW)
    repo.tasks[1].column_id = None

    svc.restore(current_role=Role.ADMIN, task_id=1)

    todo = repo.list_columns()[0].column_id
    assert repo.column_task_ids(todo) == [2, 3, 1]
    assert repo.column_task_ids(done) == []


def test_restore_needs_a_column(repo, storage):
    svc = ArchiveService(repo, InMemorySettings(make_site()), storage)
    archive(repo, 1, NOW)
    repo.columns.clear()
    with pytest.raises(ValidationError):
        svc.restore(current_role=Role.ADMIN, task_id=1)


def test_restore_active_task_conflicts(svc):
    with pytest.raises(StateConflictError):
        svc.restore(current_role=Role.ADMIN, task_id=1)


def test_delete_permanently(svc, repo, storage):
    archive(repo, 1, NOW)
    make_attachment_row(repo.attachments, 1, "1/a.png")
    storage.objects["1/a.png"] = b"png"

    svc.delete_permanently(current_role=Role.ADMIN, task_id=1)

    assert 1 not in repo.tasks
    assert "1/a.png" not in storage.objects


def test_day_countdown_rounds_up(svc, repo):
    archive(repo, 1, NOW - timedelta(days=1, hours=12))

    (view,) = svc.list_archived(current_role=Role.ADMIN, now=NOW)

    assert view.days_remaining == 6
    assert view.countdown_label == "6d until purge"
