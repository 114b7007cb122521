import re
from datetime import datetime

import pytest

from src.ojt_tracker.ojt_tracker.attachments.service import AttachmentService, build_storage_path, is_allowed_mime
from src.ojt_tracker.ojt_tracker.core.enums import FileCategory, Role
from src.ojt_tracker.ojt_tracker.core.exceptions import (
    AuthorizationError,
    BackendError,
    StateConflictError,
    ValidationError,
)
from tests.fakes import InMemoryKanban, InMemoryStorage

OWNER, STRANGER = 1, 2


@pytest.fixture
def repo():
    repo = InMemoryKanban()
    col = repo.add_column("To Do")
    repo.add_task(col, "Task", creator_id=OWNER)
    return repo


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def svc(repo, storage):
    return AttachmentService(repo.attachments, repo, storage, max_upload_bytes=1024, signed_url_ttl=600)


def upload(svc, name="notes.pdf", mime="application/pdf", data=b"%PDF-1.4", user=OWNER, role=Role.OJT):
    return svc.upload(current_user_id=user, current_role=role, task_id=1, file_name=name, content_type=mime, data=data)


@pytest.mark.parametrize(
    "mime,allowed",
    [
        ("image/png", True),
        ("video/mp4", True),
        ("application/pdf", True),
        ("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", True),
        ("IMAGE/JPEG; charset=binary", True),
        ("application/zip", False),
        ("text/html", False),
        ("", False),
    ],
)
def test_allowed_mime_types(mime, allowed):
    assert is_allowed_mime(mime) is allowed


def test_storage_path_hides_original_name():
    path = build_storage_path(7, "My Report.DOCX")
    assert re.fullmatch(r"7/[0-9a-f]{32}\.docx", path)
    assert build_storage_path(7, "README").endswith(".bin")


def test_upload_stores_object_and_row(svc, repo, storage):
    attachment = upload(svc)

    assert attachment.file_type == FileCategory.DOCUMENT
    assert attachment.file_size == 8
    assert storage.objects[attachment.storage_path] == b"%PDF-1.4"
    assert [a.file_name for a in repo.get_task(1).attachments] == ["notes.pdf"]


def test_image_category(svc):
    assert upload(svc, name="a.png", mime="image/png").file_type == FileCategory.IMAGE


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(mime="application/zip"),
        dict(data=b""),
        dict(data=b"x" * 1025),
        dict(name="  "),
    ],
)
def test_upload_validation(svc, storage, kwargs):
    with pytest.raises(ValidationError):
        upload(svc, **kwargs)
    assert storage.objects == {}


def test_upload_requires_edit_rights(svc):
    with pytest.raises(AuthorizationError):
        upload(svc, user=STRANGER)
    assert upload(svc, user=STRANGER, role=Role.SUPERVISOR).task_id == 1


def test_archived_task_is_read_only(svc, repo):
    repo.tasks[1].archived_at = datetime(2026, 3, 1)
    with pytest.raises(StateConflictError):
        upload(svc)


def test_failed_row_insert_removes_object(svc, repo, storage):
    repo.attachments.fail_create = True
    with pytest.raises(BackendError):
        upload(svc)
    assert storage.objects == {}


def test_delete_removes_row_and_object(svc, repo, storage):
    attachment = upload(svc)
    svc.delete(current_user_id=OWNER, current_role=Role.OJT, attachment_id=attachment.attachment_id)

    assert repo.attachments.list_for_task(1) == []
    assert storage.objects == {}


def test_discard_only_touches_own_task_prefix(svc, repo, storage):
    kept = upload(svc, name="keep.pdf")
    dropped = upload(svc, name="drop.pdf")
    storage.objects["2/other.pdf"] = b"other"

    count = svc.discard_uploads(
        current_user_id=OWNER,
        current_role=Role.OJT,
        task_id=1,
        storage_paths=[dropped.storage_path, "2/other.pdf", ""],
    )

    assert count == 1
    assert [a.storage_path for a in repo.attachments.list_for_task(1)] == [kept.storage_path]
    assert set(storage.objects) == {kept.storage_path, "2/other.pdf"}


def test_signed_url_uses_configured_ttl(svc):
    assert svc.signed_url("1/x.pdf").endswith("expires=600")
