from __future__ import annotations

import logging
import uuid
from pathlib import PurePosixPath
from typing import Iterable, Sequence

from ..common.formatting import file_category_for_mime, format_file_size
from ..core.constants import MAX_UPLOAD_BYTES, SIGNED_URL_TTL_SECONDS
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, BackendError, NotFoundError, StateConflictError, ValidationError
from ..kanban.assignments import can_edit_task
from ..kanban.model import BoardTask, TaskAttachment
from ..kanban.repository import KanbanRepository
from .repository import AttachmentRepository
from .storage import ObjectStorage

logger = logging.getLogger(__name__)

DOCUMENT_MIME_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def is_allowed_mime(content_type: str) -> bool:
    mime = (content_type or "").split(";")[0].strip().lower()
    return mime.startswith("image/") or mime.startswith("video/") or mime in DOCUMENT_MIME_TYPES


def build_storage_path(task_id: int, file_name: str) -> str:
    """``<task_id>/<uuid>.<ext>``; the original name is kept only in metadata."""
    ext = PurePosixPath(file_name or "").suffix.lstrip(".").lower()
    return f"{int(task_id)}/{uuid.uuid4().hex}.{ext or 'bin'}"


class AttachmentService:
    def __init__(
        self,
        attachments: AttachmentRepository,
        tasks: KanbanRepository,
        storage: ObjectStorage,
        *,
        max_upload_bytes: int = MAX_UPLOAD_BYTES,
        signed_url_ttl: int = SIGNED_URL_TTL_SECONDS,
    ):
        self._attachments = attachments
        self._tasks = tasks
        self._storage = storage
        self._max_upload_bytes = int(max_upload_bytes)
        self._signed_url_ttl = int(signed_url_ttl)

    def _editable_task(self, task_id: int, *, user_id: int, role: Role) -> BoardTask:
        task = self._tasks.get_task(int(task_id))
        if not task:
            raise NotFoundError("Task not found.")
        if task.is_archived:
            raise StateConflictError("Archived tasks cannot be changed.")
        if not can_edit_task(task, user_id=user_id, role=role):
            raise AuthorizationError("You are not allowed to edit this task.")
        return task

    def get(self, attachment_id: int) -> TaskAttachment:
        attachment = self._attachments.get_by_id(int(attachment_id))
        if not attachment:
            raise NotFoundError("Attachment not found.")
        return attachment

    def list_for_task(self, task_id: int) -> Sequence[TaskAttachment]:
        return self._attachments.list_for_task(int(task_id))

    def upload(
        self,
        *,
        current_user_id: int,
        current_role: Role,
        task_id: int,
        file_name: str,
        content_type: str,
        data: bytes,
    ) -> TaskAttachment:
        task = self._editable_task(task_id, user_id=current_user_id, role=current_role)

        file_name = (file_name or "").strip()
        if not file_name:
            raise ValidationError("File name is required.")
        if not is_allowed_mime(content_type):
            raise ValidationError("Only images, videos, PDF, Word and Excel files can be attached.")
        if not data:
            raise ValidationError("File is empty.")
        if len(data) > self._max_upload_bytes:
            raise ValidationError(f"File is larger than {format_file_size(self._max_upload_bytes)}.")

        path = build_storage_path(task.task_id, file_name)
        self._storage.upload(path, data, content_type=content_type)

        category = file_category_for_mime(content_type)
        try:
            attachment_id = self._attachments.create(
                task_id=task.task_id,
                file_name=file_name,
                storage_path=path,
                file_type=category,
                file_size=len(data),
                uploaded_by=int(current_user_id),
            )
        except BackendError:
            # No row points at the object; remove it before reporting the failure.
            self._storage.remove([path])
            raise

        logger.info("attachment %s (%s) added to task %s", attachment_id, path, task.task_id)
        return TaskAttachment(
            attachment_id=attachment_id,
            task_id=task.task_id,
            file_name=file_name,
            storage_path=path,
            file_type=category,
            file_size=len(data),
            uploaded_by=int(current_user_id),
        )

    def delete(self, *, current_user_id: int, current_role: Role, attachment_id: int) -> None:
        """Delete the metadata row, then the stored object."""
        attachment = self.get(attachment_id)
        self._editable_task(attachment.task_id, user_id=current_user_id, role=current_role)

        self._attachments.delete_by_id(attachment.attachment_id)
        self._storage.remove([attachment.storage_path])
        logger.info("attachment %s removed from task %s", attachment.attachment_id, attachment.task_id)

    def discard_uploads(
        self,
        *,
        current_user_id: int,
        current_role: Role,
        task_id: int,
        storage_paths: Iterable[str],
    ) -> int:
        """Undo uploads made in a task form that was then cancelled.

        Only paths under the task's own prefix are touched. Returns how many
        attachments were discarded.
        """
        task = self._editable_task(task_id, user_id=current_user_id, role=current_role)
        prefix = f"{task.task_id}/"
        wanted = {p for p in storage_paths if p and p.startswith(prefix)}
        if not wanted:
            return 0

        discarded = [a for a in self._attachments.list_for_task(task.task_id) if a.storage_path in wanted]
        for a in discarded:
            self._attachments.delete_by_id(a.attachment_id)
        self._storage.remove(sorted(wanted))

        logger.info("discarded %s upload(s) on task %s", len(discarded), task.task_id)
        return len(discarded)

    def signed_url(self, storage_path: str) -> str:
        return self._storage.create_signed_url(storage_path, expires_in=self._signed_url_ttl)
