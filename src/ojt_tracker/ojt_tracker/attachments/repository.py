from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import FileCategory
from ..kanban.model import TaskAttachment


class AttachmentRepository(Protocol):
    def get_by_id(self, attachment_id: int) -> Optional[TaskAttachment]:
        raise NotImplementedError

    def list_for_task(self, task_id: int) -> Sequence[TaskAttachment]:
        raise NotImplementedError

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
        raise NotImplementedError

    def delete_by_id(self, attachment_id: int) -> bool:
        raise NotImplementedError
