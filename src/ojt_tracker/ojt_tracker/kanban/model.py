from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..common.formatting import format_file_size, priority_color
from ..core.constants import DEFAULT_COLUMN_COLOR
from ..core.enums import AssigneeStatus, FileCategory, TaskPriority


@dataclass(frozen=True)
class TaskAssignee:
    task_id: int
    user_id: int
    status: AssigneeStatus
    assigned_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "task_id": self.task_id,
            "user_id": self.user_id,
            "status": self.status.value,
            "assigned_at": self.assigned_at.isoformat() if self.assigned_at else None,
        }


@dataclass(frozen=True)
class TaskAttachment:
    attachment_id: int
    task_id: int
    file_name: str
    storage_path: str
    file_type: FileCategory
    file_size: Optional[int] = None
    uploaded_by: Optional[int] = None
    uploaded_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "attachment_id": self.attachment_id,
            "task_id": self.task_id,
            "file_name": self.file_name,
            "storage_path": self.storage_path,
            "file_type": self.file_type.value,
            "file_size": self.file_size,
            "file_size_label": format_file_size(self.file_size or 0),
            "uploaded_by": self.uploaded_by,
            "uploaded_at": self.uploaded_at.isoformat() if self.uploaded_at else None,
        }


@dataclass
class BoardTask:
    """A card on the board.

    Mutable on purpose: the ordering engine works on copies of the board and
    rewrites ``position`` and ``column_id`` in place.
    """

    task_id: int
    column_id: Optional[int]
    title: str
    description: Optional[str] = None
    creator_id: Optional[int] = None
    position: int = 0
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[date] = None
    archived_at: Optional[datetime] = None
    archived_by: Optional[int] = None
    assignees: list[TaskAssignee] = field(default_factory=list)
    attachments: list[TaskAttachment] = field(default_factory=list)

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    @property
    def assigned_user_ids(self) -> list[int]:
        """Creator plus every accepted assignee, creator first."""
        ids: list[int] = []
        if self.creator_id is not None:
            ids.append(self.creator_id)
        for a in self.assignees:
            if a.status == AssigneeStatus.ACCEPTED and a.user_id not in ids:
                ids.append(a.user_id)
        return ids

    def status_of(self, user_id: int) -> Optional[AssigneeStatus]:
        for a in self.assignees:
            if a.user_id == user_id:
                return a.status
        return None

    def to_dict(self) -> dict:
        return {
            "task_id": self.task_id,
            "column_id": self.column_id,
            "title": self.title,
            "description": self.description,
            "creator_id": self.creator_id,
            "position": self.position,
            "priority": self.priority.value,
            "priority_color": priority_color(self.priority),
            "due_date": self.due_date.strftime("%Y-%m-%d") if self.due_date else None,
            "archived_at": self.archived_at.isoformat() if self.archived_at else None,
            "archived_by": self.archived_by,
            "assigned_user_ids": self.assigned_user_ids,
            "assignees": [a.to_dict() for a in self.assignees],
            "attachments": [a.to_dict() for a in self.attachments],
        }


@dataclass
class BoardColumn:
    column_id: int
    title: str
    color: str = DEFAULT_COLUMN_COLOR
    position: int = 0
    tasks: list[BoardTask] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "column_id": self.column_id,
            "title": self.title,
            "color": self.color,
            "position": self.position,
            "tasks": [t.to_dict() for t in self.tasks],
        }


@dataclass(frozen=True)
class PositionUpdate:
    """One row write produced by a reorder."""

    kind: str  # "column" | "task"
    row_id: int
    position: int
    column_id: Optional[int] = None


@dataclass(frozen=True)
class ArchivedTaskView:
    task: BoardTask
    column_title: Optional[str]
    days_remaining: int
    hours_remaining: float
    is_urgent: bool

    @property
    def countdown_label(self) -> str:
        if not self.is_urgent:
            return f"{self.days_remaining}d until purge"
        return f"{max(0, int(self.hours_remaining))}h until purge"

    def to_dict(self) -> dict:
        data = self.task.to_dict()
        data.update(
            column_title=self.column_title,
            days_remaining=self.days_remaining,
            is_urgent=self.is_urgent,
            countdown_label=self.countdown_label,
        )
        return data
