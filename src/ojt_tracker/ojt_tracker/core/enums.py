from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    OJT = "ojt"
    SUPERVISOR = "supervisor"
    ADMIN = "admin"

    @property
    def can_manage(self) -> bool:
        return self in (Role.SUPERVISOR, Role.ADMIN)


class ClockState(str, Enum):
    """Per-day attendance state of a single user."""

    ABSENT = "absent"
    CLOCKED_IN = "clocked_in"
    CLOCKED_OUT = "clocked_out"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AssigneeStatus(str, Enum):
    """Invitation status of a (task, user) pair."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class FileCategory(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    DOCUMENT = "document"
