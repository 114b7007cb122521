from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.formatting import role_label
from ..core.constants import DEFAULT_REQUIRED_HOURS
from ..core.enums import Role


@dataclass(frozen=True)
class Profile:
    """Domain entity: a user profile.

    Note: plain data object, no database access.
    """

    user_id: int
    full_name: str
    email: str
    password_hash: str
    role: Role
    department: Optional[str] = None
    required_hours: int = DEFAULT_REQUIRED_HOURS
    is_active: bool = True
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_trainee(self) -> bool:
        return self.role == Role.OJT

    def to_public_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "full_name": self.full_name,
            "email": self.email,
            "role": self.role.value,
            "role_label": role_label(self.role),
            "department": self.department,
            "required_hours": self.required_hours,
            "is_active": self.is_active,
            "avatar_url": self.avatar_url,
        }
