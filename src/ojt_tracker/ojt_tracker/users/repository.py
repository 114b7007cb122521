from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import Profile


class UserRepository(Protocol):
    """Repository interface for profiles.

    Note (DIP): services depend on this interface, never on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[Profile]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Profile]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Profile]:
        raise NotImplementedError

    def list_active_by_role(self, role: Role) -> Sequence[Profile]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        full_name: str,
        email: str,
        password_hash: str,
        role: Role,
        department: Optional[str],
        required_hours: int,
        is_active: bool,
    ) -> int:
        raise NotImplementedError

    def update_user(
        self,
        user_id: int,
        *,
        full_name: str,
        role: Role,
        department: Optional[str],
        required_hours: int,
        is_active: bool,
    ) -> bool:
        raise NotImplementedError

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError
