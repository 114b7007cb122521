from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import optional_text, parse_int, require_min_length, require_non_empty
from ..core.constants import DEFAULT_REQUIRED_HOURS
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from .model import Profile
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: int
    full_name: str
    role: Role


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> SessionUser:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password.")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME'
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password.")

        logger.info("user %s signed in as %s", user.user_id, user.role.value)
        return SessionUser(user_id=user.user_id, full_name=user.full_name, role=user.role)


class UserService:
    """Use case: manage profiles (admin)."""

    def __init__(self, users: UserRepository):
        self._users = users

    @staticmethod
    def _require_admin(current_role: Role) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can manage users.")

    @staticmethod
    def _parse_role(role) -> Role:
        try:
            return Role(getattr(role, "value", role))
        except ValueError:
            raise ValidationError("Unknown role.")

    @staticmethod
    def _parse_required_hours(value) -> int:
        hours = parse_int(value, "Required hours")
        if hours < 0:
            raise ValidationError("Required hours cannot be negative.")
        return hours

    def get(self, user_id: int) -> Profile:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found.")
        return user

    def list_users(self) -> Sequence[Profile]:
        return self._users.list_all()

    def list_active_trainees(self) -> Sequence[Profile]:
        return self._users.list_active_by_role(Role.OJT)

    def list_active_supervisors(self) -> Sequence[Profile]:
        return self._users.list_active_by_role(Role.SUPERVISOR)

    def create_user(
        self,
        *,
        current_role: Role,
        full_name: str,
        email: str,
        password: str,
        role=Role.OJT,
        department: Optional[str] = None,
        required_hours=DEFAULT_REQUIRED_HOURS,
        is_active: bool = True,
    ) -> int:
        self._require_admin(current_role)
        full_name = require_non_empty(full_name, "Full name")
        email = require_non_empty(email, "Email").lower()
        require_min_length(password, "Password", 6)
        if "@" not in email:
            raise ValidationError("Email is not valid.")

        if self._users.get_by_email(email):
            raise ValidationError("A user with this email already exists.")

        user_id = self._users.create_user(
            full_name=full_name,
            email=email,
            password_hash=generate_password_hash(password),
            role=self._parse_role(role),
            department=optional_text(department),
            required_hours=self._parse_required_hours(required_hours),
            is_active=bool(is_active),
        )
        logger.info("created user %s (%s)", user_id, email)
        return user_id

    def update_user(
        self,
        *,
        current_role: Role,
        user_id: int,
        full_name: str,
        role,
        department: Optional[str],
        required_hours,
        is_active: bool,
    ) -> None:
        self._require_admin(current_role)
        self.get(user_id)
        self._users.update_user(
            int(user_id),
            full_name=require_non_empty(full_name, "Full name"),
            role=self._parse_role(role),
            department=optional_text(department),
            required_hours=self._parse_required_hours(required_hours),
            is_active=bool(is_active),
        )

    def deactivate_user(self, *, current_role: Role, user_id: int) -> None:
        self._require_admin(current_role)
        self.get(user_id)
        self._users.set_active(int(user_id), is_active=False)
        logger.info("deactivated user %s", user_id)

    def delete_user(self, *, current_role: Role, current_user_id: int, user_id: int) -> None:
        self._require_admin(current_role)
        if int(user_id) == int(current_user_id):
            raise ValidationError("You cannot delete your own account.")
        self.get(user_id)
        if not self._users.delete_by_id(int(user_id)):
            raise ValidationError("Failed to delete user.")
        logger.info("deleted user %s", user_id)
