from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Profile
from .repository import UserRepository

_COLUMNS = """
    user_id, full_name, email, password_hash, role, department,
    required_hours, is_active, avatar_url, created_at
"""


def _to_profile(row: dict) -> Profile:
    return Profile(
        user_id=int(row["user_id"]),
        full_name=row["full_name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        department=row.get("department"),
        required_hours=int(row.get("required_hours") or 0),
        is_active=bool(row.get("is_active", True)),
        avatar_url=row.get("avatar_url"),
        created_at=row.get("created_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[Profile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM profiles WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _to_profile(row) if row else None

    def get_by_email(self, email: str) -> Optional[Profile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM profiles WHERE email=%s", (email,))
            row = fetchone(cur)
            return _to_profile(row) if row else None

    def list_all(self) -> Sequence[Profile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM profiles ORDER BY created_at DESC")
            return [_to_profile(r) for r in fetchall(cur)]

    def list_active_by_role(self, role: Role) -> Sequence[Profile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM profiles WHERE role=%s AND is_active=1 ORDER BY full_name",
                (role.value,),
            )
            return [_to_profile(r) for r in fetchall(cur)]

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO profiles(full_name, email, password_hash, role, department, required_hours, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (full_name, email, password_hash, role.value, department, int(required_hours), int(is_active)),
            )
            return int(cur.lastrowid)

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE profiles
                SET full_name=%s, role=%s, department=%s, required_hours=%s, is_active=%s
                WHERE user_id=%s
                """,
                (full_name, role.value, department, int(required_hours), int(is_active), int(user_id)),
            )
            return cur.rowcount > 0

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE profiles SET is_active=%s WHERE user_id=%s", (int(is_active), int(user_id)))
            return cur.rowcount > 0

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM profiles WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0
