"""Route-level access policy.

The policy is a pure function of (path, role) so it can be unit tested
without Flask; ``main.create_app`` installs it as a ``before_request`` hook.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role

PUBLIC_PATHS = {"/", "/login", "/api/auth/login"}
PUBLIC_PREFIXES = ("/static/", "/files/")

ADMIN_PREFIXES = ("/admin", "/api/admin", "/dashboard/admin")
SUPERVISOR_PREFIXES = ("/supervisor", "/api/supervisor", "/dashboard/supervisor")


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    redirect_to: Optional[str] = None
    status: int = 200


def dashboard_path(role: Role) -> str:
    return f"/dashboard/{role.value}"


def _matches(path: str, prefixes: tuple[str, ...]) -> bool:
    return any(path == p or path.startswith(p + "/") for p in prefixes)


def is_public(path: str) -> bool:
    return path in PUBLIC_PATHS or path.startswith(PUBLIC_PREFIXES)


def check_access(path: str, role: Optional[Role]) -> AccessDecision:
    """Decide whether a session with ``role`` (None = anonymous) may open ``path``."""

    if is_public(path):
        return AccessDecision(allowed=True)

    is_api = path.startswith("/api/")
    if role is None:
        return AccessDecision(allowed=False, redirect_to=None if is_api else "/login", status=401)

    if _matches(path, ADMIN_PREFIXES) and role != Role.ADMIN:
        return AccessDecision(allowed=False, redirect_to=None if is_api else dashboard_path(role), status=403)

    if _matches(path, SUPERVISOR_PREFIXES) and not role.can_manage:
        return AccessDecision(allowed=False, redirect_to=None if is_api else dashboard_path(role), status=403)

    return AccessDecision(allowed=True)
