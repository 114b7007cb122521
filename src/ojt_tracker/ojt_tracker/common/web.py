"""Flask glue shared by the controllers: session user, JSON replies, error mapping."""
from __future__ import annotations

import logging
import math
from typing import Any, Optional

from flask import Flask, jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BackendError,
    BoardSyncError,
    DomainError,
    LocationUnavailableError,
    NotFoundError,
    OutOfRangeError,
    StateConflictError,
    ValidationError,
)
from ..users.service import SessionUser

logger = logging.getLogger(__name__)

# Most specific first.
_STATUS_BY_ERROR: list[tuple[type, int]] = [
    (NotFoundError, 404),
    (ValidationError, 400),
    (OutOfRangeError, 400),
    (LocationUnavailableError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (StateConflictError, 409),
    (BoardSyncError, 409),
    (BackendError, 502),
    (DomainError, 400),
]


def status_for(exc: Exception) -> int:
    for kind, status in _STATUS_BY_ERROR:
        if isinstance(exc, kind):
            return status
    return 500


def login_session(user: SessionUser) -> None:
    session.clear()
    session.permanent = True
    session["user_id"] = user.user_id
    session["name"] = user.full_name
    session["role"] = user.role.value


def current_role() -> Optional[Role]:
    try:
        return Role(session["role"]) if "user_id" in session else None
    except (KeyError, ValueError):
        return None


def current_user() -> SessionUser:
    """Session user for a view behind the access gate."""
    role = current_role()
    if role is None:
        raise AuthenticationError("Please sign in to continue.")
    return SessionUser(user_id=int(session["user_id"]), full_name=session.get("name", ""), role=role)


def json_body() -> dict:
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def ok(message: Optional[str] = None, status: int = 200, **data: Any):
    payload = {"success": True}
    if message:
        payload["message"] = message
    payload.update(data)
    return jsonify(payload), status


def fail(message: str, status: int, **data: Any):
    payload = {"success": False, "message": message}
    payload.update(data)
    return jsonify(payload), status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        extra = {}
        if isinstance(e, OutOfRangeError):
            extra["distance_meters"] = None if math.isnan(e.distance_meters) else round(e.distance_meters)
            extra["radius_meters"] = e.radius_meters
        return fail(str(e), status_for(e), **extra)

    @app.errorhandler(BackendError)
    def handle_backend_error(e: BackendError):
        extra = {}
        if isinstance(e, BoardSyncError) and e.board is not None:
            extra["board"] = [c.to_dict() for c in e.board]
        logger.warning("backend error on %s %s: %s", request.method, request.path, e)
        return fail(str(e), status_for(e), **extra)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        # Let Flask render its own HTTP errors (404 routes, 405 methods).
        code = getattr(e, "code", None)
        if isinstance(code, int) and 400 <= code < 600:
            return fail(getattr(e, "description", str(e)), code)
        logger.exception("unhandled error on %s %s", request.method, request.path)
        return fail("Something went wrong. Please try again.", 500)
