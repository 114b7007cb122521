from __future__ import annotations

import math
from typing import Any, Optional


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(ValidationError):
    """Raised when a referenced row does not exist."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class LocationUnavailableError(DomainError):
    """Raised when the caller could not supply usable GPS coordinates."""


class OutOfRangeError(DomainError):
    """Raised when a trainee is outside the site geofence."""

    def __init__(self, distance_meters: float, radius_meters: float):
        self.distance_meters = distance_meters
        self.radius_meters = radius_meters
        if math.isnan(distance_meters):
            where = "Your distance from the office could not be determined."
        else:
            where = f"You are {int(round(distance_meters))}m away from the office."
        super().__init__(f"{where} You must be within {int(round(radius_meters))}m to clock in/out.")


class StateConflictError(DomainError):
    """Raised when an action conflicts with the current state of a row."""


class BackendError(Exception):
    """Raised when the persistence backend rejects or fails a call."""


class DuplicateRecordError(BackendError):
    """Raised when a uniqueness constraint rejects an insert."""


class BoardSyncError(BackendError):
    """Raised when persisting a board change failed.

    ``board`` holds the authoritative board refetched after the failure.
    """

    def __init__(self, message: str, board: Optional[Any] = None):
        super().__init__(message)
        self.board = board
