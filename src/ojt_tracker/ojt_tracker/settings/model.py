from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.constants import DEFAULT_RETENTION_DAYS, DEFAULT_TIMEZONE


@dataclass(frozen=True)
class SiteSettings:
    """Singleton row: the training site and board housekeeping knobs."""

    settings_id: int
    site_name: str
    latitude: float
    longitude: float
    radius_meters: int
    address: Optional[str] = None
    timezone: str = DEFAULT_TIMEZONE
    archive_retention_days: int = DEFAULT_RETENTION_DAYS
    updated_by: Optional[int] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "settings_id": self.settings_id,
            "site_name": self.site_name,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "radius_meters": self.radius_meters,
            "address": self.address,
            "timezone": self.timezone,
            "archive_retention_days": self.archive_retention_days,
        }
