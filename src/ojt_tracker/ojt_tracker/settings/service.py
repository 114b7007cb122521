from __future__ import annotations

import logging
from typing import Optional

from ..common.datetime_utils import get_zone
from ..common.validators import optional_text, parse_float, parse_int, require_between, require_non_empty
from ..core.constants import (
    DEFAULT_RETENTION_DAYS,
    DEFAULT_TIMEZONE,
    MAX_RADIUS_METERS,
    MAX_RETENTION_DAYS,
    MIN_RADIUS_METERS,
    MIN_RETENTION_DAYS,
)
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .model import SiteSettings
from .repository import SettingsRepository

logger = logging.getLogger(__name__)


class SettingsService:
    def __init__(self, settings: SettingsRepository):
        self._settings = settings

    @staticmethod
    def _require_admin(current_role: Role) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can change site settings.")

    def get(self) -> Optional[SiteSettings]:
        return self._settings.get()

    def require(self) -> SiteSettings:
        site = self._settings.get()
        if not site:
            raise NotFoundError("Site location has not been configured yet.")
        return site

    def timezone(self) -> str:
        site = self._settings.get()
        return site.timezone if site and site.timezone else DEFAULT_TIMEZONE

    def retention_days(self) -> int:
        site = self._settings.get()
        return site.archive_retention_days if site else DEFAULT_RETENTION_DAYS

    def save_site(
        self,
        *,
        current_role: Role,
        user_id: int,
        site_name: str,
        latitude,
        longitude,
        radius_meters,
        address: Optional[str] = None,
    ) -> None:
        self._require_admin(current_role)
        lat = require_between(parse_float(latitude, "Latitude"), "Latitude", -90, 90)
        lon = require_between(parse_float(longitude, "Longitude"), "Longitude", -180, 180)
        radius = parse_int(radius_meters, "Radius")
        if radius < MIN_RADIUS_METERS:
            raise ValidationError(f"Radius must be at least {MIN_RADIUS_METERS} meters.")
        if radius > MAX_RADIUS_METERS:
            raise ValidationError(f"Radius must be at most {MAX_RADIUS_METERS} meters.")

        self._settings.save_site(
            site_name=require_non_empty(site_name, "Site name"),
            latitude=lat,
            longitude=lon,
            radius_meters=radius,
            address=optional_text(address),
            updated_by=int(user_id),
        )
        logger.info("site moved to (%.6f, %.6f) r=%sm by user %s", lat, lon, radius, user_id)

    def save_timezone(self, *, current_role: Role, user_id: int, timezone: str) -> None:
        self._require_admin(current_role)
        timezone = require_non_empty(timezone, "Timezone")
        get_zone(timezone)
        self.require()
        self._settings.save_timezone(timezone=timezone, updated_by=int(user_id))

    def save_retention_days(self, *, current_role: Role, user_id: int, days) -> int:
        self._require_admin(current_role)
        value = parse_int(days, "Retention days")
        if value < MIN_RETENTION_DAYS or value > MAX_RETENTION_DAYS:
            raise ValidationError(
                f"Retention must be between {MIN_RETENTION_DAYS} and {MAX_RETENTION_DAYS} days."
            )
        self.require()
        self._settings.save_retention_days(days=value, updated_by=int(user_id))
        logger.info("archive retention set to %s days by user %s", value, user_id)
        return value
