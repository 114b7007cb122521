from __future__ import annotations

from typing import Optional, Protocol

from .model import SiteSettings


class SettingsRepository(Protocol):
    def get(self) -> Optional[SiteSettings]:
        raise NotImplementedError

    def save_site(
        self,
        *,
        site_name: str,
        latitude: float,
        longitude: float,
        radius_meters: int,
        address: Optional[str],
        updated_by: int,
    ) -> None:
        """Update the singleton row, inserting it on first save."""

        raise NotImplementedError

    def save_timezone(self, *, timezone: str, updated_by: int) -> bool:
        raise NotImplementedError

    def save_retention_days(self, *, days: int, updated_by: int) -> bool:
        raise NotImplementedError
