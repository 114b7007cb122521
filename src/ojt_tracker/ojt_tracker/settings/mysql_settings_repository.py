from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import SiteSettings
from .repository import SettingsRepository


class MySQLSettingsRepository(SettingsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self) -> Optional[SiteSettings]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT settings_id, site_name, latitude, longitude, radius_meters, address,
                       timezone, archive_retention_days, updated_by, updated_at
                FROM site_settings
                ORDER BY settings_id
                LIMIT 1
                """
            )
            r = fetchone(cur)
            if not r:
                return None
            return SiteSettings(
                settings_id=int(r["settings_id"]),
                site_name=r["site_name"],
                latitude=float(r["latitude"]),
                longitude=float(r["longitude"]),
                radius_meters=int(r["radius_meters"]),
                address=r.get("address"),
                timezone=r.get("timezone") or "Asia/Manila",
                archive_retention_days=int(r.get("archive_retention_days") or 7),
                updated_by=r.get("updated_by"),
                updated_at=r.get("updated_at"),
            )

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT settings_id FROM site_settings ORDER BY settings_id LIMIT 1")
            row = fetchone(cur)
            if row:
                cur.execute(
                    """
                    UPDATE site_settings
                    SET site_name=%s, latitude=%s, longitude=%s, radius_meters=%s, address=%s, updated_by=%s
                    WHERE settings_id=%s
                    """,
                    (site_name, latitude, longitude, int(radius_meters), address, updated_by, row["settings_id"]),
                )
            else:
                cur.execute(
                    """
                    INSERT INTO site_settings(site_name, latitude, longitude, radius_meters, address, updated_by)
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    (site_name, latitude, longitude, int(radius_meters), address, updated_by),
                )

    def save_timezone(self, *, timezone: str, updated_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE site_settings SET timezone=%s, updated_by=%s", (timezone, updated_by))
            return cur.rowcount > 0

    def save_retention_days(self, *, days: int, updated_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE site_settings SET archive_retention_days=%s, updated_by=%s",
                (int(days), updated_by),
            )
            return cur.rowcount > 0
