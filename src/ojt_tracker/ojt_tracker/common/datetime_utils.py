from __future__ import annotations

from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..core.constants import DEFAULT_TIMEZONE
from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError("Dates must use the YYYY-MM-DD format.")


def parse_month(value: str) -> date:
    """Parse YYYY-MM into the first day of that month."""
    try:
        return datetime.strptime(value, "%Y-%m").date()
    except (TypeError, ValueError):
        raise ValidationError("Months must use the YYYY-MM format.")


def month_bounds(month_start: date) -> tuple[date, date]:
    first = month_start.replace(day=1)
    if first.month == 12:
        next_first = first.replace(year=first.year + 1, month=1)
    else:
        next_first = first.replace(month=first.month + 1)
    return first, date.fromordinal(next_first.toordinal() - 1)


def get_zone(name: Optional[str]) -> ZoneInfo:
    try:
        return ZoneInfo(name or DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Unknown timezone: {name}")


def now_local(tz_name: Optional[str] = None) -> datetime:
    """Current wall-clock time at the site, as a naive datetime.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(get_zone(tz_name)).replace(tzinfo=None)
