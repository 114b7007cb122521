from __future__ import annotations

from typing import Optional

from ..core.enums import FileCategory

_ROLE_LABELS = {
    "ojt": "OJT",
    "supervisor": "Supervisor",
    "admin": "System Admin",
}

_PRIORITY_COLORS = {
    "low": "#22c55e",
    "medium": "#f59e0b",
    "high": "#ef4444",
}


def format_hours(hours: Optional[float]) -> str:
    """Render fractional hours as ``"<h>h <m>m"`` rounded to the minute."""
    if not hours:
        return "0h 0m"
    total_minutes = int(round(hours * 60))
    return f"{total_minutes // 60}h {total_minutes % 60}m"


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def file_category_for_mime(mime_type: str) -> FileCategory:
    mime_type = (mime_type or "").lower()
    if mime_type.startswith("image/"):
        return FileCategory.IMAGE
    if mime_type.startswith("video/"):
        return FileCategory.VIDEO
    return FileCategory.DOCUMENT


def role_label(role: str) -> str:
    return _ROLE_LABELS.get(getattr(role, "value", role), str(getattr(role, "value", role)))


def priority_color(priority: str) -> str:
    return _PRIORITY_COLORS.get(getattr(priority, "value", priority), "#6366f1")
