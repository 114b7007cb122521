from __future__ import annotations

import math
from typing import Any, Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required.")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters.")
    return value


def parse_float(value: Any, field_name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number.")
    if math.isnan(number) or math.isinf(number):
        raise ValidationError(f"{field_name} must be a number.")
    return number


def parse_int(value: Any, field_name: str) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a whole number.")


def require_between(value: float, field_name: str, low: float, high: float) -> float:
    if value < low or value > high:
        raise ValidationError(f"{field_name} must be between {low:g} and {high:g}.")
    return value


def optional_text(value: Optional[str]) -> Optional[str]:
    """Blank strings become None."""
    v = (value or "").strip()
    return v or None
