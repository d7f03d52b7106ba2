from __future__ import annotations

import re

from ..core.exceptions import ValidationError

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_hhmm(value: str, field_name: str) -> str:
    if not isinstance(value, str) or not _HHMM.match(value.strip()):
        raise ValidationError(f"{field_name} must be in HH:MM format")
    return value.strip()


def require_int_range(value, field_name: str, low: int, high: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if isinstance(value, bool) or number < low or number > high:
        raise ValidationError(f"{field_name} must be between {low} and {high}")
    return number
