from __future__ import annotations

from datetime import datetime


def parse_hhmm(value: str) -> int:
    """'09:30' -> 570 minutes since midnight."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_of_day(moment: datetime) -> int:
    return moment.hour * 60 + moment.minute


def is_within_window(target_minutes: int, tolerance: int, current_minutes: int) -> bool:
    """True iff current is in [target - tolerance, target + tolerance].

    No wrap-around: a window crossing midnight only matches on the side of
    midnight the target is on.
    """
    return target_minutes - tolerance <= current_minutes <= target_minutes + tolerance
