from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Tuple

from ..core.constants import (
    DEFAULT_CLOCK_IN_TIME,
    DEFAULT_CLOCK_OUT_TIME,
    DEFAULT_TOLERANCE_MINUTES,
    DEFAULT_WORKING_DAYS,
)


@dataclass(frozen=True)
class Preferences:
    """Schedule preferences of one user.

    ``working_days`` uses Sunday=0 ... Saturday=6.
    """

    clock_in_time: str = DEFAULT_CLOCK_IN_TIME
    clock_out_time: str = DEFAULT_CLOCK_OUT_TIME
    tolerance_minutes: int = DEFAULT_TOLERANCE_MINUTES
    working_days: Tuple[int, ...] = DEFAULT_WORKING_DAYS
    leave_dates: Tuple[date, ...] = field(default_factory=tuple)

    def is_working_day(self, weekday: int) -> bool:
        return weekday in self.working_days

    def is_leave_day(self, day: date) -> bool:
        return day in self.leave_dates

    def to_dict(self) -> dict:
        return {
            "clockInTime": self.clock_in_time,
            "clockOutTime": self.clock_out_time,
            "toleranceMinutes": self.tolerance_minutes,
            "workingDays": list(self.working_days),
            "leaveDates": [d.isoformat() for d in self.leave_dates],
        }


@dataclass(frozen=True)
class User:
    """Domain entity: a registered account and its portal identity.

    Note: ``portal_secret`` is always the vault token, never plaintext.
    """

    user_id: int
    username: str
    display_name: str
    password_hash: str
    portal_username: str
    portal_secret: str
    preferences: Preferences = field(default_factory=Preferences)
