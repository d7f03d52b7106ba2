from __future__ import annotations

from enum import Enum


class LogStatus(str, Enum):
    """Outcome stored on a daily attendance record."""

    SUCCESS = "success"
    FAILED = "failed"
    LEAVE = "leave"


class Action(str, Enum):
    """The two daily actions submitted to the portal."""

    CLOCK_IN = "clock-in"
    CLOCK_OUT = "clock-out"

    @classmethod
    def parse(cls, value: str) -> "Action":
        aliases = {"punchIn": cls.CLOCK_IN, "punchOut": cls.CLOCK_OUT}
        if value in aliases:
            return aliases[value]
        return cls(value)

    @property
    def is_check_in(self) -> bool:
        return self is Action.CLOCK_IN
