from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import LogStatus
from .model import AttendanceLog


class AttendanceLogRepository(Protocol):
    """Store for daily attendance records, at most one per (user, date).

    Writes never clear a timestamp that is already set: passing ``None`` for
    ``clock_in_at`` / ``clock_out_at`` keeps the stored value.
    """

    def get_for_user_and_date(self, user_id: int, log_date: date) -> Optional[AttendanceLog]:
        raise NotImplementedError

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceLog]:
        raise NotImplementedError

    def create_leave(self, *, user_id: int, log_date: date, message: str) -> bool:
        """Insert a leave record unless one exists for the date. Returns True if inserted."""

        raise NotImplementedError

    def record_clock_in(
        self,
        *,
        user_id: int,
        log_date: date,
        clock_in_at: Optional[datetime],
        status: LogStatus,
        message: str,
        attempted_at: datetime,
    ) -> None:
        """Create the record for the date or update the existing one."""

        raise NotImplementedError

    def record_clock_out(
        self,
        *,
        user_id: int,
        log_date: date,
        clock_out_at: Optional[datetime],
        status: LogStatus,
        message: str,
        attempted_at: datetime,
    ) -> bool:
        """Update the existing record for the date. Returns False if there is none."""

        raise NotImplementedError

    def delete_for_user_and_date(self, user_id: int, log_date: date) -> bool:
        raise NotImplementedError
