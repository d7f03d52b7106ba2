from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import Action, LogStatus


@dataclass(frozen=True)
class AttendanceLog:
    """Domain entity: one user's attendance record for one calendar date."""

    log_id: int
    user_id: int
    log_date: date
    clock_in_at: Optional[datetime]
    clock_out_at: Optional[datetime]
    status: LogStatus
    message: Optional[str] = None
    last_attempt_at: Optional[datetime] = None

    @property
    def is_leave(self) -> bool:
        return self.status == LogStatus.LEAVE

    def to_dict(self) -> dict:
        return {
            "date": self.log_date.isoformat(),
            "clockIn": self.clock_in_at.isoformat() if self.clock_in_at else None,
            "clockOut": self.clock_out_at.isoformat() if self.clock_out_at else None,
            "status": self.status.value,
            "message": self.message,
        }


@dataclass(frozen=True)
class SweepSummary:
    users_scanned: int
    actions_processed: int
    timestamp: datetime
    weekday: int

    def to_dict(self) -> dict:
        return {
            "usersScanned": self.users_scanned,
            "actionsProcessed": self.actions_processed,
            "timestamp": self.timestamp.isoformat(),
            "weekday": self.weekday,
        }


@dataclass(frozen=True)
class TriggerResult:
    success: bool
    message: str
    action: Action
    timestamp: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "message": self.message,
            "action": self.action.value,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }
