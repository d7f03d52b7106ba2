from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import LogStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_date, db_cursor, fetchall, fetchone
from .model import AttendanceLog
from .repository import AttendanceLogRepository

_COLUMNS = "log_id, user_id, log_date, clock_in_at, clock_out_at, status, message, last_attempt_at"


def _to_log(r: dict) -> AttendanceLog:
    return AttendanceLog(
        log_id=int(r["log_id"]),
        user_id=int(r["user_id"]),
        log_date=as_date(r["log_date"]),
        clock_in_at=r.get("clock_in_at"),
        clock_out_at=r.get("clock_out_at"),
        status=LogStatus(r["status"]),
        message=r.get("message"),
        last_attempt_at=r.get("last_attempt_at"),
    )


class MySQLAttendanceLogRepository(AttendanceLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_user_and_date(self, user_id: int, log_date: date) -> Optional[AttendanceLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_logs
                WHERE user_id=%s AND log_date=%s
                """,
                (user_id, log_date),
            )
            r = fetchone(cur)
            return _to_log(r) if r else None

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_logs
                WHERE user_id=%s
                ORDER BY log_date DESC
                LIMIT %s
                """,
                (user_id, int(limit)),
            )
            return [_to_log(r) for r in fetchall(cur)]

    def create_leave(self, *, user_id: int, log_date: date, message: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO attendance_logs(user_id, log_date, clock_in_at, clock_out_at, status, message)
                VALUES(%s,%s,NULL,NULL,%s,%s)
                """,
                (user_id, log_date, LogStatus.LEAVE.value, message),
            )
            return cur.rowcount > 0

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
        # Upsert on uq_attendance_user_date; a failed attempt never clears clock_in_at.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_logs(user_id, log_date, clock_in_at, status, message, last_attempt_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    clock_in_at=COALESCE(VALUES(clock_in_at), clock_in_at),
                    status=VALUES(status),
                    message=VALUES(message),
                    last_attempt_at=VALUES(last_attempt_at)
                """,
                (user_id, log_date, clock_in_at, status.value, message, attempted_at),
            )

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_logs
                SET clock_out_at=COALESCE(%s, clock_out_at), status=%s, message=%s, last_attempt_at=%s
                WHERE user_id=%s AND log_date=%s AND clock_in_at IS NOT NULL
                """,
                (clock_out_at, status.value, message, attempted_at, user_id, log_date),
            )
            return cur.rowcount > 0

    def delete_for_user_and_date(self, user_id: int, log_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM attendance_logs WHERE user_id=%s AND log_date=%s",
                (user_id, log_date),
            )
            return cur.rowcount > 0
