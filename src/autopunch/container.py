from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from zoneinfo import ZoneInfo

from .attendance.mysql_attendance_repository import MySQLAttendanceLogRepository
from .attendance.service import AttendanceService
from .common.datetime_utils import now_local
from .database.connection import DBConfig, DatabaseConnection
from .portal.client import PortalClient, PortalConfig
from .schedules.planner import AttendancePlanner
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService, PreferenceService
from .vault.vault import CredentialVault


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    users_repo: MySQLUserRepository
    logs_repo: MySQLAttendanceLogRepository

    vault: CredentialVault
    portal: PortalClient

    auth_service: AuthService
    preference_service: PreferenceService
    attendance_service: AttendanceService
    planner: AttendancePlanner


def build_container(settings) -> Container:
    """Wire repositories and services from a settings module."""
    tz = ZoneInfo(getattr(settings, "TIMEZONE", "Asia/Kolkata"))
    conn = DatabaseConnection(DBConfig.from_dict(settings.DB_CONFIG))

    users_repo = MySQLUserRepository(conn)
    logs_repo = MySQLAttendanceLogRepository(conn)

    vault = CredentialVault(settings.ENCRYPTION_KEY)
    portal = PortalClient(
        PortalConfig(
            origin=settings.PORTAL_ORIGIN,
            tenant=settings.PORTAL_TENANT,
            zone_id=settings.PORTAL_ZONE_ID,
            timeout=float(settings.PORTAL_TIMEOUT),
        ),
        clock=partial(now_local, tz),
    )

    attendance_service = AttendanceService(
        logs_repo,
        users_repo,
        vault,
        portal,
        timezone=tz,
        workers=int(getattr(settings, "SWEEP_WORKERS", 4)),
        retry_interval_minutes=int(getattr(settings, "RETRY_INTERVAL_MINUTES", 5)),
    )
    planner = AttendancePlanner(attendance_service, users_repo, timezone=tz)

    def _replan(user):
        if planner.started:
            planner.schedule_user(user)

    auth_service = AuthService(users_repo, vault)
    preference_service = PreferenceService(users_repo, vault, on_change=_replan)

    return Container(
        conn=conn,
        users_repo=users_repo,
        logs_repo=logs_repo,
        vault=vault,
        portal=portal,
        auth_service=auth_service,
        preference_service=preference_service,
        attendance_service=attendance_service,
        planner=planner,
    )
