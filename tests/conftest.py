from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date, datetime
from typing import Optional

import pytest
from zoneinfo import ZoneInfo

from autopunch.attendance.model import AttendanceLog
from autopunch.attendance.service import AttendanceService
from autopunch.core.enums import Action, LogStatus
from autopunch.portal.model import PunchOutcome
from autopunch.users.model import Preferences, User
from autopunch.vault.vault import CredentialVault

TZ = ZoneInfo("Asia/Kolkata")


class InMemoryUsers:
    def __init__(self, users=()):
        self._by_id: dict[int, User] = {u.user_id: u for u in users}
        self._next_id = max(self._by_id, default=0)

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._by_id.get(user_id)

    def get_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self._by_id.values() if u.username == username), None)

    def list_all(self):
        return [self._by_id[k] for k in sorted(self._by_id)]

    def create_user(self, *, username, display_name, password_hash, portal_username, portal_secret) -> int:
        self._next_id += 1
        self._by_id[self._next_id] = User(
            user_id=self._next_id,
            username=username,
            display_name=display_name,
            password_hash=password_hash,
            portal_username=portal_username,
            portal_secret=portal_secret,
        )
        return self._next_id

    def update_preferences(self, user_id: int, preferences: Preferences) -> bool:
        user = self._by_id.get(user_id)
        if not user:
            return False
        self._by_id[user_id] = replace(user, preferences=preferences)
        return True

    def update_portal_identity(self, user_id: int, *, portal_username=None, portal_secret=None) -> bool:
        user = self._by_id.get(user_id)
        if not user:
            return False
        if portal_username is not None:
            user = replace(user, portal_username=portal_username)
        if portal_secret is not None:
            user = replace(user, portal_secret=portal_secret)
        self._by_id[user_id] = user
        return True


class InMemoryLogs:
    """Mirrors the MySQL repository: unique (user, date), timestamps never cleared."""

    def __init__(self):
        self._by_user_date: dict[tuple[int, date], AttendanceLog] = {}
        self._id = 0
        self._lock = threading.Lock()

    def all(self):
        return list(self._by_user_date.values())

    def get_for_user_and_date(self, user_id: int, log_date: date) -> Optional[AttendanceLog]:
        return self._by_user_date.get((user_id, log_date))

    def get_recent_for_user(self, user_id: int, limit: int):
        items = [r for r in self._by_user_date.values() if r.user_id == user_id]
        items.sort(key=lambda r: r.log_date, reverse=True)
        return items[:limit]

    def create_leave(self, *, user_id: int, log_date: date, message: str) -> bool:
        with self._lock:
            if (user_id, log_date) in self._by_user_date:
                return False
            self._id += 1
            self._by_user_date[(user_id, log_date)] = AttendanceLog(
                log_id=self._id,
                user_id=user_id,
                log_date=log_date,
                clock_in_at=None,
                clock_out_at=None,
                status=LogStatus.LEAVE,
                message=message,
            )
            return True

    def record_clock_in(self, *, user_id, log_date, clock_in_at, status, message, attempted_at) -> None:
        with self._lock:
            existing = self._by_user_date.get((user_id, log_date))
            if existing is None:
                self._id += 1
                self._by_user_date[(user_id, log_date)] = AttendanceLog(
                    log_id=self._id,
                    user_id=user_id,
                    log_date=log_date,
                    clock_in_at=clock_in_at,
                    clock_out_at=None,
                    status=status,
                    message=message,
                    last_attempt_at=attempted_at,
                )
                return
            self._by_user_date[(user_id, log_date)] = replace(
                existing,
                clock_in_at=clock_in_at or existing.clock_in_at,
                status=status,
                message=message,
                last_attempt_at=attempted_at,
            )

    def record_clock_out(self, *, user_id, log_date, clock_out_at, status, message, attempted_at) -> bool:
        with self._lock:
            existing = self._by_user_date.get((user_id, log_date))
            if existing is None or existing.clock_in_at is None:
                return False
            self._by_user_date[(user_id, log_date)] = replace(
                existing,
                clock_out_at=clock_out_at or existing.clock_out_at,
                status=status,
                message=message,
                last_attempt_at=attempted_at,
            )
            return True

    def delete_for_user_and_date(self, user_id: int, log_date: date) -> bool:
        return self._by_user_date.pop((user_id, log_date), None) is not None


class FakePortal:
    """Stands in for PortalClient.punch; records every call."""

    def __init__(self, *, success: bool = True, message: Optional[str] = None):
        self.calls: list[tuple[str, str, Action]] = []
        self.success = success
        self.message = message
        self._lock = threading.Lock()

    def punch(self, username: str, secret: str, action: Action) -> PunchOutcome:
        with self._lock:
            self.calls.append((username, secret, action))
        if not self.success:
            return PunchOutcome(success=False, message=self.message or "Login failed")
        label = "punch in" if action is Action.CLOCK_IN else "punch out"
        return PunchOutcome(
            success=True,
            message=self.message or f"Successfully marked {label}",
            timestamp=datetime(2026, 10, 19, 9, 10, 30),
        )


@pytest.fixture
def vault() -> CredentialVault:
    return CredentialVault("test-passphrase")


@pytest.fixture
def make_user(vault):
    def _make(user_id: int = 1, *, secret: str = "portal-pw", **prefs) -> User:
        return User(
            user_id=user_id,
            username=f"user{user_id}",
            display_name=f"User {user_id}",
            password_hash="x",
            portal_username=f"EMP{user_id:03d}",
            portal_secret=vault.encrypt(secret),
            preferences=Preferences(**prefs),
        )

    return _make


@pytest.fixture
def fixed_now() -> datetime:
    # Monday 2026-10-19, 09:10 portal time
    return datetime(2026, 10, 19, 9, 10)


@pytest.fixture
def portal() -> FakePortal:
    return FakePortal()


@pytest.fixture
def logs() -> InMemoryLogs:
    return InMemoryLogs()


@pytest.fixture
def build_service(vault, logs, portal):
    def _build(users, **kwargs) -> AttendanceService:
        kwargs.setdefault("timezone", TZ)
        kwargs.setdefault("workers", 1)
        return AttendanceService(logs, InMemoryUsers(users), vault, portal, **kwargs)

    return _build
