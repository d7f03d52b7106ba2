from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_hhmm, require_int_range, require_min_length, require_non_empty
from ..core.constants import MAX_TOLERANCE_MINUTES
from ..core.exceptions import AuthenticationError, ValidationError
from ..vault.vault import CredentialVault
from .model import Preferences, User
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: int
    username: str
    display_name: str


class AuthService:
    """Use case: sign up and authenticate against this system."""

    def __init__(self, users: UserRepository, vault: CredentialVault):
        self._users = users
        self._vault = vault

    def signup(
        self,
        *,
        username: str,
        password: str,
        portal_username: str,
        portal_secret: str,
        display_name: Optional[str] = None,
    ) -> SessionUser:
        username = require_non_empty(username, "Username")
        require_min_length(password, "Password", 6)
        portal_username = require_non_empty(portal_username, "Portal username")
        portal_secret = require_non_empty(portal_secret, "Portal password")
        display_name = (display_name or "").strip() or username

        if self._users.get_by_username(username):
            raise ValidationError("Username already exists")

        user_id = self._users.create_user(
            username=username,
            display_name=display_name,
            password_hash=generate_password_hash(password),
            portal_username=portal_username,
            portal_secret=self._vault.encrypt(portal_secret),
        )
        logger.info("Created user %s (id=%s)", username, user_id)
        return SessionUser(user_id=user_id, username=username, display_name=display_name)

    def authenticate(self, username: str, password: str) -> SessionUser:
        user = self._users.get_by_username((username or "").strip())
        if not user:
            raise AuthenticationError("Invalid username or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # unknown hash method, e.g. a placeholder value
            ok = False

        if not ok:
            raise AuthenticationError("Invalid username or password")

        return SessionUser(user_id=user.user_id, username=user.username, display_name=user.display_name)


class PreferenceService:
    """Use case: read and update schedule preferences and portal identity.

    ``on_change`` is called with the updated user, e.g. to re-plan its jobs.
    """

    def __init__(
        self,
        users: UserRepository,
        vault: CredentialVault,
        *,
        on_change: Optional[Callable[[User], None]] = None,
    ):
        self._users = users
        self._vault = vault
        self._on_change = on_change

    def get_preferences(self, user_id: int) -> dict:
        user = self._require_user(user_id)
        return {
            "preferences": user.preferences.to_dict(),
            "portalUsername": user.portal_username,
        }

    def update_preferences(self, user_id: int, payload: dict) -> dict:
        user = self._require_user(user_id)
        payload = payload or {}

        preferences = self._parse_preferences(payload, current=user.preferences)
        self._users.update_preferences(user_id, preferences)

        portal_username = (payload.get("portalUsername") or "").strip() or None
        portal_secret = (payload.get("portalPassword") or "").strip()
        # The stored token is left untouched unless a new secret is supplied.
        token = self._vault.encrypt(portal_secret) if portal_secret else None
        if portal_username or token:
            self._users.update_portal_identity(user_id, portal_username=portal_username, portal_secret=token)

        updated = self._require_user(user_id)
        if self._on_change:
            self._on_change(updated)
        return {
            "message": "Preferences updated successfully",
            "preferences": updated.preferences.to_dict(),
            "portalUsername": updated.portal_username,
        }

    def _parse_preferences(self, payload: dict, *, current: Preferences) -> Preferences:
        prefs = current
        if "clockInTime" in payload:
            prefs = replace(prefs, clock_in_time=require_hhmm(payload["clockInTime"], "Clock-in time"))
        if "clockOutTime" in payload:
            prefs = replace(prefs, clock_out_time=require_hhmm(payload["clockOutTime"], "Clock-out time"))
        if "toleranceMinutes" in payload:
            tolerance = require_int_range(payload["toleranceMinutes"], "Tolerance", 0, MAX_TOLERANCE_MINUTES)
            prefs = replace(prefs, tolerance_minutes=tolerance)
        if "workingDays" in payload:
            days = payload["workingDays"] or []
            if not isinstance(days, (list, tuple)):
                raise ValidationError("Working days must be a list")
            parsed = {require_int_range(d, "Working day", 0, 6) for d in days}
            prefs = replace(prefs, working_days=tuple(sorted(parsed)))
        if "leaveDates" in payload:
            raw = payload["leaveDates"] or []
            if not isinstance(raw, (list, tuple)):
                raise ValidationError("Leave dates must be a list")
            try:
                # accept plain dates and full ISO timestamps
                leave = {parse_iso_date(str(v)[:10]) for v in raw}
            except ValueError:
                raise ValidationError("Leave dates must be YYYY-MM-DD")
            prefs = replace(prefs, leave_dates=tuple(sorted(leave)))
        return prefs

    def _require_user(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise ValidationError("User not found")
        return user
