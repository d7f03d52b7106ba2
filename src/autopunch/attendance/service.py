from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timedelta, tzinfo
from typing import Callable, Optional

from ..common.datetime_utils import now_local, portal_weekday, to_local
from ..core.constants import DEFAULT_HISTORY_LIMIT, MAX_MESSAGE_LENGTH
from ..core.enums import Action, LogStatus
from ..core.exceptions import ValidationError, VaultError
from ..portal.client import PortalClient
from ..portal.model import PunchOutcome
from ..users.model import User
from ..users.repository import UserRepository
from ..vault.vault import CredentialVault
from .model import AttendanceLog, SweepSummary, TriggerResult
from .repository import AttendanceLogRepository
from .window import is_within_window, minutes_of_day, parse_hhmm

logger = logging.getLogger(__name__)


class AttendanceService:
    """Decides, per user and per day, whether to clock in or out, and does it.

    The stored record is the only idempotency guard: once an attempt is
    written, the next evaluation for the same date sees the action as done
    (or as failed and waiting for the retry interval).

    All datetimes handled here are naive wall-clock values in ``timezone``.
    Aware datetimes passed in as ``now`` are converted first.
    """

    def __init__(
        self,
        logs: AttendanceLogRepository,
        users: UserRepository,
        vault: CredentialVault,
        portal: PortalClient,
        *,
        timezone: tzinfo,
        workers: int = 4,
        retry_interval_minutes: int = 5,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._logs = logs
        self._users = users
        self._vault = vault
        self._portal = portal
        self._tz = timezone
        self._workers = max(1, int(workers))
        self._retry_interval = timedelta(minutes=int(retry_interval_minutes))
        self._clock = clock or (lambda: now_local(timezone))

        self._inflight: set[tuple[int, date, Action]] = set()
        self._inflight_lock = threading.Lock()

    # -- entry points -------------------------------------------------------

    def run_sweep(self, *, now: datetime | None = None) -> SweepSummary:
        now = self._resolve_now(now)
        users = list(self._users.list_all())
        logger.info("Sweep at %s (weekday %d) over %d users", now.isoformat(), portal_weekday(now.date()), len(users))

        if self._workers > 1 and len(users) > 1:
            with ThreadPoolExecutor(max_workers=self._workers, thread_name_prefix="sweep") as pool:
                counts = list(pool.map(lambda u: self._sweep_user(u, now), users))
        else:
            counts = [self._sweep_user(u, now) for u in users]

        summary = SweepSummary(
            users_scanned=len(users),
            actions_processed=sum(counts),
            timestamp=now,
            weekday=portal_weekday(now.date()),
        )
        logger.info("Sweep done: %d users, %d actions", summary.users_scanned, summary.actions_processed)
        return summary

    def run_scheduled(self, user_id: int, action: Action, *, now: datetime | None = None) -> bool:
        """Fire-time entry point for the planner.

        Working-day, leave and idempotency gates apply; the window gate does
        not, the planner already picked an instant inside it.
        """
        now = self._resolve_now(now)
        user = self._users.get_by_id(user_id)
        if not user:
            logger.warning("Scheduled %s for unknown user %s", action.value, user_id)
            return False
        return self.process_user(user, now=now, enforce_window=False, only=action) > 0

    def trigger(self, user_id: int, action: Action, *, now: datetime | None = None) -> TriggerResult:
        """Manual override: attempt ``action`` right away.

        Working-day, leave and window gates are bypassed. Clock-out still
        requires a recorded clock-in for the day.
        """
        now = self._resolve_now(now)
        user = self._users.get_by_id(user_id)
        if not user:
            raise ValidationError("User not found")

        if action is Action.CLOCK_OUT:
            record = self._logs.get_for_user_and_date(user_id, now.date())
            if not record or record.clock_in_at is None:
                raise ValidationError("Clock-in has not been recorded for today")

        outcome = self._attempt(user, action, now)
        if outcome is None:
            raise ValidationError(f"{action.value} is already in progress")

        return TriggerResult(
            success=outcome.success,
            message=outcome.message,
            action=action,
            timestamp=outcome.timestamp,
        )

    def recent_logs(self, user_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT) -> list[dict]:
        rows = self._logs.get_recent_for_user(user_id, limit)
        return [r.to_dict() for r in rows]

    # -- per-user evaluation --------------------------------------------------

    def process_user(
        self,
        user: User,
        *,
        now: datetime,
        enforce_window: bool = True,
        only: Optional[Action] = None,
    ) -> int:
        """Evaluate both actions for ``user`` at ``now``. Returns actions attempted."""
        today = now.date()
        prefs = user.preferences

        if not prefs.is_working_day(portal_weekday(today)):
            logger.debug("Skipping %s - not a working day", user.username)
            return 0

        if prefs.is_leave_day(today):
            if self._logs.create_leave(user_id=user.user_id, log_date=today, message="User on leave"):
                logger.info("Recorded leave for %s on %s", user.username, today)
            return 0

        record = self._logs.get_for_user_and_date(user.user_id, today)
        if record and record.is_leave:
            return 0

        current = minutes_of_day(now)
        processed = 0

        if only in (None, Action.CLOCK_IN) and self._is_due(record, Action.CLOCK_IN, now):
            target = parse_hhmm(prefs.clock_in_time)
            if not enforce_window or is_within_window(target, prefs.tolerance_minutes, current):
                if self._attempt(user, Action.CLOCK_IN, now, recheck=True) is not None:
                    processed += 1

        # Clock-out looks at the record as it was before this pass.
        if only in (None, Action.CLOCK_OUT) and self._is_due(record, Action.CLOCK_OUT, now):
            target = parse_hhmm(prefs.clock_out_time)
            if not enforce_window or is_within_window(target, prefs.tolerance_minutes, current):
                if self._attempt(user, Action.CLOCK_OUT, now, recheck=True) is not None:
                    processed += 1

        return processed

    def _is_due(self, record: Optional[AttendanceLog], action: Action, now: datetime) -> bool:
        if action is Action.CLOCK_IN:
            if record is None:
                return True
            if record.clock_in_at is not None:
                return False
        else:
            if record is None or record.clock_in_at is None or record.clock_out_at is not None:
                return False

        if record.status == LogStatus.FAILED and record.last_attempt_at is not None:
            return now - record.last_attempt_at >= self._retry_interval
        return True

    # -- attempt + write-back ---------------------------------------------------

    def _attempt(self, user: User, action: Action, now: datetime, *, recheck: bool = False) -> Optional[PunchOutcome]:
        key = (user.user_id, now.date(), action)
        if not self._claim(key):
            logger.info("%s for %s already in progress, skipping", action.value, user.username)
            return None
        try:
            if recheck:
                # another pass may have finished this action since the record was read
                record = self._logs.get_for_user_and_date(user.user_id, now.date())
                if (record and record.is_leave) or not self._is_due(record, action, now):
                    logger.info("%s for %s already handled, skipping", action.value, user.username)
                    return None
            outcome = self._execute(user, action)
            self._write(user.user_id, now.date(), action, outcome, attempted_at=now)
            logger.info("%s for %s: %s", action.value, user.username, outcome.message)
            return outcome
        finally:
            self._release(key)

    def _execute(self, user: User, action: Action) -> PunchOutcome:
        try:
            secret = self._vault.decrypt(user.portal_secret)
        except VaultError as e:
            logger.error("Cannot decrypt portal secret for %s: %s", user.username, e)
            return PunchOutcome(success=False, message=str(e))
        return self._portal.punch(user.portal_username, secret, action)

    def _write(self, user_id: int, log_date: date, action: Action, outcome: PunchOutcome, *, attempted_at: datetime) -> None:
        status = LogStatus.SUCCESS if outcome.success else LogStatus.FAILED
        stamp = None
        if outcome.success:
            stamp = to_local(outcome.timestamp, self._tz) if outcome.timestamp else attempted_at
        message = _clip(outcome.message)

        if action is Action.CLOCK_IN:
            self._logs.record_clock_in(
                user_id=user_id,
                log_date=log_date,
                clock_in_at=stamp,
                status=status,
                message=message,
                attempted_at=attempted_at,
            )
            return

        updated = self._logs.record_clock_out(
            user_id=user_id,
            log_date=log_date,
            clock_out_at=stamp,
            status=status,
            message=message,
            attempted_at=attempted_at,
        )
        if not updated:
            logger.warning("No record to store clock-out for user %s on %s", user_id, log_date)

    def _claim(self, key: tuple[int, date, Action]) -> bool:
        with self._inflight_lock:
            if key in self._inflight:
                return False
            self._inflight.add(key)
            return True

    def _release(self, key: tuple[int, date, Action]) -> None:
        with self._inflight_lock:
            self._inflight.discard(key)

    def _sweep_user(self, user: User, now: datetime) -> int:
        try:
            return self.process_user(user, now=now)
        except Exception:
            # one user's failure must not stop the rest of the sweep
            logger.exception("Sweep failed for user %s", user.user_id)
            return 0

    def _resolve_now(self, now: datetime | None) -> datetime:
        return to_local(now, self._tz) if now is not None else self._clock()


def _clip(message: Optional[str]) -> Optional[str]:
    if message and len(message) > MAX_MESSAGE_LENGTH:
        return message[: MAX_MESSAGE_LENGTH - 3] + "..."
    return message
