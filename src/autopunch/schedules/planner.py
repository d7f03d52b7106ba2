from __future__ import annotations

import logging
import random
from datetime import tzinfo
from typing import Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from ..attendance.service import AttendanceService
from ..attendance.window import parse_hhmm
from ..core.constants import MINUTES_PER_DAY
from ..core.enums import Action
from ..users.model import User
from ..users.repository import UserRepository

logger = logging.getLogger(__name__)

REPLAN_JOB_ID = "replan-daily"


def plan_fire_time(target_hhmm: str, tolerance: int, rng: random.Random) -> tuple[int, int]:
    """Pick the (hour, minute) to fire at: target plus a uniform offset in [-tolerance, +tolerance]."""
    offset = rng.randint(-tolerance, tolerance) if tolerance > 0 else 0
    minute_of_day = (parse_hhmm(target_hhmm) + offset) % MINUTES_PER_DAY
    return divmod(minute_of_day, 60)


class AttendancePlanner:
    """Continuous-scheduler variant: one daily job per user per action.

    The planner only decides *when* to ask; whether to act is left to
    ``AttendanceService.run_scheduled``. ``jobs`` maps (user_id, action) to
    the registered job id and is owned by this instance.
    """

    def __init__(
        self,
        service: AttendanceService,
        users: UserRepository,
        *,
        timezone: tzinfo,
        scheduler: Optional[BackgroundScheduler] = None,
        rng: Optional[random.Random] = None,
    ):
        self._service = service
        self._users = users
        self._tz = timezone
        self._scheduler = scheduler or BackgroundScheduler(timezone=timezone)
        self._rng = rng or random.Random()
        self.jobs: dict[tuple[int, Action], str] = {}
        self.started = False

    def start(self) -> None:
        if not self.started:
            # fresh random offsets every day
            self._scheduler.add_job(
                self.initialize_all,
                trigger=CronTrigger(hour=0, minute=1, timezone=self._tz),
                id=REPLAN_JOB_ID,
                replace_existing=True,
            )
            self._scheduler.start()
            self.started = True
            logger.info("Attendance planner started")

    def shutdown(self) -> None:
        if self.started:
            self._scheduler.shutdown(wait=False)
            self.started = False
        self.jobs.clear()

    def initialize_all(self) -> int:
        users = list(self._users.list_all())
        for user in users:
            self.schedule_user(user)
        logger.info("Initialized schedules for %d users", len(users))
        return len(users)

    def schedule_user(self, user: User) -> dict[Action, tuple[int, int]]:
        """Replace the user's jobs with freshly randomized ones."""
        self.clear_user(user.user_id)

        prefs = user.preferences
        targets = {
            Action.CLOCK_IN: prefs.clock_in_time,
            Action.CLOCK_OUT: prefs.clock_out_time,
        }
        planned: dict[Action, tuple[int, int]] = {}
        for action, target in targets.items():
            hour, minute = plan_fire_time(target, prefs.tolerance_minutes, self._rng)
            job_id = f"{user.user_id}-{action.value}"
            self._scheduler.add_job(
                self._service.run_scheduled,
                trigger=CronTrigger(hour=hour, minute=minute, timezone=self._tz),
                args=[user.user_id, action],
                id=job_id,
                replace_existing=True,
                misfire_grace_time=300,
                coalesce=True,
            )
            self.jobs[(user.user_id, action)] = job_id
            planned[action] = (hour, minute)
            logger.debug("Planned %s for %s at %02d:%02d", action.value, user.username, hour, minute)
        return planned

    def clear_user(self, user_id: int) -> None:
        for action in Action:
            job_id = self.jobs.pop((user_id, action), None)
            if job_id is None:
                continue
            try:
                self._scheduler.remove_job(job_id)
            except JobLookupError:
                logger.debug("Job %s already gone", job_id)

    def status(self) -> dict:
        return {"running": self.started, "jobs": len(self.jobs)}
