from __future__ import annotations

import threading
import time
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone

from zoneinfo import ZoneInfo

from autopunch.core.constants import MAX_MESSAGE_LENGTH
from autopunch.core.enums import Action, LogStatus

from conftest import FakePortal, InMemoryLogs

MONDAY = date(2026, 10, 19)


def test_clock_in_attempted_once_inside_window(build_service, make_user, logs, portal, fixed_now):
    svc = build_service([make_user(working_days=(1, 2, 3, 4, 5), clock_in_time="09:00", tolerance_minutes=15)])

    first = svc.run_sweep(now=fixed_now)
    second = svc.run_sweep(now=fixed_now.replace(minute=12))

    assert first.actions_processed == 1
    assert second.actions_processed == 0
    assert [c[2] for c in portal.calls] == [Action.CLOCK_IN]

    rec = logs.get_for_user_and_date(1, MONDAY)
    assert rec.status == LogStatus.SUCCESS
    assert rec.clock_in_at == datetime(2026, 10, 19, 9, 10, 30)
    assert rec.clock_out_at is None
    assert len(logs.all()) == 1


def test_decrypted_secret_reaches_portal(build_service, make_user, portal, fixed_now):
    svc = build_service([make_user(secret="hunter2!")])
    svc.run_sweep(now=fixed_now)

    assert portal.calls == [("EMP001", "hunter2!", Action.CLOCK_IN)]


def test_outside_window_does_nothing(build_service, make_user, logs, portal, fixed_now):
    svc = build_service([make_user(clock_in_time="09:30", tolerance_minutes=15)])

    summary = svc.run_sweep(now=fixed_now.replace(minute=14))

    assert summary.actions_processed == 0
    assert portal.calls == []
    assert logs.all() == []


def test_non_working_day_creates_nothing(build_service, make_user, logs, portal, fixed_now):
    svc = build_service([make_user(working_days=(2, 3, 4, 5), leave_dates=(MONDAY,))])

    svc.run_sweep(now=fixed_now)

    assert portal.calls == []
    assert logs.all() == []


def test_leave_day_records_single_leave_and_no_calls(build_service, make_user, logs, portal, fixed_now):
    svc = build_service([make_user(leave_dates=(MONDAY,))])

    svc.run_sweep(now=fixed_now)
    svc.run_sweep(now=fixed_now.replace(minute=12))
    svc.run_sweep(now=fixed_now.replace(hour=18, minute=0))

    assert portal.calls == []
    records = logs.all()
    assert len(records) == 1
    assert records[0].status == LogStatus.LEAVE
    assert records[0].clock_in_at is None and records[0].clock_out_at is None


def test_existing_leave_record_is_terminal(build_service, make_user, logs, portal, fixed_now):
    logs.create_leave(user_id=1, log_date=MONDAY, message="User on leave")
    # leave date removed afterwards; the stored leave record still wins for the day
    svc = build_service([make_user()])

    svc.run_sweep(now=fixed_now)

    assert portal.calls == []


def test_clock_out_needs_recorded_clock_in(build_service, make_user, logs, portal):
    svc = build_service([make_user(clock_out_time="18:00")])

    svc.run_sweep(now=datetime(2026, 10, 19, 18, 5))

    assert portal.calls == []
    assert logs.all() == []


def test_full_day_clock_in_then_clock_out(build_service, make_user, logs, portal, fixed_now):
    svc = build_service([make_user(clock_in_time="09:00", clock_out_time="18:00", tolerance_minutes=15)])

    svc.run_sweep(now=fixed_now)
    svc.run_sweep(now=datetime(2026, 10, 19, 13, 0))
    svc.run_sweep(now=datetime(2026, 10, 19, 17, 50))
    svc.run_sweep(now=datetime(2026, 10, 19, 17, 55))

    assert [c[2] for c in portal.calls] == [Action.CLOCK_IN, Action.CLOCK_OUT]
    rec = logs.get_for_user_and_date(1, MONDAY)
    assert rec.clock_in_at is not None
    assert rec.clock_out_at is not None
    assert rec.status == LogStatus.SUCCESS
    assert rec.message == "Successfully marked punch out"


def test_overlapping_windows_never_clock_out_in_same_pass(build_service, make_user, logs, portal):
    svc = build_service([make_user(clock_in_time="09:00", clock_out_time="09:05", tolerance_minutes=10)])

    svc.run_sweep(now=datetime(2026, 10, 19, 9, 2))

    assert [c[2] for c in portal.calls] == [Action.CLOCK_IN]
    assert logs.get_for_user_and_date(1, MONDAY).clock_out_at is None


def test_failed_attempt_keeps_null_timestamp_and_waits_for_retry_interval(build_service, make_user, logs, fixed_now):
    failing = FakePortal(success=False, message="Invalid Username or Password")
    svc = build_service([make_user()], retry_interval_minutes=5)
    svc._portal = failing

    svc.run_sweep(now=fixed_now)
    rec = logs.get_for_user_and_date(1, MONDAY)
    assert rec.status == LogStatus.FAILED
    assert rec.clock_in_at is None
    assert rec.message == "Invalid Username or Password"

    # immediate re-run leaves the failed record untouched
    svc.run_sweep(now=fixed_now + timedelta(minutes=1))
    assert len(failing.calls) == 1
    assert logs.get_for_user_and_date(1, MONDAY) == rec

    # next sweep after the interval retries while the window is still open
    failing.success = True
    svc.run_sweep(now=fixed_now + timedelta(minutes=5))
    assert len(failing.calls) == 2
    assert logs.get_for_user_and_date(1, MONDAY).status == LogStatus.SUCCESS


def test_failed_attempt_not_retried_after_window_closes(build_service, make_user, logs, fixed_now):
    failing = FakePortal(success=False)
    svc = build_service([make_user(tolerance_minutes=15)])
    svc._portal = failing

    svc.run_sweep(now=fixed_now)
    svc.run_sweep(now=fixed_now.replace(minute=40))

    assert len(failing.calls) == 1


def test_vault_error_is_recorded_and_other_users_continue(build_service, make_user, logs, portal, fixed_now):
    broken = replace(make_user(1), portal_secret="not-a-token")
    healthy = make_user(2)
    svc = build_service([broken, healthy])

    summary = svc.run_sweep(now=fixed_now)

    assert summary.users_scanned == 2
    assert summary.actions_processed == 2
    assert [c[0] for c in portal.calls] == ["EMP002"]

    failed = logs.get_for_user_and_date(1, MONDAY)
    assert failed.status == LogStatus.FAILED
    assert "iv:ciphertext" in failed.message
    assert logs.get_for_user_and_date(2, MONDAY).status == LogStatus.SUCCESS


def test_store_error_for_one_user_does_not_abort_sweep(build_service, make_user, portal, fixed_now):
    class FlakyLogs(InMemoryLogs):
        def get_for_user_and_date(self, user_id, log_date):
            if user_id == 1:
                raise RuntimeError("connection lost")
            return super().get_for_user_and_date(user_id, log_date)

    svc = build_service([make_user(1), make_user(2)])
    svc._logs = FlakyLogs()

    summary = svc.run_sweep(now=fixed_now)

    assert summary.actions_processed == 1
    assert [c[0] for c in portal.calls] == ["EMP002"]


def test_summary_reports_portal_weekday_and_timestamp(build_service, make_user, fixed_now):
    svc = build_service([make_user()])

    summary = svc.run_sweep(now=fixed_now)

    assert summary.weekday == 1
    assert summary.to_dict()["timestamp"] == "2026-10-19T09:10:00"
    assert summary.to_dict()["usersScanned"] == 1


def test_aware_now_is_evaluated_in_portal_timezone(build_service, make_user, logs, portal):
    svc = build_service([make_user()])
    # 03:40 UTC on Monday is 09:10 in Asia/Kolkata
    svc.run_sweep(now=datetime(2026, 10, 19, 3, 40, tzinfo=timezone.utc))

    assert len(portal.calls) == 1
    assert logs.get_for_user_and_date(1, MONDAY) is not None


def test_leave_date_compared_in_portal_timezone(build_service, make_user, logs, portal):
    svc = build_service([make_user(leave_dates=(MONDAY,))])
    # Sunday evening in New York is already Monday morning in Kolkata
    svc.run_sweep(now=datetime(2026, 10, 18, 23, 40, tzinfo=ZoneInfo("America/New_York")))

    assert portal.calls == []
    assert logs.get_for_user_and_date(1, MONDAY).status == LogStatus.LEAVE


def test_concurrent_sweep_processes_every_user_once(build_service, make_user, logs, portal, fixed_now):
    users = [make_user(i) for i in range(1, 9)]
    svc = build_service(users, workers=4)

    summary = svc.run_sweep(now=fixed_now)
    svc.run_sweep(now=fixed_now.replace(minute=11))

    assert summary.actions_processed == 8
    assert sorted(c[0] for c in portal.calls) == [f"EMP{i:03d}" for i in range(1, 9)]
    assert len(logs.all()) == 8


def test_recent_logs_newest_first_and_limited(build_service, make_user, logs):
    for day in range(1, 36):
        logs.record_clock_in(
            user_id=1,
            log_date=date(2026, 9, 1) + timedelta(days=day),
            clock_in_at=datetime(2026, 9, 1, 9, 0),
            status=LogStatus.SUCCESS,
            message="ok",
            attempted_at=datetime(2026, 9, 1, 9, 0),
        )
    svc = build_service([make_user()])

    rows = svc.recent_logs(1)

    assert len(rows) == 30
    assert rows[0]["date"] == "2026-10-06"
    assert rows[-1]["date"] == "2026-09-07"
    assert set(rows[0]) == {"date", "clockIn", "clockOut", "status", "message"}


class StaleReadLogs(InMemoryLogs):
    """Both passes read the empty record; the second one then stalls until the first is done."""

    def __init__(self):
        super().__init__()
        self.barrier = threading.Barrier(2, timeout=5)
        self._reads = 0
        self._reads_lock = threading.Lock()

    def get_for_user_and_date(self, user_id, log_date):
        record = super().get_for_user_and_date(user_id, log_date)
        with self._reads_lock:
            self._reads += 1
            n = self._reads
        if n <= 2:
            self.barrier.wait()
            if n == 2:
                time.sleep(0.3)
        return record


def test_overlapping_passes_clock_in_only_once(build_service, make_user, portal, fixed_now):
    user = make_user()
    svc = build_service([user])
    svc._logs = StaleReadLogs()

    threads = [threading.Thread(target=svc.process_user, args=(user,), kwargs={"now": fixed_now}) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert [c[2] for c in portal.calls] == [Action.CLOCK_IN]
    assert len(svc._logs.all()) == 1


def test_long_failure_message_is_clipped_to_column_width(build_service, make_user, logs, fixed_now):
    svc = build_service([make_user()])
    svc._portal = FakePortal(success=False, message="HTTPSConnectionPool(host='portal') " + "x" * 2000)

    svc.run_sweep(now=fixed_now)

    rec = logs.get_for_user_and_date(1, MONDAY)
    assert rec.status == LogStatus.FAILED
    assert rec.last_attempt_at == fixed_now
    assert len(rec.message) == MAX_MESSAGE_LENGTH
    assert rec.message.startswith("HTTPSConnectionPool") and rec.message.endswith("...")


def test_short_failure_message_is_stored_verbatim(build_service, make_user, logs, fixed_now):
    svc = build_service([make_user()])
    svc._portal = FakePortal(success=False, message="Invalid Username or Password")

    svc.run_sweep(now=fixed_now)

    assert logs.get_for_user_and_date(1, MONDAY).message == "Invalid Username or Password"
