from __future__ import annotations

from datetime import date, datetime, tzinfo


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local(tz: tzinfo) -> datetime:
    """Current wall-clock time in ``tz``, returned naive.

    Note: Wrapped so tests can patch/mock easier.
    """
    return datetime.now(tz).replace(tzinfo=None)


def to_local(value: datetime, tz: tzinfo) -> datetime:
    """Normalize ``value`` to a naive wall-clock datetime in ``tz``.

    Naive input is taken to already be in ``tz``.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(tz).replace(tzinfo=None)


def portal_weekday(value: date) -> int:
    """Weekday with Sunday=0 ... Saturday=6."""
    return value.isoweekday() % 7
