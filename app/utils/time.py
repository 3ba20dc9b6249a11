"""Time utility helpers.

All squad-facing dates are ``YYYY-MM-DD`` strings in the squad's local
timezone. Arithmetic is done on ``date`` objects only, never on time-of-day
deltas, so daylight-saving shifts cannot move a day boundary.
"""

from __future__ import annotations

import re
from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

from app.config import settings

LOCAL_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def now_utc() -> datetime:
    """Return current timezone-aware UTC datetime."""
    return datetime.now(tz=UTC)


def local_zone(tz_name: str | None = None) -> ZoneInfo:
    """Return the squad timezone (or ``tz_name`` when given)."""
    return ZoneInfo(tz_name or settings.timezone)


def now_local(tz_name: str | None = None) -> datetime:
    """Return the current datetime in the squad timezone."""
    return now_utc().astimezone(local_zone(tz_name))


def to_local_date_string(value: date | datetime, tz_name: str | None = None) -> str:
    """Format a date or datetime as the squad-local ``YYYY-MM-DD`` string.

    Aware datetimes are converted into the squad timezone first. Naive
    datetimes are assumed to already be local.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(local_zone(tz_name))
        value = value.date()
    return value.isoformat()


def today_local(tz_name: str | None = None) -> str:
    """Return today's date string in the squad timezone."""
    return to_local_date_string(now_local(tz_name))


def parse_local_date(value: str) -> date:
    """Parse a strict ``YYYY-MM-DD`` string.

    Raises:
        ValueError: if the string is not in canonical form or not a real
            calendar date.
    """
    if not isinstance(value, str) or not LOCAL_DATE_RE.match(value):
        raise ValueError(f"Invalid date format: {value!r}. Use YYYY-MM-DD")
    return date.fromisoformat(value)


def shift_date(value: str, days: int) -> str:
    """Return the local date string ``days`` after ``value`` (negative for before)."""
    return (parse_local_date(value) + timedelta(days=days)).isoformat()


def days_ago_local(days: int, today: str | None = None) -> str:
    """Return the local date string ``days`` before today."""
    return shift_date(today or today_local(), -days)


def date_range(start: str, end: str) -> list[str]:
    """Return every date from ``start`` to ``end`` inclusive, ascending."""
    current = parse_local_date(start)
    last = parse_local_date(end)
    dates: list[str] = []
    while current <= last:
        dates.append(current.isoformat())
        current += timedelta(days=1)
    return dates


def is_today(value: str, today: str | None = None) -> bool:
    return value == (today or today_local())


def is_yesterday(value: str, today: str | None = None) -> bool:
    return value == days_ago_local(1, today=today)


def days_until(target: str, today: str | None = None) -> int:
    """Return whole calendar days from today until ``target`` (negative once past)."""
    return (parse_local_date(target) - parse_local_date(today or today_local())).days
