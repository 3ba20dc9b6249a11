"""Pure streak calculations over per-user daily check-in counts.

Nothing here touches the database. Every function takes the history it needs
and an optional ``today`` (squad-local ``YYYY-MM-DD``) so results are
deterministic and safe to recompute inside a retried transaction.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping
from datetime import date, timedelta

from app.schemas.streak import StreakPolicy
from app.schemas.workout import DailyCount
from app.utils.time import parse_local_date, today_local

MAX_STREAK_LOOKBACK_DAYS = 365

DayPredicate = Callable[[str], bool]


def qualifying_dates(history: Iterable[DailyCount]) -> set[str]:
    """Return the dates with at least one check-in."""
    return {entry.date for entry in history if entry.count > 0}


def _walk_back(qualifies: DayPredicate, today: str | None) -> int:
    """Count consecutive qualifying days backward from today.

    If today has not qualified yet the walk starts at yesterday, so a streak
    stays intact until the day has fully elapsed.
    """
    cursor: date = parse_local_date(today or today_local())
    if not qualifies(cursor.isoformat()):
        cursor -= timedelta(days=1)

    streak = 0
    while streak < MAX_STREAK_LOOKBACK_DAYS and qualifies(cursor.isoformat()):
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def calculate_personal_streak(history: Iterable[DailyCount], today: str | None = None) -> int:
    """Return the user's current consecutive-day streak."""
    dates = qualifying_dates(history)
    if not dates:
        return 0
    return _walk_back(dates.__contains__, today)


def _squad_day_predicate(
    member_dates: list[set[str]],
    policy: StreakPolicy,
) -> DayPredicate:
    if policy is StreakPolicy.ALL_MEMBERS:
        return lambda day: all(day in dates for dates in member_dates)
    if policy is StreakPolicy.ANY_MEMBER:
        return lambda day: any(day in dates for dates in member_dates)
    raise ValueError(f"Unsupported streak policy: {policy!r}")


def calculate_squad_streak(
    member_histories: Mapping[str, Iterable[DailyCount]],
    member_ids: Iterable[str],
    policy: StreakPolicy | str,
    today: str | None = None,
) -> int:
    """Return the squad's collective streak under ``policy``.

    ``member_ids`` must already be the bound subset of the roster. Members
    with no entry in ``member_histories`` count as never having checked in.
    """
    policy = StreakPolicy(policy)
    ids = sorted(set(member_ids))
    if not ids:
        return 0

    member_dates = [qualifying_dates(member_histories.get(member_id, ())) for member_id in ids]
    return _walk_back(_squad_day_predicate(member_dates, policy), today)


def calculate_average_streak(
    member_histories: Mapping[str, Iterable[DailyCount]],
    today: str | None = None,
) -> int:
    """Return the mean personal streak across members, rounded half up."""
    if not member_histories:
        return 0

    total = sum(
        calculate_personal_streak(history, today=today) for history in member_histories.values()
    )
    return math.floor(total / len(member_histories) + 0.5)


def calculate_longest_streak(history: Iterable[DailyCount]) -> int:
    """Return the longest run of consecutive qualifying days anywhere in history."""
    ordered = sorted(parse_local_date(day) for day in qualifying_dates(history))
    if not ordered:
        return 0

    longest = 1
    current = 1
    for idx in range(1, len(ordered)):
        if (ordered[idx] - ordered[idx - 1]).days == 1:
            current += 1
            longest = max(longest, current)
        else:
            current = 1
    return longest
