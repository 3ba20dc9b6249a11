"""Team heatmap aggregation."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from app.schemas.streak import TeamDailyStat
from app.schemas.workout import DailyCount
from app.utils.time import date_range, shift_date, today_local


def aggregate_team_history(
    member_histories: Mapping[str, Iterable[DailyCount]],
) -> list[TeamDailyStat]:
    """Fold member histories into per-date completion counts, most recent first."""
    members_by_date: dict[str, set[str]] = {}
    for member_id, history in member_histories.items():
        for entry in history:
            if entry.count > 0:
                members_by_date.setdefault(entry.date, set()).add(str(member_id))

    stats = [
        TeamDailyStat(date=day, count=len(member_ids), member_ids=sorted(member_ids))
        for day, member_ids in members_by_date.items()
    ]
    stats.sort(key=lambda stat: stat.date, reverse=True)
    return stats


def build_heatmap_window(
    team_history: Iterable[TeamDailyStat],
    days: int,
    today: str | None = None,
) -> list[TeamDailyStat]:
    """Return a fixed-width ascending window ending today, zero-filled."""
    if days <= 0:
        return []

    end = today or today_local()
    by_date = {stat.date: stat for stat in team_history}
    return [
        by_date.get(day) or TeamDailyStat(date=day, count=0)
        for day in date_range(shift_date(end, -(days - 1)), end)
    ]
