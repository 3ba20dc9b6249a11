"""Team heatmap aggregation tests."""

from __future__ import annotations

from app.schemas.streak import TeamDailyStat
from app.schemas.workout import DailyCount
from app.services.team_history import aggregate_team_history, build_heatmap_window

TODAY = "2024-06-10"


def test_counts_distinct_members_per_date() -> None:
    histories = {
        "a": [DailyCount(date="2024-06-09", user_id="a", count=2)],
        "b": [DailyCount(date="2024-06-09", user_id="b", count=0)],
    }
    assert aggregate_team_history(histories) == [
        TeamDailyStat(date="2024-06-09", count=1, member_ids=["a"])
    ]


def test_results_are_most_recent_first() -> None:
    histories = {
        "a": [
            DailyCount(date="2024-06-07", user_id="a", count=1),
            DailyCount(date="2024-06-09", user_id="a", count=1),
        ],
        "b": [DailyCount(date="2024-06-09", user_id="b", count=1)],
    }
    stats = aggregate_team_history(histories)
    assert [stat.date for stat in stats] == ["2024-06-09", "2024-06-07"]
    assert stats[0].member_ids == ["a", "b"]
    assert stats[0].count == 2


def test_empty_histories_produce_no_stats() -> None:
    assert aggregate_team_history({}) == []
    assert aggregate_team_history({"a": []}) == []


def test_heatmap_window_is_zero_filled_and_ascending() -> None:
    stats = [TeamDailyStat(date="2024-06-09", count=3, member_ids=["a", "b", "c"])]
    window = build_heatmap_window(stats, days=3, today=TODAY)

    assert [stat.date for stat in window] == ["2024-06-08", "2024-06-09", TODAY]
    assert [stat.count for stat in window] == [0, 3, 0]


def test_heatmap_window_drops_dates_outside_range() -> None:
    stats = [TeamDailyStat(date="2024-05-01", count=1, member_ids=["a"])]
    window = build_heatmap_window(stats, days=2, today=TODAY)
    assert all(stat.count == 0 for stat in window)
    assert build_heatmap_window(stats, days=0, today=TODAY) == []
