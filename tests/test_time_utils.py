"""Time helper tests."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from app.utils.time import (
    date_range,
    days_until,
    is_today,
    is_yesterday,
    parse_local_date,
    shift_date,
    to_local_date_string,
)


def test_aware_datetime_converts_to_local_day() -> None:
    """17:30 UTC is already the next day in Taipei."""
    moment = datetime(2024, 6, 9, 17, 30, tzinfo=UTC)
    assert to_local_date_string(moment, tz_name="Asia/Taipei") == "2024-06-10"
    assert to_local_date_string(moment, tz_name="UTC") == "2024-06-09"


@pytest.mark.parametrize("value", ["2024-6-1", "2024/06/01", "2024-02-30", "", "20240601"])
def test_parse_local_date_rejects_invalid_input(value: str) -> None:
    with pytest.raises(ValueError):
        parse_local_date(value)


def test_parse_local_date_valid_input() -> None:
    assert parse_local_date("2024-02-29").isoformat() == "2024-02-29"


def test_shift_date_crosses_month_and_year() -> None:
    assert shift_date("2024-03-01", -1) == "2024-02-29"
    assert shift_date("2023-12-31", 1) == "2024-01-01"


def test_date_range_is_inclusive() -> None:
    assert date_range("2024-06-08", "2024-06-10") == ["2024-06-08", "2024-06-09", "2024-06-10"]
    assert date_range("2024-06-10", "2024-06-08") == []


def test_relative_day_helpers() -> None:
    assert is_today("2024-06-10", today="2024-06-10")
    assert is_yesterday("2024-06-09", today="2024-06-10")
    assert not is_yesterday("2024-06-08", today="2024-06-10")


def test_days_until_counts_calendar_days() -> None:
    assert days_until("2024-06-30", today="2024-06-10") == 20
    assert days_until("2024-06-01", today="2024-06-10") == -9
