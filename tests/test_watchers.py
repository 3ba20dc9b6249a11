"""Check-in wait tests."""

from __future__ import annotations

import threading

from app.schemas.workout import DailyCount
from tests.fakes import InMemoryWorkoutStore

TODAY = "2024-06-10"


def test_wait_returns_changed_count(store: InMemoryWorkoutStore) -> None:
    store.seed_history("u1", [TODAY])

    watch = store.watch_daily_count("u1", TODAY, baseline_count=0)

    assert watch.wait(timeout_seconds=0.5) == DailyCount(date=TODAY, user_id="u1", count=1)


def test_wait_times_out_without_change(store: InMemoryWorkoutStore) -> None:
    watch = store.watch_daily_count("u1", TODAY, baseline_count=0)
    assert watch.wait(timeout_seconds=0.05) is None


def test_wait_sees_a_late_write(store: InMemoryWorkoutStore) -> None:
    watch = store.watch_daily_count("u1", TODAY, baseline_count=0)
    timer = threading.Timer(0.05, store.seed_history, args=("u1", [TODAY]))
    timer.start()
    try:
        result = watch.wait(timeout_seconds=2.0)
    finally:
        timer.cancel()

    assert result is not None
    assert result.count == 1


def test_cancel_releases_waiter(store: InMemoryWorkoutStore) -> None:
    watch = store.watch_daily_count("u1", TODAY, baseline_count=0)
    timer = threading.Timer(0.05, watch.cancel)
    timer.start()

    assert watch.wait(timeout_seconds=5.0) is None
    assert watch.cancelled


def test_wait_sees_a_removed_row(store: InMemoryWorkoutStore) -> None:
    store.seed_history("u1", [TODAY])
    watch = store.watch_daily_count("u1", TODAY, baseline_count=1)
    del store.daily[("u1", TODAY)]

    assert watch.wait(timeout_seconds=0.5) == DailyCount(date=TODAY, user_id="u1", count=0)
