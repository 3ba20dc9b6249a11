"""Bounded waits for check-ins that may not be visible to readers yet."""

from __future__ import annotations

import logging
import threading
import time

from app.schemas.workout import DailyCount
from app.services.interfaces import HistoryReader

logger = logging.getLogger(__name__)


class DailyCountWatch:
    """Watch one user's DailyCount for a date until it moves off a baseline.

    ``wait`` never blocks longer than its timeout and returns ``None`` when
    the update did not show up in time, so callers fall back to the state
    they already have. ``cancel`` releases a waiter from another thread.
    """

    def __init__(
        self,
        reader: HistoryReader,
        user_id: str,
        day: str,
        baseline_count: int,
        poll_seconds: float,
    ) -> None:
        self.reader = reader
        self.user_id = user_id
        self.day = day
        self.baseline_count = baseline_count
        self.poll_seconds = max(0.01, poll_seconds)
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def wait(self, timeout_seconds: float) -> DailyCount | None:
        """Return the changed DailyCount, or None on timeout or cancellation."""
        deadline = time.monotonic() + max(0.0, timeout_seconds)
        while not self._cancelled.is_set():
            current = self.reader.get_daily_count(self.user_id, self.day)
            current_count = current.count if current else 0
            if current_count != self.baseline_count:
                # a removed row reads as a zero count
                return current or DailyCount(date=self.day, user_id=self.user_id)

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.info(
                    "Timed out waiting for check-in of %s on %s", self.user_id, self.day
                )
                return None
            self._cancelled.wait(min(self.poll_seconds, remaining))
        return None
