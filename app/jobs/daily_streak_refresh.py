"""Nightly squad streak refresh scheduled job."""

from __future__ import annotations

import logging

from app.services.streak_service import StreakService
from app.services.workout_repository import WorkoutRepository
from app.utils.errors import AppError
from app.utils.supabase_client import get_service_client

logger = logging.getLogger(__name__)


async def daily_streak_refresh() -> None:
    """Recompute and persist every active squad's average streak.

    Streaks lapse at local midnight without any write, so stored averages
    go stale unless something recomputes them.
    """
    client = get_service_client()
    squad_ids = WorkoutRepository(client).list_active_squad_ids()
    streaks = StreakService.from_client(client)

    refreshed = 0
    for squad_id in squad_ids:
        try:
            streaks.refresh_squad_streaks(squad_id)
        except AppError as exc:
            logger.warning("Streak refresh failed for squad %s: %s", squad_id, exc.message)
            continue
        refreshed += 1

    logger.info("daily_streak_refresh completed for %s/%s squads", refreshed, len(squad_ids))
