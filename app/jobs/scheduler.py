"""APScheduler setup and job registration."""

from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.config import settings
from app.jobs.daily_streak_refresh import daily_streak_refresh

scheduler = AsyncIOScheduler(timezone=settings.timezone)


def register_jobs() -> None:
    """Register all periodic jobs if not already present."""
    if scheduler.get_job("daily_streak_refresh") is None:
        scheduler.add_job(
            daily_streak_refresh,
            CronTrigger(hour=0, minute=5, timezone=settings.timezone),
            id="daily_streak_refresh",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
