"""Background job modules for periodic squad tasks."""

from app.jobs.daily_streak_refresh import daily_streak_refresh

__all__ = ["daily_streak_refresh"]
