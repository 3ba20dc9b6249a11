"""API router package."""

from app.routers import auth, squads, workouts

__all__ = ["auth", "squads", "workouts"]
