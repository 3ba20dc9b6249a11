"""Service package exports with lazy loading."""

from __future__ import annotations

from importlib import import_module
from typing import Any

_EXPORTS = {
    "BindingService": "app.services.binding_service",
    "CheckInService": "app.services.check_in_service",
    "DailyCountWatch": "app.services.watchers",
    "DashboardService": "app.services.dashboard_service",
    "StorageService": "app.services.storage_service",
    "StreakService": "app.services.streak_service",
    "SupabaseService": "app.services.common",
    "WorkoutRepository": "app.services.workout_repository",
    "WorkoutService": "app.services.workout_service",
}

__all__ = sorted(_EXPORTS.keys())


def __getattr__(name: str) -> Any:
    if name not in _EXPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = import_module(_EXPORTS[name])
    return getattr(module, name)
