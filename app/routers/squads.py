"""Squad dashboard, roster and streak endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.config import settings
from app.dependencies import (
    get_dashboard_service,
    get_squad_member_id,
    get_streak_service,
    get_workout_store,
)
from app.schemas.squad import DashboardResponse
from app.schemas.streak import StreakSummary
from app.services.dashboard_service import DashboardService
from app.services.streak_service import StreakService
from app.services.workout_repository import WorkoutRepository
from app.utils.errors import InvalidDateError
from app.utils.time import parse_local_date

router = APIRouter()


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(
    squad_id: str,
    user_id: str = Depends(get_squad_member_id),
    service: DashboardService = Depends(get_dashboard_service),
) -> DashboardResponse:
    """Return everything the squad dashboard renders."""
    return service.get_dashboard(user_id, squad_id)


@router.get("/members")
def list_members(
    squad_id: str,
    _: str = Depends(get_squad_member_id),
    service: DashboardService = Depends(get_dashboard_service),
) -> dict:
    """List squad members with live personal streaks."""
    return {"members": service.list_members(squad_id)}


@router.get("/streaks", response_model=StreakSummary)
def get_streaks(
    squad_id: str,
    user_id: str = Depends(get_squad_member_id),
    streaks: StreakService = Depends(get_streak_service),
) -> StreakSummary:
    """Return the caller's personal and squad streaks."""
    personal = streaks.personal_streak(user_id)
    stored_longest = int(streaks.store.get_user(user_id).get("longest_streak") or 0)
    snapshot = streaks.squad_streaks(squad_id)
    return StreakSummary(
        personal_streak=personal,
        longest_streak=max(stored_longest, personal),
        squad_streak=snapshot.squad_streak,
        squad_average_streak=snapshot.average_streak,
        policy=streaks.policy,
        bound_member_ids=snapshot.bound_member_ids,
    )


@router.get("/check-ins/{user_id}/{day}/wait")
def wait_for_check_in(
    squad_id: str,
    user_id: str,
    day: str,
    baseline: int = Query(0, ge=0),
    timeout: float | None = Query(None, gt=0),
    _: str = Depends(get_squad_member_id),
    store: WorkoutRepository = Depends(get_workout_store),
) -> dict:
    """Block until a member's count for ``day`` moves off ``baseline``.

    Returns ``updated: false`` once the timeout elapses so the client can
    fall back to the state it already has.
    """
    try:
        parse_local_date(day)
    except ValueError as exc:
        raise InvalidDateError("Invalid date format. Use YYYY-MM-DD") from exc

    limit = settings.check_in_wait_timeout_seconds
    watch = store.watch_daily_count(user_id, day, baseline_count=baseline)
    daily_count = watch.wait(min(timeout, limit) if timeout else limit)
    return {"updated": daily_count is not None, "daily_count": daily_count}
