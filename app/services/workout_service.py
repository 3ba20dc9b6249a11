"""Edit and delete workflows for existing workouts."""

from __future__ import annotations

import logging
from typing import Any

from app.config import settings
from app.schemas.workout import (
    DeleteResult,
    DeleteWorkoutInput,
    EditWorkoutInput,
    Workout,
    WorkoutTimelineDay,
)
from app.services.binding_service import BindingService
from app.services.common import run_with_retry
from app.services.interfaces import ArtifactStore, WorkoutStore
from app.services.storage_service import StorageService, release_quietly
from app.services.streak_service import StreakService
from app.services.workout_repository import WorkoutRepository
from app.utils.errors import NotFoundError, NotOwnerError
from app.utils.time import days_ago_local
from supabase import Client

logger = logging.getLogger(__name__)


class WorkoutService:
    """Ownership-checked edits and deletions with streak recomputation."""

    def __init__(
        self,
        store: WorkoutStore,
        artifacts: ArtifactStore,
        streaks: StreakService,
        max_attempts: int | None = None,
    ) -> None:
        self.store = store
        self.artifacts = artifacts
        self.streaks = streaks
        self.max_attempts = max_attempts or settings.transaction_max_attempts

    @classmethod
    def from_client(cls, client: Client) -> WorkoutService:
        store = WorkoutRepository(client)
        streaks = StreakService(store, BindingService(client), settings.squad_streak_policy)
        return cls(store, StorageService(client), streaks)

    def _owned_workout(self, workout_id: str, user_id: str, squad_id: str, action: str) -> Workout:
        workout = self.store.get_workout(workout_id)
        if workout.squad_id != squad_id:
            raise NotFoundError("Workout")
        if workout.user_id != user_id:
            raise NotOwnerError(action)
        return workout

    def execute_edit_workout(self, payload: EditWorkoutInput) -> None:
        """Replace the image and/or note. Date and count never change."""
        workout = self._owned_workout(payload.workout_id, payload.user_id, payload.squad_id, "edit")

        updates: dict[str, Any] = {}
        new_image_url: str | None = None
        if payload.image is not None:
            new_image_url = self.artifacts.upload(payload.image, payload.user_id, payload.squad_id)
            updates["image_url"] = new_image_url
        if payload.note is not None:
            updates["note"] = payload.note
        if not updates:
            return

        try:
            self.store.update_workout(workout.id, updates)
        except Exception:
            if new_image_url:
                release_quietly(self.artifacts, new_image_url)
            raise
        logger.info("Updated workout %s (%s)", workout.id, ", ".join(sorted(updates)))

        if new_image_url and workout.image_url and workout.image_url != new_image_url:
            release_quietly(self.artifacts, workout.image_url)

    def execute_delete_workout(
        self,
        payload: DeleteWorkoutInput,
        today: str | None = None,
    ) -> DeleteResult:
        """Remove a workout, roll back its counters and recompute streaks."""
        workout = self._owned_workout(
            payload.workout_id, payload.user_id, payload.squad_id, "delete"
        )

        if workout.image_url:
            release_quietly(self.artifacts, workout.image_url)

        daily_count = run_with_retry(
            lambda: self.store.commit_removal(workout),
            attempts=self.max_attempts,
            label=f"delete workout {workout.id}",
        )
        logger.info(
            "Deleted workout %s; %s now has %s check-in(s) on %s",
            workout.id,
            workout.user_id,
            daily_count.count,
            workout.date,
        )

        personal_streak, _ = self.streaks.refresh_personal_streak(
            workout.user_id, committed=daily_count, today=today
        )
        squad = self.streaks.refresh_squad_streaks(
            workout.squad_id, committed=daily_count, today=today
        )
        return DeleteResult(personal_streak=personal_streak, squad_streak=squad.squad_streak)


def group_workouts_by_date(workouts: list[Workout]) -> list[WorkoutTimelineDay]:
    """Group workouts into timeline days, most recent date first."""
    by_date: dict[str, list[Workout]] = {}
    for workout in workouts:
        by_date.setdefault(workout.date, []).append(workout)
    return [
        WorkoutTimelineDay(date=day, workouts=by_date[day])
        for day in sorted(by_date, reverse=True)
    ]


def recent_workouts(
    store: WorkoutStore,
    squad_id: str,
    days: int = 30,
    today: str | None = None,
) -> list[WorkoutTimelineDay]:
    """Return the squad's workouts of the last ``days`` days grouped by date."""
    since = days_ago_local(max(days, 1) - 1, today=today)
    return group_workouts_by_date(store.list_workouts_since(squad_id, since))
