"""Check-in workflow: validate, upload, commit counters, recompute streaks."""

from __future__ import annotations

import logging

from app.config import settings
from app.schemas.workout import CheckInInput, CheckInResult
from app.services.binding_service import BindingService
from app.services.common import run_with_retry
from app.services.interfaces import ArtifactStore, WorkoutStore
from app.services.storage_service import StorageService, release_quietly
from app.services.streak_service import StreakService
from app.services.workout_repository import WorkoutRepository
from app.utils.errors import AlreadyCheckedInError, InvalidDateError
from app.utils.time import parse_local_date, today_local
from supabase import Client

logger = logging.getLogger(__name__)


def validate_check_in_date(check_in_date: str, today: str) -> None:
    """Reject malformed dates and dates after today.

    Raises:
        InvalidDateError: when the date is not ``YYYY-MM-DD``, not a real
            calendar date, or in the future.
    """
    try:
        parse_local_date(check_in_date)
    except ValueError as exc:
        raise InvalidDateError("Invalid date format. Use YYYY-MM-DD") from exc
    if check_in_date > today:
        raise InvalidDateError("Cannot check in for a future date")


class CheckInService:
    """Orchestrates one check-in attempt end to end."""

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
    def from_client(cls, client: Client) -> CheckInService:
        store = WorkoutRepository(client)
        streaks = StreakService(store, BindingService(client), settings.squad_streak_policy)
        return cls(store, StorageService(client), streaks)

    def execute_check_in(self, payload: CheckInInput, today: str | None = None) -> CheckInResult:
        """Run the check-in workflow and return the recomputed streak snapshot.

        Validation failures raise before anything is written. The image is
        uploaded before the counter transaction so a retried commit never
        re-uploads. If the commit fails the uploaded image is released.
        """
        today = today or today_local()
        check_in_date = payload.date or today
        validate_check_in_date(check_in_date, today)

        self.store.get_squad(payload.squad_id)
        existing = self.store.get_daily_count(payload.user_id, check_in_date)
        if existing is not None and existing.count > 0:
            raise AlreadyCheckedInError(check_in_date)

        image_url = self.artifacts.upload(payload.image, payload.user_id, payload.squad_id)

        try:
            workout, daily_count = run_with_retry(
                lambda: self.store.commit_check_in(
                    payload.user_id,
                    payload.squad_id,
                    check_in_date,
                    image_url,
                    payload.note,
                ),
                attempts=self.max_attempts,
                label=f"check-in {payload.user_id}@{check_in_date}",
            )
        except Exception:
            release_quietly(self.artifacts, image_url)
            raise
        logger.info(
            "Created workout %s for %s on %s (count=%s)",
            workout.id,
            payload.user_id,
            check_in_date,
            daily_count.count,
        )

        personal_streak, longest_streak = self.streaks.refresh_personal_streak(
            payload.user_id, committed=daily_count, today=today
        )
        squad = self.streaks.refresh_squad_streaks(
            payload.squad_id, committed=daily_count, today=today
        )

        return CheckInResult(
            workout_id=workout.id,
            personal_streak=personal_streak,
            longest_streak=longest_streak,
            squad_streak=squad.squad_streak,
            squad_average_streak=squad.average_streak,
        )
