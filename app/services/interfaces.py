"""Collaborator protocols consumed by the check-in workflows.

The Supabase-backed implementations live in ``workout_repository``,
``binding_service`` and ``storage_service``. Any object with the same
methods can stand in for them.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Protocol

from app.schemas.workout import DailyCount, ImageUpload, Workout


class HistoryReader(Protocol):
    """Read access to per-user daily check-in counts."""

    def get_daily_counts(self, user_id: str, max_days: int) -> list[DailyCount]:
        """Return up to ``max_days`` most recent DailyCount rows (any order)."""
        ...

    def get_daily_count(self, user_id: str, day: str) -> DailyCount | None:
        """Return the DailyCount for one date, or None when absent."""
        ...


class MembershipResolver(Protocol):
    """Filters a nominal roster down to members who completed binding."""

    def get_bound_member_ids(self, candidate_ids: Iterable[str]) -> set[str]: ...


class ArtifactStore(Protocol):
    """Photo proof storage."""

    def upload(self, image: ImageUpload, user_id: str, squad_id: str) -> str:
        """Store the image and return its public URL.

        Raises:
            UploadFailedError: when the store rejects or cannot reach the upload.
        """
        ...

    def release(self, url: str) -> None:
        """Remove a previously uploaded image."""
        ...


class WorkoutStore(HistoryReader, Protocol):
    """Workout records, squad rosters and the counters they drive.

    ``commit_check_in`` and ``commit_removal`` each apply their record and
    counter mutations as one atomic unit and raise ``TransactionConflictError``
    when a concurrent writer won the race.
    """

    def get_squad(self, squad_id: str) -> dict[str, Any]: ...

    def get_squad_member_ids(self, squad_id: str) -> list[str]: ...

    def get_squad_members(self, squad_id: str) -> list[dict[str, Any]]:
        """Return roster rows (``user_id``, ``role``), captain first."""
        ...

    def get_user(self, user_id: str) -> dict[str, Any]: ...

    def get_users_map(self, user_ids: Iterable[str]) -> dict[str, dict[str, Any]]: ...

    def get_workout(self, workout_id: str) -> Workout: ...

    def list_workouts_by_date(self, squad_id: str, day: str) -> list[Workout]: ...

    def list_workouts_since(self, squad_id: str, since: str) -> list[Workout]: ...

    def commit_check_in(
        self,
        user_id: str,
        squad_id: str,
        day: str,
        image_url: str,
        note: str,
    ) -> tuple[Workout, DailyCount]: ...

    def commit_removal(self, workout: Workout) -> DailyCount: ...

    def update_workout(self, workout_id: str, updates: dict[str, Any]) -> Workout: ...

    def raise_longest_streak(self, user_id: str, streak: int) -> int:
        """Store ``max(stored, streak)`` and return the stored value."""
        ...

    def set_squad_average_streak(self, squad_id: str, average_streak: int) -> None: ...
