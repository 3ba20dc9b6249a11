"""Supabase-backed workout records, daily counts and squad counters."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from app.config import settings
from app.schemas.workout import DailyCount, Workout
from app.services.common import SupabaseService, invalidate_user_cache
from app.services.watchers import DailyCountWatch
from app.utils.errors import (
    AlreadyCheckedInError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
)
from app.utils.time import now_utc
from supabase import Client


class WorkoutRepository:
    """Reads and atomic counter writes for the check-in workflows.

    Record + counter mutations go through Postgres functions so each one
    commits as a single transaction.
    """

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def get_daily_counts(self, user_id: str, max_days: int) -> list[DailyCount]:
        """Return the most recent ``max_days`` DailyCount rows for a user."""
        rows = self.db.select_many(
            "user_daily_stats",
            filters={"user_id": user_id},
            order_by="date",
            descending=True,
            limit=max_days,
        )
        return [DailyCount.model_validate(row) for row in rows]

    def get_daily_count(self, user_id: str, day: str) -> DailyCount | None:
        rows = self.db.select_many(
            "user_daily_stats",
            filters={"user_id": user_id, "date": day},
            limit=1,
        )
        return DailyCount.model_validate(rows[0]) if rows else None

    def get_squad(self, squad_id: str) -> dict[str, Any]:
        return self.db.select_one("squads", {"id": squad_id}, not_found_label="Squad")

    def list_active_squad_ids(self) -> list[str]:
        rows = self.db.select_many("squads", filters={"is_active": True}, columns="id")
        return [str(row["id"]) for row in rows]

    def get_squad_member_ids(self, squad_id: str) -> list[str]:
        return [member["user_id"] for member in self.db.get_squad_members(squad_id)]

    def get_squad_members(self, squad_id: str) -> list[dict[str, Any]]:
        return self.db.get_squad_members(squad_id)

    def is_squad_member(self, user_id: str, squad_id: str) -> bool:
        return self.db.is_squad_member(user_id, squad_id)

    def get_user(self, user_id: str) -> dict[str, Any]:
        return self.db.get_user(user_id)

    def get_users_map(self, user_ids: Iterable[str]) -> dict[str, dict[str, Any]]:
        return self.db.get_users_map(user_ids)

    def get_workout(self, workout_id: str) -> Workout:
        row = self.db.select_one("workouts", {"id": workout_id}, not_found_label="Workout")
        return Workout.model_validate(row)

    def list_workouts_by_date(self, squad_id: str, day: str) -> list[Workout]:
        rows = self.db.select_many(
            "workouts",
            filters={"squad_id": squad_id, "date": day},
            order_by="completed_at",
            descending=True,
        )
        return [Workout.model_validate(row) for row in rows]

    def list_workouts_since(self, squad_id: str, since: str) -> list[Workout]:
        """Return squad workouts on or after ``since``, newest first."""
        rows = self.db.execute(
            self.db.client.table("workouts")
            .select("*")
            .eq("squad_id", squad_id)
            .gte("date", since)
            .order("date", desc=True)
            .order("completed_at", desc=True),
            default=[],
        )
        return [Workout.model_validate(row) for row in rows]

    def commit_check_in(
        self,
        user_id: str,
        squad_id: str,
        day: str,
        image_url: str,
        note: str,
    ) -> tuple[Workout, DailyCount]:
        """Insert the workout and bump daily, user and squad counters atomically."""
        try:
            payload = self.db.rpc(
                "commit_workout_check_in",
                {
                    "p_user_id": user_id,
                    "p_squad_id": squad_id,
                    "p_date": day,
                    "p_image_url": image_url,
                    "p_note": note,
                },
            )
        except ConflictError as exc:
            if exc.code != "DUPLICATE":
                raise
            raise AlreadyCheckedInError(day) from exc
        self._raise_for_reason(payload, day)
        invalidate_user_cache(user_id)
        return (
            Workout.model_validate(payload["workout"]),
            DailyCount.model_validate(payload["daily_count"]),
        )

    def commit_removal(self, workout: Workout) -> DailyCount:
        """Delete the workout and decrement its counters atomically (floored at 0)."""
        payload = self.db.rpc("commit_workout_removal", {"p_workout_id": workout.id})
        self._raise_for_reason(payload, workout.date)
        invalidate_user_cache(workout.user_id)
        daily_count = payload.get("daily_count")
        if not daily_count:
            return DailyCount(date=workout.date, user_id=workout.user_id, count=0)
        return DailyCount.model_validate(daily_count)

    def update_workout(self, workout_id: str, updates: dict[str, Any]) -> Workout:
        payload = {**updates, "updated_at": now_utc().isoformat()}
        rows = self.db.update("workouts", {"id": workout_id}, payload)
        if not rows:
            raise NotFoundError("Workout")
        return Workout.model_validate(rows[0])

    def raise_longest_streak(self, user_id: str, streak: int) -> int:
        """Store ``greatest(longest_streak, streak)`` and return the stored value."""
        payload = self.db.rpc(
            "raise_longest_streak",
            {"p_user_id": user_id, "p_streak": streak},
        )
        invalidate_user_cache(user_id)
        return int(payload.get("longest_streak", streak))

    def set_squad_average_streak(self, squad_id: str, average_streak: int) -> None:
        self.db.update(
            "squads",
            {"id": squad_id},
            {"average_streak": average_streak, "updated_at": now_utc().isoformat()},
        )

    def watch_daily_count(
        self,
        user_id: str,
        day: str,
        baseline_count: int,
        poll_seconds: float | None = None,
    ) -> DailyCountWatch:
        """Return a cancellable watch for a DailyCount moving off ``baseline_count``."""
        return DailyCountWatch(
            self,
            user_id=user_id,
            day=day,
            baseline_count=baseline_count,
            poll_seconds=poll_seconds or settings.check_in_wait_poll_seconds,
        )

    @staticmethod
    def _raise_for_reason(payload: dict[str, Any], day: str) -> None:
        if payload.get("success", True):
            return
        reason = str(payload.get("reason") or "")
        if reason == "already_checked_in":
            raise AlreadyCheckedInError(day)
        if reason == "user_not_found":
            raise NotFoundError("User")
        if reason == "squad_not_found":
            raise NotFoundError("Squad")
        if reason == "workout_not_found":
            raise NotFoundError("Workout")
        raise InvalidInputError("Workout update failed")
