"""In-memory collaborators that follow the same protocols as the Supabase ones."""

from __future__ import annotations

import itertools
from collections.abc import Iterable
from typing import Any

from app.schemas.workout import DailyCount, ImageUpload, Workout
from app.services.common import ROLE_PRIORITY
from app.services.watchers import DailyCountWatch
from app.utils.errors import (
    AlreadyCheckedInError,
    NotFoundError,
    TransactionConflictError,
    UploadFailedError,
)


class InMemoryWorkoutStore:
    """Dict-backed ``WorkoutStore``.

    ``conflicts_to_raise`` makes the next N commits fail with
    ``TransactionConflictError`` before touching anything, like a
    serialization failure that rolled back.
    """

    def __init__(self) -> None:
        self.squads: dict[str, dict[str, Any]] = {}
        self.members: dict[str, list[dict[str, Any]]] = {}
        self.users: dict[str, dict[str, Any]] = {}
        self.workouts: dict[str, Workout] = {}
        self.daily: dict[tuple[str, str], DailyCount] = {}
        self.conflicts_to_raise = 0
        self.commit_attempts = 0
        self._ids = itertools.count(1)

    def add_user(self, user_id: str, display_name: str | None = None) -> None:
        self.users[user_id] = {
            "id": user_id,
            "display_name": display_name or user_id.upper(),
            "initials": user_id[:2].upper(),
            "longest_streak": 0,
            "total_workouts": 0,
        }

    def add_squad(
        self,
        squad_id: str,
        member_ids: list[str],
        captain_id: str | None = None,
        **fields: Any,
    ) -> None:
        captain_id = captain_id or member_ids[0]
        self.squads[squad_id] = {
            "id": squad_id,
            "name": f"Squad {squad_id}",
            "total_workouts": 0,
            "average_streak": 0,
            "is_active": True,
            **fields,
        }
        self.members[squad_id] = [
            {
                "user_id": member_id,
                "squad_id": squad_id,
                "role": "captain" if member_id == captain_id else "member",
            }
            for member_id in member_ids
        ]

    def seed_history(self, user_id: str, dates: Iterable[str], count: int = 1) -> None:
        """Write DailyCount rows directly, without workout records."""
        for day in dates:
            self.daily[(user_id, day)] = DailyCount(date=day, user_id=user_id, count=count)

    def _maybe_conflict(self) -> None:
        self.commit_attempts += 1
        if self.conflicts_to_raise > 0:
            self.conflicts_to_raise -= 1
            raise TransactionConflictError()

    def get_daily_counts(self, user_id: str, max_days: int) -> list[DailyCount]:
        rows = [row for (owner, _), row in self.daily.items() if owner == user_id]
        rows.sort(key=lambda row: row.date, reverse=True)
        return rows[:max_days]

    def get_daily_count(self, user_id: str, day: str) -> DailyCount | None:
        return self.daily.get((user_id, day))

    def get_squad(self, squad_id: str) -> dict[str, Any]:
        if squad_id not in self.squads:
            raise NotFoundError("Squad")
        return dict(self.squads[squad_id])

    def list_active_squad_ids(self) -> list[str]:
        return [squad_id for squad_id, squad in self.squads.items() if squad["is_active"]]

    def get_squad_member_ids(self, squad_id: str) -> list[str]:
        return [row["user_id"] for row in self.get_squad_members(squad_id)]

    def get_squad_members(self, squad_id: str) -> list[dict[str, Any]]:
        rows = self.members.get(squad_id, [])
        return sorted(rows, key=lambda row: ROLE_PRIORITY.get(row["role"], 99))

    def is_squad_member(self, user_id: str, squad_id: str) -> bool:
        return user_id in self.get_squad_member_ids(squad_id)

    def get_user(self, user_id: str) -> dict[str, Any]:
        if user_id not in self.users:
            raise NotFoundError("User")
        return dict(self.users[user_id])

    def get_users_map(self, user_ids: Iterable[str]) -> dict[str, dict[str, Any]]:
        return {uid: dict(self.users[uid]) for uid in user_ids if uid in self.users}

    def get_workout(self, workout_id: str) -> Workout:
        if workout_id not in self.workouts:
            raise NotFoundError("Workout")
        return self.workouts[workout_id]

    def list_workouts_by_date(self, squad_id: str, day: str) -> list[Workout]:
        return [w for w in self.workouts.values() if w.squad_id == squad_id and w.date == day]

    def list_workouts_since(self, squad_id: str, since: str) -> list[Workout]:
        rows = [w for w in self.workouts.values() if w.squad_id == squad_id and w.date >= since]
        return sorted(rows, key=lambda w: w.date, reverse=True)

    def commit_check_in(
        self,
        user_id: str,
        squad_id: str,
        day: str,
        image_url: str,
        note: str,
    ) -> tuple[Workout, DailyCount]:
        self._maybe_conflict()
        self.get_user(user_id)
        self.get_squad(squad_id)
        existing = self.daily.get((user_id, day))
        if existing is not None and existing.count > 0:
            raise AlreadyCheckedInError(day)

        workout = Workout(
            id=f"w{next(self._ids)}",
            user_id=user_id,
            squad_id=squad_id,
            date=day,
            image_url=image_url,
            note=note,
        )
        self.workouts[workout.id] = workout
        workout_ids = (existing.workout_ids if existing else []) + [workout.id]
        daily = DailyCount(
            date=day, user_id=user_id, count=len(workout_ids), workout_ids=workout_ids
        )
        self.daily[(user_id, day)] = daily
        self.users[user_id]["total_workouts"] += 1
        self.users[user_id]["last_workout_date"] = day
        self.squads[squad_id]["total_workouts"] += 1
        return workout, daily

    def commit_removal(self, workout: Workout) -> DailyCount:
        self._maybe_conflict()
        if workout.id not in self.workouts:
            raise NotFoundError("Workout")
        del self.workouts[workout.id]

        existing = self.daily.get((workout.user_id, workout.date))
        previous_ids = existing.workout_ids if existing else []
        workout_ids = [wid for wid in previous_ids if wid != workout.id]
        daily = DailyCount(
            date=workout.date,
            user_id=workout.user_id,
            count=max(0, (existing.count if existing else 0) - 1),
            workout_ids=workout_ids,
        )
        self.daily[(workout.user_id, workout.date)] = daily
        user = self.users[workout.user_id]
        user["total_workouts"] = max(0, user["total_workouts"] - 1)
        squad = self.squads[workout.squad_id]
        squad["total_workouts"] = max(0, squad["total_workouts"] - 1)
        return daily

    def update_workout(self, workout_id: str, updates: dict[str, Any]) -> Workout:
        workout = self.get_workout(workout_id).model_copy(update=updates)
        self.workouts[workout_id] = workout
        return workout

    def raise_longest_streak(self, user_id: str, streak: int) -> int:
        user = self.users[user_id]
        user["longest_streak"] = max(user["longest_streak"], streak)
        return user["longest_streak"]

    def set_squad_average_streak(self, squad_id: str, average_streak: int) -> None:
        self.squads[squad_id]["average_streak"] = average_streak

    def watch_daily_count(
        self,
        user_id: str,
        day: str,
        baseline_count: int,
        poll_seconds: float | None = None,
    ) -> DailyCountWatch:
        return DailyCountWatch(self, user_id, day, baseline_count, poll_seconds or 0.01)


class FakeMembership:
    """``MembershipResolver`` with a fixed set of bound app users."""

    def __init__(self, bound: Iterable[str] = ()) -> None:
        self.bound = set(bound)

    def get_bound_member_ids(self, candidate_ids: Iterable[str]) -> set[str]:
        return set(candidate_ids) & self.bound


class FakeArtifactStore:
    """``ArtifactStore`` that records uploads and releases."""

    def __init__(self) -> None:
        self.uploaded: list[str] = []
        self.released: list[str] = []
        self.fail_upload = False
        self.fail_release = False
        self._ids = itertools.count(1)

    def upload(self, image: ImageUpload, user_id: str, squad_id: str) -> str:
        if self.fail_upload:
            raise UploadFailedError()
        url = (
            "https://example.supabase.co/storage/v1/object/public/workouts/"
            f"workouts/{squad_id}/{user_id}/{user_id}_{next(self._ids)}.{image.extension}"
        )
        self.uploaded.append(url)
        return url

    def release(self, url: str) -> None:
        if self.fail_release:
            raise RuntimeError("storage unavailable")
        self.released.append(url)

    @property
    def live(self) -> list[str]:
        return [url for url in self.uploaded if url not in self.released]
