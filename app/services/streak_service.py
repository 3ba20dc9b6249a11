"""Recompute and persist streaks from committed check-in history."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from app.config import settings
from app.schemas.streak import StreakPolicy
from app.schemas.workout import DailyCount
from app.services.binding_service import BindingService
from app.services.interfaces import MembershipResolver, WorkoutStore
from app.services.streak_calculator import (
    calculate_average_streak,
    calculate_personal_streak,
    calculate_squad_streak,
)
from app.services.workout_repository import WorkoutRepository
from app.utils.errors import AppError
from supabase import Client

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SquadStreakSnapshot:
    squad_streak: int = 0
    average_streak: int = 0
    bound_member_ids: list[str] = field(default_factory=list)


def with_committed(history: list[DailyCount], committed: DailyCount | None) -> list[DailyCount]:
    """Return ``history`` with the just-committed row replacing any stale copy."""
    if committed is None:
        return history
    merged = [entry for entry in history if entry.date != committed.date]
    merged.append(committed)
    return merged


class StreakService:
    """Full recomputation of personal and squad streaks.

    Runs after the counter transaction commits. It only reads committed
    history, so repeating it is harmless.
    """

    def __init__(
        self,
        store: WorkoutStore,
        membership: MembershipResolver,
        policy: StreakPolicy,
        history_days: int | None = None,
    ) -> None:
        self.store = store
        self.membership = membership
        self.policy = StreakPolicy(policy)
        self.history_days = history_days or settings.streak_history_days

    @classmethod
    def from_client(cls, client: Client) -> StreakService:
        return cls(
            WorkoutRepository(client),
            BindingService(client),
            settings.squad_streak_policy,
        )

    def personal_streak(
        self,
        user_id: str,
        committed: DailyCount | None = None,
        today: str | None = None,
    ) -> int:
        history = with_committed(self.store.get_daily_counts(user_id, self.history_days), committed)
        return calculate_personal_streak(history, today=today)

    def refresh_personal_streak(
        self,
        user_id: str,
        committed: DailyCount | None = None,
        today: str | None = None,
    ) -> tuple[int, int]:
        """Return ``(current, longest)``; the stored longest streak never decreases.

        A failed write is logged and the best-known longest streak is returned,
        since the check-in or delete that triggered the refresh already committed.
        """
        current = self.personal_streak(user_id, committed=committed, today=today)
        try:
            longest = self.store.raise_longest_streak(user_id, current)
        except AppError as exc:
            logger.warning("Could not persist longest streak for %s: %s", user_id, exc.message)
            longest = max(current, self._stored_longest(user_id))
        logger.info("User %s streak current=%s longest=%s", user_id, current, longest)
        return current, longest

    def _stored_longest(self, user_id: str) -> int:
        try:
            return int(self.store.get_user(user_id).get("longest_streak") or 0)
        except AppError:
            return 0

    def squad_streaks(
        self,
        squad_id: str,
        committed: DailyCount | None = None,
        today: str | None = None,
    ) -> SquadStreakSnapshot:
        """Compute squad and average streak over bound members only."""
        roster = self.store.get_squad_member_ids(squad_id)
        if not roster:
            logger.warning("Squad %s has no members", squad_id)
            return SquadStreakSnapshot()

        bound_ids = sorted(self.membership.get_bound_member_ids(roster) & set(roster))
        if not bound_ids:
            logger.warning("Squad %s has no bound members", squad_id)
            return SquadStreakSnapshot()

        histories: dict[str, list[DailyCount]] = {}
        for member_id in bound_ids:
            history = self.store.get_daily_counts(member_id, self.history_days)
            if committed is not None and committed.user_id == member_id:
                history = with_committed(history, committed)
            histories[member_id] = history

        snapshot = SquadStreakSnapshot(
            squad_streak=calculate_squad_streak(histories, bound_ids, self.policy, today=today),
            average_streak=calculate_average_streak(histories, today=today),
            bound_member_ids=bound_ids,
        )
        logger.info(
            "Squad %s streak=%s average=%s policy=%s bound=%s/%s",
            squad_id,
            snapshot.squad_streak,
            snapshot.average_streak,
            self.policy.value,
            len(bound_ids),
            len(roster),
        )
        return snapshot

    def refresh_squad_streaks(
        self,
        squad_id: str,
        committed: DailyCount | None = None,
        today: str | None = None,
    ) -> SquadStreakSnapshot:
        """Recompute squad streaks and persist the average; a failed write is only logged."""
        snapshot = self.squad_streaks(squad_id, committed=committed, today=today)
        try:
            self.store.set_squad_average_streak(squad_id, snapshot.average_streak)
        except AppError as exc:
            logger.warning(
                "Could not persist average streak for squad %s: %s", squad_id, exc.message
            )
        return snapshot
