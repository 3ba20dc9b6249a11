"""Squad dashboard aggregation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from app.config import settings
from app.schemas.squad import DashboardResponse, MemberResponse, SquadResponse
from app.schemas.streak import StreakPolicy
from app.schemas.user import UserResponse
from app.schemas.workout import DailyCount
from app.services.binding_service import BindingService
from app.services.interfaces import MembershipResolver, WorkoutStore
from app.services.streak_calculator import (
    calculate_average_streak,
    calculate_personal_streak,
    calculate_squad_streak,
)
from app.services.team_history import aggregate_team_history, build_heatmap_window
from app.services.workout_repository import WorkoutRepository
from app.utils.time import days_until, is_today, is_yesterday, today_local
from supabase import Client

logger = logging.getLogger(__name__)


@dataclass
class _SquadHistories:
    roster: list[dict[str, Any]]
    histories: dict[str, list[DailyCount]]
    streak_histories: dict[str, list[DailyCount]]
    member_streaks: dict[str, int]
    last_check_ins: dict[str, str | None]
    bound_ids: list[str]


def most_recent(history: list[DailyCount], limit: int) -> list[DailyCount]:
    """Return the ``limit`` most recent rows of ``history``."""
    return sorted(history, key=lambda entry: entry.date, reverse=True)[:limit]


def last_check_in(history: list[DailyCount]) -> str | None:
    """Return the most recent date with at least one check-in."""
    return max((entry.date for entry in history if entry.count > 0), default=None)


def competition_countdown(squad: dict[str, Any], today: str) -> int | None:
    """Return days until the squad's competition date, or None when unset."""
    competition_date = squad.get("competition_date")
    if not competition_date:
        return None
    return days_until(str(competition_date)[:10], today=today)


class DashboardService:
    """Builds the squad dashboard from one pass over member histories."""

    def __init__(
        self,
        store: WorkoutStore,
        membership: MembershipResolver,
        policy: StreakPolicy,
        history_days: int | None = None,
        heatmap_days: int | None = None,
    ) -> None:
        self.store = store
        self.membership = membership
        self.policy = StreakPolicy(policy)
        self.history_days = history_days or settings.streak_history_days
        self.heatmap_days = heatmap_days or settings.heatmap_days

    @classmethod
    def from_client(cls, client: Client) -> DashboardService:
        return cls(WorkoutRepository(client), BindingService(client), settings.squad_streak_policy)

    def _collect(self, squad_id: str, fetch_days: int, today: str) -> _SquadHistories:
        roster = self.store.get_squad_members(squad_id)
        member_ids = [str(member["user_id"]) for member in roster]
        histories = {
            member_id: self.store.get_daily_counts(member_id, fetch_days)
            for member_id in member_ids
        }
        streak_histories = {
            member_id: most_recent(history, self.history_days)
            for member_id, history in histories.items()
        }
        return _SquadHistories(
            roster=roster,
            histories=histories,
            streak_histories=streak_histories,
            member_streaks={
                member_id: calculate_personal_streak(history, today=today)
                for member_id, history in streak_histories.items()
            },
            last_check_ins={
                member_id: last_check_in(history) for member_id, history in histories.items()
            },
            bound_ids=sorted(
                self.membership.get_bound_member_ids(member_ids) & set(member_ids)
            ),
        )

    def _members(
        self, squad_id: str, collected: _SquadHistories, today: str
    ) -> list[MemberResponse]:
        member_ids = [str(member["user_id"]) for member in collected.roster]
        users = self.store.get_users_map(member_ids)
        members = [
            MemberResponse(
                user_id=member_id,
                squad_id=squad_id,
                role=member.get("role") or "member",
                is_bound=member_id in collected.bound_ids,
                current_streak=collected.member_streaks[member_id],
                checked_in_today=is_today(collected.last_check_ins[member_id] or "", today=today),
                streak_at_risk=is_yesterday(
                    collected.last_check_ins[member_id] or "", today=today
                ),
                user=UserResponse.model_validate(users[member_id]) if member_id in users else None,
            )
            for member, member_id in zip(collected.roster, member_ids)
        ]
        members.sort(key=lambda item: item.current_streak, reverse=True)
        return members

    def list_members(self, squad_id: str, today: str | None = None) -> list[MemberResponse]:
        """Return roster members with live personal streaks, highest first."""
        today = today or today_local()
        self.store.get_squad(squad_id)
        return self._members(squad_id, self._collect(squad_id, self.history_days, today), today)

    def get_dashboard(
        self,
        user_id: str,
        squad_id: str,
        today: str | None = None,
    ) -> DashboardResponse:
        """Return squad, members, today's workouts, streaks and heatmap.

        Streaks only look at the last ``history_days`` of each history. The
        heatmap covers the whole roster, while the squad streak and average
        only count bound members.
        """
        today = today or today_local()
        squad = self.store.get_squad(squad_id)
        collected = self._collect(
            squad_id, max(self.heatmap_days, self.history_days), today
        )
        bound_histories = {
            member_id: collected.streak_histories[member_id] for member_id in collected.bound_ids
        }

        dashboard = DashboardResponse(
            squad=SquadResponse.model_validate(squad),
            members=self._members(squad_id, collected, today),
            today_workouts=self.store.list_workouts_by_date(squad_id, today),
            personal_streak=collected.member_streaks.get(str(user_id), 0),
            squad_streak=calculate_squad_streak(
                bound_histories, collected.bound_ids, self.policy, today=today
            ),
            squad_average_streak=calculate_average_streak(bound_histories, today=today),
            policy=self.policy,
            team_history=build_heatmap_window(
                aggregate_team_history(collected.histories), self.heatmap_days, today=today
            ),
            days_until_competition=competition_countdown(squad, today),
        )
        logger.info(
            "Dashboard for %s in squad %s: %s members, %s bound, squad streak %s",
            user_id,
            squad_id,
            len(collected.roster),
            len(collected.bound_ids),
            dashboard.squad_streak,
        )
        return dashboard
