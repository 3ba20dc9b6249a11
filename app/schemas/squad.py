"""Squad, member and dashboard schemas."""

from pydantic import BaseModel, Field

from app.schemas.streak import StreakPolicy, TeamDailyStat
from app.schemas.user import UserResponse
from app.schemas.workout import Workout


class SquadResponse(BaseModel):
    """Squad representation."""

    id: str
    name: str
    description: str = ""
    competition_date: str | None = None
    total_workouts: int = 0
    average_streak: int = 0
    is_active: bool = True


class MemberResponse(BaseModel):
    """Squad member with live personal streak."""

    user_id: str
    squad_id: str
    role: str = "member"
    is_bound: bool = False
    current_streak: int = 0
    checked_in_today: bool = False
    streak_at_risk: bool = False
    user: UserResponse | None = None


class DashboardResponse(BaseModel):
    """Everything the squad dashboard renders in one payload."""

    squad: SquadResponse
    members: list[MemberResponse] = Field(default_factory=list)
    today_workouts: list[Workout] = Field(default_factory=list)
    personal_streak: int = 0
    squad_streak: int = 0
    squad_average_streak: int = 0
    policy: StreakPolicy
    team_history: list[TeamDailyStat] = Field(default_factory=list)
    days_until_competition: int | None = None
