"""Streak policy and derived streak schemas."""

from enum import Enum

from pydantic import BaseModel, Field


class StreakPolicy(str, Enum):
    """Which members must qualify on a day for the squad streak to continue."""

    ALL_MEMBERS = "all_members"
    ANY_MEMBER = "any_member"


class TeamDailyStat(BaseModel):
    """Number of distinct members who checked in on one date."""

    date: str
    count: int = Field(0, ge=0)
    member_ids: list[str] = Field(default_factory=list)


class StreakSummary(BaseModel):
    """Streak values for one user inside one squad."""

    personal_streak: int
    longest_streak: int
    squad_streak: int
    squad_average_streak: int
    policy: StreakPolicy
    bound_member_ids: list[str] = Field(default_factory=list)
