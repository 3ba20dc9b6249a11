"""User and auth binding schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class UserResponse(BaseModel):
    """Public app user representation."""

    id: str
    display_name: str
    initials: str = ""
    avatar_url: str | None = None
    longest_streak: int = 0
    total_workouts: int = 0
    last_workout_date: str | None = None


class AuthBindRequest(BaseModel):
    """Request body for binding the signed-in account to an app user."""

    app_user_id: str = Field(..., min_length=1, max_length=64)


class AuthBindingResponse(BaseModel):
    """Binding between a Supabase auth account and an app user."""

    auth_uid: str
    app_user_id: str
    provider: str = "email"
    email: str | None = None
    display_name: str | None = None
    created_at: datetime | None = None
