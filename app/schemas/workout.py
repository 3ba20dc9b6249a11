"""Workout check-in schemas."""

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, Field

LOCAL_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class DailyCount(BaseModel):
    """How many qualifying check-ins one user logged on one local date."""

    date: str = Field(..., pattern=LOCAL_DATE_PATTERN)
    user_id: str
    count: int = Field(0, ge=0)
    workout_ids: list[str] = Field(default_factory=list)


class Workout(BaseModel):
    """A single photo-proof check-in."""

    id: str
    user_id: str
    squad_id: str
    date: str = Field(..., pattern=LOCAL_DATE_PATTERN)
    image_url: str
    note: str = ""
    completed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class ImageUpload:
    """Raw photo proof handed to the artifact store."""

    content: bytes
    filename: str
    content_type: str = "image/jpeg"

    @property
    def extension(self) -> str:
        if "." in self.filename:
            return self.filename.rsplit(".", 1)[1].lower()
        return self.content_type.rsplit("/", 1)[-1].lower()


@dataclass(frozen=True)
class CheckInInput:
    user_id: str
    squad_id: str
    image: ImageUpload
    note: str = ""
    date: str | None = None


@dataclass(frozen=True)
class EditWorkoutInput:
    workout_id: str
    user_id: str
    squad_id: str
    image: ImageUpload | None = None
    note: str | None = None


@dataclass(frozen=True)
class DeleteWorkoutInput:
    workout_id: str
    user_id: str
    squad_id: str


class CheckInResult(BaseModel):
    """Streak snapshot returned after a successful check-in."""

    workout_id: str
    personal_streak: int
    longest_streak: int
    squad_streak: int
    squad_average_streak: int


class DeleteResult(BaseModel):
    """Streak values after a workout was removed."""

    personal_streak: int
    squad_streak: int


class WorkoutTimelineDay(BaseModel):
    """Workouts of one date for the squad timeline."""

    date: str
    workouts: list[Workout] = Field(default_factory=list)
