"""Workout check-in, timeline, edit and delete endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from app.dependencies import (
    get_check_in_service,
    get_squad_member_id,
    get_workout_service,
    get_workout_store,
)
from app.schemas.workout import (
    CheckInInput,
    CheckInResult,
    DeleteResult,
    DeleteWorkoutInput,
    EditWorkoutInput,
    ImageUpload,
)
from app.services.check_in_service import CheckInService
from app.services.workout_repository import WorkoutRepository
from app.services.workout_service import WorkoutService, recent_workouts
from app.utils.errors import InvalidInputError

router = APIRouter()

MAX_IMAGE_BYTES = 10 * 1024 * 1024


def read_image(upload: UploadFile) -> ImageUpload:
    """Read an uploaded photo into memory, rejecting empty or oversized files."""
    content = upload.file.read()
    if not content:
        raise InvalidInputError("Image file is empty")
    if len(content) > MAX_IMAGE_BYTES:
        raise InvalidInputError("Image must be 10MB or smaller")
    return ImageUpload(
        content=content,
        filename=upload.filename or "workout.jpg",
        content_type=upload.content_type or "image/jpeg",
    )


@router.get("")
def list_workouts(
    squad_id: str,
    days: int = Query(30, ge=1, le=365),
    _: str = Depends(get_squad_member_id),
    store: WorkoutRepository = Depends(get_workout_store),
) -> dict:
    """Return the squad's recent workouts grouped by date, newest first."""
    return {"days": recent_workouts(store, squad_id, days=days)}


@router.post("", response_model=CheckInResult, status_code=201)
def check_in(
    squad_id: str,
    image: UploadFile = File(...),
    note: str = Form(""),
    date: str | None = Form(None),
    user_id: str = Depends(get_squad_member_id),
    service: CheckInService = Depends(get_check_in_service),
) -> CheckInResult:
    """Record a photo-proof check-in and return the recomputed streaks."""
    payload = CheckInInput(
        user_id=user_id,
        squad_id=squad_id,
        image=read_image(image),
        note=note.strip(),
        date=date or None,
    )
    return service.execute_check_in(payload)


@router.patch("/{workout_id}")
def edit_workout(
    squad_id: str,
    workout_id: str,
    image: UploadFile | None = File(None),
    note: str | None = Form(None),
    user_id: str = Depends(get_squad_member_id),
    service: WorkoutService = Depends(get_workout_service),
) -> dict:
    """Replace a workout's photo and/or note."""
    payload = EditWorkoutInput(
        workout_id=workout_id,
        user_id=user_id,
        squad_id=squad_id,
        image=read_image(image) if image is not None else None,
        note=note.strip() if note is not None else None,
    )
    service.execute_edit_workout(payload)
    return {"success": True}


@router.delete("/{workout_id}", response_model=DeleteResult)
def delete_workout(
    squad_id: str,
    workout_id: str,
    user_id: str = Depends(get_squad_member_id),
    service: WorkoutService = Depends(get_workout_service),
) -> DeleteResult:
    """Delete a workout and return the recomputed streaks."""
    return service.execute_delete_workout(
        DeleteWorkoutInput(workout_id=workout_id, user_id=user_id, squad_id=squad_id)
    )
