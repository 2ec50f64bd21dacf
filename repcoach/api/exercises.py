"""Exercise catalogue endpoints."""

from typing import List

from fastapi import APIRouter

from repcoach.cv.exercise_types import ExerciseKind
from repcoach.schemas.session import ExerciseResponse

router = APIRouter()


@router.get("", response_model=List[ExerciseResponse])
async def list_exercises():
    """All exercise kinds with a rep classifier."""
    return [
        ExerciseResponse(kind=kind.value, display_name=kind.display_name, family=kind.family.value)
        for kind in ExerciseKind
    ]
