"""Pydantic schemas for API request/response models."""

from repcoach.schemas.session import (
    CounterConfigIn,
    ExerciseResponse,
    FrameIn,
    FrameResponse,
    LandmarkIn,
    RepetitionResponse,
    SessionCreate,
    SessionListResponse,
    SessionResponse,
    StateResponse,
    StatisticsResponse,
)

__all__ = [
    "CounterConfigIn",
    "ExerciseResponse",
    "FrameIn",
    "FrameResponse",
    "LandmarkIn",
    "RepetitionResponse",
    "SessionCreate",
    "SessionListResponse",
    "SessionResponse",
    "StateResponse",
    "StatisticsResponse",
]
