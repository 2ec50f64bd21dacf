"""Counting session schemas."""

from typing import Optional, List, Dict

from pydantic import BaseModel, Field, field_validator

from repcoach.cv.pose_models import NUM_LANDMARKS


class LandmarkIn(BaseModel):
    """Single landmark as sent by the pose detector."""
    x: float
    y: float
    z: float = 0.0
    visibility: float = Field(0.0, ge=0.0, le=1.0)


class CounterConfigIn(BaseModel):
    """Optional per-session overrides of the counting defaults."""
    probability_threshold: Optional[float] = Field(None, gt=0.5, le=1.0)
    state_stability_frames: Optional[int] = Field(None, ge=1)
    min_rep_interval_ms: Optional[int] = Field(None, ge=0)
    quality_threshold: Optional[float] = Field(None, ge=0.0, le=1.0)
    max_history_size: Optional[int] = Field(None, ge=1)


class SessionCreate(BaseModel):
    """Schema for starting a counting session."""
    exercise: str = Field(..., description="Exercise kind (e.g. 'sumo_squat') or free-form name (e.g. 'Wide Push-ups')")
    config: Optional[CounterConfigIn] = None


class SessionResponse(BaseModel):
    id: str
    exercise: str
    display_name: str
    config: Dict[str, float]


class SessionListResponse(BaseModel):
    items: List[str]
    total: int


class FrameIn(BaseModel):
    """
    One detector frame.

    Empty landmark lists mean no pose was detected; such frames are
    skipped, not rejected.
    """
    landmarks: List[LandmarkIn] = Field(default_factory=list)
    world_landmarks: List[LandmarkIn] = Field(default_factory=list, alias="worldLandmarks")
    timestamp: float = Field(..., ge=0, description="Capture time in milliseconds")
    frame_number: Optional[int] = None

    model_config = {"populate_by_name": True}

    @field_validator("landmarks", "world_landmarks")
    @classmethod
    def validate_landmark_count(cls, v: List[LandmarkIn]) -> List[LandmarkIn]:
        if v and len(v) != NUM_LANDMARKS:
            raise ValueError(f"expected {NUM_LANDMARKS} landmarks, got {len(v)}")
        return v

    def to_payload(self) -> Dict:
        return {
            "landmarks": [lm.model_dump() for lm in self.landmarks],
            "worldLandmarks": [lm.model_dump() for lm in self.world_landmarks],
            "timestamp": self.timestamp,
            "frame_number": self.frame_number,
        }


class FormCueResponse(BaseModel):
    metric: str
    score: float
    message: str


class RepetitionResponse(BaseModel):
    rep_number: int
    timestamp: float
    duration_ms: float
    quality: str
    confidence: float
    form_score: float
    form_metrics: Dict[str, float]
    cues: List[FormCueResponse] = []


class FrameStateResponse(BaseModel):
    """Per-frame state; the rep history is served by the state endpoint."""
    total_reps: int
    current_state: str
    confidence: float
    average_confidence: float
    average_form_score: float
    average_quality: str
    last_rep: Optional[RepetitionResponse] = None


class StateResponse(FrameStateResponse):
    history: List[RepetitionResponse] = []


class FrameResponse(BaseModel):
    accepted: bool
    state: FrameStateResponse
    completed_rep: Optional[RepetitionResponse] = None
    skipped_frames: int


class StatisticsResponse(BaseModel):
    total_reps: int
    average_form_score: float
    average_quality: str
    average_confidence: float
    quality_distribution: Dict[str, int]
    average_rep_duration_ms: float
    best_rep: Optional[RepetitionResponse] = None
    worst_rep: Optional[RepetitionResponse] = None
    processed_frames: int
    skipped_frames: int


class ExerciseResponse(BaseModel):
    kind: str
    display_name: str
    family: str
