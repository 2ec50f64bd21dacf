"""Application configuration."""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "RepCoach"
    debug: bool = False
    api_prefix: str = "/api"

    # Rep Counting - defaults for RepCountingConfig
    probability_threshold: float = 0.65  # Smoothed probability needed for a frame to vote
    state_stability_frames: int = 3  # Consecutive identical votes before a state is accepted
    min_rep_interval_ms: int = 800  # Refractory period between counted reps
    quality_threshold: float = 0.7
    max_history_size: int = 100  # Endpoint snapshots retained for averages
    smoothing_window: int = 5  # Classifier probability window (frames)

    # Frame Quality Gate
    min_visible_landmarks: int = 10  # Frames with fewer visible landmarks are skipped
    landmark_visibility_threshold: float = 0.5

    # Sessions
    max_sessions: int = 32  # Live in-memory counting sessions

    class Config:
        env_file = ".env"
        env_prefix = "REPCOACH_"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
