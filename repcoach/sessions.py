"""
In-memory registry of live counting sessions.

A session wraps one RepCounter for one exercise segment and owns the
caller-side frame quality gate: frames without a pose, or with too few
visible landmarks, never reach the counter.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from repcoach.config import Settings, get_settings
from repcoach.cv.pose_models import PoseFrame
from repcoach.cv.rep_counter import (
    RepCounter,
    RepCountingConfig,
    RepCountingState,
    RepetitionData,
    create_rep_counter,
)

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    """No live session with the given id."""


class SessionLimitError(RuntimeError):
    """The registry already holds max_sessions sessions."""


@dataclass
class FrameResult:
    """Outcome of submitting one detector payload."""
    accepted: bool
    state: RepCountingState
    completed_rep: Optional[RepetitionData] = None


class CountingSession:
    """One exercise segment: a counter plus the frame quality gate."""

    def __init__(self, counter: RepCounter, settings: Optional[Settings] = None, session_id: Optional[str] = None):
        self.id = session_id or str(uuid.uuid4())
        self.counter = counter
        self.settings = settings or get_settings()
        self.created_at = datetime.now(timezone.utc)

        self.processed_frames = 0
        self.skipped_frames = 0

    @property
    def kind(self):
        return self.counter.kind

    def submit_payload(self, payload: Dict[str, Any]) -> FrameResult:
        """
        Gate and process a raw detector payload.

        Empty landmark arrays mean the detector found no pose; the payload is
        skipped. Non-empty arrays of the wrong length raise ValueError.
        """
        image = payload.get("landmarks", payload.get("image_landmarks")) or []
        world = payload.get("worldLandmarks", payload.get("world_landmarks")) or []
        if not image or not world:
            return self._skip("no pose detected")

        return self.submit_frame(PoseFrame.from_dict(payload))

    def submit_frame(self, frame: PoseFrame) -> FrameResult:
        visible = frame.visible_landmark_count(self.settings.landmark_visibility_threshold)
        if visible < self.settings.min_visible_landmarks:
            return self._skip(f"only {visible} visible landmarks")

        reps_before = self.counter.total_reps
        state = self.counter.process_frame(frame)
        self.processed_frames += 1

        completed = state.last_rep if state.total_reps > reps_before else None
        return FrameResult(accepted=True, state=state, completed_rep=completed)

    def _skip(self, reason: str) -> FrameResult:
        self.skipped_frames += 1
        logger.debug(f"Session {self.id}: frame skipped ({reason})")
        return FrameResult(accepted=False, state=self.counter.state)

    def reset(self) -> RepCountingState:
        self.counter.reset()
        self.processed_frames = 0
        self.skipped_frames = 0
        return self.counter.state

    def close(self):
        self.counter.close()


class SessionRegistry:
    """Live sessions keyed by id. Nothing is persisted."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._sessions: Dict[str, CountingSession] = {}

    def create(self, exercise: str, config: Optional[RepCountingConfig] = None) -> CountingSession:
        """
        Start a session for an exercise name.

        Raises:
            ValueError: unknown exercise name
            SessionLimitError: registry is full
        """
        if len(self._sessions) >= self.settings.max_sessions:
            raise SessionLimitError(f"Session limit of {self.settings.max_sessions} reached")

        counter = create_rep_counter(
            exercise,
            config or RepCountingConfig.from_settings(self.settings),
            smoothing_window=self.settings.smoothing_window,
        )
        session = CountingSession(counter, self.settings)
        self._sessions[session.id] = session

        logger.info(f"Session {session.id} started for {session.kind.value}")
        return session

    def get(self, session_id: str) -> CountingSession:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id)

    def remove(self, session_id: str):
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(session_id)
        session.close()
        logger.info(f"Session {session_id} closed after {session.counter.total_reps} reps")

    def ids(self) -> List[str]:
        return list(self._sessions)

    def clear(self):
        for session in self._sessions.values():
            session.close()
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)
