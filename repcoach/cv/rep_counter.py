"""
Debounced repetition state machine.

Consumes smoothed {up, down} probabilities, one frame at a time, and turns
them into settled movement phases and counted repetitions.

STATE MACHINE:
    UP <-> DOWN, with TRANSITIONING for frames where neither phase is
    probable enough. Initial state is UP.

    1. Target state per frame: UP if up > threshold, DOWN if down > threshold,
       otherwise TRANSITIONING
    2. A target that differs from the previous frame's target restarts the
       stability counter at 1
    3. An unchanged target increments the counter
    4. Counter >= state_stability_frames and target != settled state
       -> transition accepted, unless the last counted rep is younger than
       min_rep_interval_ms (refractory period), in which case nothing moves
    5. Accepted transitions into UP or DOWN snapshot confidence and form
       metrics into a bounded endpoint history
    6. DOWN -> UP completes a repetition; its duration runs from the most
       recent UP -> DOWN transition

Single-threaded and synchronous. One counter per exercise segment; change
exercise by building a new counter.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Deque, Dict, List, Mapping, Optional, Tuple, Union

from repcoach.config import Settings
from repcoach.cv.events import EventChannel
from repcoach.cv.exercise_classifier import (
    ExerciseClassifier,
    PhaseProbabilities,
    create_exercise_classifier,
)
from repcoach.cv.exercise_types import ExerciseKind
from repcoach.cv.form_feedback import FormCue, feedback_for
from repcoach.cv.pose_models import PoseFrame
from repcoach.cv.quality import (
    EndpointSnapshot,
    RepQuality,
    SessionStatistics,
    average_endpoint_confidence,
    average_endpoint_form,
    average_quality,
    compute_statistics,
    confidence_from_probabilities,
    form_score,
    grade_repetition,
)

logger = logging.getLogger(__name__)


class ExerciseState(Enum):
    """Settled phase of the movement."""
    UP = "up"
    DOWN = "down"
    TRANSITIONING = "transitioning"


@dataclass(frozen=True)
class RepCountingConfig:
    """Immutable tunables for one counter."""
    probability_threshold: float = 0.65
    state_stability_frames: int = 3
    min_rep_interval_ms: int = 800
    quality_threshold: float = 0.7
    max_history_size: int = 100
    # Carried for compatibility with stored configurations; not used for counting
    transition_sensitivity: float = 0.15

    def __post_init__(self):
        if not 0.5 < self.probability_threshold <= 1.0:
            raise ValueError(
                f"probability_threshold must be in (0.5, 1.0], got {self.probability_threshold}"
            )
        if self.state_stability_frames < 1:
            raise ValueError(f"state_stability_frames must be >= 1, got {self.state_stability_frames}")
        if self.min_rep_interval_ms < 0:
            raise ValueError(f"min_rep_interval_ms must be >= 0, got {self.min_rep_interval_ms}")
        if not 0.0 <= self.quality_threshold <= 1.0:
            raise ValueError(f"quality_threshold must be in [0, 1], got {self.quality_threshold}")
        if self.max_history_size < 1:
            raise ValueError(f"max_history_size must be >= 1, got {self.max_history_size}")

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> "RepCountingConfig":
        values = {
            "probability_threshold": settings.probability_threshold,
            "state_stability_frames": settings.state_stability_frames,
            "min_rep_interval_ms": settings.min_rep_interval_ms,
            "quality_threshold": settings.quality_threshold,
            "max_history_size": settings.max_history_size,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "probability_threshold": self.probability_threshold,
            "state_stability_frames": self.state_stability_frames,
            "min_rep_interval_ms": self.min_rep_interval_ms,
            "quality_threshold": self.quality_threshold,
            "max_history_size": self.max_history_size,
            "transition_sensitivity": self.transition_sensitivity,
        }


@dataclass(frozen=True)
class RepetitionData:
    """One completed repetition. Created once, never mutated."""
    rep_number: int
    timestamp: float  # Seconds
    duration_ms: float
    quality: RepQuality
    confidence: float
    form_score: float
    form_metrics: Mapping[str, float]
    cues: Tuple[FormCue, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rep_number": self.rep_number,
            "timestamp": self.timestamp,
            "duration_ms": self.duration_ms,
            "quality": self.quality.value,
            "confidence": self.confidence,
            "form_score": self.form_score,
            "form_metrics": dict(self.form_metrics),
            "cues": [cue.to_dict() for cue in self.cues],
        }


@dataclass(frozen=True)
class RepCountingState:
    """Read model published after every processed frame."""
    total_reps: int = 0
    current_state: ExerciseState = ExerciseState.UP
    confidence: float = 0.0
    average_confidence: float = 0.0
    average_form_score: float = 0.0
    average_quality: RepQuality = RepQuality.FAIR
    last_rep: Optional[RepetitionData] = None
    history: Tuple[RepetitionData, ...] = field(default_factory=tuple)

    def to_dict(self, include_history: bool = True) -> Dict[str, Any]:
        data = {
            "total_reps": self.total_reps,
            "current_state": self.current_state.value,
            "confidence": self.confidence,
            "average_confidence": self.average_confidence,
            "average_form_score": self.average_form_score,
            "average_quality": self.average_quality.value,
            "last_rep": self.last_rep.to_dict() if self.last_rep else None,
        }
        if include_history:
            data["history"] = [rep.to_dict() for rep in self.history]
        return data


class RepCounter:
    """
    Repetition counter for one exercise segment.

    Owns its classifier. Publishes a RepCountingState on `state_channel`
    after every frame and a RepetitionData on `rep_channel` per counted rep.
    """

    def __init__(self, classifier: ExerciseClassifier, config: Optional[RepCountingConfig] = None):
        self.classifier = classifier
        self.config = config or RepCountingConfig()

        self.state_channel: EventChannel[RepCountingState] = EventChannel("rep_state")
        self.rep_channel: EventChannel[RepetitionData] = EventChannel("repetitions")

        self._init_counting_state()
        self._state = RepCountingState()

    def _init_counting_state(self):
        self.current_state = ExerciseState.UP
        self.previous_state = ExerciseState.UP
        self.total_reps = 0

        # Debounce
        self._target_state: Optional[ExerciseState] = None
        self._stability_count = 0

        self._last_rep_time: Optional[float] = None
        self._transition_start: Optional[float] = None
        self._last_confidence = 0.0

        self.history: List[RepetitionData] = []
        self._history_snapshot: Tuple[RepetitionData, ...] = ()
        self.endpoints: Deque[EndpointSnapshot] = deque(maxlen=self.config.max_history_size)

    @property
    def kind(self) -> ExerciseKind:
        return self.classifier.kind

    @property
    def state(self) -> RepCountingState:
        """Most recently published snapshot."""
        return self._state

    def process_frame(self, frame: PoseFrame) -> RepCountingState:
        """Classify one pose frame and advance the state machine."""
        probabilities = self.classifier.classify(frame)
        metrics = self.classifier.form_metrics(frame)
        return self.process_probabilities(probabilities, frame.timestamp, metrics)

    def process_probabilities(
        self,
        probabilities: PhaseProbabilities,
        timestamp: float,
        form_metrics: Optional[Mapping[str, float]] = None,
    ) -> RepCountingState:
        """
        Advance the state machine with already-smoothed probabilities.

        Args:
            probabilities: Smoothed {up, down} pair for the frame
            timestamp: Capture time in seconds
            form_metrics: Form scores for the frame, snapshotted at endpoints

        Returns:
            The published RepCountingState
        """
        metrics = dict(form_metrics or {})
        self._last_confidence = confidence_from_probabilities(probabilities.up, probabilities.down)

        self._update_state(self._target_for(probabilities), timestamp, metrics)

        self._publish_state()
        return self._state

    def _target_for(self, probabilities: PhaseProbabilities) -> ExerciseState:
        threshold = self.config.probability_threshold
        if probabilities.up > threshold:
            return ExerciseState.UP
        if probabilities.down > threshold:
            return ExerciseState.DOWN
        return ExerciseState.TRANSITIONING

    def _update_state(self, target: ExerciseState, timestamp: float, metrics: Dict[str, float]):
        if target != self._target_state:
            # Vote flipped: restart the debounce window
            self._target_state = target
            self._stability_count = 1
            return

        self._stability_count += 1

        if target == self.current_state or self._stability_count < self.config.state_stability_frames:
            return

        if self._in_refractory_period(timestamp):
            logger.debug(
                f"{self.kind.value}: transition to {target.value} suppressed, "
                f"last rep {(timestamp - self._last_rep_time) * 1000:.0f}ms ago"
            )
            return

        self.previous_state = self.current_state
        self.current_state = target
        self._stability_count = 0
        self._target_state = None

        logger.info(
            f"{self.kind.value}: {self.previous_state.value} -> {self.current_state.value} "
            f"at {timestamp:.3f}s"
        )

        if self.current_state != ExerciseState.TRANSITIONING:
            self.endpoints.append(EndpointSnapshot(
                timestamp=timestamp,
                state=self.current_state,
                confidence=self._last_confidence,
                form_metrics=MappingProxyType(dict(metrics)),
            ))

        if self.previous_state == ExerciseState.DOWN and self.current_state == ExerciseState.UP:
            self._complete_repetition(timestamp, metrics)
        elif self.previous_state == ExerciseState.UP and self.current_state == ExerciseState.DOWN:
            self._transition_start = timestamp

    def _in_refractory_period(self, timestamp: float) -> bool:
        if self._last_rep_time is None:
            return False
        elapsed_ms = (timestamp - self._last_rep_time) * 1000
        return elapsed_ms < self.config.min_rep_interval_ms

    def _complete_repetition(self, timestamp: float, metrics: Dict[str, float]):
        self.total_reps += 1

        start = self._transition_start if self._transition_start is not None else timestamp
        score = form_score(metrics)
        confidence = self._last_confidence

        rep = RepetitionData(
            rep_number=self.total_reps,
            timestamp=timestamp,
            duration_ms=(timestamp - start) * 1000,
            quality=grade_repetition(score, confidence),
            confidence=confidence,
            form_score=score,
            form_metrics=MappingProxyType(dict(metrics)),
            cues=tuple(feedback_for(self.kind, metrics)),
        )

        self.history.append(rep)
        self._history_snapshot = tuple(self.history)
        self._last_rep_time = timestamp
        self._transition_start = None

        logger.info(
            f"{self.kind.value}: rep {rep.rep_number} completed "
            f"({rep.duration_ms:.0f}ms, quality={rep.quality.value}, form={score:.2f})"
        )
        self.rep_channel.publish(rep)

    def _publish_state(self):
        self._state = RepCountingState(
            total_reps=self.total_reps,
            current_state=self.current_state,
            confidence=self._last_confidence,
            average_confidence=average_endpoint_confidence(self.endpoints),
            average_form_score=average_endpoint_form(self.endpoints),
            average_quality=average_quality(self.history),
            last_rep=self.history[-1] if self.history else None,
            history=self._history_snapshot,
        )
        self.state_channel.publish(self._state)

    def get_statistics(self) -> SessionStatistics:
        return compute_statistics(self.history, list(self.endpoints))

    def reset(self):
        """Clear counts, history and smoothing; configuration is kept."""
        self._init_counting_state()
        self.classifier.reset()
        logger.info(f"{self.kind.value}: counter reset")
        self._publish_state()

    def close(self):
        self.state_channel.close()
        self.rep_channel.close()


def create_rep_counter(
    exercise: Union[ExerciseKind, str],
    config: Optional[RepCountingConfig] = None,
    smoothing_window: int = 5,
) -> RepCounter:
    """
    Build a classifier and counter pair for one exercise segment.

    Raises:
        ValueError: if the exercise name has no classifier
    """
    kind = exercise if isinstance(exercise, ExerciseKind) else ExerciseKind.from_name(exercise)
    classifier = create_exercise_classifier(kind, smoothing_window=smoothing_window)
    return RepCounter(classifier, config)
