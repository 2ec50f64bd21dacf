"""
Repetition quality grading and session statistics.

QUALITY RULE:
    combined = 0.4 * form_score + 0.7 * confidence

The weights intentionally do not sum to 1; the combined value is a tunable
composite, not a probability.

    combined >= 0.90 -> excellent
    combined >= 0.75 -> good
    combined >= 0.60 -> fair
    otherwise        -> poor
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence

import numpy as np

if TYPE_CHECKING:
    from repcoach.cv.rep_counter import ExerciseState, RepetitionData


FORM_WEIGHT = 0.4
CONFIDENCE_WEIGHT = 0.7

# Form score used when a snapshot carries no usable metric
NEUTRAL_FORM_SCORE = 0.5


class RepQuality(Enum):
    """Four-level repetition grade."""
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"

    @property
    def points(self) -> int:
        """Grade points used for averaging (excellent=4 ... poor=1)."""
        return _POINTS[self]

    @classmethod
    def from_combined(cls, combined: float) -> "RepQuality":
        if combined >= 0.9:
            return cls.EXCELLENT
        if combined >= 0.75:
            return cls.GOOD
        if combined >= 0.6:
            return cls.FAIR
        return cls.POOR

    @classmethod
    def from_points(cls, points: float) -> "RepQuality":
        """Map an average of grade points back to the nearest grade."""
        if points >= 3.5:
            return cls.EXCELLENT
        if points >= 2.5:
            return cls.GOOD
        if points >= 1.5:
            return cls.FAIR
        return cls.POOR

    @classmethod
    def all(cls) -> List[str]:
        return [q.value for q in cls]


_POINTS = {
    RepQuality.EXCELLENT: 4,
    RepQuality.GOOD: 3,
    RepQuality.FAIR: 2,
    RepQuality.POOR: 1,
}


def confidence_from_probabilities(up: float, down: float) -> float:
    """Map certainty in [0.5, 1.0] to a confidence in [0.0, 1.0]."""
    return float(np.clip((max(up, down) - 0.5) * 2, 0.0, 1.0))


def form_score(metrics: Mapping[str, float]) -> float:
    """Mean of all metric scores, NaN excluded; neutral when nothing remains."""
    values = [v for v in metrics.values() if v is not None and not np.isnan(v)]
    if not values:
        return NEUTRAL_FORM_SCORE
    return float(np.clip(np.mean(values), 0.0, 1.0))


def grade_repetition(score: float, confidence: float) -> RepQuality:
    combined = FORM_WEIGHT * score + CONFIDENCE_WEIGHT * confidence
    return RepQuality.from_combined(combined)


@dataclass(frozen=True)
class EndpointSnapshot:
    """Confidence and form captured when the machine settles into Up or Down."""
    timestamp: float
    state: "ExerciseState"
    confidence: float
    form_metrics: Mapping[str, float]

    @property
    def form_score(self) -> float:
        return form_score(self.form_metrics)


@dataclass
class SessionStatistics:
    """Aggregate summary of one counting session."""
    total_reps: int = 0
    average_form_score: float = 0.0
    average_quality: RepQuality = RepQuality.FAIR
    average_confidence: float = 0.0
    quality_distribution: Dict[str, int] = field(
        default_factory=lambda: {q: 0 for q in RepQuality.all()}
    )
    average_rep_duration_ms: float = 0.0
    best_rep: Optional["RepetitionData"] = None
    worst_rep: Optional["RepetitionData"] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_reps": self.total_reps,
            "average_form_score": self.average_form_score,
            "average_quality": self.average_quality.value,
            "average_confidence": self.average_confidence,
            "quality_distribution": dict(self.quality_distribution),
            "average_rep_duration_ms": self.average_rep_duration_ms,
            "best_rep": self.best_rep.to_dict() if self.best_rep else None,
            "worst_rep": self.worst_rep.to_dict() if self.worst_rep else None,
        }


def average_quality(reps: Sequence["RepetitionData"]) -> RepQuality:
    if not reps:
        return RepQuality.FAIR
    return RepQuality.from_points(float(np.mean([r.quality.points for r in reps])))


def average_endpoint_form(endpoints: Sequence[EndpointSnapshot]) -> float:
    if not endpoints:
        return 0.0
    return float(np.mean([e.form_score for e in endpoints]))


def average_endpoint_confidence(endpoints: Sequence[EndpointSnapshot]) -> float:
    if not endpoints:
        return 0.0
    return float(np.mean([e.confidence for e in endpoints]))


def compute_statistics(
    reps: Sequence["RepetitionData"],
    endpoints: Sequence[EndpointSnapshot],
) -> SessionStatistics:
    """
    Build session statistics on demand.

    Form score and confidence averages are taken over the endpoint
    snapshots; everything else over the completed repetitions.
    """
    stats = SessionStatistics(
        total_reps=len(reps),
        average_form_score=average_endpoint_form(endpoints),
        average_quality=average_quality(reps),
        average_confidence=average_endpoint_confidence(endpoints),
    )

    for rep in reps:
        stats.quality_distribution[rep.quality.value] += 1

    if reps:
        stats.average_rep_duration_ms = float(np.mean([r.duration_ms for r in reps]))
        stats.best_rep = max(reps, key=lambda r: r.form_score)
        stats.worst_rep = min(reps, key=lambda r: r.form_score)

    return stats
