"""
Coaching cues for weak form metrics.

Each cue maps one metric to a threshold; a metric scoring below its
threshold produces the message. Cues never influence counting.
"""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Tuple

from repcoach.cv.exercise_types import ExerciseFamily, ExerciseKind


@dataclass(frozen=True)
class FormCue:
    """A form metric that fell below its coaching threshold."""
    metric: str
    score: float
    message: str

    def to_dict(self) -> Dict[str, object]:
        return {"metric": self.metric, "score": self.score, "message": self.message}


# metric -> (threshold, message)
CueTable = Dict[str, Tuple[float, str]]

_VISIBILITY_CUE: CueTable = {
    "overall_visibility": (0.7, "Should ensure the whole body is clearly visible in the camera"),
}

_PUSH_UP_CUES: CueTable = {
    "body_alignment": (0.6, "Should keep the body in a straight line without sagging or piking the hips"),
    "hand_width": (0.6, "Should adjust hand placement to the width this variation calls for"),
    "wrist_positioning": (0.6, "Should stack the wrists under the shoulders"),
}

_SQUAT_CUES: CueTable = {
    "knee_tracking": (0.6, "Should keep the knees aligned over the toes, not allowing them to cave inward"),
    "squat_depth": (0.7, "Should squat deeper, lowering the hips below knee level for a full range of motion"),
    "stance_width": (0.6, "Should adjust the feet to be about shoulder-width apart for optimal stability"),
}

_SUMO_SQUAT_CUES: CueTable = {
    "knee_tracking": (0.6, "Should keep both knees aligned over the toes and avoid letting them cave inward"),
    "sumo_stance_width": (0.7, "Should position the feet wider than shoulder-width with toes pointed outward"),
    "squat_depth": _SQUAT_CUES["squat_depth"],
}

_SPLIT_SQUAT_CUES: CueTable = {
    "front_knee_tracking": (0.65, "Should keep the front knee aligned over the ankle and avoid letting it drift inward"),
    "stance_length": (0.7, "Should adjust the stance to have an appropriate distance between their front and back foot for stability"),
}

_CRUNCH_CUES: CueTable = {
    "neck_alignment": (0.4, "Head should move with torso, not independently"),
    "knee_stability": (0.55, "Should keep the knees bent at about 90 degrees and stable throughout the movement"),
    "hip_stability": (0.65, "Should keep the hips level and avoid lifting them"),
}

_REVERSE_CRUNCH_CUES: CueTable = {
    "knee_symmetry": (0.65, "Should move both knees together, keeping them aligned"),
    "range_of_motion": (0.65, "Should bring the knees closer to the chest for a fuller range of motion"),
}

_DOUBLE_CRUNCH_CUES: CueTable = {
    "movement_coordination": (0.5, "Should coordinate both the upper body crunch and knee-to-chest movement simultaneously"),
    "bilateral_symmetry": (0.5, "Should ensure both sides of the body move evenly"),
    "full_range_activation": (0.4, "Should engage both upper and lower abdominals for maximum muscle activation"),
}

_SUPERMAN_CUES: CueTable = {
    "spinal_alignment": (0.6, "Should lift the chest to extend through the upper back"),
    "arm_extension": (0.6, "Should reach the arms long in front of the body"),
    "leg_extension": (0.6, "Should keep the legs straight and lift them off the floor"),
    "bilateral_symmetry": (0.6, "Should raise both arms to the same height"),
}

_CUES_BY_KIND: Dict[ExerciseKind, CueTable] = {
    ExerciseKind.SUMO_SQUAT: _SUMO_SQUAT_CUES,
    ExerciseKind.SPLIT_SQUAT_LEFT: _SPLIT_SQUAT_CUES,
    ExerciseKind.SPLIT_SQUAT_RIGHT: _SPLIT_SQUAT_CUES,
    ExerciseKind.CRUNCH: _CRUNCH_CUES,
    ExerciseKind.REVERSE_CRUNCH: _REVERSE_CRUNCH_CUES,
    ExerciseKind.DOUBLE_CRUNCH: _DOUBLE_CRUNCH_CUES,
}

_CUES_BY_FAMILY: Dict[ExerciseFamily, CueTable] = {
    ExerciseFamily.PUSH_UP: _PUSH_UP_CUES,
    ExerciseFamily.SQUAT: _SQUAT_CUES,
    ExerciseFamily.SUPERMAN: _SUPERMAN_CUES,
}


def cue_table(kind: ExerciseKind) -> CueTable:
    table = _CUES_BY_KIND.get(kind) or _CUES_BY_FAMILY[kind.family]
    return {**table, **_VISIBILITY_CUE}


def feedback_for(kind: ExerciseKind, metrics: Mapping[str, float]) -> List[FormCue]:
    """Cues for every metric below its threshold, lowest score first."""
    cues = []
    for metric, (threshold, message) in cue_table(kind).items():
        score = metrics.get(metric)
        if score is not None and score < threshold:
            cues.append(FormCue(metric=metric, score=score, message=message))

    return sorted(cues, key=lambda c: c.score)
