"""
Per-exercise up/down phase classification from pose landmarks.

Each variant turns one PoseFrame into a probability that the body is in the
"up" phase of the movement, plus a set of named form scores.

SHARED PATTERN:
1. Pick the joints for the exercise (side-dependent for side-on exercises)
2. Visibility gate: any required joint below the variant threshold yields
   the neutral result {up: 0.5, down: 0.5}
3. Primary signal: a joint angle, range-normalized against calibrated cutoffs
4. Secondary signal: a normalized vertical-distance ratio
5. Fixed weighted sum -> raw up probability, down = 1 - up
6. Raw pair pushed into a bounded window; the window mean is the output

Nothing here raises on low-confidence or degenerate input; every such case
maps to a neutral number.
"""

import logging
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Iterable, Tuple, Type

import numpy as np

from repcoach.cv import geometry
from repcoach.cv.exercise_types import (
    CALIBRATION,
    CrunchCalibration,
    ExerciseFamily,
    ExerciseKind,
    PushUpCalibration,
    SquatCalibration,
    SupermanCalibration,
)
from repcoach.cv.geometry import BodySide
from repcoach.cv.pose_models import PoseFrame, PoseLandmarkType as L

logger = logging.getLogger(__name__)


NEUTRAL_SCORE = 0.5

# Form metrics fall back to NEUTRAL_SCORE when a joint they use is below this
METRIC_MIN_VISIBILITY = 0.5

# Vertical reference lengths below this are treated as a collapsed pose
MIN_REFERENCE_LENGTH = 0.01


@dataclass(frozen=True)
class PhaseProbabilities:
    """Probability pair for the up and down phases."""
    up: float
    down: float

    def to_dict(self) -> Dict[str, float]:
        return {"up": self.up, "down": self.down}

    @classmethod
    def from_up(cls, up: float) -> "PhaseProbabilities":
        up = geometry.clamp01(up)
        return cls(up=up, down=1.0 - up)

    @property
    def is_finite(self) -> bool:
        return bool(np.isfinite(self.up) and np.isfinite(self.down))


NEUTRAL = PhaseProbabilities(up=0.5, down=0.5)


def _bounded(value: float) -> float:
    """Clamp a score to [0, 1]; non-finite values become neutral."""
    if value is None or not np.isfinite(value):
        return NEUTRAL_SCORE
    return geometry.clamp01(value)


def _side_joints(side: BodySide, *names: str) -> Tuple[L, ...]:
    """Resolve joint names like 'shoulder' to the landmark on the given side."""
    prefix = "LEFT_" if side == BodySide.LEFT else "RIGHT_"
    return tuple(L[prefix + name.upper()] for name in names)


# =============================================================================
# SECTION 1: Base Classifier
# =============================================================================

class ExerciseClassifier(ABC):
    """
    Base class for exercise phase classifiers.

    Owns the temporal smoothing window. Subclasses implement the raw
    per-frame signal extraction and the exercise-specific form metrics.
    """

    # metric name -> joints it reads; missing joints make the metric neutral
    METRIC_JOINTS: Dict[str, Tuple[L, ...]] = {}

    def __init__(self, kind: ExerciseKind, smoothing_window: int = 5):
        if smoothing_window < 1:
            raise ValueError(f"smoothing_window must be >= 1, got {smoothing_window}")

        self.kind = kind
        self.calibration = CALIBRATION[kind]
        self.smoothing_window = smoothing_window
        self._history: Deque[PhaseProbabilities] = deque(maxlen=smoothing_window)

    def classify(self, frame: PoseFrame) -> PhaseProbabilities:
        """Classify one frame and return the smoothed probabilities."""
        raw = self._raw_probabilities(frame)
        if not raw.is_finite:
            logger.debug(f"{self.kind.value}: non-finite signal, using neutral result")
            raw = NEUTRAL

        self._history.append(raw)
        return self.smoothed

    def form_metrics(self, frame: PoseFrame) -> Dict[str, float]:
        """
        Named form scores for the frame, each in [0, 1] with 1.0 ideal.

        Always includes 'overall_visibility', the mean visibility of all 33
        world landmarks.
        """
        metrics = self._compute_form_metrics(frame)

        scores: Dict[str, float] = {}
        for name, value in metrics.items():
            if not self._joints_available(frame, self.METRIC_JOINTS.get(name, ())):
                scores[name] = NEUTRAL_SCORE
            else:
                scores[name] = _bounded(value)

        scores["overall_visibility"] = _bounded(geometry.mean_visibility(frame.world_landmarks))
        return scores

    @property
    def smoothed(self) -> PhaseProbabilities:
        if not self._history:
            return NEUTRAL
        up = float(np.mean([p.up for p in self._history]))
        down = float(np.mean([p.down for p in self._history]))
        return PhaseProbabilities(up=up, down=down)

    @property
    def history_size(self) -> int:
        return len(self._history)

    def reset(self):
        self._history.clear()

    def _neutral(self, reason: str) -> PhaseProbabilities:
        logger.debug(f"{self.kind.value}: {reason}, using neutral result")
        return NEUTRAL

    @staticmethod
    def _below_visibility(frame: PoseFrame, joints: Iterable[L], threshold: float) -> bool:
        return any(frame.world(j).visibility < threshold for j in joints)

    @staticmethod
    def _joints_available(frame: PoseFrame, joints: Iterable[L]) -> bool:
        return all(frame.world(j).visibility >= METRIC_MIN_VISIBILITY for j in joints)

    @abstractmethod
    def _raw_probabilities(self, frame: PoseFrame) -> PhaseProbabilities:
        """Unsmoothed probabilities for a single frame."""

    @abstractmethod
    def _compute_form_metrics(self, frame: PoseFrame) -> Dict[str, float]:
        """Unbounded exercise-specific metric values."""


# =============================================================================
# SECTION 2: Push-up Family
# =============================================================================

class PushUpClassifier(ExerciseClassifier):
    """
    Push-up classifier (standard, knee, wall, incline, decline, diamond, wide).

    Primary signal: elbow angle of the side facing the camera.
    Secondary signal: shoulder-over-wrist height relative to torso length,
    INVERTED: a larger ratio means the body is more likely down. This sign
    comes from recorded data and is intentional.
    """

    _HANDS = (L.LEFT_WRIST, L.RIGHT_WRIST, L.LEFT_SHOULDER, L.RIGHT_SHOULDER)

    METRIC_JOINTS = {
        "body_alignment": (L.LEFT_SHOULDER, L.RIGHT_SHOULDER, L.LEFT_HIP, L.RIGHT_HIP),
        "hand_width": _HANDS,
        "wrist_positioning": _HANDS,
    }

    calibration: PushUpCalibration

    def _raw_probabilities(self, frame: PoseFrame) -> PhaseProbabilities:
        cal = self.calibration
        side = geometry.dominant_side(frame.world_landmarks)
        shoulder_idx, elbow_idx, wrist_idx, hip_idx = _side_joints(
            side, "shoulder", "elbow", "wrist", "hip"
        )

        if self._below_visibility(frame, (shoulder_idx, elbow_idx, wrist_idx), cal.min_visibility):
            return self._neutral("arm not visible")

        # Signal 1: Elbow angle (world space)
        elbow_angle = geometry.angle(
            frame.world(shoulder_idx), frame.world(elbow_idx), frame.world(wrist_idx)
        )
        angle_prob = self.elbow_angle_probability(elbow_angle)

        # Signal 2: Shoulder height over wrist, relative to torso (image space)
        shoulder_height = geometry.vertical_distance(frame.image(shoulder_idx), frame.image(wrist_idx))
        torso_height = geometry.vertical_distance(frame.image(shoulder_idx), frame.image(hip_idx))
        if torso_height < MIN_REFERENCE_LENGTH:
            return self._neutral("torso collapsed in image")

        height_ratio = shoulder_height / torso_height
        height_prob = 1.0 - geometry.normalize(height_ratio, cal.height_min, cal.height_max)

        return PhaseProbabilities.from_up(
            angle_prob * cal.angle_weight + height_prob * cal.height_weight
        )

    def elbow_angle_probability(self, elbow_angle: float) -> float:
        """
        Map an elbow angle to an up probability.

        Squared interpolation in the overlap band pushes ambiguous angles
        toward the extremes.
        """
        cal = self.calibration
        if elbow_angle >= cal.up_min_angle:
            return 1.0
        if elbow_angle <= cal.down_max_angle:
            return 0.0
        fraction = (elbow_angle - cal.down_max_angle) / (cal.up_min_angle - cal.down_max_angle)
        return fraction * fraction

    def _compute_form_metrics(self, frame: PoseFrame) -> Dict[str, float]:
        cal = self.calibration
        metrics: Dict[str, float] = {}

        shoulder_mid = geometry.midpoint(frame.world(L.LEFT_SHOULDER), frame.world(L.RIGHT_SHOULDER))
        hip_mid = geometry.midpoint(frame.world(L.LEFT_HIP), frame.world(L.RIGHT_HIP))
        if cal.alignment_uses_knees:
            end_mid = geometry.midpoint(frame.world(L.LEFT_KNEE), frame.world(L.RIGHT_KNEE))
        else:
            end_mid = geometry.midpoint(frame.world(L.LEFT_ANKLE), frame.world(L.RIGHT_ANKLE))

        body_angle = geometry.angle(shoulder_mid, hip_mid, end_mid)
        metrics["body_alignment"] = 1.0 - abs(cal.alignment_target - body_angle) / cal.alignment_tolerance

        left_wrist, right_wrist = frame.image(L.LEFT_WRIST), frame.image(L.RIGHT_WRIST)
        left_shoulder, right_shoulder = frame.image(L.LEFT_SHOULDER), frame.image(L.RIGHT_SHOULDER)

        hand_width = abs(left_wrist.x - right_wrist.x)
        shoulder_width = abs(left_shoulder.x - right_shoulder.x)
        width_ratio = hand_width / shoulder_width if shoulder_width > 0 else 0.0
        metrics["hand_width"] = 1.0 - geometry.clamp01(abs(width_ratio - cal.ideal_hand_ratio))

        # Wrists should sit roughly under the shoulders
        wrist_offset = float(np.hypot(left_wrist.x - left_shoulder.x, right_wrist.x - right_shoulder.x))
        metrics["wrist_positioning"] = 1.0 - geometry.clamp01(wrist_offset * 2)

        return metrics


# =============================================================================
# SECTION 3: Squat Family
# =============================================================================

class SquatClassifier(ExerciseClassifier):
    """
    Bodyweight squat, filmed side-on.

    Primary signal: knee angle, 90 degrees (down) to 175 degrees (up).
    Secondary signal: hip height above the knee divided by shin length;
    ~0 when the hips reach knee level, ~1.2 standing.
    """

    METRIC_JOINTS = {
        "knee_tracking": (L.LEFT_KNEE, L.RIGHT_KNEE, L.LEFT_ANKLE, L.RIGHT_ANKLE),
        "squat_depth": (L.LEFT_HIP, L.RIGHT_HIP, L.LEFT_KNEE, L.RIGHT_KNEE),
        "stance_width": (L.LEFT_ANKLE, L.RIGHT_ANKLE, L.LEFT_SHOULDER, L.RIGHT_SHOULDER),
    }

    calibration: SquatCalibration

    def _raw_probabilities(self, frame: PoseFrame) -> PhaseProbabilities:
        cal = self.calibration
        side = geometry.dominant_side(frame.world_landmarks)
        hip_idx, knee_idx, ankle_idx = _side_joints(side, "hip", "knee", "ankle")

        if self._below_visibility(frame, (hip_idx, knee_idx, ankle_idx), cal.min_visibility):
            return self._neutral("leg not visible")

        knee_angle = geometry.angle(frame.world(hip_idx), frame.world(knee_idx), frame.world(ankle_idx))
        angle_prob = geometry.normalize(knee_angle, cal.knee_angle_down, cal.knee_angle_up)

        # Positive when the hip is above the knee (image y grows downward)
        hip_over_knee = frame.image(knee_idx).y - frame.image(hip_idx).y
        height_prob = self._hip_height_probability(frame, hip_over_knee, knee_idx, ankle_idx)
        if height_prob is None:
            return self._neutral("shin collapsed in image")

        return PhaseProbabilities.from_up(angle_prob * cal.angle_weight + height_prob * cal.height_weight)

    def _hip_height_probability(self, frame: PoseFrame, hip_over_knee: float, knee_idx: L, ankle_idx: L):
        cal = self.calibration
        shin_height = geometry.vertical_distance(frame.image(knee_idx), frame.image(ankle_idx))
        if shin_height < MIN_REFERENCE_LENGTH:
            return None
        return geometry.normalize(hip_over_knee / shin_height, cal.hip_height_down, cal.hip_height_up)

    def _compute_form_metrics(self, frame: PoseFrame) -> Dict[str, float]:
        cal = self.calibration
        left_knee, right_knee = frame.world(L.LEFT_KNEE), frame.world(L.RIGHT_KNEE)
        left_ankle, right_ankle = frame.world(L.LEFT_ANKLE), frame.world(L.RIGHT_ANKLE)

        # Knees over toes
        knee_drift = float(np.hypot(left_knee.x - left_ankle.x, right_knee.x - right_ankle.x))

        return {
            "knee_tracking": 1.0 - geometry.clamp01(knee_drift * cal.knee_tracking_gain),
            "squat_depth": self._depth_score(frame),
            "stance_width": self._stance_score(frame, cal.ideal_stance_ratio),
        }

    @staticmethod
    def _depth_score(frame: PoseFrame) -> float:
        """1.0 once the hips drop below knee level, 0.5 otherwise."""
        hip_y = (frame.world(L.LEFT_HIP).y + frame.world(L.RIGHT_HIP).y) / 2
        knee_y = (frame.world(L.LEFT_KNEE).y + frame.world(L.RIGHT_KNEE).y) / 2
        return 1.0 if hip_y - knee_y > 0 else 0.5

    @staticmethod
    def _stance_score(frame: PoseFrame, ideal_ratio: float) -> float:
        foot_width = abs(frame.world(L.LEFT_ANKLE).x - frame.world(L.RIGHT_ANKLE).x)
        shoulder_width = abs(frame.world(L.LEFT_SHOULDER).x - frame.world(L.RIGHT_SHOULDER).x)
        ratio = foot_width / shoulder_width if shoulder_width > 0 else 0.0
        return 1.0 - geometry.clamp01(abs(ratio - ideal_ratio))


class SumoSquatClassifier(SquatClassifier):
    """Wide-stance squat facing the camera: both legs averaged."""

    METRIC_JOINTS = {
        "knee_tracking": (L.LEFT_KNEE, L.RIGHT_KNEE, L.LEFT_ANKLE, L.RIGHT_ANKLE),
        "sumo_stance_width": (L.LEFT_ANKLE, L.RIGHT_ANKLE, L.LEFT_SHOULDER, L.RIGHT_SHOULDER),
        "squat_depth": (L.LEFT_HIP, L.RIGHT_HIP, L.LEFT_KNEE, L.RIGHT_KNEE),
    }

    def _raw_probabilities(self, frame: PoseFrame) -> PhaseProbabilities:
        cal = self.calibration
        if self._below_visibility(frame, (L.LEFT_KNEE, L.RIGHT_KNEE), cal.min_visibility):
            return self._neutral("knees not visible")

        left_angle = geometry.angle(frame.world(L.LEFT_HIP), frame.world(L.LEFT_KNEE), frame.world(L.LEFT_ANKLE))
        right_angle = geometry.angle(frame.world(L.RIGHT_HIP), frame.world(L.RIGHT_KNEE), frame.world(L.RIGHT_ANKLE))
        angle_prob = geometry.normalize((left_angle + right_angle) / 2, cal.knee_angle_down, cal.knee_angle_up)

        hip_y = (frame.image(L.LEFT_HIP).y + frame.image(L.RIGHT_HIP).y) / 2
        knee_y = (frame.image(L.LEFT_KNEE).y + frame.image(L.RIGHT_KNEE).y) / 2
        # Shin reference is taken from the left leg only
        height_prob = self._hip_height_probability(frame, knee_y - hip_y, L.LEFT_KNEE, L.LEFT_ANKLE)
        if height_prob is None:
            return self._neutral("shin collapsed in image")

        return PhaseProbabilities.from_up(angle_prob * cal.angle_weight + height_prob * cal.height_weight)

    def _compute_form_metrics(self, frame: PoseFrame) -> Dict[str, float]:
        cal = self.calibration
        left_drift = abs(frame.world(L.LEFT_KNEE).x - frame.world(L.LEFT_ANKLE).x)
        right_drift = abs(frame.world(L.RIGHT_KNEE).x - frame.world(L.RIGHT_ANKLE).x)

        return {
            "knee_tracking": 1.0 - geometry.clamp01((left_drift + right_drift) / 2 * cal.knee_tracking_gain),
            "sumo_stance_width": self._stance_score(frame, cal.ideal_stance_ratio),
            "squat_depth": self._depth_score(frame),
        }


class SplitSquatClassifier(SquatClassifier):
    """Split squat analysed on the front leg."""

    def __init__(self, kind: ExerciseKind, smoothing_window: int = 5):
        super().__init__(kind, smoothing_window)
        self.front_side = BodySide.RIGHT if kind == ExerciseKind.SPLIT_SQUAT_RIGHT else BodySide.LEFT
        self.back_side = BodySide.LEFT if self.front_side == BodySide.RIGHT else BodySide.RIGHT

        front_hip, front_knee, front_ankle = _side_joints(self.front_side, "hip", "knee", "ankle")
        (back_ankle,) = _side_joints(self.back_side, "ankle")
        self.METRIC_JOINTS = {
            "front_knee_tracking": (front_knee, front_ankle),
            "stance_length": (front_hip, front_ankle, back_ankle),
        }

    def _raw_probabilities(self, frame: PoseFrame) -> PhaseProbabilities:
        cal = self.calibration
        hip_idx, knee_idx, ankle_idx = _side_joints(self.front_side, "hip", "knee", "ankle")

        if self._below_visibility(frame, (hip_idx, knee_idx, ankle_idx), cal.min_visibility):
            return self._neutral("front leg not visible")

        knee_angle = geometry.angle(frame.world(hip_idx), frame.world(knee_idx), frame.world(ankle_idx))
        angle_prob = geometry.normalize(knee_angle, cal.knee_angle_down, cal.knee_angle_up)

        hip_over_knee = frame.image(knee_idx).y - frame.image(hip_idx).y
        height_prob = self._hip_height_probability(frame, hip_over_knee, knee_idx, ankle_idx)
        if height_prob is None:
            return self._neutral("shin collapsed in image")

        return PhaseProbabilities.from_up(angle_prob * cal.angle_weight + height_prob * cal.height_weight)

    def _compute_form_metrics(self, frame: PoseFrame) -> Dict[str, float]:
        cal = self.calibration
        hip_idx, knee_idx, ankle_idx = _side_joints(self.front_side, "hip", "knee", "ankle")
        (back_ankle_idx,) = _side_joints(self.back_side, "ankle")

        front_hip, front_knee, front_ankle = frame.world(hip_idx), frame.world(knee_idx), frame.world(ankle_idx)

        knee_drift = abs(front_knee.x - front_ankle.x)

        stride = geometry.planar_distance(front_ankle, frame.world(back_ankle_idx))
        leg_length = geometry.planar_distance(front_hip, front_ankle)
        stride_ratio = stride / leg_length if leg_length > 0 else 0.0

        return {
            "front_knee_tracking": 1.0 - geometry.clamp01(knee_drift * cal.knee_tracking_gain),
            "stance_length": 1.0 - geometry.clamp01(abs(stride_ratio - cal.ideal_stride_ratio)),
        }


# =============================================================================
# SECTION 4: Crunch Family
# =============================================================================

class _CrunchBase(ExerciseClassifier):
    """
    Shared gating for floor core exercises.

    The visible side's nose, shoulder, hip, knee, ankle, wrist and elbow must
    all be tracked before any signal is trusted.
    """

    calibration: CrunchCalibration

    def _required_joints(self, frame: PoseFrame) -> Tuple[L, ...]:
        side = geometry.dominant_side(frame.world_landmarks)
        return (L.NOSE,) + _side_joints(side, "shoulder", "hip", "knee", "ankle", "wrist", "elbow")

    def _raw_probabilities(self, frame: PoseFrame) -> PhaseProbabilities:
        if self._below_visibility(frame, self._required_joints(frame), self.calibration.min_visibility):
            return self._neutral("core landmarks not visible")
        return self._flexion_probabilities(frame)

    @abstractmethod
    def _flexion_probabilities(self, frame: PoseFrame) -> PhaseProbabilities:
        """Probabilities once visibility has been checked."""

    @staticmethod
    def _mids(frame: PoseFrame):
        shoulder_mid = geometry.midpoint(frame.world(L.LEFT_SHOULDER), frame.world(L.RIGHT_SHOULDER))
        hip_mid = geometry.midpoint(frame.world(L.LEFT_HIP), frame.world(L.RIGHT_HIP))
        knee_mid = geometry.midpoint(frame.world(L.LEFT_KNEE), frame.world(L.RIGHT_KNEE))
        return shoulder_mid, hip_mid, knee_mid

    def _torso_flexion(self, frame: PoseFrame) -> float:
        """0 lying flat, 1 fully crunched (nose-shoulders-hips angle)."""
        cal = self.calibration
        shoulder_mid, hip_mid, _ = self._mids(frame)
        torso_angle = geometry.angle(frame.world(L.NOSE), shoulder_mid, hip_mid)
        return 1.0 - geometry.normalize(torso_angle, cal.torso_angle_up, cal.torso_angle_down)

    def _hip_flexion(self, frame: PoseFrame) -> float:
        """0 legs extended, 1 knees to chest (shoulders-hips-knees angle)."""
        cal = self.calibration
        shoulder_mid, hip_mid, knee_mid = self._mids(frame)
        hip_angle = geometry.angle(shoulder_mid, hip_mid, knee_mid)
        return 1.0 - geometry.normalize(hip_angle, cal.hip_angle_up, cal.hip_angle_down)


class CrunchClassifier(_CrunchBase):
    """Standard crunch: torso flexion with bent knees."""

    METRIC_JOINTS = {
        "neck_alignment": (L.NOSE, L.LEFT_SHOULDER, L.RIGHT_SHOULDER, L.LEFT_HIP, L.RIGHT_HIP),
        "knee_stability": (L.LEFT_HIP, L.RIGHT_HIP, L.LEFT_KNEE, L.RIGHT_KNEE, L.LEFT_ANKLE, L.RIGHT_ANKLE),
        "hip_stability": (L.LEFT_HIP, L.RIGHT_HIP),
    }

    def _flexion_probabilities(self, frame: PoseFrame) -> PhaseProbabilities:
        cal = self.calibration
        _, hip_mid, knee_mid = self._mids(frame)
        ankle_mid = geometry.midpoint(frame.world(L.LEFT_ANKLE), frame.world(L.RIGHT_ANKLE))

        # Straight legs mean this is not a crunch setup; knee angle is scored in metrics
        knee_angle = geometry.angle(hip_mid, knee_mid, ankle_mid)
        if knee_angle > cal.max_knee_angle:
            return self._neutral("knees extended")

        return PhaseProbabilities.from_up(self._torso_flexion(frame))

    def _compute_form_metrics(self, frame: PoseFrame) -> Dict[str, float]:
        cal = self.calibration
        shoulder_mid, hip_mid, _ = self._mids(frame)

        neck_angle = geometry.angle(frame.world(L.NOSE), shoulder_mid, hip_mid)

        left_knee_angle = geometry.angle(frame.world(L.LEFT_HIP), frame.world(L.LEFT_KNEE), frame.world(L.LEFT_ANKLE))
        right_knee_angle = geometry.angle(frame.world(L.RIGHT_HIP), frame.world(L.RIGHT_KNEE), frame.world(L.RIGHT_ANKLE))
        avg_knee_angle = (left_knee_angle + right_knee_angle) / 2

        hip_level_diff = abs(frame.world(L.LEFT_HIP).y - frame.world(L.RIGHT_HIP).y)

        return {
            "neck_alignment": geometry.normalize(neck_angle, cal.neck_angle_min, cal.neck_angle_max),
            "knee_stability": 1.0 - abs(avg_knee_angle - cal.ideal_knee_angle) / cal.knee_angle_tolerance,
            "hip_stability": 1.0 - geometry.clamp01(hip_level_diff * cal.hip_level_gain),
        }


class ReverseCrunchClassifier(_CrunchBase):
    """Reverse crunch: knees drawn toward the chest."""

    METRIC_JOINTS = {
        "knee_symmetry": (L.LEFT_SHOULDER, L.RIGHT_SHOULDER, L.LEFT_HIP, L.RIGHT_HIP, L.LEFT_KNEE, L.RIGHT_KNEE),
        "range_of_motion": (L.LEFT_SHOULDER, L.RIGHT_SHOULDER, L.LEFT_HIP, L.RIGHT_HIP, L.LEFT_KNEE, L.RIGHT_KNEE),
    }

    def _flexion_probabilities(self, frame: PoseFrame) -> PhaseProbabilities:
        return PhaseProbabilities.from_up(self._hip_flexion(frame))

    def _compute_form_metrics(self, frame: PoseFrame) -> Dict[str, float]:
        cal = self.calibration
        left = geometry.angle(frame.world(L.LEFT_SHOULDER), frame.world(L.LEFT_HIP), frame.world(L.LEFT_KNEE))
        right = geometry.angle(frame.world(L.RIGHT_SHOULDER), frame.world(L.RIGHT_HIP), frame.world(L.RIGHT_KNEE))

        shoulder_mid, hip_mid, knee_mid = self._mids(frame)
        rom_angle = geometry.angle(shoulder_mid, hip_mid, knee_mid)

        return {
            "knee_symmetry": 1.0 - abs(left - right) / 180.0,
            "range_of_motion": 1.0 - geometry.normalize(rom_angle, cal.hip_angle_up, cal.range_of_motion_max),
        }


class DoubleCrunchClassifier(_CrunchBase):
    """Double crunch: torso and hip flexion together, averaged."""

    METRIC_JOINTS = {
        "movement_coordination": (L.NOSE, L.LEFT_SHOULDER, L.RIGHT_SHOULDER, L.LEFT_HIP, L.RIGHT_HIP,
                                  L.LEFT_KNEE, L.RIGHT_KNEE),
        "bilateral_symmetry": (L.NOSE, L.LEFT_SHOULDER, L.RIGHT_SHOULDER, L.LEFT_KNEE, L.RIGHT_KNEE),
        "full_range_activation": (L.NOSE, L.LEFT_SHOULDER, L.RIGHT_SHOULDER, L.LEFT_HIP, L.RIGHT_HIP,
                                  L.LEFT_KNEE, L.RIGHT_KNEE),
    }

    def _flexion_probabilities(self, frame: PoseFrame) -> PhaseProbabilities:
        return PhaseProbabilities.from_up((self._torso_flexion(frame) + self._hip_flexion(frame)) / 2)

    def _compute_form_metrics(self, frame: PoseFrame) -> Dict[str, float]:
        torso_flexion = self._torso_flexion(frame)
        hip_flexion = self._hip_flexion(frame)

        nose = frame.world(L.NOSE)
        left_side = geometry.angle(nose, frame.world(L.LEFT_SHOULDER), frame.world(L.LEFT_KNEE))
        right_side = geometry.angle(nose, frame.world(L.RIGHT_SHOULDER), frame.world(L.RIGHT_KNEE))

        return {
            "movement_coordination": 1.0 - abs(torso_flexion - hip_flexion),
            "bilateral_symmetry": 1.0 - abs(left_side - right_side) / 180.0,
            "full_range_activation": (torso_flexion + hip_flexion) / 2,
        }


# =============================================================================
# SECTION 5: Superman
# =============================================================================

class SupermanClassifier(ExerciseClassifier):
    """
    Prone back extension.

    The nose-shoulders-hips angle is mapped from 170 to 200 degrees. A joint
    angle never exceeds 180, so the up probability tops out at 1/3; this is
    the recorded calibration and is kept unchanged.
    """

    METRIC_JOINTS = {
        "spinal_alignment": (L.NOSE, L.LEFT_SHOULDER, L.RIGHT_SHOULDER, L.LEFT_HIP, L.RIGHT_HIP),
        "arm_extension": (L.LEFT_SHOULDER, L.RIGHT_SHOULDER, L.LEFT_WRIST, L.RIGHT_WRIST),
        "leg_extension": (L.LEFT_HIP, L.RIGHT_HIP, L.LEFT_ANKLE, L.RIGHT_ANKLE),
        "bilateral_symmetry": (L.LEFT_HIP, L.RIGHT_HIP, L.LEFT_SHOULDER, L.RIGHT_SHOULDER,
                               L.LEFT_WRIST, L.RIGHT_WRIST),
    }

    calibration: SupermanCalibration

    def _raw_probabilities(self, frame: PoseFrame) -> PhaseProbabilities:
        cal = self.calibration
        if frame.world(L.NOSE).visibility < cal.min_nose_visibility:
            return self._neutral("head not visible")
        if self._below_visibility(frame, (L.LEFT_SHOULDER, L.RIGHT_SHOULDER), cal.min_shoulder_visibility):
            return self._neutral("shoulders not visible")

        back_angle = self._back_angle(frame)
        if back_angle <= cal.back_angle_neutral:
            return PhaseProbabilities.from_up(0.0)
        return PhaseProbabilities.from_up(
            geometry.normalize(back_angle, cal.back_angle_neutral, cal.back_angle_max)
        )

    @staticmethod
    def _back_angle(frame: PoseFrame) -> float:
        shoulder_mid = geometry.midpoint(frame.world(L.LEFT_SHOULDER), frame.world(L.RIGHT_SHOULDER))
        hip_mid = geometry.midpoint(frame.world(L.LEFT_HIP), frame.world(L.RIGHT_HIP))
        return geometry.angle(frame.world(L.NOSE), shoulder_mid, hip_mid)

    def _compute_form_metrics(self, frame: PoseFrame) -> Dict[str, float]:
        cal = self.calibration
        shoulder_mid = geometry.midpoint(frame.world(L.LEFT_SHOULDER), frame.world(L.RIGHT_SHOULDER))
        hip_mid = geometry.midpoint(frame.world(L.LEFT_HIP), frame.world(L.RIGHT_HIP))
        wrist_mid = geometry.midpoint(frame.world(L.LEFT_WRIST), frame.world(L.RIGHT_WRIST))
        ankle_mid = geometry.midpoint(frame.world(L.LEFT_ANKLE), frame.world(L.RIGHT_ANKLE))

        # Arm elevation per side, measured at the shoulder from the hip
        left_arm = geometry.angle(frame.world(L.LEFT_HIP), frame.world(L.LEFT_SHOULDER), frame.world(L.LEFT_WRIST))
        right_arm = geometry.angle(frame.world(L.RIGHT_HIP), frame.world(L.RIGHT_SHOULDER), frame.world(L.RIGHT_WRIST))

        return {
            "spinal_alignment": geometry.normalize(self._back_angle(frame), cal.back_angle_neutral, cal.back_angle_max),
            "arm_extension": geometry.normalize(
                geometry.planar_distance(shoulder_mid, wrist_mid), cal.arm_reach_min, cal.arm_reach_max
            ),
            "leg_extension": geometry.normalize(
                geometry.planar_distance(hip_mid, ankle_mid), cal.leg_reach_min, cal.leg_reach_max
            ),
            "bilateral_symmetry": 1.0 - abs(left_arm - right_arm) / 180.0,
        }


# =============================================================================
# SECTION 6: Factory
# =============================================================================

_CLASSIFIERS: Dict[ExerciseKind, Type[ExerciseClassifier]] = {
    ExerciseKind.SUMO_SQUAT: SumoSquatClassifier,
    ExerciseKind.SPLIT_SQUAT_LEFT: SplitSquatClassifier,
    ExerciseKind.SPLIT_SQUAT_RIGHT: SplitSquatClassifier,
    ExerciseKind.CRUNCH: CrunchClassifier,
    ExerciseKind.REVERSE_CRUNCH: ReverseCrunchClassifier,
    ExerciseKind.DOUBLE_CRUNCH: DoubleCrunchClassifier,
}

_FAMILY_DEFAULTS: Dict[ExerciseFamily, Type[ExerciseClassifier]] = {
    ExerciseFamily.PUSH_UP: PushUpClassifier,
    ExerciseFamily.SQUAT: SquatClassifier,
    ExerciseFamily.SUPERMAN: SupermanClassifier,
}


def create_exercise_classifier(kind: ExerciseKind, smoothing_window: int = 5) -> ExerciseClassifier:
    """
    Create a fresh classifier for an exercise variant.

    Args:
        kind: Exercise variant
        smoothing_window: Frames averaged into each output

    Returns:
        ExerciseClassifier owning its own smoothing window
    """
    classifier_cls = _CLASSIFIERS.get(kind) or _FAMILY_DEFAULTS[kind.family]
    return classifier_cls(kind, smoothing_window=smoothing_window)
