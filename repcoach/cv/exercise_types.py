"""
Exercise variants and their calibration constants.

Every threshold and weight below was derived empirically from recorded
sessions. They are calibration data, not biomechanical truths: keep them
as they are and record any disagreement observed in testing instead of
retuning in place.

SUPPORTED VARIANTS:
1. Push-up family: standard, knee, wall, incline, decline, diamond, wide
2. Squat family: standard, sumo, split (left or right leg forward)
3. Crunch family: crunch, reverse crunch, double crunch
4. Superman
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Union


class ExerciseFamily(Enum):
    """Groups of variants sharing signal extraction."""
    PUSH_UP = "push_up"
    SQUAT = "squat"
    CRUNCH = "crunch"
    SUPERMAN = "superman"


class ExerciseKind(Enum):
    """Closed set of exercise variants with a rep classifier."""
    PUSH_UP = "push_up"
    KNEE_PUSH_UP = "knee_push_up"
    WALL_PUSH_UP = "wall_push_up"
    INCLINE_PUSH_UP = "incline_push_up"
    DECLINE_PUSH_UP = "decline_push_up"
    DIAMOND_PUSH_UP = "diamond_push_up"
    WIDE_PUSH_UP = "wide_push_up"
    SQUAT = "squat"
    SUMO_SQUAT = "sumo_squat"
    SPLIT_SQUAT_LEFT = "split_squat_left"
    SPLIT_SQUAT_RIGHT = "split_squat_right"
    CRUNCH = "crunch"
    REVERSE_CRUNCH = "reverse_crunch"
    DOUBLE_CRUNCH = "double_crunch"
    SUPERMAN = "superman"

    @property
    def family(self) -> ExerciseFamily:
        return _FAMILIES[self]

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @classmethod
    def from_name(cls, name: str) -> "ExerciseKind":
        """
        Resolve an enum value ("sumo_squat") or a free-form exercise name
        ("Sumo Squats").

        Raises:
            ValueError: if no classifier matches the name
        """
        try:
            return cls(name)
        except ValueError:
            pass

        kind = exercise_for_name(name)
        if kind is None:
            raise ValueError(f"No rep classifier for exercise '{name}'")
        return kind

    @classmethod
    def all(cls) -> List[str]:
        return [kind.value for kind in cls]


_FAMILIES: Dict[ExerciseKind, ExerciseFamily] = {
    ExerciseKind.PUSH_UP: ExerciseFamily.PUSH_UP,
    ExerciseKind.KNEE_PUSH_UP: ExerciseFamily.PUSH_UP,
    ExerciseKind.WALL_PUSH_UP: ExerciseFamily.PUSH_UP,
    ExerciseKind.INCLINE_PUSH_UP: ExerciseFamily.PUSH_UP,
    ExerciseKind.DECLINE_PUSH_UP: ExerciseFamily.PUSH_UP,
    ExerciseKind.DIAMOND_PUSH_UP: ExerciseFamily.PUSH_UP,
    ExerciseKind.WIDE_PUSH_UP: ExerciseFamily.PUSH_UP,
    ExerciseKind.SQUAT: ExerciseFamily.SQUAT,
    ExerciseKind.SUMO_SQUAT: ExerciseFamily.SQUAT,
    ExerciseKind.SPLIT_SQUAT_LEFT: ExerciseFamily.SQUAT,
    ExerciseKind.SPLIT_SQUAT_RIGHT: ExerciseFamily.SQUAT,
    ExerciseKind.CRUNCH: ExerciseFamily.CRUNCH,
    ExerciseKind.REVERSE_CRUNCH: ExerciseFamily.CRUNCH,
    ExerciseKind.DOUBLE_CRUNCH: ExerciseFamily.CRUNCH,
    ExerciseKind.SUPERMAN: ExerciseFamily.SUPERMAN,
}

_DISPLAY_NAMES: Dict[ExerciseKind, str] = {
    ExerciseKind.PUSH_UP: "Push-up",
    ExerciseKind.KNEE_PUSH_UP: "Knee Push-up",
    ExerciseKind.WALL_PUSH_UP: "Wall Push-up",
    ExerciseKind.INCLINE_PUSH_UP: "Incline Push-up",
    ExerciseKind.DECLINE_PUSH_UP: "Decline Push-up",
    ExerciseKind.DIAMOND_PUSH_UP: "Diamond Push-up",
    ExerciseKind.WIDE_PUSH_UP: "Wide Push-up",
    ExerciseKind.SQUAT: "Squat",
    ExerciseKind.SUMO_SQUAT: "Sumo Squat",
    ExerciseKind.SPLIT_SQUAT_LEFT: "Split Squat (left leg forward)",
    ExerciseKind.SPLIT_SQUAT_RIGHT: "Split Squat (right leg forward)",
    ExerciseKind.CRUNCH: "Crunch",
    ExerciseKind.REVERSE_CRUNCH: "Reverse Crunch",
    ExerciseKind.DOUBLE_CRUNCH: "Double Crunch",
    ExerciseKind.SUPERMAN: "Superman",
}


# =============================================================================
# Calibration tables
# =============================================================================

@dataclass(frozen=True)
class PushUpCalibration:
    # Elbow angle (degrees): >= up_min_angle is fully up, <= down_max_angle fully down
    up_min_angle: float
    down_max_angle: float
    # Shoulder-over-wrist height divided by torso height
    height_min: float
    height_max: float
    # Body line: shoulders-hips-(knees|ankles) angle target and tolerance
    alignment_target: float
    alignment_tolerance: float
    alignment_uses_knees: bool = False
    # Hand width / shoulder width
    ideal_hand_ratio: float = 1.25
    angle_weight: float = 0.9
    height_weight: float = 0.1
    min_visibility: float = 0.7


@dataclass(frozen=True)
class SquatCalibration:
    knee_angle_down: float = 90.0
    knee_angle_up: float = 175.0
    # Hip height above knee divided by shin height
    hip_height_down: float = 0.0
    hip_height_up: float = 1.2
    angle_weight: float = 0.6
    height_weight: float = 0.4
    min_visibility: float = 0.8
    ideal_stance_ratio: float = 1.1
    knee_tracking_gain: float = 10.0
    # Split squat only: front-to-back foot distance over front leg length
    ideal_stride_ratio: float = 0.8


@dataclass(frozen=True)
class CrunchCalibration:
    min_visibility: float = 0.65
    # Knees straighter than this means the user is not in crunch position
    max_knee_angle: float = 160.0
    # nose-shoulders-hips angle: 120 fully crunched, 180 lying flat
    torso_angle_up: float = 120.0
    torso_angle_down: float = 180.0
    # shoulders-hips-knees angle: 60 knees to chest, 120 extended
    hip_angle_up: float = 60.0
    hip_angle_down: float = 120.0
    ideal_knee_angle: float = 105.0
    knee_angle_tolerance: float = 45.0
    neck_angle_min: float = 140.0
    neck_angle_max: float = 180.0
    hip_level_gain: float = 20.0
    range_of_motion_max: float = 180.0


@dataclass(frozen=True)
class SupermanCalibration:
    min_nose_visibility: float = 0.6
    min_shoulder_visibility: float = 0.7
    # nose-shoulders-hips angle; extension beyond neutral counts as up
    back_angle_neutral: float = 170.0
    back_angle_max: float = 200.0
    arm_reach_min: float = 0.3
    arm_reach_max: float = 0.8
    leg_reach_min: float = 0.4
    leg_reach_max: float = 1.0


Calibration = Union[PushUpCalibration, SquatCalibration, CrunchCalibration, SupermanCalibration]


CALIBRATION: Dict[ExerciseKind, Calibration] = {
    ExerciseKind.PUSH_UP: PushUpCalibration(
        up_min_angle=150.0, down_max_angle=120.0,
        height_min=1.5, height_max=6.0,
        alignment_target=180.0, alignment_tolerance=45.0,
    ),
    ExerciseKind.KNEE_PUSH_UP: PushUpCalibration(
        up_min_angle=150.0, down_max_angle=120.0,
        height_min=1.5, height_max=6.0,
        # Slight bend at the hips is acceptable from the knees
        alignment_target=155.0, alignment_tolerance=45.0,
        alignment_uses_knees=True,
    ),
    ExerciseKind.WALL_PUSH_UP: PushUpCalibration(
        up_min_angle=140.0, down_max_angle=130.0,
        height_min=0.5, height_max=3.0,
        alignment_target=165.0, alignment_tolerance=30.0,
    ),
    ExerciseKind.INCLINE_PUSH_UP: PushUpCalibration(
        up_min_angle=155.0, down_max_angle=125.0,
        height_min=1.0, height_max=4.5,
        alignment_target=175.0, alignment_tolerance=50.0,
    ),
    ExerciseKind.DECLINE_PUSH_UP: PushUpCalibration(
        up_min_angle=145.0, down_max_angle=115.0,
        height_min=2.0, height_max=7.5,
        alignment_target=175.0, alignment_tolerance=50.0,
    ),
    ExerciseKind.DIAMOND_PUSH_UP: PushUpCalibration(
        up_min_angle=145.0, down_max_angle=115.0,
        height_min=1.5, height_max=6.0,
        alignment_target=180.0, alignment_tolerance=45.0,
        ideal_hand_ratio=0.3,
    ),
    ExerciseKind.WIDE_PUSH_UP: PushUpCalibration(
        up_min_angle=155.0, down_max_angle=125.0,
        height_min=1.5, height_max=6.0,
        alignment_target=180.0, alignment_tolerance=45.0,
        ideal_hand_ratio=1.8,
    ),
    ExerciseKind.SQUAT: SquatCalibration(),
    # Facing the camera: both legs averaged, only knees gate visibility
    ExerciseKind.SUMO_SQUAT: SquatCalibration(min_visibility=0.7, ideal_stance_ratio=1.55),
    ExerciseKind.SPLIT_SQUAT_LEFT: SquatCalibration(
        angle_weight=0.7, height_weight=0.3, knee_tracking_gain=15.0,
    ),
    ExerciseKind.SPLIT_SQUAT_RIGHT: SquatCalibration(
        angle_weight=0.7, height_weight=0.3, knee_tracking_gain=15.0,
    ),
    ExerciseKind.CRUNCH: CrunchCalibration(),
    ExerciseKind.REVERSE_CRUNCH: CrunchCalibration(),
    ExerciseKind.DOUBLE_CRUNCH: CrunchCalibration(),
    ExerciseKind.SUPERMAN: SupermanCalibration(),
}


def exercise_for_name(name: str) -> Optional[ExerciseKind]:
    """
    Map a free-form exercise name (e.g. from a generated workout plan) to a
    classifier variant. Returns None when no classifier applies.
    """
    lowered = name.lower()

    if "push" in lowered and "up" in lowered:
        if "knee" in lowered:
            return ExerciseKind.KNEE_PUSH_UP
        if "wall" in lowered:
            return ExerciseKind.WALL_PUSH_UP
        if "incline" in lowered:
            return ExerciseKind.INCLINE_PUSH_UP
        if "decline" in lowered:
            return ExerciseKind.DECLINE_PUSH_UP
        if "diamond" in lowered or "close" in lowered:
            return ExerciseKind.DIAMOND_PUSH_UP
        if "wide" in lowered:
            return ExerciseKind.WIDE_PUSH_UP
        return ExerciseKind.PUSH_UP

    if "squat" in lowered:
        if "sumo" in lowered:
            return ExerciseKind.SUMO_SQUAT
        if "split" in lowered:
            if "right" in lowered:
                return ExerciseKind.SPLIT_SQUAT_RIGHT
            return ExerciseKind.SPLIT_SQUAT_LEFT
        return ExerciseKind.SQUAT

    if "crunch" in lowered:
        if "reverse" in lowered:
            return ExerciseKind.REVERSE_CRUNCH
        if "double" in lowered:
            return ExerciseKind.DOUBLE_CRUNCH
        return ExerciseKind.CRUNCH

    if "superman" in lowered:
        return ExerciseKind.SUPERMAN

    return None
