"""
Geometric helpers for landmark analysis.

All functions are pure and never raise on degenerate geometry: coincident
points produce a 90 degree angle and an empty range
normalizes to 0.
"""

from enum import Enum
from typing import Sequence

import numpy as np

from repcoach.cv.pose_models import PoseLandmark, PoseLandmarkType


class BodySide(Enum):
    """Side of the body facing the camera."""
    LEFT = "left"
    RIGHT = "right"


_LEFT_SIDE = (
    PoseLandmarkType.LEFT_SHOULDER,
    PoseLandmarkType.LEFT_HIP,
    PoseLandmarkType.LEFT_KNEE,
    PoseLandmarkType.LEFT_ANKLE,
)
_RIGHT_SIDE = (
    PoseLandmarkType.RIGHT_SHOULDER,
    PoseLandmarkType.RIGHT_HIP,
    PoseLandmarkType.RIGHT_KNEE,
    PoseLandmarkType.RIGHT_ANKLE,
)


def angle(a: PoseLandmark, mid: PoseLandmark, b: PoseLandmark) -> float:
    """3D angle at `mid` formed by mid->a and mid->b, in degrees [0, 180]."""
    ma = a.to_array() - mid.to_array()
    mb = b.to_array() - mid.to_array()

    denom = np.linalg.norm(ma) * np.linalg.norm(mb)
    if denom == 0:
        return 90.0

    cos_angle = np.clip(np.dot(ma, mb) / denom, -1.0, 1.0)
    return float(np.degrees(np.arccos(cos_angle)))


def midpoint(p: PoseLandmark, q: PoseLandmark) -> PoseLandmark:
    """Coordinate-wise average; visibility is the lower of the two."""
    return PoseLandmark(
        x=(p.x + q.x) / 2,
        y=(p.y + q.y) / 2,
        z=(p.z + q.z) / 2,
        visibility=min(p.visibility, q.visibility),
    )


def vertical_distance(p: PoseLandmark, q: PoseLandmark) -> float:
    """Absolute difference of the vertical (image y) coordinate."""
    return abs(p.y - q.y)


def planar_distance(p: PoseLandmark, q: PoseLandmark) -> float:
    """Euclidean distance in the x/y plane."""
    return float(np.hypot(p.x - q.x, p.y - q.y))


def normalize(value: float, min_val: float, max_val: float) -> float:
    """Linear rescale of value from [min_val, max_val] to [0, 1], clamped."""
    if max_val == min_val:
        return 0.0
    return float(np.clip((value - min_val) / (max_val - min_val), 0.0, 1.0))


def clamp01(value: float) -> float:
    return float(np.clip(value, 0.0, 1.0))


def dominant_side(landmarks: Sequence[PoseLandmark]) -> BodySide:
    """
    Side of the body more reliably visible to the camera.

    Sums shoulder, hip, knee and ankle visibility per side; ties go left.
    """
    left = sum(landmarks[idx].visibility for idx in _LEFT_SIDE)
    right = sum(landmarks[idx].visibility for idx in _RIGHT_SIDE)
    return BodySide.LEFT if left >= right else BodySide.RIGHT


def mean_visibility(landmarks: Sequence[PoseLandmark]) -> float:
    if not landmarks:
        return 0.0
    return float(np.mean([lm.visibility for lm in landmarks]))
