"""Shared pose builders and fixtures."""

from typing import Dict, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from repcoach.cv.pose_models import NUM_LANDMARKS, PoseFrame, PoseLandmark, PoseLandmarkType as L

Point = Tuple[float, float, float]

DEFAULT_POINT: Point = (0.5, 0.5, 0.0)


def build_frame(
    points: Optional[Dict[L, Point]] = None,
    timestamp: float = 0.0,
    visibility: float = 1.0,
    visibility_overrides: Optional[Dict[L, float]] = None,
) -> PoseFrame:
    """Frame with identical world and image coordinates."""
    points = points or {}
    visibility_overrides = visibility_overrides or {}

    landmarks = []
    for idx in range(NUM_LANDMARKS):
        x, y, z = points.get(L(idx), DEFAULT_POINT)
        landmarks.append(PoseLandmark(x=x, y=y, z=z, visibility=visibility_overrides.get(L(idx), visibility)))

    return PoseFrame(world_landmarks=landmarks, image_landmarks=list(landmarks), timestamp=timestamp)


def both_sides(**joints: Point) -> Dict[L, Point]:
    """Place LEFT_<joint> and RIGHT_<joint> at the same point."""
    points = {}
    for name, point in joints.items():
        points[L["LEFT_" + name.upper()]] = point
        points[L["RIGHT_" + name.upper()]] = point
    return points


def push_up_points(up: bool) -> Dict[L, Point]:
    if up:
        # Straight arm, shoulders well above the wrists
        return both_sides(
            shoulder=(0.5, 0.4, 0.0), elbow=(0.5, 0.5, 0.0), wrist=(0.5, 0.6, 0.0), hip=(0.8, 0.43, 0.0),
        )
    # Elbow bent to 90 degrees
    return both_sides(
        shoulder=(0.5, 0.5, 0.0), elbow=(0.6, 0.5, 0.0), wrist=(0.6, 0.6, 0.0), hip=(0.8, 0.52, 0.0),
    )


def squat_points(standing: bool) -> Dict[L, Point]:
    if standing:
        return both_sides(hip=(0.5, 0.5, 0.0), knee=(0.5, 0.7, 0.0), ankle=(0.5, 0.9, 0.0))
    # Thighs horizontal, hips at knee level
    return both_sides(hip=(0.3, 0.7, 0.0), knee=(0.5, 0.7, 0.0), ankle=(0.5, 0.9, 0.0))


def crunch_points(torso_up: bool, knees_in: bool) -> Dict[L, Point]:
    points = both_sides(
        shoulder=(0.3, 0.7, 0.0) if torso_up else (0.3, 0.8, 0.0),
        hip=(0.5, 0.8, 0.0),
        knee=(0.4, 0.65, 0.0) if knees_in else (0.6, 0.6, 0.0),
        ankle=(0.7, 0.8, 0.0),
    )
    points[L.NOSE] = (0.35, 0.6, 0.0) if torso_up else (0.1, 0.8, 0.0)
    return points


def frame_payload(frame: PoseFrame) -> Dict:
    """Detector bridge payload (camelCase, millisecond timestamp)."""
    return {
        "landmarks": [lm.to_dict() for lm in frame.image_landmarks],
        "worldLandmarks": [lm.to_dict() for lm in frame.world_landmarks],
        "timestamp": frame.timestamp * 1000,
    }


@pytest.fixture
def client():
    from repcoach.main import app

    with TestClient(app) as test_client:
        yield test_client
