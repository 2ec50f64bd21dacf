"""
Pose landmark data model consumed by the rep counting engine.

The external detector (MediaPipe Pose Landmarker) produces 33 body joints per
frame in two parallel coordinate spaces:

- Image landmarks: x/y normalized to the frame (0-1, y grows downward),
  z is depth relative to the hips. Used for screen-relative distances.
- World landmarks: real-world scale coordinates centred on the hips.
  Used for joint angles, which must not depend on camera distance.

Both arrays share the ordering of PoseLandmarkType.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, List, Optional, Sequence

import numpy as np


NUM_LANDMARKS = 33

# Visibility above which a landmark counts as visible for the frame gate
VISIBLE_THRESHOLD = 0.5


class PoseLandmarkType(IntEnum):
    """MediaPipe Pose landmark indices."""
    NOSE = 0
    LEFT_EYE_INNER = 1
    LEFT_EYE = 2
    LEFT_EYE_OUTER = 3
    RIGHT_EYE_INNER = 4
    RIGHT_EYE = 5
    RIGHT_EYE_OUTER = 6
    LEFT_EAR = 7
    RIGHT_EAR = 8
    MOUTH_LEFT = 9
    MOUTH_RIGHT = 10
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_PINKY = 17
    RIGHT_PINKY = 18
    LEFT_INDEX = 19
    RIGHT_INDEX = 20
    LEFT_THUMB = 21
    RIGHT_THUMB = 22
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28
    LEFT_HEEL = 29
    RIGHT_HEEL = 30
    LEFT_FOOT_INDEX = 31
    RIGHT_FOOT_INDEX = 32

    @property
    def landmark_name(self) -> str:
        """Snake-case joint name, e.g. 'left_shoulder'."""
        return self.name.lower()


@dataclass(frozen=True)
class PoseLandmark:
    """Single joint sample with 3D position and visibility."""
    x: float
    y: float
    z: float
    visibility: float  # Confidence score (0-1)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PoseLandmark":
        return cls(
            x=float(data["x"]),
            y=float(data["y"]),
            z=float(data.get("z", 0.0)),
            visibility=float(data.get("visibility", 0.0)),
        )

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z, "visibility": self.visibility}

    def to_array(self) -> np.ndarray:
        """Convert to numpy array [x, y, z]."""
        return np.array([self.x, self.y, self.z], dtype=float)

    @property
    def is_visible(self) -> bool:
        return self.visibility > VISIBLE_THRESHOLD


def _coerce_landmarks(values: Sequence[Any], label: str) -> List[PoseLandmark]:
    landmarks = [
        v if isinstance(v, PoseLandmark) else PoseLandmark.from_dict(v)
        for v in values
    ]
    if len(landmarks) != NUM_LANDMARKS:
        raise ValueError(
            f"{label} must contain {NUM_LANDMARKS} landmarks, got {len(landmarks)}"
        )
    return landmarks


@dataclass
class PoseFrame:
    """
    One sampling instant from the pose detector.

    Both landmark arrays must hold exactly 33 entries. A wrong length is a
    programming error on the producer side and fails immediately.
    """
    world_landmarks: List[PoseLandmark]
    image_landmarks: List[PoseLandmark]
    timestamp: float  # Seconds
    frame_number: Optional[int] = None

    def __post_init__(self):
        self.world_landmarks = _coerce_landmarks(self.world_landmarks, "world_landmarks")
        self.image_landmarks = _coerce_landmarks(self.image_landmarks, "image_landmarks")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PoseFrame":
        """
        Build a frame from the detector payload.

        Accepts camelCase keys as emitted by the mobile detector bridge
        ({"landmarks", "worldLandmarks", "timestamp"} with a millisecond
        timestamp) or snake_case keys with a timestamp in seconds.
        """
        if "worldLandmarks" in data:
            world = data["worldLandmarks"]
            image = data["landmarks"]
            timestamp = float(data["timestamp"]) / 1000.0
        else:
            world = data["world_landmarks"]
            image = data["image_landmarks"]
            timestamp = float(data["timestamp"])

        return cls(
            world_landmarks=world,
            image_landmarks=image,
            timestamp=timestamp,
            frame_number=data.get("frame_number"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "world_landmarks": [lm.to_dict() for lm in self.world_landmarks],
            "image_landmarks": [lm.to_dict() for lm in self.image_landmarks],
            "timestamp": self.timestamp,
            "frame_number": self.frame_number,
        }

    def visible_landmark_count(self, threshold: float = VISIBLE_THRESHOLD) -> int:
        """Number of image landmarks with visibility strictly above `threshold`."""
        return sum(1 for lm in self.image_landmarks if lm.visibility > threshold)

    def world(self, landmark: PoseLandmarkType) -> PoseLandmark:
        return self.world_landmarks[landmark]

    def image(self, landmark: PoseLandmarkType) -> PoseLandmark:
        return self.image_landmarks[landmark]
