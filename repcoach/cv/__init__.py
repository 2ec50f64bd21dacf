"""
Rep counting engine for bodyweight exercises.

PIPELINE COMPONENTS:
1. PoseFrame: 33 MediaPipe landmarks in world and image space
2. geometry: Joint angles, midpoints, range normalization, dominant side
3. ExerciseClassifier: Per-variant up/down probabilities + form metrics
4. RepCounter: Debounced state machine with refractory guard
5. quality: Rep grading and session statistics
6. form_feedback: Coaching cues for weak form metrics
7. EventChannel: State and repetition event streams

Usage:
    from repcoach.cv import create_rep_counter

    counter = create_rep_counter("sumo_squat")
    counter.rep_channel.subscribe(lambda rep: print(f"Rep {rep.rep_number}"))
    for frame in frames:
        counter.process_frame(frame)
"""

from repcoach.cv.pose_models import PoseFrame, PoseLandmark, PoseLandmarkType, NUM_LANDMARKS
from repcoach.cv.exercise_types import ExerciseFamily, ExerciseKind, exercise_for_name
from repcoach.cv.exercise_classifier import (
    ExerciseClassifier,
    PhaseProbabilities,
    NEUTRAL,
    create_exercise_classifier,
)
from repcoach.cv.events import EventChannel, Subscription
from repcoach.cv.form_feedback import FormCue, feedback_for
from repcoach.cv.quality import RepQuality, SessionStatistics
from repcoach.cv.rep_counter import (
    ExerciseState,
    RepCounter,
    RepCountingConfig,
    RepCountingState,
    RepetitionData,
    create_rep_counter,
)

__all__ = [
    # Input
    "PoseFrame",
    "PoseLandmark",
    "PoseLandmarkType",
    "NUM_LANDMARKS",

    # Exercises
    "ExerciseFamily",
    "ExerciseKind",
    "exercise_for_name",

    # Classification
    "ExerciseClassifier",
    "PhaseProbabilities",
    "NEUTRAL",
    "create_exercise_classifier",

    # Counting
    "ExerciseState",
    "RepCounter",
    "RepCountingConfig",
    "RepCountingState",
    "RepetitionData",
    "create_rep_counter",

    # Quality
    "RepQuality",
    "SessionStatistics",
    "FormCue",
    "feedback_for",

    # Events
    "EventChannel",
    "Subscription",
]
