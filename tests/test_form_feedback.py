"""Tests for form coaching cues."""

from repcoach.cv.exercise_types import ExerciseKind
from repcoach.cv.form_feedback import cue_table, feedback_for


def test_cues_sorted_worst_first():
    cues = feedback_for(ExerciseKind.SQUAT, {
        "knee_tracking": 0.5,
        "squat_depth": 0.2,
        "stance_width": 0.9,
        "overall_visibility": 1.0,
    })
    assert [c.metric for c in cues] == ["squat_depth", "knee_tracking"]


def test_thresholds_are_strict():
    assert feedback_for(ExerciseKind.SQUAT, {"squat_depth": 0.7}) == []


def test_visibility_cue_for_every_kind():
    for kind in ExerciseKind:
        assert "overall_visibility" in cue_table(kind)

    cues = feedback_for(ExerciseKind.SUPERMAN, {"overall_visibility": 0.3})
    assert cues[0].message == "Should ensure the whole body is clearly visible in the camera"


def test_variant_specific_tables():
    assert "sumo_stance_width" in cue_table(ExerciseKind.SUMO_SQUAT)
    assert "front_knee_tracking" in cue_table(ExerciseKind.SPLIT_SQUAT_RIGHT)
    assert "knee_symmetry" in cue_table(ExerciseKind.REVERSE_CRUNCH)
    assert "body_alignment" in cue_table(ExerciseKind.KNEE_PUSH_UP)


def test_missing_metrics_are_ignored():
    assert feedback_for(ExerciseKind.CRUNCH, {}) == []
