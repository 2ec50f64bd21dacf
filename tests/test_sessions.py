"""Tests for counting sessions and the frame quality gate."""

import pytest

from repcoach.config import Settings
from repcoach.cv.exercise_types import ExerciseKind
from repcoach.sessions import SessionLimitError, SessionNotFoundError, SessionRegistry

from tests.conftest import build_frame, frame_payload, squat_points


@pytest.fixture
def registry():
    return SessionRegistry(Settings())


def test_create_resolves_free_form_names(registry):
    session = registry.create("Split Squats (right leg)")
    assert session.kind == ExerciseKind.SPLIT_SQUAT_RIGHT
    assert registry.ids() == [session.id]


def test_unknown_exercise(registry):
    with pytest.raises(ValueError):
        registry.create("Plank")


def test_session_limit():
    registry = SessionRegistry(Settings(max_sessions=1))
    registry.create("squat")
    with pytest.raises(SessionLimitError):
        registry.create("squat")


def test_get_and_remove(registry):
    session = registry.create("crunch")
    assert registry.get(session.id) is session

    registry.remove(session.id)
    with pytest.raises(SessionNotFoundError):
        registry.get(session.id)
    with pytest.raises(SessionNotFoundError):
        registry.remove(session.id)


class TestFrameGate:
    def test_low_visibility_frames_are_skipped(self, registry):
        session = registry.create("squat")
        result = session.submit_frame(build_frame(squat_points(True), visibility=0.4))

        assert not result.accepted
        assert session.skipped_frames == 1
        assert session.processed_frames == 0

    def test_gate_uses_configured_visibility_threshold(self):
        registry = SessionRegistry(Settings(landmark_visibility_threshold=0.3))
        session = registry.create("squat")
        result = session.submit_frame(build_frame(squat_points(True), visibility=0.4))

        assert result.accepted
        assert session.processed_frames == 1

    def test_no_pose_payload_is_skipped(self, registry):
        session = registry.create("squat")
        result = session.submit_payload({"landmarks": [], "worldLandmarks": [], "timestamp": 0})

        assert not result.accepted
        assert session.skipped_frames == 1

    def test_wrong_landmark_count_raises(self, registry):
        session = registry.create("squat")
        payload = frame_payload(build_frame())
        payload["landmarks"] = payload["landmarks"][:10]

        with pytest.raises(ValueError):
            session.submit_payload(payload)

    def test_completed_rep_reported_once(self, registry):
        session = registry.create("squat")
        completed = []
        t = 0.0
        for standing, frames in [(True, 10), (False, 10), (True, 10)]:
            for _ in range(frames):
                result = session.submit_payload(frame_payload(build_frame(squat_points(standing), timestamp=t)))
                assert result.accepted
                if result.completed_rep:
                    completed.append(result.completed_rep)
                t += 0.1

        assert [rep.rep_number for rep in completed] == [1]
        assert session.processed_frames == 30

    def test_reset_clears_frame_counters(self, registry):
        session = registry.create("squat")
        session.submit_frame(build_frame(visibility=0.0))
        state = session.reset()

        assert state.total_reps == 0
        assert session.skipped_frames == 0
