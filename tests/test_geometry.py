"""Tests for geometric utilities."""

import pytest

from repcoach.cv import geometry
from repcoach.cv.geometry import BodySide
from repcoach.cv.pose_models import PoseLandmark, PoseLandmarkType as L

from tests.conftest import build_frame


def lm(x, y, z=0.0, v=1.0):
    return PoseLandmark(x=x, y=y, z=z, visibility=v)


class TestAngle:
    def test_right_angle(self):
        assert geometry.angle(lm(1, 0), lm(0, 0), lm(0, 1)) == pytest.approx(90.0, abs=1e-4)

    def test_straight_line(self):
        assert geometry.angle(lm(-1, 0), lm(0, 0), lm(1, 0)) == pytest.approx(180.0, abs=1e-4)

    def test_uses_depth(self):
        assert geometry.angle(lm(1, 0, 0), lm(0, 0, 0), lm(0, 0, 1)) == pytest.approx(90.0, abs=1e-4)

    def test_coincident_points_are_right_angle(self):
        assert geometry.angle(lm(0, 0), lm(0, 0), lm(0, 0)) == 90.0

    @pytest.mark.parametrize("length", [1.0, 0.1, 0.01, 0.001])
    def test_short_limbs_keep_exact_extremes(self, length):
        assert geometry.angle(lm(-length, 0), lm(0, 0), lm(length, 0)) == pytest.approx(180.0, abs=1e-6)
        assert geometry.angle(lm(length, 0), lm(0, 0), lm(2 * length, 0)) == pytest.approx(0.0, abs=1e-6)


def test_midpoint_takes_lower_visibility():
    mid = geometry.midpoint(lm(0, 0, 0, 0.9), lm(1, 2, 4, 0.3))
    assert (mid.x, mid.y, mid.z) == (0.5, 1.0, 2.0)
    assert mid.visibility == 0.3


def test_vertical_distance_is_absolute():
    assert geometry.vertical_distance(lm(0, 0.8), lm(0, 0.3)) == pytest.approx(0.5)
    assert geometry.vertical_distance(lm(0, 0.3), lm(0, 0.8)) == pytest.approx(0.5)


class TestNormalize:
    def test_linear_inside_range(self):
        assert geometry.normalize(150, 100, 200) == pytest.approx(0.5)

    def test_clamped(self):
        assert geometry.normalize(50, 100, 200) == 0.0
        assert geometry.normalize(250, 100, 200) == 1.0

    def test_degenerate_range(self):
        assert geometry.normalize(5, 3, 3) == 0.0


class TestDominantSide:
    def test_ties_go_left(self):
        assert geometry.dominant_side(build_frame().world_landmarks) == BodySide.LEFT

    def test_more_visible_right(self):
        frame = build_frame(visibility_overrides={L.LEFT_SHOULDER: 0.1, L.LEFT_KNEE: 0.2})
        assert geometry.dominant_side(frame.world_landmarks) == BodySide.RIGHT

    def test_ankles_count(self):
        frame = build_frame(visibility_overrides={L.LEFT_ANKLE: 0.0})
        assert geometry.dominant_side(frame.world_landmarks) == BodySide.RIGHT


def test_mean_visibility():
    frame = build_frame(visibility=0.4)
    assert geometry.mean_visibility(frame.world_landmarks) == pytest.approx(0.4)
