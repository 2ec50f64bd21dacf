"""Tests for the debounced repetition state machine."""

import numpy as np
import pytest

from repcoach.config import Settings
from repcoach.cv.exercise_classifier import PhaseProbabilities
from repcoach.cv.exercise_types import ExerciseKind
from repcoach.cv.quality import RepQuality
from repcoach.cv.rep_counter import (
    ExerciseState,
    RepCountingConfig,
    create_rep_counter,
)

from tests.conftest import build_frame, squat_points

UP = PhaseProbabilities(up=0.9, down=0.1)
DOWN = PhaseProbabilities(up=0.1, down=0.9)
UNSURE = PhaseProbabilities(up=0.5, down=0.5)


class Feeder:
    """Feeds probabilities at a fixed frame interval."""

    def __init__(self, counter, step: float = 0.05):
        self.counter = counter
        self.step = step
        self.t = 0.0

    def feed(self, probabilities, frames: int = 1, metrics=None):
        state = None
        for _ in range(frames):
            state = self.counter.process_probabilities(probabilities, self.t, metrics)
            self.t += self.step
        return state

    def wait(self, seconds: float):
        self.t += seconds


@pytest.fixture
def counter():
    return create_rep_counter(ExerciseKind.SQUAT)


@pytest.fixture
def feeder(counter):
    return Feeder(counter)


class TestConfig:
    def test_defaults(self):
        config = RepCountingConfig()
        assert config.probability_threshold == 0.65
        assert config.state_stability_frames == 3
        assert config.min_rep_interval_ms == 800
        assert config.max_history_size == 100

    def test_is_immutable(self):
        with pytest.raises(AttributeError):
            RepCountingConfig().probability_threshold = 0.9

    @pytest.mark.parametrize("kwargs", [
        {"probability_threshold": 0.5},
        {"probability_threshold": 1.2},
        {"state_stability_frames": 0},
        {"min_rep_interval_ms": -1},
        {"max_history_size": 0},
    ])
    def test_rejects_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            RepCountingConfig(**kwargs)

    def test_from_settings_with_overrides(self):
        settings = Settings(state_stability_frames=5)
        config = RepCountingConfig.from_settings(settings, min_rep_interval_ms=500, quality_threshold=None)
        assert config.state_stability_frames == 5
        assert config.min_rep_interval_ms == 500
        assert config.quality_threshold == settings.quality_threshold


def test_initial_state_is_up(counter):
    assert counter.current_state == ExerciseState.UP
    assert counter.total_reps == 0


class TestDebounce:
    def test_one_frame_short_does_not_transition(self, counter, feeder):
        feeder.feed(DOWN, frames=2)
        feeder.feed(UP)
        assert counter.current_state == ExerciseState.UP

    def test_stable_frames_transition(self, counter, feeder):
        feeder.feed(DOWN, frames=3)
        assert counter.current_state == ExerciseState.DOWN

    def test_uncertain_frames_settle_in_transitioning(self, counter, feeder):
        feeder.feed(UNSURE, frames=3)
        assert counter.current_state == ExerciseState.TRANSITIONING

    def test_jitter_is_rejected(self, counter, feeder):
        transitions = []
        counter.state_channel.subscribe(lambda s: transitions.append(s.current_state))

        for i in range(50):
            feeder.feed(UP if i % 2 else DOWN)

        assert set(transitions) == {ExerciseState.UP}
        assert counter.total_reps == 0


class TestRepetitions:
    def test_full_cycle_counts_one_rep(self, counter, feeder):
        reps = []
        counter.rep_channel.subscribe(reps.append)

        feeder.feed(DOWN, frames=3)
        feeder.wait(counter.config.min_rep_interval_ms / 1000 + 0.001)
        feeder.feed(UP, frames=3)

        assert len(reps) == 1
        assert reps[0].rep_number == 1
        assert counter.total_reps == 1

    def test_duration_runs_from_down_transition(self, counter, feeder):
        feeder.feed(DOWN, frames=3)  # accepted at t=0.10
        feeder.wait(1.0)
        state = feeder.feed(UP, frames=3)  # accepted at t=1.25

        assert state.last_rep.duration_ms == pytest.approx(1150.0)

    def test_rapid_second_cycle_is_suppressed(self, counter, feeder):
        feeder.feed(DOWN, frames=3)
        feeder.feed(UP, frames=3)
        assert counter.total_reps == 1

        # Second cycle completes ~100ms after the first rep
        feeder.step = 0.015
        feeder.feed(DOWN, frames=3)
        feeder.feed(UP, frames=3)

        assert counter.total_reps == 1

    def test_refractory_blocks_all_transitions(self, counter, feeder):
        feeder.feed(DOWN, frames=3)
        feeder.feed(UP, frames=3)
        feeder.feed(DOWN, frames=3)
        assert counter.current_state == ExerciseState.UP

    def test_counts_again_after_interval(self, counter, feeder):
        for _ in range(3):
            feeder.feed(DOWN, frames=3)
            feeder.feed(UP, frames=3)
            feeder.wait(1.0)

        assert counter.total_reps == 3
        assert [r.rep_number for r in counter.history] == [1, 2, 3]

    def test_total_reps_is_monotonic(self, counter, feeder):
        rng = np.random.default_rng(3)
        previous = 0
        for _ in range(500):
            up = float(rng.uniform(0, 1))
            state = feeder.feed(PhaseProbabilities(up=up, down=1 - up))
            assert state.total_reps >= previous
            previous = state.total_reps

    def test_rep_record_scores(self, counter, feeder):
        metrics = {"knee_tracking": 1.0, "squat_depth": 0.5, "stance_width": float("nan")}
        feeder.feed(DOWN, frames=3, metrics=metrics)
        state = feeder.feed(UP, frames=3, metrics=metrics)

        rep = state.last_rep
        assert rep.form_score == pytest.approx(0.75)
        assert rep.confidence == pytest.approx(0.8)
        # 0.4 * 0.75 + 0.7 * 0.8 = 0.86
        assert rep.quality == RepQuality.GOOD
        assert {cue.metric for cue in rep.cues} == {"squat_depth"}

    def test_cycle_through_transitioning_has_no_stale_start(self, counter, feeder):
        feeder.feed(DOWN, frames=3)
        feeder.wait(1.0)
        first = feeder.feed(UP, frames=3).last_rep
        assert first.duration_ms == pytest.approx(1150.0)

        feeder.wait(10.0)
        feeder.feed(UNSURE, frames=3)
        feeder.feed(DOWN, frames=3)
        second = feeder.feed(UP, frames=3).last_rep

        assert second.rep_number == 2
        assert second.duration_ms == 0.0

    def test_rep_metrics_are_read_only(self, counter, feeder):
        feeder.feed(DOWN, frames=3, metrics={"squat_depth": 1.0})
        state = feeder.feed(UP, frames=3, metrics={"squat_depth": 1.0})
        rep = state.last_rep
        before = state.average_form_score

        with pytest.raises(TypeError):
            rep.form_metrics["squat_depth"] = 0.0
        with pytest.raises(TypeError):
            counter.endpoints[-1].form_metrics["squat_depth"] = 0.0

        assert feeder.feed(UP).average_form_score == pytest.approx(before)
        assert rep.to_dict()["form_metrics"] == {"squat_depth": 1.0}


class TestEndpoints:
    def test_snapshots_only_at_stable_endpoints(self, counter, feeder):
        feeder.feed(UNSURE, frames=3)
        assert len(counter.endpoints) == 0

        feeder.feed(DOWN, frames=3)
        assert [e.state for e in counter.endpoints] == [ExerciseState.DOWN]

    def test_history_is_bounded(self):
        counter = create_rep_counter(ExerciseKind.SQUAT, RepCountingConfig(max_history_size=4))
        feeder = Feeder(counter)
        for _ in range(5):
            feeder.feed(DOWN, frames=3)
            feeder.feed(UP, frames=3)
            feeder.wait(1.0)

        assert counter.total_reps == 5
        assert len(counter.endpoints) == 4


class TestChannels:
    def test_state_published_every_frame(self, counter, feeder):
        states = []
        counter.state_channel.subscribe(states.append)
        feeder.feed(DOWN, frames=7)
        assert len(states) == 7

    def test_history_tuple_reused_between_reps(self, counter, feeder):
        feeder.feed(DOWN, frames=3)
        first = feeder.feed(UP, frames=3)
        later = feeder.feed(UP, frames=5)

        assert later.history is first.history
        assert [rep.rep_number for rep in later.history] == [1]
        assert "history" not in later.to_dict(include_history=False)

    def test_reset_keeps_config_and_publishes(self):
        config = RepCountingConfig(state_stability_frames=2)
        counter = create_rep_counter("Bodyweight Squats", config)
        feeder = Feeder(counter)
        feeder.feed(DOWN, frames=2)
        feeder.feed(UP, frames=2)
        assert counter.total_reps == 1

        states = []
        counter.state_channel.subscribe(states.append)
        counter.reset()

        assert counter.config is config
        assert counter.total_reps == 0
        assert counter.history == []
        assert counter.current_state == ExerciseState.UP
        assert states[-1].total_reps == 0

    def test_close_stops_publishing(self, counter, feeder):
        states = []
        counter.state_channel.subscribe(states.append)
        counter.close()
        feeder.feed(DOWN)
        assert states == []


def test_counts_squats_from_pose_frames():
    counter = create_rep_counter(ExerciseKind.SQUAT)
    t = 0.0
    for standing, frames in [(True, 10), (False, 10), (True, 10)]:
        for _ in range(frames):
            counter.process_frame(build_frame(squat_points(standing), timestamp=t))
            t += 0.1

    assert counter.total_reps == 1
    rep = counter.history[0]
    assert set(rep.form_metrics) == {"knee_tracking", "squat_depth", "stance_width", "overall_visibility"}
    assert 0.0 <= rep.form_score <= 1.0


def test_unknown_exercise_name():
    with pytest.raises(ValueError):
        create_rep_counter("Plank")


def test_statistics(counter, feeder):
    for _ in range(2):
        feeder.feed(DOWN, frames=3, metrics={"squat_depth": 1.0})
        feeder.feed(UP, frames=3, metrics={"squat_depth": 1.0})
        feeder.wait(1.0)

    stats = counter.get_statistics()
    assert stats.total_reps == 2
    assert stats.average_confidence == pytest.approx(0.8)
    assert stats.average_form_score == pytest.approx(1.0)
    assert sum(stats.quality_distribution.values()) == 2
    assert stats.best_rep is not None
