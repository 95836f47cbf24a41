"""
Tests for the trajectory function.

Positions are a pure function of the birth record and the query instant.
"""

import math

import pytest

from aura.chrono import Freshness, Vector3, freshness, highlight_intensity, position_at
from aura.chrono.trajectory import FRESH_WINDOW_MS, age_seconds

T0 = 1_700_000_000_000


class TestPositionAt:
    """Tests for position_at."""

    @pytest.mark.scenario
    def test_position_at_birth_is_initial_position(self, make_record):
        record = make_record(position=(30, 30, 30), velocity=(1, 0, 0), timestamp=T0)
        assert position_at(record, T0) == Vector3(30.0, 30.0, 30.0)

    @pytest.mark.scenario
    def test_drift_only_on_moving_axis(self, make_record):
        record = make_record(position=(30, 30, 30), velocity=(1, 0, 0), timestamp=T0)
        p = position_at(record, T0 + 1000)

        assert p.x != 30.0
        assert p.x == pytest.approx(30 + 10 * math.sin(1.0) + 2.0)
        assert p.y == 30.0
        assert p.z == 30.0

    def test_before_birth_has_no_position(self, make_record):
        record = make_record(timestamp=T0)
        assert position_at(record, T0 - 1) is None
        assert position_at(record, T0 - 60_000) is None

    def test_deterministic(self, make_record):
        record = make_record(velocity=(0.7, -1.3, 2.1))
        first = position_at(record, T0 + 12_345)
        second = position_at(record, T0 + 12_345)
        assert first == second

    def test_continuous_over_small_steps(self, make_record):
        record = make_record(velocity=(2.4, -2.4, 1.1))
        previous = position_at(record, T0)
        for ms in range(1, 5000, 7):
            current = position_at(record, T0 + ms)
            step = math.dist(previous.as_tuple(), current.as_tuple())
            assert step < 1.0
            previous = current

    def test_formula_on_all_axes(self, make_record):
        vx, vy, vz = 0.5, -1.5, 2.0
        record = make_record(position=(1, 2, 3), velocity=(vx, vy, vz))
        age = 3.25
        p = position_at(record, T0 + 3250)

        assert p.x == pytest.approx(1 + 10 * math.sin(age * vx) + 2 * age * vx)
        assert p.y == pytest.approx(2 + 10 * (math.cos(age * vy) - 1) + 2 * age * vy)
        assert p.z == pytest.approx(3 + 10 * math.sin(age * vz) + 2 * age * vz)

    def test_y_is_plain_cosine_shifted_by_amplitude(self, make_record):
        vy = 1.7
        record = make_record(position=(0, 4, 0), velocity=(0, vy, 0))
        for ms in (0, 400, 2500, 9000):
            age = ms / 1000
            plain = 4 + 10 * math.cos(age * vy) + 2 * age * vy
            assert position_at(record, T0 + ms).y + 10 == pytest.approx(plain)

    def test_zero_velocity_stays_put(self, make_record):
        record = make_record(position=(-5, 7, 11), velocity=(0, 0, 0))
        assert position_at(record, T0 + 3_600_000) == Vector3(-5.0, 7.0, 11.0)

    def test_age_seconds(self, make_record):
        record = make_record(timestamp=T0)
        assert age_seconds(record, T0 + 1500) == 1.5


class TestFreshness:
    """Tests for the freshness window and highlight intensity."""

    def test_unborn(self, make_record):
        record = make_record(timestamp=T0)
        state = freshness(record, T0 - 1)
        assert state is Freshness.UNBORN
        assert highlight_intensity(state) == 0.0

    def test_fresh_inside_window(self, make_record):
        record = make_record(timestamp=T0)
        for ms in (1, 500, FRESH_WINDOW_MS - 1):
            state = freshness(record, T0 + ms)
            assert state is Freshness.FRESH
            assert highlight_intensity(state) == 3.0

    def test_settled_at_and_after_window(self, make_record):
        record = make_record(timestamp=T0)
        for ms in (FRESH_WINDOW_MS, 10_000):
            state = freshness(record, T0 + ms)
            assert state is Freshness.SETTLED
            assert highlight_intensity(state) == 1.0

    def test_exact_birth_instant_is_not_fresh(self, make_record):
        record = make_record(timestamp=T0)
        assert freshness(record, T0) is Freshness.SETTLED
