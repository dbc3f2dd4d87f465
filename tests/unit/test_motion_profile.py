import math

import numpy as np
import pytest

from trajgen import UnsatisfiableConstraint
from trajgen.profile import (
    MotionProfile,
    MotionProfileBuilder,
    MotionSegment,
    MotionState,
    generate_accel_profile,
    generate_motion_profile,
    generate_simple_motion_profile,
)


def approx_equal(a, b, tol=1e-6):
    return abs(a - b) <= tol


def _assert_bounds(profile, max_vel, max_accel, max_jerk=None, dt=0.005):
    samples = profile.sample(dt)
    assert np.all(np.abs(samples["velocity"]) <= max_vel + 1e-6)
    assert np.all(np.abs(samples["acceleration"]) <= max_accel + 1e-6)
    if max_jerk is not None:
        assert np.all(np.abs(samples["jerk"]) <= max_jerk + 1e-6)
    return samples


def _constant_limits(max_vel, max_accel):
    def velocity(s, ds):
        return max_vel

    def acceleration(s, ds, last_vel):
        return math.sqrt(last_vel * last_vel + 2 * max_accel * ds)

    return velocity, acceleration


def test_motion_state_integration():
    state = MotionState(1.0, 2.0, 3.0, 6.0)
    later = state.get(1.0)
    assert approx_equal(later.x, 1.0 + 2.0 + 1.5 + 1.0)
    assert approx_equal(later.v, 2.0 + 3.0 + 3.0)
    assert approx_equal(later.a, 9.0)
    assert later.j == 6.0
    assert state.flipped() == MotionState(-1.0, -2.0, -3.0, -6.0)
    assert state.stationary() == MotionState(1.0, 0.0, 0.0, 0.0)


def test_motion_segment_reversed_plays_backwards():
    segment = MotionSegment(MotionState(0.0, 1.0, 2.0, 3.0), 0.5)
    reversed_segment = segment.reversed()
    end = segment.end()
    assert approx_equal(reversed_segment.start.x, end.x)
    assert approx_equal(reversed_segment.end().x, 0.0)
    assert approx_equal(reversed_segment.end().v, -1.0)
    assert approx_equal(reversed_segment.end().a, 2.0)


def test_profile_time_queries_clamp():
    profile = MotionProfileBuilder(MotionState(0.0, 0.0)).append_acceleration_control(2.0, 1.0).build()
    assert profile.get(-1.0) == MotionState(0.0, 0.0, 2.0)
    assert approx_equal(profile.get(5.0).x, 1.0)
    assert approx_equal(profile.get(5.0).v, 2.0)
    assert approx_equal(profile(0.5).x, 0.25)


def test_profile_requires_segments():
    with pytest.raises(ValueError):
        MotionProfile([])


def test_profile_builder_jerk_and_append_profile():
    ramp = MotionProfileBuilder(MotionState(0.0, 0.0)).append_jerk_control(6.0, 1.0).build()
    assert approx_equal(ramp.end().x, 1.0)
    assert approx_equal(ramp.end().v, 3.0)
    assert approx_equal(ramp.end().a, 6.0)

    combined = ramp + ramp
    assert len(combined) == 2
    assert approx_equal(combined.duration(), 2.0)
    # the second copy replays its jerk from where the first one ended
    assert approx_equal(combined.end().a, 12.0)


@pytest.mark.parametrize(
    "goal,max_vel,max_accel,expected_duration",
    [
        (10.0, 5.0, 10.0, 2.5),  # trapezoidal
        (1.0, 5.0, 10.0, 2 * math.sqrt(0.1)),  # triangular
        (-10.0, 5.0, 10.0, 2.5),  # reverse direction trapezoidal
    ],
)
def test_trapezoid_profile_endpoints_and_duration(goal, max_vel, max_accel, expected_duration):
    profile = generate_simple_motion_profile(MotionState(0.0, 0.0), MotionState(goal, 0.0), max_vel, max_accel)
    assert approx_equal(profile.start().x, 0.0)
    assert approx_equal(profile.end().x, goal)
    assert approx_equal(profile.end().v, 0.0)
    assert approx_equal(profile.duration(), expected_duration)

    samples = _assert_bounds(profile, max_vel, max_accel)
    diffs = np.diff(samples["position"])
    if goal >= 0.0:
        assert np.all(diffs >= -1e-9)
    else:
        assert np.all(diffs <= 1e-9)


def test_trapezoid_with_nonzero_boundary_velocities():
    profile = generate_simple_motion_profile(MotionState(0.0, 2.0), MotionState(20.0, 3.0), 5.0, 2.0)
    assert approx_equal(profile.start().v, 2.0)
    assert approx_equal(profile.end().x, 20.0)
    assert approx_equal(profile.end().v, 3.0)
    _assert_bounds(profile, 5.0, 2.0)


@pytest.mark.parametrize(
    "start,goal",
    [
        (MotionState(0.0, 0.0), MotionState(1.0, 3.0)),  # ends faster than it starts
        (MotionState(0.0, 3.0), MotionState(1.0, 0.0)),
        (MotionState(0.0, 6.0), MotionState(0.5, 5.5)),  # both above max_vel
    ],
)
def test_trapezoid_without_cruise_meets_goal_velocity(start, goal):
    profile = generate_simple_motion_profile(start, goal, 5.0, 10.0)
    assert approx_equal(profile.end().x, goal.x)
    assert approx_equal(profile.end().v, goal.v)
    assert np.all(np.abs(profile.sample(0.001)["acceleration"]) <= 10.0 + 1e-6)


def test_simple_profile_rejects_non_positive_limits():
    with pytest.raises(ValueError):
        generate_simple_motion_profile(MotionState(0.0, 0.0), MotionState(1.0, 0.0), 0.0, 1.0)


def test_accel_profile_reaches_target_velocity():
    profile = generate_accel_profile(MotionState(0.0, 0.0), 5.0, 10.0, 50.0)
    assert approx_equal(profile.end().v, 5.0)
    assert approx_equal(profile.end().a, 0.0)
    # jerk up, hold, jerk down
    assert len(profile) == 3
    assert approx_equal(profile.duration(), 0.7)

    slowdown = generate_accel_profile(MotionState(0.0, 5.0), 1.0, 2.0)
    assert approx_equal(slowdown.end().v, 1.0)
    assert approx_equal(slowdown.duration(), 2.0)


def test_scurve_profile_with_cruise():
    profile = generate_simple_motion_profile(MotionState(0.0, 0.0), MotionState(10.0, 0.0), 5.0, 10.0, 50.0)
    assert approx_equal(profile.end().x, 10.0)
    assert approx_equal(profile.end().v, 0.0)
    assert approx_equal(profile.duration(), 2.7)
    _assert_bounds(profile, 5.0, 10.0, 50.0)


def test_scurve_profile_without_cruise():
    profile = generate_simple_motion_profile(MotionState(0.0, 0.0), MotionState(1.0, 0.0), 5.0, 10.0, 50.0)
    assert approx_equal(profile.end().x, 1.0)
    assert approx_equal(profile.end().v, 0.0, tol=1e-4)
    samples = _assert_bounds(profile, 5.0, 10.0, 50.0)
    # never reaches the velocity limit over such a short distance
    assert samples["velocity"].max() < 5.0


def test_profile_get_by_distance():
    profile = generate_simple_motion_profile(MotionState(0.0, 0.0), MotionState(10.0, 0.0), 5.0, 10.0)
    state = profile.get_by_distance(5.0)
    assert approx_equal(state.x, 5.0, tol=1e-4)
    assert approx_equal(state.v, 5.0, tol=1e-4)


def test_profile_reversed_and_flipped():
    profile = generate_simple_motion_profile(MotionState(0.0, 0.0), MotionState(10.0, 0.0), 5.0, 10.0)
    reversed_profile = profile.reversed()
    assert approx_equal(reversed_profile.duration(), profile.duration())
    assert approx_equal(reversed_profile.start().x, 10.0)
    assert approx_equal(reversed_profile.end().x, 0.0)
    assert approx_equal(reversed_profile.get(1.0).v, -5.0)

    flipped = profile.flipped()
    assert approx_equal(flipped.end().x, -10.0)
    assert approx_equal(flipped.get(1.0).v, -5.0)


def test_profile_sample_keys_and_grid():
    profile = generate_simple_motion_profile(MotionState(0.0, 0.0), MotionState(10.0, 0.0), 5.0, 10.0)
    samples = profile.sample(0.1)
    assert set(samples) == {"time", "position", "velocity", "acceleration", "jerk"}
    assert samples["time"][0] == 0.0
    assert approx_equal(samples["time"][-1], profile.duration())
    assert len(samples["time"]) >= 26
    assert np.all(np.diff(samples["time"]) <= 0.1 + 1e-9)


def test_dynamic_profile_matches_trapezoid_under_constant_limits():
    velocity, acceleration = _constant_limits(5.0, 10.0)
    profile = generate_motion_profile(MotionState(0.0, 0.0), MotionState(10.0, 0.0), velocity, acceleration)
    assert approx_equal(profile.start().x, 0.0)
    assert approx_equal(profile.end().x, 10.0, tol=1e-6)
    assert approx_equal(profile.end().v, 0.0, tol=1e-6)
    assert approx_equal(profile.duration(), 2.5, tol=1e-2)

    samples = profile.sample(0.01)
    assert np.all(np.diff(samples["position"]) >= -1e-9)
    assert np.all(samples["velocity"] <= 5.0 + 1e-6)


def test_dynamic_profile_respects_local_velocity_cap():
    def velocity(s, ds):
        return 2.0 if 4.0 <= s <= 6.0 else 5.0

    _, acceleration = _constant_limits(5.0, 10.0)
    profile = generate_motion_profile(MotionState(0.0, 0.0), MotionState(10.0, 0.0), velocity, acceleration)
    assert approx_equal(profile.end().x, 10.0, tol=1e-6)
    assert profile.get_by_distance(5.0).v <= 2.0 + 1e-6
    # still reaches the global cap away from the slow zone
    assert profile.sample(0.01)["velocity"].max() > 4.0


def test_dynamic_profile_backwards_goal():
    velocity, acceleration = _constant_limits(5.0, 10.0)
    profile = generate_motion_profile(MotionState(0.0, 0.0), MotionState(-10.0, 0.0), velocity, acceleration)
    assert approx_equal(profile.end().x, -10.0, tol=1e-6)
    samples = profile.sample(0.01)
    assert np.all(samples["velocity"] <= 1e-6)
    assert np.all(np.diff(samples["position"]) <= 1e-9)


def test_dynamic_profile_zero_length():
    velocity, acceleration = _constant_limits(5.0, 10.0)
    profile = generate_motion_profile(MotionState(3.0, 0.0), MotionState(3.0, 0.0), velocity, acceleration)
    assert len(profile) == 1
    assert profile.duration() == 0.0


def test_dynamic_profile_zero_velocity_cap_is_unsatisfiable():
    _, acceleration = _constant_limits(5.0, 10.0)
    with pytest.raises(UnsatisfiableConstraint):
        generate_motion_profile(MotionState(0.0, 0.0), MotionState(10.0, 0.0), lambda s, ds: 0.0, acceleration)


@pytest.mark.slow
def test_dynamic_profile_fine_resolution_long_path():
    velocity, acceleration = _constant_limits(30.0, 30.0)
    profile = generate_motion_profile(
        MotionState(0.0, 0.0), MotionState(500.0, 0.0), velocity, acceleration, resolution=0.01
    )
    assert approx_equal(profile.end().x, 500.0, tol=1e-6)
    assert approx_equal(profile.duration(), 500.0 / 30.0 + 1.0, tol=1e-2)
