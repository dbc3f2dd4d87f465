"""
Motion profile generation.

Two families of generators:

* constant bounds: closed-form trapezoidal profiles, or S-curve profiles when
  a jerk limit is given;
* displacement-varying bounds: a sampled forward pass from the start and a
  backward pass from the goal, merged into the pointwise slower of the two.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable

import numpy as np

from trajgen.config import PEAK_VELOCITY_ITERATIONS, PROFILE_RESOLUTION, TRACE, TRACE_ENABLED
from trajgen.utils.errors import UnsatisfiableConstraint
from trajgen.utils.numeric import epsilon_equals, smallest_nonnegative, solve_quadratic

from .motion_profile import MotionProfile, MotionProfileBuilder
from .motion_state import MotionSegment, MotionState

logger = logging.getLogger(__name__)

VelocityConstraint = Callable[[float, float], float]
"""(s, ds) -> maximum profile velocity at displacement s."""

AccelerationConstraint = Callable[[float, float, float], float]
"""(s, ds, last_vel) -> maximum velocity reachable at s from last_vel over ds."""


# Constant bounds


def generate_simple_motion_profile(
    start: MotionState,
    goal: MotionState,
    max_vel: float,
    max_accel: float,
    max_jerk: float = 0.0,
    overshoot: bool = False,
) -> MotionProfile:
    """
    Time-optimal profile between two states under constant limits.

    Args:
        start: Start state
        goal: Goal state
        max_vel: Maximum velocity (> 0)
        max_accel: Maximum acceleration (> 0)
        max_jerk: Maximum jerk; 0 selects a trapezoidal profile
        overshoot: Allow passing the goal and coming back when the goal
            velocity cannot be reached within the available distance

    Returns:
        MotionProfile from start to goal
    """
    if max_vel <= 0.0 or max_accel <= 0.0:
        raise ValueError(f"max_vel and max_accel must be positive, got {max_vel}, {max_accel}")

    # plan the flipped profile when moving backwards
    if goal.x < start.x:
        return generate_simple_motion_profile(
            start.flipped(), goal.flipped(), max_vel, max_accel, max_jerk, overshoot
        ).flipped()

    if epsilon_equals(max_jerk, 0.0):
        return _trapezoid_profile(start, goal, max_vel, max_accel, overshoot)
    return _scurve_profile(start, goal, max_vel, max_accel, max_jerk, overshoot)


def _goal_in_reverse_time(goal: MotionState) -> MotionState:
    # the goal seen from a clock running backwards: velocity and jerk flip sign
    return MotionState(goal.x, -goal.v, goal.a, -goal.j)


def _trapezoid_profile(
    start: MotionState, goal: MotionState, max_vel: float, max_accel: float, overshoot: bool
) -> MotionProfile:
    distance = goal.x - start.x
    if distance > 0.0:
        required_accel = (goal.v * goal.v - start.v * start.v) / (2 * distance)
    elif epsilon_equals(goal.v, start.v):
        required_accel = 0.0
    else:
        required_accel = math.copysign(math.inf, goal.v * goal.v - start.v * start.v)

    accel_profile = generate_accel_profile(start, max_vel, max_accel)
    decel_profile = generate_accel_profile(_goal_in_reverse_time(goal), -max_vel, max_accel).reversed()
    no_coast = accel_profile + decel_profile
    remaining = goal.x - no_coast.end().x

    if remaining >= 0.0:
        # accelerate, cruise, decelerate
        return (
            MotionProfileBuilder(start)
            .append_profile(accel_profile)
            .append_acceleration_control(0.0, remaining / max_vel)
            .append_profile(decel_profile)
            .build()
        )

    if abs(required_accel) > max_accel:
        if overshoot:
            return no_coast + generate_simple_motion_profile(
                no_coast.end(), goal, max_vel, max_accel, overshoot=True
            )
        # single segment at whatever acceleration meets the goal velocity
        dt = (goal.v - start.v) / required_accel
        return MotionProfileBuilder(start).append_acceleration_control(required_accel, dt).build()

    if start.v > max_vel and goal.v > max_vel:
        # decelerate, then accelerate
        roots = solve_quadratic(
            -max_accel,
            2 * start.v,
            (goal.v * goal.v - start.v * start.v) / (2 * max_accel) - goal.x + start.x,
        )
        dt1 = smallest_nonnegative(roots)
        # from the dip at start.v - max_accel * dt1 back up to goal.v
        dt3 = (goal.v - start.v) / max_accel + dt1
        return (
            MotionProfileBuilder(start)
            .append_acceleration_control(-max_accel, dt1)
            .append_acceleration_control(max_accel, dt3)
            .build()
        )

    # accelerate, then decelerate without reaching max_vel
    roots = solve_quadratic(
        max_accel,
        2 * start.v,
        (start.v * start.v - goal.v * goal.v) / (2 * max_accel) - goal.x + start.x,
    )
    dt1 = smallest_nonnegative(roots)
    # from the peak at start.v + max_accel * dt1 down to goal.v
    dt3 = (start.v - goal.v) / max_accel + dt1
    return (
        MotionProfileBuilder(start)
        .append_acceleration_control(max_accel, dt1)
        .append_acceleration_control(-max_accel, dt3)
        .build()
    )


def _scurve_profile(
    start: MotionState,
    goal: MotionState,
    max_vel: float,
    max_accel: float,
    max_jerk: float,
    overshoot: bool,
) -> MotionProfile:
    reverse_goal = _goal_in_reverse_time(goal)
    accel_profile = generate_accel_profile(start, max_vel, max_accel, max_jerk)
    # deceleration is acceleration played backwards from the goal
    decel_profile = generate_accel_profile(reverse_goal, -max_vel, max_accel, max_jerk).reversed()
    no_coast = accel_profile + decel_profile
    remaining = goal.x - no_coast.end().x

    if remaining >= 0.0:
        return (
            MotionProfileBuilder(start)
            .append_profile(accel_profile)
            .append_jerk_control(0.0, remaining / max_vel)
            .append_profile(decel_profile)
            .build()
        )

    # max_vel is never reached; bisect on the peak velocity instead
    upper = max_vel
    lower = 0.0
    for _ in range(PEAK_VELOCITY_ITERATIONS):
        peak_vel = (upper + lower) / 2
        search_accel = generate_accel_profile(start, peak_vel, max_accel, max_jerk)
        search_decel = generate_accel_profile(reverse_goal, -peak_vel, max_accel, max_jerk).reversed()
        search_profile = search_accel + search_decel
        error = goal.x - search_profile.end().x
        if epsilon_equals(error, 0.0):
            return search_profile
        if error > 0.0:
            lower = peak_vel
        else:
            upper = peak_vel

    if overshoot:
        return no_coast + generate_simple_motion_profile(
            no_coast.end(), goal, max_vel, max_accel, max_jerk, overshoot=True
        )
    logger.warning(
        f"Jerk-limited profile from x={start.x:.4f} to x={goal.x:.4f} is infeasible; "
        f"falling back to an acceleration-limited profile"
    )
    return generate_simple_motion_profile(start, goal, max_vel, max_accel, overshoot=False)


def generate_accel_profile(
    start: MotionState, max_vel: float, max_accel: float, max_jerk: float = 0.0
) -> MotionProfile:
    """
    Fastest profile taking start to max_vel (which may be below start.v).

    With a jerk limit this is the three-phase S-curve ramp: jerk up, hold
    acceleration, jerk down, shortened when max_vel is close.
    """
    if epsilon_equals(max_jerk, 0.0):
        dt = abs(start.v - max_vel) / max_accel
        builder = MotionProfileBuilder(start)
        if start.v > max_vel:
            builder.append_acceleration_control(-max_accel, dt)
        else:
            builder.append_acceleration_control(max_accel, dt)
        return builder.build()

    # first phase: bring acceleration to max_accel
    if start.a > max_accel:
        dt1 = (start.a - max_accel) / max_jerk
        dv1 = start.a * dt1 - 0.5 * max_jerk * dt1 * dt1
    else:
        dt1 = (max_accel - start.a) / max_jerk
        dv1 = start.a * dt1 + 0.5 * max_jerk * dt1 * dt1

    # third phase: bring acceleration back to zero
    dt3 = max_accel / max_jerk
    dv3 = max_accel * dt3 - 0.5 * max_jerk * dt3 * dt3

    dv2 = max_vel - start.v - dv1 - dv3

    if dv2 < 0.0:
        # no constant acceleration phase
        if start.a > max_accel or (start.v - max_vel) > (start.a * start.a) / (2 * max_jerk):
            # already too fast: ramp down to -max_accel first
            new_dt1 = (start.a + max_accel) / max_jerk
            new_dv1 = start.a * new_dt1 - 0.5 * max_jerk * new_dt1 * new_dt1
            new_dv2 = max_vel - start.v - new_dv1 + dv3
            if new_dv2 > 0.0:
                # that decelerates too much; find a shallower dip
                roots = solve_quadratic(
                    -max_jerk, 2 * start.a, start.v - max_vel - start.a * start.a / (2 * max_jerk)
                )
                final_dt1 = smallest_nonnegative(roots)
                final_dt3 = final_dt1 - start.a / max_jerk
                return (
                    MotionProfileBuilder(start)
                    .append_jerk_control(-max_jerk, final_dt1)
                    .append_jerk_control(max_jerk, final_dt3)
                    .build()
                )
            new_dt2 = new_dv2 / -max_accel
            return (
                MotionProfileBuilder(start)
                .append_jerk_control(-max_jerk, new_dt1)
                .append_jerk_control(0.0, new_dt2)
                .append_jerk_control(max_jerk, dt3)
                .build()
            )

        # cut the constant acceleration phase and shorten the ramps
        roots = solve_quadratic(max_jerk, 2 * start.a, start.v - max_vel + start.a * start.a / (2 * max_jerk))
        new_dt1 = smallest_nonnegative(roots)
        new_dt3 = new_dt1 + start.a / max_jerk
        return (
            MotionProfileBuilder(start)
            .append_jerk_control(max_jerk, new_dt1)
            .append_jerk_control(-max_jerk, new_dt3)
            .build()
        )

    dt2 = dv2 / max_accel
    builder = MotionProfileBuilder(start)
    if start.a > max_accel:
        builder.append_jerk_control(-max_jerk, dt1)
    else:
        builder.append_jerk_control(max_jerk, dt1)
    return builder.append_jerk_control(0.0, dt2).append_jerk_control(-max_jerk, dt3).build()


# Displacement-varying bounds


def generate_motion_profile(
    start: MotionState,
    goal: MotionState,
    velocity_constraint: VelocityConstraint,
    acceleration_constraint: AccelerationConstraint,
    deceleration_constraint: AccelerationConstraint | None = None,
    resolution: float = PROFILE_RESOLUTION,
) -> MotionProfile:
    """
    Profile from start to goal under displacement-dependent limits.

    The displacement range is sampled every ~resolution units. A forward pass
    accelerates as hard as `acceleration_constraint` allows from the start; a
    backward pass does the same from the goal with `deceleration_constraint`.
    Both respect the sampled velocity caps. Their pointwise minimum, split at
    crossing points, becomes the profile.

    Args:
        start: Start state (only x and v are used)
        goal: Goal state (only x and v are used)
        velocity_constraint: (s, ds) -> velocity cap
        acceleration_constraint: (s, ds, last_vel) -> reachable velocity
        deceleration_constraint: Same as acceleration_constraint, for the
            backward pass; defaults to acceleration_constraint
        resolution: Sampling step in displacement units

    Raises:
        UnsatisfiableConstraint: a sample admits no feasible velocity
    """
    if deceleration_constraint is None:
        deceleration_constraint = acceleration_constraint

    if goal.x < start.x:
        return generate_motion_profile(
            start.flipped(),
            goal.flipped(),
            lambda s, ds: velocity_constraint(-s, ds),
            lambda s, ds, last_vel: acceleration_constraint(-s, ds, last_vel),
            lambda s, ds, last_vel: deceleration_constraint(-s, ds, last_vel),
            resolution,
        ).flipped()

    length = goal.x - start.x
    if epsilon_equals(length, 0.0):
        return MotionProfile([MotionSegment(start, 0.0)])

    samples = max(2, math.ceil(length / resolution))
    s = np.linspace(0.0, length, samples)
    step = length / (samples - 1)

    velocity_caps = [velocity_constraint(float(x), step) for x in s + start.x]

    forward_states = _forward_pass(start, s + start.x, step, velocity_caps, acceleration_constraint)

    backward_raw = _forward_pass(goal, goal.x - s, -step, velocity_caps[::-1], deceleration_constraint)
    backward_states = []
    for state, ds in reversed(backward_raw):
        end = _after_displacement(state, ds)
        backward_states.append((MotionState(end.x, end.v, end.a), -ds))

    forward_states.append((goal, 0.0))
    backward_states.append((goal, 0.0))

    final_states = _merge(forward_states, backward_states)

    segments = []
    for state, dx in final_states[:-1]:
        segments.append(MotionSegment(state, _segment_time(state, dx)))

    profile = MotionProfile(segments)
    logger.debug(
        f"Dynamic profile: {samples} samples over {length:.4f}, "
        f"{len(segments)} segments, duration {profile.duration():.4f}s"
    )
    return profile


def _forward_pass(
    start: MotionState,
    displacements: np.ndarray,
    ds: float,
    velocity_caps: list[float],
    acceleration_constraint: AccelerationConstraint,
) -> list[tuple[MotionState, float]]:
    """
    Accelerate as hard as allowed from start, one sample at a time.

    `ds` is negative for the backward pass; the returned pairs hold each
    piece's start state and signed displacement.
    """
    states: list[tuple[MotionState, float]] = []
    last = start
    for displacement, max_vel in zip(displacements[:-1], velocity_caps[:-1]):
        displacement = float(displacement)
        if last.v >= max_vel:
            # already at the cap, so coast
            state = MotionState(displacement, max_vel, 0.0)
            states.append((state, ds))
            last = _after_displacement(state, ds)
            continue

        final_vel = acceleration_constraint(displacement, abs(ds), last.v)
        accel = (final_vel * final_vel - last.v * last.v) / (2 * ds)
        if TRACE_ENABLED:
            logger.log(
                TRACE,
                "forward_pass x=%.4f v=%.4f cap=%.4f reach=%.4f",
                displacement,
                last.v,
                max_vel,
                final_vel,
            )
        if final_vel <= max_vel:
            state = MotionState(displacement, last.v, accel)
            states.append((state, ds))
            last = _after_displacement(state, ds)
        else:
            # reach the cap part way through the sample, then coast
            accel_dx = (max_vel * max_vel - last.v * last.v) / (2 * accel)
            accel_state = MotionState(displacement, last.v, accel)
            coast_state = MotionState(displacement + accel_dx, max_vel, 0.0)
            states.append((accel_state, accel_dx))
            states.append((coast_state, ds - accel_dx))
            last = _after_displacement(coast_state, ds - accel_dx)
    return states


def _merge(
    forward_states: list[tuple[MotionState, float]],
    backward_states: list[tuple[MotionState, float]],
) -> list[tuple[MotionState, float]]:
    """Pointwise minimum of the two passes, aligning pieces of unequal length."""
    final_states: list[tuple[MotionState, float]] = []
    i = 0
    while i < len(forward_states) and i < len(backward_states):
        forward_start, forward_dx = forward_states[i]
        backward_start, backward_dx = backward_states[i]

        # split the longer piece so both lists stay aligned
        if not epsilon_equals(forward_dx, backward_dx):
            if forward_dx > backward_dx:
                forward_states.insert(
                    i + 1, (_after_displacement(forward_start, backward_dx), forward_dx - backward_dx)
                )
                forward_dx = backward_dx
            else:
                backward_states.insert(
                    i + 1, (_after_displacement(backward_start, forward_dx), backward_dx - forward_dx)
                )
                backward_dx = forward_dx

        forward_end = _after_displacement(forward_start, forward_dx)
        backward_end = _after_displacement(backward_start, backward_dx)

        if forward_start.v <= backward_start.v:
            if forward_end.v <= backward_end.v:
                final_states.append((forward_start, forward_dx))
            else:
                crossing = _intersection(forward_start, backward_start, forward_dx)
                final_states.append((forward_start, crossing))
                final_states.append((_after_displacement(backward_start, crossing), backward_dx - crossing))
        else:
            if forward_end.v >= backward_end.v:
                final_states.append((backward_start, backward_dx))
            else:
                crossing = _intersection(forward_start, backward_start, forward_dx)
                final_states.append((backward_start, crossing))
                final_states.append((_after_displacement(forward_start, crossing), forward_dx - crossing))
        i += 1
    return final_states


def _segment_time(state: MotionState, dx: float) -> float:
    if epsilon_equals(state.a, 0.0):
        if epsilon_equals(dx, 0.0):
            return 0.0
        if epsilon_equals(state.v, 0.0):
            raise UnsatisfiableConstraint(f"zero velocity cap at x={state.x:.4f} leaves the goal unreachable")
        return dx / state.v
    discriminant = state.v * state.v + 2 * state.a * dx
    if epsilon_equals(discriminant, 0.0):
        return -state.v / state.a
    root = math.sqrt(max(discriminant, 0.0))
    positive = (root - state.v) / state.a
    if positive >= 0.0:
        return positive
    return (-root - state.v) / state.a


def _after_displacement(state: MotionState, ds: float) -> MotionState:
    discriminant = state.v * state.v + 2 * state.a * ds
    if epsilon_equals(discriminant, 0.0) or discriminant < 0.0:
        return MotionState(state.x + ds, 0.0, state.a)
    return MotionState(state.x + ds, math.sqrt(discriminant), state.a)


def _intersection(state1: MotionState, state2: MotionState, dx: float) -> float:
    """Displacement at which the two constant-acceleration pieces reach equal speed."""
    denominator = 2 * state2.a - 2 * state1.a
    if epsilon_equals(denominator, 0.0):
        return dx
    crossing = (state1.v * state1.v - state2.v * state2.v) / denominator
    return min(max(crossing, 0.0), dx)
