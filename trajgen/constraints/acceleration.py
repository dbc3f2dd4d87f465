"""
Acceleration constraints.

An acceleration constraint returns the set of profile velocities reachable at
the next sample, given the velocity at the previous one:

    get(deriv, last_deriv, ds, last_vel) -> list[tuple[float, float]]

The result is a list of closed intervals (lo, hi). Composite constraints
intersect the interval sets of their members.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Union

from trajgen.geometry import Pose2d
from trajgen.utils.errors import UnsatisfiableConstraint

Interval = tuple[float, float]
IntervalSet = list[Interval]


class TrajectoryAccelerationConstraint(ABC):
    """Base class for acceleration constraints; plain callables with the same signature work too."""

    @abstractmethod
    def get(self, deriv: Pose2d, last_deriv: Pose2d, ds: float, last_vel: float) -> IntervalSet:
        ...

    def __call__(self, deriv: Pose2d, last_deriv: Pose2d, ds: float, last_vel: float) -> IntervalSet:
        return self.get(deriv, last_deriv, ds, last_vel)


AccelerationConstraintLike = Union[
    TrajectoryAccelerationConstraint, Callable[[Pose2d, Pose2d, float, float], IntervalSet]
]


def intersect_intervals(intervals: Sequence[Interval], interval: Interval) -> IntervalSet:
    """Intersect every interval of a set with one interval, dropping empty results."""
    result = []
    lo, hi = interval
    for current_lo, current_hi in intervals:
        new_lo = max(lo, current_lo)
        new_hi = min(hi, current_hi)
        if new_lo <= new_hi:
            result.append((new_lo, new_hi))
    return result


class TranslationalAccelerationConstraint(TrajectoryAccelerationConstraint):
    """Velocities reachable from last_vel over ds with |a| <= max_accel."""

    def __init__(self, max_accel: float):
        self.max_accel = max_accel

    def get(self, deriv, last_deriv, ds, last_vel):
        p1 = last_vel * last_vel
        p2 = 2 * self.max_accel * ds
        lo = math.sqrt(p1 - p2) if p1 > p2 else 0.0
        return [(lo, math.sqrt(p1 + p2))]

    def __repr__(self):
        return f"TranslationalAccelerationConstraint(max_accel={self.max_accel})"


class AngularAccelerationConstraint(TrajectoryAccelerationConstraint):
    """
    Velocities for which the heading acceleration stays within max_ang_accel.

    The heading rate is curvature times velocity, so a change in curvature
    between samples bounds the reachable velocities. Depending on the sign of
    the curvature the feasible set is one interval or two.
    """

    def __init__(self, max_ang_accel: float):
        self.max_ang_accel = max_ang_accel

    def get(self, deriv, last_deriv, ds, last_vel):
        cur = deriv.heading
        last = last_deriv.heading
        if cur == last:
            return [(0.0, math.inf)]

        if cur == 0.0:
            if last == 0.0 or last_vel == 0.0:
                return [(0.0, math.inf)]
            v1_hat = -(2 * ds * self.max_ang_accel) / (last * last_vel) - last_vel
            v2_hat = (2 * ds * self.max_ang_accel) / (last * last_vel) - last_vel
            if last > 0.0:
                return [(v1_hat, v2_hat)]
            return [(v2_hat, v1_hat)]

        part0 = (last - cur) * last_vel
        part1 = ((last + cur) * last_vel) ** 2
        part2 = 8 * cur * self.max_ang_accel * ds
        denom = 1 / (2 * cur)

        if cur > 0.0:
            v1 = (part0 + math.sqrt(part1 + part2)) * denom
            v2 = (part0 - math.sqrt(part1 + part2)) * denom
            if part1 - part2 < 0.0:
                return [(v2, v1)]
            v1_star = (part0 + math.sqrt(part1 - part2)) * denom
            v2_star = (part0 - math.sqrt(part1 - part2)) * denom
            return [(v2, v2_star), (v1_star, v1)]

        v1_star = (part0 + math.sqrt(part1 - part2)) * denom
        v2_star = (part0 - math.sqrt(part1 - part2)) * denom
        if part1 + part2 < 0.0:
            return [(v1_star, v2_star)]
        v1 = (part0 + math.sqrt(part1 + part2)) * denom
        v2 = (part0 - math.sqrt(part1 + part2)) * denom
        return [(v1_star, v1), (v2, v2_star)]

    def __repr__(self):
        return f"AngularAccelerationConstraint(max_ang_accel={self.max_ang_accel})"


class MinAccelerationConstraint(TrajectoryAccelerationConstraint):
    """Intersection of several acceleration constraints."""

    def __init__(self, constraints: Sequence[AccelerationConstraintLike]):
        if not constraints:
            raise ValueError("MinAccelerationConstraint needs at least one constraint")
        self.constraints = list(constraints)

    def get(self, deriv, last_deriv, ds, last_vel):
        sets = [constraint(deriv, last_deriv, ds, last_vel) for constraint in self.constraints]
        current = list(sets[0])
        for interval_set in sets[1:]:
            intersected: IntervalSet = []
            for interval in interval_set:
                intersected.extend(intersect_intervals(current, interval))
            if not intersected:
                raise UnsatisfiableConstraint(
                    f"no velocity satisfies every acceleration constraint (last_vel={last_vel:.4f}, ds={ds:.4f})"
                )
            current = intersected
        return current

    def __repr__(self):
        return f"MinAccelerationConstraint({self.constraints!r})"
