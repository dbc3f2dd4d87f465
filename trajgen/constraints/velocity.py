"""
Velocity constraints.

A velocity constraint maps a path sample to the largest profile velocity
(path displacement per second) the robot may have there:

    get(pose, deriv, last_deriv, ds, base_robot_vel) -> float

`deriv` and `last_deriv` are the path derivatives at the sample and one step
`ds` earlier; `base_robot_vel` is an additive robot-frame velocity that the
profile velocity is layered on top of (zero for ordinary trajectories).
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Union

from trajgen.geometry import Pose2d, Vector2d
from trajgen.kinematics import (
    field_to_robot_velocity,
    mecanum_robot_to_wheel_velocities,
    swerve_robot_to_wheel_velocities,
    tank_robot_to_wheel_velocities,
)
from trajgen.utils.errors import UnsatisfiableConstraint


class TrajectoryVelocityConstraint(ABC):
    """Base class for velocity constraints; plain callables with the same signature work too."""

    @abstractmethod
    def get(
        self, pose: Pose2d, deriv: Pose2d, last_deriv: Pose2d, ds: float, base_robot_vel: Pose2d
    ) -> float:
        ...

    def __call__(
        self, pose: Pose2d, deriv: Pose2d, last_deriv: Pose2d, ds: float, base_robot_vel: Pose2d
    ) -> float:
        return self.get(pose, deriv, last_deriv, ds, base_robot_vel)


VelocityConstraintLike = Union[TrajectoryVelocityConstraint, Callable[[Pose2d, Pose2d, Pose2d, float, Pose2d], float]]


def _safe_sqrt(value: float) -> float:
    # negative radicands mean the corresponding branch places no bound
    if math.isnan(value) or value < 0.0:
        return math.inf
    return math.sqrt(value)


def _scale_limit(limit: float, base: float, rate: float) -> float:
    """Largest scale k with |base + k * rate| <= limit."""
    if rate == 0.0:
        return math.inf
    return max((limit - base) / rate, (-limit - base) / rate)


class TranslationalVelocityConstraint(TrajectoryVelocityConstraint):
    """Caps the robot's translational speed."""

    def __init__(self, max_vel: float):
        self.max_vel = max_vel

    def get(self, pose, deriv, last_deriv, ds, base_robot_vel):
        v0 = base_robot_vel.vec().norm()
        if v0 >= self.max_vel:
            raise UnsatisfiableConstraint(
                f"base velocity {v0:.4f} already exceeds the translational limit {self.max_vel:.4f}"
            )
        robot_deriv = field_to_robot_velocity(pose, deriv)
        translation = robot_deriv.vec().norm()
        if translation == 0.0:
            return math.inf
        b = base_robot_vel.vec().dot(robot_deriv.vec()) / translation
        return (math.sqrt(b * b - v0 * v0 + self.max_vel * self.max_vel) - b) / translation

    def __repr__(self):
        return f"TranslationalVelocityConstraint(max_vel={self.max_vel})"


class AngularVelocityConstraint(TrajectoryVelocityConstraint):
    """Caps the robot's angular speed (radians per second)."""

    def __init__(self, max_ang_vel: float):
        self.max_ang_vel = max_ang_vel

    def get(self, pose, deriv, last_deriv, ds, base_robot_vel):
        omega0 = base_robot_vel.heading
        if abs(omega0) >= self.max_ang_vel:
            raise UnsatisfiableConstraint(
                f"base angular velocity {omega0:.4f} already exceeds the limit {self.max_ang_vel:.4f}"
            )
        return _scale_limit(self.max_ang_vel, omega0, deriv.heading)

    def __repr__(self):
        return f"AngularVelocityConstraint(max_ang_vel={self.max_ang_vel})"


class AngularAccelVelocityConstraint(TrajectoryVelocityConstraint):
    """
    Caps velocity where the heading rate changes quickly along the path.

    Moving at velocity v across a change in heading derivative from
    `last_deriv.heading` to `deriv.heading` over ds demands angular
    acceleration; this bounds v so that the angular acceleration limit stays
    reachable while the translational acceleration limit is honored.
    """

    def __init__(self, max_ang_accel: float, max_translation_accel: float):
        self.max_ang_accel = max_ang_accel
        self.max_translation_accel = max_translation_accel

    def get(self, pose, deriv, last_deriv, ds, base_robot_vel):
        a_w = self.max_ang_accel
        a_t = self.max_translation_accel
        cur = deriv.heading
        last = last_deriv.heading
        if cur == last:
            return math.inf

        if cur > 0.0 and last >= 0.0:
            if cur > last:
                return _safe_sqrt(2 * ds * (a_w + a_t * cur) ** 2 / ((a_t * (cur + last) + 2 * a_w) * (cur - last)))
            return self._decreasing_positive(cur, last, ds)

        if cur < 0.0 and last <= 0.0:
            if cur > last:
                return self._increasing_negative(cur, last, ds)
            return _safe_sqrt(-2 * ds * (a_w - a_t * cur) ** 2 / ((a_t * (cur + last) - 2 * a_w) * (last - cur)))

        if cur < 0.0 and last > 0.0:
            v2_star = _safe_sqrt(2 * ds * a_w / last)
            precondition = (
                _safe_sqrt(-4 * cur * ds * (cur * a_t - a_w) / ((last + cur) * (last - cur)))
                if last + cur < 0.0
                else math.inf
            )
            threshold = max(
                min(
                    precondition,
                    _safe_sqrt(-2 * ds * (a_t * cur - a_w) ** 2 / ((a_t * (last + cur) - 2 * a_w) * (last - cur))),
                ),
                math.sqrt(2 * ds * a_t),
            )
            return min(threshold, v2_star)

        if cur > 0.0 and last < 0.0:
            v1_star = _safe_sqrt(-2 * ds * a_w / last)
            precondition = (
                _safe_sqrt(-4 * cur * ds * (cur * a_t + a_w) / ((last + cur) * (last - cur)))
                if last + cur > 0.0
                else math.inf
            )
            threshold = max(
                min(
                    precondition,
                    _safe_sqrt(-2 * ds * (a_t * cur + a_w) ** 2 / ((a_t * (last + cur) + 2 * a_w) * (last - cur))),
                ),
                math.sqrt(2 * ds * a_t),
            )
            return min(threshold, v1_star)

        # cur == 0
        if last > 0.0:
            return min(
                _safe_sqrt(2 * ds * a_w / last),
                max(math.sqrt(2 * ds * a_t), _safe_sqrt(-2 * ds * a_w * a_w / (last * (last * a_t - 2 * a_w)))),
            )
        if last < 0.0:
            return min(
                _safe_sqrt(-2 * ds * a_w / last),
                max(math.sqrt(2 * ds * a_t), _safe_sqrt(-2 * ds * a_w * a_w / (last * (last * a_t + 2 * a_w)))),
            )
        return math.inf

    def _decreasing_positive(self, cur: float, last: float, ds: float) -> float:
        a_w = self.max_ang_accel
        a_t = self.max_translation_accel
        threshold1 = math.sqrt(8 * cur * a_w * ds / (cur + last) ** 2)
        tmp1 = _safe_sqrt(4 * cur * ds * (cur * a_t + a_w) / (last - cur) ** 2)
        tmp2 = _safe_sqrt(2 * ds * (cur * a_t + a_w) ** 2 / ((last - cur) * (2 * a_w + (cur + last) * a_t)))
        threshold2 = min(tmp1, tmp2)
        threshold3 = min(math.sqrt(2 * a_w * ds / last), math.sqrt(2 * a_t * ds))
        tmp = min(
            2 * a_w * ds / last,
            2 * ds * (cur * a_t - a_w) ** 2 / ((last - cur) * (2 * a_w - (last + cur) * a_t)),
        )
        bound = -4 * cur * ds * (cur * a_t - a_w) / ((last - cur) * (last + cur))
        threshold4 = math.sqrt(tmp) if tmp > bound and tmp > 2 * a_t * ds else -math.inf
        return max(threshold1, threshold2, threshold3, threshold4)

    def _increasing_negative(self, cur: float, last: float, ds: float) -> float:
        a_w = self.max_ang_accel
        a_t = self.max_translation_accel
        threshold1 = math.sqrt(-8 * cur * a_w * ds / (cur + last) ** 2)
        tmp1 = _safe_sqrt(-4 * cur * ds * (a_w - cur * a_t) / ((last + cur) * (last - cur)))
        tmp2 = _safe_sqrt(-2 * ds * (a_w - cur * a_t) ** 2 / ((last - cur) * (2 * a_w - (cur + last) * a_t)))
        threshold2 = min(tmp1, tmp2)
        # last < cur < 0 here
        threshold3 = min(math.sqrt(-2 * a_w * ds / last), math.sqrt(2 * a_t * ds))
        tmp = min(
            -2 * a_w * ds / last,
            -2 * ds * (a_w + cur * a_t) ** 2 / ((last - cur) * (2 * a_w + (last + cur) * a_t)),
        )
        bound = -4 * cur * ds * (a_w + cur * a_t) / ((last - cur) * (last + cur))
        threshold4 = math.sqrt(tmp) if tmp > bound and tmp > 2 * a_t * ds else -math.inf
        return max(threshold1, threshold2, threshold3, threshold4)

    def __repr__(self):
        return (
            f"AngularAccelVelocityConstraint(max_ang_accel={self.max_ang_accel}, "
            f"max_translation_accel={self.max_translation_accel})"
        )


class DriveVelocityConstraint(TrajectoryVelocityConstraint):
    """
    Caps every wheel speed of a drivetrain.

    Args:
        max_wheel_vel: Maximum wheel surface speed
        robot_to_wheel_velocities: Maps a robot-frame velocity to wheel speeds
    """

    def __init__(self, max_wheel_vel: float, robot_to_wheel_velocities: Callable[[Pose2d], Sequence[float]]):
        self.max_wheel_vel = max_wheel_vel
        self.robot_to_wheel_velocities = robot_to_wheel_velocities

    @classmethod
    def for_mecanum(
        cls,
        max_wheel_vel: float,
        track_width: float,
        wheel_base: float | None = None,
        lateral_multiplier: float = 1.0,
    ) -> DriveVelocityConstraint:
        return cls(
            max_wheel_vel,
            lambda vel: mecanum_robot_to_wheel_velocities(vel, track_width, wheel_base, lateral_multiplier),
        )

    @classmethod
    def for_tank(cls, max_wheel_vel: float, track_width: float) -> DriveVelocityConstraint:
        return cls(max_wheel_vel, lambda vel: tank_robot_to_wheel_velocities(vel, track_width))

    @classmethod
    def for_swerve(cls, max_wheel_vel: float, module_positions: Sequence[Vector2d]) -> DriveVelocityConstraint:
        positions = list(module_positions)
        return cls(max_wheel_vel, lambda vel: swerve_robot_to_wheel_velocities(vel, positions))

    def get(self, pose, deriv, last_deriv, ds, base_robot_vel):
        wheel0 = list(self.robot_to_wheel_velocities(base_robot_vel))
        if max(abs(w) for w in wheel0) >= self.max_wheel_vel:
            raise UnsatisfiableConstraint(
                f"base velocity already drives a wheel past {self.max_wheel_vel:.4f}"
            )
        robot_deriv = field_to_robot_velocity(pose, deriv)
        wheel = self.robot_to_wheel_velocities(robot_deriv)
        return min(_scale_limit(self.max_wheel_vel, w0, w) for w0, w in zip(wheel0, wheel))

    def __repr__(self):
        return f"DriveVelocityConstraint(max_wheel_vel={self.max_wheel_vel})"


class MinVelocityConstraint(TrajectoryVelocityConstraint):
    """The tightest of several velocity constraints."""

    def __init__(self, constraints: Sequence[VelocityConstraintLike]):
        if not constraints:
            raise ValueError("MinVelocityConstraint needs at least one constraint")
        self.constraints = list(constraints)

    def get(self, pose, deriv, last_deriv, ds, base_robot_vel):
        return min(constraint(pose, deriv, last_deriv, ds, base_robot_vel) for constraint in self.constraints)

    def __repr__(self):
        return f"MinVelocityConstraint({self.constraints!r})"
