"""
Fluent trajectory builders.

`BaseTrajectoryBuilder` accumulates path moves into a `PathBuilder`, flushing
them into profiled trajectory segments whenever a turn or wait is requested or
a move does not join the current sub-path smoothly. Subclasses decide how
segments are profiled:

* `TrajectoryBuilder`: displacement-varying constraints (velocity and
  acceleration constraint objects), with per-move overrides;
* `SimpleTrajectoryBuilder`: constant velocity/acceleration/jerk limits.
"""

from __future__ import annotations

import functools
import logging
import math
from abc import ABC, abstractmethod
from collections.abc import Callable

from trajgen.config import PROFILE_RESOLUTION
from trajgen.constraints import (
    AccelerationConstraintLike,
    MinAccelerationConstraint,
    MinVelocityConstraint,
    TrajectoryConstraints,
    VelocityConstraintLike,
)
from trajgen.geometry import Pose2d, Vector2d, norm_angle, norm_delta
from trajgen.path import (
    ConstantHeading,
    HeadingInterpolation,
    LinearHeading,
    Path,
    PathBuilder,
    PathSegment,
    SplineHeading,
    TangentHeading,
)
from trajgen.profile import MotionState
from trajgen.utils.errors import PathContinuityViolation, TrajectoryStateError
from trajgen.utils.numeric import epsilon_equals

from .generator import TrajectoryGenerator
from .markers import (
    DisplacementMarker,
    DisplacementProducer,
    MarkerCallback,
    SpatialMarker,
    TemporalMarker,
    TimeProducer,
    resolve_markers,
)
from .segments import PathTrajectorySegment, TrajectorySegment, TurnSegment, WaitSegment
from .trajectory import Trajectory

logger = logging.getLogger(__name__)


def _end_state(state: MotionState) -> MotionState:
    """State the next sub-path starts from: position zeroed, at rest when the profile stopped."""
    if epsilon_equals(state.v, 0.0):
        return MotionState(0.0, 0.0, 0.0, 0.0)
    return MotionState(0.0, state.v, state.a, state.j)


class BaseTrajectoryBuilder(ABC):
    """
    Shared move, turn, wait and marker API.

    Args:
        start_pose: Initial pose
        start_deriv: Initial path derivative (unit travel direction, heading rate)
        start_second_deriv: Initial path second derivative
        start_state: Initial displacement-profile state
        generator: Profile generator used for segments
    """

    def __init__(
        self,
        start_pose: Pose2d,
        start_deriv: Pose2d,
        start_second_deriv: Pose2d | None = None,
        start_state: MotionState | None = None,
        generator: TrajectoryGenerator | None = None,
    ):
        self.start_pose = start_pose
        self.generator = generator or TrajectoryGenerator()
        self.current_state = start_state if start_state is not None else MotionState(0.0, 0.0, 0.0)
        self._path_builder = PathBuilder(start_pose, start_deriv, start_second_deriv)
        self._segments: list[TrajectorySegment] = []
        self._temporal_markers: list[TemporalMarker] = []
        self._displacement_markers: list[DisplacementMarker] = []
        self._spatial_markers: list[SpatialMarker] = []

    @property
    def segments(self) -> list[TrajectorySegment]:
        return list(self._segments)

    # Segment bookkeeping

    def _add_path_segment(self, make: Callable[[PathBuilder], PathSegment]) -> None:
        """Append a path move, starting a new sub-path if it does not join the current one."""
        segment = make(self._path_builder)
        check = self._path_builder.try_add_segment(segment)
        if check.ok:
            return
        logger.debug(f"Splicing new sub-path: {check.reason}")
        # a failed check implies a non-empty sub-path, so this flushes a path segment
        self.push_path()
        last = self._segments[-1]
        # keep the travel direction, which differs from the heading on reversed paths
        self._path_builder = PathBuilder(last.end(), Pose2d.from_vec(last.path.end_deriv().vec()))
        self._path_builder.add_segment(make(self._path_builder))

    def push_path(self) -> None:
        """Profile the pending sub-path, if any, and append it as a trajectory segment."""
        if self._path_builder.is_empty():
            return
        path = self._path_builder.build()
        segment = self._make_path_segment(path)
        self.add_trajectory_segment(segment)
        self.current_state = _end_state(segment.profile.end())
        self._path_builder = PathBuilder(path.end(), path.end_deriv(), path.end_second_deriv())
        logger.debug(f"Flushed sub-path of {len(path)} segments, duration {segment.duration():.4f}s")

    def add_trajectory_segment(self, segment: TrajectorySegment) -> BaseTrajectoryBuilder:
        """
        Append a finished segment.

        Raises:
            PathContinuityViolation: pose or velocity does not match the previous segment's end
        """
        if self._segments:
            last = self._segments[-1]
            if not segment.start().epsilon_equals_heading(last.end()):
                raise PathContinuityViolation(f"segment starts at {segment.start()} but previous ends at {last.end()}")
            end_vel = last.velocity(last.duration())
            start_vel = segment.velocity(0.0)
            if not start_vel.epsilon_equals(end_vel):
                raise PathContinuityViolation(f"segment starts at velocity {start_vel} but previous ends at {end_vel}")
        self._segments.append(segment)
        return self

    def _current_end(self) -> Pose2d:
        return self._segments[-1].end() if self._segments else self.start_pose

    def _restart_from(self, pose: Pose2d) -> None:
        self._path_builder = PathBuilder.from_pose(pose)

    # Turns and waits

    def turn(self, angle: float) -> BaseTrajectoryBuilder:
        """Turn in place by `angle` radians (counter-clockwise positive)."""
        self.push_path()
        self.add_trajectory_segment(self._make_turn_segment(self._current_end(), angle))
        self._restart_from(self._segments[-1].end())
        return self

    def turn_to(self, heading: float) -> BaseTrajectoryBuilder:
        """Turn in place to an absolute heading along the shorter direction."""
        self.push_path()
        start = self._current_end()
        self.add_trajectory_segment(self._make_turn_segment(start, norm_delta(heading - start.heading)))
        self._restart_from(self._segments[-1].end())
        return self

    def wait(self, seconds: float) -> BaseTrajectoryBuilder:
        self.push_path()
        self.add_trajectory_segment(WaitSegment(self._current_end(), seconds))
        self._restart_from(self._segments[-1].end())
        return self

    # Path moves

    def add_line(self, end: Vector2d, heading: HeadingInterpolation | None = None) -> BaseTrajectoryBuilder:
        self._add_path_segment(lambda builder: builder.make_line(end, heading or TangentHeading()))
        return self

    def line_to(self, end: Vector2d) -> BaseTrajectoryBuilder:
        return self.add_line(end, TangentHeading())

    def line_to_constant_heading(self, end: Vector2d) -> BaseTrajectoryBuilder:
        return self.add_line(end, ConstantHeading())

    def strafe_to(self, end: Vector2d) -> BaseTrajectoryBuilder:
        return self.line_to_constant_heading(end)

    def line_to_linear_heading(self, end_pose: Pose2d) -> BaseTrajectoryBuilder:
        return self.add_line(end_pose.vec(), LinearHeading(end_pose.heading))

    def line_to_spline_heading(self, end_pose: Pose2d) -> BaseTrajectoryBuilder:
        return self.add_line(end_pose.vec(), SplineHeading(end_pose.heading))

    def forward(self, distance: float) -> BaseTrajectoryBuilder:
        self._add_path_segment(lambda builder: builder.make_line(builder.forward_point(distance), TangentHeading()))
        return self

    def back(self, distance: float) -> BaseTrajectoryBuilder:
        return self.forward(-distance)

    def strafe_left(self, distance: float) -> BaseTrajectoryBuilder:
        self._add_path_segment(
            lambda builder: builder.make_line(builder.strafe_point(distance), ConstantHeading())
        )
        return self

    def strafe_right(self, distance: float) -> BaseTrajectoryBuilder:
        return self.strafe_left(-distance)

    def add_spline(
        self,
        end: Vector2d,
        end_tangent: float,
        heading: HeadingInterpolation | None = None,
        start_tangent_mag: float = -1.0,
        end_tangent_mag: float = -1.0,
    ) -> BaseTrajectoryBuilder:
        self._add_path_segment(
            lambda builder: builder.make_spline(
                end, end_tangent, heading or TangentHeading(), start_tangent_mag, end_tangent_mag
            )
        )
        return self

    def spline_to(self, end: Vector2d, end_tangent: float) -> BaseTrajectoryBuilder:
        return self.add_spline(end, end_tangent, TangentHeading())

    def spline_to_constant_heading(self, end: Vector2d, end_tangent: float) -> BaseTrajectoryBuilder:
        return self.add_spline(end, end_tangent, ConstantHeading())

    def spline_to_linear_heading(self, end_pose: Pose2d, end_tangent: float) -> BaseTrajectoryBuilder:
        return self.add_spline(end_pose.vec(), end_tangent, LinearHeading(end_pose.heading))

    def spline_to_spline_heading(self, end_pose: Pose2d, end_tangent: float) -> BaseTrajectoryBuilder:
        return self.add_spline(end_pose.vec(), end_tangent, SplineHeading(end_pose.heading))

    # Markers

    def add_temporal_marker(self, time: float | TimeProducer, callback: MarkerCallback) -> BaseTrajectoryBuilder:
        """
        Marker at an absolute time, or at `time(duration)` when time is callable.
        """
        producer = time if callable(time) else (lambda duration, offset=float(time): offset)
        self._temporal_markers.append(TemporalMarker(producer, callback))
        return self

    def add_temporal_marker_scaled(self, scale: float, offset: float, callback: MarkerCallback) -> BaseTrajectoryBuilder:
        """Marker at scale * duration + offset."""
        return self.add_temporal_marker(lambda duration: scale * duration + offset, callback)

    def add_displacement_marker(
        self, callback: MarkerCallback, displacement: float | DisplacementProducer | None = None
    ) -> BaseTrajectoryBuilder:
        """
        Marker at a path displacement.

        Without a displacement the marker is placed at the end of the moves
        added so far. A callable displacement receives the final length.
        """
        if displacement is None:
            displacement = sum(segment.length() for segment in self._segments) + self._path_builder.length()
        producer = displacement if callable(displacement) else (lambda length, offset=float(displacement): offset)
        self._displacement_markers.append(DisplacementMarker(producer, callback))
        return self

    def add_displacement_marker_scaled(
        self, scale: float, offset: float, callback: MarkerCallback
    ) -> BaseTrajectoryBuilder:
        """Marker at scale * length + offset."""
        return self.add_displacement_marker(callback, lambda length: scale * length + offset)

    def add_spatial_marker(self, point: Vector2d, callback: MarkerCallback) -> BaseTrajectoryBuilder:
        """Marker at the path point closest to `point`."""
        self._spatial_markers.append(SpatialMarker(point, callback))
        return self

    def build(self) -> Trajectory:
        """
        Flush pending moves and assemble the trajectory.

        Raises:
            ValueError: nothing was added
        """
        self.push_path()
        trajectory = Trajectory(self._segments)
        markers = resolve_markers(
            trajectory, self._temporal_markers, self._displacement_markers, self._spatial_markers
        )
        logger.debug(f"Built trajectory: {len(self._segments)} segments, duration {trajectory.duration():.4f}s")
        return Trajectory(self._segments, markers)

    @abstractmethod
    def _make_path_segment(self, path: Path) -> PathTrajectorySegment: ...

    @abstractmethod
    def _make_turn_segment(self, pose: Pose2d, angle: float) -> TurnSegment: ...


def _start_deriv(start_pose: Pose2d, start_tangent: float | None, reversed: bool) -> Pose2d:
    tangent = start_pose.heading if start_tangent is None else start_tangent
    if reversed:
        tangent = norm_angle(tangent + math.pi)
    return Pose2d.from_vec(Vector2d.polar(1.0, tangent))


def _state_at(trajectory: Trajectory, t: float) -> MotionState:
    return MotionState(0.0, trajectory.velocity(t).vec().norm(), trajectory.acceleration(t).vec().norm())


def _with_constraint_overrides(move):
    """Give a move optional `vel_constraint`/`accel_constraint` overrides applying to that move only."""

    @functools.wraps(move)
    def wrapper(self, *args, vel_constraint=None, accel_constraint=None, **kwargs):
        if vel_constraint is None and accel_constraint is None:
            return move(self, *args, **kwargs)
        self.set_constraints(
            vel_constraint if vel_constraint is not None else self.base_vel_constraint,
            accel_constraint if accel_constraint is not None else self.base_accel_constraint,
        )
        move(self, *args, **kwargs)
        self.push_path()
        self.reset_constraints()
        return self

    return wrapper


class TrajectoryBuilder(BaseTrajectoryBuilder):
    """
    Builder profiling each sub-path against velocity and acceleration constraints.

    Args:
        start_pose: Initial pose
        vel_constraint: Base velocity constraint
        accel_constraint: Base acceleration constraint
        max_ang_vel: Angular velocity limit for turns (rad/s)
        max_ang_accel: Angular acceleration limit for turns (rad/s^2)
        max_ang_jerk: Angular jerk limit for turns; 0 gives trapezoidal turns
        start_tangent: Initial travel direction (defaults to the pose heading)
        reversed: Travel opposite to start_tangent
        resolution: Displacement sampling step of the profile generator
    """

    def __init__(
        self,
        start_pose: Pose2d,
        vel_constraint: VelocityConstraintLike,
        accel_constraint: AccelerationConstraintLike,
        max_ang_vel: float,
        max_ang_accel: float,
        max_ang_jerk: float = 0.0,
        start_tangent: float | None = None,
        reversed: bool = False,
        resolution: float = PROFILE_RESOLUTION,
        start_deriv: Pose2d | None = None,
        start_second_deriv: Pose2d | None = None,
        start_state: MotionState | None = None,
    ):
        super().__init__(
            start_pose,
            start_deriv if start_deriv is not None else _start_deriv(start_pose, start_tangent, reversed),
            start_second_deriv,
            start_state,
            TrajectoryGenerator(resolution),
        )
        self.base_vel_constraint = vel_constraint
        self.base_accel_constraint = accel_constraint
        self.base_ang_vel = max_ang_vel
        self.base_ang_accel = max_ang_accel
        self.base_ang_jerk = max_ang_jerk
        self.vel_constraint = vel_constraint
        self.accel_constraint = accel_constraint
        self.ang_vel = max_ang_vel
        self.ang_accel = max_ang_accel
        self.ang_jerk = max_ang_jerk

    @classmethod
    def from_constraints(
        cls,
        start_pose: Pose2d,
        constraints: TrajectoryConstraints,
        start_tangent: float | None = None,
        reversed: bool = False,
        resolution: float = PROFILE_RESOLUTION,
    ) -> TrajectoryBuilder:
        return cls(
            start_pose,
            constraints.vel_constraint,
            constraints.accel_constraint,
            constraints.max_ang_vel,
            constraints.max_ang_accel,
            constraints.max_ang_jerk,
            start_tangent=start_tangent,
            reversed=reversed,
            resolution=resolution,
        )

    @classmethod
    def from_trajectory(
        cls,
        trajectory: Trajectory,
        t: float,
        constraints: TrajectoryConstraints,
        resolution: float = PROFILE_RESOLUTION,
    ) -> TrajectoryBuilder:
        """Builder continuing from `trajectory` at time t, inheriting its pose and speed."""
        return cls(
            trajectory.get(t),
            constraints.vel_constraint,
            constraints.accel_constraint,
            constraints.max_ang_vel,
            constraints.max_ang_accel,
            constraints.max_ang_jerk,
            resolution=resolution,
            start_deriv=trajectory.deriv(t),
            start_second_deriv=trajectory.second_deriv(t),
            start_state=_state_at(trajectory, t),
        )

    # Constraint management; changing constraints ends the current sub-path

    def set_constraints(
        self,
        constraints: TrajectoryConstraints | VelocityConstraintLike,
        accel_constraint: AccelerationConstraintLike | None = None,
    ) -> TrajectoryBuilder:
        """Replace the active constraints with a preset, or with a velocity/acceleration pair."""
        if isinstance(constraints, TrajectoryConstraints):
            self.set_constraints(constraints.vel_constraint, constraints.accel_constraint)
            return self.set_angular_constraints(
                constraints.max_ang_vel, constraints.max_ang_accel, constraints.max_ang_jerk
            )
        self.push_path()
        self.vel_constraint = constraints
        if accel_constraint is not None:
            self.accel_constraint = accel_constraint
        return self

    def set_velocity_constraints(self, vel_constraint: VelocityConstraintLike) -> TrajectoryBuilder:
        self.push_path()
        self.vel_constraint = vel_constraint
        return self

    def set_accel_constraints(self, accel_constraint: AccelerationConstraintLike) -> TrajectoryBuilder:
        self.push_path()
        self.accel_constraint = accel_constraint
        return self

    def add_constraints(
        self,
        constraints: TrajectoryConstraints | VelocityConstraintLike,
        accel_constraint: AccelerationConstraintLike | None = None,
    ) -> TrajectoryBuilder:
        """Tighten the active constraints with a preset or a velocity/acceleration pair."""
        if isinstance(constraints, TrajectoryConstraints):
            self.add_constraints(constraints.vel_constraint, constraints.accel_constraint)
            return self.add_angular_constraints(
                constraints.max_ang_vel, constraints.max_ang_accel, constraints.max_ang_jerk
            )
        self.add_velocity_constraints(constraints)
        if accel_constraint is not None:
            self.add_accel_constraints(accel_constraint)
        return self

    def add_velocity_constraints(self, vel_constraint: VelocityConstraintLike) -> TrajectoryBuilder:
        self.push_path()
        self.vel_constraint = MinVelocityConstraint([self.vel_constraint, vel_constraint])
        return self

    def add_accel_constraints(self, accel_constraint: AccelerationConstraintLike) -> TrajectoryBuilder:
        self.push_path()
        self.accel_constraint = MinAccelerationConstraint([self.accel_constraint, accel_constraint])
        return self

    def reset_constraints(self) -> TrajectoryBuilder:
        self.push_path()
        self.vel_constraint = self.base_vel_constraint
        self.accel_constraint = self.base_accel_constraint
        return self

    def set_angular_constraints(
        self, ang_vel: float, ang_accel: float | None = None, ang_jerk: float | None = None
    ) -> TrajectoryBuilder:
        self.ang_vel = ang_vel
        self.ang_accel = ang_accel if ang_accel is not None else self.base_ang_accel
        self.ang_jerk = ang_jerk if ang_jerk is not None else self.base_ang_jerk
        return self

    def add_angular_constraints(
        self, ang_vel: float, ang_accel: float = math.inf, ang_jerk: float = math.inf
    ) -> TrajectoryBuilder:
        self.ang_vel = min(self.ang_vel, ang_vel)
        self.ang_accel = min(self.ang_accel, ang_accel)
        self.ang_jerk = min(self.ang_jerk, ang_jerk)
        return self

    def reset_angular_constraints(self) -> TrajectoryBuilder:
        self.ang_vel = self.base_ang_vel
        self.ang_accel = self.base_ang_accel
        self.ang_jerk = self.base_ang_jerk
        return self

    def reset_all_constraints(self) -> TrajectoryBuilder:
        self.reset_constraints()
        return self.reset_angular_constraints()

    def turn(
        self,
        angle: float,
        ang_vel: float | None = None,
        ang_accel: float | None = None,
        ang_jerk: float | None = None,
    ) -> TrajectoryBuilder:
        """Turn in place, optionally with angular limits for this turn only."""
        if ang_vel is None:
            super().turn(angle)
            return self
        self.set_angular_constraints(ang_vel, ang_accel, ang_jerk)
        super().turn(angle)
        return self.reset_angular_constraints()

    add_line = _with_constraint_overrides(BaseTrajectoryBuilder.add_line)
    line_to = _with_constraint_overrides(BaseTrajectoryBuilder.line_to)
    line_to_constant_heading = _with_constraint_overrides(BaseTrajectoryBuilder.line_to_constant_heading)
    strafe_to = _with_constraint_overrides(BaseTrajectoryBuilder.strafe_to)
    line_to_linear_heading = _with_constraint_overrides(BaseTrajectoryBuilder.line_to_linear_heading)
    line_to_spline_heading = _with_constraint_overrides(BaseTrajectoryBuilder.line_to_spline_heading)
    forward = _with_constraint_overrides(BaseTrajectoryBuilder.forward)
    back = _with_constraint_overrides(BaseTrajectoryBuilder.back)
    strafe_left = _with_constraint_overrides(BaseTrajectoryBuilder.strafe_left)
    strafe_right = _with_constraint_overrides(BaseTrajectoryBuilder.strafe_right)
    add_spline = _with_constraint_overrides(BaseTrajectoryBuilder.add_spline)
    spline_to = _with_constraint_overrides(BaseTrajectoryBuilder.spline_to)
    spline_to_constant_heading = _with_constraint_overrides(BaseTrajectoryBuilder.spline_to_constant_heading)
    spline_to_linear_heading = _with_constraint_overrides(BaseTrajectoryBuilder.spline_to_linear_heading)
    spline_to_spline_heading = _with_constraint_overrides(BaseTrajectoryBuilder.spline_to_spline_heading)

    def _make_path_segment(self, path: Path) -> PathTrajectorySegment:
        return self.generator.generate_path_trajectory_segment(
            path, self.vel_constraint, self.accel_constraint, self.current_state
        )

    def _make_turn_segment(self, pose: Pose2d, angle: float) -> TurnSegment:
        return self.generator.generate_turn_segment(
            pose, angle, self.ang_vel, self.ang_accel, self.ang_jerk, overshoot=True
        )


class SimpleTrajectoryBuilder(BaseTrajectoryBuilder):
    """
    Builder profiling each sub-path with constant limits.

    Args:
        start_pose: Initial pose
        max_vel: Profile velocity limit
        max_accel: Profile acceleration limit
        max_ang_vel: Angular velocity limit for turns (rad/s)
        max_ang_accel: Angular acceleration limit for turns (rad/s^2)
        max_jerk: Profile jerk limit; 0 gives trapezoidal profiles
        max_ang_jerk: Angular jerk limit for turns
        start_tangent: Initial travel direction (defaults to the pose heading)
        reversed: Travel opposite to start_tangent
    """

    def __init__(
        self,
        start_pose: Pose2d,
        max_vel: float,
        max_accel: float,
        max_ang_vel: float,
        max_ang_accel: float,
        max_jerk: float = 0.0,
        max_ang_jerk: float = 0.0,
        start_tangent: float | None = None,
        reversed: bool = False,
        start_deriv: Pose2d | None = None,
        start_second_deriv: Pose2d | None = None,
        start_state: MotionState | None = None,
    ):
        super().__init__(
            start_pose,
            start_deriv if start_deriv is not None else _start_deriv(start_pose, start_tangent, reversed),
            start_second_deriv,
            start_state,
        )
        self.max_vel = max_vel
        self.max_accel = max_accel
        self.max_jerk = max_jerk
        self.max_ang_vel = max_ang_vel
        self.max_ang_accel = max_ang_accel
        self.max_ang_jerk = max_ang_jerk

    @classmethod
    def from_trajectory(
        cls,
        trajectory: Trajectory,
        t: float,
        max_vel: float,
        max_accel: float,
        max_ang_vel: float,
        max_ang_accel: float,
        max_jerk: float = 0.0,
        max_ang_jerk: float = 0.0,
    ) -> SimpleTrajectoryBuilder:
        return cls(
            trajectory.get(t),
            max_vel,
            max_accel,
            max_ang_vel,
            max_ang_accel,
            max_jerk,
            max_ang_jerk,
            start_deriv=trajectory.deriv(t),
            start_second_deriv=trajectory.second_deriv(t),
            start_state=_state_at(trajectory, t),
        )

    def _make_path_segment(self, path: Path) -> PathTrajectorySegment:
        return self.generator.generate_simple_path_trajectory_segment(
            path, self.max_vel, self.max_accel, self.max_jerk, self.current_state
        )

    def _make_turn_segment(self, pose: Pose2d, angle: float) -> TurnSegment:
        state = self.current_state
        if not (epsilon_equals(state.v, 0.0) and epsilon_equals(state.a, 0.0) and epsilon_equals(state.j, 0.0)):
            raise TrajectoryStateError(f"cannot turn unless the robot is at rest (state {state!r})")
        return self.generator.generate_turn_segment(
            pose, angle, self.max_ang_vel, self.max_ang_accel, self.max_ang_jerk, overshoot=True
        )
