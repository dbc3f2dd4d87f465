"""
Fluent, continuity-checked path builders.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from trajgen.geometry import Pose2d, Vector2d, norm_angle, norm_delta
from trajgen.utils.errors import EmptyPathSegment, PathContinuityViolation

from .curves import CircularArc, LineSegment, ParametricCurve
from .heading import (
    ConstantHeading,
    ConstantInterpolator,
    HeadingInterpolation,
    HeadingInterpolator,
    LinearHeading,
    LinearInterpolator,
    SplineHeading,
    SplineInterpolator,
    TangentHeading,
    TangentInterpolator,
)
from .path import Path, PathSegment, PositionPath
from .quintic import Knot, QuinticSpline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContinuityCheck:
    """Outcome of testing whether a segment can be appended to a builder."""

    ok: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.ok


CONTINUOUS = ContinuityCheck(True)


class PathBuilder:
    """
    Accumulates path segments that join with matching pose, unit tangent,
    heading rate and second derivative.

    Moves that do not join smoothly raise `PathContinuityViolation` from the
    fluent methods. Callers that want to react instead can build the segment
    with `make_line`/`make_spline` and call `try_add_segment`.
    """

    def __init__(self, start_pose: Pose2d, start_deriv: Pose2d, start_second_deriv: Pose2d | None = None):
        self.current_pose = start_pose
        self.current_deriv = start_deriv
        self.current_second_deriv = start_second_deriv if start_second_deriv is not None else Pose2d()
        self._segments: list[PathSegment] = []

    @classmethod
    def from_pose(cls, start_pose: Pose2d, start_tangent: float | None = None, reversed: bool = False) -> PathBuilder:
        """
        Builder starting at rest at start_pose.

        Args:
            start_pose: Initial pose
            start_tangent: Direction of travel (defaults to the pose heading)
            reversed: Travel backwards, i.e. opposite to start_tangent
        """
        tangent = start_pose.heading if start_tangent is None else start_tangent
        if reversed:
            tangent = norm_angle(tangent + math.pi)
        return cls(start_pose, Pose2d.from_vec(Vector2d.polar(1.0, tangent)), Pose2d())

    @classmethod
    def from_path(cls, path: Path, s: float) -> PathBuilder:
        return cls(path.get(s), path.deriv(s), path.second_deriv(s))

    @property
    def segments(self) -> list[PathSegment]:
        return list(self._segments)

    def is_empty(self) -> bool:
        return not self._segments

    def length(self) -> float:
        return sum(segment.length() for segment in self._segments)

    # Segment construction

    def _make_line_curve(self, end: Vector2d) -> LineSegment:
        start = self.current_pose.vec()
        if start.epsilon_equals(end):
            raise EmptyPathSegment(f"line from {start} to {end} has zero length")
        return LineSegment(start, end)

    def _make_spline_curve(
        self,
        end: Vector2d,
        end_tangent: float,
        start_tangent_mag: float = -1.0,
        end_tangent_mag: float = -1.0,
    ) -> QuinticSpline:
        start = self.current_pose.vec()
        if start.epsilon_equals(end):
            raise EmptyPathSegment(f"spline from {start} to {end} has zero length")
        deriv_mag = start.dist_to(end)
        start_mag = start_tangent_mag if start_tangent_mag >= 0.0 else deriv_mag
        # knots take derivatives in the native parameter, the builder tracks them per unit arc length
        start_knot = Knot.from_vectors(
            start,
            self.current_deriv.vec() * start_mag,
            self.current_second_deriv.vec() * (start_mag * start_mag),
        )
        end_knot = Knot.from_vectors(
            end,
            Vector2d.polar(end_tangent_mag if end_tangent_mag >= 0.0 else deriv_mag, end_tangent),
        )
        return QuinticSpline(start_knot, end_knot)

    def _make_interpolator(self, curve: ParametricCurve, heading: HeadingInterpolation) -> HeadingInterpolator:
        if isinstance(heading, TangentHeading):
            return TangentInterpolator(self.current_pose.heading - curve.start_tangent_angle())
        if isinstance(heading, ConstantHeading):
            return ConstantInterpolator(self.current_pose.heading)
        if isinstance(heading, LinearHeading):
            start = self.current_pose.heading
            return LinearInterpolator(start, norm_delta(heading.target - start))
        if isinstance(heading, SplineHeading):
            return SplineInterpolator(
                self.current_pose.heading,
                heading.target,
                self.current_deriv.heading,
                self.current_second_deriv.heading,
                None,
                None,
            )
        raise ValueError(f"Unknown heading interpolation {heading!r}")

    def make_line(self, end: Vector2d, heading: HeadingInterpolation | None = None) -> PathSegment:
        """Line segment from the current pose, not yet appended."""
        line = self._make_line_curve(end)
        return PathSegment(line, self._make_interpolator(line, heading or TangentHeading()))

    def make_spline(
        self,
        end: Vector2d,
        end_tangent: float,
        heading: HeadingInterpolation | None = None,
        start_tangent_mag: float = -1.0,
        end_tangent_mag: float = -1.0,
    ) -> PathSegment:
        """Spline segment from the current pose, not yet appended."""
        spline = self._make_spline_curve(end, end_tangent, start_tangent_mag, end_tangent_mag)
        return PathSegment(spline, self._make_interpolator(spline, heading or TangentHeading()))

    def forward_point(self, distance: float) -> Vector2d:
        return self.current_pose.vec() + Vector2d.polar(distance, self.current_deriv.vec().angle())

    def strafe_point(self, distance: float) -> Vector2d:
        return self.current_pose.vec() + Vector2d.polar(distance, self.current_pose.heading + math.pi / 2)

    # Continuity

    def check_continuity(self, segment: PathSegment) -> ContinuityCheck:
        if not self._segments:
            return CONTINUOUS
        if not self.current_pose.epsilon_equals_heading(segment.start()):
            return ContinuityCheck(False, f"pose {self.current_pose} != segment start {segment.start()}")
        if not self.current_deriv.epsilon_equals(segment.start_deriv()):
            return ContinuityCheck(
                False, f"derivative {self.current_deriv} != segment start {segment.start_deriv()}"
            )
        if not self.current_second_deriv.vec().epsilon_equals(segment.start_second_deriv().vec()):
            return ContinuityCheck(
                False,
                f"second derivative {self.current_second_deriv.vec()} != "
                f"segment start {segment.start_second_deriv().vec()}",
            )
        return CONTINUOUS

    def try_add_segment(self, segment: PathSegment) -> ContinuityCheck:
        """Append segment if it joins smoothly; report why not otherwise."""
        check = self.check_continuity(segment)
        if check.ok:
            self._append(segment)
        return check

    def add_segment(self, segment: PathSegment) -> PathBuilder:
        check = self.try_add_segment(segment)
        if not check.ok:
            raise PathContinuityViolation(check.reason)
        return self

    def _append(self, segment: PathSegment) -> None:
        self.current_pose = segment.end()
        self.current_deriv = segment.end_deriv()
        self.current_second_deriv = segment.end_second_deriv()
        self._segments.append(segment)

    # Line moves

    def add_line(self, end: Vector2d, heading: HeadingInterpolation | None = None) -> PathBuilder:
        return self.add_segment(self.make_line(end, heading))

    def line_to(self, end: Vector2d) -> PathBuilder:
        return self.add_line(end, TangentHeading())

    def line_to_constant_heading(self, end: Vector2d) -> PathBuilder:
        return self.add_line(end, ConstantHeading())

    def strafe_to(self, end: Vector2d) -> PathBuilder:
        return self.line_to_constant_heading(end)

    def line_to_linear_heading(self, end_pose: Pose2d) -> PathBuilder:
        return self.add_line(end_pose.vec(), LinearHeading(end_pose.heading))

    def line_to_spline_heading(self, end_pose: Pose2d) -> PathBuilder:
        return self.add_line(end_pose.vec(), SplineHeading(end_pose.heading))

    def forward(self, distance: float) -> PathBuilder:
        return self.line_to(self.forward_point(distance))

    def back(self, distance: float) -> PathBuilder:
        return self.forward(-distance)

    def strafe_left(self, distance: float) -> PathBuilder:
        return self.line_to_constant_heading(self.strafe_point(distance))

    def strafe_right(self, distance: float) -> PathBuilder:
        return self.strafe_left(-distance)

    # Spline moves

    def add_spline(
        self,
        end: Vector2d,
        end_tangent: float,
        heading: HeadingInterpolation | None = None,
        start_tangent_mag: float = -1.0,
        end_tangent_mag: float = -1.0,
    ) -> PathBuilder:
        return self.add_segment(self.make_spline(end, end_tangent, heading, start_tangent_mag, end_tangent_mag))

    def spline_to(self, end: Vector2d, end_tangent: float) -> PathBuilder:
        return self.add_spline(end, end_tangent, TangentHeading())

    def spline_to_constant_heading(self, end: Vector2d, end_tangent: float) -> PathBuilder:
        return self.add_spline(end, end_tangent, ConstantHeading())

    def spline_to_linear_heading(self, end_pose: Pose2d, end_tangent: float) -> PathBuilder:
        return self.add_spline(end_pose.vec(), end_tangent, LinearHeading(end_pose.heading))

    def spline_to_spline_heading(self, end_pose: Pose2d, end_tangent: float) -> PathBuilder:
        return self.add_spline(end_pose.vec(), end_tangent, SplineHeading(end_pose.heading))

    def build(self) -> Path:
        """Path with every arc-length table computed, safe to share."""
        path = Path(self._segments)
        path.reparameterize()
        logger.debug(f"Built path: {len(path)} segments, length {path.length():.4f}")
        return path

    def pre_build(self) -> Path:
        return Path(self._segments)


class PositionPathBuilder:
    """Builder for position-only paths; only positional (C0) continuity is checked."""

    def __init__(self, start_pos: Vector2d, start_deriv: Vector2d, start_second_deriv: Vector2d | None = None):
        self.current_pos = start_pos
        self.current_deriv = start_deriv
        self.current_second_deriv = start_second_deriv if start_second_deriv is not None else Vector2d()
        self._curves: list[ParametricCurve] = []

    @classmethod
    def from_tangent(cls, start_pos: Vector2d, start_tangent: float) -> PositionPathBuilder:
        return cls(start_pos, Vector2d.polar(1.0, start_tangent), Vector2d())

    @classmethod
    def from_path(cls, path: PositionPath, s: float) -> PositionPathBuilder:
        return cls(path.get(s), path.deriv(s), path.second_deriv(s))

    @property
    def curves(self) -> list[ParametricCurve]:
        return list(self._curves)

    def add_curve(self, curve: ParametricCurve) -> PositionPathBuilder:
        if self._curves and not self.current_pos.epsilon_equals(curve.start()):
            raise PathContinuityViolation(f"position {self.current_pos} != curve start {curve.start()}")
        self.current_pos = curve.end()
        self.current_deriv = curve.end_deriv()
        self.current_second_deriv = curve.end_second_deriv()
        self._curves.append(curve)
        return self

    def line_to(self, end: Vector2d) -> PositionPathBuilder:
        if self.current_pos.epsilon_equals(end):
            raise EmptyPathSegment(f"line from {self.current_pos} to {end} has zero length")
        return self.add_curve(LineSegment(self.current_pos, end))

    def forward(self, distance: float) -> PositionPathBuilder:
        return self.line_to(self.current_pos + Vector2d.polar(distance, self.current_deriv.angle()))

    def back(self, distance: float) -> PositionPathBuilder:
        return self.forward(-distance)

    def left(self, distance: float) -> PositionPathBuilder:
        return self.line_to(self.current_pos + Vector2d.polar(distance, self.current_deriv.angle() + math.pi / 2))

    def right(self, distance: float) -> PositionPathBuilder:
        return self.left(-distance)

    def spline_to(
        self,
        end: Vector2d,
        end_tangent: float,
        start_tangent_mag: float = -1.0,
        end_tangent_mag: float = -1.0,
    ) -> PositionPathBuilder:
        if self.current_pos.epsilon_equals(end):
            raise EmptyPathSegment(f"spline from {self.current_pos} to {end} has zero length")
        deriv_mag = self.current_pos.dist_to(end)
        start_mag = start_tangent_mag if start_tangent_mag >= 0.0 else deriv_mag
        start_knot = Knot.from_vectors(
            self.current_pos,
            self.current_deriv * start_mag,
            self.current_second_deriv * (start_mag * start_mag),
        )
        end_knot = Knot.from_vectors(
            end, Vector2d.polar(end_tangent_mag if end_tangent_mag >= 0.0 else deriv_mag, end_tangent)
        )
        return self.add_curve(QuinticSpline(start_knot, end_knot))

    def turn(self, angle: float, radius: float) -> PositionPathBuilder:
        """Circular arc of the given radius; positive angles turn left."""
        return self.add_curve(CircularArc.from_point(self.current_pos, self.current_deriv.angle(), radius, angle))

    def turn_left(self, angle: float, radius: float) -> PositionPathBuilder:
        return self.turn(angle, radius)

    def turn_right(self, angle: float, radius: float) -> PositionPathBuilder:
        return self.turn(-angle, radius)

    def build(self) -> PositionPath:
        path = PositionPath(self._curves)
        path.reparameterize()
        return path

    def pre_build(self) -> PositionPath:
        return PositionPath(self._curves)
