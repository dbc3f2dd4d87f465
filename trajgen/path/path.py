"""
Path segments and composite paths.

A `Path` chains curve + heading pairs and returns poses; a `PositionPath`
chains bare curves and returns positions. Both are parameterized by total
arc length from the start of the first segment.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Generic, TypeVar

import numpy as np

from trajgen.config import FAST_PROJECT_ITERATIONS, PROJECT_DS
from trajgen.geometry import Pose2d, Vector2d
from trajgen.utils.numeric import epsilon_equals

from .curves import ParametricCurve
from .heading import HeadingInterpolator, TangentInterpolator


class PathSegment:
    """One curve paired with a heading interpolator initialized against it."""

    def __init__(self, curve: ParametricCurve, interpolator: HeadingInterpolator | None = None):
        self.curve = curve
        self.interpolator = interpolator if interpolator is not None else TangentInterpolator()
        self.interpolator.init(curve)

    def length(self) -> float:
        return self.curve.length()

    def reparam(self, s: float) -> float:
        return self.curve.reparam(s)

    def reparameterize(self) -> None:
        self.curve.reparameterize()

    def get(self, s: float, t: float | None = None) -> Pose2d:
        t = self.reparam(s) if t is None else t
        return Pose2d.from_vec(self.curve.get(s, t), self.interpolator.get(s, t))

    def deriv(self, s: float, t: float | None = None) -> Pose2d:
        t = self.reparam(s) if t is None else t
        return Pose2d.from_vec(self.curve.deriv(s, t), self.interpolator.deriv(s, t))

    def second_deriv(self, s: float, t: float | None = None) -> Pose2d:
        t = self.reparam(s) if t is None else t
        return Pose2d.from_vec(self.curve.second_deriv(s, t), self.interpolator.second_deriv(s, t))

    def tangent_angle(self, s: float, t: float | None = None) -> float:
        return self.curve.tangent_angle(s, t)

    def curvature(self, s: float, t: float | None = None) -> float:
        return self.curve.curvature(s, t)

    def start(self) -> Pose2d:
        return self.get(0.0)

    def start_deriv(self) -> Pose2d:
        return self.deriv(0.0)

    def start_second_deriv(self) -> Pose2d:
        return self.second_deriv(0.0)

    def start_tangent_angle(self) -> float:
        return self.tangent_angle(0.0)

    def end(self) -> Pose2d:
        return self.get(self.length())

    def end_deriv(self) -> Pose2d:
        return self.deriv(self.length())

    def end_second_deriv(self) -> Pose2d:
        return self.second_deriv(self.length())

    def end_tangent_angle(self) -> float:
        return self.tangent_angle(self.length())

    def __repr__(self) -> str:
        return f"PathSegment({self.curve!r}, {type(self.interpolator).__name__})"


PartT = TypeVar("PartT", PathSegment, ParametricCurve)


class _SegmentedPath(ABC, Generic[PartT]):
    """Shared arc-length bookkeeping for Path and PositionPath."""

    def __init__(self, parts: Sequence[PartT]):
        if not parts:
            raise ValueError(f"A {type(self).__name__} cannot be constructed without any segments.")
        self._parts: tuple[PartT, ...] = tuple(parts)

    @abstractmethod
    def _position(self, s: float) -> Vector2d: ...

    @abstractmethod
    def _unit_tangent(self, s: float) -> Vector2d: ...

    @abstractmethod
    def _curve_of(self, part: PartT) -> ParametricCurve: ...

    def length(self) -> float:
        return sum(part.length() for part in self._parts)

    def segment(self, s: float) -> tuple[PartT, float]:
        """Segment containing displacement s and the displacement within it."""
        if s <= 0.0:
            return self._parts[0], 0.0
        remaining = s
        for part in self._parts:
            part_length = part.length()
            if remaining <= part_length:
                return part, remaining
            remaining -= part_length
        last = self._parts[-1]
        return last, last.length()

    def reparam(self, s: float) -> float:
        part, remaining = self.segment(s)
        return part.reparam(remaining)

    def reparameterize(self) -> None:
        for part in self._parts:
            part.reparameterize()

    def get(self, s: float, t: float | None = None):
        part, remaining = self.segment(s)
        return part.get(remaining, t)

    def deriv(self, s: float, t: float | None = None):
        part, remaining = self.segment(s)
        return part.deriv(remaining, t)

    def second_deriv(self, s: float, t: float | None = None):
        part, remaining = self.segment(s)
        return part.second_deriv(remaining, t)

    def tangent_angle(self, s: float, t: float | None = None) -> float:
        part, remaining = self.segment(s)
        return part.tangent_angle(remaining, t)

    def curvature(self, s: float, t: float | None = None) -> float:
        part, remaining = self.segment(s)
        return part.curvature(remaining, t)

    def fast_project(
        self, query: Vector2d, guess: float | None = None, iterations: int = FAST_PROJECT_ITERATIONS
    ) -> float:
        """
        Refine a displacement guess toward the point closest to query.

        Each step moves along the unit tangent by the tangential component of
        the error and is clamped to the path.
        """
        length = self.length()
        s = length / 2.0 if guess is None else guess
        for _ in range(iterations):
            ds = (query - self._position(s)).dot(self._unit_tangent(s))
            if epsilon_equals(ds, 0.0):
                break
            s += ds
            if s <= 0.0:
                return 0.0
            if s >= length:
                return length
        return s

    def project(self, query: Vector2d, ds: float = PROJECT_DS) -> float:
        """Displacement of the closest point, seeded from evenly spaced guesses."""
        length = self.length()
        samples = max(1, round(length / ds))
        guesses = np.linspace(0.0, length, samples)
        results = [self.fast_project(query, float(guess)) for guess in guesses]
        return min(results, key=lambda s: self._position(s).dist_to(query))

    def composite_project(self, query: Vector2d) -> float:
        """Displacement of the closest point, using each curve's own projection."""
        offset = 0.0
        best_s = 0.0
        best_dist = float("inf")
        for part in self._parts:
            curve = self._curve_of(part)
            t = curve.project(query)
            local_s = curve.displacement(t)
            dist = curve.get(local_s, t).dist_to(query)
            if dist < best_dist:
                best_dist = dist
                best_s = offset + local_s
            offset += part.length()
        return best_s

    def start(self):
        return self._parts[0].start()

    def start_deriv(self):
        return self._parts[0].start_deriv()

    def start_second_deriv(self):
        return self._parts[0].start_second_deriv()

    def end(self):
        return self._parts[-1].end()

    def end_deriv(self):
        return self._parts[-1].end_deriv()

    def end_second_deriv(self):
        return self._parts[-1].end_second_deriv()

    def __len__(self) -> int:
        return len(self._parts)


class Path(_SegmentedPath[PathSegment]):
    """Continuous sequence of path segments returning poses."""

    def __init__(self, segments: Sequence[PathSegment] | PathSegment):
        if isinstance(segments, PathSegment):
            segments = [segments]
        super().__init__(segments)

    @property
    def segments(self) -> tuple[PathSegment, ...]:
        return self._parts

    def _position(self, s: float) -> Vector2d:
        return self.get(s).vec()

    def _unit_tangent(self, s: float) -> Vector2d:
        return self.deriv(s).vec()

    def _curve_of(self, part: PathSegment) -> ParametricCurve:
        return part.curve

    def __add__(self, other: Path) -> Path:
        return Path(self._parts + other._parts)

    def __repr__(self) -> str:
        return f"Path({list(self._parts)!r})"


class PositionPath(_SegmentedPath[ParametricCurve]):
    """Continuous sequence of curves returning positions only."""

    def __init__(self, curves: Sequence[ParametricCurve] | ParametricCurve):
        if isinstance(curves, ParametricCurve):
            curves = [curves]
        super().__init__(curves)

    @property
    def curves(self) -> tuple[ParametricCurve, ...]:
        return self._parts

    def _position(self, s: float) -> Vector2d:
        return self.get(s)

    def _unit_tangent(self, s: float) -> Vector2d:
        return self.deriv(s)

    def _curve_of(self, part: ParametricCurve) -> ParametricCurve:
        return part

    def __repr__(self) -> str:
        return f"PositionPath({list(self._parts)!r})"
