"""
Parametric curve base class, adaptive arc-length parameterization and the
closed-form curves (line segments and circular arcs).
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod

import numpy as np

from trajgen.config import ARC_MAX_DELTA_K, ARC_MAX_DEPTH, ARC_MAX_SEGMENT_LENGTH, EPSILON
from trajgen.geometry import TAU, Vector2d, norm_angle
from trajgen.utils.numeric import clamp, sign


class ParametricCurve(ABC):
    """
    A planar curve defined over a native parameter t.

    Subclasses implement the native-parameter derivatives along with
    `length`, `reparam` and `project`. The public methods below work in
    arc length s; each accepts an optional precomputed `t = reparam(s)`.
    """

    @abstractmethod
    def length(self) -> float: ...

    @abstractmethod
    def reparam(self, s: float) -> float:
        """Native parameter t corresponding to arc length s."""

    @abstractmethod
    def displacement(self, t: float) -> float:
        """Arc length corresponding to native parameter t."""

    @abstractmethod
    def internal_get(self, t: float) -> Vector2d: ...

    @abstractmethod
    def internal_deriv(self, t: float) -> Vector2d: ...

    @abstractmethod
    def internal_second_deriv(self, t: float) -> Vector2d: ...

    @abstractmethod
    def internal_third_deriv(self, t: float) -> Vector2d: ...

    @abstractmethod
    def project(self, query: Vector2d) -> float:
        """Native parameter of the point on the curve closest to query."""

    def reparameterize(self) -> None:
        """Precompute whatever `reparam` needs. Closed-form curves have nothing to do."""

    def _t(self, s: float, t: float | None) -> float:
        return self.reparam(s) if t is None else t

    def get(self, s: float, t: float | None = None) -> Vector2d:
        return self.internal_get(self._t(s, t))

    def deriv(self, s: float, t: float | None = None) -> Vector2d:
        """Unit tangent at arc length s."""
        d = self.internal_deriv(self._t(s, t))
        return d / d.norm()

    def second_deriv(self, s: float, t: float | None = None) -> Vector2d:
        t = self._t(s, t)
        d = self.internal_deriv(t)
        d2 = self.internal_second_deriv(t)
        return (d2 * d.dot(d) - d * d2.dot(d)) / d.norm() ** 4

    def third_deriv(self, s: float, t: float | None = None) -> Vector2d:
        t = self._t(s, t)
        d = self.internal_deriv(t)
        d2 = self.internal_second_deriv(t)
        d3 = self.internal_third_deriv(t)
        pt1 = d3 * d.dot(d) - d * d.dot(d3)
        pt2 = d2 * d2.dot(d) - d * d2.dot(d2)
        return (pt1 + pt2) / d.norm() ** 9

    def tangent_angle(self, s: float, t: float | None = None) -> float:
        return self.deriv(s, t).angle()

    def tangent_angle_deriv(self, s: float, t: float | None = None) -> float:
        t = self._t(s, t)
        d = self.deriv(s, t)
        d2 = self.second_deriv(s, t)
        return d.x * d2.y - d.y * d2.x

    def tangent_angle_second_deriv(self, s: float, t: float | None = None) -> float:
        t = self._t(s, t)
        d = self.deriv(s, t)
        d3 = self.third_deriv(s, t)
        return d.x * d3.y - d.y * d3.x

    def curvature(self, s: float, t: float | None = None) -> float:
        return self.tangent_angle_deriv(s, t)

    def start(self) -> Vector2d:
        return self.get(0.0)

    def start_deriv(self) -> Vector2d:
        return self.deriv(0.0)

    def start_second_deriv(self) -> Vector2d:
        return self.second_deriv(0.0)

    def start_third_deriv(self) -> Vector2d:
        return self.third_deriv(0.0)

    def start_tangent_angle(self) -> float:
        return self.tangent_angle(0.0)

    def end(self) -> Vector2d:
        return self.get(self.length())

    def end_deriv(self) -> Vector2d:
        return self.deriv(self.length())

    def end_second_deriv(self) -> Vector2d:
        return self.second_deriv(self.length())

    def end_third_deriv(self) -> Vector2d:
        return self.third_deriv(self.length())

    def end_tangent_angle(self) -> float:
        return self.tangent_angle(self.length())


class ArcLengthParameterization:
    """
    Adaptive sample table mapping arc length to a curve's native parameter.

    The native interval is bisected recursively. An interval is split when the
    curvature change across it exceeds `max_delta_k` or its two-chord length
    approximation exceeds `max_segment_length`, until `max_depth` is reached.
    """

    def __init__(
        self,
        curve: ParametricCurve,
        t_lo: float = 0.0,
        t_hi: float = 1.0,
        max_segment_length: float = ARC_MAX_SEGMENT_LENGTH,
        max_depth: int = ARC_MAX_DEPTH,
        max_delta_k: float = ARC_MAX_DELTA_K,
    ):
        self.t_lo = t_lo
        self.t_hi = t_hi
        self.max_segment_length = max_segment_length
        self.max_depth = max_depth
        self.max_delta_k = max_delta_k

        self._curve = curve
        self._s: list[float] = [0.0]
        self._t: list[float] = [t_lo]
        self.length = 0.0
        self._parameterize(t_lo, t_hi, curve.internal_get(t_lo), curve.internal_get(t_hi), 0)

        self.s_samples = np.asarray(self._s, dtype=float)
        self.t_samples = np.asarray(self._t, dtype=float)
        del self._s, self._t
        self._curve = None

    def _curvature(self, t: float) -> float:
        return self._curve.curvature(0.0, t)

    def _parameterize(self, t_lo: float, t_hi: float, v_lo: Vector2d, v_hi: Vector2d, depth: int) -> None:
        t_mid = 0.5 * (t_lo + t_hi)
        v_mid = self._curve.internal_get(t_mid)

        delta_k = abs(self._curvature(t_lo) - self._curvature(t_hi))
        segment_length = v_lo.dist_to(v_mid) + v_mid.dist_to(v_hi)

        if depth < self.max_depth and (delta_k > self.max_delta_k or segment_length > self.max_segment_length):
            self._parameterize(t_lo, t_mid, v_lo, v_mid, depth + 1)
            self._parameterize(t_mid, t_hi, v_mid, v_hi, depth + 1)
        else:
            self.length += segment_length
            self._s.append(self.length)
            self._t.append(t_hi)

    def reparam(self, s: float) -> float:
        if s <= 0.0:
            return self.t_lo
        if s >= self.length:
            return self.t_hi
        return float(np.interp(s, self.s_samples, self.t_samples))

    def displacement(self, t: float) -> float:
        if t <= self.t_lo:
            return 0.0
        if t >= self.t_hi:
            return self.length
        return float(np.interp(t, self.t_samples, self.s_samples))

    def __len__(self) -> int:
        return len(self.s_samples)


class LineSegment(ParametricCurve):
    """Straight line from start to end, t in [0, 1]."""

    def __init__(self, start: Vector2d, end: Vector2d):
        self.start_point = start
        self.end_point = end
        self._diff = end - start
        self._length = self._diff.norm()
        if self._length < EPSILON:
            raise ValueError(f"LineSegment from {start} to {end} has zero length")
        self._unit = self._diff / self._length

    def length(self) -> float:
        return self._length

    def reparam(self, s: float) -> float:
        return s / self._length

    def displacement(self, t: float) -> float:
        return t * self._length

    def internal_get(self, t: float) -> Vector2d:
        return self.start_point + self._diff * t

    def internal_deriv(self, t: float) -> Vector2d:
        return self._unit

    def internal_second_deriv(self, t: float) -> Vector2d:
        return Vector2d()

    def internal_third_deriv(self, t: float) -> Vector2d:
        return Vector2d()

    def project(self, query: Vector2d) -> float:
        t = (query - self.start_point).dot(self._diff) / (self._length * self._length)
        return clamp(t, 0.0, 1.0)

    def __repr__(self) -> str:
        return f"LineSegment({self.start_point!r} -> {self.end_point!r})"


class CircularArc(ParametricCurve):
    """
    Arc of a circle, parameterized natively by the polar angle around center.

    The sweep is clamped to one full turn in either direction.
    """

    def __init__(self, center: Vector2d, radius: float, start_angle: float, end_angle: float):
        if radius <= 0.0:
            raise ValueError(f"CircularArc radius must be positive, got {radius}")
        diff = clamp(end_angle - start_angle, -TAU, TAU)
        if abs(diff) < EPSILON:
            raise ValueError("CircularArc sweep must be non-zero")

        self.center = center
        self.radius = radius
        self.start_angle = norm_angle(start_angle)
        self.end_angle = self.start_angle + diff
        self.direction = sign(diff)
        self._length = abs(diff * radius)
        self._range = (min(self.start_angle, self.end_angle), max(self.start_angle, self.end_angle))

    @classmethod
    def from_point(cls, start: Vector2d, start_tangent: float, radius: float, turn_angle: float) -> CircularArc:
        """
        Arc leaving start along start_tangent and turning by turn_angle.

        Positive turn angles curve to the left (counter-clockwise).
        """
        side = 0.5 * math.pi * sign(turn_angle)
        center = start + Vector2d.polar(radius, start_tangent + side)
        start_angle = (start - center).angle()
        return cls(center, radius, start_angle, start_angle + turn_angle)

    def _clamp(self, t: float) -> float:
        return clamp(t, self._range[0], self._range[1])

    def length(self) -> float:
        return self._length

    def reparam(self, s: float) -> float:
        return s / self.radius * self.direction + self.start_angle

    def displacement(self, t: float) -> float:
        return (t - self.start_angle) * self.direction * self.radius

    def internal_get(self, t: float) -> Vector2d:
        return Vector2d.polar(self.radius, self._clamp(t)) + self.center

    def internal_deriv(self, t: float) -> Vector2d:
        t = self._clamp(t)
        return Vector2d(-math.sin(t), math.cos(t)) * (self.direction * self.radius)

    def internal_second_deriv(self, t: float) -> Vector2d:
        t = self._clamp(t)
        return Vector2d(-math.cos(t), -math.sin(t)) * self.radius

    def internal_third_deriv(self, t: float) -> Vector2d:
        return -self.internal_deriv(t)

    def project(self, query: Vector2d) -> float:
        angle = (query - self.center).angle()
        lo, hi = self._range
        # the span may extend past 2π, so test each equivalent angle
        for candidate in (angle, angle + TAU, angle - TAU):
            if lo <= candidate <= hi:
                return candidate
        return min(
            (self.start_angle, self.end_angle),
            key=lambda t: self.internal_get(t).dist_to(query),
        )

    def __repr__(self) -> str:
        return (
            f"CircularArc(center={self.center!r}, r={self.radius:.3f}, "
            f"{math.degrees(self.start_angle):.1f}° -> {math.degrees(self.end_angle):.1f}°)"
        )
