"""
Quintic polynomial primitive and the quintic Bezier spline curve.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cached_property

import numpy as np
from scipy.optimize import minimize_scalar

from trajgen.config import SPLINE_PROJECT_SAMPLES
from trajgen.geometry import Vector2d

from .curves import ArcLengthParameterization, ParametricCurve

logger = logging.getLogger(__name__)


class QuinticPolynomial:
    """
    Single-axis quintic polynomial over the unit interval t ∈ [0, 1].

    Built in Bezier form from position, first and second derivative at both
    ends, which gives C² continuity wherever two polynomials share boundary
    conditions. Coefficients are stored highest power first for np.polyval.
    """

    def __init__(
        self,
        start: float,
        start_deriv: float,
        start_second_deriv: float,
        end: float,
        end_deriv: float,
        end_second_deriv: float,
    ):
        """
        Args:
            start: Value at t = 0
            start_deriv: First derivative at t = 0
            start_second_deriv: Second derivative at t = 0
            end: Value at t = 1
            end_deriv: First derivative at t = 1
            end_second_deriv: Second derivative at t = 1
        """
        p0 = start
        p1 = 0.2 * start_deriv + p0
        p2 = 0.05 * start_second_deriv + 2 * p1 - p0
        p5 = end
        p4 = end - 0.2 * end_deriv
        p3 = 0.05 * end_second_deriv + 2 * p4 - p5

        self.coeffs = np.array(
            [
                p5 - 5 * p4 + 10 * p3 - 10 * p2 + 5 * p1 - p0,
                5 * (p4 - 4 * p3 + 6 * p2 - 4 * p1 + p0),
                10 * (p3 - 3 * p2 + 3 * p1 - p0),
                10 * (p2 - 2 * p1 + p0),
                5 * (p1 - p0),
                p0,
            ],
            dtype=float,
        )

        # Pre-compute derivative coefficients for faster evaluation
        self.dcoeffs = np.polyder(self.coeffs, 1)
        self.d2coeffs = np.polyder(self.coeffs, 2)
        self.d3coeffs = np.polyder(self.coeffs, 3)

    def get(self, t: float) -> float:
        return float(np.polyval(self.coeffs, t))

    __call__ = get

    def deriv(self, t: float) -> float:
        return float(np.polyval(self.dcoeffs, t))

    def second_deriv(self, t: float) -> float:
        return float(np.polyval(self.d2coeffs, t))

    def third_deriv(self, t: float) -> float:
        return float(np.polyval(self.d3coeffs, t))

    def __repr__(self) -> str:
        return f"QuinticPolynomial({np.array2string(self.coeffs, precision=3)})"


@dataclass(frozen=True)
class Knot:
    """Endpoint of a quintic spline: position, first and second derivative."""

    x: float
    y: float
    dx: float = 0.0
    dy: float = 0.0
    d2x: float = 0.0
    d2y: float = 0.0

    @classmethod
    def from_vectors(
        cls, pos: Vector2d, deriv: Vector2d | None = None, second_deriv: Vector2d | None = None
    ) -> Knot:
        deriv = deriv or Vector2d()
        second_deriv = second_deriv or Vector2d()
        return cls(pos.x, pos.y, deriv.x, deriv.y, second_deriv.x, second_deriv.y)

    def pos(self) -> Vector2d:
        return Vector2d(self.x, self.y)

    def deriv(self) -> Vector2d:
        return Vector2d(self.dx, self.dy)

    def second_deriv(self) -> Vector2d:
        return Vector2d(self.d2x, self.d2y)


class QuinticSpline(ParametricCurve):
    """
    Quintic Bezier spline between two knots.

    The native parameter t ∈ [0, 1] is not arc length, so the curve carries an
    adaptive arc-length table. It is built on first use and memoized; building
    it twice concurrently only wastes work.
    """

    def __init__(self, start: Knot, end: Knot):
        self.start_knot = start
        self.end_knot = end
        self.x = QuinticPolynomial(start.x, start.dx, start.d2x, end.x, end.dx, end.d2x)
        self.y = QuinticPolynomial(start.y, start.dy, start.d2y, end.y, end.dy, end.d2y)

    @cached_property
    def parameterization(self) -> ArcLengthParameterization:
        table = ArcLengthParameterization(self, 0.0, 1.0)
        logger.debug(f"Spline arc-length table: {len(table)} samples, length {table.length:.4f}")
        return table

    def reparameterize(self) -> None:
        self.parameterization  # noqa: B018

    def length(self) -> float:
        return self.parameterization.length

    def reparam(self, s: float) -> float:
        return self.parameterization.reparam(s)

    def displacement(self, t: float) -> float:
        return self.parameterization.displacement(t)

    def internal_get(self, t: float) -> Vector2d:
        return Vector2d(self.x.get(t), self.y.get(t))

    def internal_deriv(self, t: float) -> Vector2d:
        return Vector2d(self.x.deriv(t), self.y.deriv(t))

    def internal_second_deriv(self, t: float) -> Vector2d:
        return Vector2d(self.x.second_deriv(t), self.y.second_deriv(t))

    def internal_third_deriv(self, t: float) -> Vector2d:
        return Vector2d(self.x.third_deriv(t), self.y.third_deriv(t))

    def sample(self, num: int) -> np.ndarray:
        """Points at `num` evenly spaced native parameters, shape (num, 2)."""
        ts = np.linspace(0.0, 1.0, num)
        return np.column_stack([np.polyval(self.x.coeffs, ts), np.polyval(self.y.coeffs, ts)])

    def project(self, query: Vector2d) -> float:
        """
        Closest native parameter to query.

        A coarse sample picks the best bracket, which is then refined with a
        bounded scalar minimization of the squared distance.
        """
        n = max(2, SPLINE_PROJECT_SAMPLES)
        ts = np.linspace(0.0, 1.0, n)
        points = self.sample(n)
        dist_sq = np.sum((points - query.as_array()) ** 2, axis=1)
        i = int(np.argmin(dist_sq))
        best_t = float(ts[i])
        best_d = float(dist_sq[i])

        lo = float(ts[max(i - 1, 0)])
        hi = float(ts[min(i + 1, n - 1)])
        qx, qy = query.x, query.y
        result = minimize_scalar(
            lambda t: (self.x.get(t) - qx) ** 2 + (self.y.get(t) - qy) ** 2,
            bounds=(lo, hi),
            method="bounded",
        )
        if not result.success:
            logger.warning(f"Spline projection refinement failed near t={best_t:.4f}: {result.message}")
            return best_t
        return float(result.x) if result.fun <= best_d else best_t

    def __repr__(self) -> str:
        return f"QuinticSpline({self.start_knot.pos()!r} -> {self.end_knot.pos()!r})"
