"""
Heading interpolators: robot orientation as a function of arc length,
independent of the position curve they are paired with.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from trajgen.geometry import norm_angle, norm_delta

from .curves import ParametricCurve
from .quintic import QuinticPolynomial


class HeadingInterpolator(ABC):
    """
    Heading profile over the arc length of a curve.

    `init` must be called with the paired curve before any query.
    """

    curve: ParametricCurve | None = None

    def init(self, curve: ParametricCurve) -> None:
        self.curve = curve

    def _require_curve(self) -> ParametricCurve:
        if self.curve is None:
            raise RuntimeError(f"{type(self).__name__} used before init(curve)")
        return self.curve

    def length(self) -> float:
        return self._require_curve().length()

    def _t(self, s: float, t: float | None) -> float:
        return self._require_curve().reparam(s) if t is None else t

    @abstractmethod
    def get(self, s: float, t: float | None = None) -> float: ...

    @abstractmethod
    def deriv(self, s: float, t: float | None = None) -> float: ...

    @abstractmethod
    def second_deriv(self, s: float, t: float | None = None) -> float: ...

    def start(self) -> float:
        return self.get(0.0)

    def start_deriv(self) -> float:
        return self.deriv(0.0)

    def start_second_deriv(self) -> float:
        return self.second_deriv(0.0)

    def end(self) -> float:
        return self.get(self.length())

    def end_deriv(self) -> float:
        return self.deriv(self.length())

    def end_second_deriv(self) -> float:
        return self.second_deriv(self.length())


class TangentInterpolator(HeadingInterpolator):
    """Heading follows the curve tangent, plus a fixed offset."""

    def __init__(self, offset: float = 0.0):
        self.offset = offset

    def get(self, s: float, t: float | None = None) -> float:
        return norm_angle(self.offset + self._require_curve().tangent_angle(s, self._t(s, t)))

    def deriv(self, s: float, t: float | None = None) -> float:
        return self._require_curve().tangent_angle_deriv(s, self._t(s, t))

    def second_deriv(self, s: float, t: float | None = None) -> float:
        return self._require_curve().tangent_angle_second_deriv(s, self._t(s, t))


class ConstantInterpolator(HeadingInterpolator):
    def __init__(self, heading: float):
        self.heading = heading

    def get(self, s: float, t: float | None = None) -> float:
        return norm_angle(self.heading)

    def deriv(self, s: float, t: float | None = None) -> float:
        return 0.0

    def second_deriv(self, s: float, t: float | None = None) -> float:
        return 0.0


class LinearInterpolator(HeadingInterpolator):
    """Heading changes by `angle` at a constant rate over the curve."""

    def __init__(self, start_heading: float, angle: float):
        self.start_heading = start_heading
        self.angle = angle

    def get(self, s: float, t: float | None = None) -> float:
        return norm_angle(self.start_heading + s / self.length() * self.angle)

    def deriv(self, s: float, t: float | None = None) -> float:
        return self.angle / self.length()

    def second_deriv(self, s: float, t: float | None = None) -> float:
        return 0.0


class SplineInterpolator(HeadingInterpolator):
    """
    Quintic heading profile from start_heading to end_heading.

    Unspecified end derivatives default to the curve's tangent angle
    derivatives at that end, so the heading blends into tangent following.
    """

    def __init__(
        self,
        start_heading: float,
        end_heading: float,
        start_deriv: float | None = None,
        start_second_deriv: float | None = None,
        end_deriv: float | None = None,
        end_second_deriv: float | None = None,
    ):
        self.start_heading = start_heading
        self.end_heading = end_heading
        self.start_deriv_override = start_deriv
        self.start_second_deriv_override = start_second_deriv
        self.end_deriv_override = end_deriv
        self.end_second_deriv_override = end_second_deriv
        self.polynomial: QuinticPolynomial | None = None

    def init(self, curve: ParametricCurve) -> None:
        super().init(curve)
        length = curve.length()

        def pick(value: float | None, fallback) -> float:
            return fallback() if value is None else value

        sd = pick(self.start_deriv_override, lambda: curve.tangent_angle_deriv(0.0))
        ssd = pick(self.start_second_deriv_override, lambda: curve.tangent_angle_second_deriv(0.0))
        ed = pick(self.end_deriv_override, lambda: curve.tangent_angle_deriv(length))
        esd = pick(self.end_second_deriv_override, lambda: curve.tangent_angle_second_deriv(length))

        self.polynomial = QuinticPolynomial(
            0.0,
            sd * length,
            ssd * length * length,
            norm_delta(self.end_heading - self.start_heading),
            ed * length,
            esd * length * length,
        )

    def _poly(self) -> QuinticPolynomial:
        if self.polynomial is None:
            raise RuntimeError("SplineInterpolator used before init(curve)")
        return self.polynomial

    def get(self, s: float, t: float | None = None) -> float:
        return norm_angle(self.start_heading + self._poly().get(s / self.length()))

    def deriv(self, s: float, t: float | None = None) -> float:
        length = self.length()
        return self._poly().deriv(s / length) / length

    def second_deriv(self, s: float, t: float | None = None) -> float:
        length = self.length()
        return self._poly().second_deriv(s / length) / (length * length)


# Heading interpolation kinds accepted by the builders


class HeadingInterpolation:
    """Marker base for the heading kinds a builder move can request."""


@dataclass(frozen=True)
class TangentHeading(HeadingInterpolation):
    pass


@dataclass(frozen=True)
class ConstantHeading(HeadingInterpolation):
    pass


@dataclass(frozen=True)
class LinearHeading(HeadingInterpolation):
    target: float


@dataclass(frozen=True)
class SplineHeading(HeadingInterpolation):
    target: float
