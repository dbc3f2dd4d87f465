"""
Planar geometry primitives.

Angles are plain floats in radians. Poses use x forward, y left and heading
measured counter-clockwise from the x-axis.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from trajgen.utils.numeric import epsilon_equals

TAU = 2.0 * math.pi


def norm_angle(angle: float) -> float:
    """Wrap an angle into [0, 2π)."""
    wrapped = math.fmod(angle, TAU)
    if wrapped < 0.0:
        wrapped += TAU
    # fmod can round a tiny negative value up to exactly TAU
    return 0.0 if wrapped >= TAU else wrapped


def norm_delta(angle: float) -> float:
    """Wrap an angle difference into [-π, π)."""
    wrapped = norm_angle(angle)
    if wrapped >= math.pi:
        wrapped -= TAU
    return wrapped


def deg(radians: float) -> float:
    return math.degrees(radians)


def rad(degrees: float) -> float:
    return math.radians(degrees)


def angles_equal(a: float, b: float) -> bool:
    """Compare two headings modulo a full turn."""
    return epsilon_equals(norm_delta(a - b), 0.0)


@dataclass(frozen=True)
class Vector2d:
    x: float = 0.0
    y: float = 0.0

    @classmethod
    def polar(cls, r: float, theta: float) -> Vector2d:
        return cls(r * math.cos(theta), r * math.sin(theta))

    @classmethod
    def from_array(cls, arr) -> Vector2d:
        return cls(float(arr[0]), float(arr[1]))

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=float)

    def norm(self) -> float:
        return math.hypot(self.x, self.y)

    def angle(self) -> float:
        return norm_angle(math.atan2(self.y, self.x))

    def angle_between(self, other: Vector2d) -> float:
        return math.acos(max(-1.0, min(1.0, self.dot(other) / (self.norm() * other.norm()))))

    def dot(self, other: Vector2d) -> float:
        return self.x * other.x + self.y * other.y

    def cross(self, other: Vector2d) -> float:
        return self.x * other.y - self.y * other.x

    def dist_to(self, other: Vector2d) -> float:
        return (self - other).norm()

    def project_onto(self, other: Vector2d) -> Vector2d:
        return other * (self.dot(other) / other.dot(other))

    def rotated(self, angle: float) -> Vector2d:
        c = math.cos(angle)
        s = math.sin(angle)
        return Vector2d(self.x * c - self.y * s, self.x * s + self.y * c)

    def epsilon_equals(self, other: Vector2d) -> bool:
        return epsilon_equals(self.x, other.x) and epsilon_equals(self.y, other.y)

    def __add__(self, other: Vector2d) -> Vector2d:
        return Vector2d(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vector2d) -> Vector2d:
        return Vector2d(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Vector2d:
        return Vector2d(self.x * scalar, self.y * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> Vector2d:
        return Vector2d(self.x / scalar, self.y / scalar)

    def __neg__(self) -> Vector2d:
        return Vector2d(-self.x, -self.y)

    def __repr__(self) -> str:
        return f"({self.x:.3f}, {self.y:.3f})"


@dataclass(frozen=True)
class Pose2d:
    x: float = 0.0
    y: float = 0.0
    heading: float = 0.0

    @classmethod
    def from_vec(cls, vec: Vector2d, heading: float = 0.0) -> Pose2d:
        return cls(vec.x, vec.y, heading)

    def vec(self) -> Vector2d:
        return Vector2d(self.x, self.y)

    def heading_vec(self) -> Vector2d:
        return Vector2d(math.cos(self.heading), math.sin(self.heading))

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.heading], dtype=float)

    def epsilon_equals(self, other: Pose2d) -> bool:
        """Component-wise comparison, heading included as a raw value."""
        return (
            epsilon_equals(self.x, other.x)
            and epsilon_equals(self.y, other.y)
            and epsilon_equals(self.heading, other.heading)
        )

    def epsilon_equals_heading(self, other: Pose2d) -> bool:
        """Like epsilon_equals, but headings are compared modulo a full turn."""
        return (
            epsilon_equals(self.x, other.x)
            and epsilon_equals(self.y, other.y)
            and angles_equal(self.heading, other.heading)
        )

    def __add__(self, other: Pose2d) -> Pose2d:
        return Pose2d(self.x + other.x, self.y + other.y, self.heading + other.heading)

    def __sub__(self, other: Pose2d) -> Pose2d:
        return Pose2d(self.x - other.x, self.y - other.y, self.heading - other.heading)

    def __mul__(self, scalar: float) -> Pose2d:
        return Pose2d(self.x * scalar, self.y * scalar, self.heading * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> Pose2d:
        return Pose2d(self.x / scalar, self.y / scalar, self.heading / scalar)

    def __neg__(self) -> Pose2d:
        return Pose2d(-self.x, -self.y, -self.heading)

    def __repr__(self) -> str:
        return f"({self.x:.3f}, {self.y:.3f}, {math.degrees(self.heading):.3f}°)"
