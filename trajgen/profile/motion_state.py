"""
Kinematic state along one axis and constant-jerk motion segments.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MotionState:
    """Position, velocity, acceleration and jerk along a 1-D axis."""

    x: float
    v: float
    a: float = 0.0
    j: float = 0.0

    def get(self, t: float) -> MotionState:
        """State after t seconds of constant jerk."""
        return MotionState(
            self.x + self.v * t + self.a / 2 * t * t + self.j / 6 * t * t * t,
            self.v + self.a * t + self.j / 2 * t * t,
            self.a + self.j * t,
            self.j,
        )

    __call__ = get

    def flipped(self) -> MotionState:
        return MotionState(-self.x, -self.v, -self.a, -self.j)

    def stationary(self) -> MotionState:
        return MotionState(self.x, 0.0, 0.0, 0.0)

    def __repr__(self) -> str:
        return f"(x={self.x:.3f}, v={self.v:.3f}, a={self.a:.3f}, j={self.j:.3f})"


@dataclass(frozen=True)
class MotionSegment:
    """A start state held under constant jerk for dt seconds."""

    start: MotionState
    dt: float

    def get(self, t: float) -> MotionState:
        return self.start.get(t)

    def end(self) -> MotionState:
        return self.start.get(self.dt)

    def reversed(self) -> MotionSegment:
        """
        The same motion played backwards in time.

        Velocity and jerk change sign; the reversed segment starts from this
        segment's end state.
        """
        end = self.end()
        return MotionSegment(MotionState(end.x, -end.v, end.a, -self.start.j), self.dt)

    def flipped(self) -> MotionSegment:
        return MotionSegment(self.start.flipped(), self.dt)

    def __repr__(self) -> str:
        return f"({self.start!r}, {self.dt:.4f})"
