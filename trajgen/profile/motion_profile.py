"""
Piecewise constant-jerk motion profiles.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from trajgen.config import PROFILE_DISTANCE_ITERATIONS
from trajgen.utils.numeric import epsilon_equals

from .motion_state import MotionSegment, MotionState


class MotionProfile:
    """
    Ordered motion segments queryable by time.

    Times before zero return the first start state; times past the duration
    return the final end state.
    """

    def __init__(self, segments: Sequence[MotionSegment]):
        if not segments:
            raise ValueError("A MotionProfile cannot be constructed without any MotionSegments.")
        self.segments: tuple[MotionSegment, ...] = tuple(segments)

    def get(self, t: float) -> MotionState:
        if t < 0.0:
            return self.segments[0].start
        remaining = t
        for segment in self.segments:
            if remaining <= segment.dt:
                return segment.get(remaining)
            remaining -= segment.dt
        return self.segments[-1].end()

    __call__ = get

    def get_by_distance(self, s: float) -> MotionState:
        """State where the profile first reaches displacement s (bisection on time)."""
        t_lo = 0.0
        t_hi = self.duration()
        for _ in range(PROFILE_DISTANCE_ITERATIONS):
            t_mid = 0.5 * (t_lo + t_hi)
            if self.get(t_mid).x > s:
                t_hi = t_mid
            else:
                t_lo = t_mid
            if epsilon_equals(t_lo, t_hi):
                break
        return self.get(0.5 * (t_lo + t_hi))

    def duration(self) -> float:
        return sum(segment.dt for segment in self.segments)

    def reversed(self) -> MotionProfile:
        return MotionProfile([segment.reversed() for segment in reversed(self.segments)])

    def flipped(self) -> MotionProfile:
        return MotionProfile([segment.flipped() for segment in self.segments])

    def start(self) -> MotionState:
        return self.segments[0].start

    def end(self) -> MotionState:
        return self.segments[-1].end()

    def sample(self, dt: float) -> dict[str, np.ndarray]:
        """
        Evaluate the profile on a uniform time grid.

        Args:
            dt: Time step

        Returns:
            Dict of arrays keyed by time, position, velocity, acceleration, jerk
        """
        duration = self.duration()
        n = max(2, int(np.ceil(duration / dt)) + 1)
        times = np.linspace(0.0, duration, n)
        states = [self.get(float(t)) for t in times]
        return {
            "time": times,
            "position": np.array([state.x for state in states]),
            "velocity": np.array([state.v for state in states]),
            "acceleration": np.array([state.a for state in states]),
            "jerk": np.array([state.j for state in states]),
        }

    def __add__(self, other: MotionProfile) -> MotionProfile:
        builder = MotionProfileBuilder(self.start())
        builder.append_profile(self)
        builder.append_profile(other)
        return builder.build()

    def __len__(self) -> int:
        return len(self.segments)

    def __repr__(self) -> str:
        return f"MotionProfile({list(self.segments)!r})"


class MotionProfileBuilder:
    """Appends control segments to a profile, integrating state between them."""

    def __init__(self, start: MotionState):
        self.current_state = start
        self._segments: list[MotionSegment] = []

    def append_jerk_control(self, jerk: float, dt: float) -> MotionProfileBuilder:
        segment = MotionSegment(
            MotionState(self.current_state.x, self.current_state.v, self.current_state.a, jerk), dt
        )
        self._segments.append(segment)
        self.current_state = segment.end()
        return self

    def append_acceleration_control(self, accel: float, dt: float) -> MotionProfileBuilder:
        segment = MotionSegment(MotionState(self.current_state.x, self.current_state.v, accel), dt)
        self._segments.append(segment)
        self.current_state = segment.end()
        return self

    def append_profile(self, profile: MotionProfile) -> MotionProfileBuilder:
        """Replay another profile's controls (jerk or acceleration) from the current state."""
        for segment in profile.segments:
            if epsilon_equals(segment.start.j, 0.0):
                self.append_acceleration_control(segment.start.a, segment.dt)
            else:
                self.append_jerk_control(segment.start.j, segment.dt)
        return self

    def build(self) -> MotionProfile:
        return MotionProfile(self._segments)
