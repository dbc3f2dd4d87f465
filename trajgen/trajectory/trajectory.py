"""
Trajectory: an ordered, immutable sequence of time-parameterized segments.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from trajgen.config import EPSILON, PROFILE_DISTANCE_ITERATIONS
from trajgen.geometry import Pose2d
from trajgen.path import Path
from trajgen.profile import MotionProfile
from trajgen.utils.numeric import epsilon_equals

from .markers import TrajectoryMarker
from .segments import PathTrajectorySegment, TrajectorySegment


class Trajectory:
    """
    Pose, velocity and acceleration as functions of time.

    Times outside [0, duration] clamp to the first or last segment.
    """

    def __init__(
        self,
        segments: Sequence[TrajectorySegment] | TrajectorySegment,
        markers: Sequence[TrajectoryMarker] = (),
    ):
        if isinstance(segments, TrajectorySegment):
            segments = [segments]
        if not segments:
            raise ValueError("A Trajectory cannot be initialized without segments.")
        self.segments: tuple[TrajectorySegment, ...] = tuple(segments)
        self.markers: tuple[TrajectoryMarker, ...] = tuple(markers)

        path_segments = []
        for segment in self.segments:
            if isinstance(segment, PathTrajectorySegment):
                path_segments.extend(segment.path.segments)
        # turn/wait-only trajectories have no geometry to follow
        self.path: Path | None = Path(path_segments) if path_segments else None

    @classmethod
    def from_path(cls, path: Path, profile: MotionProfile) -> Trajectory:
        return cls(PathTrajectorySegment(path, profile))

    def length(self) -> float:
        return sum(segment.length() for segment in self.segments)

    def duration(self) -> float:
        return sum(segment.duration() for segment in self.segments)

    def segment(self, t: float) -> tuple[TrajectorySegment, float]:
        """Segment active at time t and the time into it."""
        if t <= 0.0:
            return self.segments[0], 0.0
        remaining = t
        for segment in self.segments:
            if remaining <= segment.duration():
                return segment, remaining
            remaining -= segment.duration()
        return self.segments[-1], self.segments[-1].duration()

    def get(self, t: float) -> Pose2d:
        segment, local_t = self.segment(t)
        return segment.get(local_t)

    __call__ = get

    def distance(self, t: float) -> float:
        """Path displacement covered by time t."""
        if t <= 0.0:
            return 0.0
        distance = 0.0
        remaining = t
        for segment in self.segments:
            if remaining <= segment.duration():
                return distance + segment.distance(remaining)
            remaining -= segment.duration()
            distance += segment.length()
        return distance

    def reparam(self, s: float) -> float:
        """
        Earliest time at which displacement s is reached (bisection on `distance`).

        A displacement at the end of a path resolves to the moment the path
        finishes, before any turn or wait that follows it.
        """
        if s <= 0.0:
            return 0.0
        # within EPSILON of s counts as reached
        target = min(s, self.length()) - EPSILON
        t_lo = 0.0
        t_hi = self.duration()
        for _ in range(PROFILE_DISTANCE_ITERATIONS):
            t_mid = 0.5 * (t_lo + t_hi)
            if self.distance(t_mid) >= target:
                t_hi = t_mid
            else:
                t_lo = t_mid
            if epsilon_equals(t_lo, t_hi):
                break
        return t_hi

    def deriv(self, t: float) -> Pose2d:
        segment, local_t = self.segment(t)
        return segment.deriv(local_t)

    def second_deriv(self, t: float) -> Pose2d:
        segment, local_t = self.segment(t)
        return segment.second_deriv(local_t)

    def velocity(self, t: float) -> Pose2d:
        segment, local_t = self.segment(t)
        return segment.velocity(local_t)

    def acceleration(self, t: float) -> Pose2d:
        segment, local_t = self.segment(t)
        return segment.acceleration(local_t)

    def start(self) -> Pose2d:
        return self.segments[0].start()

    def end(self) -> Pose2d:
        return self.segments[-1].end()

    def sample(self, dt: float) -> dict[str, np.ndarray]:
        """
        Evaluate the trajectory on a uniform time grid.

        Args:
            dt: Time step in seconds

        Returns:
            Dict with "time", "pose" (N x 3), "velocity" (N x 3) and
            "acceleration" (N x 3) arrays; pose rows are (x, y, heading)
        """
        duration = self.duration()
        n = max(2, int(np.ceil(duration / dt)) + 1)
        times = np.linspace(0.0, duration, n)
        return {
            "time": times,
            "pose": np.array([self.get(float(t)).as_array() for t in times]),
            "velocity": np.array([self.velocity(float(t)).as_array() for t in times]),
            "acceleration": np.array([self.acceleration(float(t)).as_array() for t in times]),
        }

    def __repr__(self) -> str:
        return (
            f"Trajectory(segments={len(self.segments)}, duration={self.duration():.3f}, "
            f"length={self.length():.3f}, markers={len(self.markers)})"
        )
