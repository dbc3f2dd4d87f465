"""
Time-parameterized trajectory segments.

Every segment answers pose, derivative and velocity queries at a time
relative to its own start. Path-backed segments follow a `Path` with a
displacement profile; turn segments rotate in place; wait segments hold a pose.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from trajgen.geometry import Pose2d, Vector2d, norm_angle
from trajgen.path import Path
from trajgen.profile import MotionProfile


class TrajectorySegment(ABC):
    @abstractmethod
    def duration(self) -> float: ...

    @abstractmethod
    def length(self) -> float: ...

    @abstractmethod
    def get(self, t: float) -> Pose2d: ...

    @abstractmethod
    def distance(self, t: float) -> float: ...

    @abstractmethod
    def deriv(self, t: float) -> Pose2d: ...

    @abstractmethod
    def second_deriv(self, t: float) -> Pose2d: ...

    @abstractmethod
    def velocity(self, t: float) -> Pose2d: ...

    @abstractmethod
    def acceleration(self, t: float) -> Pose2d: ...

    @abstractmethod
    def start(self) -> Pose2d: ...

    @abstractmethod
    def end(self) -> Pose2d: ...

    def __call__(self, t: float) -> Pose2d:
        return self.get(t)


class PathTrajectorySegment(TrajectorySegment):
    """A path traversed according to a displacement profile."""

    def __init__(self, path: Path, profile: MotionProfile):
        self.path = path
        self.profile = profile

    def duration(self) -> float:
        return self.profile.duration()

    def length(self) -> float:
        return self.path.length()

    def get(self, t: float) -> Pose2d:
        return self.path.get(self.profile.get(t).x)

    def distance(self, t: float) -> float:
        return self.profile.get(t).x

    def deriv(self, t: float) -> Pose2d:
        return self.path.deriv(self.profile.get(t).x)

    def second_deriv(self, t: float) -> Pose2d:
        return self.path.second_deriv(self.profile.get(t).x)

    def velocity(self, t: float) -> Pose2d:
        state = self.profile.get(t)
        return self.path.deriv(state.x) * state.v

    def acceleration(self, t: float) -> Pose2d:
        # chain rule: d2p/dt2 = p'' v^2 + p' a
        state = self.profile.get(t)
        return self.path.second_deriv(state.x) * (state.v * state.v) + self.path.deriv(state.x) * state.a

    def start(self) -> Pose2d:
        return self.path.get(0.0)

    def end(self) -> Pose2d:
        return self.path.get(self.path.length())

    def __repr__(self) -> str:
        return f"PathTrajectorySegment(length={self.length():.3f}, duration={self.duration():.3f})"


class TurnSegment(TrajectorySegment):
    """Point turn; the profile's displacement is the heading change in radians."""

    def __init__(self, pose: Pose2d, profile: MotionProfile):
        self.pose = pose
        self.profile = profile

    def duration(self) -> float:
        return self.profile.duration()

    def length(self) -> float:
        return 0.0

    def get(self, t: float) -> Pose2d:
        return Pose2d(self.pose.x, self.pose.y, norm_angle(self.pose.heading + self.profile.get(t).x))

    def distance(self, t: float) -> float:
        return 0.0

    def deriv(self, t: float) -> Pose2d:
        return Pose2d.from_vec(self.get(t).heading_vec(), self.profile.get(t).v)

    def second_deriv(self, t: float) -> Pose2d:
        return self.acceleration(t)

    def velocity(self, t: float) -> Pose2d:
        return Pose2d.from_vec(Vector2d(0.0, 0.0), self.profile.get(t).v)

    def acceleration(self, t: float) -> Pose2d:
        return Pose2d.from_vec(Vector2d(0.0, 0.0), self.profile.get(t).a)

    def start(self) -> Pose2d:
        return self.pose

    def end(self) -> Pose2d:
        return Pose2d(self.pose.x, self.pose.y, norm_angle(self.pose.heading + self.profile.end().x))

    def __repr__(self) -> str:
        return f"TurnSegment(pose={self.pose!r}, angle={self.profile.end().x:.4f})"


class WaitSegment(TrajectorySegment):
    """Holds a pose for a fixed time."""

    def __init__(self, pose: Pose2d, duration: float):
        if duration < 0.0:
            raise ValueError(f"wait duration must be non-negative, got {duration}")
        self.pose = pose
        self._duration = duration

    def duration(self) -> float:
        return self._duration

    def length(self) -> float:
        return 0.0

    def get(self, t: float) -> Pose2d:
        return self.pose

    def distance(self, t: float) -> float:
        return 0.0

    def deriv(self, t: float) -> Pose2d:
        return Pose2d.from_vec(self.pose.heading_vec())

    def second_deriv(self, t: float) -> Pose2d:
        return Pose2d()

    def velocity(self, t: float) -> Pose2d:
        return Pose2d()

    def acceleration(self, t: float) -> Pose2d:
        return Pose2d()

    def start(self) -> Pose2d:
        return self.pose

    def end(self) -> Pose2d:
        return self.pose

    def __repr__(self) -> str:
        return f"WaitSegment(pose={self.pose!r}, duration={self._duration:.3f})"
