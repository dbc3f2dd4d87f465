"""
Trajectory generator.

Joins paths and constraints into motion profiles and wraps them as
trajectory segments.
"""

from __future__ import annotations

import logging

from trajgen.config import PROFILE_RESOLUTION
from trajgen.constraints import AccelerationConstraintLike, VelocityConstraintLike
from trajgen.geometry import Pose2d
from trajgen.path import Path
from trajgen.profile import MotionProfile, MotionState, generate_motion_profile, generate_simple_motion_profile
from trajgen.utils.errors import UnsatisfiableConstraint

from .segments import PathTrajectorySegment, TurnSegment

logger = logging.getLogger(__name__)


class TrajectoryGenerator:
    """Profile generation for paths and point turns."""

    def __init__(self, resolution: float = PROFILE_RESOLUTION):
        """
        Initialize trajectory generator

        Args:
            resolution: Displacement step used to sample constraints along paths
        """
        self.resolution = resolution

    def generate_profile(
        self,
        path: Path,
        velocity_constraint: VelocityConstraintLike,
        acceleration_constraint: AccelerationConstraintLike,
        start: MotionState,
        goal: MotionState,
    ) -> MotionProfile:
        """
        Displacement profile along path under velocity/acceleration constraints.

        Constraints are evaluated at each sample with the path pose and the
        path derivatives at the sample and one step back.
        """

        def velocity(s: float, ds: float) -> float:
            t = path.reparam(s)
            last_t = path.reparam(s - ds)
            return velocity_constraint(path.get(s, t), path.deriv(s, t), path.deriv(s - ds, last_t), ds, Pose2d())

        def acceleration(s: float, ds: float, last_vel: float) -> float:
            t = path.reparam(s)
            last_t = path.reparam(s - ds)
            intervals = acceleration_constraint(path.deriv(s, t), path.deriv(s - ds, last_t), ds, last_vel)
            result = max(hi for _, hi in intervals)
            if result < 0.0:
                raise UnsatisfiableConstraint(f"no forward velocity reachable at s={s:.4f}")
            return result

        profile = generate_motion_profile(start, goal, velocity, acceleration, resolution=self.resolution)
        logger.debug(f"Path profile: length {path.length():.4f}, duration {profile.duration():.4f}s")
        return profile

    def generate_simple_profile(
        self,
        max_vel: float,
        max_accel: float,
        max_jerk: float,
        start: MotionState,
        goal: MotionState,
        overshoot: bool = False,
    ) -> MotionProfile:
        return generate_simple_motion_profile(start, goal, max_vel, max_accel, max_jerk, overshoot)

    def generate_path_trajectory_segment(
        self,
        path: Path,
        velocity_constraint: VelocityConstraintLike,
        acceleration_constraint: AccelerationConstraintLike,
        start: MotionState | None = None,
        goal: MotionState | None = None,
    ) -> PathTrajectorySegment:
        start = start if start is not None else MotionState(0.0, 0.0, 0.0)
        goal = goal if goal is not None else MotionState(path.length(), 0.0, 0.0)
        profile = self.generate_profile(path, velocity_constraint, acceleration_constraint, start, goal)
        return PathTrajectorySegment(path, profile)

    def generate_simple_path_trajectory_segment(
        self,
        path: Path,
        max_vel: float,
        max_accel: float,
        max_jerk: float = 0.0,
        start: MotionState | None = None,
        goal: MotionState | None = None,
    ) -> PathTrajectorySegment:
        start = start if start is not None else MotionState(0.0, 0.0, 0.0, 0.0)
        goal = goal if goal is not None else MotionState(path.length(), 0.0, 0.0, 0.0)
        profile = self.generate_simple_profile(max_vel, max_accel, max_jerk, start, goal)
        return PathTrajectorySegment(path, profile)

    def generate_turn_segment(
        self,
        pose: Pose2d,
        angle: float,
        max_ang_vel: float,
        max_ang_accel: float,
        max_ang_jerk: float = 0.0,
        overshoot: bool = False,
    ) -> TurnSegment:
        """Point turn of `angle` radians (signed) starting and ending at rest."""
        profile = self.generate_simple_profile(
            max_ang_vel,
            max_ang_accel,
            max_ang_jerk,
            MotionState(0.0, 0.0, 0.0),
            MotionState(angle, 0.0, 0.0),
            overshoot,
        )
        logger.debug(f"Turn of {angle:.4f} rad at {pose!r}: duration {profile.duration():.4f}s")
        return TurnSegment(pose, profile)
