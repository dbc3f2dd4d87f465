"""
trajgen Python Package

Trajectory generation for wheeled mobile robots: planar curves and paths with
independent heading control, constraint-bounded motion profiles, and builders
that assemble them into time-parameterized trajectories with markers.

Key components:
- PathBuilder: Fluent, continuity-checked path construction
- TrajectoryBuilder: Trajectories under velocity/acceleration constraints
- SimpleTrajectoryBuilder: Trajectories under constant kinematic limits
- Trajectory: Pose, velocity and acceleration sampled by time
- GenericConstraints / MecanumConstraints / TankConstraints / SwerveConstraints /
  DiffSwerveConstraints: Drivetrain constraint presets
- TrajectoryDescription: Numeric, dict-serializable trajectory recipes
"""

from ._version import __version__
from .constraints import (
    DiffSwerveConstraints,
    GenericConstraints,
    MecanumConstraints,
    SwerveConstraints,
    TankConstraints,
    TrajectoryConstraints,
)
from .geometry import Pose2d, Vector2d, deg, norm_angle, norm_delta, rad
from .path import Path, PathBuilder, PositionPath, PositionPathBuilder
from .profile import MotionProfile, MotionState, generate_motion_profile, generate_simple_motion_profile
from .trajectory import SimpleTrajectoryBuilder, Trajectory, TrajectoryBuilder, TrajectoryGenerator
from .utils.errors import (
    EmptyPathSegment,
    PathContinuityViolation,
    TrajectoryStateError,
    TrajgenError,
    UnsatisfiableConstraint,
)
from .waypoints import TrajectoryDescription

__all__ = [
    "__version__",
    "Vector2d",
    "Pose2d",
    "norm_angle",
    "norm_delta",
    "deg",
    "rad",
    "Path",
    "PositionPath",
    "PathBuilder",
    "PositionPathBuilder",
    "MotionState",
    "MotionProfile",
    "generate_simple_motion_profile",
    "generate_motion_profile",
    "TrajectoryConstraints",
    "GenericConstraints",
    "MecanumConstraints",
    "TankConstraints",
    "SwerveConstraints",
    "DiffSwerveConstraints",
    "Trajectory",
    "TrajectoryGenerator",
    "TrajectoryBuilder",
    "SimpleTrajectoryBuilder",
    "TrajectoryDescription",
    "TrajgenError",
    "PathContinuityViolation",
    "EmptyPathSegment",
    "UnsatisfiableConstraint",
    "TrajectoryStateError",
]
