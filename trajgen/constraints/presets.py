"""
Drivetrain constraint presets.

Each preset bundles a velocity constraint, an acceleration constraint and the
angular limits used for point turns. Limits are in path units and radians.
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass, field

from trajgen.config import (
    DEFAULT_MAX_ACCEL,
    DEFAULT_MAX_ANG_ACCEL,
    DEFAULT_MAX_ANG_JERK,
    DEFAULT_MAX_ANG_VEL,
    DEFAULT_MAX_VEL,
)
from trajgen.kinematics import swerve_module_positions

from .acceleration import (
    AngularAccelerationConstraint,
    MinAccelerationConstraint,
    TrajectoryAccelerationConstraint,
    TranslationalAccelerationConstraint,
)
from .velocity import (
    AngularAccelVelocityConstraint,
    AngularVelocityConstraint,
    DriveVelocityConstraint,
    MinVelocityConstraint,
    TrajectoryVelocityConstraint,
    TranslationalVelocityConstraint,
)


class TrajectoryConstraints(ABC):
    """
    Robot-specific limits consumed by the trajectory builders.

    Subclasses provide `vel_constraint`, `accel_constraint`, `max_ang_vel`,
    `max_ang_accel` and `max_ang_jerk`.
    """

    vel_constraint: TrajectoryVelocityConstraint
    accel_constraint: TrajectoryAccelerationConstraint
    max_ang_vel: float
    max_ang_accel: float
    max_ang_jerk: float


def _common_velocity_constraints(
    max_vel: float, max_accel: float, max_ang_vel: float, max_ang_accel: float
) -> list[TrajectoryVelocityConstraint]:
    return [
        AngularVelocityConstraint(max_ang_vel),
        TranslationalVelocityConstraint(max_vel),
        AngularAccelVelocityConstraint(max_ang_accel, max_accel),
    ]


def _acceleration_constraint(max_accel: float, max_ang_accel: float) -> MinAccelerationConstraint:
    return MinAccelerationConstraint(
        [TranslationalAccelerationConstraint(max_accel), AngularAccelerationConstraint(max_ang_accel)]
    )


@dataclass
class GenericConstraints(TrajectoryConstraints):
    """Drivetrain-agnostic limits."""

    max_vel: float = DEFAULT_MAX_VEL
    max_accel: float = DEFAULT_MAX_ACCEL
    max_ang_vel: float = DEFAULT_MAX_ANG_VEL
    max_ang_accel: float = DEFAULT_MAX_ANG_ACCEL
    max_ang_jerk: float = DEFAULT_MAX_ANG_JERK
    vel_constraint: TrajectoryVelocityConstraint = field(init=False, repr=False, compare=False)
    accel_constraint: TrajectoryAccelerationConstraint = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        self.vel_constraint = MinVelocityConstraint(
            [
                TranslationalVelocityConstraint(self.max_vel),
                AngularVelocityConstraint(self.max_ang_vel),
                AngularAccelVelocityConstraint(self.max_ang_accel, self.max_accel),
            ]
        )
        self.accel_constraint = _acceleration_constraint(self.max_accel, self.max_ang_accel)


@dataclass
class MecanumConstraints(TrajectoryConstraints):
    """Limits for a mecanum drive, including per-wheel speed."""

    max_wheel_vel: float
    track_width: float
    wheel_base: float | None = None
    lateral_multiplier: float = 1.0
    max_vel: float = DEFAULT_MAX_VEL
    max_accel: float = DEFAULT_MAX_ACCEL
    max_ang_vel: float = DEFAULT_MAX_ANG_VEL
    max_ang_accel: float = DEFAULT_MAX_ANG_ACCEL
    max_ang_jerk: float = DEFAULT_MAX_ANG_JERK
    vel_constraint: TrajectoryVelocityConstraint = field(init=False, repr=False, compare=False)
    accel_constraint: TrajectoryAccelerationConstraint = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        drive = DriveVelocityConstraint.for_mecanum(
            self.max_wheel_vel, self.track_width, self.wheel_base, self.lateral_multiplier
        )
        self.vel_constraint = MinVelocityConstraint(
            [drive, *_common_velocity_constraints(self.max_vel, self.max_accel, self.max_ang_vel, self.max_ang_accel)]
        )
        self.accel_constraint = _acceleration_constraint(self.max_accel, self.max_ang_accel)


@dataclass
class TankConstraints(TrajectoryConstraints):
    """Limits for a differential (tank) drive."""

    max_wheel_vel: float
    track_width: float
    max_vel: float = DEFAULT_MAX_VEL
    max_accel: float = DEFAULT_MAX_ACCEL
    max_ang_vel: float = DEFAULT_MAX_ANG_VEL
    max_ang_accel: float = DEFAULT_MAX_ANG_ACCEL
    max_ang_jerk: float = DEFAULT_MAX_ANG_JERK
    vel_constraint: TrajectoryVelocityConstraint = field(init=False, repr=False, compare=False)
    accel_constraint: TrajectoryAccelerationConstraint = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        drive = DriveVelocityConstraint.for_tank(self.max_wheel_vel, self.track_width)
        self.vel_constraint = MinVelocityConstraint(
            [drive, *_common_velocity_constraints(self.max_vel, self.max_accel, self.max_ang_vel, self.max_ang_accel)]
        )
        self.accel_constraint = _acceleration_constraint(self.max_accel, self.max_ang_accel)


@dataclass
class SwerveConstraints(TrajectoryConstraints):
    """Limits for a four-module swerve drive."""

    max_wheel_vel: float
    track_width: float
    wheel_base: float | None = None
    max_vel: float = DEFAULT_MAX_VEL
    max_accel: float = DEFAULT_MAX_ACCEL
    max_ang_vel: float = DEFAULT_MAX_ANG_VEL
    max_ang_accel: float = DEFAULT_MAX_ANG_ACCEL
    max_ang_jerk: float = DEFAULT_MAX_ANG_JERK
    vel_constraint: TrajectoryVelocityConstraint = field(init=False, repr=False, compare=False)
    accel_constraint: TrajectoryAccelerationConstraint = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        drive = DriveVelocityConstraint.for_swerve(
            self.max_wheel_vel, swerve_module_positions(self.track_width, self.wheel_base)
        )
        self.vel_constraint = MinVelocityConstraint(
            [drive, *_common_velocity_constraints(self.max_vel, self.max_accel, self.max_ang_vel, self.max_ang_accel)]
        )
        self.accel_constraint = _acceleration_constraint(self.max_accel, self.max_ang_accel)


@dataclass
class DiffSwerveConstraints(TrajectoryConstraints):
    """Limits for a two-module differential swerve; `max_gear_vel` caps module speed."""

    max_gear_vel: float
    track_width: float
    max_vel: float = DEFAULT_MAX_VEL
    max_accel: float = DEFAULT_MAX_ACCEL
    max_ang_vel: float = DEFAULT_MAX_ANG_VEL
    max_ang_accel: float = DEFAULT_MAX_ANG_ACCEL
    max_ang_jerk: float = DEFAULT_MAX_ANG_JERK
    vel_constraint: TrajectoryVelocityConstraint = field(init=False, repr=False, compare=False)
    accel_constraint: TrajectoryAccelerationConstraint = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        drive = DriveVelocityConstraint.for_swerve(self.max_gear_vel, swerve_module_positions(self.track_width))
        self.vel_constraint = MinVelocityConstraint(
            [drive, *_common_velocity_constraints(self.max_vel, self.max_accel, self.max_ang_vel, self.max_ang_accel)]
        )
        self.accel_constraint = _acceleration_constraint(self.max_accel, self.max_ang_accel)
