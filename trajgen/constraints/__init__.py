from .acceleration import (
    AccelerationConstraintLike,
    AngularAccelerationConstraint,
    Interval,
    IntervalSet,
    MinAccelerationConstraint,
    TrajectoryAccelerationConstraint,
    TranslationalAccelerationConstraint,
    intersect_intervals,
)
from .presets import (
    DiffSwerveConstraints,
    GenericConstraints,
    MecanumConstraints,
    SwerveConstraints,
    TankConstraints,
    TrajectoryConstraints,
)
from .velocity import (
    AngularAccelVelocityConstraint,
    AngularVelocityConstraint,
    DriveVelocityConstraint,
    MinVelocityConstraint,
    TrajectoryVelocityConstraint,
    TranslationalVelocityConstraint,
    VelocityConstraintLike,
)

__all__ = [
    "TrajectoryVelocityConstraint",
    "VelocityConstraintLike",
    "TranslationalVelocityConstraint",
    "AngularVelocityConstraint",
    "AngularAccelVelocityConstraint",
    "DriveVelocityConstraint",
    "MinVelocityConstraint",
    "TrajectoryAccelerationConstraint",
    "AccelerationConstraintLike",
    "Interval",
    "IntervalSet",
    "intersect_intervals",
    "TranslationalAccelerationConstraint",
    "AngularAccelerationConstraint",
    "MinAccelerationConstraint",
    "TrajectoryConstraints",
    "GenericConstraints",
    "MecanumConstraints",
    "TankConstraints",
    "SwerveConstraints",
    "DiffSwerveConstraints",
]
