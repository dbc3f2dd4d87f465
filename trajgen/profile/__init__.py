from .generator import (
    AccelerationConstraint,
    VelocityConstraint,
    generate_accel_profile,
    generate_motion_profile,
    generate_simple_motion_profile,
)
from .motion_profile import MotionProfile, MotionProfileBuilder
from .motion_state import MotionSegment, MotionState

__all__ = [
    "MotionState",
    "MotionSegment",
    "MotionProfile",
    "MotionProfileBuilder",
    "VelocityConstraint",
    "AccelerationConstraint",
    "generate_simple_motion_profile",
    "generate_accel_profile",
    "generate_motion_profile",
]
