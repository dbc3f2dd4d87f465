"""
Drivetrain kinematics.

Wheel lists are ordered front left, back left, back right, front right
(counter-clockwise). Robot velocities are Pose2d values in the robot frame.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from trajgen.geometry import Pose2d, Vector2d, norm_angle, norm_delta
from trajgen.utils.numeric import epsilon_equals


def field_to_robot_velocity(field_pose: Pose2d, field_vel: Pose2d) -> Pose2d:
    """Rotate a field-frame velocity into the robot frame at field_pose."""
    return Pose2d.from_vec(field_vel.vec().rotated(-field_pose.heading), field_vel.heading)


def field_to_robot_acceleration(field_pose: Pose2d, field_vel: Pose2d, field_accel: Pose2d) -> Pose2d:
    rotated = Pose2d.from_vec(field_accel.vec().rotated(-field_pose.heading), field_accel.heading)
    s = math.sin(field_pose.heading)
    c = math.cos(field_pose.heading)
    coriolis = Pose2d(
        -field_vel.x * s + field_vel.y * c,
        -field_vel.x * c - field_vel.y * s,
        0.0,
    )
    return rotated + coriolis * field_vel.heading


def calculate_field_pose_error(target: Pose2d, current: Pose2d) -> Pose2d:
    return Pose2d.from_vec((target - current).vec(), norm_delta(target.heading - current.heading))


def calculate_robot_pose_error(target: Pose2d, current: Pose2d) -> Pose2d:
    error = calculate_field_pose_error(target, current)
    return Pose2d.from_vec(error.vec().rotated(-current.heading), error.heading)


def relative_odometry_update(field_pose: Pose2d, robot_pose_delta: Pose2d) -> Pose2d:
    """
    Integrate a robot-frame pose delta assuming constant velocity over the interval.

    Args:
        field_pose: Pose before the update
        robot_pose_delta: Displacement measured in the robot frame

    Returns:
        Updated field pose with normalized heading
    """
    dtheta = robot_pose_delta.heading
    if epsilon_equals(dtheta, 0.0):
        sine_term = 1.0 - dtheta * dtheta / 6.0
        cos_term = dtheta / 2.0
    else:
        sine_term = math.sin(dtheta) / dtheta
        cos_term = (1 - math.cos(dtheta)) / dtheta

    field_position_delta = Vector2d(
        sine_term * robot_pose_delta.x - cos_term * robot_pose_delta.y,
        cos_term * robot_pose_delta.x + sine_term * robot_pose_delta.y,
    ).rotated(field_pose.heading)

    return Pose2d(
        field_pose.x + field_position_delta.x,
        field_pose.y + field_position_delta.y,
        norm_angle(field_pose.heading + robot_pose_delta.heading),
    )


# Tank


def tank_robot_to_wheel_velocities(robot_vel: Pose2d, track_width: float) -> list[float]:
    """Left and right wheel velocities for a differential drive."""
    return [
        robot_vel.x - track_width / 2 * robot_vel.heading,
        robot_vel.x + track_width / 2 * robot_vel.heading,
    ]


def tank_wheel_to_robot_velocities(wheel_velocities: Sequence[float], track_width: float) -> Pose2d:
    left, right = wheel_velocities
    return Pose2d((left + right) / 2.0, 0.0, (right - left) / track_width)


# Mecanum


def mecanum_robot_to_wheel_velocities(
    robot_vel: Pose2d,
    track_width: float,
    wheel_base: float | None = None,
    lateral_multiplier: float = 1.0,
) -> list[float]:
    """
    Wheel velocities for a mecanum drive.

    Args:
        robot_vel: Velocity of the robot in its own frame
        track_width: Lateral distance between wheels on different sides
        wheel_base: Distance between wheels on the same side (defaults to track_width)
        lateral_multiplier: Gain compensating for proportional strafe error

    Returns:
        [front_left, back_left, back_right, front_right]
    """
    wheel_base = track_width if wheel_base is None else wheel_base
    k = (track_width + wheel_base) / 2.0
    lat = lateral_multiplier * robot_vel.y
    omega = robot_vel.heading
    return [
        robot_vel.x - lat - k * omega,
        robot_vel.x + lat - k * omega,
        robot_vel.x - lat + k * omega,
        robot_vel.x + lat + k * omega,
    ]


def mecanum_wheel_to_robot_velocities(
    wheel_velocities: Sequence[float],
    track_width: float,
    wheel_base: float | None = None,
    lateral_multiplier: float = 1.0,
) -> Pose2d:
    wheel_base = track_width if wheel_base is None else wheel_base
    k = (track_width + wheel_base) / 2.0
    front_left, back_left, back_right, front_right = wheel_velocities
    return Pose2d(
        sum(wheel_velocities),
        (back_left + front_right - front_left - back_right) / lateral_multiplier,
        (back_right + front_right - front_left - back_left) / k,
    ) * 0.25


# Swerve


def swerve_module_positions(track_width: float, wheel_base: float | None = None) -> list[Vector2d]:
    """Module positions relative to the robot center, front left first."""
    wheel_base = track_width if wheel_base is None else wheel_base
    x = wheel_base / 2
    y = track_width / 2
    return [Vector2d(x, y), Vector2d(-x, y), Vector2d(-x, -y), Vector2d(x, -y)]


def swerve_robot_to_module_velocity_vectors(
    robot_vel: Pose2d, module_positions: Sequence[Vector2d]
) -> list[Vector2d]:
    omega = robot_vel.heading
    return [Vector2d(robot_vel.x - omega * pos.y, robot_vel.y + omega * pos.x) for pos in module_positions]


def swerve_robot_to_wheel_velocities(robot_vel: Pose2d, module_positions: Sequence[Vector2d]) -> list[float]:
    return [v.norm() for v in swerve_robot_to_module_velocity_vectors(robot_vel, module_positions)]


def swerve_robot_to_module_orientations(robot_vel: Pose2d, module_positions: Sequence[Vector2d]) -> list[float]:
    return [v.angle() for v in swerve_robot_to_module_velocity_vectors(robot_vel, module_positions)]
