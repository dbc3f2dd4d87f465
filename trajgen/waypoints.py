"""
Numeric waypoint descriptions.

A `TrajectoryDescription` is a trajectory recipe reduced to plain numbers and
strings: a start pose, a constraints preset and a list of steps. It converts
to and from plain dicts (JSON-friendly) and builds into a `Trajectory`.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any

from trajgen.constraints import (
    DiffSwerveConstraints,
    GenericConstraints,
    MecanumConstraints,
    SwerveConstraints,
    TankConstraints,
    TrajectoryConstraints,
)
from trajgen.geometry import Pose2d, Vector2d
from trajgen.path import ConstantHeading, HeadingInterpolation, LinearHeading, SplineHeading, TangentHeading
from trajgen.trajectory import Trajectory, TrajectoryBuilder

logger = logging.getLogger(__name__)

STEP_KINDS = ("line", "spline", "forward", "back", "strafe_left", "strafe_right", "turn", "wait")
HEADING_KINDS = ("tangent", "constant", "linear", "spline")

CONSTRAINT_TYPES: dict[str, type[TrajectoryConstraints]] = {
    "generic": GenericConstraints,
    "mecanum": MecanumConstraints,
    "tank": TankConstraints,
    "swerve": SwerveConstraints,
    "diff_swerve": DiffSwerveConstraints,
}


@dataclass
class WaypointStep:
    """
    One builder call.

    `x`/`y` are the target position of line and spline steps, `tangent` the
    spline end tangent, `heading`/`heading_target` the heading interpolation,
    `distance` the length of forward/back/strafe steps, `angle` the turn angle
    and `duration` the wait time. Angles are radians.
    """

    kind: str
    x: float = 0.0
    y: float = 0.0
    tangent: float = 0.0
    heading: str = "tangent"
    heading_target: float = 0.0
    distance: float = 0.0
    angle: float = 0.0
    duration: float = 0.0

    def __post_init__(self):
        if self.kind not in STEP_KINDS:
            raise ValueError(f"Unknown step kind {self.kind!r}; expected one of {STEP_KINDS}")
        if self.heading not in HEADING_KINDS:
            raise ValueError(f"Unknown heading kind {self.heading!r}; expected one of {HEADING_KINDS}")

    def heading_interpolation(self) -> HeadingInterpolation:
        if self.heading == "constant":
            return ConstantHeading()
        if self.heading == "linear":
            return LinearHeading(self.heading_target)
        if self.heading == "spline":
            return SplineHeading(self.heading_target)
        return TangentHeading()

    def apply(self, builder: TrajectoryBuilder) -> None:
        target = Vector2d(self.x, self.y)
        if self.kind == "line":
            builder.add_line(target, self.heading_interpolation())
        elif self.kind == "spline":
            builder.add_spline(target, self.tangent, self.heading_interpolation())
        elif self.kind == "forward":
            builder.forward(self.distance)
        elif self.kind == "back":
            builder.back(self.distance)
        elif self.kind == "strafe_left":
            builder.strafe_left(self.distance)
        elif self.kind == "strafe_right":
            builder.strafe_right(self.distance)
        elif self.kind == "turn":
            builder.turn(self.angle)
        else:
            builder.wait(self.duration)


@dataclass
class ConstraintsDescription:
    """A constraints preset by name plus its numeric parameters."""

    type: str = "generic"
    params: dict[str, float] = field(default_factory=dict)

    def __post_init__(self):
        if self.type not in CONSTRAINT_TYPES:
            raise ValueError(f"Unknown constraints type {self.type!r}; expected one of {tuple(CONSTRAINT_TYPES)}")

    def build(self) -> TrajectoryConstraints:
        return CONSTRAINT_TYPES[self.type](**self.params)


@dataclass
class TrajectoryDescription:
    start: Pose2d = field(default_factory=Pose2d)
    reversed: bool = False
    constraints: ConstraintsDescription = field(default_factory=ConstraintsDescription)
    steps: list[WaypointStep] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": {"x": self.start.x, "y": self.start.y, "heading": self.start.heading},
            "reversed": self.reversed,
            "constraints": {"type": self.constraints.type, "params": dict(self.constraints.params)},
            "steps": [asdict(step) for step in self.steps],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TrajectoryDescription:
        """
        Parse a description produced by `to_dict`.

        Raises:
            ValueError: unknown step, heading or constraints kind
        """
        start = data.get("start", {})
        constraints = data.get("constraints", {})
        return cls(
            start=Pose2d(float(start.get("x", 0.0)), float(start.get("y", 0.0)), float(start.get("heading", 0.0))),
            reversed=bool(data.get("reversed", False)),
            constraints=ConstraintsDescription(
                constraints.get("type", "generic"),
                {key: float(value) for key, value in constraints.get("params", {}).items()},
            ),
            steps=[WaypointStep(**step) for step in data.get("steps", [])],
        )

    def build(self) -> Trajectory:
        builder = TrajectoryBuilder.from_constraints(self.start, self.constraints.build(), reversed=self.reversed)
        for step in self.steps:
            step.apply(builder)
        trajectory = builder.build()
        logger.debug(f"Built {len(self.steps)} waypoint steps into {trajectory!r}")
        return trajectory
