import json
import math

import pytest

from trajgen import GenericConstraints, MecanumConstraints, Pose2d, TrajectoryDescription
from trajgen.trajectory import PathTrajectorySegment, TurnSegment, WaitSegment
from trajgen.waypoints import ConstraintsDescription, WaypointStep


def _description():
    return TrajectoryDescription(
        start=Pose2d(0.0, 0.0, 0.0),
        constraints=ConstraintsDescription("generic", {"max_vel": 20.0, "max_accel": 20.0}),
        steps=[
            WaypointStep("forward", distance=10.0),
            WaypointStep("turn", angle=math.pi / 2),
            WaypointStep("line", x=10.0, y=10.0),
            WaypointStep("wait", duration=0.5),
        ],
    )


def test_dict_round_trip_is_json_friendly():
    description = _description()
    data = description.to_dict()
    restored = TrajectoryDescription.from_dict(json.loads(json.dumps(data)))
    assert restored == description
    assert data["constraints"] == {"type": "generic", "params": {"max_vel": 20.0, "max_accel": 20.0}}
    assert data["steps"][0]["kind"] == "forward"


def test_from_dict_defaults():
    description = TrajectoryDescription.from_dict({"steps": [{"kind": "forward", "distance": 5.0}]})
    assert description.start == Pose2d()
    assert description.reversed is False
    assert description.constraints.type == "generic"
    assert description.steps == [WaypointStep("forward", distance=5.0)]


def test_build_produces_expected_segments():
    trajectory = _description().build()
    assert [type(segment) for segment in trajectory.segments] == [
        PathTrajectorySegment,
        TurnSegment,
        PathTrajectorySegment,
        WaitSegment,
    ]
    assert trajectory.end().epsilon_equals_heading(Pose2d(10.0, 10.0, math.pi / 2))
    assert abs(trajectory.segments[-1].duration() - 0.5) < 1e-9


def test_reversed_description():
    description = TrajectoryDescription(reversed=True, steps=[WaypointStep("forward", distance=10.0)])
    trajectory = description.build()
    assert trajectory.end().epsilon_equals_heading(Pose2d(-10.0, 0.0, 0.0))


@pytest.mark.parametrize(
    "step,heading",
    [
        (WaypointStep("line", x=40.0, heading="constant"), 0.0),
        (WaypointStep("line", x=40.0, heading="linear", heading_target=math.pi / 2), math.pi / 2),
        (WaypointStep("line", x=40.0, heading="spline", heading_target=math.pi / 2), math.pi / 2),
        (WaypointStep("strafe_left", distance=40.0), 0.0),
    ],
)
def test_heading_kinds(step, heading):
    # slow enough that the angular limits never bind
    constraints = ConstraintsDescription("generic", {"max_vel": 10.0, "max_accel": 10.0})
    trajectory = TrajectoryDescription(constraints=constraints, steps=[step]).build()
    assert trajectory.end().epsilon_equals_heading(Pose2d(trajectory.end().x, trajectory.end().y, heading))


def test_constraints_description_builds_presets():
    assert isinstance(ConstraintsDescription().build(), GenericConstraints)
    mecanum = ConstraintsDescription("mecanum", {"max_wheel_vel": 20.0, "track_width": 12.0}).build()
    assert isinstance(mecanum, MecanumConstraints)
    assert mecanum.track_width == 12.0


@pytest.mark.parametrize(
    "make",
    [
        lambda: WaypointStep("teleport"),
        lambda: WaypointStep("line", heading="random"),
        lambda: ConstraintsDescription("hovercraft"),
        lambda: TrajectoryDescription.from_dict({"steps": [{"kind": "jump"}]}),
        lambda: TrajectoryDescription.from_dict({"constraints": {"type": "legs"}}),
    ],
)
def test_unknown_kinds_rejected(make):
    with pytest.raises(ValueError):
        make()
