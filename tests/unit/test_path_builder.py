import math

import numpy as np
import pytest

from trajgen import EmptyPathSegment, PathBuilder, PathContinuityViolation, Pose2d, PositionPathBuilder, Vector2d
from trajgen.path import LinearHeading, LineSegment, Path, PathSegment, PositionPath
from trajgen.path.path import _SegmentedPath


def approx_equal(a, b, tol=1e-6):
    return abs(a - b) <= tol


def test_forward_then_spline_endpoints():
    path = (
        PathBuilder.from_pose(Pose2d(0.0, 0.0, 0.0))
        .forward(10.0)
        .spline_to(Vector2d(20.0, 20.0), math.pi / 2)
        .build()
    )
    assert len(path) == 2
    assert path.start().epsilon_equals(Pose2d(0.0, 0.0, 0.0))
    end = path.end()
    assert end.vec().epsilon_equals(Vector2d(20.0, 20.0))
    assert approx_equal(end.heading, math.pi / 2)


def test_spline_from_origin_to_twenty_twenty():
    path = PathBuilder.from_pose(Pose2d()).spline_to(Vector2d(20.0, 20.0), 0.0).build()
    assert path.get(0.0).vec().epsilon_equals(Vector2d(0.0, 0.0))
    assert path.get(path.length()).vec().epsilon_equals(Vector2d(20.0, 20.0))
    assert approx_equal(path.deriv(0.0).vec().angle(), 0.0)
    assert approx_equal(path.end_deriv().vec().norm(), 1.0, tol=1e-9)


def test_forward_back_and_strafe_directions():
    builder = PathBuilder.from_pose(Pose2d(0.0, 0.0, math.pi / 2))
    builder.forward(5.0)
    assert builder.current_pose.vec().epsilon_equals(Vector2d(0.0, 5.0))

    builder = PathBuilder.from_pose(Pose2d(0.0, 0.0, 0.0))
    builder.strafe_left(4.0)
    assert builder.current_pose.vec().epsilon_equals(Vector2d(0.0, 4.0))
    # strafing keeps the heading
    assert approx_equal(builder.current_pose.heading, 0.0)


def test_reversed_builder_travels_backwards():
    builder = PathBuilder.from_pose(Pose2d(0.0, 0.0, 0.0), reversed=True)
    builder.forward(10.0)
    assert builder.current_pose.vec().epsilon_equals(Vector2d(-10.0, 0.0))
    # the robot keeps facing +x while driving backwards
    assert approx_equal(builder.current_pose.heading, 0.0)


def test_back_reverses_travel_and_breaks_continuity():
    builder = PathBuilder.from_pose(Pose2d()).forward(10.0)
    with pytest.raises(PathContinuityViolation):
        builder.back(5.0)


def test_continuity_violation_on_sharp_corner():
    builder = PathBuilder.from_pose(Pose2d()).line_to(Vector2d(10.0, 0.0))
    with pytest.raises(PathContinuityViolation) as exc_info:
        builder.line_to(Vector2d(10.0, 10.0))
    assert "Path Continuity Violation" in str(exc_info.value)
    # the failed move is not appended
    assert len(builder.segments) == 1
    assert builder.current_pose.vec().epsilon_equals(Vector2d(10.0, 0.0))


def test_try_add_segment_reports_reason():
    builder = PathBuilder.from_pose(Pose2d()).forward(10.0)
    segment = builder.make_line(Vector2d(10.0, 10.0))
    check = builder.try_add_segment(segment)
    assert not check
    assert check.reason
    assert len(builder.segments) == 1

    smooth = builder.make_line(Vector2d(20.0, 0.0))
    assert builder.try_add_segment(smooth)
    assert len(builder.segments) == 2


def test_first_segment_is_always_accepted():
    builder = PathBuilder.from_pose(Pose2d())
    # the starting tangent does not constrain the first move
    builder.line_to(Vector2d(0.0, 10.0))
    assert builder.current_pose.vec().epsilon_equals(Vector2d(0.0, 10.0))


def test_spline_after_line_is_continuous():
    path = (
        PathBuilder.from_pose(Pose2d())
        .line_to(Vector2d(10.0, 0.0))
        .spline_to(Vector2d(20.0, 10.0), math.pi / 2)
        .spline_to(Vector2d(10.0, 20.0), math.pi)
        .build()
    )
    for i in range(len(path) - 1):
        left = path.segments[i]
        right = path.segments[i + 1]
        assert left.end().epsilon_equals_heading(right.start())
        assert left.end_deriv().vec().epsilon_equals(right.start_deriv().vec())


@pytest.mark.parametrize(
    "move",
    [
        lambda b: b.line_to(Vector2d(0.0, 0.0)),
        lambda b: b.spline_to(Vector2d(0.0, 0.0), 0.0),
        lambda b: b.forward(0.0),
    ],
)
def test_zero_length_moves_raise(move):
    builder = PathBuilder.from_pose(Pose2d())
    with pytest.raises(EmptyPathSegment):
        move(builder)


def test_linear_heading_interpolation_along_line():
    path = PathBuilder.from_pose(Pose2d()).line_to_linear_heading(Pose2d(10.0, 0.0, math.pi / 2)).build()
    assert approx_equal(path.get(5.0).heading, math.pi / 4)
    assert approx_equal(path.end().heading, math.pi / 2)
    assert approx_equal(path.deriv(5.0).heading, math.pi / 20)


def test_linear_heading_takes_shorter_direction():
    builder = PathBuilder.from_pose(Pose2d(0.0, 0.0, 0.1))
    builder.add_line(Vector2d(10.0, 0.0), LinearHeading(2 * math.pi - 0.1))
    segment = builder.segments[-1]
    # 0.1 -> -0.1 rather than the long way round
    assert approx_equal(segment.deriv(0.0).heading, -0.2 / 10.0)


def test_spline_heading_interpolation():
    path = PathBuilder.from_pose(Pose2d()).spline_to_spline_heading(Pose2d(20.0, 20.0, math.pi), math.pi / 2).build()
    assert approx_equal(path.start().heading, 0.0)
    assert approx_equal(path.end().heading, math.pi)


def test_constant_heading_spline():
    path = PathBuilder.from_pose(Pose2d(0.0, 0.0, 1.0), start_tangent=0.0).spline_to_constant_heading(
        Vector2d(20.0, 10.0), 0.0
    ).build()
    headings = [path.get(float(s)).heading for s in np.linspace(0.0, path.length(), 9)]
    assert np.allclose(headings, 1.0)


def test_from_path_continues_smoothly():
    path = PathBuilder.from_pose(Pose2d()).spline_to(Vector2d(20.0, 20.0), math.pi / 2).build()
    builder = PathBuilder.from_path(path, path.length())
    builder.forward(10.0)
    assert builder.current_pose.vec().epsilon_equals(Vector2d(20.0, 30.0))


def test_position_path_builder_turns_and_lines():
    path = (
        PositionPathBuilder.from_tangent(Vector2d(0.0, 0.0), 0.0)
        .forward(10.0)
        .turn_left(math.pi / 2, 5.0)
        .forward(10.0)
        .build()
    )
    assert len(path) == 3
    assert path.end().epsilon_equals(Vector2d(15.0, 15.0))
    assert approx_equal(path.length(), 20.0 + 5.0 * math.pi / 2)


def test_position_path_builder_checks_position_only():
    builder = PositionPathBuilder.from_tangent(Vector2d(0.0, 0.0), 0.0).forward(10.0)
    # a sharp corner is fine for position-only paths
    builder.line_to(Vector2d(10.0, 10.0))
    assert builder.current_pos.epsilon_equals(Vector2d(10.0, 10.0))
    with pytest.raises(EmptyPathSegment):
        builder.line_to(Vector2d(10.0, 10.0))


def test_segmented_path_base_is_abstract():
    line = LineSegment(Vector2d(0.0, 0.0), Vector2d(5.0, 0.0))
    with pytest.raises(TypeError):
        _SegmentedPath([line])
    assert approx_equal(PositionPath([line]).length(), 5.0)
    assert approx_equal(Path(PathSegment(line)).length(), 5.0)
