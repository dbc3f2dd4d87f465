import math

import numpy as np
import pytest

from trajgen.geometry import Vector2d
from trajgen.path import (
    CircularArc,
    ConstantInterpolator,
    Knot,
    LinearInterpolator,
    LineSegment,
    Path,
    PathSegment,
    PositionPath,
    QuinticPolynomial,
    QuinticSpline,
    SplineInterpolator,
    TangentInterpolator,
)


def approx_equal(a, b, tol=1e-6):
    return abs(a - b) <= tol


def _spline(end=Vector2d(20.0, 20.0), end_tangent=math.pi / 2):
    mag = end.norm()
    return QuinticSpline(
        Knot.from_vectors(Vector2d(0.0, 0.0), Vector2d(mag, 0.0)),
        Knot.from_vectors(end, Vector2d.polar(mag, end_tangent)),
    )


def test_quintic_polynomial_boundary_conditions():
    poly = QuinticPolynomial(0.0, 1.0, 0.5, 10.0, 2.0, -0.5)
    assert approx_equal(poly(0.0), 0.0)
    assert approx_equal(poly.deriv(0.0), 1.0)
    assert approx_equal(poly.second_deriv(0.0), 0.5)
    assert approx_equal(poly(1.0), 10.0)
    assert approx_equal(poly.deriv(1.0), 2.0)
    assert approx_equal(poly.second_deriv(1.0), -0.5)


def test_line_segment_length_and_points():
    line = LineSegment(Vector2d(0.0, 0.0), Vector2d(3.0, 4.0))
    assert approx_equal(line.length(), 5.0)
    assert line.get(2.5).epsilon_equals(Vector2d(1.5, 2.0))
    assert line.deriv(1.0).epsilon_equals(Vector2d(0.6, 0.8))
    assert line.second_deriv(1.0).epsilon_equals(Vector2d())
    assert approx_equal(line.curvature(1.0), 0.0)


def test_line_segment_zero_length_rejected():
    with pytest.raises(ValueError):
        LineSegment(Vector2d(1.0, 1.0), Vector2d(1.0, 1.0))


@pytest.mark.parametrize(
    "query,expected_t",
    [
        (Vector2d(4.0, 3.0), 0.4),
        (Vector2d(-5.0, 1.0), 0.0),
        (Vector2d(50.0, -1.0), 1.0),
    ],
)
def test_line_segment_projection_clamps(query, expected_t):
    line = LineSegment(Vector2d(0.0, 0.0), Vector2d(10.0, 0.0))
    assert approx_equal(line.project(query), expected_t)


def test_circular_arc_from_point_left_turn():
    arc = CircularArc.from_point(Vector2d(0.0, 0.0), 0.0, 10.0, math.pi / 2)
    assert approx_equal(arc.length(), 10.0 * math.pi / 2)
    assert arc.start().epsilon_equals(Vector2d(0.0, 0.0))
    assert arc.end().epsilon_equals(Vector2d(10.0, 10.0))
    assert arc.start_deriv().epsilon_equals(Vector2d(1.0, 0.0))
    assert arc.end_deriv().epsilon_equals(Vector2d(0.0, 1.0))
    assert approx_equal(arc.curvature(arc.length() / 2), 0.1)


def test_circular_arc_right_turn_has_negative_curvature():
    arc = CircularArc.from_point(Vector2d(0.0, 0.0), 0.0, 5.0, -math.pi / 2)
    assert arc.end().epsilon_equals(Vector2d(5.0, -5.0))
    assert approx_equal(arc.curvature(1.0), -0.2)


def test_circular_arc_projection():
    arc = CircularArc.from_point(Vector2d(0.0, 0.0), 0.0, 10.0, math.pi / 2)
    t = arc.project(Vector2d(20.0, 10.0))
    assert approx_equal(arc.displacement(t), arc.length())


def test_circular_arc_invalid_arguments():
    with pytest.raises(ValueError):
        CircularArc(Vector2d(), 0.0, 0.0, 1.0)
    with pytest.raises(ValueError):
        CircularArc(Vector2d(), 1.0, 0.5, 0.5)


def test_spline_endpoints_and_tangents():
    spline = _spline()
    assert spline.start().epsilon_equals(Vector2d(0.0, 0.0))
    assert spline.end().epsilon_equals(Vector2d(20.0, 20.0))
    assert approx_equal(spline.start_tangent_angle(), 0.0)
    assert approx_equal(spline.end_tangent_angle(), math.pi / 2)
    # longer than the chord, shorter than the two legs
    assert 20.0 * math.sqrt(2) < spline.length() < 40.0


def test_spline_reparam_consistency():
    spline = _spline()
    length = spline.length()
    for s in np.linspace(0.0, length, 17):
        t = spline.reparam(float(s))
        assert 0.0 <= t <= 1.0
        assert approx_equal(spline.displacement(t), float(s), tol=1e-6)


def test_spline_arc_length_matches_chord_distance():
    spline = _spline()
    ds = 1.0
    for s in np.arange(0.0, spline.length() - ds, 2.5):
        chord = spline.get(float(s)).dist_to(spline.get(float(s) + ds))
        assert approx_equal(chord, ds, tol=1e-2)


def test_spline_tangents_are_unit_length():
    spline = _spline()
    for s in np.linspace(0.0, spline.length(), 11):
        assert approx_equal(spline.deriv(float(s)).norm(), 1.0, tol=1e-9)


def test_spline_projection_finds_nearby_point():
    spline = _spline()
    s = spline.length() / 3
    point = spline.get(s)
    t = spline.project(point + spline.deriv(s).rotated(math.pi / 2) * 0.1)
    assert approx_equal(spline.displacement(t), s, tol=0.05)


def test_spline_sample_shape():
    points = _spline().sample(25)
    assert points.shape == (25, 2)
    assert np.allclose(points[0], [0.0, 0.0])
    assert np.allclose(points[-1], [20.0, 20.0])


def test_tangent_interpolator_offset():
    line = LineSegment(Vector2d(0.0, 0.0), Vector2d(0.0, 10.0))
    interp = TangentInterpolator(math.pi)
    interp.init(line)
    assert approx_equal(interp.get(5.0), 3 * math.pi / 2)
    assert approx_equal(interp.deriv(5.0), 0.0)


def test_constant_and_linear_interpolators():
    line = LineSegment(Vector2d(0.0, 0.0), Vector2d(10.0, 0.0))
    constant = ConstantInterpolator(1.0)
    constant.init(line)
    assert approx_equal(constant.get(3.0), 1.0)
    assert constant.deriv(3.0) == 0.0

    linear = LinearInterpolator(0.0, math.pi / 2)
    linear.init(line)
    assert approx_equal(linear.start(), 0.0)
    assert approx_equal(linear.get(5.0), math.pi / 4)
    assert approx_equal(linear.end(), math.pi / 2)
    assert approx_equal(linear.deriv(5.0), math.pi / 20)


def test_spline_interpolator_reaches_target_with_smooth_ends():
    line = LineSegment(Vector2d(0.0, 0.0), Vector2d(10.0, 0.0))
    interp = SplineInterpolator(0.0, math.pi / 2)
    interp.init(line)
    assert approx_equal(interp.start(), 0.0)
    assert approx_equal(interp.end(), math.pi / 2)
    # a straight line has zero tangent rate, so the heading eases in and out
    assert approx_equal(interp.start_deriv(), 0.0)
    assert approx_equal(interp.end_deriv(), 0.0)


def test_interpolator_requires_init():
    with pytest.raises(RuntimeError):
        LinearInterpolator(0.0, 1.0).get(0.0)


def test_path_segment_lookup_and_projection():
    first = PathSegment(LineSegment(Vector2d(0.0, 0.0), Vector2d(10.0, 0.0)))
    second = PathSegment(LineSegment(Vector2d(10.0, 0.0), Vector2d(10.0, 10.0)))
    path = Path([first, second])
    assert approx_equal(path.length(), 20.0)

    segment, remaining = path.segment(15.0)
    assert segment is second
    assert approx_equal(remaining, 5.0)

    assert path.get(15.0).vec().epsilon_equals(Vector2d(10.0, 5.0))
    assert approx_equal(path.get(15.0).heading, math.pi / 2)
    # clamped outside the path
    assert path.get(-1.0).vec().epsilon_equals(Vector2d(0.0, 0.0))
    assert path.get(25.0).vec().epsilon_equals(Vector2d(10.0, 10.0))

    assert approx_equal(path.project(Vector2d(4.0, 3.0)), 4.0, tol=1e-4)
    assert approx_equal(path.composite_project(Vector2d(12.0, 7.0)), 17.0, tol=1e-6)


def test_path_concatenation_and_empty_path():
    a = Path(PathSegment(LineSegment(Vector2d(0.0, 0.0), Vector2d(1.0, 0.0))))
    b = Path(PathSegment(LineSegment(Vector2d(1.0, 0.0), Vector2d(2.0, 0.0))))
    assert len(a + b) == 2
    with pytest.raises(ValueError):
        Path([])


def test_position_path_mixed_curves():
    line = LineSegment(Vector2d(0.0, 0.0), Vector2d(10.0, 0.0))
    arc = CircularArc.from_point(Vector2d(10.0, 0.0), 0.0, 5.0, math.pi)
    path = PositionPath([line, arc])
    assert approx_equal(path.length(), 10.0 + 5.0 * math.pi)
    assert path.end().epsilon_equals(Vector2d(10.0, 10.0))
    assert path.get(10.0).epsilon_equals(Vector2d(10.0, 0.0))
