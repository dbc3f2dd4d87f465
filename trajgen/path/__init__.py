from .builder import ContinuityCheck, PathBuilder, PositionPathBuilder
from .curves import ArcLengthParameterization, CircularArc, LineSegment, ParametricCurve
from .heading import (
    ConstantHeading,
    ConstantInterpolator,
    HeadingInterpolation,
    HeadingInterpolator,
    LinearHeading,
    LinearInterpolator,
    SplineHeading,
    SplineInterpolator,
    TangentHeading,
    TangentInterpolator,
)
from .path import Path, PathSegment, PositionPath
from .quintic import Knot, QuinticPolynomial, QuinticSpline

__all__ = [
    "ParametricCurve",
    "ArcLengthParameterization",
    "LineSegment",
    "CircularArc",
    "QuinticPolynomial",
    "Knot",
    "QuinticSpline",
    "HeadingInterpolator",
    "TangentInterpolator",
    "ConstantInterpolator",
    "LinearInterpolator",
    "SplineInterpolator",
    "HeadingInterpolation",
    "TangentHeading",
    "ConstantHeading",
    "LinearHeading",
    "SplineHeading",
    "PathSegment",
    "Path",
    "PositionPath",
    "ContinuityCheck",
    "PathBuilder",
    "PositionPathBuilder",
]
