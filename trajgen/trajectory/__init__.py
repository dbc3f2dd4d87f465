from .builder import BaseTrajectoryBuilder, SimpleTrajectoryBuilder, TrajectoryBuilder
from .generator import TrajectoryGenerator
from .markers import (
    DisplacementMarker,
    MarkerCallback,
    SpatialMarker,
    TemporalMarker,
    TrajectoryMarker,
    resolve_markers,
)
from .segments import PathTrajectorySegment, TrajectorySegment, TurnSegment, WaitSegment
from .trajectory import Trajectory

__all__ = [
    "TrajectorySegment",
    "PathTrajectorySegment",
    "TurnSegment",
    "WaitSegment",
    "Trajectory",
    "TrajectoryGenerator",
    "MarkerCallback",
    "TemporalMarker",
    "DisplacementMarker",
    "SpatialMarker",
    "TrajectoryMarker",
    "resolve_markers",
    "BaseTrajectoryBuilder",
    "TrajectoryBuilder",
    "SimpleTrajectoryBuilder",
]
