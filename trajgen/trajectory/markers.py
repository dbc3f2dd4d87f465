"""
Trajectory markers.

Builders record markers as producers of a time or displacement, since the
final duration and length are unknown until the trajectory is assembled.
`resolve_markers` turns them into absolute trajectory times.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from trajgen.geometry import Vector2d

if TYPE_CHECKING:
    from .trajectory import Trajectory

logger = logging.getLogger(__name__)

MarkerCallback = Callable[[], None]
TimeProducer = Callable[[float], float]
"""Maps the trajectory duration to a marker time."""

DisplacementProducer = Callable[[float], float]
"""Maps the trajectory length to a marker displacement."""


@dataclass(frozen=True)
class TemporalMarker:
    producer: TimeProducer
    callback: MarkerCallback


@dataclass(frozen=True)
class DisplacementMarker:
    producer: DisplacementProducer
    callback: MarkerCallback


@dataclass(frozen=True)
class SpatialMarker:
    """Fires when the robot passes closest to `point`."""

    point: Vector2d
    callback: MarkerCallback


@dataclass(frozen=True)
class TrajectoryMarker:
    """A callback bound to an absolute trajectory time."""

    time: float
    callback: MarkerCallback


def resolve_markers(
    trajectory: Trajectory,
    temporal_markers: Sequence[TemporalMarker] = (),
    displacement_markers: Sequence[DisplacementMarker] = (),
    spatial_markers: Sequence[SpatialMarker] = (),
) -> list[TrajectoryMarker]:
    """
    Resolve marker producers against a finished trajectory.

    Temporal markers are evaluated with the duration. Displacement markers are
    evaluated with the length and converted to time by inverting
    `trajectory.distance`. Spatial markers are projected onto the trajectory's
    path first.

    Returns:
        Markers sorted by time

    Raises:
        ValueError: a spatial marker on a trajectory without path segments
    """
    duration = trajectory.duration()
    length = trajectory.length()
    resolved = [TrajectoryMarker(marker.producer(duration), marker.callback) for marker in temporal_markers]
    resolved.extend(
        TrajectoryMarker(trajectory.reparam(marker.producer(length)), marker.callback)
        for marker in displacement_markers
    )
    if spatial_markers:
        path = trajectory.path
        if path is None:
            raise ValueError("Spatial markers need a trajectory with at least one path segment")
        for marker in spatial_markers:
            displacement = path.project(marker.point)
            resolved.append(TrajectoryMarker(trajectory.reparam(displacement), marker.callback))
    resolved.sort(key=lambda marker: marker.time)
    if resolved:
        logger.debug(f"Resolved {len(resolved)} markers over {duration:.3f}s")
    return resolved
