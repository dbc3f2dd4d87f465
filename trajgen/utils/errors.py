"""
Custom exception types for the trajectory planning pipeline.
Keep this focused and non-redundant; prefer built-ins (ValueError) for malformed input.
"""


class TrajgenError(RuntimeError):
    """Base class for planning failures raised by trajgen."""

    prefix = "Trajgen Error"

    def __init__(self, message: str = ""):
        self.original_message = message
        super().__init__(f"{self.prefix}: {message}")

    def __str__(self):
        return f"{self.prefix}: {self.original_message}"


class PathContinuityViolation(TrajgenError):
    """A segment does not connect smoothly to the current end of a path or trajectory."""

    prefix = "Path Continuity Violation"


class EmptyPathSegment(TrajgenError):
    """A requested move has zero length."""

    prefix = "Empty Path Segment"


class UnsatisfiableConstraint(TrajgenError):
    """No feasible velocity/acceleration exists at some sample."""

    prefix = "Unsatisfiable Constraint"


class TrajectoryStateError(TrajgenError):
    """A builder operation is not allowed in the builder's current motion state."""

    prefix = "Trajectory State Error"
