"""
Central configuration for trajgen tunables and shared constants.
"""

import logging
import math
import os

TRACE: int = 5
logging.addLevelName(TRACE, "TRACE")
# Add Logger.trace if missing
if not hasattr(logging.Logger, "trace"):

    def _trace(self, msg, *args, **kwargs):
        if self.isEnabledFor(TRACE):
            self._log(TRACE, msg, args, **kwargs)

    logging.Logger.trace = _trace  # type: ignore[attr-defined]
    logging.TRACE = TRACE  # type: ignore[attr-defined]

TRACE_ENABLED = str(os.getenv("TRAJGEN_TRACE", "0")).lower() in ("1", "true", "yes", "on")

logger = logging.getLogger(__name__)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default


# Comparison tolerance used across geometry and profile code
EPSILON: float = 1e-6

# Dynamic profile sampling resolution (path length units per sample)
PROFILE_RESOLUTION: float = _env_float("TRAJGEN_PROFILE_RESOLUTION", 0.25)

# Adaptive arc-length parameterization thresholds
ARC_MAX_SEGMENT_LENGTH: float = _env_float("TRAJGEN_ARC_MAX_SEGMENT_LENGTH", 0.25)
ARC_MAX_DEPTH: int = _env_int("TRAJGEN_ARC_MAX_DEPTH", 15)
ARC_MAX_DELTA_K: float = _env_float("TRAJGEN_ARC_MAX_DELTA_K", 0.01)

# Path projection
PROJECT_DS: float = _env_float("TRAJGEN_PROJECT_DS", 3.0)
FAST_PROJECT_ITERATIONS: int = _env_int("TRAJGEN_FAST_PROJECT_ITERATIONS", 10)

# Number of samples used to seed spline projection before refinement
SPLINE_PROJECT_SAMPLES: int = _env_int("TRAJGEN_SPLINE_PROJECT_SAMPLES", 32)

# Bisection limits
PROFILE_DISTANCE_ITERATIONS: int = 50
PEAK_VELOCITY_ITERATIONS: int = 1000

# Default drivetrain limits (length units, radians)
DEFAULT_MAX_VEL: float = 30.0
DEFAULT_MAX_ACCEL: float = 30.0
DEFAULT_MAX_ANG_VEL: float = math.pi
DEFAULT_MAX_ANG_ACCEL: float = math.pi
DEFAULT_MAX_ANG_JERK: float = 0.0
