"""
Pytest configuration and shared fixtures for trajgen tests.

Provides command line options, constraint and builder fixtures, marker
callback recording and environment helpers used across the test suite.
"""

import logging
import math
import os

import pytest

from trajgen import GenericConstraints, Pose2d, TrajectoryBuilder

logger = logging.getLogger(__name__)


# ============================================================================
# PYTEST COMMAND LINE OPTIONS
# ============================================================================

def pytest_addoption(parser):
    """Add custom command line options for the test suite."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="Enable slow tests (long paths profiled at fine resolution)",
    )


# ============================================================================
# CONSTRAINT AND BUILDER FIXTURES
# ============================================================================

@pytest.fixture
def generic_constraints() -> GenericConstraints:
    """Drivetrain-agnostic limits: 30 units/s, 30 units/s^2, 180 deg/s, 180 deg/s^2."""
    return GenericConstraints(
        max_vel=30.0,
        max_accel=30.0,
        max_ang_vel=math.pi,
        max_ang_accel=math.pi,
    )


@pytest.fixture
def builder(generic_constraints) -> TrajectoryBuilder:
    """TrajectoryBuilder at the origin facing +x."""
    return TrajectoryBuilder.from_constraints(Pose2d(0.0, 0.0, 0.0), generic_constraints)


# ============================================================================
# COMMON TEST UTILITIES
# ============================================================================

@pytest.fixture
def marker_recorder():
    """
    Provide named marker callbacks that record when they are invoked.

    Usage:
        callback = marker_recorder.callback("pickup")
        ...
        marker.callback()
        assert marker_recorder.fired == ["pickup"]
    """

    class MarkerRecorder:
        def __init__(self):
            self.fired: list[str] = []

        def callback(self, name: str):
            def fire():
                self.fired.append(name)

            fire.__name__ = f"marker_{name}"
            return fire

    return MarkerRecorder()


@pytest.fixture
def temp_env():
    """
    Provide temporary environment variable context manager.

    Useful for tests that exercise the TRAJGEN_* configuration overrides.
    """

    class TempEnv:
        def __init__(self):
            self.original = {}

        def set(self, key: str, value: str):
            """Set an environment variable temporarily."""
            if key not in self.original:
                self.original[key] = os.environ.get(key)
            os.environ[key] = value

        def restore(self):
            """Restore all modified environment variables."""
            for key, original_value in self.original.items():
                if original_value is None:
                    os.environ.pop(key, None)
                else:
                    os.environ[key] = original_value
            self.original.clear()

    temp = TempEnv()
    try:
        yield temp
    finally:
        temp.restore()


# ============================================================================
# PYTEST CONFIGURATION HOOKS
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that test individual components in isolation"
    )
    config.addinivalue_line(
        "markers", "integration: Tests that build complete trajectories from paths and constraints"
    )
    config.addinivalue_line(
        "markers", "slow: Slow-running tests (long paths or fine profile resolution)"
    )


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if not config.getoption("--run-slow"):
        skip_slow = pytest.mark.skip(reason="Slow tests disabled (use --run-slow to enable)")
        for item in items:
            if item.get_closest_marker("slow"):
                item.add_marker(skip_slow)


def pytest_sessionstart(session):
    """Called after the Session object has been created."""
    logger.info("Starting trajgen test session")
    logger.info(f"Slow tests: {'enabled' if session.config.getoption('--run-slow') else 'disabled'}")
