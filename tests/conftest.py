"""Shared fixtures for autopilot tests."""

import pytest

from autopilot.telemetry import TelemetrySnapshot


@pytest.fixture
def make_snapshot():
    """Factory for telemetry snapshots with sensible defaults.

    Any field can be overridden by keyword.
    """
    def _make(**overrides) -> TelemetrySnapshot:
        values = dict(
            mean_altitude=0.0,
            surface_altitude=0.0,
            apoapsis_altitude=0.0,
            vertical_speed=0.0,
            heading=90.0,
            roll=0.0,
            mass=5000.0,
            available_thrust=60000.0,
            specific_impulse=320.0,
            universal_time=0.0,
        )
        values.update(overrides)
        return TelemetrySnapshot(**values)

    return _make
