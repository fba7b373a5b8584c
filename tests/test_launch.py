"""Unit tests for the launch-to-orbit program."""

import pytest

from autopilot.config import AutopilotConfig, LaunchConfig
from autopilot.flight import LaunchPhase, LaunchSequence, format_orbit_summary
from autopilot.simulation import ScriptedVehicle


def shrinking_sleep(vehicle: ScriptedVehicle):
    """Fake sleep that halves every node's burn vector while thrusting."""
    def sleep(seconds):
        vehicle.sleep(seconds)
        if vehicle.last_throttle == 1.0:
            for node in vehicle.nodes:
                node.vector = node.vector.scale(0.5)
    return sleep


@pytest.fixture
def countdown(make_snapshot):
    """Three seconds on the pad, heading 45 and rolled 10 degrees."""
    return [
        make_snapshot(universal_time=float(t), heading=45.0, roll=10.0)
        for t in range(4)
    ]


@pytest.fixture
def flight(make_snapshot, countdown):
    """Pad to coast: one snapshot per program step."""
    return countdown + [
        # Roll program ends on vertical speed
        make_snapshot(universal_time=4.0, mean_altitude=200.0, vertical_speed=70.0),
        # Ascent: apoapsis already past the target
        make_snapshot(universal_time=5.0, mean_altitude=40000.0, apoapsis_altitude=95000.0),
        # Coasting above the action group altitude
        make_snapshot(universal_time=6.0, mean_altitude=66000.0, apoapsis_altitude=95000.0),
        # Out of the atmosphere
        make_snapshot(
            universal_time=10.0,
            mean_altitude=70100.0,
            apoapsis_altitude=95000.0,
            semi_major_axis=650000.0,
            apoapsis_radius=700000.0,
            time_to_apoapsis=60.0,
        ),
    ]


# =============================================================================
# Countdown and Roll Program Tests
# =============================================================================


class TestLaunchCountdown:
    """Test the pre-launch countdown."""

    def test_launches_after_countdown(self, countdown):
        vehicle = ScriptedVehicle(countdown)
        launch = LaunchSequence(vehicle)

        phases = [launch.tick() for _ in range(4)]

        assert phases == [LaunchPhase.COUNTDOWN] * 3 + [LaunchPhase.ROLL_PROGRAM]
        assert vehicle.sas_commands == [False]
        assert vehicle.throttle_commands == [(1, 1.0)]
        assert vehicle.stage_activations == [4]

    def test_holds_heading_and_roll_at_liftoff(self, countdown):
        vehicle = ScriptedVehicle(countdown)
        launch = LaunchSequence(vehicle)

        for _ in range(4):
            launch.tick()

        assert vehicle.pitch_heading_commands == [(4, 90.0, 45.0)]
        assert vehicle.roll_commands == [10.0]


class TestRollProgram:
    """Test the vertical climb before the gravity turn."""

    def test_ends_on_vertical_speed(self, flight):
        vehicle = ScriptedVehicle(flight)
        launch = LaunchSequence(vehicle)

        for _ in range(5):
            launch.tick()

        assert launch.phase == LaunchPhase.ASCENT
        assert vehicle.roll_commands == [10.0, 0.0]
        assert vehicle.pitch_heading_commands[-1] == (5, 90.0, 90.0)

    def test_ends_on_timeout(self, make_snapshot, countdown):
        slow = [
            make_snapshot(universal_time=10.0, vertical_speed=5.0),
            make_snapshot(universal_time=18.5, vertical_speed=8.0),
        ]
        vehicle = ScriptedVehicle(countdown + slow)
        launch = LaunchSequence(vehicle)

        for _ in range(4):
            launch.tick()
        assert launch.tick() == LaunchPhase.ROLL_PROGRAM
        assert launch.tick() == LaunchPhase.ASCENT

    def test_uses_configured_compass_heading(self, flight):
        vehicle = ScriptedVehicle(flight)
        config = AutopilotConfig.from_dict({"target": {"compass_heading": 0.0}})
        launch = LaunchSequence(vehicle, config)

        for _ in range(5):
            launch.tick()

        assert vehicle.pitch_heading_commands[-1] == (5, 90.0, 0.0)


# =============================================================================
# Full Program Tests
# =============================================================================


class TestLaunchToOrbit:
    """Fly the whole program against scripted telemetry."""

    def test_reaches_orbit(self, flight):
        vehicle = ScriptedVehicle(flight)
        config = AutopilotConfig(launch=LaunchConfig(action_group_5=True))
        launch = LaunchSequence(vehicle, config)

        phase = launch.run(sleep=shrinking_sleep(vehicle), max_ticks=5000)

        assert phase == LaunchPhase.COMPLETE
        assert launch.is_complete
        assert vehicle.stage_activations == [4]
        assert vehicle.action_groups == [5]
        assert vehicle.sas_commands == [False, True]
        assert vehicle.nodes == []
        assert vehicle.last_throttle == 0.0
        assert "Apoapsis" in launch.orbit_summary

    def test_circularization_warps_with_launch_lead(self, flight):
        vehicle = ScriptedVehicle(flight)
        launch = LaunchSequence(vehicle)

        launch.run(sleep=shrinking_sleep(vehicle), max_ticks=5000)

        plan = launch.burn.plan
        assert plan.node_time_ut == 70.0
        assert vehicle.warps == [pytest.approx(plan.burn_start_ut - 20.0)]

    def test_action_group_off_by_default(self, flight):
        vehicle = ScriptedVehicle(flight)
        launch = LaunchSequence(vehicle)

        launch.run(sleep=shrinking_sleep(vehicle), max_ticks=5000)

        assert vehicle.action_groups == []

    def test_no_summary_before_complete(self, flight):
        launch = LaunchSequence(ScriptedVehicle(flight))
        launch.tick()
        assert launch.orbit_summary is None
        assert launch.burn is None


class TestLaunchAbort:
    """Test early exits."""

    def test_abort_cuts_thrust(self, countdown):
        vehicle = ScriptedVehicle(countdown)
        launch = LaunchSequence(vehicle)
        launch.tick()

        launch.abort()

        assert vehicle.last_throttle == 0.0
        assert vehicle.disengage_count == 1

    def test_run_aborts_after_max_ticks(self, flight):
        vehicle = ScriptedVehicle(flight)
        launch = LaunchSequence(vehicle)

        phase = launch.run(sleep=vehicle.sleep, max_ticks=6)

        assert phase == LaunchPhase.COAST
        assert not launch.is_complete
        assert vehicle.last_throttle == 0.0
        assert vehicle.disengage_count == 1


def test_format_orbit_summary(make_snapshot):
    snapshot = make_snapshot(
        apoapsis_altitude=90000.0,
        periapsis_altitude=85000.0,
        semi_major_axis=687500.0,
        eccentricity=0.0036,
        inclination=0.1,
    )

    summary = format_orbit_summary(snapshot)

    assert "Apoapsis: 90.000 km" in summary
    assert "Periapsis: 85.000 km" in summary
    assert "Inclination: 0.10 degrees" in summary
