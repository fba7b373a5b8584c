"""Unit tests for the powered ascent control cycle."""

import pytest
from numpy.testing import assert_allclose

from autopilot.config import GuidanceTarget, StagingConfig
from autopilot.flight import AscentSession
from autopilot.simulation import ScriptedVehicle


@pytest.fixture
def climb(make_snapshot):
    """Sixty ticks of climb; apoapsis first exceeds 90 km on tick 42."""
    return [
        make_snapshot(
            mean_altitude=500.0 * i,
            apoapsis_altitude=85000.0 + 120.0 * i,
            universal_time=0.1 * i,
            mass=5000.0,
            thrust=80000.0,
            surface_gravity=9.81,
        )
        for i in range(1, 61)
    ]


def run_ticks(session: AscentSession, n: int) -> list:
    return [session.tick() for _ in range(n)]


# =============================================================================
# Completion Tests
# =============================================================================


class TestAscentCompletion:
    """Test the engine cutoff at target apoapsis."""

    def test_complete_exactly_at_crossing_tick(self, climb):
        vehicle = ScriptedVehicle(climb)
        session = AscentSession(vehicle, GuidanceTarget(90000.0, 90.0))

        statuses = run_ticks(session, 60)

        assert not any(s.complete for s in statuses[:41])
        assert statuses[41].tick == 42
        assert statuses[41].complete
        assert statuses[41].throttle == 0.0

    def test_throttle_zero_at_crossing_and_never_after(self, climb):
        vehicle = ScriptedVehicle(climb)
        session = AscentSession(vehicle, GuidanceTarget(90000.0, 90.0))

        run_ticks(session, 60)

        assert vehicle.throttle_commands[-1] == (42, 0.0)
        assert all(tick <= 42 for tick, _ in vehicle.throttle_commands)
        assert [v for tick, v in vehicle.throttle_commands if tick == 42] == [0.0]

    def test_no_commands_after_completion(self, climb):
        vehicle = ScriptedVehicle(climb)
        session = AscentSession(vehicle, GuidanceTarget(90000.0, 90.0))

        run_ticks(session, 60)

        assert vehicle.tick == 42
        assert all(tick <= 42 for tick, _, _ in vehicle.pitch_heading_commands)
        assert session.complete


# =============================================================================
# Guidance and Throttle Tests
# =============================================================================


class TestAscentControl:
    """Test per-tick pitch and throttle commands."""

    def test_commands_profile_pitch_and_heading(self, climb):
        vehicle = ScriptedVehicle(climb)
        session = AscentSession(vehicle, GuidanceTarget(90000.0, 45.0))

        status = session.tick()

        tick, pitch, heading = vehicle.pitch_heading_commands[0]
        assert tick == 1
        assert_allclose(pitch, session.guidance.pitch_for_altitude(500.0))
        assert heading == 45.0
        assert status.pitch == pitch

    def test_first_tick_holds_seeded_throttle(self, climb):
        """No time has elapsed on the first tick, so nothing integrates."""
        vehicle = ScriptedVehicle(climb)
        session = AscentSession(vehicle)

        status = session.tick()

        assert status.throttle == 1.0
        assert vehicle.throttle_commands == [(1, 1.0)]

    def test_throttle_walks_down_above_target_twr(self, climb):
        """TWR 1.63 > 1.6: throttle decreases tick by tick."""
        vehicle = ScriptedVehicle(climb)
        session = AscentSession(vehicle)

        statuses = run_ticks(session, 10)

        throttles = [s.throttle for s in statuses]
        assert all(b < a for a, b in zip(throttles[1:], throttles[2:]))
        twr = 80000.0 / (5000.0 * 9.81)
        assert_allclose(throttles[1], 1.0 + (1.6 - twr) * 0.1, rtol=1e-6)

    def test_auto_throttle_off(self, climb):
        vehicle = ScriptedVehicle(climb)
        session = AscentSession(vehicle, GuidanceTarget(90000.0, 90.0), auto_throttle=False)

        run_ticks(session, 60)

        # Only the cutoff at the target apoapsis
        assert vehicle.throttle_commands == [(42, 0.0)]

    def test_toggle_auto_throttle(self, climb):
        session = AscentSession(ScriptedVehicle(climb))
        assert session.toggle_auto_throttle() is False
        assert session.toggle_auto_throttle() is True


# =============================================================================
# Staging Tests
# =============================================================================


class TestAscentStaging:
    """Test debounced staging during the climb."""

    def test_stages_after_ten_zero_thrust_ticks(self, climb):
        snapshots = [s._replace(thrust=0.0) if s.universal_time < 1.25 else s for s in climb]
        vehicle = ScriptedVehicle(snapshots)
        session = AscentSession(vehicle, staging=StagingConfig(every_n_ticks=10))

        statuses = run_ticks(session, 20)

        assert vehicle.stage_activations == [10]
        assert [s.tick for s in statuses if s.staged] == [10]

    def test_restages_while_thrust_stays_zero(self, climb):
        snapshots = [s._replace(thrust=0.0) for s in climb]
        vehicle = ScriptedVehicle(snapshots)
        session = AscentSession(vehicle)

        run_ticks(session, 30)

        assert vehicle.stage_activations == [10, 20, 30]

    def test_no_staging_with_thrust(self, climb):
        vehicle = ScriptedVehicle(climb)
        session = AscentSession(vehicle)

        run_ticks(session, 30)

        assert vehicle.stage_activations == []
