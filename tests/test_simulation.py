"""Unit tests for the simulated vehicle.

Covers the point-mass plant on its own and the flight software flying it
closed loop.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from autopilot.config import BurnConfig
from autopilot.flight import LaunchPhase, LaunchSequence, execute_next_node
from autopilot.orbital import G0, MU_KERBIN, R_KERBIN, vector_angle_degrees
from autopilot.simulation import (
    INERTIAL_FRAME,
    ScriptedVehicle,
    SimStage,
    SimulatedVehicle,
    default_stages,
    local_direction,
)
from autopilot.telemetry import EngineInfo, Vehicle
from autopilot.vector import Vector3

# =============================================================================
# Construction Tests
# =============================================================================


class TestSimulatedVehicleInit:
    """Test vehicle setup."""

    def test_on_launch_pad(self):
        vehicle = SimulatedVehicle.on_launch_pad()

        assert vehicle.altitude == pytest.approx(0.0, abs=1e-6)
        assert vehicle.mass == 500.0 + 5000.0 + 4000.0
        assert vehicle.active_stage is None
        assert vehicle.available_thrust() == 0.0
        assert vehicle.get_active_engines() == []

    def test_in_circular_orbit(self):
        vehicle = SimulatedVehicle.in_circular_orbit(80000.0)

        snapshot = vehicle.get_telemetry_snapshot()

        assert_allclose(snapshot.mean_altitude, 80000.0)
        assert snapshot.eccentricity < 1e-6
        assert vehicle.active_stage.title == "Upper stage"
        assert vehicle.get_active_engines() == [EngineInfo(340.0, "Upper stage")]

    def test_stages_are_copied(self):
        stages = default_stages()
        vehicle = SimulatedVehicle.on_launch_pad(stages=stages)
        vehicle.activate_next_stage()
        vehicle.command_throttle(1.0)

        vehicle.advance(1.0)

        assert stages[0].propellant_mass == 4000.0

    def test_requires_a_stage(self):
        with pytest.raises(ValueError):
            SimulatedVehicle.on_launch_pad(stages=[])

    def test_invalid_stage(self):
        with pytest.raises(ValueError):
            SimStage(dry_mass=0.0, propellant_mass=100.0, thrust=1000.0, isp=300.0)

    def test_implements_vehicle_protocol(self, make_snapshot):
        assert isinstance(SimulatedVehicle.on_launch_pad(), Vehicle)
        assert isinstance(ScriptedVehicle([make_snapshot()]), Vehicle)


# =============================================================================
# Propagation Tests
# =============================================================================


class TestSimulatedPropagation:
    """Test the physics step."""

    def test_stays_on_pad_until_ignition(self):
        vehicle = SimulatedVehicle.on_launch_pad()
        vehicle.command_throttle(1.0)

        vehicle.advance(5.0)

        assert vehicle.altitude == pytest.approx(0.0, abs=1e-6)
        assert_allclose(vehicle.velocity, np.zeros(3))
        assert_allclose(vehicle.time, 5.0)

    def test_climbs_after_ignition(self):
        vehicle = SimulatedVehicle.on_launch_pad()
        vehicle.activate_next_stage()
        vehicle.command_throttle(1.0)

        vehicle.advance(2.0)

        snapshot = vehicle.get_telemetry_snapshot()
        mdot = 200000.0 / (280.0 * G0)
        assert snapshot.mean_altitude > 0.0
        assert snapshot.vertical_speed > 0.0
        assert_allclose(vehicle.mass, 9500.0 - 2.0 * mdot, rtol=1e-9)
        assert snapshot.thrust == 200000.0

    def test_circular_orbit_stays_circular(self):
        vehicle = SimulatedVehicle.in_circular_orbit(80000.0)

        vehicle.advance(600.0)

        snapshot = vehicle.get_telemetry_snapshot()
        assert_allclose(snapshot.mean_altitude, 80000.0, rtol=1e-4)
        assert snapshot.eccentricity < 1e-4
        assert snapshot.inclination == pytest.approx(0.0, abs=1e-9)

    def test_flames_out_when_dry(self):
        stage = SimStage(dry_mass=500.0, propellant_mass=10.0, thrust=60000.0, isp=340.0)
        vehicle = SimulatedVehicle.in_circular_orbit(80000.0, stages=[stage])
        vehicle.command_throttle(1.0)

        vehicle.advance(5.0)

        assert vehicle.stages[0].propellant_mass == 0.0
        assert vehicle.available_thrust() == 0.0
        assert vehicle.get_telemetry_snapshot().thrust == 0.0

    def test_warp(self):
        vehicle = SimulatedVehicle.in_circular_orbit(80000.0)

        vehicle.warp_to(100.0)
        assert_allclose(vehicle.current_universal_time(), 100.0)

        vehicle.warp_to(50.0)
        assert_allclose(vehicle.current_universal_time(), 100.0)

    def test_local_direction(self):
        position = np.array([R_KERBIN, 0.0, 0.0])
        assert_allclose(local_direction(position, 90.0, 90.0), [1.0, 0.0, 0.0], atol=1e-12)
        assert_allclose(local_direction(position, 0.0, 90.0), [0.0, 1.0, 0.0], atol=1e-12)
        assert_allclose(local_direction(position, 0.0, 0.0), [0.0, 0.0, 1.0], atol=1e-12)


# =============================================================================
# Command Tests
# =============================================================================


class TestSimulatedCommands:
    """Test actuators and discrete commands."""

    def test_staging_sequence(self):
        vehicle = SimulatedVehicle.on_launch_pad()

        vehicle.activate_next_stage()
        assert vehicle.active_stage.title == "Booster"
        assert vehicle.available_thrust() == 200000.0

        vehicle.activate_next_stage()
        assert vehicle.active_stage.title == "Upper stage"
        assert vehicle.mass == 500.0 + 4000.0

        vehicle.activate_next_stage()
        assert vehicle.active_stage.title == "Upper stage"

    def test_throttle_clamped(self):
        vehicle = SimulatedVehicle.on_launch_pad()
        vehicle.command_throttle(1.5)
        assert vehicle.throttle == 1.0

    def test_rejects_unknown_frame(self):
        vehicle = SimulatedVehicle.in_circular_orbit(80000.0)
        with pytest.raises(ValueError):
            vehicle.command_attitude(Vector3(1.0, 0.0, 0.0), "maneuver_node")

    def test_rejects_zero_direction(self):
        vehicle = SimulatedVehicle.in_circular_orbit(80000.0)
        with pytest.raises(ValueError):
            vehicle.command_attitude(Vector3(), INERTIAL_FRAME)

    def test_attitude_settle_time(self):
        vehicle = SimulatedVehicle.in_circular_orbit(80000.0, attitude_settle_time=2.0)
        assert not vehicle.is_attitude_settled()

        vehicle.command_attitude(Vector3(0.0, 1.0, 0.0), INERTIAL_FRAME)
        assert not vehicle.is_attitude_settled()

        vehicle.advance(2.5)
        assert vehicle.is_attitude_settled()

        vehicle.disengage_attitude()
        assert not vehicle.is_attitude_settled()

    def test_action_group_and_sas(self):
        vehicle = SimulatedVehicle.on_launch_pad()

        vehicle.toggle_action_group(5)
        vehicle.set_sas(True)

        assert vehicle.action_group(5)
        assert not vehicle.action_group(1)
        assert vehicle.sas
        vehicle.toggle_action_group(5)
        assert not vehicle.action_group(5)


# =============================================================================
# Maneuver Node Tests
# =============================================================================


class TestSimulatedNode:
    """Test node telemetry against applied thrust."""

    def test_node_is_prograde(self):
        vehicle = SimulatedVehicle.in_circular_orbit(80000.0)

        node = vehicle.add_maneuver_node(vehicle.time, 100.0)

        assert_allclose(node.burn_vector().to_tuple(), (0.0, 100.0, 0.0), atol=1e-9)
        assert_allclose(node.remaining_delta_v, 100.0)
        assert node.reference_frame == INERTIAL_FRAME
        assert vehicle.maneuver_nodes() == [node]

    def test_burn_shrinks_then_overshoots(self):
        vehicle = SimulatedVehicle.in_circular_orbit(80000.0)
        node = vehicle.add_maneuver_node(vehicle.time, 100.0)
        ignition_vector = node.burn_vector()
        vehicle.command_attitude(ignition_vector, node.reference_frame)
        vehicle.command_throttle(1.0)

        vehicle.advance(1.0)
        # 60 kN on 4 t is about 15 m/s^2
        assert 84.0 < node.remaining_delta_v < 86.0
        assert vector_angle_degrees(ignition_vector, node.burn_vector()) < 1.0

        vehicle.advance(8.0)
        assert vector_angle_degrees(ignition_vector, node.burn_vector()) > 90.0

    def test_nodes_sorted_and_removed(self):
        vehicle = SimulatedVehicle.in_circular_orbit(80000.0)
        late = vehicle.add_maneuver_node(200.0, 10.0)
        early = vehicle.add_maneuver_node(100.0, 10.0)

        assert vehicle.maneuver_nodes() == [early, late]

        vehicle.remove_node(early)
        assert vehicle.maneuver_nodes() == [late]


# =============================================================================
# Closed-Loop Tests
# =============================================================================


class TestClosedLoop:
    """Fly the flight software against the simulated plant."""

    def test_launch_to_orbit(self):
        vehicle = SimulatedVehicle.on_launch_pad()
        launch = LaunchSequence(vehicle)

        phase = launch.run(sleep=vehicle.sleep, max_ticks=20000)

        snapshot = vehicle.get_telemetry_snapshot()
        assert phase == LaunchPhase.COMPLETE
        assert vehicle.active_stage.title == "Upper stage"
        assert snapshot.periapsis_altitude > 50000.0
        assert vehicle.sas
        assert vehicle.maneuver_nodes() == []

    def test_execute_prograde_node(self):
        vehicle = SimulatedVehicle.in_circular_orbit(80000.0)
        vehicle.add_maneuver_node(60.0, 50.0)

        executed = execute_next_node(vehicle, vehicle.sleep, config=BurnConfig(warp_lead_time=None))

        snapshot = vehicle.get_telemetry_snapshot()
        assert executed
        assert vehicle.maneuver_nodes() == []
        assert vehicle.throttle == 0.0
        assert snapshot.apoapsis_altitude > 100000.0
        assert snapshot.periapsis_altitude > 75000.0

    def test_mu_matches_kerbin(self):
        vehicle = SimulatedVehicle.in_circular_orbit(80000.0)
        assert vehicle.get_telemetry_snapshot().gravitational_parameter == MU_KERBIN
