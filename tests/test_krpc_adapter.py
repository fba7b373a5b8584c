"""Unit tests for the kRPC vehicle adapter.

The kRPC client is replaced by in-memory fakes: streams are plain callables
reading attributes off SimpleNamespace objects.
"""

import math
from types import SimpleNamespace

import pytest
from numpy.testing import assert_allclose

from autopilot.adapters import KrpcNode, KrpcVehicle
from autopilot.telemetry import Vehicle


class FakeStream:
    def __init__(self, func, *args):
        self.func = func
        self.args = args
        self.removed = False

    def __call__(self):
        return self.func(*self.args)

    def remove(self):
        self.removed = True


class FakeConnection:
    def __init__(self, space_center):
        self.space_center = space_center
        self.streams = []
        self.closed = False

    def add_stream(self, func, *args):
        stream = FakeStream(func, *args)
        self.streams.append(stream)
        return stream

    def close(self):
        self.closed = True


class FakeNode:
    def __init__(self, control, ut, delta_v):
        self.control = control
        self.ut = ut
        self.delta_v = delta_v
        self.remaining_delta_v = delta_v
        self.reference_frame = "node_frame"

    def remaining_burn_vector(self, frame):
        return (0.0, self.remaining_delta_v, 0.0)

    def remove(self):
        self.control.nodes.remove(self)


class FakeControl:
    def __init__(self):
        self.nodes = []
        self.throttle = 0.0

    def add_node(self, ut, prograde=0.0):
        node = FakeNode(self, ut, prograde)
        self.nodes.append(node)
        return node


@pytest.fixture
def connection():
    body = SimpleNamespace(
        reference_frame="body_frame",
        surface_gravity=9.81,
        gravitational_parameter=3.5316e12,
    )
    orbit = SimpleNamespace(
        body=body,
        apoapsis_altitude=90000.0,
        apoapsis=690000.0,
        periapsis=680000.0,
        periapsis_altitude=80000.0,
        semi_major_axis=685000.0,
        time_to_apoapsis=600.0,
        time_to_periapsis=1500.0,
        eccentricity=0.007,
        inclination=math.radians(6.0),
    )
    flight = SimpleNamespace(
        mean_altitude=85000.0,
        surface_altitude=85000.0,
        heading=90.0,
        roll=0.0,
        vertical_speed=12.0,
    )
    vessel = SimpleNamespace(
        name="Test Vessel",
        orbit=orbit,
        flight=lambda frame=None: flight,
        mass=4000.0,
        available_thrust=60000.0,
        thrust=0.0,
        specific_impulse=340.0,
        control=FakeControl(),
    )
    return FakeConnection(SimpleNamespace(ut=1000.0, active_vessel=vessel))


@pytest.fixture
def vehicle(connection):
    return KrpcVehicle(connection, connection.space_center.active_vessel)


# =============================================================================
# Telemetry Tests
# =============================================================================


class TestKrpcTelemetry:
    """Test snapshot assembly from streams."""

    def test_implements_vehicle_protocol(self, vehicle):
        assert isinstance(vehicle, Vehicle)

    def test_snapshot_fields(self, vehicle):
        snapshot = vehicle.get_telemetry_snapshot()

        assert snapshot.apoapsis_altitude == 90000.0
        assert snapshot.apoapsis_radius == 690000.0
        assert snapshot.vertical_speed == 12.0
        assert snapshot.universal_time == 1000.0
        assert snapshot.gravitational_parameter == 3.5316e12

    def test_inclination_in_degrees(self, vehicle):
        snapshot = vehicle.get_telemetry_snapshot()
        assert_allclose(snapshot.inclination, 6.0)

    def test_close_removes_streams(self, vehicle, connection):
        with vehicle:
            pass

        assert all(stream.removed for stream in connection.streams)
        assert connection.closed


# =============================================================================
# Maneuver Node Tests
# =============================================================================


class TestKrpcNodes:
    """Test node handles over remote nodes."""

    def test_handles_for_same_node_are_equal(self, vehicle):
        added = vehicle.add_maneuver_node(1600.0, prograde=25.0)

        assert vehicle.maneuver_nodes() == [added]
        assert added in vehicle.maneuver_nodes()

    def test_removed_node_not_listed(self, vehicle):
        added = vehicle.add_maneuver_node(1600.0, prograde=25.0)

        vehicle.remove_node(added)

        assert added not in vehicle.maneuver_nodes()

    def test_node_properties(self, vehicle):
        node = vehicle.add_maneuver_node(1600.0, prograde=25.0)

        assert isinstance(node, KrpcNode)
        assert node.time_ut == 1600.0
        assert node.delta_v == 25.0
        assert node.burn_vector().y == 25.0
