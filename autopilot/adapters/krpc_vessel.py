"""kRPC implementation of the Vehicle protocol.

Flies the active vessel of a running Kerbal Space Program game through the
kRPC mod. High-rate readings (altitude, apoapsis, thrust, time) come from
kRPC streams; everything else is a plain remote call.

The krpc package is an optional dependency (``pip install autopilot[krpc]``)
and is only imported by KrpcVehicle.connect().

Example:
    >>> from autopilot.adapters import KrpcVehicle
    >>> from autopilot.flight import LaunchSequence
    >>>
    >>> with KrpcVehicle.connect(name="Launch into orbit") as vehicle:
    ...     LaunchSequence(vehicle).run(sleep=time.sleep)
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any

from autopilot.telemetry import EngineInfo, TelemetrySnapshot
from autopilot.vector import Vector3

logger = logging.getLogger(__name__)

# Orbit/flight attributes read through streams every tick
_FLIGHT_STREAMS = ("mean_altitude", "surface_altitude", "heading", "roll")
_ORBIT_STREAMS = (
    "apoapsis_altitude",
    "apoapsis",
    "periapsis",
    "periapsis_altitude",
    "semi_major_axis",
    "time_to_apoapsis",
    "time_to_periapsis",
    "eccentricity",
    "inclination",
)
_VESSEL_STREAMS = ("mass", "available_thrust", "thrust", "specific_impulse")


@dataclass(frozen=True)
class KrpcNode:
    """Maneuver node handle backed by a kRPC Node.

    Handles wrapping the same remote node compare equal.
    """
    node: Any

    @property
    def time_ut(self) -> float:
        return self.node.ut

    @property
    def delta_v(self) -> float:
        return self.node.delta_v

    @property
    def reference_frame(self) -> Any:
        return self.node.reference_frame

    @property
    def remaining_delta_v(self) -> float:
        return self.node.remaining_delta_v

    def burn_vector(self) -> Vector3:
        return Vector3.from_iterable(self.node.remaining_burn_vector(self.node.reference_frame))


@dataclass(eq=False)
class KrpcVehicle:
    """Active vessel of a kRPC connection.

    Attributes:
        connection: kRPC client connection
        vessel: SpaceCenter vessel to fly
        settle_tolerance: Autopilot pointing error counted as settled [deg]
    """
    connection: Any
    vessel: Any
    settle_tolerance: float = 1.0

    _streams: dict[str, Any] = field(default_factory=dict, init=False, repr=False)
    _body: Any = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self._body = self.vessel.orbit.body
        self._open_streams()

    @classmethod
    def connect(
        cls,
        name: str = "Autopilot",
        address: str = "127.0.0.1",
        rpc_port: int = 50000,
        stream_port: int = 50001,
        **kwargs: Any,
    ) -> "KrpcVehicle":
        """Connect to the kRPC server and take the active vessel.

        Raises:
            ConnectionError: If the server is not reachable
        """
        import krpc

        logger.info("Connecting to kRPC at %s:%d", address, rpc_port)
        connection = krpc.connect(
            name=name, address=address, rpc_port=rpc_port, stream_port=stream_port
        )
        vessel = connection.space_center.active_vessel
        logger.info("Flying %s", vessel.name)
        return cls(connection, vessel, **kwargs)

    def close(self) -> None:
        """Remove streams and close the connection."""
        for stream in self._streams.values():
            stream.remove()
        self._streams.clear()
        self.connection.close()

    def __enter__(self) -> "KrpcVehicle":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False

    def _open_streams(self) -> None:
        conn = self.connection
        surface_flight = self.vessel.flight()
        body_flight = self.vessel.flight(self._body.reference_frame)
        orbit = self.vessel.orbit

        self._streams["ut"] = conn.add_stream(getattr, conn.space_center, "ut")
        for name in _FLIGHT_STREAMS:
            self._streams[name] = conn.add_stream(getattr, surface_flight, name)
        self._streams["vertical_speed"] = conn.add_stream(getattr, body_flight, "vertical_speed")
        for name in _ORBIT_STREAMS:
            self._streams[name] = conn.add_stream(getattr, orbit, name)
        for name in _VESSEL_STREAMS:
            self._streams[name] = conn.add_stream(getattr, self.vessel, name)

    def _read(self, name: str) -> float:
        return float(self._streams[name]())

    # Vehicle protocol

    def get_telemetry_snapshot(self) -> TelemetrySnapshot:
        apoapsis_radius = self._read("apoapsis")
        return TelemetrySnapshot(
            mean_altitude=self._read("mean_altitude"),
            surface_altitude=self._read("surface_altitude"),
            apoapsis_altitude=self._read("apoapsis_altitude"),
            vertical_speed=self._read("vertical_speed"),
            heading=self._read("heading"),
            roll=self._read("roll"),
            mass=self._read("mass"),
            available_thrust=self._read("available_thrust"),
            specific_impulse=self._read("specific_impulse"),
            universal_time=self._read("ut"),
            thrust=self._read("thrust"),
            surface_gravity=float(self._body.surface_gravity),
            gravitational_parameter=float(self._body.gravitational_parameter),
            semi_major_axis=self._read("semi_major_axis"),
            apoapsis_radius=apoapsis_radius,
            periapsis_radius=self._read("periapsis"),
            periapsis_altitude=self._read("periapsis_altitude"),
            time_to_apoapsis=self._read("time_to_apoapsis"),
            time_to_periapsis=self._read("time_to_periapsis"),
            eccentricity=self._read("eccentricity"),
            inclination=math.degrees(self._read("inclination")),
        )

    def current_universal_time(self) -> float:
        return self._read("ut")

    def command_throttle(self, value: float) -> None:
        self.vessel.control.throttle = value

    def command_attitude(self, direction: Vector3, reference_frame: Any) -> None:
        autopilot = self.vessel.auto_pilot
        autopilot.reference_frame = reference_frame
        autopilot.target_direction = direction.to_tuple()
        autopilot.engage()

    def command_pitch_heading(self, pitch: float, heading: float) -> None:
        autopilot = self.vessel.auto_pilot
        autopilot.target_pitch_and_heading(pitch, heading)
        autopilot.engage()

    def command_roll(self, roll: float) -> None:
        self.vessel.auto_pilot.target_roll = roll

    def is_attitude_settled(self) -> bool:
        return self.vessel.auto_pilot.error < self.settle_tolerance

    def disengage_attitude(self) -> None:
        self.vessel.auto_pilot.disengage()

    def get_active_engines(self) -> list[EngineInfo]:
        return [
            EngineInfo(float(engine.specific_impulse), engine.part.title)
            for engine in self.vessel.parts.engines
            if engine.active
        ]

    def add_maneuver_node(self, time_ut: float, prograde: float) -> KrpcNode:
        return KrpcNode(self.vessel.control.add_node(time_ut, prograde=prograde))

    def remove_node(self, node: KrpcNode) -> None:
        node.node.remove()

    def maneuver_nodes(self) -> list[KrpcNode]:
        return [KrpcNode(node) for node in self.vessel.control.nodes]

    def activate_next_stage(self) -> None:
        self.vessel.control.activate_next_stage()

    def toggle_action_group(self, group: int) -> None:
        self.vessel.control.toggle_action_group(group)

    def set_sas(self, enabled: bool) -> None:
        self.vessel.control.sas = enabled

    def warp_to(self, ut: float) -> None:
        self.connection.space_center.warp_to(ut)
