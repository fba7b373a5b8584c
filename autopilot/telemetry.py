"""Telemetry records and the vehicle interface consumed by the flight software.

The flight software never talks to a transport directly. Each control tick
it asks a Vehicle for one TelemetrySnapshot and issues commands back through
the same object. Anything implementing the Vehicle protocol can be flown:
the kRPC adapter, the simulated vehicle, or a scripted replay in tests.

Architecture:
    Flight code owns the loop and calls, once per tick:
    - vehicle.get_telemetry_snapshot() -> one consistent set of readings
    - guidance/control computations on that snapshot only
    - vehicle.command_*(...) -> actuator intents

Example:
    >>> snapshot = vehicle.get_telemetry_snapshot()
    >>> pitch = guidance.pitch_for_altitude(snapshot.mean_altitude)
    >>> vehicle.command_pitch_heading(pitch, 90.0)
"""

from collections.abc import Sequence
from typing import Any, NamedTuple, Protocol, runtime_checkable

from autopilot.vector import Vector3

# =============================================================================
# Telemetry Records
# =============================================================================


class TelemetrySnapshot(NamedTuple):
    """All readings for one control tick.

    Produced externally, read-only, valid for a single tick. Guidance must
    never mix fields from two different snapshots.
    """
    mean_altitude: float          # Altitude above sea level [m]
    surface_altitude: float       # Altitude above terrain [m]
    apoapsis_altitude: float      # Apoapsis above sea level [m]
    vertical_speed: float         # Radial speed, body frame [m/s]
    heading: float                # Compass heading [deg]
    roll: float                   # Roll angle [deg]
    mass: float                   # Vehicle mass [kg]
    available_thrust: float       # Thrust at full throttle [N]
    specific_impulse: float       # Combined vessel Isp [s]
    universal_time: float         # Universal time [s]
    thrust: float = 0.0           # Current thrust [N]
    surface_gravity: float = 9.81             # Body surface gravity [m/s^2]
    gravitational_parameter: float = 3.5316e12  # Body mu [m^3/s^2]
    semi_major_axis: float = 0.0  # [m]
    apoapsis_radius: float = 0.0  # Apoapsis from body centre [m]
    periapsis_radius: float = 0.0  # Periapsis from body centre [m]
    periapsis_altitude: float = 0.0  # [m]
    time_to_apoapsis: float = 0.0  # [s]
    time_to_periapsis: float = 0.0  # [s]
    eccentricity: float = 0.0     # [-]
    inclination: float = 0.0      # [deg]


class EngineInfo(NamedTuple):
    """An active engine as seen by the planner."""
    specific_impulse: float  # [s]
    title: str = ""


# =============================================================================
# External Interfaces
# =============================================================================


@runtime_checkable
class NodeHandle(Protocol):
    """A maneuver node owned by the vehicle.

    reference_frame is opaque to the flight software: it is handed back to
    command_attitude unchanged.
    """

    @property
    def time_ut(self) -> float: ...

    @property
    def delta_v(self) -> float: ...

    @property
    def reference_frame(self) -> Any: ...

    @property
    def remaining_delta_v(self) -> float: ...

    def burn_vector(self) -> Vector3:
        """Remaining velocity change, in the node's reference frame."""
        ...


@runtime_checkable
class Vehicle(Protocol):
    """Capabilities the flight software needs from a controllable vehicle."""

    def get_telemetry_snapshot(self) -> TelemetrySnapshot: ...

    def current_universal_time(self) -> float: ...

    def command_throttle(self, value: float) -> None: ...

    def command_attitude(self, direction: Vector3, reference_frame: Any) -> None: ...

    def command_pitch_heading(self, pitch: float, heading: float) -> None: ...

    def command_roll(self, roll: float) -> None: ...

    def is_attitude_settled(self) -> bool: ...

    def disengage_attitude(self) -> None: ...

    def get_active_engines(self) -> Sequence[EngineInfo]: ...

    def add_maneuver_node(self, time_ut: float, prograde: float) -> NodeHandle: ...

    def remove_node(self, node: NodeHandle) -> None: ...

    def maneuver_nodes(self) -> Sequence[NodeHandle]: ...

    def activate_next_stage(self) -> None: ...

    def toggle_action_group(self, group: int) -> None: ...

    def set_sas(self, enabled: bool) -> None: ...

    def warp_to(self, ut: float) -> None: ...
