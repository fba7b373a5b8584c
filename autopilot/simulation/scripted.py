"""Scripted vehicle: replays canned telemetry and records every command.

Used to fly the flight software against exact, repeatable telemetry. Each
get_telemetry_snapshot() call consumes the next scripted snapshot (the last
one repeats once the script runs out), and every command is recorded with
the index of the snapshot it was issued against.

Example:
    >>> vehicle = ScriptedVehicle(snapshots)
    >>> session = AscentSession(vehicle)
    >>> session.tick()
    >>> vehicle.throttle_commands
    [(1, 1.0)]
"""

from dataclasses import dataclass, field
from collections.abc import Sequence
from typing import Any

from autopilot.telemetry import EngineInfo, TelemetrySnapshot
from autopilot.vector import Vector3

# Node-relative frame: +y is prograde
NODE_FRAME = "maneuver_node"


@dataclass
class ScriptedNode:
    """Maneuver node whose remaining burn vector is set by the test.

    Attributes:
        time_ut: Node time [s]
        delta_v: Planned prograde delta-v [m/s]
        vector: Remaining burn vector, in NODE_FRAME
        reference_frame: Frame handed back to command_attitude
    """
    time_ut: float
    delta_v: float
    vector: Vector3 = field(default_factory=Vector3)
    reference_frame: Any = NODE_FRAME

    @classmethod
    def prograde(cls, time_ut: float, delta_v: float) -> "ScriptedNode":
        """Node with its full delta-v still to burn."""
        return cls(time_ut, delta_v, Vector3(0.0, delta_v, 0.0))

    @property
    def remaining_delta_v(self) -> float:
        return self.vector.magnitude

    def burn_vector(self) -> Vector3:
        return self.vector


@dataclass
class ScriptedVehicle:
    """Vehicle that replays a fixed list of snapshots.

    Attributes:
        snapshots: Telemetry served one per get_telemetry_snapshot() call
        engines: Active engines reported to the planner
        attitude_settled: Value returned by is_attitude_settled()
        clock: Universal time for current_universal_time() [s]
    """
    snapshots: Sequence[TelemetrySnapshot]
    engines: list[EngineInfo] = field(default_factory=lambda: [EngineInfo(320.0, "LV-T45")])
    attitude_settled: bool = True
    clock: float = 0.0

    # Recorded commands
    nodes: list[ScriptedNode] = field(default_factory=list)
    throttle_commands: list[tuple[int, float]] = field(default_factory=list)
    pitch_heading_commands: list[tuple[int, float, float]] = field(default_factory=list)
    attitude_commands: list[tuple[Vector3, Any]] = field(default_factory=list)
    roll_commands: list[float] = field(default_factory=list)
    stage_activations: list[int] = field(default_factory=list)
    action_groups: list[int] = field(default_factory=list)
    sas_commands: list[bool] = field(default_factory=list)
    warps: list[float] = field(default_factory=list)
    disengage_count: int = 0

    _index: int = field(default=0, init=False, repr=False)

    def __post_init__(self) -> None:
        if len(self.snapshots) == 0:
            raise ValueError("At least one snapshot is required")

    @property
    def tick(self) -> int:
        """Number of snapshots served so far."""
        return self._index

    @property
    def last_throttle(self) -> float | None:
        if not self.throttle_commands:
            return None
        return self.throttle_commands[-1][1]

    def sleep(self, seconds: float) -> None:
        """Fake sleep: advance the clock without blocking."""
        self.clock += seconds

    # Vehicle protocol

    def get_telemetry_snapshot(self) -> TelemetrySnapshot:
        snapshot = self.snapshots[min(self._index, len(self.snapshots) - 1)]
        self._index += 1
        return snapshot

    def current_universal_time(self) -> float:
        return self.clock

    def command_throttle(self, value: float) -> None:
        self.throttle_commands.append((self._index, value))

    def command_attitude(self, direction: Vector3, reference_frame: Any) -> None:
        self.attitude_commands.append((direction, reference_frame))

    def command_pitch_heading(self, pitch: float, heading: float) -> None:
        self.pitch_heading_commands.append((self._index, pitch, heading))

    def command_roll(self, roll: float) -> None:
        self.roll_commands.append(roll)

    def is_attitude_settled(self) -> bool:
        return self.attitude_settled

    def disengage_attitude(self) -> None:
        self.disengage_count += 1

    def get_active_engines(self) -> list[EngineInfo]:
        return list(self.engines)

    def add_maneuver_node(self, time_ut: float, prograde: float) -> ScriptedNode:
        node = ScriptedNode.prograde(time_ut, prograde)
        self.nodes.append(node)
        return node

    def remove_node(self, node: ScriptedNode) -> None:
        self.nodes.remove(node)

    def maneuver_nodes(self) -> list[ScriptedNode]:
        return list(self.nodes)

    def activate_next_stage(self) -> None:
        self.stage_activations.append(self._index)

    def toggle_action_group(self, group: int) -> None:
        self.action_groups.append(group)

    def set_sas(self, enabled: bool) -> None:
        self.sas_commands.append(enabled)

    def warp_to(self, ut: float) -> None:
        self.warps.append(ut)
        self.clock = ut
