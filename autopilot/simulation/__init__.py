"""Vehicles for flying the autopilot without the game.

Provides two implementations of the Vehicle protocol:
- ScriptedVehicle: replays canned telemetry and records every command
- SimulatedVehicle: step-driven point-mass physics around Kerbin

Example:
    >>> from autopilot.flight import LaunchSequence
    >>> from autopilot.simulation import SimulatedVehicle
    >>>
    >>> vehicle = SimulatedVehicle.on_launch_pad()
    >>> launch = LaunchSequence(vehicle)
    >>> launch.run(sleep=vehicle.sleep)
"""

from autopilot.simulation.scripted import NODE_FRAME, ScriptedNode, ScriptedVehicle
from autopilot.simulation.vehicle import (
    INERTIAL_FRAME,
    SimStage,
    SimulatedNode,
    SimulatedVehicle,
    default_stages,
    local_direction,
)

__all__ = [
    "INERTIAL_FRAME",
    "NODE_FRAME",
    "ScriptedNode",
    "ScriptedVehicle",
    "SimStage",
    "SimulatedNode",
    "SimulatedVehicle",
    "default_stages",
    "local_direction",
]
