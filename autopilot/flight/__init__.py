"""Flight software - the control loops that fly the vehicle.

Guidance and control laws live in autopilot.gnc; this package sequences
them tick by tick against a Vehicle.

Architecture:
    The vehicle (kRPC adapter, simulator or scripted replay) provides
    telemetry and accepts commands. Flight software owns the loop:

        snapshot = vehicle.get_telemetry_snapshot()   # one tick of readings
        status = session.tick()                      # guidance + control
        sleep(0.1)                                   # caller-owned clock

Subpackages:
    ascent: Powered climb to a target apoapsis
    burn: Closed-loop maneuver node execution
    launch: Complete pad-to-orbit program
"""

from autopilot.flight.ascent import AscentSession, AscentStatus
from autopilot.flight.burn import BurnExecutor, BurnPhase, BurnSession, execute_next_node
from autopilot.flight.launch import LaunchPhase, LaunchSequence, format_orbit_summary

__all__ = [
    "AscentSession",
    "AscentStatus",
    "BurnExecutor",
    "BurnPhase",
    "BurnSession",
    "LaunchPhase",
    "LaunchSequence",
    "execute_next_node",
    "format_orbit_summary",
]
