"""Autopilot - Closed-loop ascent and maneuver autopilot for Kerbal Space Program.

Flies a vehicle from the pad to a circular orbit and executes maneuver
nodes: altitude-scheduled pitch guidance, a TWR-tracking throttle, debounced
staging, vis-viva circularization planning and a burn executor that cuts off
on live node telemetry rather than a timer.

Example:
    >>> from autopilot import AutopilotConfig, GuidanceTarget, LaunchSequence
    >>> from autopilot.simulation import SimulatedVehicle
    >>>
    >>> config = AutopilotConfig(target=GuidanceTarget(target_apoapsis_altitude=90000.0))
    >>> vehicle = SimulatedVehicle.on_launch_pad()
    >>> launch = LaunchSequence(vehicle, config)
    >>> launch.run(sleep=vehicle.sleep)
    >>> print(launch.orbit_summary)
"""

__version__ = "0.1.0"

# Configuration
from autopilot.config import (
    AutopilotConfig,
    BurnConfig,
    GuidanceTarget,
    LaunchConfig,
    PitchProfile,
    StagingConfig,
    ThrottleConfig,
)

# Errors
from autopilot.errors import AutopilotError, DomainError, PreconditionError

# Flight software
from autopilot.flight import (
    AscentSession,
    AscentStatus,
    BurnExecutor,
    BurnPhase,
    LaunchPhase,
    LaunchSequence,
    execute_next_node,
    format_orbit_summary,
)

# Guidance and control
from autopilot.gnc import (
    Apsis,
    AscentGuidance,
    ManeuverPlan,
    ManeuverPlanner,
    StagingMonitor,
    ThrottleController,
)

# Orbital mechanics
from autopilot.orbital import (
    OrbitalElements,
    burn_duration,
    circularization_delta_v,
    compute_orbital_elements,
    mean_specific_impulse,
    thrust_to_weight,
    vector_angle_degrees,
)

# Vehicle interface
from autopilot.telemetry import EngineInfo, NodeHandle, TelemetrySnapshot, Vehicle
from autopilot.vector import Vector3

__all__ = [
    "Apsis",
    "AscentGuidance",
    "AscentSession",
    "AscentStatus",
    "AutopilotConfig",
    "AutopilotError",
    "BurnConfig",
    "BurnExecutor",
    "BurnPhase",
    "DomainError",
    "EngineInfo",
    "GuidanceTarget",
    "LaunchConfig",
    "LaunchPhase",
    "LaunchSequence",
    "ManeuverPlan",
    "ManeuverPlanner",
    "NodeHandle",
    "OrbitalElements",
    "PitchProfile",
    "PreconditionError",
    "StagingConfig",
    "StagingMonitor",
    "TelemetrySnapshot",
    "ThrottleConfig",
    "ThrottleController",
    "Vector3",
    "Vehicle",
    "__version__",
    "burn_duration",
    "circularization_delta_v",
    "compute_orbital_elements",
    "execute_next_node",
    "format_orbit_summary",
    "mean_specific_impulse",
    "thrust_to_weight",
    "vector_angle_degrees",
]
