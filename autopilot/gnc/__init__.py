"""GNC (Guidance, Navigation, Control) module for the autopilot.

Provides guidance laws and control algorithms that turn telemetry
snapshots into attitude and throttle commands.

Example:
    >>> from autopilot.gnc.control import ThrottleController
    >>> from autopilot.gnc.guidance import AscentGuidance
    >>>
    >>> # Hold TWR during the climb
    >>> throttle_ctrl = ThrottleController(ki=1.0, output_limits=(0.01, 1.0))
    >>>
    >>> # Create guidance
    >>> guidance = AscentGuidance(target_apoapsis_altitude=90000.0, compass_heading=90.0)
"""

from autopilot.gnc.control import (
    ThrottleController,
)
from autopilot.gnc.guidance import (
    Apsis,
    AscentGuidance,
    ManeuverPlan,
    ManeuverPlanner,
    StagingMonitor,
    should_advance_stage,
)

__all__ = [
    # Control
    "ThrottleController",
    # Guidance
    "Apsis",
    "AscentGuidance",
    "ManeuverPlan",
    "ManeuverPlanner",
    "StagingMonitor",
    "should_advance_stage",
]
