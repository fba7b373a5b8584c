"""Guidance laws for the autopilot.

Provides the ascent pitch profile, staging decisions and maneuver planning
that generate the commands the control loop executes.
"""

from autopilot.gnc.guidance.ascent import (
    AscentGuidance,
    StagingMonitor,
    should_advance_stage,
)
from autopilot.gnc.guidance.maneuver import (
    Apsis,
    ManeuverPlan,
    ManeuverPlanner,
)

__all__ = [
    "Apsis",
    "AscentGuidance",
    "ManeuverPlan",
    "ManeuverPlanner",
    "StagingMonitor",
    "should_advance_stage",
]
