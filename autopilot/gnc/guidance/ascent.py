"""Altitude-driven ascent guidance.

The vehicle climbs along a closed-form pitch profile: pitch is a quadratic
in altitude that starts vertical on the pad and lays the vehicle over toward
the horizon as it approaches the top of the atmosphere. Guidance also owns
the two discrete decisions made every tick during the climb:

1. Apoapsis reached: cut the engines once the apoapsis passes the target
2. Staging: activate the next stage once thrust has read zero for several
   consecutive ticks (a single-tick zero is a telemetry glitch, not burnout)

Example:
    >>> from autopilot.gnc.guidance import AscentGuidance
    >>>
    >>> guidance = AscentGuidance(target_apoapsis_altitude=90000.0, compass_heading=90.0)
    >>> pitch = guidance.pitch_for_altitude(snapshot.mean_altitude)
    >>> if guidance.apoapsis_reached(snapshot.apoapsis_altitude):
    ...     vehicle.command_throttle(0.0)
"""

from dataclasses import dataclass, field

import numpy as np

from autopilot.checking import typechecked
from autopilot.config import GuidanceTarget, PitchProfile, StagingConfig

# =============================================================================
# Staging
# =============================================================================


@typechecked
def should_advance_stage(
    current_thrust: float,
    zero_thrust_ticks: int,
    every_n_ticks: int,
) -> bool:
    """Check whether thrust has been lost long enough to stage.

    Args:
        current_thrust: Thrust read this tick [N]
        zero_thrust_ticks: Consecutive ticks (including this one) with zero thrust
        every_n_ticks: Ticks required before staging

    Returns:
        True if the next stage should be activated
    """
    return current_thrust <= 0.0 and zero_thrust_ticks >= every_n_ticks


@typechecked
@dataclass
class StagingMonitor:
    """Debounced zero-thrust detector.

    Counts consecutive zero-thrust ticks and fires once the count reaches
    every_n_ticks, then starts counting again from zero.
    """
    every_n_ticks: int = 10

    _zero_thrust_ticks: int = field(default=0, init=False, repr=False)

    @classmethod
    def from_config(cls, config: StagingConfig) -> "StagingMonitor":
        return cls(every_n_ticks=config.every_n_ticks)

    @property
    def zero_thrust_ticks(self) -> int:
        return self._zero_thrust_ticks

    def update(self, current_thrust: float) -> bool:
        """Record one tick of thrust; True when the vehicle should stage."""
        if current_thrust > 0.0:
            self._zero_thrust_ticks = 0
            return False

        self._zero_thrust_ticks += 1
        if should_advance_stage(current_thrust, self._zero_thrust_ticks, self.every_n_ticks):
            self._zero_thrust_ticks = 0
            return True
        return False


# =============================================================================
# Ascent Guidance
# =============================================================================


@typechecked
@dataclass
class AscentGuidance:
    """Pitch profile ascent guidance.

    Attributes:
        target_apoapsis_altitude: Apoapsis at which the climb ends [m]
        compass_heading: Launch heading, 90 = due east [deg]
        profile: Altitude-to-pitch curve
    """
    target_apoapsis_altitude: float = 90000.0
    compass_heading: float = 90.0
    profile: PitchProfile = field(default_factory=PitchProfile)

    @classmethod
    def from_target(
        cls,
        target: GuidanceTarget,
        profile: PitchProfile | None = None,
    ) -> "AscentGuidance":
        """Create guidance for a GuidanceTarget."""
        return cls(
            target_apoapsis_altitude=target.target_apoapsis_altitude,
            compass_heading=target.compass_heading,
            profile=profile or PitchProfile(),
        )

    def pitch_for_altitude(self, altitude: float) -> float:
        """Get commanded pitch angle.

        Args:
            altitude: Mean altitude [m]

        Returns:
            Pitch above the horizon [deg], never below profile.min_pitch
        """
        p = self.profile
        # Beyond the vertex the parabola would turn back up; hold it there
        h = float(np.clip(altitude, 0.0, p.vertex_altitude))
        pitch = p.a * h * h + p.b * h + p.c
        return max(pitch, p.min_pitch)

    def apoapsis_reached(
        self,
        current_apoapsis: float,
        target_apoapsis: float | None = None,
    ) -> bool:
        """Check if the climb is done.

        Args:
            current_apoapsis: Apoapsis altitude from this tick's snapshot [m]
            target_apoapsis: Override for the guidance target [m]

        Returns:
            True once the apoapsis is strictly above the target
        """
        if target_apoapsis is None:
            target_apoapsis = self.target_apoapsis_altitude
        return current_apoapsis > target_apoapsis
