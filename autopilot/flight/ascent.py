"""Powered ascent orchestration.

One call to AscentSession.tick() is one control cycle of the climb:

    snapshot -> pitch from altitude -> command attitude
             -> apoapsis reached?  throttle 0, done
             -> staging check
             -> TWR error -> throttle controller -> command throttle

The caller owns the loop and the sleep between ticks. Once the session
reports complete it issues no further commands; control passes to the
maneuver planner and burn executor.

Example:
    >>> session = AscentSession(vehicle, GuidanceTarget(90000.0, 90.0))
    >>> while not session.tick().complete:
    ...     time.sleep(0.1)
"""

import logging
from dataclasses import dataclass, field
from typing import NamedTuple

from autopilot.config import GuidanceTarget, PitchProfile, StagingConfig, ThrottleConfig
from autopilot.gnc.control.throttle import ThrottleController
from autopilot.gnc.guidance.ascent import AscentGuidance, StagingMonitor
from autopilot.orbital import thrust_to_weight
from autopilot.telemetry import TelemetrySnapshot, Vehicle

logger = logging.getLogger(__name__)


class AscentStatus(NamedTuple):
    """Outcome of one ascent tick.

    Attributes:
        tick: Tick number, starting at 1
        pitch: Commanded pitch [deg] (None once complete)
        throttle: Throttle commanded this tick (None if not commanded)
        staged: Whether the next stage was activated this tick
        complete: Target apoapsis reached
    """
    tick: int
    pitch: float | None
    throttle: float | None
    staged: bool
    complete: bool


@dataclass
class AscentSession:
    """Drives guidance and throttle control until the target apoapsis.

    Attributes:
        vehicle: Vehicle being flown
        target: Apoapsis and heading for this ascent
        throttle_config: TWR target and controller tuning
        pitch_profile: Altitude-to-pitch curve
        staging: Zero-thrust staging debounce
        auto_throttle: Track target TWR (False leaves throttle alone)
    """
    vehicle: Vehicle
    target: GuidanceTarget = field(default_factory=GuidanceTarget)
    throttle_config: ThrottleConfig = field(default_factory=ThrottleConfig)
    pitch_profile: PitchProfile = field(default_factory=PitchProfile)
    staging: StagingConfig = field(default_factory=StagingConfig)
    auto_throttle: bool = True

    # Internal state
    _guidance: AscentGuidance = field(init=False, repr=False)
    _controller: ThrottleController = field(init=False, repr=False)
    _staging_monitor: StagingMonitor = field(init=False, repr=False)
    _tick: int = field(default=0, init=False, repr=False)
    _last_ut: float | None = field(default=None, init=False, repr=False)
    _complete: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        self._guidance = AscentGuidance.from_target(self.target, self.pitch_profile)
        self._controller = ThrottleController.from_config(self.throttle_config)
        self._staging_monitor = StagingMonitor.from_config(self.staging)

    @property
    def complete(self) -> bool:
        return self._complete

    @property
    def guidance(self) -> AscentGuidance:
        return self._guidance

    @property
    def controller(self) -> ThrottleController:
        return self._controller

    def toggle_auto_throttle(self) -> bool:
        """Flip auto-throttle on/off; returns the new setting."""
        self.auto_throttle = not self.auto_throttle
        logger.info("Auto throttle %s", "on" if self.auto_throttle else "off")
        return self.auto_throttle

    def tick(self) -> AscentStatus:
        """Run one control cycle on a fresh snapshot."""
        if self._complete:
            return AscentStatus(self._tick, None, None, False, True)

        self._tick += 1
        snapshot = self.vehicle.get_telemetry_snapshot()

        pitch = self._guidance.pitch_for_altitude(snapshot.mean_altitude)
        self.vehicle.command_pitch_heading(pitch, self.target.compass_heading)

        if self._guidance.apoapsis_reached(snapshot.apoapsis_altitude):
            self.vehicle.command_throttle(0.0)
            self._complete = True
            logger.info("Target apoapsis reached")
            return AscentStatus(self._tick, pitch, 0.0, False, True)

        staged = self._staging_monitor.update(snapshot.thrust)
        if staged:
            logger.info("Thrust is zero, activating next stage.")
            self.vehicle.activate_next_stage()

        throttle = None
        if self.auto_throttle:
            throttle = self._update_throttle(snapshot)
            self.vehicle.command_throttle(throttle)

        self._last_ut = snapshot.universal_time
        logger.debug(
            "tick %d: alt %.0f m, apo %.0f m, pitch %.1f, throttle %s",
            self._tick, snapshot.mean_altitude, snapshot.apoapsis_altitude, pitch, throttle,
        )
        return AscentStatus(self._tick, pitch, throttle, staged, False)

    def _update_throttle(self, snapshot: TelemetrySnapshot) -> float:
        dt = 0.0 if self._last_ut is None else snapshot.universal_time - self._last_ut
        current_twr = thrust_to_weight(snapshot.thrust, snapshot.mass, snapshot.surface_gravity)
        error = self.throttle_config.target_twr - current_twr
        return self._controller.update(error, dt)
