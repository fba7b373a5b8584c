"""Launch-to-orbit program.

Sequences the whole flight from the pad to a circular orbit:

1. Countdown: 3, 2, 1, ignition; hold current heading and roll
2. Roll program: climb vertically until 60 m/s (or 15 s), then roll to
   zero and turn to the launch heading
3. Ascent: AscentSession until the target apoapsis
4. Coast: engines off until clear of the atmosphere (optional action
   group 5 on the way, e.g. fairings)
5. Circularize: plan at apoapsis, add the node, fly it with BurnExecutor
6. Complete: SAS on, orbit summary

Every phase advances on tick() calls with the vehicle's universal time as
the clock, so the same program runs against kRPC, the simulator, or a
scripted replay.

Example:
    >>> from autopilot.flight import LaunchSequence
    >>>
    >>> launch = LaunchSequence(vehicle, AutopilotConfig())
    >>> launch.run(sleep=time.sleep)
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import IntEnum

from autopilot.config import AutopilotConfig
from autopilot.flight.ascent import AscentSession
from autopilot.flight.burn import BurnExecutor, BurnPhase
from autopilot.gnc.guidance.maneuver import Apsis, ManeuverPlanner
from autopilot.telemetry import TelemetrySnapshot, Vehicle

logger = logging.getLogger(__name__)


class LaunchPhase(IntEnum):
    """Launch program phases."""
    COUNTDOWN = 1
    ROLL_PROGRAM = 2
    ASCENT = 3
    COAST = 4
    CIRCULARIZE = 5
    COMPLETE = 6


def format_orbit_summary(snapshot: TelemetrySnapshot) -> str:
    """Format a human-readable summary of the current orbit.

    Args:
        snapshot: Telemetry taken after the final burn

    Returns:
        Formatted string summary
    """
    lines = [
        f"  Apoapsis: {snapshot.apoapsis_altitude / 1000.0:.3f} km, "
        f"Periapsis: {snapshot.periapsis_altitude / 1000.0:.3f} km",
        f"  Semi-major axis: {snapshot.semi_major_axis / 1000.0:.3f} km, "
        f"Eccentricity: {snapshot.eccentricity:.4f}",
        f"  Inclination: {snapshot.inclination:.2f} degrees",
    ]
    return "\n".join(lines)


@dataclass
class LaunchSequence:
    """Tick-driven launch program.

    Attributes:
        vehicle: Vehicle on the pad
        config: Complete autopilot tuning
        planner: Circularization planner
    """
    vehicle: Vehicle
    config: AutopilotConfig = field(default_factory=AutopilotConfig)
    planner: ManeuverPlanner = field(default_factory=ManeuverPlanner)

    # Internal state
    _phase: LaunchPhase = field(default=LaunchPhase.COUNTDOWN, init=False)
    _phase_start_ut: float | None = field(default=None, init=False, repr=False)
    _countdown_marks: list[int] = field(default_factory=list, init=False, repr=False)
    _action_group_pending: bool = field(default=False, init=False, repr=False)
    _ascent: AscentSession = field(init=False, repr=False)
    _burn: BurnExecutor | None = field(default=None, init=False, repr=False)
    _summary: str | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        c = self.config
        self._ascent = AscentSession(
            self.vehicle,
            target=c.target,
            throttle_config=c.throttle,
            pitch_profile=c.pitch_profile,
            staging=c.staging,
            auto_throttle=c.launch.auto_throttle,
        )
        self._action_group_pending = c.launch.action_group_5

    @property
    def phase(self) -> LaunchPhase:
        return self._phase

    @property
    def ascent(self) -> AscentSession:
        return self._ascent

    @property
    def burn(self) -> BurnExecutor | None:
        return self._burn

    @property
    def is_complete(self) -> bool:
        return self._phase == LaunchPhase.COMPLETE

    @property
    def orbit_summary(self) -> str | None:
        """Orbit summary, available once complete."""
        return self._summary

    def tick(self) -> LaunchPhase:
        """Run one control cycle of the current phase."""
        phase = self._phase
        if phase == LaunchPhase.COUNTDOWN:
            self._countdown()
        elif phase == LaunchPhase.ROLL_PROGRAM:
            self._roll_program()
        elif phase == LaunchPhase.ASCENT:
            if self._ascent.tick().complete:
                logger.info("Coasting out of atmosphere")
                self._phase = LaunchPhase.COAST
        elif phase == LaunchPhase.COAST:
            self._coast()
        elif phase == LaunchPhase.CIRCULARIZE:
            self._circularize()
        return self._phase

    def abort(self) -> None:
        """Cut thrust and release attitude."""
        if self.is_complete:
            return
        logger.warning("Launch aborted in phase %s", self._phase.name)
        if self._burn is not None:
            self._burn.abort()
        self.vehicle.command_throttle(0.0)
        self.vehicle.disengage_attitude()

    def run(
        self,
        sleep: Callable[[float], None],
        tick_interval: float = 0.1,
        max_ticks: int | None = None,
    ) -> LaunchPhase:
        """Fly the whole program, sleeping between ticks.

        Throttle is zeroed and attitude released if the loop exits early.
        """
        ticks = 0
        try:
            while not self.is_complete:
                if max_ticks is not None and ticks >= max_ticks:
                    break
                self.tick()
                ticks += 1
                if not self.is_complete:
                    sleep(tick_interval)
        finally:
            if not self.is_complete:
                self.abort()
        return self._phase

    def _countdown(self) -> None:
        snapshot = self.vehicle.get_telemetry_snapshot()
        now = snapshot.universal_time
        seconds = self.config.launch.countdown_seconds

        if self._phase_start_ut is None:
            self.vehicle.set_sas(False)
            self.vehicle.command_throttle(1.0)
            self._phase_start_ut = now

        elapsed = now - self._phase_start_ut
        for mark in range(seconds, 0, -1):
            if mark not in self._countdown_marks and elapsed >= seconds - mark:
                self._countdown_marks.append(mark)
                logger.info("...%d", mark)

        if elapsed < seconds:
            return

        logger.info("Launch!")
        self.vehicle.activate_next_stage()
        self.vehicle.command_pitch_heading(90.0, snapshot.heading)
        self.vehicle.command_roll(snapshot.roll)
        self._enter(LaunchPhase.ROLL_PROGRAM, now)

    def _roll_program(self) -> None:
        snapshot = self.vehicle.get_telemetry_snapshot()
        launch = self.config.launch
        elapsed = snapshot.universal_time - self._phase_start_ut

        if snapshot.vertical_speed < launch.roll_program_speed and elapsed <= launch.roll_program_timeout:
            return

        logger.info("Roll")
        self.vehicle.command_roll(0.0)
        self.vehicle.command_pitch_heading(90.0, self.config.target.compass_heading)
        logger.info("Gravity turn")
        self._enter(LaunchPhase.ASCENT, snapshot.universal_time)

    def _coast(self) -> None:
        snapshot = self.vehicle.get_telemetry_snapshot()
        launch = self.config.launch

        if self._action_group_pending and snapshot.mean_altitude > launch.action_group_5_altitude:
            self.vehicle.toggle_action_group(5)
            self._action_group_pending = False
            logger.info("Action group 5 activated above %.0f km", launch.action_group_5_altitude / 1000.0)

        if snapshot.mean_altitude < launch.atmosphere_altitude:
            return

        plan = self.planner.plan_circularization(
            snapshot, Apsis.APOAPSIS, self.vehicle.get_active_engines()
        )
        plan = self.planner.schedule(plan, self.vehicle)

        burn_config = replace(self.config.burn, warp_lead_time=launch.circularization_warp_lead)
        self._burn = BurnExecutor(self.vehicle, plan, burn_config)
        self._burn.start()
        self._enter(LaunchPhase.CIRCULARIZE, snapshot.universal_time)

    def _circularize(self) -> None:
        if self._burn.update() != BurnPhase.COMPLETE:
            return

        self.vehicle.set_sas(True)
        snapshot = self.vehicle.get_telemetry_snapshot()
        self._summary = format_orbit_summary(snapshot)
        logger.info("Orbit:\n%s", self._summary)
        logger.info("Launch complete")
        self._enter(LaunchPhase.COMPLETE, snapshot.universal_time)

    def _enter(self, phase: LaunchPhase, ut: float) -> None:
        self._phase = phase
        self._phase_start_ut = ut
