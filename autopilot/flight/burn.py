"""Closed-loop maneuver burn execution.

The burn is not timed. Ignition happens at the planned start time and
cutoff happens when live node telemetry says the maneuver is done:

1. Orienting: point along the node's burn vector, wait for attitude to settle
2. Waiting: coast (optionally warping) to the window, count down T-5..T-1
3. Burning: full throttle; every tick compare the burn vector with the one
   captured at ignition
4. Complete: throttle zero, attitude released, node removed

The burn ends when either the remaining delta-v drops below a threshold or
the burn vector swings more than 90 degrees away from its ignition
direction (the vehicle has overshot and further thrust works against the
maneuver).

This is flight software: one BurnExecutor flies one burn and is then spent.

Example:
    >>> from autopilot.flight import BurnExecutor
    >>>
    >>> plan = planner.schedule(planner.plan_circularization(snapshot, Apsis.APOAPSIS, engines), vehicle)
    >>> BurnExecutor(vehicle, plan).run(sleep=time.sleep)
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import IntEnum

from autopilot.config import BurnConfig
from autopilot.errors import PreconditionError
from autopilot.gnc.guidance.maneuver import Apsis, ManeuverPlan, ManeuverPlanner
from autopilot.orbital import vector_angle_degrees
from autopilot.telemetry import Vehicle
from autopilot.vector import Vector3

logger = logging.getLogger(__name__)


class BurnPhase(IntEnum):
    """Burn execution phases, in the only order they can occur."""
    PLANNED = 1
    ORIENTING = 2
    WAITING = 3
    BURNING = 4
    COMPLETE = 5


@dataclass
class BurnSession:
    """Mutable record of one burn in progress.

    Attributes:
        plan: The plan being flown
        reference_burn_vector: Burn vector captured at ignition
        phase: Current phase
        countdown_marks: Countdown seconds already announced
    """
    plan: ManeuverPlan
    reference_burn_vector: Vector3 | None = None
    phase: BurnPhase = BurnPhase.PLANNED
    countdown_marks: list[int] = field(default_factory=list)


@dataclass
class BurnExecutor:
    """Tick-driven maneuver burn state machine.

    Attributes:
        vehicle: Vehicle flying the burn
        plan: Scheduled ManeuverPlan (must carry a node)
        config: Thresholds and timing
        on_countdown: Called with 5, 4, ... 1 as ignition approaches
    """
    vehicle: Vehicle
    plan: ManeuverPlan
    config: BurnConfig = field(default_factory=BurnConfig)
    on_countdown: Callable[[int], None] | None = None

    _session: BurnSession = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._session = BurnSession(plan=self.plan)

    @property
    def session(self) -> BurnSession:
        return self._session

    @property
    def phase(self) -> BurnPhase:
        return self._session.phase

    @property
    def is_complete(self) -> bool:
        return self._session.phase == BurnPhase.COMPLETE

    def start(self) -> None:
        """Point the vehicle along the burn vector (PLANNED -> ORIENTING).

        Raises:
            PreconditionError: If already started or the plan has no node
        """
        if self.phase != BurnPhase.PLANNED:
            raise PreconditionError(f"Burn already started (phase {self.phase.name})")
        node = self.plan.node
        if node is None:
            raise PreconditionError("No maneuver node to execute; schedule the plan first")

        logger.info("Orientating ship for burn")
        self.vehicle.command_attitude(node.burn_vector(), self.plan.reference_frame)
        self._session.phase = BurnPhase.ORIENTING

    def update(self) -> BurnPhase:
        """Run one control tick.

        Returns:
            Phase after this tick
        """
        phase = self._session.phase
        if phase == BurnPhase.PLANNED:
            self.start()
        elif phase == BurnPhase.ORIENTING:
            self._update_orienting()
        elif phase == BurnPhase.WAITING:
            self._update_waiting()
        elif phase == BurnPhase.BURNING:
            self._update_burning()

        return self._session.phase

    def abort(self) -> None:
        """Stop thrusting and release attitude from any phase.

        The maneuver node is left in place for the operator.
        """
        if self.is_complete:
            return
        logger.warning("Burn aborted in phase %s", self.phase.name)
        self.vehicle.command_throttle(0.0)
        self.vehicle.disengage_attitude()
        self._session.phase = BurnPhase.COMPLETE

    def run(self, sleep: Callable[[float], None], max_ticks: int | None = None) -> BurnPhase:
        """Fly the burn to completion, sleeping between ticks.

        Throttle is zeroed and attitude released on every exit path,
        including exceptions and max_ticks running out.

        Args:
            sleep: Blocks for the given number of seconds (time.sleep, or a fake)
            max_ticks: Give up (abort) after this many ticks

        Returns:
            Final phase
        """
        ticks = 0
        try:
            while not self.is_complete:
                if max_ticks is not None and ticks >= max_ticks:
                    break
                self.update()
                ticks += 1
                if not self.is_complete:
                    sleep(self.config.tick_interval)
        finally:
            if not self.is_complete:
                self.abort()
        return self.phase

    def __enter__(self) -> "BurnExecutor":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.abort()
        return False

    def _update_orienting(self) -> None:
        if not self.vehicle.is_attitude_settled():
            return

        self._session.phase = BurnPhase.WAITING
        logger.info("Waiting until maneuver start...")

        lead = self.config.warp_lead_time
        if lead is not None:
            warp_target = self.plan.burn_start_ut - lead
            if self.vehicle.current_universal_time() < warp_target:
                logger.debug("Warping to UT %.1f", warp_target)
                self.vehicle.warp_to(warp_target)

    def _update_waiting(self) -> None:
        now = self.vehicle.current_universal_time()
        start = self.plan.burn_start_ut

        for mark in range(self.config.countdown_seconds, 0, -1):
            if mark in self._session.countdown_marks or now < start - mark:
                continue
            self._session.countdown_marks.append(mark)
            logger.info("...%d", mark)
            if self.on_countdown is not None:
                self.on_countdown(mark)

        if now < start:
            return

        self.vehicle.command_throttle(1.0)
        self._session.reference_burn_vector = self.plan.node.burn_vector()
        self._session.phase = BurnPhase.BURNING
        logger.info("Maneuver in progress...")

    def _update_burning(self) -> None:
        if self._burn_finished():
            self._finish()

    def _node_exists(self) -> bool:
        return self.plan.node in self.vehicle.maneuver_nodes()

    def _burn_finished(self) -> bool:
        node = self.plan.node
        if not self._node_exists():
            logger.info("Maneuver node is gone, cutting off")
            return True

        current = node.burn_vector()
        angle = vector_angle_degrees(self._session.reference_burn_vector, current)
        if angle > self.config.overshoot_angle:
            logger.info("Burn vector turned %.1f deg from ignition, cutting off", angle)
            return True

        remaining = node.remaining_delta_v
        logger.debug("Remaining delta-v: %.2f m/s", remaining)
        return remaining < self.config.remaining_delta_v_threshold

    def _finish(self) -> None:
        self.vehicle.command_throttle(0.0)
        self.vehicle.disengage_attitude()
        if self._node_exists():
            self.vehicle.remove_node(self.plan.node)
        self._session.phase = BurnPhase.COMPLETE
        logger.info("Burn finished")


# =============================================================================
# Node Execution
# =============================================================================


def execute_next_node(
    vehicle: Vehicle,
    sleep: Callable[[float], None],
    circularize_at: Apsis | None = None,
    planner: ManeuverPlanner | None = None,
    config: BurnConfig | None = None,
) -> bool:
    """Execute the vehicle's next maneuver node.

    Args:
        vehicle: Vehicle to fly
        sleep: Blocks for the given number of seconds
        circularize_at: Plan and add a circularization node first
        planner: Planner to use (default ManeuverPlanner())
        config: Burn configuration (default BurnConfig())

    Returns:
        False if there was nothing to execute, True once the burn completed

    Raises:
        DomainError: If the burn cannot be planned (e.g. no active engines)
    """
    planner = planner or ManeuverPlanner()
    config = config or BurnConfig()

    vehicle.set_sas(False)

    if circularize_at is not None:
        snapshot = vehicle.get_telemetry_snapshot()
        plan = planner.plan_circularization(snapshot, circularize_at, vehicle.get_active_engines())
        planner.schedule(plan, vehicle)

    nodes = vehicle.maneuver_nodes()
    if len(nodes) == 0:
        logger.warning("No maneuver node exists; nothing to execute")
        return False

    snapshot = vehicle.get_telemetry_snapshot()
    plan = planner.plan_for_node(nodes[0], snapshot, vehicle.get_active_engines())

    executor = BurnExecutor(vehicle, plan, config)
    executor.run(sleep)

    vehicle.set_sas(True)
    return True
