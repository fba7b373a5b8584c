"""Maneuver planning: how much delta-v, for how long, starting when.

A plan is computed from one telemetry snapshot and the active engines:

    delta_v        vis-viva difference between current and target orbit
    burn_duration  rocket equation at full available thrust
    burn_start_ut  node time minus half the burn, so the burn is centred
                   on the node

Planning fails with DomainError when the orbit or the engines make the
numbers meaningless (hyperbolic orbit, no active engines). That failure
must reach the operator: a silently zero-length burn is unsafe.

Example:
    >>> from autopilot.gnc.guidance import Apsis, ManeuverPlanner
    >>>
    >>> planner = ManeuverPlanner()
    >>> plan = planner.plan_circularization(snapshot, Apsis.APOAPSIS, vehicle.get_active_engines())
    >>> plan = planner.schedule(plan, vehicle)  # adds the maneuver node
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from collections.abc import Sequence
from typing import Any

from autopilot.checking import typechecked
from autopilot.orbital import (
    EngineLike,
    burn_duration,
    circularization_delta_v,
    mean_specific_impulse,
)
from autopilot.telemetry import NodeHandle, TelemetrySnapshot, Vehicle

logger = logging.getLogger(__name__)


class Apsis(Enum):
    """Where to circularize."""

    APOAPSIS = "ap"
    PERIAPSIS = "pe"


@dataclass(frozen=True)
class ManeuverPlan:
    """A planned burn. Never mutated once created.

    Attributes:
        delta_v: Prograde speed change [m/s]
        burn_duration: Time at full thrust [s]
        burn_start_ut: Ignition time, node_time_ut - burn_duration / 2 [s]
        node_time_ut: Time of the maneuver node [s]
        reference_frame: Node reference frame (opaque, set once scheduled)
        node: Maneuver node handle (set once scheduled)
    """
    delta_v: float
    burn_duration: float
    burn_start_ut: float
    node_time_ut: float
    reference_frame: Any = None
    node: NodeHandle | None = None

    @property
    def is_scheduled(self) -> bool:
        return self.node is not None


@typechecked
@dataclass
class ManeuverPlanner:
    """Plans circularization and node burns.

    Attributes:
        g0: Gravity for Isp conversion; None uses the body's surface gravity [m/s^2]
    """
    g0: float | None = None

    def plan(
        self,
        snapshot: TelemetrySnapshot,
        target_radius: float,
        node_time_ut: float,
        engines: Sequence[EngineLike],
    ) -> ManeuverPlan:
        """Plan a burn at node_time_ut that circularizes at target_radius.

        Args:
            snapshot: Telemetry for this tick (orbit, mass, thrust)
            target_radius: Radius of the burn point and of the final circular orbit [m]
            node_time_ut: When the vehicle passes the burn point [s]
            engines: Active engines (effective Isp is their mean)

        Returns:
            Unscheduled ManeuverPlan

        Raises:
            DomainError: If the orbit is degenerate or no engine can burn
        """
        delta_v = circularization_delta_v(
            snapshot.gravitational_parameter,
            target_radius,
            snapshot.semi_major_axis,
            target_radius,
        )
        return self._plan_delta_v(snapshot, delta_v, node_time_ut, engines)

    def plan_circularization(
        self,
        snapshot: TelemetrySnapshot,
        at: Apsis,
        engines: Sequence[EngineLike],
    ) -> ManeuverPlan:
        """Plan circularization at the next apoapsis or periapsis."""
        if at is Apsis.APOAPSIS:
            radius = snapshot.apoapsis_radius
            time_to = snapshot.time_to_apoapsis
        else:
            radius = snapshot.periapsis_radius
            time_to = snapshot.time_to_periapsis

        logger.info("Planning circularization burn at %s", at.name.lower())
        return self.plan(snapshot, radius, snapshot.universal_time + time_to, engines)

    def plan_for_node(
        self,
        node: NodeHandle,
        snapshot: TelemetrySnapshot,
        engines: Sequence[EngineLike],
    ) -> ManeuverPlan:
        """Plan execution of an existing maneuver node."""
        plan = self._plan_delta_v(snapshot, node.delta_v, node.time_ut, engines)
        return replace(plan, node=node, reference_frame=node.reference_frame)

    def schedule(self, plan: ManeuverPlan, vehicle: Vehicle) -> ManeuverPlan:
        """Add the plan's maneuver node to the vehicle.

        Returns:
            New plan carrying the node and its reference frame
        """
        node = vehicle.add_maneuver_node(plan.node_time_ut, prograde=plan.delta_v)
        logger.debug("Added maneuver node at UT %.1f, prograde %.2f m/s", plan.node_time_ut, plan.delta_v)
        return replace(plan, node=node, reference_frame=node.reference_frame)

    def _plan_delta_v(
        self,
        snapshot: TelemetrySnapshot,
        delta_v: float,
        node_time_ut: float,
        engines: Sequence[EngineLike],
    ) -> ManeuverPlan:
        isp = mean_specific_impulse(engines)
        for engine in engines:
            logger.info(
                "  Engine: %s, ISP: %.1f",
                getattr(engine, "title", "") or "unnamed",
                engine.specific_impulse,
            )

        g0 = self.g0 if self.g0 is not None else snapshot.surface_gravity
        duration = burn_duration(delta_v, isp, g0, snapshot.available_thrust, snapshot.mass)
        logger.info("Maneuver: %.1f m/s, duration %.2fs", delta_v, duration)

        return ManeuverPlan(
            delta_v=delta_v,
            burn_duration=duration,
            burn_start_ut=node_time_ut - duration / 2.0,
            node_time_ut=node_time_ut,
        )
