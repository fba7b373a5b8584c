"""Step-driven point-mass vehicle around a spherical, airless body.

The plant for closed-loop runs of the flight software without the game.
The vehicle is a point mass under inverse-square gravity plus engine thrust,
integrated with RK4 in a body-centred, non-rotating frame. Attitude is
ideal: thrust points exactly where it was last commanded, optionally only
reported as settled after attitude_settle_time.

Architecture:
    Flight software drives the loop exactly as with a real vessel:
    - vehicle.get_telemetry_snapshot() -> readings for this tick
    - vehicle.command_*(...) -> actuator intents
    - vehicle.sleep(dt) -> propagate physics (pass as the loop's sleep)

Example:
    >>> from autopilot.flight import LaunchSequence
    >>> from autopilot.simulation import SimulatedVehicle
    >>>
    >>> vehicle = SimulatedVehicle.on_launch_pad()
    >>> LaunchSequence(vehicle).run(sleep=vehicle.sleep)
    >>> print(vehicle.get_telemetry_snapshot().periapsis_altitude)
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any

import numpy as np
from numba import njit
from numpy.typing import NDArray

from autopilot.checking import typechecked
from autopilot.orbital import G0, MU_KERBIN, R_KERBIN, compute_orbital_elements
from autopilot.telemetry import EngineInfo, TelemetrySnapshot
from autopilot.vector import NEAR_ZERO, Vector3

logger = logging.getLogger(__name__)

# Body-centred non-rotating frame; the only frame the simulator understands
INERTIAL_FRAME = "inertial"

# =============================================================================
# Vehicle Description
# =============================================================================


@typechecked
@dataclass
class SimStage:
    """One stage of the stack: structure, propellant and its engine.

    Attributes:
        dry_mass: Structure mass, dropped when the stage separates [kg]
        propellant_mass: Propellant remaining [kg]
        thrust: Engine thrust at full throttle [N]
        isp: Engine specific impulse [s]
        title: Engine name reported to the planner
    """
    dry_mass: float
    propellant_mass: float
    thrust: float
    isp: float
    title: str = "engine"

    def __post_init__(self) -> None:
        """Validate inputs."""
        if self.dry_mass <= 0:
            raise ValueError("Dry mass must be positive")
        if self.propellant_mass < 0:
            raise ValueError("Propellant mass cannot be negative")
        if self.thrust < 0:
            raise ValueError("Thrust cannot be negative")
        if self.isp <= 0:
            raise ValueError("Isp must be positive")

    @property
    def exhaust_velocity(self) -> float:
        """Effective exhaust velocity [m/s]."""
        return self.isp * G0

    @property
    def mass(self) -> float:
        return self.dry_mass + self.propellant_mass


def default_stages() -> list[SimStage]:
    """Two-stage liquid launcher sized for a 500 kg payload to low Kerbin orbit."""
    return [
        SimStage(dry_mass=1000.0, propellant_mass=4000.0, thrust=200000.0, isp=280.0, title="Booster"),
        SimStage(dry_mass=500.0, propellant_mass=3500.0, thrust=60000.0, isp=340.0, title="Upper stage"),
    ]


# =============================================================================
# Numba-Optimized Integration
# =============================================================================


@njit(cache=True, fastmath=True)
def _point_mass_derivatives(
    rx: float, ry: float, rz: float,
    vx: float, vy: float, vz: float,
    mass: float,
    fx: float, fy: float, fz: float,
    mu: float,
) -> tuple[float, float, float, float, float, float]:
    """Velocity and acceleration under central gravity plus a thrust force."""
    r_sq = rx*rx + ry*ry + rz*rz
    r = np.sqrt(r_sq)
    g = mu / r_sq

    return (
        vx, vy, vz,
        fx / mass - g * rx / r,
        fy / mass - g * ry / r,
        fz / mass - g * rz / r,
    )


@njit(cache=True, fastmath=True)
def _rk4_step_core(
    rx: float, ry: float, rz: float,
    vx: float, vy: float, vz: float,
    mass: float,
    mdot: float,
    fx: float, fy: float, fz: float,
    mu: float,
    dt: float,
) -> tuple[float, float, float, float, float, float]:
    """RK4 step with the thrust force held constant and mass draining linearly."""
    h = dt / 2.0
    mass_mid = mass - mdot * h
    mass_end = mass - mdot * dt

    k1 = _point_mass_derivatives(rx, ry, rz, vx, vy, vz, mass, fx, fy, fz, mu)
    k2 = _point_mass_derivatives(
        rx + k1[0]*h, ry + k1[1]*h, rz + k1[2]*h,
        vx + k1[3]*h, vy + k1[4]*h, vz + k1[5]*h,
        mass_mid, fx, fy, fz, mu,
    )
    k3 = _point_mass_derivatives(
        rx + k2[0]*h, ry + k2[1]*h, rz + k2[2]*h,
        vx + k2[3]*h, vy + k2[4]*h, vz + k2[5]*h,
        mass_mid, fx, fy, fz, mu,
    )
    k4 = _point_mass_derivatives(
        rx + k3[0]*dt, ry + k3[1]*dt, rz + k3[2]*dt,
        vx + k3[3]*dt, vy + k3[4]*dt, vz + k3[5]*dt,
        mass_end, fx, fy, fz, mu,
    )

    c = dt / 6.0
    return (
        rx + c * (k1[0] + 2*k2[0] + 2*k3[0] + k4[0]),
        ry + c * (k1[1] + 2*k2[1] + 2*k3[1] + k4[1]),
        rz + c * (k1[2] + 2*k2[2] + 2*k3[2] + k4[2]),
        vx + c * (k1[3] + 2*k2[3] + 2*k3[3] + k4[3]),
        vy + c * (k1[4] + 2*k2[4] + 2*k3[4] + k4[4]),
        vz + c * (k1[5] + 2*k2[5] + 2*k3[5] + k4[5]),
    )


@njit(cache=True, fastmath=True)
def _coast_core(
    rx: float, ry: float, rz: float,
    vx: float, vy: float, vz: float,
    mu: float,
    duration: float,
    max_step: float,
) -> tuple[float, float, float, float, float, float]:
    """Propagate an unpowered state forward by duration."""
    remaining = duration
    while remaining > 1e-9:
        dt = min(max_step, remaining)
        rx, ry, rz, vx, vy, vz = _rk4_step_core(
            rx, ry, rz, vx, vy, vz, 1.0, 0.0, 0.0, 0.0, 0.0, mu, dt
        )
        remaining -= dt
    return (rx, ry, rz, vx, vy, vz)


def local_direction(
    position: NDArray[np.float64],
    pitch: float,
    heading: float,
) -> NDArray[np.float64]:
    """Unit vector at pitch above the local horizon and compass heading.

    East is taken about the body's +z (spin) axis, so heading 90 from a
    position on the x axis points along +y.

    Args:
        position: Position from the body centre [m]
        pitch: Angle above the horizon [deg]
        heading: Compass heading, 0 = north, 90 = east [deg]
    """
    up = position / np.linalg.norm(position)
    east = np.cross(np.array([0.0, 0.0, 1.0]), up)
    east_norm = np.linalg.norm(east)
    if east_norm < NEAR_ZERO:
        # Over a pole every direction is south; pick one
        east = np.array([0.0, 1.0, 0.0])
    else:
        east = east / east_norm
    north = np.cross(up, east)

    p = np.radians(pitch)
    hdg = np.radians(heading)
    return np.sin(p) * up + np.cos(p) * (np.sin(hdg) * east + np.cos(hdg) * north)


# =============================================================================
# Maneuver Nodes
# =============================================================================


@dataclass(eq=False)
class SimulatedNode:
    """Maneuver node tracked against the vehicle's applied thrust.

    The remaining burn vector is the planned inertial delta-v minus all the
    thrust delta-v applied since the node was created, so it shrinks as the
    vehicle burns along it and flips once the burn overshoots.

    Attributes:
        time_ut: Node time [s]
        delta_v: Planned prograde delta-v [m/s]
        planned_vector: Planned delta-v in the inertial frame [m/s]
        vehicle: Vehicle the node belongs to
    """
    time_ut: float
    delta_v: float
    planned_vector: NDArray[np.float64]
    vehicle: "SimulatedVehicle" = field(repr=False)
    reference_frame: Any = INERTIAL_FRAME

    _applied_origin: NDArray[np.float64] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._applied_origin = self.vehicle.applied_delta_v.copy()

    @property
    def remaining_delta_v(self) -> float:
        return self.burn_vector().magnitude

    def burn_vector(self) -> Vector3:
        applied = self.vehicle.applied_delta_v - self._applied_origin
        return Vector3.from_iterable(self.planned_vector - applied)


# =============================================================================
# Simulated Vehicle
# =============================================================================


@dataclass(eq=False)
class SimulatedVehicle:
    """Point-mass vehicle implementing the Vehicle protocol.

    Stages burn first to last. On the pad nothing is lit: the first
    activate_next_stage() ignites stage 0, each later one drops the bottom
    stage and ignites the next.

    Attributes:
        stages: Stack, bottom (first to burn) first
        position: Position from the body centre [m]
        velocity: Inertial velocity [m/s]
        payload_mass: Mass that never separates [kg]
        mu: Gravitational parameter of the body [m^3/s^2]
        body_radius: Body radius [m]
        time: Universal time [s]
        max_step: Largest integration step [s]
        attitude_settle_time: Delay before a new attitude reports settled [s]
    """
    stages: list[SimStage]
    position: NDArray[np.float64]
    velocity: NDArray[np.float64]
    payload_mass: float = 500.0
    mu: float = MU_KERBIN
    body_radius: float = R_KERBIN
    time: float = 0.0
    max_step: float = 0.1
    attitude_settle_time: float = 0.0

    # Internal state
    _stage_index: int = field(default=0, init=False, repr=False)
    _ignited: bool = field(default=False, init=False, repr=False)
    _throttle: float = field(default=0.0, init=False, repr=False)
    _pitch_heading: tuple[float, float] | None = field(default=(90.0, 90.0), init=False, repr=False)
    _direction: NDArray[np.float64] = field(init=False, repr=False)
    _heading: float = field(default=90.0, init=False, repr=False)
    _roll: float = field(default=0.0, init=False, repr=False)
    _engaged: bool = field(default=False, init=False, repr=False)
    _attitude_time: float = field(default=0.0, init=False, repr=False)
    _applied_dv: NDArray[np.float64] = field(init=False, repr=False)
    _nodes: list[SimulatedNode] = field(default_factory=list, init=False, repr=False)
    _sas: bool = field(default=False, init=False, repr=False)
    _action_groups: dict[int, bool] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        if len(self.stages) == 0:
            raise ValueError("At least one stage is required")
        if self.max_step <= 0:
            raise ValueError("max_step must be positive")
        # Propellant is drawn from these copies
        self.stages = [replace(s) for s in self.stages]
        self.position = np.asarray(self.position, dtype=np.float64)
        self.velocity = np.asarray(self.velocity, dtype=np.float64)
        self._direction = self.position / np.linalg.norm(self.position)
        self._applied_dv = np.zeros(3)

    @classmethod
    def on_launch_pad(
        cls,
        stages: list[SimStage] | None = None,
        payload_mass: float = 500.0,
        **kwargs: Any,
    ) -> "SimulatedVehicle":
        """Vehicle at rest on the equator, nothing ignited."""
        radius = kwargs.pop("body_radius", R_KERBIN)
        return cls(
            stages=stages if stages is not None else default_stages(),
            position=np.array([radius, 0.0, 0.0]),
            velocity=np.zeros(3),
            payload_mass=payload_mass,
            body_radius=radius,
            **kwargs,
        )

    @classmethod
    def in_circular_orbit(
        cls,
        altitude: float,
        stages: list[SimStage] | None = None,
        payload_mass: float = 500.0,
        **kwargs: Any,
    ) -> "SimulatedVehicle":
        """Vehicle in an equatorial circular orbit with its first stage lit.

        Args:
            altitude: Orbit altitude above the body radius [m]
        """
        radius = kwargs.pop("body_radius", R_KERBIN)
        mu = kwargs.pop("mu", MU_KERBIN)
        r = radius + altitude
        vehicle = cls(
            stages=stages if stages is not None else default_stages()[1:],
            position=np.array([r, 0.0, 0.0]),
            velocity=np.array([0.0, np.sqrt(mu / r), 0.0]),
            payload_mass=payload_mass,
            mu=mu,
            body_radius=radius,
            **kwargs,
        )
        vehicle._ignited = True
        return vehicle

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def mass(self) -> float:
        """Current total mass [kg]."""
        attached = self.stages[self._stage_index:]
        return self.payload_mass + sum(s.mass for s in attached)

    @property
    def altitude(self) -> float:
        return float(np.linalg.norm(self.position) - self.body_radius)

    @property
    def surface_gravity(self) -> float:
        return self.mu / self.body_radius**2

    @property
    def throttle(self) -> float:
        return self._throttle

    @property
    def sas(self) -> bool:
        return self._sas

    @property
    def applied_delta_v(self) -> NDArray[np.float64]:
        """Cumulative thrust delta-v vector, inertial frame [m/s]."""
        return self._applied_dv

    @property
    def active_stage(self) -> SimStage | None:
        """The lit stage, or None before ignition or after the last stage."""
        if not self._ignited or self._stage_index >= len(self.stages):
            return None
        return self.stages[self._stage_index]

    def available_thrust(self) -> float:
        stage = self.active_stage
        if stage is None or stage.propellant_mass <= 0:
            return 0.0
        return stage.thrust

    def action_group(self, group: int) -> bool:
        return self._action_groups.get(group, False)

    # -------------------------------------------------------------------------
    # Propagation
    # -------------------------------------------------------------------------

    def advance(self, dt: float) -> None:
        """Propagate physics forward by dt seconds."""
        remaining = dt
        while remaining > 1e-9:
            h = min(self.max_step, remaining)
            self._step(h)
            remaining -= h

    def sleep(self, seconds: float) -> None:
        """Drop-in for time.sleep: simulated time passes instead."""
        self.advance(seconds)

    def _step(self, dt: float) -> None:
        stage = self.active_stage
        thrust = self._throttle * self.available_thrust()
        mdot = 0.0
        burned = 0.0
        force = np.zeros(3)
        direction = self._thrust_direction()

        if stage is not None and thrust > 0:
            mdot = thrust / stage.exhaust_velocity
            burned = mdot * dt
            if burned > stage.propellant_mass:
                # Runs dry within the step: burn what is left at reduced thrust
                scale = stage.propellant_mass / burned
                thrust *= scale
                mdot *= scale
                burned = stage.propellant_mass
            force = thrust * direction

        m0 = self.mass
        result = _rk4_step_core(
            self.position[0], self.position[1], self.position[2],
            self.velocity[0], self.velocity[1], self.velocity[2],
            m0, mdot,
            force[0], force[1], force[2],
            self.mu, dt,
        )
        self.position = np.array(result[0:3])
        self.velocity = np.array(result[3:6])

        if burned > 0:
            stage.propellant_mass -= burned
            self._applied_dv = self._applied_dv + direction * (
                stage.exhaust_velocity * np.log(m0 / (m0 - burned))
            )
            if stage.propellant_mass <= 0:
                logger.debug("%s flamed out at UT %.1f", stage.title, self.time + dt)

        self.time += dt
        self._hold_on_ground()

    def _hold_on_ground(self) -> None:
        r = np.linalg.norm(self.position)
        if r < self.body_radius:
            self.position = self.position / r * self.body_radius
            self.velocity = np.zeros(3)

    def _thrust_direction(self) -> NDArray[np.float64]:
        if self._pitch_heading is not None:
            pitch, heading = self._pitch_heading
            return local_direction(self.position, pitch, heading)
        return self._direction

    def _coast_state(self, duration: float) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        if duration <= 0:
            return self.position.copy(), self.velocity.copy()
        result = _coast_core(
            self.position[0], self.position[1], self.position[2],
            self.velocity[0], self.velocity[1], self.velocity[2],
            self.mu, duration, self.max_step,
        )
        return np.array(result[0:3]), np.array(result[3:6])

    # -------------------------------------------------------------------------
    # Vehicle protocol
    # -------------------------------------------------------------------------

    def get_telemetry_snapshot(self) -> TelemetrySnapshot:
        r = float(np.linalg.norm(self.position))
        up = self.position / r
        elements = compute_orbital_elements(self.position, self.velocity, self.mu)
        stage = self.active_stage
        available = self.available_thrust()

        return TelemetrySnapshot(
            mean_altitude=r - self.body_radius,
            surface_altitude=r - self.body_radius,
            apoapsis_altitude=float(elements.apoapsis_radius - self.body_radius),
            vertical_speed=float(np.dot(self.velocity, up)),
            heading=self._heading,
            roll=self._roll,
            mass=self.mass,
            available_thrust=available,
            specific_impulse=stage.isp if stage is not None else 0.0,
            universal_time=self.time,
            thrust=self._throttle * available,
            surface_gravity=self.surface_gravity,
            gravitational_parameter=self.mu,
            semi_major_axis=float(elements.semi_major_axis),
            apoapsis_radius=float(elements.apoapsis_radius),
            periapsis_radius=float(elements.periapsis_radius),
            periapsis_altitude=float(elements.periapsis_radius - self.body_radius),
            time_to_apoapsis=float(elements.time_to_apoapsis),
            time_to_periapsis=float(elements.time_to_periapsis),
            eccentricity=float(elements.eccentricity),
            inclination=float(np.degrees(elements.inclination)),
        )

    def current_universal_time(self) -> float:
        return self.time

    def command_throttle(self, value: float) -> None:
        self._throttle = float(np.clip(value, 0.0, 1.0))

    def command_attitude(self, direction: Vector3, reference_frame: Any) -> None:
        if reference_frame != INERTIAL_FRAME:
            raise ValueError(f"Unsupported reference frame: {reference_frame!r}")
        if direction.magnitude < NEAR_ZERO:
            raise ValueError("Cannot point along a zero vector")
        self._direction = direction.normalized().to_array()
        self._pitch_heading = None
        self._engage()

    def command_pitch_heading(self, pitch: float, heading: float) -> None:
        self._pitch_heading = (pitch, heading)
        self._heading = heading
        self._engage()

    def command_roll(self, roll: float) -> None:
        self._roll = roll

    def is_attitude_settled(self) -> bool:
        return self._engaged and self.time - self._attitude_time >= self.attitude_settle_time

    def disengage_attitude(self) -> None:
        # Hold whatever inertial direction the vehicle was pointing
        self._direction = self._thrust_direction()
        self._pitch_heading = None
        self._engaged = False

    def get_active_engines(self) -> list[EngineInfo]:
        stage = self.active_stage
        if stage is None:
            return []
        return [EngineInfo(stage.isp, stage.title)]

    def add_maneuver_node(self, time_ut: float, prograde: float) -> SimulatedNode:
        _, velocity = self._coast_state(time_ut - self.time)
        prograde_dir = velocity / np.linalg.norm(velocity)
        node = SimulatedNode(time_ut, prograde, prograde_dir * prograde, self)
        self._nodes.append(node)
        return node

    def remove_node(self, node: SimulatedNode) -> None:
        self._nodes.remove(node)

    def maneuver_nodes(self) -> list[SimulatedNode]:
        return sorted(self._nodes, key=lambda n: n.time_ut)

    def activate_next_stage(self) -> None:
        if not self._ignited:
            self._ignited = True
            logger.debug("Ignition: %s", self.stages[0].title)
            return
        if self._stage_index >= len(self.stages) - 1:
            logger.warning("No stages left to activate")
            return
        dropped = self.stages[self._stage_index]
        self._stage_index += 1
        logger.debug("Separated %s, ignited %s", dropped.title, self.stages[self._stage_index].title)

    def toggle_action_group(self, group: int) -> None:
        self._action_groups[group] = not self.action_group(group)

    def set_sas(self, enabled: bool) -> None:
        self._sas = enabled

    def warp_to(self, ut: float) -> None:
        if ut > self.time:
            self.advance(ut - self.time)

    def _engage(self) -> None:
        self._engaged = True
        self._attitude_time = self.time
