"""Orbital mechanics for maneuver planning.

Pure, stateless functions used by the planner and the flight software.
Scalar cores are numba-compiled; the public wrappers validate physical
inputs and raise DomainError on anything the formulas cannot represent.

Key functions:
- circularization_delta_v: Vis-viva speed change to circularize at a radius
- burn_duration: Rocket-equation burn time for a speed change
- vector_angle_degrees: Angle between two vectors, NaN-free
- mean_specific_impulse: Effective Isp of the active engine set
- compute_orbital_elements: Apsides, period and apsis timing from state vectors

Example:
    >>> from autopilot.orbital import burn_duration, circularization_delta_v
    >>>
    >>> dv = circularization_delta_v(3.5316e12, 680000.0, 640000.0, 680000.0)
    >>> t = burn_duration(dv, isp=320.0, g0=9.81, available_thrust=60000.0, mass=8000.0)
    >>> print(f"dv: {dv:.1f} m/s, burn: {t:.1f} s")
"""

from collections.abc import Sequence
from typing import NamedTuple, Protocol, runtime_checkable

import numpy as np
from numba import njit
from numpy.typing import NDArray

from autopilot.checking import typechecked
from autopilot.errors import DomainError
from autopilot.vector import NEAR_ZERO, Vector3

# =============================================================================
# Constants
# =============================================================================

G0: float = 9.80665  # Standard gravity [m/s^2]

# Kerbin, the default body for the simulated vehicle
MU_KERBIN: float = 3.5316e12  # Gravitational parameter [m^3/s^2]
R_KERBIN: float = 600000.0  # Equatorial radius [m]


@runtime_checkable
class EngineLike(Protocol):
    """Anything exposing a specific impulse (telemetry EngineInfo, kRPC Engine)."""

    specific_impulse: float


class OrbitalElements(NamedTuple):
    """Orbit shape and timing derived from a state vector.

    Attributes:
        semi_major_axis: Semi-major axis [m] (negative when hyperbolic)
        eccentricity: Orbital eccentricity [-]
        inclination: Inclination [rad]
        apoapsis_radius: Apoapsis distance from body centre [m] (inf if unbound)
        periapsis_radius: Periapsis distance from body centre [m]
        period: Orbital period [s] (0 if unbound)
        specific_energy: Specific orbital energy [J/kg]
        time_to_apoapsis: Time until next apoapsis [s] (inf if unbound)
        time_to_periapsis: Time until next periapsis [s]
    """
    semi_major_axis: float
    eccentricity: float
    inclination: float
    apoapsis_radius: float
    periapsis_radius: float
    period: float
    specific_energy: float
    time_to_apoapsis: float
    time_to_periapsis: float


# =============================================================================
# Core Numba Functions
# =============================================================================


@njit(cache=True, fastmath=True)
def _clamp(x: float, lo: float, hi: float) -> float:
    """Clamp scalar to range [lo, hi]."""
    if x < lo:
        return lo
    if x > hi:
        return hi
    return x


@njit(cache=True)
def _vis_viva_radicand(mu: float, r: float, a: float) -> float:
    """mu * (2/r - 1/a), the squared orbital speed at radius r."""
    return mu * (2.0 / r - 1.0 / a)


@njit(cache=True)
def _burn_duration_core(
    delta_v: float,
    exhaust_velocity: float,
    available_thrust: float,
    mass: float,
) -> float:
    """Rocket equation: time to spend delta_v at full available thrust."""
    final_mass = mass / np.exp(delta_v / exhaust_velocity)
    flow_rate = available_thrust / exhaust_velocity
    return (mass - final_mass) / flow_rate


@njit(cache=True)
def _angle_core(
    ax: float, ay: float, az: float,
    bx: float, by: float, bz: float,
) -> float:
    """Angle between two non-degenerate vectors [deg]."""
    dot = ax * bx + ay * by + az * bz
    mag_a = np.sqrt(ax * ax + ay * ay + az * az)
    mag_b = np.sqrt(bx * bx + by * by + bz * bz)
    ratio = _clamp(dot / (mag_a * mag_b), -1.0, 1.0)
    return np.degrees(np.arccos(ratio))


@njit(cache=True)
def _compute_orbital_elements_core(
    rx: float, ry: float, rz: float,
    vx: float, vy: float, vz: float,
    mu: float,
) -> tuple[float, float, float, float, float, float, float, float, float]:
    """Numba-optimized orbit shape and apsis timing.

    Returns tuple of:
        (sma, ecc, inc, r_apo, r_peri, period, energy, t_apo, t_peri)
    """
    r = np.sqrt(rx*rx + ry*ry + rz*rz)
    v = np.sqrt(vx*vx + vy*vy + vz*vz)

    energy = v*v / 2.0 - mu / r

    # Angular momentum h = r x v
    hx = ry * vz - rz * vy
    hy = rz * vx - rx * vz
    hz = rx * vy - ry * vx
    h = np.sqrt(hx*hx + hy*hy + hz*hz)

    if h > 1e-10:
        inc = np.arccos(_clamp(hz / h, -1.0, 1.0))
    else:
        inc = 0.0

    ecc = np.sqrt(max(0.0, 1.0 + 2.0 * energy * h * h / (mu * mu)))

    if energy >= 0.0:
        # Unbound: no apoapsis
        sma = -mu / (2.0 * energy) if abs(energy) > 1e-10 else -1e12
        r_peri = h * h / (mu * (1.0 + ecc))
        return (sma, ecc, inc, np.inf, r_peri, 0.0, energy, np.inf, 0.0)

    sma = -mu / (2.0 * energy)
    r_apo = sma * (1.0 + ecc)
    r_peri = sma * (1.0 - ecc)
    period = 2.0 * np.pi * np.sqrt(sma**3 / mu)

    if ecc < 1e-9:
        return (sma, ecc, inc, r_apo, r_peri, period, energy, 0.0, 0.0)

    # Eccentric anomaly from r and the sign of the radial velocity
    rdotv = rx * vx + ry * vy + rz * vz
    E = np.arctan2(rdotv / np.sqrt(mu * sma), 1.0 - r / sma)
    M = E - ecc * np.sin(E)
    n = np.sqrt(mu / sma**3)

    two_pi = 2.0 * np.pi
    t_apo = ((np.pi - M) % two_pi) / n
    t_peri = ((two_pi - M) % two_pi) / n

    return (sma, ecc, inc, r_apo, r_peri, period, energy, t_apo, t_peri)


# =============================================================================
# Python API Functions
# =============================================================================


@typechecked
def circularization_delta_v(
    mu: float,
    current_radius: float,
    semi_major_axis: float,
    target_radius: float,
) -> float:
    """Speed change at current_radius that turns the orbit's semi-major axis into target_radius.

    Uses the vis-viva equation on both orbits at the burn point:
        v1 = sqrt(mu * (2/r - 1/a1))
        v2 = sqrt(mu * (2/r - 1/a2))

    Args:
        mu: Gravitational parameter of the body [m^3/s^2]
        current_radius: Radius of the burn point from the body centre [m]
        semi_major_axis: Current semi-major axis a1 [m]
        target_radius: Target semi-major axis a2 (the circular radius) [m]

    Returns:
        v2 - v1 [m/s], positive for a prograde burn

    Raises:
        DomainError: For non-positive inputs or a hyperbolic/degenerate orbit
    """
    if mu <= 0:
        raise DomainError(f"Gravitational parameter must be positive, got {mu}")
    if current_radius <= 0:
        raise DomainError(f"Burn radius must be positive, got {current_radius}")
    if semi_major_axis <= 0:
        raise DomainError(
            f"Semi-major axis must be positive (closed orbit), got {semi_major_axis}"
        )
    if target_radius <= 0:
        raise DomainError(f"Target radius must be positive, got {target_radius}")

    v1_sq = _vis_viva_radicand(mu, current_radius, semi_major_axis)
    v2_sq = _vis_viva_radicand(mu, current_radius, target_radius)
    if v1_sq < 0 or v2_sq < 0:
        raise DomainError(
            f"Radius {current_radius:.1f} m is unreachable on an orbit with "
            f"a1={semi_major_axis:.1f} m, a2={target_radius:.1f} m"
        )

    return float(np.sqrt(v2_sq) - np.sqrt(v1_sq))


@typechecked
def burn_duration(
    delta_v: float,
    isp: float,
    g0: float,
    available_thrust: float,
    mass: float,
) -> float:
    """Burn time at full available thrust for a speed change.

    Rocket equation with the effective exhaust velocity ve = isp * g0:
        m1 = m0 / exp(dv / ve)
        t  = (m0 - m1) / (F / ve)

    Args:
        delta_v: Speed change [m/s] (sign ignored)
        isp: Specific impulse [s]
        g0: Gravity used to convert Isp to exhaust velocity [m/s^2]
        available_thrust: Thrust at full throttle [N]
        mass: Current vehicle mass [kg]

    Returns:
        Burn duration [s]

    Raises:
        DomainError: If there is no usable thrust, Isp or mass
    """
    exhaust_velocity = isp * g0
    if available_thrust <= 0:
        raise DomainError(f"No available thrust ({available_thrust} N): no active engines")
    if exhaust_velocity <= 0:
        raise DomainError(f"Effective Isp must be positive, got {exhaust_velocity}")
    if mass <= 0:
        raise DomainError(f"Vehicle mass must be positive, got {mass}")

    return float(_burn_duration_core(abs(delta_v), exhaust_velocity, available_thrust, mass))


def vector_angle_degrees(
    v1: Vector3 | Sequence[float] | NDArray[np.float64],
    v2: Vector3 | Sequence[float] | NDArray[np.float64],
) -> float:
    """Angle between two vectors [deg].

    Returns 0.0 when either vector is (near) zero, since the angle is undefined.
    The cosine is clamped to [-1, 1] so rounding never yields NaN.
    """
    a = v1 if isinstance(v1, Vector3) else Vector3.from_iterable(v1)
    b = v2 if isinstance(v2, Vector3) else Vector3.from_iterable(v2)

    if a.magnitude < NEAR_ZERO or b.magnitude < NEAR_ZERO:
        return 0.0

    angle = float(_angle_core(a.x, a.y, a.z, b.x, b.y, b.z))
    if np.isnan(angle):
        return 0.0
    return angle


def mean_specific_impulse(engines: Sequence[EngineLike]) -> float:
    """Effective Isp of the active engines [s].

    Arithmetic mean of each engine's Isp. This is not thrust-weighted: fine
    for engines of a similar class, inaccurate for mixed-engine stages.

    Raises:
        DomainError: If no active engine reports a usable Isp
    """
    if len(engines) == 0:
        raise DomainError("No active engines with ISP found")

    isp = sum(float(engine.specific_impulse) for engine in engines) / len(engines)
    if isp <= 0:
        raise DomainError("No active engines with ISP found")
    return isp


@typechecked
def thrust_to_weight(thrust: float, mass: float, surface_gravity: float) -> float:
    """Thrust-to-weight ratio at the body's surface gravity."""
    if mass <= 0 or surface_gravity <= 0:
        raise DomainError(
            f"Mass and surface gravity must be positive, got {mass}, {surface_gravity}"
        )
    return thrust / (mass * surface_gravity)


def compute_orbital_elements(
    position: NDArray[np.float64],
    velocity: NDArray[np.float64],
    mu: float = MU_KERBIN,
) -> OrbitalElements:
    """Compute orbit shape and apsis timing from state vectors.

    Args:
        position: Position relative to the body centre [x, y, z] [m]
        velocity: Inertial velocity [vx, vy, vz] [m/s]
        mu: Gravitational parameter [m^3/s^2]

    Returns:
        OrbitalElements named tuple

    Example:
        >>> r = R_KERBIN + 80e3
        >>> v = np.sqrt(MU_KERBIN / r)
        >>> el = compute_orbital_elements(np.array([r, 0.0, 0.0]), np.array([0.0, v, 0.0]))
        >>> print(f"Period: {el.period/60:.1f} min")
    """
    result = _compute_orbital_elements_core(
        position[0], position[1], position[2],
        velocity[0], velocity[1], velocity[2],
        mu,
    )
    return OrbitalElements(*result)
