#!/usr/bin/env python
"""Example: Fly the launch program against the simulated vehicle.

The flight software is exactly what runs against kRPC; only the Vehicle
behind it changes. The loop follows the flight program pattern:
1. tick() reads one telemetry snapshot and issues commands
2. sleep() lets time pass (here: propagates the simulated plant)

Usage:
    uv run python scripts/launch_to_orbit.py
"""

import logging

import numpy as np

from autopilot.config import AutopilotConfig, GuidanceTarget, LaunchConfig
from autopilot.flight import LaunchPhase, LaunchSequence
from autopilot.orbital import G0
from autopilot.simulation import SimulatedVehicle, default_stages


def run_launch() -> SimulatedVehicle:
    """Launch the default two-stage vehicle to a 90 km orbit."""
    print("=" * 60)
    print("LAUNCH TO ORBIT SIMULATION")
    print("=" * 60)

    # =========================================================================
    # Mission Setup
    # =========================================================================
    config = AutopilotConfig(
        target=GuidanceTarget(target_apoapsis_altitude=90000.0, compass_heading=90.0),
        launch=LaunchConfig(action_group_5=True),
    )
    stages = default_stages()
    vehicle = SimulatedVehicle.on_launch_pad(stages=stages)

    print("\nMission Parameters:")
    print(f"  Target apoapsis: {config.target.target_apoapsis_altitude / 1000:.0f} km")
    print(f"  Heading: {config.target.compass_heading:.0f} deg")
    print(f"  Target TWR: {config.throttle.target_twr:.2f}")

    print("\nVehicle:")
    mass = vehicle.mass
    for stage in stages:
        dv = stage.isp * G0 * np.log(mass / (mass - stage.propellant_mass))
        print(f"  {stage.title}: {stage.thrust / 1000:.0f} kN, Isp {stage.isp:.0f} s, dv {dv:.0f} m/s")
        mass -= stage.mass
    print(f"  Liftoff mass: {vehicle.mass:.0f} kg")

    # =========================================================================
    # Flight Loop
    # =========================================================================
    print("\nRunning flight program...")
    print("-" * 60)
    print(f"{'Time':>8} {'Phase':>14} {'Alt':>10} {'Apo':>10} {'Mass':>8}")
    print(f"{'[s]':>8} {'':>14} {'[km]':>10} {'[km]':>10} {'[kg]':>8}")
    print("-" * 60)

    launch = LaunchSequence(vehicle, config)
    last_phase = None
    last_print = -np.inf
    while not launch.is_complete and vehicle.time < 3600.0:
        phase = launch.tick()
        if phase != last_phase or vehicle.time - last_print >= 20.0:
            snapshot = vehicle.get_telemetry_snapshot()
            print(
                f"{vehicle.time:8.1f} {phase.name:>14} "
                f"{snapshot.mean_altitude / 1000:10.2f} {snapshot.apoapsis_altitude / 1000:10.2f} "
                f"{snapshot.mass:8.0f}"
            )
            last_phase = phase
            last_print = vehicle.time
        if not launch.is_complete:
            vehicle.sleep(config.burn.tick_interval)

    # =========================================================================
    # Results
    # =========================================================================
    print("-" * 60)
    if launch.phase == LaunchPhase.COMPLETE:
        print("\nFINAL ORBIT:")
        print(launch.orbit_summary)
        print(f"  Remaining mass: {vehicle.mass:.0f} kg")
        print("\n✓ ORBIT ACHIEVED!")
    else:
        launch.abort()
        print(f"\n✗ Stopped in phase {launch.phase.name} at T+{vehicle.time:.0f} s")

    return vehicle


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    run_launch()
