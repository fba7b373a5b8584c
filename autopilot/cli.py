"""Command-line interface for the autopilot.

Usage:
    # Launch the active vessel to a 90 km orbit, heading east
    autopilot launch

    # Custom target and heading, fairings on action group 5
    autopilot launch --target 100000 --compass 45 --ag5

    # Tuning from a JSON file (see AutopilotConfig.to_json)
    autopilot launch --config tuning.json --no-auto-throttle

    # Execute the next maneuver node, or plan one first
    autopilot execute-node
    autopilot execute-node --circularize-at ap

    # Fly the simulated vehicle instead of connecting to kRPC
    autopilot launch --simulate
"""

import argparse
import logging
import sys
import time
from dataclasses import replace

from autopilot import __version__
from autopilot.config import AutopilotConfig
from autopilot.errors import AutopilotError
from autopilot.flight import LaunchSequence, execute_next_node
from autopilot.gnc.guidance import Apsis, ManeuverPlanner

logger = logging.getLogger("autopilot")


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log per-tick telemetry (DEBUG)",
    )
    common.add_argument(
        "--config", metavar="PATH",
        help="JSON tuning file (defaults are used for missing keys)",
    )
    common.add_argument(
        "--simulate", action="store_true",
        help="Fly the built-in simulated vehicle instead of connecting to kRPC",
    )
    common.add_argument("--address", default="127.0.0.1", help="kRPC server address")
    common.add_argument("--rpc-port", type=int, default=50000, help="kRPC RPC port")
    common.add_argument("--stream-port", type=int, default=50001, help="kRPC stream port")

    parser = argparse.ArgumentParser(
        prog="autopilot",
        description="Closed-loop ascent and maneuver autopilot for kRPC.",
    )
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    commands = parser.add_subparsers(dest="command", required=True)

    launch = commands.add_parser("launch", parents=[common], help="Launch into orbit")
    launch.add_argument("--target", type=float, help="Target apoapsis altitude [m] (default: 90000)")
    launch.add_argument("--compass", type=float, help="Launch heading [deg] (default: 90)")
    launch.add_argument(
        "--auto-throttle", action=argparse.BooleanOptionalAction, default=None,
        help="Hold target thrust-to-weight during ascent (default: on)",
    )
    launch.add_argument(
        "--ag5", action="store_true", default=None,
        help="Toggle action group 5 above 65 km",
    )

    node = commands.add_parser("execute-node", parents=[common], help="Execute the next maneuver node")
    node.add_argument(
        "--circularize-at", choices=[a.value for a in Apsis],
        help="Plan a circularization node at apoapsis or periapsis first",
    )

    return parser


def load_config(args: argparse.Namespace) -> AutopilotConfig:
    """Tuning file (or defaults) with command-line overrides applied."""
    config = AutopilotConfig.load(args.config) if args.config else AutopilotConfig()
    if args.command != "launch":
        return config

    target = config.target
    if args.target is not None:
        target = replace(target, target_apoapsis_altitude=args.target)
    if args.compass is not None:
        target = replace(target, compass_heading=args.compass)

    launch = config.launch
    if args.auto_throttle is not None:
        launch = replace(launch, auto_throttle=args.auto_throttle)
    if args.ag5:
        launch = replace(launch, action_group_5=True)

    return replace(config, target=target, launch=launch)


def _connect(args: argparse.Namespace, name: str):
    from autopilot.adapters import KrpcVehicle

    return KrpcVehicle.connect(
        name=name, address=args.address, rpc_port=args.rpc_port, stream_port=args.stream_port
    )


def run_launch(args: argparse.Namespace, config: AutopilotConfig) -> int:
    logger.info(
        "Launching to %.0f m apoapsis, heading %.0f deg",
        config.target.target_apoapsis_altitude, config.target.compass_heading,
    )
    if args.simulate:
        from autopilot.simulation import SimulatedVehicle

        vehicle = SimulatedVehicle.on_launch_pad()
        LaunchSequence(vehicle, config).run(sleep=vehicle.sleep, tick_interval=config.burn.tick_interval)
        return 0

    with _connect(args, "Launch into orbit") as vehicle:
        LaunchSequence(vehicle, config).run(sleep=time.sleep, tick_interval=config.burn.tick_interval)
    return 0


def run_execute_node(args: argparse.Namespace, config: AutopilotConfig) -> int:
    circularize_at = Apsis(args.circularize_at) if args.circularize_at else None
    planner = ManeuverPlanner()

    if args.simulate:
        from autopilot.simulation import SimulatedVehicle

        vehicle = SimulatedVehicle.in_circular_orbit(80000.0)
        executed = execute_next_node(vehicle, vehicle.sleep, circularize_at, planner, config.burn)
    else:
        with _connect(args, "Maneuver Execution") as vehicle:
            executed = execute_next_node(vehicle, time.sleep, circularize_at, planner, config.burn)

    return 0 if executed else 1


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args)
        if args.command == "launch":
            return run_launch(args, config)
        return run_execute_node(args, config)
    except FileNotFoundError as e:
        logger.error("%s", e)
        return 1
    except AutopilotError as e:
        logger.error("Autopilot error: %s", e)
        return 1
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 1
    except ConnectionError as e:
        logger.error("Cannot reach kRPC server: %s", e)
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
