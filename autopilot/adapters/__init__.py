"""Transports that connect the flight software to a real vessel.

Example:
    >>> from autopilot.adapters import KrpcVehicle
    >>>
    >>> vehicle = KrpcVehicle.connect(name="Maneuver Execution")
"""

from autopilot.adapters.krpc_vessel import KrpcNode, KrpcVehicle

__all__ = [
    "KrpcNode",
    "KrpcVehicle",
]
