"""Exception taxonomy for the autopilot.

DomainError marks invalid physical inputs (non-positive radius, mass, Isp,
no active engines). It is never retried: the planning operation that raised
it aborts and the failure is surfaced to the operator.

PreconditionError marks a request that cannot be honoured in the current
situation, such as executing a burn without a maneuver node. The caller
decides what to do next; it is not fatal to the process.
"""


class AutopilotError(Exception):
    """Base class for all autopilot errors."""


class DomainError(AutopilotError, ValueError):
    """Invalid physical input to an orbital-mechanics computation."""


class PreconditionError(AutopilotError, RuntimeError):
    """Operation requested in a state that does not allow it."""
