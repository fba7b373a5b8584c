"""Control algorithms for the autopilot.

Provides the thrust-to-weight tracking throttle controller used during
powered ascent.
"""

from autopilot.gnc.control.throttle import (
    ThrottleController,
)

__all__ = [
    "ThrottleController",
]
