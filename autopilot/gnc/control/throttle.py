"""Thrust-to-weight tracking throttle controller.

Integral-only feedback with a clamped integrator:
- Output is ki * integral, saturated to output_limits
- Anti-windup: the integrator stops accumulating while the output sits at
  the limit the error is pushing toward
- A non-positive time step never integrates

There are no proportional or derivative terms: as the stage burns off mass
the integrator walks the throttle down to hold the target TWR.

Example:
    >>> from autopilot.gnc.control import ThrottleController
    >>>
    >>> ctrl = ThrottleController(ki=1.0, output_limits=(0.01, 1.0))
    >>> error = target_twr - current_twr
    >>> throttle = ctrl.update(error, dt=0.1)
"""

from dataclasses import dataclass, field

import numpy as np

from autopilot.checking import typechecked
from autopilot.config import ThrottleConfig

# =============================================================================
# Throttle Controller
# =============================================================================


@typechecked
@dataclass
class ThrottleController:
    """Integral throttle controller with anti-windup gating.

    The gate looks only at the current output, so a single update that starts
    just inside a limit can carry the integral past it. The overshoot is at
    most one error * dt step; the output itself is always clamped.

    Attributes:
        ki: Integral gain
        output_limits: (min, max) throttle command
        initial_integral: Integrator value at construction
    """
    ki: float = 1.0
    output_limits: tuple[float, float] = (0.0, 1.0)
    initial_integral: float = 1.0

    # Internal state
    _integral: float = field(default=0.0, init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate inputs and seed the integrator."""
        if self.output_limits[0] >= self.output_limits[1]:
            raise ValueError(
                f"output_limits must be (min, max) with min < max, got {self.output_limits}"
            )
        self._integral = self.initial_integral

    @classmethod
    def from_config(cls, config: ThrottleConfig) -> "ThrottleController":
        """Create controller from ThrottleConfig."""
        return cls(
            ki=config.ki,
            output_limits=config.output_limits,
            initial_integral=config.initial_integral,
        )

    @property
    def integral(self) -> float:
        """Current integrator value."""
        return self._integral

    @property
    def output(self) -> float:
        """Current throttle command, clamped to output_limits."""
        return self._clamp(self.ki * self._integral)

    def reset(self) -> None:
        """Re-seed the integrator to its construction value."""
        self._integral = self.initial_integral

    def update(self, error: float, dt: float) -> float:
        """Advance the integrator and return the throttle command.

        Args:
            error: target_twr - current_twr
            dt: Time since the previous update [s]

        Returns:
            Throttle command within output_limits
        """
        if dt <= 0:
            return self.output

        lo, hi = self.output_limits
        provisional = self.ki * self._integral

        # Anti-windup: hold the integrator while saturated in the error's direction
        saturated_high = provisional >= hi and error > 0
        saturated_low = provisional <= lo and error < 0
        if not (saturated_high or saturated_low):
            self._integral += error * dt

        return self.output

    def _clamp(self, value: float) -> float:
        return float(np.clip(value, self.output_limits[0], self.output_limits[1]))
