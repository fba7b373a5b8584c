"""Configuration for ascent guidance, throttle control and burn execution.

Every tunable number of the autopilot lives here with the value the flight
programs were tuned with. The aggregate AutopilotConfig round-trips through
JSON so a vehicle-specific tuning can be kept next to the craft file.

Example:
    >>> from autopilot.config import AutopilotConfig, GuidanceTarget
    >>>
    >>> config = AutopilotConfig(target=GuidanceTarget(target_apoapsis_altitude=100000.0))
    >>> Path("tuning.json").write_text(config.to_json())
    >>> config = AutopilotConfig.load("tuning.json")
"""

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

from autopilot.checking import typechecked

# =============================================================================
# Guidance
# =============================================================================


@typechecked
@dataclass(frozen=True)
class PitchProfile:
    """Quadratic altitude-to-pitch profile for the gravity turn.

        pitch(h) = a * h^2 + b * h + c   [deg], h in metres

    The constants are a curve fit for a stock-sized launcher climbing to
    roughly 80 km; they are vehicle-specific and meant to be tuned. Altitude
    is held at the parabola's vertex once past it, and the result is floored
    at min_pitch.

    Attributes:
        a: Quadratic coefficient [deg/m^2]
        b: Linear coefficient [deg/m]
        c: Pitch at zero altitude [deg]
        min_pitch: Lowest pitch ever commanded [deg]
    """
    a: float = 1.48272e-8
    b: float = -0.00229755
    c: float = 90.0
    min_pitch: float = 2.0

    def __post_init__(self) -> None:
        """Validate inputs."""
        if self.a <= 0:
            raise ValueError("Quadratic coefficient must be positive (profile opens upward)")
        if self.b >= 0:
            raise ValueError("Linear coefficient must be negative (pitch decays with altitude)")
        if not 0 <= self.min_pitch <= self.c:
            raise ValueError(f"min_pitch must be within [0, {self.c}], got {self.min_pitch}")

    @property
    def vertex_altitude(self) -> float:
        """Altitude at which the parabola bottoms out [m]."""
        return -self.b / (2.0 * self.a)


@typechecked
@dataclass(frozen=True)
class GuidanceTarget:
    """What one ascent is flying to.

    Attributes:
        target_apoapsis_altitude: Apoapsis at which the ascent ends [m]
        compass_heading: Launch heading, 90 = due east [deg]
    """
    target_apoapsis_altitude: float = 90000.0
    compass_heading: float = 90.0

    def __post_init__(self) -> None:
        """Validate inputs."""
        if self.target_apoapsis_altitude <= 0:
            raise ValueError("Target apoapsis must be positive")
        if not 0 <= self.compass_heading <= 360:
            raise ValueError(f"Compass heading must be within [0, 360], got {self.compass_heading}")


@typechecked
@dataclass(frozen=True)
class StagingConfig:
    """Automatic staging on loss of thrust.

    Attributes:
        every_n_ticks: Consecutive zero-thrust ticks before staging
    """
    every_n_ticks: int = 10

    def __post_init__(self) -> None:
        """Validate inputs."""
        if self.every_n_ticks < 1:
            raise ValueError("every_n_ticks must be at least 1")


# =============================================================================
# Control
# =============================================================================


@typechecked
@dataclass(frozen=True)
class ThrottleConfig:
    """Thrust-to-weight tracking throttle.

    Attributes:
        target_twr: Thrust-to-weight ratio held during ascent
        ki: Integral gain
        output_limits: (min, max) throttle command
        initial_integral: Integrator seed (1.0 starts at full throttle)
    """
    target_twr: float = 1.6
    ki: float = 1.0
    output_limits: tuple[float, float] = (0.01, 1.0)
    initial_integral: float = 1.0

    def __post_init__(self) -> None:
        """Validate inputs."""
        lo, hi = self.output_limits
        if lo >= hi:
            raise ValueError(f"output_limits must be (min, max) with min < max, got {self.output_limits}")
        if lo < 0 or hi > 1:
            raise ValueError("Throttle limits must lie within [0, 1]")
        if self.target_twr <= 0:
            raise ValueError("target_twr must be positive")


# =============================================================================
# Burn Execution
# =============================================================================


@typechecked
@dataclass(frozen=True)
class BurnConfig:
    """Closed-loop maneuver execution.

    Attributes:
        remaining_delta_v_threshold: Burn ends below this remaining dv [m/s]
        overshoot_angle: Burn ends when the burn vector turns past this [deg]
        warp_lead_time: Warp to this long before the burn (None = no warp) [s]
        countdown_seconds: Countdown announcements before ignition [s]
        tick_interval: Control loop period [s]
    """
    remaining_delta_v_threshold: float = 0.2
    overshoot_angle: float = 90.0
    warp_lead_time: float | None = 30.0
    countdown_seconds: int = 5
    tick_interval: float = 0.1

    def __post_init__(self) -> None:
        """Validate inputs."""
        if self.remaining_delta_v_threshold <= 0:
            raise ValueError("remaining_delta_v_threshold must be positive")
        if not 0 < self.overshoot_angle <= 180:
            raise ValueError("overshoot_angle must be within (0, 180]")
        if self.tick_interval <= 0:
            raise ValueError("tick_interval must be positive")


# =============================================================================
# Launch Program
# =============================================================================


@typechecked
@dataclass(frozen=True)
class LaunchConfig:
    """Launch program sequencing.

    Attributes:
        countdown_seconds: Pre-launch countdown length [s]
        roll_program_speed: Vertical speed that ends the roll program [m/s]
        roll_program_timeout: Roll program ends after this long regardless [s]
        atmosphere_altitude: Coast until above this before circularizing [m]
        action_group_5: Toggle action group 5 on the way out (fairings, etc.)
        action_group_5_altitude: Altitude for action group 5 [m]
        auto_throttle: Start with TWR-tracking throttle engaged
        circularization_warp_lead: Warp lead before the circularization burn [s]
    """
    countdown_seconds: int = 3
    roll_program_speed: float = 60.0
    roll_program_timeout: float = 15.0
    atmosphere_altitude: float = 70050.0
    action_group_5: bool = False
    action_group_5_altitude: float = 65000.0
    auto_throttle: bool = True
    circularization_warp_lead: float = 20.0


# =============================================================================
# Aggregate
# =============================================================================


_SECTIONS: dict[str, type] = {
    "target": GuidanceTarget,
    "pitch_profile": PitchProfile,
    "staging": StagingConfig,
    "throttle": ThrottleConfig,
    "burn": BurnConfig,
    "launch": LaunchConfig,
}


@typechecked
@dataclass(frozen=True)
class AutopilotConfig:
    """Complete autopilot tuning for one vehicle."""
    target: GuidanceTarget = field(default_factory=GuidanceTarget)
    pitch_profile: PitchProfile = field(default_factory=PitchProfile)
    staging: StagingConfig = field(default_factory=StagingConfig)
    throttle: ThrottleConfig = field(default_factory=ThrottleConfig)
    burn: BurnConfig = field(default_factory=BurnConfig)
    launch: LaunchConfig = field(default_factory=LaunchConfig)

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(asdict(self), indent=2)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AutopilotConfig":
        """Build from a (possibly partial) nested dict; missing keys keep defaults."""
        unknown = set(data) - set(_SECTIONS)
        if unknown:
            raise ValueError(f"Unknown config sections: {sorted(unknown)}")

        sections = {}
        for name, section_cls in _SECTIONS.items():
            values = dict(data.get(name, {}))
            unknown_keys = set(values) - {f.name for f in fields(section_cls)}
            if unknown_keys:
                raise ValueError(f"Unknown keys in {name!r}: {sorted(unknown_keys)}")
            if "output_limits" in values:
                values["output_limits"] = tuple(values["output_limits"])
            sections[name] = section_cls(**values)
        return cls(**sections)

    @classmethod
    def from_json(cls, json_str: str) -> "AutopilotConfig":
        """Deserialize from JSON string."""
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def load(cls, path: str | Path) -> "AutopilotConfig":
        """Load from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config not found at {path}")
        return cls.from_json(path.read_text())
