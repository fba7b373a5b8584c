"""Immutable 3-vector value type.

Telemetry hands burn vectors and directions around as plain triples. The
flight software wraps them in Vector3 so dot products, magnitudes and angles
read the same everywhere.

Example:
    >>> from autopilot.vector import Vector3
    >>> prograde = Vector3(0.0, 1.0, 0.0)
    >>> prograde.angle_to(Vector3(1.0, 0.0, 0.0))
    90.0
"""

import math
from dataclasses import dataclass
from collections.abc import Iterable

import numpy as np
from numpy.typing import NDArray

from autopilot.checking import typechecked

# Below this magnitude a vector has no meaningful direction
NEAR_ZERO: float = 1e-9


@typechecked
@dataclass(frozen=True)
class Vector3:
    """Immutable 3-vector.

    Attributes:
        x: First component
        y: Second component
        z: Third component
    """
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def from_iterable(cls, values: Iterable[float]) -> "Vector3":
        """Create from any 3-element sequence (tuple, list, ndarray)."""
        x, y, z = (float(v) for v in values)
        return cls(x, y, z)

    def to_array(self) -> NDArray[np.float64]:
        """Return as numpy array [x, y, z]."""
        return np.array([self.x, self.y, self.z])

    def to_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def dot(self, other: "Vector3") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "Vector3") -> "Vector3":
        return Vector3.from_iterable(np.cross(self.to_array(), other.to_array()))

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.dot(self))

    def normalized(self) -> "Vector3":
        """Unit vector in the same direction (zero vector stays zero)."""
        mag = self.magnitude
        if mag < NEAR_ZERO:
            return Vector3()
        return self.scale(1.0 / mag)

    def scale(self, factor: float) -> "Vector3":
        return Vector3(self.x * factor, self.y * factor, self.z * factor)

    def angle_to(self, other: "Vector3") -> float:
        """Angle between this vector and another [deg]."""
        from autopilot.orbital import vector_angle_degrees

        return vector_angle_degrees(self, other)

    def __add__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __neg__(self) -> "Vector3":
        return Vector3(-self.x, -self.y, -self.z)

    def __iter__(self):
        return iter(self.to_tuple())
