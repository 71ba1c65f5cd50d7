"""A free-flying camera."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

_TWO_PI = 2.0 * math.pi
_MAX_ALTITUDE = 0.499 * math.pi


def _rot_x(theta: float) -> np.ndarray:
    c, s = math.cos(theta), math.sin(theta)
    m = np.identity(4)
    m[1, 1], m[1, 2], m[2, 1], m[2, 2] = c, -s, s, c
    return m


def _rot_y(theta: float) -> np.ndarray:
    c, s = math.cos(theta), math.sin(theta)
    m = np.identity(4)
    m[0, 0], m[0, 2], m[2, 0], m[2, 2] = c, s, -s, c
    return m


@dataclass
class Eye:
    """Camera position plus azimuth and altitude angles (radians)."""

    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    azimuth: float = 0.0
    altitude: float = 0.0

    def __post_init__(self) -> None:
        self.position = np.asarray(self.position, dtype=float)

    def model_view(self) -> np.ndarray:
        """The 4x4 model-view matrix."""
        translation = np.identity(4)
        translation[:3, 3] = -self.position
        return _rot_x(-self.altitude) @ _rot_y(-self.azimuth) @ translation

    def move_by(self, dv: Sequence[float]) -> None:
        """Move by ``dv``: x is forward, y is to the right, z is up.

        The eye is treated as level, so only the azimuth affects direction.
        """
        t = _rot_y(self.azimuth)[:3, :3]
        forward = t @ np.array([0.0, 0.0, -1.0])
        side = t @ np.array([1.0, 0.0, 0.0])
        up = t @ np.array([0.0, 1.0, 0.0])
        self.position = self.position + forward * dv[0] + side * dv[1] + up * dv[2]

    def free_look(self, dv: Sequence[float]) -> None:
        """Turn by ``dv`` (azimuth, altitude deltas)."""
        self.azimuth -= dv[0]
        self.altitude -= dv[1]

        # Small steps are expected, so wrapping once is enough.
        if self.azimuth >= _TWO_PI:
            self.azimuth -= _TWO_PI
        elif self.azimuth < 0.0:
            self.azimuth += _TWO_PI

        # Stay away from the poles.
        self.altitude = min(max(self.altitude, -_MAX_ALTITUDE), _MAX_ALTITUDE)