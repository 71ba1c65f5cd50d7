"""Frame-rate tracking and viewer settings."""

from __future__ import annotations

WINDOW_WIDTH = 640
"""Initial window width."""
WINDOW_HEIGHT = 480
"""Initial window height."""
BG_COLOR = (0.3, 0.3, 0.3, 1.0)
"""Window background colour."""
Z_NEAR = 0.01
"""Near-plane distance for perspective."""
Z_FAR = 4000.0
"""Far-plane distance for perspective."""
FOV_Y = 1.1
"""Vertical field of view for perspective, in radians."""
FRAMERATE = 1.0 / 60.0
"""Animation rate, in seconds per frame."""
FPS_INTERVAL = 2.0
"""Length in seconds of the intervals over which FPS is measured."""


class FpsCounter:
    """Tracks frames per second, averaged over FPS_INTERVAL-long spans."""

    def __init__(self) -> None:
        self._fps = 0.0
        self._time_acc = 0.0
        self._frames_acc = 0.0

    @property
    def fps(self) -> float:
        return self._fps

    def update(self, dt: float) -> None:
        """Record one frame that took ``dt`` seconds."""
        self._time_acc += dt
        self._frames_acc += 1.0
        if self._time_acc > FPS_INTERVAL:
            self._fps = self._frames_acc / self._time_acc
            self._time_acc = 0.0
            self._frames_acc = 0.0