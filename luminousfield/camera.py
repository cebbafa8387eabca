"""First-person fly camera driven by keyboard, mouse and scroll wheel."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

from luminousfield.transforms import look_at, normalize, perspective

MOVE_SPEED = 2.5
MOUSE_SENSITIVITY = 0.1
PITCH_LIMIT = 89.0
MIN_FOV = 1.0
MAX_FOV = 90.0
NEAR_PLANE = 0.1
FAR_PLANE = 100.0


def _vector(*components: float):
    return field(default_factory=lambda: np.array(components, dtype=float))


@dataclass
class Camera:
    """Camera state: position, orientation angles and field of view in degrees."""

    position: np.ndarray = _vector(0.0, 0.0, 3.0)
    front: np.ndarray = _vector(0.0, 0.0, -1.0)
    up: np.ndarray = _vector(0.0, 1.0, 0.0)
    yaw: float = -90.0
    pitch: float = 0.0
    fov: float = 45.0
    last_x: float = 640.0
    last_y: float = 360.0
    first_mouse: bool = True

    def move(
        self,
        forward: bool,
        backward: bool,
        left: bool,
        right: bool,
        delta_time: float,
    ) -> None:
        """Move the camera according to which direction keys are held."""
        step = MOVE_SPEED * delta_time
        if forward:
            self.position = self.position + step * self.front
        if backward:
            self.position = self.position - step * self.front
        if left or right:
            side = normalize(np.cross(self.front, self.up))
            if left:
                self.position = self.position - side * step
            if right:
                self.position = self.position + side * step

    def on_mouse(self, x: float, y: float) -> None:
        """Turn the camera from a new cursor position."""
        if self.first_mouse:
            self.last_x = x
            self.last_y = y
            self.first_mouse = False

        x_offset = (x - self.last_x) * MOUSE_SENSITIVITY
        y_offset = (self.last_y - y) * MOUSE_SENSITIVITY
        self.last_x = x
        self.last_y = y

        self.yaw += x_offset
        self.pitch = min(PITCH_LIMIT, max(-PITCH_LIMIT, self.pitch + y_offset))

        yaw = math.radians(self.yaw)
        pitch = math.radians(self.pitch)
        self.front = normalize(
            [
                math.cos(yaw) * math.cos(pitch),
                math.sin(pitch),
                math.sin(yaw) * math.cos(pitch),
            ]
        )

    def on_scroll(self, y_offset: float) -> None:
        """Zoom by narrowing or widening the field of view."""
        self.fov = min(MAX_FOV, max(MIN_FOV, self.fov - y_offset))

    def view_matrix(self) -> np.ndarray:
        return look_at(self.position, self.position + self.front, self.up)

    def projection_matrix(self, aspect: float) -> np.ndarray:
        return perspective(math.radians(self.fov), aspect, NEAR_PLANE, FAR_PLANE)