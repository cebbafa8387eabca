"""A flapping butterfly that wanders over the field."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol, Sequence

import numpy as np

from luminousfield.shader import Shader
from luminousfield.transforms import normalize, rotate, translate

BODY_LENGTH = 0.5
BODY_WIDTH = 0.1
BODY_HEIGHT = 0.1
WING_SIZE = 0.5
BODY_COLOR = (0.2, 0.2, 0.2)
WING_COLOR = (0.8, 0.2, 0.8)

BASE_HEIGHT = 1.5
HOVER_AMPLITUDE = 0.3
HOVER_FREQUENCY = 0.5
BOUNDARY = 10.0
DIRECTION_CHANGE_INTERVAL = 3.0
DIRECTION_CHANGE_THRESHOLD = 0.7
_TWO_PI_APPROX = 3.14159 * 2.0


class _Mesh(Protocol):
    def draw(self) -> None: ...

    def delete(self) -> None: ...


MeshFactory = Callable[[np.ndarray, Sequence[int]], _Mesh]


def _triangle(p1, p2, p3, color) -> list[tuple[float, ...]]:
    return [(*p, *color) for p in (p1, p2, p3)]


def _quad(p1, p2, p3, p4, color) -> list[tuple[float, ...]]:
    return _triangle(p1, p2, p3, color) + _triangle(p1, p3, p4, color)


def build_butterfly_vertices() -> np.ndarray:
    """Interleaved (x, y, z, r, g, b) rows for the body and the four wings."""
    hl, hh, hw = BODY_LENGTH / 2, BODY_HEIGHT / 2, BODY_WIDTH / 2
    rows: list[tuple[float, ...]] = []
    for z in (-hw, hw):
        rows += _quad(
            (-hl, -hh, z), (hl, -hh, z), (hl, hh, z), (-hl, hh, z), BODY_COLOR
        )

    origin = np.array([-BODY_LENGTH / 4, 0.0, 0.0])
    out = np.array([WING_SIZE, 0.0, 0.0])
    up = np.array([0.0, WING_SIZE, 0.0])
    rows += _triangle(origin, origin - out, origin + up, WING_COLOR)
    rows += _triangle(origin, origin - out, origin - up, WING_COLOR)
    rows += _triangle(-origin, -origin + out, -origin + up, WING_COLOR)
    rows += _triangle(-origin, -origin + out, -origin - up, WING_COLOR)
    return np.array(rows, dtype=np.float32)


def random_direction(rng: Any) -> np.ndarray:
    """A random unit vector in the XZ plane drawn from *rng*."""
    angle = rng.uniform(-1.0, 1.0) * _TWO_PI_APPROX
    return normalize([math.cos(angle), 0.0, math.sin(angle)])


@dataclass
class ButterflyState:
    """Position, heading and wing phase of a butterfly."""

    position: np.ndarray = field(
        default_factory=lambda: np.array([0.0, BASE_HEIGHT, 0.0])
    )
    direction: np.ndarray | None = None
    wing_angle: float = 0.0
    wing_speed: float = 10.0
    flight_speed: float = 1.0
    time_since_direction_change: float = 0.0
    rng: Any = field(default_factory=random.Random, repr=False)

    def __post_init__(self) -> None:
        self.position = np.array(self.position, dtype=float)
        if self.direction is None:
            self.direction = random_direction(self.rng)
        else:
            self.direction = normalize(self.direction)

    def update(self, delta_time: float, elapsed: float) -> None:
        """Advance by *delta_time* seconds; *elapsed* drives the hovering height."""
        self.wing_angle += self.wing_speed * delta_time
        self.position = self.position + self.direction * self.flight_speed * delta_time

        self.time_since_direction_change += delta_time
        if self.time_since_direction_change > DIRECTION_CHANGE_INTERVAL:
            if self.rng.uniform(-1.0, 1.0) > DIRECTION_CHANGE_THRESHOLD:
                self.direction = random_direction(self.rng)
            self.time_since_direction_change = 0.0

        x, _, z = self.position
        if abs(x) > BOUNDARY or abs(z) > BOUNDARY:
            self.direction = normalize([-x, 0.0, -z])

        self.position[1] = BASE_HEIGHT + math.sin(elapsed * HOVER_FREQUENCY) * HOVER_AMPLITUDE

    def model_matrix(self) -> np.ndarray:
        """Place the butterfly at its position, facing its direction of flight."""
        model = translate(np.identity(4), self.position)
        angle = math.atan2(self.direction[0], self.direction[2])
        return rotate(model, angle, (0.0, 1.0, 0.0))

    def wing_angles(self) -> tuple[float, float]:
        """Left and right wing openings, each in [0, 1] and summing to 1."""
        s = math.sin(self.wing_angle)
        return s * 0.5 + 0.5, -s * 0.5 + 0.5


class _GLMesh:
    """Interleaved float vertices uploaded to a vertex array object."""

    def __init__(self, vertices: np.ndarray, attribute_sizes: Sequence[int]) -> None:
        from pyglet import gl

        data = np.ascontiguousarray(vertices, dtype=np.float32)
        self._gl = gl
        self._count = data.shape[0]
        stride = data.shape[1] * data.itemsize
        self._vao = (gl.GLuint * 1)()
        self._vbo = (gl.GLuint * 1)()
        gl.glGenVertexArrays(1, self._vao)
        gl.glGenBuffers(1, self._vbo)
        gl.glBindVertexArray(self._vao[0])
        gl.glBindBuffer(gl.GL_ARRAY_BUFFER, self._vbo[0])
        raw = data.tobytes()
        gl.glBufferData(gl.GL_ARRAY_BUFFER, len(raw), raw, gl.GL_STATIC_DRAW)
        offset = 0
        for index, size in enumerate(attribute_sizes):
            gl.glVertexAttribPointer(
                index, size, gl.GL_FLOAT, gl.GL_FALSE, stride, offset * data.itemsize
            )
            gl.glEnableVertexAttribArray(index)
            offset += size
        gl.glBindBuffer(gl.GL_ARRAY_BUFFER, 0)
        gl.glBindVertexArray(0)

    def draw(self) -> None:
        gl = self._gl
        gl.glBindVertexArray(self._vao[0])
        gl.glDrawArrays(gl.GL_TRIANGLES, 0, self._count)
        gl.glBindVertexArray(0)

    def delete(self) -> None:
        self._gl.glDeleteVertexArrays(1, self._vao)
        self._gl.glDeleteBuffers(1, self._vbo)


class Butterfly:
    """A butterfly's state together with its mesh and shader."""

    def __init__(
        self,
        shader: Shader,
        state: ButterflyState | None = None,
        mesh_factory: MeshFactory | None = None,
    ) -> None:
        self.shader = shader
        self.state = state if state is not None else ButterflyState()
        self.vertices = build_butterfly_vertices()
        factory = mesh_factory or _GLMesh
        self._mesh: _Mesh | None = factory(self.vertices, (3, 3))

    def update(self, delta_time: float, elapsed: float) -> None:
        self.state.update(delta_time, elapsed)

    def draw(self, view: np.ndarray, projection: np.ndarray) -> None:
        if self._mesh is None:
            raise RuntimeError("butterfly has been deleted")
        self.shader.use()
        left, right = self.state.wing_angles()
        self.shader.set_mat4("model", self.state.model_matrix())
        self.shader.set_mat4("view", view)
        self.shader.set_mat4("projection", projection)
        self.shader.set_float("leftWingAngle", left)
        self.shader.set_float("rightWingAngle", right)
        self._mesh.draw()

    def delete(self) -> None:
        """Release the mesh; later calls do nothing."""
        if self._mesh is not None:
            self._mesh.delete()
            self._mesh = None

    def __enter__(self) -> "Butterfly":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.delete()