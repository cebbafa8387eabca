"""Window, input handling and the main render loop of the scene."""

from __future__ import annotations

import argparse
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import numpy as np

from luminousfield.butterfly import Butterfly
from luminousfield.butterfly import _GLMesh as _VertexMesh
from luminousfield.camera import Camera
from luminousfield.shader import ShaderError
from luminousfield.shader_manager import ShaderRegistry
from luminousfield.skybox import Skybox

log = logging.getLogger(__name__)

_FACE_NAMES = ("right", "left", "top", "bottom", "front", "back")

_TRIANGLE = np.array(
    [
        [-0.5, -0.5, 0.0, 1.0, 0.0, 0.0],
        [0.5, -0.5, 0.0, 0.0, 1.0, 0.0],
        [0.0, 0.5, 0.0, 0.0, 0.0, 1.0],
    ],
    dtype=np.float32,
)

_CUBE = np.array(
    [
        # positions, normals, texture coords
        [-0.5, -0.5, -0.5, 0.0, 0.0, -1.0, 0.0, 0.0],
        [0.5, -0.5, -0.5, 0.0, 0.0, -1.0, 1.0, 0.0],
        [0.5, 0.5, -0.5, 0.0, 0.0, -1.0, 1.0, 1.0],
        [0.5, 0.5, -0.5, 0.0, 0.0, -1.0, 1.0, 1.0],
        [-0.5, 0.5, -0.5, 0.0, 0.0, -1.0, 0.0, 1.0],
        [-0.5, -0.5, -0.5, 0.0, 0.0, -1.0, 0.0, 0.0],

        [-0.5, -0.5, 0.5, 0.0, 0.0, 1.0, 0.0, 0.0],
        [0.5, -0.5, 0.5, 0.0, 0.0, 1.0, 1.0, 0.0],
        [0.5, 0.5, 0.5, 0.0, 0.0, 1.0, 1.0, 1.0],
        [0.5, 0.5, 0.5, 0.0, 0.0, 1.0, 1.0, 1.0],
        [-0.5, 0.5, 0.5, 0.0, 0.0, 1.0, 0.0, 1.0],
        [-0.5, -0.5, 0.5, 0.0, 0.0, 1.0, 0.0, 0.0],

        [-0.5, 0.5, 0.5, -1.0, 0.0, 0.0, 1.0, 0.0],
        [-0.5, 0.5, -0.5, -1.0, 0.0, 0.0, 1.0, 1.0],
        [-0.5, -0.5, -0.5, -1.0, 0.0, 0.0, 0.0, 1.0],
        [-0.5, -0.5, -0.5, -1.0, 0.0, 0.0, 0.0, 1.0],
        [-0.5, -0.5, 0.5, -1.0, 0.0, 0.0, 0.0, 0.0],
        [-0.5, 0.5, 0.5, -1.0, 0.0, 0.0, 1.0, 0.0],

        [0.5, 0.5, 0.5, 1.0, 0.0, 0.0, 1.0, 0.0],
        [0.5, 0.5, -0.5, 1.0, 0.0, 0.0, 1.0, 1.0],
        [0.5, -0.5, -0.5, 1.0, 0.0, 0.0, 0.0, 1.0],
        [0.5, -0.5, -0.5, 1.0, 0.0, 0.0, 0.0, 1.0],
        [0.5, -0.5, 0.5, 1.0, 0.0, 0.0, 0.0, 0.0],
        [0.5, 0.5, 0.5, 1.0, 0.0, 0.0, 1.0, 0.0],

        [-0.5, -0.5, -0.5, 0.0, -1.0, 0.0, 0.0, 1.0],
        [0.5, -0.5, -0.5, 0.0, -1.0, 0.0, 1.0, 1.0],
        [0.5, -0.5, 0.5, 0.0, -1.0, 0.0, 1.0, 0.0],
        [0.5, -0.5, 0.5, 0.0, -1.0, 0.0, 1.0, 0.0],
        [-0.5, -0.5, 0.5, 0.0, -1.0, 0.0, 0.0, 0.0],
        [-0.5, -0.5, -0.5, 0.0, -1.0, 0.0, 0.0, 1.0],

        [-0.5, 0.5, -0.5, 0.0, 1.0, 0.0, 0.0, 1.0],
        [0.5, 0.5, -0.5, 0.0, 1.0, 0.0, 1.0, 1.0],
        [0.5, 0.5, 0.5, 0.0, 1.0, 0.0, 1.0, 0.0],
        [0.5, 0.5, 0.5, 0.0, 1.0, 0.0, 1.0, 0.0],
        [-0.5, 0.5, 0.5, 0.0, 1.0, 0.0, 0.0, 0.0],
        [-0.5, 0.5, -0.5, 0.0, 1.0, 0.0, 0.0, 1.0],
    ],
    dtype=np.float32,
)


@dataclass(frozen=True)
class SceneSettings:
    """Window size, title and asset locations for the scene."""

    width: int = 1280
    height: int = 720
    title: str = "The Luminous Field"
    shader_dir: str = "shaders"
    texture_dir: str = "textures/skybox_cubemap"
    clear_color: tuple[float, float, float, float] = (0.2, 0.3, 0.3, 1.0)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("window width and height must be positive")

    @property
    def aspect(self) -> float:
        return self.width / self.height


def skybox_faces(texture_dir: str | os.PathLike = "textures/skybox_cubemap") -> list[Path]:
    """Cube-map face images in +X, -X, +Y, -Y, +Z, -Z order."""
    base = Path(texture_dir)
    return [base / f"{name}.png" for name in _FACE_NAMES]


def triangle_vertices() -> np.ndarray:
    """A red, green and blue triangle as (x, y, z, r, g, b) rows."""
    return _TRIANGLE.copy()


def cube_vertices() -> np.ndarray:
    """A unit cube as (x, y, z, nx, ny, nz, u, v) rows, two triangles per face."""
    return _CUBE.copy()


def _positive_int(text: str) -> int:
    value = int(text)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return value


def _parse_args(argv: Sequence[str] | None) -> SceneSettings:
    defaults = SceneSettings()
    parser = argparse.ArgumentParser(
        prog="luminousfield", description="Fly through a field with a butterfly."
    )
    parser.add_argument("--width", type=_positive_int, default=defaults.width)
    parser.add_argument("--height", type=_positive_int, default=defaults.height)
    parser.add_argument("--shader-dir", default=defaults.shader_dir)
    parser.add_argument("--texture-dir", default=defaults.texture_dir)
    args = parser.parse_args(argv)
    return SceneSettings(
        width=args.width,
        height=args.height,
        shader_dir=args.shader_dir,
        texture_dir=args.texture_dir,
    )


def _create_window(settings: SceneSettings):
    import pyglet

    config = pyglet.gl.Config(
        major_version=3,
        minor_version=3,
        forward_compatible=True,
        double_buffer=True,
        depth_size=24,
    )
    return pyglet.window.Window(
        settings.width,
        settings.height,
        settings.title,
        config=config,
        resizable=True,
    )


def _run(window, settings: SceneSettings) -> int:
    import pyglet
    from pyglet import gl
    from pyglet.window import key

    keys = key.KeyStateHandler()
    window.push_handlers(keys)
    window.set_exclusive_mouse(True)

    camera = Camera(last_x=settings.width / 2.0, last_y=settings.height / 2.0)
    cursor = [settings.width / 2.0, settings.height / 2.0]

    def on_mouse_motion(x, y, dx, dy):
        cursor[0] += dx
        cursor[1] -= dy  # window y grows upwards, camera expects downwards
        camera.on_mouse(cursor[0], cursor[1])

    def on_mouse_scroll(x, y, scroll_x, scroll_y):
        camera.on_scroll(scroll_y)

    def on_key_press(symbol, modifiers):
        if symbol == key.ESCAPE:
            window.has_exit = True
            return pyglet.event.EVENT_HANDLED
        return None

    def on_resize(width, height):
        fb_width, fb_height = window.get_framebuffer_size()
        gl.glViewport(0, 0, fb_width, fb_height)
        return pyglet.event.EVENT_HANDLED

    def on_draw():
        return pyglet.event.EVENT_HANDLED

    window.push_handlers(
        on_mouse_motion=on_mouse_motion,
        on_mouse_scroll=on_mouse_scroll,
        on_key_press=on_key_press,
        on_resize=on_resize,
        on_draw=on_draw,
    )

    gl.glEnable(gl.GL_DEPTH_TEST)

    with ShaderRegistry() as shaders:
        try:
            shaders.init_shaders(settings.shader_dir)
        except ShaderError as exc:
            log.error("Failed to initialise shaders: %s", exc)
            return 1

        with Skybox(skybox_faces(settings.texture_dir), shaders.skybox) as skybox, \
                Butterfly(shaders.butterfly) as butterfly:
            triangle = _VertexMesh(triangle_vertices(), (3, 3))
            cube = _VertexMesh(cube_vertices(), (3, 3, 2))
            try:
                start = time.perf_counter()
                last_frame = 0.0
                while not window.has_exit:
                    window.dispatch_events()
                    if window.has_exit:
                        break
                    current = time.perf_counter() - start
                    delta_time = current - last_frame
                    last_frame = current

                    camera.move(
                        keys[key.W], keys[key.S], keys[key.A], keys[key.D], delta_time
                    )

                    gl.glClearColor(*settings.clear_color)
                    gl.glClear(gl.GL_COLOR_BUFFER_BIT | gl.GL_DEPTH_BUFFER_BIT)

                    projection = camera.projection_matrix(settings.aspect)
                    view = camera.view_matrix()

                    butterfly.update(delta_time, current)

                    shaders.our.use()
                    shaders.our.set_mat4("projection", projection)
                    shaders.our.set_mat4("view", view)
                    triangle.draw()

                    butterfly.draw(view, projection)
                    skybox.draw(view, projection)

                    window.flip()
            finally:
                triangle.delete()
                cube.delete()
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Open the window and run the scene until it is closed."""
    settings = _parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    import pyglet

    try:
        window = _create_window(settings)
    except (pyglet.window.NoSuchConfigException, pyglet.gl.ContextException) as exc:
        log.error("Failed to create window: %s", exc)
        return 1
    try:
        return _run(window, settings)
    finally:
        window.close()


if __name__ == "__main__":
    raise SystemExit(main())