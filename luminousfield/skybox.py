"""A cube-mapped sky drawn behind the rest of the scene."""

from __future__ import annotations

import contextlib
import logging
import os
from dataclasses import dataclass
from typing import Callable, ContextManager, Iterable, Iterator, Protocol, Sequence

import numpy as np
from PIL import Image

from luminousfield.shader import Shader
from luminousfield.transforms import strip_translation

log = logging.getLogger(__name__)

FALLBACK_COLOR = (100, 149, 237)
MAX_FACES = 6
TEXTURE_UNIT = 0

SKYBOX_VERTICES = np.array(
    [
        [-1.0, 1.0, -1.0], [-1.0, -1.0, -1.0], [1.0, -1.0, -1.0],
        [1.0, -1.0, -1.0], [1.0, 1.0, -1.0], [-1.0, 1.0, -1.0],

        [-1.0, -1.0, 1.0], [-1.0, -1.0, -1.0], [-1.0, 1.0, -1.0],
        [-1.0, 1.0, -1.0], [-1.0, 1.0, 1.0], [-1.0, -1.0, 1.0],

        [1.0, -1.0, -1.0], [1.0, -1.0, 1.0], [1.0, 1.0, 1.0],
        [1.0, 1.0, 1.0], [1.0, 1.0, -1.0], [1.0, -1.0, -1.0],

        [-1.0, -1.0, 1.0], [-1.0, 1.0, 1.0], [1.0, 1.0, 1.0],
        [1.0, 1.0, 1.0], [1.0, -1.0, 1.0], [-1.0, -1.0, 1.0],

        [-1.0, 1.0, -1.0], [1.0, 1.0, -1.0], [1.0, 1.0, 1.0],
        [1.0, 1.0, 1.0], [-1.0, 1.0, 1.0], [-1.0, 1.0, -1.0],

        [-1.0, -1.0, -1.0], [-1.0, -1.0, 1.0], [1.0, -1.0, -1.0],
        [1.0, -1.0, -1.0], [-1.0, -1.0, 1.0], [1.0, -1.0, 1.0],
    ],
    dtype=np.float32,
)
SKYBOX_VERTICES.setflags(write=False)

_CHANNELS = {"L": 1, "RGB": 3, "RGBA": 4}


@dataclass(frozen=True)
class CubemapFace:
    """Pixel data for one cube face, rows top to bottom."""

    path: str
    width: int
    height: int
    channels: int
    data: bytes
    fallback: bool = False


def _fallback_face(path: str) -> CubemapFace:
    return CubemapFace(path, 1, 1, 3, bytes(FALLBACK_COLOR), fallback=True)


def _normalized_image(image: Image.Image) -> Image.Image:
    if image.mode in _CHANNELS:
        return image
    bands = image.getbands()
    if len(bands) == 1 and image.mode != "P":
        return image.convert("L")
    if "A" in bands or "transparency" in image.info:
        return image.convert("RGBA")
    return image.convert("RGB")


def load_face(path: str | os.PathLike) -> CubemapFace:
    """Load one face image; an unreadable file gives a 1x1 cornflower-blue face."""
    name = os.fspath(path)
    log.info("Loading cubemap texture: %s", name)
    try:
        with Image.open(name) as opened:
            opened.load()
            image = _normalized_image(opened)
            face = CubemapFace(
                name,
                image.width,
                image.height,
                _CHANNELS[image.mode],
                image.tobytes(),
            )
    except (OSError, ValueError) as exc:
        log.error("Cubemap texture failed to load at path: %s (%s)", name, exc)
        return _fallback_face(name)
    log.info(
        "Loaded %s: %dx%d, %d channels", name, face.width, face.height, face.channels
    )
    return face


class _Mesh(Protocol):
    def draw(self) -> None: ...

    def delete(self) -> None: ...


class _Cubemap(Protocol):
    def bind(self, unit: int) -> None: ...

    def unbind(self) -> None: ...

    def delete(self) -> None: ...


MeshFactory = Callable[[np.ndarray, Sequence[int]], _Mesh]
CubemapFactory = Callable[[Sequence[CubemapFace]], _Cubemap]
DepthGuard = Callable[[], ContextManager[object]]


def _log_gl_errors(gl, where: str) -> None:
    while (error := gl.glGetError()) != gl.GL_NO_ERROR:
        log.error("OpenGL error in %s: %s", where, error)


class _GLMesh:
    """Position-only vertices in a vertex array object."""

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
        _log_gl_errors(gl, "skybox setup")

    def draw(self) -> None:
        gl = self._gl
        gl.glBindVertexArray(self._vao[0])
        gl.glDrawArrays(gl.GL_TRIANGLES, 0, self._count)
        _log_gl_errors(gl, "skybox draw")
        gl.glBindVertexArray(0)

    def delete(self) -> None:
        self._gl.glDeleteVertexArrays(1, self._vao)
        self._gl.glDeleteBuffers(1, self._vbo)


class _GLCubemap:
    """A cube-map texture with linear filtering and clamped edges."""

    def __init__(self, faces: Sequence[CubemapFace]) -> None:
        from pyglet import gl

        self._gl = gl
        self._ids = (gl.GLuint * 1)()
        gl.glGenTextures(1, self._ids)
        target = gl.GL_TEXTURE_CUBE_MAP
        gl.glBindTexture(target, self._ids[0])
        gl.glTexParameteri(target, gl.GL_TEXTURE_MIN_FILTER, gl.GL_LINEAR)
        gl.glTexParameteri(target, gl.GL_TEXTURE_MAG_FILTER, gl.GL_LINEAR)
        for wrap in (gl.GL_TEXTURE_WRAP_S, gl.GL_TEXTURE_WRAP_T, gl.GL_TEXTURE_WRAP_R):
            gl.glTexParameteri(target, wrap, gl.GL_CLAMP_TO_EDGE)
        formats = {1: gl.GL_RED, 3: gl.GL_RGB, 4: gl.GL_RGBA}
        gl.glPixelStorei(gl.GL_UNPACK_ALIGNMENT, 1)
        for index, face in enumerate(faces):
            pixel_format = formats.get(face.channels, gl.GL_RGB)
            gl.glTexImage2D(
                gl.GL_TEXTURE_CUBE_MAP_POSITIVE_X + index,
                0,
                pixel_format,
                face.width,
                face.height,
                0,
                pixel_format,
                gl.GL_UNSIGNED_BYTE,
                face.data,
            )
        gl.glBindTexture(target, 0)
        if self._ids[0] == 0:
            log.error("Failed to load cubemap textures")

    def bind(self, unit: int) -> None:
        self._gl.glActiveTexture(self._gl.GL_TEXTURE0 + unit)
        self._gl.glBindTexture(self._gl.GL_TEXTURE_CUBE_MAP, self._ids[0])

    def unbind(self) -> None:
        self._gl.glBindTexture(self._gl.GL_TEXTURE_CUBE_MAP, 0)

    def delete(self) -> None:
        self._gl.glDeleteTextures(1, self._ids)


@contextlib.contextmanager
def _gl_lequal_depth() -> Iterator[None]:
    from pyglet import gl

    previous = (gl.GLint * 1)()
    gl.glGetIntegerv(gl.GL_DEPTH_FUNC, previous)
    gl.glDepthFunc(gl.GL_LEQUAL)
    try:
        yield
    finally:
        gl.glDepthFunc(previous[0])


class Skybox:
    """A unit cube textured with a cube map, drawn with view translation removed."""

    def __init__(
        self,
        faces: Iterable[str | os.PathLike],
        shader: Shader,
        mesh_factory: MeshFactory | None = None,
        cubemap_factory: CubemapFactory | None = None,
        depth_guard: DepthGuard | None = None,
    ) -> None:
        paths = list(faces)
        if len(paths) > MAX_FACES:
            raise ValueError(f"a cube map has at most {MAX_FACES} faces, got {len(paths)}")
        self.shader = shader
        self.faces = [load_face(path) for path in paths]
        self._depth_guard = depth_guard or _gl_lequal_depth
        self._mesh: _Mesh | None = (mesh_factory or _GLMesh)(SKYBOX_VERTICES, (3,))
        self._cubemap: _Cubemap | None = (cubemap_factory or _GLCubemap)(self.faces)

    def draw(self, view: np.ndarray, projection: np.ndarray) -> None:
        if self._mesh is None or self._cubemap is None:
            raise RuntimeError("skybox has been deleted")
        with self._depth_guard():
            self.shader.use()
            self.shader.set_mat4("view", strip_translation(view))
            self.shader.set_mat4("projection", projection)
            self._cubemap.bind(TEXTURE_UNIT)
            self.shader.set_int("skybox", TEXTURE_UNIT)
            self._mesh.draw()
            self._cubemap.unbind()

    def delete(self) -> None:
        """Release the mesh and texture; later calls do nothing."""
        if self._mesh is not None:
            self._mesh.delete()
            self._mesh = None
        if self._cubemap is not None:
            self._cubemap.delete()
            self._cubemap = None

    def __enter__(self) -> "Skybox":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.delete()