"""GLSL shader programs loaded from vertex and fragment source files."""

from __future__ import annotations

import logging
import os
from typing import Any, Callable, Protocol, Sequence

import numpy as np

log = logging.getLogger(__name__)


class ShaderError(Exception):
    """A shader could not be read, compiled or linked."""


class ProgramLike(Protocol):
    uniforms: Any

    def use(self) -> None: ...

    def __setitem__(self, key: str, value: Any) -> None: ...

    def delete(self) -> None: ...


ProgramFactory = Callable[[str, str], ProgramLike]


def read_shader_sources(
    vertex_path: str | os.PathLike, fragment_path: str | os.PathLike
) -> tuple[str, str]:
    """Read both shader sources, raising ShaderError if either cannot be read."""
    try:
        with open(vertex_path, encoding="utf-8") as vertex_file:
            vertex_source = vertex_file.read()
        with open(fragment_path, encoding="utf-8") as fragment_file:
            fragment_source = fragment_file.read()
    except OSError as exc:
        raise ShaderError(f"shader file not successfully read: {exc}") from exc
    log.info("Successfully loaded shader files: %s, %s", vertex_path, fragment_path)
    return vertex_source, fragment_source


def _build_gl_program(vertex_source: str, fragment_source: str) -> ProgramLike:
    from pyglet.graphics.shader import Shader as GLShader
    from pyglet.graphics.shader import ShaderException, ShaderProgram

    stages = []
    try:
        stages.append(GLShader(vertex_source, "vertex"))
        log.info("Vertex shader compiled successfully")
        stages.append(GLShader(fragment_source, "fragment"))
        log.info("Fragment shader compiled successfully")
        program = ShaderProgram(*stages)
        log.info("Shader program linked successfully")
    except ShaderException as exc:
        raise ShaderError(str(exc)) from exc
    finally:
        for stage in stages:
            stage.delete()
    return program


class Shader:
    """A linked shader program with typed uniform setters.

    Uniforms the program does not expose are ignored, as OpenGL ignores
    writes to location -1.
    """

    def __init__(
        self,
        vertex_path: str | os.PathLike,
        fragment_path: str | os.PathLike,
        program_factory: ProgramFactory | None = None,
    ) -> None:
        vertex_source, fragment_source = read_shader_sources(vertex_path, fragment_path)
        factory = program_factory or _build_gl_program
        self._program: ProgramLike | None = factory(vertex_source, fragment_source)

    @property
    def program(self) -> ProgramLike:
        if self._program is None:
            raise ShaderError("shader program has been deleted")
        return self._program

    @property
    def deleted(self) -> bool:
        return self._program is None

    def use(self) -> None:
        self.program.use()

    def _set(self, name: str, value: Any) -> None:
        program = self.program
        if name in program.uniforms:
            program[name] = value

    def set_bool(self, name: str, value: bool) -> None:
        self._set(name, int(bool(value)))

    def set_int(self, name: str, value: int) -> None:
        self._set(name, int(value))

    def set_float(self, name: str, value: float) -> None:
        self._set(name, float(value))

    def set_vec2(self, name: str, *args: Any) -> None:
        """Set a vec2 from one 2-element sequence or two numbers."""
        self._set(name, _components(args, 2))

    def set_vec3(self, name: str, *args: Any) -> None:
        """Set a vec3 from one 3-element sequence or three numbers."""
        self._set(name, _components(args, 3))

    def set_mat4(self, name: str, matrix: Any) -> None:
        """Upload a 4x4 matrix in column-major order."""
        values = np.asarray(matrix, dtype=np.float32)
        if values.shape != (4, 4):
            raise ValueError(f"expected a 4x4 matrix, got shape {values.shape}")
        self._set(name, tuple(float(v) for v in values.flatten(order="F")))

    def delete(self) -> None:
        """Release the program; later calls do nothing."""
        if self._program is not None:
            self._program.delete()
            self._program = None

    def __enter__(self) -> "Shader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.delete()


def _components(args: Sequence[Any], count: int) -> tuple[float, ...]:
    if len(args) == 1:
        values = tuple(float(v) for v in np.asarray(args[0], dtype=float).ravel())
    else:
        values = tuple(float(v) for v in args)
    if len(values) != count:
        raise TypeError(f"expected {count} components, got {len(values)}")
    return values