"""The scene's shared shader programs, created and released together."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable

from luminousfield.shader import Shader

ShaderFactory = Callable[[Path, Path], Shader]

_SHADER_FILES = {
    "our": ("vertex_shader.vert", "fragment_shader.frag"),
    "skybox": ("skybox.vert", "skybox.frag"),
    "light": ("vertex_shader.vert", "fragment_shader.frag"),
    "butterfly": ("butterfly.vert", "butterfly.frag"),
}


def shader_paths(shader_dir: str | os.PathLike = "shaders") -> dict[str, tuple[Path, Path]]:
    """Map each scene shader name to its vertex and fragment file paths."""
    base = Path(shader_dir)
    return {
        name: (base / vertex, base / fragment)
        for name, (vertex, fragment) in _SHADER_FILES.items()
    }


class ShaderRegistry:
    """Holds the scene shaders: our, skybox, light and butterfly."""

    def __init__(self, shader_factory: ShaderFactory | None = None) -> None:
        self._factory: ShaderFactory = shader_factory or Shader
        self.our: Shader | None = None
        self.skybox: Shader | None = None
        self.light: Shader | None = None
        self.butterfly: Shader | None = None

    def init_shaders(self, shader_dir: str | os.PathLike = "shaders") -> None:
        """Release existing shaders and build all of them from *shader_dir*."""
        self.cleanup()
        try:
            for name, (vertex, fragment) in shader_paths(shader_dir).items():
                setattr(self, name, self._factory(vertex, fragment))
        except Exception:
            self.cleanup()
            raise

    def cleanup(self) -> None:
        """Delete every shader that is held."""
        for name in _SHADER_FILES:
            shader = getattr(self, name)
            if shader is not None:
                shader.delete()
                setattr(self, name, None)

    def __enter__(self) -> "ShaderRegistry":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cleanup()