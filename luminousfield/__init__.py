"""A real-time 3D scene with a skybox, a flapping butterfly and a free-fly camera."""

__version__ = "0.1.0"