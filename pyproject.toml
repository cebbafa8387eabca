[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "luminousfield"
version = "0.1.0"
description = "A small real-time 3D scene: a cubemap skybox, a flapping butterfly and a free-fly camera."
requires-python = ">=3.10"
keywords = ["opengl", "3d", "skybox", "cubemap", "butterfly", "animation", "pyglet"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: X11 Applications",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: 3D Rendering",
]
dependencies = [
    "pyglet",
    "numpy",
    "pillow",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
luminousfield = "luminousfield.app:main"

[tool.hatch.build.targets.wheel]
packages = ["luminousfield"]

[tool.pytest.ini_options]
addopts = "-ra"
