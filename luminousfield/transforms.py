"""4x4 matrix and vector helpers for a right-handed, OpenGL-style scene.

Matrices are numpy arrays that act on column vectors (``matrix @ v``).
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

ArrayLike = Sequence[float] | np.ndarray


def _vec3(value: ArrayLike) -> np.ndarray:
    vector = np.asarray(value, dtype=float)
    if vector.shape != (3,):
        raise ValueError(f"expected a 3-component vector, got shape {vector.shape}")
    return vector


def _mat4(value: ArrayLike) -> np.ndarray:
    matrix = np.asarray(value, dtype=float)
    if matrix.shape != (4, 4):
        raise ValueError(f"expected a 4x4 matrix, got shape {matrix.shape}")
    return matrix


def normalize(vector: ArrayLike) -> np.ndarray:
    """Return *vector* scaled to unit length."""
    v = np.asarray(vector, dtype=float)
    length = float(np.linalg.norm(v))
    if length == 0.0 or not math.isfinite(length):
        raise ValueError("cannot normalize a zero-length or non-finite vector")
    return v / length


def perspective(fov_y: float, aspect: float, near: float, far: float) -> np.ndarray:
    """Perspective projection mapping depth [near, far] onto NDC [-1, 1]."""
    if aspect == 0:
        raise ValueError("aspect ratio must be non-zero")
    if near == far:
        raise ValueError("near and far planes must differ")
    tan_half = math.tan(fov_y / 2.0)
    if tan_half == 0:
        raise ValueError("field of view must be non-zero")
    result = np.zeros((4, 4))
    result[0, 0] = 1.0 / (aspect * tan_half)
    result[1, 1] = 1.0 / tan_half
    result[2, 2] = -(far + near) / (far - near)
    result[2, 3] = -(2.0 * far * near) / (far - near)
    result[3, 2] = -1.0
    return result


def look_at(eye: ArrayLike, center: ArrayLike, up: ArrayLike) -> np.ndarray:
    """View matrix placing the camera at *eye* looking towards *center*."""
    eye_v = _vec3(eye)
    forward = normalize(_vec3(center) - eye_v)
    side = normalize(np.cross(forward, _vec3(up)))
    true_up = np.cross(side, forward)
    result = np.identity(4)
    result[0, :3] = side
    result[1, :3] = true_up
    result[2, :3] = -forward
    result[0, 3] = -np.dot(side, eye_v)
    result[1, 3] = -np.dot(true_up, eye_v)
    result[2, 3] = np.dot(forward, eye_v)
    return result


def translate(matrix: ArrayLike, offset: ArrayLike) -> np.ndarray:
    """Return *matrix* followed by a translation by *offset* in local space."""
    translation = np.identity(4)
    translation[:3, 3] = _vec3(offset)
    return _mat4(matrix) @ translation


def rotate(matrix: ArrayLike, angle: float, axis: ArrayLike) -> np.ndarray:
    """Return *matrix* followed by a rotation of *angle* radians about *axis*."""
    a = normalize(_vec3(axis))
    c = math.cos(angle)
    s = math.sin(angle)
    cross_matrix = np.array(
        [
            [0.0, -a[2], a[1]],
            [a[2], 0.0, -a[0]],
            [-a[1], a[0], 0.0],
        ]
    )
    rotation = np.identity(4)
    rotation[:3, :3] = c * np.identity(3) + s * cross_matrix + (1.0 - c) * np.outer(a, a)
    return _mat4(matrix) @ rotation


def strip_translation(matrix: ArrayLike) -> np.ndarray:
    """Keep only the upper-left 3x3 part of *matrix*, as used for skyboxes."""
    result = np.identity(4)
    result[:3, :3] = _mat4(matrix)[:3, :3]
    return result