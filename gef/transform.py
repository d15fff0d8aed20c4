"""Scale, rotation and translation transforms, and the vector and quaternion helpers they use.

Matrices are 4x4 float32 arrays using row vectors: a point ``p`` is
transformed as ``p @ m`` and the translation sits in the last row.
Quaternions are ``(x, y, z, w)`` tuples.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

Vector3 = tuple[float, float, float]
Quaternion = tuple[float, float, float, float]

IDENTITY_QUATERNION: Quaternion = (0.0, 0.0, 0.0, 1.0)

_NLERP_THRESHOLD = 0.9995


def lerp(start: Sequence[float], end: Sequence[float], t: float) -> tuple[float, ...]:
    """Linearly interpolate two vectors component by component."""
    if len(start) != len(end):
        raise ValueError("vectors must have the same length")
    return tuple((1.0 - t) * a + t * b for a, b in zip(start, end))


def slerp(start: Sequence[float], end: Sequence[float], t: float) -> Quaternion:
    """Spherically interpolate two unit quaternions along the shortest arc."""
    a = np.asarray(start, dtype=np.float64)
    b = np.asarray(end, dtype=np.float64)
    dot = float(a @ b)
    if dot < 0.0:
        b = -b
        dot = -dot
    if dot > _NLERP_THRESHOLD:
        result = a + t * (b - a)
        length = float(np.linalg.norm(result))
        if length > 0.0:
            result = result / length
    else:
        theta = math.acos(min(dot, 1.0))
        sin_theta = math.sin(theta)
        result = (math.sin((1.0 - t) * theta) * a + math.sin(t * theta) * b) / sin_theta
    x, y, z, w = (float(v) for v in result)
    return (x, y, z, w)


def _rotation_columns(quaternion: Sequence[float]) -> np.ndarray:
    x, y, z, w = (float(v) for v in quaternion)
    return np.array(
        [
            [1 - 2 * (y * y + z * z), 2 * (x * y - z * w), 2 * (x * z + y * w)],
            [2 * (x * y + z * w), 1 - 2 * (x * x + z * z), 2 * (y * z - x * w)],
            [2 * (x * z - y * w), 2 * (y * z + x * w), 1 - 2 * (x * x + y * y)],
        ],
        dtype=np.float64,
    )


def quaternion_to_matrix(quaternion: Sequence[float]) -> np.ndarray:
    """Build a 4x4 row-vector rotation matrix from a unit quaternion."""
    matrix = np.eye(4, dtype=np.float32)
    matrix[:3, :3] = _rotation_columns(quaternion).T
    return matrix


def _matrix_to_quaternion(m: np.ndarray) -> Quaternion:
    """Convert a 3x3 column-vector rotation matrix to a quaternion."""
    trace = m[0, 0] + m[1, 1] + m[2, 2]
    if trace > 0.0:
        s = math.sqrt(trace + 1.0) * 2.0
        w = 0.25 * s
        x = (m[2, 1] - m[1, 2]) / s
        y = (m[0, 2] - m[2, 0]) / s
        z = (m[1, 0] - m[0, 1]) / s
    elif m[0, 0] > m[1, 1] and m[0, 0] > m[2, 2]:
        s = math.sqrt(1.0 + m[0, 0] - m[1, 1] - m[2, 2]) * 2.0
        w = (m[2, 1] - m[1, 2]) / s
        x = 0.25 * s
        y = (m[0, 1] + m[1, 0]) / s
        z = (m[0, 2] + m[2, 0]) / s
    elif m[1, 1] > m[2, 2]:
        s = math.sqrt(1.0 + m[1, 1] - m[0, 0] - m[2, 2]) * 2.0
        w = (m[0, 2] - m[2, 0]) / s
        x = (m[0, 1] + m[1, 0]) / s
        y = 0.25 * s
        z = (m[1, 2] + m[2, 1]) / s
    else:
        s = math.sqrt(1.0 + m[2, 2] - m[0, 0] - m[1, 1]) * 2.0
        w = (m[1, 0] - m[0, 1]) / s
        x = (m[0, 2] + m[2, 0]) / s
        y = (m[1, 2] + m[2, 1]) / s
        z = 0.25 * s
    q = np.array([x, y, z, w], dtype=np.float64)
    q /= np.linalg.norm(q)
    qx, qy, qz, qw = (float(v) for v in q)
    return (qx, qy, qz, qw)


@dataclass
class Transform:
    """A transform made of a scale, then a rotation, then a translation."""

    scale: Vector3 = (1.0, 1.0, 1.0)
    rotation: Quaternion = IDENTITY_QUATERNION
    translation: Vector3 = (0.0, 0.0, 0.0)

    def matrix(self) -> np.ndarray:
        """The 4x4 row-vector matrix of this transform."""
        result = np.eye(4, dtype=np.float32)
        scale = np.asarray(self.scale[:3], dtype=np.float64)
        result[:3, :3] = scale[:, None] * _rotation_columns(self.rotation).T
        result[3, :3] = self.translation[:3]
        return result

    @classmethod
    def from_matrix(cls, matrix: np.ndarray) -> Transform:
        """Decompose a scale-rotate-translate matrix."""
        m = np.asarray(matrix, dtype=np.float64)
        if m.shape != (4, 4):
            raise ValueError(f"expected a 4x4 matrix, got shape {m.shape}")
        rows = m[:3, :3]
        scale = np.linalg.norm(rows, axis=1)
        if np.any(scale == 0.0):
            raise ValueError("matrix has a zero scale axis")
        rotation_rows = rows / scale[:, None]
        sx, sy, sz = (float(v) for v in scale)
        tx, ty, tz = (float(v) for v in m[3, :3])
        return cls(
            scale=(sx, sy, sz),
            rotation=_matrix_to_quaternion(rotation_rows.T),
            translation=(tx, ty, tz),
        )

    def blend(self, start: Transform, end: Transform, t: float) -> None:
        """Set this transform to the blend of ``start`` and ``end`` at ``t``."""
        sx, sy, sz = lerp(start.scale, end.scale, t)
        tx, ty, tz = lerp(start.translation, end.translation, t)
        self.scale = (sx, sy, sz)
        self.rotation = slerp(start.rotation, end.rotation, t)
        self.translation = (tx, ty, tz)