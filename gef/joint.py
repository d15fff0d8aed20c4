"""Skeleton joints and their binary form."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import BinaryIO

import numpy as np

from gef.transform import Transform

JointPose = Transform

_HEADER = struct.Struct("<Ii")
_MATRIX_BYTES = 64


def _identity() -> np.ndarray:
    return np.eye(4, dtype=np.float32)


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise EOFError(f"expected {size} bytes, got {len(data)}")
    return data


@dataclass
class Joint:
    """A joint: its name id, inverse bind pose and parent index (-1 for a root)."""

    name_id: int = 0
    inv_bind_pose: np.ndarray = field(default_factory=_identity)
    parent: int = -1

    @classmethod
    def read(cls, stream: BinaryIO) -> Joint:
        name_id, parent = _HEADER.unpack(_read_exact(stream, _HEADER.size))
        matrix = np.frombuffer(_read_exact(stream, _MATRIX_BYTES), dtype="<f4").reshape(4, 4)
        return cls(name_id=name_id, inv_bind_pose=matrix.astype(np.float32), parent=parent)

    def write(self, stream: BinaryIO) -> None:
        stream.write(_HEADER.pack(self.name_id, self.parent))
        stream.write(np.asarray(self.inv_bind_pose, dtype="<f4").reshape(4, 4).tobytes())