"""Keyframe animations: transform and scalar channels sampled over time."""

from __future__ import annotations

import copy
import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import IntEnum
from typing import BinaryIO, Callable, ClassVar, Sequence, TypeVar

from gef.transform import IDENTITY_QUATERNION, Quaternion, Vector3, lerp, slerp

_U32 = struct.Struct("<I")
_I32 = struct.Struct("<i")
_NODE_HEADER = struct.Struct("<Ii")
_ANIM_HEADER = struct.Struct("<Iffi")
_VECTOR_KEY = struct.Struct("<5f")
_CHANNEL_KEY = struct.Struct("<2f")


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise EOFError(f"expected {size} bytes, got {len(data)}")
    return data


def _read_count(stream: BinaryIO) -> int:
    (count,) = _I32.unpack(_read_exact(stream, _I32.size))
    return count


def _read_records(stream: BinaryIO, record: struct.Struct) -> list[tuple[float, ...]]:
    count = _read_count(stream)
    if count <= 0:
        return []
    return list(record.iter_unpack(_read_exact(stream, record.size * count)))


class AnimNodeType(IntEnum):
    TRANSFORM = 0
    CHANNEL = 1


@dataclass
class Vector3Key:
    value: Vector3
    time: float


@dataclass
class QuaternionKey:
    value: Quaternion
    time: float


@dataclass
class ChannelKey:
    value: float
    time: float


_K = TypeVar("_K", Vector3Key, QuaternionKey, ChannelKey)
_V = TypeVar("_V")


def _sample(keys: Sequence[_K], time: float, interpolate: Callable, default: _V) -> _V:
    """Interpolate between the keys around ``time``, holding the end keys outside them."""
    if not keys:
        return default
    for index, key in enumerate(keys):
        if key.time > time:
            if index == 0:
                return key.value
            prev = keys[index - 1]
            t = (time - prev.time) / (key.time - prev.time)
            return interpolate(prev.value, key.value, t)
    return keys[-1].value


def _last_time(keys: Sequence[_K]) -> float:
    return max(keys[-1].time, 0.0) if keys else 0.0


@dataclass
class AnimNode(ABC):
    """An animated element, identified by the name id of what it drives."""

    name_id: int = 0
    node_type: ClassVar[AnimNodeType]

    @property
    def type(self) -> AnimNodeType:
        return self.node_type

    @abstractmethod
    def max_key_time(self) -> float:
        """Time of the latest key, or 0 if there are none."""

    def write(self, stream: BinaryIO) -> None:
        stream.write(_NODE_HEADER.pack(self.name_id, int(self.node_type)))
        self._write_body(stream)

    @abstractmethod
    def _write_body(self, stream: BinaryIO) -> None: ...

    @abstractmethod
    def _read_body(self, stream: BinaryIO) -> None: ...


def _write_vector_keys(stream: BinaryIO, keys: Sequence[Vector3Key]) -> None:
    stream.write(_I32.pack(len(keys)))
    for key in keys:
        x, y, z = key.value[:3]
        stream.write(_VECTOR_KEY.pack(x, y, z, 1.0, key.time))


def _read_vector_keys(stream: BinaryIO) -> list[Vector3Key]:
    return [Vector3Key((x, y, z), time) for x, y, z, _w, time in _read_records(stream, _VECTOR_KEY)]


@dataclass
class TransformAnimNode(AnimNode):
    """Scale, rotation and translation keys for one joint."""

    scale_keys: list[Vector3Key] = field(default_factory=list)
    rotation_keys: list[QuaternionKey] = field(default_factory=list)
    translation_keys: list[Vector3Key] = field(default_factory=list)
    node_type: ClassVar[AnimNodeType] = AnimNodeType.TRANSFORM

    def translation_at(self, time: float) -> Vector3:
        return _sample(self.translation_keys, time, lerp, (0.0, 0.0, 0.0))

    def scale_at(self, time: float) -> Vector3:
        return _sample(self.scale_keys, time, lerp, (0.0, 0.0, 0.0))

    def rotation_at(self, time: float) -> Quaternion:
        return _sample(self.rotation_keys, time, slerp, IDENTITY_QUATERNION)

    def max_key_time(self) -> float:
        return max(
            _last_time(self.scale_keys),
            _last_time(self.rotation_keys),
            _last_time(self.translation_keys),
        )

    def _write_body(self, stream: BinaryIO) -> None:
        _write_vector_keys(stream, self.scale_keys)
        stream.write(_I32.pack(len(self.rotation_keys)))
        for key in self.rotation_keys:
            stream.write(_VECTOR_KEY.pack(*key.value, key.time))
        _write_vector_keys(stream, self.translation_keys)

    def _read_body(self, stream: BinaryIO) -> None:
        self.scale_keys = _read_vector_keys(stream)
        self.rotation_keys = [
            QuaternionKey((x, y, z, w), time)
            for x, y, z, w, time in _read_records(stream, _VECTOR_KEY)
        ]
        self.translation_keys = _read_vector_keys(stream)


def _lerp_scalar(a: float, b: float, t: float) -> float:
    return (1.0 - t) * a + t * b


@dataclass
class ChannelAnimNode(AnimNode):
    """Keys for a single scalar value."""

    keys: list[ChannelKey] = field(default_factory=list)
    node_type: ClassVar[AnimNodeType] = AnimNodeType.CHANNEL

    def value_at(self, time: float) -> float:
        return _sample(self.keys, time, _lerp_scalar, 0.0)

    def max_key_time(self) -> float:
        return _last_time(self.keys)

    def _write_body(self, stream: BinaryIO) -> None:
        stream.write(_I32.pack(len(self.keys)))
        for key in self.keys:
            stream.write(_CHANNEL_KEY.pack(key.value, key.time))

    def _read_body(self, stream: BinaryIO) -> None:
        self.keys = [ChannelKey(value, time) for value, time in _read_records(stream, _CHANNEL_KEY)]


_NODE_CLASSES: dict[AnimNodeType, type[AnimNode]] = {
    AnimNodeType.TRANSFORM: TransformAnimNode,
    AnimNodeType.CHANNEL: ChannelAnimNode,
}


@dataclass
class Animation:
    """A named set of animation nodes keyed by the name id they drive."""

    name_id: int = 0
    start_time: float = 0.0
    end_time: float = 0.0
    duration: float = 0.0
    nodes: dict[int, AnimNode] = field(default_factory=dict)

    def add_node(self, node: AnimNode | None) -> None:
        """Add a node unless one with the same name id is already present."""
        if node is not None and node.name_id not in self.nodes:
            self.nodes[node.name_id] = node

    def find_node(self, name_id: int) -> AnimNode | None:
        return self.nodes.get(name_id)

    def calculate_duration(self) -> None:
        """Derive the duration, from key times if no start and end are set."""
        if self.start_time == 0.0 and self.end_time == 0.0:
            self.duration = max((node.max_key_time() for node in self.nodes.values()), default=0.0)
            self.duration = max(self.duration, 0.0)
            self.start_time = 0.0
            self.end_time = self.duration
        else:
            self.duration = self.end_time - self.start_time

    def copy(self) -> Animation:
        """An independent deep copy."""
        return copy.deepcopy(self)

    @classmethod
    def read(cls, stream: BinaryIO) -> Animation:
        name_id, start_time, end_time, count = _ANIM_HEADER.unpack(
            _read_exact(stream, _ANIM_HEADER.size)
        )
        animation = cls(name_id=name_id, start_time=start_time, end_time=end_time)
        for _ in range(count):
            node_name_id, raw_type = _NODE_HEADER.unpack(_read_exact(stream, _NODE_HEADER.size))
            try:
                node_class = _NODE_CLASSES[AnimNodeType(raw_type)]
            except ValueError:
                raise ValueError(f"unknown animation node type {raw_type}") from None
            node = node_class(name_id=node_name_id)
            node._read_body(stream)
            animation.add_node(node)
        animation.calculate_duration()
        return animation

    def write(self, stream: BinaryIO) -> None:
        stream.write(_ANIM_HEADER.pack(self.name_id, self.start_time, self.end_time, len(self.nodes)))
        for name_id in sorted(self.nodes):
            self.nodes[name_id].write(stream)