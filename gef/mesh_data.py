"""Serialised mesh, primitive, vertex and material data, and axis-aligned bounds."""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import BinaryIO, ClassVar, Iterable

Vector3 = tuple[float, float, float]

FLT_MAX: float = struct.unpack("<f", b"\xff\xff\x7f\x7f")[0]

_MATERIAL_HEADER = struct.Struct("<II")
_PRIMITIVE_HEADER = struct.Struct("<Iiii")
_VERTEX_HEADER = struct.Struct("<ii")
_MESH_HEADER = struct.Struct("<Ii4f4f")
_SKINNED_VERTEX = struct.Struct("<6f4B4f2f")


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise EOFError(f"expected {size} bytes, got {len(data)}")
    return data


def _read_block(stream: BinaryIO, count: int, item_size: int, what: str) -> bytes:
    if count < 0 or item_size < 0:
        raise ValueError(f"invalid {what} block: {count} items of {item_size} bytes")
    return _read_exact(stream, count * item_size)


class PrimitiveType(IntEnum):
    UNDEFINED = -1
    TRIANGLE_LIST = 0
    TRIANGLE_STRIP = 1
    LINE_LIST = 2


@dataclass
class Aabb:
    """An axis-aligned bounding box; starts empty (min above max)."""

    min_vtx: Vector3 = (FLT_MAX, FLT_MAX, FLT_MAX)
    max_vtx: Vector3 = (-FLT_MAX, -FLT_MAX, -FLT_MAX)

    def update(self, point: Iterable[float]) -> None:
        """Grow the box to contain ``point`` (only x, y and z are used)."""
        x, y, z = tuple(point)[:3]
        lx, ly, lz = self.min_vtx
        hx, hy, hz = self.max_vtx
        self.min_vtx = (min(lx, x), min(ly, y), min(lz, z))
        self.max_vtx = (max(hx, x), max(hy, y), max(hz, z))

    def bounding_sphere(self) -> tuple[Vector3, float]:
        """Centre and radius of the sphere passing through the box's corners."""
        cx, cy, cz = ((lo + hi) * 0.5 for lo, hi in zip(self.min_vtx, self.max_vtx))
        radius = math.dist(self.min_vtx, self.max_vtx) * 0.5
        return (cx, cy, cz), radius


@dataclass
class SkinnedVertex:
    """A vertex with up to four bone influences, 52 bytes when packed."""

    position: Vector3 = (0.0, 0.0, 0.0)
    normal: Vector3 = (0.0, 0.0, 0.0)
    bone_indices: tuple[int, int, int, int] = (0, 0, 0, 0)
    bone_weights: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
    uv: tuple[float, float] = (0.0, 0.0)
    SIZE: ClassVar[int] = _SKINNED_VERTEX.size

    def pack(self) -> bytes:
        return _SKINNED_VERTEX.pack(
            *self.position, *self.normal, *self.bone_indices, *self.bone_weights, *self.uv
        )

    @classmethod
    def unpack_all(cls, data: bytes) -> list[SkinnedVertex]:
        if len(data) % cls.SIZE:
            raise ValueError(f"data length {len(data)} is not a multiple of {cls.SIZE}")
        return [
            cls(
                position=(r[0], r[1], r[2]),
                normal=(r[3], r[4], r[5]),
                bone_indices=(r[6], r[7], r[8], r[9]),
                bone_weights=(r[10], r[11], r[12], r[13]),
                uv=(r[14], r[15]),
            )
            for r in _SKINNED_VERTEX.iter_unpack(bytes(data))
        ]

    @classmethod
    def pack_all(cls, vertices: Iterable[SkinnedVertex]) -> bytes:
        return b"".join(vertex.pack() for vertex in vertices)


@dataclass
class MaterialData:
    """A material's name id, ABGR colour and diffuse texture file name."""

    diffuse_texture: str = ""
    name_id: int = 0
    colour: int = 0xFFFFFFFF

    @classmethod
    def read(cls, stream: BinaryIO) -> MaterialData:
        name_id, colour = _MATERIAL_HEADER.unpack(_read_exact(stream, _MATERIAL_HEADER.size))
        chars = bytearray()
        while (char := _read_exact(stream, 1)) != b"\x00":
            chars += char
        return cls(diffuse_texture=chars.decode("utf-8"), name_id=name_id, colour=colour)

    def write(self, stream: BinaryIO) -> None:
        stream.write(_MATERIAL_HEADER.pack(self.name_id, self.colour))
        stream.write(self.diffuse_texture.encode("utf-8") + b"\x00")


@dataclass
class PrimitiveData:
    """Raw index data of one primitive and the name id of its material."""

    indices: bytes = b""
    index_byte_size: int = 4
    material_name_id: int = 0
    type: PrimitiveType = PrimitiveType.UNDEFINED

    @property
    def num_indices(self) -> int:
        return len(self.indices) // self.index_byte_size if self.index_byte_size > 0 else 0

    @classmethod
    def read(cls, stream: BinaryIO) -> PrimitiveData:
        material_name_id, count, size, raw_type = _PRIMITIVE_HEADER.unpack(
            _read_exact(stream, _PRIMITIVE_HEADER.size)
        )
        try:
            primitive_type = PrimitiveType(raw_type)
        except ValueError:
            raise ValueError(f"unknown primitive type {raw_type}") from None
        indices = _read_block(stream, count, size, "index")
        return cls(
            indices=indices,
            index_byte_size=size,
            material_name_id=material_name_id,
            type=primitive_type,
        )

    def write(self, stream: BinaryIO) -> None:
        stream.write(
            _PRIMITIVE_HEADER.pack(
                self.material_name_id, self.num_indices, self.index_byte_size, int(self.type)
            )
        )
        stream.write(self.indices[: self.num_indices * self.index_byte_size])


@dataclass
class VertexData:
    """Raw vertex data and the size in bytes of one vertex."""

    vertices: bytes = b""
    vertex_byte_size: int = 0

    @property
    def num_vertices(self) -> int:
        return len(self.vertices) // self.vertex_byte_size if self.vertex_byte_size > 0 else 0

    @classmethod
    def read(cls, stream: BinaryIO) -> VertexData:
        count, size = _VERTEX_HEADER.unpack(_read_exact(stream, _VERTEX_HEADER.size))
        return cls(vertices=_read_block(stream, count, size, "vertex"), vertex_byte_size=size)

    def write(self, stream: BinaryIO) -> None:
        stream.write(_VERTEX_HEADER.pack(self.num_vertices, self.vertex_byte_size))
        stream.write(self.vertices[: self.num_vertices * self.vertex_byte_size])


@dataclass
class MeshData:
    """A mesh as stored in a scene file: vertices, primitives and bounds."""

    name_id: int = 0
    vertex_data: VertexData = field(default_factory=VertexData)
    primitives: list[PrimitiveData] = field(default_factory=list)
    aabb: Aabb = field(default_factory=Aabb)

    @classmethod
    def read(cls, stream: BinaryIO) -> MeshData:
        values = _MESH_HEADER.unpack(_read_exact(stream, _MESH_HEADER.size))
        name_id, count = values[0], values[1]
        aabb_min, aabb_max = values[2:6], values[6:10]
        vertex_data = VertexData.read(stream)
        primitives = [PrimitiveData.read(stream) for _ in range(max(count, 0))]
        aabb = Aabb()
        aabb.update(aabb_min)
        aabb.update(aabb_max)
        return cls(name_id=name_id, vertex_data=vertex_data, primitives=primitives, aabb=aabb)

    def write(self, stream: BinaryIO) -> None:
        stream.write(
            _MESH_HEADER.pack(
                self.name_id,
                len(self.primitives),
                *self.aabb.min_vtx[:3],
                1.0,
                *self.aabb.max_vtx[:3],
                1.0,
            )
        )
        self.vertex_data.write(stream)
        for primitive in self.primitives:
            primitive.write(stream)