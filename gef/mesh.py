"""Meshes, their primitives and buffers, materials and models."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Any, ClassVar, Iterable, Sequence

from gef.mesh_data import Aabb, PrimitiveType, Vector3

_VERTEX = struct.Struct("<8f")
_INDEX_FORMATS = {1: "B", 2: "H", 4: "I"}

_BytesLike = (bytes, bytearray, memoryview)


@dataclass
class Vertex:
    """A position, normal and texture coordinate, 32 bytes when packed."""

    position: Vector3 = (0.0, 0.0, 0.0)
    normal: Vector3 = (0.0, 0.0, 0.0)
    uv: tuple[float, float] = (0.0, 0.0)
    SIZE: ClassVar[int] = _VERTEX.size

    def pack(self) -> bytes:
        return _VERTEX.pack(*self.position, *self.normal, *self.uv)

    @classmethod
    def unpack_all(cls, data: bytes) -> list[Vertex]:
        if len(data) % cls.SIZE:
            raise ValueError(f"data length {len(data)} is not a multiple of {cls.SIZE}")
        return [
            cls((r[0], r[1], r[2]), (r[3], r[4], r[5]), (r[6], r[7]))
            for r in _VERTEX.iter_unpack(bytes(data))
        ]

    @classmethod
    def pack_all(cls, vertices: Iterable[Vertex]) -> bytes:
        return b"".join(vertex.pack() for vertex in vertices)


@dataclass
class Material:
    """A texture and an ABGR colour."""

    texture: Any = None
    colour: int = 0xFFFFFFFF


def _check_layout(data: bytes, item_size: int, what: str) -> None:
    if item_size <= 0:
        raise ValueError(f"{what} size must be positive, got {item_size}")
    if len(data) % item_size:
        raise ValueError(f"{what} data length {len(data)} is not a multiple of {item_size}")


@dataclass
class IndexBuffer:
    index_data: bytes
    index_byte_size: int

    def __post_init__(self) -> None:
        _check_layout(self.index_data, self.index_byte_size, "index")

    @property
    def num_indices(self) -> int:
        return len(self.index_data) // self.index_byte_size

    def values(self) -> list[int]:
        """The indices as integers."""
        code = _INDEX_FORMATS.get(self.index_byte_size)
        if code is None:
            raise ValueError(f"cannot decode indices of {self.index_byte_size} bytes")
        return list(struct.unpack(f"<{self.num_indices}{code}", self.index_data))


@dataclass
class VertexBuffer:
    vertex_data: bytes
    vertex_byte_size: int

    def __post_init__(self) -> None:
        _check_layout(self.vertex_data, self.vertex_byte_size, "vertex")

    @property
    def num_vertices(self) -> int:
        return len(self.vertex_data) // self.vertex_byte_size


@dataclass
class Primitive:
    """A run of indices into a mesh's vertices drawn with one material."""

    material: Material | None = None
    type: PrimitiveType = PrimitiveType.UNDEFINED
    index_buffer: IndexBuffer | None = None

    def init_index_buffer(
        self, indices: bytes | Sequence[int], index_byte_size: int = 4
    ) -> IndexBuffer:
        """Create the index buffer from raw bytes or a sequence of integers."""
        if self.index_buffer is not None:
            raise RuntimeError("primitive already has an index buffer")
        if isinstance(indices, _BytesLike):
            data = bytes(indices)
        else:
            code = _INDEX_FORMATS.get(index_byte_size)
            if code is None:
                raise ValueError(f"unsupported index size {index_byte_size}")
            values = list(indices)
            data = struct.pack(f"<{len(values)}{code}", *values)
        self.index_buffer = IndexBuffer(data, index_byte_size)
        return self.index_buffer


class Mesh:
    """Vertices shared by a list of primitives, with bounds."""

    def __init__(self) -> None:
        self.primitives: list[Primitive] = []
        self.aabb = Aabb()
        self.bounding_sphere: tuple[Vector3, float] | None = None
        self.vertex_buffer: VertexBuffer | None = None

    @property
    def num_primitives(self) -> int:
        return len(self.primitives)

    def init_vertex_buffer(
        self, vertices: bytes | Sequence[Any], vertex_byte_size: int | None = None
    ) -> VertexBuffer:
        """Create the vertex buffer from raw bytes or from vertex objects with ``pack()``."""
        if isinstance(vertices, _BytesLike):
            if vertex_byte_size is None:
                raise ValueError("vertex_byte_size is needed for raw vertex data")
            data = bytes(vertices)
        else:
            items = list(vertices)
            data = b"".join(vertex.pack() for vertex in items)
            if vertex_byte_size is None:
                vertex_byte_size = len(data) // len(items) if items else Vertex.SIZE
        self.vertex_buffer = VertexBuffer(data, vertex_byte_size)
        return self.vertex_buffer

    def allocate_primitives(self, count: int) -> None:
        """Replace the primitives with ``count`` new, empty ones."""
        if count < 0:
            raise ValueError(f"count must not be negative, got {count}")
        self.primitives = [Primitive() for _ in range(count)]


@dataclass
class Model:
    """A mesh with the textures and materials it uses."""

    mesh: Mesh | None = None
    textures: list[Any] = field(default_factory=list)
    materials: list[Material] = field(default_factory=list)

    def add_material(self, material: Material) -> None:
        self.materials.append(material)

    def release(self) -> None:
        """Drop the mesh and textures."""
        self.textures.clear()
        self.mesh = None