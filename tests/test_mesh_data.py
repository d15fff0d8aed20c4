import io
import struct

import pytest

from gef.mesh_data import (
    Aabb,
    MaterialData,
    MeshData,
    PrimitiveData,
    PrimitiveType,
    SkinnedVertex,
    VertexData,
)


def _round_trip(obj):
    buffer = io.BytesIO()
    obj.write(buffer)
    buffer.seek(0)
    result = type(obj).read(buffer)
    assert buffer.read() == b""
    return result


def test_material_wire_format():
    material = MaterialData(diffuse_texture="a.png", name_id=7, colour=0xFF00FF00)
    buffer = io.BytesIO()
    material.write(buffer)
    assert buffer.getvalue() == struct.pack("<II", 7, 0xFF00FF00) + b"a.png\x00"


def test_material_round_trip():
    material = MaterialData(diffuse_texture="textures/wood.png", name_id=42, colour=0x11223344)
    assert _round_trip(material) == material


def test_material_missing_terminator_raises():
    data = struct.pack("<II", 1, 2) + b"abc"
    with pytest.raises(EOFError):
        MaterialData.read(io.BytesIO(data))


def test_primitive_round_trip():
    indices = struct.pack("<6H", 0, 1, 2, 2, 1, 3)
    primitive = PrimitiveData(
        indices=indices, index_byte_size=2, material_name_id=9, type=PrimitiveType.TRIANGLE_LIST
    )
    result = _round_trip(primitive)
    assert result == primitive
    assert result.num_indices == 6


def test_primitive_unknown_type_raises():
    data = struct.pack("<Iiii", 0, 0, 4, 17)
    with pytest.raises(ValueError):
        PrimitiveData.read(io.BytesIO(data))


def test_primitive_truncated_indices_raise():
    data = struct.pack("<Iiii", 0, 3, 4, 0) + b"\x00" * 5
    with pytest.raises(EOFError):
        PrimitiveData.read(io.BytesIO(data))


def test_vertex_data_round_trip():
    vertices = bytes(range(24))
    vertex_data = VertexData(vertices=vertices, vertex_byte_size=8)
    result = _round_trip(vertex_data)
    assert result.vertices == vertices
    assert result.num_vertices == 3


def test_aabb_update_contains_points():
    aabb = Aabb()
    points = [(1.0, -2.0, 3.0), (-4.0, 5.0, 0.5), (0.0, 0.0, 0.0)]
    for point in points:
        aabb.update(point)
    for point in points:
        assert all(lo <= p <= hi for lo, p, hi in zip(aabb.min_vtx, point, aabb.max_vtx))
    assert aabb.min_vtx == (-4.0, -2.0, 0.0)
    assert aabb.max_vtx == (1.0, 5.0, 3.0)


def test_aabb_bounding_sphere_centre():
    aabb = Aabb()
    aabb.update((-1.0, -1.0, -1.0))
    aabb.update((1.0, 1.0, 1.0))
    centre, radius = aabb.bounding_sphere()
    assert centre == (0.0, 0.0, 0.0)
    assert radius == pytest.approx(3 ** 0.5)


def test_mesh_data_round_trip():
    aabb = Aabb()
    aabb.update((-1.5, 0.0, 2.0))
    aabb.update((4.0, 3.25, 8.0))
    mesh = MeshData(
        name_id=5,
        vertex_data=VertexData(vertices=bytes(range(64)), vertex_byte_size=32),
        primitives=[
            PrimitiveData(struct.pack("<3I", 0, 1, 2), 4, 11, PrimitiveType.TRIANGLE_LIST),
            PrimitiveData(struct.pack("<2I", 0, 1), 4, 12, PrimitiveType.LINE_LIST),
        ],
        aabb=aabb,
    )
    result = _round_trip(mesh)
    assert result == mesh


def test_mesh_data_truncated_raises():
    with pytest.raises(EOFError):
        MeshData.read(io.BytesIO(b"\x00" * 10))


def test_skinned_vertex_size_matches_layout():
    vertex = SkinnedVertex(
        (1.0, 2.0, 3.0), (0.0, 1.0, 0.0), (4, 5, 6, 7), (0.5, 0.25, 0.25, 0.0), (0.5, 0.75)
    )
    data = SkinnedVertex.pack_all([vertex])
    assert len(data) == 52
    assert SkinnedVertex.SIZE == 52
    assert data[24:28] == bytes((4, 5, 6, 7))
    assert struct.unpack_from("<2f", data, 44) == (0.5, 0.75)


def test_skinned_vertex_round_trip():
    vertices = [
        SkinnedVertex((1.0, 2.0, 3.0), (0.0, 1.0, 0.0), (0, 1, 2, 3), (0.5, 0.25, 0.25, 0.0), (0.5, 0.75)),
        SkinnedVertex((-1.0, 0.0, 4.5), (1.0, 0.0, 0.0), (7, 0, 0, 0), (1.0, 0.0, 0.0, 0.0), (0.0, 1.0)),
    ]
    data = SkinnedVertex.pack_all(vertices)
    assert len(data) == SkinnedVertex.SIZE * len(vertices)
    assert SkinnedVertex.unpack_all(data) == vertices


def test_skinned_vertex_misaligned_data_raises():
    with pytest.raises(ValueError):
        SkinnedVertex.unpack_all(b"\x00" * (SkinnedVertex.SIZE + 1))