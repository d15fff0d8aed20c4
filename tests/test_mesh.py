import struct

import pytest

from gef.mesh import IndexBuffer, Material, Mesh, Model, Primitive, Vertex, VertexBuffer
from gef.mesh_data import PrimitiveType, SkinnedVertex


def test_material_default_colour_is_opaque_white():
    assert Material().colour == 0xFFFFFFFF
    assert Material().texture is None


def test_primitive_index_buffer_from_ints():
    primitive = Primitive()
    buffer = primitive.init_index_buffer([0, 1, 2], 2)
    assert primitive.index_buffer is buffer
    assert buffer.num_indices == 3
    assert buffer.index_data == struct.pack("<3H", 0, 1, 2)
    assert buffer.values() == [0, 1, 2]


def test_primitive_index_buffer_from_bytes():
    data = struct.pack("<4I", 3, 2, 1, 0)
    buffer = Primitive().init_index_buffer(data, 4)
    assert buffer.values() == [3, 2, 1, 0]


def test_primitive_index_buffer_twice_raises():
    primitive = Primitive()
    primitive.init_index_buffer([0], 4)
    with pytest.raises(RuntimeError):
        primitive.init_index_buffer([1], 4)


def test_primitive_index_buffer_bad_size_raises():
    with pytest.raises(ValueError):
        Primitive().init_index_buffer([0, 1], 3)


def test_index_buffer_misaligned_raises():
    with pytest.raises(ValueError):
        IndexBuffer(b"\x00" * 5, 4)


def test_mesh_vertex_buffer_from_vertices():
    vertices = [
        Vertex((1.0, 2.0, 3.0), (0.0, 0.0, 1.0), (0.25, 0.5)),
        Vertex((4.0, 5.0, 6.0), (0.0, 1.0, 0.0), (0.75, 1.0)),
    ]
    mesh = Mesh()
    buffer = mesh.init_vertex_buffer(vertices)
    assert mesh.vertex_buffer is buffer
    assert buffer.num_vertices == 2
    assert buffer.vertex_byte_size == Vertex.SIZE
    assert Vertex.unpack_all(buffer.vertex_data) == vertices


def test_mesh_vertex_buffer_from_skinned_vertices():
    vertices = [SkinnedVertex(bone_indices=(1, 2, 3, 4)), SkinnedVertex()]
    buffer = Mesh().init_vertex_buffer(vertices)
    assert buffer.vertex_byte_size == SkinnedVertex.SIZE
    assert SkinnedVertex.unpack_all(buffer.vertex_data) == vertices


def test_mesh_vertex_buffer_raw_bytes_need_size():
    with pytest.raises(ValueError):
        Mesh().init_vertex_buffer(b"\x00" * 32)


def test_vertex_buffer_misaligned_raises():
    with pytest.raises(ValueError):
        VertexBuffer(b"\x00" * 33, 32)


def test_allocate_primitives_replaces_existing():
    mesh = Mesh()
    mesh.allocate_primitives(3)
    first = mesh.primitives[0]
    first.type = PrimitiveType.TRIANGLE_LIST
    mesh.allocate_primitives(2)
    assert mesh.num_primitives == 2
    assert all(p.type == PrimitiveType.UNDEFINED for p in mesh.primitives)
    assert first not in mesh.primitives


def test_allocate_negative_primitives_raises():
    with pytest.raises(ValueError):
        Mesh().allocate_primitives(-1)


def test_model_release_keeps_materials():
    material = Material(colour=0xFF0000FF)
    model = Model(mesh=Mesh(), textures=["texture"])
    model.add_material(material)
    model.release()
    assert model.mesh is None
    assert model.textures == []
    assert model.materials == [material]
    assert Vertex.unpack_all(Vertex.pack_all([])) == []