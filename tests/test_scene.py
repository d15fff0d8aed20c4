import io
import struct

import numpy as np
import pytest
from PIL import Image

from gef.animation import Animation, ChannelAnimNode, ChannelKey, TransformAnimNode, Vector3Key
from gef.joint import Joint
from gef.mesh_data import (
    Aabb,
    MaterialData,
    MeshData,
    PrimitiveData,
    PrimitiveType,
    SkinnedVertex,
    VertexData,
)
from gef.scene import Scene
from gef.skeleton import Skeleton


def _mesh_data(material_name_id=0):
    aabb = Aabb()
    aabb.update((0.0, 0.0, 0.0))
    aabb.update((1.0, 2.0, 3.0))
    indices = struct.pack("<3I", 0, 1, 2)
    return MeshData(
        name_id=7,
        vertex_data=VertexData(vertices=bytes(range(96)), vertex_byte_size=32),
        primitives=[
            PrimitiveData(
                indices=indices,
                index_byte_size=4,
                material_name_id=material_name_id,
                type=PrimitiveType.TRIANGLE_LIST,
            )
        ],
        aabb=aabb,
    )


def _full_scene():
    scene = Scene()
    scene.string_table.append("tex.png")
    scene.material_data.append(MaterialData(diffuse_texture="tex.png", name_id=11, colour=0xFF00FF00))
    scene.mesh_data.append(_mesh_data(11))
    skeleton = Skeleton()
    skeleton.add_joint(Joint(name_id=5, parent=-1))
    skeleton.add_joint(Joint(name_id=6, parent=0))
    scene.skeletons.append(skeleton)
    animation = Animation(name_id=3)
    animation.add_node(
        TransformAnimNode(name_id=5, translation_keys=[Vector3Key((1.0, 2.0, 3.0), 0.5)])
    )
    animation.add_node(ChannelAnimNode(name_id=9, keys=[ChannelKey(0.25, 1.0)]))
    scene.animations[3] = animation
    return scene


def _round_trip(scene):
    buffer = io.BytesIO()
    scene.write(buffer)
    buffer.seek(0)
    loaded = Scene()
    loaded.read(buffer)
    return loaded


def test_header_and_string_table_bytes():
    scene = Scene()
    scene.string_table.append("a.png")
    scene.material_data.append(MaterialData(diffuse_texture="", name_id=1, colour=0))
    buffer = io.BytesIO()
    scene.write(buffer)
    data = buffer.getvalue()
    assert data[:20] == struct.pack("<5i", 0, 1, 0, 0, 1)
    assert data[20:26] == b"a.png\x00"


def test_round_trip_preserves_data():
    scene = _full_scene()
    loaded = _round_trip(scene)
    assert loaded.string_table == scene.string_table
    assert loaded.material_data == scene.material_data
    assert loaded.material_data_map[11] == scene.material_data[0]
    assert loaded.mesh_data == scene.mesh_data
    assert [j.name_id for j in loaded.skeletons[0].joints] == [5, 6]
    assert [j.parent for j in loaded.skeletons[0].joints] == [-1, 0]
    np.testing.assert_array_equal(loaded.skeletons[0].joints[1].inv_bind_pose, np.eye(4))
    assert loaded.animations[3].nodes == scene.animations[3].nodes


def test_round_trip_is_stable():
    scene = _full_scene()
    first = io.BytesIO()
    scene.write(first)
    second = io.BytesIO()
    _round_trip(scene).write(second)
    assert first.getvalue() == second.getvalue()


def test_file_round_trip(tmp_path):
    path = tmp_path / "scene.scn"
    _full_scene().write_to_file(path)
    loaded = Scene()
    loaded.read_from_file(path)
    assert loaded.mesh_data == _full_scene().mesh_data
    assert loaded.find_animation(3) is loaded.animations[3]
    assert loaded.find_animation(4) is None


def test_read_from_missing_file_raises(tmp_path):
    with pytest.raises(OSError):
        Scene().read_from_file(tmp_path / "missing.scn")


def test_truncated_stream_raises():
    buffer = io.BytesIO()
    _full_scene().write(buffer)
    truncated = io.BytesIO(buffer.getvalue()[:-3])
    with pytest.raises(EOFError):
        Scene().read(truncated)


def test_create_materials_loads_texture_once(tmp_path):
    path = tmp_path / "tex.png"
    Image.new("RGBA", (2, 3), (255, 0, 0, 255)).save(path)
    scene = Scene()
    scene.material_data = [
        MaterialData(diffuse_texture=str(path), name_id=1, colour=0x11223344),
        MaterialData(diffuse_texture=str(path), name_id=2, colour=0xFFFFFFFF),
        MaterialData(diffuse_texture="", name_id=3, colour=0),
    ]
    scene.create_materials()
    assert len(scene.materials) == 3
    assert len(scene.textures) == 1
    assert scene.materials_map[1].colour == 0x11223344
    assert scene.materials_map[1].texture is scene.materials_map[2].texture
    assert scene.materials_map[1].texture.width == 2
    assert scene.materials_map[3].texture is None
    assert scene.string_table == [str(path)]


def test_create_materials_missing_texture_leaves_untextured(tmp_path):
    scene = Scene()
    scene.material_data = [MaterialData(diffuse_texture=str(tmp_path / "none.png"), name_id=1)]
    scene.create_materials()
    assert scene.materials_map[1].texture is None
    assert scene.textures == []


def test_create_mesh_links_material_and_buffers():
    scene = Scene()
    scene.material_data = [MaterialData(name_id=11)]
    scene.create_materials()
    scene.mesh_data = [_mesh_data(11)]
    scene.create_meshes()
    mesh = scene.meshes[0]
    assert mesh.num_primitives == 1
    primitive = mesh.primitives[0]
    assert primitive.material is scene.materials_map[11]
    assert primitive.type == PrimitiveType.TRIANGLE_LIST
    assert primitive.index_buffer.values() == [0, 1, 2]
    assert mesh.vertex_buffer.num_vertices == 3
    assert mesh.aabb.max_vtx == (1.0, 2.0, 3.0)


def test_create_mesh_without_material_id():
    scene = Scene()
    mesh = scene.create_mesh(_mesh_data(0))
    assert mesh.primitives[0].material is None


def _skinned_scene(weights=(1.0, 1.0, 1.0, 1.0)):
    scene = Scene()
    scene.skin_cluster_name_ids = [100, 200]
    other = Skeleton()
    other.add_joint(Joint(name_id=300))
    skeleton = Skeleton()
    skeleton.add_joint(Joint(name_id=200))
    skeleton.add_joint(Joint(name_id=100, parent=0))
    scene.skeletons = [other, skeleton]
    vertex = SkinnedVertex(bone_indices=(0, 1, 0, 0), bone_weights=weights)
    scene.mesh_data = [
        MeshData(
            vertex_data=VertexData(
                vertices=SkinnedVertex.pack_all([vertex, vertex]),
                vertex_byte_size=SkinnedVertex.SIZE,
            )
        )
    ]
    return scene, skeleton


def test_find_skeleton():
    scene, skeleton = _skinned_scene()
    assert scene.find_skeleton(scene.mesh_data[0]) is skeleton
    assert scene.find_skeleton(_mesh_data()) is None


def test_fix_up_skin_weights():
    scene, _ = _skinned_scene()
    scene.fix_up_skin_weights()
    vertices = SkinnedVertex.unpack_all(scene.mesh_data[0].vertex_data.vertices)
    assert len(vertices) == 2
    for vertex in vertices:
        assert vertex.bone_indices == (1, 0, 1, 1)
        assert sum(vertex.bone_weights) == pytest.approx(1.0)
        assert vertex.bone_weights[0] == pytest.approx(0.25)


def test_fix_up_skin_weights_missing_joint_raises():
    scene, skeleton = _skinned_scene()
    scene.skin_cluster_name_ids = [100, 999]
    with pytest.raises(ValueError):
        scene.fix_up_skin_weights()


def test_fix_up_skin_weights_zero_weight_raises():
    scene, _ = _skinned_scene(weights=(0.0, 0.0, 0.0, 0.0))
    with pytest.raises(ValueError):
        scene.fix_up_skin_weights()