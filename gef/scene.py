"""Scenes: the meshes, materials, skeletons and animations stored in a scene file."""

from __future__ import annotations

import io
import struct
from os import PathLike
from typing import BinaryIO

from gef.animation import Animation
from gef.mesh import Material, Mesh
from gef.mesh_data import MaterialData, MeshData, SkinnedVertex
from gef.skeleton import Skeleton
from gef.texture import ImageData, Texture

_COUNTS = struct.Struct("<5i")


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise EOFError(f"expected {size} bytes, got {len(data)}")
    return data


def _read_cstring(stream: BinaryIO) -> str:
    chars = bytearray()
    while (char := _read_exact(stream, 1)) != b"\x00":
        chars += char
    return chars.decode("utf-8")


class Scene:
    """Everything loaded from one scene file, plus the objects created from it."""

    def __init__(self) -> None:
        self.mesh_data: list[MeshData] = []
        self.material_data: list[MaterialData] = []
        self.meshes: list[Mesh] = []
        self.textures: list[Texture] = []
        self.materials: list[Material] = []
        self.skeletons: list[Skeleton] = []
        self.animations: dict[int, Animation] = {}
        self.string_table: list[str] = []

        self.material_data_map: dict[int, MaterialData] = {}
        self.materials_map: dict[int, Material] = {}
        self.textures_map: dict[str, Texture] = {}

        self.skin_cluster_name_ids: list[int] = []

    def _add_string(self, text: str) -> None:
        if text not in self.string_table:
            self.string_table.append(text)

    def create_mesh(self, mesh_data: MeshData) -> Mesh:
        """Build a mesh from stored mesh data, linking primitives to created materials."""
        mesh = Mesh()
        mesh.aabb = mesh_data.aabb
        mesh.bounding_sphere = mesh_data.aabb.bounding_sphere()

        vertex_data = mesh_data.vertex_data
        if vertex_data.vertex_byte_size > 0:
            mesh.init_vertex_buffer(vertex_data.vertices, vertex_data.vertex_byte_size)

        mesh.allocate_primitives(len(mesh_data.primitives))
        for primitive, primitive_data in zip(mesh.primitives, mesh_data.primitives):
            primitive.type = primitive_data.type
            primitive.init_index_buffer(primitive_data.indices, primitive_data.index_byte_size)
            if primitive_data.material_name_id != 0:
                primitive.material = self.materials_map.get(primitive_data.material_name_id)
        return mesh

    def create_meshes(self) -> None:
        """Create a mesh for every stored mesh data entry."""
        self.meshes.extend(self.create_mesh(data) for data in self.mesh_data)

    def create_materials(self) -> None:
        """Create materials, loading each diffuse texture once.

        A texture file that cannot be loaded leaves its material untextured.
        """
        for data in self.material_data:
            material = Material(colour=data.colour)
            self.materials.append(material)
            self.materials_map[data.name_id] = material

            name = data.diffuse_texture
            if not name:
                continue
            texture = self.textures_map.get(name)
            if texture is not None:
                material.texture = texture
                continue
            self._add_string(name)
            try:
                image_data = ImageData.from_file(name)
            except OSError:
                continue
            if image_data.image is None:
                continue
            texture = Texture(image_data)
            self.textures.append(texture)
            self.textures_map[name] = texture
            material.texture = texture

    def read(self, stream: BinaryIO) -> None:
        """Read a scene from a binary stream, adding to what is already held."""
        (mesh_count, material_count, skeleton_count, animation_count, string_count) = (
            _COUNTS.unpack(_read_exact(stream, _COUNTS.size))
        )

        for _ in range(max(string_count, 0)):
            self._add_string(_read_cstring(stream))

        for _ in range(max(material_count, 0)):
            material = MaterialData.read(stream)
            self.material_data.append(material)
            self.material_data_map[material.name_id] = material

        for _ in range(max(mesh_count, 0)):
            self.mesh_data.append(MeshData.read(stream))

        for _ in range(max(skeleton_count, 0)):
            self.skeletons.append(Skeleton.read(stream))

        for _ in range(max(animation_count, 0)):
            animation = Animation.read(stream)
            self.animations[animation.name_id] = animation

    def write(self, stream: BinaryIO) -> None:
        """Write the scene's stored data to a binary stream."""
        stream.write(
            _COUNTS.pack(
                len(self.mesh_data),
                len(self.material_data),
                len(self.skeletons),
                len(self.animations),
                len(self.string_table),
            )
        )
        for text in self.string_table:
            stream.write(text.encode("utf-8") + b"\x00")
        for material in self.material_data:
            material.write(stream)
        for mesh in self.mesh_data:
            mesh.write(stream)
        for skeleton in self.skeletons:
            skeleton.write(stream)
        for name_id in sorted(self.animations):
            self.animations[name_id].write(stream)

    def read_from_file(self, path: str | PathLike[str]) -> None:
        with open(path, "rb") as file:
            data = file.read()
        self.read(io.BytesIO(data))

    def write_to_file(self, path: str | PathLike[str]) -> None:
        with open(path, "wb") as file:
            self.write(file)

    def find_skeleton(self, mesh_data: MeshData) -> Skeleton | None:
        """The skeleton holding the joint that the first vertex's first influence names."""
        vertex_data = mesh_data.vertex_data
        if vertex_data.num_vertices <= 0 or vertex_data.vertex_byte_size != SkinnedVertex.SIZE:
            return None
        first = SkinnedVertex.unpack_all(vertex_data.vertices[: SkinnedVertex.SIZE])[0]
        joint_name_id = self.skin_cluster_name_ids[first.bone_indices[0]]
        return next(
            (skeleton for skeleton in self.skeletons if skeleton.find_joint(joint_name_id) is not None),
            None,
        )

    def fix_up_skin_weights(self) -> None:
        """Normalise skin weights and turn skin cluster indices into joint indices."""
        for mesh_data in self.mesh_data:
            vertex_data = mesh_data.vertex_data
            if vertex_data.num_vertices <= 0 or vertex_data.vertex_byte_size != SkinnedVertex.SIZE:
                continue
            skeleton = self.find_skeleton(mesh_data)
            if skeleton is None:
                continue
            vertices = SkinnedVertex.unpack_all(vertex_data.vertices)
            for vertex in vertices:
                total = sum(vertex.bone_weights)
                if total == 0.0:
                    raise ValueError("vertex has a total bone weight of zero")
                w0, w1, w2, w3 = (weight / total for weight in vertex.bone_weights)
                vertex.bone_weights = (w0, w1, w2, w3)
                joint_indices = []
                for cluster_index in vertex.bone_indices:
                    name_id = self.skin_cluster_name_ids[cluster_index]
                    joint_index = skeleton.find_joint_index(name_id)
                    if joint_index is None:
                        raise ValueError(f"skeleton has no joint with name id {name_id}")
                    joint_indices.append(joint_index)
                j0, j1, j2, j3 = joint_indices
                vertex.bone_indices = (j0, j1, j2, j3)
            vertex_data.vertices = SkinnedVertex.pack_all(vertices)

    def find_animation(self, name_id: int) -> Animation | None:
        return self.animations.get(name_id)