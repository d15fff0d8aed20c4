"""Loading of Wavefront OBJ models and their MTL material libraries."""

from __future__ import annotations

from os import PathLike
from pathlib import Path
from typing import Iterator, Sequence, TypeVar

from gef.mesh import Material, Mesh, Model, Vertex
from gef.mesh_data import Aabb, PrimitiveType
from gef.texture import ImageData, Texture

NO_TEXTURE = -1

_T = TypeVar("_T")


def _take(tokens: Iterator[str], what: str) -> str:
    try:
        return next(tokens)
    except StopIteration:
        raise ValueError(f"unexpected end of file while reading {what}") from None


def _take_float(tokens: Iterator[str], what: str) -> float:
    token = _take(tokens, what)
    try:
        return float(token)
    except ValueError:
        raise ValueError(f"invalid number {token!r} in {what}") from None


def _parse_corner(token: str) -> tuple[int, int, int]:
    """Parse a ``position/uv/normal`` face corner."""
    parts = token.split("/")
    if len(parts) != 3:
        raise ValueError(f"face corner {token!r} is not of the form v/vt/vn")
    try:
        v, t, n = (int(part) for part in parts)
    except ValueError:
        raise ValueError(f"face corner {token!r} is not of the form v/vt/vn") from None
    return v, t, n


def _lookup(items: Sequence[_T], index: int, what: str) -> _T:
    if not 1 <= index <= len(items):
        raise ValueError(f"{what} index {index} out of range 1..{len(items)}")
    return items[index - 1]


def _load_image(path: str) -> ImageData:
    """Load a texture image; one that cannot be read gives empty image data."""
    try:
        return ImageData.from_file(path)
    except OSError:
        return ImageData()


def load_materials(path: str | PathLike[str]) -> tuple[dict[str, int], list[Texture]]:
    """Read an MTL file.

    Returns a map from material name to texture index (-1 for a material
    without a diffuse map) and the textures, made in material name order.
    """
    text = Path(path).read_text(encoding="utf-8")
    texture_names: dict[str, str] = {}
    current: str | None = None
    tokens = iter(text.split())
    for token in tokens:
        if token == "newmtl":
            current = _take(tokens, "newmtl")
            texture_names[current] = ""
        elif token == "map_Kd":
            texture_name = _take(tokens, "map_Kd")
            if current is None:
                raise ValueError("map_Kd appears before any newmtl")
            texture_names[current] = texture_name

    materials: dict[str, int] = {}
    textures: list[Texture] = []
    for name in sorted(texture_names):
        texture_name = texture_names[name]
        if texture_name:
            textures.append(Texture(_load_image(texture_name)))
            materials[name] = len(textures) - 1
        else:
            materials[name] = NO_TEXTURE
    return materials, textures


def _merge_materials(path: str, materials: dict[str, int], textures: list[Texture]) -> None:
    try:
        loaded, new_textures = load_materials(path)
    except OSError:
        return
    offset = len(textures)
    for name, index in loaded.items():
        materials[name] = NO_TEXTURE if index == NO_TEXTURE else index + offset
    textures.extend(new_textures)


def load_obj(path: str | PathLike[str]) -> Model:
    """Load a triangulated OBJ file into a model.

    Every ``usemtl`` starts a new primitive; faces must be triangles given
    as ``v/vt/vn`` corners. Material libraries are looked up by the name
    given in the file; a missing library is skipped.
    """
    text = Path(path).read_text(encoding="utf-8")

    materials: dict[str, int] = {}
    textures: list[Texture] = []
    positions: list[tuple[float, float, float]] = []
    normals: list[tuple[float, float, float]] = []
    uvs: list[tuple[float, float]] = []
    corners: list[tuple[int, int, int]] = []
    primitive_starts: list[int] = []
    texture_indices: list[int] = []

    tokens = iter(text.split())
    for token in tokens:
        if token == "mtllib":
            _merge_materials(_take(tokens, "mtllib"), materials, textures)
        elif token == "v":
            x, y, z = (_take_float(tokens, "v") for _ in range(3))
            positions.append((x, y, z))
        elif token == "vn":
            nx, ny, nz = (_take_float(tokens, "vn") for _ in range(3))
            normals.append((nx, ny, nz))
        elif token == "vt":
            u, v = (_take_float(tokens, "vt") for _ in range(2))
            uvs.append((u, v))
        elif token == "usemtl":
            name = _take(tokens, "usemtl")
            primitive_starts.append(len(corners))
            texture_indices.append(materials.setdefault(name, 0))
        elif token == "f":
            c0, c1, c2 = (_parse_corner(_take(tokens, "f")) for _ in range(3))
            corners.extend((c2, c1, c0))

    aabb = Aabb()
    vertices: list[Vertex] = []
    for position_index, uv_index, normal_index in corners:
        position = _lookup(positions, position_index, "position")
        u, v = _lookup(uvs, uv_index, "texture coordinate")
        normal = _lookup(normals, normal_index, "normal")
        vertices.append(Vertex(position, normal, (u, -v)))
        aabb.update(position)

    mesh = Mesh()
    mesh.aabb = aabb
    mesh.bounding_sphere = aabb.bounding_sphere()

    model = Model(mesh=mesh, textures=list(textures))
    for texture in textures:
        model.add_material(Material(texture=texture))

    mesh.init_vertex_buffer(vertices, Vertex.SIZE)
    mesh.allocate_primitives(len(primitive_starts))
    ends = primitive_starts[1:] + [len(corners)]
    for primitive, start, end, texture_index in zip(
        mesh.primitives, primitive_starts, ends, texture_indices
    ):
        primitive.type = PrimitiveType.TRIANGLE_LIST
        primitive.init_index_buffer(list(range(start, end)), 4)
        if texture_index == NO_TEXTURE:
            primitive.material = None
        elif texture_index < len(model.materials):
            primitive.material = model.materials[texture_index]
        else:
            raise ValueError(f"material index {texture_index} has no material")
    return model