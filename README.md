# gef

Data model and maths for a small game engine framework: colours, sprites,
shader variable layout, skeletal animation, meshes, binary scene files,
Wavefront OBJ models and bitmap fonts.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## What is in it

- `gef.colour.Colour` packs and unpacks 32-bit colours with `get_rgba`,
  `get_abgr`, `from_rgba` and `from_abgr`.
- `gef.sprite.Sprite` and `gef.sprite.build_sprite_shader_data` turn a sprite into
  the 4x4 float32 matrix handed to the sprite shader (scaled rotation and source
  rectangle in rows 0 and 1, position in row 2, colour in row 3).
- `gef.shader_interface.ShaderInterface` declares vertex and pixel shader
  variables, vertex parameters and texture samplers, and lays the variables out
  in 16-byte constant-buffer blocks (`allocate_variable_data`), then packs
  values into that storage.
- `gef.transform.Transform`, with `lerp`, `slerp` and `quaternion_to_matrix`,
  holds the scale, rotation and translation of a joint. Matrices are 4x4
  float32 numpy arrays using row vectors, with the translation in the last row;
  quaternions are `(x, y, z, w)` tuples.
- `gef.joint.Joint` holds a joint's name id, inverse bind pose and parent index.
- `gef.animation.Animation` with `TransformAnimNode` and `ChannelAnimNode`
  samples keyframed animation (`translation_at`, `rotation_at`, `scale_at`,
  `value_at`) and reads and writes it in the binary scene format.
- `gef.skeleton.Skeleton` and `gef.skeleton.SkeletonPose` build bind poses, pose
  a skeleton from an animation, blend poses and compute global joint matrices;
  `joint_transform_from_anim` and `global_joint_transform_from_anim` sample a
  single joint.
- `gef.shader_data` holds point lights, ambient light and bone matrices for
  the 3D shaders.
- `gef.skinned_mesh_instance.SkinnedMeshInstance` turns a pose into the bone
  matrices a skinning shader needs.
- `gef.mesh_data` reads and writes stored mesh, vertex, primitive and material
  data and has `Aabb` bounds; `gef.mesh` has `Mesh`, `Primitive`, `Material`,
  `Model` and byte-backed vertex and index buffers; `gef.texture` loads images
  as RGBA (`ImageData.from_file`) and builds checkerboard textures.
- `gef.scene.Scene` reads and writes whole scene files with a string table,
  materials, meshes, skeletons and animations, creates meshes and materials
  from them, and normalises skin weights.
- `gef.obj_loader.load_obj` loads a triangulated OBJ model with its MTL
  materials; `load_materials` reads an MTL file on its own.
- `gef.font.Font` parses BMFont text descriptions (`parse_font`) and lays out
  text as a list of sprites.

## Example

```python
from gef.scene import Scene

scene = Scene()
scene.read_from_file("character.scn")
scene.create_materials()
scene.create_meshes()

for name_id, animation in scene.animations.items():
    print(name_id, animation.duration)
```

Sampling an animated skeleton:

```python
from gef.skeleton import SkeletonPose

skeleton = scene.skeletons[0]
bind_pose = SkeletonPose()
bind_pose.create_bind_pose(skeleton)

pose = SkeletonPose()
pose.create_bind_pose(skeleton)
animation = next(iter(scene.animations.values()))
pose.set_pose_from_anim(animation, bind_pose, 0.5, True)
print(pose.global_pose[0])
```

Laying out text with a bitmap font:

```python
from gef.font import Font, TextJustification

font = Font.load("fonts/comic_sans")   # reads comic_sans.fnt and comic_sans_0.png
sprites = font.layout_text((480.0, 20.0, -0.9), 1.0, 0xffffffff,
                           TextJustification.CENTRE, "Hello")
```

## What it does not do

The package prepares and holds the data a renderer uses; it draws nothing.
There is no window, graphics device, shader compilation or audio. Textures,
vertex buffers and index buffers are plain bytes in memory, and
`ShaderInterface` only computes the layout and contents of shader variables;
sending them to a GPU is left to the caller. There is no command-line tool.