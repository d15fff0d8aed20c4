"""Screen-space sprites and the per-sprite data sent to the sprite shader."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

import numpy as np

from gef.colour import Colour


@dataclass
class Sprite:
    """A textured quad placed on screen; ``z`` of the position orders sprites by depth."""

    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    width: float = 0.0
    height: float = 0.0
    colour: int = 0xFFFFFFFF  # ABGR
    rotation: float = 0.0  # radians
    uv_position: tuple[float, float] = (0.0, 0.0)
    uv_width: float = 1.0
    uv_height: float = 1.0
    texture: Any = None


def build_sprite_shader_data(sprite: Sprite) -> np.ndarray:
    """Pack a sprite into the 4x4 float matrix the sprite shader reads.

    Row 0 and 1 hold the scaled rotation in columns 0-1 and the source
    rectangle in columns 2-3, row 2 holds the position and row 3 the colour.
    """
    data = np.zeros((4, 4), dtype=np.float32)
    x, y, z = sprite.position
    data[2, 0] = x
    data[2, 1] = y
    data[2, 2] = z

    if sprite.rotation == 0:
        data[0, 0] = sprite.width
        data[0, 1] = 0.0
        data[1, 0] = 0.0
        data[1, 1] = sprite.height
    else:
        cos_r = math.cos(sprite.rotation)
        sin_r = math.sin(sprite.rotation)
        data[0, 0] = cos_r * sprite.width
        data[0, 1] = sin_r * sprite.width
        data[1, 0] = -sin_r * sprite.height
        data[1, 1] = cos_r * sprite.height

    data[0, 2], data[0, 3] = sprite.uv_position
    data[1, 2] = sprite.uv_width
    data[1, 3] = sprite.uv_height

    data[3, :] = Colour.from_abgr(sprite.colour).as_rgba_vector()
    return data