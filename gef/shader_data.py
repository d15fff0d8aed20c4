"""Scene lighting and skinning data handed to the 3D shaders."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from gef.colour import Colour


@dataclass
class PointLight:
    colour: Colour = field(default_factory=Colour)
    position: tuple[float, float, float] = (0.0, 0.0, 0.0)


def _black() -> Colour:
    return Colour(0.0, 0.0, 0.0, 1.0)


@dataclass
class Default3DShaderData:
    """Ambient light and point lights for the default 3D shader."""

    ambient_light_colour: Colour = field(default_factory=_black)
    point_lights: list[PointLight] = field(default_factory=list)

    @property
    def num_point_lights(self) -> int:
        return len(self.point_lights)

    def add_point_light(self, light: PointLight) -> int:
        """Add a light and return its index."""
        self.point_lights.append(light)
        return len(self.point_lights) - 1

    def clean_up(self) -> None:
        self.point_lights.clear()


@dataclass
class SkinnedMeshShaderData(Default3DShaderData):
    """Lighting data plus the bone matrices of a skinned mesh."""

    bone_matrices: Sequence[np.ndarray] | None = None