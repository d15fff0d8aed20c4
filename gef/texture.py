"""Image data loaded from PNG files and textures built from it."""

from __future__ import annotations

from dataclasses import dataclass
from os import PathLike

import numpy as np
from PIL import Image

_WHITE = 0xFFFFFFFF
_BLACK = 0xFF000000


@dataclass
class ImageData:
    """Pixel data of an image: ``image`` holds RGBA bytes, row by row."""

    image: bytes | None = None
    clut: bytes | None = None
    width: int = 0
    height: int = 0

    @classmethod
    def from_file(cls, path: str | PathLike[str]) -> ImageData:
        """Load an image file as 8-bit RGBA.

        Raises OSError if the file cannot be read or is not an image.
        """
        with Image.open(path) as source:
            rgba = source.convert("RGBA")
            return cls(image=rgba.tobytes(), width=rgba.width, height=rgba.height)


@dataclass
class Texture:
    """A texture made from image data."""

    image_data: ImageData

    @property
    def width(self) -> int:
        return self.image_data.width

    @property
    def height(self) -> int:
        return self.image_data.height


def create_checker_texture(size: int, num_checkers: int) -> Texture:
    """A square black and white checkerboard with a white top-left square."""
    if size <= 0:
        raise ValueError(f"size must be positive, got {size}")
    if num_checkers <= 0:
        raise ValueError(f"num_checkers must be positive, got {num_checkers}")
    check_size = size // num_checkers
    if check_size == 0:
        raise ValueError(f"{num_checkers} checkers do not fit in {size} pixels")
    cell = np.arange(size) // check_size
    parity = (cell[:, None] + cell[None, :]) % 2
    pixels = np.where(parity == 0, _WHITE, _BLACK).astype("<u4")
    return Texture(ImageData(image=pixels.tobytes(), width=size, height=size))