"""Bitmap fonts described by BMFont text files, and laying out text as sprites."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from enum import IntEnum
from os import PathLike
from typing import Iterable, Sequence

from gef.sprite import Sprite
from gef.texture import ImageData, Texture

_NUM_CHARS = 256
_MAX_TEXT_BYTES = 255
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

_COMMON_FIELDS = {
    "lineHeight": "line_height",
    "base": "base",
    "scaleW": "width",
    "scaleH": "height",
    "pages": "pages",
}

_CHAR_FIELDS = {
    "x": "x",
    "y": "y",
    "width": "width",
    "height": "height",
    "xoffset": "x_offset",
    "yoffset": "y_offset",
    "xadvance": "x_advance",
    "page": "page",
}


class TextJustification(IntEnum):
    LEFT = 0
    CENTRE = 1
    RIGHT = 2


@dataclass
class CharDescriptor:
    """Where a glyph sits in the font texture and how it is placed."""

    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0
    x_offset: int = 0
    y_offset: int = 0
    x_advance: int = 0
    page: int = 0


def _all_chars() -> list[CharDescriptor]:
    return [CharDescriptor() for _ in range(_NUM_CHARS)]


@dataclass
class Charset:
    """Common font metrics and a descriptor for each of the 256 character codes."""

    line_height: int = 0
    base: int = 0
    width: int = 0
    height: int = 0
    pages: int = 0
    chars: list[CharDescriptor] = field(default_factory=_all_chars)


def _to_int(value: str) -> int:
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else 0


def parse_font(stream: Iterable[str]) -> Charset:
    """Parse the ``common`` and ``char`` lines of a BMFont text description."""
    charset = Charset()
    for line in stream:
        tokens = line.split()
        if not tokens:
            continue
        kind, pairs = tokens[0], tokens[1:]
        if kind == "common":
            for pair in pairs:
                key, _, value = pair.partition("=")
                attr = _COMMON_FIELDS.get(key)
                if attr is not None:
                    setattr(charset, attr, _to_int(value) & 0xFFFF)
        elif kind == "char":
            char_id = 0
            for pair in pairs:
                key, _, value = pair.partition("=")
                if key == "id":
                    char_id = _to_int(value) & 0xFFFF
                elif char_id >= _NUM_CHARS:
                    continue
                elif (attr := _CHAR_FIELDS.get(key)) is not None:
                    setattr(charset.chars[char_id], attr, _to_int(value))
    return charset


def _encode(text: str | bytes | None) -> bytes:
    if text is None:
        return b""
    return text.encode("utf-8") if isinstance(text, str) else bytes(text)


@dataclass
class Font:
    """A bitmap font: its metrics and the texture holding its glyphs."""

    charset: Charset = field(default_factory=Charset)
    texture: Texture | None = None

    @classmethod
    def load(cls, font_name: str | PathLike[str]) -> Font:
        """Load ``<name>.fnt`` and the texture ``<name>_0.png``.

        A texture image that cannot be read gives a texture with no pixels.
        """
        name = os.fspath(font_name)
        with open(name + ".fnt", encoding="utf-8", errors="replace") as file:
            charset = parse_font(file)
        try:
            image_data = ImageData.from_file(name + "_0.png")
        except OSError:
            image_data = ImageData()
        return cls(charset=charset, texture=Texture(image_data))

    def _advance(self, data: bytes) -> float:
        return float(sum(self.charset.chars[code].x_advance for code in data))

    def string_length(self, text: str | bytes | None) -> float:
        """Total horizontal advance of the text, in font pixels."""
        return self._advance(_encode(text))

    def line_height(self) -> float:
        return float(self.charset.line_height)

    def layout_text(
        self,
        pos: Sequence[float],
        scale: float,
        colour: int,
        justification: TextJustification,
        text: str | bytes | None,
    ) -> list[Sprite]:
        """One sprite per character of ``text`` (at most 255 bytes), placed from ``pos``."""
        data = _encode(text)[:_MAX_TEXT_BYTES]
        if not data:
            return []
        charset = self.charset
        if charset.width == 0 or charset.height == 0:
            raise ValueError("font has no texture size")

        length = self._advance(data)
        cursor_x, cursor_y, depth = float(pos[0]), float(pos[1]), float(pos[2])
        if justification == TextJustification.CENTRE:
            cursor_x -= length * 0.5 * scale
        elif justification == TextJustification.RIGHT:
            cursor_x -= length * scale

        sprites = []
        for code in data:
            char = charset.chars[code]
            width = char.width * scale
            height = char.height * scale
            sprites.append(
                Sprite(
                    position=(
                        cursor_x + char.x_offset * scale + width * 0.5,
                        cursor_y + scale * (char.height * 0.5 + char.y_offset),
                        depth,
                    ),
                    width=width,
                    height=height,
                    colour=colour,
                    uv_position=(char.x / charset.width, char.y / charset.height),
                    uv_width=char.width / charset.width,
                    uv_height=char.height / charset.height,
                    texture=self.texture,
                )
            )
            cursor_x += char.x_advance * scale
        return sprites