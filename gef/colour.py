"""RGBA colours with packing to and from 32-bit integers."""

from __future__ import annotations

from dataclasses import dataclass


def _channel_byte(value: float) -> int:
    return int(value * 255) & 0xFF


@dataclass
class Colour:
    """A colour with red, green, blue and alpha channels in the range 0..1."""

    r: float = 0.0
    g: float = 0.0
    b: float = 0.0
    a: float = 1.0

    def get_rgba(self) -> int:
        """Pack as 0xRRGGBBAA."""
        return (
            _channel_byte(self.a)
            | (_channel_byte(self.b) << 8)
            | (_channel_byte(self.g) << 16)
            | (_channel_byte(self.r) << 24)
        )

    def get_abgr(self) -> int:
        """Pack as 0xAABBGGRR."""
        return (
            _channel_byte(self.r)
            | (_channel_byte(self.g) << 8)
            | (_channel_byte(self.b) << 16)
            | (_channel_byte(self.a) << 24)
        )

    def as_rgba_vector(self) -> tuple[float, float, float, float]:
        return (self.r, self.g, self.b, self.a)

    def as_abgr_vector(self) -> tuple[float, float, float, float]:
        return (self.a, self.b, self.g, self.r)

    @classmethod
    def from_rgba(cls, rgba: int) -> Colour:
        """Unpack a colour packed as 0xRRGGBBAA."""
        return cls(
            r=((rgba >> 24) & 0xFF) / 255.0,
            g=((rgba >> 16) & 0xFF) / 255.0,
            b=((rgba >> 8) & 0xFF) / 255.0,
            a=(rgba & 0xFF) / 255.0,
        )

    @classmethod
    def from_abgr(cls, abgr: int) -> Colour:
        """Unpack a colour packed as 0xAABBGGRR."""
        return cls(
            r=(abgr & 0xFF) / 255.0,
            g=((abgr >> 8) & 0xFF) / 255.0,
            b=((abgr >> 16) & 0xFF) / 255.0,
            a=((abgr >> 24) & 0xFF) / 255.0,
        )