"""Scene, mesh, skeletal animation, sprite, shader-layout and font data for a small game engine framework."""

__version__ = "0.1.0"