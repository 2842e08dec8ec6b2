"""Resolved tile layers of one grid cell.

``depth`` is the signed position relative to the Player layer: negative below
it, positive above it. Depth 0 is the Player layer itself and is never
emitted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .geometry import ImageBlock
from .images import ImageAccessor


@dataclass(frozen=True)
class TileAnimationFrame:
    block: ImageBlock
    duration: int

    @property
    def blocks(self) -> tuple[ImageBlock, ...]:
        return (self.block,)


@dataclass(frozen=True)
class StaticTileLayer:
    depth: int
    block: ImageBlock

    def is_fully_opaque(self, images: ImageAccessor) -> bool:
        return images.is_fully_opaque(self.block)

    def is_fully_transparent(self, images: ImageAccessor) -> bool:
        return images.is_fully_transparent(self.block)


@dataclass(frozen=True)
class AnimationLayer:
    depth: int
    frames: tuple[TileAnimationFrame, ...]

    def is_fully_opaque(self, images: ImageAccessor) -> bool:
        return all(images.is_fully_opaque(f.block) for f in self.frames)

    def is_fully_transparent(self, images: ImageAccessor) -> bool:
        return all(images.is_fully_transparent(f.block) for f in self.frames)

    @property
    def dest_tiles(self) -> list[tuple[ImageBlock, ...]]:
        # One atlas entry per frame; frames are never drawn together.
        return [f.blocks for f in self.frames]

    @property
    def blocks(self) -> list[ImageBlock]:
        return [f.block for f in self.frames]


TileLayer = Union[StaticTileLayer, AnimationLayer]
