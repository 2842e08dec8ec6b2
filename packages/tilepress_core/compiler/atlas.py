"""Deduplication index and packed atlas output."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from math import isqrt
from pathlib import Path
from typing import Iterator, Sequence

from PIL import Image

from .errors import InvariantViolationError, ResourceError
from .geometry import GridCoordinate, GridSize, ImageBlock, PixelBlock, PixelSize
from .images import ImageAccessor

logger = getLogger("tilepress_core.compiler.atlas")

ContentKey = tuple[tuple[str, int, int, int, int], ...]


def content_key(blocks: Sequence[ImageBlock]) -> ContentKey:
    return tuple(block.content_key() for block in blocks)


class DedupIndex:
    """Ordered block lists to 1-based canonical indices, first seen first.

    Index 0 is reserved and never assigned.
    """

    def __init__(self) -> None:
        self._indices: dict[ContentKey, int] = {}
        self._blocks: dict[int, tuple[ImageBlock, ...]] = {}

    def register(self, blocks: Sequence[ImageBlock]) -> int:
        key = content_key(blocks)
        index = self._indices.get(key)
        if index is None:
            index = len(self._indices) + 1
            self._indices[key] = index
            self._blocks[index] = tuple(blocks)
        return index

    def index_of(self, blocks: Sequence[ImageBlock]) -> int:
        index = self._indices.get(content_key(blocks))
        if index is None:
            raise InvariantViolationError(f"Block list was never registered: {list(blocks)}")
        return index

    def items(self) -> Iterator[tuple[int, tuple[ImageBlock, ...]]]:
        return iter(self._blocks.items())

    def __len__(self) -> int:
        return len(self._indices)


def compute_grid_size(count: int) -> GridSize:
    """Near-square grid with room for ``count`` entries plus reserved slot 0."""
    total = count + 1
    width = isqrt(total)
    if width * width < total:
        width += 1
    height = -(-total // width)
    if width * height < total:
        raise InvariantViolationError(f"Atlas grid {width}x{height} cannot hold {total} slots")
    return GridSize(width, height)


@dataclass(frozen=True)
class AtlasLayout:
    grid_size: GridSize
    dest_tile_size: PixelSize

    @property
    def pixel_size(self) -> PixelSize:
        return PixelSize(
            self.grid_size.width * self.dest_tile_size.width,
            self.grid_size.height * self.dest_tile_size.height,
        )

    def coordinate_of(self, index: int) -> GridCoordinate:
        return GridCoordinate.from_index(index, self.grid_size.width)

    def pixel_block_of(self, index: int) -> PixelBlock:
        coordinate = self.coordinate_of(index)
        return PixelBlock(
            coordinate.x * self.dest_tile_size.width,
            coordinate.y * self.dest_tile_size.height,
            self.dest_tile_size.width,
            self.dest_tile_size.height,
        )

    @classmethod
    def for_index(cls, index: DedupIndex, dest_tile_size: PixelSize) -> "AtlasLayout":
        return cls(compute_grid_size(len(index)), dest_tile_size)


class AtlasWriter:
    def __init__(self, layout: AtlasLayout, images: ImageAccessor) -> None:
        self.layout = layout
        self.images = images

    def render(self, index: DedupIndex) -> Image.Image:
        size = self.layout.pixel_size
        atlas = Image.new("RGBA", (size.width, size.height), (0, 0, 0, 0))
        tile_size = (self.layout.dest_tile_size.width, self.layout.dest_tile_size.height)

        for dest_index, blocks in index.items():
            dest = self.layout.pixel_block_of(dest_index)
            for block in blocks:
                tile = self.images.crop(block)
                if tile.size != tile_size:
                    tile = tile.resize(tile_size, Image.Resampling.NEAREST)
                atlas.alpha_composite(tile, dest=(dest.x, dest.y))
        return atlas

    def write(self, path: Path, index: DedupIndex) -> Path:
        return self.save(self.render(index), path)

    def save(self, atlas: Image.Image, path: Path) -> Path:
        try:
            atlas.save(path, format="PNG")
        except OSError as exc:
            raise ResourceError(f"Cannot write atlas {path}: {exc}") from exc
        logger.info(
            "[ATLAS] Wrote %s: %dx%d grid",
            path,
            self.layout.grid_size.width,
            self.layout.grid_size.height,
        )
        return path
