"""Resolve global tile ids into image blocks or animations."""

from __future__ import annotations

from typing import Sequence

from .errors import ConfigurationError, InvariantViolationError
from .geometry import GridCoordinate, ImageBlock, PixelBlock
from .tiled import TiledAnimationFrame, TiledTileset, TilesetAndImage
from .tile_layers import AnimationLayer, StaticTileLayer, TileAnimationFrame, TileLayer

# Tiled stores flip and rotation flags in the top four bits of a gid.
GID_MASK = 0x0FFFFFFF


def resolve_tile_block(tileset: TiledTileset, offset: int) -> PixelBlock:
    coordinate = GridCoordinate.from_index(offset, tileset.grid_width)
    return PixelBlock(
        coordinate.x * tileset.tilewidth,
        coordinate.y * tileset.tileheight,
        tileset.tilewidth,
        tileset.tileheight,
    )


class TileResolver:
    def __init__(self, tilesets: Sequence[TilesetAndImage]) -> None:
        self.tilesets = sorted(tilesets, key=lambda t: t.firstgid)
        self._animations: list[dict[int, list[TiledAnimationFrame]]] = [
            {tile.id: tile.animation for tile in t.tileset.tiles if tile.animation}
            for t in self.tilesets
        ]

    def determine_tileset(self, gid: int) -> int:
        """Position in ``self.tilesets`` of the tileset owning ``gid``."""
        if not self.tilesets:
            raise ConfigurationError(f"Tile {gid} is used but the map declares no tilesets")
        if gid < self.tilesets[0].firstgid:
            raise ConfigurationError(f"Tile {gid} is below the first tileset's firstgid")
        for i in range(len(self.tilesets) - 1):
            if self.tilesets[i].firstgid <= gid < self.tilesets[i + 1].firstgid:
                return i
        return len(self.tilesets) - 1

    def resolve(self, gid: int, depth: int) -> TileLayer:
        if gid & ~GID_MASK:
            raise ConfigurationError(
                f"Tile {gid & GID_MASK} is flipped or rotated (gid {gid:#x}); transformed tiles are not supported"
            )
        if gid == 0:
            raise InvariantViolationError("Tile id 0 means 'no tile' and must be filtered before resolving")

        position = self.determine_tileset(gid)
        owner = self.tilesets[position]
        offset = gid - owner.firstgid
        animation = self._animations[position].get(offset)

        if animation is None:
            return StaticTileLayer(depth, ImageBlock(owner.image, resolve_tile_block(owner.tileset, offset)))

        frames = tuple(
            TileAnimationFrame(
                ImageBlock(owner.image, resolve_tile_block(owner.tileset, frame.tileid)),
                frame.duration,
            )
            for frame in animation
        )
        return AnimationLayer(depth, frames)
