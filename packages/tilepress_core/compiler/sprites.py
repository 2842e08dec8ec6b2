"""Dynamic sprites: small multi-cell decorations extracted from the tile grid."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import Any

from .atlas import AtlasLayout, DedupIndex
from .errors import ConfigurationError
from .geometry import GridCoordinate, ImageBlock
from .layers import DYNAMIC_SPRITES_GROUP_NAME
from .resolver import TileResolver
from .tiled import TiledLayer, get_layer
from .tile_layers import StaticTileLayer

logger = getLogger("tilepress_core.compiler.sprites")

MAX_SPRITE_CELLS = 2


@dataclass(frozen=True)
class DynamicSpriteData:
    top_left_corner: GridCoordinate
    # [row][column] -> one block per animation frame (one for static tiles)
    frames: tuple[tuple[tuple[ImageBlock, ...], ...], ...]


@dataclass(frozen=True)
class GameMapDynamicSprite:
    id: str
    top_left_corner: GridCoordinate
    frames: tuple[tuple[tuple[GridCoordinate, ...], ...], ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "dynamicSprite",
            "id": self.id,
            "gridCoordinate": self.top_left_corner.to_list(),
            "frames": [[[c.to_list() for c in cell] for cell in row] for row in self.frames],
        }


class DynamicSpriteReader:
    def __init__(self, map_width: int, resolver: TileResolver, index: DedupIndex) -> None:
        self.map_width = map_width
        self.resolver = resolver
        self.index = index
        self.sprites: dict[str, DynamicSpriteData] = {}

    def read_and_register(self, layers: list[TiledLayer]) -> dict[str, DynamicSpriteData]:
        """Read every sprite of the DynamicSprites group and register its frames."""
        group = get_layer(layers, DYNAMIC_SPRITES_GROUP_NAME)
        if group is None or not group.is_group:
            return self.sprites
        for layer in group.layers:
            if layer.name in self.sprites:
                raise ConfigurationError(f"Duplicate dynamic sprite: {layer.name}")
            self.sprites[layer.name] = self._read_sprite(layer)
            logger.debug("[SPRITES] Read dynamic sprite '%s'", layer.name)
        return self.sprites

    def _read_sprite(self, layer: TiledLayer) -> DynamicSpriteData:
        data = layer.tile_ids()
        occupied = [i for i, gid in enumerate(data) if gid != 0]
        if not occupied:
            raise ConfigurationError(f"Dynamic sprite '{layer.name}' has no tiles")

        first = GridCoordinate.from_index(occupied[0], self.map_width)
        last = GridCoordinate.from_index(occupied[-1], self.map_width)
        width = last.x - first.x + 1
        height = last.y - first.y + 1
        if width < 1:
            raise ConfigurationError(
                f"Dynamic sprite '{layer.name}' is not rectangular: {first.to_list()} to {last.to_list()}"
            )
        if width > MAX_SPRITE_CELLS or height > MAX_SPRITE_CELLS:
            raise ConfigurationError(f"Dynamic sprite '{layer.name}' width/height: {width}/{height}")
        for i in occupied:
            cell = GridCoordinate.from_index(i, self.map_width)
            if not (first.x <= cell.x <= last.x and first.y <= cell.y <= last.y):
                raise ConfigurationError(
                    f"Dynamic sprite '{layer.name}' has a tile at {cell.to_list()} "
                    f"outside its footprint {first.to_list()} to {last.to_list()}"
                )

        rows: list[tuple[tuple[ImageBlock, ...], ...]] = []
        for y in range(first.y, first.y + height):
            row: list[tuple[ImageBlock, ...]] = []
            for x in range(first.x, first.x + width):
                gid = data[y * self.map_width + x]
                if gid == 0:
                    raise ConfigurationError(f"Dynamic sprite '{layer.name}' has an empty cell at ({x}, {y})")
                tile = self.resolver.resolve(gid, 0)
                blocks = (tile.block,) if isinstance(tile, StaticTileLayer) else tuple(tile.blocks)
                for block in blocks:
                    # Frame by frame, so every frame stays addressable on its own.
                    self.index.register((block,))
                row.append(blocks)
            rows.append(tuple(row))
        return DynamicSpriteData(first, tuple(rows))

    def dynamic_sprites(self, layout: AtlasLayout) -> list[GameMapDynamicSprite]:
        out: list[GameMapDynamicSprite] = []
        for sprite_id, data in self.sprites.items():
            frames = tuple(
                tuple(
                    tuple(layout.coordinate_of(self.index.index_of((block,))) for block in cell)
                    for cell in row
                )
                for row in data.frames
            )
            out.append(GameMapDynamicSprite(sprite_id, data.top_left_corner, frames))
        return out
