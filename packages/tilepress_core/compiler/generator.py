"""Compile one Tiled map export into a packed runtime map.

Output directory layout::

    <output_dir>/
      map.json        compressed runtime map
      map.raw.json    pretty uncompressed map (development mode only)
      tileset.png     packed atlas
      missions.json   merged mission specs
"""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from pathlib import Path
from typing import Any, Optional

from .atlas import AtlasLayout, AtlasWriter, DedupIndex
from .blockers import BlockerMap
from .errors import CompilerUsageError, ConfigurationError, ResourceError
from .game_map import (
    COMPACT_SEPARATORS,
    RawAnimationLayer,
    RawGameMap,
    RawGameMapTile,
    RawGameMapTileLayer,
    RawStaticImageLayer,
    RawTileAnimationFrame,
    verify_round_trip,
)
from .geometry import GridCoordinate, GridSize, PixelSize
from .images import ImageAccessor
from .layers import BLOCKERS_LAYER_NAME, classify_layers
from .missions import MissionDataReader, merge_mission_specs
from .objects import check_unique_ids, read_map_objects
from .resolver import TileResolver
from .settings import CompilerSettings
from .sprites import DynamicSpriteReader
from .squash import MultipleStaticLayersIntoSingleLayer, RawTileLayers, SquashedLayer, squash_cell
from .tiled import get_layer, load_tiled_map, load_tilesets
from .tile_layers import AnimationLayer

logger = logging.getLogger("tilepress_core.compiler.generator")

RAW_MAP_FILE = "map.raw.json"
COMPRESSED_MAP_FILE = "map.json"
TILESET_FILE = "tileset.png"
MISSIONS_FILE = "missions.json"


@dataclass(frozen=True)
class GenerationResult:
    map_path: Path
    tileset_path: Path
    missions_path: Path
    raw_map_path: Optional[Path]
    dest_tiles: int
    grid_size: GridSize


def _write_text(path: Path, text: str) -> None:
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise ResourceError(f"Cannot write {path}: {exc}") from exc


class MapGenerator:
    """Single-use compiler for one map.

    All caches and the dedup index belong to the instance; ``generate`` may be
    called once.
    """

    def __init__(
        self,
        map_id: str,
        tiled_map_json: Path,
        mission_data_dir: Path,
        output_dir: Path,
        settings: CompilerSettings | None = None,
    ) -> None:
        self.map_id = map_id
        self.tiled_map_json = tiled_map_json
        self.output_dir = output_dir
        self.settings = settings or CompilerSettings.from_env()

        self.tiled_map = load_tiled_map(tiled_map_json)
        self.classified = classify_layers(self.tiled_map.layers)
        self.resolver = TileResolver(load_tilesets(self.tiled_map, tiled_map_json))
        self.mission_reader = MissionDataReader({map_id: mission_data_dir})

        self.images = ImageAccessor()
        self.index = DedupIndex()
        self.src_tiles: dict[GridCoordinate, RawTileLayers] = {}
        self.blockers = BlockerMap()
        self.sprite_reader = DynamicSpriteReader(self.tiled_map.width, self.resolver, self.index)
        self.dest_tile_size = PixelSize(self.settings.dest_tile_size, self.settings.dest_tile_size)
        self._used = False

    def generate(self) -> GenerationResult:
        if self._used:
            raise CompilerUsageError("A MapGenerator instance can only be used once")
        self._used = True

        logger.info("[GENERATOR] Compiling map '%s' from %s", self.map_id, self.tiled_map_json)

        blocker_layer = get_layer(self.tiled_map.layers, BLOCKERS_LAYER_NAME)
        self.blockers = BlockerMap.from_layer(blocker_layer, self.tiled_map.width)

        self._read_src_tiles()
        self._squash_and_deduplicate()
        self.sprite_reader.read_and_register(self.tiled_map.layers)

        objects = read_map_objects(self.tiled_map, self.classified)
        check_unique_ids([obj.id for obj in objects] + list(self.sprite_reader.sprites))
        missions = merge_mission_specs(self.map_id, self.mission_reader.read(self.map_id), objects)

        # The dest tile count is final now, so the atlas can be laid out.
        layout = AtlasLayout.for_index(self.index, self.dest_tile_size)
        sprites = self.sprite_reader.dynamic_sprites(layout)
        map_objects = [obj.to_dict() for obj in objects] + [sprite.to_dict() for sprite in sprites]
        raw_map = self._build_raw_map(layout, map_objects)
        compressed = raw_map.compress()
        encoded = verify_round_trip(compressed)
        atlas_writer = AtlasWriter(layout, self.images)
        atlas = atlas_writer.render(self.index)

        # Nothing is written until every check above has passed.
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ResourceError(f"Cannot create output directory {self.output_dir}: {exc}") from exc
        tileset_path = atlas_writer.save(atlas, self.output_dir / TILESET_FILE)
        map_path, raw_map_path = self._write_game_map(raw_map, encoded)
        missions_path = self.output_dir / MISSIONS_FILE
        _write_text(missions_path, json.dumps(missions, separators=COMPACT_SEPARATORS))

        logger.info(
            "[GENERATOR] Map '%s' done: %d dest tiles, %d sprites, %d objects, %d pooled tiles",
            self.map_id,
            len(self.index),
            len(sprites),
            len(objects),
            len(compressed.constant_pool),
        )
        return GenerationResult(
            map_path=map_path,
            tileset_path=tileset_path,
            missions_path=missions_path,
            raw_map_path=raw_map_path,
            dest_tiles=len(self.index),
            grid_size=layout.grid_size,
        )

    def _read_src_tiles(self) -> None:
        width = self.tiled_map.width
        tile_layers = [(layer.tile_ids(), depth) for layer, depth in self.classified.tile_layers()]
        for y in range(self.tiled_map.height):
            for x in range(width):
                i = y * width + x
                layers = [self.resolver.resolve(data[i], depth) for data, depth in tile_layers if data[i] != 0]
                self.src_tiles[GridCoordinate(x, y)] = squash_cell(layers, self.images)
        logger.debug("[GENERATOR] Squashed %d cells", len(self.src_tiles))

    def _squash_and_deduplicate(self) -> None:
        for cell in self.src_tiles.values():
            for squashed in cell.squashed_layers:
                for blocks in squashed.dest_tiles:
                    self.index.register(blocks)
        logger.info("[GENERATOR] %d distinct dest tiles from map cells", len(self.index))

    def _to_dest_layer(
        self, squashed: SquashedLayer, layout: AtlasLayout, coordinate: GridCoordinate
    ) -> RawGameMapTileLayer:
        if isinstance(squashed, MultipleStaticLayersIntoSingleLayer):
            return RawStaticImageLayer(layout.coordinate_of(self.index.index_of(squashed.blocks)), squashed.depth)
        if isinstance(squashed, AnimationLayer):
            durations = [frame.duration for frame in squashed.frames]
            if len(set(durations)) > 1:
                raise ConfigurationError(
                    f"All frames should have same duration! Cell {coordinate.to_list()} "
                    f"layer {squashed.depth} has durations {durations}"
                )
            frames = tuple(
                RawTileAnimationFrame(layout.coordinate_of(self.index.index_of(frame.blocks)), frame.duration)
                for frame in squashed.frames
            )
            return RawAnimationLayer(frames, squashed.depth)
        raise TypeError(f"Unknown squashed layer: {squashed!r}")

    def _build_raw_map(self, layout: AtlasLayout, objects: list[dict[str, Any]]) -> RawGameMap:
        rows: list[tuple[RawGameMapTile, ...]] = []
        for y in range(self.tiled_map.height):
            row: list[RawGameMapTile] = []
            for x in range(self.tiled_map.width):
                coordinate = GridCoordinate(x, y)
                layers = tuple(
                    self._to_dest_layer(squashed, layout, coordinate)
                    for squashed in self.src_tiles[coordinate].squashed_layers
                )
                row.append(RawGameMapTile(layers, self.blockers.get(coordinate)))
            rows.append(tuple(row))
        return RawGameMap(
            id=self.map_id,
            size=GridSize(self.tiled_map.width, self.tiled_map.height),
            tile_size=PixelSize(self.tiled_map.tilewidth, self.tiled_map.tileheight),
            raw_tiles=tuple(rows),
            objects=tuple(objects),
        )

    def _write_game_map(self, raw_map: RawGameMap, encoded: str) -> tuple[Path, Optional[Path]]:
        raw_map_path: Optional[Path] = None
        if self.settings.is_dev:
            raw_map_path = self.output_dir / RAW_MAP_FILE
            _write_text(raw_map_path, json.dumps(raw_map.to_dict(), indent=2))

        map_path = self.output_dir / COMPRESSED_MAP_FILE
        _write_text(map_path, encoded)
        logger.info("[GENERATOR] Wrote %s", map_path)
        return map_path, raw_map_path
