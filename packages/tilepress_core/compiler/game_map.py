"""Runtime map documents and their compressed form.

The compressed form pools identical encoded tiles. An encoded tile is
``[blocker, *layers]`` where a static layer is ``[x, y, depth]`` and an
animation layer is ``[[x0, y0, x1, y1, ...], duration, depth]``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union
import json

from .errors import InvariantViolationError
from .geometry import GridCoordinate, GridSize, PixelSize

COMPACT_SEPARATORS = (",", ":")


@dataclass(frozen=True)
class RawStaticImageLayer:
    coordinate: GridCoordinate
    layer: int

    def to_dict(self) -> dict[str, Any]:
        return {"type": "static", "coordinate": self.coordinate.to_list(), "layer": self.layer}

    def encode(self) -> list[Any]:
        return [self.coordinate.x, self.coordinate.y, self.layer]


@dataclass(frozen=True)
class RawTileAnimationFrame:
    coordinate: GridCoordinate
    duration: int

    def to_dict(self) -> dict[str, Any]:
        return {"coordinate": self.coordinate.to_list(), "duration": self.duration}


@dataclass(frozen=True)
class RawAnimationLayer:
    frames: tuple[RawTileAnimationFrame, ...]
    layer: int

    @property
    def duration(self) -> int:
        durations = {frame.duration for frame in self.frames}
        if len(durations) != 1:
            raise InvariantViolationError(f"Animation frames have durations {sorted(durations)}")
        return durations.pop()

    def to_dict(self) -> dict[str, Any]:
        return {"type": "animation", "frames": [f.to_dict() for f in self.frames], "layer": self.layer}

    def encode(self) -> list[Any]:
        coordinates = [v for frame in self.frames for v in frame.coordinate.to_list()]
        return [coordinates, self.duration, self.layer]


RawGameMapTileLayer = Union[RawStaticImageLayer, RawAnimationLayer]


def decode_layer(encoded: list[Any]) -> RawGameMapTileLayer:
    if isinstance(encoded[0], list):
        coordinates, duration, layer = encoded
        frames = tuple(
            RawTileAnimationFrame(GridCoordinate(coordinates[i], coordinates[i + 1]), duration)
            for i in range(0, len(coordinates), 2)
        )
        return RawAnimationLayer(frames, layer)
    x, y, layer = encoded
    return RawStaticImageLayer(GridCoordinate(x, y), layer)


@dataclass(frozen=True)
class RawGameMapTile:
    layers: tuple[RawGameMapTileLayer, ...]
    blocker: int

    def to_dict(self) -> dict[str, Any]:
        return {"layers": [layer.to_dict() for layer in self.layers], "blocker": self.blocker}

    def encode(self) -> list[Any]:
        return [self.blocker, *(layer.encode() for layer in self.layers)]

    @classmethod
    def decode(cls, encoded: list[Any]) -> "RawGameMapTile":
        blocker, *layers = encoded
        return cls(tuple(decode_layer(layer) for layer in layers), blocker)


def _header(map_id: str, size: GridSize, tile_size: PixelSize) -> dict[str, Any]:
    return {"id": map_id, "size": size.to_dict(), "tileSize": tile_size.to_dict()}


@dataclass(frozen=True)
class RawGameMap:
    id: str
    size: GridSize
    tile_size: PixelSize
    raw_tiles: tuple[tuple[RawGameMapTile, ...], ...]
    objects: tuple[dict[str, Any], ...] = field(default=())

    def to_dict(self) -> dict[str, Any]:
        out = _header(self.id, self.size, self.tile_size)
        out["rawTiles"] = [[tile.to_dict() for tile in row] for row in self.raw_tiles]
        out["objects"] = list(self.objects)
        return out

    def compress(self) -> "CompressedGameMap":
        pool: list[list[Any]] = []
        pool_index: dict[str, int] = {}
        tiles: list[list[int]] = []
        for row in self.raw_tiles:
            out_row: list[int] = []
            for tile in row:
                encoded = tile.encode()
                key = json.dumps(encoded, separators=COMPACT_SEPARATORS)
                if key not in pool_index:
                    pool_index[key] = len(pool)
                    pool.append(encoded)
                out_row.append(pool_index[key])
            tiles.append(out_row)
        return CompressedGameMap(
            id=self.id,
            size=self.size,
            tile_size=self.tile_size,
            constant_pool=pool,
            tiles=tiles,
            objects=list(self.objects),
        )


@dataclass
class CompressedGameMap:
    id: str
    size: GridSize
    tile_size: PixelSize
    constant_pool: list[list[Any]]
    tiles: list[list[int]]
    objects: list[dict[str, Any]]

    def to_dict(self) -> dict[str, Any]:
        out = _header(self.id, self.size, self.tile_size)
        out["constantPool"] = self.constant_pool
        out["tiles"] = self.tiles
        out["objects"] = self.objects
        return out

    def encode(self) -> str:
        return json.dumps(self.to_dict(), separators=COMPACT_SEPARATORS)

    def decompress(self) -> RawGameMap:
        decoded = [RawGameMapTile.decode(encoded) for encoded in self.constant_pool]
        raw_tiles = tuple(tuple(decoded[i] for i in row) for row in self.tiles)
        return RawGameMap(
            id=self.id,
            size=self.size,
            tile_size=self.tile_size,
            raw_tiles=raw_tiles,
            objects=tuple(self.objects),
        )

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "CompressedGameMap":
        return cls(
            id=str(payload["id"]),
            size=GridSize(**payload["size"]),
            tile_size=PixelSize(**payload["tileSize"]),
            constant_pool=payload["constantPool"],
            tiles=payload["tiles"],
            objects=payload.get("objects", []),
        )


def verify_round_trip(compressed: CompressedGameMap) -> str:
    """Encoded form of ``compressed`` once re-compressing it proved lossless."""
    encoded = compressed.encode()
    again = compressed.decompress().compress().encode()
    if again != encoded:
        raise InvariantViolationError(f"Map '{compressed.id}' does not survive decompress/compress")
    return encoded
