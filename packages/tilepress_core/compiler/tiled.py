"""Source model for Tiled JSON map exports.

Only the subset of the Tiled schema the compiler needs is modelled: tile
identity, layer grouping, objects and per-tile animation frames. Unknown keys
are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from pathlib import Path
from typing import Any, Iterable, Optional
import base64
import gzip
import json
import struct
import zlib

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .errors import ConfigurationError, ResourceError

logger = getLogger("tilepress_core.compiler.tiled")

TILE_LAYER_TYPE = "tilelayer"
GROUP_LAYER_TYPE = "group"
OBJECT_LAYER_TYPE = "objectgroup"


class TiledProperty(BaseModel):
    name: str
    type: str = "string"
    value: Any = None


class TiledObject(BaseModel):
    id: int = 0
    name: str = ""
    type: str = ""
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    point: bool = False
    visible: bool = True
    properties: list[TiledProperty] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _class_as_type(cls, raw: Any) -> Any:
        # Tiled 1.9 renamed the object "type" field to "class".
        if isinstance(raw, dict) and not raw.get("type") and raw.get("class"):
            raw = dict(raw)
            raw["type"] = raw["class"]
        return raw


class TiledLayer(BaseModel):
    id: int
    name: str = ""
    type: str
    visible: bool = True
    opacity: float = 1.0
    width: Optional[int] = None
    height: Optional[int] = None
    x: int = 0
    y: int = 0
    data: Optional[list[int] | str] = None
    encoding: str = "csv"
    compression: str = ""
    draworder: Optional[str] = None
    layers: list["TiledLayer"] = Field(default_factory=list)
    objects: list[TiledObject] = Field(default_factory=list)
    properties: list[TiledProperty] = Field(default_factory=list)

    @property
    def is_tile_layer(self) -> bool:
        return self.type == TILE_LAYER_TYPE

    @property
    def is_group(self) -> bool:
        return self.type == GROUP_LAYER_TYPE

    def tile_ids(self) -> list[int]:
        """Global tile ids of this layer in row-major order; 0 means no tile."""
        if self.data is None:
            return []
        if isinstance(self.data, list):
            return [int(v) for v in self.data]
        if self.encoding != "base64":
            raise ConfigurationError(f"Layer '{self.name}' has unsupported encoding: {self.encoding}")

        raw = base64.b64decode(self.data)
        if self.compression == "zlib":
            raw = zlib.decompress(raw)
        elif self.compression == "gzip":
            raw = gzip.decompress(raw)
        elif self.compression:
            raise ConfigurationError(f"Layer '{self.name}' has unsupported compression: {self.compression}")

        if len(raw) % 4:
            raise ConfigurationError(f"Layer '{self.name}' base64 data is not a sequence of uint32")
        return list(struct.unpack(f"<{len(raw) // 4}I", raw))


class TiledAnimationFrame(BaseModel):
    tileid: int
    duration: int


class TiledTile(BaseModel):
    id: int
    animation: list[TiledAnimationFrame] = Field(default_factory=list)


class TiledTileset(BaseModel):
    name: str = ""
    tilewidth: int
    tileheight: int
    image: str
    imagewidth: int
    imageheight: int
    tiles: list[TiledTile] = Field(default_factory=list)

    @property
    def grid_width(self) -> int:
        return self.imagewidth // self.tilewidth


class TiledTilesetRef(BaseModel):
    """Entry of the map's ``tilesets`` array: external (``source``) or embedded."""

    model_config = ConfigDict(extra="allow")

    firstgid: int
    source: Optional[str] = None


class TiledMap(BaseModel):
    width: int
    height: int
    tilewidth: int
    tileheight: int
    infinite: bool = False
    layers: list[TiledLayer] = Field(default_factory=list)
    tilesets: list[TiledTilesetRef] = Field(default_factory=list)
    properties: list[TiledProperty] = Field(default_factory=list)


TiledLayer.model_rebuild()


@dataclass(frozen=True)
class TilesetAndImage:
    tileset: TiledTileset
    image: Path
    firstgid: int


def _read_json(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except OSError as exc:
        raise ResourceError(f"Cannot read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ResourceError(f"{path} is not valid JSON: {exc}") from exc


def _validation_message(path: Path, exc: ValidationError) -> str:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return f"{path} does not match the Tiled schema: {problems}"


def load_tiled_map(path: Path) -> TiledMap:
    try:
        tiled_map = TiledMap.model_validate(_read_json(path))
    except ValidationError as exc:
        raise ConfigurationError(_validation_message(path, exc)) from exc

    if tiled_map.infinite:
        raise ConfigurationError(f"{path} is an infinite map; only fixed-size maps are supported")

    expected = tiled_map.width * tiled_map.height
    for layer in iter_layers(tiled_map.layers):
        if layer.is_tile_layer and len(layer.tile_ids()) != expected:
            raise ConfigurationError(f"Layer '{layer.name}' data length must be {expected}")
    return tiled_map


def load_tileset(path: Path) -> TiledTileset:
    try:
        return TiledTileset.model_validate(_read_json(path))
    except ValidationError as exc:
        raise ConfigurationError(_validation_message(path, exc)) from exc


def load_tilesets(tiled_map: TiledMap, map_path: Path) -> list[TilesetAndImage]:
    """Resolve every tileset of the map, ordered by ``firstgid``."""
    out: list[TilesetAndImage] = []
    for ref in tiled_map.tilesets:
        if ref.source:
            tileset_path = map_path.parent / ref.source
            tileset = load_tileset(tileset_path)
            base_dir = tileset_path.parent
        else:
            try:
                tileset = TiledTileset.model_validate(ref.model_extra or {})
            except ValidationError as exc:
                raise ConfigurationError(_validation_message(map_path, exc)) from exc
            base_dir = map_path.parent
        logger.debug("[TILED] Tileset '%s' firstgid=%d image=%s", tileset.name, ref.firstgid, tileset.image)
        out.append(TilesetAndImage(tileset=tileset, image=base_dir / tileset.image, firstgid=ref.firstgid))
    return sorted(out, key=lambda t: t.firstgid)


def iter_layers(layers: Iterable[TiledLayer]) -> Iterable[TiledLayer]:
    """Every layer, with group children following their group."""
    for layer in layers:
        yield layer
        if layer.is_group:
            yield from iter_layers(layer.layers)


def get_layer(layers: Iterable[TiledLayer], name: str) -> TiledLayer | None:
    for layer in layers:
        if layer.name == name:
            return layer
    return None


def get_property(properties: Iterable[TiledProperty], key: str, default: Any = None) -> Any:
    for prop in properties:
        if prop.name == key:
            return prop.value if prop.value is not None else default
    return default
