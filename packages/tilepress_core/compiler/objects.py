"""Map objects placed in Tiled object layers."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import Any, Iterable, Union

from .errors import ConfigurationError
from .geometry import GridCoordinate
from .layers import ClassifiedLayers
from .tiled import OBJECT_LAYER_TYPE, TiledMap, TiledObject, get_property

logger = getLogger("tilepress_core.compiler.objects")

MISSION_OBJECT_TYPE = "mission"


@dataclass(frozen=True)
class GameMapPoint:
    id: str
    layer: int
    point: GridCoordinate

    def to_dict(self) -> dict[str, Any]:
        return {"type": "point", "id": self.id, "layer": self.layer, "point": self.point.to_list()}


@dataclass(frozen=True)
class GameMapRegion:
    id: str
    layer: int
    # x, y, width, height in grid cells
    region: tuple[int, int, int, int]

    def to_dict(self) -> dict[str, Any]:
        return {"type": "region", "id": self.id, "layer": self.layer, "region": list(self.region)}


@dataclass(frozen=True)
class GameMapMission:
    id: str
    layer: int
    grid_coordinate: GridCoordinate
    mission: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "mission",
            "id": self.id,
            "layer": self.layer,
            "gridCoordinate": self.grid_coordinate.to_list(),
            "mission": self.mission,
        }


GameMapObject = Union[GameMapPoint, GameMapRegion, GameMapMission]


def _to_grid(value: float, tile: int) -> int:
    return int(value // tile)


def _read_object(obj: TiledObject, layer: int, tile_w: int, tile_h: int) -> GameMapObject:
    x = _to_grid(obj.x, tile_w)
    y = _to_grid(obj.y, tile_h)
    if obj.type == MISSION_OBJECT_TYPE:
        mission = str(get_property(obj.properties, "mission", obj.name))
        return GameMapMission(obj.name, layer, GridCoordinate(x, y), mission)
    if obj.point or (obj.width == 0 and obj.height == 0):
        return GameMapPoint(obj.name, layer, GridCoordinate(x, y))
    width = max(1, -(-int(obj.width) // tile_w))
    height = max(1, -(-int(obj.height) // tile_h))
    return GameMapRegion(obj.name, layer, (x, y, width, height))


def read_map_objects(tiled_map: TiledMap, classified: ClassifiedLayers) -> list[GameMapObject]:
    out: list[GameMapObject] = []
    depths = classified.depths()
    for layer in classified.layers:
        if layer.type != OBJECT_LAYER_TYPE:
            continue
        for obj in layer.objects:
            if not obj.visible:
                continue
            if not obj.name.strip():
                logger.debug("[OBJECTS] Skipping unnamed object %d in layer '%s'", obj.id, layer.name)
                continue
            out.append(_read_object(obj, depths[layer.id], tiled_map.tilewidth, tiled_map.tileheight))
    return out


def check_unique_ids(ids: Iterable[str]) -> None:
    seen: set[str] = set()
    duplicates: list[str] = []
    for object_id in ids:
        if object_id in seen and object_id not in duplicates:
            duplicates.append(object_id)
        seen.add(object_id)
    if duplicates:
        raise ConfigurationError("Duplicate map object ids: " + ", ".join(duplicates))
