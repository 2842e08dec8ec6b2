"""Sparse passability map read from the Blockers layer."""

from __future__ import annotations

from typing import Iterator

from .geometry import BLOCKER, NON_BLOCKER, GridCoordinate
from .tiled import TiledLayer


class BlockerMap:
    def __init__(self) -> None:
        self._cells: dict[GridCoordinate, int] = {}

    @classmethod
    def from_layer(cls, layer: TiledLayer | None, map_width: int) -> "BlockerMap":
        blockers = cls()
        if layer is None:
            return blockers
        for idx, value in enumerate(layer.tile_ids()):
            if value != 0:
                blockers._cells[GridCoordinate.from_index(idx, map_width)] = BLOCKER
        return blockers

    def get(self, coordinate: GridCoordinate) -> int:
        return self._cells.get(coordinate, NON_BLOCKER)

    def __contains__(self, coordinate: object) -> bool:
        return coordinate in self._cells

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[GridCoordinate]:
        return iter(self._cells)
