"""Per-cell layer culling and static layer merging.

A cell's layers are handled as two independent stacks, below and above the
Player layer. In each stack nothing beneath the topmost fully opaque layer can
be seen, fully transparent layers contribute nothing, and runs of static
layers are drawn together into a single atlas entry. Animation layers stay
standalone since each frame is shown at a different time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Union

from .geometry import ImageBlock
from .images import ImageAccessor
from .tile_layers import AnimationLayer, StaticTileLayer, TileLayer


@dataclass(frozen=True)
class MultipleStaticLayersIntoSingleLayer:
    """Static layers drawn bottom-to-top into one atlas cell."""

    static_layers: tuple[StaticTileLayer, ...]

    @property
    def depth(self) -> int:
        return min(layer.depth for layer in self.static_layers)

    @property
    def blocks(self) -> tuple[ImageBlock, ...]:
        return tuple(layer.block for layer in self.static_layers)

    @property
    def dest_tiles(self) -> list[tuple[ImageBlock, ...]]:
        return [self.blocks]


SquashedLayer = Union[MultipleStaticLayersIntoSingleLayer, AnimationLayer]


def remove_redundant_layers(layers: Sequence[TileLayer], images: ImageAccessor) -> list[TileLayer]:
    if not layers:
        return []
    top_opaque = -1
    for i in range(len(layers) - 1, -1, -1):
        if layers[i].is_fully_opaque(images):
            top_opaque = i
            break
    if top_opaque == -1:
        return [layer for layer in layers if not layer.is_fully_transparent(images)]
    return [layer for layer in layers[top_opaque:] if not layer.is_fully_transparent(images)]


def merge_static_runs(layers: Sequence[TileLayer]) -> list[SquashedLayer]:
    out: list[SquashedLayer] = []
    run: list[StaticTileLayer] = []
    for layer in layers:
        if isinstance(layer, AnimationLayer):
            if run:
                out.append(MultipleStaticLayersIntoSingleLayer(tuple(run)))
                run = []
            out.append(layer)
        else:
            run.append(layer)
    if run:
        out.append(MultipleStaticLayersIntoSingleLayer(tuple(run)))
    return out


def squash(layers: Sequence[TileLayer], images: ImageAccessor) -> list[SquashedLayer]:
    """Cull then merge one same-sign stack, ordered bottom-to-top."""
    return merge_static_runs(remove_redundant_layers(layers, images))


@dataclass(frozen=True)
class RawTileLayers:
    layers: tuple[TileLayer, ...]
    squashed_layers: tuple[SquashedLayer, ...]


def squash_cell(layers: Sequence[TileLayer], images: ImageAccessor) -> RawTileLayers:
    below = squash([layer for layer in layers if layer.depth < 0], images)
    above = squash([layer for layer in layers if layer.depth > 0], images)
    return RawTileLayers(layers=tuple(layers), squashed_layers=tuple(below + above))
