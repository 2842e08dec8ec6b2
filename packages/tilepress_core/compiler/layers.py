"""Flatten Tiled layers into a render stack with signed depths."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from logging import getLogger
from typing import Iterable

from .errors import ConfigurationError
from .tiled import TiledLayer

logger = getLogger("tilepress_core.compiler.layers")

PLAYER_LAYER_NAME = "Player"
BLOCKERS_LAYER_NAME = "Blockers"
DYNAMIC_SPRITES_GROUP_NAME = "DynamicSprites"

EXCLUDED_LAYER_NAMES = (BLOCKERS_LAYER_NAME, DYNAMIC_SPRITES_GROUP_NAME)


def flatten_visible_layers(layers: Iterable[TiledLayer]) -> list[TiledLayer]:
    flattened: list[TiledLayer] = []
    for layer in layers:
        if layer.name in EXCLUDED_LAYER_NAMES or not layer.visible:
            continue
        if layer.is_group:
            for child in layer.layers:
                if child.visible:
                    flattened.append(child.model_copy(update={"draworder": layer.draworder}))
        else:
            flattened.append(layer)
    return flattened


def _check_duplicate_ids(layers: list[TiledLayer]) -> None:
    by_id: dict[int, list[str]] = defaultdict(list)
    for layer in layers:
        by_id[layer.id].append(layer.name)
    duplicates = {layer_id: names for layer_id, names in by_id.items() if len(names) > 1}
    if duplicates:
        details = "; ".join(f"{layer_id}: {', '.join(names)}" for layer_id, names in duplicates.items())
        raise ConfigurationError(f"Multiple layers with same id: {details}")


@dataclass(frozen=True)
class ClassifiedLayers:
    """Visible render layers in draw order, bottom first."""

    layers: tuple[TiledLayer, ...]
    player_position: int

    def depths(self) -> dict[int, int]:
        return {layer.id: i - self.player_position for i, layer in enumerate(self.layers)}

    def tile_layers(self) -> list[tuple[TiledLayer, int]]:
        """Cell-contributing tile layers with their depth."""
        return [
            (layer, i - self.player_position)
            for i, layer in enumerate(self.layers)
            if layer.is_tile_layer and layer.name != PLAYER_LAYER_NAME
        ]


def classify_layers(layers: Iterable[TiledLayer]) -> ClassifiedLayers:
    flattened = flatten_visible_layers(layers)
    _check_duplicate_ids(flattened)

    player_positions = [i for i, layer in enumerate(flattened) if layer.name == PLAYER_LAYER_NAME]
    if not player_positions:
        raise ConfigurationError(f"You must have a visible layer named `{PLAYER_LAYER_NAME}`")
    if len(player_positions) > 1:
        raise ConfigurationError(
            f"Layer `{PLAYER_LAYER_NAME}` must appear exactly once, found {len(player_positions)}"
        )

    classified = ClassifiedLayers(layers=tuple(flattened), player_position=player_positions[0])
    logger.debug(
        "[LAYERS] %d render layers, %d below player, %d above",
        len(flattened),
        classified.player_position,
        len(flattened) - classified.player_position - 1,
    )
    return classified
