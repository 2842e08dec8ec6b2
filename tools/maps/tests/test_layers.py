#!/usr/bin/env python3

from __future__ import annotations

import unittest

from packages.tilepress_core.compiler.blockers import BlockerMap
from packages.tilepress_core.compiler.errors import ConfigurationError
from packages.tilepress_core.compiler.geometry import BLOCKER, NON_BLOCKER, GridCoordinate
from packages.tilepress_core.compiler.layers import classify_layers
from packages.tilepress_core.compiler.tiled import TiledLayer
from tools.maps.tests.map_fixtures import group_layer, object_layer, tile_layer


def layers(*raw: dict) -> list[TiledLayer]:
    return [TiledLayer.model_validate(layer) for layer in raw]


def empty(layer_id: int, name: str, **extra) -> dict:
    return tile_layer(layer_id, name, [0, 0, 0, 0], 2, 2, **extra)


class ClassifyLayersTests(unittest.TestCase):
    def test_depths_are_relative_to_player(self) -> None:
        classified = classify_layers(
            layers(empty(1, "Ground"), empty(2, "Floor"), empty(3, "Player"), empty(4, "Roof"))
        )
        self.assertEqual(classified.depths(), {1: -2, 2: -1, 3: 0, 4: 1})
        self.assertEqual([(layer.name, depth) for layer, depth in classified.tile_layers()], [
            ("Ground", -2),
            ("Floor", -1),
            ("Roof", 1),
        ])

    def test_blockers_sprites_and_invisible_layers_are_excluded(self) -> None:
        classified = classify_layers(
            layers(
                empty(1, "Blockers"),
                empty(2, "Hidden", visible=False),
                empty(3, "Ground"),
                group_layer(4, "DynamicSprites", [empty(5, "Torch")]),
                empty(6, "Player"),
            )
        )
        self.assertEqual([layer.name for layer in classified.layers], ["Ground", "Player"])
        self.assertEqual(classified.depths()[3], -1)

    def test_groups_are_flattened_to_visible_children(self) -> None:
        classified = classify_layers(
            layers(
                group_layer(
                    1,
                    "Terrain",
                    [empty(2, "Water"), empty(3, "Sand", visible=False), empty(4, "Grass")],
                    draworder="index",
                ),
                empty(5, "Player"),
                object_layer(6, "Objects", []),
            )
        )
        self.assertEqual([layer.name for layer in classified.layers], ["Water", "Grass", "Player", "Objects"])
        self.assertEqual(classified.layers[0].draworder, "index")
        self.assertEqual(classified.depths()[6], 1)
        self.assertEqual([layer.name for layer, _ in classified.tile_layers()], ["Water", "Grass"])

    def test_invisible_group_is_dropped_entirely(self) -> None:
        classified = classify_layers(
            layers(group_layer(1, "Terrain", [empty(2, "Water")], visible=False), empty(3, "Player"))
        )
        self.assertEqual([layer.name for layer in classified.layers], ["Player"])

    def test_duplicate_layer_ids_are_reported_with_names(self) -> None:
        with self.assertRaises(ConfigurationError) as ctx:
            classify_layers(layers(empty(1, "Ground"), empty(1, "Floor"), empty(2, "Player")))
        self.assertIn("Ground", str(ctx.exception))
        self.assertIn("Floor", str(ctx.exception))

    def test_duplicate_id_on_excluded_layer_is_ignored(self) -> None:
        classified = classify_layers(layers(empty(1, "Blockers"), empty(1, "Ground"), empty(2, "Player")))
        self.assertEqual(classified.depths()[1], -1)

    def test_missing_player_layer(self) -> None:
        with self.assertRaises(ConfigurationError):
            classify_layers(layers(empty(1, "Ground")))

    def test_repeated_player_layer(self) -> None:
        with self.assertRaises(ConfigurationError):
            classify_layers(layers(empty(1, "Player"), empty(2, "Player")))


class BlockerMapTests(unittest.TestCase):
    def test_only_non_zero_cells_are_recorded(self) -> None:
        layer = TiledLayer.model_validate(tile_layer(1, "Blockers", [0, 7, 0, 1, 0, 0], 3, 2))
        blockers = BlockerMap.from_layer(layer, 3)
        self.assertEqual(len(blockers), 2)
        self.assertNotIn(GridCoordinate(0, 0), blockers)
        self.assertEqual(blockers.get(GridCoordinate(0, 0)), NON_BLOCKER)
        self.assertIn(GridCoordinate(1, 0), blockers)
        self.assertEqual(blockers.get(GridCoordinate(1, 0)), BLOCKER)
        self.assertEqual(blockers.get(GridCoordinate(0, 1)), BLOCKER)
        self.assertEqual(list(blockers), [GridCoordinate(1, 0), GridCoordinate(0, 1)])

    def test_missing_layer_blocks_nothing(self) -> None:
        blockers = BlockerMap.from_layer(None, 3)
        self.assertEqual(len(blockers), 0)
        self.assertEqual(blockers.get(GridCoordinate(2, 1)), NON_BLOCKER)


if __name__ == "__main__":
    unittest.main()
