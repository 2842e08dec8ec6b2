#!/usr/bin/env python3

from __future__ import annotations

import unittest
from pathlib import Path

from packages.tilepress_core.compiler.atlas import AtlasLayout, DedupIndex
from packages.tilepress_core.compiler.errors import ConfigurationError
from packages.tilepress_core.compiler.geometry import GridCoordinate, PixelSize
from packages.tilepress_core.compiler.resolver import TileResolver
from packages.tilepress_core.compiler.sprites import DynamicSpriteReader
from packages.tilepress_core.compiler.tiled import TiledLayer, TiledTileset, TilesetAndImage
from tools.maps.tests.map_fixtures import group_layer, terrain_tileset, tile_layer

TERRAIN = Path("/assets/terrain.png")
WIDTH = 4
HEIGHT = 3


def sprite_group(*sprites: tuple[str, list[int]]) -> list[TiledLayer]:
    children = [tile_layer(10 + i, name, data, WIDTH, HEIGHT) for i, (name, data) in enumerate(sprites)]
    return [
        TiledLayer.model_validate(tile_layer(1, "Player", [0] * WIDTH * HEIGHT, WIDTH, HEIGHT)),
        TiledLayer.model_validate(group_layer(2, "DynamicSprites", children)),
    ]


class DynamicSpriteReaderTests(unittest.TestCase):
    def setUp(self) -> None:
        terrain = TiledTileset.model_validate(terrain_tileset())
        self.resolver = TileResolver([TilesetAndImage(tileset=terrain, image=TERRAIN, firstgid=1)])
        self.index = DedupIndex()
        self.reader = DynamicSpriteReader(WIDTH, self.resolver, self.index)

    def test_two_by_one_sprite_with_animated_column(self) -> None:
        data = [0] * WIDTH * HEIGHT
        data[1 * WIDTH + 1] = 6  # animated, 3 frames
        data[1 * WIDTH + 2] = 1  # static
        sprites = self.reader.read_and_register(sprite_group(("Torch", data)))

        torch = sprites["Torch"]
        self.assertEqual(torch.top_left_corner, GridCoordinate(1, 1))
        self.assertEqual(len(torch.frames), 1)
        self.assertEqual(len(torch.frames[0]), 2)
        self.assertEqual(len(torch.frames[0][0]), 3)
        self.assertEqual(len(torch.frames[0][1]), 1)
        # Every frame is registered on its own.
        self.assertEqual(len(self.index), 4)

    def test_sprite_frames_map_to_atlas_coordinates(self) -> None:
        data = [0] * WIDTH * HEIGHT
        data[0] = 6
        data[1] = 1
        self.reader.read_and_register(sprite_group(("Torch", data)))
        layout = AtlasLayout.for_index(self.index, PixelSize(32, 32))
        sprite = self.reader.dynamic_sprites(layout)[0]

        self.assertEqual(layout.grid_size.width, 3)
        self.assertEqual(sprite.frames[0][0], (GridCoordinate(1, 0), GridCoordinate(2, 0), GridCoordinate(0, 1)))
        self.assertEqual(sprite.frames[0][1], (GridCoordinate(1, 1),))
        payload = sprite.to_dict()
        self.assertEqual(payload["id"], "Torch")
        self.assertEqual(payload["gridCoordinate"], [0, 0])
        self.assertEqual(payload["frames"][0][1], [[1, 1]])

    def test_two_by_two_sprite(self) -> None:
        data = [0] * WIDTH * HEIGHT
        for i in (1, 2, WIDTH + 1, WIDTH + 2):
            data[i] = 5
        sprite = self.reader.read_and_register(sprite_group(("Statue", data)))["Statue"]
        self.assertEqual([len(row) for row in sprite.frames], [2, 2])
        self.assertEqual(len(self.index), 1)

    def test_oversized_footprint_is_rejected(self) -> None:
        data = [0] * WIDTH * HEIGHT
        data[0] = 1
        data[2] = 1
        with self.assertRaises(ConfigurationError) as ctx:
            self.reader.read_and_register(sprite_group(("Wide", data)))
        self.assertIn("Wide", str(ctx.exception))

        data = [0] * WIDTH * HEIGHT
        data[0] = 1
        data[2 * WIDTH] = 1
        with self.assertRaises(ConfigurationError):
            DynamicSpriteReader(WIDTH, self.resolver, DedupIndex()).read_and_register(sprite_group(("Tall", data)))

    def test_malformed_footprints_are_rejected(self) -> None:
        diagonal = [0] * WIDTH * HEIGHT
        diagonal[1] = 1
        diagonal[WIDTH] = 1
        holes = [0] * WIDTH * HEIGHT
        holes[0] = 1
        holes[WIDTH + 1] = 1
        stray = [0] * WIDTH * HEIGHT
        stray[1] = 1
        stray[WIDTH] = 1
        stray[WIDTH + 1] = 1
        cases = (("Empty", [0] * WIDTH * HEIGHT), ("Diagonal", diagonal), ("Holes", holes), ("Stray", stray))
        for name, data in cases:
            reader = DynamicSpriteReader(WIDTH, self.resolver, DedupIndex())
            with self.assertRaises(ConfigurationError, msg=name):
                reader.read_and_register(sprite_group((name, data)))

    def test_duplicate_sprite_names(self) -> None:
        data = [1] + [0] * (WIDTH * HEIGHT - 1)
        with self.assertRaises(ConfigurationError):
            self.reader.read_and_register(sprite_group(("Torch", data), ("Torch", data)))

    def test_map_without_sprite_group(self) -> None:
        layers = [TiledLayer.model_validate(tile_layer(1, "Player", [0] * WIDTH * HEIGHT, WIDTH, HEIGHT))]
        self.assertEqual(self.reader.read_and_register(layers), {})


if __name__ == "__main__":
    unittest.main()
