#!/usr/bin/env python3

from __future__ import annotations

import math
import tempfile
import unittest
from pathlib import Path

from PIL import Image

from packages.tilepress_core.compiler.atlas import AtlasLayout, AtlasWriter, DedupIndex, compute_grid_size
from packages.tilepress_core.compiler.errors import InvariantViolationError
from packages.tilepress_core.compiler.geometry import GridCoordinate, ImageBlock, PixelBlock, PixelSize
from packages.tilepress_core.compiler.images import ImageAccessor
from tools.maps.tests.map_fixtures import TILE, write_terrain_image


def block(image: str, offset: int) -> ImageBlock:
    return ImageBlock(Path(image), PixelBlock((offset % 4) * TILE, (offset // 4) * TILE, TILE, TILE))


class DedupIndexTests(unittest.TestCase):
    def test_register_is_idempotent(self) -> None:
        index = DedupIndex()
        blocks = [block("a.png", 0), block("a.png", 1)]
        first = index.register(blocks)
        second = index.register(list(blocks))
        self.assertEqual(first, second)
        self.assertEqual(len(index), 1)

    def test_indices_start_at_one_in_first_seen_order(self) -> None:
        index = DedupIndex()
        self.assertEqual(index.register([block("a.png", 3)]), 1)
        self.assertEqual(index.register([block("a.png", 0)]), 2)
        self.assertEqual(index.register([block("a.png", 3)]), 1)
        self.assertEqual([i for i, _ in index.items()], [1, 2])

    def test_order_of_blocks_matters(self) -> None:
        index = DedupIndex()
        forward = index.register([block("a.png", 0), block("a.png", 1)])
        backward = index.register([block("a.png", 1), block("a.png", 0)])
        self.assertNotEqual(forward, backward)

    def test_same_block_in_different_images_is_distinct(self) -> None:
        index = DedupIndex()
        self.assertNotEqual(index.register([block("a.png", 0)]), index.register([block("b.png", 0)]))

    def test_index_of_unregistered_list_fails(self) -> None:
        index = DedupIndex()
        index.register([block("a.png", 0)])
        self.assertEqual(index.index_of([block("a.png", 0)]), 1)
        with self.assertRaises(InvariantViolationError):
            index.index_of([block("a.png", 5)])


class GridSizeTests(unittest.TestCase):
    def test_grid_is_sufficient_and_near_square(self) -> None:
        for count in range(0, 500):
            total = count + 1
            size = compute_grid_size(count)
            self.assertGreaterEqual(size.width * size.height, total, msg=f"count={count}")
            self.assertEqual(size.width, math.ceil(math.sqrt(total)), msg=f"count={count}")
            self.assertEqual(size.height, math.ceil(total / size.width), msg=f"count={count}")

    def test_single_entry_packs_into_two_by_one(self) -> None:
        size = compute_grid_size(1)
        self.assertEqual((size.width, size.height), (2, 1))

    def test_perfect_square(self) -> None:
        size = compute_grid_size(15)
        self.assertEqual((size.width, size.height), (4, 4))


class AtlasLayoutTests(unittest.TestCase):
    def test_coordinates_and_pixel_blocks(self) -> None:
        layout = AtlasLayout(compute_grid_size(5), PixelSize(32, 32))
        self.assertEqual((layout.grid_size.width, layout.grid_size.height), (3, 2))
        self.assertEqual(layout.coordinate_of(4), GridCoordinate(1, 1))
        self.assertEqual(layout.pixel_block_of(5), PixelBlock(64, 32, 32, 32))
        self.assertEqual((layout.pixel_size.width, layout.pixel_size.height), (96, 64))


class AtlasWriterTests(unittest.TestCase):
    def test_entries_are_drawn_bottom_to_top_into_their_slot(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            image = write_terrain_image(Path(td) / "terrain.png")
            index = DedupIndex()
            index.register([ImageBlock(image, PixelBlock(0, 0, TILE, TILE))])
            index.register([
                ImageBlock(image, PixelBlock(0, 0, TILE, TILE)),
                ImageBlock(image, PixelBlock(48, 0, TILE, TILE)),
            ])
            layout = AtlasLayout.for_index(index, PixelSize(TILE, TILE))
            out = AtlasWriter(layout, ImageAccessor()).write(Path(td) / "tileset.png", index)

            with Image.open(out) as atlas:
                atlas = atlas.convert("RGBA")
                self.assertEqual(atlas.size, (2 * TILE, 2 * TILE))
                self.assertEqual(atlas.getpixel((1, 1)), (0, 0, 0, 0))
                self.assertEqual(atlas.getpixel((TILE + 1, 1)), (255, 0, 0, 255))
                self.assertEqual(atlas.getpixel((1, TILE + 1)), (0, 0, 255, 255))
                self.assertEqual(atlas.getpixel((TILE + 1, TILE + 1)), (0, 0, 0, 0))

    def test_tiles_are_scaled_to_dest_tile_size(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            image = write_terrain_image(Path(td) / "terrain.png")
            index = DedupIndex()
            index.register([ImageBlock(image, PixelBlock(0, 16, TILE, TILE))])
            layout = AtlasLayout.for_index(index, PixelSize(32, 32))
            atlas = AtlasWriter(layout, ImageAccessor()).render(index)
            self.assertEqual(atlas.size, (64, 32))
            self.assertEqual(atlas.getpixel((63, 31)), (255, 255, 0, 255))


if __name__ == "__main__":
    unittest.main()
