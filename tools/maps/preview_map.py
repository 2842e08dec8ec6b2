#!/usr/bin/env python3
"""Render a compact ASCII preview of a compiled map.json."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from packages.tilepress_core.compiler.game_map import CompressedGameMap
from packages.tilepress_core.compiler.geometry import BLOCKER


def render_preview(compressed: CompressedGameMap) -> list[str]:
    raw_map = compressed.decompress()
    lines: list[str] = []
    for row in raw_map.raw_tiles:
        cells: list[str] = []
        for tile in row:
            if tile.blocker == BLOCKER:
                cells.append("#")
            elif not tile.layers:
                cells.append(".")
            elif len(tile.layers) > 9:
                cells.append("+")
            else:
                cells.append(str(len(tile.layers)))
        lines.append("".join(cells))
    return lines


def main() -> int:
    parser = argparse.ArgumentParser(description="Preview a compiled map as ASCII")
    parser.add_argument("map_path", type=Path, help="Path to a compiled map.json")
    args = parser.parse_args()

    payload = json.loads(args.map_path.read_text(encoding="utf-8"))
    compressed = CompressedGameMap.from_dict(payload)

    print(f"Map: {compressed.id} ({compressed.size.width}x{compressed.size.height})")
    print("Legend: # blocked, . empty, 1-9 layer count, + more than 9 layers")
    for line in render_preview(compressed):
        print(line)
    print(f"Objects: {len(compressed.objects)}, distinct tiles: {len(compressed.constant_pool)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
