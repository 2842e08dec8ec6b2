#!/usr/bin/env python3
"""Compile a Tiled map export into a packed runtime map."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import re
import sys

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from packages.tilepress_core.compiler import CompilerSettings, MapCompilerError, MapGenerator

MAP_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def _startup_errors(args: argparse.Namespace) -> list[str]:
    errors: list[str] = []
    if not MAP_ID_PATTERN.match(args.map_id):
        errors.append(f"map id must match {MAP_ID_PATTERN.pattern}: {args.map_id!r}")
    if not args.tiled_map_json.is_file():
        errors.append(f"Tiled map export not found: {args.tiled_map_json}")
    if not args.mission_data_root.is_dir():
        errors.append(f"mission data root is not a directory: {args.mission_data_root}")
    if args.output_dir.exists() and not args.output_dir.is_dir():
        errors.append(f"output path is not a directory: {args.output_dir}")
    return errors


def main() -> int:
    parser = argparse.ArgumentParser(description="Compile a Tiled map into tileset.png, map.json and missions.json")
    parser.add_argument("map_id", help="Map identifier, e.g. JavaIsland")
    parser.add_argument("tiled_map_json", type=Path, help="Path to the Tiled map JSON export")
    parser.add_argument("mission_data_root", type=Path, help="Root holding <map_id>/missions")
    parser.add_argument("output_dir", type=Path, help="Directory for the compiled map files")
    parser.add_argument(
        "--dev",
        action="store_true",
        help="Also write the uncompressed map.raw.json for inspection",
    )
    args = parser.parse_args()

    try:
        settings = CompilerSettings.from_env()
    except MapCompilerError as exc:
        print(f"ERR: {exc}")
        return 1
    if args.dev:
        settings = settings.with_dev()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    errors = _startup_errors(args)
    if errors:
        for error in errors:
            print(f"ERR: {error}")
        return 1

    try:
        result = MapGenerator(
            args.map_id,
            args.tiled_map_json,
            args.mission_data_root / args.map_id / "missions",
            args.output_dir,
            settings=settings,
        ).generate()
    except MapCompilerError as exc:
        print(f"ERR: [{exc.error_code}] {exc}")
        return 1

    print(f"Wrote atlas to {result.tileset_path} ({result.grid_size.width}x{result.grid_size.height} grid)")
    print(f"Wrote map to {result.map_path}")
    if result.raw_map_path:
        print(f"Wrote raw map to {result.raw_map_path}")
    print(f"Wrote missions to {result.missions_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
