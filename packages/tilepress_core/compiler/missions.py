"""Read per-map mission specs and merge them with placed mission objects."""

from __future__ import annotations

from logging import getLogger
from pathlib import Path
from typing import Any, Iterable, Mapping
import json

import yaml

from .errors import ConfigurationError, ResourceError
from .objects import GameMapMission, GameMapObject

logger = getLogger("tilepress_core.compiler.missions")

MISSION_FILE_SUFFIXES = (".yml", ".yaml", ".json")


def _load_spec_file(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except OSError as exc:
        raise ResourceError(f"Cannot read mission file {path}: {exc}") from exc
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ResourceError(f"Cannot parse mission file {path}: {exc}") from exc


class MissionDataReader:
    def __init__(self, mission_dirs: Mapping[str, Path]) -> None:
        self.mission_dirs = dict(mission_dirs)

    def read(self, map_id: str) -> list[dict[str, Any]]:
        mission_dir = self.mission_dirs.get(map_id)
        if mission_dir is None or not mission_dir.is_dir():
            logger.info("[MISSIONS] No mission directory for map '%s'", map_id)
            return []

        specs: list[dict[str, Any]] = []
        seen: set[str] = set()
        for path in sorted(mission_dir.iterdir()):
            if not path.is_file() or path.suffix not in MISSION_FILE_SUFFIXES:
                continue
            loaded = _load_spec_file(path)
            entries = loaded if isinstance(loaded, list) else [loaded]
            for entry in entries:
                if not isinstance(entry, dict) or not str(entry.get("id") or "").strip():
                    raise ConfigurationError(f"Mission spec in {path} must be a mapping with an 'id'")
                mission_id = str(entry["id"])
                if mission_id in seen:
                    raise ConfigurationError(f"Duplicate mission id '{mission_id}' in {path}")
                seen.add(mission_id)
                specs.append(entry)

        logger.info("[MISSIONS] Read %d mission specs for map '%s'", len(specs), map_id)
        return specs


def merge_mission_specs(
    map_id: str,
    specs: Iterable[dict[str, Any]],
    objects: Iterable[GameMapObject],
) -> dict[str, list[dict[str, Any]]]:
    placed: dict[str, GameMapMission] = {}
    for obj in objects:
        if not isinstance(obj, GameMapMission):
            continue
        other = placed.get(obj.mission)
        if other is not None:
            raise ConfigurationError(
                f"Mission '{obj.mission}' is placed twice on map '{map_id}': "
                f"'{other.id}' at {other.grid_coordinate.to_list()} and '{obj.id}' at {obj.grid_coordinate.to_list()}"
            )
        placed[obj.mission] = obj
    specs = list(specs)
    known = {str(spec["id"]) for spec in specs}

    unknown = [mission for mission in placed if mission not in known]
    if unknown:
        raise ConfigurationError(
            f"Map '{map_id}' places missions without specs: " + ", ".join(sorted(unknown))
        )

    merged: list[dict[str, Any]] = []
    for spec in specs:
        mission = dict(spec)
        mission["map"] = map_id
        obj = placed.get(str(spec["id"]))
        if obj is not None:
            mission["gridCoordinate"] = obj.grid_coordinate.to_list()
        else:
            logger.debug("[MISSIONS] Mission '%s' is not placed on map '%s'", spec["id"], map_id)
        merged.append(mission)
    return {map_id: merged}
