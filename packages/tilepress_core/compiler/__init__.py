"""Offline compiler from Tiled map exports to packed runtime maps."""

from .errors import (
    CompilerUsageError,
    ConfigurationError,
    InvariantViolationError,
    MapCompilerError,
    ResourceError,
)
from .game_map import CompressedGameMap, RawGameMap
from .generator import GenerationResult, MapGenerator
from .settings import CompilerSettings

__all__ = [
    "CompilerSettings",
    "CompilerUsageError",
    "CompressedGameMap",
    "ConfigurationError",
    "GenerationResult",
    "InvariantViolationError",
    "MapCompilerError",
    "MapGenerator",
    "RawGameMap",
    "ResourceError",
]
