"""Environment-driven settings for the map compiler."""

from __future__ import annotations

from dataclasses import dataclass, replace
import logging
import os

from .errors import ConfigurationError

DEFAULT_DEST_TILE_SIZE = 32
DEV_ENVIRONMENT = "dev"


def _env_str(name: str, default: str) -> str:
    raw = str(os.environ.get(name) or "").strip()
    return raw or default


def _env_int(name: str, default: int) -> int:
    raw = str(os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class CompilerSettings:
    environment: str = "prod"
    dest_tile_size: int = DEFAULT_DEST_TILE_SIZE
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.dest_tile_size <= 0:
            raise ConfigurationError(f"dest_tile_size must be positive, got {self.dest_tile_size}")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ConfigurationError(f"Unknown log level: {self.log_level}")

    @property
    def is_dev(self) -> bool:
        return self.environment.lower() == DEV_ENVIRONMENT

    def with_dev(self) -> "CompilerSettings":
        return replace(self, environment=DEV_ENVIRONMENT)

    @classmethod
    def from_env(cls) -> "CompilerSettings":
        return cls(
            environment=_env_str("TILEPRESS_ENVIRONMENT", "prod"),
            dest_tile_size=_env_int("TILEPRESS_DEST_TILE_SIZE", DEFAULT_DEST_TILE_SIZE),
            log_level=_env_str("TILEPRESS_LOG_LEVEL", "INFO").upper(),
        )
