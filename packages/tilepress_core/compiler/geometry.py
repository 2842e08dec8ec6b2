"""Value types shared by every compiler stage."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import NamedTuple

BLOCKER = 1
NON_BLOCKER = 0


class RGBA(NamedTuple):
    r: int
    g: int
    b: int
    a: int


@dataclass(frozen=True)
class GridCoordinate:
    x: int
    y: int

    def to_list(self) -> list[int]:
        return [self.x, self.y]

    @classmethod
    def from_index(cls, index: int, width: int) -> "GridCoordinate":
        """Row-major cell index to coordinate."""
        return cls(index % width, index // width)


@dataclass(frozen=True)
class GridSize:
    width: int
    height: int

    def to_dict(self) -> dict[str, int]:
        return {"width": self.width, "height": self.height}


@dataclass(frozen=True)
class PixelSize:
    width: int
    height: int

    def to_dict(self) -> dict[str, int]:
        return {"width": self.width, "height": self.height}


@dataclass(frozen=True)
class PixelBlock:
    x: int
    y: int
    width: int
    height: int

    def box(self) -> tuple[int, int, int, int]:
        """Pillow crop box (left, upper, right, lower)."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)


@dataclass(frozen=True)
class ImageBlock:
    """A sub-rectangle of one source image; the unit of deduplication."""

    image: Path
    block: PixelBlock

    def content_key(self) -> tuple[str, int, int, int, int]:
        return (str(self.image), self.block.x, self.block.y, self.block.width, self.block.height)
