"""Cached access to source tileset images."""

from __future__ import annotations

from logging import getLogger
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from .errors import ResourceError
from .geometry import ImageBlock, RGBA

logger = getLogger("tilepress_core.compiler.images")

_ALPHA_MODES = {"RGBA", "LA", "PA", "RGBa", "La"}


def _has_alpha(img: Image.Image) -> bool:
    return img.mode in _ALPHA_MODES or (img.mode == "P" and "transparency" in img.info)


class ImageAccessor:
    """Decodes each source image once and memoizes pixel and per-block alpha queries.

    Images without an alpha channel (binary, greyscale, RGB, palette without
    a transparency key) are treated as fully opaque.
    """

    def __init__(self) -> None:
        self._images: dict[Path, Image.Image] = {}
        self._opaque: dict[ImageBlock, bool] = {}
        self._transparent: dict[ImageBlock, bool] = {}
        self._pixels: dict[tuple[Path, int, int], RGBA] = {}

    def get_image(self, path: Path) -> Image.Image:
        img = self._images.get(path)
        if img is None:
            img = self._decode(path)
            self._images[path] = img
        return img

    def _decode(self, path: Path) -> Image.Image:
        try:
            with Image.open(path) as src:
                src.load()
                if _has_alpha(src):
                    img = src.convert("RGBA")
                else:
                    img = src.convert("RGB").convert("RGBA")
        except (OSError, UnidentifiedImageError) as exc:
            raise ResourceError(f"Cannot read image {path}: {exc}") from exc
        logger.debug("[IMAGES] Decoded %s (%dx%d, mode=%s)", path, img.width, img.height, img.mode)
        return img

    def crop(self, image_block: ImageBlock) -> Image.Image:
        img = self.get_image(image_block.image)
        block = image_block.block
        if block.x + block.width > img.width or block.y + block.height > img.height:
            raise ResourceError(
                f"Block {block} is outside image {image_block.image} ({img.width}x{img.height})"
            )
        return img.crop(block.box())

    def read_pixel(self, image: Path, x: int, y: int) -> RGBA:
        key = (image, x, y)
        pixel = self._pixels.get(key)
        if pixel is None:
            pixel = RGBA(*self.get_image(image).getpixel((x, y)))
            self._pixels[key] = pixel
        return pixel

    def read_alpha(self, image: Path, x: int, y: int) -> int:
        return self.read_pixel(image, x, y).a

    def _alpha_extrema(self, image_block: ImageBlock) -> tuple[int, int]:
        low, high = self.crop(image_block).getchannel("A").getextrema()
        return int(low), int(high)

    def is_fully_opaque(self, image_block: ImageBlock) -> bool:
        cached = self._opaque.get(image_block)
        if cached is None:
            cached = self._alpha_extrema(image_block)[0] == 255
            self._opaque[image_block] = cached
        return cached

    def is_fully_transparent(self, image_block: ImageBlock) -> bool:
        cached = self._transparent.get(image_block)
        if cached is None:
            cached = self._alpha_extrema(image_block)[1] == 0
            self._transparent[image_block] = cached
        return cached
