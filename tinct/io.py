# Copyright (c) 2026 Tinct
# SPDX-License-Identifier: MIT

"""
Image loading for palette extraction.

Turns a file path or pixel array into the interleaved RGBA buffer the
engine consumes, downsized to a working dimension. The engine itself
never decodes or resizes images.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np
from loguru import logger
from numpy.typing import NDArray
from PIL import Image, ImageCms, UnidentifiedImageError

from tinct.errors import ExtractionError
from tinct.schema import ColorResult


@dataclass(frozen=True, slots=True)
class ImageData:
    """
    Decoded image ready for extraction.

    Attributes:
        pixels: Interleaved RGBA bytes, row-major, length width*height*4
        width, height: Dimensions after downsizing
        source_width, source_height: Dimensions of the original image
            (0 means same as width/height)
    """
    pixels: bytes
    width: int
    height: int
    source_width: int = 0
    source_height: int = 0

    def __post_init__(self):
        if self.source_width <= 0:
            object.__setattr__(self, "source_width", self.width)
        if self.source_height <= 0:
            object.__setattr__(self, "source_height", self.height)


def load_image(
    image: Union[str, Path, NDArray[np.uint8]],
    max_dimension: int = 400,
) -> ImageData:
    """
    Load an image into an RGBA buffer.

    Embedded ICC profiles are converted to sRGB so the extracted colors
    match what color pickers show. The longest side is reduced to
    ``max_dimension`` (aspect preserved); smaller images are left alone.

    Args:
        image: Path to an image file, or (H, W, 3|4) uint8 array
        max_dimension: Longest side of the working image (0 keeps full size)

    Returns:
        ImageData

    Raises:
        ExtractionError: If the file cannot be read or decoded
        ValueError: If an array has the wrong shape or dtype
        TypeError: If image is neither a path nor an array
    """
    if isinstance(image, (str, Path)):
        img = _open(Path(image))
    elif isinstance(image, np.ndarray):
        img = _from_array(image)
    else:
        raise TypeError(f"Expected file path or numpy array, got {type(image)}")

    source_width, source_height = img.size
    img = _downsize(img, max_dimension)
    width, height = img.size
    return ImageData(
        pixels=img.tobytes(),
        width=width,
        height=height,
        source_width=source_width,
        source_height=source_height,
    )


def resize_image(image: ImageData, max_dimension: int) -> ImageData:
    """Downsize an already loaded image, keeping its source dimensions."""
    if max(image.width, image.height) <= max_dimension or max_dimension <= 0:
        return image
    img = Image.frombytes("RGBA", (image.width, image.height), image.pixels)
    img = _downsize(img, max_dimension)
    width, height = img.size
    return ImageData(
        pixels=img.tobytes(),
        width=width,
        height=height,
        source_width=image.source_width,
        source_height=image.source_height,
    )


def pick_color(image: ImageData, x: int, y: int) -> ColorResult:
    """
    Read the color of a single pixel.

    Coordinates are in original-image space and are scaled onto the
    loaded buffer, so a downsized image answers with the pixel that
    covers that point. Load with ``max_dimension=0`` for exact values.

    Args:
        image: Loaded image
        x, y: Column and row in the original image

    Returns:
        ColorResult with percentage 100.0 (alpha is ignored)

    Raises:
        ValueError: If the point lies outside the image
    """
    if not (0 <= x < image.source_width and 0 <= y < image.source_height):
        raise ValueError(
            f"Point ({x}, {y}) is outside the "
            f"{image.source_width}x{image.source_height} image"
        )
    col = min(image.width - 1, x * image.width // image.source_width)
    row = min(image.height - 1, y * image.height // image.source_height)
    offset = (row * image.width + col) * 4
    r, g, b = image.pixels[offset:offset + 3]
    return ColorResult.from_rgb(r, g, b, 100.0)


def _open(path: Path) -> Image.Image:
    try:
        with Image.open(path) as src:
            src.load()
            img = _to_srgb(src)
    except (OSError, UnidentifiedImageError) as e:
        raise ExtractionError(f"Could not read image {path}: {e}") from e
    return img if img.mode == "RGBA" else img.convert("RGBA")


def _to_srgb(img: Image.Image) -> Image.Image:
    """Apply the embedded ICC profile, keeping any alpha channel."""
    icc = img.info.get("icc_profile")
    if not icc:
        return img.convert("RGBA")

    rgba = img.convert("RGBA")
    alpha = rgba.getchannel("A")
    try:
        embedded_profile = ImageCms.ImageCmsProfile(io.BytesIO(icc))
        srgb_profile = ImageCms.createProfile("sRGB")
        rgb = ImageCms.profileToProfile(rgba.convert("RGB"), embedded_profile, srgb_profile)
    except (ImageCms.PyCMSError, OSError) as e:
        logger.debug("ICC conversion failed ({}); using raw RGB", e)
        return rgba

    rgb.putalpha(alpha)
    return rgb


def _from_array(pixels: NDArray[np.uint8]) -> Image.Image:
    if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
        raise ValueError(f"Expected (H, W, 3) or (H, W, 4) array, got shape {pixels.shape}")
    if pixels.dtype != np.uint8:
        raise ValueError(f"Expected uint8 array, got {pixels.dtype}")
    return Image.fromarray(np.ascontiguousarray(pixels)).convert("RGBA")


def _downsize(img: Image.Image, max_dimension: int) -> Image.Image:
    """Shrink so the longest side is at most max_dimension (Lanczos)."""
    width, height = img.size
    longest = max(width, height)
    if max_dimension <= 0 or longest <= max_dimension:
        return img

    scale = max_dimension / longest
    new_size = (max(1, round(width * scale)), max(1, round(height * scale)))
    logger.debug("Downsizing {}x{} to {}x{}", width, height, *new_size)
    return img.resize(new_size, Image.Resampling.LANCZOS)
