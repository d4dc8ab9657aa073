# Copyright (c) 2026 Tinct
# SPDX-License-Identifier: MIT

"""
Pixel sampling.

Turns an arbitrary buffer claiming to be RGBA data into a bounded set
of opaque RGB samples:

1. Sanitize: copy to uint8, coerce junk to 0, floor, clamp to [0, 255]
2. Repair length: pad or truncate to whole pixels
3. Sample: fixed stride over the buffer, alpha-filtered

Nothing here raises on bad input. Empty or fully transparent input
yields a single synthetic neutral-gray sample.
"""

from __future__ import annotations

import itertools
import math
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np
from loguru import logger
from numpy.typing import NDArray

from tinct.quantize.config import QuantizeConfig


NEUTRAL_PIXEL = (128, 128, 128, 255)

# Buffers shorter than this are always padded when misaligned
SMALL_BUFFER_LENGTH = 100

# Remainders up to this size are padded even on large buffers
MAX_PADDED_REMAINDER = 2


@dataclass(frozen=True, eq=False)
class SampleSet:
    """
    Alpha-filtered RGB samples drawn from one buffer.

    Attributes:
        rgb: (N, 3) uint8 array of opaque samples, N >= 1
        stride: Pixel stride used when sampling
        total_pixels: Whole pixels in the repaired buffer
        transparent: Sampled pixels dropped for low alpha
        repair: Length repair applied ("none", "padded", "truncated", "synthesized")
        synthetic: True when rgb holds the synthetic neutral sample
    """
    rgb: NDArray[np.uint8]
    stride: int
    total_pixels: int
    transparent: int = 0
    repair: str = "none"
    synthetic: bool = False

    @property
    def count(self) -> int:
        return len(self.rgb)

    @property
    def processable_pixels(self) -> int:
        """Pixels available to the strategy before striding."""
        return self.total_pixels


def _coerce_value(value: Any) -> float:
    """Best-effort numeric value for one buffer element."""
    if isinstance(value, (bool, np.bool_)):
        return float(value)
    if isinstance(value, (int, float, np.integer, np.floating)):
        try:
            return float(value)
        except OverflowError:
            # Integers past float range; nan_to_num clamps the infinities
            return math.inf if value > 0 else -math.inf
    if isinstance(value, (str, bytes)):
        try:
            return float(value)
        except ValueError:
            return 0.0
    return 0.0


def sanitize_buffer(pixels: Any, max_length: int = 10 * 1024 * 1024) -> NDArray[np.uint8]:
    """
    Copy a raw buffer into a flat uint8 array.

    Non-numeric entries become 0, fractional values are floored and
    everything is clamped to [0, 255]. Only the first ``max_length``
    elements are considered. The input is never modified.

    Args:
        pixels: bytes-like, ndarray, or any iterable of values.
            None and non-iterables yield an empty array.
        max_length: Hard cap on elements read

    Returns:
        Flat uint8 array (possibly empty)
    """
    if pixels is None:
        return np.zeros(0, dtype=np.uint8)

    if isinstance(pixels, (bytes, bytearray, memoryview)):
        raw = bytes(pixels[:max_length])
        return np.frombuffer(raw, dtype=np.uint8).copy()

    if isinstance(pixels, np.ndarray):
        flat = pixels.reshape(-1)[:max_length]
        if flat.dtype == np.uint8:
            return flat.copy()
        if np.issubdtype(flat.dtype, np.number) or flat.dtype == np.bool_:
            values = flat.astype(np.float64)
        else:
            values = np.array([_coerce_value(v) for v in flat], dtype=np.float64)
    else:
        if isinstance(pixels, str):
            return np.zeros(0, dtype=np.uint8)
        try:
            head = list(itertools.islice(iter(pixels), max_length))
        except TypeError:
            logger.debug("Pixel buffer of type {} is not iterable", type(pixels).__name__)
            return np.zeros(0, dtype=np.uint8)
        values = np.array([_coerce_value(v) for v in head], dtype=np.float64)

    values = np.nan_to_num(values, nan=0.0, posinf=255.0, neginf=0.0)
    return np.clip(np.floor(values), 0, 255).astype(np.uint8)


def repair_length(buffer: NDArray[np.uint8]) -> tuple[NDArray[np.uint8], str]:
    """
    Make a sanitized buffer a whole number of RGBA pixels.

    - Empty: one opaque neutral-gray pixel
    - Misaligned, short buffer (< 100) or remainder <= 2: zero-pad
    - Misaligned, long buffer with remainder 3: truncate

    Zero padding completes the trailing pixel with alpha 0, so it never
    reaches the sample.

    Returns:
        (buffer, action) where action is "none", "padded", "truncated"
        or "synthesized"
    """
    length = len(buffer)
    if length == 0:
        return np.array(NEUTRAL_PIXEL, dtype=np.uint8), "synthesized"

    remainder = length % 4
    if remainder == 0:
        return buffer, "none"

    if length < SMALL_BUFFER_LENGTH or remainder <= MAX_PADDED_REMAINDER:
        padded = np.zeros(length + 4 - remainder, dtype=np.uint8)
        padded[:length] = buffer
        logger.debug("Padded pixel buffer from {} to {} values", length, len(padded))
        return padded, "padded"

    logger.debug("Truncated pixel buffer from {} to {} values", length, length - remainder)
    return buffer[: length - remainder], "truncated"


def sample_stride(total_pixels: int, sample_cap: int) -> int:
    """Stride that keeps the visited pixel count near ``sample_cap``."""
    return max(1, math.floor(total_pixels / max(1, sample_cap)))


def sample_pixels(
    buffer: NDArray[np.uint8],
    sample_cap: int,
    alpha_threshold: int = 128,
    repair: str = "none",
) -> SampleSet:
    """
    Stride over a whole-pixel RGBA buffer and keep opaque pixels.

    Args:
        buffer: Flat uint8 array whose length is a multiple of 4
        sample_cap: Approximate maximum number of pixels to visit
        alpha_threshold: Minimum alpha for a pixel to count as opaque
        repair: Length repair already applied (recorded on the result)

    Returns:
        SampleSet with at least one sample
    """
    if len(buffer) % 4 != 0:
        raise ValueError(f"Buffer length must be a multiple of 4, got {len(buffer)}")

    pixels = buffer.reshape(-1, 4)
    total = len(pixels)
    stride = sample_stride(total, sample_cap)

    visited = pixels[::stride]
    opaque = visited[visited[:, 3] >= alpha_threshold]
    transparent = len(visited) - len(opaque)

    if len(opaque) == 0:
        logger.debug("No opaque pixels among {} sampled; using neutral sample", len(visited))
        return SampleSet(
            rgb=np.array([NEUTRAL_PIXEL[:3]], dtype=np.uint8),
            stride=stride,
            total_pixels=total,
            transparent=transparent,
            repair=repair,
            synthetic=True,
        )

    return SampleSet(
        rgb=np.ascontiguousarray(opaque[:, :3]),
        stride=stride,
        total_pixels=total,
        transparent=transparent,
        repair=repair,
        synthetic=repair == "synthesized",
    )


def prepare_samples(
    pixels: Any,
    sample_cap: int,
    config: Optional[QuantizeConfig] = None,
) -> SampleSet:
    """
    Sanitize, repair and sample a raw pixel buffer.

    Args:
        pixels: Raw RGBA buffer in any supported form
        sample_cap: Approximate maximum number of pixels to visit
        config: Engine settings (uses defaults if None)

    Returns:
        SampleSet with at least one opaque sample
    """
    cfg = config or QuantizeConfig()
    buffer = sanitize_buffer(pixels, max_length=cfg.max_buffer_length)
    buffer, repair = repair_length(buffer)
    return sample_pixels(
        buffer,
        sample_cap=sample_cap,
        alpha_threshold=cfg.alpha_threshold,
        repair=repair,
    )
