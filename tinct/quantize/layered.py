# Copyright (c) 2026 Tinct
# SPDX-License-Identifier: MIT

"""
Brightness-layered palette.

Splits samples into highlight, midtone and shadow bands by luma, runs a
coarse K-means inside each band, then backfills from frequency-rank so
images dominated by one band still get k colors.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
from numpy.typing import NDArray

from tinct.quantize.colorspace import luma
from tinct.quantize.config import QuantizeConfig
from tinct.quantize.frequency import build_frequency_map
from tinct.quantize.palette import (
    RandomSource,
    frequency_palette,
    kmeans_palette,
    merge_duplicates,
    normalize,
)
from tinct.schema import ColorResult


def brightness_bands(
    rgb: NDArray[np.uint8],
    high: float = 0.7,
    low: float = 0.3,
) -> dict[str, NDArray[np.uint8]]:
    """
    Partition samples by normalized luma.

    Returns:
        {"high": > high, "medium": between, "low": < low}, in that order
    """
    rgb = np.asarray(rgb).reshape(-1, 3)
    y = luma(rgb)
    is_high = y > high
    is_low = y < low
    return {
        "high": rgb[is_high],
        "medium": rgb[~is_high & ~is_low],
        "low": rgb[is_low],
    }


def layered_palette(
    rgb: NDArray[np.uint8],
    k: int,
    config: Optional[QuantizeConfig] = None,
    rng: RandomSource = None,
) -> list[ColorResult]:
    """
    Extract a palette stratified by brightness.

    Each non-empty band gets max(1, k // bands) clusters. A band's
    colors are weighted by the band's share of the samples. Missing
    slots are filled from the most frequent colors of the whole sample
    (binned on the band grid), skipping colors already present.

    Args:
        rgb: (N, 3) opaque samples
        k: Maximum number of colors to return
        config: Engine settings (uses defaults if None)
        rng: numpy Generator or seed for the per-band K-means

    Returns:
        Up to k ColorResults ordered by percentage, summing to 100
    """
    if k < 1:
        raise ValueError(f"k must be >= 1, got {k}")
    rgb = np.asarray(rgb).reshape(-1, 3)
    if len(rgb) == 0:
        raise ValueError("Cannot layer an empty pixel array")

    cfg = config or QuantizeConfig()
    generator = np.random.default_rng(rng)
    total = len(rgb)

    bands = {
        name: pixels
        for name, pixels in brightness_bands(rgb, cfg.high_luma, cfg.low_luma).items()
        if len(pixels) > 0
    }
    per_band = max(1, k // len(bands))

    results: list[ColorResult] = []
    for pixels in bands.values():
        share = len(pixels) / total
        band_frequency = build_frequency_map(pixels, cfg.band_precision)
        for color in kmeans_palette(
            band_frequency, per_band, max_iter=cfg.max_iterations, rng=generator
        ):
            results.append(color.with_percentage(color.percentage * share))
    results = merge_duplicates(results)

    if len(results) < k:
        present = {c.hex for c in results}
        frequent = frequency_palette(
            build_frequency_map(rgb, cfg.band_precision), k
        )
        for color in frequent:
            if len(results) >= k:
                break
            if color.hex not in present:
                results.append(color)
                present.add(color.hex)

    return normalize(results, k)
