# Copyright (c) 2026 Tinct
# SPDX-License-Identifier: MIT

"""
Color frequency reduction.

Samples are binned by flooring each channel to a multiple of a
precision step, then counted. This collapses near-duplicate colors
before any strategy runs, trading fidelity for stable clusters and a
smaller working set.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
from numpy.typing import NDArray

from tinct.quantize.config import QuantizeConfig
from tinct.schema import Method, rgb_to_hex

# Quantized "#RRGGBB" -> occurrence count, in discovery order
ColorFrequencyMap = dict[str, int]


def precision_for(
    method: str,
    processable_pixels: int,
    config: Optional[QuantizeConfig] = None,
) -> int:
    """
    Precision step for a method and image size.

    Frequency-rank uses the finest buckets; everything else uses the
    normal step, or the coarse step on large images.
    """
    cfg = config or QuantizeConfig()
    if Method.coerce(method) is Method.FREQUENT:
        return cfg.frequent_precision
    if processable_pixels > cfg.large_image_threshold:
        return cfg.large_image_precision
    return cfg.precision


def reduce_precision(rgb: NDArray, precision: int) -> NDArray[np.uint8]:
    """Floor every channel to the nearest multiple of ``precision``."""
    if precision < 1:
        raise ValueError(f"precision must be >= 1, got {precision}")
    rgb = np.asarray(rgb, dtype=np.int64).reshape(-1, 3)
    return ((rgb // precision) * precision).astype(np.uint8)


def count_colors(rgb: NDArray) -> tuple[NDArray[np.uint8], NDArray[np.int64]]:
    """
    Distinct rows of an (N, 3) array with their counts.

    Rows are returned in order of first appearance.
    """
    rgb = np.asarray(rgb, dtype=np.uint8).reshape(-1, 3)
    if len(rgb) == 0:
        return np.zeros((0, 3), dtype=np.uint8), np.zeros(0, dtype=np.int64)
    unique, first_index, counts = np.unique(
        rgb, axis=0, return_index=True, return_counts=True
    )
    order = np.argsort(first_index, kind="stable")
    return unique[order], counts[order].astype(np.int64)


def build_frequency_map(rgb: NDArray, precision: int) -> ColorFrequencyMap:
    """
    Bin samples and count occurrences per quantized color.

    Args:
        rgb: (N, 3) samples
        precision: Bucket width per channel

    Returns:
        Mapping of upper-case "#RRGGBB" to count, in discovery order
    """
    colors, counts = count_colors(reduce_precision(rgb, precision))
    return {
        rgb_to_hex(r, g, b): int(count)
        for (r, g, b), count in zip(colors.tolist(), counts.tolist())
    }
