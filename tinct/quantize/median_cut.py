# Copyright (c) 2026 Tinct
# SPDX-License-Identifier: MIT

"""
Median-cut palette.

Recursively splits the sample set on the channel with the widest range,
at the median, until the tree is ceil(log2(k)) levels deep. Each leaf
is reported as the mean color of its pixels.
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray

from tinct.quantize.palette import merge_duplicates, normalize, rank_weighted
from tinct.schema import ColorResult


def split_depth(k: int) -> int:
    """Tree depth needed for at least k leaves."""
    return math.ceil(math.log2(k)) if k > 1 else 0


def _median_cut(
    pixels: NDArray[np.int64],
    depth: int,
    max_depth: int,
    leaves: list[tuple[NDArray[np.float64], int]],
) -> None:
    """Append (mean color, population) for every leaf under this node."""
    spans = pixels.max(axis=0) - pixels.min(axis=0) if len(pixels) else np.zeros(3)

    if depth >= max_depth or len(pixels) <= 1 or not spans.any():
        leaves.append((pixels.mean(axis=0), len(pixels)))
        return

    # argmax favors red, then green, on equal ranges
    channel = int(np.argmax(spans))
    ordered = pixels[np.argsort(pixels[:, channel], kind="stable")]
    median = len(ordered) // 2

    _median_cut(ordered[:median], depth + 1, max_depth, leaves)
    _median_cut(ordered[median:], depth + 1, max_depth, leaves)


def median_cut_palette(
    rgb: NDArray[np.uint8],
    k: int,
) -> list[ColorResult]:
    """
    Extract a palette by median-cut partitioning.

    A node stops splitting at the target depth, when it holds a single
    pixel, or when all its pixels are identical. Leaves that round to
    the same color are merged.

    Args:
        rgb: (N, 3) opaque samples
        k: Maximum number of colors to return

    Returns:
        Up to k ColorResults ordered by leaf population
    """
    if k < 1:
        raise ValueError(f"k must be >= 1, got {k}")
    pixels = np.asarray(rgb, dtype=np.int64).reshape(-1, 3)
    if len(pixels) == 0:
        raise ValueError("Cannot run median cut on empty pixel array")

    leaves: list[tuple[NDArray[np.float64], int]] = []
    _median_cut(pixels, 0, split_depth(k), leaves)

    colors = np.rint(np.array([mean for mean, _ in leaves]))
    counts = np.array([count for _, count in leaves], dtype=np.float64)

    # Rank every leaf first so merging sees all of them, then trim to k
    ranked = rank_weighted(colors, counts, len(leaves))
    return normalize(merge_duplicates(ranked), k)
