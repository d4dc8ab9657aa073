# Copyright (c) 2026 Tinct
# SPDX-License-Identifier: MIT

"""
Dominant-hue palette.

Pixels are grouped into fixed hue bins and each bin is reported as the
mean color of its members. Achromatic pixels land in the 0° bin.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from tinct.quantize.colorspace import hue_bins
from tinct.quantize.palette import rank_weighted
from tinct.schema import ColorResult


def dominant_hue_palette(
    rgb: NDArray[np.uint8],
    k: int,
    bin_degrees: int = 30,
) -> list[ColorResult]:
    """
    Extract a palette of the most populated hue bins.

    Args:
        rgb: (N, 3) opaque samples
        k: Maximum number of colors to return
        bin_degrees: Width of each hue bin

    Returns:
        Up to k ColorResults (bin mean colors) ordered by population
    """
    if k < 1:
        raise ValueError(f"k must be >= 1, got {k}")
    rgb = np.asarray(rgb).reshape(-1, 3)
    if len(rgb) == 0:
        raise ValueError("Cannot extract dominant hues from empty pixel array")

    bins = hue_bins(rgb, bin_degrees)
    keys, first_index, inverse, counts = np.unique(
        bins, return_index=True, return_inverse=True, return_counts=True
    )
    inverse = inverse.reshape(-1)

    sums = np.zeros((len(keys), 3), dtype=np.float64)
    np.add.at(sums, inverse, rgb.astype(np.float64))
    means = np.rint(sums / counts[:, np.newaxis])

    # Discovery order so equal counts rank by first appearance
    order = np.argsort(first_index, kind="stable")
    return rank_weighted(means[order], counts[order], k)
