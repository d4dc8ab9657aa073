# Copyright (c) 2026 Tinct
# SPDX-License-Identifier: MIT

"""
Color math used by the strategies.

Everything here works in plain sRGB byte space. Distances are Euclidean
in RGB, hue is the simplified max/min formula and brightness is
Rec. 601 luma; none of it aims at perceptual accuracy.

All functions are vectorized over (N, 3) arrays.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


# =============================================================================
# Brightness
# =============================================================================

LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


def luma(rgb: NDArray) -> NDArray[np.float64]:
    """
    Perceptual luma normalized to [0, 1].

    0.299·R + 0.587·G + 0.114·B over 255.
    """
    rgb = np.asarray(rgb, dtype=np.float64).reshape(-1, 3)
    return rgb @ LUMA_WEIGHTS / 255.0


# =============================================================================
# Hue
# =============================================================================


def hue_degrees(rgb: NDArray) -> NDArray[np.float64]:
    """
    Hue in degrees [0, 360) from the max/min channel formula.

    Achromatic pixels (max == min) get hue 0.
    """
    rgb = np.asarray(rgb, dtype=np.float64).reshape(-1, 3)
    r, g, b = rgb[:, 0], rgb[:, 1], rgb[:, 2]
    cmax = rgb.max(axis=1)
    cmin = rgb.min(axis=1)
    delta = cmax - cmin

    chromatic = delta > 0
    safe_delta = np.where(chromatic, delta, 1.0)

    hue = np.zeros(len(rgb), dtype=np.float64)
    # Order matters: when two channels tie for max, red wins, then green
    is_b = chromatic & (cmax == b)
    is_g = chromatic & (cmax == g)
    is_r = chromatic & (cmax == r)
    hue = np.where(is_b, (r - g) / safe_delta + 4.0, hue)
    hue = np.where(is_g, (b - r) / safe_delta + 2.0, hue)
    hue = np.where(is_r, np.mod((g - b) / safe_delta, 6.0), hue)

    return np.mod(hue * 60.0, 360.0)


def hue_bins(rgb: NDArray, bin_degrees: int = 30) -> NDArray[np.int64]:
    """Hue floored to ``bin_degrees`` bins, e.g. 0, 30, ..., 330."""
    if bin_degrees <= 0:
        raise ValueError(f"bin_degrees must be positive, got {bin_degrees}")
    hues = hue_degrees(rgb)
    bins = np.floor(hues / bin_degrees).astype(np.int64) * bin_degrees
    return np.mod(bins, 360)


# =============================================================================
# Distance
# =============================================================================


def squared_distances(points: NDArray, centers: NDArray) -> NDArray[np.float64]:
    """
    Squared Euclidean RGB distance from every point to every center.

    Args:
        points: (N, 3)
        centers: (K, 3)

    Returns:
        (N, K) array
    """
    points = np.asarray(points, dtype=np.float64)
    centers = np.asarray(centers, dtype=np.float64)
    return np.sum((points[:, np.newaxis, :] - centers[np.newaxis, :, :]) ** 2, axis=2)
