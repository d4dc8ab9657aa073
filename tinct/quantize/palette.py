# Copyright (c) 2026 Tinct
# SPDX-License-Identifier: MIT

"""
Palette extraction from a color frequency map.

Two approaches:
1. K-means: Groups binned colors into k clusters (K-means++ init)
2. Frequency-rank: Takes the k most common binned colors

K-means reports the most frequent real color of each cluster rather
than its centroid, so the palette never contains "muddy" averages.

Also hosts the ranking helpers shared by the other strategies.
"""

from __future__ import annotations

from typing import Iterable, Optional, Union

import numpy as np
from numpy.typing import NDArray

from tinct.quantize.colorspace import squared_distances
from tinct.quantize.frequency import ColorFrequencyMap
from tinct.schema import ColorResult, hex_to_rgb

RandomSource = Union[np.random.Generator, int, None]


# =============================================================================
# Ranking helpers
# =============================================================================


def rank_weighted(
    colors: NDArray,
    weights: NDArray,
    k: int,
) -> list[ColorResult]:
    """
    Turn (color, weight) pairs into a ranked palette.

    Keeps the k heaviest colors (ties keep input order) and expresses
    each weight as a percentage of the kept total.

    Args:
        colors: (M, 3) RGB values
        weights: (M,) non-negative weights
        k: Maximum number of results

    Returns:
        ColorResults sorted by percentage descending, summing to 100
    """
    colors = np.asarray(colors).reshape(-1, 3)
    weights = np.asarray(weights, dtype=np.float64).reshape(-1)
    if len(colors) == 0:
        return []

    order = np.argsort(-weights, kind="stable")[:k]
    kept = weights[order]
    total = kept.sum()

    results = []
    for idx, weight in zip(order, kept):
        r, g, b = (int(round(float(v))) for v in colors[idx])
        pct = (weight / total) * 100.0 if total > 0 else 100.0 / len(order)
        results.append(ColorResult.from_rgb(r, g, b, pct))
    return results


def merge_duplicates(results: Iterable[ColorResult]) -> list[ColorResult]:
    """Combine entries sharing a hex, summing percentages, first one wins."""
    merged: dict[str, float] = {}
    first: dict[str, ColorResult] = {}
    for c in results:
        if c.hex not in merged:
            first[c.hex] = c
            merged[c.hex] = 0.0
        merged[c.hex] += c.percentage
    return [first[h].with_percentage(min(100.0, pct)) for h, pct in merged.items()]


def normalize(results: Iterable[ColorResult], k: Optional[int] = None) -> list[ColorResult]:
    """Sort by percentage descending, keep k, rescale to sum to 100."""
    ranked = sorted(results, key=lambda c: c.percentage, reverse=True)
    if k is not None:
        ranked = ranked[:k]
    if not ranked:
        return []
    total = sum(c.percentage for c in ranked)
    if total <= 0:
        return [c.with_percentage(100.0 / len(ranked)) for c in ranked]
    return [c.with_percentage(c.percentage / total * 100.0) for c in ranked]


def _frequency_arrays(
    frequency: ColorFrequencyMap,
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Colors and counts of a frequency map, skipping non-positive counts."""
    items = [(hex_to_rgb(h), c) for h, c in frequency.items() if c > 0]
    if not items:
        raise ValueError("Cannot extract palette from empty frequency map")
    colors = np.array([rgb for rgb, _ in items], dtype=np.float64)
    counts = np.array([c for _, c in items], dtype=np.float64)
    return colors, counts


# =============================================================================
# Frequency-rank
# =============================================================================


def frequency_palette(
    frequency: ColorFrequencyMap,
    k: int,
) -> list[ColorResult]:
    """
    Extract palette using the most common binned colors.

    No clustering: colors are ranked by raw occurrence count.

    Args:
        frequency: Binned color counts
        k: Maximum number of colors to return

    Returns:
        Up to k ColorResults ordered by frequency, percentages summing to 100
    """
    if k < 1:
        raise ValueError(f"k must be >= 1, got {k}")
    colors, counts = _frequency_arrays(frequency)
    return rank_weighted(colors, counts, k)


# =============================================================================
# K-means
# =============================================================================


def kmeans_palette(
    frequency: ColorFrequencyMap,
    k: int,
    max_iter: int = 20,
    rng: RandomSource = None,
) -> list[ColorResult]:
    """
    Extract a palette by clustering binned colors.

    Clusters the distinct colors of the frequency map in RGB space,
    weighting each by its count. Each cluster is reported as the most
    frequent binned color inside it; its percentage is the cluster's
    share of all counted samples.

    When the map holds k or fewer distinct colors, clustering is skipped
    and all colors are returned ranked by frequency.

    Args:
        frequency: Binned color counts
        k: Number of clusters (may return fewer)
        max_iter: Maximum assignment/update rounds
        rng: numpy Generator or seed for K-means++ init (None for entropy)

    Returns:
        Up to k ColorResults ordered by percentage descending.
        Percentages sum to 100.
    """
    if k < 1:
        raise ValueError(f"k must be >= 1, got {k}")
    colors, counts = _frequency_arrays(frequency)

    if len(colors) <= k:
        return rank_weighted(colors, counts, k)

    generator = np.random.default_rng(rng)
    centroids, labels = _kmeans(colors, counts, k=k, max_iter=max_iter, rng=generator)

    representatives = []
    weights = []
    for j in range(len(centroids)):
        members = np.flatnonzero(labels == j)
        if len(members) == 0:
            continue
        # Most frequent real color; argmax keeps discovery order on ties
        best = members[np.argmax(counts[members])]
        representatives.append(colors[best])
        weights.append(counts[members].sum())

    return rank_weighted(np.array(representatives), np.array(weights), k)


def _init_centroids(
    points: NDArray[np.float64],
    k: int,
    rng: np.random.Generator,
) -> NDArray[np.float64]:
    """
    K-means++ seeding.

    First centroid uniform over the points; each next one drawn with
    probability proportional to the squared distance to its nearest
    existing centroid.
    """
    n = len(points)
    centroids = np.empty((k, 3), dtype=np.float64)
    centroids[0] = points[rng.integers(n)]

    for i in range(1, k):
        dists = squared_distances(points, centroids[:i]).min(axis=1)
        total = dists.sum()
        if total == 0:
            centroids[i] = points[rng.integers(n)]
        else:
            centroids[i] = points[rng.choice(n, p=dists / total)]

    return centroids


def _kmeans(
    points: NDArray[np.float64],
    weights: NDArray[np.float64],
    k: int,
    max_iter: int,
    rng: np.random.Generator,
) -> tuple[NDArray[np.float64], NDArray[np.int64]]:
    """
    Weighted k-means over distinct colors.

    Centroids are rounded to integer RGB after each update, so
    convergence means no centroid moved by a whole step. An empty
    cluster keeps its previous centroid.

    Returns:
        (centroids, labels) where labels are from the final assignment
    """
    centroids = _init_centroids(points, k, rng)
    labels = np.zeros(len(points), dtype=np.int64)

    for _ in range(max_iter):
        labels = np.argmin(squared_distances(points, centroids), axis=1)

        updated = centroids.copy()
        for j in range(k):
            mask = labels == j
            if np.any(mask):
                updated[j] = np.rint(
                    np.average(points[mask], axis=0, weights=weights[mask])
                )

        if np.array_equal(updated, centroids):
            break
        centroids = updated

    return centroids, labels
