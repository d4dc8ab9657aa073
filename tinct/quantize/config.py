# Copyright (c) 2026 Tinct
# SPDX-License-Identifier: MIT

"""Tunable constants for the quantization engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from tinct.schema import Method


def _default_sample_caps() -> dict[str, int]:
    return {
        Method.KMEANS.value: 8000,
        Method.FREQUENT.value: 5000,
        Method.DOMINANT.value: 8000,
        Method.MEDIAN.value: 5000,
        Method.LAYERED.value: 5000,
    }


@dataclass(frozen=True)
class QuantizeConfig:
    """Configuration for sampling, binning and clustering."""

    # Maximum pixels visited per strategy (sets the sampling stride)
    # Larger caps trade speed for statistical precision
    sample_caps: Mapping[str, int] = field(default_factory=_default_sample_caps)
    default_sample_cap: int = 3000

    # Hard cap on buffer elements considered, regardless of stride
    max_buffer_length: int = 10 * 1024 * 1024

    # Pixels with alpha below this are treated as transparent
    alpha_threshold: int = 128

    # Precision steps (bucket width per channel)
    precision: int = 8
    large_image_precision: int = 16
    large_image_threshold: int = 10_000  # processable pixels
    frequent_precision: int = 4  # frequency-rank wants finer buckets
    band_precision: int = 16  # per-band K-means in the layered strategy

    # K-means
    max_iterations: int = 20

    # Dominant-hue bin width in degrees
    hue_bin_degrees: int = 30

    # Layered strategy luma thresholds (normalized 0-1)
    high_luma: float = 0.7
    low_luma: float = 0.3

    def sample_cap_for(self, method: str) -> int:
        """Sample cap for a method identifier."""
        key = method.value if isinstance(method, Method) else str(method)
        return max(1, int(self.sample_caps.get(key, self.default_sample_cap)))
