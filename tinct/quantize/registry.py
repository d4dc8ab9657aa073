# Copyright (c) 2026 Tinct
# SPDX-License-Identifier: MIT

"""
Method registry.

Maps a method identifier to its strategy and human-readable name.
Strategies take a StrategyInput so the pipeline can call any of them
the same way, whether they consume the frequency map or raw samples.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

import numpy as np
from numpy.typing import NDArray

from tinct.quantize.config import QuantizeConfig
from tinct.quantize.frequency import ColorFrequencyMap
from tinct.quantize.hue import dominant_hue_palette
from tinct.quantize.layered import layered_palette
from tinct.quantize.median_cut import median_cut_palette
from tinct.quantize.palette import frequency_palette, kmeans_palette
from tinct.schema import ColorResult, Method


@dataclass(frozen=True, eq=False)
class StrategyInput:
    """Everything a strategy may consume for one extraction."""
    samples: NDArray[np.uint8]
    frequency: ColorFrequencyMap
    k: int
    config: QuantizeConfig
    rng: np.random.Generator


Strategy = Callable[[StrategyInput], list[ColorResult]]


@dataclass(frozen=True)
class MethodSpec:
    """
    A registered quantization method.

    Attributes:
        method: Identifier
        display_name: Human-readable name for consumers
        run: Strategy entry point
        uses_samples: True if the strategy reads raw samples instead
            of the frequency map
    """
    method: Method
    display_name: str
    run: Strategy
    uses_samples: bool = False


def _run_kmeans(data: StrategyInput) -> list[ColorResult]:
    return kmeans_palette(
        data.frequency, data.k, max_iter=data.config.max_iterations, rng=data.rng
    )


def _run_frequent(data: StrategyInput) -> list[ColorResult]:
    return frequency_palette(data.frequency, data.k)


def _run_dominant(data: StrategyInput) -> list[ColorResult]:
    return dominant_hue_palette(data.samples, data.k, data.config.hue_bin_degrees)


def _run_median(data: StrategyInput) -> list[ColorResult]:
    return median_cut_palette(data.samples, data.k)


def _run_layered(data: StrategyInput) -> list[ColorResult]:
    return layered_palette(data.samples, data.k, config=data.config, rng=data.rng)


_REGISTRY: dict[Method, MethodSpec] = {
    spec.method: spec
    for spec in (
        MethodSpec(Method.KMEANS, "K-means clustering", _run_kmeans),
        MethodSpec(Method.FREQUENT, "Most-frequent colors", _run_frequent),
        MethodSpec(Method.DOMINANT, "Dominant hue", _run_dominant, uses_samples=True),
        MethodSpec(Method.MEDIAN, "Median cut", _run_median, uses_samples=True),
        MethodSpec(Method.LAYERED, "Layered by brightness", _run_layered, uses_samples=True),
    )
}


def resolve_method(identifier: Any) -> MethodSpec:
    """Spec for a method identifier; unknown identifiers resolve to K-means."""
    return _REGISTRY[Method.coerce(identifier)]


def method_name(identifier: Any) -> str:
    """
    Display name for a method identifier.

    Identifiers outside the registry (e.g. "default") come back unchanged.
    """
    if isinstance(identifier, Method):
        return _REGISTRY[identifier].display_name
    try:
        return _REGISTRY[Method(identifier)].display_name
    except ValueError:
        return str(identifier)


def available_methods() -> tuple[MethodSpec, ...]:
    """All registered methods in declaration order."""
    return tuple(_REGISTRY.values())
