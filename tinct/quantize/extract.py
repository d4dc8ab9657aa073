# Copyright (c) 2026 Tinct
# SPDX-License-Identifier: MIT

"""
Main extraction pipeline.

One call runs the whole unit of work: sample, bin, quantize, sanitize.
Executors (local or remote) call this and nothing else, so both paths
share one algorithm core.
"""

from __future__ import annotations

import time
from typing import Optional

import numpy as np
from loguru import logger

from tinct.errors import ExtractionError
from tinct.quantize.config import QuantizeConfig
from tinct.quantize.frequency import build_frequency_map, precision_for
from tinct.quantize.palette import RandomSource, frequency_palette
from tinct.quantize.registry import MethodSpec, StrategyInput, resolve_method
from tinct.quantize.sampler import prepare_samples
from tinct.quantize.sanitize import sanitize_colors
from tinct.schema import ColorResult, ExtractionRequest, ExtractionResponse, Method


def run_strategy(spec: MethodSpec, data: StrategyInput) -> tuple[list[ColorResult], str]:
    """
    Run one strategy with the shared failure policy.

    A strategy that raises falls back to frequency-rank on the same
    frequency map. If that also raises, the result is empty and the
    sanitizer supplies its default palette.

    Returns:
        (results, method actually used)
    """
    try:
        return spec.run(data), spec.method.value
    except Exception as e:
        logger.warning(
            "{} failed ({}: {}); falling back to frequency-rank",
            spec.display_name, type(e).__name__, e,
        )

    try:
        return frequency_palette(data.frequency, data.k), Method.FREQUENT.value
    except Exception as e:
        logger.warning("Frequency-rank fallback failed ({}: {})", type(e).__name__, e)
        return [], Method.FREQUENT.value


def extract(
    request: ExtractionRequest,
    *,
    config: Optional[QuantizeConfig] = None,
    rng: RandomSource = None,
) -> ExtractionResponse:
    """
    Extract a ranked palette for one request.

    Malformed, empty and fully transparent buffers are repaired rather
    than rejected, so this only raises when there is no pixel data at
    all.

    Args:
        request: Validated extraction request
        config: Engine settings (uses defaults if None)
        rng: numpy Generator or seed. Falls back to request.seed, then
            to fresh entropy.

    Returns:
        ExtractionResponse with success=True and a sanitized palette

    Raises:
        ExtractionError: If request.pixels is None

    Example:
        >>> from tinct.schema import ExtractionRequest
        >>> req = ExtractionRequest.create(bytes([255, 0, 0, 255] * 4), k=3)
        >>> extract(req).colors[0].hex
        '#F80000'
    """
    if request.pixels is None:
        raise ExtractionError("No pixel data to extract colors from")

    cfg = config or QuantizeConfig()
    start = time.perf_counter()

    spec = resolve_method(request.method)
    generator = np.random.default_rng(rng if rng is not None else request.seed)

    samples = prepare_samples(request.pixels, cfg.sample_cap_for(spec.method), cfg)
    if samples.synthetic:
        logger.debug("No usable pixels (repair={}); sampling neutral gray", samples.repair)

    precision = precision_for(spec.method, samples.processable_pixels, cfg)
    frequency = build_frequency_map(samples.rgb, precision)
    logger.debug(
        "Sampled {} pixels (stride {}), {} distinct at precision {}",
        samples.count, samples.stride, len(frequency), precision,
    )

    results, used = run_strategy(
        spec,
        StrategyInput(
            samples=samples.rgb,
            frequency=frequency,
            k=request.k,
            config=cfg,
            rng=generator,
        ),
    )

    colors, defaulted = sanitize_colors(results, request.k)
    if defaulted:
        logger.warning("{} produced no colors; using default palette", spec.display_name)
        used = "default"

    return ExtractionResponse(
        success=True,
        colors=colors,
        method=used,
        processing_time=(time.perf_counter() - start) * 1000.0,
        requested_method=spec.method.value,
    )
