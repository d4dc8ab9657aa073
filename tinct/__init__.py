# Copyright (c) 2026 Tinct
# SPDX-License-Identifier: MIT

"""
Tinct -- ranked color-palette extraction.

Reduces an image to a small palette of representative colors, each with
the share of the image it covers. Five strategies are available
(k-means, most-frequent, dominant hue, median cut, brightness-layered),
and extraction can be offloaded to a worker process with a timeout and
automatic local fallback.

Quick start::

    from tinct import extract_colors

    response = extract_colors("photo.jpg", k=5, method="median")
    for color in response.colors:
        print(color.hex, color.percentage)

Logging uses loguru and is disabled for the ``tinct`` namespace until
the application calls ``logger.enable("tinct")``.
"""

from __future__ import annotations

__version__ = "1.0.0"

from pathlib import Path
from typing import Any, Optional, Union

from loguru import logger

from tinct.errors import EnvelopeError, ExtractionError, TinctError, TransportError
from tinct.io import ImageData, load_image, pick_color, resize_image
from tinct.quantize import available_methods, method_name
from tinct.runtime import (
    CoordinatorConfig,
    LocalExecutor,
    OffloadCoordinator,
    ProcessExecutor,
)
from tinct.schema import (
    ColorResult,
    ErrorCode,
    ExtractionRequest,
    ExtractionResponse,
    Method,
)

logger.disable("tinct")


def extract_colors(
    image: Union[str, Path, Any],
    k: int = 5,
    method: str = "kmeans",
    *,
    offload: bool = False,
    timeout: float = 15.0,
    seed: Optional[int] = None,
) -> ExtractionResponse:
    """
    Extract a ranked palette from an image.

    Args:
        image: Path, (H, W, 3|4) uint8 array, or already loaded ImageData
        k: Number of colors (clamped to 1-20)
        method: "kmeans", "frequent", "dominant", "median" or "layered"
        offload: Run in a worker process, falling back locally on
            timeout or failure
        timeout: Seconds to wait for the worker
        seed: Seed for reproducible k-means runs

    Returns:
        ExtractionResponse (success is False only if extraction could
        not run at all; colors is never empty)

    Raises:
        ExtractionError: If the image file cannot be read
    """
    config = CoordinatorConfig(timeout=timeout)
    if not isinstance(image, ImageData):
        max_dimension = config.remote_max_dimension if offload else config.local_max_dimension
        image = load_image(image, max_dimension=max_dimension)

    request = ExtractionRequest.from_image(image, k=k, method=method, seed=seed)
    if not offload:
        with OffloadCoordinator(local=LocalExecutor(), config=config) as coordinator:
            return coordinator.extract(request)

    # The fallback runs on the smaller local working size
    small = resize_image(image, config.local_max_dimension)
    local_request = (
        request if small is image
        else ExtractionRequest.from_image(small, k=k, method=method, seed=seed)
    )
    with OffloadCoordinator(
        remote=ProcessExecutor(), local=LocalExecutor(), config=config,
    ) as coordinator:
        return coordinator.extract(request, local_request)


__all__ = [
    # Core API
    "extract_colors",
    "load_image",
    "pick_color",
    "method_name",
    "available_methods",
    "OffloadCoordinator",
    # Types (commonly needed)
    "ColorResult",
    "ExtractionRequest",
    "ExtractionResponse",
    "ImageData",
    "Method",
    "ErrorCode",
    # Errors
    "TinctError",
    "ExtractionError",
    "TransportError",
    "EnvelopeError",
    # Version
    "__version__",
]
