# Copyright (c) 2026 Tinct
# SPDX-License-Identifier: MIT

"""
Schema definitions for palette extraction.

All types in this module are immutable (frozen dataclasses).
A response that reaches the caller always carries a renderable palette.
"""

from tinct.schema.palette import (
    DEFAULT_COLORS,
    DEFAULT_PALETTE,
    FALLBACK_TRIAD,
    MAX_COLORS,
    MIN_COLORS,
    ColorResult,
    ErrorCode,
    ExtractionRequest,
    ExtractionResponse,
    Method,
    clamp_color_count,
    hex_to_rgb,
    rgb_to_hex,
)

__all__ = [
    # Limits
    "MIN_COLORS",
    "MAX_COLORS",
    "DEFAULT_COLORS",
    # Core types
    "ColorResult",
    "Method",
    "ErrorCode",
    # Request / response
    "ExtractionRequest",
    "ExtractionResponse",
    # Fixed palettes
    "DEFAULT_PALETTE",
    "FALLBACK_TRIAD",
    # Helpers
    "clamp_color_count",
    "hex_to_rgb",
    "rgb_to_hex",
]
