# Copyright (c) 2026 Tinct
# SPDX-License-Identifier: MIT

"""
Result sanitizing.

Last stop before a palette reaches the caller. Accepts strategy output
or untrusted dicts from a remote worker, drops anything unusable and
guarantees a non-empty palette whose percentages sum to 100.

It does not change which colors were measured, only how they are
summarized.
"""

from __future__ import annotations

import math
import re
from typing import Any, Iterable, Mapping, Optional

import numpy as np

from tinct.quantize.palette import normalize
from tinct.schema import DEFAULT_PALETTE, ColorResult

_HEX = re.compile(r"#?[0-9A-Fa-f]{6,}")


def _channel(value: Any) -> Optional[int]:
    """Channel value clamped to 0-255, or None if not numeric."""
    if isinstance(value, (bool, np.bool_)) or not isinstance(
        value, (int, float, np.integer, np.floating)
    ):
        return None
    try:
        value = float(value)
    except OverflowError:
        return 255 if value > 0 else 0
    if math.isnan(value) or math.isinf(value):
        return None
    return max(0, min(255, int(round(value))))


def _percentage(value: Any) -> float:
    """Percentage from a number or decimal string; junk becomes 0."""
    if isinstance(value, bool):
        return 0.0
    try:
        pct = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if math.isnan(pct) or math.isinf(pct):
        return 0.0
    return max(0.0, min(100.0, pct))


def coerce_color(candidate: Any) -> Optional[ColorResult]:
    """
    Rebuild one candidate entry as a ColorResult.

    Accepts a ColorResult, ``{hex, r, g, b, percentage}`` or the nested
    ``{hex, color: {r, g, b}, percentage}`` shape. The hex must be a
    string of at least 6 hex digits (optional leading ``#``) and every
    channel numeric; the result's hex is re-derived from the channels.

    Returns:
        ColorResult, or None if the entry is unusable
    """
    if isinstance(candidate, ColorResult):
        return candidate
    if not isinstance(candidate, Mapping):
        return None

    hex_value = candidate.get("hex")
    if not isinstance(hex_value, str) or not _HEX.fullmatch(hex_value):
        return None

    source = candidate.get("color") if isinstance(candidate.get("color"), Mapping) else candidate
    channels = [_channel(source.get(name)) for name in ("r", "g", "b")]
    if any(c is None for c in channels):
        return None

    r, g, b = channels
    return ColorResult.from_rgb(r, g, b, _percentage(candidate.get("percentage")))


def sanitize_colors(
    candidates: Optional[Iterable[Any]],
    k: Optional[int] = None,
) -> tuple[tuple[ColorResult, ...], bool]:
    """
    Filter, rank and renormalize a candidate palette.

    Args:
        candidates: Strategy output or untrusted entries (may be None or empty)
        k: Optional maximum palette size

    Returns:
        (colors, defaulted) where colors is never empty and sums to 100,
        and defaulted is True when DEFAULT_PALETTE was substituted
    """
    valid = []
    for candidate in candidates or ():
        color = coerce_color(candidate)
        if color is not None:
            valid.append(color)

    colors = normalize(valid, k)
    if not colors:
        return DEFAULT_PALETTE, True
    return tuple(colors), False
