# Copyright (c) 2026 Tinct
# SPDX-License-Identifier: MIT

"""
Palette extraction schema: requests, results and responses.

Design principles:
- Immutable: All types are frozen dataclasses
- Validated at entry: Request fields are coerced to defaults, never
  left to fail later in the pipeline
- Always renderable: A response that reaches the caller carries a
  non-empty palette whose percentages sum to 100
- Serializable: Plain dicts of str/int/float/bytes so requests and
  responses can cross a process boundary

Wire contract (response)::

    {
      "success": true,
      "colors": [{"hex": "#FF0000", "r": 255, "g": 0, "b": 0, "percentage": 50.0}],
      "method": "kmeans",
      "processingTime": 3.41
    }
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


# =============================================================================
# Constants
# =============================================================================

MIN_COLORS = 1
MAX_COLORS = 20
DEFAULT_COLORS = 5

# Percentages in a delivered palette must sum to 100 within this tolerance
PERCENTAGE_TOLERANCE = 0.5

_HEX_RE = re.compile(r"^#[0-9A-F]{6}$")


class Method(str, Enum):
    """Quantization strategies understood by the engine."""
    KMEANS = "kmeans"
    FREQUENT = "frequent"
    DOMINANT = "dominant"
    MEDIAN = "median"
    LAYERED = "layered"

    @classmethod
    def coerce(cls, value: Any) -> Method:
        """Map any value to a Method; unrecognized values become KMEANS."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.KMEANS


class ErrorCode(str, Enum):
    """Failure taxonomy. Only UNRECOVERABLE is ever surfaced as an error."""
    INPUT_MALFORMED = "input_malformed"
    ALL_TRANSPARENT_OR_EMPTY = "all_transparent_or_empty"
    STRATEGY_FAILURE = "strategy_failure"
    TRANSPORT_FAILURE = "transport_failure"
    UNRECOVERABLE = "unrecoverable"


# =============================================================================
# Helpers
# =============================================================================


def rgb_to_hex(r: int, g: int, b: int) -> str:
    """Format an RGB triple as ``#RRGGBB`` (upper-case)."""
    return f"#{int(r):02X}{int(g):02X}{int(b):02X}"


def hex_to_rgb(value: str) -> tuple[int, int, int]:
    """
    Parse ``#RRGGBB`` or ``RRGGBB`` (any case) into an RGB triple.

    Raises:
        ValueError: If the string is not a 6-digit hex color
    """
    digits = value.strip().lstrip("#")
    if len(digits) != 6:
        raise ValueError(f"Expected 6 hex digits, got {value!r}")
    try:
        return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)
    except ValueError:
        raise ValueError(f"Invalid hex color {value!r}") from None


def _coerce_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def clamp_color_count(value: Any) -> int:
    """Coerce a requested color count into [MIN_COLORS, MAX_COLORS]."""
    k = _coerce_int(value, DEFAULT_COLORS)
    return max(MIN_COLORS, min(MAX_COLORS, k))


# =============================================================================
# Core Types
# =============================================================================


@dataclass(frozen=True, slots=True)
class ColorResult:
    """
    One entry of an extracted palette.

    Attributes:
        hex: ``#RRGGBB`` upper-case, always agrees with r/g/b
        r, g, b: Channel values 0-255
        percentage: Share of the sampled pixels this color represents (0-100)
    """
    hex: str
    r: int
    g: int
    b: int
    percentage: float

    def __post_init__(self) -> None:
        """Validate channel ranges and hex format."""
        for name in ("r", "g", "b"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"Channel {name} must be an int, got {value!r}")
            if not 0 <= value <= 255:
                raise ValueError(f"Channel {name} must be 0-255, got {value}")
        if not isinstance(self.hex, str) or not _HEX_RE.match(self.hex):
            raise ValueError(f"Hex must look like #RRGGBB, got {self.hex!r}")
        if self.hex != rgb_to_hex(self.r, self.g, self.b):
            raise ValueError(
                f"Hex {self.hex} does not match rgb({self.r}, {self.g}, {self.b})"
            )
        if not 0.0 <= self.percentage <= 100.0 + 1e-6:
            raise ValueError(f"Percentage must be 0-100, got {self.percentage}")

    @classmethod
    def from_rgb(cls, r: int, g: int, b: int, percentage: float) -> ColorResult:
        """Build a result from channel values, deriving the hex string."""
        r, g, b = int(r), int(g), int(b)
        return cls(
            hex=rgb_to_hex(r, g, b),
            r=r,
            g=g,
            b=b,
            percentage=min(100.0, max(0.0, float(percentage))),
        )

    @property
    def rgb(self) -> tuple[int, int, int]:
        return self.r, self.g, self.b

    def with_percentage(self, percentage: float) -> ColorResult:
        """Copy of this color carrying a different percentage."""
        return ColorResult.from_rgb(self.r, self.g, self.b, percentage)

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "hex": self.hex,
            "r": self.r,
            "g": self.g,
            "b": self.b,
            "percentage": round(self.percentage, 2),
        }

    @classmethod
    def from_dict(cls, data: dict) -> ColorResult:
        """Deserialize from dictionary."""
        return cls.from_rgb(data["r"], data["g"], data["b"], data["percentage"])


# Substituted by the sanitizer when nothing valid survives
DEFAULT_PALETTE: tuple[ColorResult, ...] = (
    ColorResult.from_rgb(255, 255, 255, 50.0),
    ColorResult.from_rgb(0, 0, 0, 50.0),
)

# Carried by unrecoverable failures so the consumer can still render
FALLBACK_TRIAD: tuple[ColorResult, ...] = (
    ColorResult.from_rgb(128, 128, 128, 100.0),
    ColorResult.from_rgb(255, 255, 255, 0.0),
    ColorResult.from_rgb(0, 0, 0, 0.0),
)


@dataclass(frozen=True, slots=True)
class ExtractionRequest:
    """
    A single palette extraction request.

    Construct through ``create`` (or ``from_image``) so every field is
    coerced at entry. ``pixels`` is whatever the caller supplied; the
    sampler reads a sanitized copy and never mutates it.

    Attributes:
        pixels: Interleaved RGBA values (bytes, ndarray or any sequence).
            None means no image is loaded.
        width, height: Source dimensions (informational, 0 if unknown)
        k: Desired color count, 1-20
        method: Quantization strategy
        seed: Optional seed for randomized strategies
    """
    pixels: Any
    width: int = 0
    height: int = 0
    k: int = DEFAULT_COLORS
    method: Method = Method.KMEANS
    seed: Optional[int] = None

    @classmethod
    def create(
        cls,
        pixels: Any,
        width: Any = 0,
        height: Any = 0,
        k: Any = DEFAULT_COLORS,
        method: Any = Method.KMEANS,
        seed: Any = None,
    ) -> ExtractionRequest:
        """Build a request, coercing invalid fields to defaults."""
        return cls(
            pixels=pixels,
            width=max(0, _coerce_int(width, 0)),
            height=max(0, _coerce_int(height, 0)),
            k=clamp_color_count(k),
            method=Method.coerce(method),
            seed=None if seed is None else _coerce_int(seed, 0),
        )

    @classmethod
    def from_image(
        cls,
        image: Any,
        k: Any = DEFAULT_COLORS,
        method: Any = Method.KMEANS,
        seed: Any = None,
    ) -> ExtractionRequest:
        """Build a request from a loaded ``tinct.io.ImageData``."""
        return cls.create(
            image.pixels,
            width=image.width,
            height=image.height,
            k=k,
            method=method,
            seed=seed,
        )

    @property
    def longest_side(self) -> int:
        return max(self.width, self.height)


@dataclass(frozen=True, slots=True)
class ExtractionResponse:
    """
    Result of one extraction, local or remote.

    Attributes:
        success: False only for unrecoverable failures
        colors: Palette ordered by percentage, never empty
        method: Method actually used. Differs from ``requested_method``
            when a strategy fell back ("frequent"), when the fixed
            palette was substituted ("default"), or on unrecoverable
            failure ("fallback").
        processing_time: Wall time in milliseconds
        error: Set only when success is False
        executor: "remote" or "local"
        notice: Warning text for recovered transport failures
        requested_method: Method named in the request
    """
    success: bool
    colors: tuple[ColorResult, ...]
    method: str
    processing_time: float = 0.0
    error: Optional[ErrorCode] = None
    executor: str = "local"
    notice: Optional[str] = None
    requested_method: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the delivered-palette invariant."""
        if not self.colors:
            raise ValueError("Response palette cannot be empty")
        total = sum(c.percentage for c in self.colors)
        if abs(total - 100.0) > PERCENTAGE_TOLERANCE:
            raise ValueError(f"Palette percentages must sum to 100, got {total:.2f}")

    @property
    def fell_back(self) -> bool:
        """True when the method used differs from the one requested."""
        return self.requested_method is not None and self.method != self.requested_method

    def to_dict(self) -> dict:
        """Serialize using the wire contract's key names."""
        result: dict = {
            "success": self.success,
            "colors": [c.to_dict() for c in self.colors],
            "method": self.method,
            "processingTime": round(self.processing_time, 3),
            "executor": self.executor,
        }
        if self.requested_method is not None:
            result["requestedMethod"] = self.requested_method
        if self.error is not None:
            result["error"] = self.error.value
        if self.notice is not None:
            result["notice"] = self.notice
        return result

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: dict) -> ExtractionResponse:
        """Deserialize from dictionary (trusted input; see runtime.envelope)."""
        error = data.get("error")
        return cls(
            success=data["success"],
            colors=tuple(ColorResult.from_dict(c) for c in data["colors"]),
            method=data["method"],
            processing_time=float(data.get("processingTime", 0.0)),
            error=ErrorCode(error) if error is not None else None,
            executor=data.get("executor", "local"),
            notice=data.get("notice"),
            requested_method=data.get("requestedMethod"),
        )

    @classmethod
    def from_json(cls, json_str: str) -> ExtractionResponse:
        """Deserialize from JSON string."""
        return cls.from_dict(json.loads(json_str))
