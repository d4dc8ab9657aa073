# Copyright (c) 2026 Tinct
# SPDX-License-Identifier: MIT

"""
Request/response envelopes for crossing an execution-context boundary.

Requests go out as plain dicts holding a sanitized ``bytes`` snapshot of
the pixel buffer, so the remote side never shares memory with the
caller. Responses come back as plain dicts and are checked against the
response contract before anything reaches the consumer; a response
that does not match raises EnvelopeError.
"""

from __future__ import annotations

from typing import Any, Mapping

from tinct.errors import EnvelopeError
from tinct.quantize.sampler import sanitize_buffer
from tinct.quantize.sanitize import sanitize_colors
from tinct.schema import ErrorCode, ExtractionRequest, ExtractionResponse


def encode_request(
    request: ExtractionRequest,
    max_length: int = 10 * 1024 * 1024,
) -> dict:
    """
    Serialize a request into a self-contained payload.

    The pixel buffer is copied (sanitized, capped) into ``bytes``;
    ``None`` stays ``None`` so the remote side can report it.
    """
    pixels = None
    if request.pixels is not None:
        pixels = sanitize_buffer(request.pixels, max_length=max_length).tobytes()
    return {
        "pixels": pixels,
        "width": request.width,
        "height": request.height,
        "k": request.k,
        "method": request.method.value,
        "seed": request.seed,
    }


def decode_request(payload: Any) -> ExtractionRequest:
    """Rebuild a request from a payload, coercing invalid fields."""
    if not isinstance(payload, Mapping):
        raise EnvelopeError(f"Request payload must be a mapping, got {type(payload).__name__}")
    return ExtractionRequest.create(
        payload.get("pixels"),
        width=payload.get("width", 0),
        height=payload.get("height", 0),
        k=payload.get("k"),
        method=payload.get("method"),
        seed=payload.get("seed"),
    )


def decode_response(envelope: Any) -> ExtractionResponse:
    """
    Validate and rebuild a response envelope from a remote context.

    The envelope must be a mapping with a boolean ``success``, a
    non-empty ``colors`` list containing at least one usable entry, a
    non-empty string ``method`` and a numeric ``processingTime`` (if
    present). Unusable color entries are dropped and percentages are
    renormalized.

    Raises:
        EnvelopeError: If the envelope does not match the contract
    """
    if not isinstance(envelope, Mapping):
        raise EnvelopeError(f"Response must be a mapping, got {type(envelope).__name__}")

    success = envelope.get("success")
    if not isinstance(success, bool):
        raise EnvelopeError(f"'success' must be a bool, got {success!r}")

    raw_colors = envelope.get("colors")
    if not isinstance(raw_colors, (list, tuple)) or not raw_colors:
        raise EnvelopeError("'colors' must be a non-empty list")

    method = envelope.get("method")
    if not isinstance(method, str) or not method:
        raise EnvelopeError(f"'method' must be a non-empty string, got {method!r}")

    processing_time = envelope.get("processingTime", 0.0)
    if isinstance(processing_time, bool) or not isinstance(processing_time, (int, float)):
        raise EnvelopeError(f"'processingTime' must be a number, got {processing_time!r}")
    try:
        processing_time = float(processing_time)
    except OverflowError as e:
        raise EnvelopeError(f"'processingTime' is out of range: {e}") from e

    colors, defaulted = sanitize_colors(raw_colors)
    if defaulted:
        raise EnvelopeError("No usable color entries in response")

    error = None
    if envelope.get("error") is not None:
        try:
            error = ErrorCode(envelope["error"])
        except ValueError:
            error = ErrorCode.UNRECOVERABLE

    notice = envelope.get("notice")
    requested = envelope.get("requestedMethod")
    return ExtractionResponse(
        success=success,
        colors=colors,
        method=method,
        processing_time=processing_time,
        error=error,
        executor="remote",
        notice=notice if isinstance(notice, str) else None,
        requested_method=requested if isinstance(requested, str) else None,
    )
