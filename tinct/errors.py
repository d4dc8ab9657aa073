# Copyright (c) 2026 Tinct
# SPDX-License-Identifier: MIT

"""Exceptions raised by the engine and its runtime."""


class TinctError(Exception):
    """Base exception for palette extraction errors."""

    pass


class ExtractionError(TinctError):
    """The pipeline cannot run at all (e.g. no image loaded)."""

    pass


class TransportError(TinctError):
    """Remote dispatch failed or the remote context is unavailable."""

    pass


class EnvelopeError(TransportError):
    """A remote response did not match the response contract."""

    pass
