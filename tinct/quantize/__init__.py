# Copyright (c) 2026 Tinct
# SPDX-License-Identifier: MIT

"""
Quantization engine for Tinct.

Reduces a sampled pixel set to a small ranked palette. Every operation
is bounded (capped samples, capped buffer, capped iterations) and runs
to completion without suspension.
"""

from tinct.quantize.config import QuantizeConfig
from tinct.quantize.extract import extract
from tinct.quantize.registry import available_methods, method_name, resolve_method

__all__ = [
    "extract",
    "QuantizeConfig",
    "resolve_method",
    "method_name",
    "available_methods",
]
