# Copyright (c) 2026 Tinct
# SPDX-License-Identifier: MIT

"""Tests for pixel sampling (sanitize, length repair, alpha filtering)."""

import numpy as np
import pytest

from tinct.quantize.config import QuantizeConfig
from tinct.quantize.sampler import (
    NEUTRAL_PIXEL,
    prepare_samples,
    repair_length,
    sample_pixels,
    sample_stride,
    sanitize_buffer,
)


def _rgba(*pixels):
    """Flat uint8 buffer from (r, g, b, a) tuples."""
    return np.array([v for p in pixels for v in p], dtype=np.uint8)


def _solid(rgba, count):
    return _rgba(*([rgba] * count))


class TestSanitizeBuffer:

    def test_bytes_are_copied(self):
        raw = bytearray([1, 2, 3, 4])
        buf = sanitize_buffer(raw)
        raw[0] = 99
        assert buf.tolist() == [1, 2, 3, 4]

    def test_junk_values_coerced(self):
        buf = sanitize_buffer([300, -5, "12", None, 3.7, float("nan"), "abc", 255.9, 10**400, -10**400])
        assert buf.tolist() == [255, 0, 12, 0, 3, 0, 0, 255, 255, 0]

    def test_float_array_floored_and_clamped(self):
        buf = sanitize_buffer(np.array([0.5, 127.9, 256.0, -1.0]))
        assert buf.dtype == np.uint8
        assert buf.tolist() == [0, 127, 255, 0]

    def test_length_capped(self):
        buf = sanitize_buffer(bytes(range(16)), max_length=8)
        assert len(buf) == 8

    def test_none_and_non_iterable_are_empty(self):
        assert len(sanitize_buffer(None)) == 0
        assert len(sanitize_buffer(42)) == 0

    def test_input_not_mutated(self):
        arr = np.array([10, 20, 30, 255], dtype=np.uint8)
        buf = sanitize_buffer(arr)
        buf[0] = 0
        assert arr[0] == 10


class TestRepairLength:

    def test_empty_synthesizes_neutral_pixel(self):
        buf, action = repair_length(np.zeros(0, dtype=np.uint8))
        assert action == "synthesized"
        assert tuple(buf.tolist()) == NEUTRAL_PIXEL

    def test_aligned_untouched(self):
        buf, action = repair_length(_solid((1, 2, 3, 255), 3))
        assert action == "none"
        assert len(buf) == 12

    def test_short_buffer_padded(self):
        buf, action = repair_length(np.arange(7, dtype=np.uint8))
        assert action == "padded"
        assert len(buf) == 8
        assert buf[-1] == 0

    @pytest.mark.parametrize("length", [101, 102])
    def test_small_remainder_padded(self, length):
        buf, action = repair_length(np.full(length, 200, dtype=np.uint8))
        assert action == "padded"
        assert len(buf) == 104
        assert len(buf) >= length

    def test_remainder_three_truncated(self):
        buf, action = repair_length(np.full(103, 200, dtype=np.uint8))
        assert action == "truncated"
        assert len(buf) == 100


class TestSamplePixels:

    def test_rejects_misaligned_buffer(self):
        with pytest.raises(ValueError):
            sample_pixels(np.zeros(6, dtype=np.uint8), sample_cap=10)

    def test_transparent_pixels_dropped(self):
        buf = _rgba((255, 0, 0, 255), (0, 255, 0, 0), (0, 0, 255, 127), (9, 9, 9, 128))
        samples = sample_pixels(buf, sample_cap=100)
        assert samples.rgb.tolist() == [[255, 0, 0], [9, 9, 9]]
        assert samples.transparent == 2
        assert not samples.synthetic

    def test_all_transparent_yields_neutral_sample(self):
        samples = sample_pixels(_solid((255, 0, 0, 0), 10), sample_cap=100)
        assert samples.synthetic
        assert samples.rgb.tolist() == [list(NEUTRAL_PIXEL[:3])]

    def test_stride_bounds_sample_count(self):
        samples = sample_pixels(_solid((5, 5, 5, 255), 1000), sample_cap=100)
        assert samples.stride == 10
        assert samples.count == 100
        assert samples.total_pixels == 1000

    def test_stride_never_below_one(self):
        assert sample_stride(3, 100) == 1
        assert sample_stride(0, 100) == 1


class TestPrepareSamples:

    def test_padded_pixel_is_transparent(self):
        # 25 opaque pixels plus one stray value: the padded pixel has alpha 0
        buf = list(_solid((255, 0, 0, 255), 25)) + [255]
        samples = prepare_samples(buf, sample_cap=1000)
        assert samples.repair == "padded"
        assert samples.total_pixels == 26
        assert samples.count == len(buf) // 4

    def test_truncated_buffer_sample_count(self):
        buf = list(_solid((0, 0, 255, 255), 25)) + [1, 2, 3]
        samples = prepare_samples(buf, sample_cap=1000)
        assert samples.repair == "truncated"
        assert samples.count == 25

    def test_short_misaligned_buffer(self):
        samples = prepare_samples([255, 0, 0, 255, 0, 0], sample_cap=1000)
        assert samples.repair == "padded"
        assert samples.rgb.tolist() == [[255, 0, 0]]

    def test_empty_buffer_synthesized(self):
        samples = prepare_samples(b"", sample_cap=1000)
        assert samples.synthetic
        assert samples.repair == "synthesized"
        assert samples.count == 1

    def test_buffer_cap_from_config(self):
        config = QuantizeConfig(max_buffer_length=40)
        samples = prepare_samples(_solid((1, 1, 1, 255), 100), 1000, config)
        assert samples.total_pixels == 10
