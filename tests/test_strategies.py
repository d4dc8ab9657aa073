# Copyright (c) 2026 Tinct
# SPDX-License-Identifier: MIT

"""Tests for the quantization strategies and their shared properties."""

import numpy as np
import pytest

from tinct.quantize.extract import extract, run_strategy
from tinct.quantize.frequency import build_frequency_map
from tinct.quantize.hue import dominant_hue_palette
from tinct.quantize.layered import brightness_bands, layered_palette
from tinct.quantize.median_cut import median_cut_palette, split_depth
from tinct.quantize.palette import (
    frequency_palette,
    kmeans_palette,
    merge_duplicates,
    normalize,
    rank_weighted,
)
from tinct.quantize.registry import MethodSpec, StrategyInput, resolve_method
from tinct.quantize.config import QuantizeConfig
from tinct.schema import ColorResult, ExtractionRequest, Method

METHODS = [m.value for m in Method]


def _noise_pixels(size=64, seed=0):
    """Opaque random RGBA buffer of size x size pixels."""
    rng = np.random.default_rng(seed)
    rgba = rng.integers(0, 256, size=(size * size, 4), dtype=np.uint8)
    rgba[:, 3] = 255
    return rgba.tobytes()


def _pixels(*groups):
    """Opaque RGBA bytes from ((r, g, b), count) groups."""
    rows = []
    for rgb, count in groups:
        rows.extend([(*rgb, 255)] * count)
    return np.array(rows, dtype=np.uint8).tobytes()


def _samples(*groups):
    """(N, 3) RGB samples from ((r, g, b), count) groups."""
    rows = []
    for rgb, count in groups:
        rows.extend([rgb] * count)
    return np.array(rows, dtype=np.uint8)


def _run(pixels, k, method, seed=7):
    return extract(ExtractionRequest.create(pixels, k=k, method=method, seed=seed))


class TestPaletteProperties:

    @pytest.mark.parametrize("method", METHODS)
    @pytest.mark.parametrize("k", range(1, 21))
    def test_size_order_and_sum(self, method, k):
        response = _run(_noise_pixels(), k, method)
        pcts = [c.percentage for c in response.colors]
        assert 1 <= len(pcts) <= k
        assert pcts == sorted(pcts, reverse=True)
        assert sum(pcts) == pytest.approx(100.0, abs=0.5)

    @pytest.mark.parametrize("method", METHODS)
    def test_solid_color_single_result(self, method):
        response = _run(_pixels(((200, 40, 40), 500)), 5, method)
        assert len(response.colors) == 1
        assert response.colors[0].percentage == pytest.approx(100.0)
        assert response.method == method

    def test_frequent_four_pixel_example(self):
        pixels = [255, 0, 0, 255, 0, 255, 0, 255, 0, 0, 255, 255, 255, 255, 255, 255]
        response = _run(pixels, 3, "frequent")
        assert [c.hex for c in response.colors] == ["#FC0000", "#00FC00", "#0000FC"]
        for c in response.colors:
            assert c.percentage == pytest.approx(100 / 3)


class TestRanking:

    def test_rank_weighted_keeps_heaviest(self):
        colors = np.array([[1, 1, 1], [2, 2, 2], [3, 3, 3]])
        results = rank_weighted(colors, np.array([1, 3, 2]), 2)
        assert [c.r for c in results] == [2, 3]
        assert [c.percentage for c in results] == pytest.approx([60.0, 40.0])

    def test_rank_weighted_ties_keep_input_order(self):
        colors = np.array([[9, 9, 9], [1, 1, 1]])
        results = rank_weighted(colors, np.array([1, 1]), 2)
        assert [c.r for c in results] == [9, 1]

    def test_merge_duplicates_sums(self):
        a = ColorResult.from_rgb(1, 2, 3, 20.0)
        b = ColorResult.from_rgb(4, 5, 6, 30.0)
        merged = merge_duplicates([a, b, a.with_percentage(25.0)])
        assert [(c.hex, c.percentage) for c in merged] == [(a.hex, 45.0), (b.hex, 30.0)]

    def test_normalize_zero_total_splits_evenly(self):
        results = normalize([ColorResult.from_rgb(0, 0, 0, 0.0)] * 4)
        assert [c.percentage for c in results] == [25.0] * 4


class TestKMeans:

    def _frequency(self):
        rgb = _samples(((250, 10, 10), 40), ((10, 250, 10), 30), ((10, 10, 250), 20),
                       ((240, 20, 20), 5), ((20, 20, 240), 5))
        return build_frequency_map(rgb, 8)

    def test_seeded_runs_reproducible(self):
        freq = build_frequency_map(
            np.random.default_rng(1).integers(0, 256, (2000, 3), dtype=np.uint8), 8
        )
        first = kmeans_palette(freq, 6, rng=42)
        second = kmeans_palette(freq, 6, rng=42)
        assert first == second

    @pytest.mark.parametrize("seed", range(5))
    def test_cardinality_stable_across_seeds(self, seed):
        assert len(kmeans_palette(self._frequency(), 3, rng=seed)) == 3

    def test_representative_is_real_frequent_color(self):
        results = kmeans_palette(self._frequency(), 3, rng=0)
        assert results[0].hex == "#F80808"
        assert results[0].percentage == pytest.approx(45.0)

    def test_few_colors_skip_clustering(self):
        freq = {"#FF0000": 3, "#0000FF": 1}
        results = kmeans_palette(freq, 5)
        assert [c.hex for c in results] == ["#FF0000", "#0000FF"]

    def test_empty_map_raises(self):
        with pytest.raises(ValueError):
            kmeans_palette({}, 3)
        with pytest.raises(ValueError):
            frequency_palette({}, 3)


class TestDominantHue:

    def test_bins_ranked_by_population(self):
        rgb = _samples(((255, 0, 0), 60), ((0, 0, 255), 40))
        results = dominant_hue_palette(rgb, 5)
        assert [c.hex for c in results] == ["#FF0000", "#0000FF"]
        assert results[0].percentage == pytest.approx(60.0)

    def test_bin_color_is_mean(self):
        rgb = _samples(((250, 0, 0), 1), ((200, 0, 0), 1))
        results = dominant_hue_palette(rgb, 1)
        assert results[0].rgb == (225, 0, 0)

    def test_achromatic_share_red_bin(self):
        rgb = _samples(((255, 0, 0), 1), ((0, 0, 0), 1))
        assert len(dominant_hue_palette(rgb, 5)) == 1


class TestMedianCut:

    def test_split_depth(self):
        assert [split_depth(k) for k in (1, 2, 3, 4, 5, 20)] == [0, 1, 2, 2, 3, 5]

    def test_two_colors_split_cleanly(self):
        rgb = _samples(((255, 0, 0), 50), ((0, 0, 255), 50))
        results = median_cut_palette(rgb, 2)
        assert sorted(c.hex for c in results) == ["#0000FF", "#FF0000"]
        assert [c.percentage for c in results] == pytest.approx([50.0, 50.0])

    def test_identical_leaves_merge(self):
        rgb = _samples(((10, 20, 30), 64))
        results = median_cut_palette(rgb, 8)
        assert len(results) == 1


class TestLayered:

    def test_brightness_bands(self):
        rgb = _samples(((255, 255, 255), 2), ((128, 128, 128), 3), ((0, 0, 0), 4))
        bands = brightness_bands(rgb)
        assert list(bands) == ["high", "medium", "low"]
        assert [len(v) for v in bands.values()] == [2, 3, 4]

    def test_one_color_per_band(self):
        rgb = _samples(((255, 255, 255), 30), ((128, 128, 128), 30), ((0, 0, 0), 30))
        results = layered_palette(rgb, 3, rng=0)
        assert sorted(c.hex for c in results) == ["#000000", "#808080", "#F0F0F0"]
        assert sum(c.percentage for c in results) == pytest.approx(100.0)

    def test_backfill_fills_missing_slots(self):
        # k=4 over three bands leaves one slot for the most frequent unused color
        rgb = _samples(((255, 255, 255), 30), ((128, 128, 128), 30),
                       ((160, 160, 160), 20), ((0, 0, 0), 20))
        results = layered_palette(rgb, 4, config=QuantizeConfig(), rng=0)
        hexes = [c.hex for c in results]
        assert len(set(hexes)) == 4
        assert "#A0A0A0" in hexes

    def test_single_band(self):
        rgb = _samples(((0, 0, 0), 50), ((96, 0, 0), 30), ((0, 0, 96), 20))
        results = layered_palette(rgb, 3, rng=0)
        assert [c.hex for c in results] == ["#000000", "#600000", "#000060"]


class TestStrategyFallback:

    def _input(self, frequency):
        return StrategyInput(
            samples=np.zeros((1, 3), dtype=np.uint8),
            frequency=frequency,
            k=3,
            config=QuantizeConfig(),
            rng=np.random.default_rng(0),
        )

    def _broken(self):
        def run(data):
            raise RuntimeError("boom")
        return MethodSpec(Method.MEDIAN, "Median cut", run)

    def test_failure_falls_back_to_frequent(self):
        results, used = run_strategy(self._broken(), self._input({"#FF0000": 2}))
        assert used == "frequent"
        assert [c.hex for c in results] == ["#FF0000"]

    def test_double_failure_returns_empty(self):
        results, used = run_strategy(self._broken(), self._input({}))
        assert results == []
        assert used == "frequent"

    def test_registered_strategy_runs(self):
        results, used = run_strategy(resolve_method("frequent"), self._input({"#00FF00": 1}))
        assert used == "frequent"
        assert results[0].hex == "#00FF00"
