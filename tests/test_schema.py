# Copyright (c) 2026 Tinct
# SPDX-License-Identifier: MIT

"""Tests for schema types, validation and serialization."""

import json

import pytest

from tinct.quantize.registry import available_methods, method_name, resolve_method
from tinct.schema import (
    DEFAULT_PALETTE,
    FALLBACK_TRIAD,
    ColorResult,
    ErrorCode,
    ExtractionRequest,
    ExtractionResponse,
    Method,
    clamp_color_count,
    hex_to_rgb,
    rgb_to_hex,
)


def _response(**overrides):
    fields = dict(
        success=True,
        colors=(ColorResult.from_rgb(255, 0, 0, 62.5), ColorResult.from_rgb(0, 0, 255, 37.5)),
        method="median",
        processing_time=1.23456,
        requested_method="median",
    )
    fields.update(overrides)
    return ExtractionResponse(**fields)


class TestHex:

    def test_rgb_to_hex_upper_case(self):
        assert rgb_to_hex(171, 205, 239) == "#ABCDEF"

    def test_hex_to_rgb_accepts_case_and_missing_hash(self):
        assert hex_to_rgb("#abcdef") == (171, 205, 239)
        assert hex_to_rgb("ABCDEF") == (171, 205, 239)

    @pytest.mark.parametrize("bad", ["#FFF", "#GGGGGG", ""])
    def test_hex_to_rgb_rejects(self, bad):
        with pytest.raises(ValueError):
            hex_to_rgb(bad)


class TestColorResult:

    def test_from_rgb_derives_hex(self):
        c = ColorResult.from_rgb(18, 52, 86, 12.5)
        assert c.hex == "#123456"
        assert c.rgb == (18, 52, 86)

    def test_from_rgb_clamps_percentage(self):
        assert ColorResult.from_rgb(0, 0, 0, 120.0).percentage == 100.0
        assert ColorResult.from_rgb(0, 0, 0, -3.0).percentage == 0.0

    def test_hex_mismatch_rejected(self):
        with pytest.raises(ValueError):
            ColorResult(hex="#000000", r=255, g=0, b=0, percentage=10.0)

    def test_lower_case_hex_rejected(self):
        with pytest.raises(ValueError):
            ColorResult(hex="#ff0000", r=255, g=0, b=0, percentage=10.0)

    @pytest.mark.parametrize("r", [256, -1, 1.5, True])
    def test_bad_channel_rejected(self, r):
        with pytest.raises(ValueError):
            ColorResult(hex="#000000", r=r, g=0, b=0, percentage=10.0)

    def test_to_dict_rounds_percentage(self):
        d = ColorResult.from_rgb(1, 2, 3, 100 / 3).to_dict()
        assert d == {"hex": "#010203", "r": 1, "g": 2, "b": 3, "percentage": 33.33}

    def test_from_dict(self):
        c = ColorResult.from_dict({"hex": "#010203", "r": 1, "g": 2, "b": 3, "percentage": 5})
        assert c == ColorResult.from_rgb(1, 2, 3, 5.0)


class TestFixedPalettes:

    def test_default_palette(self):
        assert [(c.hex, c.percentage) for c in DEFAULT_PALETTE] == [
            ("#FFFFFF", 50.0), ("#000000", 50.0),
        ]

    def test_fallback_triad(self):
        assert [(c.hex, c.percentage) for c in FALLBACK_TRIAD] == [
            ("#808080", 100.0), ("#FFFFFF", 0.0), ("#000000", 0.0),
        ]


class TestRequest:

    @pytest.mark.parametrize("raw, expected", [
        (0, 1), (-4, 1), (25, 20), (7, 7), ("7", 7), (3.9, 3),
        ("abc", 5), (None, 5), (True, 5),
    ])
    def test_clamp_color_count(self, raw, expected):
        assert clamp_color_count(raw) == expected

    def test_create_coerces_fields(self):
        req = ExtractionRequest.create(b"", width="10", height=-2, k=99, method="MEDIAN ", seed="3")
        assert (req.width, req.height, req.k, req.method, req.seed) == (10, 0, 20, Method.MEDIAN, 3)

    def test_unknown_method_becomes_kmeans(self):
        assert ExtractionRequest.create(b"", method="octree").method is Method.KMEANS
        assert ExtractionRequest.create(b"", method=None).method is Method.KMEANS

    def test_longest_side(self):
        assert ExtractionRequest.create(b"", width=300, height=500).longest_side == 500


class TestResponse:

    def test_empty_palette_rejected(self):
        with pytest.raises(ValueError):
            _response(colors=())

    def test_percentages_must_sum_to_100(self):
        with pytest.raises(ValueError):
            _response(colors=(ColorResult.from_rgb(0, 0, 0, 40.0),))

    def test_to_dict_wire_keys(self):
        d = _response(error=None).to_dict()
        assert set(d) == {"success", "colors", "method", "processingTime", "executor", "requestedMethod"}
        assert d["processingTime"] == 1.235
        assert d["colors"][0]["hex"] == "#FF0000"

    def test_optional_keys(self):
        d = _response(success=False, error=ErrorCode.UNRECOVERABLE, notice="timed out").to_dict()
        assert d["error"] == "unrecoverable"
        assert d["notice"] == "timed out"

    def test_json_round_trip(self):
        original = _response(executor="remote", notice="n")
        restored = ExtractionResponse.from_json(original.to_json())
        assert restored.colors == original.colors
        assert restored.executor == "remote"
        assert json.loads(original.to_json(indent=None))["method"] == "median"

    def test_fell_back(self):
        assert not _response().fell_back
        assert _response(method="frequent").fell_back
        assert not _response(requested_method=None, method="default").fell_back


class TestRegistry:

    def test_display_names(self):
        assert method_name("kmeans") == "K-means clustering"
        assert method_name("frequent") == "Most-frequent colors"
        assert method_name("dominant") == "Dominant hue"
        assert method_name(Method.MEDIAN) == "Median cut"
        assert method_name("layered") == "Layered by brightness"

    def test_unknown_identifier_returned_unchanged(self):
        assert method_name("default") == "default"
        assert method_name("fallback") == "fallback"

    def test_resolve_unknown_is_kmeans(self):
        assert resolve_method("nope").method is Method.KMEANS

    def test_available_methods_cover_enum(self):
        assert [spec.method for spec in available_methods()] == list(Method)

    def test_sample_driven_strategies_flagged(self):
        flagged = {spec.method for spec in available_methods() if spec.uses_samples}
        assert flagged == {Method.DOMINANT, Method.MEDIAN, Method.LAYERED}
