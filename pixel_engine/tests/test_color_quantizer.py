from __future__ import annotations

import json
from datetime import datetime, timezone

import numpy as np
import pytest

from pixel_engine.core.buffer import PixelBuffer
from pixel_engine.core.errors import InvalidParameterError
from pixel_engine.modules.color_quantizer import (
    ColorInfo,
    extract_palette,
    palette_to_json,
    rank_colors,
    render_palette_strip,
    sample_pixels,
)


def _three_colour_image() -> PixelBuffer:
    """10x10 image: 60 red, 30 blue and 10 green pixels, in that row order."""

    array = np.zeros((10, 10, 4), dtype=np.uint8)
    array[..., 3] = 255
    array[:6, :, 0] = 255
    array[6:9, :, 2] = 255
    array[9, :, 1] = 255
    return PixelBuffer.from_array(array)


def test_exact_palette_ranks_by_count() -> None:
    palette = extract_palette(_three_colour_image(), count=8, method="palette")
    assert [c.hex for c in palette] == ["#FF0000", "#0000FF", "#00FF00"]
    assert [c.percentage for c in palette] == [60.0, 30.0, 10.0]
    assert palette[0].name == "Red"
    assert palette[0].hsl == (0, 100, 50)
    assert palette[0].cmyk == (0, 100, 100, 0)


def test_dominant_bins_channels_by_32() -> None:
    palette = extract_palette(_three_colour_image(), method="dominant")
    assert palette[0].rgb == (224, 0, 0)


def test_percentages_relative_to_retained_colours() -> None:
    palette = extract_palette(_three_colour_image(), count=2, method="average")
    assert [c.percentage for c in palette] == [66.67, 33.33]


def test_percentages_sum_to_hundred_on_noise() -> None:
    rng = np.random.default_rng(21)
    src = PixelBuffer.from_array(rng.integers(0, 256, size=(64, 64, 3), dtype=np.uint8))
    for method in ("dominant", "average"):
        palette = extract_palette(src, count=8, method=method)
        assert len(palette) == 8
        assert sum(c.percentage for c in palette) == pytest.approx(100.0, abs=1.0)


def test_ties_keep_first_occurrence() -> None:
    array = np.zeros((2, 2, 4), dtype=np.uint8)
    array[..., 3] = 255
    array[0, 0, :3] = (0, 0, 200)
    array[0, 1, :3] = (200, 0, 0)
    array[1, 0, :3] = (200, 0, 0)
    array[1, 1, :3] = (0, 0, 200)
    ranked = rank_colors(PixelBuffer.from_array(array).data.reshape(-1, 4)[:, :3], binned=False)
    assert ranked == [((0, 0, 200), 2), ((200, 0, 0), 2)]


def test_transparent_pixels_are_skipped(caplog) -> None:
    src = PixelBuffer.blank(4, 4, (255, 0, 0, 128))
    assert sample_pixels(src).size == 0
    with caplog.at_level("WARNING", logger="pixel_engine.color_quantizer"):
        assert extract_palette(src) == []
    assert "No opaque pixels" in caplog.text


def test_sampling_stride_scales_with_size() -> None:
    src = PixelBuffer.blank(200, 100, (1, 2, 3, 255))
    # 80000 bytes / 40000 -> every second pixel
    assert len(sample_pixels(src)) == 10000


def test_invalid_arguments() -> None:
    src = _three_colour_image()
    with pytest.raises(InvalidParameterError):
        extract_palette(src, method="kmeans")
    with pytest.raises(InvalidParameterError):
        extract_palette(src, count=0)


def test_colour_info_css_strings() -> None:
    info = ColorInfo.from_rgb(255, 0, 0, 12.5)
    assert info.rgb_css == "rgb(255, 0, 0)"
    assert info.hsl_css == "hsl(0, 100%, 50%)"
    assert info.cmyk_css == "cmyk(0%, 100%, 100%, 0%)"
    assert info.as_dict()["percentage"] == 12.5


def test_palette_json_document() -> None:
    palette = extract_palette(_three_colour_image(), method="palette")
    moment = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    document = json.loads(palette_to_json(palette, "palette", 8, moment))
    assert document["extractionMethod"] == "palette"
    assert document["colorCount"] == 8
    assert document["extractedAt"].startswith("2024-01-02T03:04:05")
    assert document["colors"][0]["hex"] == "#FF0000"


def test_palette_strip_swatches() -> None:
    palette = extract_palette(_three_colour_image(), count=2, method="palette")
    strip = render_palette_strip(palette)
    assert strip.size == (800, 200)
    assert strip.get_pixel(0, 0) == (255, 0, 0, 255)
    assert strip.get_pixel(799, 199) == (0, 0, 255, 255)
    with pytest.raises(InvalidParameterError):
        render_palette_strip([])
