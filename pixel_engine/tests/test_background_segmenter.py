"""Tests for background removal and replacement."""
from __future__ import annotations

import numpy as np
import pytest

from pixel_engine.core.buffer import PixelBuffer
from pixel_engine.core.errors import InvalidDimensionError, InvalidParameterError
from pixel_engine.core.utils_color import luminance_map
from pixel_engine.core.utils_image import disk_offsets
from pixel_engine.modules.background import (
    BackgroundSegmenter,
    SegmentationSettings,
    SegmentationStage,
    gradient_backdrop,
    remove_background,
)
from pixel_engine.modules.compositing import composite_buffers

SUBJECT = (20, 40, 200)


def _subject_on_white(size: int = 40) -> PixelBuffer:
    array = np.full((size, size, 4), 255, dtype=np.uint8)
    quarter = size // 4
    array[quarter : size - quarter, quarter : size - quarter, :3] = SUBJECT
    return PixelBuffer.from_array(array)


def test_stage_history_runs_in_order() -> None:
    segmenter = BackgroundSegmenter(_subject_on_white())
    result = segmenter.run()
    assert result.history == [
        SegmentationStage.IDLE,
        SegmentationStage.SAMPLING,
        SegmentationStage.EDGE_ANALYSIS,
        SegmentationStage.ALPHA_COMPOSITING,
        SegmentationStage.FEATHERING,
        SegmentationStage.SMOOTHING,
        SegmentationStage.DONE,
    ]
    assert result.stage is SegmentationStage.DONE
    assert result.background_estimate == pytest.approx((255.0, 255.0, 255.0))


def test_segmenter_is_single_use() -> None:
    segmenter = BackgroundSegmenter(_subject_on_white())
    segmenter.run()
    with pytest.raises(RuntimeError):
        segmenter.run()


def test_remove_keeps_rgb_and_clears_background() -> None:
    src = _subject_on_white()
    result = BackgroundSegmenter(src).run()
    out = result.buffer
    np.testing.assert_array_equal(out.data[..., :3], src.data[..., :3])
    np.testing.assert_array_equal(out.alpha, result.mask)
    assert out.get_pixel(0, 0)[3] == 0
    assert out.get_pixel(20, 20) == SUBJECT + (255,)
    assert src.get_pixel(0, 0) == (255, 255, 255, 255)


def test_color_mode_replaces_background() -> None:
    out = remove_background(_subject_on_white(), mode="color", background_color="#ff0000")
    assert out.get_pixel(0, 0) == (255, 0, 0, 255)
    assert out.get_pixel(39, 0) == (255, 0, 0, 255)
    assert out.get_pixel(20, 20) == SUBJECT + (255,)


def test_gradient_mode_uses_both_stops() -> None:
    out = remove_background(_subject_on_white(), mode="gradient", gradient_colors=("#000000", "#ffffff"))
    top_left = out.get_pixel(0, 0)
    bottom_right = out.get_pixel(39, 39)
    assert top_left[0] < 10
    assert bottom_right[0] > 245


def test_image_mode_stretches_background() -> None:
    backdrop = PixelBuffer.blank(5, 3, (0, 128, 0, 255))
    out = remove_background(_subject_on_white(), mode="image", background_image=backdrop)
    assert out.get_pixel(0, 0) == (0, 128, 0, 255)
    assert out.get_pixel(20, 20) == SUBJECT + (255,)


def test_settings_validation() -> None:
    with pytest.raises(InvalidParameterError):
        remove_background(_subject_on_white(), mode="blur")
    with pytest.raises(InvalidParameterError):
        remove_background(_subject_on_white(), mode="image")
    with pytest.raises(InvalidParameterError):
        remove_background(_subject_on_white(), feather=-1)
    with pytest.raises(InvalidParameterError):
        remove_background(_subject_on_white(), sharpness=3)


def test_smoothing_only_touches_partial_alpha() -> None:
    settings = SegmentationSettings(feather=2, edge_smoothing=3.0)
    result = BackgroundSegmenter(_subject_on_white(), settings).run()
    assert result.mask[0, 0] == 0
    assert result.mask[20, 20] == 255


def test_gradient_backdrop_directions() -> None:
    horizontal = gradient_backdrop(10, 2, "#000000", "#ffffff", "to-right")
    assert np.all(np.diff(horizontal[0, :, 0]) > 0)
    np.testing.assert_allclose(horizontal[0], horizontal[1])

    upward = gradient_backdrop(2, 10, "#000000", "#ffffff", "to-top")
    assert np.all(np.diff(upward[:, 0, 0]) < 0)

    with pytest.raises(InvalidParameterError):
        gradient_backdrop(4, 4, "#000000", "#ffffff", "diagonal")


def test_composite_buffers_source_over() -> None:
    foreground = PixelBuffer.blank(2, 2, (255, 0, 0, 0))
    foreground.set_pixel(1, 1, (255, 0, 0, 255))
    background = PixelBuffer.blank(2, 2, (0, 0, 255, 255))
    out = composite_buffers(foreground, background)
    assert out.get_pixel(0, 0) == (0, 0, 255, 255)
    assert out.get_pixel(1, 1) == (255, 0, 0, 255)
    with pytest.raises(InvalidDimensionError):
        composite_buffers(foreground, PixelBuffer.blank(3, 2))


def _corner_subject(size: int = 12, block: int = 4) -> PixelBuffer:
    array = np.full((size, size, 4), 255, dtype=np.uint8)
    array[size - block :, size - block :, :3] = SUBJECT
    return PixelBuffer.from_array(array)


def test_feather_averages_clamped_window_at_border() -> None:
    src = _corner_subject()
    segmenter = BackgroundSegmenter(src, SegmentationSettings(feather=2))
    segmenter.sample_background()
    segmenter.analyze_edges()
    before = segmenter.build_alpha().copy()
    after = segmenter.feather()

    candidate = np.where(luminance_map(src.as_float()[..., :3]) > 128, 0.0, 255.0)
    for y, x in [(11, 7), (11, 11), (0, 0), (9, 11)]:
        window = candidate[max(0, y - 2) : y + 3, max(0, x - 2) : x + 3]
        assert after[y, x] == pytest.approx((before[y, x] + window.mean()) / 2.0)

    # bottom row next to the block: 6 of the 15 window pixels are subject,
    # and the white pixel itself starts almost fully transparent
    assert before[11, 7] == pytest.approx(1.0, abs=1e-6)
    assert after[11, 7] == pytest.approx(51.5, abs=1e-6)


def test_smoothing_pulls_partial_alpha_towards_neighbours() -> None:
    segmenter = BackgroundSegmenter(_corner_subject(), SegmentationSettings(feather=2, edge_smoothing=2.0))
    segmenter.sample_background()
    segmenter.analyze_edges()
    segmenter.build_alpha()
    feathered = segmenter.feather().copy()
    smoothed = segmenter.smooth()

    assert smoothed[11, 7] > feathered[11, 7] + 10
    solid = (feathered <= 0.0) | (feathered >= 255.0)
    np.testing.assert_array_equal(smoothed[solid], feathered[solid])


def test_unit_smoothing_radius_keeps_the_mask() -> None:
    assert disk_offsets(1.0) == [(0, 0, 1.0)]
    unsmoothed = BackgroundSegmenter(_corner_subject(), SegmentationSettings(edge_smoothing=0.0)).run()
    unit = BackgroundSegmenter(_corner_subject(), SegmentationSettings(edge_smoothing=1.0)).run()
    np.testing.assert_array_equal(unit.mask, unsmoothed.mask)


def test_overrides_must_name_settings_fields() -> None:
    with pytest.raises(InvalidParameterError):
        remove_background(_subject_on_white(), validate=1)
    with pytest.raises(InvalidParameterError):
        remove_background(_subject_on_white(), settings_version=2)
