from __future__ import annotations

import tracemalloc

import numpy as np
import pytest

from pixel_engine.core.buffer import PixelBuffer
from pixel_engine.core.errors import InvalidDimensionError, InvalidParameterError
from pixel_engine.modules.resampler import (
    cubic_weight,
    fill_box,
    fit_within,
    resize,
    resize_to_box,
    scale_to_aspect,
    stretch,
)


def _checkerboard(size: int = 32, block: int = 8) -> PixelBuffer:
    ys, xs = np.mgrid[0:size, 0:size]
    value = np.where(((ys // block) + (xs // block)) % 2 == 0, 255, 0).astype(np.uint8)
    array = np.stack([value, value, value, np.full_like(value, 255)], axis=-1)
    return PixelBuffer.from_array(array)


def test_fit_within_centres_the_image() -> None:
    assert fit_within(100, 50, 50, 50) == (50, 25, 0, 12.5)


def test_fill_box_covers_and_overflows() -> None:
    draw_w, draw_h, offset_x, offset_y = fill_box(100, 50, 50, 50)
    assert (draw_w, draw_h) == (100, 50)
    assert offset_x == -25 and offset_y == 0


def test_stretch_ignores_aspect() -> None:
    assert stretch(100, 50, 30, 70) == (30, 70, 0, 0)


def test_cubic_weight_partition_of_unity() -> None:
    for frac in (0.0, 0.25, 0.5, 0.9):
        taps = np.array([-1, 0, 1, 2], dtype=np.float64)
        assert cubic_weight(frac - taps).sum() == pytest.approx(1.0)
    assert cubic_weight(np.array([0.0]))[0] == 1.0
    assert cubic_weight(np.array([2.5]))[0] == 0.0


def test_bicubic_round_trip_on_checkerboard() -> None:
    source = _checkerboard()
    down = resize(source, 16, 16, "bicubic")
    up = resize(down, 32, 32, "bicubic")
    assert up.size == (32, 32)

    original = source.data[..., :3].astype(int)
    restored = up.data[..., :3].astype(int)
    for cy in range(3, 32, 8):
        for cx in range(3, 32, 8):
            assert abs(restored[cy, cx, 0] - original[cy, cx, 0]) <= 2
    assert np.abs(restored - original).mean() < 40


def test_nearest_duplicates_pixels() -> None:
    array = np.array(
        [[[255, 0, 0, 255], [0, 255, 0, 255]], [[0, 0, 255, 255], [255, 255, 255, 255]]], dtype=np.uint8
    )
    src = PixelBuffer.from_array(array)
    out = resize(src, 4, 4, "nearest")
    np.testing.assert_array_equal(out.data, np.repeat(np.repeat(array, 2, axis=0), 2, axis=1))


@pytest.mark.parametrize("algorithm", ["nearest", "bilinear", "bicubic"])
def test_solid_colour_survives_every_algorithm(algorithm) -> None:
    src = PixelBuffer.blank(7, 5, (40, 80, 120, 200))
    out = resize(src, 13, 3, algorithm)
    assert out.size == (13, 3)
    np.testing.assert_array_equal(out.data, np.broadcast_to(np.array([40, 80, 120, 200], dtype=np.uint8), (3, 13, 4)))


def test_resize_never_mutates_source_and_same_size_copies() -> None:
    src = _checkerboard(8, 2)
    before = src.copy()
    same = resize(src, 8, 8)
    assert same == src and same is not src
    resize(src, 3, 5, "bilinear")
    assert src == before


def test_resize_rejects_bad_arguments() -> None:
    src = PixelBuffer.blank(4, 4)
    with pytest.raises(InvalidDimensionError):
        resize(src, 0, 4)
    with pytest.raises(InvalidParameterError):
        resize(src, 2, 2, "lanczos")


def test_resize_to_box_fit_letterboxes_on_background() -> None:
    src = PixelBuffer.blank(20, 10, (255, 0, 0, 255))
    out = resize_to_box(src, 20, 20, "fit", background="#0000ff")
    assert out.size == (20, 20)
    assert out.get_pixel(10, 0) == (0, 0, 255, 255)
    assert out.get_pixel(10, 10) == (255, 0, 0, 255)


def test_resize_to_box_fill_and_stretch_cover_the_box() -> None:
    src = PixelBuffer.blank(20, 10, (0, 255, 0, 255))
    for mode in ("fill", "stretch"):
        out = resize_to_box(src, 15, 15, mode, background="#000000")
        np.testing.assert_array_equal(out.data[..., 1], np.full((15, 15), 255, dtype=np.uint8))
    with pytest.raises(InvalidParameterError):
        resize_to_box(src, 15, 15, "tile")


def test_scale_to_aspect() -> None:
    assert scale_to_aspect(1920, 1080, width=960) == (960, 540)
    assert scale_to_aspect(1920, 1080, height=270) == (480, 270)
    with pytest.raises(InvalidParameterError):
        scale_to_aspect(10, 10)


def test_bicubic_upscale_peak_memory_is_bounded_by_output() -> None:
    src = PixelBuffer.blank(240, 135, (10, 200, 30, 255))
    tracemalloc.start()
    try:
        out = resize(src, 480, 270, "bicubic")
        _, peak = tracemalloc.get_traced_memory()
    finally:
        tracemalloc.stop()
    assert out.size == (480, 270)
    assert out.get_pixel(123, 45) == (10, 200, 30, 255)
    assert peak < 20 * out.data.nbytes
