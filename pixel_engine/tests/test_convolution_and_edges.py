from __future__ import annotations

import numpy as np
import pytest

from pixel_engine.core.buffer import PixelBuffer
from pixel_engine.core.errors import InvalidParameterError
from pixel_engine.modules.convolution import (
    box_blur_kernel,
    convolve,
    gaussian_kernel,
    sharpen,
    sharpen_kernel,
)
from pixel_engine.modules.edge_detector import gradient_magnitude, sobel_magnitude


def _noise(width: int = 9, height: int = 7, seed: int = 11) -> PixelBuffer:
    rng = np.random.default_rng(seed)
    return PixelBuffer.from_array(rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8))


def test_sharpen_zero_is_identity() -> None:
    src = _noise()
    out = sharpen(src, 0)
    assert out == src
    assert out is not src


def test_sharpen_kernel_sums_to_one() -> None:
    kernel = sharpen_kernel(0.7)
    assert kernel.sum() == pytest.approx(1.0)
    assert kernel[1, 1] == pytest.approx(3.8)


def test_convolution_copies_borders_and_alpha() -> None:
    src = _noise()
    out = sharpen(src, 60)
    np.testing.assert_array_equal(out.data[0], src.data[0])
    np.testing.assert_array_equal(out.data[-1], src.data[-1])
    np.testing.assert_array_equal(out.data[:, 0], src.data[:, 0])
    np.testing.assert_array_equal(out.data[:, -1], src.data[:, -1])
    np.testing.assert_array_equal(out.alpha, src.alpha)
    assert not np.array_equal(out.data[1:-1, 1:-1, :3], src.data[1:-1, 1:-1, :3])


def test_identity_kernel_round_trips() -> None:
    kernel = np.zeros((3, 3))
    kernel[1, 1] = 1.0
    src = _noise()
    assert convolve(src, kernel) == src


def test_normalize_alpha_convolves_alpha_channel() -> None:
    src = _noise()
    out = convolve(src, box_blur_kernel(3), normalize_alpha=True)
    expected = src.data[0:3, 0:3, 3].astype(np.float64).mean()
    assert out.get_pixel(1, 1)[3] == int(np.rint(expected))


def test_box_blur_matches_manual_mean() -> None:
    src = _noise()
    out = convolve(src, box_blur_kernel(3))
    expected = src.data[2:5, 3:6, :3].astype(np.float64).mean(axis=(0, 1))
    np.testing.assert_array_equal(out.data[3, 4, :3], np.rint(expected).astype(np.uint8))


def test_small_buffer_is_copied() -> None:
    src = _noise(2, 2)
    assert convolve(src, gaussian_kernel(5, 1.0)) == src


@pytest.mark.parametrize("shape", [(2, 2), (3, 5), (3,)])
def test_bad_kernels_rejected(shape) -> None:
    with pytest.raises(InvalidParameterError):
        convolve(_noise(), np.ones(shape))


def test_sobel_uniform_buffer_has_no_edges() -> None:
    src = PixelBuffer.blank(12, 10, (90, 140, 200, 255))
    np.testing.assert_allclose(gradient_magnitude(src), 0.0, atol=1e-9)
    assert not sobel_magnitude(src, 0.5).any()


def test_sobel_mask_is_binary_with_zero_border() -> None:
    array = np.zeros((10, 10, 4), dtype=np.uint8)
    array[..., 3] = 255
    array[:, 5:, :3] = 255
    mask = sobel_magnitude(PixelBuffer.from_array(array), 10)
    assert set(np.unique(mask)) <= {0, 255}
    assert mask[0].max() == 0 and mask[-1].max() == 0
    assert mask[:, 0].max() == 0 and mask[:, -1].max() == 0
    assert mask[5, 4] == 255 and mask[5, 5] == 255
    assert mask[5, 2] == 0


def test_sobel_tiny_buffer_is_all_zero() -> None:
    assert not sobel_magnitude(PixelBuffer.blank(2, 5, (255, 255, 255, 255)), 0).any()
