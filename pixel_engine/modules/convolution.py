"""Generic square-kernel convolution with copy-through borders."""
from __future__ import annotations

import logging

import numpy as np

from ..core.buffer import PixelBuffer, float_to_buffer
from ..core.errors import InvalidParameterError
from ..core.utils_image import interior_windows

LOGGER = logging.getLogger("pixel_engine.convolution")


def _validate_kernel(kernel: np.ndarray) -> np.ndarray:
    kernel = np.asarray(kernel, dtype=np.float64)
    if kernel.ndim != 2 or kernel.shape[0] != kernel.shape[1] or kernel.shape[0] % 2 == 0:
        raise InvalidParameterError(f"Kernel must be an odd square matrix, got shape {kernel.shape}")
    return kernel


def convolve(src: PixelBuffer, kernel: np.ndarray, normalize_alpha: bool = False) -> PixelBuffer:
    """Apply *kernel* to the RGB channels of *src* and return a new buffer.

    Pixels closer to the border than the kernel radius are copied unchanged.
    Alpha is copied as well unless *normalize_alpha* is set, in which case it
    goes through the same kernel.
    """

    kernel = _validate_kernel(kernel)
    radius = kernel.shape[0] // 2
    result = src.as_float()
    height, width = src.height, src.width
    if height <= 2 * radius or width <= 2 * radius:
        LOGGER.debug("Buffer %dx%d smaller than kernel; returning copy", width, height)
        return src.copy()

    channels = 4 if normalize_alpha else 3
    source = src.as_float()[..., :channels]
    accum = np.zeros((height - 2 * radius, width - 2 * radius, channels), dtype=np.float64)
    for ky, kx, window in interior_windows(height, width, radius):
        weight = kernel[ky, kx]
        if weight == 0.0:
            continue
        accum += weight * source[window]

    result[radius : height - radius, radius : width - radius, :channels] = accum
    return float_to_buffer(result)


def sharpen_kernel(amount: float) -> np.ndarray:
    """3x3 sharpen kernel: centre ``1 + 4a``, orthogonal neighbours ``-a``."""

    amount = float(amount)
    return np.array(
        [
            [0.0, -amount, 0.0],
            [-amount, 1.0 + 4.0 * amount, -amount],
            [0.0, -amount, 0.0],
        ],
        dtype=np.float64,
    )


def sharpen(src: PixelBuffer, strength: float) -> PixelBuffer:
    """Sharpen with *strength* on a 0-100 scale."""

    amount = min(max(float(strength), 0.0), 100.0) / 100.0
    if amount == 0.0:
        return src.copy()
    return convolve(src, sharpen_kernel(amount))


def box_blur_kernel(size: int = 3) -> np.ndarray:
    if size < 1 or size % 2 == 0:
        raise InvalidParameterError(f"Kernel size must be a positive odd integer, got {size}")
    return np.full((size, size), 1.0 / (size * size), dtype=np.float64)


def gaussian_kernel(size: int = 5, sigma: float = 1.0) -> np.ndarray:
    if size < 1 or size % 2 == 0:
        raise InvalidParameterError(f"Kernel size must be a positive odd integer, got {size}")
    if sigma <= 0:
        raise InvalidParameterError(f"Sigma must be positive, got {sigma}")
    half = size // 2
    axis = np.arange(-half, half + 1, dtype=np.float64)
    profile = np.exp(-(axis**2) / (2.0 * sigma**2))
    kernel = np.outer(profile, profile)
    return kernel / kernel.sum()


__all__ = ["box_blur_kernel", "convolve", "gaussian_kernel", "sharpen", "sharpen_kernel"]
