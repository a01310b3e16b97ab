"""Sobel edge detection on the luminance channel."""
from __future__ import annotations

import numpy as np

from ..core.buffer import PixelBuffer
from ..core.utils_color import luminance_map
from ..core.utils_image import interior_windows

SOBEL_X = np.array([[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]], dtype=np.float64)
SOBEL_Y = np.array([[-1, -2, -1], [0, 0, 0], [1, 2, 1]], dtype=np.float64)


def gradient_magnitude(src: PixelBuffer) -> np.ndarray:
    """Raw ``sqrt(gx² + gy²)`` map; the outermost rows and columns stay 0."""

    height, width = src.height, src.width
    magnitude = np.zeros((height, width), dtype=np.float64)
    if height < 3 or width < 3:
        return magnitude

    gray = luminance_map(src.data[..., :3])
    gx = np.zeros((height - 2, width - 2), dtype=np.float64)
    gy = np.zeros_like(gx)
    for ky, kx, window in interior_windows(height, width, 1):
        neighbour = gray[window]
        if SOBEL_X[ky, kx]:
            gx += SOBEL_X[ky, kx] * neighbour
        if SOBEL_Y[ky, kx]:
            gy += SOBEL_Y[ky, kx] * neighbour
    magnitude[1:-1, 1:-1] = np.sqrt(gx * gx + gy * gy)
    return magnitude


def sobel_magnitude(src: PixelBuffer, threshold: float) -> np.ndarray:
    """Binary edge mask: 255 where the gradient exceeds *threshold*, else 0.

    Border pixels are never evaluated and remain 0.
    """

    magnitude = gradient_magnitude(src)
    return np.where(magnitude > threshold, 255, 0).astype(np.uint8)


__all__ = ["SOBEL_X", "SOBEL_Y", "gradient_magnitude", "sobel_magnitude"]
