"""Per-pixel tone adjustments applied in a fixed order.

Whole-buffer passes (hue rotation, then Gaussian blur) run first. The
per-pixel steps follow in this order: brightness, contrast, saturation,
vibrance, warmth, highlights, shadows, vignette, grayscale, sepia, invert,
opacity. Intermediate values are kept in float and clamped only once at the
end; a knob left at its neutral value skips its step entirely.
"""
from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np
from scipy import ndimage

from ..core.buffer import PixelBuffer, float_to_buffer
from ..core.config import FilterSettings
from ..core.utils_color import luminance
from ..core.utils_parallel import limited_threads, row_bands, run_parallel

LOGGER = logging.getLogger("pixel_engine.tone_filters")

SEPIA_MATRIX = np.array(
    [
        [0.393, 0.769, 0.189],
        [0.349, 0.686, 0.168],
        [0.272, 0.534, 0.131],
    ],
    dtype=np.float64,
)


def hue_rotation_matrix(degrees: float) -> np.ndarray:
    """Luminance-preserving RGB rotation used by CSS ``hue-rotate``."""

    angle = math.radians(degrees)
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)
    return np.array(
        [
            [0.213 + cos_a * 0.787 - sin_a * 0.213, 0.715 - cos_a * 0.715 - sin_a * 0.715, 0.072 - cos_a * 0.072 + sin_a * 0.928],
            [0.213 - cos_a * 0.213 + sin_a * 0.143, 0.715 + cos_a * 0.285 + sin_a * 0.140, 0.072 - cos_a * 0.072 - sin_a * 0.283],
            [0.213 - cos_a * 0.213 - sin_a * 0.787, 0.715 - cos_a * 0.715 + sin_a * 0.715, 0.072 + cos_a * 0.928 + sin_a * 0.072],
        ],
        dtype=np.float64,
    )


def rotate_hue(pixels: np.ndarray, degrees: float) -> np.ndarray:
    """Rotate the hue of a float RGBA array; alpha is untouched."""

    result = pixels.copy()
    result[..., :3] = pixels[..., :3] @ hue_rotation_matrix(degrees).T
    return result


def gaussian_blur(pixels: np.ndarray, radius: float) -> np.ndarray:
    """Separable Gaussian blur over all four channels with ``sigma = radius``."""

    blurred = ndimage.gaussian_filter1d(pixels, sigma=radius, axis=0, mode="nearest")
    return ndimage.gaussian_filter1d(blurred, sigma=radius, axis=1, mode="nearest")


def _luma(rgb: np.ndarray) -> np.ndarray:
    return luminance(rgb[..., 0], rgb[..., 1], rgb[..., 2])


def apply_pixel_steps(
    pixels: np.ndarray,
    settings: FilterSettings,
    *,
    row_offset: int = 0,
    full_height: Optional[int] = None,
) -> np.ndarray:
    """Run steps 1-12 on a float RGBA block in place and return it.

    *row_offset* and *full_height* locate the block inside the full image so
    the vignette keeps its global centre when rows are processed in bands.
    """

    rgb = pixels[..., :3]
    height, width = pixels.shape[:2]
    full_height = height if full_height is None else full_height

    if settings.brightness != 100:
        rgb *= settings.brightness / 100.0

    if settings.contrast != 100:
        rgb[...] = ((rgb / 255.0 - 0.5) * (settings.contrast / 100.0) + 0.5) * 255.0

    if settings.saturation != 100:
        gray = _luma(rgb)[..., None]
        rgb[...] = gray + (rgb - gray) * (settings.saturation / 100.0)

    if settings.vibrance != 100:
        max_c = rgb.max(axis=-1, keepdims=True)
        avg = rgb.mean(axis=-1, keepdims=True)
        amount = (np.abs(max_c - avg) * 2.0 / 255.0) * ((settings.vibrance - 100.0) / 100.0)
        rgb[...] = np.where(rgb != max_c, rgb + (max_c - rgb) * amount, rgb)

    if settings.warmth != 0:
        rgb[..., 0] += settings.warmth * 0.3
        rgb[..., 2] -= settings.warmth * 0.3

    if settings.highlights != 0 or settings.shadows != 0:
        tone = _luma(rgb)[..., None]
        if settings.highlights != 0:
            boost = (settings.highlights / 100.0) * ((tone - 128.0) / 127.0) * 50.0
            rgb += np.where(tone > 128.0, boost, 0.0)
        if settings.shadows != 0:
            lift = (settings.shadows / 100.0) * ((128.0 - tone) / 128.0) * 50.0
            rgb += np.where(tone < 128.0, lift, 0.0)

    if settings.vignette != 0:
        full_w = float(width)
        full_h = float(full_height)
        ys = np.arange(row_offset, row_offset + height, dtype=np.float64)[:, None]
        xs = np.arange(width, dtype=np.float64)[None, :]
        dist = np.sqrt((xs - full_w / 2.0) ** 2 + (ys - full_h / 2.0) ** 2)
        max_dist = math.sqrt((full_w / 2.0) ** 2 + (full_h / 2.0) ** 2)
        factor = 1.0 - (dist / max_dist) * (settings.vignette / 100.0)
        rgb *= factor[..., None]

    if settings.grayscale != 0:
        gray = _luma(rgb)[..., None]
        rgb += (gray - rgb) * (settings.grayscale / 100.0)

    if settings.sepia != 0:
        toned = rgb @ SEPIA_MATRIX.T
        rgb += (toned - rgb) * (settings.sepia / 100.0)

    if settings.invert != 0:
        rgb += ((255.0 - rgb) - rgb) * (settings.invert / 100.0)

    if settings.opacity != 100:
        pixels[..., 3] *= settings.opacity / 100.0

    return pixels


def apply_tone_filters(
    src: PixelBuffer,
    settings: Optional[FilterSettings] = None,
    *,
    threads: int = 1,
    parallel_min_rows: int = 256,
) -> PixelBuffer:
    """Return a new buffer with *settings* applied to *src*.

    With ``threads > 1`` and at least *parallel_min_rows* rows, the per-pixel
    steps run on row bands in a thread pool; output is identical to the
    sequential path.
    """

    settings = (settings or FilterSettings()).copy()
    if settings.is_identity():
        return src.copy()

    pixels = src.as_float()
    if settings.hue % 360 != 0:
        pixels = rotate_hue(pixels, settings.hue)
    if settings.blur > 0:
        pixels = gaussian_blur(pixels, settings.blur)

    height = src.height
    if threads > 1 and height >= parallel_min_rows:
        bands = row_bands(height, threads)

        def _process(band: tuple[int, int]) -> np.ndarray:
            start, stop = band
            block = pixels[start:stop].copy()
            return apply_pixel_steps(block, settings, row_offset=start, full_height=height)

        with limited_threads(threads):
            blocks = run_parallel(_process, bands, max_workers=threads)
        pixels = np.concatenate(blocks, axis=0)
        LOGGER.debug("Tone filters ran on %d row bands", len(bands))
    else:
        apply_pixel_steps(pixels, settings)

    return float_to_buffer(pixels)


__all__ = [
    "SEPIA_MATRIX",
    "apply_pixel_steps",
    "apply_tone_filters",
    "gaussian_blur",
    "hue_rotation_matrix",
    "rotate_hue",
]
