"""Crop operations and aspect-ratio presets."""
from __future__ import annotations

import logging
import math
from typing import Dict

from ..core.buffer import CropArea, PixelBuffer
from ..core.errors import InvalidDimensionError, InvalidParameterError
from .resampler import resize

LOGGER = logging.getLogger("pixel_engine.cropping")

# Width / height ratio; 0 leaves the rectangle free.
CROP_PRESETS: Dict[str, float] = {
    "free": 0.0,
    "square": 1.0,
    "portrait": 3 / 4,
    "landscape": 4 / 3,
    "wide": 16 / 9,
    "instagram": 1.0,
    "story": 9 / 16,
}


def crop(src: PixelBuffer, area: CropArea) -> PixelBuffer:
    """Copy the clamped *area* of *src* into a new buffer."""

    box = area.clamp_to(src.width, src.height)
    region = src.data[box.y : box.y + box.height, box.x : box.x + box.width].copy()
    return PixelBuffer(box.width, box.height, region)


def apply_aspect_preset(area: CropArea, preset: str) -> CropArea:
    """Keep the width of *area* and derive its height from the preset ratio."""

    key = preset.strip().lower()
    if key not in CROP_PRESETS:
        raise InvalidParameterError(f"Unknown crop preset {preset!r}")
    ratio = CROP_PRESETS[key]
    if ratio == 0:
        return area
    return CropArea(area.x, area.y, area.width, max(1, int(round(area.width / ratio))))


def crop_to_exact(src: PixelBuffer, target_w: int, target_h: int, algorithm: str = "bicubic") -> PixelBuffer:
    """Cover ``target_w`` x ``target_h`` by scaling with the larger ratio, then crop centred.

    The result has exactly the requested size and is never letterboxed.
    """

    if target_w <= 0 or target_h <= 0:
        raise InvalidDimensionError(f"Target size must be positive, got {target_w}x{target_h}")
    scale = max(target_w / src.width, target_h / src.height)
    scaled_w = max(target_w, int(math.ceil(src.width * scale - 1e-9)))
    scaled_h = max(target_h, int(math.ceil(src.height * scale - 1e-9)))
    intermediate = resize(src, scaled_w, scaled_h, algorithm)
    offset_x = (scaled_w - target_w) // 2
    offset_y = (scaled_h - target_h) // 2
    LOGGER.debug(
        "Crop-to-exact %dx%d -> %dx%d via %dx%d", src.width, src.height, target_w, target_h, scaled_w, scaled_h
    )
    return crop(intermediate, CropArea(offset_x, offset_y, target_w, target_h))


__all__ = ["CROP_PRESETS", "apply_aspect_preset", "crop", "crop_to_exact"]
