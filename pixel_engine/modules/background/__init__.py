"""Background removal and replacement."""
from __future__ import annotations

from .backdrops import GRADIENT_DIRECTIONS, gradient_backdrop, image_backdrop, solid_backdrop
from .segmenter import (
    BACKGROUND_MODES,
    BackgroundSegmenter,
    SegmentationResult,
    SegmentationSettings,
    SegmentationStage,
    remove_background,
)

__all__ = [
    "BACKGROUND_MODES",
    "BackgroundSegmenter",
    "GRADIENT_DIRECTIONS",
    "SegmentationResult",
    "SegmentationSettings",
    "SegmentationStage",
    "gradient_backdrop",
    "image_backdrop",
    "remove_background",
    "solid_backdrop",
]
