"""Heuristic background segmentation and replacement.

The segmenter estimates the background colour from the top-left corner,
combines it with a Sobel edge mask and luminance to build an alpha mask,
softens that mask (feathering, then edge smoothing) and finally either
returns the cut-out or composites it onto a new backdrop.

The corner sample assumes the background reaches the top-left of the
frame; it is a heuristic, not a general segmentation algorithm.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field, fields, replace
from typing import Optional, Tuple

import numpy as np

from ...core.buffer import PixelBuffer, float_to_buffer
from ...core.errors import InvalidParameterError
from ...core.utils_color import luminance_map
from ...core.utils_image import disk_offsets, shifted_slices, window_mean
from ..compositing import source_over
from ..edge_detector import sobel_magnitude
from .backdrops import ColorSpec, gradient_backdrop, image_backdrop, solid_backdrop

LOGGER = logging.getLogger("pixel_engine.background.segmenter")

BACKGROUND_MODES = ("remove", "color", "gradient", "image")


class SegmentationStage(enum.Enum):
    IDLE = "idle"
    SAMPLING = "sampling"
    EDGE_ANALYSIS = "edge_analysis"
    ALPHA_COMPOSITING = "alpha_compositing"
    FEATHERING = "feathering"
    SMOOTHING = "smoothing"
    DONE = "done"


@dataclass
class SegmentationSettings:
    """Parameters of a background removal / replacement run.

    ``edge_smoothing`` is the radius of the linear-falloff disk used to
    average partially transparent pixels. Only taps closer than the radius
    carry weight, so any radius up to 1 keeps just the centre pixel and the
    smoothing stage leaves the mask unchanged; use 2 or more to soften edges.
    """

    threshold: float = 128.0
    tolerance: float = 40.0
    feather: int = 2
    edge_smoothing: float = 1.0
    mode: str = "remove"
    background_color: ColorSpec = "#ffffff"
    gradient_colors: Tuple[ColorSpec, ColorSpec] = ("#667eea", "#764ba2")
    gradient_direction: str = "to-bottom-right"
    background_image: Optional[PixelBuffer] = None

    def validate(self) -> None:
        if self.mode not in BACKGROUND_MODES:
            raise InvalidParameterError(f"Unknown background mode {self.mode!r}; expected one of {BACKGROUND_MODES}")
        if self.mode == "image" and self.background_image is None:
            raise InvalidParameterError("Background mode 'image' requires background_image")
        if self.feather < 0 or self.edge_smoothing < 0:
            raise InvalidParameterError("feather and edge_smoothing must not be negative")
        if self.tolerance < 0:
            raise InvalidParameterError("tolerance must not be negative")


@dataclass
class SegmentationResult:
    buffer: PixelBuffer
    mask: np.ndarray
    background_estimate: Tuple[float, float, float]
    stage: SegmentationStage
    history: list = field(default_factory=list)


class BackgroundSegmenter:
    """Single-use state machine; one instance owns the arrays of one run."""

    def __init__(self, source: PixelBuffer, settings: Optional[SegmentationSettings] = None) -> None:
        self.settings = settings or SegmentationSettings()
        self.settings.validate()
        self.source = source
        self.stage = SegmentationStage.IDLE
        self.history: list[SegmentationStage] = [self.stage]

        self._rgb = source.as_float()[..., :3]
        self._luminance = luminance_map(self._rgb)
        self._background: Tuple[float, float, float] = (0.0, 0.0, 0.0)
        self._edges: Optional[np.ndarray] = None
        self._alpha: Optional[np.ndarray] = None

    def _advance(self, stage: SegmentationStage) -> None:
        LOGGER.debug("Segmentation %s -> %s", self.stage.value, stage.value)
        self.stage = stage
        self.history.append(stage)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def sample_background(self) -> Tuple[float, float, float]:
        self._advance(SegmentationStage.SAMPLING)
        width, height = self.source.size
        size = max(1, min(20, width // 10))
        sample = self._rgb[: min(size, height), :size].reshape(-1, 3)
        self._background = tuple(float(c) for c in sample.mean(axis=0))  # type: ignore[assignment]
        return self._background

    def analyze_edges(self) -> np.ndarray:
        self._advance(SegmentationStage.EDGE_ANALYSIS)
        self._edges = sobel_magnitude(self.source, self.settings.threshold / 2.0)
        return self._edges

    def build_alpha(self) -> np.ndarray:
        self._advance(SegmentationStage.ALPHA_COMPOSITING)
        threshold = self.settings.threshold
        tolerance = self.settings.tolerance
        distance = np.sqrt(np.sum((self._rgb - np.asarray(self._background)) ** 2, axis=-1))
        edges = self._edges if self._edges is not None else np.zeros(distance.shape, dtype=np.uint8)

        alpha = np.full(distance.shape, 255.0)
        alpha[(edges == 0) & (distance < tolerance)] = 0.0

        bright = (self._luminance > threshold) & (distance < tolerance * 1.5)
        falloff = np.maximum(0.0, 255.0 - (self._luminance - threshold) * 2.0)
        alpha = np.where(bright, np.minimum(alpha, falloff), alpha)
        self._alpha = alpha
        return alpha

    def feather(self) -> np.ndarray:
        self._advance(SegmentationStage.FEATHERING)
        radius = int(self.settings.feather)
        if radius > 0:
            candidate = np.where(self._luminance > self.settings.threshold, 0.0, 255.0)
            self._alpha = (self._alpha + window_mean(candidate, radius)) / 2.0
        return self._alpha

    def smooth(self) -> np.ndarray:
        self._advance(SegmentationStage.SMOOTHING)
        radius = float(self.settings.edge_smoothing)
        alpha = self._alpha
        partial = (alpha > 0.0) & (alpha < 255.0)
        if radius <= 0 or not np.any(partial):
            return alpha

        height, width = alpha.shape
        accum = np.zeros_like(alpha)
        weights = np.zeros_like(alpha)
        for dy, dx, weight in disk_offsets(radius):
            slices = shifted_slices(dy, dx, height, width)
            if slices is None:
                continue
            src, dst = slices
            accum[dst] += alpha[src] * weight
            weights[dst] += weight

        smoothed = np.divide(accum, weights, out=alpha.copy(), where=weights > 0)
        self._alpha = np.where(partial, smoothed, alpha)
        return self._alpha

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def _backdrop(self) -> np.ndarray:
        width, height = self.source.size
        settings = self.settings
        if settings.mode == "color":
            return solid_backdrop(width, height, settings.background_color)
        if settings.mode == "gradient":
            start, end = settings.gradient_colors
            return gradient_backdrop(width, height, start, end, settings.gradient_direction)
        return image_backdrop(width, height, settings.background_image)  # type: ignore[arg-type]

    def run(self) -> SegmentationResult:
        if self.stage is not SegmentationStage.IDLE:
            raise RuntimeError("BackgroundSegmenter instances are single-use")

        self.sample_background()
        self.analyze_edges()
        self.build_alpha()
        self.feather()
        mask = self.smooth()

        foreground = self.source.as_float()
        foreground[..., 3] = np.clip(mask, 0.0, 255.0)
        if self.settings.mode == "remove":
            output = float_to_buffer(foreground)
        else:
            output = float_to_buffer(source_over(foreground, self._backdrop()))

        self._advance(SegmentationStage.DONE)
        LOGGER.info(
            "Background %s finished for %dx%d buffer (estimate=%s)",
            self.settings.mode,
            self.source.width,
            self.source.height,
            tuple(round(c, 1) for c in self._background),
        )
        return SegmentationResult(
            buffer=output,
            mask=np.clip(np.rint(mask), 0, 255).astype(np.uint8),
            background_estimate=self._background,
            stage=self.stage,
            history=list(self.history),
        )


def remove_background(source: PixelBuffer, settings: Optional[SegmentationSettings] = None, **overrides) -> PixelBuffer:
    """Convenience wrapper returning only the processed buffer."""

    settings = settings or SegmentationSettings()
    if overrides:
        known = {f.name for f in fields(settings)}
        unknown = [key for key in overrides if key not in known]
        if unknown:
            raise InvalidParameterError(f"Unknown segmentation settings: {', '.join(sorted(unknown))}")
        settings = replace(settings, **overrides)
    return BackgroundSegmenter(source, settings).run().buffer


__all__ = [
    "BACKGROUND_MODES",
    "BackgroundSegmenter",
    "SegmentationResult",
    "SegmentationSettings",
    "SegmentationStage",
    "remove_background",
]
