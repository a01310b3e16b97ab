"""Orchestration layer exposing every tool behind one object."""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import fields
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from ..core.buffer import CropArea, PixelBuffer
from ..core.config import CollageLayout, EngineConfig, FilterSettings, build_config
from ..core.errors import InvalidParameterError
from ..core.utils_io import decode_image, encode_buffer
from . import (
    analyzer,
    collage,
    color_quantizer,
    compressor,
    convolution,
    cropping,
    resampler,
    text_overlay,
    tone_filters,
)
from .background import SegmentationSettings, remove_background

LOGGER = logging.getLogger("pixel_engine.engine")


class PixelEngine:
    """Stateless facade over the individual processing modules.

    Each call works on its own copy of the input; the engine only keeps
    configuration and operation counters.
    """

    def __init__(self, cfg: Union[EngineConfig, Mapping[str, object], None] = None) -> None:
        if isinstance(cfg, EngineConfig):
            cfg = cfg.as_dict()
        self.config: Dict[str, object] = build_config(cfg)
        self.threads = max(1, int(self.config["THREADS"]))  # type: ignore[arg-type]
        self.parallel_min_rows = int(self.config["PARALLEL_MIN_ROWS"])  # type: ignore[arg-type]
        self.sample_target = int(self.config["PALETTE_SAMPLE_TARGET"])  # type: ignore[arg-type]
        self.algorithm = str(self.config["DEFAULT_ALGORITHM"])
        self.background = self.config["DEFAULT_BACKGROUND"]
        self.filter_presets: Dict[str, Dict[str, float]] = dict(self.config["FILTER_PRESETS"])  # type: ignore[arg-type]
        if self.algorithm not in resampler.ALGORITHMS:
            raise InvalidParameterError(f"Unknown resampling algorithm {self.algorithm!r}")
        self.logger = LOGGER
        self._stats_lock = threading.Lock()
        self._operations_run = 0
        self._total_time = 0.0
        self.logger.debug("Engine configured with %s", self.config)

    # Bookkeeping --------------------------------------------------------
    def _timed(self, name: str, function: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        start = time.perf_counter()
        result = function(*args, **kwargs)
        elapsed = time.perf_counter() - start
        with self._stats_lock:
            self._operations_run += 1
            self._total_time += elapsed
        self.logger.info("%s finished in %.3fs", name, elapsed)
        return result

    @staticmethod
    def _require_buffer(value: object, name: str = "buffer") -> PixelBuffer:
        if not isinstance(value, PixelBuffer):
            raise InvalidParameterError(f"{name} must be a PixelBuffer, got {type(value).__name__}")
        return value

    @property
    def stats(self) -> Dict[str, float]:
        with self._stats_lock:
            return {"operations": self._operations_run, "total_time": self._total_time}

    # Tools --------------------------------------------------------------
    def filter(
        self,
        buffer: PixelBuffer,
        settings: Optional[FilterSettings] = None,
        *,
        preset: Optional[str] = None,
        **values: float,
    ) -> PixelBuffer:
        """Apply tone filters; *preset* is applied first, then any explicit *values*."""

        src = self._require_buffer(buffer)
        settings = settings.copy() if settings is not None else FilterSettings()
        if preset is not None:
            if preset not in self.filter_presets:
                raise InvalidParameterError(f"Unknown filter preset {preset!r}")
            settings.update(**self.filter_presets[preset])
        if values:
            settings.update(**values)
        return self._timed(
            "filter",
            tone_filters.apply_tone_filters,
            src,
            settings,
            threads=self.threads,
            parallel_min_rows=self.parallel_min_rows,
        )

    def resize(
        self,
        buffer: PixelBuffer,
        width: int,
        height: int,
        *,
        algorithm: Optional[str] = None,
        mode: Optional[str] = None,
        background: Optional[object] = None,
    ) -> PixelBuffer:
        """Plain resize, or placement into a box when *mode* is ``fit``/``fill``/``stretch``."""

        src = self._require_buffer(buffer)
        algorithm = algorithm or self.algorithm
        if mode is None:
            return self._timed("resize", resampler.resize, src, width, height, algorithm)
        return self._timed(
            "resize",
            resampler.resize_to_box,
            src,
            width,
            height,
            mode,
            algorithm=algorithm,
            background=background if background is not None else self.background,
        )

    def crop(self, buffer: PixelBuffer, area: CropArea) -> PixelBuffer:
        return self._timed("crop", cropping.crop, self._require_buffer(buffer), area)

    def crop_to_exact(self, buffer: PixelBuffer, width: int, height: int) -> PixelBuffer:
        return self._timed("crop_to_exact", cropping.crop_to_exact, self._require_buffer(buffer), width, height, self.algorithm)

    def sharpen(self, buffer: PixelBuffer, strength: float) -> PixelBuffer:
        return self._timed("sharpen", convolution.sharpen, self._require_buffer(buffer), strength)

    def remove_background(
        self, buffer: PixelBuffer, settings: Optional[SegmentationSettings] = None, **overrides: Any
    ) -> PixelBuffer:
        return self._timed("remove_background", remove_background, self._require_buffer(buffer), settings, **overrides)

    def extract_palette(
        self, buffer: PixelBuffer, count: int = 8, method: str = "dominant"
    ) -> List[color_quantizer.ColorInfo]:
        return self._timed(
            "extract_palette",
            color_quantizer.extract_palette,
            self._require_buffer(buffer),
            count,
            method,
            sample_target=self.sample_target,
        )

    def collage(
        self,
        images: Sequence[PixelBuffer],
        layout: Union[str, CollageLayout] = "2x2",
        *,
        canvas_w: int = 1200,
        canvas_h: int = 1200,
        spacing: float = 10,
        background: Optional[object] = None,
    ) -> PixelBuffer:
        tiles = [self._require_buffer(image, "image") for image in images]
        return self._timed(
            "collage",
            collage.compose,
            tiles,
            layout,
            canvas_w,
            canvas_h,
            spacing,
            background if background is not None else self.background,
            algorithm=self.algorithm,
        )

    def text_overlay(
        self,
        buffer: PixelBuffer,
        elements: Sequence[text_overlay.TextElement] = (),
        *,
        preset: Optional[str] = None,
        **element_fields: Any,
    ) -> PixelBuffer:
        """Draw *elements* in order.

        With *preset* or element fields given as keywords, one more element is
        built from them and drawn last.
        """

        src = self._require_buffer(buffer)
        items = list(elements)
        for item in items:
            if not isinstance(item, text_overlay.TextElement):
                raise InvalidParameterError(f"elements must be TextElement instances, got {type(item).__name__}")
        if preset is not None:
            items.append(text_overlay.TextElement.from_preset(preset, **element_fields))
        elif element_fields:
            known = {f.name for f in fields(text_overlay.TextElement)}
            unknown = sorted(set(element_fields) - known)
            if unknown:
                raise InvalidParameterError(f"Unknown text element fields: {', '.join(unknown)}")
            items.append(text_overlay.TextElement(**element_fields))
        return self._timed("text_overlay", text_overlay.render_text, src, items)

    def analyze(self, buffer: PixelBuffer, **metadata: Any) -> analyzer.ImageReport:
        return self._timed("analyze", analyzer.analyze, self._require_buffer(buffer), **metadata)

    def compress(self, buffer: PixelBuffer, **options: Any) -> compressor.CompressionResult:
        options.setdefault("algorithm", self.algorithm)
        return self._timed("compress", compressor.compress, self._require_buffer(buffer), **options)

    def encode(self, buffer: PixelBuffer, fmt: str = "PNG", quality: float = 0.92) -> bytes:
        return self._timed("encode", encode_buffer, self._require_buffer(buffer), fmt, quality)

    def decode(self, data: bytes) -> PixelBuffer:
        return self._timed("decode", decode_image, data)

    # Dispatch -----------------------------------------------------------
    OPERATIONS = (
        "filter",
        "resize",
        "crop",
        "crop_to_exact",
        "sharpen",
        "text_overlay",
        "remove_background",
        "extract_palette",
        "analyze",
        "compress",
        "encode",
    )

    def process(self, operation: str, buffer: PixelBuffer, **params: Any) -> Any:
        """Run a single-buffer tool by name."""

        if operation not in self.OPERATIONS:
            raise InvalidParameterError(f"Unknown operation {operation!r}; expected one of {self.OPERATIONS}")
        return getattr(self, operation)(buffer, **params)


__all__ = ["PixelEngine"]
