"""Summary statistics for an image: colours, brightness, histograms, size class."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from ..core.buffer import PixelBuffer
from ..core.utils_color import round_half_up
from .color_quantizer import rank_colors


@dataclass(frozen=True)
class ImageReport:
    width: int
    height: int
    average_color: Tuple[int, int, int]
    dominant_colors: List[Tuple[int, int, int]]
    brightness: int
    contrast: int
    histogram: Dict[str, List[int]]
    aspect_ratio: str
    megapixels: float
    quality: str
    file_size: Optional[int] = None
    format: Optional[str] = None

    def as_dict(self) -> Dict[str, object]:
        return {
            "dimensions": {"width": self.width, "height": self.height},
            "fileSize": self.file_size,
            "format": self.format,
            "colorProfile": {
                "dominantColors": ["rgb({},{},{})".format(*c) for c in self.dominant_colors],
                "averageColor": "rgb({}, {}, {})".format(*self.average_color),
                "brightness": self.brightness,
                "contrast": self.contrast,
            },
            "histogram": self.histogram,
            "metadata": {
                "aspectRatio": self.aspect_ratio,
                "megapixels": self.megapixels,
                "quality": self.quality,
            },
        }


def aspect_ratio_label(width: int, height: int) -> str:
    """``"1.5:1"`` for landscape, ``"1:1.8"`` for portrait, one decimal place."""

    ratio = width / height
    if ratio > 1:
        return f"{_trimmed(_one_decimal(ratio))}:1"
    return f"1:{_trimmed(_one_decimal(1 / ratio))}"


def _one_decimal(value: float) -> float:
    return round_half_up(value * 10) / 10


def _trimmed(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def quality_class(megapixels: float) -> str:
    if megapixels > 5:
        return "High"
    if megapixels < 1:
        return "Low"
    return "Medium"


def analyze(src: PixelBuffer, *, file_size: Optional[int] = None, format: Optional[str] = None) -> ImageReport:
    """Build an :class:`ImageReport` from every pixel of *src* (alpha ignored)."""

    rgb = src.data[..., :3].reshape(-1, 3)
    totals = rgb.sum(axis=0, dtype=np.int64)
    pixel_count = rgb.shape[0]
    average = tuple(round_half_up(t / pixel_count) for t in totals)

    brightness = rgb.astype(np.float64).mean(axis=1)
    spread = float(brightness.max() - brightness.min())

    histogram = {
        name: np.bincount(rgb[:, channel], minlength=256).astype(int).tolist()
        for channel, name in enumerate(("red", "green", "blue"))
    }
    dominant = [color for color, _ in rank_colors(rgb, binned=True)[:5]]

    megapixels = src.width * src.height / 1_000_000
    return ImageReport(
        width=src.width,
        height=src.height,
        average_color=average,  # type: ignore[arg-type]
        dominant_colors=dominant,
        brightness=round_half_up(sum(average) / 3 / 255 * 100),
        contrast=round_half_up(spread / 255 * 100),
        histogram=histogram,
        aspect_ratio=aspect_ratio_label(src.width, src.height),
        megapixels=_one_decimal(megapixels),
        quality=quality_class(megapixels),
        file_size=file_size,
        format=format.upper() if format else None,
    )


__all__ = ["ImageReport", "analyze", "aspect_ratio_label", "quality_class"]
