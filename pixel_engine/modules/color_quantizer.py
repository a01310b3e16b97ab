"""Palette extraction by frequency ranking of sampled pixel colours."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..core.buffer import PixelBuffer
from ..core.errors import InvalidParameterError
from ..core.utils_color import (
    nearest_named_color,
    rgb_to_cmyk,
    rgb_to_hex,
    rgb_to_hsl,
    round_half_up,
)

LOGGER = logging.getLogger("pixel_engine.color_quantizer")

METHODS = ("dominant", "average", "palette")
SAMPLE_TARGET = 40000
ALPHA_CUTOFF = 128
BIN_SIZE = 32


@dataclass(frozen=True)
class ColorInfo:
    """One palette entry with its representations and share of the palette."""

    hex: str
    rgb: Tuple[int, int, int]
    hsl: Tuple[int, int, int]
    cmyk: Tuple[int, int, int, int]
    name: str
    percentage: float

    @classmethod
    def from_rgb(cls, r: int, g: int, b: int, percentage: float) -> "ColorInfo":
        return cls(
            hex=rgb_to_hex(r, g, b),
            rgb=(r, g, b),
            hsl=rgb_to_hsl(r, g, b),
            cmyk=rgb_to_cmyk(r, g, b),
            name=nearest_named_color(r, g, b),
            percentage=percentage,
        )

    @property
    def rgb_css(self) -> str:
        return "rgb({}, {}, {})".format(*self.rgb)

    @property
    def hsl_css(self) -> str:
        return "hsl({}, {}%, {}%)".format(*self.hsl)

    @property
    def cmyk_css(self) -> str:
        return "cmyk({}%, {}%, {}%, {}%)".format(*self.cmyk)

    def as_dict(self) -> Dict[str, object]:
        return {
            "hex": self.hex,
            "rgb": self.rgb_css,
            "hsl": self.hsl_css,
            "cmyk": self.cmyk_css,
            "name": self.name,
            "percentage": self.percentage,
        }


def sample_pixels(src: PixelBuffer, sample_target: int = SAMPLE_TARGET) -> np.ndarray:
    """Every n-th pixel with ``n = max(1, total_bytes // sample_target)``, opaque ones only."""

    flat = src.data.reshape(-1, 4)
    stride = max(1, flat.size // sample_target)
    sampled = flat[::stride]
    return sampled[sampled[:, 3] > ALPHA_CUTOFF, :3]


def rank_colors(pixels: np.ndarray, *, binned: bool) -> List[Tuple[Tuple[int, int, int], int]]:
    """Count colours and sort them by descending count, ties by first occurrence."""

    if pixels.size == 0:
        return []
    keys = pixels.astype(np.int64)
    if binned:
        keys = (keys // BIN_SIZE) * BIN_SIZE
    unique, first_index, counts = np.unique(keys, axis=0, return_index=True, return_counts=True)
    order = np.lexsort((first_index, -counts))
    return [(tuple(int(c) for c in unique[i]), int(counts[i])) for i in order]  # type: ignore[misc]


def extract_palette(
    src: PixelBuffer,
    count: int = 8,
    method: str = "dominant",
    *,
    sample_target: int = SAMPLE_TARGET,
) -> List[ColorInfo]:
    """Return up to *count* colours ranked by frequency.

    ``dominant`` groups channels into buckets of 32 first; ``average`` and
    ``palette`` count exact colours. Percentages are relative to the counts
    of the returned colours only, so they sum to ~100 even when many
    colours were dropped.
    """

    if method not in METHODS:
        raise InvalidParameterError(f"Unknown extraction method {method!r}; expected one of {METHODS}")
    if count <= 0:
        raise InvalidParameterError(f"count must be positive, got {count}")

    pixels = sample_pixels(src, sample_target)
    ranked = rank_colors(pixels, binned=method == "dominant")[:count]
    total = sum(n for _, n in ranked)
    if total == 0:
        LOGGER.warning("No opaque pixels sampled from %dx%d buffer", src.width, src.height)
        return []

    palette = [
        ColorInfo.from_rgb(r, g, b, round_half_up(n / total * 100.0 * 100.0) / 100.0)
        for (r, g, b), n in ranked
    ]
    LOGGER.debug("Extracted %d colours (%s) from %d samples", len(palette), method, len(pixels))
    return palette


def palette_to_json(
    colors: Sequence[ColorInfo],
    method: str,
    count: int,
    extracted_at: Optional[datetime] = None,
) -> str:
    """Serialise a palette into the downloadable JSON document."""

    moment = extracted_at or datetime.now(timezone.utc)
    document = {
        "colors": [color.as_dict() for color in colors],
        "extractionMethod": method,
        "colorCount": count,
        "extractedAt": moment.isoformat(),
    }
    return json.dumps(document, indent=2)


def render_palette_strip(colors: Sequence[ColorInfo], width: int = 800, height: int = 200) -> PixelBuffer:
    """Draw the palette as equal-width vertical swatches."""

    if not colors:
        raise InvalidParameterError("Cannot render an empty palette")
    canvas = PixelBuffer.blank(width, height, (0, 0, 0, 0))
    swatch = width / len(colors)
    for index, color in enumerate(colors):
        start = int(round(index * swatch))
        stop = int(round((index + 1) * swatch))
        canvas.data[:, start:stop, :3] = color.rgb
        canvas.data[:, start:stop, 3] = 255
    return canvas


__all__ = [
    "ColorInfo",
    "METHODS",
    "extract_palette",
    "palette_to_json",
    "rank_colors",
    "render_palette_strip",
    "sample_pixels",
]
