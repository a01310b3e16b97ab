"""Color space helpers used across the engine."""
from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np
from PIL import ImageColor

ColorTuple = Tuple[int, int, int]
ColorRGBA = Tuple[int, int, int, int]

# ITU-R BT.601 weights, shared by brightness, contrast and segmentation maths.
LUMA_WEIGHTS = (0.299, 0.587, 0.114)

NAMED_COLORS: Tuple[Tuple[str, ColorTuple], ...] = (
    ("Black", (0, 0, 0)),
    ("White", (255, 255, 255)),
    ("Red", (255, 0, 0)),
    ("Green", (0, 255, 0)),
    ("Blue", (0, 0, 255)),
    ("Yellow", (255, 255, 0)),
    ("Cyan", (0, 255, 255)),
    ("Magenta", (255, 0, 255)),
    ("Orange", (255, 165, 0)),
    ("Purple", (128, 0, 128)),
    ("Pink", (255, 192, 203)),
    ("Brown", (165, 42, 42)),
    ("Gray", (128, 128, 128)),
)


def clamp(value: float, min_value: float, max_value: float) -> float:
    """Clamp *value* between *min_value* and *max_value*."""

    return max(min_value, min(max_value, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (display rounding)."""

    return int(math.floor(value + 0.5))


def color_distance(color_a: Sequence[int], color_b: Sequence[int]) -> float:
    """Return the Euclidean distance between two RGB colors."""

    return math.sqrt(sum((a - b) ** 2 for a, b in zip(color_a[:3], color_b[:3])))


def luminance(r, g, b):
    """BT.601 luminance; accepts scalars or numpy arrays."""

    return LUMA_WEIGHTS[0] * r + LUMA_WEIGHTS[1] * g + LUMA_WEIGHTS[2] * b


def luminance_map(rgb: np.ndarray) -> np.ndarray:
    """Luminance of an ``(..., 3)`` array as float64."""

    rgb = np.asarray(rgb, dtype=np.float64)
    return luminance(rgb[..., 0], rgb[..., 1], rgb[..., 2])


def grayscale(r: int, g: int, b: int) -> int:
    return round_half_up(luminance(r, g, b))


def rgb_to_hsl(r: int, g: int, b: int) -> Tuple[int, int, int]:
    """Convert RGB bytes to ``(hue°, saturation%, lightness%)`` integers."""

    rf, gf, bf = r / 255.0, g / 255.0, b / 255.0
    max_c = max(rf, gf, bf)
    min_c = min(rf, gf, bf)
    lightness = (max_c + min_c) / 2.0
    hue = 0.0
    sat = 0.0

    if max_c != min_c:
        delta = max_c - min_c
        sat = delta / (2.0 - max_c - min_c) if lightness > 0.5 else delta / (max_c + min_c)
        if max_c == rf:
            hue = (gf - bf) / delta + (6.0 if gf < bf else 0.0)
        elif max_c == gf:
            hue = (bf - rf) / delta + 2.0
        else:
            hue = (rf - gf) / delta + 4.0
        hue /= 6.0

    return round_half_up(hue * 360.0) % 360, round_half_up(sat * 100.0), round_half_up(lightness * 100.0)


def rgb_to_cmyk(r: int, g: int, b: int) -> Tuple[int, int, int, int]:
    """Convert RGB bytes to CMYK percentages; pure black maps to ``(0, 0, 0, 100)``."""

    rf, gf, bf = r / 255.0, g / 255.0, b / 255.0
    k = 1.0 - max(rf, gf, bf)
    if k == 1.0:
        c = m = y = 0.0
    else:
        c = (1.0 - rf - k) / (1.0 - k)
        m = (1.0 - gf - k) / (1.0 - k)
        y = (1.0 - bf - k) / (1.0 - k)
    return tuple(round_half_up(channel * 100.0) for channel in (c, m, y, k))  # type: ignore[return-value]


def nearest_named_color(r: int, g: int, b: int) -> str:
    """Name of the closest entry in :data:`NAMED_COLORS`.

    Ties keep the entry that comes first in the table.
    """

    best_name = "Unknown"
    best_distance = math.inf
    for name, reference in NAMED_COLORS:
        distance = color_distance((r, g, b), reference)
        if distance < best_distance:
            best_distance = distance
            best_name = name
    return best_name


def rgb_to_hex(r: int, g: int, b: int) -> str:
    return f"#{r:02X}{g:02X}{b:02X}"


def parse_color(value: str | Sequence[int]) -> ColorRGBA:
    """Parse a CSS color string or a 3/4-tuple into an RGBA tuple."""

    if isinstance(value, str):
        rgba = ImageColor.getcolor(value, "RGBA")
        return tuple(int(c) for c in rgba)  # type: ignore[return-value]
    channels = [int(c) for c in value[:4]]
    if len(channels) < 3:
        raise ValueError(f"Color needs at least three channels, got {value!r}")
    if len(channels) == 3:
        channels.append(255)
    return tuple(int(clamp(c, 0, 255)) for c in channels)  # type: ignore[return-value]


__all__ = [
    "LUMA_WEIGHTS",
    "NAMED_COLORS",
    "clamp",
    "color_distance",
    "grayscale",
    "luminance",
    "luminance_map",
    "nearest_named_color",
    "parse_color",
    "rgb_to_cmyk",
    "rgb_to_hex",
    "rgb_to_hsl",
    "round_half_up",
]
