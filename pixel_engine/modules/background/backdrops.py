"""Replacement backgrounds: solid fills, two-stop gradients and stretched images."""
from __future__ import annotations

from typing import Dict, Sequence, Tuple, Union

import numpy as np

from ...core.buffer import PixelBuffer
from ...core.errors import InvalidParameterError
from ...core.utils_color import parse_color
from ..compositing import solid_canvas
from ..resampler import resample_array

ColorSpec = Union[str, Sequence[int]]

# Gradient line as (x0, y0, x1, y1) in units of the canvas size.
GRADIENT_DIRECTIONS: Dict[str, Tuple[float, float, float, float]] = {
    "to-right": (0.0, 0.0, 1.0, 0.0),
    "to-left": (1.0, 0.0, 0.0, 0.0),
    "to-bottom": (0.0, 0.0, 0.0, 1.0),
    "to-top": (0.0, 1.0, 0.0, 0.0),
    "to-bottom-right": (0.0, 0.0, 1.0, 1.0),
    "to-top-right": (0.0, 1.0, 1.0, 0.0),
}


def solid_backdrop(width: int, height: int, color: ColorSpec) -> np.ndarray:
    return solid_canvas(width, height, parse_color(color))


def gradient_backdrop(
    width: int,
    height: int,
    start: ColorSpec,
    end: ColorSpec,
    direction: str = "to-bottom-right",
) -> np.ndarray:
    """Linear gradient between two colour stops along a preset direction.

    Each pixel centre is projected onto the gradient line and the stop
    colours are interpolated with the clamped projection.
    """

    line = GRADIENT_DIRECTIONS.get(direction)
    if line is None:
        raise InvalidParameterError(
            f"Unknown gradient direction {direction!r}; expected one of {tuple(GRADIENT_DIRECTIONS)}"
        )
    x0, y0, x1, y1 = line[0] * width, line[1] * height, line[2] * width, line[3] * height
    dx, dy = x1 - x0, y1 - y0
    length_sq = dx * dx + dy * dy

    ys, xs = np.mgrid[0:height, 0:width].astype(np.float64)
    projection = ((xs + 0.5 - x0) * dx + (ys + 0.5 - y0) * dy) / length_sq
    t = np.clip(projection, 0.0, 1.0)[..., None]

    first = np.asarray(parse_color(start), dtype=np.float64)
    second = np.asarray(parse_color(end), dtype=np.float64)
    return first + (second - first) * t


def image_backdrop(width: int, height: int, image: PixelBuffer, algorithm: str = "bicubic") -> np.ndarray:
    """Stretch *image* over the whole canvas, ignoring its aspect ratio."""

    stretched = resample_array(image.as_float(), width, height, algorithm)
    return np.clip(np.rint(stretched), 0.0, 255.0)


__all__ = ["GRADIENT_DIRECTIONS", "gradient_backdrop", "image_backdrop", "solid_backdrop"]
