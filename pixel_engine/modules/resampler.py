"""Geometric resampling: nearest, bilinear and bicubic interpolation plus box placement."""
from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Sequence, Tuple

import numpy as np

from ..core.buffer import PixelBuffer, float_to_buffer
from ..core.errors import InvalidDimensionError, InvalidParameterError
from ..core.utils_color import parse_color
from .compositing import paste, solid_canvas

LOGGER = logging.getLogger("pixel_engine.resampler")

ALGORITHMS = ("nearest", "bilinear", "bicubic")
BOX_MODES = ("fit", "fill", "stretch")

Placement = Tuple[float, float, float, float]

_AXIS_BLOCKS = 16


def cubic_weight(t: np.ndarray) -> np.ndarray:
    """Catmull-Rom style kernel ``w(t)`` with support ``|t| <= 2``."""

    t = np.abs(np.asarray(t, dtype=np.float64))
    t2 = t * t
    t3 = t2 * t
    near = 1.5 * t3 - 2.5 * t2 + 1.0
    far = -0.5 * t3 + 2.5 * t2 - 4.0 * t + 2.0
    return np.where(t <= 1.0, near, np.where(t <= 2.0, far, 0.0))


def _source_coordinates(src_size: int, dst_size: int) -> np.ndarray:
    scale = src_size / dst_size
    return (np.arange(dst_size, dtype=np.float64) + 0.5) * scale - 0.5


def _nearest_taps(src_size: int, dst_size: int) -> Tuple[np.ndarray, np.ndarray]:
    scale = src_size / dst_size
    index = np.floor((np.arange(dst_size, dtype=np.float64) + 0.5) * scale).astype(np.int64)
    index = np.clip(index, 0, src_size - 1)
    return index[:, None], np.ones((dst_size, 1), dtype=np.float64)


def _bilinear_taps(src_size: int, dst_size: int) -> Tuple[np.ndarray, np.ndarray]:
    coords = _source_coordinates(src_size, dst_size)
    base = np.floor(coords)
    frac = coords - base
    index = base.astype(np.int64)[:, None] + np.array([0, 1])
    weights = np.stack([1.0 - frac, frac], axis=1)
    return np.clip(index, 0, src_size - 1), weights


def _bicubic_taps(src_size: int, dst_size: int) -> Tuple[np.ndarray, np.ndarray]:
    coords = _source_coordinates(src_size, dst_size)
    base = np.floor(coords)
    frac = coords - base
    offsets = np.array([-1, 0, 1, 2])
    index = base.astype(np.int64)[:, None] + offsets
    weights = cubic_weight(frac[:, None] - offsets)
    return np.clip(index, 0, src_size - 1), weights


_TAP_BUILDERS: Dict[str, Callable[[int, int], Tuple[np.ndarray, np.ndarray]]] = {
    "nearest": _nearest_taps,
    "bilinear": _bilinear_taps,
    "bicubic": _bicubic_taps,
}


def _resample_axis(array: np.ndarray, dst_size: int, axis: int, algorithm: str) -> np.ndarray:
    """Weighted sum of the source taps along *axis*, one tap at a time.

    Output rows are filled in blocks so the scratch array stays a small
    fraction of the result.
    """

    src_size = array.shape[axis]
    index, weights = _TAP_BUILDERS[algorithm](src_size, dst_size)
    moved = np.moveaxis(array, axis, 0)
    result = np.zeros((dst_size,) + moved.shape[1:], dtype=np.float64)
    expand = (slice(None),) + (None,) * (moved.ndim - 1)
    step = max(1, -(-dst_size // _AXIS_BLOCKS))
    for start in range(0, dst_size, step):
        stop = min(dst_size, start + step)
        block = result[start:stop]
        for tap in range(index.shape[1]):
            gathered = moved[index[start:stop, tap]]
            gathered *= weights[start:stop, tap][expand]
            block += gathered
    return np.moveaxis(result, 0, axis)


def resample_array(array: np.ndarray, target_w: int, target_h: int, algorithm: str = "bicubic") -> np.ndarray:
    """Resample a float ``(H, W, C)`` array without rounding or clamping."""

    if algorithm not in _TAP_BUILDERS:
        raise InvalidParameterError(f"Unknown resampling algorithm {algorithm!r}; expected one of {ALGORITHMS}")
    result = np.asarray(array, dtype=np.float64)
    if result.shape[1] != target_w:
        result = _resample_axis(result, target_w, 1, algorithm)
    if result.shape[0] != target_h:
        result = _resample_axis(result, target_h, 0, algorithm)
    return result


def resize(src: PixelBuffer, target_w: int, target_h: int, algorithm: str = "bicubic") -> PixelBuffer:
    """Return a new ``target_w`` x ``target_h`` buffer; *src* is left untouched.

    Source taps outside the image replicate the edge pixels. Samples are
    rounded and clamped once after both separable passes.
    """

    if target_w <= 0 or target_h <= 0:
        raise InvalidDimensionError(f"Target size must be positive, got {target_w}x{target_h}")
    if (target_w, target_h) == src.size:
        if algorithm not in _TAP_BUILDERS:
            raise InvalidParameterError(f"Unknown resampling algorithm {algorithm!r}")
        return src.copy()
    result = resample_array(src.as_float(), int(target_w), int(target_h), algorithm)
    LOGGER.debug("Resized %dx%d -> %dx%d (%s)", src.width, src.height, target_w, target_h, algorithm)
    return float_to_buffer(result)


def fit_within(src_w: float, src_h: float, box_w: float, box_h: float) -> Placement:
    """Scale to fit inside the box keeping aspect ratio, centred."""

    scale = min(box_w / src_w, box_h / src_h)
    draw_w = src_w * scale
    draw_h = src_h * scale
    return draw_w, draw_h, (box_w - draw_w) / 2.0, (box_h - draw_h) / 2.0


def fill_box(src_w: float, src_h: float, box_w: float, box_h: float) -> Placement:
    """Scale to cover the box keeping aspect ratio, centred; may overflow."""

    scale = max(box_w / src_w, box_h / src_h)
    draw_w = src_w * scale
    draw_h = src_h * scale
    return draw_w, draw_h, (box_w - draw_w) / 2.0, (box_h - draw_h) / 2.0


def stretch(src_w: float, src_h: float, box_w: float, box_h: float) -> Placement:
    """Ignore the aspect ratio and cover the box exactly."""

    return float(box_w), float(box_h), 0.0, 0.0


PLACEMENTS: Dict[str, Callable[[float, float, float, float], Placement]] = {
    "fit": fit_within,
    "fill": fill_box,
    "stretch": stretch,
}


def draw_scaled(
    canvas: np.ndarray,
    src: PixelBuffer,
    placement: Placement,
    *,
    origin: Tuple[float, float] = (0.0, 0.0),
    algorithm: str = "bicubic",
) -> np.ndarray:
    """Resample *src* to the placement size and composite it onto *canvas* in place."""

    draw_w, draw_h, offset_x, offset_y = placement
    width = max(1, int(round(draw_w)))
    height = max(1, int(round(draw_h)))
    scaled = resize(src, width, height, algorithm)
    x = int(round(origin[0] + offset_x))
    y = int(round(origin[1] + offset_y))
    return paste(canvas, scaled.as_float(), x, y)


def resize_to_box(
    src: PixelBuffer,
    box_w: int,
    box_h: int,
    mode: str = "fit",
    *,
    algorithm: str = "bicubic",
    background: str | Sequence[int] = "#ffffff",
) -> PixelBuffer:
    """Place *src* into a ``box_w`` x ``box_h`` canvas using fit, fill or stretch.

    The canvas starts filled with *background*; ``fill`` overflows the box and
    is cropped by it.
    """

    if box_w <= 0 or box_h <= 0:
        raise InvalidDimensionError(f"Box size must be positive, got {box_w}x{box_h}")
    placement_fn = PLACEMENTS.get(mode)
    if placement_fn is None:
        raise InvalidParameterError(f"Unknown resize mode {mode!r}; expected one of {BOX_MODES}")

    canvas = solid_canvas(box_w, box_h, parse_color(background))
    placement = placement_fn(src.width, src.height, box_w, box_h)
    draw_scaled(canvas, src, placement, algorithm=algorithm)
    return float_to_buffer(canvas)


def scale_to_aspect(
    src_w: int,
    src_h: int,
    *,
    width: Optional[int] = None,
    height: Optional[int] = None,
) -> Tuple[int, int]:
    """Complete a target size from one side while keeping the source aspect ratio."""

    if (width is None) == (height is None):
        raise InvalidParameterError("Pass exactly one of width or height")
    ratio = src_w / src_h
    if width is not None:
        return int(width), max(1, int(np.floor(width / ratio + 0.5)))
    return max(1, int(np.floor(height * ratio + 0.5))), int(height)


__all__ = [
    "ALGORITHMS",
    "BOX_MODES",
    "PLACEMENTS",
    "cubic_weight",
    "draw_scaled",
    "fill_box",
    "fit_within",
    "resample_array",
    "resize",
    "resize_to_box",
    "scale_to_aspect",
    "stretch",
]
