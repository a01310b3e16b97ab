"""Source-over alpha compositing on float RGBA arrays."""
from __future__ import annotations

from typing import Sequence

import numpy as np

from ..core.buffer import PixelBuffer, float_to_buffer
from ..core.errors import InvalidDimensionError


def source_over(foreground: np.ndarray, background: np.ndarray) -> np.ndarray:
    """Composite *foreground* over *background* (both float RGBA in 0..255).

    Uses premultiplied blending so transparent foreground pixels leave the
    background untouched.
    """

    fg_rgb = foreground[..., :3]
    fg_alpha = foreground[..., 3:4] / 255.0
    bg_rgb = background[..., :3]
    bg_alpha = background[..., 3:4] / 255.0

    out_alpha = fg_alpha + bg_alpha * (1.0 - fg_alpha)
    premult = fg_rgb * fg_alpha + bg_rgb * bg_alpha * (1.0 - fg_alpha)
    with np.errstate(divide="ignore", invalid="ignore"):
        out_rgb = np.divide(premult, out_alpha, out=np.zeros_like(premult), where=out_alpha > 1e-12)
    return np.concatenate([out_rgb, out_alpha * 255.0], axis=-1)


def paste(canvas: np.ndarray, tile: np.ndarray, x: int, y: int) -> np.ndarray:
    """Draw *tile* onto *canvas* in place at ``(x, y)``, clipping to the canvas.

    Both arrays are float RGBA. Negative offsets and overflow are allowed.
    """

    canvas_h, canvas_w = canvas.shape[:2]
    tile_h, tile_w = tile.shape[:2]
    x0 = max(0, x)
    y0 = max(0, y)
    x1 = min(canvas_w, x + tile_w)
    y1 = min(canvas_h, y + tile_h)
    if x0 >= x1 or y0 >= y1:
        return canvas
    region = tile[y0 - y : y1 - y, x0 - x : x1 - x]
    canvas[y0:y1, x0:x1] = source_over(region, canvas[y0:y1, x0:x1])
    return canvas


def solid_canvas(width: int, height: int, color: Sequence[int]) -> np.ndarray:
    """Float RGBA canvas filled with *color*."""

    rgba = list(color[:4]) + [255] * (4 - len(color[:4]))
    canvas = np.empty((height, width, 4), dtype=np.float64)
    canvas[...] = np.asarray(rgba, dtype=np.float64)
    return canvas


def composite_buffers(foreground: PixelBuffer, background: PixelBuffer) -> PixelBuffer:
    """Source-over composite of two buffers of the same size."""

    if foreground.size != background.size:
        raise InvalidDimensionError(f"Buffer sizes differ: {foreground.size} vs {background.size}")
    return float_to_buffer(source_over(foreground.as_float(), background.as_float()))


__all__ = ["composite_buffers", "paste", "solid_canvas", "source_over"]
