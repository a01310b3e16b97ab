"""Grid collage composition."""
from __future__ import annotations

import logging
from typing import List, Sequence, Tuple, Union

from ..core.buffer import PixelBuffer, float_to_buffer
from ..core.config import COLLAGE_LAYOUTS, CollageLayout
from ..core.errors import InvalidDimensionError, InvalidParameterError
from ..core.utils_color import parse_color
from .compositing import solid_canvas
from .resampler import draw_scaled, fit_within

LOGGER = logging.getLogger("pixel_engine.collage")

Cell = Tuple[float, float, float, float]


def resolve_layout(layout: Union[str, CollageLayout]) -> CollageLayout:
    if isinstance(layout, CollageLayout):
        return layout
    resolved = COLLAGE_LAYOUTS.get(layout)
    if resolved is None:
        raise InvalidParameterError(f"Unknown collage layout {layout!r}; expected one of {tuple(COLLAGE_LAYOUTS)}")
    return resolved


def cell_rects(layout: CollageLayout, canvas_w: int, canvas_h: int, spacing: float) -> List[Cell]:
    """``(x, y, width, height)`` of every cell in row-major order."""

    cell_w = (canvas_w - spacing * (layout.cols + 1)) / layout.cols
    cell_h = (canvas_h - spacing * (layout.rows + 1)) / layout.rows
    if cell_w <= 0 or cell_h <= 0:
        raise InvalidDimensionError(
            f"Spacing {spacing} leaves no room for a {layout.cols}x{layout.rows} grid on {canvas_w}x{canvas_h}"
        )
    cells: List[Cell] = []
    for row in range(layout.rows):
        for col in range(layout.cols):
            x = spacing + col * (cell_w + spacing)
            y = spacing + row * (cell_h + spacing)
            cells.append((x, y, cell_w, cell_h))
    return cells


def compose(
    images: Sequence[PixelBuffer],
    layout: Union[str, CollageLayout] = "2x2",
    canvas_w: int = 1200,
    canvas_h: int = 1200,
    spacing: float = 10,
    background: Union[str, Sequence[int]] = "#ffffff",
    *,
    algorithm: str = "bicubic",
) -> PixelBuffer:
    """Place *images* into the grid cells, each fitted and centred in its cell.

    Images past ``cols * rows`` are ignored.
    """

    if canvas_w <= 0 or canvas_h <= 0:
        raise InvalidDimensionError(f"Canvas size must be positive, got {canvas_w}x{canvas_h}")
    grid = resolve_layout(layout)
    cells = cell_rects(grid, canvas_w, canvas_h, spacing)
    if len(images) > len(cells):
        LOGGER.warning(
            "Collage layout %s holds %d images; ignoring %d extra", grid.id, len(cells), len(images) - len(cells)
        )

    canvas = solid_canvas(canvas_w, canvas_h, parse_color(background))
    for image, (x, y, cell_w, cell_h) in zip(images, cells):
        placement = fit_within(image.width, image.height, cell_w, cell_h)
        draw_scaled(canvas, image, placement, origin=(x, y), algorithm=algorithm)
    return float_to_buffer(canvas)


__all__ = ["cell_rects", "compose", "resolve_layout"]
