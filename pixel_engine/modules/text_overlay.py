"""Text overlay rendering.

An element is placed the way a 2D canvas ``fillText`` call places it:
``(x, y)`` is the alphabetic baseline of the first line, ``align`` picks
which end of each line sits on ``x``, lines are ``1.2 * font_size`` apart
and the whole block is rotated clockwise about ``(x, y)``.

Bold and italic are synthesised (a stroke around the glyphs and a
horizontal shear) so the result does not depend on which style files of a
family happen to be installed.
"""
from __future__ import annotations

import functools
import logging
import math
from dataclasses import asdict, dataclass, fields
from typing import Dict, Iterable, Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from ..core.buffer import PixelBuffer, float_to_buffer
from ..core.config import TEXT_PRESETS
from ..core.errors import InvalidParameterError
from ..core.utils_color import parse_color
from .background.backdrops import ColorSpec
from .compositing import source_over

LOGGER = logging.getLogger("pixel_engine.text_overlay")

ALIGNMENTS = ("left", "center", "right")
LINE_HEIGHT = 1.2
ITALIC_SHEAR = 0.2

_ANCHORS = {"left": "ls", "center": "ms", "right": "rs"}
_MASK_PADDING = 2

# Regular faces tried in order; the family name itself is tried last so a
# path to a font file also works.
_FONT_FILES: Dict[str, Tuple[str, ...]] = {
    "Arial": ("arial.ttf", "Arial.ttf", "LiberationSans-Regular.ttf"),
    "Helvetica": ("Helvetica.ttc", "LiberationSans-Regular.ttf"),
    "Times New Roman": ("times.ttf", "Times New Roman.ttf", "LiberationSerif-Regular.ttf"),
    "Georgia": ("georgia.ttf", "Georgia.ttf", "DejaVuSerif.ttf"),
    "Verdana": ("verdana.ttf", "Verdana.ttf", "DejaVuSans.ttf"),
    "Courier New": ("cour.ttf", "Courier New.ttf", "LiberationMono-Regular.ttf"),
    "Impact": ("impact.ttf", "Impact.ttf"),
    "Comic Sans MS": ("comic.ttf", "Comic Sans MS.ttf"),
    "Trebuchet MS": ("trebuc.ttf", "Trebuchet MS.ttf"),
}


@dataclass
class TextElement:
    text: str = "Sample Text"
    x: float = 100.0
    y: float = 100.0
    font_size: int = 32
    font_family: str = "Arial"
    color: ColorSpec = "#000000"
    bold: bool = False
    italic: bool = False
    align: str = "left"
    rotation: float = 0.0
    opacity: float = 1.0

    @classmethod
    def from_preset(cls, name: str, **overrides: object) -> "TextElement":
        """Build an element from :data:`TEXT_PRESETS`; *overrides* win over the preset."""

        preset = TEXT_PRESETS.get(name)
        if preset is None:
            raise InvalidParameterError(f"Unknown text preset {name!r}; expected one of {tuple(TEXT_PRESETS)}")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise InvalidParameterError(f"Unknown text element fields: {', '.join(unknown)}")
        values = dict(preset)
        values.update(overrides)
        return cls(**values)  # type: ignore[arg-type]

    def validate(self) -> None:
        if self.align not in ALIGNMENTS:
            raise InvalidParameterError(f"Unknown text alignment {self.align!r}; expected one of {ALIGNMENTS}")
        if self.font_size <= 0:
            raise InvalidParameterError(f"font_size must be positive, got {self.font_size}")
        if not 0.0 <= self.opacity <= 1.0:
            raise InvalidParameterError(f"opacity must lie in [0, 1], got {self.opacity}")

    def as_dict(self) -> Dict[str, object]:
        return asdict(self)


@functools.lru_cache(maxsize=64)
def load_font(family: str, size: int) -> ImageFont.FreeTypeFont:
    """Regular face of *family* at *size* px, or Pillow's bundled font when none is installed."""

    for candidate in _FONT_FILES.get(family, ()) + (family,):
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    LOGGER.debug("No font file found for %r; using the bundled default at %dpx", family, size)
    return ImageFont.load_default(size=size)


def stroke_width(element: TextElement) -> int:
    return max(1, round(element.font_size / 24)) if element.bold else 0


def text_mask(element: TextElement, font: ImageFont.FreeTypeFont) -> Optional[Tuple[Image.Image, int, int]]:
    """Upright coverage mask of every line and the first baseline origin inside it.

    ``None`` when the element has no visible characters.
    """

    anchor = _ANCHORS[element.align]
    stroke = stroke_width(element)
    step = element.font_size * LINE_HEIGHT
    lines = element.text.split("\n")
    boxes = [
        (index, font.getbbox(line, anchor=anchor, stroke_width=stroke))
        for index, line in enumerate(lines)
        if line.strip()
    ]
    if not boxes:
        return None

    left = math.floor(min(box[0] for _, box in boxes))
    right = math.ceil(max(box[2] for _, box in boxes))
    top = math.floor(min(box[1] + index * step for index, box in boxes))
    bottom = math.ceil(max(box[3] + index * step for index, box in boxes))

    origin_x = _MASK_PADDING - left
    origin_y = _MASK_PADDING - top
    mask = Image.new("L", (right - left + 2 * _MASK_PADDING, bottom - top + 2 * _MASK_PADDING), 0)
    draw = ImageDraw.Draw(mask)
    for index, line in enumerate(lines):
        if not line.strip():
            continue
        draw.text(
            (origin_x, origin_y + index * step),
            line,
            fill=255,
            font=font,
            anchor=anchor,
            stroke_width=stroke,
            stroke_fill=255,
        )
    return mask, origin_x, origin_y


def place_mask(
    mask: Image.Image, origin: Tuple[float, float], element: TextElement, size: Tuple[int, int]
) -> np.ndarray:
    """Map *mask* onto a ``size`` frame: shear for italics, rotate, then move the origin to ``(x, y)``.

    Returns coverage in 0..1 as a ``(height, width)`` float array.
    """

    theta = math.radians(element.rotation)
    cos, sin = math.cos(theta), math.sin(theta)
    shear = ITALIC_SHEAR if element.italic else 0.0
    # inverse map: frame (X, Y) -> mask (u, v)
    a = cos - shear * sin
    b = sin + shear * cos
    d = -sin
    e = cos
    c = origin[0] - a * element.x - b * element.y
    f = origin[1] - d * element.x - e * element.y
    warped = mask.transform(
        size,
        Image.Transform.AFFINE,
        (a, b, c, d, e, f),
        resample=Image.Resampling.BILINEAR,
        fillcolor=0,
    )
    return np.asarray(warped, dtype=np.float64) / 255.0


def render_text(src: PixelBuffer, elements: Iterable[TextElement]) -> PixelBuffer:
    """Draw *elements* onto a copy of *src* in order, each composited source-over."""

    elements = list(elements)
    for element in elements:
        element.validate()

    canvas = src.as_float()
    drawn = 0
    for element in elements:
        font = load_font(element.font_family, int(round(element.font_size)))
        rendered = text_mask(element, font)
        if rendered is None:
            continue
        mask, origin_x, origin_y = rendered
        coverage = place_mask(mask, (origin_x, origin_y), element, src.size)
        red, green, blue, alpha = parse_color(element.color)
        layer = np.empty_like(canvas)
        layer[..., :3] = (red, green, blue)
        layer[..., 3] = coverage * (alpha * element.opacity)
        canvas = source_over(layer, canvas)
        drawn += 1

    LOGGER.debug("Rendered %d of %d text elements on %dx%d buffer", drawn, len(elements), src.width, src.height)
    return float_to_buffer(canvas)


__all__ = [
    "ALIGNMENTS",
    "ITALIC_SHEAR",
    "LINE_HEIGHT",
    "TextElement",
    "load_font",
    "place_mask",
    "render_text",
    "stroke_width",
    "text_mask",
]
