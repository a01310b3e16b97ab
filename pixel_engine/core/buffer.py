"""RGBA pixel buffer and crop rectangle types shared by every module."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np
from PIL import Image

from .errors import InvalidDimensionError

LOGGER = logging.getLogger("pixel_engine.buffer")

RGBA = Tuple[int, int, int, int]


def _check_dimension(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidDimensionError(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise InvalidDimensionError(f"{name} must be positive, got {value}")
    return int(value)


class PixelBuffer:
    """An RGBA raster stored as a ``(height, width, 4)`` uint8 array.

    The array is owned by the buffer. Engine operations never mutate the
    buffer they are given; they build and return a new one.
    """

    __slots__ = ("width", "height", "data")

    def __init__(self, width: int, height: int, data: np.ndarray | bytes | bytearray | memoryview) -> None:
        self.width = _check_dimension("width", width)
        self.height = _check_dimension("height", height)

        if isinstance(data, (bytes, bytearray, memoryview)):
            array = np.frombuffer(bytes(data), dtype=np.uint8).copy()
        else:
            array = np.asarray(data)
            if array.dtype != np.uint8:
                if array.size and (float(array.min()) < 0.0 or float(array.max()) > 255.0):
                    raise InvalidDimensionError("Pixel samples must lie in [0, 255]")
                array = np.rint(array).astype(np.uint8)

        expected = self.width * self.height * 4
        if array.size != expected:
            raise InvalidDimensionError(
                f"Buffer holds {array.size} samples, expected {expected} for {self.width}x{self.height} RGBA"
            )
        self.data = np.ascontiguousarray(array.reshape(self.height, self.width, 4))

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def blank(cls, width: int, height: int, fill: Sequence[int] = (0, 0, 0, 0)) -> "PixelBuffer":
        """Return a buffer filled with a single RGBA colour."""

        width = _check_dimension("width", width)
        height = _check_dimension("height", height)
        rgba = tuple(fill) + (255,) * (4 - len(fill)) if len(fill) < 4 else tuple(fill[:4])
        array = np.empty((height, width, 4), dtype=np.uint8)
        array[...] = np.asarray(rgba, dtype=np.uint8)
        return cls(width, height, array)

    @classmethod
    def from_bytes(cls, width: int, height: int, data: bytes | bytearray) -> "PixelBuffer":
        return cls(width, height, data)

    @classmethod
    def from_array(cls, array: np.ndarray) -> "PixelBuffer":
        """Wrap an ``(H, W, 3)`` or ``(H, W, 4)`` array, adding opaque alpha if needed."""

        array = np.asarray(array)
        if array.ndim != 3 or array.shape[2] not in (3, 4):
            raise InvalidDimensionError(f"Expected an HxWx3 or HxWx4 array, got shape {array.shape}")
        height, width = array.shape[:2]
        if array.shape[2] == 3:
            alpha = np.full((height, width, 1), 255, dtype=array.dtype)
            array = np.concatenate([array, alpha], axis=2)
        return cls(width, height, array.copy())

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelBuffer":
        rgba = image.convert("RGBA")
        return cls(rgba.width, rgba.height, np.asarray(rgba, dtype=np.uint8).copy())

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def rgb(self) -> np.ndarray:
        """Read-only view of the colour channels."""

        view = self.data[..., :3]
        view.flags.writeable = False
        return view

    @property
    def alpha(self) -> np.ndarray:
        view = self.data[..., 3]
        view.flags.writeable = False
        return view

    def _check_bounds(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} buffer")

    def get_pixel(self, x: int, y: int) -> RGBA:
        self._check_bounds(x, y)
        r, g, b, a = self.data[y, x]
        return int(r), int(g), int(b), int(a)

    def set_pixel(self, x: int, y: int, value: Sequence[int]) -> None:
        self._check_bounds(x, y)
        rgba = list(value[:4]) + [255] * (4 - len(value[:4]))
        if any(channel < 0 or channel > 255 for channel in rgba):
            raise ValueError(f"Channel values must lie in [0, 255], got {tuple(rgba)}")
        self.data[y, x] = rgba

    def fill(self, value: Sequence[int]) -> None:
        rgba = list(value[:4]) + [255] * (4 - len(value[:4]))
        self.data[...] = np.asarray(rgba, dtype=np.uint8)

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.width, self.height, self.data.copy())

    def to_bytes(self) -> bytes:
        return self.data.tobytes()

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.data.copy())

    def as_float(self) -> np.ndarray:
        """Return a float64 copy of the samples for intermediate maths."""

        return self.data.astype(np.float64)

    def __len__(self) -> int:
        return self.data.size

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.size == other.size and np.array_equal(self.data, other.data)

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self.width}, height={self.height})"


def float_to_buffer(array: np.ndarray) -> PixelBuffer:
    """Round half-to-even, clamp once to [0, 255] and wrap as a buffer."""

    rounded = np.rint(array)
    np.clip(rounded, 0, 255, out=rounded)
    clipped = rounded.astype(np.uint8)
    height, width = clipped.shape[:2]
    return PixelBuffer(width, height, clipped)


@dataclass(frozen=True)
class CropArea:
    """Rectangle in source pixel coordinates."""

    x: int
    y: int
    width: int
    height: int

    def clamp_to(self, width: int, height: int) -> "CropArea":
        """Return the rectangle clamped inside a ``width`` x ``height`` buffer.

        The result always covers at least one pixel. Out-of-range values are
        pulled back silently; a warning is logged when anything changed.
        """

        x = int(min(max(round(self.x), 0), width - 1))
        y = int(min(max(round(self.y), 0), height - 1))
        w = int(min(max(round(self.width), 1), width - x))
        h = int(min(max(round(self.height), 1), height - y))
        clamped = CropArea(x, y, w, h)
        if clamped != self:
            LOGGER.warning("Crop area %s clamped to %s for %dx%d buffer", self, clamped, width, height)
        return clamped


__all__ = ["CropArea", "PixelBuffer", "RGBA", "float_to_buffer"]
