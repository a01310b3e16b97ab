"""Array helpers shared by the neighbourhood passes."""
from __future__ import annotations

from typing import Iterator, List, Tuple

import numpy as np
from scipy import ndimage

Slices = Tuple[Tuple[slice, slice], Tuple[slice, slice]]


def window_mean(array: np.ndarray, radius: int) -> np.ndarray:
    """Mean over a ``(2r+1)²`` window clamped to the array bounds.

    Pixels near the border average only the samples that exist, so the
    result never mixes in padding values.
    """

    array = np.asarray(array, dtype=np.float64)
    if radius <= 0:
        return array.copy()
    size = 2 * int(radius) + 1
    totals = ndimage.uniform_filter(array, size=size, mode="constant", cval=0.0)
    counts = ndimage.uniform_filter(np.ones_like(array), size=size, mode="constant", cval=0.0)
    return totals / counts


def shifted_slices(dy: int, dx: int, height: int, width: int) -> Slices | None:
    """Return ``(src, dst)`` slices so that ``dst[y, x]`` reads ``src[y + dy, x + dx]``.

    ``None`` when the shift leaves no overlap.
    """

    src_y_start = max(0, dy)
    src_y_end = min(height, height + dy)
    src_x_start = max(0, dx)
    src_x_end = min(width, width + dx)
    dst_y_start = max(0, -dy)
    dst_y_end = min(height, height - dy)
    dst_x_start = max(0, -dx)
    dst_x_end = min(width, width - dx)

    if src_y_start >= src_y_end or src_x_start >= src_x_end:
        return None
    src = (slice(src_y_start, src_y_end), slice(src_x_start, src_x_end))
    dst = (slice(dst_y_start, dst_y_end), slice(dst_x_start, dst_x_end))
    return src, dst


def disk_offsets(radius: float) -> List[Tuple[int, int, float]]:
    """Offsets within *radius* with linear falloff weights ``1 - d / radius``."""

    offsets: List[Tuple[int, int, float]] = []
    reach = int(np.floor(radius))
    for dy in range(-reach, reach + 1):
        for dx in range(-reach, reach + 1):
            distance = float(np.hypot(dx, dy))
            if distance > radius:
                continue
            weight = 1.0 - distance / radius
            if weight <= 0.0:
                continue
            offsets.append((dy, dx, weight))
    return offsets


def interior_windows(height: int, width: int, radius: int) -> Iterator[Tuple[int, int, Tuple[slice, slice]]]:
    """Yield ``(ky, kx, source_slice)`` for every tap of a ``(2r+1)²`` kernel.

    Each slice selects the neighbours of the interior region
    ``[r:height-r, r:width-r]`` for that tap.
    """

    size = 2 * radius + 1
    for ky in range(size):
        for kx in range(size):
            yield ky, kx, (slice(ky, height - size + 1 + ky), slice(kx, width - size + 1 + kx))


__all__ = ["disk_offsets", "interior_windows", "shifted_slices", "window_mean"]
