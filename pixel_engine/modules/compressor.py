"""Downscale-and-encode compression built on the resampler and the encoder adapter."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from ..core.buffer import PixelBuffer
from ..core.errors import InvalidDimensionError
from ..core.utils_io import encode_buffer, normalize_format
from .resampler import resize

LOGGER = logging.getLogger("pixel_engine.compressor")


@dataclass(frozen=True)
class CompressionResult:
    data: bytes
    width: int
    height: int
    format: str
    original_size: Optional[int]
    compressed_size: int

    @property
    def compression_ratio(self) -> Optional[float]:
        """Percentage saved relative to *original_size*; negative when the output grew."""

        if not self.original_size:
            return None
        return (self.original_size - self.compressed_size) / self.original_size * 100.0


def compression_dimensions(
    width: int, height: int, max_width: int, max_height: int, maintain_aspect_ratio: bool = True
) -> Tuple[int, int]:
    """Target size for compression.

    Keeping the aspect ratio only ever scales down; otherwise each side is
    capped independently.
    """

    if max_width <= 0 or max_height <= 0:
        raise InvalidDimensionError(f"Maximum size must be positive, got {max_width}x{max_height}")
    if maintain_aspect_ratio:
        ratio = min(max_width / width, max_height / height)
        if ratio < 1:
            return max(1, int(width * ratio)), max(1, int(height * ratio))
        return width, height
    return min(width, max_width), min(height, max_height)


def compress(
    src: PixelBuffer,
    *,
    max_width: int = 1920,
    max_height: int = 1080,
    fmt: str = "JPEG",
    quality: float = 0.8,
    maintain_aspect_ratio: bool = True,
    original_size: Optional[int] = None,
    algorithm: str = "bicubic",
) -> CompressionResult:
    key = normalize_format(fmt)
    width, height = compression_dimensions(src.width, src.height, max_width, max_height, maintain_aspect_ratio)
    working = resize(src, width, height, algorithm) if (width, height) != src.size else src
    payload = encode_buffer(working, key, quality)
    result = CompressionResult(
        data=payload,
        width=width,
        height=height,
        format=key,
        original_size=original_size,
        compressed_size=len(payload),
    )
    LOGGER.info(
        "Compressed %dx%d -> %dx%d %s (%d bytes)", src.width, src.height, width, height, key, len(payload)
    )
    return result


def convert_format(src: PixelBuffer, fmt: str, quality: float = 0.92) -> bytes:
    """Re-encode *src* at its own size in another format."""

    return encode_buffer(src, fmt, quality)


__all__ = ["CompressionResult", "compress", "compression_dimensions", "convert_format"]
