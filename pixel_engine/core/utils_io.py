"""Decoder and encoder adapters around Pillow.

The engine itself never touches files; these helpers only translate between
in-memory byte strings and :class:`PixelBuffer` objects.
"""
from __future__ import annotations

import io
import logging
from typing import Dict, Optional

import numpy as np
from PIL import Image, UnidentifiedImageError

from .buffer import PixelBuffer
from .errors import DecodeFailureError, UnsupportedFormatError

LOGGER = logging.getLogger("pixel_engine.io")

# Format name -> (Pillow format, keeps alpha, honours quality)
ENCODER_FORMATS: Dict[str, tuple[str, bool, bool]] = {
    "PNG": ("PNG", True, False),
    "JPEG": ("JPEG", False, True),
    "WEBP": ("WEBP", True, True),
    "BMP": ("BMP", False, False),
    "GIF": ("GIF", False, False),
    "TIFF": ("TIFF", True, False),
}

_FORMAT_ALIASES = {
    "JPG": "JPEG",
    "IMAGE/JPEG": "JPEG",
    "IMAGE/JPG": "JPEG",
    "IMAGE/PNG": "PNG",
    "IMAGE/WEBP": "WEBP",
    "IMAGE/BMP": "BMP",
    "IMAGE/GIF": "GIF",
    "IMAGE/TIFF": "TIFF",
    "TIF": "TIFF",
}


def normalize_format(fmt: str) -> str:
    """Map MIME types and extensions onto an :data:`ENCODER_FORMATS` key."""

    key = str(fmt).strip().upper().lstrip(".")
    key = _FORMAT_ALIASES.get(key, key)
    if key not in ENCODER_FORMATS:
        raise UnsupportedFormatError(f"Unsupported output format {fmt!r}")
    return key


def decode_image(data: bytes) -> PixelBuffer:
    """Decode an encoded image into an RGBA buffer."""

    if not data:
        raise DecodeFailureError("No image data supplied")
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            return PixelBuffer.from_image(image)
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise DecodeFailureError(f"Could not decode image: {exc}") from exc


def flatten(buffer: PixelBuffer, background: tuple[int, int, int] = (255, 255, 255)) -> np.ndarray:
    """Composite *buffer* over an opaque colour and return an RGB array."""

    rgba = buffer.as_float()
    alpha = rgba[..., 3:4] / 255.0
    backdrop = np.asarray(background, dtype=np.float64)
    rgb = rgba[..., :3] * alpha + backdrop * (1.0 - alpha)
    return np.clip(np.rint(rgb), 0, 255).astype(np.uint8)


def encode_buffer(buffer: PixelBuffer, fmt: str = "PNG", quality: Optional[float] = 0.92) -> bytes:
    """Encode *buffer* to bytes in *fmt*.

    ``quality`` uses the 0..1 scale of browser canvases and is ignored by
    lossless formats. Formats without alpha are flattened onto white.
    """

    key = normalize_format(fmt)
    pil_format, keeps_alpha, lossy = ENCODER_FORMATS[key]
    if keeps_alpha:
        image = Image.fromarray(buffer.data.copy())
    else:
        image = Image.fromarray(flatten(buffer))

    options: Dict[str, object] = {}
    if lossy and quality is not None:
        options["quality"] = int(round(min(max(float(quality), 0.0), 1.0) * 100))

    stream = io.BytesIO()
    image.save(stream, format=pil_format, **options)
    payload = stream.getvalue()
    LOGGER.debug("Encoded %dx%d buffer as %s (%d bytes)", buffer.width, buffer.height, key, len(payload))
    return payload


__all__ = ["ENCODER_FORMATS", "decode_image", "encode_buffer", "flatten", "normalize_format"]
