"""Error types raised by the pixel engine."""
from __future__ import annotations


class PixelEngineError(Exception):
    """Base class for every error raised by the engine."""


class InvalidDimensionError(PixelEngineError, ValueError):
    """Raised for non-positive dimensions or a buffer length mismatch."""


class InvalidParameterError(PixelEngineError, ValueError):
    """Raised for unknown modes, algorithms, presets or malformed kernels."""


class DecodeFailureError(PixelEngineError):
    """Raised when raw bytes cannot be decoded into a pixel buffer."""


class UnsupportedFormatError(PixelEngineError):
    """Raised by the encoder adapter for formats it cannot produce."""


__all__ = [
    "DecodeFailureError",
    "InvalidDimensionError",
    "InvalidParameterError",
    "PixelEngineError",
    "UnsupportedFormatError",
]
