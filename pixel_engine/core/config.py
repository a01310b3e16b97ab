"""Configuration module for the pixel engine."""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Dict, Mapping, MutableMapping, Optional, Tuple

from .errors import InvalidParameterError

THREADS = 1
PARALLEL_MIN_ROWS = 256
PALETTE_SAMPLE_TARGET = 40000
DEFAULT_ALGORITHM = "bicubic"
DEFAULT_BACKGROUND = "#ffffff"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class FilterSettings:
    """Knobs consumed by the tone filter pipeline.

    ``brightness``, ``contrast``, ``saturation``, ``vibrance`` and ``opacity``
    are percentages where 100 leaves the image unchanged. ``hue`` (degrees),
    ``warmth``, ``highlights`` and ``shadows`` are centred at 0. ``blur`` (px),
    ``grayscale``, ``sepia``, ``invert`` and ``vignette`` are effect amounts
    that do nothing at 0.
    """

    brightness: float = 100.0
    contrast: float = 100.0
    saturation: float = 100.0
    hue: float = 0.0
    blur: float = 0.0
    grayscale: float = 0.0
    sepia: float = 0.0
    invert: float = 0.0
    opacity: float = 100.0
    vibrance: float = 100.0
    warmth: float = 0.0
    highlights: float = 0.0
    shadows: float = 0.0
    vignette: float = 0.0

    def update(self, **values: float) -> "FilterSettings":
        """Set one or more knobs in place and return ``self``."""

        known = {f.name for f in fields(self)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise InvalidParameterError(f"Unknown filter settings: {', '.join(unknown)}")
        for name, value in values.items():
            setattr(self, name, float(value))
        return self

    def apply_preset(self, name: str) -> "FilterSettings":
        """Overlay a named preset from :data:`FILTER_PRESETS` onto these settings."""

        preset = FILTER_PRESETS.get(name)
        if preset is None:
            raise InvalidParameterError(f"Unknown filter preset {name!r}")
        return self.update(**preset)

    def reset(self) -> "FilterSettings":
        defaults = FilterSettings()
        for f in fields(self):
            setattr(self, f.name, getattr(defaults, f.name))
        return self

    def copy(self) -> "FilterSettings":
        return replace(self)

    def is_identity(self) -> bool:
        return self == FilterSettings()

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


FILTER_PRESETS: Dict[str, Dict[str, float]] = {
    "Vintage": {"sepia": 40, "contrast": 110, "brightness": 90, "saturation": 80},
    "B&W": {"grayscale": 100, "contrast": 110},
    "Vibrant": {"saturation": 140, "contrast": 115, "brightness": 105},
    "Soft": {"blur": 1, "brightness": 110, "opacity": 90},
    "High Contrast": {"contrast": 150, "brightness": 95},
    "Cool": {"hue": 180, "saturation": 110},
    "Warm": {"hue": -20, "brightness": 110, "saturation": 110},
    "Dreamy": {"blur": 2, "brightness": 115, "opacity": 85, "saturation": 120},
}

SIZE_PRESETS: Dict[str, Tuple[int, int]] = {
    "Instagram Square": (1080, 1080),
    "Instagram Story": (1080, 1920),
    "Facebook Cover": (1200, 630),
    "Twitter Header": (1500, 500),
    "LinkedIn Banner": (1584, 396),
    "YouTube Thumbnail": (1280, 720),
    "Full HD": (1920, 1080),
    "4K UHD": (3840, 2160),
    "Mobile Wallpaper": (1080, 2340),
    "Desktop Wallpaper": (2560, 1440),
}

FONT_FAMILIES: Tuple[str, ...] = (
    "Arial",
    "Helvetica",
    "Times New Roman",
    "Georgia",
    "Verdana",
    "Courier New",
    "Impact",
    "Comic Sans MS",
    "Trebuchet MS",
)

TEXT_PRESETS: Dict[str, Dict[str, object]] = {
    "Heading": {"font_size": 48, "font_family": "Arial", "bold": True, "color": "#000000"},
    "Subheading": {"font_size": 32, "font_family": "Georgia", "bold": False, "color": "#333333"},
    "Body Text": {"font_size": 18, "font_family": "Verdana", "bold": False, "color": "#666666"},
    "Watermark": {"font_size": 24, "font_family": "Arial", "bold": False, "color": "#000000", "opacity": 0.3},
}


@dataclass(frozen=True)
class CollageLayout:
    """Fixed grid preset for the collage compositor."""

    id: str
    name: str
    cols: int
    rows: int
    max_images: int


COLLAGE_LAYOUTS: Dict[str, CollageLayout] = {
    layout.id: layout
    for layout in (
        CollageLayout("2x2", "2×2 Grid", 2, 2, 4),
        CollageLayout("3x3", "3×3 Grid", 3, 3, 9),
        CollageLayout("2x3", "2×3 Grid", 2, 3, 6),
        CollageLayout("3x2", "3×2 Grid", 3, 2, 6),
        CollageLayout("1x3", "1×3 Strip", 1, 3, 3),
        CollageLayout("3x1", "3×1 Strip", 3, 1, 3),
    )
}


@dataclass
class EngineConfig:
    """Runtime configuration for :class:`~pixel_engine.modules.engine.PixelEngine`."""

    threads: int = THREADS
    parallel_min_rows: int = PARALLEL_MIN_ROWS
    palette_sample_target: int = PALETTE_SAMPLE_TARGET
    default_algorithm: str = DEFAULT_ALGORITHM
    default_background: str = DEFAULT_BACKGROUND
    log_level: int = logging.INFO
    log_file: Optional[Path] = None
    filter_presets: Dict[str, Dict[str, float]] = field(default_factory=lambda: dict(FILTER_PRESETS))

    def as_dict(self) -> Dict[str, object]:
        """Return the configuration as a plain dictionary."""

        return {
            "THREADS": self.threads,
            "PARALLEL_MIN_ROWS": self.parallel_min_rows,
            "PALETTE_SAMPLE_TARGET": self.palette_sample_target,
            "DEFAULT_ALGORITHM": self.default_algorithm,
            "DEFAULT_BACKGROUND": self.default_background,
            "LOG_LEVEL": self.log_level,
            "LOG_FILE": self.log_file,
            "FILTER_PRESETS": self.filter_presets,
        }


def build_config(overrides: Optional[Mapping[str, object]] = None) -> Dict[str, object]:
    """Create a configuration dictionary with optional overrides.

    Unknown keys are ignored.
    """

    config = EngineConfig()
    mutable: MutableMapping[str, object] = config.as_dict()
    if overrides:
        for key, value in overrides.items():
            if key in mutable:
                mutable[key] = value
    return dict(mutable)


def configure_logging(level: int = logging.INFO, log_file: Optional[Path] = None) -> logging.Logger:
    """Attach console (and optional file) handlers to the ``pixel_engine`` logger."""

    formatter = logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT)
    logger = logging.getLogger("pixel_engine")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        if getattr(handler, "_pixel_engine_handler", False):
            logger.removeHandler(handler)
            handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    console_handler._pixel_engine_handler = True  # type: ignore[attr-defined]
    logger.addHandler(console_handler)

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8", delay=True)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        file_handler._pixel_engine_handler = True  # type: ignore[attr-defined]
        logger.addHandler(file_handler)
    return logger


__all__ = [
    "COLLAGE_LAYOUTS",
    "CollageLayout",
    "EngineConfig",
    "FILTER_PRESETS",
    "FONT_FAMILIES",
    "FilterSettings",
    "SIZE_PRESETS",
    "TEXT_PRESETS",
    "build_config",
    "configure_logging",
]
