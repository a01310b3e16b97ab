from __future__ import annotations

import numpy as np
import pytest

from pixel_engine.core.utils_color import (
    grayscale,
    luminance,
    luminance_map,
    nearest_named_color,
    parse_color,
    rgb_to_cmyk,
    rgb_to_hex,
    rgb_to_hsl,
    round_half_up,
)


def test_red_to_hsl_and_cmyk() -> None:
    assert rgb_to_hsl(255, 0, 0) == (0, 100, 50)
    assert rgb_to_cmyk(255, 0, 0) == (0, 100, 100, 0)


def test_black_cmyk_has_no_division_by_zero() -> None:
    assert rgb_to_cmyk(0, 0, 0) == (0, 0, 0, 100)


@pytest.mark.parametrize(
    "rgb,expected",
    [
        ((0, 255, 0), (120, 100, 50)),
        ((0, 0, 255), (240, 100, 50)),
        ((255, 255, 255), (0, 0, 100)),
        ((128, 128, 128), (0, 0, 50)),
        ((255, 0, 255), (300, 100, 50)),
    ],
)
def test_hsl_reference_values(rgb, expected) -> None:
    assert rgb_to_hsl(*rgb) == expected


def test_hsl_components_in_range() -> None:
    rng = np.random.default_rng(3)
    for r, g, b in rng.integers(0, 256, size=(200, 3)):
        h, s, l = rgb_to_hsl(int(r), int(g), int(b))
        assert 0 <= h < 360
        assert 0 <= s <= 100
        assert 0 <= l <= 100


def test_round_half_up() -> None:
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(2.4999) == 2


def test_luminance_scalar_and_array_agree() -> None:
    rgb = np.array([[[255, 0, 0], [10, 200, 30]]], dtype=np.uint8)
    lum = luminance_map(rgb)
    assert lum[0, 0] == pytest.approx(luminance(255, 0, 0))
    assert lum[0, 1] == pytest.approx(0.299 * 10 + 0.587 * 200 + 0.114 * 30)
    assert grayscale(255, 255, 255) == 255


def test_nearest_named_color() -> None:
    assert nearest_named_color(250, 5, 5) == "Red"
    assert nearest_named_color(130, 126, 129) == "Gray"


def test_nearest_named_color_tie_keeps_first_entry() -> None:
    # Equidistant (64) from Purple and Gray; Purple is listed first.
    assert nearest_named_color(128, 64, 128) == "Purple"


def test_hex_and_parse() -> None:
    assert rgb_to_hex(255, 10, 0) == "#FF0A00"
    assert parse_color("#ff0000") == (255, 0, 0, 255)
    assert parse_color("white") == (255, 255, 255, 255)
    assert parse_color((1, 2, 3)) == (1, 2, 3, 255)
    assert parse_color((1, 2, 3, 4)) == (1, 2, 3, 4)
    with pytest.raises(ValueError):
        parse_color((1, 2))
