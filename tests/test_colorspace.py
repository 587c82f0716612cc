from __future__ import annotations

import numpy as np
import pytest

from shadematch.colorspace import (
    InvalidColorFormat,
    color_to_lab,
    hex_to_lab,
    hex_to_rgb,
    normalize_hex,
    rgb_to_hex,
    rgb_to_lab,
    validate_rgb,
)


def test_white_and_black_reference_points():
    white = hex_to_lab("#FFFFFF")
    black = hex_to_lab("#000000")

    assert white[0] == pytest.approx(100.0, abs=1e-6)
    assert white[1] == pytest.approx(0.0, abs=0.01)
    assert white[2] == pytest.approx(0.0, abs=0.02)
    assert black == pytest.approx((0.0, 0.0, 0.0), abs=1e-9)


def test_skin_tone_lab_values():
    assert hex_to_lab("#F5DCC4") == pytest.approx((89.1980, 4.8997, 14.9289), abs=1e-3)
    assert hex_to_lab("#D4A574") == pytest.approx((70.9868, 11.1388, 31.9884), abs=1e-3)
    assert hex_to_lab("#8D5524") == pytest.approx((41.6688, 18.9083, 37.2382), abs=1e-3)


def test_hex_parsing_accepts_short_lowercase_and_bare_forms():
    assert hex_to_rgb("#fff") == (255, 255, 255)
    assert hex_to_rgb("d4a574") == (212, 165, 116)
    assert hex_to_rgb("  #D4A574 ") == (212, 165, 116)
    assert normalize_hex("abc") == "#AABBCC"
    assert rgb_to_hex((212, 165, 116)) == "#D4A574"


@pytest.mark.parametrize("value", ["#GGGGGG", "12345", "", "#1234567", "red"])
def test_invalid_hex_raises(value):
    with pytest.raises(InvalidColorFormat):
        hex_to_rgb(value)


def test_invalid_color_is_a_value_error():
    with pytest.raises(ValueError):
        color_to_lab("not-a-color")


@pytest.mark.parametrize(
    "rgb",
    [(256, 0, 0), (-1, 0, 0), (1.5, 0, 0), (True, 0, 0), (1, 2), (1, 2, 3, 4)],
)
def test_invalid_rgb_raises(rgb):
    with pytest.raises(InvalidColorFormat):
        validate_rgb(rgb)


def test_rgb_and_hex_inputs_agree():
    assert color_to_lab((212, 165, 116)) == color_to_lab("#D4A574")


def test_rgb_to_lab_is_vectorized():
    rows = np.array([[245, 220, 196], [240, 208, 166], [0, 0, 0]], dtype=np.float64)

    labs = rgb_to_lab(rows)

    assert labs.shape == (3, 3)
    for row, lab in zip(rows.astype(int), labs):
        assert tuple(lab) == pytest.approx(color_to_lab(tuple(row)), abs=1e-9)
