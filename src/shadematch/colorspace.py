from __future__ import annotations

import re
from collections.abc import Sequence

import numpy as np

from .models import LAB, RGB

_HEX_PATTERN = re.compile(r"^#?(?:[0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})$")

# sRGB -> XYZ, observer 2 deg, illuminant D65.
_D65_MATRIX = np.array(
    [
        [0.4124, 0.3576, 0.1805],
        [0.2126, 0.7152, 0.0722],
        [0.0193, 0.1192, 0.9505],
    ],
    dtype=np.float64,
)
_D65_WHITE = np.array([0.95047, 1.0, 1.08883], dtype=np.float64)

_LAB_EPSILON = 0.008856
_LAB_SLOPE = 7.787

ColorInput = str | Sequence[int]


class InvalidColorFormat(ValueError):
    pass


def hex_to_rgb(value: str) -> RGB:
    if not isinstance(value, str):
        raise InvalidColorFormat(f"hex color must be a string, got {type(value).__name__}")
    text = value.strip()
    if not _HEX_PATTERN.match(text):
        raise InvalidColorFormat(f"invalid hex color '{value}'")

    digits = text[1:] if text.startswith("#") else text
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return (
        int(digits[0:2], 16),
        int(digits[2:4], 16),
        int(digits[4:6], 16),
    )


def rgb_to_hex(rgb: Sequence[int]) -> str:
    r, g, b = validate_rgb(rgb)
    return f"#{r:02X}{g:02X}{b:02X}"


def normalize_hex(value: str) -> str:
    return rgb_to_hex(hex_to_rgb(value))


def validate_rgb(rgb: Sequence[int]) -> RGB:
    try:
        channels = tuple(rgb)
    except TypeError as exc:
        raise InvalidColorFormat(f"rgb color must be a sequence, got {rgb!r}") from exc

    if len(channels) != 3:
        raise InvalidColorFormat(f"rgb color needs 3 channels, got {len(channels)}")

    parsed: list[int] = []
    for channel in channels:
        if isinstance(channel, bool) or not isinstance(channel, (int, np.integer)):
            raise InvalidColorFormat(f"rgb channels must be integers, got {rgb!r}")
        if not 0 <= int(channel) <= 255:
            raise InvalidColorFormat(f"rgb channel out of range 0-255: {rgb!r}")
        parsed.append(int(channel))
    return parsed[0], parsed[1], parsed[2]


def to_rgb(color: ColorInput) -> RGB:
    if isinstance(color, str):
        return hex_to_rgb(color)
    return validate_rgb(color)


def srgb_to_linear(srgb: np.ndarray) -> np.ndarray:
    srgb = np.asarray(srgb, dtype=np.float64)
    return np.where(
        srgb <= 0.04045,
        srgb / 12.92,
        np.power((srgb + 0.055) / 1.055, 2.4),
    )


def linear_rgb_to_xyz(linear: np.ndarray) -> np.ndarray:
    linear = np.asarray(linear, dtype=np.float64)
    return np.einsum("...j,ij->...i", linear, _D65_MATRIX)


def xyz_to_lab(xyz: np.ndarray) -> np.ndarray:
    scaled = np.asarray(xyz, dtype=np.float64) / _D65_WHITE
    f = np.where(
        scaled > _LAB_EPSILON,
        np.cbrt(scaled),
        _LAB_SLOPE * scaled + 16.0 / 116.0,
    )
    fx = f[..., 0]
    fy = f[..., 1]
    fz = f[..., 2]

    l_star = 116.0 * fy - 16.0
    a_star = 500.0 * (fx - fy)
    b_star = 200.0 * (fy - fz)
    return np.stack([l_star, a_star, b_star], axis=-1)


def rgb_to_lab(rgb: np.ndarray) -> np.ndarray:
    """Convert 8-bit RGB values of shape (..., 3) to CIE L*a*b* (D65/2 deg)."""
    srgb = np.asarray(rgb, dtype=np.float64) / 255.0
    return xyz_to_lab(linear_rgb_to_xyz(srgb_to_linear(srgb)))


def color_to_lab(color: ColorInput) -> LAB:
    lab = rgb_to_lab(np.asarray(to_rgb(color), dtype=np.float64))
    return float(lab[0]), float(lab[1]), float(lab[2])


def hex_to_lab(value: str) -> LAB:
    return color_to_lab(hex_to_rgb(value))
