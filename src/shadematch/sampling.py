from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from .colorspace import rgb_to_hex, rgb_to_lab
from .models import RGB, SampledColor

logger = logging.getLogger(__name__)

_LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)
_MIN_LUMA = 30.0
_MAX_LUMA = 240.0
_RED_RATIO = (0.30, 0.50)
_GREEN_RATIO = (0.25, 0.45)
_CONFIDENCE_STD_SCALE = 50.0


class InsufficientSampleData(ValueError):
    pass


@dataclass(frozen=True)
class Region:
    x: int
    y: int
    width: int
    height: int

    def clip(self, image_width: int, image_height: int) -> Region:
        x0 = min(max(0, int(self.x)), image_width)
        y0 = min(max(0, int(self.y)), image_height)
        x1 = min(max(x0, int(self.x) + int(self.width)), image_width)
        y1 = min(max(y0, int(self.y) + int(self.height)), image_height)
        return Region(x=x0, y=y0, width=x1 - x0, height=y1 - y0)


def _as_pixel_rows(pixels: np.ndarray) -> np.ndarray:
    array = np.asarray(pixels)
    if array.ndim < 1 or array.shape[-1] != 3:
        raise ValueError("pixels must have a trailing RGB axis of size 3")
    return array.reshape(-1, 3).astype(np.float64)


def _round_half_up(values: np.ndarray) -> RGB:
    rounded = np.clip(np.floor(np.asarray(values, dtype=np.float64) + 0.5), 0, 255)
    return int(rounded[0]), int(rounded[1]), int(rounded[2])


def skin_pixel_mask(pixels: np.ndarray) -> np.ndarray:
    rows = _as_pixel_rows(pixels)
    luma = rows @ _LUMA_WEIGHTS
    total = rows.sum(axis=1)
    safe_total = np.where(total > 0, total, 1.0)
    red_ratio = rows[:, 0] / safe_total
    green_ratio = rows[:, 1] / safe_total
    return (
        (luma >= _MIN_LUMA)
        & (luma <= _MAX_LUMA)
        & (total > 0)
        & (red_ratio > _RED_RATIO[0])
        & (red_ratio < _RED_RATIO[1])
        & (green_ratio > _GREEN_RATIO[0])
        & (green_ratio < _GREEN_RATIO[1])
    )


def _sample_confidence(rows: np.ndarray) -> float:
    mean_std = float(np.mean(np.std(rows, axis=0)))
    return max(0.0, 1.0 - mean_std / _CONFIDENCE_STD_SCALE)


def reduce_samples(pixels: np.ndarray, min_samples: int = 10) -> SampledColor:
    """Average the skin-like pixels of a sample into one color.

    Confidence falls as the per-channel spread grows and reaches zero at a
    mean standard deviation of 50.
    """
    rows = _as_pixel_rows(pixels)
    valid = rows[skin_pixel_mask(rows)]
    if valid.shape[0] < max(1, min_samples):
        raise InsufficientSampleData(
            f"only {valid.shape[0]} skin pixels in sample, need {min_samples}"
        )

    rgb = _round_half_up(valid.mean(axis=0))
    logger.debug("reduced %d of %d pixels to %s", valid.shape[0], rows.shape[0], rgb)
    return SampledColor(
        rgb=rgb,
        hex=rgb_to_hex(rgb),
        confidence=_sample_confidence(valid),
        sample_count=int(valid.shape[0]),
    )


def sample_region(
    image_rgb: np.ndarray, region: Region, min_samples: int = 10
) -> SampledColor:
    if image_rgb.ndim != 3 or image_rgb.shape[2] != 3:
        raise ValueError("image must have shape (height, width, 3)")

    height, width = image_rgb.shape[:2]
    box = region.clip(width, height)
    crop = image_rgb[box.y : box.y + box.height, box.x : box.x + box.width]
    return reduce_samples(crop, min_samples=min_samples)


def standard_face_regions(width: int, height: int) -> tuple[Region, Region]:
    # Center cheek, then the shadowed side of the face. Sizes follow the width.
    primary = Region(
        x=int(width * 0.3),
        y=int(height * 0.4),
        width=int(width * 0.4),
        height=int(width * 0.2),
    )
    secondary = Region(
        x=int(width * 0.1),
        y=int(height * 0.45),
        width=int(width * 0.2),
        height=int(width * 0.15),
    )
    return primary, secondary


def tone_extremes(
    pixels: np.ndarray, min_samples: int = 10, outlier_percent: float = 5.0
) -> tuple[SampledColor, SampledColor]:
    rows = _as_pixel_rows(pixels)
    if rows.shape[0] < max(1, min_samples):
        raise InsufficientSampleData(
            f"only {rows.shape[0]} pixels in sample, need {min_samples}"
        )

    order = np.argsort(rgb_to_lab(rows)[:, 0], kind="stable")
    ordered = rows[order]
    trim = min(int(ordered.shape[0] * outlier_percent / 100.0), ordered.shape[0] // 4)
    relevant = ordered[trim : ordered.shape[0] - trim]

    count = relevant.shape[0]
    lightest = relevant[min(int(count * 0.95), count - 1)]
    darkest = relevant[max(int(count * 0.05), 0)]
    confidence = _sample_confidence(relevant)

    light_rgb = _round_half_up(lightest)
    dark_rgb = _round_half_up(darkest)
    return (
        SampledColor(
            rgb=light_rgb,
            hex=rgb_to_hex(light_rgb),
            confidence=confidence,
            sample_count=int(count),
        ),
        SampledColor(
            rgb=dark_rgb,
            hex=rgb_to_hex(dark_rgb),
            confidence=confidence,
            sample_count=int(count),
        ),
    )
