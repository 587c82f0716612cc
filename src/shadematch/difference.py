from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
from skimage.color import deltaE_cie76, deltaE_ciede2000

from .models import LAB


@dataclass(frozen=True)
class MatchScale:
    """Linear ΔE -> match percentage mapping: ``max(0, 100 - k * ΔE)``."""

    name: str
    k: float

    def percentage(self, delta_e: float) -> float:
        return float(min(100.0, max(0.0, 100.0 - self.k * float(delta_e))))

    def percentages(self, delta_e: np.ndarray) -> np.ndarray:
        return np.clip(100.0 - self.k * np.asarray(delta_e, dtype=np.float64), 0.0, 100.0)


STANDARD_MATCH_SCALE = MatchScale(name="standard", k=2.0)
STRICT_MATCH_SCALE = MatchScale(name="strict", k=5.0)

MATCH_SCALES = {
    STANDARD_MATCH_SCALE.name: STANDARD_MATCH_SCALE,
    STRICT_MATCH_SCALE.name: STRICT_MATCH_SCALE,
}

# Upper bounds (exclusive) of each interpretation band.
_QUALITY_BANDS = (
    (1.0, "excellent"),
    (3.0, "very_good"),
    (6.0, "good"),
    (12.0, "fair"),
)


def _as_lab_rows(lab: Sequence[float] | np.ndarray) -> np.ndarray:
    return np.asarray(lab, dtype=np.float64).reshape(-1, 3)


def delta_e_cie76(lab1: LAB, lab2: LAB) -> float:
    distance = deltaE_cie76(_as_lab_rows(lab1), _as_lab_rows(lab2))
    return float(np.asarray(distance).reshape(-1)[0])


def delta_e_ciede2000(lab1: LAB, lab2: LAB) -> float:
    distance = deltaE_ciede2000(_as_lab_rows(lab1), _as_lab_rows(lab2))
    return float(np.asarray(distance).reshape(-1)[0])


def delta_e_cie76_batch(target: LAB, labs: np.ndarray) -> np.ndarray:
    rows = _as_lab_rows(labs)
    if rows.shape[0] == 0:
        return np.zeros(0, dtype=np.float64)
    source = np.repeat(_as_lab_rows(target), rows.shape[0], axis=0)
    return np.asarray(deltaE_cie76(source, rows), dtype=np.float64).reshape(-1)


def delta_e_ciede2000_batch(target: LAB, labs: np.ndarray) -> np.ndarray:
    rows = _as_lab_rows(labs)
    if rows.shape[0] == 0:
        return np.zeros(0, dtype=np.float64)
    source = np.repeat(_as_lab_rows(target), rows.shape[0], axis=0)
    return np.asarray(deltaE_ciede2000(source, rows), dtype=np.float64).reshape(-1)


def match_percentage(delta_e: float, scale: MatchScale = STANDARD_MATCH_SCALE) -> float:
    return scale.percentage(delta_e)


def match_quality(delta_e: float) -> str:
    for upper, label in _QUALITY_BANDS:
        if delta_e < upper:
            return label
    return "poor"
