from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from .colorspace import InvalidColorFormat, hex_to_rgb, rgb_to_lab
from .difference import (
    STANDARD_MATCH_SCALE,
    MatchScale,
    delta_e_cie76_batch,
    delta_e_ciede2000_batch,
    match_quality,
)
from .models import (
    LAB,
    BrandRecommendation,
    ShadeCandidate,
    ShadeLevel,
    ShadeMatch,
    SkinToneAnalysis,
    Undertone,
    UserPreferences,
)
from .tone import STANDARD_UNDERTONE_POLICY, UndertonePolicy, classify_undertone, depth_level

logger = logging.getLogger(__name__)

PREFERENCE_CAP = 1.5
DEFAULT_QUALITY = 0.5

DEFAULT_MATCHES_PER_BRAND = 3
DEFAULT_MAX_BRANDS = 10
BRAND_POOL_SIZE = 50

_SAME_UNDERTONE = 1.0
_NEUTRAL_PAIRING = 0.9
_OLIVE_PAIRING = 0.6
_OPPOSITE_PAIRING = 0.4

_DEPTH_STEPS = np.array([0.0, 1.0, 2.0, 3.0, 7.0], dtype=np.float64)
_DEPTH_SCORES = np.array([1.0, 0.9, 0.7, 0.5, 0.1], dtype=np.float64)

SKIN_TYPE_FINISH_FACTORS: dict[str, dict[str, float]] = {
    "oily": {"matte": 1.2, "natural": 1.0, "satin": 0.9, "luminous": 0.8, "dewy": 0.6},
    "dry": {"dewy": 1.2, "luminous": 1.2, "satin": 1.0, "natural": 1.0, "matte": 0.6},
    "combination": {
        "natural": 1.1,
        "satin": 1.05,
        "matte": 1.0,
        "luminous": 0.9,
        "dewy": 0.9,
    },
    "sensitive": {"natural": 1.05},
    "normal": {},
}

_FINISH_KEYWORDS = (
    ("matte", ("matte", "mattifying", "oil-free", "oil free")),
    ("dewy", ("dewy", "hydrating", "glow")),
    ("satin", ("satin",)),
    ("luminous", ("luminous", "radiant", "illuminating")),
)
_COVERAGE_KEYWORDS = (
    ("full", ("full",)),
    ("light", ("light", "sheer", "tint", "skin tint")),
    ("buildable", ("buildable",)),
)


@dataclass(frozen=True)
class ScoringWeights:
    name: str
    color: float
    undertone: float
    depth: float
    preference: float
    quality: float = 0.0

    def __post_init__(self) -> None:
        total = self.color + self.undertone + self.depth + self.preference + self.quality
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise ValueError(f"scoring weights must sum to 1.0, got {total:.4f}")
        if min(self.color, self.undertone, self.depth, self.preference, self.quality) < 0:
            raise ValueError("scoring weights must be non-negative")


STANDARD_WEIGHTS = ScoringWeights(
    name="standard", color=0.40, undertone=0.25, depth=0.25, preference=0.10
)
ENHANCED_WEIGHTS = ScoringWeights(
    name="enhanced", color=0.40, undertone=0.20, depth=0.10, preference=0.25, quality=0.05
)

WEIGHT_PRESETS = {
    STANDARD_WEIGHTS.name: STANDARD_WEIGHTS,
    ENHANCED_WEIGHTS.name: ENHANCED_WEIGHTS,
}


@dataclass(frozen=True)
class PreparedCatalog:
    candidates: tuple[ShadeCandidate, ...]
    labs: np.ndarray
    skipped: int = 0

    def __len__(self) -> int:
        return len(self.candidates)


def undertone_compatibility(first: Undertone, second: Undertone) -> float:
    if first == second:
        return _SAME_UNDERTONE
    if Undertone.NEUTRAL in (first, second):
        return _NEUTRAL_PAIRING
    if Undertone.OLIVE in (first, second):
        return _OLIVE_PAIRING
    return _OPPOSITE_PAIRING


def depth_compatibility(first_level: float, second_level: float) -> float:
    difference = abs(float(first_level) - float(second_level))
    return float(np.interp(difference, _DEPTH_STEPS, _DEPTH_SCORES))


def _candidate_text(candidate: ShadeCandidate) -> str:
    return f"{candidate.product} {candidate.shade}".lower()


def _match_keywords(text: str, table: tuple[tuple[str, tuple[str, ...]], ...]) -> str | None:
    for label, keywords in table:
        if any(keyword in text for keyword in keywords):
            return label
    return None


def infer_finish(candidate: ShadeCandidate) -> str:
    if candidate.finish:
        return candidate.finish.strip().lower()
    return _match_keywords(_candidate_text(candidate), _FINISH_KEYWORDS) or "natural"


def infer_coverage(candidate: ShadeCandidate) -> str:
    if candidate.coverage:
        return candidate.coverage.strip().lower()
    return _match_keywords(candidate.product.lower(), _COVERAGE_KEYWORDS) or "medium"


def preference_score(candidate: ShadeCandidate, preferences: UserPreferences | None) -> float:
    if preferences is None or preferences.is_empty:
        return 1.0

    score = 1.0
    finish = infer_finish(candidate)
    if preferences.skin_type:
        factors = SKIN_TYPE_FINISH_FACTORS.get(preferences.skin_type.strip().lower(), {})
        score *= factors.get(finish, 1.0)
    if preferences.preferred_finish and preferences.preferred_finish.strip().lower() == finish:
        score *= 1.1
    if (
        preferences.preferred_coverage
        and preferences.preferred_coverage.strip().lower() == infer_coverage(candidate)
    ):
        score *= 1.1
    return min(score, PREFERENCE_CAP)


def quality_score(candidate: ShadeCandidate) -> float:
    if candidate.rating is None:
        return DEFAULT_QUALITY
    return float(min(1.0, max(0.0, candidate.rating / 5.0)))


def _shade_undertone(
    candidate: ShadeCandidate, lab: LAB, policy: UndertonePolicy
) -> Undertone:
    return candidate.undertone or classify_undertone(lab, policy)


def _shade_depth(candidate: ShadeCandidate, lab: LAB) -> float:
    return candidate.depth_level if candidate.depth_level is not None else depth_level(lab)


def _valid_lab(lab: LAB) -> bool:
    return len(lab) == 3 and all(math.isfinite(float(v)) for v in lab)


def prepare_catalog(
    candidates: Sequence[ShadeCandidate], include_unavailable: bool = False
) -> PreparedCatalog:
    kept: list[ShadeCandidate] = []
    kept_labs: list[LAB | None] = []
    rgb_rows: list[tuple[int, int, int]] = []
    rgb_slots: list[int] = []
    skipped = 0

    for candidate in candidates:
        if not candidate.available and not include_unavailable:
            continue

        if candidate.lab is not None:
            if not _valid_lab(candidate.lab):
                logger.warning(
                    "skipping %s / %s / %s: invalid lab %r",
                    candidate.brand,
                    candidate.product,
                    candidate.shade,
                    candidate.lab,
                )
                skipped += 1
                continue
            kept.append(candidate)
            kept_labs.append(tuple(float(v) for v in candidate.lab))
            continue

        if candidate.hex is None:
            logger.warning(
                "skipping %s / %s / %s: no color value",
                candidate.brand,
                candidate.product,
                candidate.shade,
            )
            skipped += 1
            continue

        try:
            rgb = hex_to_rgb(candidate.hex)
        except InvalidColorFormat as exc:
            logger.warning(
                "skipping %s / %s / %s: %s",
                candidate.brand,
                candidate.product,
                candidate.shade,
                exc,
            )
            skipped += 1
            continue

        rgb_slots.append(len(kept))
        rgb_rows.append(rgb)
        kept.append(candidate)
        kept_labs.append(None)

    labs = np.zeros((len(kept), 3), dtype=np.float64)
    for idx, lab in enumerate(kept_labs):
        if lab is not None:
            labs[idx] = lab
    if rgb_rows:
        labs[rgb_slots] = rgb_to_lab(np.asarray(rgb_rows, dtype=np.float64))

    logger.debug("prepared %d candidates, skipped %d", len(kept), skipped)
    return PreparedCatalog(candidates=tuple(kept), labs=labs, skipped=skipped)


def rank_shades(
    target: SkinToneAnalysis,
    catalog: PreparedCatalog | Sequence[ShadeCandidate],
    preferences: UserPreferences | None = None,
    weights: ScoringWeights = STANDARD_WEIGHTS,
    scale: MatchScale = STANDARD_MATCH_SCALE,
    policy: UndertonePolicy = STANDARD_UNDERTONE_POLICY,
    limit: int | None = None,
) -> list[ShadeMatch]:
    if not isinstance(catalog, PreparedCatalog):
        catalog = prepare_catalog(catalog)
    if len(catalog) == 0:
        return []

    distances = delta_e_ciede2000_batch(target.lab, catalog.labs)
    cie76_distances = delta_e_cie76_batch(target.lab, catalog.labs)
    percentages = scale.percentages(distances)

    matches: list[ShadeMatch] = []
    for idx, candidate in enumerate(catalog.candidates):
        lab = (
            float(catalog.labs[idx][0]),
            float(catalog.labs[idx][1]),
            float(catalog.labs[idx][2]),
        )
        shade_undertone = _shade_undertone(candidate, lab, policy)
        shade_depth = _shade_depth(candidate, lab)

        undertone_score = undertone_compatibility(target.undertone, shade_undertone)
        depth_score = depth_compatibility(target.depth_level, shade_depth)
        pref_score = preference_score(candidate, preferences)
        quality = quality_score(candidate)
        percentage = float(percentages[idx])

        overall = (
            weights.color * (percentage / 100.0)
            + weights.undertone * undertone_score
            + weights.depth * depth_score
            + weights.preference * (pref_score / PREFERENCE_CAP)
            + weights.quality * quality
        )
        matches.append(
            ShadeMatch(
                candidate=candidate,
                lab=lab,
                color_distance=float(distances[idx]),
                match_percentage=percentage,
                undertone_compatibility=undertone_score,
                depth_compatibility=depth_score,
                preference_score=pref_score,
                quality_score=quality,
                overall_score=float(overall),
                cie76_distance=float(cie76_distances[idx]),
                match_quality=match_quality(float(distances[idx])),
            )
        )

    # sorted() is stable, ties keep catalog order.
    ranked = sorted(matches, key=lambda match: -match.overall_score)
    if limit is not None:
        ranked = ranked[: max(0, int(limit))]
    return ranked


def _shade_level(catalog: PreparedCatalog, idx: int) -> ShadeLevel:
    row = catalog.labs[idx]
    lab = (float(row[0]), float(row[1]), float(row[2]))
    candidate = catalog.candidates[idx]
    return ShadeLevel(candidate=candidate, lab=lab, depth_level=_shade_depth(candidate, lab))


def shade_ladder(
    catalog: PreparedCatalog | Sequence[ShadeCandidate],
    brand: str,
    product: str | None = None,
) -> list[ShadeLevel]:
    """Shades of one brand (optionally one product) ordered lightest to deepest.

    Ordering is by descending L*; shades with equal lightness keep catalog order.
    """
    if not isinstance(catalog, PreparedCatalog):
        catalog = prepare_catalog(catalog)

    steps = [
        _shade_level(catalog, idx)
        for idx, candidate in enumerate(catalog.candidates)
        if candidate.brand == brand and (product is None or candidate.product == product)
    ]
    return sorted(steps, key=lambda step: -step.lab[0])


def find_contour_shade(
    primary: ShadeMatch,
    catalog: PreparedCatalog | Sequence[ShadeCandidate],
    policy: UndertonePolicy = STANDARD_UNDERTONE_POLICY,
) -> ShadeLevel | None:
    """Pick a contour shade from the same product as ``primary``.

    Preference order: one level deeper with the same undertone, then two
    levels deeper with any undertone, then anything deeper. Within a tier the
    first shade in catalog order wins. Returns None when the product has no
    deeper available shade.
    """
    if not isinstance(catalog, PreparedCatalog):
        catalog = prepare_catalog(catalog)

    primary_depth = round(_shade_depth(primary.candidate, primary.lab))
    primary_undertone = _shade_undertone(primary.candidate, primary.lab, policy)

    siblings = [
        _shade_level(catalog, idx)
        for idx, candidate in enumerate(catalog.candidates)
        if candidate.available
        and candidate.brand == primary.brand
        and candidate.product == primary.product
        and candidate != primary.candidate
    ]

    target_depth = primary_depth + 1
    for level in siblings:
        if (
            round(level.depth_level) == target_depth
            and _shade_undertone(level.candidate, level.lab, policy) == primary_undertone
        ):
            return level
    for level in siblings:
        if round(level.depth_level) == target_depth + 1:
            return level
    for level in siblings:
        if round(level.depth_level) > primary_depth:
            return level

    logger.debug(
        "no contour shade deeper than %s / %s / %s",
        primary.brand,
        primary.product,
        primary.candidate.shade,
    )
    return None


def best_per_product(matches: Sequence[ShadeMatch]) -> list[ShadeMatch]:
    """Keep the first (best ranked) shade of each brand and product line."""
    seen: set[tuple[str, str]] = set()
    kept: list[ShadeMatch] = []
    for match in matches:
        key = (match.brand, match.product)
        if key in seen:
            continue
        seen.add(key)
        kept.append(match)
    return kept


def diversify_by_brand(
    matches: Sequence[ShadeMatch], limit: int | None = None
) -> list[ShadeMatch]:
    """Best shade per product, one product per brand first, then fill by rank.

    ``matches`` must already be ranked best first.
    """
    candidates = best_per_product(matches)
    size = len(candidates) if limit is None else max(0, int(limit))

    selected: list[ShadeMatch] = []
    used_brands: set[str] = set()
    for match in candidates:
        if len(selected) >= size:
            break
        if match.brand not in used_brands:
            used_brands.add(match.brand)
            selected.append(match)

    for match in candidates:
        if len(selected) >= size:
            break
        if not any(match is chosen for chosen in selected):
            selected.append(match)
    return selected


def top_matches_by_brand(
    matches: Sequence[ShadeMatch],
    per_brand: int = DEFAULT_MATCHES_PER_BRAND,
    max_brands: int = DEFAULT_MAX_BRANDS,
) -> list[BrandRecommendation]:
    grouped: dict[str, list[ShadeMatch]] = {}
    for match in matches:
        grouped.setdefault(match.brand, []).append(match)

    brands = [
        BrandRecommendation(brand=brand, matches=members[:per_brand])
        for brand, members in grouped.items()
    ]
    brands.sort(key=lambda recommendation: -recommendation.best_score)
    return brands[:max_brands]
