from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from .models import Coverage, PairedShadeMatch, RecommendationGroup, ShadeMatch

logger = logging.getLogger(__name__)

PRODUCT_PAIR_BONUS = 0.8
BRAND_PAIR_BONUS = 0.9
MIXED_PAIR_BONUS = 1.0

DEFAULT_MAX_GROUPS = 4
DEFAULT_PAIRS_PER_GROUP = 3

_LIGHT_COVERAGE_KEYWORDS = ("sheer", "tint")
# "bb" and "cc" only at a word start, so "BB+" matches and "Abba" does not.
_LIGHT_COVERAGE_PATTERN = re.compile(r"\b(bb|cc)(?![a-z])")
_FULL_COVERAGE_KEYWORDS = ("full", "maximum", "complete")


def pair_bonus(brand_consistency: bool, product_consistency: bool) -> float:
    if product_consistency:
        return PRODUCT_PAIR_BONUS
    if brand_consistency:
        return BRAND_PAIR_BONUS
    return MIXED_PAIR_BONUS


def pair_matches(primary: ShadeMatch, secondary: ShadeMatch) -> PairedShadeMatch:
    brand_consistency = primary.brand == secondary.brand
    product_consistency = brand_consistency and primary.product == secondary.product
    mean_distance = (primary.color_distance + secondary.color_distance) / 2.0
    return PairedShadeMatch(
        primary=primary,
        secondary=secondary,
        overall_score=float(mean_distance * pair_bonus(brand_consistency, product_consistency)),
        brand_consistency=brand_consistency,
        product_consistency=product_consistency,
    )


def pair_shade_matches(
    primary_matches: Sequence[ShadeMatch],
    secondary_matches: Sequence[ShadeMatch],
    limit: int | None = None,
) -> list[PairedShadeMatch]:
    """Cross the two ranked lists and order pairs by consistency, then score.

    Pair scores are distances (lower is better). Same-product pairs sort ahead
    of same-brand pairs, which sort ahead of mixed pairs.
    """
    pairs = [
        pair_matches(primary, secondary)
        for primary in primary_matches
        for secondary in secondary_matches
    ]
    pairs.sort(
        key=lambda pair: (
            not pair.product_consistency,
            not pair.brand_consistency,
            pair.overall_score,
        )
    )
    logger.debug(
        "paired %d x %d matches into %d pairs",
        len(primary_matches),
        len(secondary_matches),
        len(pairs),
    )
    if limit is not None:
        pairs = pairs[: max(0, int(limit))]
    return pairs


def coverage_for_product(product_line: str) -> Coverage:
    text = product_line.lower()
    if _LIGHT_COVERAGE_PATTERN.search(text) or any(
        keyword in text for keyword in _LIGHT_COVERAGE_KEYWORDS
    ):
        return Coverage.LIGHT
    if any(keyword in text for keyword in _FULL_COVERAGE_KEYWORDS):
        return Coverage.FULL
    return Coverage.MEDIUM


def group_recommendations(
    pairs: Sequence[PairedShadeMatch],
    max_groups: int = DEFAULT_MAX_GROUPS,
    pairs_per_group: int = DEFAULT_PAIRS_PER_GROUP,
) -> list[RecommendationGroup]:
    grouped: dict[tuple[str, str], list[PairedShadeMatch]] = {}
    for pair in pairs:
        key = (pair.primary.brand, pair.primary.product)
        grouped.setdefault(key, []).append(pair)

    groups: list[RecommendationGroup] = []
    for (brand, product_line), members in grouped.items():
        # Members keep pairing order, so consistent pairs stay on top.
        score = sum(pair.overall_score for pair in members) / len(members)
        groups.append(
            RecommendationGroup(
                brand=brand,
                product_line=product_line,
                paired_matches=members[:pairs_per_group],
                group_score=float(score),
                coverage=coverage_for_product(product_line),
            )
        )

    groups.sort(key=lambda group: group.group_score)

    selected: list[RecommendationGroup] = []
    seen_brands: set[str] = set()
    for group in groups:
        if len(selected) >= max_groups:
            break
        if group.brand in seen_brands:
            continue
        seen_brands.add(group.brand)
        selected.append(group)
    return selected
