from __future__ import annotations

import itertools

import pytest

from shadematch.models import ShadeCandidate, ShadeMatch, Undertone, UserPreferences
from shadematch.scoring import (
    ENHANCED_WEIGHTS,
    ScoringWeights,
    best_per_product,
    depth_compatibility,
    diversify_by_brand,
    find_contour_shade,
    infer_coverage,
    infer_finish,
    preference_score,
    prepare_catalog,
    quality_score,
    rank_shades,
    shade_ladder,
    top_matches_by_brand,
    undertone_compatibility,
)
from shadematch.tone import analyze_skin_tone


def _shade(shade: str, hex_value: str | None, **kwargs) -> ShadeCandidate:
    fields = {"brand": "Brand", "product": "Foundation", "shade": shade, "hex": hex_value}
    fields.update(kwargs)
    return ShadeCandidate(**fields)


def test_undertone_table_is_symmetric():
    for first, second in itertools.product(Undertone, repeat=2):
        assert undertone_compatibility(first, second) == undertone_compatibility(second, first)


@pytest.mark.parametrize(
    "first,second,expected",
    [
        (Undertone.WARM, Undertone.WARM, 1.0),
        (Undertone.NEUTRAL, Undertone.COOL, 0.9),
        (Undertone.OLIVE, Undertone.NEUTRAL, 0.9),
        (Undertone.OLIVE, Undertone.WARM, 0.6),
        (Undertone.COOL, Undertone.OLIVE, 0.6),
        (Undertone.COOL, Undertone.WARM, 0.4),
    ],
)
def test_undertone_table_values(first, second, expected):
    assert undertone_compatibility(first, second) == expected


@pytest.mark.parametrize(
    "difference,expected",
    [(0, 1.0), (1, 0.9), (2, 0.7), (3, 0.5), (1.5, 0.8), (5, 0.3), (7, 0.1), (9, 0.1)],
)
def test_depth_compatibility_curve(difference, expected):
    assert depth_compatibility(4, 4 + difference) == pytest.approx(expected)
    assert depth_compatibility(4 + difference, 4) == pytest.approx(expected)


def test_finish_and_coverage_inference():
    assert infer_finish(_shade("110", None, product="Fit Me Matte + Poreless")) == "matte"
    assert infer_finish(_shade("2W1", None, product="Hydrating Foundation")) == "dewy"
    assert infer_finish(_shade("5", None, product="Luminous Silk")) == "luminous"
    assert infer_finish(_shade("1N1", None, product="Double Wear")) == "natural"
    assert infer_finish(_shade("1N1", None, product="Double Wear", finish="Satin")) == "satin"

    assert infer_coverage(_shade("1", None, product="Skin Tint")) == "light"
    assert infer_coverage(_shade("1", None, product="Full Coverage Foundation")) == "full"
    assert infer_coverage(_shade("1", None, product="Double Wear")) == "medium"
    assert infer_coverage(_shade("1", None, product="Double Wear", coverage="Full")) == "full"


def test_preference_score_factors():
    matte = _shade("110", None, product="Matte Foundation")
    dewy = _shade("110", None, product="Dewy Skin Tint")

    assert preference_score(matte, None) == 1.0
    assert preference_score(matte, UserPreferences()) == 1.0
    assert preference_score(matte, UserPreferences(skin_type="oily")) == pytest.approx(1.2)
    assert preference_score(dewy, UserPreferences(skin_type="oily")) == pytest.approx(0.6)
    assert preference_score(dewy, UserPreferences(skin_type="normal")) == pytest.approx(1.0)

    stacked = preference_score(
        dewy,
        UserPreferences(skin_type="dry", preferred_finish="dewy", preferred_coverage="light"),
    )
    assert stacked == pytest.approx(1.2 * 1.1 * 1.1)
    assert stacked <= 1.5


def test_quality_score():
    assert quality_score(_shade("1", None)) == 0.5
    assert quality_score(_shade("1", None, rating=4.5)) == pytest.approx(0.9)
    assert quality_score(_shade("1", None, rating=7.0)) == 1.0


def test_weights_must_sum_to_one():
    with pytest.raises(ValueError):
        ScoringWeights(name="broken", color=0.5, undertone=0.5, depth=0.5, preference=0.0)


def test_prepare_catalog_skips_unusable_candidates():
    catalog = [
        _shade("good", "#D4A574"),
        _shade("bad hex", "#12345Z"),
        _shade("no color", None),
        _shade("lab only", None, lab=(70.0, 10.0, 30.0)),
        _shade("sold out", "#C68642", available=False),
    ]

    prepared = prepare_catalog(catalog)

    assert [candidate.shade for candidate in prepared.candidates] == ["good", "lab only"]
    assert prepared.skipped == 2
    assert prepared.labs.shape == (2, 3)
    assert tuple(prepared.labs[1]) == (70.0, 10.0, 30.0)

    with_unavailable = prepare_catalog(catalog, include_unavailable=True)
    assert len(with_unavailable) == 3


def test_rank_shades_puts_exact_match_first():
    target = analyze_skin_tone("#D4A574")
    catalog = [
        _shade("deep", "#8D5524"),
        _shade("exact", "#D4A574"),
        _shade("fair", "#F0D0A6"),
    ]

    ranked = rank_shades(target, catalog)

    assert ranked[0].candidate.shade == "exact"
    assert ranked[0].color_distance == pytest.approx(0.0, abs=1e-9)
    assert ranked[0].match_percentage == pytest.approx(100.0)
    scores = [match.overall_score for match in ranked]
    assert scores == sorted(scores, reverse=True)


def test_closer_color_scores_higher_when_other_terms_are_equal():
    target = analyze_skin_tone("#D4A574")
    catalog = [
        _shade("far", "#C68642", undertone=Undertone.WARM, depth_level=3),
        _shade("near", "#D4A574", undertone=Undertone.WARM, depth_level=3),
    ]

    ranked = rank_shades(target, catalog)

    assert [match.candidate.shade for match in ranked] == ["near", "far"]
    assert ranked[0].undertone_compatibility == ranked[1].undertone_compatibility
    assert ranked[0].depth_compatibility == ranked[1].depth_compatibility


def test_ties_keep_catalog_order_and_ranking_is_deterministic():
    target = analyze_skin_tone("#D4A574")
    catalog = [_shade(f"twin {idx}", "#C68642") for idx in range(5)]

    first = rank_shades(target, catalog)
    second = rank_shades(target, catalog)

    assert [match.candidate.shade for match in first] == [f"twin {idx}" for idx in range(5)]
    assert [m.to_dict() for m in first] == [m.to_dict() for m in second]


def test_rank_shades_limit_and_enhanced_weights():
    target = analyze_skin_tone("#D4A574")
    catalog = [
        _shade("rated", "#C68642", rating=5.0),
        _shade("unrated", "#C68642"),
    ]

    ranked = rank_shades(target, catalog, weights=ENHANCED_WEIGHTS, limit=1)

    assert len(ranked) == 1
    assert ranked[0].candidate.shade == "rated"
    assert ranked[0].quality_score == 1.0


def test_empty_catalog_ranks_nothing():
    assert rank_shades(analyze_skin_tone("#D4A574"), []) == []


def test_ranked_matches_carry_cie76_distance_and_quality_band():
    target = analyze_skin_tone("#D4A574")

    ranked = rank_shades(target, [_shade("exact", "#D4A574"), _shade("deep", "#8D5524")])

    assert ranked[0].cie76_distance == pytest.approx(0.0, abs=1e-9)
    assert ranked[0].match_quality == "excellent"
    assert ranked[1].cie76_distance > ranked[1].color_distance
    assert ranked[1].match_quality == "poor"
    assert ranked[1].to_dict()["match_quality"] == "poor"


def _ranked(brand: str, product: str, shade: str, score: float) -> ShadeMatch:
    return ShadeMatch(
        candidate=ShadeCandidate(brand=brand, product=product, shade=shade, hex="#D4A574"),
        lab=(70.0, 11.0, 32.0),
        color_distance=1.0,
        match_percentage=98.0,
        undertone_compatibility=1.0,
        depth_compatibility=1.0,
        preference_score=1.0,
        quality_score=0.5,
        overall_score=score,
    )


def _ranked_list() -> list[ShadeMatch]:
    return [
        _ranked("A", "Line", "1", 0.90),
        _ranked("A", "Line", "2", 0.88),
        _ranked("A", "Other", "1", 0.85),
        _ranked("B", "Line", "1", 0.80),
        _ranked("C", "Line", "1", 0.70),
    ]


def test_best_per_product_keeps_top_shade_of_each_line():
    kept = best_per_product(_ranked_list())

    assert [(m.brand, m.product, m.candidate.shade) for m in kept] == [
        ("A", "Line", "1"),
        ("A", "Other", "1"),
        ("B", "Line", "1"),
        ("C", "Line", "1"),
    ]


def test_diversify_leads_with_one_product_per_brand():
    ranked = _ranked_list()

    assert [(m.brand, m.product) for m in diversify_by_brand(ranked, limit=3)] == [
        ("A", "Line"),
        ("B", "Line"),
        ("C", "Line"),
    ]
    assert [(m.brand, m.product) for m in diversify_by_brand(ranked)] == [
        ("A", "Line"),
        ("B", "Line"),
        ("C", "Line"),
        ("A", "Other"),
    ]
    assert [m.brand for m in diversify_by_brand(ranked, limit=2)] == ["A", "B"]
    assert diversify_by_brand(ranked, limit=0) == []


def test_top_matches_by_brand_caps_each_brand():
    ranked = _ranked_list() + [
        _ranked("A", "Third", "1", 0.60),
        _ranked("C", "Other", "1", 0.50),
    ]

    brands = top_matches_by_brand(ranked, per_brand=3, max_brands=2)

    assert [recommendation.brand for recommendation in brands] == ["A", "B"]
    assert [m.candidate.shade for m in brands[0].matches] == ["1", "2", "1"]
    assert brands[0].best_score == pytest.approx(0.90)
    assert brands[1].to_dict()["best_score"] == pytest.approx(0.80)


def test_shade_ladder_orders_lightest_first():
    catalog = [
        _shade("deep", "#8D5524"),
        _shade("fair", "#F0D0A6"),
        _shade("other line", "#D4A574", product="Skin Tint"),
        _shade("medium", "#C68642"),
        _shade("other brand", "#D4A574", brand="Else"),
    ]

    ladder = shade_ladder(catalog, "Brand", "Foundation")
    whole_brand = shade_ladder(catalog, "Brand")

    assert [step.candidate.shade for step in ladder] == ["fair", "medium", "deep"]
    assert [step.depth_level for step in ladder] == [2, 4, 6]
    assert [step.candidate.shade for step in whole_brand] == [
        "fair",
        "other line",
        "medium",
        "deep",
    ]
    assert ladder[0].to_dict()["lightness"] == pytest.approx(85.1951, abs=1e-3)
    assert shade_ladder(catalog, "Missing") == []


def _primary_match(catalog: list[ShadeCandidate]) -> ShadeMatch:
    ranked = rank_shades(analyze_skin_tone("#D4A574"), catalog)
    return next(match for match in ranked if match.candidate.shade == "3W1")


def test_contour_prefers_one_level_deeper_with_same_undertone():
    catalog = [
        _shade("3W1", "#D4A574"),
        _shade("4N1", "#C68642", undertone=Undertone.NEUTRAL),
        _shade("4W1", "#C68642"),
        _shade("6W1", "#8D5524"),
    ]

    contour = find_contour_shade(_primary_match(catalog), catalog)

    assert contour is not None
    assert contour.candidate.shade == "4W1"
    assert contour.depth_level == 4


def test_contour_falls_back_to_two_levels_then_any_deeper():
    two_deeper = [
        _shade("3W1", "#D4A574"),
        _shade("4N1", "#C68642", undertone=Undertone.NEUTRAL),
        _shade("5N1", "#C68642", undertone=Undertone.NEUTRAL, depth_level=5),
    ]
    any_deeper = [
        _shade("3W1", "#D4A574"),
        _shade("4W1 tint", "#C68642", product="Skin Tint"),
        _shade("6W1", "#8D5524"),
    ]

    assert find_contour_shade(_primary_match(two_deeper), two_deeper).candidate.shade == "5N1"
    assert find_contour_shade(_primary_match(any_deeper), any_deeper).candidate.shade == "6W1"


def test_contour_is_none_without_deeper_shades_in_product():
    catalog = [
        _shade("fair", "#F0D0A6"),
        _shade("3W1", "#D4A574"),
        _shade("deep tint", "#8D5524", product="Skin Tint"),
    ]

    assert find_contour_shade(_primary_match(catalog), catalog) is None
