from __future__ import annotations

import pytest

from shadematch.colorspace import InvalidColorFormat
from shadematch.models import DepthBucket, Undertone
from shadematch.tone import (
    IMAGE_UNDERTONE_POLICY,
    STANDARD_UNDERTONE_POLICY,
    analyze_dual_point,
    analyze_skin_tone,
    classify_undertone,
    depth_bucket,
    depth_level,
    ita_angle,
    ita_category,
)


@pytest.mark.parametrize(
    "a_star,b_star,expected",
    [
        (-3.0, 1.0, Undertone.OLIVE),
        (-3.0, 10.0, Undertone.COOL),
        (5.0, 10.0, Undertone.WARM),
        (1.0, 1.0, Undertone.NEUTRAL),
        (5.0, 4.0, Undertone.NEUTRAL),
    ],
)
def test_standard_undertone_policy(a_star, b_star, expected):
    assert classify_undertone((60.0, a_star, b_star)) == expected


def test_image_policy_uses_wider_bands():
    lab = (60.0, 4.0, 8.0)

    assert classify_undertone(lab, STANDARD_UNDERTONE_POLICY) == Undertone.WARM
    assert classify_undertone(lab, IMAGE_UNDERTONE_POLICY) == Undertone.NEUTRAL
    assert classify_undertone((60.0, -3.0, 7.0), IMAGE_UNDERTONE_POLICY) == Undertone.OLIVE


@pytest.mark.parametrize(
    "l_star,level",
    [(100.0, 1), (95.0, 1), (70.9868, 3), (41.6688, 6), (0.0, 10)],
)
def test_depth_level_is_clamped_to_one_through_ten(l_star, level):
    assert depth_level((l_star, 0.0, 0.0)) == level


@pytest.mark.parametrize(
    "level,bucket",
    [
        (1, DepthBucket.FAIR),
        (2, DepthBucket.FAIR),
        (3, DepthBucket.LIGHT),
        (5, DepthBucket.MEDIUM),
        (7, DepthBucket.TAN),
        (8, DepthBucket.DEEP),
        (9, DepthBucket.VERY_DEEP),
    ],
)
def test_depth_buckets(level, bucket):
    assert depth_bucket(level) == bucket


def test_ita_angle_and_category():
    assert ita_angle((50.0, 0.0, 10.0)) == pytest.approx(0.0)
    assert ita_category(ita_angle((50.0, 0.0, 10.0))) == "brown"
    assert ita_category(ita_angle((80.0, 0.0, 10.0))) == "very_light"
    assert ita_category(-45.0) == "dark"


def test_analyze_skin_tone():
    analysis = analyze_skin_tone("d4a574", confidence=0.7)

    assert analysis.hex == "#D4A574"
    assert analysis.undertone == Undertone.WARM
    assert analysis.depth == pytest.approx(70.9868, abs=1e-3)
    assert analysis.depth_level == 3
    assert analysis.depth_bucket == DepthBucket.LIGHT
    assert analysis.confidence == 0.7


def test_analysis_reports_ita_angle_and_category():
    light = analyze_skin_tone("#D4A574")
    deep = analyze_skin_tone("#8D5524")

    assert light.ita_angle == pytest.approx(33.27, abs=0.05)
    assert light.ita_category == "intermediate"
    assert deep.ita_angle < 0
    assert deep.ita_category == "brown"
    payload = light.to_dict()
    assert payload["ita_category"] == "intermediate"
    assert payload["ita_angle"] == pytest.approx(light.ita_angle)


def test_analyze_skin_tone_rejects_bad_input():
    with pytest.raises(ValueError):
        analyze_skin_tone("#D4A574", confidence=1.5)
    with pytest.raises(InvalidColorFormat):
        analyze_skin_tone("#XYZXYZ")


def test_dual_point_same_undertone_different_depth():
    analysis = analyze_dual_point("#D4A574", "#8D5524")

    assert analysis.undertone_consistency is True
    assert analysis.primary.depth_level == 3
    assert analysis.secondary.depth_level == 6
    assert analysis.tone_difference > 10.0
    assert analysis.primary.confidence == 0.9
    assert analysis.secondary.confidence == 0.85
    assert analysis.to_dict()["primary"]["undertone"] == "Warm"
