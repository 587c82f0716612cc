from __future__ import annotations

import math
from dataclasses import dataclass

from .colorspace import ColorInput, color_to_lab, rgb_to_hex, to_rgb
from .difference import delta_e_ciede2000
from .models import LAB, DepthBucket, DualPointAnalysis, SkinToneAnalysis, Undertone


@dataclass(frozen=True)
class UndertonePolicy:
    name: str
    cool_a: float
    warm_a: float
    warm_b: float
    olive_b: float

    def classify(self, a_star: float, b_star: float) -> Undertone:
        if a_star < -self.cool_a and abs(b_star) < self.olive_b:
            return Undertone.OLIVE
        if a_star < -self.cool_a:
            return Undertone.COOL
        if a_star > self.warm_a and b_star > self.warm_b:
            return Undertone.WARM
        return Undertone.NEUTRAL


STANDARD_UNDERTONE_POLICY = UndertonePolicy(
    name="standard", cool_a=2.0, warm_a=2.0, warm_b=5.0, olive_b=3.0
)
# Wider bands for colors sampled from camera images.
IMAGE_UNDERTONE_POLICY = UndertonePolicy(
    name="image", cool_a=2.0, warm_a=5.0, warm_b=10.0, olive_b=8.0
)

UNDERTONE_POLICIES = {
    STANDARD_UNDERTONE_POLICY.name: STANDARD_UNDERTONE_POLICY,
    IMAGE_UNDERTONE_POLICY.name: IMAGE_UNDERTONE_POLICY,
}

# Inclusive upper bound on the 1-10 depth level for each bucket.
_DEPTH_BUCKETS = (
    (2, DepthBucket.FAIR),
    (3, DepthBucket.LIGHT),
    (5, DepthBucket.MEDIUM),
    (7, DepthBucket.TAN),
    (8, DepthBucket.DEEP),
)

# Lower bounds (exclusive) of the ITA skin categories.
_ITA_CATEGORIES = (
    (55.0, "very_light"),
    (41.0, "light"),
    (28.0, "intermediate"),
    (10.0, "tan"),
    (-30.0, "brown"),
)


def classify_undertone(
    lab: LAB, policy: UndertonePolicy = STANDARD_UNDERTONE_POLICY
) -> Undertone:
    _, a_star, b_star = lab
    return policy.classify(a_star, b_star)


def depth_level(lab: LAB) -> int:
    """Massey-Martin style 1-10 level where 1 is the lightest skin."""
    l_star = lab[0]
    level = math.ceil((100.0 - l_star) / 10.0)
    return int(min(10, max(1, level)))


def depth_bucket(level: float) -> DepthBucket:
    for upper, bucket in _DEPTH_BUCKETS:
        if level <= upper:
            return bucket
    return DepthBucket.VERY_DEEP


def ita_angle(lab: LAB) -> float:
    l_star, _, b_star = lab
    return math.degrees(math.atan2(l_star - 50.0, b_star))


def ita_category(angle: float) -> str:
    for lower, label in _ITA_CATEGORIES:
        if angle > lower:
            return label
    return "dark"


def analyze_skin_tone(
    color: ColorInput,
    confidence: float = 1.0,
    policy: UndertonePolicy = STANDARD_UNDERTONE_POLICY,
) -> SkinToneAnalysis:
    if not 0.0 <= confidence <= 1.0:
        raise ValueError(f"confidence must be within 0-1, got {confidence}")

    rgb = to_rgb(color)
    lab = color_to_lab(rgb)
    level = depth_level(lab)
    angle = ita_angle(lab)
    return SkinToneAnalysis(
        hex=rgb_to_hex(rgb),
        lab=lab,
        undertone=classify_undertone(lab, policy),
        depth=lab[0],
        depth_level=level,
        depth_bucket=depth_bucket(level),
        confidence=float(confidence),
        ita_angle=angle,
        ita_category=ita_category(angle),
    )


def analyze_dual_point(
    primary: ColorInput,
    secondary: ColorInput,
    primary_confidence: float = 0.9,
    secondary_confidence: float = 0.85,
    policy: UndertonePolicy = STANDARD_UNDERTONE_POLICY,
) -> DualPointAnalysis:
    primary_tone = analyze_skin_tone(primary, primary_confidence, policy)
    secondary_tone = analyze_skin_tone(secondary, secondary_confidence, policy)
    return DualPointAnalysis(
        primary=primary_tone,
        secondary=secondary_tone,
        tone_difference=delta_e_ciede2000(primary_tone.lab, secondary_tone.lab),
        undertone_consistency=primary_tone.undertone == secondary_tone.undertone,
    )
