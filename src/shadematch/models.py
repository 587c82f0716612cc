from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

RGB = tuple[int, int, int]
LAB = tuple[float, float, float]


class Undertone(str, Enum):
    COOL = "Cool"
    NEUTRAL = "Neutral"
    WARM = "Warm"
    OLIVE = "Olive"

    @classmethod
    def parse(cls, value: str) -> Undertone:
        normalized = value.strip().lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        raise ValueError(f"unknown undertone '{value}'")


class DepthBucket(str, Enum):
    FAIR = "fair"
    LIGHT = "light"
    MEDIUM = "medium"
    TAN = "tan"
    DEEP = "deep"
    VERY_DEEP = "very-deep"


class Coverage(str, Enum):
    LIGHT = "light"
    MEDIUM = "medium"
    FULL = "full"


@dataclass(frozen=True)
class ShadeCandidate:
    brand: str
    product: str
    shade: str
    hex: str | None = None
    lab: LAB | None = None
    undertone: Undertone | None = None
    depth_level: float | None = None
    price: float | None = None
    available: bool = True
    rating: float | None = None
    review_count: int | None = None
    finish: str | None = None
    coverage: str | None = None
    candidate_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.candidate_id,
            "brand": self.brand,
            "product": self.product,
            "shade": self.shade,
            "hex": self.hex,
            "lab": None if self.lab is None else [float(v) for v in self.lab],
            "undertone": None if self.undertone is None else self.undertone.value,
            "depth_level": self.depth_level,
            "price": self.price,
            "available": self.available,
            "rating": self.rating,
            "review_count": self.review_count,
            "finish": self.finish,
            "coverage": self.coverage,
        }


@dataclass(frozen=True)
class UserPreferences:
    skin_type: str | None = None
    preferred_coverage: str | None = None
    preferred_finish: str | None = None

    @property
    def is_empty(self) -> bool:
        return (
            self.skin_type is None
            and self.preferred_coverage is None
            and self.preferred_finish is None
        )


@dataclass(frozen=True)
class SkinToneAnalysis:
    hex: str
    lab: LAB
    undertone: Undertone
    depth: float
    depth_level: int
    depth_bucket: DepthBucket
    confidence: float = 1.0
    ita_angle: float | None = None
    ita_category: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "hex": self.hex,
            "lab": [float(v) for v in self.lab],
            "undertone": self.undertone.value,
            "depth": float(self.depth),
            "depth_level": int(self.depth_level),
            "depth_bucket": self.depth_bucket.value,
            "ita_angle": None if self.ita_angle is None else float(self.ita_angle),
            "ita_category": self.ita_category,
            "confidence": float(self.confidence),
        }


@dataclass(frozen=True)
class DualPointAnalysis:
    primary: SkinToneAnalysis
    secondary: SkinToneAnalysis
    tone_difference: float
    undertone_consistency: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "primary": self.primary.to_dict(),
            "secondary": self.secondary.to_dict(),
            "tone_difference": float(self.tone_difference),
            "undertone_consistency": self.undertone_consistency,
        }


@dataclass(frozen=True)
class ShadeMatch:
    candidate: ShadeCandidate
    lab: LAB
    color_distance: float
    match_percentage: float
    undertone_compatibility: float
    depth_compatibility: float
    preference_score: float
    quality_score: float
    overall_score: float
    cie76_distance: float | None = None
    match_quality: str | None = None

    @property
    def brand(self) -> str:
        return self.candidate.brand

    @property
    def product(self) -> str:
        return self.candidate.product

    def to_dict(self) -> dict[str, Any]:
        return {
            "brand": self.candidate.brand,
            "product": self.candidate.product,
            "shade": self.candidate.shade,
            "hex": self.candidate.hex,
            "lab": [float(v) for v in self.lab],
            "price": self.candidate.price,
            "color_distance": float(self.color_distance),
            "cie76_distance": (
                None if self.cie76_distance is None else float(self.cie76_distance)
            ),
            "match_quality": self.match_quality,
            "match_percentage": float(self.match_percentage),
            "undertone_compatibility": float(self.undertone_compatibility),
            "depth_compatibility": float(self.depth_compatibility),
            "preference_score": float(self.preference_score),
            "quality_score": float(self.quality_score),
            "overall_score": float(self.overall_score),
        }


@dataclass(frozen=True)
class PairedShadeMatch:
    primary: ShadeMatch
    secondary: ShadeMatch
    overall_score: float
    brand_consistency: bool
    product_consistency: bool

    def __post_init__(self) -> None:
        if self.product_consistency and not self.brand_consistency:
            raise ValueError("product consistency requires brand consistency")

    def to_dict(self) -> dict[str, Any]:
        return {
            "primary": self.primary.to_dict(),
            "secondary": self.secondary.to_dict(),
            "overall_score": float(self.overall_score),
            "brand_consistency": self.brand_consistency,
            "product_consistency": self.product_consistency,
        }


@dataclass(frozen=True)
class RecommendationGroup:
    brand: str
    product_line: str
    paired_matches: list[PairedShadeMatch]
    group_score: float
    coverage: Coverage

    def to_dict(self) -> dict[str, Any]:
        return {
            "brand": self.brand,
            "product_line": self.product_line,
            "paired_matches": [pair.to_dict() for pair in self.paired_matches],
            "group_score": float(self.group_score),
            "coverage": self.coverage.value,
        }


@dataclass(frozen=True)
class MatchResult:
    target: SkinToneAnalysis
    matches: list[ShadeMatch]
    skipped: int = 0
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target.to_dict(),
            "matches": [match.to_dict() for match in self.matches],
            "skipped": int(self.skipped),
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class DualMatchResult:
    analysis: DualPointAnalysis
    pairs: list[PairedShadeMatch]
    groups: list[RecommendationGroup]
    skipped: int = 0
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "analysis": self.analysis.to_dict(),
            "pairs": [pair.to_dict() for pair in self.pairs],
            "groups": [group.to_dict() for group in self.groups],
            "skipped": int(self.skipped),
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class SampledColor:
    rgb: RGB
    hex: str
    confidence: float
    sample_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "rgb": list(self.rgb),
            "hex": self.hex,
            "confidence": float(self.confidence),
            "sample_count": int(self.sample_count),
        }


@dataclass(frozen=True)
class ShadeLevel:
    candidate: ShadeCandidate
    lab: LAB
    depth_level: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "brand": self.candidate.brand,
            "product": self.candidate.product,
            "shade": self.candidate.shade,
            "hex": self.candidate.hex,
            "lightness": float(self.lab[0]),
            "depth_level": float(self.depth_level),
        }


@dataclass(frozen=True)
class BrandRecommendation:
    brand: str
    matches: list[ShadeMatch]

    @property
    def best_score(self) -> float:
        return self.matches[0].overall_score if self.matches else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "brand": self.brand,
            "best_score": float(self.best_score),
            "matches": [match.to_dict() for match in self.matches],
        }


@dataclass(frozen=True)
class BrandMatchResult:
    target: SkinToneAnalysis
    brands: list[BrandRecommendation]
    skipped: int = 0
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target.to_dict(),
            "brands": [brand.to_dict() for brand in self.brands],
            "skipped": int(self.skipped),
            "warnings": list(self.warnings),
        }
