from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np

from .colorspace import ColorInput
from .config import DEFAULT_CONFIG, EngineConfig
from .difference import delta_e_ciede2000
from .models import (
    BrandMatchResult,
    DualMatchResult,
    DualPointAnalysis,
    MatchResult,
    SampledColor,
    ShadeCandidate,
    ShadeLevel,
    ShadeMatch,
    SkinToneAnalysis,
    UserPreferences,
)
from .pairing import group_recommendations, pair_shade_matches
from .sampling import (
    Region,
    sample_region,
    skin_pixel_mask,
    standard_face_regions,
    tone_extremes,
)
from .scoring import (
    BRAND_POOL_SIZE,
    DEFAULT_MATCHES_PER_BRAND,
    DEFAULT_MAX_BRANDS,
    PreparedCatalog,
    diversify_by_brand,
    find_contour_shade,
    prepare_catalog,
    rank_shades,
    shade_ladder,
    top_matches_by_brand,
)
from .tone import analyze_dual_point, analyze_skin_tone

logger = logging.getLogger(__name__)

CatalogInput = PreparedCatalog | Sequence[ShadeCandidate]


class ShadeMatchingEngine:
    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or DEFAULT_CONFIG

    def analyze(self, color: ColorInput, confidence: float = 1.0) -> SkinToneAnalysis:
        return analyze_skin_tone(color, confidence, self.config.undertone_policy)

    def analyze_dual(
        self,
        primary: ColorInput,
        secondary: ColorInput,
        primary_confidence: float = 0.9,
        secondary_confidence: float = 0.85,
    ) -> DualPointAnalysis:
        return analyze_dual_point(
            primary,
            secondary,
            primary_confidence,
            secondary_confidence,
            self.config.undertone_policy,
        )

    def prepare(self, catalog: CatalogInput) -> PreparedCatalog:
        if isinstance(catalog, PreparedCatalog):
            return catalog
        return prepare_catalog(catalog, include_unavailable=self.config.include_unavailable)

    def match(
        self,
        target: ColorInput | SkinToneAnalysis,
        catalog: CatalogInput,
        preferences: UserPreferences | None = None,
        limit: int | None = None,
        diversify: bool = False,
    ) -> MatchResult:
        analysis = target if isinstance(target, SkinToneAnalysis) else self.analyze(target)
        prepared = self.prepare(catalog)
        limit = self.config.candidate_limit if limit is None else limit
        if diversify:
            matches = diversify_by_brand(self._rank(analysis, prepared, preferences), limit)
        else:
            matches = self._rank(analysis, prepared, preferences, limit)
        return MatchResult(
            target=analysis,
            matches=matches,
            skipped=prepared.skipped,
            warnings=self._catalog_warnings(prepared),
        )

    def match_dual(
        self,
        primary: ColorInput | SkinToneAnalysis,
        secondary: ColorInput | SkinToneAnalysis,
        catalog: CatalogInput,
        preferences: UserPreferences | None = None,
        limit: int | None = None,
    ) -> DualMatchResult:
        if isinstance(primary, SkinToneAnalysis) or isinstance(secondary, SkinToneAnalysis):
            primary_tone = self._resolve(primary, 0.9)
            secondary_tone = self._resolve(secondary, 0.85)
            analysis = DualPointAnalysis(
                primary=primary_tone,
                secondary=secondary_tone,
                tone_difference=delta_e_ciede2000(primary_tone.lab, secondary_tone.lab),
                undertone_consistency=primary_tone.undertone == secondary_tone.undertone,
            )
        else:
            analysis = self.analyze_dual(primary, secondary)

        limit = self.config.candidate_limit if limit is None else limit
        prepared = self.prepare(catalog)
        ranked = [
            self._rank(tone, prepared, preferences, limit * 2)
            for tone in (analysis.primary, analysis.secondary)
        ]
        pairs = pair_shade_matches(ranked[0], ranked[1], limit=limit)
        groups = group_recommendations(
            pairs,
            max_groups=self.config.max_groups,
            pairs_per_group=self.config.pairs_per_group,
        )
        logger.debug("dual match produced %d pairs in %d groups", len(pairs), len(groups))
        return DualMatchResult(
            analysis=analysis,
            pairs=pairs,
            groups=groups,
            skipped=prepared.skipped,
            warnings=self._catalog_warnings(prepared),
        )

    def recommend_by_brand(
        self,
        target: ColorInput | SkinToneAnalysis,
        catalog: CatalogInput,
        preferences: UserPreferences | None = None,
        per_brand: int = DEFAULT_MATCHES_PER_BRAND,
        max_brands: int = DEFAULT_MAX_BRANDS,
    ) -> BrandMatchResult:
        analysis = self._resolve(target, 1.0)
        prepared = self.prepare(catalog)
        pool = self._rank(analysis, prepared, preferences, BRAND_POOL_SIZE)
        return BrandMatchResult(
            target=analysis,
            brands=top_matches_by_brand(pool, per_brand, max_brands),
            skipped=prepared.skipped,
            warnings=self._catalog_warnings(prepared),
        )

    def shade_ladder(
        self, catalog: CatalogInput, brand: str, product: str | None = None
    ) -> list[ShadeLevel]:
        return shade_ladder(self.prepare(catalog), brand, product)

    def contour_shade(self, primary: ShadeMatch, catalog: CatalogInput) -> ShadeLevel | None:
        return find_contour_shade(primary, self.prepare(catalog), self.config.undertone_policy)

    def sample_image(
        self,
        image_rgb: np.ndarray,
        regions: tuple[Region, Region] | None = None,
    ) -> tuple[SampledColor, SampledColor]:
        if regions is None:
            height, width = image_rgb.shape[:2]
            regions = standard_face_regions(width, height)

        primary_region, secondary_region = regions
        return (
            sample_region(image_rgb, primary_region, self.config.min_samples),
            sample_region(image_rgb, secondary_region, self.config.min_samples),
        )

    def analyze_samples(
        self, primary: SampledColor, secondary: SampledColor
    ) -> DualPointAnalysis:
        return analyze_dual_point(
            primary.rgb,
            secondary.rgb,
            primary.confidence,
            secondary.confidence,
            self.config.image_undertone_policy,
        )

    def sample_extremes(self, image_rgb: np.ndarray) -> tuple[SampledColor, SampledColor]:
        """Lightest and darkest skin tones over every skin-like pixel of the image."""
        rows = np.asarray(image_rgb).reshape(-1, 3)
        return tone_extremes(rows[skin_pixel_mask(rows)], self.config.min_samples)

    def analyze_image(
        self,
        image_rgb: np.ndarray,
        regions: tuple[Region, Region] | None = None,
    ) -> DualPointAnalysis:
        return self.analyze_samples(*self.sample_image(image_rgb, regions))

    def _rank(
        self,
        target: SkinToneAnalysis,
        prepared: PreparedCatalog,
        preferences: UserPreferences | None,
        limit: int | None = None,
    ) -> list[ShadeMatch]:
        return rank_shades(
            target,
            prepared,
            preferences=preferences,
            weights=self.config.weights,
            scale=self.config.match_scale,
            policy=self.config.undertone_policy,
            limit=limit,
        )

    def _resolve(
        self, value: ColorInput | SkinToneAnalysis, confidence: float
    ) -> SkinToneAnalysis:
        if isinstance(value, SkinToneAnalysis):
            return value
        return self.analyze(value, confidence)

    @staticmethod
    def _catalog_warnings(prepared: PreparedCatalog) -> list[str]:
        warnings: list[str] = []
        if len(prepared) == 0:
            warnings.append("empty_catalog")
        if prepared.skipped:
            warnings.append("skipped_invalid_candidates")
        return warnings

