from __future__ import annotations

from typing import Literal

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from shadematch.config import EngineConfig
from shadematch.engine import ShadeMatchingEngine
from shadematch.models import ShadeCandidate, Undertone, UserPreferences
from shadematch.scoring import DEFAULT_MAX_BRANDS


class ShadeItem(BaseModel):
    brand: str = Field(..., min_length=1)
    product: str = Field(..., min_length=1)
    shade: str = Field(..., min_length=1)
    hex: str | None = Field(default=None, description="Shade color as #RRGGBB")
    lab: tuple[float, float, float] | None = Field(
        default=None, description="Precomputed CIE L*a*b* value"
    )
    undertone: Literal["Cool", "Neutral", "Warm", "Olive"] | None = None
    depth_level: float | None = Field(default=None, ge=1, le=10)
    price: float | None = None
    available: bool = True
    rating: float | None = Field(default=None, ge=0, le=5)
    review_count: int | None = Field(default=None, ge=0)
    finish: str | None = None
    coverage: str | None = None
    id: str | None = None

    def to_candidate(self) -> ShadeCandidate:
        return ShadeCandidate(
            brand=self.brand,
            product=self.product,
            shade=self.shade,
            hex=self.hex,
            lab=self.lab,
            undertone=None if self.undertone is None else Undertone(self.undertone),
            depth_level=self.depth_level,
            price=self.price,
            available=self.available,
            rating=self.rating,
            review_count=self.review_count,
            finish=self.finish,
            coverage=self.coverage,
            candidate_id=self.id,
        )


class PreferencesItem(BaseModel):
    skin_type: Literal["oily", "dry", "combination", "sensitive", "normal"] | None = None
    preferred_coverage: str | None = None
    preferred_finish: str | None = None


class MatchOptions(BaseModel):
    catalog: list[ShadeItem] = Field(default_factory=list)
    preferences: PreferencesItem | None = None
    limit: int | None = Field(default=None, ge=1, le=100)
    weights: Literal["standard", "enhanced"] = "standard"
    match_scale: Literal["standard", "strict"] = "standard"
    include_unavailable: bool = False


class MatchRequest(MatchOptions):
    color: str = Field(..., description="Target skin tone as hex")
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    diversify: bool = False


class BrandMatchRequest(MatchOptions):
    color: str = Field(..., description="Target skin tone as hex")
    per_brand: int = Field(default=3, ge=1, le=10)


class LadderRequest(BaseModel):
    catalog: list[ShadeItem] = Field(default_factory=list)
    brand: str = Field(..., min_length=1)
    product: str | None = None


class DualMatchRequest(MatchOptions):
    primary: str = Field(..., description="Primary (main) skin tone as hex")
    secondary: str = Field(..., description="Secondary (contour) skin tone as hex")


class AnalyzeRequest(BaseModel):
    color: str = Field(..., description="Skin tone as hex")
    secondary: str | None = Field(
        default=None, description="Optional second tone for dual-point analysis"
    )


app = FastAPI(
    title="shadematch API",
    version="1.0.0",
    description="Analyze skin tones and rank foundation shades by perceptual distance.",
)


def _build_engine(options: MatchOptions) -> ShadeMatchingEngine:
    return ShadeMatchingEngine(
        EngineConfig.from_names(
            weights=options.weights,
            match_scale=options.match_scale,
            include_unavailable=options.include_unavailable,
        )
    )


def _preferences(options: MatchOptions) -> UserPreferences | None:
    if options.preferences is None:
        return None
    return UserPreferences(
        skin_type=options.preferences.skin_type,
        preferred_coverage=options.preferences.preferred_coverage,
        preferred_finish=options.preferences.preferred_finish,
    )


@app.post("/match")
async def match_shades(payload: MatchRequest) -> dict:
    engine = _build_engine(payload)
    catalog = [item.to_candidate() for item in payload.catalog]
    try:
        target = engine.analyze(payload.color, payload.confidence)
        result = await run_in_threadpool(
            engine.match,
            target,
            catalog,
            _preferences(payload),
            payload.limit,
            payload.diversify,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"failed_to_match: {exc}") from exc
    return result.to_dict()


@app.post("/match/dual")
async def match_dual_shades(payload: DualMatchRequest) -> dict:
    engine = _build_engine(payload)
    catalog = [item.to_candidate() for item in payload.catalog]
    try:
        result = await run_in_threadpool(
            engine.match_dual,
            payload.primary,
            payload.secondary,
            catalog,
            _preferences(payload),
            payload.limit,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"failed_to_match: {exc}") from exc
    return result.to_dict()


@app.post("/match/brands")
async def match_by_brand(payload: BrandMatchRequest) -> dict:
    engine = _build_engine(payload)
    catalog = [item.to_candidate() for item in payload.catalog]
    try:
        result = await run_in_threadpool(
            engine.recommend_by_brand,
            payload.color,
            catalog,
            _preferences(payload),
            payload.per_brand,
            payload.limit or DEFAULT_MAX_BRANDS,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"failed_to_match: {exc}") from exc
    return result.to_dict()


@app.post("/ladder")
async def shade_ladder(payload: LadderRequest) -> dict:
    catalog = [item.to_candidate() for item in payload.catalog]
    steps = ShadeMatchingEngine().shade_ladder(catalog, payload.brand, payload.product)
    return {
        "brand": payload.brand,
        "product": payload.product,
        "shades": [step.to_dict() for step in steps],
    }


@app.post("/analyze")
async def analyze_tone(payload: AnalyzeRequest) -> dict:
    engine = ShadeMatchingEngine()
    try:
        if payload.secondary is None:
            return engine.analyze(payload.color).to_dict()
        return engine.analyze_dual(payload.color, payload.secondary).to_dict()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"failed_to_analyze: {exc}") from exc
