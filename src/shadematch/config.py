from __future__ import annotations

from dataclasses import dataclass, replace

from .difference import MATCH_SCALES, STANDARD_MATCH_SCALE, MatchScale
from .pairing import DEFAULT_MAX_GROUPS, DEFAULT_PAIRS_PER_GROUP
from .scoring import STANDARD_WEIGHTS, WEIGHT_PRESETS, ScoringWeights
from .tone import (
    IMAGE_UNDERTONE_POLICY,
    STANDARD_UNDERTONE_POLICY,
    UNDERTONE_POLICIES,
    UndertonePolicy,
)


@dataclass(frozen=True)
class EngineConfig:
    undertone_policy: UndertonePolicy = STANDARD_UNDERTONE_POLICY
    image_undertone_policy: UndertonePolicy = IMAGE_UNDERTONE_POLICY
    match_scale: MatchScale = STANDARD_MATCH_SCALE
    weights: ScoringWeights = STANDARD_WEIGHTS
    candidate_limit: int = 20
    max_groups: int = DEFAULT_MAX_GROUPS
    pairs_per_group: int = DEFAULT_PAIRS_PER_GROUP
    include_unavailable: bool = False
    min_samples: int = 10

    def __post_init__(self) -> None:
        for name in ("candidate_limit", "max_groups", "pairs_per_group", "min_samples"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1")

    @classmethod
    def from_names(
        cls,
        weights: str = "standard",
        match_scale: str = "standard",
        undertone_policy: str = "standard",
        **overrides: object,
    ) -> EngineConfig:
        try:
            resolved = cls(
                weights=WEIGHT_PRESETS[weights],
                match_scale=MATCH_SCALES[match_scale],
                undertone_policy=UNDERTONE_POLICIES[undertone_policy],
            )
        except KeyError as exc:
            raise ValueError(f"unknown preset name {exc.args[0]!r}") from exc
        return replace(resolved, **overrides) if overrides else resolved


DEFAULT_CONFIG = EngineConfig()
ENHANCED_CONFIG = EngineConfig.from_names(weights="enhanced")
