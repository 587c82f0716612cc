from .catalog import CatalogValidationError, load_catalog
from .colorspace import InvalidColorFormat, hex_to_lab, rgb_to_lab
from .config import DEFAULT_CONFIG, ENHANCED_CONFIG, EngineConfig
from .difference import delta_e_cie76, delta_e_ciede2000
from .engine import ShadeMatchingEngine
from .models import (
    BrandMatchResult,
    BrandRecommendation,
    DualMatchResult,
    DualPointAnalysis,
    MatchResult,
    PairedShadeMatch,
    RecommendationGroup,
    ShadeCandidate,
    ShadeLevel,
    ShadeMatch,
    SkinToneAnalysis,
    Undertone,
    UserPreferences,
)
from .sampling import InsufficientSampleData, Region

__all__ = [
    "BrandMatchResult",
    "BrandRecommendation",
    "CatalogValidationError",
    "DEFAULT_CONFIG",
    "DualMatchResult",
    "DualPointAnalysis",
    "ENHANCED_CONFIG",
    "EngineConfig",
    "InsufficientSampleData",
    "InvalidColorFormat",
    "MatchResult",
    "PairedShadeMatch",
    "RecommendationGroup",
    "Region",
    "ShadeCandidate",
    "ShadeLevel",
    "ShadeMatch",
    "ShadeMatchingEngine",
    "SkinToneAnalysis",
    "Undertone",
    "UserPreferences",
    "delta_e_cie76",
    "delta_e_ciede2000",
    "hex_to_lab",
    "load_catalog",
    "rgb_to_lab",
]
