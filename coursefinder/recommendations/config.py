from __future__ import annotations

import math
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

_DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "catalog.csv"


@dataclass(frozen=True)
class ScoringWeights:
    """Relative weight of each sub-score in the composite ranking score."""

    semantic: float = 0.35
    text: float = 0.25
    distance: float = 0.20
    rating: float = 0.15
    availability: float = 0.05

    def __post_init__(self) -> None:
        values = asdict(self)
        negative = [name for name, value in values.items() if value < 0]
        if negative:
            raise ValueError(f"Scoring weights must be non-negative: {', '.join(negative)}")
        total = sum(values.values())
        if not math.isclose(total, 1.0, abs_tol=1e-6):
            raise ValueError(f"Scoring weights must sum to 1.0, got {total:.4f}")

    def as_dict(self) -> dict[str, float]:
        return asdict(self)

    @classmethod
    def from_string(cls, raw: str) -> "ScoringWeights":
        """Parse ``"semantic=0.4,text=0.2,..."``; unnamed weights keep their default."""
        overrides: dict[str, float] = {}
        for part in raw.split(","):
            if not part.strip():
                continue
            name, _, value = part.partition("=")
            overrides[name.strip()] = float(value)
        return cls(**overrides)


def _weights_from_env() -> ScoringWeights:
    raw = os.getenv("COURSEFINDER_SCORING_WEIGHTS", "")
    return ScoringWeights.from_string(raw) if raw else ScoringWeights()


@dataclass(frozen=True)
class RecommendationConfig:
    catalog_path: Path = Path(os.getenv("COURSEFINDER_CATALOG_PATH", str(_DEFAULT_CATALOG_PATH)))
    weights: ScoringWeights = field(default_factory=_weights_from_env)

    # candidate generation
    geo_limit: int = 500
    text_limit: int = 200
    semantic_limit: int = 200
    top_categories: int = 3
    semantic_threshold: float = 0.3
    semantic_normalizer: float = 40.0
    tag_bonus: float = 0.1
    text_score_scale: float = 10.0
    source_timeout_seconds: float = float(os.getenv("COURSEFINDER_SOURCE_TIMEOUT_SECONDS", "3"))

    # fallback
    min_results: int = 1
    relaxed_distance_km: float = float(os.getenv("COURSEFINDER_RELAXED_DISTANCE_KM", "5000"))

    # cache
    cache_ttl_seconds: float = float(os.getenv("COURSEFINDER_CACHE_TTL_SECONDS", "600"))
    coordinate_precision: int = 4


DEFAULT_RECOMMENDATION_CONFIG = RecommendationConfig()
