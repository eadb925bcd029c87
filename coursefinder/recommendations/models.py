from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CandidateSource(str, Enum):
    geo = "geo"
    text = "text"
    semantic = "semantic"


SOURCE_ORDER: tuple[CandidateSource, ...] = (
    CandidateSource.geo,
    CandidateSource.text,
    CandidateSource.semantic,
)


class CollegeType(str, Enum):
    public = "Public"
    private = "Private"
    deemed = "Deemed"
    other = "Other"


# ── Catalog records ──────────────────────────────────────────────────────


class Coordinate(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90.0, le=90.0)
    lon: float = Field(..., ge=-180.0, le=180.0)


class Course(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str
    description: str = ""
    degree: str = ""
    fees: int | None = Field(default=None, ge=0)
    seats: int = Field(default=0, ge=0)
    tags: list[str] = Field(default_factory=list)
    medium: str | None = Field(
        default=None, description='Language(s) of instruction, e.g. "English/Hindi"'
    )

    @field_validator("tags")
    @classmethod
    def _lowercase_tags(cls, tags: list[str]) -> list[str]:
        return [t.strip().lower() for t in tags if t and t.strip()]

    @property
    def mediums(self) -> set[str]:
        if not self.medium:
            return set()
        return {m.strip().lower() for m in self.medium.split("/") if m.strip()}


class College(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str
    location: Coordinate
    city: str = ""
    state: str = ""
    rating: float | None = Field(default=None, ge=0.0, le=5.0)
    type: CollegeType = CollegeType.other
    courses: list[Course] = Field(..., min_length=1)


class CollegeSummary(BaseModel):
    """College snapshot returned with each result (courses omitted)."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    location: Coordinate
    city: str
    state: str
    rating: float | None
    type: CollegeType

    @classmethod
    def from_college(cls, college: College) -> "CollegeSummary":
        return cls(
            id=college.id,
            name=college.name,
            location=college.location,
            city=college.city,
            state=college.state,
            rating=college.rating,
            type=college.type,
        )


# ── Request side ─────────────────────────────────────────────────────────


class Filters(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_distance_km: float = Field(default=50.0, gt=0.0)
    max_fees: int | None = Field(default=None, ge=0)
    min_rating: float = Field(default=0.0, ge=0.0, le=5.0)
    medium: str = Field(default="Any", description='"Any", "English", "Hindi" or another language')

    @property
    def any_medium(self) -> bool:
        return self.medium.strip().lower() in ("", "any")

    def canonical(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class RecommendationRequest(BaseModel):
    location: Coordinate
    aptitude_profile: dict[str, float] = Field(
        default_factory=dict, description="Aptitude category name -> non-negative score"
    )
    filters: Filters = Field(default_factory=Filters)
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1)
    user_id: str | None = Field(default=None, description="Only used to partition the result cache")

    @field_validator("aptitude_profile")
    @classmethod
    def _non_negative_scores(cls, profile: dict[str, float]) -> dict[str, float]:
        invalid = sorted(k for k, v in profile.items() if not math.isfinite(v) or v < 0)
        if invalid:
            raise ValueError(f"aptitude scores must be finite and non-negative: {', '.join(invalid)}")
        return profile


# ── Pipeline intermediates ───────────────────────────────────────────────


@dataclass(frozen=True)
class Candidate:
    college: College
    course: Course
    source: CandidateSource
    score: float
    distance_km: float | None = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.college.id, self.course.id)


@dataclass
class MergedCandidate:
    college: College
    course: Course
    distance_km: float | None = None
    sources: set[CandidateSource] = field(default_factory=set)
    scores: dict[CandidateSource, float] = field(default_factory=dict)

    @property
    def key(self) -> tuple[str, str]:
        return (self.college.id, self.course.id)


# ── Response side ────────────────────────────────────────────────────────


class ScoreBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    final: float = Field(..., ge=0.0, le=1.0)
    semantic: float
    text: float
    distance: float
    rating: float
    availability: float


class ScoredResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    college: CollegeSummary
    course: Course
    distance_km: float
    score_breakdown: ScoreBreakdown
    sources: list[CandidateSource]
    rationale: str


class PaginationMeta(BaseModel):
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    total: int
    total_pages: int
    has_next: bool


class CandidateSourceCounts(BaseModel):
    geo: int = 0
    text: int = 0
    semantic: int = 0
    merged: int = 0


class ResponseMetadata(BaseModel):
    candidate_source_counts: CandidateSourceCounts
    relaxed: bool = False
    message: str | None = None
    cache_hit: bool = False
    search_params: dict[str, Any] = Field(default_factory=dict)


class RecommendationResponse(BaseModel):
    results: list[ScoredResult]
    pagination: PaginationMeta
    metadata: ResponseMetadata


class CachedResultSet(BaseModel):
    """Full ordered result list stored under one cache key."""

    results: list[ScoredResult]
    relaxed: bool = False
    message: str | None = None
    candidate_source_counts: CandidateSourceCounts
    created_at: float
