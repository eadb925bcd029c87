from __future__ import annotations

from typing import Iterable, Mapping

from .config import DEFAULT_RECOMMENDATION_CONFIG, RecommendationConfig
from .geo import haversine_km, proximity_score
from .knowledge import DEFAULT_KNOWLEDGE_BASE, KnowledgeBase
from .models import (
    SOURCE_ORDER,
    CandidateSource,
    CollegeSummary,
    Coordinate,
    Filters,
    MergedCandidate,
    ScoreBreakdown,
    ScoredResult,
)
from .semantic import semantic_similarity
from .text_search import extract_search_terms, top_category

DEFAULT_RATING = 3.0


def passes_filters(candidate: MergedCandidate, filters: Filters) -> bool:
    """Apply the hard filters; unknown values only fail a filter that is actually set."""
    if candidate.distance_km is None or candidate.distance_km > filters.max_distance_km:
        return False

    course = candidate.course
    if filters.max_fees is not None and (course.fees is None or course.fees > filters.max_fees):
        return False

    rating = candidate.college.rating
    if filters.min_rating > 0 and (rating is None or rating < filters.min_rating):
        return False

    if not filters.any_medium and filters.medium.strip().lower() not in course.mediums:
        return False

    return True


def build_rationale(
    breakdown: ScoreBreakdown,
    profile: Mapping[str, float],
) -> str:
    reasons: list[str] = []
    if breakdown.semantic > 0.7:
        reasons.append("Strong alignment with your aptitude profile")
    if breakdown.text > 0.2:
        reasons.append("Matches your interest keywords")
    if breakdown.distance > 0.8:
        reasons.append("Conveniently located nearby")
    if breakdown.rating >= 0.9:
        reasons.append("Highly rated college")

    top = top_category(profile)
    if not reasons:
        if top:
            return f"Recommended based on your profile and {top} strengths"
        return "Recommended based on your profile"
    if top:
        reasons.append(f"Recommended for {top} strengths")
    return ", ".join(reasons)


def score_candidate(
    candidate: MergedCandidate,
    origin: Coordinate,
    profile: Mapping[str, float],
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
    knowledge: KnowledgeBase = DEFAULT_KNOWLEDGE_BASE,
    terms: list[str] | None = None,
) -> ScoredResult:
    """Compute the weighted composite score of a single merged candidate."""
    w = config.weights
    college, course = candidate.college, candidate.course

    distance = candidate.distance_km
    if distance is None:
        distance = haversine_km(origin, college.location)

    semantic = candidate.scores.get(CandidateSource.semantic)
    if semantic is None:
        semantic = semantic_similarity(profile, course, config, knowledge, terms)
    raw_text = candidate.scores.get(CandidateSource.text, 0.0)
    text = min(raw_text / config.text_score_scale, 1.0)
    distance_score = proximity_score(distance)
    rating = college.rating if college.rating is not None else DEFAULT_RATING
    rating_score = rating / 5.0
    availability = min(course.seats / 100.0, 1.0)

    final = (
        w.semantic * semantic
        + w.text * text
        + w.distance * distance_score
        + w.rating * rating_score
        + w.availability * availability
    )
    final = max(0.0, min(final, 1.0))

    breakdown = ScoreBreakdown(
        final=round(final, 4),
        semantic=round(semantic, 4),
        text=round(text, 4),
        distance=round(distance_score, 4),
        rating=round(rating_score, 4),
        availability=round(availability, 4),
    )
    return ScoredResult(
        college=CollegeSummary.from_college(college),
        course=course,
        distance_km=round(distance, 2),
        score_breakdown=breakdown,
        sources=[s for s in SOURCE_ORDER if s in candidate.sources],
        rationale=build_rationale(breakdown, profile),
    )


def ranking_key(result: ScoredResult) -> tuple:
    return (
        -result.score_breakdown.final,
        result.distance_km,
        result.college.name,
        result.college.id,
        result.course.id,
    )


def score_and_rank(
    candidates: Iterable[MergedCandidate],
    origin: Coordinate,
    profile: Mapping[str, float],
    filters: Filters,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
    knowledge: KnowledgeBase = DEFAULT_KNOWLEDGE_BASE,
) -> list[ScoredResult]:
    """Filter, score and totally order merged candidates."""
    terms = extract_search_terms(profile, config.top_categories, knowledge)
    results: list[ScoredResult] = []
    for candidate in candidates:
        if candidate.distance_km is None:
            candidate.distance_km = haversine_km(origin, candidate.college.location)
        if not passes_filters(candidate, filters):
            continue
        results.append(score_candidate(candidate, origin, profile, config, knowledge, terms))

    results.sort(key=ranking_key)
    return results
