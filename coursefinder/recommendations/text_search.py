from __future__ import annotations

from typing import Mapping

from .catalog import CatalogProvider
from .config import DEFAULT_RECOMMENDATION_CONFIG, RecommendationConfig
from .knowledge import DEFAULT_KNOWLEDGE_BASE, KnowledgeBase
from .models import Candidate, CandidateSource, Course

NAME_MATCH_POINTS = 2.0
DESCRIPTION_MATCH_POINTS = 1.0
TAG_MATCH_POINTS = 1.5


def rank_categories(profile: Mapping[str, float]) -> list[str]:
    """Categories by score descending, ties broken by name."""
    return [name for name, _ in sorted(profile.items(), key=lambda kv: (-kv[1], kv[0]))]


def top_category(profile: Mapping[str, float]) -> str | None:
    ranked = rank_categories(profile)
    return ranked[0] if ranked else None


def extract_search_terms(
    profile: Mapping[str, float],
    top_n: int = 3,
    knowledge: KnowledgeBase = DEFAULT_KNOWLEDGE_BASE,
) -> list[str]:
    """Keyword terms for the user's strongest aptitude categories, de-duplicated in order."""
    terms: list[str] = []
    for category in rank_categories(profile)[:top_n]:
        for term in knowledge.terms_for(category):
            term = term.lower()
            if term not in terms:
                terms.append(term)
    return terms


def keyword_score(course: Course, terms: list[str]) -> float:
    name = course.name.lower()
    description = course.description.lower()
    score = 0.0
    for term in terms:
        if term in name:
            score += NAME_MATCH_POINTS
        if term in description:
            score += DESCRIPTION_MATCH_POINTS
        if any(term in tag for tag in course.tags):
            score += TAG_MATCH_POINTS
    return score


def generate_text_candidates(
    catalog: CatalogProvider,
    profile: Mapping[str, float],
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
    knowledge: KnowledgeBase = DEFAULT_KNOWLEDGE_BASE,
) -> list[Candidate]:
    terms = extract_search_terms(profile, config.top_categories, knowledge)
    if not terms:
        return []

    candidates: list[Candidate] = []
    for college in catalog.get_colleges():
        for course in college.courses:
            score = keyword_score(course, terms)
            if score > 0:
                candidates.append(Candidate(
                    college=college,
                    course=course,
                    source=CandidateSource.text,
                    score=score,
                ))

    candidates.sort(key=lambda c: (-c.score, c.college.id, c.course.id))
    return candidates[: config.text_limit]
