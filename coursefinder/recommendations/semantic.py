from __future__ import annotations

from typing import Mapping

from .catalog import CatalogProvider
from .config import DEFAULT_RECOMMENDATION_CONFIG, RecommendationConfig
from .knowledge import DEFAULT_KNOWLEDGE_BASE, KnowledgeBase
from .models import Candidate, CandidateSource, Course
from .text_search import extract_search_terms


def semantic_similarity(
    profile: Mapping[str, float],
    course: Course,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
    knowledge: KnowledgeBase = DEFAULT_KNOWLEDGE_BASE,
    terms: list[str] | None = None,
) -> float:
    """
    Approximate similarity between an aptitude profile and a course.

    Weighted sum of the user's normalised category scores against the
    course's affinity row, plus a bonus for every course tag that contains
    one of the profile's search terms.  Capped at 1.0.
    """
    affinity = knowledge.affinity_for(course.name)
    similarity = sum(
        (score / config.semantic_normalizer) * affinity.get(category, 0.0)
        for category, score in profile.items()
    )

    if terms is None:
        terms = extract_search_terms(profile, config.top_categories, knowledge)
    matching_tags = sum(1 for tag in course.tags if any(term in tag for term in terms))
    similarity += matching_tags * config.tag_bonus

    return min(similarity, 1.0)


def generate_semantic_candidates(
    catalog: CatalogProvider,
    profile: Mapping[str, float],
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
    knowledge: KnowledgeBase = DEFAULT_KNOWLEDGE_BASE,
) -> list[Candidate]:
    terms = extract_search_terms(profile, config.top_categories, knowledge)

    candidates: list[Candidate] = []
    for college in catalog.get_colleges():
        for course in college.courses:
            score = semantic_similarity(profile, course, config, knowledge, terms)
            if score > config.semantic_threshold:
                candidates.append(Candidate(
                    college=college,
                    course=course,
                    source=CandidateSource.semantic,
                    score=score,
                ))

    candidates.sort(key=lambda c: (-c.score, c.college.id, c.course.id))
    return candidates[: config.semantic_limit]
