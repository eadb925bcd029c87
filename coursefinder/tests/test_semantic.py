from __future__ import annotations

import pytest

from conftest import make_college, make_course
from coursefinder.recommendations.catalog import StaticCatalog
from coursefinder.recommendations.config import RecommendationConfig
from coursefinder.recommendations.knowledge import KnowledgeBase
from coursefinder.recommendations.semantic import (
    generate_semantic_candidates,
    semantic_similarity,
)


def test_similarity_uses_affinity_table():
    course = make_course("cs", name="Computer Science")
    # 40/40 * 0.9 for logical, no tag bonus
    assert semantic_similarity({"logical": 40}, course) == pytest.approx(0.9)


def test_similarity_lookup_is_case_insensitive():
    course = make_course("cs", name="computer science")
    assert semantic_similarity({"logical": 40}, course) == pytest.approx(0.9)


def test_unknown_course_gets_tag_bonus_only():
    course = make_course("x", name="Robotics Workshop", tags=["programming", "software", "welding"])
    assert semantic_similarity({"logical": 40}, course) == pytest.approx(0.2)


def test_unknown_category_contributes_nothing():
    course = make_course("cs", name="Computer Science")
    assert semantic_similarity({"telepathy": 40}, course) == 0.0


def test_similarity_is_capped():
    course = make_course("cs", name="Computer Science", tags=["programming", "software", "algorithm"])
    assert semantic_similarity({"logical": 40, "analytical": 40, "practical": 40}, course) == 1.0


def test_custom_knowledge_base():
    knowledge = KnowledgeBase(
        version="test",
        aptitude_terms={"cooking": ("kitchen",)},
        course_affinity={"Culinary Arts": {"cooking": 1.0}},
    )
    course = make_course("chef", name="Culinary Arts", tags=["kitchen"])
    assert semantic_similarity({"cooking": 20}, course, knowledge=knowledge) == pytest.approx(0.6)


def test_semantic_candidates_apply_threshold():
    catalog = StaticCatalog([
        make_college("a", courses=[
            make_course("a-cs", name="Computer Science"),
            make_course("a-art", name="Fine Arts"),
        ]),
    ])
    candidates = generate_semantic_candidates(catalog, {"logical": 40})
    assert [c.course.id for c in candidates] == ["a-cs"]
    assert candidates[0].score == pytest.approx(0.9)


def test_semantic_candidates_sorted_and_truncated():
    catalog = StaticCatalog([
        make_college("a", courses=[
            make_course("a-com", name="Commerce"),
            make_course("a-mech", name="Mechanical Engineering"),
        ]),
        make_college("b", courses=[
            make_course("b-ds", name="Data Science"),
            make_course("b-cs", name="Computer Science"),
        ]),
    ])
    config = RecommendationConfig(semantic_limit=3)
    candidates = generate_semantic_candidates(catalog, {"logical": 40}, config)

    assert [c.course.id for c in candidates] == ["b-cs", "b-ds", "a-mech"]
    scores = [c.score for c in candidates]
    assert scores == sorted(scores, reverse=True)
    assert scores == pytest.approx([0.9, 0.8, 0.7])
