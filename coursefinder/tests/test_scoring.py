from __future__ import annotations

import pytest

from conftest import ORIGIN, make_college, make_course, north_of
from coursefinder.recommendations.config import RecommendationConfig, ScoringWeights
from coursefinder.recommendations.models import (
    CandidateSource,
    Filters,
    MergedCandidate,
    ScoreBreakdown,
)
from coursefinder.recommendations.scoring import (
    build_rationale,
    passes_filters,
    score_and_rank,
    score_candidate,
)

LOGICAL = {"logical": 32, "analytical": 20, "creative": 5}


def _merged(college, course=None, distance_km=None, **scores) -> MergedCandidate:
    course = course or college.courses[0]
    return MergedCandidate(
        college=college,
        course=course,
        distance_km=distance_km,
        sources={CandidateSource(s) for s in scores} or {CandidateSource.geo},
        scores={CandidateSource(s): v for s, v in scores.items()},
    )


def test_near_high_rated_college_ranks_first():
    near = make_college("near", location=north_of(ORIGIN, 5), rating=4.5)
    far = make_college("far", location=north_of(ORIGIN, 40), rating=3.0)
    ranked = score_and_rank(
        [_merged(far), _merged(near)],
        ORIGIN,
        LOGICAL,
        Filters(max_distance_km=50, min_rating=0),
    )
    assert [r.college.id for r in ranked] == ["near", "far"]
    assert ranked[0].score_breakdown.semantic == ranked[1].score_breakdown.semantic
    assert ranked[0].score_breakdown.text == ranked[1].score_breakdown.text
    assert ranked[0].score_breakdown.final >= ranked[1].score_breakdown.final


def test_ties_break_by_distance_then_college_name():
    beta = make_college("b", name="Beta College", location=north_of(ORIGIN, 10))
    alpha = make_college("a", name="Alpha College", location=north_of(ORIGIN, 10))
    ranked = score_and_rank([_merged(beta), _merged(alpha)], ORIGIN, LOGICAL, Filters())
    assert ranked[0].score_breakdown.final == ranked[1].score_breakdown.final
    assert [r.college.name for r in ranked] == ["Alpha College", "Beta College"]


def test_ranked_list_is_totally_ordered():
    colleges = [
        make_college(f"c{i}", location=north_of(ORIGIN, 3 * i), rating=3 + (i % 3) * 0.5)
        for i in range(10)
    ]
    ranked = score_and_rank([_merged(c) for c in colleges], ORIGIN, LOGICAL, Filters())
    for a, b in zip(ranked, ranked[1:]):
        assert a.score_breakdown.final >= b.score_breakdown.final
        if a.score_breakdown.final == b.score_breakdown.final:
            assert a.distance_km <= b.distance_km
            if a.distance_km == b.distance_km:
                assert a.college.name <= b.college.name


def test_missing_distance_is_recomputed():
    college = make_college("x", location=north_of(ORIGIN, 20))
    result = score_candidate(_merged(college, text=4.0), ORIGIN, LOGICAL)
    assert result.distance_km == pytest.approx(20, abs=0.01)


def test_semantic_falls_back_to_similarity_formula():
    college = make_college("x")
    result = score_candidate(_merged(college, distance_km=0.0), ORIGIN, {"logical": 40})
    assert result.score_breakdown.semantic == pytest.approx(0.9)


def test_component_scores():
    college = make_college("x", rating=4.0, courses=[make_course("x-cs", seats=50)])
    result = score_candidate(_merged(college, distance_km=10.0, text=5.0), ORIGIN, {})
    breakdown = result.score_breakdown
    assert breakdown.text == 0.5
    assert breakdown.distance == 0.5
    assert breakdown.rating == 0.8
    assert breakdown.availability == 0.5
    assert breakdown.semantic == 0.0


def test_final_score_is_bounded():
    college = make_college("x", rating=5.0, courses=[make_course("x-cs", seats=1000)])
    result = score_candidate(
        _merged(college, distance_km=0.0, text=50.0, semantic=1.0), ORIGIN, LOGICAL,
    )
    assert 0.0 <= result.score_breakdown.final <= 1.0
    assert result.score_breakdown.final == 1.0


def test_weights_can_be_overridden():
    config = RecommendationConfig(
        weights=ScoringWeights(semantic=0.0, text=0.0, distance=0.0, rating=1.0, availability=0.0),
    )
    college = make_college("x", rating=2.5)
    result = score_candidate(_merged(college, distance_km=1.0), ORIGIN, LOGICAL, config)
    assert result.score_breakdown.final == 0.5


def test_weights_must_sum_to_one():
    with pytest.raises(ValueError):
        ScoringWeights(semantic=0.5)
    with pytest.raises(ValueError):
        ScoringWeights(semantic=1.2, text=-0.2, distance=0.0, rating=0.0, availability=0.0)


def test_weights_parse_from_string():
    weights = ScoringWeights.from_string("semantic=0.4, text=0.2")
    assert weights.semantic == 0.4
    assert weights.text == 0.2
    assert weights.distance == 0.20


def test_sources_reported_in_fixed_order():
    college = make_college("x")
    merged = _merged(college, distance_km=1.0, semantic=0.5, geo=0.9, text=1.0)
    result = score_candidate(merged, ORIGIN, LOGICAL)
    assert result.sources == [CandidateSource.geo, CandidateSource.text, CandidateSource.semantic]


# ── Filters ──────────────────────────────────────────────────────────────


def test_filter_by_distance():
    college = make_college("x")
    assert passes_filters(_merged(college, distance_km=49.0), Filters(max_distance_km=50))
    assert not passes_filters(_merged(college, distance_km=51.0), Filters(max_distance_km=50))


def test_filter_by_fees_excludes_unknown_only_when_set():
    unknown = make_college("x", courses=[make_course("x-cs", fees=None)])
    pricey = make_college("y", courses=[make_course("y-cs", fees=300000)])
    assert passes_filters(_merged(unknown, distance_km=1.0), Filters())
    assert not passes_filters(_merged(unknown, distance_km=1.0), Filters(max_fees=100000))
    assert not passes_filters(_merged(pricey, distance_km=1.0), Filters(max_fees=100000))


def test_filter_by_rating():
    college = make_college("x", rating=3.5)
    unrated = make_college("y", rating=None)
    assert passes_filters(_merged(college, distance_km=1.0), Filters(min_rating=3.5))
    assert not passes_filters(_merged(college, distance_km=1.0), Filters(min_rating=4.0))
    assert passes_filters(_merged(unrated, distance_km=1.0), Filters())
    assert not passes_filters(_merged(unrated, distance_km=1.0), Filters(min_rating=1.0))


def test_filter_by_medium():
    bilingual = make_college("x", courses=[make_course("x-cs", medium="English/Hindi")])
    unknown = make_college("y")
    assert passes_filters(_merged(bilingual, distance_km=1.0), Filters(medium="hindi"))
    assert not passes_filters(_merged(bilingual, distance_km=1.0), Filters(medium="Tamil"))
    assert passes_filters(_merged(unknown, distance_km=1.0), Filters(medium="Any"))
    assert not passes_filters(_merged(unknown, distance_km=1.0), Filters(medium="English"))


# ── Rationale ────────────────────────────────────────────────────────────


def _breakdown(**overrides) -> ScoreBreakdown:
    values = {"final": 0.5, "semantic": 0.0, "text": 0.0, "distance": 0.0, "rating": 0.0, "availability": 0.0}
    values.update(overrides)
    return ScoreBreakdown(**values)


def test_rationale_lists_fired_reasons_and_top_category():
    text = build_rationale(_breakdown(semantic=0.8, distance=0.9), LOGICAL)
    assert text == (
        "Strong alignment with your aptitude profile, "
        "Conveniently located nearby, Recommended for logical strengths"
    )


def test_rationale_generic_fallback():
    assert build_rationale(_breakdown(), {}) == "Recommended based on your profile"
    assert "logical" in build_rationale(_breakdown(), LOGICAL)
