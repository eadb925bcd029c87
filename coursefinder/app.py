from __future__ import annotations

from collections import Counter

from fastapi import FastAPI

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events
from .recommendations.cache import get_cache_stats
from .recommendations.catalog import get_default_catalog
from .recommendations.models import RecommendationRequest, RecommendationResponse
from .recommendations.retrieval import get_recommendations, inspect_candidates

app = FastAPI(title="College Course Recommendation API", version="1.0.0")


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata() -> dict:
    colleges = get_default_catalog().get_colleges()
    tags: set[str] = set()
    for college in colleges:
        for course in college.courses:
            tags.update(course.tags)
    types = Counter(c.type.value for c in colleges)
    return {
        "colleges": len(colleges),
        "courses": sum(len(c.courses) for c in colleges),
        "states": sorted({c.state for c in colleges if c.state}),
        "cities": sorted({c.city for c in colleges if c.city}),
        "college_types": dict(sorted(types.items())),
        "tags": sorted(tags),
    }


# ── Recommendation endpoints ─────────────────────────────────────────────


@app.post("/recommendations", response_model=RecommendationResponse)
async def recommendations(body: RecommendationRequest) -> RecommendationResponse:
    return await get_recommendations(body)


@app.post("/recommendations/debug")
async def recommendations_debug(body: RecommendationRequest) -> dict:
    return {"debug": await inspect_candidates(body)}


# ── Operational endpoints ────────────────────────────────────────────────


@app.get("/cache/stats")
def cache_stats() -> dict:
    return get_cache_stats()


@app.get("/analytics")
def analytics() -> dict:
    return compute_analytics(get_events())
