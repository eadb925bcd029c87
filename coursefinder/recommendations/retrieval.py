from __future__ import annotations

import asyncio
import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import ValidationError

from ..analytics.store import record_event
from .cache import ResultCache, get_default_cache, make_cache_key
from .catalog import CatalogProvider, get_default_catalog
from .config import DEFAULT_RECOMMENDATION_CONFIG, RecommendationConfig
from .geo import generate_geo_candidates
from .knowledge import DEFAULT_KNOWLEDGE_BASE, KnowledgeBase
from .merger import merge_candidates
from .models import (
    CachedResultSet,
    Candidate,
    CandidateSource,
    CandidateSourceCounts,
    Filters,
    PaginationMeta,
    RecommendationRequest,
    RecommendationResponse,
    ResponseMetadata,
    ScoredResult,
)
from .scoring import score_and_rank
from .semantic import generate_semantic_candidates
from .text_search import extract_search_terms, generate_text_candidates, top_category

logger = logging.getLogger(__name__)


@dataclass
class RankedRun:
    results: list[ScoredResult]
    counts: CandidateSourceCounts


# ── Fan-out / fan-in ─────────────────────────────────────────────────────


# Synchronous generators run here, not on the loop's default executor.
SOURCE_WORKERS = 8
_source_executor = ThreadPoolExecutor(max_workers=SOURCE_WORKERS, thread_name_prefix="candidate-source")


async def _run_source(
    source: CandidateSource,
    generate: Callable[[], list[Candidate]],
    timeout: float,
) -> list[Candidate]:
    """
    Run one generator on the source pool; failures and timeouts yield no candidates.

    A timed-out generator is abandoned, not interrupted: it keeps one of the
    SOURCE_WORKERS threads until it finishes.  When every worker is stuck,
    queued sources time out as well and requests degrade to empty candidate
    lists rather than blocking.
    """
    loop = asyncio.get_running_loop()
    try:
        return await asyncio.wait_for(loop.run_in_executor(_source_executor, generate), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Candidate source %s timed out after %.1fs", source.value, timeout)
        return []
    except Exception:
        logger.warning("Candidate source %s failed, continuing without it", source.value, exc_info=True)
        return []


async def _generate_candidates(
    request: RecommendationRequest,
    filters: Filters,
    catalog: CatalogProvider,
    config: RecommendationConfig,
    knowledge: KnowledgeBase,
) -> dict[CandidateSource, list[Candidate]]:
    profile = request.aptitude_profile
    generators: dict[CandidateSource, Callable[[], list[Candidate]]] = {
        CandidateSource.geo: lambda: generate_geo_candidates(catalog, request.location, filters, config),
        CandidateSource.text: lambda: generate_text_candidates(catalog, profile, config, knowledge),
        CandidateSource.semantic: lambda: generate_semantic_candidates(catalog, profile, config, knowledge),
    }
    # _run_source never raises, so gather only propagates cancellation
    lists = await asyncio.gather(*(
        _run_source(source, generate, config.source_timeout_seconds)
        for source, generate in generators.items()
    ))
    return dict(zip(generators, lists))


async def _rank(
    request: RecommendationRequest,
    filters: Filters,
    catalog: CatalogProvider,
    config: RecommendationConfig,
    knowledge: KnowledgeBase,
) -> RankedRun:
    candidates = await _generate_candidates(request, filters, catalog, config, knowledge)
    merged = merge_candidates(*candidates.values())
    results = score_and_rank(
        merged, request.location, request.aptitude_profile, filters, config, knowledge,
    )
    counts = CandidateSourceCounts(
        geo=len(candidates[CandidateSource.geo]),
        text=len(candidates[CandidateSource.text]),
        semantic=len(candidates[CandidateSource.semantic]),
        merged=len(merged),
    )
    logger.debug(
        "Candidates geo=%d text=%d semantic=%d merged=%d ranked=%d",
        counts.geo, counts.text, counts.semantic, counts.merged, len(results),
    )
    return RankedRun(results=results, counts=counts)


# ── Fallback ─────────────────────────────────────────────────────────────


async def _rank_with_fallback(
    request: RecommendationRequest,
    catalog: CatalogProvider,
    config: RecommendationConfig,
    knowledge: KnowledgeBase,
) -> CachedResultSet:
    filters = request.filters
    run = await _rank(request, filters, catalog, config, knowledge)
    relaxed = False
    message = None

    if len(run.results) < config.min_results:
        if filters.max_distance_km < config.relaxed_distance_km:
            relaxed_filters = filters.model_copy(update={"max_distance_km": config.relaxed_distance_km})
            relaxed_run = await _rank(request, relaxed_filters, catalog, config, knowledge)
            if relaxed_run.results:
                logger.info(
                    "No results within %.0f km, relaxed search returned %d",
                    filters.max_distance_km, len(relaxed_run.results),
                )
                run = relaxed_run
                relaxed = True
                message = (
                    f"No colleges found within {filters.max_distance_km:g} km; "
                    f"showing matches up to {config.relaxed_distance_km:g} km away."
                )
        if not run.results:
            message = "No colleges match the selected filters."

    return CachedResultSet(
        results=run.results,
        relaxed=relaxed,
        message=message,
        candidate_source_counts=run.counts,
        created_at=time.time(),
    )


# ── Pagination ───────────────────────────────────────────────────────────


def paginate(
    results: list[ScoredResult], page: int, page_size: int,
) -> tuple[list[ScoredResult], PaginationMeta]:
    total = len(results)
    start = (page - 1) * page_size
    return results[start:start + page_size], PaginationMeta(
        page=page,
        page_size=page_size,
        total=total,
        total_pages=math.ceil(total / page_size),
        has_next=start + page_size < total,
    )


def _load_cached(cache: ResultCache, key: str) -> CachedResultSet | None:
    payload = cache.get(key)
    if payload is None:
        return None
    try:
        return CachedResultSet.model_validate(payload)
    except (ValidationError, TypeError):
        logger.warning("Discarding malformed cache entry %s", key, exc_info=True)
        return None


# ── Public operations ────────────────────────────────────────────────────


async def get_recommendations(
    request: RecommendationRequest,
    *,
    catalog: CatalogProvider | None = None,
    cache: ResultCache | None = None,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
    knowledge: KnowledgeBase = DEFAULT_KNOWLEDGE_BASE,
) -> RecommendationResponse:
    """Generate one page of ranked college/course recommendations."""
    start_time = time.time()
    catalog = catalog or get_default_catalog()
    cache = cache if cache is not None else get_default_cache()

    key = make_cache_key(
        request.user_id, request.location, request.filters,
        request.aptitude_profile, config.coordinate_precision,
    )
    cached = _load_cached(cache, key)
    cache_hit = cached is not None
    if cached is None:
        cached = await _rank_with_fallback(request, catalog, config, knowledge)
        cache.set(key, cached.model_dump(mode="json"))
    else:
        logger.debug("Cache hit for %s", key)

    page_results, pagination = paginate(cached.results, request.page, request.page_size)

    response = RecommendationResponse(
        results=page_results,
        pagination=pagination,
        metadata=ResponseMetadata(
            candidate_source_counts=cached.candidate_source_counts,
            relaxed=cached.relaxed,
            message=cached.message,
            cache_hit=cache_hit,
            search_params={
                "lat": request.location.lat,
                "lon": request.location.lon,
                "filters": request.filters.canonical(),
                "page": request.page,
                "page_size": request.page_size,
            },
        ),
    )

    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    record_event("search", {
        "top_category": top_category(request.aptitude_profile),
        "filters": request.filters.canonical(),
        "total_results": pagination.total,
        "results_returned": len(page_results),
        "relaxed": cached.relaxed,
        "response_time_ms": elapsed_ms,
        "cache_hit": cache_hit,
    })

    return response


def _sample(candidate: Candidate) -> dict[str, Any]:
    return {
        "college_id": candidate.college.id,
        "college_name": candidate.college.name,
        "course_id": candidate.course.id,
        "course_name": candidate.course.name,
        "score": round(candidate.score, 4),
        "distance_km": round(candidate.distance_km, 2) if candidate.distance_km is not None else None,
    }


async def inspect_candidates(
    request: RecommendationRequest,
    *,
    catalog: CatalogProvider | None = None,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
    knowledge: KnowledgeBase = DEFAULT_KNOWLEDGE_BASE,
    top_n: int = 5,
) -> dict[str, Any]:
    """Raw per-source candidates and active scoring settings, for debugging."""
    catalog = catalog or get_default_catalog()
    candidates = await _generate_candidates(request, request.filters, catalog, config, knowledge)
    profile = request.aptitude_profile
    return {
        "user_profile": {
            "category_scores": profile,
            "dominant_aptitude": top_category(profile),
            "search_terms": extract_search_terms(profile, config.top_categories, knowledge),
        },
        "candidate_sets": {
            source.value: {
                "count": len(items),
                "samples": [_sample(c) for c in items[:top_n]],
            }
            for source, items in candidates.items()
        },
        "scoring_weights": config.weights.as_dict(),
        "limits": {
            "geo": config.geo_limit,
            "text": config.text_limit,
            "semantic": config.semantic_limit,
            "semantic_threshold": config.semantic_threshold,
            "relaxed_distance_km": config.relaxed_distance_km,
        },
        "knowledge_version": knowledge.version,
    }
