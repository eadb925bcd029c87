from __future__ import annotations

from collections import Counter
from typing import Any


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    searches = [e for e in events if e["type"] == "search"]
    total = len(searches)

    # Average response time
    times = [s["response_time_ms"] for s in searches if "response_time_ms" in s]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    # Dominant aptitude categories
    category_counter: Counter[str] = Counter()
    for s in searches:
        if s.get("top_category"):
            category_counter[s["top_category"]] += 1
    top_categories = [{"name": n, "count": c} for n, c in category_counter.most_common(10)]

    # Filter usage rates
    filter_counts = {"max_fees": 0, "min_rating": 0, "medium": 0}
    for s in searches:
        filters = s.get("filters") or {}
        if filters.get("max_fees") is not None:
            filter_counts["max_fees"] += 1
        if filters.get("min_rating", 0) > 0:
            filter_counts["min_rating"] += 1
        if str(filters.get("medium", "Any")).lower() not in ("", "any"):
            filter_counts["medium"] += 1
    filter_usage = {
        k: round(v / total * 100, 1) if total else 0.0
        for k, v in filter_counts.items()
    }

    # Empty and relaxed searches
    relaxed = sum(1 for s in searches if s.get("relaxed"))
    empty = sum(1 for s in searches if s.get("total_results", 0) == 0)

    cache_hits = sum(1 for s in searches if s.get("cache_hit"))
    cache_misses = total - cache_hits

    return {
        "total_searches": total,
        "avg_response_time_ms": avg_time,
        "top_categories": top_categories,
        "filter_usage": filter_usage,
        "relaxed_searches": relaxed,
        "relaxed_rate": round(relaxed / total * 100, 1) if total else 0.0,
        "empty_searches": empty,
        "cache_stats": {
            "hits": cache_hits,
            "misses": cache_misses,
            "hit_rate": round(cache_hits / total * 100, 1) if total else 0.0,
        },
    }
