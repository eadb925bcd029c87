from __future__ import annotations

import math

import numpy as np

from .catalog import CatalogProvider
from .config import DEFAULT_RECOMMENDATION_CONFIG, RecommendationConfig
from .models import Candidate, CandidateSource, Coordinate, Filters

EARTH_RADIUS_KM = 6371.0


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two coordinates in kilometres."""
    lat1, lon1, lat2, lon2 = map(math.radians, (a.lat, a.lon, b.lat, b.lon))
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))


def haversine_many(origin: Coordinate, lats: np.ndarray, lons: np.ndarray) -> np.ndarray:
    """Vectorised haversine from ``origin`` to every (lat, lon) pair."""
    lat1 = np.radians(origin.lat)
    lon1 = np.radians(origin.lon)
    lat2 = np.radians(lats)
    lon2 = np.radians(lons)
    h = np.sin((lat2 - lat1) / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin((lon2 - lon1) / 2) ** 2
    return 2 * EARTH_RADIUS_KM * np.arcsin(np.minimum(1.0, np.sqrt(h)))


def proximity_score(distance_km: float) -> float:
    """1 at the query point, decaying towards 0 with distance."""
    return 1.0 / (1.0 + distance_km / 10.0)


def generate_geo_candidates(
    catalog: CatalogProvider,
    origin: Coordinate,
    filters: Filters,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> list[Candidate]:
    colleges = catalog.get_colleges()
    if not colleges:
        return []

    max_distance = filters.max_distance_km
    lats = np.array([c.location.lat for c in colleges], dtype=float)
    lons = np.array([c.location.lon for c in colleges], dtype=float)
    distances = haversine_many(origin, lats, lons)

    # distance-sorted before truncation so the cap never depends on catalog order
    nearby = sorted(
        ((float(d), college) for d, college in zip(distances, colleges) if d <= max_distance),
        key=lambda pair: (pair[0], pair[1].id),
    )

    candidates: list[Candidate] = []
    for distance, college in nearby:
        for course in college.courses:
            candidates.append(Candidate(
                college=college,
                course=course,
                source=CandidateSource.geo,
                score=proximity_score(distance),
                distance_km=distance,
            ))
            if len(candidates) >= config.geo_limit:
                return candidates
    return candidates
