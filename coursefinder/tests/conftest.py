from __future__ import annotations

import pytest

from coursefinder.analytics.store import clear_events
from coursefinder.recommendations.cache import clear_cache
from coursefinder.recommendations.models import College, Coordinate, Course

# One degree of latitude is ~111.19 km on a 6371 km sphere.
KM_PER_DEGREE_LAT = 6371.0 * 3.141592653589793 / 180.0

ORIGIN = Coordinate(lat=28.6139, lon=77.2090)


def north_of(origin: Coordinate, km: float) -> Coordinate:
    return Coordinate(lat=origin.lat + km / KM_PER_DEGREE_LAT, lon=origin.lon)


def make_course(course_id: str, name: str = "Computer Science", **kwargs) -> Course:
    return Course(id=course_id, name=name, **kwargs)


def make_college(
    college_id: str,
    name: str | None = None,
    location: Coordinate = ORIGIN,
    rating: float | None = 4.0,
    courses: list[Course] | None = None,
    **kwargs,
) -> College:
    return College(
        id=college_id,
        name=name or college_id.title(),
        location=location,
        rating=rating,
        courses=courses or [make_course(f"{college_id}-cs")],
        **kwargs,
    )


@pytest.fixture(autouse=True)
def _reset_shared_state():
    clear_cache()
    clear_events()
    yield
    clear_cache()
    clear_events()
