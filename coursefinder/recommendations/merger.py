from __future__ import annotations

from typing import Iterable

from .models import Candidate, MergedCandidate


def merge_candidates(*streams: Iterable[Candidate]) -> list[MergedCandidate]:
    """
    Union candidate streams keyed by (college id, course id).

    A repeated key adds its source and overwrites that source's score; any
    distance seen for the key is kept.  The result does not depend on the
    order of the streams and is returned sorted by key.
    """
    merged: dict[tuple[str, str], MergedCandidate] = {}
    for stream in streams:
        for candidate in stream:
            entry = merged.get(candidate.key)
            if entry is None:
                entry = MergedCandidate(college=candidate.college, course=candidate.course)
                merged[candidate.key] = entry
            entry.sources.add(candidate.source)
            entry.scores[candidate.source] = candidate.score
            if candidate.distance_km is not None:
                entry.distance_km = candidate.distance_km
    return [merged[key] for key in sorted(merged)]
