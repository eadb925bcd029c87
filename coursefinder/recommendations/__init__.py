"""
College/course recommendation engine.

Responsibilities:
- Generate candidates concurrently from geographic, keyword and aptitude sources.
- Merge and de-duplicate candidates per (college, course).
- Filter, score and rank them with a weighted composite score.
- Relax the search radius when nothing matches, cache full result sets,
  and serve paginated slices.
"""
