"""
Static knowledge tables used by the text and semantic candidate generators.

``APTITUDE_TERMS`` maps an aptitude category (as produced by the quiz) to
the search terms that describe courses suited to it.  ``COURSE_AFFINITY``
maps a course name to how strongly it draws on each aptitude category
(0-1).  The affinity table is a hand-authored approximation of embedding
similarity; there is no trained model behind it.

Both tables are bundled into a ``KnowledgeBase`` carrying a version string
so callers (and tests) can swap in their own tables.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

KNOWLEDGE_VERSION = "2024.1"

APTITUDE_TERMS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "logical": ("computer", "programming", "software", "logic", "algorithm"),
    "creative": ("design", "art", "creative", "innovation", "visual"),
    "analytical": ("data", "analysis", "statistics", "research", "science"),
    "communication": ("media", "journalism", "marketing", "public relations"),
    "leadership": ("management", "business", "administration", "entrepreneurship"),
    "practical": ("engineering", "mechanical", "technical", "hands-on"),
    "scientific": ("biology", "chemistry", "physics", "research", "laboratory"),
    "humanities": ("literature", "history", "philosophy", "social"),
})

COURSE_AFFINITY: Mapping[str, Mapping[str, float]] = MappingProxyType({
    "Computer Science": {"logical": 0.9, "analytical": 0.8, "practical": 0.6},
    "Computer Science Engineering": {"logical": 0.9, "analytical": 0.8, "practical": 0.7},
    "Data Science": {"analytical": 0.9, "logical": 0.8, "scientific": 0.7},
    "Mechanical Engineering": {"practical": 0.9, "logical": 0.7, "scientific": 0.6},
    "Electrical Engineering": {"practical": 0.8, "logical": 0.8, "scientific": 0.6},
    "Civil Engineering": {"practical": 0.9, "analytical": 0.6, "logical": 0.6},
    "Business Administration": {"leadership": 0.9, "communication": 0.8, "analytical": 0.6},
    "Commerce": {"analytical": 0.7, "leadership": 0.6, "logical": 0.5},
    "Economics": {"analytical": 0.9, "logical": 0.7, "humanities": 0.5},
    "Fine Arts": {"creative": 0.9, "humanities": 0.7},
    "Fashion Design": {"creative": 0.9, "practical": 0.5, "communication": 0.4},
    "Psychology": {"humanities": 0.9, "communication": 0.7, "analytical": 0.6},
    "Media Studies": {"creative": 0.8, "communication": 0.9, "humanities": 0.6},
    "Journalism": {"communication": 0.9, "humanities": 0.7, "creative": 0.6},
    "International Relations": {"humanities": 0.8, "communication": 0.8, "leadership": 0.6},
    "Physics Honors": {"scientific": 0.9, "analytical": 0.8, "logical": 0.7},
    "Chemistry": {"scientific": 0.9, "analytical": 0.7, "practical": 0.5},
    "Biotechnology": {"scientific": 0.9, "analytical": 0.7, "practical": 0.6},
    "Medicine": {"scientific": 0.9, "practical": 0.7, "communication": 0.5},
    "English Literature": {"humanities": 0.9, "communication": 0.7, "creative": 0.6},
    "History": {"humanities": 0.9, "analytical": 0.5},
})


@dataclass(frozen=True)
class KnowledgeBase:
    version: str = KNOWLEDGE_VERSION
    aptitude_terms: Mapping[str, tuple[str, ...]] = field(default_factory=lambda: APTITUDE_TERMS)
    course_affinity: Mapping[str, Mapping[str, float]] = field(default_factory=lambda: COURSE_AFFINITY)

    def terms_for(self, category: str) -> tuple[str, ...]:
        return tuple(self.aptitude_terms.get(category, ()))

    def affinity_for(self, course_name: str) -> Mapping[str, float]:
        """Affinity row for a course name (case-insensitive); empty when unknown."""
        row = self.course_affinity.get(course_name)
        if row is not None:
            return row
        lowered = course_name.strip().lower()
        for name, candidate in self.course_affinity.items():
            if name.lower() == lowered:
                return candidate
        return {}


DEFAULT_KNOWLEDGE_BASE = KnowledgeBase()
