from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Iterable, Protocol

import pandas as pd

from .config import DEFAULT_RECOMMENDATION_CONFIG
from .models import College, CollegeType, Coordinate, Course

logger = logging.getLogger(__name__)

CATALOG_COLUMNS: list[str] = [
    "college_id",
    "college_name",
    "college_type",
    "city",
    "state",
    "lat",
    "lon",
    "rating",
    "course_id",
    "course_name",
    "description",
    "degree",
    "fees",
    "seats",
    "tags",
    "medium",
]


class CatalogProvider(Protocol):
    def get_colleges(self) -> tuple[College, ...]:
        ...


def _optional(value):
    return None if pd.isna(value) else value


def _college_type(raw) -> CollegeType:
    try:
        return CollegeType(str(raw).strip().title())
    except ValueError:
        return CollegeType.other


def _build_course(row: pd.Series) -> Course:
    fees = _optional(row["fees"])
    seats = _optional(row["seats"])
    return Course(
        id=str(row["course_id"]),
        name=str(row["course_name"]),
        description=str(_optional(row["description"]) or ""),
        degree=str(_optional(row["degree"]) or ""),
        fees=int(fees) if fees is not None else None,
        seats=int(seats) if seats is not None else 0,
        tags=row["tags_list"],
        medium=_optional(row["medium"]),
    )


def colleges_from_dataframe(df: pd.DataFrame) -> tuple[College, ...]:
    """Group one-row-per-course records into College snapshots, keeping file order."""
    missing = [c for c in CATALOG_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Catalog is missing columns: {', '.join(missing)}")

    df = df.copy()
    df["tags_list"] = (
        df["tags"]
        .fillna("")
        .apply(lambda s: [t.strip().lower() for t in str(s).split(",") if t.strip()])
    )

    colleges: list[College] = []
    for college_id, rows in df.groupby("college_id", sort=False):
        first = rows.iloc[0]
        rating = _optional(first["rating"])
        colleges.append(College(
            id=str(college_id),
            name=str(first["college_name"]),
            location=Coordinate(lat=float(first["lat"]), lon=float(first["lon"])),
            city=str(_optional(first["city"]) or ""),
            state=str(_optional(first["state"]) or ""),
            rating=float(rating) if rating is not None else None,
            type=_college_type(first["college_type"]),
            courses=[_build_course(row) for _, row in rows.iterrows()],
        ))
    return tuple(colleges)


class CsvCatalog:
    """Catalog loaded from a CSV file on first access and kept in memory."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._colleges: tuple[College, ...] | None = None
        self._lock = threading.Lock()

    def _load(self) -> tuple[College, ...]:
        df = pd.read_csv(
            self.path,
            dtype={"college_id": str, "course_id": str, "medium": str},
        )
        colleges = colleges_from_dataframe(df)
        logger.info("Loaded %d colleges from %s", len(colleges), self.path)
        return colleges

    def get_colleges(self) -> tuple[College, ...]:
        with self._lock:
            if self._colleges is None:
                self._colleges = self._load()
            return self._colleges


class StaticCatalog:
    """In-memory catalog over an already built list of colleges."""

    def __init__(self, colleges: Iterable[College]) -> None:
        self._colleges = tuple(colleges)

    def get_colleges(self) -> tuple[College, ...]:
        return self._colleges


_default_catalog: CsvCatalog | None = None


def get_default_catalog() -> CsvCatalog:
    """Return the process-wide catalog over the bundled CSV."""
    global _default_catalog
    if _default_catalog is None:
        _default_catalog = CsvCatalog(DEFAULT_RECOMMENDATION_CONFIG.catalog_path)
    return _default_catalog
