"""Title filters: minimum rating, release-year window, genre and media type.

A :class:`FilterCriteria` is parsed once per request. Only the criteria
that are switched on contribute a predicate, and the predicates are
AND-ed into a single pass over the pool.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional

from .titles import MediaType, Title

DEFAULT_YEAR_MIN = 1950

Predicate = Callable[[Title], bool]


def _number(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _year(value: Any) -> Optional[int]:
    number = _number(value)
    return int(number) if number is not None else None


def parse_genre(value: Any) -> Optional[int]:
    """Return a genre id, or None for "any" / blank / non-numeric input."""
    if isinstance(value, str) and value.strip().lower() in ("", "any"):
        return None
    number = _number(value)
    if number is None or not number.is_integer() or number <= 0:
        return None
    return int(number)


@dataclass(frozen=True)
class FilterCriteria:
    min_rating: float = 0.0
    year_min: Optional[int] = DEFAULT_YEAR_MIN
    year_max: Optional[int] = None
    genre: Optional[int] = None
    media_type: Optional[MediaType] = None

    @classmethod
    def from_query(
        cls,
        min_rating: Any = None,
        year_min: Any = None,
        year_max: Any = None,
        genre: Any = None,
        media_type: Any = None,
    ) -> "FilterCriteria":
        """Build criteria from raw query-string values, defaulting anything unparsable."""
        rating = _number(min_rating)
        low = _year(year_min)
        high = _year(year_max)
        if low is None:
            low = DEFAULT_YEAR_MIN
        return cls(
            min_rating=max(0.0, rating) if rating is not None else 0.0,
            year_min=low,
            year_max=high,
            genre=parse_genre(genre),
            media_type=MediaType.parse(media_type),
        )

    @property
    def filters_year(self) -> bool:
        return self.year_min is not None or self.year_max is not None


def build_predicates(criteria: FilterCriteria) -> List[Predicate]:
    predicates: List[Predicate] = []

    if criteria.min_rating > 0:
        min_rating = criteria.min_rating
        predicates.append(lambda t: t.rating is not None and t.rating >= min_rating)

    if criteria.filters_year:
        low = criteria.year_min if criteria.year_min is not None else -math.inf
        high = criteria.year_max if criteria.year_max is not None else math.inf
        predicates.append(lambda t: t.year is not None and low <= t.year <= high)

    if criteria.genre is not None:
        genre = criteria.genre
        predicates.append(lambda t: genre in t.genres)

    if criteria.media_type is not None:
        media_type = criteria.media_type
        predicates.append(lambda t: t.media_type is media_type)

    return predicates


def build_predicate(criteria: FilterCriteria) -> Predicate:
    predicates = build_predicates(criteria)
    return lambda title: all(p(title) for p in predicates)


def apply_filters(items: Iterable[Title], criteria: FilterCriteria) -> List[Title]:
    keep = build_predicate(criteria)
    return [t for t in items if keep(t)]
