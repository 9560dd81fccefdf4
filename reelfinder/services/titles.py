"""Canonical title model and the TMDb record normalizer.

TMDb returns movies and TV series with different field names (``title`` /
``release_date`` versus ``name`` / ``first_air_date``). Every record that
enters the engine goes through :func:`normalize`, which maps either shape
onto one immutable :class:`Title` and fixes its media type once. Nothing
downstream looks at raw records again.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

IMG_BASE = "https://image.tmdb.org/t/p/w500"
PLACEHOLDER_TITLE = "Untitled"

_YEAR_RE = re.compile(r"\d{4}")


class MediaType(str, Enum):
    MOVIE = "movie"
    TV = "tv"

    @classmethod
    def parse(cls, value: Any) -> Optional["MediaType"]:
        """Return the member for ``value`` ("movie"/"tv", any case) or None."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return None
        return None


@dataclass(frozen=True)
class Title:
    id: Optional[int]
    media_type: MediaType
    title: str = PLACEHOLDER_TITLE
    year: Optional[int] = None
    rating: Optional[float] = None
    overview: str = ""
    poster: str = ""
    genres: FrozenSet[int] = field(default_factory=frozenset)

    @property
    def key(self) -> Tuple[MediaType, Optional[int]]:
        """Identity key: two titles are the same entity iff keys match."""
        return (self.media_type, self.id)

    @property
    def is_valid(self) -> bool:
        return bool(self.id)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.media_type.value,
            "title": self.title,
            "year": self.year,
            "rating": self.rating,
            "poster": self.poster,
            "overview": self.overview,
            "genres": sorted(self.genres),
        }


def poster_url(path: Any) -> str:
    return f"{IMG_BASE}{path}" if isinstance(path, str) and path else ""


def is_title_record(raw: Any) -> bool:
    """True unless the record is explicitly something other than a movie/TV title.

    Multi-search and trending responses mix in ``person`` entries.
    """
    if not isinstance(raw, dict):
        return False
    kind = raw.get("media_type")
    return kind is None or MediaType.parse(kind) is not None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_id(value: Any) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def _parse_year(value: Any) -> Optional[int]:
    if value is None:
        return None
    head = str(value)[:4]
    if not _YEAR_RE.fullmatch(head):
        return None
    return int(head)


def _parse_rating(value: Any) -> Optional[float]:
    if not _is_number(value) or not math.isfinite(value):
        return None
    return float(value)


def _parse_genres(raw: Dict[str, Any]) -> FrozenSet[int]:
    ids = raw.get("genre_ids")
    if isinstance(ids, list):
        return frozenset(int(g) for g in ids if _is_number(g) and float(g).is_integer())
    # Detail payloads carry [{"id": 28, "name": "Action"}, ...] instead
    objects = raw.get("genres")
    if isinstance(objects, list):
        return frozenset(
            g["id"] for g in objects if isinstance(g, dict) and _parse_id(g.get("id")) is not None
        )
    return frozenset()


def resolve_media_type(raw: Dict[str, Any], hint: Any = None) -> MediaType:
    explicit = MediaType.parse(hint) or MediaType.parse(raw.get("media_type"))
    if explicit is not None:
        return explicit
    return MediaType.MOVIE if raw.get("title") else MediaType.TV


def normalize(raw: Any, media_type_hint: Any = None) -> Title:
    """Map a raw TMDb movie or TV record onto a :class:`Title`.

    Never raises: every field has a safe default. Records without an integer
    ``id`` yield a Title with ``id=None`` which callers discard.
    """
    if not isinstance(raw, dict):
        raw = {}
    media_type = resolve_media_type(raw, media_type_hint)

    name = raw.get("title") or raw.get("name")
    if media_type is MediaType.MOVIE:
        date = raw.get("release_date") or raw.get("first_air_date")
    else:
        date = raw.get("first_air_date") or raw.get("release_date")

    overview = raw.get("overview")
    return Title(
        id=_parse_id(raw.get("id")),
        media_type=media_type,
        title=name if isinstance(name, str) and name.strip() else PLACEHOLDER_TITLE,
        year=_parse_year(date),
        rating=_parse_rating(raw.get("vote_average")),
        overview=overview if isinstance(overview, str) else "",
        poster=poster_url(raw.get("poster_path")),
        genres=_parse_genres(raw),
    )


def normalize_many(records: Iterable[Any], media_type_hint: Any = None) -> List[Title]:
    """Normalize the movie/TV records of a result list, skipping other kinds."""
    return [normalize(r, media_type_hint) for r in records if is_title_record(r)]
