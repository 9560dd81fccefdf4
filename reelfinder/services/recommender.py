"""Title aggregation flows behind the API routes.

The recommender turns one request into upstream queries and reshapes the
answers: it builds pools with the paginated collector, filters them,
deduplicates and interleaves them, or samples one title for a random pick.
Every flow is stateless; the only thing a :class:`Recommender` holds is
its TMDB client.
"""

from __future__ import annotations

import random
from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from ..errors import InvalidInputError, NotFoundResult
from .collector import collect, page_fetcher
from .filters import FilterCriteria, apply_filters, build_predicate
from .pools import dedup, gather, interleave, sample_first
from .provider import list_watch_providers, pick_trailer, trailer_summary
from .titles import MediaType, Title, normalize, normalize_many, poster_url
from .tmdb import TMDBClient

SEARCH_LIMIT = 12
SUGGEST_LIMIT = 10
SUGGEST_MIN_CHARS = 2
SIMILAR_LIMIT = 20
SIMILAR_PAGE_CAP = 3
RANDOM_TRENDING_QUOTA = 60
RANDOM_POPULAR_QUOTA = 50

DISCOVER_TYPES = ("movie", "tv", "both")


def _valid(titles: List[Title]) -> List[Title]:
    return [t for t in titles if t.is_valid]


class Recommender:
    def __init__(self, tmdb: TMDBClient) -> None:
        self.tmdb = tmdb

    # Search

    def _multi_search(self, query: str, limit: int) -> List[Title]:
        records = self.tmdb.fetch_results(
            "/search/multi", {"query": query, "include_adult": False, "page": 1}
        )
        items = apply_filters(_valid(normalize_many(records)), FilterCriteria())
        return dedup(items)[:limit]

    def search(self, query: str) -> Tuple[Optional[Title], List[Title]]:
        """Search movies and TV by name; the best match doubles as the target."""
        query = (query or "").strip()
        if not query:
            raise InvalidInputError("Missing q")
        items = self._multi_search(query, SEARCH_LIMIT)
        logger.info(f"[Recommender] search {query!r} -> {len(items)} item(s)")
        return (items[0] if items else None), items

    def suggest(self, query: str) -> List[Title]:
        query = (query or "").strip()
        if len(query) < SUGGEST_MIN_CHARS:
            return []
        return self._multi_search(query, SUGGEST_LIMIT)

    # Similar

    def similar(
        self, tmdb_id: int, media_type: MediaType, criteria: FilterCriteria
    ) -> Tuple[Title, List[Title]]:
        """Titles TMDB lists as similar to (or recommended after) a seed title.

        Both lists are collected concurrently, similar first, and upstream
        rank is preserved through filtering and deduplication.
        """
        keep = build_predicate(criteria)
        kind = media_type.value

        def pool(suffix: str):
            fetch_page = page_fetcher(self.tmdb, f"/{kind}/{tmdb_id}/{suffix}", media_type_hint=media_type)
            return lambda: collect(fetch_page, SIMILAR_LIMIT, page_cap=SIMILAR_PAGE_CAP, keep=keep)

        raw_target, similar, recommended = gather(
            lambda: self.tmdb.get_details(kind, tmdb_id),
            pool("similar"),
            pool("recommendations"),
        )
        target = normalize(raw_target, media_type)
        items = dedup(similar + recommended)[:SIMILAR_LIMIT]
        logger.info(
            f"[Recommender] similar {kind}/{tmdb_id}: {len(similar)} similar + "
            f"{len(recommended)} recommended -> {len(items)}"
        )
        return target, items

    # Random

    def _trending_pool(self) -> List[Title]:
        return collect(page_fetcher(self.tmdb, "/trending/all/week"), RANDOM_TRENDING_QUOTA)

    def _popular_pool(self) -> List[Title]:
        movies, tv = self._popular_both(RANDOM_POPULAR_QUOTA)
        return movies + tv

    def random_pick(self, criteria: FilterCriteria, rng: Optional[random.Random] = None) -> Title:
        """Pick a random title from trending, falling back to popular movies and TV.

        :raises NotFoundResult: If neither pool has a title matching ``criteria``.
        """
        target = sample_first([self._trending_pool, self._popular_pool], criteria, rng)
        if target is None:
            raise NotFoundResult("No results for filters")
        logger.info(f"[Recommender] random pick {target.media_type.value}/{target.id}")
        return target

    # Genre

    def _discover_params(self, media_type: MediaType, genre: int, criteria: FilterCriteria) -> Dict[str, Any]:
        date_field = "primary_release_date" if media_type is MediaType.MOVIE else "first_air_date"
        params: Dict[str, Any] = {
            "with_genres": genre,
            "sort_by": "popularity.desc",
            "include_adult": False,
        }
        if criteria.min_rating > 0:
            params["vote_average.gte"] = criteria.min_rating
        if criteria.year_min is not None:
            params[f"{date_field}.gte"] = f"{criteria.year_min}-01-01"
        if criteria.year_max is not None:
            params[f"{date_field}.lte"] = f"{criteria.year_max}-12-31"
        return params

    def by_genre(self, genre: int, media: Optional[MediaType], criteria: FilterCriteria, take: int) -> List[Title]:
        """Popular titles in one genre; with no media type, movies and TV interleaved."""
        criteria = replace(criteria, genre=genre)
        keep = build_predicate(criteria)

        def pool(media_type: MediaType):
            path = f"/discover/{media_type.value}"
            fetch_page = page_fetcher(self.tmdb, path, self._discover_params(media_type, genre, criteria), media_type)
            return lambda: dedup(collect(fetch_page, take, keep=keep))

        if media is not None:
            return pool(media)()
        movies, tv = gather(pool(MediaType.MOVIE), pool(MediaType.TV))
        return interleave(movies, tv, take)

    # Popular

    def _popular_both(self, take: int) -> Tuple[List[Title], List[Title]]:
        movies, tv = gather(
            lambda: collect(page_fetcher(self.tmdb, "/movie/popular", media_type_hint=MediaType.MOVIE), take),
            lambda: collect(page_fetcher(self.tmdb, "/tv/popular", media_type_hint=MediaType.TV), take),
        )
        return movies, tv

    def popular(self, take: int, media: Optional[MediaType] = None) -> Tuple[List[Title], List[Title]]:
        """Popular movies and TV, each up to ``take``; either call failing fails both."""
        if media is MediaType.MOVIE:
            movies = collect(page_fetcher(self.tmdb, "/movie/popular", media_type_hint=MediaType.MOVIE), take)
            return dedup(movies), []
        if media is MediaType.TV:
            return [], dedup(collect(page_fetcher(self.tmdb, "/tv/popular", media_type_hint=MediaType.TV), take))
        movies, tv = self._popular_both(take)
        return dedup(movies), dedup(tv)

    # Discover

    def discover(
        self,
        kind: str = "both",
        keywords: str = "",
        genres: str = "",
        sort: str = "popularity.desc",
        min_votes: Any = 50,
        region: str = "",
        page: Any = 1,
    ) -> List[Title]:
        """One page of TMDB discover for movies, TV or both, deduplicated."""
        kind = (kind or "both").lower()
        if kind not in DISCOVER_TYPES:
            raise InvalidInputError("Invalid type")
        params = {
            "page": page or 1,
            "sort_by": sort or "popularity.desc",
            "vote_count.gte": min_votes,
            "watch_region": region or self.tmdb.region,
            "with_keywords": keywords,
            "with_genres": genres,
        }
        kinds = [MediaType.MOVIE, MediaType.TV] if kind == "both" else [MediaType(kind)]
        pages = gather(
            *[lambda m=m: normalize_many(self.tmdb.fetch_results(f"/discover/{m.value}", params), m) for m in kinds]
        )
        return dedup(_valid([t for titles in pages for t in titles]))

    # Single-title lookups

    def resolve(self, tmdb_id: int, media_type: MediaType) -> Dict[str, Any]:
        """Title details plus its trailer key and TMDB page link."""
        raw = self.tmdb.get_details(media_type.value, tmdb_id, append_to_response="videos")
        title = normalize(raw, media_type)
        video = pick_trailer(raw.get("videos"))
        target = title.as_dict()
        target["trailerKey"] = video["key"] if video else ""
        target["tmdbUrl"] = f"https://www.themoviedb.org/{media_type.value}/{title.id}"
        return target

    def videos(self, tmdb_id: int, media_type: MediaType) -> Dict[str, Any]:
        return trailer_summary(self.tmdb.fetch(f"/{media_type.value}/{tmdb_id}/videos"))

    def providers(self, tmdb_id: int, media_type: MediaType, region: Optional[str] = None) -> Dict[str, Any]:
        return list_watch_providers(self.tmdb, media_type.value, tmdb_id, region)

    # Reference lists

    def genres(self) -> Dict[str, List[Dict[str, Any]]]:
        movie_data, tv_data = gather(
            lambda: self.tmdb.fetch("/genre/movie/list"),
            lambda: self.tmdb.fetch("/genre/tv/list"),
        )
        movie = movie_data.get("genres") if isinstance(movie_data.get("genres"), list) else []
        tv = tv_data.get("genres") if isinstance(tv_data.get("genres"), list) else []
        combined = [{"id": g.get("id"), "name": g.get("name"), "type": "movie"} for g in movie]
        combined += [{"id": g.get("id"), "name": g.get("name"), "type": "tv"} for g in tv]
        return {"movie": movie, "tv": tv, "all": combined}

    def keywords(self, query: str) -> List[Any]:
        query = (query or "").strip()
        if not query:
            raise InvalidInputError("Missing q")
        return self.tmdb.fetch_results("/search/keyword", {"query": query})

    # People

    def person_search(self, query: str) -> List[Dict[str, Any]]:
        query = (query or "").strip()
        if not query:
            raise InvalidInputError("Missing q")
        people = self.tmdb.fetch_results("/search/person", {"query": query, "include_adult": False})
        out = []
        for person in people:
            if not isinstance(person, dict) or not person.get("id"):
                continue
            known_for = person.get("known_for") if isinstance(person.get("known_for"), list) else []
            out.append(
                {
                    "id": person["id"],
                    "name": person.get("name") or "",
                    "department": person.get("known_for_department") or "",
                    "profile": poster_url(person.get("profile_path")),
                    "knownFor": [t.as_dict() for t in _valid(normalize_many(known_for))],
                }
            )
        return out

    def person_credits(self, person_id: int) -> List[Title]:
        """Movies and shows a person appears in or worked on, best rated first."""
        data = self.tmdb.fetch(f"/person/{person_id}/combined_credits")
        records: List[Any] = []
        for part in ("cast", "crew"):
            if isinstance(data.get(part), list):
                records.extend(data[part])
        titles = dedup(_valid(normalize_many(records)))
        return sorted(titles, key=lambda t: t.rating if t.rating is not None else -1.0, reverse=True)
