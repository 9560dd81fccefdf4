"""Main FastAPI application for reelfinder.

This module defines the JSON API consumed by the browser UI: search and
suggestions, similar titles for a seed, random picks, genre and popular
browsing, discover presets, and per-title extras (trailer, providers).
Routes only parse query strings and serialize results; the aggregation
logic lives in :mod:`reelfinder.services.recommender`.

Every route is served both at the root and under ``/api``.
"""

from __future__ import annotations

import os
import random
from typing import Any, Dict, Iterable, List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from .config import Settings, configure_logging
from .errors import InvalidInputError, ReelfinderError
from .services.collector import clamp_quota
from .services.filters import FilterCriteria, parse_genre
from .services.recommender import Recommender
from .services.titles import MediaType, Title
from .services.tmdb import TMDBClient

DEFAULT_TAKE = 50
POPULAR_CACHE = "s-maxage=300, stale-while-revalidate=600"
GENRES_CACHE = "s-maxage=86400, stale-while-revalidate=604800"

settings = Settings.from_env()
configure_logging(settings.log_level)

app = FastAPI(title="reelfinder", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)

# Create the client from environment
tmdb = TMDBClient.from_settings(settings)
if not tmdb.configured:
    logger.warning("[API] TMDB_API_KEY is not set; upstream requests will fail with 500")

router = APIRouter()


def get_recommender() -> Recommender:
    return Recommender(tmdb=tmdb)


def get_rng() -> random.Random:
    return random.Random()


@app.exception_handler(ReelfinderError)
async def reelfinder_error_handler(request: Request, exc: ReelfinderError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"[API] {request.url.path} -> {exc.status_code}: {exc.message}")
    else:
        logger.info(f"[API] {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"[API] Unexpected error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": str(exc) or "Server error"})


def _dump(titles: Iterable[Title]) -> List[Dict[str, Any]]:
    return [t.as_dict() for t in titles]


def _tmdb_id(value: Optional[str]) -> int:
    value = (value or "").strip()
    if not value:
        raise InvalidInputError("Missing id")
    if not (value.isascii() and value.isdecimal()):
        raise InvalidInputError("Invalid id")
    return int(value)


def _media_type(value: Optional[str], default: MediaType = MediaType.MOVIE) -> MediaType:
    if value is None or not value.strip():
        return default
    media_type = MediaType.parse(value)
    if media_type is None:
        raise InvalidInputError("Invalid type")
    return media_type


def _required(value: Optional[str], name: str) -> str:
    value = (value or "").strip()
    if not value:
        raise InvalidInputError(f"Missing {name}")
    return value


@router.get("/health")
def health() -> Dict[str, Any]:
    """Return minimal health info for liveness/readiness probes."""
    return {"status": "ok", "configured": tmdb.configured}


@router.get("/search")
def search(q: Optional[str] = None, reco: Recommender = Depends(get_recommender)) -> Dict[str, Any]:
    target, items = reco.search(_required(q, "q"))
    payload = _dump(items)
    return {"target": target.as_dict() if target else None, "items": payload, "results": payload}


@router.get("/suggest")
def suggest(q: Optional[str] = None, reco: Recommender = Depends(get_recommender)) -> Dict[str, Any]:
    return {"results": _dump(reco.suggest(_required(q, "q")))}


@router.get("/similar")
def similar(
    id: Optional[str] = None,
    type: Optional[str] = None,
    minRating: Optional[str] = None,
    genre: Optional[str] = None,
    yearMin: Optional[str] = None,
    yearMax: Optional[str] = None,
    reco: Recommender = Depends(get_recommender),
) -> Dict[str, Any]:
    """Titles similar to the seed ``id``, filtered by rating, genre and year window."""
    tmdb_id = _tmdb_id(id)
    media_type = _media_type(type)
    criteria = FilterCriteria.from_query(min_rating=minRating, year_min=yearMin, year_max=yearMax, genre=genre)
    target, items = reco.similar(tmdb_id, media_type, criteria)
    logger.info(f"[API] /similar {media_type.value}/{tmdb_id} served {len(items)} item(s)")
    payload = _dump(items)
    return {"target": target.as_dict(), "similar": payload, "results": payload}


@router.get("/random")
def random_pick(
    minRating: Optional[str] = None,
    genre: Optional[str] = None,
    yearMin: Optional[str] = None,
    yearMax: Optional[str] = None,
    mediaType: Optional[str] = None,
    reco: Recommender = Depends(get_recommender),
    rng: random.Random = Depends(get_rng),
) -> Dict[str, Any]:
    criteria = FilterCriteria.from_query(
        min_rating=minRating, year_min=yearMin, year_max=yearMax, genre=genre, media_type=mediaType
    )
    return {"target": reco.random_pick(criteria, rng).as_dict()}


@router.get("/genre")
def genre_titles(
    genre: Optional[str] = None,
    media: Optional[str] = None,
    minRating: Optional[str] = None,
    yearMin: Optional[str] = None,
    take: Optional[str] = None,
    reco: Recommender = Depends(get_recommender),
) -> Dict[str, Any]:
    genre_id = parse_genre(genre)
    if genre_id is None:
        raise InvalidInputError("genre is required")
    media_type = None if (media or "any").strip().lower() == "any" else _media_type(media)
    criteria = FilterCriteria.from_query(min_rating=minRating, year_min=yearMin)
    results = reco.by_genre(genre_id, media_type, criteria, clamp_quota(take, DEFAULT_TAKE))
    logger.info(f"[API] /genre {genre_id} media={media or 'any'} served {len(results)} item(s)")
    return {"results": _dump(results)}


def _popular(response: Response, reco: Recommender, take: Optional[str], media: Optional[MediaType]) -> Dict[str, Any]:
    movies, tv = reco.popular(clamp_quota(take, DEFAULT_TAKE), media)
    response.headers["Cache-Control"] = POPULAR_CACHE
    return {"movies": _dump(movies), "tv": _dump(tv)}


@router.get("/popular")
def popular(
    response: Response,
    take: Optional[str] = None,
    media: Optional[str] = None,
    reco: Recommender = Depends(get_recommender),
) -> Dict[str, Any]:
    media_type = None if (media or "any").strip().lower() == "any" else _media_type(media)
    return _popular(response, reco, take, media_type)


@router.get("/popular-movies")
def popular_movies(response: Response, take: Optional[str] = None, reco: Recommender = Depends(get_recommender)) -> Dict[str, Any]:
    return _popular(response, reco, take, MediaType.MOVIE)


@router.get("/popular-tv")
def popular_tv(response: Response, take: Optional[str] = None, reco: Recommender = Depends(get_recommender)) -> Dict[str, Any]:
    return _popular(response, reco, take, MediaType.TV)


@router.get("/discover")
def discover(
    type: str = "both",
    keywords: str = "",
    genres: str = "",
    sort: str = "popularity.desc",
    minVotes: str = "50",
    region: str = "",
    page: str = "1",
    reco: Recommender = Depends(get_recommender),
) -> Dict[str, Any]:
    items = reco.discover(type, keywords, genres, sort, minVotes, region, page)
    return {"items": _dump(items)}


@router.get("/resolve")
def resolve(id: Optional[str] = None, type: Optional[str] = None, reco: Recommender = Depends(get_recommender)) -> Dict[str, Any]:
    return {"target": reco.resolve(_tmdb_id(id), _media_type(type))}


@router.get("/videos")
def videos(id: Optional[str] = None, type: Optional[str] = None, reco: Recommender = Depends(get_recommender)) -> Dict[str, Any]:
    return reco.videos(_tmdb_id(id), _media_type(type))


@router.get("/providers")
def providers(
    id: Optional[str] = None,
    type: Optional[str] = None,
    region: Optional[str] = None,
    reco: Recommender = Depends(get_recommender),
) -> Dict[str, Any]:
    return reco.providers(_tmdb_id(id), _media_type(type), region)


@router.get("/genres")
def genres(response: Response, reco: Recommender = Depends(get_recommender)) -> Dict[str, Any]:
    data = reco.genres()
    response.headers["Cache-Control"] = GENRES_CACHE
    return data


@router.get("/keywords")
def keywords(q: Optional[str] = None, reco: Recommender = Depends(get_recommender)) -> Dict[str, Any]:
    return {"results": reco.keywords(q or "")}


@router.get("/person_search")
def person_search(q: Optional[str] = None, reco: Recommender = Depends(get_recommender)) -> Dict[str, Any]:
    return {"results": reco.person_search(q or "")}


@router.get("/person_credits")
def person_credits(id: Optional[str] = None, reco: Recommender = Depends(get_recommender)) -> Dict[str, Any]:
    return {"items": _dump(reco.person_credits(_tmdb_id(id)))}


app.include_router(router)
app.include_router(router, prefix="/api")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", "8000")))
