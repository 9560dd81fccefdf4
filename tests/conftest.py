from typing import Any, Callable, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from reelfinder.main import app, get_recommender
from reelfinder.services.recommender import Recommender
from reelfinder.services.tmdb import TMDBClient


class FakeTMDB(TMDBClient):
    """TMDB client answering from an in-memory route table.

    Route values are a payload dict, a callable taking the params, or an
    exception instance to raise. Unknown paths return an empty result list.
    """

    def __init__(self, routes: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(api_key="test-key")
        self.routes = dict(routes or {})
        self.calls: List[tuple] = []

    def fetch(self, path: str, params=None) -> Dict[str, Any]:
        params = dict(params or {})
        self.calls.append((path, params))
        handler = self.routes.get(path)
        if handler is None:
            return {"results": []}
        if isinstance(handler, Exception):
            raise handler
        if callable(handler):
            return handler(params)
        return handler

    def paths(self) -> List[str]:
        return [path for path, _ in self.calls]


def paged(pages: List[List[Dict[str, Any]]]) -> Callable[[Dict[str, Any]], Dict[str, Any]]:
    """Serve ``pages[n - 1]`` for ``page=n`` and an empty page afterwards."""

    def handler(params: Dict[str, Any]) -> Dict[str, Any]:
        page = int(params.get("page", 1))
        return {"page": page, "results": pages[page - 1] if page <= len(pages) else []}

    return handler


def movie(id: int, rating: Any = 7.0, year: Any = 2001, genres=(28,), title: str = None) -> Dict[str, Any]:
    return {
        "id": id,
        "title": title or f"Movie {id}",
        "release_date": f"{year}-05-01" if year is not None else "",
        "vote_average": rating,
        "genre_ids": list(genres),
        "poster_path": f"/m{id}.jpg",
        "overview": f"Overview {id}",
    }


def show(id: int, rating: Any = 7.0, year: Any = 2005, genres=(18,), name: str = None) -> Dict[str, Any]:
    return {
        "id": id,
        "name": name or f"Show {id}",
        "first_air_date": f"{year}-01-10" if year is not None else "",
        "vote_average": rating,
        "genre_ids": list(genres),
        "poster_path": None,
        "overview": "",
    }


@pytest.fixture
def fake_tmdb():
    return FakeTMDB()


@pytest.fixture
def client(fake_tmdb):
    app.dependency_overrides[get_recommender] = lambda: Recommender(tmdb=fake_tmdb)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
