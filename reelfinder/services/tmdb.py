"""TMDB API client.

This module wraps TheMovieDB (TMDB) v3 API with an API key. It is the only
place that talks to the network: every call adds the key and language,
drops empty parameters, and turns non-success responses into
:class:`~reelfinder.errors.UpstreamError` with the original status code so
the API layer can mirror it. See https://developer.themoviedb.org for API
documentation.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

import requests
from loguru import logger
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..config import Settings
from ..errors import ConfigurationError, UpstreamError

RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


def _decode_body(resp: requests.Response) -> Any:
    text = resp.text or ""
    if not text:
        return {}
    try:
        return resp.json()
    except ValueError:
        return {"error": text}


def _error_message(status: int, body: Any) -> str:
    detail = None
    if isinstance(body, dict):
        detail = body.get("status_message") or body.get("error")
    return f"TMDb error: {detail or status}"


class TMDBClient:
    def __init__(
        self,
        api_key: str,
        language: str = "en-US",
        region: str = "CA",
        timeout: float = 10.0,
        max_retries: int = 0,
        backoff_base: float = 0.5,
    ) -> None:
        self.api_key = api_key
        self.language = language
        self.region = region
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.base = "https://api.themoviedb.org/3"

        self.session = requests.Session()
        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=backoff_base,
            backoff_jitter=backoff_base,
            status_forcelist=sorted(RETRYABLE_STATUSES),
            allowed_methods=["GET"],
            respect_retry_after_header=True,
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    @classmethod
    def from_env(cls) -> "TMDBClient":
        return cls.from_settings(Settings.from_env())

    @classmethod
    def from_settings(cls, settings: Settings) -> "TMDBClient":
        return cls(
            api_key=settings.api_key,
            language=settings.language,
            region=settings.region,
            timeout=settings.timeout,
            max_retries=settings.max_retries,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _params(self, params: Mapping[str, Any] | None) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for key, value in (params or {}).items():
            if value is None or value == "":
                continue
            if isinstance(value, bool):
                value = "true" if value else "false"
            out[key] = value
        out["api_key"] = self.api_key
        if self.language and "language" not in out:
            out["language"] = self.language
        return out

    def fetch(self, path: str, params: Mapping[str, Any] | None = None) -> Dict[str, Any]:
        """GET ``path`` relative to the API base and return the decoded payload.

        :param path: Provider-relative path such as ``/movie/603/similar``.
        :param params: Extra query parameters; ``None`` and ``""`` are omitted.
        :raises ConfigurationError: If no API key is configured.
        :raises UpstreamError: On a non-2xx response or transport failure.
        """
        if not self.api_key:
            raise ConfigurationError(
                "TMDb API key missing. Set TMDB_API_KEY (or TMDB_KEY) in the environment."
            )
        url = f"{self.base}/{path.lstrip('/')}"
        query = self._params(params)
        logger.debug(f"[TMDB] GET {path} page={query.get('page', 1)}")
        try:
            resp = self.session.get(url, params=query, headers={"Accept": "application/json"}, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning(f"[TMDB] {path} transport failure: {exc}")
            raise UpstreamError(502, {"error": str(exc)}, f"TMDb unreachable: {exc}") from exc

        body = _decode_body(resp)
        if resp.ok:
            return body if isinstance(body, dict) else {"results": body}
        logger.warning(f"[TMDB] {path} failed with {resp.status_code}")
        raise UpstreamError(resp.status_code, body, _error_message(resp.status_code, body))

    def fetch_results(self, path: str, params: Mapping[str, Any] | None = None) -> List[Any]:
        data = self.fetch(path, params)
        results = data.get("results")
        return results if isinstance(results, list) else []

    def get_details(self, media_type: str, tmdb_id: int | str, **params: Any) -> Dict[str, Any]:
        return self.fetch(f"/{media_type}/{tmdb_id}", params)

    def get_watch_providers(self, media_type: str, tmdb_id: int | str) -> Dict[str, Any]:
        return self.fetch(f"/{media_type}/{tmdb_id}/watch/providers")
