"""Streaming provider and trailer helpers.

This module reshapes TMDB's per-title extras for the UI: the list of
services a title can be watched on in a given region, and the YouTube
video to use as its trailer.

TMDB groups providers by offer type (subscription, free, ads, rent, buy)
and the same service often appears under several of them. The merge keeps
the first occurrence so subscription services are listed first.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from .tmdb import TMDBClient

OFFER_TYPES = ("flatrate", "free", "ads", "rent", "buy")


def merge_watch_providers(payload: Dict[str, Any], region: str) -> Dict[str, Any]:
    """Return ``{"providers": [...], "link": url}`` for one region.

    :param payload: Raw ``/watch/providers`` response.
    :param region: ISO 3166-1 country code, e.g. "CA".
    """
    results = payload.get("results") if isinstance(payload, dict) else None
    block = results.get(region.upper()) if isinstance(results, dict) else None
    if not isinstance(block, dict):
        return {"providers": [], "link": None}

    providers: List[Dict[str, Any]] = []
    seen = set()
    for offer in OFFER_TYPES:
        for p in block.get(offer) or []:
            if not isinstance(p, dict):
                continue
            key = p.get("provider_id") or p.get("provider_name")
            if not key or key in seen:
                continue
            seen.add(key)
            providers.append(p)
    return {"providers": providers, "link": block.get("link") or None}


def list_watch_providers(tmdb: TMDBClient, media_type: str, tmdb_id: int | str, region: str | None = None) -> Dict[str, Any]:
    payload = tmdb.get_watch_providers(media_type=media_type, tmdb_id=tmdb_id)
    return merge_watch_providers(payload, region or tmdb.region)


def pick_trailer(videos: Any) -> Optional[Dict[str, Any]]:
    """Choose the YouTube trailer, else teaser, else any YouTube video."""
    results = videos.get("results") if isinstance(videos, dict) else None
    youtube = [v for v in results or [] if isinstance(v, dict) and v.get("site") == "YouTube" and v.get("key")]
    for kind in ("Trailer", "Teaser"):
        for video in youtube:
            if video.get("type") == kind:
                return video
    return youtube[0] if youtube else None


def trailer_summary(videos: Any) -> Dict[str, Any]:
    video = pick_trailer(videos)
    if video is None:
        return {"key": None}
    return {
        "key": video["key"],
        "name": video.get("name") or "",
        "site": video.get("site"),
        "type": video.get("type"),
    }
