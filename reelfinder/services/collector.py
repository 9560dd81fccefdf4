"""Paginated collection of titles from TMDb list endpoints.

TMDb list endpoints return 20 records per page and refuse pages past 500.
:func:`collect` walks pages in order until it holds ``quota`` valid titles,
runs out of pages, or the upstream returns an empty page.
"""

from __future__ import annotations

from typing import Any, Callable, List, Mapping, Optional

from loguru import logger

from .titles import Title, is_title_record, normalize

PAGE_CAP = 500
MAX_QUOTA = 100

FetchPage = Callable[[int], List[Title]]


def clamp_quota(value: Any, default: int, upper: int = MAX_QUOTA) -> int:
    """Parse a ``take``-style parameter and clamp it to ``[1, upper]``."""
    try:
        number = int(float(value)) if value not in (None, "") else default
    except (TypeError, ValueError, OverflowError):
        number = default
    return max(1, min(upper, number))


def collect(
    fetch_page: FetchPage,
    quota: int,
    page_cap: int = PAGE_CAP,
    keep: Optional[Callable[[Title], bool]] = None,
) -> List[Title]:
    """Gather up to ``quota`` titles with a valid id, page by page.

    :param fetch_page: Callable returning the normalized titles of one page
        (including invalid ones, so an empty list means the page was empty).
    :param quota: Maximum number of titles to return; callers clamp it.
    :param page_cap: Last page number that may be requested.
    :param keep: Optional filter; only titles passing it count towards the quota.
    """
    out: List[Title] = []
    page = 1
    while len(out) < quota and page <= page_cap:
        titles = fetch_page(page)
        if not titles:
            logger.debug(f"[Collector] page {page} empty, upstream exhausted")
            break
        for title in titles:
            if not title.is_valid or (keep is not None and not keep(title)):
                continue
            out.append(title)
            if len(out) >= quota:
                break
        page += 1
    logger.debug(f"[Collector] collected {len(out)}/{quota} over {page - 1} page(s)")
    return out


def page_fetcher(client, path: str, params: Mapping[str, Any] | None = None, media_type_hint: Any = None) -> FetchPage:
    """Build a ``fetch_page`` callable for ``collect`` over one TMDb list path."""
    base = dict(params or {})

    def fetch_page(page: int) -> List[Title]:
        records = client.fetch_results(path, {**base, "page": page})
        # people and other non-title records stay in the page as invalid titles
        return [normalize(r, media_type_hint) if is_title_record(r) else normalize(None) for r in records]

    return fetch_page
