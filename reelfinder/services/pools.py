"""Operations over pools of titles.

A pool is an ordered list of :class:`Title` values from one logical
upstream query. The helpers here never mutate their input; each returns a
new list (or a single element).
"""

from __future__ import annotations

import random
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, Optional, Sequence, TypeVar

from loguru import logger

from .filters import FilterCriteria, apply_filters
from .titles import Title

T = TypeVar("T")


def dedup(items: Iterable[Title]) -> List[Title]:
    """Drop repeated titles by identity key; the first occurrence wins."""
    seen = set()
    out: List[Title] = []
    for item in items:
        if item.key in seen:
            continue
        seen.add(item.key)
        out.append(item)
    return out


def sample(pool: Sequence[Title], rng: Optional[random.Random] = None) -> Optional[Title]:
    """Pick one title uniformly at random, or None for an empty pool."""
    if not pool:
        return None
    rng = rng or random.Random()
    return pool[rng.randrange(len(pool))]


def sample_first(
    pools: Iterable[Callable[[], List[Title]]],
    criteria: FilterCriteria,
    rng: Optional[random.Random] = None,
) -> Optional[Title]:
    """Sample from the first pool that still has candidates after filtering.

    Pools are zero-argument callables evaluated in order, so a fallback pool
    is only fetched when every pool before it came up empty.
    """
    for index, load in enumerate(pools):
        candidates = dedup(apply_filters(load(), criteria))
        logger.debug(f"[Sampler] pool {index} has {len(candidates)} candidate(s)")
        if candidates:
            return sample(candidates, rng)
    return None


def interleave(a: Sequence[Title], b: Sequence[Title], limit: int) -> List[Title]:
    """Alternate ``a[i]``, ``b[i]`` until ``limit`` items or both run out."""
    out: List[Title] = []
    for i in range(max(len(a), len(b))):
        if len(out) >= limit:
            break
        if i < len(a):
            out.append(a[i])
        if i < len(b) and len(out) < limit:
            out.append(b[i])
    return out


def gather(*calls: Callable[[], T]) -> List[T]:
    """Run independent upstream calls concurrently and join on all of them.

    Results come back in argument order. If any call raised, the first
    failure (in argument order) is re-raised once every call has finished.
    """
    if len(calls) <= 1:
        return [call() for call in calls]
    with ThreadPoolExecutor(max_workers=len(calls)) as executor:
        futures = [executor.submit(call) for call in calls]
    return [future.result() for future in futures]
