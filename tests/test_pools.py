import random
import threading

import pytest

from reelfinder.services.filters import FilterCriteria
from reelfinder.services.pools import dedup, gather, interleave, sample, sample_first
from reelfinder.services.titles import MediaType, Title


def t(id, media_type=MediaType.MOVIE, name=None, rating=7.0):
    return Title(id=id, media_type=media_type, title=name or f"t{id}", year=2000, rating=rating)


def test_dedup_first_occurrence_wins():
    items = [t(1, name="first"), t(2), t(1, name="second"), t(1, MediaType.TV), t(2)]
    out = dedup(items)
    assert [(x.media_type, x.id) for x in out] == [(MediaType.MOVIE, 1), (MediaType.MOVIE, 2), (MediaType.TV, 1)]
    assert out[0].title == "first"


def test_dedup_unique_input_unchanged():
    items = [t(1), t(2), t(1, MediaType.TV)]
    assert dedup(items) == items


def test_dedup_output_keys_are_unique():
    rng = random.Random(7)
    items = [t(rng.randint(1, 15), rng.choice(list(MediaType))) for _ in range(60)]
    out = dedup(items)
    assert len({x.key for x in out}) == len(out)
    assert len(out) <= len(items)


def test_sample_empty_pool():
    assert sample([]) is None


def test_sample_with_seeded_rng_is_deterministic():
    pool = [t(i) for i in range(10)]
    expected = pool[random.Random(42).randrange(10)]
    assert sample(pool, random.Random(42)) is expected


def test_sample_covers_the_pool():
    pool = [t(1), t(2), t(3)]
    rng = random.Random(0)
    seen = {sample(pool, rng).id for _ in range(200)}
    assert seen == {1, 2, 3}


def test_sample_first_falls_back_and_stops():
    fallback = [t(10), t(11)]
    touched = []

    def primary():
        touched.append("primary")
        return []

    def second():
        touched.append("fallback")
        return fallback

    def third():
        touched.append("third")
        return [t(99)]

    picked = sample_first([primary, second, third], FilterCriteria(year_min=None), random.Random(1))
    assert picked in fallback
    assert touched == ["primary", "fallback"]


def test_sample_first_filters_each_pool():
    primary = [t(1, rating=3.0)]
    fallback = [t(2, rating=8.0)]
    picked = sample_first([lambda: primary, lambda: fallback], FilterCriteria(min_rating=7, year_min=None))
    assert picked.id == 2


def test_sample_first_no_candidates():
    assert sample_first([lambda: [], lambda: [t(1, rating=2.0)]], FilterCriteria(min_rating=9)) is None


def test_interleave_uneven_lengths():
    a = [t(1), t(2), t(3)]
    b = [t(11, MediaType.TV), t(12, MediaType.TV)]
    assert [x.id for x in interleave(a, b, limit=10)] == [1, 11, 2, 12, 3]


@pytest.mark.parametrize("limit, expected", [(0, []), (1, [1]), (2, [1, 11]), (3, [1, 11, 2])])
def test_interleave_respects_limit(limit, expected):
    a = [t(1), t(2), t(3)]
    b = [t(11, MediaType.TV), t(12, MediaType.TV)]
    assert [x.id for x in interleave(a, b, limit)] == expected


def test_interleave_one_side_empty():
    assert [x.id for x in interleave([], [t(5), t(6)], 10)] == [5, 6]


def test_gather_runs_concurrently_and_keeps_order():
    barrier = threading.Barrier(2, timeout=5)

    def left():
        barrier.wait()
        return "left"

    def right():
        barrier.wait()
        return "right"

    assert gather(left, right) == ["left", "right"]


def test_gather_waits_for_all_then_raises():
    finished = []

    def boom():
        raise RuntimeError("upstream down")

    def slow():
        finished.append(True)
        return 1

    with pytest.raises(RuntimeError):
        gather(boom, slow)
    assert finished == [True]
