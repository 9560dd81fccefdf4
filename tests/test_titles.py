import pytest

from reelfinder.services.titles import (
    IMG_BASE,
    PLACEHOLDER_TITLE,
    MediaType,
    Title,
    is_title_record,
    normalize,
    normalize_many,
)


def test_movie_record():
    t = normalize(
        {
            "id": 603,
            "title": "The Matrix",
            "release_date": "1999-03-30",
            "vote_average": 8.2,
            "genre_ids": [28, 878],
            "poster_path": "/matrix.jpg",
            "overview": "Neo.",
        }
    )
    assert t == Title(
        id=603,
        media_type=MediaType.MOVIE,
        title="The Matrix",
        year=1999,
        rating=8.2,
        overview="Neo.",
        poster=f"{IMG_BASE}/matrix.jpg",
        genres=frozenset({28, 878}),
    )


def test_tv_record_inferred_from_missing_title_field():
    t = normalize({"id": 1399, "name": "Game of Thrones", "first_air_date": "2011-04-17"})
    assert t.media_type is MediaType.TV
    assert t.title == "Game of Thrones"
    assert t.year == 2011


def test_hint_wins_over_record_shape():
    t = normalize({"id": 5, "title": "Looks like a movie"}, "tv")
    assert t.media_type is MediaType.TV


def test_record_media_type_used_without_hint():
    t = normalize({"id": 5, "name": "X", "media_type": "movie", "release_date": "2004-01-01"})
    assert t.media_type is MediaType.MOVIE
    assert t.year == 2004


@pytest.mark.parametrize("raw", [{}, {"id": 3}, {"title": "", "name": ""}, {"title": None}, None, "junk", 42])
def test_normalization_is_total(raw):
    t = normalize(raw)
    assert t.title == PLACEHOLDER_TITLE
    assert t.overview == ""
    assert t.poster == ""
    assert t.genres == frozenset()


@pytest.mark.parametrize("date", ["", None, "n/a", "19", "abcd-01-01", "199x-01-01"])
def test_unparsable_year_is_absent(date):
    assert normalize({"id": 1, "title": "x", "release_date": date}).year is None


@pytest.mark.parametrize("score", ["n/a", None, True, float("nan"), "7.5"])
def test_non_numeric_rating_is_absent(score):
    assert normalize({"id": 1, "title": "x", "vote_average": score}).rating is None


def test_integer_rating_becomes_float():
    assert normalize({"id": 1, "title": "x", "vote_average": 7}).rating == 7.0


def test_missing_or_bad_id_is_invalid():
    assert not normalize({"title": "x"}).is_valid
    assert not normalize({"id": "603", "title": "x"}).is_valid
    assert not normalize({"id": 0, "title": "x"}).is_valid
    assert normalize({"id": 603, "title": "x"}).is_valid


def test_detail_payload_genres():
    t = normalize({"id": 1, "title": "x", "genres": [{"id": 28, "name": "Action"}, {"name": "broken"}]})
    assert t.genres == frozenset({28})


def test_identity_key_ignores_other_fields():
    a = normalize({"id": 7, "title": "Old name", "vote_average": 5.0}, "movie")
    b = normalize({"id": 7, "title": "New name", "vote_average": 6.0}, "movie")
    c = normalize({"id": 7, "name": "Same id, other type"}, "tv")
    assert a.key == b.key
    assert a.key != c.key


def test_titles_are_immutable():
    t = normalize({"id": 1, "title": "x"})
    with pytest.raises(Exception):
        t.title = "y"


def test_as_dict_shape():
    d = normalize({"id": 9, "name": "Show", "genre_ids": [35, 18]}, "tv").as_dict()
    assert d == {
        "id": 9,
        "type": "tv",
        "title": "Show",
        "year": None,
        "rating": None,
        "poster": "",
        "overview": "",
        "genres": [18, 35],
    }


def test_person_records_are_skipped():
    records = [
        {"id": 1, "media_type": "person", "name": "Keanu Reeves"},
        {"id": 2, "media_type": "movie", "title": "Speed"},
        {"id": 3, "name": "Untyped show"},
        "garbage",
    ]
    assert not is_title_record(records[0])
    assert [t.id for t in normalize_many(records)] == [2, 3]
