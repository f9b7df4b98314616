"""Tests for search intent derivation and descriptions."""

from __future__ import annotations

import pytest

from app.intent import SearchIntent, SearchStrategy, YearRange


def test_year_range_rejects_inverted_bounds() -> None:
    with pytest.raises(ValueError):
        YearRange(1999, 1990)


def test_year_range_labels() -> None:
    assert YearRange(1980, 1989).label == "1980s"
    assert YearRange.single(1995).label == "1995"
    assert YearRange(1995, 1999).label == "1995-1999"
    assert YearRange(1980, 1989).describe() == "from the 1980s"
    assert YearRange.single(1995).describe() == "from 1995"
    assert YearRange(1995, 1999).describe() == "from 1995-1999"


def test_year_range_contains_requires_a_year() -> None:
    span = YearRange(1980, 1989)

    assert span.contains(1984)
    assert not span.contains(1990)
    assert not span.contains(None)


@pytest.mark.parametrize(
    ("fields", "expected"),
    [
        ({"actor_name": "tom hanks", "similar_to_title": "big"}, SearchStrategy.ACTOR),
        ({"director_name": "christopher nolan"}, SearchStrategy.KEYWORD),
        ({"franchise_name": "star wars", "genres": ["Sci-Fi"]}, SearchStrategy.KEYWORD),
        ({"similar_to_title": "john wick", "genres": ["Action"]}, SearchStrategy.TITLE),
        ({"country": "KR"}, SearchStrategy.ENDPOINT),
        ({"genres": ["Comedy"], "keywords": ["heist"]}, SearchStrategy.ENDPOINT),
        ({"keywords": ["submarine"]}, SearchStrategy.KEYWORD),
        ({"mood": "dark"}, SearchStrategy.FALLBACK),
        ({}, SearchStrategy.FALLBACK),
    ],
)
def test_strategy_precedence(fields: dict, expected: SearchStrategy) -> None:
    assert SearchIntent(**fields).search_strategy is expected


def test_mood_alone_is_not_valid_for_search() -> None:
    assert not SearchIntent(mood="dark").is_valid_for_search
    assert SearchIntent(keywords=["submarine"]).is_valid_for_search


def test_add_genre_keeps_detection_order_without_duplicates() -> None:
    intent = SearchIntent()
    for genre in ("Horror", "Comedy", "Horror"):
        intent.add_genre(genre)

    assert intent.genres == ["Horror", "Comedy"]


def test_description_joins_parts_in_fixed_order() -> None:
    intent = SearchIntent(
        genres=["Comedy"],
        mood="light",
        country="GB",
        content_type="series",
        year_range=YearRange(1990, 1999),
    )

    assert intent.search_description == (
        "comedy content (light mood) from the UK (series only) from the 1990s"
    )


def test_description_for_people_and_romantic_comedies() -> None:
    actor = SearchIntent(actor_name="tom hanks", content_type="movie")
    romcom = SearchIntent(genres=["Romance", "Comedy"])

    assert actor.search_description == "movies with Tom Hanks (movies only)"
    assert romcom.is_romantic_comedy
    assert romcom.search_description == "romantic comedies"


def test_description_defaults_when_nothing_was_understood() -> None:
    assert SearchIntent().search_description == "content matching your query"
    assert SearchIntent(content_type="movie").search_description == "movies"


def test_search_query_prefers_names_then_decade_and_genres() -> None:
    assert SearchIntent(director_name="greta gerwig").search_query() == "greta gerwig"
    assert (
        SearchIntent(genres=["Comedy"], year_range=YearRange(1980, 1989)).search_query()
        == "1980s comedy"
    )
    assert (
        SearchIntent(keywords=["heist", "vault", "crew", "ocean"]).search_query()
        == "heist vault crew"
    )


def test_payload_includes_derived_fields() -> None:
    payload = SearchIntent(genres=["Horror"], year_range=YearRange(1980, 1989)).to_payload()

    assert payload["yearRange"] == [1980, 1989]
    assert payload["strategy"] == "endpoint_search"
    assert payload["valid"] is True
    assert payload["description"] == "horror content from the 1980s"
