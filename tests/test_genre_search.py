"""Tests for the era-diversified genre search strategy."""

from __future__ import annotations

from typing import Any

import pytest

from app.intent import YearRange
from app.models import CatalogRecord
from app.search_profiles import find_specialty
from app.services.catalog import CatalogUnavailableError, DiscoverQuery
from app.services.genre_search import GenreSearchStrategy, mentions_superhero

from conftest import FakeCatalogClient, build_movie, build_series


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


BUCKET_RATINGS: dict[int, list[float]] = {
    2015: [7.8, 7.6, 7.5, 7.0, 6.8],
    2000: [7.7, 7.3, 7.1, 6.9, 6.7],
    1990: [7.25, 7.2, 7.1],
    1980: [7.4, 6.9, 6.8],
}


def era_handler(kind: str, query: DiscoverQuery) -> list[dict[str, Any]]:
    assert query.year_range is not None
    start = query.year_range.start
    return [
        build_movie(start * 10 + index, f"{start} pick {index}", start, rating)
        for index, rating in enumerate(BUCKET_RATINGS.get(start, []))
    ]


@pytest.mark.anyio("asyncio")
async def test_by_genre_queries_every_era_with_vote_floors(
    catalog_client: FakeCatalogClient,
) -> None:
    catalog_client.discover_handler = era_handler
    strategy = GenreSearchStrategy(catalog_client, "movie")

    await strategy.by_genre("Comedy")

    queries = {query.year_range: query for _, query in catalog_client.discover_calls}
    assert set(queries) == {
        YearRange(2015, 2024),
        YearRange(2000, 2014),
        YearRange(1990, 1999),
        YearRange(1980, 1989),
    }
    assert queries[YearRange(2015, 2024)].min_votes == 200
    assert queries[YearRange(1980, 1989)].min_votes == 50
    assert queries[YearRange(1990, 1999)].min_rating == 7.0
    assert all(query.genre_ids == (35,) for query in queries.values())
    assert all(query.sort_by == "vote_average.desc" for query in queries.values())
    assert all(query.original_language == "en" for query in queries.values())


@pytest.mark.anyio("asyncio")
async def test_by_genre_caps_each_era_and_boosts_classics(
    catalog_client: FakeCatalogClient,
) -> None:
    catalog_client.discover_handler = era_handler
    strategy = GenreSearchStrategy(catalog_client, "movie")

    records = await strategy.by_genre("Comedy")

    assert len(records) == 3 + 3 + 2 + 2
    years = [record.year for record in records]
    assert years.count(2015) == 3
    assert years.count(1980) == 2
    # 7.4 plus the classics bonus outranks the best modern 7.8.
    assert records[0].id == 19800
    assert records[1].id == 20150


@pytest.mark.anyio("asyncio")
async def test_by_genre_without_classics_ranks_by_rating(
    catalog_client: FakeCatalogClient,
) -> None:
    def handler(kind: str, query: DiscoverQuery) -> list[dict[str, Any]]:
        assert query.year_range is not None
        if query.year_range.start == 1980:
            return [build_movie(1, "Old Action", 1985, 7.9)]
        if query.year_range.start == 2015:
            return [build_movie(2, "New Action", 2020, 8.1)]
        return []

    catalog_client.discover_handler = handler
    strategy = GenreSearchStrategy(catalog_client, "movie")

    records = await strategy.by_genre("Action")

    assert [record.id for record in records] == [2, 1]


@pytest.mark.anyio("asyncio")
async def test_failed_era_is_skipped(catalog_client: FakeCatalogClient) -> None:
    def handler(kind: str, query: DiscoverQuery) -> list[dict[str, Any]]:
        assert query.year_range is not None
        if query.year_range.start == 1990:
            raise CatalogUnavailableError("catalog timed out")
        return era_handler(kind, query)

    catalog_client.discover_handler = handler
    strategy = GenreSearchStrategy(catalog_client, "movie")

    records = await strategy.by_genre("Comedy")

    assert len(records) == 8
    assert all(record.year != 1990 for record in records)


@pytest.mark.anyio("asyncio")
async def test_unexpected_era_error_propagates(catalog_client: FakeCatalogClient) -> None:
    def handler(kind: str, query: DiscoverQuery) -> list[dict[str, Any]]:
        raise ValueError("broken handler")

    catalog_client.discover_handler = handler
    strategy = GenreSearchStrategy(catalog_client, "movie")

    with pytest.raises(ValueError):
        await strategy.by_genre("Comedy")


@pytest.mark.anyio("asyncio")
async def test_by_genre_deduplicates_and_filters_kind(
    catalog_client: FakeCatalogClient,
) -> None:
    def handler(kind: str, query: DiscoverQuery) -> list[dict[str, Any]]:
        return [
            build_movie(7, "Shared", 2010, 7.5),
            build_series(8, "Stray Series", 2010, 8.0),
        ]

    catalog_client.discover_handler = handler
    strategy = GenreSearchStrategy(catalog_client, "movie")

    records = await strategy.by_genre("Horror")

    assert [record.id for record in records] == [7]


@pytest.mark.anyio("asyncio")
async def test_series_genre_uses_series_ids(catalog_client: FakeCatalogClient) -> None:
    strategy = GenreSearchStrategy(catalog_client, "series")

    await strategy.by_genre("Sci-Fi")

    assert {query.genre_ids for _, query in catalog_client.discover_calls} == {(10765,)}
    assert {kind for kind, _ in catalog_client.discover_calls} == {"series"}
    floors = {
        query.year_range.start: query.min_votes
        for _, query in catalog_client.discover_calls
        if query.year_range is not None
    }
    assert floors == {2015: 100, 2000: 100, 1990: 30, 1980: 30}


@pytest.mark.anyio("asyncio")
async def test_movie_romantic_comedy_combination(catalog_client: FakeCatalogClient) -> None:
    strategy = GenreSearchStrategy(catalog_client, "movie")

    await strategy.by_combination(["Romance", "Comedy"])

    [(kind, query)] = catalog_client.discover_calls
    assert kind == "movie"
    assert query.genre_ids == (10749, 35)
    assert query.excluded_genre_ids == (16, 18, 99, 36)
    assert query.min_rating == 5.5
    assert query.min_votes == 200
    assert query.region == "US"
    assert query.sort_by == "popularity.desc"


@pytest.mark.anyio("asyncio")
async def test_series_romantic_comedy_combination(catalog_client: FakeCatalogClient) -> None:
    strategy = GenreSearchStrategy(catalog_client, "series")

    await strategy.by_combination(["Romance", "Comedy"], YearRange(1990, 1999))

    [(kind, query)] = catalog_client.discover_calls
    assert kind == "series"
    assert query.genre_ids == (18, 35)
    assert query.excluded_genre_ids == (16, 99)
    assert query.min_rating == 6.0
    assert query.min_votes == 50
    assert query.region is None
    assert query.year_range == YearRange(1990, 1999)


@pytest.mark.anyio("asyncio")
async def test_by_genre_and_year_applies_genre_thresholds(
    catalog_client: FakeCatalogClient,
) -> None:
    catalog_client.discover_results["movie"] = [build_movie(1, "Scream", 1996, 7.4)]
    strategy = GenreSearchStrategy(catalog_client, "movie")

    records = await strategy.by_genre_and_year("Horror", YearRange(1990, 1999))

    [(_, query)] = catalog_client.discover_calls
    assert query.genre_ids == (27,)
    assert query.min_rating == 5.8
    assert query.min_votes == 100
    assert query.year_range == YearRange(1990, 1999)
    assert [record.display_title for record in records] == ["Scream"]


@pytest.mark.anyio("asyncio")
async def test_by_year_range_and_country(catalog_client: FakeCatalogClient) -> None:
    strategy = GenreSearchStrategy(catalog_client, "series")

    await strategy.by_year_range(YearRange(1980, 1989))
    await strategy.by_country("FR")

    year_query = catalog_client.discover_calls[0][1]
    country_query = catalog_client.discover_calls[1][1]
    assert year_query.year_range == YearRange(1980, 1989)
    assert year_query.genre_ids == ()
    assert year_query.min_votes == 50
    assert country_query.origin_country == "FR"


@pytest.mark.anyio("asyncio")
async def test_specialty_uses_definition_filters(catalog_client: FakeCatalogClient) -> None:
    definition = find_specialty("k-dramas")
    assert definition is not None
    strategy = GenreSearchStrategy(catalog_client, "series")

    await strategy.specialty(definition)

    [(kind, query)] = catalog_client.discover_calls
    assert kind == "series"
    assert query.genre_ids == (18,)
    assert query.origin_country == "KR"


def _hero(record_id: int, title: str, rating: float = 7.0, votes: int = 1000) -> dict[str, Any]:
    return build_movie(record_id, title, 2015, rating, votes)


@pytest.mark.anyio("asyncio")
async def test_superheroes_from_action_pool(catalog_client: FakeCatalogClient) -> None:
    heroes = [_hero(index, f"Avengers Part {index}", votes=1000 + index) for index in range(1, 10)]
    catalog_client.discover_results["movie"] = [
        *heroes,
        _hero(50, "Batman Returns", rating=5.0),
        _hero(51, "Heat", rating=8.3),
    ]
    strategy = GenreSearchStrategy(catalog_client, "movie")

    records = await strategy.superheroes()

    assert len(records) == 9
    assert records[0].id == 9
    assert catalog_client.discover_calls[0][1].genre_ids == (28,)
    assert catalog_client.search_calls == []


@pytest.mark.anyio("asyncio")
async def test_superheroes_fall_back_to_franchise_searches(
    catalog_client: FakeCatalogClient,
) -> None:
    catalog_client.discover_results["movie"] = [_hero(1, "Iron Man", rating=7.9)]
    catalog_client.search_results = {
        "batman superman": [
            _hero(2, "Batman v Superman", rating=6.5),
            _hero(1, "Iron Man", rating=7.9),
        ],
        "spider-man": [
            _hero(3, "スパイダーマン", rating=7.0),
            _hero(4, "Spider-Man", rating=4.5),
            build_series(5, "Spider-Man Animated", 1994, 8.0),
        ],
    }
    strategy = GenreSearchStrategy(catalog_client, "movie")

    records = await strategy.superheroes()

    assert sorted(catalog_client.search_calls) == sorted(
        ["marvel avengers", "batman superman", "spider-man", "wonder woman"]
    )
    assert [record.id for record in records] == [1, 2]


def test_mentions_superhero_uses_whole_words() -> None:
    assert mentions_superhero(CatalogRecord(id=1, title="The Flash"))
    assert mentions_superhero(
        CatalogRecord(id=2, title="Untitled", overview="A Marvel origin story")
    )
    assert not mentions_superhero(CatalogRecord(id=3, title="Thorough Investigation"))
    assert not mentions_superhero(CatalogRecord(id=4, title="Flashdance"))
