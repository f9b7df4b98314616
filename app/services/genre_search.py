"""Era-diversified genre retrieval for a single media kind."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Iterable, Sequence

from ..intent import YearRange
from ..models import CatalogRecord, ContentType
from ..search_profiles import (
    SUPERHERO_QUERIES,
    SUPERHERO_TERMS,
    EraBucket,
    GenreProfile,
    KindProfile,
    SpecialtyDefinition,
    profile_for,
)
from ..utils import contains_phrase
from .catalog import CatalogClient, CatalogError, DiscoverQuery, filter_kind

logger = logging.getLogger(__name__)

LATIN_RE = re.compile(r"[A-Za-z]")
SUPERHERO_MIN_RATING = 5.5
SUPERHERO_MIN_VOTES = 150
SUPERHERO_FALLBACK_MIN_RATING = 5.0
SUPERHERO_ENOUGH = 8
SUPERHERO_LIMIT = 20
SUPERHERO_FALLBACK_LIMIT = 15


def unique_records(records: Iterable[CatalogRecord]) -> list[CatalogRecord]:
    """Drop repeated ids, keeping the first occurrence."""

    seen: set[int] = set()
    unique: list[CatalogRecord] = []
    for record in records:
        if record.id in seen:
            continue
        seen.add(record.id)
        unique.append(record)
    return unique


def mentions_superhero(record: CatalogRecord) -> bool:
    text = f"{record.display_title} {record.overview or ''}".lower()
    return any(contains_phrase(text, term) for term in SUPERHERO_TERMS)


def by_score(records: Iterable[CatalogRecord]) -> list[CatalogRecord]:
    return sorted(records, key=lambda record: record.score, reverse=True)


def by_rating(records: Iterable[CatalogRecord]) -> list[CatalogRecord]:
    return sorted(records, key=lambda record: record.rating or 0.0, reverse=True)


class GenreSearchStrategy:
    """Genre, year and specialty searches tuned by a :class:`KindProfile`."""

    def __init__(
        self,
        client: CatalogClient,
        kind: ContentType,
        profile: KindProfile | None = None,
    ):
        self._client = client
        self._kind = kind
        self._profile = profile or profile_for(kind)

    @property
    def kind(self) -> ContentType:
        return self._kind

    @property
    def profile(self) -> KindProfile:
        return self._profile

    async def by_genre(
        self, genre: str, origin_country: str | None = None
    ) -> list[CatalogRecord]:
        """Fetch ``genre`` across its era buckets and blend the results.

        ``origin_country`` scopes every era to titles produced there and lifts
        the profile's language filter.
        """

        era_profile = self._profile.era_profile(genre)
        genre_id = self._profile.genre_id(genre)
        buckets = era_profile.buckets
        logger.info(
            "Fetching diversified %s %s across %d eras", genre, self._kind, len(buckets)
        )

        results = await asyncio.gather(
            *(
                self._fetch_era(genre_id, bucket, origin_country) for bucket in buckets
            ),
            return_exceptions=True,
        )

        combined: list[CatalogRecord] = []
        for bucket, result in zip(buckets, results):
            if isinstance(result, BaseException):
                if not isinstance(result, CatalogError):
                    raise result
                logger.warning(
                    "Era %s failed for %s %s: %s", bucket.label, genre, self._kind, result
                )
                continue
            kept = result[: bucket.max_results]
            logger.info(
                "Era %s contributed %d of %d %s results",
                bucket.label,
                len(kept),
                len(result),
                genre,
            )
            combined.extend(kept)

        unique = filter_kind(unique_records(combined), self._kind)
        return self._rank(unique, era_profile)

    async def _fetch_era(
        self, genre_id: int, bucket: EraBucket, origin_country: str | None = None
    ) -> list[CatalogRecord]:
        query = DiscoverQuery(
            genre_ids=(genre_id,),
            year_range=bucket.year_range,
            min_rating=bucket.min_rating,
            min_votes=self._profile.vote_floor(bucket),
            sort_by="vote_average.desc",
            original_language=self._language(origin_country),
            origin_country=origin_country,
        )
        return await self._client.discover(self._kind, query)

    def _language(self, origin_country: str | None) -> str | None:
        return None if origin_country else self._profile.original_language

    def _rank(
        self, records: Sequence[CatalogRecord], era_profile: GenreProfile
    ) -> list[CatalogRecord]:
        if not era_profile.prioritize_classics:
            return by_rating(records)
        return sorted(
            records,
            key=lambda record: self._profile.classics_score(
                record.rating, record.year_for(self._kind)
            ),
            reverse=True,
        )

    async def by_genre_and_year(
        self, genre: str, year_range: YearRange, origin_country: str | None = None
    ) -> list[CatalogRecord]:
        """Fetch popular ``genre`` titles released within ``year_range``."""

        min_rating, min_votes = self._profile.thresholds([genre])
        query = DiscoverQuery(
            genre_ids=(self._profile.genre_id(genre),),
            year_range=year_range,
            min_rating=min_rating,
            min_votes=min_votes,
            sort_by="popularity.desc",
            original_language=self._language(origin_country),
            origin_country=origin_country,
            region=self._profile.region,
        )
        logger.info("Fetching %s %s from %s", genre, self._kind, year_range.label)
        return filter_kind(await self._client.discover(self._kind, query), self._kind)

    async def by_combination(
        self, genres: Sequence[str], year_range: YearRange | None = None
    ) -> list[CatalogRecord]:
        """Fetch titles tagged with every genre in ``genres``."""

        genre_ids = self._profile.genre_ids_for(genres)
        excluded = tuple(
            genre_id
            for genre_id in self._profile.exclusions(genres)
            if genre_id not in genre_ids
        )
        min_rating, min_votes = self._profile.thresholds(genres)
        query = DiscoverQuery(
            genre_ids=genre_ids,
            excluded_genre_ids=excluded,
            year_range=year_range,
            min_rating=min_rating,
            min_votes=min_votes,
            sort_by="popularity.desc",
            original_language=self._profile.original_language,
            region=self._profile.region,
        )
        logger.info("Fetching %s combination: %s", self._kind, " + ".join(genres))
        return filter_kind(await self._client.discover(self._kind, query), self._kind)

    async def by_year_range(self, year_range: YearRange) -> list[CatalogRecord]:
        """Fetch the most popular titles released within ``year_range``."""

        query = DiscoverQuery(
            year_range=year_range,
            min_votes=self._profile.default_min_votes,
            sort_by="popularity.desc",
            region=self._profile.region,
        )
        return filter_kind(await self._client.discover(self._kind, query), self._kind)

    async def by_country(self, country: str) -> list[CatalogRecord]:
        """Fetch popular titles produced in ``country``."""

        query = DiscoverQuery(origin_country=country, sort_by="popularity.desc")
        return filter_kind(await self._client.discover(self._kind, query), self._kind)

    async def specialty(self, definition: SpecialtyDefinition) -> list[CatalogRecord]:
        """Fetch a curated regional or audience lane."""

        query = DiscoverQuery(
            genre_ids=definition.genre_ids.get(self._kind, ()),
            origin_country=definition.origin_country,
            original_language=definition.original_language,
            sort_by="popularity.desc",
        )
        logger.info("Fetching %s specialty for %s", definition.key, self._kind)
        return filter_kind(await self._client.discover(self._kind, query), self._kind)

    async def superheroes(self) -> list[CatalogRecord]:
        """Find superhero titles among popular action releases.

        When the action pool yields too few matches the strategy falls back to
        a handful of franchise searches.
        """

        action = await self._client.discover(
            self._kind,
            DiscoverQuery(
                genre_ids=(self._profile.action_genre_id,), sort_by="popularity.desc"
            ),
        )
        matches = by_score(
            unique_records(
                record
                for record in filter_kind(action, self._kind)
                if mentions_superhero(record)
                and (record.rating or 0.0) >= SUPERHERO_MIN_RATING
                and (record.vote_count or 0) >= SUPERHERO_MIN_VOTES
            )
        )
        if len(matches) >= SUPERHERO_ENOUGH:
            logger.info("Found %d superhero %s titles via action", len(matches), self._kind)
            return matches[:SUPERHERO_LIMIT]

        logger.info(
            "Only %d superhero %s titles via action, searching franchises",
            len(matches),
            self._kind,
        )
        results = await asyncio.gather(
            *(self._client.search(query) for query in SUPERHERO_QUERIES),
            return_exceptions=True,
        )
        extra: list[CatalogRecord] = []
        for query, result in zip(SUPERHERO_QUERIES, results):
            if isinstance(result, BaseException):
                if not isinstance(result, CatalogError):
                    raise result
                logger.warning("Superhero search %r failed: %s", query, result)
                continue
            extra.extend(
                record
                for record in result
                if record.media_kind == self._kind
                and (record.rating or 0.0) >= SUPERHERO_FALLBACK_MIN_RATING
                and LATIN_RE.search(record.display_title)
                and mentions_superhero(record)
            )
        return by_score(unique_records([*matches, *extra]))[:SUPERHERO_FALLBACK_LIMIT]
