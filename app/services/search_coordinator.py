"""Route parsed search intents to catalog calls and assemble the results."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Sequence

from ..config import Settings, get_settings
from ..intent import ROMANTIC_COMEDY_GENRES, SearchIntent, SearchStrategy, YearRange
from ..models import CatalogRecord, Content, ContentType, RequestedType
from ..search_profiles import (
    COUNTRY_SPECIALTIES,
    ROMANTIC_COMEDY_ALIASES,
    SpecialtyDefinition,
    find_specialty,
    profile_for,
)
from .catalog import CatalogClient, CatalogError, filter_kind
from .genre_search import GenreSearchStrategy, by_rating, by_score

logger = logging.getLogger(__name__)

ACTOR_MIN_RATING = 5.5
ACTOR_MAX_CAST_ORDER = 10
ACTOR_MIN_VOTES = 100
ACTOR_CREDIT_LIMIT = 12
ACTOR_FALLBACK_MIN_RATING = 5.0
ACTOR_FALLBACK_ENOUGH = 3
ACTOR_FALLBACK_LIMIT = 10
DOCUMENTARY_TITLE_TERMS = ("documentary", "biography")
DOCUMENTARY_OVERVIEW_TERMS = ("documentary about",)


@dataclass(slots=True)
class SearchOutcome:
    """Ranked candidates produced for one query."""

    items: list[Content] = field(default_factory=list)
    strategy: SearchStrategy = SearchStrategy.FALLBACK
    description: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.items


def requested_kind(content_type: RequestedType | None) -> ContentType | None:
    """Return the single kind requested, or ``None`` for mixed requests."""

    if content_type in ("movie", "series"):
        return content_type  # type: ignore[return-value]
    return None


def interleave(
    movies: Sequence[CatalogRecord], series: Sequence[CatalogRecord]
) -> list[CatalogRecord]:
    """Alternate movie and series results, starting with a movie."""

    mixed: list[CatalogRecord] = []
    for index in range(max(len(movies), len(series))):
        if index < len(movies):
            mixed.append(movies[index])
        if index < len(series):
            mixed.append(series[index])
    return mixed


def _is_documentary(record: CatalogRecord) -> bool:
    title = record.display_title.lower()
    overview = (record.overview or "").lower()
    return any(term in title for term in DOCUMENTARY_TITLE_TERMS) or any(
        term in overview for term in DOCUMENTARY_OVERVIEW_TERMS
    )


class SearchCoordinator:
    """Execute the retrieval plan for a :class:`SearchIntent`."""

    def __init__(self, client: CatalogClient, settings: Settings | None = None):
        self._client = client
        self._settings = settings or get_settings()
        self._strategies: dict[ContentType, GenreSearchStrategy] = {
            "movie": GenreSearchStrategy(client, "movie"),
            "series": GenreSearchStrategy(client, "series"),
        }

    def strategy_for(self, kind: ContentType) -> GenreSearchStrategy:
        return self._strategies[kind]

    async def resolve(
        self, intent: SearchIntent, *, limit: int | None = None
    ) -> SearchOutcome:
        """Run the search described by ``intent`` and rank the results."""

        strategy = intent.search_strategy
        description = intent.search_description
        kind = requested_kind(intent.content_type)
        logger.info("Resolving '%s' using %s", description, strategy.value)

        if strategy is SearchStrategy.ACTOR:
            records = await self.search_actor(intent.actor_name or "", intent.content_type)
        elif strategy is SearchStrategy.TITLE:
            records = await self._search_text(intent.similar_to_title or "", kind)
        elif strategy is SearchStrategy.ENDPOINT:
            records = await self._endpoint_search(intent)
        elif strategy is SearchStrategy.KEYWORD:
            records = await self._keyword_search(intent)
        else:
            records = by_rating(await self._client.trending(kind))

        items = self._finalize(records, intent, limit)
        logger.info(
            "Returning %d of %d candidates for '%s'", len(items), len(records), description
        )
        return SearchOutcome(items=items, strategy=strategy, description=description)

    async def _search_text(
        self, text: str, kind: ContentType | None
    ) -> list[CatalogRecord]:
        return by_rating(filter_kind(await self._client.search(text), kind))

    async def _endpoint_search(self, intent: SearchIntent) -> list[CatalogRecord]:
        if intent.is_romantic_comedy:
            return await self.fetch_by_genre(
                "romantic comedy", intent.content_type, year_range=intent.year_range
            )
        country = intent.country
        if intent.year_range and intent.genres:
            return await self.fetch_by_genre_with_year(
                intent.genres[0],
                intent.year_range,
                intent.content_type,
                origin_country=country,
            )
        specialty = COUNTRY_SPECIALTIES.get(country or "")
        if specialty:
            return await self.fetch_by_genre(specialty, intent.content_type)
        # The genre wins over a country without a lane; the country only scopes it.
        if intent.genres:
            return await self.fetch_by_genre(
                intent.genres[0], intent.content_type, origin_country=country
            )
        return await self._per_kind(
            intent.content_type,
            lambda strategy: strategy.by_country(country or ""),
        )

    async def _keyword_search(self, intent: SearchIntent) -> list[CatalogRecord]:
        if intent.year_range and intent.genres:
            return await self.fetch_by_genre_with_year(
                intent.genres[0], intent.year_range, intent.content_type
            )
        if intent.year_range:
            year_range = intent.year_range
            return await self._per_kind(
                intent.content_type,
                lambda strategy: strategy.by_year_range(year_range),
            )
        if intent.genres:
            return await self.fetch_by_genre(intent.genres[0], intent.content_type)
        return await self._search_text(
            intent.search_query(), requested_kind(intent.content_type)
        )

    async def _per_kind(
        self,
        content_type: RequestedType | None,
        fetch: Callable[[GenreSearchStrategy], Awaitable[list[CatalogRecord]]],
    ) -> list[CatalogRecord]:
        """Run ``fetch`` for the requested kind, or for both kinds when mixed."""

        kind = requested_kind(content_type)
        if kind is not None:
            return await fetch(self._strategies[kind])

        cap = self._settings.mixed_type_cap
        tasks = [
            asyncio.ensure_future(fetch(self._strategies["movie"])),
            asyncio.ensure_future(fetch(self._strategies["series"])),
        ]
        try:
            movies, series = await asyncio.gather(*tasks)
        except BaseException:
            # gather leaves the sibling running when one kind fails.
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return interleave(movies[:cap], series[:cap])

    async def fetch_by_genre(
        self,
        genre: str,
        content_type: RequestedType | None = None,
        *,
        year_range: YearRange | None = None,
        origin_country: str | None = None,
    ) -> list[CatalogRecord]:
        """Fetch a genre, honouring combination and specialty lanes."""

        name = genre.strip().lower()
        single = "series" if content_type == "series" else "movie"

        if name in ROMANTIC_COMEDY_ALIASES:
            return await self._strategies[single].by_combination(
                ROMANTIC_COMEDY_GENRES, year_range
            )
        if name == "superhero":
            return await self._strategies[single].superheroes()

        definition = find_specialty(name)
        if definition is not None:
            return await self._specialty(definition, content_type)

        if year_range is not None:
            return await self.fetch_by_genre_with_year(
                genre, year_range, content_type, origin_country=origin_country
            )
        return await self._per_kind(
            content_type, lambda strategy: strategy.by_genre(genre, origin_country)
        )

    async def fetch_by_genre_with_year(
        self,
        genre: str,
        year_range: YearRange,
        content_type: RequestedType | None = None,
        *,
        origin_country: str | None = None,
    ) -> list[CatalogRecord]:
        return await self._per_kind(
            content_type,
            lambda strategy: strategy.by_genre_and_year(
                genre, year_range, origin_country
            ),
        )

    async def _specialty(
        self, definition: SpecialtyDefinition, content_type: RequestedType | None
    ) -> list[CatalogRecord]:
        kind = definition.kind_for(content_type)
        if kind is None:
            logger.info("No %s lane for %s", definition.key, content_type)
            return []
        if content_type not in (None, "mixed", kind):
            logger.info(
                "%s only exists as %s, ignoring the %s request",
                definition.key,
                kind,
                content_type,
            )
        try:
            return await self._strategies[kind].specialty(definition)
        except CatalogError as exc:
            logger.warning("Specialty %s failed: %s", definition.key, exc)
            return []

    async def search_actor(
        self, actor_name: str, content_type: RequestedType | None = None
    ) -> list[CatalogRecord]:
        """Return an actor's best-rated leading roles.

        Falls back to free-text searches when the people search finds nobody.
        """

        kind = requested_kind(content_type)
        people = await self._client.search_person(actor_name)
        if not people:
            logger.info("No person found for %s, using keyword fallback", actor_name)
            return await self._actor_fallback(actor_name, kind)

        person = max(people, key=lambda candidate: candidate.popularity)
        credits = await self._client.person_credits(person.id, kind)
        leading = [
            credit
            for credit in filter_kind(credits, kind)
            if (credit.rating or 0.0) > ACTOR_MIN_RATING
            and credit.cast_order is not None
            and credit.cast_order < ACTOR_MAX_CAST_ORDER
            and (credit.vote_count or 0) > ACTOR_MIN_VOTES
        ]
        logger.info(
            "Found %d quality credits for %s (person %s)", len(leading), actor_name, person.id
        )
        return by_score(leading)[:ACTOR_CREDIT_LIMIT]

    async def _actor_fallback(
        self, actor_name: str, kind: ContentType | None
    ) -> list[CatalogRecord]:
        for query in (actor_name, f"{actor_name} movie", f"{actor_name} film"):
            results = filter_kind(await self._client.search(query), kind)
            filtered = by_rating(
                record
                for record in results
                if not _is_documentary(record)
                and (record.rating or 0.0) > ACTOR_FALLBACK_MIN_RATING
            )
            if len(filtered) >= ACTOR_FALLBACK_ENOUGH:
                logger.info("Actor fallback %r found %d results", query, len(filtered))
                return filtered[:ACTOR_FALLBACK_LIMIT]
        return []

    def _finalize(
        self,
        records: Sequence[CatalogRecord],
        intent: SearchIntent,
        limit: int | None,
    ) -> list[Content]:
        """Convert, deduplicate, filter and truncate the merged records."""

        limit = limit or self._settings.result_limit
        fallback: ContentType = requested_kind(intent.content_type) or "movie"
        floor = self._settings.min_quality_rating
        seen: set[tuple[str, int]] = set()
        items: list[Content] = []
        for record in records:
            kind = record.media_kind or fallback
            content = Content.from_record(
                record,
                fallback_type=fallback,
                genre_names=profile_for(kind).genre_names,
            )
            key = (content.content_type, content.external_id)
            if key in seen:
                continue
            seen.add(key)
            if intent.year_range and not intent.year_range.contains(content.release_year):
                continue
            if content.rating <= floor:
                continue
            items.append(content)
            if len(items) >= limit:
                break
        return items
