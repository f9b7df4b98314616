"""Abstract catalog capability consumed by the search pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence, TypeVar

from ..intent import YearRange
from ..models import CatalogRecord, ContentType, CreditRecord, PersonRecord


class CatalogError(RuntimeError):
    """Base class for failures reported by a catalog backend."""


class CatalogRequestError(CatalogError):
    """The catalog rejected the request (bad parameters or credentials)."""


class CatalogUnavailableError(CatalogError):
    """The catalog could not be reached or kept failing after retries."""


class CatalogResponseError(CatalogError):
    """The catalog answered with a payload that could not be understood."""


@dataclass(frozen=True, slots=True)
class DiscoverQuery:
    """Filters for a catalog discovery call."""

    genre_ids: tuple[int, ...] = ()
    excluded_genre_ids: tuple[int, ...] = ()
    year_range: YearRange | None = None
    min_rating: float | None = None
    min_votes: int | None = None
    sort_by: str = "popularity.desc"
    original_language: str | None = None
    origin_country: str | None = None
    region: str | None = None


class CatalogClient(Protocol):
    """Async operations the search pipeline needs from a catalog."""

    async def discover(
        self, kind: ContentType, query: DiscoverQuery
    ) -> list[CatalogRecord]: ...

    async def search(self, text: str) -> list[CatalogRecord]: ...

    async def search_person(self, name: str) -> list[PersonRecord]: ...

    async def person_credits(
        self, person_id: int, kind: ContentType | None = None
    ) -> list[CreditRecord]: ...

    async def trending(self, kind: ContentType | None = None) -> list[CatalogRecord]: ...


def matches_kind(record: CatalogRecord, kind: ContentType | None) -> bool:
    """Return whether ``record`` belongs to ``kind``; unknown kinds are kept."""

    if kind is None:
        return True
    media_kind = record.media_kind
    return media_kind is None or media_kind == kind


RecordT = TypeVar("RecordT", bound=CatalogRecord)


def filter_kind(records: Sequence[RecordT], kind: ContentType | None) -> list[RecordT]:
    return [record for record in records if matches_kind(record, kind)]
