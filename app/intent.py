"""Structured search intent extracted from a free-text request."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .models import RequestedType

ROMANTIC_COMEDY_GENRES: tuple[str, str] = ("Romance", "Comedy")

COUNTRY_DISPLAY_NAMES: dict[str, str] = {
    "KR": "Korea",
    "GB": "the UK",
    "IN": "India",
    "ES": "Spain",
    "JP": "Japan",
    "FR": "France",
    "IT": "Italy",
    "DE": "Germany",
    "CN": "China",
}


class SearchStrategy(str, Enum):
    """Retrieval path chosen for a parsed query."""

    ACTOR = "actor_search"
    TITLE = "title_search"
    ENDPOINT = "endpoint_search"
    KEYWORD = "keyword_search"
    FALLBACK = "fallback"

    @property
    def description(self) -> str:
        return {
            SearchStrategy.ACTOR: "Searching by actor",
            SearchStrategy.TITLE: "Searching for similar titles",
            SearchStrategy.ENDPOINT: "Searching by category",
            SearchStrategy.KEYWORD: "Searching by keywords",
            SearchStrategy.FALLBACK: "Showing popular content",
        }[self]


@dataclass(frozen=True, slots=True)
class YearRange:
    """Inclusive range of release years."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(
                f"Year range start {self.start} is after its end {self.end}"
            )

    @classmethod
    def single(cls, year: int) -> "YearRange":
        return cls(year, year)

    def contains(self, year: int | None) -> bool:
        return year is not None and self.start <= year <= self.end

    @property
    def is_decade(self) -> bool:
        return self.start % 10 == 0 and self.end == self.start + 9

    @property
    def label(self) -> str:
        """Compact label such as ``1995``, ``1980s`` or ``1995-1999``."""

        if self.start == self.end:
            return str(self.start)
        if self.is_decade:
            return f"{self.start}s"
        return f"{self.start}-{self.end}"

    def describe(self) -> str:
        if self.is_decade:
            return f"from the {self.label}"
        return f"from {self.label}"


@dataclass(slots=True)
class SearchIntent:
    """Signals extracted from one query.

    The parser fills the fields incrementally; once ``parse`` returns, the
    intent is treated as read-only. ``search_strategy`` and
    ``is_valid_for_search`` are derived on access and never stored.
    """

    genres: list[str] = field(default_factory=list)
    country: str | None = None
    year_range: YearRange | None = None
    content_type: RequestedType | None = None
    similar_to_title: str | None = None
    actor_name: str | None = None
    director_name: str | None = None
    franchise_name: str | None = None
    mood: str | None = None
    keywords: list[str] = field(default_factory=list)

    def add_genre(self, genre: str) -> None:
        if genre and genre not in self.genres:
            self.genres.append(genre)

    def add_keyword(self, keyword: str) -> None:
        if keyword and keyword not in self.keywords:
            self.keywords.append(keyword)

    @property
    def is_romantic_comedy(self) -> bool:
        return len(self.genres) == 2 and set(self.genres) == set(ROMANTIC_COMEDY_GENRES)

    @property
    def is_mixed(self) -> bool:
        return self.content_type in (None, "mixed")

    @property
    def search_strategy(self) -> SearchStrategy:
        if self.actor_name:
            return SearchStrategy.ACTOR
        # No dedicated endpoint exists for people behind the camera or for
        # franchises, so both degrade to keyword search.
        if self.director_name or self.franchise_name:
            return SearchStrategy.KEYWORD
        if self.similar_to_title:
            return SearchStrategy.TITLE
        if self.country or self.genres:
            return SearchStrategy.ENDPOINT
        if self.keywords:
            return SearchStrategy.KEYWORD
        return SearchStrategy.FALLBACK

    @property
    def is_valid_for_search(self) -> bool:
        return bool(
            self.genres
            or self.country
            or self.similar_to_title
            or self.actor_name
            or self.director_name
            or self.franchise_name
            or self.keywords
        )

    def _type_noun(self) -> str:
        if self.content_type == "series":
            return "TV shows"
        if self.content_type == "movie":
            return "movies"
        return "content"

    @property
    def search_description(self) -> str:
        """Human readable summary of what was understood."""

        parts: list[str] = []
        if self.actor_name:
            parts.append(f"{self._type_noun()} with {_display_name(self.actor_name)}")
        if self.director_name:
            parts.append(f"{self._type_noun()} by {_display_name(self.director_name)}")
        if self.franchise_name:
            parts.append(f"{_display_name(self.franchise_name)} {self._type_noun()}")
        if self.similar_to_title:
            parts.append(f"content similar to {self.similar_to_title}")
        if self.genres:
            if self.is_romantic_comedy:
                parts.append("romantic comedies")
            else:
                parts.append(f"{', '.join(g.lower() for g in self.genres)} content")
        if self.mood:
            parts.append(f"({self.mood} mood)")
        if self.country:
            parts.append(f"from {COUNTRY_DISPLAY_NAMES.get(self.country, self.country)}")
        if self.content_type in ("movie", "series"):
            noun = "movies" if self.content_type == "movie" else "series"
            parts.append(noun if not parts else f"({noun} only)")
        if self.year_range:
            parts.append(self.year_range.describe())

        if not parts:
            return "content matching your query"
        return " ".join(parts)

    def search_query(self) -> str:
        """Return the free-text query used by keyword and title searches."""

        for name in (
            self.actor_name,
            self.director_name,
            self.franchise_name,
            self.similar_to_title,
        ):
            if name:
                return name

        if self.year_range and self.genres:
            return " ".join([self.year_range.label, *(g.lower() for g in self.genres)])

        parts = [*self.genres, *self.keywords[:3]]
        return " ".join(parts).strip()

    def to_payload(self) -> dict[str, Any]:
        """Return a JSON-friendly view including the derived fields."""

        return {
            "genres": list(self.genres),
            "country": self.country,
            "yearRange": (
                [self.year_range.start, self.year_range.end]
                if self.year_range
                else None
            ),
            "contentType": self.content_type,
            "similarToTitle": self.similar_to_title,
            "actorName": self.actor_name,
            "directorName": self.director_name,
            "franchiseName": self.franchise_name,
            "mood": self.mood,
            "keywords": list(self.keywords),
            "strategy": self.search_strategy.value,
            "description": self.search_description,
            "valid": self.is_valid_for_search,
        }


def _display_name(value: str) -> str:
    return " ".join(part.capitalize() for part in value.split())
