"""Pydantic models describing catalog payloads and search candidates."""

from __future__ import annotations

from typing import Any, Literal, Mapping

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)

from .utils import parse_year

ContentType = Literal["movie", "series"]
RequestedType = Literal["movie", "series", "mixed"]


class CatalogRecord(BaseModel):
    """A single movie or series entry as returned by the catalog API."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    title: str | None = None
    name: str | None = None
    overview: str | None = None
    release_date: str | None = None
    first_air_date: str | None = None
    rating: float | None = Field(
        default=None, validation_alias=AliasChoices("rating", "vote_average")
    )
    vote_count: int | None = None
    genre_ids: list[int] = Field(
        default_factory=list, validation_alias=AliasChoices("genre_ids", "genreIds")
    )
    media_type: str | None = None
    popularity: float | None = None
    original_language: str | None = None
    origin_country: list[str] = Field(default_factory=list)

    @field_validator("genre_ids", "origin_country", mode="before")
    @classmethod
    def _coerce_list(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    @property
    def display_title(self) -> str:
        return self.title or self.name or "Unknown Title"

    @property
    def display_date(self) -> str:
        return self.release_date or self.first_air_date or ""

    @property
    def media_kind(self) -> ContentType | None:
        """Infer whether the record is a movie or a series."""

        if self.media_type == "movie":
            return "movie"
        if self.media_type in ("tv", "series"):
            return "series"
        if self.name is not None or self.first_air_date is not None:
            return "series"
        if self.title is not None or self.release_date is not None:
            return "movie"
        return None

    def year_for(self, kind: ContentType | None = None) -> int | None:
        """Return the release year, preferring the first-air date for series."""

        kind = kind or self.media_kind
        if kind == "series":
            return parse_year(self.first_air_date) or parse_year(self.release_date)
        return parse_year(self.release_date) or parse_year(self.first_air_date)

    @property
    def year(self) -> int | None:
        return self.year_for()

    @property
    def score(self) -> float:
        """Rating weighted by vote volume."""

        return (self.rating or 0.0) * float(self.vote_count or 0)


class PersonRecord(BaseModel):
    """A person returned by the catalog's people search."""

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str = ""
    popularity: float = 0.0
    known_for_department: str | None = None

    @field_validator("popularity", mode="before")
    @classmethod
    def _default_popularity(cls, value: object) -> object:
        return 0.0 if value is None else value


class CreditRecord(CatalogRecord):
    """A cast credit of a person, carrying billing order."""

    cast_order: int | None = Field(
        default=None, validation_alias=AliasChoices("cast_order", "order")
    )
    character: str | None = None


class Content(BaseModel):
    """Represents a single candidate surfaced to the caller."""

    model_config = ConfigDict(frozen=True)

    external_id: int
    title: str
    overview: str
    release_year: int | None = None
    content_type: ContentType
    rating: float = Field(ge=0, le=10)
    vote_count: int = Field(ge=0)
    genre_tags: frozenset[str] = Field(default_factory=frozenset)

    @classmethod
    def from_record(
        cls,
        record: CatalogRecord,
        *,
        fallback_type: ContentType = "movie",
        genre_names: Mapping[int, str] | None = None,
    ) -> "Content":
        content_type = record.media_kind or fallback_type
        names = genre_names or {}
        rating = min(max(record.rating or 0.0, 0.0), 10.0)
        return cls(
            external_id=record.id,
            title=record.display_title,
            overview=(record.overview or "").strip() or "No description available",
            release_year=record.year_for(content_type),
            content_type=content_type,
            rating=rating,
            vote_count=max(record.vote_count or 0, 0),
            genre_tags=frozenset(
                names[genre_id] for genre_id in record.genre_ids if genre_id in names
            ),
        )

    @field_serializer("genre_tags")
    def _serialize_genre_tags(self, value: frozenset[str]) -> list[str]:
        return sorted(value)

    def to_payload(self) -> dict[str, Any]:
        """Return a JSON-friendly representation."""

        return self.model_dump(mode="json", by_alias=True)
