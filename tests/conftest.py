"""Pytest configuration and test helpers."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable


# Ensure the application package is importable when running tests without an
# editable install. This mirrors the expected runtime layout where ``app`` sits
# at the project root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


import pytest  # noqa: E402

from app.models import CatalogRecord, CreditRecord, PersonRecord  # noqa: E402
from app.services.catalog import DiscoverQuery  # noqa: E402

RecordFactory = Callable[..., dict[str, Any]]
DiscoverHandler = Callable[[str, DiscoverQuery], list[dict[str, Any]]]


def build_movie(
    record_id: int,
    title: str,
    year: int | None,
    rating: float,
    votes: int = 500,
    **extra: Any,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": record_id,
        "title": title,
        "release_date": f"{year}-06-01" if year else "",
        "vote_average": rating,
        "vote_count": votes,
        "media_type": "movie",
    }
    payload.update(extra)
    return payload


def build_series(
    record_id: int,
    name: str,
    year: int | None,
    rating: float,
    votes: int = 500,
    **extra: Any,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": record_id,
        "name": name,
        "first_air_date": f"{year}-09-01" if year else "",
        "vote_average": rating,
        "vote_count": votes,
        "media_type": "tv",
    }
    payload.update(extra)
    return payload


class FakeCatalogClient:
    """In-memory catalog that records every call it receives."""

    def __init__(self) -> None:
        self.discover_handler: DiscoverHandler | None = None
        self.discover_results: dict[str, list[dict[str, Any]]] = {}
        self.search_results: dict[str, list[dict[str, Any]]] = {}
        self.people: list[dict[str, Any]] = []
        self.credits: list[dict[str, Any]] = []
        self.trending_results: list[dict[str, Any]] = []
        self.errors: dict[str, Exception] = {}

        self.discover_calls: list[tuple[str, DiscoverQuery]] = []
        self.search_calls: list[str] = []
        self.person_calls: list[str] = []
        self.credit_calls: list[tuple[int, str | None]] = []
        self.trending_calls: list[str | None] = []

    def _raise_for(self, operation: str) -> None:
        error = self.errors.get(operation)
        if error is not None:
            raise error

    async def discover(self, kind: str, query: DiscoverQuery) -> list[CatalogRecord]:
        self.discover_calls.append((kind, query))
        self._raise_for("discover")
        if self.discover_handler is not None:
            entries = self.discover_handler(kind, query)
        else:
            entries = self.discover_results.get(kind, [])
        return [CatalogRecord.model_validate(entry) for entry in entries]

    async def search(self, text: str) -> list[CatalogRecord]:
        self.search_calls.append(text)
        self._raise_for("search")
        return [
            CatalogRecord.model_validate(entry)
            for entry in self.search_results.get(text, [])
        ]

    async def search_person(self, name: str) -> list[PersonRecord]:
        self.person_calls.append(name)
        self._raise_for("search_person")
        return [PersonRecord.model_validate(entry) for entry in self.people]

    async def person_credits(
        self, person_id: int, kind: str | None = None
    ) -> list[CreditRecord]:
        self.credit_calls.append((person_id, kind))
        self._raise_for("person_credits")
        return [CreditRecord.model_validate(entry) for entry in self.credits]

    async def trending(self, kind: str | None = None) -> list[CatalogRecord]:
        self.trending_calls.append(kind)
        self._raise_for("trending")
        return [CatalogRecord.model_validate(entry) for entry in self.trending_results]


@pytest.fixture
def catalog_client() -> FakeCatalogClient:
    return FakeCatalogClient()


@pytest.fixture
def movie() -> RecordFactory:
    return build_movie


@pytest.fixture
def series() -> RecordFactory:
    return build_series
