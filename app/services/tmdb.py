"""Catalog client backed by The Movie Database (TMDB) v3 API."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, TypeVar

import httpx
from pydantic import ValidationError

from ..config import Settings
from ..models import CatalogRecord, ContentType, CreditRecord, PersonRecord
from .catalog import (
    CatalogRequestError,
    CatalogResponseError,
    CatalogUnavailableError,
    DiscoverQuery,
)

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", CatalogRecord, CreditRecord, PersonRecord)

MEDIA_PATHS: dict[ContentType, str] = {"movie": "movie", "series": "tv"}
DATE_FIELDS: dict[ContentType, str] = {
    "movie": "primary_release_date",
    "series": "first_air_date",
}
CREDIT_PATHS: dict[ContentType | None, str] = {
    "movie": "movie_credits",
    "series": "tv_credits",
    None: "combined_credits",
}


def _backoff(attempt: int) -> float:
    return min(2 ** (attempt - 1), 5) + (0.1 * attempt)


class TMDBCatalogClient:
    """Async client for the TMDB endpoints used by the search pipeline."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        if not settings.has_tmdb_credentials:
            raise ValueError(
                "TMDB_API_KEY or TMDB_ACCESS_TOKEN is required when initialising TMDBCatalogClient"
            )
        self._settings = settings
        self._client = http_client
        self._max_retries = settings.tmdb_max_retries
        self._semaphore = asyncio.Semaphore(settings.tmdb_max_concurrency)

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "User-Agent": f"{self._settings.app_name} (reelsearch)",
        }
        if self._settings.tmdb_access_token:
            headers["Authorization"] = f"Bearer {self._settings.tmdb_access_token}"
        return headers

    def _params(self, extra: dict[str, Any] | None = None) -> dict[str, Any]:
        params: dict[str, Any] = {"language": "en-US", "include_adult": "false"}
        if self._settings.tmdb_api_key:
            params["api_key"] = self._settings.tmdb_api_key
        if extra:
            params.update({key: value for key, value in extra.items() if value is not None})
        return params

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Issue a GET request, retrying transient failures."""

        attempt = 0
        while True:
            try:
                async with self._semaphore:
                    response = await self._client.get(
                        path, params=self._params(params), headers=self._headers()
                    )
            except httpx.HTTPError as exc:
                attempt += 1
                if attempt <= self._max_retries:
                    backoff = _backoff(attempt)
                    logger.info(
                        "Transient error talking to TMDB (%s). Retrying %s in %.1fs",
                        exc.__class__.__name__,
                        path,
                        backoff,
                    )
                    await asyncio.sleep(backoff)
                    continue
                raise CatalogUnavailableError(
                    f"TMDB request to {path} failed: {exc}"
                ) from exc

            status = response.status_code
            if status == 429 or status >= 500:
                attempt += 1
                if attempt <= self._max_retries:
                    backoff = _backoff(attempt)
                    logger.info(
                        "TMDB returned %s for %s. Retrying in %.1fs", status, path, backoff
                    )
                    await asyncio.sleep(backoff)
                    continue
                raise CatalogUnavailableError(
                    f"TMDB request to {path} kept failing with status {status}"
                )
            if status >= 400:
                raise CatalogRequestError(
                    f"TMDB rejected {path} with status {status}: {response.text[:200]}"
                )

            try:
                payload = response.json()
            except ValueError as exc:
                raise CatalogResponseError(f"TMDB returned invalid JSON for {path}") from exc
            if not isinstance(payload, dict):
                raise CatalogResponseError(
                    f"TMDB returned {type(payload).__name__} instead of an object for {path}"
                )
            return payload

    @staticmethod
    def _entries(payload: dict[str, Any], key: str, path: str) -> list[dict[str, Any]]:
        entries = payload.get(key, [])
        if entries is None:
            return []
        if not isinstance(entries, list):
            raise CatalogResponseError(f"TMDB payload for {path} has no '{key}' list")
        return [entry for entry in entries if isinstance(entry, dict)]

    @staticmethod
    def _parse(
        entries: list[dict[str, Any]],
        model: type[RecordT],
        *,
        media_type: str | None = None,
    ) -> list[RecordT]:
        records: list[RecordT] = []
        for entry in entries:
            if media_type and not entry.get("media_type"):
                entry = {**entry, "media_type": media_type}
            try:
                records.append(model.model_validate(entry))
            except ValidationError as exc:
                logger.debug("Skipping malformed TMDB entry %s: %s", entry.get("id"), exc)
        return records

    async def discover(
        self, kind: ContentType, query: DiscoverQuery
    ) -> list[CatalogRecord]:
        path = f"/discover/{MEDIA_PATHS[kind]}"
        params: dict[str, Any] = {"sort_by": query.sort_by, "page": 1}
        if query.genre_ids:
            params["with_genres"] = ",".join(str(genre) for genre in query.genre_ids)
        if query.excluded_genre_ids:
            params["without_genres"] = ",".join(
                str(genre) for genre in query.excluded_genre_ids
            )
        if query.year_range is not None:
            date_field = DATE_FIELDS[kind]
            params[f"{date_field}.gte"] = f"{query.year_range.start}-01-01"
            params[f"{date_field}.lte"] = f"{query.year_range.end}-12-31"
        if query.min_rating is not None:
            params["vote_average.gte"] = query.min_rating
        if query.min_votes is not None:
            params["vote_count.gte"] = query.min_votes
        params["with_original_language"] = query.original_language
        params["with_origin_country"] = query.origin_country
        params["region"] = query.region

        payload = await self._get(path, params)
        records = self._parse(
            self._entries(payload, "results", path),
            CatalogRecord,
            media_type=MEDIA_PATHS[kind],
        )
        logger.debug("Discover %s returned %d records", kind, len(records))
        return records

    async def search(self, text: str) -> list[CatalogRecord]:
        path = "/search/multi"
        payload = await self._get(path, {"query": text, "page": 1})
        entries = [
            entry
            for entry in self._entries(payload, "results", path)
            if entry.get("media_type") != "person"
        ]
        return self._parse(entries, CatalogRecord)

    async def search_person(self, name: str) -> list[PersonRecord]:
        path = "/search/person"
        payload = await self._get(path, {"query": name, "page": 1})
        return self._parse(self._entries(payload, "results", path), PersonRecord)

    async def person_credits(
        self, person_id: int, kind: ContentType | None = None
    ) -> list[CreditRecord]:
        path = f"/person/{person_id}/{CREDIT_PATHS[kind]}"
        payload = await self._get(path)
        return self._parse(
            self._entries(payload, "cast", path),
            CreditRecord,
            media_type=MEDIA_PATHS[kind] if kind else None,
        )

    async def trending(self, kind: ContentType | None = None) -> list[CatalogRecord]:
        path = f"/trending/{MEDIA_PATHS[kind] if kind else 'all'}/week"
        payload = await self._get(path)
        entries = [
            entry
            for entry in self._entries(payload, "results", path)
            if entry.get("media_type") != "person"
        ]
        return self._parse(
            entries, CatalogRecord, media_type=MEDIA_PATHS[kind] if kind else None
        )
