"""Entry point for the FastAPI-powered search service."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .knowledge import get_knowledge
from .query_parser import QueryParser
from .services.catalog import (
    CatalogError,
    CatalogRequestError,
    CatalogResponseError,
    CatalogUnavailableError,
)
from .services.search_coordinator import SearchCoordinator
from .services.tmdb import TMDBCatalogClient

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

MAX_QUERY_LENGTH = 500

app: FastAPI


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    knowledge = get_knowledge(settings.knowledge_dir)
    fastapi_app.state.query_parser = QueryParser(knowledge)

    if settings.has_tmdb_credentials:
        tmdb_http_client = await exit_stack.enter_async_context(
            httpx.AsyncClient(
                base_url=str(settings.tmdb_api_url).rstrip("/"),
                timeout=httpx.Timeout(settings.tmdb_timeout_seconds, connect=5.0),
            )
        )
        catalog = TMDBCatalogClient(settings, tmdb_http_client)
        fastapi_app.state.search_coordinator = SearchCoordinator(catalog, settings)
    else:
        logger.warning("TMDB credentials missing; /search will be unavailable")
        fastapi_app.state.search_coordinator = None

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Natural-language movie and series search backed by TMDB",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_parser(app: FastAPI) -> QueryParser:
    parser = getattr(app.state, "query_parser", None)
    if not isinstance(parser, QueryParser):
        raise RuntimeError("Query parser not initialised")
    return parser


def get_coordinator(app: FastAPI) -> SearchCoordinator:
    coordinator = getattr(app.state, "search_coordinator", None)
    if not isinstance(coordinator, SearchCoordinator):
        raise HTTPException(
            status_code=503, detail="Catalog search is not configured on this server."
        )
    return coordinator


def _require_query(q: str) -> str:
    text = q.strip()
    if not text:
        raise HTTPException(status_code=400, detail="Query parameter 'q' must not be blank.")
    return text


def _catalog_http_error(exc: CatalogError) -> HTTPException:
    if isinstance(exc, CatalogRequestError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, CatalogResponseError):
        return HTTPException(status_code=502, detail=str(exc))
    if isinstance(exc, CatalogUnavailableError):
        return HTTPException(status_code=503, detail=str(exc))
    return HTTPException(status_code=502, detail=str(exc))


def register_routes(fastapi_app: FastAPI) -> None:
    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/intent")
    async def intent_endpoint(
        q: str = Query(default="", max_length=MAX_QUERY_LENGTH),
    ) -> dict[str, Any]:
        parser = get_parser(fastapi_app)
        intent = parser.parse(_require_query(q))
        return intent.to_payload()

    @fastapi_app.get("/search")
    async def search_endpoint(
        q: str = Query(default="", max_length=MAX_QUERY_LENGTH),
        limit: int | None = Query(default=None, ge=1, le=100),
    ) -> dict[str, Any]:
        text = _require_query(q)
        parser = get_parser(fastapi_app)
        coordinator = get_coordinator(fastapi_app)
        intent = parser.parse(text)
        try:
            outcome = await coordinator.resolve(intent, limit=limit)
        except CatalogError as exc:
            logger.warning("Search for %r failed: %s", text, exc)
            raise _catalog_http_error(exc) from exc

        payload = intent.to_payload()
        payload.update(
            {
                "query": text,
                "description": outcome.description,
                "items": [item.to_payload() for item in outcome.items],
                "empty": outcome.is_empty,
            }
        )
        return payload


app = create_app()


if __name__ == "__main__":  # pragma: no cover - manual execution
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )
