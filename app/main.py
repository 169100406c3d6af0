"""Entry point for the FastAPI-powered Stremio addon."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, Mapping
from urllib.parse import parse_qsl

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .cache import TTLStore
from .config import settings
from .services.catalog_service import CatalogService
from .services.tmdb import TMDBClient

logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
logger = logging.getLogger(__name__)

MANIFEST_ID = "org.theatrical.catalogue"
MANIFEST_VERSION = "3.0.1"

app: FastAPI


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    tmdb_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=str(settings.tmdb_api_url),
            timeout=httpx.Timeout(settings.tmdb_list_timeout, connect=5.0),
        )
    )
    store = TTLStore(
        default_ttl=settings.response_cache_seconds,
        maxsize=settings.cache_max_entries,
        check_period=settings.cache_check_period,
        enabled=settings.cache_enabled,
    )
    tmdb = TMDBClient(settings, tmdb_http_client)
    catalog_service = CatalogService(settings, tmdb, store)

    fastapi_app.state.catalog_service = catalog_service
    await catalog_service.start()
    logger.info("%s %s ready", settings.app_name, MANIFEST_VERSION)

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await catalog_service.stop()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Latest theatrical releases aggregated from TMDB for Stremio",
        version=MANIFEST_VERSION,
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


def get_catalog_service(app: FastAPI) -> CatalogService:
    service = getattr(app.state, "catalog_service", None)
    if not isinstance(service, CatalogService):
        raise RuntimeError("Catalog service not initialised")
    return service


def parse_extra(raw: str | None) -> dict[str, str]:
    """Parse a Stremio extra path segment such as ``skip=20&search=dune``."""

    if not raw:
        return {}
    return {key: value for key, value in parse_qsl(raw, keep_blank_values=True)}


def coerce_skip(value: Any) -> int:
    try:
        skip = int(str(value).strip())
    except (TypeError, ValueError):
        return 0
    return max(skip, 0)


def register_routes(fastapi_app: FastAPI) -> None:
    async def _catalog_endpoint(
        content_type: str,
        catalog_id: str,
        extra: Mapping[str, str],
    ) -> JSONResponse:
        if content_type not in {"movie", "series"}:
            raise HTTPException(status_code=400, detail="Unsupported content type")
        service = get_catalog_service(fastapi_app)
        search = (extra.get("search") or "").strip() or None
        try:
            payload = await service.get_catalog_payload(
                content_type,
                catalog_id,
                skip=coerce_skip(extra.get("skip", 0)),
                search=search,
            )
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return JSONResponse(payload)

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/manifest.json")
    async def manifest() -> dict[str, Any]:
        service = get_catalog_service(fastapi_app)
        return {
            "id": MANIFEST_ID,
            "version": MANIFEST_VERSION,
            "name": settings.app_name,
            "description": "Latest theatrical releases with search",
            "resources": ["catalog", "meta"],
            "types": ["movie", "series"],
            "idPrefixes": ["tt"],
            "catalogs": service.manifest_catalogs(),
            "behaviorHints": {"configurable": False, "adult": False},
        }

    @fastapi_app.get("/catalog/{content_type}/{catalog_id}.json")
    async def catalog(
        request: Request, content_type: str, catalog_id: str
    ) -> JSONResponse:
        return await _catalog_endpoint(
            content_type, catalog_id, dict(request.query_params)
        )

    @fastapi_app.get("/catalog/{content_type}/{catalog_id}/{extra}.json")
    async def catalog_with_extra(
        content_type: str, catalog_id: str, extra: str
    ) -> JSONResponse:
        return await _catalog_endpoint(content_type, catalog_id, parse_extra(extra))

    @fastapi_app.get("/meta/{content_type}/{meta_id}.json")
    async def meta(content_type: str, meta_id: str) -> dict[str, Any]:
        if content_type not in {"movie", "series"}:
            raise HTTPException(status_code=400, detail="Unsupported content type")
        service = get_catalog_service(fastapi_app)
        detail = await service.get_meta(content_type, meta_id)
        return {"meta": detail.to_meta() if detail is not None else None}


app = create_app()


if __name__ == "__main__":  # pragma: no cover - manual execution
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )
