"""Client for The Movie Database (TMDB) list, detail and id endpoints."""

from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx
from pydantic import ValidationError

from ..catalogs import DiscoverCriteria
from ..config import Settings
from ..models import RawItem

logger = logging.getLogger(__name__)


class TMDBError(RuntimeError):
    """Raised when a TMDB request fails or returns an unusable payload."""


def _endpoint(content_type: str) -> str:
    return "tv" if content_type == "series" else "movie"


class TMDBClient:
    """Thin wrapper around the TMDB v3 HTTP API."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        if not settings.tmdb_api_key:
            raise ValueError("TMDB API key is required when initialising TMDBClient")
        self._settings = settings
        self._client = http_client

    async def discover(
        self,
        content_type: str,
        criteria: DiscoverCriteria,
        *,
        page: int,
        released_before: str,
    ) -> list[RawItem]:
        """Return one page of newest-first releases matching ``criteria``."""

        if content_type == "series":
            params: dict[str, Any] = {
                "first_air_date.lte": released_before,
                "sort_by": "first_air_date.desc",
            }
        else:
            params = {
                "primary_release_date.lte": released_before,
                "sort_by": "primary_release_date.desc",
            }
        params["with_original_language"] = criteria.language
        if criteria.region:
            params["region"] = criteria.region
        if criteria.release_type:
            params["with_release_type"] = criteria.release_type
        params["vote_count.gte"] = str(criteria.min_votes)
        params["page"] = page

        payload = await self._get(
            f"/discover/{_endpoint(content_type)}",
            params,
            timeout=self._settings.tmdb_list_timeout,
        )
        return self._parse_results(payload)

    async def search(self, content_type: str, query: str, *, page: int) -> list[RawItem]:
        """Return one page of free-text search results."""

        payload = await self._get(
            f"/search/{_endpoint(content_type)}",
            {"query": query, "page": page},
            timeout=self._settings.tmdb_list_timeout,
        )
        return self._parse_results(payload)

    async def details(
        self,
        tmdb_id: int,
        content_type: str,
        *,
        append: Sequence[str] = (),
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Fetch the full record for an item, optionally with appended sections."""

        params: dict[str, Any] = {}
        if append:
            params["append_to_response"] = ",".join(append)
        payload = await self._get(
            f"/{_endpoint(content_type)}/{tmdb_id}",
            params,
            timeout=timeout or self._settings.tmdb_detail_timeout,
        )
        if not isinstance(payload, dict):
            raise TMDBError(f"Unexpected TMDB detail payload for {tmdb_id}")
        return payload

    async def external_ids(self, tmdb_id: int, content_type: str) -> str | None:
        """Return the IMDb id TMDB holds for an item, if any."""

        payload = await self._get(
            f"/{_endpoint(content_type)}/{tmdb_id}/external_ids",
            {},
            timeout=self._settings.tmdb_external_id_timeout,
        )
        imdb_id = payload.get("imdb_id") if isinstance(payload, dict) else None
        if isinstance(imdb_id, str) and imdb_id.strip():
            return imdb_id.strip()
        return None

    async def find_by_imdb(self, imdb_id: str, content_type: str) -> int | None:
        """Return the TMDB id for an IMDb id within the given content type."""

        payload = await self._get(
            f"/find/{imdb_id}",
            {"external_source": "imdb_id"},
            timeout=self._settings.tmdb_meta_timeout,
        )
        if not isinstance(payload, dict):
            return None
        key = "tv_results" if content_type == "series" else "movie_results"
        results = payload.get(key) or []
        if not results or not isinstance(results[0], dict):
            return None
        try:
            return int(results[0]["id"])
        except (KeyError, TypeError, ValueError):
            return None

    async def _get(
        self, path: str, params: dict[str, Any], *, timeout: float
    ) -> Any:
        query = {**params, "api_key": self._settings.tmdb_api_key}
        try:
            response = await self._client.get(path, params=query, timeout=timeout)
        except httpx.HTTPError as exc:
            raise TMDBError(f"TMDB request to {path} failed: {exc}") from exc
        if response.status_code >= 400:
            logger.debug(
                "TMDB request to %s failed (%s): %s",
                path,
                response.status_code,
                response.text,
            )
            raise TMDBError(f"TMDB request to {path} returned {response.status_code}")
        try:
            return response.json()
        except ValueError as exc:
            raise TMDBError(f"TMDB returned non-JSON payload for {path}") from exc

    @staticmethod
    def _parse_results(payload: Any) -> list[RawItem]:
        if not isinstance(payload, dict):
            raise TMDBError("Unexpected TMDB list payload")
        results = payload.get("results") or []
        items: list[RawItem] = []
        for entry in results:
            if not isinstance(entry, dict):
                continue
            try:
                items.append(RawItem.model_validate(entry))
            except ValidationError:
                logger.debug("Skipping malformed TMDB result %s", entry.get("id"))
        return items
