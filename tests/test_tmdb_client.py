"""Tests for the TMDB API client."""

from __future__ import annotations

from typing import cast

import httpx
import pytest

from app.catalogs import CATALOG_MAP
from app.services.tmdb import TMDBClient, TMDBError
from tests.factories import FakeTMDB, build_settings, make_movie, tmdb_client


@pytest.mark.anyio("asyncio")
async def test_discover_skips_malformed_results() -> None:
    fake = FakeTMDB()
    fake.discover_pages[("movie", "hi", 2)] = [
        make_movie(1, language="hi"),
        "not-a-dict",
        {"id": "not-a-number"},
    ]
    async with tmdb_client(fake) as tmdb:
        items = await tmdb.discover(
            "movie",
            CATALOG_MAP["indian_latest"].primary,
            page=2,
            released_before="2024-06-02",
        )

    assert [item.id for item in items] == [1]
    params = fake.requests[0].url.params
    assert params["page"] == "2"
    assert params["primary_release_date.lte"] == "2024-06-02"


@pytest.mark.anyio("asyncio")
async def test_errors_are_wrapped() -> None:
    fake = FakeTMDB()
    fake.failing_paths.add("/search/movie")
    async with tmdb_client(fake) as tmdb:
        with pytest.raises(TMDBError):
            await tmdb.search("movie", "dune", page=1)
        with pytest.raises(TMDBError):
            await tmdb.details(404, "movie")


@pytest.mark.anyio("asyncio")
async def test_transport_errors_and_bad_payloads_raise_tmdb_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.startswith("/search"):
            raise httpx.ConnectTimeout("timed out", request=request)
        return httpx.Response(200, text="<html>")

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://tmdb.test") as http_client:
        client = TMDBClient(build_settings(), http_client)
        with pytest.raises(TMDBError):
            await client.search("series", "office", page=1)
        with pytest.raises(TMDBError):
            await client.external_ids(1, "movie")


@pytest.mark.anyio("asyncio")
async def test_external_ids_and_find() -> None:
    fake = FakeTMDB()
    fake.external_ids[("tv", 2)] = "  "
    fake.find_results["tt0000009"] = {"movie_results": [], "tv_results": [{"id": 9}]}
    async with tmdb_client(fake) as tmdb:
        assert await tmdb.external_ids(1, "movie") == "tt0000001"
        assert await tmdb.external_ids(2, "series") is None
        assert await tmdb.find_by_imdb("tt0000009", "series") == 9
        assert await tmdb.find_by_imdb("tt0000009", "movie") is None

    find_request = fake.requests_for("/find")[0]
    assert find_request.url.params["external_source"] == "imdb_id"


def test_client_requires_api_key() -> None:
    settings = build_settings(TMDB_API_KEY=None)

    with pytest.raises(ValueError, match="TMDB API key is required"):
        TMDBClient(settings, cast(httpx.AsyncClient, object()))
