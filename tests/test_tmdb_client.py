"""Tests for the TMDB API client helpers."""

from __future__ import annotations

from typing import Any, cast

import httpx
import pytest

from reelboard.config import Settings
from reelboard.errors import DecodeFailure, NetworkFailure
from reelboard.services.tmdb import TMDBClient


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


def build_settings(**overrides: Any) -> Settings:
    """Return a settings object with defaults suitable for tests."""

    base = {"TMDB_API_KEY": "tmdb-key"}
    base.update(overrides)
    return Settings(_env_file=None, **base)  # type: ignore[arg-type]


def test_client_requires_api_key() -> None:
    with pytest.raises(ValueError, match="TMDB API key is required"):
        TMDBClient(Settings(_env_file=None, TMDB_API_KEY=""), cast(httpx.AsyncClient, object()))


@pytest.mark.anyio("asyncio")
async def test_discover_sends_popularity_and_language_filters() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"page": 2, "results": []})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://api.example.com") as http_client:
        client = TMDBClient(build_settings(DISCOVER_LANGUAGE="ja"), http_client)
        payload = await client.discover("tv", page=2)

    assert payload == {"page": 2, "results": []}
    request = requests[0]
    assert request.url.path == "/discover/tv"
    assert request.url.params["api_key"] == "tmdb-key"
    assert request.url.params["page"] == "2"
    assert request.url.params["sort_by"] == "popularity.desc"
    assert request.url.params["with_original_language"] == "ja"


@pytest.mark.anyio("asyncio")
async def test_item_endpoints_use_kind_and_id() -> None:
    paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        return httpx.Response(200, json={"id": 42})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://api.example.com") as http_client:
        client = TMDBClient(build_settings(), http_client)
        await client.details("movie", 42)
        await client.videos("tv", 42)
        await client.external_ids("tv", 42)
        await client.trending("all")
        await client.search_multi("dune")

    assert paths == [
        "/movie/42",
        "/tv/42/videos",
        "/tv/42/external_ids",
        "/trending/all/week",
        "/search/multi",
    ]


@pytest.mark.anyio("asyncio")
async def test_error_status_raises_network_failure() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"status_message": "Invalid API key"})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://api.example.com") as http_client:
        client = TMDBClient(build_settings(), http_client)
        with pytest.raises(NetworkFailure) as exc_info:
            await client.discover("movie")

    assert exc_info.value.status_code == 401


@pytest.mark.anyio("asyncio")
async def test_transport_error_raises_network_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://api.example.com") as http_client:
        client = TMDBClient(build_settings(), http_client)
        with pytest.raises(NetworkFailure):
            await client.search_multi("alien")


@pytest.mark.anyio("asyncio")
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>maintenance</html>"),
        httpx.Response(200, json=[{"id": 1}]),
    ],
)
async def test_unexpected_body_raises_decode_failure(response: httpx.Response) -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return response

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://api.example.com") as http_client:
        client = TMDBClient(build_settings(), http_client)
        with pytest.raises(DecodeFailure):
            await client.trending("movie")
