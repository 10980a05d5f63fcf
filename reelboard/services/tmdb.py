"""Client for the primary catalog provider, The Movie Database (TMDB)."""

from __future__ import annotations

import logging
from typing import Any, Literal

import httpx

from ..config import Settings
from ..errors import DecodeFailure, NetworkFailure

logger = logging.getLogger(__name__)

KindSegment = Literal["movie", "tv"]
TrendingScope = Literal["movie", "tv", "all"]


class TMDBClient:
    """Read-only wrapper around the TMDB endpoints the catalog relies on.

    Every method returns the decoded JSON object. Transport errors and error
    statuses raise :class:`NetworkFailure`; bodies that are not JSON objects
    raise :class:`DecodeFailure`.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        if not settings.tmdb_api_key:
            raise ValueError("TMDB API key is required when initialising TMDBClient")
        self._settings = settings
        self._client = http_client

    async def discover(self, kind: KindSegment, *, page: int = 1) -> dict[str, Any]:
        """Return one page of titles of ``kind`` ordered by popularity."""

        params = {
            "page": page,
            "sort_by": "popularity.desc",
            "with_original_language": self._settings.discover_language,
        }
        return await self._get(f"/discover/{kind}", params)

    async def search_multi(self, query: str, *, page: int = 1) -> dict[str, Any]:
        """Search movies, series and people at once."""

        return await self._get("/search/multi", {"query": query, "page": page})

    async def trending(
        self, scope: TrendingScope = "all", *, window: str = "week", page: int = 1
    ) -> dict[str, Any]:
        return await self._get(f"/trending/{scope}/{window}", {"page": page})

    async def details(self, kind: KindSegment, tmdb_id: int) -> dict[str, Any]:
        return await self._get(f"/{kind}/{tmdb_id}")

    async def videos(self, kind: KindSegment, tmdb_id: int) -> dict[str, Any]:
        return await self._get(f"/{kind}/{tmdb_id}/videos")

    async def external_ids(self, kind: KindSegment, tmdb_id: int) -> dict[str, Any]:
        return await self._get(f"/{kind}/{tmdb_id}/external_ids")

    async def _get(
        self, endpoint: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        query: dict[str, Any] = {"api_key": self._settings.tmdb_api_key}
        if params:
            query.update(params)

        try:
            response = await self._client.get(endpoint, params=query)
        except httpx.HTTPError as exc:
            logger.warning("TMDB request to %s failed: %s", endpoint, exc)
            raise NetworkFailure(f"TMDB request to {endpoint} failed") from exc

        if response.status_code >= 400:
            logger.warning(
                "TMDB request to %s returned %s: %s",
                endpoint,
                response.status_code,
                response.text,
            )
            raise NetworkFailure(
                f"TMDB request to {endpoint} returned {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning("Unexpected non-JSON TMDB response for %s", endpoint)
            raise DecodeFailure(f"TMDB response for {endpoint} is not JSON") from exc
        if not isinstance(payload, dict):
            logger.warning("Unexpected TMDB response structure for %s", endpoint)
            raise DecodeFailure(f"TMDB response for {endpoint} is not an object")
        return payload
