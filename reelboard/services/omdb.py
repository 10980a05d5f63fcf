"""Helper client for the secondary ratings provider (OMDb)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import Settings

logger = logging.getLogger(__name__)


class OMDbClient:
    """Looks up third-party ratings for a title by its IMDb identifier.

    Lookups never raise: any failure yields an empty mapping so the caller can
    treat missing ratings as absent data.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient) -> None:
        self._settings = settings
        self._client = http_client

    async def fetch_ratings(self, imdb_id: str) -> dict[str, str]:
        """Return ``{source name: value}`` for ``imdb_id``."""

        normalized_id = (imdb_id or "").strip()
        if not normalized_id:
            return {}
        if not self._settings.omdb_api_key:
            logger.info("OMDb API key missing, skipping ratings for %s", normalized_id)
            return {}

        params = {"i": normalized_id, "apikey": self._settings.omdb_api_key}
        try:
            response = await self._client.get("/", params=params)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("OMDb lookup failed for %s: %s", normalized_id, exc)
            return {}

        try:
            payload = response.json()
        except ValueError:
            logger.warning("Unexpected non-JSON OMDb response for %s", normalized_id)
            return {}
        if not isinstance(payload, dict):
            return {}
        if str(payload.get("Response", "True")).lower() == "false":
            logger.info(
                "OMDb has no entry for %s: %s", normalized_id, payload.get("Error")
            )
            return {}

        return parse_ratings(payload.get("Ratings"))


def parse_ratings(raw: Any) -> dict[str, str]:
    """Collapse an OMDb ``Ratings`` list into a source-to-value mapping."""

    if not isinstance(raw, list):
        return {}
    ratings: dict[str, str] = {}
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        source = entry.get("Source")
        value = entry.get("Value")
        if isinstance(source, str) and source and value is not None:
            ratings.setdefault(source, str(value))
    return ratings
