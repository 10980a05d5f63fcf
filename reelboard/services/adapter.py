"""Normalization of raw primary-provider entries into :class:`CatalogItem`."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from ..config import Settings
from ..errors import DecodeFailure
from ..models import NO_SYNOPSIS, CatalogItem, MediaKind, media_kind_from_tag

logger = logging.getLogger(__name__)

UNTITLED = "Untitled"


class SourceAdapter:
    """Turns provider result entries into catalog items using configured image hosts."""

    def __init__(self, settings: Settings) -> None:
        self._poster_base_url = settings.tmdb_poster_base_url
        self._backdrop_base_url = settings.tmdb_backdrop_base_url
        self._poster_placeholder = settings.poster_placeholder_url
        self._backdrop_placeholder = settings.backdrop_placeholder_url

    def normalize(
        self, entry: Mapping[str, Any], context_kind: MediaKind
    ) -> CatalogItem:
        """Return the canonical item for one provider entry.

        The entry's own ``media_type`` tag wins over ``context_kind``; the
        context only applies to listings whose entries carry no tag.
        """

        tag = entry.get("media_type")
        media_kind = media_kind_from_tag(tag) if isinstance(tag, str) and tag else context_kind

        title = _first_text(entry, "title", "name") or UNTITLED
        description = _first_text(entry, "overview") or NO_SYNOPSIS
        release_date = _first_text(entry, "release_date", "first_air_date")

        rating = entry.get("vote_average")
        if isinstance(rating, bool) or not isinstance(rating, (int, float)):
            rating = None

        return CatalogItem(
            id=int(entry["id"]),
            title=title,
            description=description,
            media_kind=media_kind,
            poster_url=self._image_url(
                entry.get("poster_path"), self._poster_base_url, self._poster_placeholder
            ),
            backdrop_url=self._image_url(
                entry.get("backdrop_path"),
                self._backdrop_base_url,
                self._backdrop_placeholder,
            ),
            rating=float(rating) if rating is not None else None,
            release_date=release_date,
        )

    def normalize_results(
        self,
        payload: Any,
        context_kind: MediaKind,
        *,
        limit: int | None = None,
    ) -> list[CatalogItem]:
        """Filter and normalize a provider ``results`` payload, preserving order."""

        entries = filter_entries(extract_results(payload))
        if limit is not None:
            entries = entries[:limit]
        return [self.normalize(entry, context_kind) for entry in entries]

    @staticmethod
    def _image_url(path: Any, base_url: str, placeholder: str) -> str:
        if not isinstance(path, str) or not path.strip():
            return placeholder
        path = path.strip()
        if path.startswith("http"):
            return path
        return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def extract_results(payload: Any) -> list[Mapping[str, Any]]:
    """Return the entry list from a provider page, skipping non-object entries."""

    if not isinstance(payload, Mapping):
        raise DecodeFailure("Provider payload is not a JSON object")
    results = payload.get("results")
    if not isinstance(results, list):
        raise DecodeFailure("Provider payload has no results list")

    entries: list[Mapping[str, Any]] = []
    for entry in results:
        if not isinstance(entry, Mapping) or not _has_id(entry):
            logger.debug("Skipping malformed provider entry: %r", entry)
            continue
        entries.append(entry)
    return entries


def filter_entries(entries: Iterable[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    """Drop people and anything without a poster; placeholders are not substituted here."""

    return [
        entry
        for entry in entries
        if entry.get("media_type") != "person" and entry.get("poster_path")
    ]


def _has_id(entry: Mapping[str, Any]) -> bool:
    value = entry.get("id")
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, str) and value.isdigit()


def _first_text(entry: Mapping[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = entry.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None
