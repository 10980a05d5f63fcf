"""Merge primary details, trailers and secondary ratings for a selected item."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from pydantic import ValidationError

from ..config import Settings
from ..errors import CatalogError, DecodeFailure, DetailLoadError
from ..models import CatalogItem, DetailRecord, PrimaryDetails, media_kind_segment
from .omdb import OMDbClient
from .tmdb import KindSegment, TMDBClient

logger = logging.getLogger(__name__)

TRAILER_TYPE = "Trailer"


class DetailAggregator:
    """Fans out the detail lookups for one item and joins them into a record.

    Primary details are mandatory. The trailer list and the cross-reference id
    are fetched alongside them and only leave their field empty on failure.
    The secondary ratings lookup runs only once a cross-reference id is known.
    """

    def __init__(self, settings: Settings, tmdb: TMDBClient, omdb: OMDbClient) -> None:
        self._settings = settings
        self._tmdb = tmdb
        self._omdb = omdb

    async def load_details(self, item: CatalogItem) -> DetailRecord:
        """Return the merged record for ``item`` or raise :class:`DetailLoadError`."""

        segment = media_kind_segment(item.media_kind)
        if segment is None:
            raise DetailLoadError(
                f"Item {item.id} has no media kind with a details endpoint"
            )

        trailer_task = asyncio.create_task(self._trailer_ref(segment, item.id))
        cross_ref_task = asyncio.create_task(self._cross_ref_id(segment, item.id))
        optional_tasks = (trailer_task, cross_ref_task)
        try:
            payload = await self._tmdb.details(segment, item.id)
            primary = parse_primary_details(payload, fallback_title=item.title)
        except CatalogError as exc:
            for task in optional_tasks:
                task.cancel()
            await asyncio.gather(*optional_tasks, return_exceptions=True)
            logger.warning(
                "Primary details for %s %s failed: %s", item.media_kind, item.id, exc
            )
            raise DetailLoadError(
                f"Failed to load details for {item.media_kind} {item.id}"
            ) from exc
        except BaseException:
            for task in optional_tasks:
                task.cancel()
            raise

        # The optional lookups absorb their own failures; anything left is unexpected.
        trailer_ref, cross_ref_id = await asyncio.gather(
            *optional_tasks, return_exceptions=True
        )
        if isinstance(trailer_ref, BaseException):
            logger.error("Trailer lookup crashed", exc_info=trailer_ref)
            trailer_ref = None
        if isinstance(cross_ref_id, BaseException):
            logger.error("Cross-reference lookup crashed", exc_info=cross_ref_id)
            cross_ref_id = None

        secondary_ratings: dict[str, str] = {}
        if cross_ref_id:
            secondary_ratings = await self._secondary_ratings(cross_ref_id)

        return DetailRecord(
            item=item,
            primary=primary,
            trailer_ref=trailer_ref,
            cross_ref_id=cross_ref_id,
            secondary_ratings=secondary_ratings,
        )

    async def _trailer_ref(self, segment: KindSegment, tmdb_id: int) -> str | None:
        try:
            payload = await self._tmdb.videos(segment, tmdb_id)
        except CatalogError as exc:
            logger.info("No trailer list for %s %s: %s", segment, tmdb_id, exc)
            return None
        return select_trailer(payload.get("results"), site=self._settings.trailer_site)

    async def _cross_ref_id(self, segment: KindSegment, tmdb_id: int) -> str | None:
        try:
            payload = await self._tmdb.external_ids(segment, tmdb_id)
        except CatalogError as exc:
            logger.info("No external ids for %s %s: %s", segment, tmdb_id, exc)
            return None
        imdb_id = payload.get("imdb_id")
        if isinstance(imdb_id, str) and imdb_id.strip():
            return imdb_id.strip()
        return None

    async def _secondary_ratings(self, imdb_id: str) -> dict[str, str]:
        try:
            return await self._omdb.fetch_ratings(imdb_id)
        except Exception:
            logger.exception("Secondary ratings lookup failed for %s", imdb_id)
            return {}


def select_trailer(videos: Any, *, site: str) -> str | None:
    """Return the key of the first ``Trailer`` hosted on ``site``."""

    if not isinstance(videos, list):
        return None
    for video in videos:
        if not isinstance(video, dict):
            continue
        if video.get("site") == site and video.get("type") == TRAILER_TYPE:
            key = video.get("key")
            if isinstance(key, str) and key:
                return key
    return None


def parse_primary_details(
    payload: dict[str, Any], *, fallback_title: str
) -> PrimaryDetails:
    """Extract the fields the detail view shows from a movie or series payload.

    Fields with an unexpected shape are left empty; a payload the model still
    rejects raises :class:`DecodeFailure`.
    """

    raw_genres = payload.get("genres")
    genres = tuple(
        str(genre["name"])
        for genre in (raw_genres if isinstance(raw_genres, list) else [])
        if isinstance(genre, dict) and genre.get("name")
    )

    runtime = payload.get("runtime")
    if not _is_int(runtime):
        episode_runtimes = payload.get("episode_run_time")
        if not isinstance(episode_runtimes, list):
            episode_runtimes = []
        runtime = next((value for value in episode_runtimes if _is_int(value)), None)

    vote_average = payload.get("vote_average")
    if isinstance(vote_average, bool) or not isinstance(vote_average, (int, float)):
        vote_average = None

    try:
        return PrimaryDetails(
            title=_text(payload.get("title")) or _text(payload.get("name")) or fallback_title,
            tagline=_text(payload.get("tagline")),
            genres=genres,
            runtime_minutes=runtime,
            status=_text(payload.get("status")),
            overview=_text(payload.get("overview")),
            vote_average=float(vote_average) if vote_average is not None else None,
            release_date=_text(payload.get("release_date"))
            or _text(payload.get("first_air_date")),
        )
    except ValidationError as exc:
        raise DecodeFailure(f"Unexpected primary details payload: {exc}") from exc


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None
