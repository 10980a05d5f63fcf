"""Session-level behaviour: detail selection, snapshots and carousel wiring."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

import httpx

from reelboard.config import Settings
from reelboard.errors import DetailLoadError
from reelboard.models import CatalogItem, DetailRecord, PrimaryDetails
from reelboard.services.details import DetailAggregator
from reelboard.services.query_controller import QueryController
from reelboard.services.session import DETAIL_ERROR, CatalogSession
from reelboard.services.tmdb import TMDBClient


def entry(item_id: int, **extra: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": item_id,
        "title": f"Title {item_id}",
        "media_type": "movie",
        "poster_path": f"/{item_id}.jpg",
        "backdrop_path": f"/{item_id}-wide.jpg",
    }
    data.update(extra)
    return data


def home_handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/trending/movie/week":
        return httpx.Response(200, json={"results": [entry(1), entry(2), entry(3)]})
    if path == "/trending/all/week":
        return httpx.Response(200, json={"results": [entry(4, media_type="tv", name="Show 4")]})
    if path == "/discover/movie":
        return httpx.Response(200, json={"results": [entry(5), entry(6)]})
    if path == "/discover/tv":
        return httpx.Response(200, json={"results": [entry(7, name="Show 7")]})
    return httpx.Response(404)


class StubDetails(DetailAggregator):
    """Detail loader whose lookups finish only when the test releases them."""

    def __init__(self) -> None:
        self.gates: dict[int, asyncio.Event] = {}
        self.failing: set[int] = set()
        self.crashing: set[int] = set()
        self.cancelled: list[int] = []
        self.calls: list[int] = []

    async def load_details(self, item: CatalogItem) -> DetailRecord:
        self.calls.append(item.id)
        gate = self.gates.get(item.id)
        if gate is not None:
            try:
                await gate.wait()
            except asyncio.CancelledError:
                self.cancelled.append(item.id)
                raise
        if item.id in self.failing:
            raise DetailLoadError(f"no details for {item.id}")
        if item.id in self.crashing:
            raise TypeError("'int' object is not iterable")
        return DetailRecord(
            item=item,
            primary=PrimaryDetails(title=item.title, vote_average=7.5),
            trailer_ref=f"trailer-{item.id}",
            cross_ref_id=f"tt{item.id:07d}",
            secondary_ratings={"Rotten Tomatoes": "91%"},
        )


def run_session(
    body: Callable[[CatalogSession, StubDetails], Awaitable[None]],
) -> None:
    async def runner() -> None:
        settings = Settings(
            _env_file=None,
            TMDB_API_KEY="tmdb-key",
            SEARCH_DEBOUNCE_SECONDS=0.01,
            CAROUSEL_INTERVAL_SECONDS=600,
        )
        transport = httpx.MockTransport(home_handler)
        async with httpx.AsyncClient(transport=transport, base_url="https://api.example.com") as http_client:
            details = StubDetails()
            session = CatalogSession(
                settings, QueryController(settings, TMDBClient(settings, http_client)), details
            )
            await session.start()
            try:
                await session.wait_idle()
                await body(session, details)
            finally:
                await session.stop()

    asyncio.run(runner())


def test_start_loads_home_rails_into_snapshot() -> None:
    async def body(session: CatalogSession, _: StubDetails) -> None:
        snapshot = session.snapshot()

        assert snapshot.category == "home"
        assert snapshot.loading is False
        assert [item.id for item in snapshot.hero] == [1, 2, 3]
        assert [item.id for item in snapshot.top_week] == [4]
        assert [item.id for item in snapshot.items] == [5, 6]
        assert snapshot.can_load_more is True
        assert session.carousel.item_count == 3
        assert snapshot.carousel_index == 0

    run_session(body)


def test_later_selection_wins_over_slower_earlier_one() -> None:
    async def body(session: CatalogSession, details: StubDetails) -> None:
        first = session.find_item(5, "movie")
        second = session.find_item(6, "movie")
        assert first is not None and second is not None
        details.gates[5] = asyncio.Event()

        session.select_item(first)
        await asyncio.sleep(0)
        session.select_item(second)
        await session.wait_idle()
        assert session.detail is not None
        assert session.detail.item_id == 6

        details.gates[5].set()
        await asyncio.sleep(0.01)

        snapshot = session.snapshot()
        assert snapshot.detail is not None
        assert snapshot.detail.item.id == 6
        assert snapshot.detail_loading is False
        assert details.calls == [5, 6]

    run_session(body)


def test_deselect_discards_in_flight_details() -> None:
    async def body(session: CatalogSession, details: StubDetails) -> None:
        item = session.find_item(1, "movie")
        assert item is not None
        details.gates[1] = asyncio.Event()

        session.select_item(item)
        await asyncio.sleep(0)
        assert session.snapshot().detail_loading is True

        session.deselect_item()
        details.gates[1].set()
        await asyncio.sleep(0.01)

        snapshot = session.snapshot()
        assert snapshot.detail is None
        assert snapshot.detail_loading is False
        assert snapshot.detail_error is None

    run_session(body)


def test_detail_failure_surfaces_message() -> None:
    async def body(session: CatalogSession, details: StubDetails) -> None:
        item = session.find_item(4, "series")
        assert item is not None
        details.failing.add(4)

        session.select_item(item)
        await session.wait_idle()

        snapshot = session.snapshot()
        assert snapshot.detail is None
        assert snapshot.detail_error == DETAIL_ERROR
        assert snapshot.detail_loading is False

    run_session(body)


def test_snapshot_detail_highlights_configured_ratings() -> None:
    async def body(session: CatalogSession, _: StubDetails) -> None:
        item = session.find_item(2, "movie")
        assert item is not None

        session.select_item(item)
        await session.wait_idle()

        detail = session.snapshot().detail
        assert detail is not None
        assert detail.score_percent == "75%"
        assert detail.trailer_url == "https://www.youtube.com/embed/trailer-2"
        assert detail.highlighted_ratings == {
            "Internet Movie Database": "N/A",
            "Rotten Tomatoes": "91%",
        }

    run_session(body)


def test_find_item_matches_on_kind_and_id() -> None:
    async def body(session: CatalogSession, _: StubDetails) -> None:
        assert session.find_item(4, "series") is not None
        assert session.find_item(4, "movie") is None
        assert session.find_item(999, "movie") is None

    run_session(body)


def test_carousel_resets_when_hero_rail_changes() -> None:
    async def body(session: CatalogSession, _: StubDetails) -> None:
        session.select_carousel_index(2)
        session.pointer_down(100)
        session.pointer_move(40)
        snapshot = session.snapshot()
        assert snapshot.carousel_index == 2
        assert snapshot.carousel_dragging is True
        assert snapshot.carousel_offset == -60

        session.select_category("tv")
        await session.wait_idle()

        snapshot = session.snapshot()
        assert snapshot.hero == []
        assert [item.id for item in snapshot.items] == [7]
        assert snapshot.carousel_index == 0
        assert snapshot.carousel_dragging is False
        assert session.carousel.item_count == 0

    run_session(body)


def test_carousel_intents_move_active_slide() -> None:
    async def body(session: CatalogSession, _: StubDetails) -> None:
        session.carousel_previous()
        assert session.snapshot().carousel_index == 2
        session.carousel_next()
        assert session.snapshot().carousel_index == 0

        session.pointer_down(200)
        session.pointer_move(100)
        session.pointer_up()
        assert session.snapshot().carousel_index == 1

    run_session(body)


def test_unexpected_detail_crash_surfaces_message() -> None:
    async def body(session: CatalogSession, details: StubDetails) -> None:
        item = session.find_item(3, "movie")
        assert item is not None
        details.crashing.add(3)

        session.select_item(item)
        await session.wait_idle()

        snapshot = session.snapshot()
        assert snapshot.detail is None
        assert snapshot.detail_error == DETAIL_ERROR
        assert snapshot.detail_loading is False

    run_session(body)


def test_superseded_and_dismissed_lookups_are_cancelled() -> None:
    async def body(session: CatalogSession, details: StubDetails) -> None:
        first = session.find_item(5, "movie")
        second = session.find_item(6, "movie")
        assert first is not None and second is not None
        details.gates[5] = asyncio.Event()
        details.gates[6] = asyncio.Event()

        session.select_item(first)
        await asyncio.sleep(0)
        session.select_item(second)
        await asyncio.sleep(0)
        assert details.cancelled == [5]

        session.deselect_item()
        await asyncio.sleep(0)
        assert details.cancelled == [5, 6]
        assert session.snapshot().detail_loading is False

    run_session(body)
