"""Presentation-facing session combining queries, details and the hero carousel."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress

from ..config import Settings
from ..errors import CatalogError
from ..models import (
    CatalogItem,
    Category,
    DetailRecord,
    DetailView,
    MediaKind,
    SessionSnapshot,
)
from ..state import QueryState
from .carousel import CarouselMachine, CarouselTimer
from .details import DetailAggregator
from .query_controller import QueryController

logger = logging.getLogger(__name__)

DETAIL_ERROR = "Failed to load details. Please try again."


class CatalogSession:
    """Single-user view state driven by presentation intents.

    The session never hands out mutable state: :meth:`snapshot` builds a fresh
    :class:`SessionSnapshot` from the latest query state, detail selection and
    carousel position.
    """

    def __init__(
        self,
        settings: Settings,
        controller: QueryController,
        details: DetailAggregator,
        carousel: CarouselMachine | None = None,
    ) -> None:
        self._settings = settings
        self._controller = controller
        self._details = details
        self._carousel = carousel or CarouselMachine(
            interval_seconds=settings.carousel_interval_seconds,
            swipe_threshold=settings.swipe_threshold_px,
        )
        self._timer = CarouselTimer(self._carousel)
        self._hero: tuple[CatalogItem, ...] = controller.state.hero
        self._carousel.reset(len(self._hero))

        self._selection_token = 0
        self._detail: DetailRecord | None = None
        self._detail_loading = False
        self._detail_error: str | None = None
        self._detail_task: asyncio.Task[None] | None = None

        controller.subscribe(self._on_query_state)

    @property
    def controller(self) -> QueryController:
        return self._controller

    @property
    def carousel(self) -> CarouselMachine:
        return self._carousel

    @property
    def detail(self) -> DetailRecord | None:
        return self._detail

    async def start(self) -> None:
        await self._controller.start()
        self._timer.start()

    async def stop(self) -> None:
        await self._timer.stop()
        if self._detail_task is not None:
            self._detail_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._detail_task
            self._detail_task = None
        await self._controller.close()

    async def wait_idle(self) -> None:
        """Wait for pending searches, list fetches and the detail lookup to settle."""

        await self._controller.wait_idle()
        if self._detail_task is not None:
            await asyncio.gather(self._detail_task, return_exceptions=True)

    # Intents -----------------------------------------------------------------

    def select_category(self, category: Category) -> None:
        self._controller.set_category(category)

    def set_search_text(self, text: str) -> None:
        self._controller.set_search_term(text)

    def request_load_more(self) -> bool:
        return self._controller.load_more()

    def find_item(self, item_id: int, media_kind: MediaKind) -> CatalogItem | None:
        """Locate a currently visible item by its per-kind identity."""

        state = self._controller.state
        for collection in (state.items, state.hero, state.top_week):
            for item in collection:
                if item.key == (media_kind, item_id):
                    return item
        return None

    def select_item(self, item: CatalogItem) -> None:
        """Open the detail view for ``item``; an older selection is abandoned."""

        self._cancel_detail_task()
        self._selection_token += 1
        token = self._selection_token
        self._detail = None
        self._detail_error = None
        self._detail_loading = True
        self._detail_task = asyncio.create_task(self._load_detail(token, item))

    def deselect_item(self) -> None:
        self._cancel_detail_task()
        self._selection_token += 1
        self._detail = None
        self._detail_error = None
        self._detail_loading = False

    def pointer_down(self, x: float) -> None:
        self._carousel.pointer_down(x)

    def pointer_move(self, x: float) -> None:
        self._carousel.pointer_move(x)

    def pointer_up(self) -> None:
        self._carousel.pointer_up()

    def select_carousel_index(self, index: int) -> None:
        self._carousel.select(index)

    def carousel_next(self) -> None:
        self._carousel.next()

    def carousel_previous(self) -> None:
        self._carousel.previous()

    # Output ------------------------------------------------------------------

    def snapshot(self) -> SessionSnapshot:
        state = self._controller.state
        detail_view = None
        if self._detail is not None:
            detail_view = DetailView.from_record(
                self._detail,
                embed_base_url=self._settings.trailer_embed_url,
                rating_sources=self._settings.rating_sources,
            )
        return SessionSnapshot(
            mode=state.mode,
            category=state.category,
            search_term=state.search_term,
            page=state.page,
            generation=state.generation,
            items=list(state.items),
            hero=list(state.hero),
            top_week=list(state.top_week),
            loading=state.loading,
            fetching_more=state.fetching_more,
            can_load_more=state.can_load_more,
            error=state.error,
            detail=detail_view,
            detail_loading=self._detail_loading,
            detail_error=self._detail_error,
            carousel_index=self._carousel.active_index,
            carousel_dragging=self._carousel.is_dragging,
            carousel_offset=self._carousel.offset,
        )

    async def _load_detail(self, token: int, item: CatalogItem) -> None:
        try:
            record = await self._details.load_details(item)
        except CatalogError as exc:
            if token != self._selection_token:
                return
            logger.warning("Details for %s %s failed: %s", item.media_kind, item.id, exc)
            self._fail_detail()
            return
        except Exception:
            if token != self._selection_token:
                return
            logger.exception("Details for %s %s crashed", item.media_kind, item.id)
            self._fail_detail()
            return
        if token != self._selection_token:
            logger.debug("Discarding details for superseded selection %s", token)
            return
        self._detail = record
        self._detail_loading = False

    def _fail_detail(self) -> None:
        self._detail_error = DETAIL_ERROR
        self._detail_loading = False

    def _cancel_detail_task(self) -> None:
        if self._detail_task is not None and not self._detail_task.done():
            self._detail_task.cancel()
        self._detail_task = None

    def _on_query_state(self, state: QueryState) -> None:
        if state.hero != self._hero:
            self._hero = state.hero
            self._carousel.reset(len(state.hero))
