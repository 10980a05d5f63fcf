"""Owner of the active query: category browsing, live search and pagination."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine

from ..config import Settings
from ..errors import CatalogError
from ..models import CatalogItem, Category, MediaKind, category_media_kind
from ..state import (
    BROWSE_ERROR,
    SEARCH_ERROR,
    QueryState,
    apply_category,
    apply_failure,
    apply_home,
    apply_load_more,
    apply_page,
    apply_search_commit,
    apply_search_text,
)
from .adapter import SourceAdapter
from .tmdb import TMDBClient

logger = logging.getLogger(__name__)

StateListener = Callable[[QueryState], None]

ANIME_QUERY = "anime"


class QueryController:
    """Resolves presentation intents into provider fetches.

    All mutation happens on the event loop that calls the intent methods.
    Each fetch captures the generation of the query it was issued for and its
    result is committed through the pure transitions in :mod:`reelboard.state`,
    which ignore anything issued for an older generation.
    """

    def __init__(
        self,
        settings: Settings,
        tmdb: TMDBClient,
        adapter: SourceAdapter | None = None,
    ) -> None:
        self._settings = settings
        self._tmdb = tmdb
        self._adapter = adapter or SourceAdapter(settings)
        self._state = QueryState()
        self._listeners: list[StateListener] = []
        self._debounce_task: asyncio.Task[None] | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def state(self) -> QueryState:
        return self._state

    def subscribe(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    async def start(self) -> None:
        """Load the initial home view."""

        self._commit(apply_category(self._state, self._state.category))
        self._issue_browse()

    async def close(self) -> None:
        """Cancel the pending debounce and abandon in-flight fetches."""

        pending = list(self._tasks)
        if self._debounce_task is not None:
            pending.append(self._debounce_task)
            self._debounce_task = None
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def wait_idle(self) -> None:
        """Wait until no debounce is pending and every issued fetch has settled."""

        while True:
            pending = [task for task in self._tasks if not task.done()]
            if self._debounce_task is not None and not self._debounce_task.done():
                pending.append(self._debounce_task)
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def set_category(self, category: Category) -> None:
        """Browse ``category`` from page one, clearing any search."""

        self._cancel_debounce()
        self._commit(apply_category(self._state, category))
        self._issue_browse()

    def set_search_term(self, term: str) -> None:
        """Record ``term`` now and query the provider once typing settles."""

        self._commit(apply_search_text(self._state, term))
        self._cancel_debounce()
        self._debounce_task = asyncio.create_task(self._debounced_search())

    def load_more(self) -> bool:
        """Fetch the next browse page; returns ``False`` when not allowed right now."""

        state = self._state
        if not state.can_load_more:
            logger.debug(
                "Ignoring load-more (mode=%s, items=%s, loading=%s, fetching_more=%s)",
                state.mode,
                len(state.items),
                state.loading,
                state.fetching_more,
            )
            return False
        self._commit(apply_load_more(state))
        generation = state.generation
        page = state.cursor.next_page
        self._spawn(self._fetch_browse(generation, state.category, page))
        return True

    async def fetch_home(self, generation: int | None = None) -> None:
        """Load the hero rail, the top-of-week rail and discovery page one together."""

        if generation is None:
            generation = self._state.generation
        hero_result, top_result, discovery_result = await asyncio.gather(
            self._tmdb.trending("movie"),
            self._tmdb.trending("all"),
            self._tmdb.discover("movie", page=1),
            return_exceptions=True,
        )

        hero = self._rail_items(hero_result, "hero", limit=None)
        top_week = self._rail_items(
            top_result, "top-of-week", limit=self._settings.top_week_limit
        )
        discovery: list[CatalogItem] | None
        try:
            discovery = self._normalize(discovery_result, "movie")
        except CatalogError as exc:
            logger.warning("Home discovery list failed: %s", exc)
            discovery = None

        self._commit_for(
            generation,
            apply_home(
                self._state,
                generation,
                hero=hero,
                top_week=top_week,
                discovery=discovery,
            ),
        )

    def _rail_items(
        self, result: Any, name: str, *, limit: int | None
    ) -> list[CatalogItem]:
        try:
            return self._normalize(result, "movie", limit=limit)
        except CatalogError as exc:
            logger.warning("Home %s rail degraded to empty: %s", name, exc)
            return []

    def _normalize(
        self, result: Any, context_kind: MediaKind, *, limit: int | None = None
    ) -> list[CatalogItem]:
        if isinstance(result, CatalogError):
            raise result
        if isinstance(result, BaseException):
            logger.error("Unexpected provider failure", exc_info=result)
            raise CatalogError(str(result)) from result
        return self._adapter.normalize_results(result, context_kind, limit=limit)

    async def _debounced_search(self) -> None:
        await asyncio.sleep(self._settings.search_debounce_seconds)
        self._debounce_task = None
        self._commit(apply_search_commit(self._state))
        if self._state.mode == "search":
            self._spawn(self._fetch_search(self._state.generation, self._state.search_term))
        else:
            self._issue_browse()

    def _cancel_debounce(self) -> None:
        if self._debounce_task is not None:
            self._debounce_task.cancel()
            self._debounce_task = None

    def _issue_browse(self) -> None:
        state = self._state
        if state.is_home:
            self._spawn(self.fetch_home(state.generation))
        else:
            self._spawn(self._fetch_browse(state.generation, state.category, 1))

    async def _fetch_browse(self, generation: int, category: Category, page: int) -> None:
        try:
            if category == "anime":
                payload = await self._tmdb.search_multi(ANIME_QUERY, page=page)
            else:
                kind = "tv" if category == "tv" else "movie"
                payload = await self._tmdb.discover(kind, page=page)
            items = self._adapter.normalize_results(
                payload, category_media_kind(category)
            )
        except CatalogError as exc:
            logger.warning("Failed to fetch %s page %s: %s", category, page, exc)
            self._commit_for(generation, apply_failure(self._state, generation, BROWSE_ERROR))
            return
        self._commit_for(generation, apply_page(self._state, generation, page, items))

    async def _fetch_search(self, generation: int, term: str) -> None:
        try:
            payload = await self._tmdb.search_multi(term, page=1)
            items = self._adapter.normalize_results(payload, "unknown")
        except CatalogError as exc:
            logger.warning("Search for %r failed: %s", term, exc)
            self._commit_for(generation, apply_failure(self._state, generation, SEARCH_ERROR))
            return
        self._commit_for(generation, apply_page(self._state, generation, 1, items))

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Catalog fetch task crashed", exc_info=exc)

    def _commit_for(self, generation: int, state: QueryState) -> None:
        if generation != self._state.generation:
            logger.debug(
                "Discarding stale response for generation %s (current %s)",
                generation,
                self._state.generation,
            )
            return
        self._commit(state)

    def _commit(self, state: QueryState) -> None:
        if state is self._state:
            return
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:  # pragma: no cover - listener bugs must not stop fetches
                logger.exception("Query state listener failed")
