"""Immutable query state and the pure transitions applied to it.

Every function here takes the current :class:`QueryState` and returns the next
snapshot. Functions that commit provider results take the generation captured
when the request was issued and return the state untouched when it no longer
matches, which is how superseded responses are discarded.
"""

from __future__ import annotations

from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field

from .models import CatalogItem, Category, QueryMode

BROWSE_ERROR = (
    "Failed to fetch items. Please check your API key and network connection."
)
SEARCH_ERROR = "Failed to fetch search results. Please try again later."


class PaginationCursor(BaseModel):
    """Page number and items accumulated for the active query."""

    model_config = ConfigDict(frozen=True)

    page: int = Field(default=1, ge=1)
    items: tuple[CatalogItem, ...] = ()

    def extend(self, page: int, new_items: Iterable[CatalogItem]) -> "PaginationCursor":
        """Return a cursor at ``page`` with ``new_items`` appended in order."""

        return PaginationCursor(page=page, items=self.items + tuple(new_items))

    @property
    def next_page(self) -> int:
        return self.page + 1

    def __len__(self) -> int:
        return len(self.items)


class QueryState(BaseModel):
    """Snapshot of the active query owned by the query controller."""

    model_config = ConfigDict(frozen=True)

    mode: QueryMode = "browse"
    category: Category = "home"
    search_term: str = ""
    cursor: PaginationCursor = Field(default_factory=PaginationCursor)
    generation: int = 0
    loading: bool = False
    fetching_more: bool = False
    error: str | None = None
    hero: tuple[CatalogItem, ...] = ()
    top_week: tuple[CatalogItem, ...] = ()

    @property
    def page(self) -> int:
        return self.cursor.page

    @property
    def items(self) -> tuple[CatalogItem, ...]:
        return self.cursor.items

    @property
    def is_home(self) -> bool:
        return self.mode == "browse" and self.category == "home" and not self.search_term

    @property
    def can_load_more(self) -> bool:
        """Whether another page may be requested for the current query."""

        return (
            self.mode == "browse"
            and not self.search_term
            and bool(self.cursor.items)
            and not self.loading
            and not self.fetching_more
        )


def _restart(state: QueryState, **changes: object) -> QueryState:
    """Start a new query lifetime: bump the generation and reset pagination."""

    return state.model_copy(
        update={
            **changes,
            "generation": state.generation + 1,
            "cursor": PaginationCursor(),
            "loading": True,
            "fetching_more": False,
            "error": None,
        }
    )


def apply_category(state: QueryState, category: Category) -> QueryState:
    """Switch to browsing ``category`` with a cleared search term."""

    hero = state.hero if category == "home" else ()
    top_week = state.top_week if category == "home" else ()
    return _restart(
        state,
        mode="browse",
        category=category,
        search_term="",
        hero=hero,
        top_week=top_week,
    )


def apply_search_text(state: QueryState, text: str) -> QueryState:
    """Record a keystroke; the query itself only changes once the debounce fires."""

    if text == state.search_term:
        return state
    return state.model_copy(update={"search_term": text})


def apply_search_commit(state: QueryState) -> QueryState:
    """Turn the settled search term into the active query."""

    if not state.search_term:
        return _restart(state, mode="browse")
    return _restart(state, mode="search", hero=(), top_week=())


def apply_load_more(state: QueryState) -> QueryState:
    return state.model_copy(update={"fetching_more": True})


def apply_page(
    state: QueryState,
    generation: int,
    page: int,
    items: Iterable[CatalogItem],
) -> QueryState:
    """Commit a page of results; page 1 replaces, later pages append."""

    if generation != state.generation:
        return state
    if page == 1:
        cursor = PaginationCursor(page=1, items=tuple(items))
    else:
        cursor = state.cursor.extend(page, items)
    return state.model_copy(
        update={
            "cursor": cursor,
            "loading": False,
            "fetching_more": False,
            "error": None,
        }
    )


def apply_home(
    state: QueryState,
    generation: int,
    *,
    hero: Iterable[CatalogItem],
    top_week: Iterable[CatalogItem],
    discovery: Iterable[CatalogItem] | None,
) -> QueryState:
    """Commit the joined home fan-out; ``discovery`` is ``None`` when it failed."""

    if generation != state.generation:
        return state
    update: dict[str, object] = {
        "hero": tuple(hero),
        "top_week": tuple(top_week),
        "loading": False,
        "fetching_more": False,
    }
    if discovery is None:
        update["error"] = BROWSE_ERROR
    else:
        update["cursor"] = PaginationCursor(page=1, items=tuple(discovery))
        update["error"] = None
    return state.model_copy(update=update)


def apply_failure(state: QueryState, generation: int, message: str) -> QueryState:
    """Surface a fetch failure without discarding the items already shown."""

    if generation != state.generation:
        return state
    return state.model_copy(
        update={"loading": False, "fetching_more": False, "error": message}
    )
