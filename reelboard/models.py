"""Pydantic models describing catalog items, detail records and snapshots."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

MediaKind = Literal["movie", "series", "unknown"]
Category = Literal["home", "movie", "tv", "anime"]
QueryMode = Literal["browse", "search"]

NO_SYNOPSIS = "No synopsis available."
NOT_AVAILABLE = "N/A"

# Provider path segments for the kinds that have per-item endpoints.
_KIND_SEGMENTS: dict[str, str] = {"movie": "movie", "series": "tv"}
_TAG_KINDS: dict[str, MediaKind] = {"movie": "movie", "tv": "series"}


def media_kind_from_tag(tag: str) -> MediaKind:
    """Map a provider ``media_type`` tag onto a media kind."""

    return _TAG_KINDS.get(tag, "unknown")


def media_kind_segment(kind: MediaKind) -> str | None:
    """Return the provider path segment for ``kind`` or ``None`` when it has none."""

    return _KIND_SEGMENTS.get(kind)


def category_media_kind(category: Category) -> MediaKind:
    """Return the kind assumed for untagged entries listed under ``category``."""

    return "series" if category == "tv" else "movie"


class CatalogItem(BaseModel):
    """Represents a single normalized media entry shown in a list or rail."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str = Field(min_length=1)
    description: str = NO_SYNOPSIS
    media_kind: MediaKind = "unknown"
    poster_url: str = Field(min_length=1)
    backdrop_url: str = Field(min_length=1)
    rating: float | None = None
    release_date: str | None = None

    @property
    def key(self) -> tuple[MediaKind, int]:
        """Identity of the item; ids are only unique per media kind."""

        return (self.media_kind, self.id)


class PrimaryDetails(BaseModel):
    """Rich metadata returned by the primary provider for one title."""

    model_config = ConfigDict(frozen=True)

    title: str
    tagline: str | None = None
    genres: tuple[str, ...] = ()
    runtime_minutes: int | None = None
    status: str | None = None
    overview: str | None = None
    vote_average: float | None = None
    release_date: str | None = None

    @property
    def score_percent(self) -> str:
        """Return the provider vote average as a whole percentage."""

        if not self.vote_average:
            return NOT_AVAILABLE
        return f"{self.vote_average * 10:.0f}%"


class DetailRecord(BaseModel):
    """Merged view of one selected item across both providers."""

    model_config = ConfigDict(frozen=True)

    item: CatalogItem
    primary: PrimaryDetails
    trailer_ref: str | None = None
    cross_ref_id: str | None = None
    secondary_ratings: dict[str, str] = Field(default_factory=dict)

    @property
    def item_id(self) -> int:
        return self.item.id

    @property
    def media_kind(self) -> MediaKind:
        return self.item.media_kind

    def rating_for(self, source: str) -> str:
        """Return the secondary rating published by ``source`` or ``"N/A"``."""

        return self.secondary_ratings.get(source, NOT_AVAILABLE)

    def trailer_url(self, embed_base_url: str) -> str | None:
        if not self.trailer_ref:
            return None
        return f"{embed_base_url.rstrip('/')}/{self.trailer_ref}"


class DetailView(BaseModel):
    """Serializable detail payload handed to the presentation layer."""

    item: CatalogItem
    primary: PrimaryDetails
    score_percent: str
    trailer_ref: str | None = None
    trailer_url: str | None = None
    cross_ref_id: str | None = None
    secondary_ratings: dict[str, str] = Field(default_factory=dict)
    highlighted_ratings: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_record(
        cls,
        record: DetailRecord,
        *,
        embed_base_url: str,
        rating_sources: tuple[str, ...],
    ) -> "DetailView":
        return cls(
            item=record.item,
            primary=record.primary,
            score_percent=record.primary.score_percent,
            trailer_ref=record.trailer_ref,
            trailer_url=record.trailer_url(embed_base_url),
            cross_ref_id=record.cross_ref_id,
            secondary_ratings=dict(record.secondary_ratings),
            highlighted_ratings={
                source: record.rating_for(source) for source in rating_sources
            },
        )


class SessionSnapshot(BaseModel):
    """Everything the presentation layer needs to render the current view."""

    mode: QueryMode
    category: Category
    search_term: str
    page: int
    generation: int
    items: list[CatalogItem] = Field(default_factory=list)
    hero: list[CatalogItem] = Field(default_factory=list)
    top_week: list[CatalogItem] = Field(default_factory=list)
    loading: bool = False
    fetching_more: bool = False
    can_load_more: bool = False
    error: str | None = None
    detail: DetailView | None = None
    detail_loading: bool = False
    detail_error: str | None = None
    carousel_index: int = 0
    carousel_dragging: bool = False
    carousel_offset: float = 0.0


class CategoryIntent(BaseModel):
    category: Category


class SearchIntent(BaseModel):
    text: str = ""


class SelectItemIntent(BaseModel):
    id: int
    media_kind: MediaKind


class PointerIntent(BaseModel):
    phase: Literal["down", "move", "up", "leave"]
    x: float = 0.0


class CarouselIndexIntent(BaseModel):
    index: int = Field(ge=0)


class CarouselStepIntent(BaseModel):
    direction: Literal["next", "previous"]
