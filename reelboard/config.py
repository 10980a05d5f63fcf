"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Iterable, Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


DEFAULT_RATING_SOURCES: tuple[str, ...] = (
    "Internet Movie Database",
    "Rotten Tomatoes",
)


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="Reelboard", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    tmdb_api_url: HttpUrl = Field(
        default="https://api.themoviedb.org/3", alias="TMDB_API_URL"
    )
    tmdb_poster_base_url: str = Field(
        default="https://image.tmdb.org/t/p/w500", alias="TMDB_POSTER_BASE_URL"
    )
    tmdb_backdrop_base_url: str = Field(
        default="https://image.tmdb.org/t/p/original",
        alias="TMDB_BACKDROP_BASE_URL",
    )
    poster_placeholder_url: str = Field(
        default="https://placehold.co/300x450/4B5563/FFFFFF?text=Image+Unavailable",
        alias="POSTER_PLACEHOLDER_URL",
    )
    backdrop_placeholder_url: str = Field(
        default="https://placehold.co/1280x720/1F2937/FFFFFF?text=Image+Unavailable",
        alias="BACKDROP_PLACEHOLDER_URL",
    )
    discover_language: str = Field(default="en", alias="DISCOVER_LANGUAGE")

    omdb_api_key: str | None = Field(default=None, alias="OMDB_API_KEY")
    omdb_api_url: HttpUrl = Field(
        default="https://www.omdbapi.com", alias="OMDB_API_URL"
    )

    search_debounce_seconds: float = Field(
        default=0.5, alias="SEARCH_DEBOUNCE_SECONDS", ge=0, le=10
    )
    carousel_interval_seconds: float = Field(
        default=5.0, alias="CAROUSEL_INTERVAL_SECONDS", gt=0, le=600
    )
    swipe_threshold_px: float = Field(
        default=50, alias="SWIPE_THRESHOLD_PX", ge=0
    )
    top_week_limit: int = Field(default=10, alias="TOP_WEEK_LIMIT", ge=1, le=20)

    trailer_site: str = Field(default="YouTube", alias="TRAILER_SITE")
    trailer_embed_url: str = Field(
        default="https://www.youtube.com/embed", alias="TRAILER_EMBED_URL"
    )
    rating_sources: Annotated[tuple[str, ...], NoDecode] = Field(
        default=DEFAULT_RATING_SOURCES, alias="RATING_SOURCES"
    )

    http_timeout_seconds: float = Field(
        default=20.0, alias="HTTP_TIMEOUT_SECONDS", gt=0
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("tmdb_api_key", "omdb_api_key", mode="before")
    @classmethod
    def _strip_blank(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return None
        return value

    @field_validator(
        "tmdb_poster_base_url",
        "tmdb_backdrop_base_url",
        "trailer_embed_url",
        mode="after",
    )
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("rating_sources", mode="before")
    @classmethod
    def _parse_rating_sources(cls, value: object) -> tuple[str, ...]:
        """Accept comma separated environment values as well as iterables."""

        if value is None:
            return DEFAULT_RATING_SOURCES
        if isinstance(value, str):
            raw_values = [part.strip() for part in value.split(",")]
        elif isinstance(value, Iterable):
            raw_values = [str(part).strip() for part in value]
        else:
            raise TypeError("RATING_SOURCES must be a string or iterable of strings")

        cleaned: list[str] = []
        for entry in raw_values:
            if entry and entry not in cleaned:
                cleaned.append(entry)
        if not cleaned:
            return DEFAULT_RATING_SOURCES
        return tuple(cleaned)

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
